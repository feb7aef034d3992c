"""Print a user's portfolio dashboard, optionally following live changes."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from uuid import UUID

from siteledger.config import get_settings
from siteledger.core.errors import LedgerError
from siteledger.core.logging import setup_logging
from siteledger.db.session import get_engine, get_session_factory
from siteledger.schemas import PortfolioSnapshotSchema
from siteledger.services.aggregation import PortfolioSnapshot
from siteledger.services.changes import get_change_broker
from siteledger.services.dashboard import dashboard_query, load_portfolio_snapshot
from siteledger.services.formatting import format_change, format_money
from siteledger.services.gateway import LedgerGateway
from siteledger.services.live import LiveState, LoadStatus
from siteledger.services.pg_listener import PostgresChangeListener

logger = logging.getLogger("siteledger.report")


def render(snapshot: PortfolioSnapshot, symbol: str) -> str:
    lines = [
        f"Portfolio balance: {format_money(snapshot.total_portfolio_balance, signed=True, symbol=symbol)}",
        f"Projects: {snapshot.total_projects}",
    ]
    for summary in snapshot.projects_summary:
        lines.append(
            f"  {summary.project_name}: {format_change(summary.total_credits, summary.total_debits, symbol=symbol)}"
            f" = {format_money(summary.profit, signed=True, symbol=symbol)}"
        )
    lines.append("Last 7 days:")
    for stat in snapshot.daily_stats:
        lines.append(f"  {stat.date.isoformat()}  {format_change(stat.credits, stat.debits, symbol=symbol)}")
    for title, stats in (("Weeks", snapshot.weekly_stats), ("Months", snapshot.monthly_stats)):
        if stats:
            lines.append(f"{title}:")
            lines.extend(
                f"  {stat.label}  {format_change(stat.credits, stat.debits, symbol=symbol)}" for stat in stats
            )
    return "\n".join(lines)


def _emit(snapshot: PortfolioSnapshot, as_json: bool, symbol: str) -> None:
    if as_json:
        print(PortfolioSnapshotSchema.model_validate(snapshot).model_dump_json(indent=2))
    else:
        print(render(snapshot, symbol))


async def _watch(gateway: LedgerGateway, as_json: bool, symbol: str) -> None:
    settings = get_settings()
    listener = PostgresChangeListener(settings.database_url, get_change_broker(), settings.change_feed_channel)
    await listener.start()

    def on_update(state: LiveState[PortfolioSnapshot]) -> None:
        if state.status is LoadStatus.READY and state.value is not None:
            _emit(state.value, as_json, symbol)
        elif state.status is LoadStatus.FAILED:
            logger.error("Dashboard refresh failed (%s): %s", state.error_kind, state.error)

    try:
        async with dashboard_query(gateway, on_update=on_update):
            await asyncio.Event().wait()
    finally:
        await listener.stop()


async def _run(user_id: UUID, as_json: bool, watch: bool) -> int:
    settings = get_settings()
    gateway = LedgerGateway(get_session_factory(), user_id)
    try:
        if watch:
            await _watch(gateway, as_json, settings.currency_symbol)
        else:
            snapshot = await load_portfolio_snapshot(gateway, settings.today())
            _emit(snapshot, as_json, settings.currency_symbol)
    except LedgerError as exc:
        logger.error("Unable to load dashboard: %s", exc.message)
        return 1
    finally:
        await get_engine().dispose()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the portfolio dashboard for a user")
    parser.add_argument("--user-id", required=True, type=UUID)
    parser.add_argument("--json", action="store_true", help="Emit the snapshot as JSON")
    parser.add_argument("--watch", action="store_true", help="Reprint whenever the ledger changes")
    args = parser.parse_args()
    setup_logging(get_settings().log_level)
    try:
        code = asyncio.run(_run(args.user_id, args.json, args.watch))
    except KeyboardInterrupt:
        code = 0
    raise SystemExit(code)


if __name__ == "__main__":
    main()
