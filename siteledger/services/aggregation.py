"""Portfolio aggregation over a user's projects and transactions.

Everything here is pure: the only input that is not an argument is the
Decimal context. Amounts are summed exactly and quantized to cents on the
way out, so the same inputs always produce equal snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_EVEN, Decimal, getcontext
from typing import Any, Iterable, Sequence
from uuid import UUID

getcontext().prec = 28

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
DAILY_WINDOW_DAYS = 7


def to_money(value: Any) -> Decimal:
    """Coerce a numeric value to a cent-quantized Decimal."""

    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class ProjectInput:
    id: UUID
    name: str


@dataclass(frozen=True)
class TransactionInput:
    """Normalized transaction input for aggregation."""

    id: UUID
    project_id: UUID
    type: str
    amount: Decimal
    transaction_date: date


@dataclass(frozen=True)
class ProjectSummary:
    project_id: UUID
    project_name: str
    total_credits: Decimal
    total_debits: Decimal
    profit: Decimal


@dataclass(frozen=True)
class DailyStat:
    date: date
    credits: Decimal
    debits: Decimal


@dataclass(frozen=True)
class Period:
    label: str
    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class PeriodStat:
    label: str
    start: date
    end: date
    credits: Decimal
    debits: Decimal


@dataclass(frozen=True)
class PortfolioSnapshot:
    total_portfolio_balance: Decimal
    total_projects: int
    projects_summary: tuple[ProjectSummary, ...] = ()
    daily_stats: tuple[DailyStat, ...] = ()
    weekly_stats: tuple[PeriodStat, ...] = ()
    monthly_stats: tuple[PeriodStat, ...] = ()

    @classmethod
    def empty(cls) -> "PortfolioSnapshot":
        return cls(total_portfolio_balance=ZERO, total_projects=0)


def _split_totals(transactions: Iterable[TransactionInput]) -> tuple[Decimal, Decimal]:
    credits = Decimal("0")
    debits = Decimal("0")
    for tx in transactions:
        if tx.type == "credit":
            credits += tx.amount
        elif tx.type == "debit":
            debits += tx.amount
    return to_money(credits), to_money(debits)


def compute_project_summary(
    project: ProjectInput, transactions: Iterable[TransactionInput]
) -> ProjectSummary:
    """Sum one project's credits and debits; profit may be negative."""

    credits, debits = _split_totals(tx for tx in transactions if tx.project_id == project.id)
    return ProjectSummary(
        project_id=project.id,
        project_name=project.name,
        total_credits=credits,
        total_debits=debits,
        profit=credits - debits,
    )


def daily_window(reference_date: date, days: int = DAILY_WINDOW_DAYS) -> list[date]:
    """Return ``days`` consecutive dates ending on ``reference_date``, ascending."""

    return [reference_date - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def compute_daily_stats(
    transactions: Iterable[TransactionInput], reference_date: date
) -> list[DailyStat]:
    """Credits and debits per calendar day for the 7 days ending on ``reference_date``.

    Days without transactions are reported as zeros rather than omitted.
    """

    by_date: dict[date, list[TransactionInput]] = {}
    for tx in transactions:
        by_date.setdefault(tx.transaction_date, []).append(tx)
    stats: list[DailyStat] = []
    for day in daily_window(reference_date):
        credits, debits = _split_totals(by_date.get(day, []))
        stats.append(DailyStat(date=day, credits=credits, debits=debits))
    return stats


def week_periods(reference_date: date, count: int) -> list[Period]:
    """Monday-based weeks, the last one containing ``reference_date``."""

    current_start = reference_date - timedelta(days=reference_date.weekday())
    periods: list[Period] = []
    for offset in range(count - 1, -1, -1):
        start = current_start - timedelta(weeks=offset)
        iso_year, iso_week, _ = start.isocalendar()
        periods.append(Period(label=f"{iso_year}-W{iso_week:02d}", start=start, end=start + timedelta(days=6)))
    return periods


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_periods(reference_date: date, count: int) -> list[Period]:
    """Calendar months, the last one containing ``reference_date``."""

    periods: list[Period] = []
    for offset in range(count - 1, -1, -1):
        year, month = _shift_month(reference_date.year, reference_date.month, -offset)
        next_year, next_month = _shift_month(year, month, 1)
        start = date(year, month, 1)
        end = date(next_year, next_month, 1) - timedelta(days=1)
        periods.append(Period(label=f"{year:04d}-{month:02d}", start=start, end=end))
    return periods


def compute_period_stats(
    transactions: Iterable[TransactionInput], periods: Sequence[Period]
) -> list[PeriodStat]:
    rows = list(transactions)
    stats: list[PeriodStat] = []
    for period in periods:
        credits, debits = _split_totals(tx for tx in rows if period.contains(tx.transaction_date))
        stats.append(
            PeriodStat(label=period.label, start=period.start, end=period.end, credits=credits, debits=debits)
        )
    return stats


def compute_portfolio_snapshot(
    projects: Sequence[ProjectInput],
    transactions: Sequence[TransactionInput],
    reference_date: date,
    *,
    weeks: int = 0,
    months: int = 0,
) -> PortfolioSnapshot:
    """Build the dashboard snapshot.

    Project summaries keep the order of ``projects``. The balance is the sum
    of per-project profits, so transactions for projects outside ``projects``
    never reach it, while the daily, weekly and monthly series cover every
    transaction passed in.
    """

    if not projects:
        return PortfolioSnapshot.empty()

    summaries = tuple(compute_project_summary(project, transactions) for project in projects)
    balance = sum((summary.profit for summary in summaries), ZERO)
    return PortfolioSnapshot(
        total_portfolio_balance=balance,
        total_projects=len(projects),
        projects_summary=summaries,
        daily_stats=tuple(compute_daily_stats(transactions, reference_date)),
        weekly_stats=tuple(compute_period_stats(transactions, week_periods(reference_date, weeks))),
        monthly_stats=tuple(compute_period_stats(transactions, month_periods(reference_date, months))),
    )


__all__ = [
    "DAILY_WINDOW_DAYS",
    "DailyStat",
    "Period",
    "PeriodStat",
    "PortfolioSnapshot",
    "ProjectInput",
    "ProjectSummary",
    "TransactionInput",
    "ZERO",
    "compute_daily_stats",
    "compute_period_stats",
    "compute_portfolio_snapshot",
    "compute_project_summary",
    "daily_window",
    "month_periods",
    "to_money",
    "week_periods",
]
