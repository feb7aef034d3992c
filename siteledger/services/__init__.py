"""Service-layer exports."""

from .aggregation import (
    DailyStat,
    PeriodStat,
    PortfolioSnapshot,
    ProjectInput,
    ProjectSummary,
    TransactionInput,
    compute_daily_stats,
    compute_portfolio_snapshot,
    compute_project_summary,
)
from .changes import ChangeBroker, ChangeEvent, ChangeScope, Subscription, get_change_broker, install_change_hooks
from .live import ErrorPolicy, LiveQuery, LiveState, LoadStatus
from .gateway import LedgerGateway
from .dashboard import (
    ProjectLedger,
    dashboard_query,
    load_portfolio_snapshot,
    load_project_ledger,
    project_ledger_query,
)

__all__ = [
    "ChangeBroker",
    "ChangeEvent",
    "ChangeScope",
    "DailyStat",
    "ErrorPolicy",
    "LedgerGateway",
    "LiveQuery",
    "LiveState",
    "LoadStatus",
    "PeriodStat",
    "PortfolioSnapshot",
    "ProjectInput",
    "ProjectLedger",
    "ProjectSummary",
    "Subscription",
    "TransactionInput",
    "compute_daily_stats",
    "compute_portfolio_snapshot",
    "compute_project_summary",
    "dashboard_query",
    "get_change_broker",
    "install_change_hooks",
    "load_portfolio_snapshot",
    "load_project_ledger",
    "project_ledger_query",
]
