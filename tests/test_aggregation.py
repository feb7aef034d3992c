"""Golden tests for dashboard aggregation."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

from siteledger.services.aggregation import (
    PortfolioSnapshot,
    ProjectInput,
    TransactionInput,
    compute_daily_stats,
    compute_portfolio_snapshot,
    compute_project_summary,
    month_periods,
    week_periods,
)

D = date(2024, 3, 7)


def _tx(project: ProjectInput, kind: str, amount: str, day: date) -> TransactionInput:
    return TransactionInput(id=uuid4(), project_id=project.id, type=kind, amount=Decimal(amount), transaction_date=day)


def build_downtown_office():
    project = ProjectInput(id=uuid4(), name="Downtown Office")
    transactions = [
        _tx(project, "credit", "5000", D),
        _tx(project, "debit", "1200", D),
        _tx(project, "debit", "300", D - timedelta(days=2)),
    ]
    return project, transactions


def test_downtown_office_summary_and_daily_stats():
    project, transactions = build_downtown_office()
    snapshot = compute_portfolio_snapshot([project], transactions, D)

    summary = snapshot.projects_summary[0]
    assert summary.project_name == "Downtown Office"
    assert summary.total_credits == Decimal("5000")
    assert summary.total_debits == Decimal("1500")
    assert summary.profit == Decimal("3500")
    assert snapshot.total_portfolio_balance == Decimal("3500")
    assert snapshot.total_projects == 1

    by_day = {stat.date: stat for stat in snapshot.daily_stats}
    assert by_day[D].credits == Decimal("5000")
    assert by_day[D].debits == Decimal("1200")
    assert by_day[D - timedelta(days=2)].credits == Decimal("0")
    assert by_day[D - timedelta(days=2)].debits == Decimal("300")
    for day, stat in by_day.items():
        if day not in (D, D - timedelta(days=2)):
            assert stat.credits == 0 and stat.debits == 0


def test_project_without_transactions_is_all_zero():
    project = ProjectInput(id=uuid4(), name="Empty Lot")
    summary = compute_project_summary(project, [])
    assert (summary.total_credits, summary.total_debits, summary.profit) == (0, 0, 0)


def test_summary_ignores_other_projects_transactions():
    project, transactions = build_downtown_office()
    other = ProjectInput(id=uuid4(), name="Warehouse")
    transactions.append(_tx(other, "credit", "999", D))
    summary = compute_project_summary(project, transactions)
    assert summary.total_credits == Decimal("5000")


def test_daily_stats_are_seven_consecutive_days_ending_on_reference():
    _, transactions = build_downtown_office()
    stats = compute_daily_stats(transactions, D)
    assert len(stats) == 7
    assert stats[-1].date == D
    assert stats[0].date == D - timedelta(days=6)
    for earlier, later in zip(stats, stats[1:]):
        assert later.date - earlier.date == timedelta(days=1)


def test_daily_stats_exclude_transactions_outside_window():
    project, transactions = build_downtown_office()
    transactions.append(_tx(project, "credit", "10", D - timedelta(days=7)))
    transactions.append(_tx(project, "credit", "10", D + timedelta(days=1)))
    stats = compute_daily_stats(transactions, D)
    assert sum(stat.credits for stat in stats) == Decimal("5000")


def test_balance_is_sum_of_profits_and_can_be_negative():
    profitable = ProjectInput(id=uuid4(), name="Clinic")
    losing = ProjectInput(id=uuid4(), name="Bridge")
    transactions = [
        _tx(profitable, "credit", "1000.10", D),
        _tx(profitable, "debit", "200.05", D),
        _tx(losing, "credit", "100", D),
        _tx(losing, "debit", "2500.50", D),
    ]
    snapshot = compute_portfolio_snapshot([profitable, losing], transactions, D)
    profits = [summary.profit for summary in snapshot.projects_summary]
    assert profits == [Decimal("800.05"), Decimal("-2400.50")]
    assert snapshot.total_portfolio_balance == sum(profits)
    assert snapshot.total_portfolio_balance == Decimal("-1600.45")


def test_decimal_sums_are_exact():
    project = ProjectInput(id=uuid4(), name="Cents")
    transactions = [_tx(project, "credit", "0.10", D) for _ in range(3)]
    summary = compute_project_summary(project, transactions)
    assert summary.total_credits == Decimal("0.30")


def test_snapshot_is_idempotent():
    project, transactions = build_downtown_office()
    first = compute_portfolio_snapshot([project], transactions, D, weeks=2, months=2)
    second = compute_portfolio_snapshot([project], transactions, D, weeks=2, months=2)
    assert first == second


def test_empty_projects_give_empty_snapshot():
    snapshot = compute_portfolio_snapshot([], [], D)
    assert snapshot == PortfolioSnapshot.empty()
    assert snapshot.total_portfolio_balance == 0
    assert snapshot.projects_summary == ()
    assert snapshot.daily_stats == ()


def test_week_periods_are_monday_based():
    periods = week_periods(D, 2)
    assert [p.label for p in periods] == ["2024-W09", "2024-W10"]
    assert periods[-1].start == date(2024, 3, 4)
    assert periods[-1].end == date(2024, 3, 10)


def test_month_periods_cross_year_boundary():
    periods = month_periods(date(2024, 2, 15), 3)
    assert [p.label for p in periods] == ["2023-12", "2024-01", "2024-02"]
    assert periods[-1].end == date(2024, 2, 29)


def test_weekly_and_monthly_stats_bucket_transactions():
    project, transactions = build_downtown_office()
    transactions.append(_tx(project, "credit", "50", date(2024, 2, 20)))
    snapshot = compute_portfolio_snapshot([project], transactions, D, weeks=1, months=2)
    assert snapshot.weekly_stats[0].credits == Decimal("5000")
    assert snapshot.weekly_stats[0].debits == Decimal("1500")
    february, march = snapshot.monthly_stats
    assert february.credits == Decimal("50")
    assert march.credits == Decimal("5000")
