"""Tests for balance summaries, expense stats and the activity feed."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from split_ledger.models import Balance, BalanceDirection, Expense, ExpenseSplit, SplitRule
from split_ledger.report import (
    ActivityKind,
    Period,
    activity_feed,
    balance_summary,
    category_breakdown,
    expense_stats,
    filter_by_period,
    period_bounds,
)

# Wednesday
NOW = datetime(2025, 3, 12, 15, 30)


def make_expense(
    id: str,
    created_at: datetime,
    total: str = "100",
    category: str = "Food",
    payer: str = "alice",
) -> Expense:
    """A two-way equal split between alice and bob."""
    half = Decimal(total) / 2
    return Expense(
        id=id,
        description=f"Expense {id}",
        total_amount=Decimal(total),
        payer=payer,
        rule=SplitRule.EQUAL,
        splits=[
            ExpenseSplit(participant="alice", amount=half),
            ExpenseSplit(participant="bob", amount=half),
        ],
        creator=payer,
        category=category,
        created_at=created_at,
    )


def make_settlement(id: str, created_at: datetime, amount: str = "20") -> Expense:
    return Expense(
        id=id,
        description="Settlement",
        total_amount=Decimal(amount),
        payer="bob",
        rule=SplitRule.UNEQUAL,
        splits=[
            ExpenseSplit(participant="alice", amount=Decimal(amount)),
            ExpenseSplit(participant="bob", amount=Decimal("0")),
        ],
        creator="alice",
        category="Settlement - Venmo",
        created_at=created_at,
    )


@pytest.fixture
def history():
    """Expenses spread across this year, plus one settlement."""
    return [
        make_expense("today", datetime(2025, 3, 12, 9, 0), total="30"),
        make_expense("monday", datetime(2025, 3, 10, 20, 0), total="60", category="Travel"),
        make_expense("last-week", datetime(2025, 3, 9, 23, 59), total="10"),
        make_expense("february", datetime(2025, 2, 14), total="200", category="Gifts"),
        make_expense("last-year", datetime(2024, 12, 31), total="80"),
        make_settlement("settle", datetime(2025, 3, 11)),
    ]


class TestBalanceSummary:
    """Tests for balance_summary."""

    def test_totals_by_direction(self):
        balances = [
            Balance(counterparty="bob", amount=Decimal("20"), direction=BalanceDirection.OWES_YOU),
            Balance(counterparty="carol", amount=Decimal("5.50"), direction=BalanceDirection.OWES_YOU),
            Balance(counterparty="dave", amount=Decimal("12"), direction=BalanceDirection.YOU_OWE),
        ]

        summary = balance_summary(balances)

        assert summary.owed_to_you == Decimal("25.50")
        assert summary.you_owe == Decimal("12")
        assert summary.net == Decimal("13.50")
        assert [b.counterparty for b in summary.owed_to_you_details] == ["bob", "carol"]
        assert [b.counterparty for b in summary.you_owe_details] == ["dave"]

    def test_empty(self):
        summary = balance_summary([])

        assert summary.owed_to_you == Decimal("0")
        assert summary.you_owe == Decimal("0")
        assert summary.net == Decimal("0")


class TestPeriods:
    """Tests for period_bounds and filter_by_period."""

    def test_all_is_unbounded(self):
        assert period_bounds(Period.ALL, NOW) == (None, None)

    def test_today(self):
        assert period_bounds("today", NOW) == (
            datetime(2025, 3, 12),
            datetime(2025, 3, 13),
        )

    def test_week_starts_monday(self):
        assert period_bounds(Period.WEEK, NOW) == (
            datetime(2025, 3, 10),
            datetime(2025, 3, 17),
        )

    def test_month_rolls_over(self):
        assert period_bounds(Period.MONTH, datetime(2025, 12, 31, 8)) == (
            datetime(2025, 12, 1),
            datetime(2026, 1, 1),
        )

    def test_year(self):
        assert period_bounds(Period.YEAR, NOW) == (
            datetime(2025, 1, 1),
            datetime(2026, 1, 1),
        )

    def test_custom_includes_whole_end_day(self):
        lower, upper = period_bounds(
            Period.CUSTOM, NOW, start=date(2025, 3, 1), end=date(2025, 3, 9)
        )

        assert lower == datetime(2025, 3, 1)
        assert upper == datetime(2025, 3, 10)

    def test_custom_open_ended(self):
        assert period_bounds(Period.CUSTOM, NOW, start=date(2025, 3, 1)) == (
            datetime(2025, 3, 1),
            None,
        )

    def test_unknown_period(self):
        with pytest.raises(ValueError):
            period_bounds("fortnight", NOW)

    @pytest.mark.parametrize(
        "period,expected",
        [
            (Period.ALL, {"today", "monday", "last-week", "february", "last-year", "settle"}),
            (Period.TODAY, {"today"}),
            (Period.WEEK, {"today", "monday", "settle"}),
            (Period.MONTH, {"today", "monday", "last-week", "settle"}),
            (Period.YEAR, {"today", "monday", "last-week", "february", "settle"}),
        ],
    )
    def test_filter_by_period(self, history, period, expected):
        selected = filter_by_period(history, period, now=NOW)

        assert {expense.id for expense in selected} == expected


class TestExpenseStats:
    """Tests for expense_stats."""

    def test_all_time(self, history):
        stats = expense_stats("alice", history, now=NOW)

        assert stats.total_count == 5
        assert stats.total_amount == Decimal("380.00")
        assert stats.your_share == Decimal("190.00")
        assert stats.categories_used == 3
        assert stats.largest_expense == Decimal("200")

    def test_settlements_excluded(self, history):
        stats = expense_stats("alice", history, period=Period.WEEK, now=NOW)

        assert stats.total_count == 2
        assert stats.total_amount == Decimal("90.00")

    def test_viewer_share_only(self, history):
        stats = expense_stats("carol", history, now=NOW)

        assert stats.your_share == Decimal("0.00")

    def test_empty_period(self, history):
        stats = expense_stats(
            "alice",
            history,
            period=Period.CUSTOM,
            now=NOW,
            start=date(2020, 1, 1),
            end=date(2020, 1, 31),
        )

        assert stats.total_count == 0
        assert stats.largest_expense == Decimal("0")


class TestCategoryBreakdown:
    """Tests for category_breakdown."""

    def test_share_per_category(self, history):
        breakdown = category_breakdown("bob", history)

        assert breakdown == {
            "Food": Decimal("60.00"),
            "Travel": Decimal("30.00"),
            "Gifts": Decimal("100.00"),
        }

    def test_settlements_excluded(self):
        assert category_breakdown("alice", [make_settlement("s", NOW)]) == {}


class TestActivityFeed:
    """Tests for activity_feed."""

    def test_newest_first_with_labels(self, history):
        feed = activity_feed(history)

        assert [entry.expense.id for entry in feed] == [
            "today",
            "settle",
            "monday",
            "last-week",
            "february",
            "last-year",
        ]
        assert feed[1].kind == "settlement"
        assert feed[1].label == "Settlement"
        assert feed[2].label == "Travel"

    def test_expenses_only(self, history):
        feed = activity_feed(history, ActivityKind.EXPENSES)

        assert all(entry.kind == "expense" for entry in feed)
        assert len(feed) == 5

    def test_settlements_only(self, history):
        feed = activity_feed(history, "settlements")

        assert [entry.expense.id for entry in feed] == ["settle"]

    def test_limit(self, history):
        feed = activity_feed(history, limit=2)

        assert [entry.expense.id for entry in feed] == ["today", "settle"]
