"""Read-side summaries over balances and expense history."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel

from .calculator import round2
from .models import DEFAULT_CATEGORY, Balance, BalanceDirection, Expense


class Period(StrEnum):
    """Date window for expense statistics."""

    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


class ActivityKind(StrEnum):
    """Filter for the activity feed."""

    ALL = "all"
    EXPENSES = "expenses"
    SETTLEMENTS = "settlements"


class BalanceSummary(BaseModel):
    """Totals across all of a viewer's balances."""

    owed_to_you: Decimal
    you_owe: Decimal
    owed_to_you_details: list[Balance]
    you_owe_details: list[Balance]

    @property
    def net(self) -> Decimal:
        """Positive when the viewer is owed more than they owe."""
        return self.owed_to_you - self.you_owe


class ExpenseStats(BaseModel):
    """Headline numbers for a viewer's shared expenses."""

    total_count: int
    total_amount: Decimal
    your_share: Decimal
    categories_used: int
    largest_expense: Decimal


class ActivityEntry(BaseModel):
    """One line in the activity feed."""

    expense: Expense
    kind: str  # "expense" or "settlement"
    label: str


def balance_summary(balances: Iterable[Balance]) -> BalanceSummary:
    """Split balances by direction and total each side."""
    owed_to_you = []
    you_owe = []
    for balance in balances:
        if balance.direction is BalanceDirection.OWES_YOU:
            owed_to_you.append(balance)
        else:
            you_owe.append(balance)

    return BalanceSummary(
        owed_to_you=sum((b.amount for b in owed_to_you), Decimal("0")),
        you_owe=sum((b.amount for b in you_owe), Decimal("0")),
        owed_to_you_details=owed_to_you,
        you_owe_details=you_owe,
    )


def period_bounds(
    period: Period | str,
    now: datetime,
    start: date | None = None,
    end: date | None = None,
) -> tuple[datetime | None, datetime | None]:
    """
    Resolve a period into an inclusive start and exclusive end.

    Weeks start on Monday. A custom period uses whole days from ``start``
    through ``end``; either side may be open.

    Returns:
        (start, end), with None meaning unbounded
    """
    period = Period(period)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period is Period.ALL:
        return None, None
    if period is Period.TODAY:
        return midnight, midnight + timedelta(days=1)
    if period is Period.WEEK:
        week_start = midnight - timedelta(days=midnight.weekday())
        return week_start, week_start + timedelta(days=7)
    if period is Period.MONTH:
        month_start = midnight.replace(day=1)
        next_month = (month_start + timedelta(days=32)).replace(day=1)
        return month_start, next_month
    if period is Period.YEAR:
        year_start = midnight.replace(month=1, day=1)
        return year_start, year_start.replace(year=year_start.year + 1)

    tz = now.tzinfo
    lower = datetime.combine(start, datetime.min.time(), tz) if start else None
    upper = (
        datetime.combine(end, datetime.min.time(), tz) + timedelta(days=1)
        if end
        else None
    )
    return lower, upper


def filter_by_period(
    expenses: Iterable[Expense],
    period: Period | str = Period.ALL,
    now: datetime | None = None,
    start: date | None = None,
    end: date | None = None,
) -> list[Expense]:
    """Keep expenses created inside the period."""
    lower, upper = period_bounds(period, now or datetime.now(), start, end)
    return [
        expense
        for expense in expenses
        if (lower is None or expense.created_at >= lower)
        and (upper is None or expense.created_at < upper)
    ]


def expense_stats(
    viewer: str,
    expenses: Iterable[Expense],
    period: Period | str = Period.ALL,
    now: datetime | None = None,
    start: date | None = None,
    end: date | None = None,
) -> ExpenseStats:
    """
    Summarize the viewer's shared expenses, settlements excluded.

    Args:
        viewer: Participant whose share is reported
        expenses: Expense history
        period: Date window
        now: Reference time for relative periods (defaults to now)
        start: First day of a custom period
        end: Last day of a custom period

    Returns:
        Count, total, viewer's share, distinct categories and largest total
    """
    selected = [
        expense
        for expense in filter_by_period(expenses, period, now, start, end)
        if not expense.is_settlement
    ]

    return ExpenseStats(
        total_count=len(selected),
        total_amount=round2(
            sum((expense.total_amount for expense in selected), Decimal("0"))
        ),
        your_share=round2(
            sum((expense.get_share(viewer) for expense in selected), Decimal("0"))
        ),
        categories_used=len(
            {expense.category or DEFAULT_CATEGORY for expense in selected}
        ),
        largest_expense=max(
            (expense.total_amount for expense in selected), default=Decimal("0")
        ),
    )


def category_breakdown(viewer: str, expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """
    The viewer's share of spending per category, settlements excluded.

    Categories appear in order of first occurrence.
    """
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for expense in expenses:
        if expense.is_settlement:
            continue
        totals[expense.category or DEFAULT_CATEGORY] += expense.get_share(viewer)
    return {category: round2(total) for category, total in totals.items()}


def activity_feed(
    expenses: Iterable[Expense],
    kind: ActivityKind | str = ActivityKind.ALL,
    limit: int | None = None,
) -> list[ActivityEntry]:
    """
    Recent activity, newest first, with settlements told apart from expenses.

    Args:
        expenses: Expense history
        kind: all, expenses or settlements
        limit: Maximum number of entries to return

    Returns:
        Feed entries
    """
    kind = ActivityKind(kind)
    entries = []
    for expense in sorted(expenses, key=lambda e: e.created_at, reverse=True):
        if kind is ActivityKind.EXPENSES and expense.is_settlement:
            continue
        if kind is ActivityKind.SETTLEMENTS and not expense.is_settlement:
            continue
        entries.append(
            ActivityEntry(
                expense=expense,
                kind="settlement" if expense.is_settlement else "expense",
                label="Settlement" if expense.is_settlement else expense.category,
            )
        )

    if limit is not None:
        entries = entries[:limit]
    return entries
