"""Arithmetic invariants every expense must satisfy before it is accepted.

Validation runs twice: once when an expense is composed (a quick check for
early feedback) and again right before persistence. Only the second check is
authoritative.
"""

from collections.abc import Iterable
from decimal import Decimal

from .models import (
    Expense,
    ExpenseDraft,
    ExpenseRequest,
    Rejection,
    RejectionReason,
    SplitRule,
)

# Per-participant rounding can leave a few cents of residual.
TOLERANCE = Decimal("0.01")
# Percentage points; a sum of 100.02 is accepted.
PERCENTAGE_TOLERANCE = Decimal("0.02")

_HUNDRED = Decimal("100")
_SPLIT_RULES = frozenset(rule.value for rule in SplitRule)


def _check_header(
    description: str, total_amount: Decimal, rule: str
) -> Rejection | None:
    """Checks 1-3: description, amount, rule."""
    if not description.strip():
        return Rejection(
            reason=RejectionReason.EMPTY_DESCRIPTION,
            message="Description is required",
        )

    if total_amount <= 0:
        return Rejection(
            reason=RejectionReason.NON_POSITIVE_AMOUNT,
            message=f"Total amount must be greater than 0 (got {total_amount})",
        )

    if rule not in _SPLIT_RULES:
        return Rejection(
            reason=RejectionReason.UNKNOWN_SPLIT_RULE,
            message=f"Invalid split type: {rule!r}",
        )

    return None


def _check_participants(participants: Iterable[str]) -> Rejection | None:
    """Checks 4 and 4a: at least one split, no participant listed twice."""
    seen: set[str] = set()
    for participant in participants:
        if participant in seen:
            return Rejection(
                reason=RejectionReason.DUPLICATE_PARTICIPANT,
                message=f"Participant {participant!r} appears more than once",
            )
        seen.add(participant)

    if not seen:
        return Rejection(
            reason=RejectionReason.NO_SPLITS,
            message="At least one split is required",
        )

    return None


def validate_request(request: ExpenseRequest) -> Rejection | None:
    """
    Check a raw expense request before any splits are computed.

    A zero or negative total never reaches the calculator.

    Args:
        request: The incoming request

    Returns:
        The first rejection found, or None if the request may proceed
    """
    return _check_header(
        request.description, request.total_amount, request.rule
    ) or _check_participants(share.participant for share in request.participants)


def _check_split_sum(expense: ExpenseDraft | Expense) -> Rejection | None:
    """Check 5: split amounts add up to the total."""
    split_total = sum((split.amount for split in expense.splits), Decimal("0"))
    if abs(split_total - expense.total_amount) > TOLERANCE:
        return Rejection(
            reason=RejectionReason.SPLIT_SUM_MISMATCH,
            message=(
                f"Split amounts must add up to total amount "
                f"(splits: {split_total}, total: {expense.total_amount})"
            ),
        )
    return None


def _check_percentage_sum(expense: ExpenseDraft | Expense) -> Rejection | None:
    """Check 6: percentages add up to 100."""
    percentage_total = sum(
        (split.percentage or Decimal("0") for split in expense.splits),
        Decimal("0"),
    )
    if abs(percentage_total - _HUNDRED) > PERCENTAGE_TOLERANCE:
        return Rejection(
            reason=RejectionReason.PERCENTAGE_SUM_MISMATCH,
            message=f"Percentages must add up to 100 (got {percentage_total})",
        )
    return None


def validate_expense(expense: ExpenseDraft | Expense) -> Rejection | None:
    """
    Check a computed expense against the ledger invariants.

    Checks run in order and stop at the first failure:
    1. description is not blank
    2. total amount is positive
    3. split rule is known
    4. there is at least one split (and no participant is listed twice)
    5. split amounts sum to the total within TOLERANCE
    6. for percentage splits, percentages sum to 100 within PERCENTAGE_TOLERANCE

    Under the percentage rule the amounts are derived from the percentages, so
    check 6 runs before check 5 and a bad percentage total is reported as
    such rather than as the amount mismatch it causes.

    Args:
        expense: A draft or an already-built expense (settlements included)

    Returns:
        The first rejection found, or None if the expense is valid
    """
    rejection = _check_header(
        expense.description, expense.total_amount, str(expense.rule)
    ) or _check_participants(split.participant for split in expense.splits)
    if rejection:
        return rejection

    if expense.rule == SplitRule.PERCENTAGE:
        return _check_percentage_sum(expense) or _check_split_sum(expense)

    return _check_split_sum(expense)
