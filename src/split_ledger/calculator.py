"""Split calculation: turn one expense total into per-participant shares."""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from .models import ExpenseSplit, ShareInput, SplitRule

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round2(amount: Decimal) -> Decimal:
    """
    Round a currency amount to two decimal places.
    Uses ROUND_HALF_UP for consistency.

    Args:
        amount: Amount as Decimal

    Returns:
        Amount quantized to cents
    """
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_splits(
    total_amount: Decimal,
    rule: SplitRule | str,
    participants: Sequence[ShareInput],
) -> list[ExpenseSplit]:
    """
    Compute each participant's share of an expense.

    Rules:
    - equal: everyone owes round2(total / n) and carries round2(100 / n) percent.
      Each share is rounded on its own, so the sum may be off by a few cents.
    - percentage: amount = round2(total * pct / 100); the percentage is passed
      through unrounded.
    - unequal: the supplied amount is used as-is; the percentage is derived
      for display only.

    A missing raw value counts as zero, leaving the mismatch for the validator.

    The total is assumed positive and the rule known; both are checked by
    ``validate_request`` before this is called.

    Args:
        total_amount: Expense total
        rule: Split rule
        participants: Participants in the order their splits should appear

    Returns:
        One split per participant, in input order
    """
    rule = SplitRule(rule)

    if not participants:
        return []

    if rule is SplitRule.EQUAL:
        count = len(participants)
        amount = round2(total_amount / count)
        percentage = round2(HUNDRED / count)
        return [
            ExpenseSplit(
                participant=share.participant, amount=amount, percentage=percentage
            )
            for share in participants
        ]

    if rule is SplitRule.PERCENTAGE:
        splits = []
        for share in participants:
            pct = share.raw_percentage
            if pct is None:
                pct = Decimal("0")
            splits.append(
                ExpenseSplit(
                    participant=share.participant,
                    amount=round2(total_amount * pct / HUNDRED),
                    percentage=pct,
                )
            )
        return splits

    splits = []
    for share in participants:
        amount = share.raw_amount
        if amount is None:
            amount = Decimal("0")
        splits.append(
            ExpenseSplit(
                participant=share.participant,
                amount=amount,
                percentage=round2(amount / total_amount * HUNDRED),
            )
        )
    return splits
