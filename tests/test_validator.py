"""Tests for expense validation."""

from decimal import Decimal

import pytest

from split_ledger.calculator import compute_splits
from split_ledger.models import (
    ExpenseDraft,
    ExpenseRequest,
    ExpenseSplit,
    RejectionReason,
    ShareInput,
    SplitRule,
)
from split_ledger.validator import validate_expense, validate_request


def make_draft(
    splits: list[tuple[str, str, str | None]],
    total: str = "100",
    rule: str = "unequal",
    description: str = "Groceries",
) -> ExpenseDraft:
    """Create a draft from (participant, amount, percentage) tuples."""
    return ExpenseDraft(
        description=description,
        total_amount=Decimal(total),
        payer="A",
        rule=rule,
        splits=[
            ExpenseSplit(
                participant=participant,
                amount=Decimal(amount),
                percentage=Decimal(pct) if pct is not None else None,
            )
            for participant, amount, pct in splits
        ],
    )


def make_request(
    total: str = "100",
    rule: str = "equal",
    description: str = "Groceries",
    participants: list[str] | None = None,
) -> ExpenseRequest:
    """Create a request with plain participants."""
    return ExpenseRequest(
        description=description,
        total_amount=Decimal(total),
        payer="A",
        rule=rule,
        participants=[
            ShareInput(participant=p)
            for p in (["A", "B"] if participants is None else participants)
        ],
    )


class TestAccepts:
    """Valid expenses pass."""

    def test_exact_unequal(self):
        draft = make_draft([("A", "70", None), ("B", "30", None)])
        assert validate_expense(draft) is None

    def test_sixty_forty_percentage(self):
        """total=100, 60%/40% -> accepted."""
        participants = [
            ShareInput(participant="A", raw_percentage=Decimal("60")),
            ShareInput(participant="B", raw_percentage=Decimal("40")),
        ]
        draft = ExpenseDraft(
            description="Rent",
            total_amount=Decimal("100"),
            payer="A",
            rule=SplitRule.PERCENTAGE,
            splits=compute_splits(Decimal("100"), SplitRule.PERCENTAGE, participants),
        )

        assert validate_expense(draft) is None

    def test_split_sum_within_tolerance(self):
        """One cent of rounding residual is accepted."""
        draft = make_draft(
            [("A", "33.33", None), ("B", "33.33", None), ("C", "33.33", None)]
        )
        assert validate_expense(draft) is None

    def test_percentages_summing_to_100_02(self):
        """A small percentage overshoot is treated as rounding noise."""
        draft = make_draft(
            [("A", "50.01", "50.01"), ("B", "50.01", "50.01")],
            total="100.02",
            rule="percentage",
        )
        assert validate_expense(draft) is None

    def test_missing_percentage_tolerated_outside_percentage_rule(self):
        draft = make_draft([("A", "50", None), ("B", "50", None)], rule="equal")
        assert validate_expense(draft) is None


class TestRejects:
    """Each invariant has its own rejection reason."""

    @pytest.mark.parametrize("description", ["", "   ", "\t\n"])
    def test_empty_description(self, description):
        draft = make_draft([("A", "100", None)], description=description)

        rejection = validate_expense(draft)

        assert rejection is not None
        assert rejection.reason is RejectionReason.EMPTY_DESCRIPTION

    @pytest.mark.parametrize("total", ["0", "-5", "-0.01"])
    def test_non_positive_amount(self, total):
        draft = make_draft([("A", "0", None)], total=total)

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.NON_POSITIVE_AMOUNT

    def test_unknown_split_rule(self):
        draft = make_draft([("A", "100", None)], rule="shares")

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.UNKNOWN_SPLIT_RULE
        assert "shares" in rejection.message

    def test_no_splits(self):
        draft = make_draft([])

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.NO_SPLITS

    def test_duplicate_participant(self):
        """The same participant listed twice is refused rather than summed."""
        draft = make_draft([("A", "50", None), ("A", "50", None)])

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.DUPLICATE_PARTICIPANT

    def test_split_sum_mismatch(self):
        draft = make_draft([("A", "60", None), ("B", "30", None)])

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.SPLIT_SUM_MISMATCH

    def test_split_sum_just_over_tolerance(self):
        draft = make_draft([("A", "50", None), ("B", "50.02", None)])

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.SPLIT_SUM_MISMATCH

    def test_thirty_thirty_percentage(self):
        """total=100, 30%/30% -> percentages sum to 60."""
        draft = make_draft(
            [("A", "50", "30"), ("B", "50", "30")], rule="percentage"
        )

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.PERCENTAGE_SUM_MISMATCH

    def test_thirty_thirty_percentage_from_calculator(self):
        """total=100, 30%/30% through the calculator -> percentage mismatch."""
        participants = [
            ShareInput(participant="A", raw_percentage=Decimal("30")),
            ShareInput(participant="B", raw_percentage=Decimal("30")),
        ]
        draft = ExpenseDraft(
            description="Rent",
            total_amount=Decimal("100"),
            payer="A",
            rule="percentage",
            splits=compute_splits(Decimal("100"), SplitRule.PERCENTAGE, participants),
        )

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.PERCENTAGE_SUM_MISMATCH

    def test_percentages_summing_to_95(self):
        draft = make_draft(
            [("A", "50", "50"), ("B", "50", "45")], rule="percentage"
        )

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.PERCENTAGE_SUM_MISMATCH

    def test_missing_percentages_count_as_zero(self):
        draft = make_draft([("A", "50", "50"), ("B", "50", None)], rule="percentage")

        rejection = validate_expense(draft)

        assert rejection.reason is RejectionReason.PERCENTAGE_SUM_MISMATCH


class TestCheckOrder:
    """Checks run in order and stop at the first failure."""

    def test_description_before_amount(self):
        draft = make_draft([], total="0", description=" ")

        assert validate_expense(draft).reason is RejectionReason.EMPTY_DESCRIPTION

    def test_amount_before_rule(self):
        draft = make_draft([], total="0", rule="bogus")

        assert validate_expense(draft).reason is RejectionReason.NON_POSITIVE_AMOUNT

    def test_rule_before_splits(self):
        draft = make_draft([], rule="bogus")

        assert validate_expense(draft).reason is RejectionReason.UNKNOWN_SPLIT_RULE

    def test_percentage_sum_first_under_percentage_rule(self):
        """Both sums are off; the percentage total is the root cause."""
        draft = make_draft([("A", "10", "10")], rule="percentage")

        assert (
            validate_expense(draft).reason is RejectionReason.PERCENTAGE_SUM_MISMATCH
        )

    def test_split_sum_checked_when_percentages_are_fine(self):
        draft = make_draft([("A", "10", "100")], rule="percentage")

        assert validate_expense(draft).reason is RejectionReason.SPLIT_SUM_MISMATCH


class TestValidateRequest:
    """Pre-checks on the raw request, before the calculator runs."""

    def test_accepts_valid_request(self):
        assert validate_request(make_request()) is None

    @pytest.mark.parametrize("rule", ["equal", "percentage", "unequal", "bogus"])
    def test_zero_total_rejected_regardless_of_rule(self, rule):
        rejection = validate_request(make_request(total="0", rule=rule))

        assert rejection.reason is RejectionReason.NON_POSITIVE_AMOUNT

    def test_no_participants(self):
        rejection = validate_request(make_request(participants=[]))

        assert rejection.reason is RejectionReason.NO_SPLITS

    def test_duplicate_participants(self):
        rejection = validate_request(make_request(participants=["A", "B", "A"]))

        assert rejection.reason is RejectionReason.DUPLICATE_PARTICIPANT

    def test_unknown_rule(self):
        rejection = validate_request(make_request(rule="EQUAL"))

        assert rejection.reason is RejectionReason.UNKNOWN_SPLIT_RULE
