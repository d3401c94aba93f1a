"""Settlement planning: turn a payment between two people into a ledger record."""

from datetime import datetime
from decimal import Decimal

from .models import (
    SETTLEMENT_PREFIX,
    Balance,
    BalanceDirection,
    Expense,
    ExpenseSplit,
    Rejection,
    RejectionReason,
    SettlementOutcome,
    SplitRule,
)
from .validator import TOLERANCE, validate_expense

PAYMENT_METHODS = ["Cash", "Zelle", "Venmo", "PayPal", "Other"]


def settlement_category(method: str) -> str:
    """Category label for a settlement paid through ``method``."""
    return f"{SETTLEMENT_PREFIX} - {method}"


def is_settlement(expense: Expense) -> bool:
    """True if the expense records a payment rather than a shared cost."""
    return expense.is_settlement


def plan_settlement(
    viewer: str,
    counterparty: str,
    current_balance: Balance,
    requested_amount: Decimal,
    method: str,
    notes: str | None = None,
    created_at: datetime | None = None,
) -> Expense | Rejection:
    """
    Build the settlement record that pays down a balance.

    The settlement is an unequal expense with two splits. The person handing
    over money is the payer with a zero split; the recipient's split carries
    the full amount. Aggregating it reverses that much of the balance.

    - viewer owes counterparty: viewer pays, counterparty's split = amount
    - counterparty owes viewer: counterparty pays, viewer's split = amount

    Args:
        viewer: Participant recording the settlement
        counterparty: The other side of the balance
        current_balance: Balance between the two, freshly recomputed
        requested_amount: Amount being paid
        method: Payment channel label, e.g. "Venmo"
        notes: Optional free-form note, used in the description
        created_at: Timestamp for the record (defaults to now)

    Returns:
        The settlement expense, or a Rejection
    """
    if requested_amount <= 0:
        return Rejection(
            reason=RejectionReason.NON_POSITIVE_SETTLEMENT,
            message=f"Settlement amount must be greater than 0 (got {requested_amount})",
        )

    if requested_amount > current_balance.amount:
        return Rejection(
            reason=RejectionReason.EXCEEDS_BALANCE,
            message=(
                f"Settlement amount {requested_amount} exceeds the outstanding "
                f"balance of {current_balance.amount} with {counterparty}"
            ),
        )

    zero = Decimal("0")
    if current_balance.direction is BalanceDirection.YOU_OWE:
        payer = viewer
        splits = [
            ExpenseSplit(participant=viewer, amount=zero),
            ExpenseSplit(participant=counterparty, amount=requested_amount),
        ]
    else:
        payer = counterparty
        splits = [
            ExpenseSplit(participant=viewer, amount=requested_amount),
            ExpenseSplit(participant=counterparty, amount=zero),
        ]

    description = SETTLEMENT_PREFIX
    if notes and notes.strip():
        description = f"{SETTLEMENT_PREFIX}: {notes.strip()}"

    settlement = Expense(
        description=description,
        total_amount=requested_amount,
        payer=payer,
        rule=SplitRule.UNEQUAL,
        splits=splits,
        creator=viewer,
        category=settlement_category(method),
        created_at=created_at or datetime.now(),
    )

    # Splits sum to requested_amount by construction.
    rejection = validate_expense(settlement)
    if rejection:
        return rejection

    return settlement


def classify_settlement(
    current_balance: Balance, amount: Decimal
) -> SettlementOutcome:
    """Whether paying ``amount`` clears the balance or leaves a residual."""
    if current_balance.amount - amount <= TOLERANCE:
        return SettlementOutcome.FULL
    return SettlementOutcome.PARTIAL
