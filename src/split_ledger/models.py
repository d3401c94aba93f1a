"""Pydantic domain models for SplitLedger."""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CATEGORY = "Uncategorized"
SETTLEMENT_PREFIX = "Settlement"

# ============================================================================
# Enumerations
# ============================================================================


class SplitRule(StrEnum):
    """How per-participant amounts are derived from an expense total."""

    EQUAL = "equal"
    PERCENTAGE = "percentage"
    UNEQUAL = "unequal"


class BalanceDirection(StrEnum):
    """Which way money flows between the viewer and a counterparty."""

    OWES_YOU = "owes_you"
    YOU_OWE = "you_owe"


class RejectionReason(StrEnum):
    """Why a proposed expense or settlement was refused."""

    EMPTY_DESCRIPTION = "empty_description"
    NON_POSITIVE_AMOUNT = "non_positive_amount"
    UNKNOWN_SPLIT_RULE = "unknown_split_rule"
    NO_SPLITS = "no_splits"
    DUPLICATE_PARTICIPANT = "duplicate_participant"
    SPLIT_SUM_MISMATCH = "split_sum_mismatch"
    PERCENTAGE_SUM_MISMATCH = "percentage_sum_mismatch"
    NON_POSITIVE_SETTLEMENT = "non_positive_settlement"
    EXCEEDS_BALANCE = "exceeds_balance"


class SettlementOutcome(StrEnum):
    """Whether a settlement pays off the whole balance or only part of it."""

    FULL = "full"
    PARTIAL = "partial"


# ============================================================================
# Input Models
# ============================================================================


class ShareInput(BaseModel):
    """One participant as supplied by the caller, before splits are computed."""

    participant: str
    raw_amount: Decimal | None = Field(default=None, ge=0)  # unequal rule
    raw_percentage: Decimal | None = Field(default=None, ge=0, le=100)


class ExpenseRequest(BaseModel):
    """A proposed expense as it arrives from the transport layer."""

    description: str
    total_amount: Decimal
    payer: str
    rule: str  # validated against SplitRule, not coerced
    participants: list[ShareInput]
    category: str | None = None


# ============================================================================
# Ledger Models
# ============================================================================


class ExpenseSplit(BaseModel):
    """A participant's share of an expense."""

    model_config = ConfigDict(frozen=True)

    participant: str
    amount: Decimal = Field(ge=0)
    percentage: Decimal | None = None  # only meaningful for percentage splits


class ExpenseDraft(BaseModel):
    """A computed expense that has not yet passed authoritative validation."""

    description: str
    total_amount: Decimal
    payer: str
    rule: str
    splits: list[ExpenseSplit]
    category: str = DEFAULT_CATEGORY


class Expense(BaseModel):
    """A validated, persisted expense.

    Records are immutable: an edit replaces the whole record under the same id.
    Settlements are expenses whose category starts with ``"Settlement"``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    description: str
    total_amount: Decimal = Field(gt=0)
    payer: str
    rule: SplitRule
    splits: list[ExpenseSplit] = Field(min_length=1)
    creator: str
    category: str = DEFAULT_CATEGORY
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_settlement(self) -> bool:
        """True if this record is a settlement rather than a shared cost."""
        return self.category.startswith(SETTLEMENT_PREFIX)

    @property
    def participants(self) -> list[str]:
        """Participant ids in split order."""
        return [split.participant for split in self.splits]

    def involves(self, participant: str) -> bool:
        """True if the participant paid for or shares in this expense."""
        return self.payer == participant or participant in self.participants

    def get_share(self, participant: str) -> Decimal:
        """Amount owed by a participant, zero if they have no split."""
        for split in self.splits:
            if split.participant == participant:
                return split.amount
        return Decimal("0")


class Balance(BaseModel):
    """Net position between the viewer and one counterparty.

    Derived on demand from the expense history and never stored.
    """

    counterparty: str
    amount: Decimal  # always non-negative; direction carries the sign
    direction: BalanceDirection

    @property
    def signed_amount(self) -> Decimal:
        """Positive when the counterparty owes the viewer."""
        if self.direction is BalanceDirection.OWES_YOU:
            return self.amount
        return -self.amount


# ============================================================================
# Results
# ============================================================================


class Rejection(BaseModel):
    """A refused operation, returned to the caller instead of raised."""

    reason: RejectionReason
    message: str

    def __str__(self) -> str:
        return f"{self.reason.value}: {self.message}"


class SettlementReceipt(BaseModel):
    """What the service reports back after recording a settlement."""

    settlement: Expense
    previous_balance: Balance
    outcome: SettlementOutcome
