"""SplitLedger - Shared-expense tracking: split rules, validation and balance netting."""

__version__ = "0.1.0"

from .aggregator import balance_with, net_balances
from .calculator import compute_splits, round2
from .config import Settings, load_settings
from .db import Database
from .models import (
    Balance,
    BalanceDirection,
    Expense,
    ExpenseDraft,
    ExpenseRequest,
    ExpenseSplit,
    Rejection,
    RejectionReason,
    ShareInput,
    SplitRule,
)
from .planner import is_settlement, plan_settlement
from .service import LedgerService
from .validator import validate_expense, validate_request

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "Balance",
    "BalanceDirection",
    "Expense",
    "ExpenseDraft",
    "ExpenseRequest",
    "ExpenseSplit",
    "Rejection",
    "RejectionReason",
    "ShareInput",
    "SplitRule",
    "compute_splits",
    "round2",
    "validate_expense",
    "validate_request",
    "net_balances",
    "balance_with",
    "plan_settlement",
    "is_settlement",
    "LedgerService",
]
