"""Custom exceptions for SplitLedger."""

from .models import Rejection


class SplitLedgerError(Exception):
    """Base exception for all SplitLedger errors."""

    pass


class ConfigurationError(SplitLedgerError):
    """Raised when configuration is invalid or missing."""

    pass


class ExpenseNotFoundError(SplitLedgerError):
    """Raised when an expense id does not exist in the store."""

    def __init__(self, expense_id: str, message: str | None = None):
        self.expense_id = expense_id
        super().__init__(message or f"Expense {expense_id} not found")


class NotAuthorizedError(SplitLedgerError):
    """Raised when a participant acts on an expense they may not touch."""

    pass


class LedgerRejectionError(SplitLedgerError):
    """Base class for rejected ledger operations.

    Wraps the Rejection returned by the engine so callers can inspect the
    reason.
    """

    def __init__(self, rejection: Rejection):
        self.rejection = rejection
        super().__init__(rejection.message)

    @property
    def reason(self):
        """The RejectionReason behind this error."""
        return self.rejection.reason


class ExpenseRejectedError(LedgerRejectionError):
    """Raised when an expense fails validation."""

    pass


class SettlementRejectedError(LedgerRejectionError):
    """Raised when a settlement cannot be planned."""

    pass
