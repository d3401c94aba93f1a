"""Service layer that composes the ledger engine with the expense store.

The engine functions are pure and report problems as Rejection values. This
module is the authoritative gate in front of persistence: it re-runs
validation immediately before every write and turns rejections into
exceptions for its callers.
"""

import logging
from datetime import datetime
from decimal import Decimal

from .aggregator import net_balances
from .calculator import compute_splits
from .config import Settings
from .db import Database
from .exceptions import (
    ExpenseNotFoundError,
    ExpenseRejectedError,
    NotAuthorizedError,
    SettlementRejectedError,
)
from .models import (
    Balance,
    BalanceDirection,
    Expense,
    ExpenseDraft,
    ExpenseRequest,
    Rejection,
    SettlementReceipt,
)
from .planner import classify_settlement, plan_settlement
from .validator import validate_expense, validate_request

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording expenses and settlements and reading balances."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database

    # ========================================================================
    # Expenses
    # ========================================================================

    def preview_expense(self, request: ExpenseRequest) -> ExpenseDraft:
        """
        Compute and check an expense without saving it.

        This is the early-feedback check; create_expense repeats it.

        Args:
            request: The proposed expense

        Returns:
            The computed draft

        Raises:
            ExpenseRejectedError: If the request or the computed splits are invalid
        """
        rejection = validate_request(request)
        if rejection:
            raise ExpenseRejectedError(rejection)

        splits = compute_splits(request.total_amount, request.rule, request.participants)
        draft = ExpenseDraft(
            description=request.description.strip(),
            total_amount=request.total_amount,
            payer=request.payer,
            rule=request.rule,
            splits=splits,
            category=(request.category or "").strip() or self.settings.default_category,
        )

        rejection = validate_expense(draft)
        if rejection:
            raise ExpenseRejectedError(rejection)

        return draft

    def create_expense(self, request: ExpenseRequest, creator: str) -> Expense:
        """
        Validate, compute and persist a new expense.

        Args:
            request: The proposed expense
            creator: Participant recording it

        Returns:
            The stored expense

        Raises:
            ExpenseRejectedError: If validation fails
        """
        expense = self._build_expense(request, creator)
        self.db.save_expense(expense)

        logger.info(
            f"Created expense {expense.id}: {expense.description} "
            f"(${expense.total_amount}, {expense.rule.value}, "
            f"{len(expense.splits)} splits)"
        )
        return expense

    def update_expense(
        self, expense_id: str, request: ExpenseRequest, editor: str
    ) -> Expense:
        """
        Replace an expense with a newly computed record.

        The id, creator and creation time are kept; everything else comes
        from the request. Only the creator may edit.

        Raises:
            ExpenseNotFoundError: If the expense does not exist
            NotAuthorizedError: If the editor did not create the expense
            ExpenseRejectedError: If validation fails
        """
        existing = self._require_expense(expense_id)
        if existing.creator != editor:
            raise NotAuthorizedError(
                f"Only the creator ({existing.creator}) can edit expense {expense_id}"
            )

        expense = self._build_expense(
            request,
            existing.creator,
            expense_id=existing.id,
            created_at=existing.created_at,
        )
        self.db.save_expense(expense)

        logger.info(f"Replaced expense {expense_id}: {expense.description}")
        return expense

    def delete_expense(self, expense_id: str, requester: str) -> None:
        """
        Delete an expense. Only the creator may delete.

        Raises:
            ExpenseNotFoundError: If the expense does not exist
            NotAuthorizedError: If the requester did not create the expense
        """
        existing = self._require_expense(expense_id)
        if existing.creator != requester:
            raise NotAuthorizedError(
                f"Only the creator ({existing.creator}) can delete expense {expense_id}"
            )

        self.db.delete_expense(expense_id)
        logger.info(f"Deleted expense {expense_id}")

    def get_expense(self, expense_id: str, viewer: str) -> Expense:
        """
        Fetch one expense the viewer is allowed to see.

        Raises:
            ExpenseNotFoundError: If the expense does not exist
            NotAuthorizedError: If the viewer is not creator, payer or participant
        """
        expense = self._require_expense(expense_id)
        if expense.creator != viewer and not expense.involves(viewer):
            raise NotAuthorizedError(f"Not authorized to view expense {expense_id}")
        return expense

    def list_expenses(self, viewer: str, include_created: bool = True) -> list[Expense]:
        """Expenses visible to the viewer, newest first."""
        return self.db.get_expenses_for_participant(
            viewer, include_created=include_created
        )

    # ========================================================================
    # Balances and settlements
    # ========================================================================

    def get_balances(self, viewer: str) -> list[Balance]:
        """Net balances for the viewer, one per counterparty."""
        expenses = self.db.get_expenses_for_participant(viewer)
        balances = list(net_balances(viewer, expenses).values())

        logger.info(
            f"Computed {len(balances)} balances for {viewer} "
            f"from {len(expenses)} expenses"
        )
        return balances

    def settle_up(
        self,
        viewer: str,
        counterparty: str,
        amount: Decimal,
        method: str | None = None,
        notes: str | None = None,
    ) -> SettlementReceipt:
        """
        Record a payment between the viewer and a counterparty.

        The balance is recomputed inside the same write transaction that
        stores the settlement, so a concurrent settlement cannot push the
        total paid past what is owed.

        Args:
            viewer: Participant recording the payment
            counterparty: The other side of the balance
            amount: Amount paid
            method: Payment channel (defaults to settings.default_payment_method)
            notes: Optional note for the description

        Returns:
            The stored settlement with the balance it was planned against

        Raises:
            SettlementRejectedError: If the amount is not positive or exceeds
                the current balance
        """
        method = method or self.settings.default_payment_method

        with self.db.transaction():
            expenses = self.db.get_expenses_for_participant(viewer)
            current = net_balances(viewer, expenses).get(counterparty)
            if current is None:
                # Settled pair: nothing can be paid against it.
                current = Balance(
                    counterparty=counterparty,
                    amount=Decimal("0"),
                    direction=BalanceDirection.OWES_YOU,
                )

            result = plan_settlement(
                viewer=viewer,
                counterparty=counterparty,
                current_balance=current,
                requested_amount=amount,
                method=method,
                notes=notes,
            )
            if isinstance(result, Rejection):
                logger.info(f"Settlement rejected for {viewer}: {result}")
                raise SettlementRejectedError(result)

            self.db.save_expense(result)

        outcome = classify_settlement(current, amount)
        logger.info(
            f"Recorded {outcome.value} settlement {result.id} of ${amount} "
            f"between {viewer} and {counterparty} via {method}"
        )
        return SettlementReceipt(
            settlement=result, previous_balance=current, outcome=outcome
        )

    # ========================================================================
    # Helpers
    # ========================================================================

    def _require_expense(self, expense_id: str) -> Expense:
        expense = self.db.get_expense(expense_id)
        if expense is None:
            raise ExpenseNotFoundError(expense_id)
        return expense

    def _build_expense(
        self,
        request: ExpenseRequest,
        creator: str,
        expense_id: str | None = None,
        created_at: datetime | None = None,
    ) -> Expense:
        """Run the authoritative checks and assemble the record to store."""
        draft = self.preview_expense(request)

        fields = draft.model_dump()
        fields["creator"] = creator
        if expense_id is not None:
            fields["id"] = expense_id
        if created_at is not None:
            fields["created_at"] = created_at

        expense = Expense(**fields)

        # The stored shape must satisfy the same invariants as the draft.
        rejection = validate_expense(expense)
        if rejection:
            raise ExpenseRejectedError(rejection)

        return expense
