"""SQLite database operations for SplitLedger."""

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .models import Expense, ExpenseSplit

logger = logging.getLogger(__name__)

_EXPENSE_COLUMNS = """
    id, description, total_amount, payer, rule, splits,
    creator, category, created_at
"""


class Database:
    """SQLite database manager."""

    def __init__(self, db_path: Path):
        """Initialize database connection."""
        self.db_path = db_path
        self.conn = sqlite3.connect(str(db_path))
        self.conn.row_factory = sqlite3.Row
        self._in_transaction = False
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        cursor = self.conn.cursor()

        # Expenses table (settlements included; splits stored as JSON)
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS expenses (
                id TEXT PRIMARY KEY,
                description TEXT NOT NULL,
                total_amount TEXT NOT NULL,
                payer TEXT NOT NULL,
                rule TEXT NOT NULL,
                splits TEXT NOT NULL,
                creator TEXT NOT NULL,
                category TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_expenses_payer ON expenses (payer)"
        )

        self.conn.commit()

    def close(self):
        """Close database connection."""
        self.conn.close()

    def _commit(self):
        """Commit unless an explicit transaction is open."""
        if not self._in_transaction:
            self.conn.commit()

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Hold the write lock for a read-then-write sequence.

        BEGIN IMMEDIATE blocks other writers, so a balance read inside the
        block cannot be changed by a concurrent writer before the block's own
        write lands.
        """
        self.conn.execute("BEGIN IMMEDIATE")
        self._in_transaction = True
        try:
            yield self
        except Exception:
            self.conn.rollback()
            raise
        else:
            self.conn.commit()
        finally:
            self._in_transaction = False

    # ========================================================================
    # Expense operations
    # ========================================================================

    def save_expense(self, expense: Expense) -> str:
        """Insert an expense, or replace the record with the same id."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"""
            INSERT OR REPLACE INTO expenses ({_EXPENSE_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expense.id,
                expense.description,
                str(expense.total_amount),
                expense.payer,
                expense.rule.value,
                json.dumps([split.model_dump(mode="json") for split in expense.splits]),
                expense.creator,
                expense.category,
                expense.created_at.isoformat(),
            ),
        )
        self._commit()
        logger.debug(f"Saved expense {expense.id} ({expense.description})")
        return expense.id

    def get_expense(self, expense_id: str) -> Expense | None:
        """Get an expense by id."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT {_EXPENSE_COLUMNS} FROM expenses WHERE id = ?",
            (expense_id,),
        )
        row = cursor.fetchone()
        if not row:
            return None
        return _row_to_expense(row)

    def delete_expense(self, expense_id: str) -> bool:
        """Delete an expense. Returns False if it did not exist."""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        self._commit()
        return cursor.rowcount > 0

    def get_expenses_for_participant(
        self, participant: str, include_created: bool = False
    ) -> list[Expense]:
        """
        Get every expense a participant paid for or has a split in.

        Args:
            participant: Participant id
            include_created: Also include expenses the participant created
                without taking part in them

        Returns:
            Expenses, newest first
        """
        query = f"""
            SELECT {_EXPENSE_COLUMNS}
            FROM expenses
            WHERE payer = :participant
               OR EXISTS (
                    SELECT 1 FROM json_each(expenses.splits)
                    WHERE json_extract(json_each.value, '$.participant') = :participant
               )
        """
        if include_created:
            query += " OR creator = :participant"
        query += " ORDER BY created_at DESC, id"

        cursor = self.conn.cursor()
        cursor.execute(query, {"participant": participant})
        return [_row_to_expense(row) for row in cursor.fetchall()]

    def get_all_expenses(self) -> list[Expense]:
        """Get all expenses, newest first."""
        cursor = self.conn.cursor()
        cursor.execute(
            f"SELECT {_EXPENSE_COLUMNS} FROM expenses ORDER BY created_at DESC, id"
        )
        return [_row_to_expense(row) for row in cursor.fetchall()]


def _row_to_expense(row: sqlite3.Row) -> Expense:
    """Build an Expense from a database row."""
    return Expense(
        id=row["id"],
        description=row["description"],
        total_amount=Decimal(row["total_amount"]),
        payer=row["payer"],
        rule=row["rule"],
        splits=[ExpenseSplit.model_validate(item) for item in json.loads(row["splits"])],
        creator=row["creator"],
        category=row["category"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
