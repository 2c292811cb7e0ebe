"""Transaction service for database operations.

Every public method takes the requester's chat id and authorizes it before
touching the database. The family filter is always taken from the
requester's own user record, never from the caller.
"""

import calendar
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from categorization import CategoryRegistry
from errors import StoreError, Unauthorized
from logger import get_logger
from models.transaction import (
    SCOPE_FAMILY,
    SCOPE_SELF,
    SCOPES,
    TRANSACTION_TYPES,
    Transaction,
    to_money,
)
from models.user import User

logger = get_logger()

# SQL Query Constants
_TRANSACTION_SELECT_FIELDS = """t.id, t.transaction_type, t.amount, t.category, t.description,
       t.created_at, t.user_id, t.family_id, u.name"""

_TRANSACTION_FROM = """transactions t
            LEFT JOIN authorized_users u ON u.id = t.user_id"""

_TRANSACTION_INSERT_FIELDS = """transaction_type, amount, category, description,
    created_at, user_id, family_id"""

_TRANSACTION_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_TRANSACTION_INSERT_FIELDS.split(',')))})"
)


def _timestamp(value: datetime) -> str:
    """Serialize a datetime as a UTC ISO string that sorts chronologically."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """Get the first and last instant of a calendar month in UTC.

    Raises:
        ValueError: If month is not 1-12.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")

    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)
    return start, end


class TransactionService:
    """Service for storing and querying transactions on behalf of a user."""

    def __init__(self, db_manager, authorization, categories: CategoryRegistry):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
            authorization: AuthorizationCache used to resolve requesters.
            categories: Taxonomy that stored categories are held to.
        """
        self.db_manager = db_manager
        self.authorization = authorization
        self.categories = categories

    def _require_user(self, chat_id) -> User:
        user = self.authorization.authorize(chat_id)
        if user is None:
            raise Unauthorized(str(chat_id))
        return user

    def _scope_filter(self, user: User, scope: str) -> Tuple[str, object]:
        if scope == SCOPE_SELF:
            return "t.user_id = ?", user.id
        if scope == SCOPE_FAMILY:
            return "t.family_id = ?", user.family_id
        raise ValueError(f"Unknown scope: {scope!r} (expected one of {SCOPES})")

    @contextmanager
    def _store_errors(self, operation: str):
        try:
            yield
        except sqlite3.Error as e:
            logger.error(f"Database error during {operation}: {e}", exc_info=True)
            raise StoreError(f"{operation} failed") from e

    def insert(self, record: Transaction, chat_id) -> Transaction:
        """Store a parsed transaction for the requesting user.

        Args:
            record: Transaction to store. Its id, user_id and family_id are
                ignored and set from the database and the user record. A
                category outside the type's set is replaced by its default.
            chat_id: Chat identity of the requester.

        Returns:
            A new Transaction with id, user_id, family_id and created_at set.

        Raises:
            Unauthorized: If the chat id is not authorized.
            ValueError: If the amount is not positive or the type is unknown.
            StoreError: If the insert fails.
        """
        user = self._require_user(chat_id)

        if record.type not in TRANSACTION_TYPES:
            raise ValueError(f"Unknown transaction type: {record.type!r}")
        amount = to_money(record.amount)
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {record.amount}")

        category = self.categories.normalize(record.type, record.category)
        if category != record.category:
            logger.info(f"Category {record.category!r} coerced to {category!r} on insert")

        created_at = record.created_at or datetime.now(timezone.utc)

        with self._store_errors("insert"), self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                INSERT INTO transactions ({_TRANSACTION_INSERT_FIELDS})
                VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                """,
                (
                    record.type,
                    float(amount),
                    category,
                    record.description,
                    _timestamp(created_at),
                    user.id,
                    user.family_id,
                ),
            )
            conn.commit()
            transaction_id = cursor.lastrowid

        logger.info(f"Transaction {transaction_id} added by {user.name} ({user.chat_id})")

        return Transaction(
            id=transaction_id,
            type=record.type,
            amount=amount,
            category=category,
            description=record.description,
            created_at=datetime.fromisoformat(_timestamp(created_at)),
            user_id=user.id,
            family_id=user.family_id,
            user_name=user.name,
        )

    def recent(self, chat_id, scope: str = SCOPE_SELF, limit: int = 10) -> List[Transaction]:
        """Get the most recent transactions in scope.

        Args:
            chat_id: Chat identity of the requester.
            scope: "self" for the requester's own, "family" for the whole family.
            limit: Maximum number of transactions to return.

        Returns:
            List of Transaction objects ordered by created_at (newest first).

        Raises:
            Unauthorized: If the chat id is not authorized.
            ValueError: If scope is unknown or limit is below 1.
            StoreError: If the query fails.
        """
        user = self._require_user(chat_id)
        clause, param = self._scope_filter(user, scope)
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")

        with self._store_errors("recent"), self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM {_TRANSACTION_FROM}
                WHERE {clause}
                ORDER BY t.created_at DESC, t.id DESC
                LIMIT ?
                """,
                (param, limit),
            )
            rows = cursor.fetchall()

        return [self._row_to_transaction(row) for row in rows]

    def get_transactions_by_month(
        self, chat_id, scope: str, year: int, month: int
    ) -> List[Transaction]:
        """Get all transactions in scope created during a calendar month.

        The month is the closed interval from its first to its last instant (UTC).

        Returns:
            List of Transaction objects ordered by created_at (oldest first).

        Raises:
            Unauthorized: If the chat id is not authorized.
            ValueError: If scope or month is invalid.
            StoreError: If the query fails.
        """
        user = self._require_user(chat_id)
        clause, param = self._scope_filter(user, scope)
        start, end = month_bounds(year, month)

        with self._store_errors("monthly query"), self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM {_TRANSACTION_FROM}
                WHERE {clause}
                  AND t.created_at >= ? AND t.created_at <= ?
                ORDER BY t.created_at, t.id
                """,
                (param, _timestamp(start), _timestamp(end)),
            )
            rows = cursor.fetchall()

        return [self._row_to_transaction(row) for row in rows]

    def monthly_summary(
        self, chat_id, scope: str, year: int, month: int
    ) -> Dict[str, Decimal]:
        """Total the month's transactions in scope by category.

        Args:
            chat_id: Chat identity of the requester.
            scope: "self" or "family".
            year: Year (e.g., 2025).
            month: Month (1-12).

        Returns:
            Dictionary mapping category name to total amount. Empty if the
            month has no transactions.
        """
        summary: Dict[str, Decimal] = {}
        for transaction in self.get_transactions_by_month(chat_id, scope, year, month):
            summary[transaction.category] = (
                summary.get(transaction.category, Decimal("0")) + transaction.amount
            )
        return summary

    def delete_last(self, chat_id, scope: str = SCOPE_SELF) -> Optional[Transaction]:
        """Delete the most recently created transaction in scope.

        Args:
            chat_id: Chat identity of the requester.
            scope: "self" or "family".

        Returns:
            The deleted Transaction, or None if there was nothing to delete.

        Raises:
            Unauthorized: If the chat id is not authorized.
            ValueError: If scope is unknown.
            StoreError: If the delete fails.
        """
        user = self._require_user(chat_id)
        clause, param = self._scope_filter(user, scope)

        with self._store_errors("delete last"), self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS}
                FROM {_TRANSACTION_FROM}
                WHERE {clause}
                ORDER BY t.created_at DESC, t.id DESC
                LIMIT 1
                """,
                (param,),
            )
            row = cursor.fetchone()

            if row is None:
                return None

            conn.execute("DELETE FROM transactions WHERE id = ?", (row[0],))
            conn.commit()

        deleted = self._row_to_transaction(row)
        logger.info(f"Transaction {deleted.id} deleted by {user.name} ({user.chat_id})")
        return deleted

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row[0],
            type=row[1],
            amount=to_money(row[2]),
            category=row[3],
            description=row[4],
            created_at=datetime.fromisoformat(row[5]),
            user_id=row[6],
            family_id=row[7],
            user_name=row[8],
        )
