"""Helper utilities for tests."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
import sqlite3

from db.migrator import apply_pending_migrations
from llm.providers.base import LLMProvider
from models.transaction import Transaction


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    apply_pending_migrations(conn, migrations_dir)


class FakeLLMProvider(LLMProvider):
    """LLM provider that returns a canned reply and records every call.

    Args:
        reply: Text returned by complete(). A dict is serialized to JSON.
        error: If set, complete() raises it instead of replying.
    """

    def __init__(self, reply=None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[dict] = []

    def complete(self, system_prompt, user_prompt, **kwargs) -> str:
        self.calls.append(
            {"system_prompt": system_prompt, "user_prompt": user_prompt, **kwargs}
        )
        if self.error is not None:
            raise self.error
        if isinstance(self.reply, dict):
            return json.dumps(self.reply)
        return self.reply


def make_transaction(
    amount: str,
    category: str = "Food",
    description: str = "Coffee",
    type: str = "expense",
    created_at: Optional[datetime] = None,
) -> Transaction:
    """Build an unsaved transaction the way the parser would."""
    return Transaction(
        type=type,
        amount=Decimal(amount),
        category=category,
        description=description,
        created_at=created_at or datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc),
    )
