"""Shared pytest fixtures for all tests."""

import sqlite3
import pytest
from pathlib import Path

from config import Config, get_migrations_dir
from services.base import Services
from tests.helpers import FakeLLMProvider, run_migrations


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary database.

    Args:
        tmp_path: pytest tmp_path fixture for temporary directory.

    Returns:
        Config: Test configuration object.
    """
    return Config(
        base_dir=tmp_path / "famledger",
        db_data_dir=tmp_path / "famledger" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "famledger" / "logs",
        llm_provider="ollama",
        llm_model="llama3.2",
        admin_chat_ids=["1001"],
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """Create a DatabaseManager with schema already set up.

    This fixture provides a DatabaseManager that uses an in-memory database
    with all migrations already applied.

    Args:
        test_db: In-memory database connection fixture.

    Returns:
        DatabaseManager: Database manager with schema ready.
    """
    migrations_dir = get_migrations_dir()
    run_migrations(test_db, migrations_dir)

    class TestDatabaseManager:
        """Test database manager that uses in-memory connection."""

        def __init__(self, conn):
            self.conn = conn

        def connect(self):
            """Return a context manager for the test connection."""
            return _TestConnectionContext(self.conn)

        def get_db_path(self):
            """Return a fake path for the test database."""
            return Path(":memory:")

        def get_migrations_dir(self):
            """Get the migrations directory path."""
            return get_migrations_dir()

    class _TestConnectionContext:
        """Context manager for test database connections."""

        def __init__(self, conn):
            self.conn = conn

        def __enter__(self):
            return self.conn

        def __exit__(self, exc_type, exc_val, exc_tb):
            # Don't close the connection - let the fixture handle it
            pass

    return TestDatabaseManager(test_db)


@pytest.fixture
def fake_llm():
    """LLM provider returning a coffee expense unless a test changes it."""
    return FakeLLMProvider(
        reply={
            "transaction_type": "expense",
            "amount": 4.50,
            "category": "Food",
            "description": "Coffee",
        }
    )


@pytest.fixture
def services(test_config, db_manager_with_schema, fake_llm):
    """Create a Services container with test database and fake LLM.

    Args:
        test_config: Test configuration fixture.
        db_manager_with_schema: Database manager with schema set up.
        fake_llm: Fake LLM provider fixture.

    Returns:
        Services: Services container for testing.
    """
    return Services(test_config, db_manager=db_manager_with_schema, llm_provider=fake_llm)


@pytest.fixture
def family(services):
    """Provision two members of one family and one outsider.

    Returns:
        dict: Users keyed by "alice", "bob" (family "smith") and "carol" (family "jones").
    """
    users = {
        "alice": services.users.create("1001", "Alice", "smith"),
        "bob": services.users.create("1002", "Bob", "smith"),
        "carol": services.users.create("2001", "Carol", "jones"),
    }
    services.authorization.force_refresh()
    return users
