"""SQL migration runner.

Migrations are the ``*.sql`` files in db/migrations/, applied in file name
order. Applied files are recorded in the schema_migrations table.
"""

import sqlite3
from pathlib import Path
from typing import List, Set
from logger import get_logger

logger = get_logger()


def init_schema_migrations_table(conn: sqlite3.Connection) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.commit()


def get_applied_migrations(conn: sqlite3.Connection) -> Set[str]:
    cursor = conn.execute("SELECT migration_file FROM schema_migrations")
    return {row[0] for row in cursor.fetchall()}


def get_available_migrations(migrations_dir: Path) -> List[str]:
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def get_pending_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> List[str]:
    """List migration files not yet applied to this database."""
    init_schema_migrations_table(conn)
    applied = get_applied_migrations(conn)
    return [m for m in get_available_migrations(migrations_dir) if m not in applied]


def apply_pending_migrations(
    conn: sqlite3.Connection, migrations_dir: Path
) -> List[str]:
    """Apply every pending migration in order.

    Args:
        conn: SQLite connection to migrate.
        migrations_dir: Directory containing the .sql files.

    Returns:
        Names of the migrations that were applied.

    Raises:
        sqlite3.Error: If a migration fails. Earlier migrations stay applied.
    """
    pending = get_pending_migrations(conn, migrations_dir)

    for migration_file in pending:
        sql = (migrations_dir / migration_file).read_text(encoding="utf-8")
        try:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_migrations (migration_file) VALUES (?)",
                (migration_file,),
            )
            conn.commit()
            logger.info(f"Applied migration: {migration_file}")
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error applying migration {migration_file}: {e}")
            raise

    return pending
