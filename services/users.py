"""User service for the authorized_users table."""

from typing import List
from models.user import User

_USER_SELECT_FIELDS = "id, chat_id, name, family_id"


class UserService:
    """Service for provisioning and looking up authorized users."""

    def __init__(self, db_manager):
        """Initialize the user service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self) -> List[User]:
        """Get all authorized users.

        Returns:
            List of User objects, ordered by id.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_USER_SELECT_FIELDS} FROM authorized_users ORDER BY id"
            )
            return [self._row_to_user(row) for row in cursor.fetchall()]

    def create(self, chat_id, name: str, family_id: str) -> User:
        """Authorize a new user.

        Args:
            chat_id: Chat identity the user writes from (should be unique).
            name: Display name.
            family_id: Family the user belongs to.

        Returns:
            The created User object with id populated.

        Raises:
            ValueError: If name or family_id is blank.
            sqlite3.IntegrityError: If the chat id is already authorized.
        """
        if not name.strip() or not family_id.strip():
            raise ValueError("name and family_id are required")

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO authorized_users (chat_id, name, family_id) VALUES (?, ?, ?)",
                (str(chat_id), name.strip(), family_id.strip()),
            )
            conn.commit()

            return User(
                id=cursor.lastrowid,
                chat_id=str(chat_id),
                name=name.strip(),
                family_id=family_id.strip(),
            )

    def _row_to_user(self, row: tuple) -> User:
        return User(id=row[0], chat_id=row[1], name=row[2], family_id=row[3])
