"""Authorization cache for chat identities.

Maps a chat id to the authorized User record. The whole user table is held
in memory and reloaded once it is older than the configured TTL. Reloading
builds a new dict and swaps it in with a single assignment, so readers see
either the old mapping or the new one, never a half-built one.

A failed reload is logged and the previous mapping keeps being served. Before
the first successful load the mapping is empty and every chat id is
unauthorized.
"""

import time
from typing import Callable, Dict, Optional
from models.user import User
from logger import get_logger

logger = get_logger()


class AuthorizationCache:
    """TTL cache of authorized users keyed by chat id.

    Args:
        users: UserService (or anything with find_all()) to load users from.
        ttl_seconds: Maximum age of the mapping before it is reloaded.
        clock: Monotonic time source in seconds.
    """

    def __init__(
        self,
        users,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.users = users
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._by_chat_id: Dict[str, User] = {}
        self._refreshed_at: Optional[float] = None

    @property
    def is_populated(self) -> bool:
        """Whether at least one reload has succeeded."""
        return self._refreshed_at is not None

    def _is_stale(self) -> bool:
        if self._refreshed_at is None:
            return True
        return self.clock() - self._refreshed_at > self.ttl_seconds

    def _refresh(self) -> bool:
        try:
            users = self.users.find_all()
        except Exception as e:
            # Keep serving the last good mapping; the next call retries
            logger.error(
                f"Error refreshing authorized users, serving "
                f"{len(self._by_chat_id)} cached: {e}"
            )
            return False

        self._by_chat_id = {user.chat_id: user for user in users}
        self._refreshed_at = self.clock()
        logger.info(f"Refreshed {len(users)} authorized users")
        return True

    def authorize(self, chat_id) -> Optional[User]:
        """Look up the user for a chat identity.

        Args:
            chat_id: Chat identity of the sender. Non-string ids are compared
                as strings.

        Returns:
            The User, or None if the chat id is not authorized.
        """
        if self._is_stale():
            self._refresh()

        user = self._by_chat_id.get(str(chat_id))
        if user is None:
            logger.info(f"Unauthorized access attempt from chat ID: {chat_id}")
        return user

    def force_refresh(self) -> int:
        """Reload the mapping now, regardless of its age.

        Returns:
            Number of authorized users held after the call.
        """
        self._refresh()
        return len(self._by_chat_id)
