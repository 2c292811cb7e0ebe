"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager
from categorization import CategoryRegistry


class Services:
    """Container for all application services.

    This class provides a centralized way to access all services and makes
    it easy to inject mock services for testing. The authorization cache is
    created once here and shared by every consumer.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, config is ignored.
        llm_provider: Optional LLM provider for testing. If None, one is built
                      from config the first time the parser is used.
    """

    def __init__(self, config: Config, db_manager=None, llm_provider=None):
        """Initialize services with configuration.

        Args:
            config: Config object containing application configuration.
            db_manager: Optional database manager for dependency injection (testing).
                       If None, creates DatabaseManager from config.
            llm_provider: Optional LLM provider for dependency injection (testing).
        """
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.users import UserService
        from services.authorization import AuthorizationCache
        from services.transactions import TransactionService

        self.categories = CategoryRegistry.from_config(config)
        self.users = UserService(self.db_manager)
        self.authorization = AuthorizationCache(
            self.users, ttl_seconds=config.auth_cache_ttl_seconds
        )
        self.transactions = TransactionService(
            self.db_manager, self.authorization, self.categories
        )

        self._llm_provider = llm_provider
        self._parser = None

    @property
    def parser(self):
        """The TransactionParser, created on first use."""
        if self._parser is None:
            from llm import get_llm_provider
            from parsing import TransactionParser

            provider = self._llm_provider or get_llm_provider(self.config)
            self._parser = TransactionParser(
                provider,
                self.categories,
                amount_tolerance=self.config.amount_tolerance,
            )
        return self._parser

    def is_admin(self, chat_id) -> bool:
        """Whether a chat id may run administrative commands."""
        return str(chat_id) in self.config.admin_chat_ids
