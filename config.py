"""Configuration management for famledger.

Reads configuration from ~/.config/famledger.toml and creates default config if needed.
The FAMLEDGER_CONFIG environment variable points at an alternative file.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, List
import tomllib
import tomli_w


DEFAULT_CATEGORIES: Dict[str, List[str]] = {
    "expense": [
        "Grocery",
        "Transport",
        "Entertainment",
        "Food",
        "Shopping",
        "Bills",
        "Health",
        "Other",
    ],
    "income": [
        "Salary",
        "Freelance",
        "Business",
        "Refund",
        "Bonus",
        "Cashback",
        "Interest",
        "Other Income",
    ],
    "savings": ["Savings", "Investment", "Emergency Fund", "Pension"],
}

DEFAULT_CATEGORY_FALLBACKS: Dict[str, str] = {
    "expense": "Other",
    "income": "Other Income",
    "savings": "Savings",
}


def _default_categories() -> Dict[str, List[str]]:
    return {name: list(values) for name, values in DEFAULT_CATEGORIES.items()}


def _default_fallbacks() -> Dict[str, str]:
    return dict(DEFAULT_CATEGORY_FALLBACKS)


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    db_timeout_seconds: float = 10.0
    llm_provider: str = "ollama"
    llm_base_url: str = ""
    llm_api_key: str = ""
    llm_model: str = "llama3.2"
    llm_timeout_seconds: float = 30.0
    amount_tolerance: Decimal = Decimal("0.01")
    auth_cache_ttl_seconds: float = 300.0
    admin_chat_ids: List[str] = field(default_factory=list)
    categories: Dict[str, List[str]] = field(default_factory=_default_categories)
    category_defaults: Dict[str, str] = field(default_factory=_default_fallbacks)

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "famledger"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="famledger.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    override = os.environ.get("FAMLEDGER_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "famledger.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return config

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    return config_from_dict(data)


def config_from_dict(data: dict) -> Config:
    """Build a Config from parsed TOML data, using defaults for missing values.

    Args:
        data: Dictionary as produced by tomllib.

    Returns:
        Config object.
    """
    defaults = Config.default()
    base_dir = Path(data.get("base_dir", defaults.base_dir)).expanduser()

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db")).expanduser()
    db_filename = db_config.get("filename", defaults.db_filename)
    db_timeout = float(db_config.get("timeout_seconds", defaults.db_timeout_seconds))

    log_config = data.get("logging", {})
    log_level = log_config.get("level", defaults.log_level)
    log_dir = Path(log_config.get("log_dir", base_dir / "logs")).expanduser()

    llm_config = data.get("llm", {})
    auth_config = data.get("auth", {})

    # Taxonomy: each [categories.<type>] table may override names and default
    categories = _default_categories()
    category_defaults = _default_fallbacks()
    for transaction_type, section in data.get("categories", {}).items():
        if "names" in section:
            categories[transaction_type] = [str(n) for n in section["names"]]
        if "default" in section:
            category_defaults[transaction_type] = str(section["default"])

    return Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        db_timeout_seconds=db_timeout,
        llm_provider=llm_config.get("provider", defaults.llm_provider),
        llm_base_url=llm_config.get("base_url", defaults.llm_base_url),
        llm_api_key=llm_config.get("api_key", defaults.llm_api_key),
        llm_model=llm_config.get("model", defaults.llm_model),
        llm_timeout_seconds=float(
            llm_config.get("timeout_seconds", defaults.llm_timeout_seconds)
        ),
        amount_tolerance=Decimal(
            str(llm_config.get("amount_tolerance", defaults.amount_tolerance))
        ),
        auth_cache_ttl_seconds=float(
            auth_config.get("cache_ttl_seconds", defaults.auth_cache_ttl_seconds)
        ),
        admin_chat_ids=[str(c) for c in auth_config.get("admin_chat_ids", [])],
        categories=categories,
        category_defaults=category_defaults,
    )


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
            "timeout_seconds": config.db_timeout_seconds,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "llm": {
            "provider": config.llm_provider,
            "base_url": config.llm_base_url,
            "api_key": config.llm_api_key,
            "model": config.llm_model,
            "timeout_seconds": config.llm_timeout_seconds,
            # Kept as a string so the TOML round trip stays exact
            "amount_tolerance": str(config.amount_tolerance),
        },
        "auth": {
            "cache_ttl_seconds": config.auth_cache_ttl_seconds,
            "admin_chat_ids": list(config.admin_chat_ids),
        },
        "categories": {
            transaction_type: {
                "names": list(names),
                "default": config.category_defaults[transaction_type],
            }
            for transaction_type, names in config.categories.items()
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
