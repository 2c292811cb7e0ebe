"""Logging configuration for famledger.

Sets up logging to both file (with date-based naming) and console.
Every module logs through the single "famledger" logger.
"""

import logging
from datetime import date
from config import Config

LOGGER_NAME = "famledger"

# The OpenAI client logs every HTTP request at INFO through these
_NOISY_LIBRARIES = ("httpx", "httpcore", "openai")


def setup_logging(config: Config) -> logging.Logger:
    """Set up application logging with file and console handlers.

    Args:
        config: Application configuration containing log settings.

    Returns:
        Configured logger instance.
    """
    config.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.log_level)

    # Clear any existing handlers (in case this is called multiple times)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(module)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter("%(levelname)s - %(message)s")

    log_file_path = config.log_dir / f"{LOGGER_NAME}-{date.today().isoformat()}.log"
    file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
    file_handler.setLevel(config.log_level)
    file_handler.setFormatter(detailed_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(config.log_level)
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def get_logger() -> logging.Logger:
    """Get the application logger.

    Returns:
        The famledger logger instance.
    """
    return logging.getLogger(LOGGER_NAME)
