import logging
from datetime import date

from logger import get_logger, setup_logging


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_writes_dated_log_file(self, test_config):
        logger = setup_logging(test_config)
        try:
            get_logger().info("Transaction 1 added by Alice (1001)")
            for handler in logger.handlers:
                handler.flush()

            log_file = test_config.log_dir / f"famledger-{date.today().isoformat()}.log"
            assert log_file.exists()
            assert "Transaction 1 added by Alice" in log_file.read_text(encoding="utf-8")
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

    def test_repeated_setup_does_not_duplicate_handlers(self, test_config):
        setup_logging(test_config)
        logger = setup_logging(test_config)
        try:
            assert len(logger.handlers) == 2
            assert logger.level == logging.DEBUG
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
