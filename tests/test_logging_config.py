import dataclasses
import logging

from ambient_player.config import load_config
from ambient_player.logging_config import LOGGER_NAME, setup_logging


def test_setup_logging_writes_console_and_file(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    config = dataclasses.replace(load_config(), log_level="WARNING", file_log_level="DEBUG")

    logger = setup_logging(config)
    try:
        assert logger.name == LOGGER_NAME
        assert logger.propagate is False
        levels = sorted(handler.level for handler in logger.handlers)
        assert levels == [logging.DEBUG, logging.WARNING]

        logger.debug("queue loaded with %s items", 3)
        for handler in logger.handlers:
            handler.flush()
        with open(config.log_file, encoding="utf-8") as handle:
            assert "queue loaded with 3 items" in handle.read()

        asyncio_logger = logging.getLogger("asyncio")
        assert asyncio_logger.propagate is False
        assert asyncio_logger.handlers == [
            handler for handler in logger.handlers if isinstance(handler, logging.FileHandler)
        ]
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logging.captureWarnings(False)


def test_setup_logging_is_idempotent(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    config = load_config()

    setup_logging(config)
    logger = setup_logging(config)
    try:
        assert len(logger.handlers) == 2
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logging.captureWarnings(False)
