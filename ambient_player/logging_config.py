"""Logging configuration for the app."""

from __future__ import annotations

import logging

from .config import AppConfig

LOGGER_NAME = "ambient_player"


def _route_to_file_only(name: str, file_handler: logging.Handler) -> None:
    target = logging.getLogger(name)
    target.setLevel(logging.DEBUG)
    target.propagate = False
    for handler in list(target.handlers):
        target.removeHandler(handler)
    target.addHandler(file_handler)


def setup_logging(config: AppConfig) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(config.log_level)
    console_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))

    file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
    file_handler.setLevel(config.file_log_level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)s | %(name)s | %(module)s:%(lineno)d | "
            "%(funcName)s | %(message)s"
        )
    )

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)

    logging.captureWarnings(True)
    _route_to_file_only("py.warnings", file_handler)
    # asyncio reports slow callbacks and unretrieved task errors here.
    _route_to_file_only("asyncio", file_handler)
    return logger
