"""Logging setup shared by every order sheet module.

Each logger writes to the console and to a rotating file under ``LOG_DIR``.
Values of the environment variables listed in ``REDACTED_ENV`` are masked
in every formatted record so the bot token cannot leak through an exception
message that embeds the API URL.

Records also propagate to the root logger on every call. Code that embeds
the scraper and configures root handlers sees each record there too and
should raise the root level or filter ``ordersheet`` if it wants one copy.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv("ORDERSHEET_LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "ordersheet.log")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
REDACTED_ENV = ("TG_TOKEN", "FIREBASE_CREDENTIALS")

_FALSE_VALUES = {"0", "false", "no", "off"}


class RedactingFormatter(logging.Formatter):
    """Formatter that replaces secret values with ``***``."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in _secret_values():
            message = message.replace(secret, "***")
        return message


def _secret_values() -> list[str]:
    # Read at format time: secrets may arrive via load_dotenv() after import.
    values = {os.getenv(name, "").strip() for name in REDACTED_ENV}
    return sorted((value for value in values if len(value) >= 8), key=len, reverse=True)


def _file_logging_enabled() -> bool:
    raw = os.getenv("ORDERSHEET_LOG_FILE")
    if raw is None:
        return True
    return raw.strip().lower() not in _FALSE_VALUES


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger with console and rotating file handlers."""

    logger = logging.getLogger(name)
    logger.setLevel(DEFAULT_LEVEL)

    if not logger.handlers:
        formatter = RedactingFormatter(LOG_FORMAT)

        if _file_logging_enabled():
            os.makedirs(LOG_DIR, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_FILE,
                maxBytes=1_000_000,
                backupCount=3,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            file_handler.setLevel(DEFAULT_LEVEL)
            logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(DEFAULT_LEVEL)
        logger.addHandler(console_handler)

    logger.propagate = True
    return logger
