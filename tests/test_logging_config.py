from __future__ import annotations

import logging

from ordersheet.logging_config import RedactingFormatter, get_logger


def test_propagation_restored_for_configured_logger() -> None:
    logger = get_logger("ordersheet.tests.propagation")
    handlers = list(logger.handlers)
    logger.propagate = False

    again = get_logger("ordersheet.tests.propagation")
    assert again is logger
    assert again.propagate is True
    assert again.handlers == handlers


def test_redacting_formatter_masks_token(monkeypatch) -> None:
    monkeypatch.setenv("TG_TOKEN", "123456:secret-token")
    record = logging.LogRecord(
        "ordersheet", logging.ERROR, __file__, 1,
        "POST https://api.telegram.org/bot%s/sendMessage failed", ("123456:secret-token",), None,
    )
    text = RedactingFormatter("%(message)s").format(record)
    assert "secret-token" not in text
    assert "/bot***/sendMessage" in text
