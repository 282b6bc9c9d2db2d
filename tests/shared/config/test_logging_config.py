# -*- coding: utf-8 -*-
import logging

from app.shared.config.logging_config import setup_logging


def test_setup_logging_plain():
    setup_logging(level="DEBUG", fmt="plain")
    logging.getLogger("test_plain").debug("hello plain")
    assert any(isinstance(h, logging.StreamHandler) for h in logging.getLogger().handlers)
    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_json():
    setup_logging(level="INFO", fmt="json")
    logging.getLogger("test_json").info("hello json")
    formatters = [getattr(h, "formatter", None) for h in logging.getLogger().handlers]
    assert any(
        f is not None and f.__class__.__module__.startswith("pythonjsonlogger") for f in formatters
    ), "Se esperaba JsonFormatter activo en modo json"


def test_httpx_logger_is_quiet():
    setup_logging(level="DEBUG", fmt="plain")
    assert logging.getLogger("httpx").level == logging.WARNING


def test_redact_tokens():
    from app.shared.config.logging_config import redact_tokens

    assert redact_tokens("token APP_USR-1234567890-abc ok") == "token APP_USR-1234*** ok"
    assert redact_tokens("Authorization: Bearer abcdefghijk") == "Authorization: Bearer abcd***"
    assert redact_tokens("sin secretos") == "sin secretos"


def test_redaction_filter_rewrites_args():
    from app.shared.config.logging_config import TokenRedactionFilter

    record = logging.LogRecord("t", logging.INFO, __file__, 1, "token=%s", ("TEST-99998888",), None)
    assert TokenRedactionFilter().filter(record) is True
    assert record.getMessage() == "token=TEST-9999***"
# Fin del archivo backend/tests/shared/config/test_logging_config.py
