"""Tests for didforge.core.logging module."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from didforge.core.logging import (
    REDACTED,
    JSONFormatter,
    StandardFormatter,
    configure_logging,
    correlation_context,
    generate_correlation_id,
    get_correlation_id,
    redact,
)


def _record(msg: str = "hello", level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("didforge.test", level, __file__, 42, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


# ============================================================================
# Correlation ID Tests
# ============================================================================


class TestCorrelationId:
    def test_default_none(self):
        assert get_correlation_id() is None

    def test_generate_unique(self):
        id1 = generate_correlation_id()
        id2 = generate_correlation_id()
        assert id1 != id2
        assert len(id1) == 36

    def test_context_generates_id(self):
        with correlation_context() as cid:
            assert get_correlation_id() == cid
        assert get_correlation_id() is None

    def test_context_uses_given_id(self):
        with correlation_context("fixed") as cid:
            assert cid == "fixed"
            assert get_correlation_id() == "fixed"

    def test_context_restores_outer(self):
        with correlation_context("outer"):
            with correlation_context("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"


# ============================================================================
# Redaction
# ============================================================================


class TestRedact:
    def test_sensitive_keys_redacted(self):
        data = {"mnemonic": "abandon ...", "private_key": "00ff", "did": "did:example:z1"}
        assert redact(data) == {"mnemonic": REDACTED, "private_key": REDACTED, "did": "did:example:z1"}

    def test_key_match_is_substring_and_case_insensitive(self):
        assert redact({"Registry_Token": "t", "SeedHex": "aa"}) == {"Registry_Token": REDACTED, "SeedHex": REDACTED}

    def test_nested(self):
        data = {"request": {"headers": {"Authorization": "Bearer x"}}, "items": [{"secret": 1}, 2]}
        assert redact(data) == {"request": {"headers": {"Authorization": REDACTED}}, "items": [{"secret": REDACTED}, 2]}

    def test_input_not_mutated(self):
        data = {"seed": "aa"}
        redact(data)
        assert data == {"seed": "aa"}

    def test_scalars_pass_through(self):
        assert redact("plain") == "plain"
        assert redact(3) == 3


# ============================================================================
# Formatters
# ============================================================================


class TestJSONFormatter:
    def test_basic_fields(self):
        out = json.loads(JSONFormatter().format(_record()))
        assert out["level"] == "INFO"
        assert out["logger"] == "didforge.test"
        assert out["message"] == "hello"
        assert "timestamp" in out
        assert "correlation_id" not in out
        assert "source" not in out

    def test_includes_correlation_id(self):
        with correlation_context("cid-json"):
            out = json.loads(JSONFormatter().format(_record()))
        assert out["correlation_id"] == "cid-json"

    def test_source_for_warnings(self):
        out = json.loads(JSONFormatter().format(_record(level=logging.WARNING)))
        assert out["source"]["line"] == 42

    def test_extra_data_redacted(self):
        record = _record(extra_data={"mnemonic": "words", "attempt": 2})
        out = json.loads(JSONFormatter().format(record))
        assert out["extra"] == {"mnemonic": REDACTED, "attempt": 2}

    def test_exception_included(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        out = json.loads(JSONFormatter().format(record))
        assert "ValueError: bad" in out["exception"]


class TestStandardFormatter:
    def test_plain_format(self):
        text = StandardFormatter(use_colors=False).format(_record())
        assert "didforge.test" in text
        assert "INFO" in text
        assert text.endswith("hello")

    def test_correlation_prefix(self):
        with correlation_context("abcdef123456"):
            text = StandardFormatter(use_colors=False).format(_record())
        assert "[abcdef12] hello" in text

    def test_original_record_untouched(self):
        record = _record()
        with correlation_context("abcdef123456"):
            StandardFormatter(use_colors=False).format(record)
        assert record.msg == "hello"


# ============================================================================
# configure_logging
# ============================================================================


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    def test_explicit_level_and_json(self, clean_env, restore_root_logger):
        configure_logging(level="DEBUG", json_format=True)
        root = restore_root_logger
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_text_format_from_env(self, clean_env, restore_root_logger, monkeypatch):
        monkeypatch.setenv("DIDFORGE_LOG_FORMAT", "text")
        monkeypatch.setenv("DIDFORGE_LOG_LEVEL", "WARNING")
        configure_logging()
        root = restore_root_logger
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, StandardFormatter)

    def test_unknown_level_falls_back_to_info(self, clean_env, restore_root_logger):
        configure_logging(level="chatty", json_format=True)
        assert restore_root_logger.level == logging.INFO

    def test_log_file_uses_json(self, clean_env, restore_root_logger, tmp_path):
        log_file = tmp_path / "didforge.log"
        configure_logging(level="INFO", json_format=False, log_file=str(log_file))
        root = restore_root_logger
        assert len(root.handlers) == 2
        file_handler = root.handlers[1]
        assert isinstance(file_handler.formatter, JSONFormatter)
        file_handler.close()

    def test_quiets_http_libraries(self, clean_env, restore_root_logger):
        configure_logging(level="DEBUG", json_format=True)
        assert logging.getLogger("httpx").level == logging.WARNING
