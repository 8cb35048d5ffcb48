# tests/test_settings.py
from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from party_pulse.core.logging import LOGGER_NAME, configure_logging
from party_pulse.core.settings import Settings


def test_defaults() -> None:
    config = Settings()

    assert config.vote_max_attempts == 5
    assert config.feed_default_page_size == 20
    assert config.feed_max_page_size == 100
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PULSE_FEED_MAX_PAGE_SIZE", "7")
    monkeypatch.setenv("PULSE_LOG_LEVEL", "debug")

    config = Settings()

    assert config.feed_max_page_size == 7
    assert config.effective_feed_page_size == 7
    assert config.log_level == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [
        {"vote_max_attempts": 0},
        {"feed_max_page_size": -1},
        {"ingest_queue_size": 0},
        {"vote_retry_backoff_seconds": -0.1},
        {"log_level": "CHATTY"},
    ],
)
def test_invalid_values_rejected(overrides: dict) -> None:
    with pytest.raises(PydanticValidationError):
        Settings(**overrides)


def test_configure_logging_adds_one_handler() -> None:
    logger = configure_logging("WARNING")
    handlers = len(logger.handlers)

    assert configure_logging("DEBUG") is logger
    assert len(logger.handlers) == handlers
    assert logger.level == logging.DEBUG
    assert logger.name == LOGGER_NAME
