"""
Unit tests for logger configuration.
"""

import logging

from tide_indexer.shared.logging import get_logger, get_silent_logger


class TestGetLogger:
    def test_single_handler(self):
        logger = get_logger("tide_indexer.tests.single")
        again = get_logger("tide_indexer.tests.single")

        assert logger is again
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("TIDE_LOG_LEVEL", "warning")

        logger = get_logger("tide_indexer.tests.env_level")

        assert logger.level == logging.WARNING

    def test_explicit_level_wins(self):
        logger = get_logger("tide_indexer.tests.explicit", level="debug")

        assert logger.level == logging.DEBUG

    def test_format(self):
        handler = get_logger("tide_indexer.tests.format").handlers[0]

        assert handler.formatter._fmt == (
            "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
        )


def test_silent_logger():
    logger = get_silent_logger("tide_indexer.tests.silent")

    assert all(isinstance(h, logging.NullHandler) for h in logger.handlers)
