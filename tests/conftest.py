"""Shared fixtures for blobsas tests."""

import base64
import logging

import pytest


@pytest.fixture
def account_key_bytes():
    """Raw test account key."""
    return b"test-account-key-12345678901234567890"


@pytest.fixture
def account_key(account_key_bytes):
    """Base64-encoded test account key."""
    return base64.b64encode(account_key_bytes).decode()


def _blobsas_loggers():
    return {
        name: logger
        for name, logger in logging.Logger.manager.loggerDict.items()
        if name.startswith("blobsas") and isinstance(logger, logging.Logger)
    }


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo what setup_logging changed during a test: root handlers and all logger levels."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    levels = {name: logger.level for name, logger in _blobsas_loggers().items()}
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    for name, logger in _blobsas_loggers().items():
        logger.setLevel(levels.get(name, logging.NOTSET))
