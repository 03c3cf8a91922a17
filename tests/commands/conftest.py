import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def restore_logging():
    """Commands reconfigure the root logger and structlog; undo that after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
