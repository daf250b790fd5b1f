"""
Shared fixtures.

CLI tests configure logging globally (handlers on the root logger bound
to the runner's streams); every test starts from a clean slate.
"""

import logging

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logging.root.handlers.clear()
    structlog.reset_defaults()
