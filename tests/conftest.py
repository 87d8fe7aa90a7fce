# tests/conftest.py

"""Shared pytest fixtures for all basket_compare tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest

from basket_compare.config.settings import Settings


@pytest.fixture(autouse=True)
def no_backoff() -> Generator[None, None, None]:
    """Zero the retry backoff so retry loops run instantly."""
    with patch.object(Settings, "RETRY_BASE_DELAY", 0.0):
        yield
