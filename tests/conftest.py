"""Shared fixtures for the expectest test suite."""

import pytest

from expectest.config import ExpectestConfig, set_config
from expectest.specs import get_registry


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """Default configuration and an empty spec registry for every test."""
    monkeypatch.delenv("EXPECTEST_DEBUG", raising=False)
    monkeypatch.delenv("EXPECTEST_ENHANCED_DIFF", raising=False)
    set_config(ExpectestConfig())
    yield
    set_config(ExpectestConfig())
    get_registry().clear()
