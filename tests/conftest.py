"""Pytest configuration for feldspar tests."""

from unittest.mock import Mock

import pytest


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset global settings after each test to ensure test isolation."""
    yield
    from feldspar.config import reload_settings

    reload_settings()


@pytest.fixture
def runtime():
    """A runtime with default model target, closed after the test."""
    from feldspar.context import FeldsparRuntime

    rt = FeldsparRuntime()
    yield rt
    rt.close()


def make_response(content: str | None) -> Mock:
    """Build a ChatCompletion-shaped mock whose first choice carries ``content``."""
    response = Mock()
    response.choices = [Mock(message=Mock(content=content, tool_calls=None))]
    response.usage = None
    return response
