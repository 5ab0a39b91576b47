"""Shared fixtures."""

import pytest

from modo.agent.notification_bus import NotificationBus
from modo.tools import FunctionRegistry


@pytest.fixture
def bus() -> NotificationBus:
    return NotificationBus()


@pytest.fixture
def registry() -> FunctionRegistry:
    return FunctionRegistry()
