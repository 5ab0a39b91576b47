"""Process-wide wiring: one registry, bus, task store and backend shared by every exchange."""

import logging
from dataclasses import dataclass
from typing import Any

from modo.agent.backends import (
    AIBackend,
    load_backend,
)
from modo.agent.coordinator import ResponseCoordinator
from modo.agent.notification_bus import NotificationBus
from modo.plans.handlers import plan_handlers
from modo.tasks.handlers import task_handlers
from modo.tasks.store import TaskStore
from modo.tools import FunctionRegistry

logger = logging.getLogger(__name__)


@dataclass
class Services:
    registry: FunctionRegistry
    bus: NotificationBus
    store: TaskStore
    backend: AIBackend

    def coordinator(self, **callbacks: Any) -> ResponseCoordinator:
        """A fresh coordinator bound to the shared registry, bus and backend."""
        return ResponseCoordinator(self.backend, self.registry, self.bus, **callbacks)


def build_services(backend: AIBackend | None = None, store: TaskStore | None = None) -> Services:
    """
    Construct the shared services and register every tool.

    *backend* defaults to the one named by ``settings.BACKEND``.
    """
    registry = FunctionRegistry()
    bus = NotificationBus()
    store = store or TaskStore()

    registry.register_many(task_handlers(store, bus))
    registry.register_many(plan_handlers())
    logger.info("Registered %d tools: %s", len(registry), sorted(registry.names()))

    return Services(
        registry=registry,
        bus=bus,
        store=store,
        backend=backend or load_backend(),
    )
