"""In-memory task store, partitioned by user and day."""

import logging
import uuid
from collections import defaultdict
from datetime import date
from typing import (
    DefaultDict,
    Dict,
    List,
)

from modo.tasks.models import TaskItem

logger = logging.getLogger(__name__)

SEARCH_WINDOW_DAYS = 30


class TaskStore:
    """Keeps every user's tasks in memory, bucketed by date."""

    def __init__(self) -> None:
        self._tasks: DefaultDict[str, Dict[uuid.UUID, TaskItem]] = defaultdict(dict)

    def add(self, user_id: str, task: TaskItem) -> TaskItem:
        self._tasks[user_id][task.id] = task
        logger.debug("Created task '%s' for %s on %s", task.title, user_id, task.date)
        return task

    def get_tasks(self, user_id: str, day: date) -> List[TaskItem]:
        """Tasks of *user_id* scheduled on *day*, in insertion order."""
        return [task for task in self._tasks.get(user_id, {}).values() if task.date == day]

    def find(
        self, user_id: str, task_id: uuid.UUID, around: date, window: int = SEARCH_WINDOW_DAYS
    ) -> TaskItem | None:
        """Find *task_id* among tasks dated within *window* days either side of *around*."""
        task = self._tasks.get(user_id, {}).get(task_id)
        if task is None or abs((task.date - around).days) > window:
            return None
        return task

    def replace(self, user_id: str, task: TaskItem) -> TaskItem:
        if task.id not in self._tasks.get(user_id, {}):
            raise KeyError(task.id)
        self._tasks[user_id][task.id] = task
        return task

    def remove(self, user_id: str, task_id: uuid.UUID) -> bool:
        return self._tasks.get(user_id, {}).pop(task_id, None) is not None
