"""
Task tools: query, create, update and delete the user's scheduled tasks.

Each handler parses its JSON arguments, does its work against the :class:`TaskStore` and posts
the outcome on the notification bus under its tool family's result type.  Nothing is returned
directly; the turn router picks the result up by request id.
"""

import json
import logging
import uuid
from datetime import (
    date as Date,
    datetime,
    timedelta,
)
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Optional,
    Type,
    TypeVar,
)

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
)

from modo.agent.notification_bus import (
    NotificationBus,
    ResultType,
)
from modo.core.context import current_user_id
from modo.core.errors import (
    ExecutionFailed,
    InvalidArguments,
)
from modo.tasks.models import (
    Category,
    TaskExercise,
    TaskItem,
    TaskMeal,
    TaskType,
)
from modo.tasks.store import TaskStore
from modo.tools import ToolHandler

logger = logging.getLogger(__name__)

ArgsT = TypeVar("ArgsT", bound=BaseModel)


# ---------------------------------------------------------------------------
# Argument models
# ---------------------------------------------------------------------------
class QueryTasksArgs(BaseModel):
    date: Optional[Date] = None
    date_range: Optional[int] = Field(None, ge=1)
    category: Optional[Category] = None
    is_done: Optional[bool] = None

    @field_validator("category", mode="before")
    @classmethod
    def _unknown_category_means_all(cls, value: Any) -> Any:
        return value if value in {c.value for c in Category} or value is None else None


class NewTaskArgs(BaseModel):
    type: TaskType
    title: str
    subtitle: Optional[str] = None
    date: Date
    time: str
    category: Category
    exercises: Optional[List[TaskExercise]] = None
    meals: Optional[List[TaskMeal]] = None

    def to_task(self) -> TaskItem:
        exercises = self.exercises or None
        meals = self.meals or None
        total_duration = sum(e.duration_min for e in exercises) if exercises else None
        if exercises:
            total_calories = sum(e.calories for e in exercises)
        elif meals:
            total_calories = meals[0].total_calories
        else:
            total_calories = 0
        return TaskItem(
            type=self.type,
            title=self.title,
            subtitle=self.subtitle,
            date=self.date,
            time=self.time,
            category=self.category,
            exercises=exercises,
            total_duration=total_duration,
            meals=meals,
            total_calories=total_calories,
        )


class CreateTasksArgs(BaseModel):
    tasks: List[Dict[str, Any]]


class TaskUpdates(BaseModel):
    title: Optional[str] = None
    time: Optional[str] = None
    is_done: Optional[bool] = None


class UpdateTaskArgs(BaseModel):
    task_id: uuid.UUID
    updates: TaskUpdates


class DeleteTaskArgs(BaseModel):
    task_id: uuid.UUID
    reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class TaskHandler(ToolHandler):
    """Shared plumbing: store, bus, argument parsing and the current user."""

    result_type: ClassVar[ResultType]

    def __init__(
        self,
        store: TaskStore,
        bus: NotificationBus,
        today: Callable[[], Date] = Date.today,
    ) -> None:
        self._store = store
        self._bus = bus
        self._today = today

    def _user_id(self) -> str:
        user_id = current_user_id.get()
        if not user_id:
            raise ExecutionFailed(self.name, "User not authenticated")
        return user_id

    def _parse(self, model: Type[ArgsT], arguments: str) -> ArgsT:
        try:
            return model.model_validate_json(arguments)
        except ValidationError as exc:
            raise InvalidArguments(f"Failed to parse {self.name} arguments: {exc}", self.name) from exc

    def _post(self, request_id: str, data: Any) -> None:
        self._bus.post_response(self.result_type, request_id, success=True, data=data)


# ---------------------------------------------------------------------------
# Concrete handlers
# ---------------------------------------------------------------------------
class QueryTasksHandler(TaskHandler):
    name = "query_tasks"
    result_type = ResultType.QUERY
    description = (
        "Look up the user's scheduled tasks. Use before updating or deleting a task to find its id."
    )
    parameters = {
        "type": "object",
        "properties": {
            "date": {"type": "string", "description": "Start date in YYYY-MM-DD format"},
            "date_range": {"type": "integer", "description": "Number of days to include"},
            "category": {"type": "string", "enum": ["fitness", "diet", "others"]},
            "is_done": {"type": "boolean", "description": "Filter by completion status"},
        },
    }

    async def execute(self, arguments: str, request_id: str) -> None:
        user_id = self._user_id()
        params = self._parse(QueryTasksArgs, arguments)
        start = params.date or self._today()
        days = params.date_range or 1
        logger.info(
            "Query params: date=%s, range=%d, category=%s",
            start,
            days,
            params.category.value if params.category else "all",
        )

        tasks: List[TaskItem] = []
        for offset in range(days):
            tasks.extend(self._store.get_tasks(user_id, start + timedelta(days=offset)))
        if params.category is not None:
            tasks = [task for task in tasks if task.category == params.category]
        if params.is_done is not None:
            tasks = [task for task in tasks if task.is_done == params.is_done]
        tasks.sort(key=TaskItem.sort_key)

        logger.info("Found %d tasks", len(tasks))
        self._post(request_id, tasks)


class CreateTasksHandler(TaskHandler):
    name = "create_tasks"
    result_type = ResultType.CREATE
    description = "Create one or more tasks (workouts, meals or custom) on the user's schedule."
    parameters = {
        "type": "object",
        "properties": {
            "tasks": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "type": {"type": "string", "enum": ["workout", "nutrition", "custom"]},
                        "title": {"type": "string"},
                        "subtitle": {"type": "string"},
                        "date": {"type": "string", "description": "YYYY-MM-DD"},
                        "time": {"type": "string", "description": "e.g. '08:00 AM'"},
                        "category": {"type": "string", "enum": ["fitness", "diet", "others"]},
                        "exercises": {"type": "array", "items": {"type": "object"}},
                        "meals": {"type": "array", "items": {"type": "object"}},
                    },
                    "required": ["type", "title", "date", "time", "category"],
                },
            }
        },
        "required": ["tasks"],
    }

    async def execute(self, arguments: str, request_id: str) -> None:
        user_id = self._user_id()
        params = self._parse(CreateTasksArgs, arguments)

        new_tasks: List[NewTaskArgs] = []
        for raw in params.tasks:
            try:
                new_tasks.append(NewTaskArgs.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping unparseable task %s: %s", json.dumps(raw)[:200], exc)
        if not new_tasks:
            raise InvalidArguments("Failed to parse create_tasks arguments", self.name)

        logger.info("Creating %d tasks", len(new_tasks))
        created = [self._store.add(user_id, new_task.to_task()) for new_task in new_tasks]
        logger.info("Created %d tasks", len(created))
        self._post(request_id, created)


class UpdateTaskHandler(TaskHandler):
    name = "update_task"
    result_type = ResultType.UPDATE
    description = "Update the title, time or completion status of an existing task."
    parameters = {
        "type": "object",
        "properties": {
            "task_id": {"type": "string", "description": "Task UUID from query_tasks"},
            "updates": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "time": {"type": "string"},
                    "is_done": {"type": "boolean"},
                },
            },
        },
        "required": ["task_id", "updates"],
    }

    async def execute(self, arguments: str, request_id: str) -> None:
        user_id = self._user_id()
        params = self._parse(UpdateTaskArgs, arguments)
        logger.info("Updating task: %s", params.task_id)

        old_task = self._store.find(user_id, params.task_id, around=self._today())
        if old_task is None:
            raise ExecutionFailed(self.name, f"Task not found: {params.task_id}")

        changes = params.updates.model_dump(exclude_none=True)
        for field_name, value in changes.items():
            logger.debug("  - %s updated: %s", field_name, value)
        updated = old_task.model_copy(update={**changes, "updated_at": datetime.now()})
        self._store.replace(user_id, updated)

        logger.info("Task updated successfully")
        self._post(request_id, updated)


class DeleteTaskHandler(TaskHandler):
    name = "delete_task"
    result_type = ResultType.DELETE
    description = "Delete an existing task."
    parameters = {
        "type": "object",
        "properties": {
            "task_id": {"type": "string", "description": "Task UUID from query_tasks"},
            "reason": {"type": "string"},
        },
        "required": ["task_id"],
    }

    async def execute(self, arguments: str, request_id: str) -> None:
        user_id = self._user_id()
        params = self._parse(DeleteTaskArgs, arguments)
        logger.info("Deleting task: %s (reason: %s)", params.task_id, params.reason or "-")

        task = self._store.find(user_id, params.task_id, around=self._today())
        if task is None or not self._store.remove(user_id, task.id):
            raise ExecutionFailed(self.name, f"Task not found or deletion failed: {params.task_id}")

        logger.info("Task deleted successfully")
        self._post(request_id, True)


def task_handlers(store: TaskStore, bus: NotificationBus) -> list[TaskHandler]:
    """One instance of every task tool, sharing *store* and *bus*."""
    return [
        QueryTasksHandler(store, bus),
        CreateTasksHandler(store, bus),
        UpdateTaskHandler(store, bus),
        DeleteTaskHandler(store, bus),
    ]
