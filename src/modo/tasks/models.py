"""Task data transfer objects exchanged with the AI task tools."""

import uuid
from datetime import (
    date as Date,
    datetime,
)
from enum import Enum
from typing import (
    Any,
    List,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
    field_validator,
)


class TaskType(str, Enum):
    WORKOUT = "workout"
    NUTRITION = "nutrition"
    CUSTOM = "custom"


class Category(str, Enum):
    FITNESS = "fitness"
    DIET = "diet"
    OTHERS = "others"


class Macros(BaseModel):
    protein: float
    carbs: float
    fat: float


class TaskExercise(BaseModel):
    name: str
    sets: int
    reps: str
    rest_sec: int
    duration_min: int
    calories: int
    target_RPE: Optional[int] = None
    alternatives: Optional[List[str]] = None

    @field_validator("reps", mode="before")
    @classmethod
    def _reps_as_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class TaskFood(BaseModel):
    name: str
    portion: str
    calories: int
    macros: Optional[Macros] = None


class TaskMeal(BaseModel):
    name: str
    time: str
    foods: List[TaskFood]
    total_calories: int
    macros: Optional[Macros] = None


class TaskItem(BaseModel):
    """A scheduled task as the AI sees it."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    type: TaskType
    title: str
    subtitle: Optional[str] = None
    date: Date
    time: str  # "08:00 AM"
    category: Category
    exercises: Optional[List[TaskExercise]] = None
    total_duration: Optional[int] = None  # minutes
    meals: Optional[List[TaskMeal]] = None
    total_calories: Optional[int] = None
    is_ai_generated: bool = True
    is_done: bool = False
    source: Optional[str] = "coach"  # "coach", "main_page", "add_task"
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    def sort_key(self) -> tuple[Date, int]:
        return self.date, time_to_minutes(self.time)


def time_to_minutes(value: str) -> int:
    """Minutes after midnight for ``"08:30 AM"`` or ``"20:30"``; unparseable times sort first."""
    for fmt in ("%I:%M %p", "%H:%M"):
        try:
            parsed = datetime.strptime(value.strip(), fmt)
        except ValueError:
            continue
        return parsed.hour * 60 + parsed.minute
    return 0
