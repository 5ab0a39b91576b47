"""
Plan data models.

Two families live here: the *wire* models mirror the JSON arguments the AI backend produces for
the plan-generation tools (snake_case, loosely typed), and the *domain* models are what the rest
of the app renders and stores.
"""

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


class PlanKind(str, Enum):
    """Schema kinds understood by the plan decoder (values double as chat message types)."""

    WORKOUT = "workout_plan"
    NUTRITION = "nutrition_plan"
    MULTI_DAY = "multi_day_plan"


# ---------------------------------------------------------------------------
# Wire models (tool arguments)
# ---------------------------------------------------------------------------
class ExerciseArgs(BaseModel):
    name: str
    sets: int
    reps: str
    rest_sec: Optional[int] = None
    duration_min: Optional[int] = None
    calories: Optional[int] = None

    @field_validator("reps", mode="before")
    @classmethod
    def _reps_as_text(cls, value: Any) -> Any:
        # "8-12" and 10 are both valid answers from the model
        return str(value) if isinstance(value, int) else value


class WorkoutPlanArgs(BaseModel):
    date: str
    goal: str
    daily_kcal_target: Optional[int] = None
    exercises: Optional[List[ExerciseArgs]] = None
    notes: Optional[str] = None


class FoodArgs(BaseModel):
    name: str
    portion: str
    calories: int
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


class MealArgs(BaseModel):
    meal_type: str
    time: Optional[str] = None
    foods: List[FoodArgs]


class DailyTotalsArgs(BaseModel):
    calories: int
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


class NutritionPlanArgs(BaseModel):
    date: str
    goal: str
    meals: List[MealArgs]
    daily_totals: Optional[DailyTotalsArgs] = None


class DayWorkoutArgs(BaseModel):
    goal: str
    exercises: List[ExerciseArgs]
    daily_kcal_target: int
    notes: Optional[str] = None


class DayMealArgs(BaseModel):
    meal_type: str
    time: str
    foods: List[FoodArgs]
    calories: int
    protein: float
    carbs: float
    fat: float


class DayNutritionArgs(BaseModel):
    goal: str
    meals: List[DayMealArgs]
    daily_totals: Optional[DailyTotalsArgs] = None


class DayArgs(BaseModel):
    date: str
    day_name: str
    workout: Optional[DayWorkoutArgs] = None
    nutrition: Optional[DayNutritionArgs] = None


class MultiDayPlanArgs(BaseModel):
    start_date: str
    end_date: str
    plan_type: str
    days: List[DayArgs]
    notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Domain models
# ---------------------------------------------------------------------------
class Exercise(BaseModel):
    name: str
    sets: int
    reps: str
    rest_sec: Optional[int] = None
    duration_min: Optional[int] = None
    calories: Optional[int] = None


class WorkoutPlan(BaseModel):
    date: str
    goal: str
    daily_kcal_target: Optional[int] = None
    exercises: List[Exercise]
    notes: Optional[str] = None


class Food(BaseModel):
    name: str
    portion: str
    calories: int


class Meal(BaseModel):
    name: str  # "Breakfast", "Lunch", "Dinner", "Snack"
    time: str  # "08:00 AM"
    foods: List[Food]
    calories: int
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0


class NutritionPlan(BaseModel):
    date: str
    goal: str
    daily_kcal_target: int
    meals: List[Meal]
    notes: Optional[str] = None


class DayPlan(BaseModel):
    date: str
    day_name: str  # "Day 1", "Monday"
    workout: Optional[WorkoutPlan] = None
    nutrition: Optional[NutritionPlan] = None


class MultiDayPlan(BaseModel):
    start_date: str
    end_date: str
    plan_type: str  # "workout", "nutrition" or "both"
    days: List[DayPlan]
    notes: Optional[str] = None


class PlanResult(BaseModel):
    """A decoded plan plus the chat line announcing it."""

    content: str
    message_type: PlanKind
    workout_plan: Optional[WorkoutPlan] = None
    nutrition_plan: Optional[NutritionPlan] = None
    multi_day_plan: Optional[MultiDayPlan] = Field(default=None)

    @property
    def plan(self) -> WorkoutPlan | NutritionPlan | MultiDayPlan | None:
        return self.workout_plan or self.nutrition_plan or self.multi_day_plan
