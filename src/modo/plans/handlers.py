"""
Plan-generation tools.

These are the *terminal* tools: the backend's arguments already are the plan, so the handler
decodes them synchronously and the exchange ends with the plan instead of another AI round-trip.
"""

import logging
from typing import (
    Any,
    ClassVar,
    Dict,
)

from modo.plans.decoder import decode
from modo.plans.models import (
    PlanKind,
    PlanResult,
)
from modo.tools import ToolHandler

logger = logging.getLogger(__name__)


def _exercise_item(with_descriptions: bool = True) -> Dict[str, Any]:
    def prop(kind: Any, text: str) -> Dict[str, Any]:
        return {"type": kind, "description": text} if with_descriptions else {"type": kind}

    return {
        "type": "object",
        "properties": {
            "name": prop("string", "Exercise name"),
            "sets": prop("integer", "Number of sets"),
            "reps": prop("string", "Number of reps (e.g., '10', '8-12', '15')"),
            "rest_sec": prop("integer", "Rest period in seconds"),
            "target_RPE": prop("integer", "Target RPE (Rate of Perceived Exertion) 1-10"),
            "alternatives": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["name", "sets", "reps", "rest_sec", "target_RPE", "alternatives"],
        "additionalProperties": False,
    }


_FOOD_ITEM: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Food name"},
        "portion": {"type": "string", "description": "Portion size (e.g., '200g', '1 cup')"},
        "calories": {"type": "integer", "description": "Calories in this portion"},
        "protein": {"type": "number", "description": "Protein in grams"},
        "carbs": {"type": "number", "description": "Carbs in grams"},
        "fat": {"type": "number", "description": "Fat in grams"},
    },
    "required": ["name", "portion", "calories", "protein", "carbs", "fat"],
    "additionalProperties": False,
}

_DAILY_TOTALS: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "calories": {"type": "integer"},
        "protein": {"type": "number"},
        "carbs": {"type": "number"},
        "fat": {"type": "number"},
    },
    "required": ["calories", "protein", "carbs", "fat"],
    "additionalProperties": False,
}

_MEAL_TYPE: Dict[str, Any] = {"type": "string", "enum": ["breakfast", "lunch", "dinner"]}


class PlanHandler(ToolHandler):
    """Decodes the call arguments into a :class:`PlanResult` of ``kind``."""

    kind: ClassVar[PlanKind]
    strict = True
    terminal = True

    async def execute(self, arguments: str, request_id: str) -> PlanResult:
        logger.debug("Decoding %s for request %s", self.kind.value, request_id)
        return decode(arguments, self.kind)


class WorkoutPlanHandler(PlanHandler):
    name = "generate_workout_plan"
    kind = PlanKind.WORKOUT
    description = (
        "Generate a personalized daily workout plan with specific exercises. "
        "MUST include at least 3-5 exercises with sets, reps, and rest periods. "
        "Call this function when user explicitly asks for a workout plan."
    )
    parameters = {
        "type": "object",
        "properties": {
            "date": {"type": "string", "description": "Target date in YYYY-MM-DD format"},
            "goal": {
                "type": "string",
                "description": "Workout goal (e.g., muscle_gain, weight_loss, strength, endurance)",
            },
            "exercises": {
                "type": "array",
                "description": "List of exercises in the workout",
                "items": _exercise_item(),
            },
            "daily_kcal_target": {"type": "integer", "description": "Daily calorie target"},
            "notes": {"type": ["string", "null"], "description": "Additional notes or tips"},
        },
        "required": ["date", "goal", "exercises", "daily_kcal_target", "notes"],
        "additionalProperties": False,
    }


class NutritionPlanHandler(PlanHandler):
    name = "generate_nutrition_plan"
    kind = PlanKind.NUTRITION
    description = (
        "Generate a daily meal plan with specific foods and calorie information. "
        "IMPORTANT: Only generate main meals (breakfast, lunch, dinner). Do NOT include snacks. "
        "Call this function when user explicitly asks for a meal/nutrition plan."
    )
    parameters = {
        "type": "object",
        "properties": {
            "date": {"type": "string", "description": "Target date in YYYY-MM-DD format"},
            "goal": {
                "type": "string",
                "description": "Nutrition goal (e.g., weight_loss, muscle_gain, maintenance)",
            },
            "meals": {
                "type": "array",
                "description": "Main meals for the day (breakfast, lunch, dinner only)",
                "items": {
                    "type": "object",
                    "properties": {
                        "meal_type": _MEAL_TYPE,
                        "time": {"type": "string", "description": "Meal time (e.g., '08:00 AM')"},
                        "foods": {"type": "array", "items": _FOOD_ITEM},
                    },
                    "required": ["meal_type", "time", "foods"],
                    "additionalProperties": False,
                },
            },
            "daily_totals": _DAILY_TOTALS,
        },
        "required": ["date", "goal", "meals", "daily_totals"],
        "additionalProperties": False,
    }


class MultiDayPlanHandler(PlanHandler):
    name = "generate_multi_day_plan"
    kind = PlanKind.MULTI_DAY
    description = (
        "Generate a multi-day plan (2-7 days) for workout and/or nutrition. "
        'Use this when user asks for: "this week", "next 3 days", "7-day plan", etc. '
        "IMPORTANT: Maximum 7 days per plan. Each day should have varied content."
    )
    parameters = {
        "type": "object",
        "properties": {
            "start_date": {"type": "string", "description": "Start date in YYYY-MM-DD format"},
            "end_date": {"type": "string", "description": "End date in YYYY-MM-DD format"},
            "plan_type": {"type": "string", "enum": ["workout", "nutrition", "both"]},
            "days": {
                "type": "array",
                "description": "Array of daily plans (maximum 7 days)",
                "items": {
                    "type": "object",
                    "properties": {
                        "date": {"type": "string"},
                        "day_name": {"type": "string", "description": "e.g. 'Monday', 'Day 1'"},
                        "workout": {
                            "type": ["object", "null"],
                            "properties": {
                                "goal": {"type": "string"},
                                "exercises": {
                                    "type": "array",
                                    "items": _exercise_item(with_descriptions=False),
                                },
                                "daily_kcal_target": {"type": "integer"},
                                "notes": {"type": ["string", "null"]},
                            },
                            "required": ["goal", "exercises", "daily_kcal_target", "notes"],
                            "additionalProperties": False,
                        },
                        "nutrition": {
                            "type": ["object", "null"],
                            "properties": {
                                "goal": {"type": "string"},
                                "meals": {
                                    "type": "array",
                                    "items": {
                                        "type": "object",
                                        "properties": {
                                            "meal_type": _MEAL_TYPE,
                                            "time": {"type": "string"},
                                            "foods": {"type": "array", "items": _FOOD_ITEM},
                                            "calories": {"type": "integer"},
                                            "protein": {"type": "number"},
                                            "carbs": {"type": "number"},
                                            "fat": {"type": "number"},
                                        },
                                        "required": [
                                            "meal_type",
                                            "time",
                                            "foods",
                                            "calories",
                                            "protein",
                                            "carbs",
                                            "fat",
                                        ],
                                        "additionalProperties": False,
                                    },
                                },
                                "daily_totals": _DAILY_TOTALS,
                            },
                            "required": ["goal", "meals", "daily_totals"],
                            "additionalProperties": False,
                        },
                    },
                    "required": ["date", "day_name", "workout", "nutrition"],
                    "additionalProperties": False,
                },
            },
            "notes": {"type": ["string", "null"]},
        },
        "required": ["start_date", "end_date", "plan_type", "days", "notes"],
        "additionalProperties": False,
    }


def plan_handlers() -> list[PlanHandler]:
    """One instance of every plan-generation tool."""
    return [WorkoutPlanHandler(), NutritionPlanHandler(), MultiDayPlanHandler()]
