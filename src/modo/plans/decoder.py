"""
Legacy plan decoder.

Turns the raw JSON arguments of a plan-generation tool call into a typed :class:`PlanResult`.
Pure and deterministic: no network, no state.  Three failure kinds are distinguished:

* :class:`TruncatedResponse` - the payload does not parse and does not end with ``}``, so the
  model most likely ran out of output tokens;
* :class:`DecodingFailed` - any other structural problem;
* :class:`EmptyPlan` - the payload is valid but holds no exercise or meal.
"""

import logging
from datetime import datetime
from typing import (
    Callable,
    Dict,
    List,
    Type,
)

from pydantic import (
    BaseModel,
    ValidationError,
)

from modo.common import truncate
from modo.core.errors import (
    DecodingFailed,
    EmptyPlan,
    TruncatedResponse,
)
from modo.plans.models import (
    DayMealArgs,
    DayPlan,
    Exercise,
    ExerciseArgs,
    Food,
    FoodArgs,
    Meal,
    MealArgs,
    MultiDayPlan,
    MultiDayPlanArgs,
    NutritionPlan,
    NutritionPlanArgs,
    PlanKind,
    PlanResult,
    WorkoutPlan,
    WorkoutPlanArgs,
)

logger = logging.getLogger(__name__)

_DEFAULT_MEAL_TIMES = {
    "breakfast": "08:00 AM",
    "lunch": "12:00 PM",
    "dinner": "06:00 PM",
    "snack": "03:00 PM",
}


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------
def default_meal_time(meal_type: str) -> str:
    return _DEFAULT_MEAL_TIMES.get(meal_type.lower(), "12:00 PM")


def format_date(value: str) -> str:
    """``2026-10-18`` -> ``Oct 18, 2026``; anything unparseable is returned unchanged."""
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return value
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def _convert_exercises(exercises: List[ExerciseArgs]) -> List[Exercise]:
    return [Exercise(**exercise.model_dump()) for exercise in exercises]


def _convert_foods(foods: List[FoodArgs]) -> List[Food]:
    return [Food(name=food.name, portion=food.portion, calories=food.calories) for food in foods]


def _convert_meal(meal: MealArgs) -> Meal:
    return Meal(
        name=meal.meal_type.capitalize(),
        time=meal.time or default_meal_time(meal.meal_type),
        foods=_convert_foods(meal.foods),
        calories=sum(food.calories for food in meal.foods),
        protein=sum(food.protein or 0 for food in meal.foods),
        carbs=sum(food.carbs or 0 for food in meal.foods),
        fat=sum(food.fat or 0 for food in meal.foods),
    )


def _convert_day_meal(meal: DayMealArgs) -> Meal:
    return Meal(
        name=meal.meal_type.capitalize(),
        time=meal.time,
        foods=_convert_foods(meal.foods),
        calories=meal.calories,
        protein=meal.protein,
        carbs=meal.carbs,
        fat=meal.fat,
    )


# ---------------------------------------------------------------------------
# Per-kind builders
# ---------------------------------------------------------------------------
def _build_workout(args: WorkoutPlanArgs) -> PlanResult:
    if not args.exercises:
        logger.warning("No exercises in workout plan")
        raise EmptyPlan("workout plan")

    plan = WorkoutPlan(
        date=args.date,
        goal=args.goal,
        daily_kcal_target=args.daily_kcal_target,
        exercises=_convert_exercises(args.exercises),
        notes=args.notes,
    )
    return PlanResult(
        content=f"Here's your personalized workout plan 💪:\n{format_date(plan.date)} – {plan.goal}",
        message_type=PlanKind.WORKOUT,
        workout_plan=plan,
    )


def _build_nutrition(args: NutritionPlanArgs) -> PlanResult:
    meals = [_convert_meal(meal) for meal in args.meals]
    if not meals:
        logger.warning("No meals in nutrition plan")
        raise EmptyPlan("nutrition plan")

    daily_calories = (
        args.daily_totals.calories if args.daily_totals else sum(meal.calories for meal in meals)
    )
    plan = NutritionPlan(date=args.date, goal=args.goal, daily_kcal_target=daily_calories, meals=meals)
    return PlanResult(
        content=f"Here's your personalized nutrition plan 🍽️:\n{format_date(plan.date)} – {plan.goal}",
        message_type=PlanKind.NUTRITION,
        nutrition_plan=plan,
    )


def _build_multi_day(args: MultiDayPlanArgs) -> PlanResult:
    days: List[DayPlan] = []
    for day in args.days:
        workout = None
        if day.workout is not None:
            workout = WorkoutPlan(
                date=day.date,
                goal=day.workout.goal,
                daily_kcal_target=day.workout.daily_kcal_target,
                exercises=_convert_exercises(day.workout.exercises),
                notes=day.workout.notes,
            )

        nutrition = None
        if day.nutrition is not None:
            meals = [_convert_day_meal(meal) for meal in day.nutrition.meals]
            totals = day.nutrition.daily_totals
            nutrition = NutritionPlan(
                date=day.date,
                goal=day.nutrition.goal,
                daily_kcal_target=totals.calories if totals else sum(m.calories for m in meals),
                meals=meals,
            )

        days.append(DayPlan(date=day.date, day_name=day.day_name, workout=workout, nutrition=nutrition))

    has_content = any(
        (day.workout and day.workout.exercises) or (day.nutrition and day.nutrition.meals)
        for day in days
    )
    if not has_content:
        logger.warning("Multi-day plan has no exercises or meals across %d days", len(days))
        raise EmptyPlan("multi-day plan")

    plan = MultiDayPlan(
        start_date=args.start_date,
        end_date=args.end_date,
        plan_type=args.plan_type,
        days=days,
        notes=args.notes,
    )
    plan_type_text = "workout & nutrition" if plan.plan_type == "both" else plan.plan_type
    return PlanResult(
        content=f"Here's your {len(plan.days)}-day {plan_type_text} plan 📅",
        message_type=PlanKind.MULTI_DAY,
        multi_day_plan=plan,
    )


_SCHEMAS: Dict[PlanKind, Type[BaseModel]] = {
    PlanKind.WORKOUT: WorkoutPlanArgs,
    PlanKind.NUTRITION: NutritionPlanArgs,
    PlanKind.MULTI_DAY: MultiDayPlanArgs,
}

_BUILDERS: Dict[PlanKind, Callable] = {
    PlanKind.WORKOUT: _build_workout,
    PlanKind.NUTRITION: _build_nutrition,
    PlanKind.MULTI_DAY: _build_multi_day,
}


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------
def decode(raw_payload: str | bytes, kind: PlanKind) -> PlanResult:
    """
    Decode *raw_payload* as a plan of the given *kind*.

    Raises
    ------
    TruncatedResponse
        The payload failed to parse and does not end with the closing ``}``.
    DecodingFailed
        The payload failed to parse or validate for any other reason.
    EmptyPlan
        The payload is valid but contains no exercise or meal.
    """
    kind = PlanKind(kind)
    if isinstance(raw_payload, bytes):
        try:
            text = raw_payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodingFailed(f"payload is not UTF-8: {exc}") from exc
    else:
        text = raw_payload

    try:
        args = _SCHEMAS[kind].model_validate_json(text)
    except ValidationError as exc:
        logger.error("Failed to decode %s: %s", kind.value, exc)
        logger.debug("Raw JSON (%d chars): %s", len(text), truncate(text, 500))
        if not text.rstrip().endswith("}"):
            logger.warning("JSON appears to be truncated (doesn't end with })")
            raise TruncatedResponse(len(text)) from exc
        raise DecodingFailed(str(exc)) from exc

    result = _BUILDERS[kind](args)
    logger.info("Successfully decoded %s", kind.value)
    return result
