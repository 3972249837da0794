"""
Nutrition adjustments from user-requested foods.

Each requested food becomes a snack entry with table macros. The day's
calorie target and macro split are then replaced by the literal sum over
meals and snacks, so the plan always reflects what is actually on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from schemas import NutritionMeal, NutritionPlan, MacroSplit
from services.food_library import lookup_food_macros

USER_FOOD_NOTE = "User-requested addition. Log it as eaten to refine macros."


@dataclass
class NutritionTotals:
    calories: int = 0
    protein: int = 0
    carbs: int = 0
    fat: int = 0
    fiber: int = 0


def aggregate_nutrition_totals(plan: NutritionPlan) -> NutritionTotals:
    totals = NutritionTotals()
    for meal in [*plan.meals, *plan.snacks]:
        totals.calories += meal.calories
        totals.protein += meal.protein
        totals.carbs += meal.carbs
        totals.fat += meal.fat
        totals.fiber += meal.fiber or 0
    return totals


def create_meal_from_food_name(food: str) -> NutritionMeal:
    macros = lookup_food_macros(food)
    name = food.strip()
    return NutritionMeal(
        name=name,
        meal_type="snack",
        calories=macros.calories,
        protein=macros.protein,
        carbs=macros.carbs,
        fat=macros.fat,
        fiber=macros.fiber if macros.fiber is not None else round(macros.carbs * 0.1),
        ingredients=[name],
        notes=USER_FOOD_NOTE,
    )


def adjust_nutrition_plan_with_foods(plan: NutritionPlan, foods: Iterable[str], purpose: str) -> NutritionPlan:
    """
    Append ``foods`` as snacks and re-total the plan.

    An empty ``foods`` returns ``plan`` unchanged; rejecting empty requests
    is the caller's job.
    """
    additions: List[NutritionMeal] = [create_meal_from_food_name(f) for f in foods if f and f.strip()]
    if not additions:
        return plan

    updated = plan.model_copy(update={
        "snacks": [*plan.snacks, *additions],
        "guidance": [
            *plan.guidance,
            f"Plan tuned with user-requested items for {purpose}. Keep logging meals for precise macro tracking.",
        ],
    })
    totals = aggregate_nutrition_totals(updated)
    return updated.model_copy(update={
        "calories_target": totals.calories,
        "macro_split": MacroSplit(protein=totals.protein, carbs=totals.carbs, fat=totals.fat),
    })
