"""
Blend an external planner's output over the locally generated baseline.

Precedence per section:
- workout: a non-empty external schedule replaces the baseline wholesale
- nutrition: external wins only when it brings meals; set fields override
- lifestyle: external entries first, baseline entries after
"""

from __future__ import annotations

from typing import List, Optional, TypeVar

from schemas import (
    BasePlan,
    ExternalLifestylePlan,
    ExternalNutritionPlan,
    ExternalPlanTranslation,
    LifestylePlan,
    NutritionPlan,
    PlanSource,
    WorkoutPlan,
)

HYBRID_NUTRITION_NOTE = "Hybrid plan: external AI insights fused with FitFlow adaptive nutrition engine."

T = TypeVar("T")


def _concat(external: List[T], fallback: List[T]) -> List[T]:
    return [*external, *fallback]


def blend_workout(fallback: WorkoutPlan, external: Optional[WorkoutPlan]) -> WorkoutPlan:
    if external is None or not external.schedule:
        return fallback
    return WorkoutPlan(
        focus_summary=external.focus_summary or fallback.focus_summary,
        schedule=external.schedule,
    )


def blend_nutrition(fallback: NutritionPlan, external: Optional[ExternalNutritionPlan]) -> NutritionPlan:
    if external is None or not external.meals:
        return fallback
    overrides = {
        field: getattr(external, field)
        for field in ("calories_target", "macro_split", "hydration_ml", "supplements")
        if getattr(external, field) is not None
    }
    overrides["meals"] = external.meals
    if external.snacks:
        overrides["snacks"] = external.snacks
    overrides["guidance"] = [HYBRID_NUTRITION_NOTE, *external.guidance, *fallback.guidance]
    return fallback.model_copy(update=overrides)


def blend_lifestyle(fallback: LifestylePlan, external: Optional[ExternalLifestylePlan]) -> LifestylePlan:
    if external is None:
        return fallback
    return LifestylePlan(
        sleep=external.sleep or fallback.sleep,
        mood_support=_concat(external.mood_support, fallback.mood_support),
        recovery_focus=_concat(external.recovery_focus, fallback.recovery_focus),
        micro_habits=_concat(external.micro_habits, fallback.micro_habits),
    )


def blend_external_with_fallback(base: BasePlan, translation: Optional[ExternalPlanTranslation]) -> BasePlan:
    if translation is None:
        return base
    return BasePlan(
        workout_plan=blend_workout(base.workout_plan, translation.workout_plan),
        nutrition_plan=blend_nutrition(base.nutrition_plan, translation.nutrition_plan),
        lifestyle_plan=blend_lifestyle(base.lifestyle_plan, translation.lifestyle_plan),
    )


def resolve_plan_source(translation: Optional[ExternalPlanTranslation]) -> PlanSource:
    """``hybrid`` only when the external planner contributed a usable schedule."""
    if translation is not None and translation.has_schedule:
        return "hybrid"
    return "fallback"
