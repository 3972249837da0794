"""
External Workout Planner Client

Optional pass-through to a third-party AI planner. The local engine is
always the source of truth for a complete plan; this client only ever
returns extra material to blend in.

Contract:
- Missing URL/key, malformed URL, non-2xx, timeout, bad JSON, transport error -> None
- Never raises; failures are logged and the caller falls back
- Total wait is bounded by WORKOUT_PLANNER_TIMEOUT_S (12s default)
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from core.config import settings
from core.exceptions import CollaboratorUnavailableError
from schemas import (
    INTENSITIES,
    MEAL_TYPES,
    ExternalLifestylePlan,
    ExternalNutritionPlan,
    ExternalPlanTranslation,
    MacroSplit,
    MoodSnapshot,
    NutritionMeal,
    PlanDay,
    PlanExercise,
    PlanSession,
    RecoveryBlock,
    SleepPlan,
    UserProfile,
    WorkoutPlan,
)

logger = logging.getLogger(__name__)

COLLABORATOR = "workout_planner"


def build_planner_payload(profile: UserProfile, context: Dict[str, Any]) -> Dict[str, Any]:
    mood: Optional[MoodSnapshot] = context.get("mood_snapshot")
    return {
        "profile": {
            "name": profile.full_name,
            "age": profile.age,
            "gender": profile.gender,
            "height_cm": profile.height_cm,
            "weight_kg": profile.weight_kg,
            "body_type": profile.body_type,
            "experience_level": profile.experience_level,
            "activity_level": profile.activity_level,
            "primary_goal": profile.primary_goal or profile.fitness_goal,
            "secondary_goal": profile.secondary_goal,
            "available_equipment": profile.available_equipment,
            "workout_environment": profile.workout_environment,
            "preferred_training_time": profile.preferred_training_time,
            "injuries": profile.injuries,
            "medical_conditions": profile.medical_conditions,
        },
        "nutrition": {
            "dietary_preference": profile.dietary_preference,
            "dietary_restrictions": profile.dietary_restrictions,
            "allergies": profile.allergies,
            "favorite_foods": profile.favorite_foods,
            "avoid_foods": profile.avoid_foods,
            "daily_calorie_target": profile.daily_calorie_target,
            "macro_targets": {
                "protein": profile.daily_protein_target,
                "carbs": profile.daily_carbs_target,
                "fat": profile.daily_fat_target,
            },
        },
        "context": {
            "reason": context.get("reason"),
            "mood_snapshot": (
                {
                    "mood": mood.mood,
                    "energy_level": mood.energy_level,
                    "stress_level": mood.stress_level,
                    "motivation_level": mood.motivation_level,
                    "soreness_level": mood.soreness_level,
                    "tags": mood.tags,
                }
                if mood is not None
                else None
            ),
        },
    }


class ExternalPlannerClient:
    """Async client for the third-party workout/nutrition planner."""

    def __init__(
        self,
        url: Optional[str],
        api_key: Optional[str],
        timeout_s: float = 12.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "ExternalPlannerClient":
        return cls(
            url=settings.WORKOUT_PLANNER_API_URL,
            api_key=settings.WORKOUT_PLANNER_API_KEY,
            timeout_s=settings.WORKOUT_PLANNER_TIMEOUT_S,
        )

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)

    async def request(
        self,
        profile: UserProfile,
        context: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """
        Ask the external planner for a plan.

        ``context`` carries ``reason`` and an optional ``mood_snapshot``.
        Returns the raw JSON object, or None when the planner is unconfigured or unusable.
        """
        if not self.configured:
            logger.debug("External planner not configured; using local engine only")
            return None

        payload = build_planner_payload(profile, context)
        try:
            return await asyncio.wait_for(self._post(payload), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning(
                "External planner timed out",
                extra={"extra_fields": {"user_id": profile.id, "timeout_s": self.timeout_s}},
            )
        except CollaboratorUnavailableError as e:
            logger.warning(
                f"External planner unavailable: {e.detail}",
                extra={"extra_fields": {"user_id": profile.id}},
            )
        return None

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json", "x-api-key": self.api_key or ""}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                response = await client.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise CollaboratorUnavailableError(COLLABORATOR, "timed out") from e
        except httpx.InvalidURL as e:
            # not an HTTPError subclass
            raise CollaboratorUnavailableError(COLLABORATOR, f"invalid url: {e}") from e
        except httpx.HTTPError as e:
            raise CollaboratorUnavailableError(COLLABORATOR, f"transport error: {e}") from e

        if not response.is_success:
            raise CollaboratorUnavailableError(COLLABORATOR, f"status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise CollaboratorUnavailableError(COLLABORATOR, "response is not JSON") from e

        if not isinstance(data, dict):
            raise CollaboratorUnavailableError(COLLABORATOR, "response JSON is not an object")
        return data


# =============================================================================
# TRANSLATION
# =============================================================================

def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _round(value: Any) -> int:
    try:
        return int(round(float(value or 0)))
    except (TypeError, ValueError, OverflowError):
        return 0


_LEADING_NUMBER = re.compile(r"\d+(?:\.\d+)?")


def _number(value: Any) -> Optional[float]:
    """Lenient numeric read: 8 -> 8.0, "10 min" -> 10.0, "8-12" -> 8.0, "lots" -> None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_NUMBER.search(value)
        return float(match.group()) if match else None
    return None


def _int_or(value: Any, default: Optional[int]) -> Optional[int]:
    number = _number(value)
    return int(round(number)) if number is not None else default


def _text(value: Any, default: Optional[str] = None) -> Optional[str]:
    if value is None or value == "" or isinstance(value, (dict, list)):
        return default
    return str(value)


def _translate_exercise(raw: Dict[str, Any]) -> PlanExercise:
    return PlanExercise(
        name=_text(raw.get("name"), "Movement"),
        sets=_int_or(raw.get("sets"), None),
        reps=_int_or(raw.get("reps"), None),
        tempo=_text(raw.get("tempo")),
        rest_seconds=_int_or(raw.get("rest_seconds"), None),
        equipment=_text(raw.get("equipment")),
        notes=_text(raw.get("notes"), ""),
    )


def _translate_session(raw: Dict[str, Any]) -> PlanSession:
    intensity = raw.get("intensity")
    modality = _text(raw.get("modality"))
    focus = _text(raw.get("focus"))
    return PlanSession(
        name=_text(raw.get("name")) or modality or "Training Session",
        focus=focus or modality or "custom",
        duration_minutes=_int_or(raw.get("duration_minutes"), None) or _int_or(raw.get("duration"), None) or 45,
        intensity=intensity if intensity in INTENSITIES else "moderate",
        modality=modality or focus or "custom",
        guidance=_text(raw.get("notes"), ""),
        exercises=[_translate_exercise(_as_dict(e)) for e in _as_list(raw.get("exercises"))],
    )


def _translate_day(raw: Dict[str, Any], index: int) -> PlanDay:
    recovery = raw.get("recovery")
    day = _text(raw.get("day"))
    return PlanDay(
        day=day or f"Day {index + 1}",
        emphasis=_text(raw.get("focus")) or day or "Hybrid Focus",
        sessions=[_translate_session(_as_dict(s)) for s in _as_list(raw.get("sessions"))],
        recovery=(
            RecoveryBlock(
                focus=_text(recovery.get("focus"), "Recovery"),
                duration_minutes=_int_or(recovery.get("duration_minutes"), None) or 10,
                notes=_text(recovery.get("notes"), ""),
            )
            if isinstance(recovery, dict)
            else None
        ),
        mindset=_text(raw.get("mindset")),
    )


def _translate_meal(raw: Dict[str, Any], default_type: str) -> NutritionMeal:
    meal_type = raw.get("meal_type") if default_type != "snack" else "snack"
    ingredients = [str(i) for i in _as_list(raw.get("ingredients"))]
    notes = _text(raw.get("notes"))
    if default_type == "snack" and not notes and ingredients:
        notes = f"Ingredients: {', '.join(ingredients)}"
    return NutritionMeal(
        name=_text(raw.get("name"), "Meal"),
        meal_type=meal_type if meal_type in MEAL_TYPES else default_type,
        calories=_round(raw.get("calories")),
        protein=_round(raw.get("protein")),
        carbs=_round(raw.get("carbs")),
        fat=_round(raw.get("fat")),
        ingredients=ingredients,
        notes=notes or "",
    )


def _translate_nutrition(raw: Dict[str, Any]) -> ExternalNutritionPlan:
    macro_split = raw.get("macro_split")
    calories = raw.get("calories_target")
    supplements = raw.get("supplements")
    return ExternalNutritionPlan(
        calories_target=_round(calories) if calories is not None else None,
        macro_split=(
            MacroSplit(
                protein=_round(macro_split.get("protein")),
                carbs=_round(macro_split.get("carbs")),
                fat=_round(macro_split.get("fat")),
            )
            if isinstance(macro_split, dict)
            else None
        ),
        hydration_ml=_round(raw["hydration_ml"]) if raw.get("hydration_ml") else None,
        meals=[_translate_meal(_as_dict(m), "custom") for m in _as_list(raw.get("meals"))],
        snacks=[_translate_meal(_as_dict(s), "snack") for s in _as_list(raw.get("snacks"))],
        supplements=[str(s) for s in supplements] if isinstance(supplements, list) else None,
        guidance=[str(g) for g in _as_list(raw.get("guidance"))],
    )


def _translate_lifestyle(raw: Dict[str, Any]) -> ExternalLifestylePlan:
    sleep = raw.get("sleep")
    return ExternalLifestylePlan(
        sleep=(
            SleepPlan(
                target_hours=_number(sleep.get("target_hours")) or 7,
                wind_down_rituals=[str(r) for r in _as_list(sleep.get("wind_down_rituals"))],
            )
            if isinstance(sleep, dict)
            else None
        ),
        mood_support=[str(s) for s in _as_list(raw.get("mood_support"))],
        recovery_focus=[str(s) for s in _as_list(raw.get("recovery_focus"))],
        micro_habits=[str(s) for s in _as_list(raw.get("micro_habits"))],
    )


def translate_external_plan(external: Optional[Dict[str, Any]]) -> Optional[ExternalPlanTranslation]:
    """
    Map a raw planner response onto the plan data model.

    Field renames and default fills only; an unusable response yields None
    rather than an exception.
    """
    if not external:
        return None

    try:
        schedule = [
            _translate_day(_as_dict(day), index)
            for index, day in enumerate(_as_list(external.get("schedule")))
        ]
        nutrition = external.get("nutrition_plan")
        lifestyle = external.get("lifestyle_plan")
        return ExternalPlanTranslation(
            workout_plan=(
                WorkoutPlan(focus_summary=_text(external.get("focus_summary"), ""), schedule=schedule)
                if schedule
                else None
            ),
            nutrition_plan=_translate_nutrition(nutrition) if isinstance(nutrition, dict) else None,
            lifestyle_plan=_translate_lifestyle(lifestyle) if isinstance(lifestyle, dict) else None,
            metadata=_as_dict(external.get("metadata")),
        )
    except ValidationError as e:
        logger.warning(f"External plan could not be translated: {e.error_count()} validation errors")
        return None
