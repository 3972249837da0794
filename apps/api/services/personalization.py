"""
Personalization Service

Orchestrates plan generation for one user:

    fetching_profile -> baseline_built -> mood_adjusted -> external_attempted
        -> blended -> enriched -> scored -> persisted

Only two steps can fail the request: the profile lookup (NotFoundError) and
persistence (PersistenceFailureError). Every third-party step degrades to the
locally generated plan. There are no retries.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from core.config import settings
from core.exceptions import NotFoundError, PreconditionFailedError
from schemas import MoodSnapshot, PersonalizedPlan, UserProfile
from services.exercise_enricher import ExerciseSearchClient, enrich_schedule
from services.external_planner import ExternalPlannerClient, translate_external_plan
from services.fallback_plan import generate_fallback_plan
from services.mood_adjuster import apply_mood_adjustments, infer_mood_snapshot
from services.nutrition_adjuster import adjust_nutrition_plan_with_foods
from services.plan_blender import blend_external_with_fallback, resolve_plan_source
from services.plan_store import MoodStore, PlanStore, ProfileStore
from services.readiness_score import compute_readiness_score

logger = logging.getLogger(__name__)

EXTERNAL_SOURCE_NAME = "ai-workout-planner"
DEFAULT_ADJUSTMENT_PURPOSE = "personal preference"


class GenerationState(str, Enum):
    FETCHING_PROFILE = "fetching_profile"
    BASELINE_BUILT = "baseline_built"
    MOOD_ADJUSTED = "mood_adjusted"
    EXTERNAL_ATTEMPTED = "external_attempted"
    BLENDED = "blended"
    ENRICHED = "enriched"
    SCORED = "scored"
    PERSISTED = "persisted"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _plan_version(metadata: Dict[str, Any]) -> int:
    try:
        return int(metadata.get("version") or 1)
    except (TypeError, ValueError):
        return 1


def _moods_used(moods: Sequence[MoodSnapshot]) -> List[Dict[str, Any]]:
    return [
        {"id": mood.id, "mood": mood.mood, "created_at": mood.created_at.isoformat()}
        for mood in moods
    ]


class PersonalizationService:
    """Generates, adjusts and serves personalized plans."""

    def __init__(
        self,
        profile_store: ProfileStore,
        mood_store: MoodStore,
        plan_store: PlanStore,
        planner: Optional[ExternalPlannerClient] = None,
        exercise_search: Optional[ExerciseSearchClient] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.profile_store = profile_store
        self.mood_store = mood_store
        self.plan_store = plan_store
        self.planner = planner
        self.exercise_search = exercise_search
        self.rng = rng or random.Random()
        self.clock = clock or _utcnow

    def _transition(self, user_id: str, state: GenerationState, **fields: Any) -> None:
        logger.info(
            f"Plan generation: {state.value}",
            extra={"extra_fields": {"user_id": user_id, "state": state.value, **fields}},
        )

    async def generate(
        self,
        user_id: str,
        reason: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> PersonalizedPlan:
        """Build, blend, enrich, score and persist a new plan for ``user_id``."""
        metadata = dict(metadata or {})

        self._transition(user_id, GenerationState.FETCHING_PROFILE, reason=reason)
        profile: UserProfile = await self.profile_store.get(user_id)
        moods = await self.mood_store.list_recent(user_id, limit=settings.MOOD_LOOKBACK_LIMIT)
        mood = infer_mood_snapshot(moods, now=self.clock(), recency_hours=settings.MOOD_RECENCY_HOURS)

        baseline = generate_fallback_plan(profile, mood)
        self._transition(user_id, GenerationState.BASELINE_BUILT)

        adjusted = apply_mood_adjustments(baseline, mood)
        self._transition(
            user_id,
            GenerationState.MOOD_ADJUSTED,
            mood=mood.mood if mood else None,
            changed=adjusted is not baseline,
        )

        external_raw = None
        if self.planner is not None:
            external_raw = await self.planner.request(profile, {"reason": reason, "mood_snapshot": mood})
        translation = translate_external_plan(external_raw)
        self._transition(
            user_id,
            GenerationState.EXTERNAL_ATTEMPTED,
            external_response=external_raw is not None,
            external_schedule=bool(translation and translation.has_schedule),
        )

        blended = blend_external_with_fallback(adjusted, translation)
        source = resolve_plan_source(translation)
        self._transition(user_id, GenerationState.BLENDED, source=source)

        workout_plan = await enrich_schedule(
            blended.workout_plan,
            self.exercise_search,
            limit=settings.EXERCISE_LOOKUP_LIMIT,
        )
        self._transition(user_id, GenerationState.ENRICHED)

        readiness = compute_readiness_score(profile, mood, rng=self.rng, metadata=metadata)
        self._transition(user_id, GenerationState.SCORED, readiness_score=readiness)

        plan_metadata: Dict[str, Any] = {
            "generated_at": self.clock().isoformat(),
            **metadata,
            "moods_used": _moods_used(moods),
        }
        if source == "hybrid":
            plan_metadata["external_source"] = EXTERNAL_SOURCE_NAME
        if translation is not None and translation.metadata:
            plan_metadata["external_metadata"] = translation.metadata

        plan = PersonalizedPlan(
            user_id=user_id,
            version=_plan_version(metadata),
            source=source,
            generated_reason=reason,
            workout_plan=workout_plan,
            nutrition_plan=blended.nutrition_plan,
            lifestyle_plan=blended.lifestyle_plan,
            readiness_score=readiness,
            metadata=plan_metadata,
        )
        saved = await self.plan_store.create(plan)
        self._transition(user_id, GenerationState.PERSISTED, plan_id=saved.id, source=saved.source)
        return saved

    async def adjust_nutrition(self, user_id: str, foods: Sequence[str], purpose: Optional[str]) -> PersonalizedPlan:
        """
        Add ``foods`` as snacks to the user's current plan and re-total its macros.

        Raises:
            PreconditionFailedError: no usable foods were given
            NotFoundError: the user has no plan yet
        """
        requested = [food.strip() for food in foods or [] if food and food.strip()]
        if not requested:
            raise PreconditionFailedError("foods array is required to adjust nutrition plan.", field="foods")

        plan = await self.plan_store.latest(user_id)
        if plan is None:
            raise NotFoundError("PersonalizedPlan", user_id)

        purpose = (purpose or "").strip() or DEFAULT_ADJUSTMENT_PURPOSE
        nutrition = adjust_nutrition_plan_with_foods(plan.nutrition_plan, requested, purpose)
        adjusted_at = self.clock().isoformat()

        history = list(plan.metadata.get("adjustment_history") or [])
        history.append({
            "foods": requested,
            "purpose": purpose,
            "adjusted_at": adjusted_at,
            "calories_target": nutrition.calories_target,
        })

        updated = plan.model_copy(update={
            "nutrition_plan": nutrition,
            "metadata": {
                **plan.metadata,
                "last_adjustment_reason": purpose,
                "last_adjustment_foods": requested,
                "updated_at": adjusted_at,
                "adjustment_history": history,
            },
        })
        saved = await self.plan_store.save(updated)
        logger.info(
            "Nutrition plan adjusted",
            extra={"extra_fields": {
                "user_id": user_id,
                "plan_id": saved.id,
                "foods": len(requested),
                "calories_target": nutrition.calories_target,
            }},
        )
        return saved

    async def get_latest(self, user_id: str) -> Optional[PersonalizedPlan]:
        return await self.plan_store.latest(user_id)
