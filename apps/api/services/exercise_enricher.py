"""
Exercise Enrichment

Tops up thin sessions (fewer than MIN_EXERCISES_PER_SESSION exercises) with
movements from an external exercise-search API. Lookups are keyed by the
session's focus/modality/name, deduplicated per call and run concurrently.
Enrichment is best-effort: a failed lookup leaves the session untouched.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from core.config import settings
from core.exceptions import CollaboratorUnavailableError
from schemas import ExternalExercise, PlanExercise, PlanSession, WorkoutPlan

logger = logging.getLogger(__name__)

COLLABORATOR = "exercise_search"
MIN_EXERCISES_PER_SESSION = 3

# Checked in order against the lowercased lookup key; first hit wins.
FOCUS_QUERY_MAP: Tuple[Tuple[str, Dict[str, str]], ...] = (
    ("upper push", {"muscle": "chest", "type": "strength"}),
    ("push", {"muscle": "shoulders", "type": "strength"}),
    ("pull", {"muscle": "back", "type": "strength"}),
    ("lower", {"muscle": "quadriceps", "type": "strength"}),
    ("posterior", {"muscle": "lower_back", "type": "strength"}),
    ("conditioning", {"type": "cardio"}),
    ("core", {"muscle": "abdominals"}),
    ("mobility", {"type": "stretching"}),
)


def build_query(key: str) -> Dict[str, str]:
    normalized = key.lower()
    for keyword, query in FOCUS_QUERY_MAP:
        if keyword in normalized:
            return dict(query)
    return {"name": key}


class ExerciseSearchClient:
    """Async client for an api-ninjas style exercise search endpoint."""

    def __init__(
        self,
        url: Optional[str],
        api_key: Optional[str],
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "ExerciseSearchClient":
        return cls(
            url=settings.EXERCISES_API_URL,
            api_key=settings.EXERCISES_API_KEY,
            timeout_s=settings.EXERCISES_API_TIMEOUT_S,
        )

    @property
    def configured(self) -> bool:
        return bool(self.url and self.api_key)

    async def search(self, query: Dict[str, str], limit: int = 4) -> List[ExternalExercise]:
        """Return up to ``limit`` exercises for ``query``; [] on any failure."""
        if not self.configured:
            return []
        try:
            items = await asyncio.wait_for(self._get(query), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Exercise search timed out", extra={"extra_fields": {"query": query}})
            return []
        except CollaboratorUnavailableError as e:
            logger.warning(f"Exercise search unavailable: {e.detail}", extra={"extra_fields": {"query": query}})
            return []

        exercises: List[ExternalExercise] = []
        for item in items[:limit]:
            if not isinstance(item, dict) or not item.get("name"):
                continue
            try:
                exercises.append(ExternalExercise.model_validate(item))
            except ValidationError:
                logger.debug(f"Skipping malformed exercise entry: {item.get('name')!r}")
        return exercises

    async def _get(self, query: Dict[str, str]) -> List[Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                response = await client.get(self.url, params=query, headers={"X-Api-Key": self.api_key or ""})
        except httpx.HTTPError as e:
            raise CollaboratorUnavailableError(COLLABORATOR, f"transport error: {e}") from e

        if not response.is_success:
            raise CollaboratorUnavailableError(COLLABORATOR, f"status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise CollaboratorUnavailableError(COLLABORATOR, "response is not JSON") from e

        if isinstance(data, dict):
            data = data.get("data")
        return data if isinstance(data, list) else []


def _first_sentences(text: Optional[str], count: int = 2) -> str:
    if not text:
        return ""
    sentences = [s.strip() for s in text.split(".") if s.strip()]
    joined = ". ".join(sentences[:count])
    return f"{joined}." if joined else ""


def to_plan_exercise(exercise: ExternalExercise) -> PlanExercise:
    beginner = (exercise.difficulty or "").lower() == "beginner"
    return PlanExercise(
        name=exercise.name,
        sets=3,
        reps=12 if beginner else 8,
        equipment=exercise.equipment,
        notes=_first_sentences(exercise.instructions),
    )


def _lookup_key(session: PlanSession) -> str:
    return session.focus or session.modality or session.name


def _needs_enrichment(session: PlanSession) -> bool:
    return len(session.exercises) < MIN_EXERCISES_PER_SESSION


def _top_up(session: PlanSession, candidates: Iterable[ExternalExercise]) -> PlanSession:
    existing = {e.name.lower() for e in session.exercises}
    missing = MIN_EXERCISES_PER_SESSION - len(session.exercises)
    additions: List[PlanExercise] = []
    for candidate in candidates:
        if len(additions) >= missing:
            break
        if candidate.name.lower() in existing:
            continue
        existing.add(candidate.name.lower())
        additions.append(to_plan_exercise(candidate))
    if not additions:
        return session
    return session.model_copy(update={"exercises": [*session.exercises, *additions]})


async def enrich_schedule(
    workout_plan: WorkoutPlan,
    client: Optional[ExerciseSearchClient],
    limit: int = 4,
) -> WorkoutPlan:
    """Return ``workout_plan`` with thin sessions topped up from the exercise search API."""
    if client is None or not client.configured:
        return workout_plan

    keys = []
    for day in workout_plan.schedule:
        for session in day.sessions:
            key = _lookup_key(session)
            if _needs_enrichment(session) and key and key not in keys:
                keys.append(key)
    if not keys:
        return workout_plan

    results = await asyncio.gather(
        *(client.search(build_query(key), limit) for key in keys),
        return_exceptions=True,
    )
    cache: Dict[str, List[ExternalExercise]] = {}
    for key, result in zip(keys, results):
        if isinstance(result, BaseException):
            logger.warning(f"Exercise lookup failed for '{key}': {result}")
            continue
        cache[key] = result

    schedule = []
    for day in workout_plan.schedule:
        sessions = [
            _top_up(session, cache.get(_lookup_key(session), []))
            if _needs_enrichment(session)
            else session
            for session in day.sessions
        ]
        schedule.append(day.model_copy(update={"sessions": sessions}))

    logger.debug(
        "Exercise enrichment complete",
        extra={"extra_fields": {"lookups": len(keys), "hits": sum(1 for v in cache.values() if v)}},
    )
    return workout_plan.model_copy(update={"schedule": schedule})
