"""
Mood-aware plan adjustments.

A recent mood check-in nudges the baseline week: stressed users get their
heaviest Monday/Friday lifts capped at moderate, energized users get the
Friday sprint work opened up. Adjustments rebuild the affected days and
sessions; the baseline plan passed in is never mutated.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence

from schemas import BasePlan, MoodSnapshot, PlanDay

STRESS_DAYS = ("Monday", "Friday")
STRESS_GUIDANCE = "Dial in tempo control and keep RPE at 7. Prioritize quality movement over load this week."
STRESS_MOOD_SUPPORT = "Add 10-minute mindfulness walk post-lunch."

ENERGIZED_DAY = "Friday"
ENERGIZED_GUIDANCE = "Cap RPE at 9. Track sprint splits to capture performance."


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps come back from SQLite; they are stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def infer_mood_snapshot(
    moods: Sequence[MoodSnapshot],
    now: Optional[datetime] = None,
    recency_hours: int = 24,
) -> Optional[MoodSnapshot]:
    """
    Return the most recent check-in if it falls inside the recency window.

    ``moods`` is expected newest-first (as the mood store returns it); only
    the newest entry is considered.
    """
    if not moods:
        return None
    latest = moods[0]
    now = now or datetime.now(timezone.utc)
    cutoff = _as_utc(now) - timedelta(hours=recency_hours)
    return latest if _as_utc(latest.created_at) > cutoff else None


def _rebuild_session(day: PlanDay, index: int, **updates) -> PlanDay:
    if index >= len(day.sessions):
        return day
    sessions = list(day.sessions)
    sessions[index] = sessions[index].model_copy(update=updates)
    return day.model_copy(update={"sessions": sessions})


def _rebuild_days(schedule: Iterable[PlanDay], days: Sequence[str], index: int, **updates) -> List[PlanDay]:
    return [
        _rebuild_session(day, index, **updates) if day.day in days else day
        for day in schedule
    ]


def apply_mood_adjustments(plan: BasePlan, mood: Optional[MoodSnapshot]) -> BasePlan:
    """Return ``plan`` with mood rules applied; the same object when there is no mood."""
    if mood is None:
        return plan

    workout = plan.workout_plan
    lifestyle = plan.lifestyle_plan

    if mood.is_stressed:
        workout = workout.model_copy(update={
            "schedule": _rebuild_days(
                workout.schedule, STRESS_DAYS, 0,
                intensity="moderate", guidance=STRESS_GUIDANCE,
            ),
        })
        lifestyle = lifestyle.model_copy(update={
            "mood_support": [*lifestyle.mood_support, STRESS_MOOD_SUPPORT],
        })

    if mood.mood == "energized":
        workout = workout.model_copy(update={
            "schedule": _rebuild_days(
                workout.schedule, (ENERGIZED_DAY,), 1,
                intensity="high", guidance=ENERGIZED_GUIDANCE,
            ),
        })

    if workout is plan.workout_plan and lifestyle is plan.lifestyle_plan:
        return plan
    return plan.model_copy(update={"workout_plan": workout, "lifestyle_plan": lifestyle})
