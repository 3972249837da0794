"""
Readiness Score

Heuristic 0-100 readiness attached to each generated plan. The score is a
SIGNAL for the client UI; nothing downstream in plan generation reads it.

    heuristic = 70 (base) - 10 (high stress) + 5 (sleep target >= 7h)
    heuristic >= 70  ->  min(95, 80 + r * 10)
    otherwise        ->  min(90, 75 + r * 12)

r comes from an injected random.Random so tests can pin it. A caller-supplied
``readiness_score`` in the generation metadata always wins.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any
import random

import logging

from schemas import MoodSnapshot, UserProfile

logger = logging.getLogger(__name__)


HEURISTIC_BASE = 70
HIGH_STRESS_PENALTY = -10
SLEEP_BONUS = 5
SLEEP_BONUS_MIN_HOURS = 7

READY_THRESHOLD = 70
READY_BASE, READY_SPREAD, READY_CAP = 80.0, 10.0, 95.0
STRAINED_BASE, STRAINED_SPREAD, STRAINED_CAP = 75.0, 12.0, 90.0


@dataclass
class ReadinessHeuristic:
    """Breakdown of the heuristic before the random spread is applied."""
    base: int = HEURISTIC_BASE
    stress_penalty: int = 0
    sleep_bonus: int = 0

    @property
    def total(self) -> int:
        return self.base + self.stress_penalty + self.sleep_bonus


def _stress_is_high(profile: UserProfile, mood: Optional[MoodSnapshot]) -> bool:
    if "high" in (profile.stress_level or "").lower():
        return True
    return mood is not None and mood.stress_level == "high"


def compute_heuristic(profile: UserProfile, mood: Optional[MoodSnapshot] = None) -> ReadinessHeuristic:
    return ReadinessHeuristic(
        stress_penalty=HIGH_STRESS_PENALTY if _stress_is_high(profile, mood) else 0,
        sleep_bonus=(
            SLEEP_BONUS
            if profile.sleep_target_hours and profile.sleep_target_hours >= SLEEP_BONUS_MIN_HOURS
            else 0
        ),
    )


def _caller_score(metadata: Optional[Dict[str, Any]]) -> Optional[float]:
    if not metadata or metadata.get("readiness_score") is None:
        return None
    try:
        value = float(metadata["readiness_score"])
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric readiness_score: {metadata['readiness_score']!r}")
        return None
    return max(0.0, min(100.0, value))


def compute_readiness_score(
    profile: UserProfile,
    mood: Optional[MoodSnapshot] = None,
    rng: Optional[random.Random] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> float:
    """Readiness in [0, 100], rounded to one decimal."""
    supplied = _caller_score(metadata)
    if supplied is not None:
        return supplied

    heuristic = compute_heuristic(profile, mood)
    r = (rng or random.Random()).random()
    if heuristic.total >= READY_THRESHOLD:
        score = min(READY_CAP, READY_BASE + r * READY_SPREAD)
    else:
        score = min(STRAINED_CAP, STRAINED_BASE + r * STRAINED_SPREAD)

    logger.debug(
        "Readiness computed",
        extra={"extra_fields": {"user_id": profile.id, "heuristic": heuristic.total, "score": round(score, 1)}},
    )
    return round(score, 1)
