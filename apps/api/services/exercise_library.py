"""
Exercise Template Library

Static catalog of strength, conditioning and mobility templates, tagged by
focus, equipment and experience level, plus the deterministic selector the
fallback planner uses to fill each session.

Selection order (stable, no randomness):
1. templates matching focus + level + the user's equipment, in catalog order
2. bodyweight templates sharing the focus, appended in catalog order
3. dedupe by name (first occurrence wins)
4. pad with the mobility placeholder until the target count is met
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

from schemas import PlanExercise, UserProfile


@dataclass(frozen=True)
class ExerciseTemplate:
    name: str
    focus_tags: FrozenSet[str]
    equipment: FrozenSet[str]
    levels: FrozenSet[str]
    default_sets: int
    default_reps: int
    tempo: Optional[str] = None
    rest_seconds: Optional[int] = None
    notes: Optional[str] = None

    def to_plan_exercise(self) -> PlanExercise:
        return PlanExercise(
            name=self.name,
            sets=self.default_sets,
            reps=self.default_reps or None,  # interval work is prescribed by notes, not reps
            tempo=self.tempo,
            rest_seconds=self.rest_seconds,
            notes=self.notes,
        )


def _t(name, focus, equipment, levels, sets, reps, tempo=None, rest_seconds=None, notes=None) -> ExerciseTemplate:
    return ExerciseTemplate(
        name=name,
        focus_tags=frozenset(focus),
        equipment=frozenset(equipment),
        levels=frozenset(levels),
        default_sets=sets,
        default_reps=reps,
        tempo=tempo,
        rest_seconds=rest_seconds,
        notes=notes,
    )


ALL_LEVELS = ("beginner", "intermediate", "advanced")

# Catalog order matters: selection takes matches in this order.
EXERCISE_LIBRARY: Tuple[ExerciseTemplate, ...] = (
    _t("Barbell Back Squat", ["lower_strength", "power"], ["barbell"], ["intermediate", "advanced"], 4, 6, tempo="3-1-1", rest_seconds=120),
    _t("Dumbbell Goblet Squat", ["lower_strength", "hypertrophy"], ["dumbbell", "kettlebell"], ["beginner", "intermediate"], 4, 10, rest_seconds=90),
    _t("Romanian Deadlift", ["posterior_chain", "lower_strength"], ["barbell", "dumbbell"], ["intermediate", "advanced"], 4, 8, tempo="3-1-1", rest_seconds=120),
    _t("Single-Leg Romanian Deadlift", ["posterior_chain", "balance"], ["dumbbell", "kettlebell", "bodyweight"], ALL_LEVELS, 3, 10, rest_seconds=75),
    _t("Incline Dumbbell Press", ["upper_push", "hypertrophy"], ["dumbbell"], ALL_LEVELS, 4, 10, rest_seconds=90),
    _t("Barbell Bench Press", ["upper_push", "power"], ["barbell"], ["intermediate", "advanced"], 5, 5, rest_seconds=150),
    _t("Push-Up with Tempo", ["upper_push", "control"], ["bodyweight"], ["beginner", "intermediate"], 4, 12, tempo="2-1-2", rest_seconds=75),
    _t("Pull-Up or Assisted Pull-Up", ["upper_pull", "strength"], ["bodyweight", "bands"], ["intermediate", "advanced"], 4, 8, rest_seconds=120),
    _t("Seated Cable Row", ["upper_pull", "hypertrophy"], ["machine", "cables"], ALL_LEVELS, 4, 12, rest_seconds=90),
    _t("Single-Arm Dumbbell Row", ["upper_pull", "stability"], ["dumbbell"], ["beginner", "intermediate"], 4, 10, rest_seconds=75),
    _t("Walking Lunge", ["lower_strength", "functional"], ["dumbbell", "kettlebell", "bodyweight"], ALL_LEVELS, 3, 12, rest_seconds=75),
    _t("Bulgarian Split Squat", ["lower_strength", "stability"], ["dumbbell", "bodyweight"], ["intermediate", "advanced"], 3, 10, rest_seconds=90),
    _t("Kettlebell Swing", ["conditioning", "posterior_chain"], ["kettlebell"], ALL_LEVELS, 4, 15, rest_seconds=60),
    _t("Assault Bike Intervals", ["conditioning", "aerobic_power"], ["cardio"], ["intermediate", "advanced"], 6, 0, notes="45 seconds hard / 45 seconds easy spin"),
    _t("Row Erg Power Intervals", ["conditioning", "aerobic_power"], ["cardio"], ["beginner", "intermediate"], 6, 0, notes="250m push / 150m float"),
    _t("Medicine Ball Slam", ["conditioning", "power"], ["medicine_ball"], ["beginner", "intermediate"], 4, 12),
    _t("Dead Bug with Reach", ["core", "control"], ["bodyweight"], ALL_LEVELS, 3, 12, tempo="2-1-2"),
    _t("Pallof Press Iso Hold", ["core", "anti_rotation"], ["bands", "cables"], ALL_LEVELS, 3, 10, rest_seconds=60),
    _t("90/90 Hip Switches", ["mobility", "hips"], ["bodyweight"], ALL_LEVELS, 3, 10),
    _t("Thoracic Spine Opener", ["mobility", "spine"], ["foam roller", "bodyweight"], ALL_LEVELS, 3, 8),
    _t("Tempo Plank Series", ["core", "stability"], ["bodyweight"], ALL_LEVELS, 3, 60, notes="30s front / 15s side each"),
    _t("Sprint Intervals", ["conditioning", "anaerobic"], ["cardio"], ["advanced"], 8, 0, notes="20s sprint / 70s walk"),
)

PLACEHOLDER_EXERCISE = PlanExercise(
    name="Dynamic Mobility Circuit",
    sets=3,
    reps=45,
    tempo="fluid",
    rest_seconds=30,
    notes="Flow between cat/cow, world's greatest stretch, and thoracic rotations.",
)

# (keyword, canonical tag) pairs; a single entry can yield several tags.
EQUIPMENT_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("barbell", "barbell"),
    ("dumbbell", "dumbbell"),
    ("kettlebell", "kettlebell"),
    ("band", "bands"),
    ("machine", "machine"),
    ("cable", "machine"),
    ("treadmill", "cardio"),
    ("bike", "cardio"),
    ("row", "cardio"),
    ("medicine", "medicine_ball"),
    ("trx", "suspension"),
    ("suspension", "suspension"),
    ("no equipment", "no-equipment"),
    ("bodyweight", "bodyweight"),
    ("foam", "bodyweight"),
    ("roller", "bodyweight"),
)


def normalize_equipment(equipment: Optional[Iterable[str]]) -> Set[str]:
    """Map free-text equipment entries onto canonical tags. Always includes bodyweight."""
    tags = {"bodyweight"}
    for item in equipment or []:
        normalized = (item or "").strip().lower()
        for keyword, tag in EQUIPMENT_KEYWORDS:
            if keyword in normalized:
                tags.add(tag)
    return tags


def resolve_experience_level(experience_level: Optional[str]) -> str:
    level = (experience_level or "").lower()
    if "beginner" in level:
        return "beginner"
    if "advanced" in level:
        return "advanced"
    return "intermediate"


def _level_matches(template: ExerciseTemplate, level: str) -> bool:
    if level in template.levels:
        return True
    return level == "advanced" and "intermediate" in template.levels


def choose_exercises(focus_tag: str, profile: UserProfile, target_count: int) -> List[PlanExercise]:
    """
    Pick ``target_count`` exercises for a session focus.

    Never returns fewer than ``target_count`` items: when the catalog runs dry
    the list is padded with the mobility placeholder.
    """
    available = normalize_equipment(profile.available_equipment)
    level = resolve_experience_level(profile.experience_level)

    matches = [
        t
        for t in EXERCISE_LIBRARY
        if focus_tag in t.focus_tags and _level_matches(t, level) and t.equipment & available
    ]

    selected: List[ExerciseTemplate] = matches[:target_count]

    if len(selected) < target_count:
        for candidate in EXERCISE_LIBRARY:
            if len(selected) >= target_count:
                break
            if focus_tag in candidate.focus_tags and "bodyweight" in candidate.equipment:
                selected.append(candidate)

    seen: Set[str] = set()
    exercises: List[PlanExercise] = []
    for template in selected:
        if template.name in seen:
            continue
        seen.add(template.name)
        exercises.append(template.to_plan_exercise())

    exercises = exercises[:target_count]
    while len(exercises) < target_count:
        exercises.append(PLACEHOLDER_EXERCISE)
    return exercises
