"""
Fallback Plan Generator

Builds a complete weekly plan (training, nutrition, lifestyle) from profile
data alone. This is what users get when the external planner is down, and
the baseline the external plan is blended over when it is up.

Design goals:
- Pure and deterministic: same profile + mood in, same plan out
- Never empty: every session gets exercises, even with zero equipment
- Loose keyword matching on free-text goal/diet/activity fields, so stored
  profiles keep classifying the same way
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from schemas import (
    BasePlan,
    LifestylePlan,
    MacroSplit,
    MealType,
    MoodSnapshot,
    NutritionMeal,
    NutritionPlan,
    PlanDay,
    PlanExercise,
    PlanSession,
    RecoveryBlock,
    SleepPlan,
    UserProfile,
    WorkoutPlan,
)
from services.exercise_library import choose_exercises
from services.food_library import find_meal_profile


# Body-metric defaults when the profile is incomplete.
DEFAULT_WEIGHT_KG = 72.0
DEFAULT_HEIGHT_CM = 172.0
DEFAULT_AGE = 30
DEFAULT_SLEEP_HOURS = 7.5
DEFAULT_HYDRATION_ML = 2900
HYDRATION_ML_PER_KG = 35

MIN_DAILY_CALORIES = 1500
CUT_DEFICIT_KCAL = 350
GAIN_SURPLUS_KCAL = 250

KCAL_PER_GRAM_PROTEIN = 4
KCAL_PER_GRAM_CARBS = 4
KCAL_PER_GRAM_FAT = 9

# Share of daily totals per meal slot.
MEAL_RATIOS = {"breakfast": 0.28, "lunch": 0.32, "dinner": 0.30, "snack": 0.05}
MIN_MEAL_MACRO_G = 5

# (protein, carbs, fat) fractions of daily calories
DEFAULT_MACRO_PCT = (0.30, 0.40, 0.30)
GAIN_MACRO_PCT = (0.32, 0.43, 0.25)
CUT_MACRO_PCT = (0.34, 0.33, 0.33)
ENDURANCE_MACRO_PCT = (0.26, 0.50, 0.24)

CUT_KEYWORDS = ("lose", "cut")
GAIN_KEYWORDS = ("gain", "muscle", "build")
ENDURANCE_KEYWORDS = ("endurance", "marathon")


def _contains_any(text: str, keywords: Tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


# =============================================================================
# TRAINING
# =============================================================================

def base_intensity(profile: UserProfile) -> str:
    return "moderate" if _contains_any(profile.goal_text, CUT_KEYWORDS) else "high"


def mood_modifier(profile: UserProfile, mood: Optional[MoodSnapshot]) -> str:
    """Stressed users train at moderate; everyone else at the goal's base intensity."""
    if mood is not None and mood.is_stressed:
        return "moderate"
    return base_intensity(profile)


def focus_summary(profile: UserProfile) -> str:
    goal = profile.goal_text
    if "muscle" in goal or "build" in goal:
        return "Lean mass acceleration with strength + power emphasis"
    if "weight" in goal or "fat" in goal:
        return "Metabolic conditioning stack anchored by strength retention"
    return "Performance-driven hybrid training cycle"


def build_workout_schedule(profile: UserProfile, mood: Optional[MoodSnapshot] = None) -> WorkoutPlan:
    modifier = mood_modifier(profile, mood)

    def pick(focus: str, count: int) -> List[PlanExercise]:
        return choose_exercises(focus, profile, count)

    schedule = [
        PlanDay(
            day="Monday",
            emphasis="Upper Strength & Power",
            sessions=[
                PlanSession(
                    name="Push Power Session",
                    focus="upper_push",
                    duration_minutes=60,
                    intensity="high" if modifier == "high" else "moderate",
                    modality="strength",
                    guidance="Focus on crisp bar speed. Pause at the bottom of presses to build explosive drive.",
                    exercises=pick("upper_push", 4),
                ),
                PlanSession(
                    name="Heartline Finisher",
                    focus="conditioning",
                    duration_minutes=12,
                    intensity="high",
                    modality="anaerobic intervals",
                    guidance="90s bike sprint pyramid. Stay tall, drive through the foot.",
                    exercises=pick("conditioning", 2),
                ),
            ],
            recovery=RecoveryBlock(
                focus="Shoulder mobility reset",
                duration_minutes=10,
                notes="Band dislocates, wall slides, thoracic extensions.",
            ),
        ),
        PlanDay(
            day="Tuesday",
            emphasis="Aerobic Conditioning & Core",
            sessions=[
                PlanSession(
                    name="Engine Builder",
                    focus="conditioning",
                    duration_minutes=40,
                    intensity="moderate" if modifier == "high" else "low",
                    modality="mixed modal conditioning",
                    guidance="Keep breath rhythmic. Nasal breathing for first 10 minutes, then open throttle.",
                    exercises=pick("conditioning", 3),
                ),
                PlanSession(
                    name="Core Integrity",
                    focus="core",
                    duration_minutes=15,
                    intensity="moderate",
                    modality="core stability",
                    guidance="Focus on anti-rotation control and tempo.",
                    exercises=pick("core", 3),
                ),
            ],
            recovery=RecoveryBlock(
                focus="Guided breath work",
                duration_minutes=8,
                notes="Box breathing 4-4-4-4, emphasising long exhales.",
            ),
        ),
        PlanDay(
            day="Wednesday",
            emphasis="Lower Body Strength",
            sessions=[
                PlanSession(
                    name="Strength Foundations",
                    focus="lower_strength",
                    duration_minutes=55,
                    intensity=modifier,
                    modality="strength",
                    guidance="Own the eccentric, drive through mid-foot. Track load or tempo progression weekly.",
                    exercises=pick("lower_strength", 4),
                ),
                PlanSession(
                    name="Posterior Chain Resilience",
                    focus="posterior_chain",
                    duration_minutes=15,
                    intensity="moderate",
                    modality="accessory",
                    guidance="Use slow tempo and full hip lockout.",
                    exercises=pick("posterior_chain", 2),
                ),
            ],
            recovery=RecoveryBlock(
                focus="Contrast shower or hot/cold plunge",
                duration_minutes=8,
                notes="Optional protocol for nervous system refresh.",
            ),
        ),
        PlanDay(
            day="Thursday",
            emphasis="Mobility & Mood Reset",
            sessions=[
                PlanSession(
                    name="Flow & Restore",
                    focus="mobility",
                    duration_minutes=35,
                    intensity="low",
                    modality="mobility",
                    guidance="Joint capsules first, then global flows. Pair with mellow playlist.",
                    exercises=pick("mobility", 3),
                ),
                PlanSession(
                    name="Mindful Core Breath",
                    focus="core",
                    duration_minutes=15,
                    intensity="low",
                    modality="breathwork",
                    guidance="Supine breathing, diaphragmatic drills, box breathing.",
                    exercises=pick("core", 2),
                ),
            ],
            recovery=RecoveryBlock(
                focus="Guided journaling",
                duration_minutes=10,
                notes="Prompt: Note three wins + one micro-shift for tomorrow.",
            ),
            mindset="Evening wind-down ritual: magnesium tea + light stretching.",
        ),
        PlanDay(
            day="Friday",
            emphasis="Hybrid Performance",
            sessions=[
                PlanSession(
                    name="Athleticism Blend",
                    focus="upper_pull",
                    duration_minutes=45,
                    intensity="high",
                    modality="strength + plyo",
                    guidance="Contrast sets. Pair power movement with technical strength lifts.",
                    exercises=pick("upper_pull", 3),
                ),
                PlanSession(
                    name="Sprint Ladder",
                    focus="conditioning",
                    duration_minutes=18,
                    intensity="high",
                    modality="sprint",
                    guidance="20s sprint / 70s walk x 6. Cap RPE at 8 unless tracking HRV green.",
                    exercises=pick("conditioning", 2),
                ),
            ],
            recovery=RecoveryBlock(
                focus="Parasympathetic downshift",
                duration_minutes=12,
                notes="5 min legs-up-the-wall + 7 min guided breathing.",
            ),
        ),
        PlanDay(
            day="Saturday",
            emphasis="Optional Skill + Play",
            sessions=[
                PlanSession(
                    name="Skill Lab",
                    focus="mobility",
                    duration_minutes=25,
                    intensity="moderate",
                    modality="skill",
                    guidance="Choose skill focus (handstand prep, olympic lifts, yoga flow). Keep it playful.",
                    exercises=pick("mobility", 2),
                ),
                PlanSession(
                    name="Adventure Session",
                    focus="conditioning",
                    duration_minutes=30,
                    intensity="moderate",
                    modality="outdoor conditioning",
                    guidance="Pick an outdoor session (hike, zone 2 run, ride) aligned with your joy list.",
                    exercises=[
                        PlanExercise(
                            name="Choose-your-adventure endurance",
                            sets=1,
                            notes="45-60 minute zone 2 movement of choice.",
                        ),
                    ],
                ),
            ],
            recovery=RecoveryBlock(
                focus="Sunlight + gratitude walk",
                duration_minutes=15,
                notes="Phone-free walk, notice three uplifting details.",
            ),
        ),
        PlanDay(
            day="Sunday",
            emphasis="Full Recovery Ritual",
            sessions=[
                PlanSession(
                    name="Mobility Recharge",
                    focus="mobility",
                    duration_minutes=25,
                    intensity="low",
                    modality="mobility",
                    guidance="Focus on hips, T-spine, ankles. Pair with breath pacing.",
                    exercises=pick("mobility", 2),
                ),
                PlanSession(
                    name="Reflection & Priming",
                    focus="mindset",
                    duration_minutes=20,
                    intensity="low",
                    modality="mindfulness",
                    guidance="Reflect on weekly wins, set intentions, preview upcoming training.",
                    exercises=[
                        PlanExercise(
                            name="Guided reflection",
                            sets=1,
                            notes="Prompted journaling: Celebrate, Course Correct, Commit.",
                        ),
                    ],
                ),
            ],
            recovery=RecoveryBlock(
                focus="Contrast therapy or mobility bath",
                duration_minutes=15,
                notes="Heat + cold rotation to supercharge recovery.",
            ),
            mindset="Prep fueling for Monday. Set micro-intentions for week.",
        ),
    ]

    return WorkoutPlan(focus_summary=focus_summary(profile), schedule=schedule)


# =============================================================================
# NUTRITION
# =============================================================================

def activity_factor(activity_level: Optional[str]) -> float:
    level = (activity_level or "moderate").lower()
    if "high" in level or "intense" in level:
        return 1.725
    if "moderate" in level:
        return 1.55
    if "light" in level:
        return 1.375
    return 1.2


def basal_metabolic_rate(profile: UserProfile) -> float:
    """Gender-specific BMR (revised Harris-Benedict coefficients) with population defaults."""
    weight = profile.weight_kg or profile.target_weight or DEFAULT_WEIGHT_KG
    height = profile.height_cm or DEFAULT_HEIGHT_CM
    age = profile.age or DEFAULT_AGE

    if (profile.gender or "").lower() == "female":
        return 447.593 + 9.247 * weight + 3.098 * height - 4.33 * age
    return 88.362 + 13.397 * weight + 4.799 * height - 5.677 * age


def compute_calorie_target(profile: UserProfile) -> int:
    """
    Daily calorie target.

    An explicit positive profile target is returned unchanged. Otherwise
    BMR x activity factor, adjusted for cut/gain goals, floored at 1500 kcal.
    """
    if profile.daily_calorie_target and profile.daily_calorie_target > 0:
        return profile.daily_calorie_target

    maintenance = basal_metabolic_rate(profile) * activity_factor(profile.activity_level)

    goal = profile.goal_text
    if _contains_any(goal, CUT_KEYWORDS):
        maintenance -= CUT_DEFICIT_KCAL
    elif _contains_any(goal, GAIN_KEYWORDS):
        maintenance += GAIN_SURPLUS_KCAL

    return round(max(maintenance, MIN_DAILY_CALORIES))


def macro_percentages(profile: UserProfile) -> Tuple[float, float, float]:
    goal = profile.goal_text
    if _contains_any(goal, GAIN_KEYWORDS):
        return GAIN_MACRO_PCT
    if _contains_any(goal, CUT_KEYWORDS):
        return CUT_MACRO_PCT
    if _contains_any(goal, ENDURANCE_KEYWORDS):
        return ENDURANCE_MACRO_PCT
    return DEFAULT_MACRO_PCT


def compute_macro_split(profile: UserProfile, calories: int) -> MacroSplit:
    protein_pct, carbs_pct, fat_pct = macro_percentages(profile)
    return MacroSplit(
        protein=round(calories * protein_pct / KCAL_PER_GRAM_PROTEIN),
        carbs=round(calories * carbs_pct / KCAL_PER_GRAM_CARBS),
        fat=round(calories * fat_pct / KCAL_PER_GRAM_FAT),
    )


def create_meal_from_template(
    name: str,
    meal_type: MealType,
    ratio: float,
    total_calories: int,
    macros: MacroSplit,
    ingredients: List[str],
) -> NutritionMeal:
    carbs = max(MIN_MEAL_MACRO_G, round(macros.carbs * ratio))
    fiber_share = 0.12 if meal_type == "snack" else 0.18
    return NutritionMeal(
        name=name,
        meal_type=meal_type,
        calories=round(total_calories * ratio),
        protein=max(MIN_MEAL_MACRO_G, round(macros.protein * ratio)),
        carbs=carbs,
        fat=max(MIN_MEAL_MACRO_G, round(macros.fat * ratio * 0.9)),
        fiber=round(carbs * fiber_share),
        ingredients=ingredients,
        notes="Scale portions + swap ingredients via preferences list as needed.",
    )


def hydration_target_ml(profile: UserProfile) -> int:
    if profile.daily_water_target_ml and profile.daily_water_target_ml > 0:
        return profile.daily_water_target_ml
    if profile.weight_kg:
        return round(profile.weight_kg * HYDRATION_ML_PER_KG)
    return DEFAULT_HYDRATION_ML


def build_nutrition_plan(profile: UserProfile) -> NutritionPlan:
    calories = compute_calorie_target(profile)
    macros = compute_macro_split(profile, calories)
    meal_profile = find_meal_profile(profile.dietary_preference)

    meals = [
        create_meal_from_template(
            meal_profile.breakfast, "breakfast", MEAL_RATIOS["breakfast"], calories, macros,
            ["protein-forward base", "fibre-rich carbs", "healthy fats"],
        ),
        create_meal_from_template(
            meal_profile.lunch, "lunch", MEAL_RATIOS["lunch"], calories, macros,
            ["lean protein or alternative", "vibrant vegetables", "ancient grain or tuber"],
        ),
        create_meal_from_template(
            meal_profile.dinner, "dinner", MEAL_RATIOS["dinner"], calories, macros,
            ["protein anchor", "seasonal produce", "performance carbs"],
        ),
    ]
    snacks = [
        create_meal_from_template(
            snack, "snack", MEAL_RATIOS["snack"], calories, macros,
            ["smart proteins", "satiety fats", "micronutrients"],
        )
        for snack in meal_profile.snacks
    ]

    hydration_ml = hydration_target_ml(profile)

    if profile.support_expectations:
        supplements = [f"Coach note: {profile.support_expectations}", "Electrolytes during conditioning days"]
    else:
        supplements = ["Creatine 5g daily", "Omega-3 (if not covering with fatty fish)", "Vitamin D3 + K2"]

    return NutritionPlan(
        calories_target=calories,
        macro_split=macros,
        hydration_ml=hydration_ml,
        meals=meals,
        snacks=snacks,
        supplements=supplements,
        guidance=[
            *meal_profile.guidance,
            f"Hydration target set at {hydration_ml}ml, checkpoint every 3-4 hours.",
            "Log meals as you eat them so macros can be re-balanced against this plan.",
        ],
    )


# =============================================================================
# LIFESTYLE
# =============================================================================

def build_lifestyle_plan(profile: UserProfile, mood: Optional[MoodSnapshot] = None) -> LifestylePlan:
    wind_down = [
        "Screen-free final 45 minutes of the evening.",
        "Dim lights + lavender breath work 10 minutes pre-bed.",
    ]
    if profile.sleep_challenges:
        wind_down.append("Address sleep blockers noted in profile using 1% experiments weekly.")

    mood_support = [
        "2-minute gratitude stack after training sessions.",
        "Sun exposure within 60 minutes of waking to anchor circadian rhythm.",
    ]
    if mood is not None and mood.stress_level == "high":
        mood_support.append("Box breathing micro-pauses between meetings (4-4-4-4).")

    tags = {t.lower() for t in profile.mood_tags}
    if mood is not None:
        tags.update(t.lower() for t in mood.tags)
    if "creative" in tags:
        mood_support.append("Schedule one playful movement session weekly (dance, parkour lite, flow arts).")

    return LifestylePlan(
        sleep=SleepPlan(
            target_hours=profile.sleep_target_hours or DEFAULT_SLEEP_HOURS,
            wind_down_rituals=wind_down,
        ),
        mood_support=mood_support,
        recovery_focus=[
            "Weekly HRV check-in; if trending down, swap one intensity session for mobility.",
            "Soft tissue work or percussion gun 2x week post-strength.",
        ],
        micro_habits=[
            "Log mood after each workout to teach the AI coach your patterns.",
            "Morning hydration cocktail: water + pinch of salt + squeeze of citrus.",
            "Evening reflection: note one win, one insight, one commitment.",
        ],
    )


def generate_fallback_plan(profile: UserProfile, mood: Optional[MoodSnapshot] = None) -> BasePlan:
    return BasePlan(
        workout_plan=build_workout_schedule(profile, mood),
        nutrition_plan=build_nutrition_plan(profile),
        lifestyle_plan=build_lifestyle_plan(profile, mood),
    )
