from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List, Dict, Any, Literal


Intensity = Literal["high", "moderate", "low", "custom"]
MealType = Literal["breakfast", "lunch", "dinner", "snack", "preworkout", "postworkout", "custom"]
PlanSource = Literal["external", "fallback", "hybrid"]
Level = Literal["low", "moderate", "high"]

INTENSITIES = ("high", "moderate", "low", "custom")
MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack", "preworkout", "postworkout", "custom")

# Canonical weekday order for generated schedules.
WEEK_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


# ============ Inputs (read-only to the engine) ============

class UserProfile(BaseModel):
    """Profile fields the plan engine reads. Zero/absent targets mean "compute it"."""
    id: str
    full_name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    target_weight: Optional[float] = None
    body_type: Optional[str] = None

    primary_goal: Optional[str] = None
    secondary_goal: Optional[str] = None
    fitness_goal: Optional[str] = None  # legacy goal field
    experience_level: Optional[str] = None
    activity_level: Optional[str] = None

    dietary_preference: Optional[str] = None
    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    favorite_foods: List[str] = Field(default_factory=list)
    avoid_foods: List[str] = Field(default_factory=list)
    preferred_cuisines: List[str] = Field(default_factory=list)

    available_equipment: List[str] = Field(default_factory=list)
    workout_environment: Optional[str] = None
    preferred_training_time: Optional[str] = None

    daily_calorie_target: Optional[int] = None
    daily_protein_target: Optional[int] = None
    daily_carbs_target: Optional[int] = None
    daily_fat_target: Optional[int] = None
    daily_water_target_ml: Optional[int] = None
    sleep_target_hours: Optional[float] = None

    stress_level: Optional[str] = None
    mood_tags: List[str] = Field(default_factory=list)
    sleep_challenges: List[str] = Field(default_factory=list)
    injuries: List[str] = Field(default_factory=list)
    medical_conditions: List[str] = Field(default_factory=list)
    support_expectations: Optional[str] = None
    profile_completed: bool = False

    model_config = ConfigDict(extra="ignore")

    @property
    def goal_text(self) -> str:
        return (self.primary_goal or self.fitness_goal or "").lower()


class MoodSnapshot(BaseModel):
    id: Optional[str] = None
    mood: str = "balanced"
    custom_mood: Optional[str] = None
    energy_level: Optional[Level] = None
    stress_level: Optional[Level] = None
    motivation_level: Optional[Level] = None
    soreness_level: Optional[Level] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(extra="ignore")

    @property
    def is_stressed(self) -> bool:
        return self.mood == "stressed" or self.stress_level == "high"


# ============ Workout ============

class PlanExercise(BaseModel):
    name: str
    sets: Optional[int] = None
    reps: Optional[int] = None
    tempo: Optional[str] = None
    rest_seconds: Optional[int] = None
    equipment: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class PlanSession(BaseModel):
    name: str
    focus: str
    duration_minutes: int
    intensity: Intensity = "moderate"
    modality: str = ""
    guidance: str = ""
    exercises: List[PlanExercise] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class RecoveryBlock(BaseModel):
    focus: str
    duration_minutes: Optional[int] = None
    notes: str = ""

    model_config = ConfigDict(frozen=True)


class PlanDay(BaseModel):
    day: str
    emphasis: str
    sessions: List[PlanSession] = Field(default_factory=list)
    recovery: Optional[RecoveryBlock] = None
    mindset: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class WorkoutPlan(BaseModel):
    focus_summary: str = ""
    schedule: List[PlanDay] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


# ============ Nutrition ============

class MacroSplit(BaseModel):
    protein: int
    carbs: int
    fat: int

    model_config = ConfigDict(frozen=True)


class NutritionMeal(BaseModel):
    name: str
    meal_type: MealType = "custom"
    calories: int
    protein: int
    carbs: int
    fat: int
    fiber: Optional[int] = None
    ingredients: List[str] = Field(default_factory=list)
    preparation: Optional[str] = None
    swaps: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class NutritionPlan(BaseModel):
    calories_target: int
    macro_split: MacroSplit
    hydration_ml: int
    meals: List[NutritionMeal] = Field(default_factory=list)
    snacks: List[NutritionMeal] = Field(default_factory=list)
    supplements: List[str] = Field(default_factory=list)
    guidance: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


# ============ Lifestyle ============

class SleepPlan(BaseModel):
    target_hours: float = 7.0
    wind_down_rituals: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class LifestylePlan(BaseModel):
    sleep: SleepPlan = Field(default_factory=SleepPlan)
    mood_support: List[str] = Field(default_factory=list)
    recovery_focus: List[str] = Field(default_factory=list)
    micro_habits: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


# ============ Aggregates ============

class BasePlan(BaseModel):
    """The three plan sections produced locally and blended with external output."""
    workout_plan: WorkoutPlan
    nutrition_plan: NutritionPlan
    lifestyle_plan: LifestylePlan

    model_config = ConfigDict(frozen=True)


class PersonalizedPlan(BaseModel):
    id: Optional[str] = None
    user_id: str
    version: int = 1
    source: PlanSource = "fallback"
    generated_reason: str = "initial"
    workout_plan: WorkoutPlan
    nutrition_plan: NutritionPlan
    lifestyle_plan: LifestylePlan
    readiness_score: Optional[float] = Field(default=None, ge=0, le=100)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============ External collaborators ============

class ExternalExercise(BaseModel):
    name: str
    type: Optional[str] = None
    muscle: Optional[str] = None
    equipment: Optional[str] = None
    difficulty: Optional[str] = None
    instructions: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class ExternalNutritionPlan(BaseModel):
    """Partial nutrition plan from the external planner; unset fields defer to the fallback."""
    calories_target: Optional[int] = None
    macro_split: Optional[MacroSplit] = None
    hydration_ml: Optional[int] = None
    meals: List[NutritionMeal] = Field(default_factory=list)
    snacks: List[NutritionMeal] = Field(default_factory=list)
    supplements: Optional[List[str]] = None
    guidance: List[str] = Field(default_factory=list)


class ExternalLifestylePlan(BaseModel):
    sleep: Optional[SleepPlan] = None
    mood_support: List[str] = Field(default_factory=list)
    recovery_focus: List[str] = Field(default_factory=list)
    micro_habits: List[str] = Field(default_factory=list)


class ExternalPlanTranslation(BaseModel):
    workout_plan: Optional[WorkoutPlan] = None
    nutrition_plan: Optional[ExternalNutritionPlan] = None
    lifestyle_plan: Optional[ExternalLifestylePlan] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def has_schedule(self) -> bool:
        return bool(self.workout_plan and self.workout_plan.schedule)


# ============ API payloads ============

class GeneratePlanRequest(BaseModel):
    reason: str = Field("initial personalized plan", description="Why the plan is being (re)generated")
    metadata: Optional[Dict[str, Any]] = Field(None, description="Caller-supplied metadata, e.g. readiness_score")


class NutritionAdjustRequest(BaseModel):
    foods: List[str] = Field(default_factory=list, description="Foods to add as snacks")
    purpose: str = Field("custom tweak", description="Why the foods are being added")


class IntakeRequest(BaseModel):
    """Partial profile update from the onboarding intake."""
    gender: Optional[str] = None
    age: Optional[int] = None
    height_cm: Optional[float] = None
    weight_kg: Optional[float] = None
    primary_goal: Optional[str] = None
    secondary_goal: Optional[str] = None
    experience_level: Optional[str] = None
    activity_level: Optional[str] = None
    dietary_preference: Optional[str] = None
    dietary_restrictions: Optional[List[str]] = None
    allergies: Optional[List[str]] = None
    favorite_foods: Optional[List[str]] = None
    avoid_foods: Optional[List[str]] = None
    available_equipment: Optional[List[str]] = None
    workout_environment: Optional[str] = None
    daily_calorie_target: Optional[int] = None
    daily_water_target_ml: Optional[int] = None
    sleep_target_hours: Optional[float] = None
    stress_level: Optional[str] = None
    mood_tags: Optional[List[str]] = None
    sleep_challenges: Optional[List[str]] = None
    support_expectations: Optional[str] = None


class PlanResponse(BaseModel):
    plan: PersonalizedPlan


class ProfileResponse(BaseModel):
    user: UserProfile
