from sqlalchemy import Column, Integer, Boolean, CheckConstraint, Float, DateTime, ForeignKey, Text, String, Index, JSON
from sqlalchemy.dialects.postgresql import JSONB
from core.database import Base
import uuid
from datetime import datetime, timezone

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfileRecord(Base):
    __tablename__ = "user_profile"

    id = Column(String(36), primary_key=True, default=_new_id)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)
    full_name = Column(Text, nullable=True)
    email = Column(Text, unique=True, nullable=True)

    # --- BODY METRICS ---
    gender = Column(Text, nullable=True)
    age = Column(Integer, nullable=True)
    height_cm = Column(Float, nullable=True)
    weight_kg = Column(Float, nullable=True)
    target_weight = Column(Float, nullable=True)
    body_type = Column(Text, nullable=True)

    # --- GOALS ---
    primary_goal = Column(Text, nullable=True)
    secondary_goal = Column(Text, nullable=True)
    fitness_goal = Column(Text, nullable=True)  # legacy single-goal field
    experience_level = Column(Text, nullable=True)
    activity_level = Column(Text, nullable=True)

    # --- NUTRITION ---
    dietary_preference = Column(Text, nullable=True)
    dietary_restrictions = Column(JSONType, nullable=False, default=list)
    allergies = Column(JSONType, nullable=False, default=list)
    favorite_foods = Column(JSONType, nullable=False, default=list)
    avoid_foods = Column(JSONType, nullable=False, default=list)
    preferred_cuisines = Column(JSONType, nullable=False, default=list)

    # --- TRAINING ENVIRONMENT ---
    available_equipment = Column(JSONType, nullable=False, default=list)
    workout_environment = Column(Text, nullable=True)
    preferred_training_time = Column(Text, nullable=True)

    # --- EXPLICIT TARGETS (null/0 = compute) ---
    daily_calorie_target = Column(Integer, nullable=True)
    daily_protein_target = Column(Integer, nullable=True)
    daily_carbs_target = Column(Integer, nullable=True)
    daily_fat_target = Column(Integer, nullable=True)
    daily_water_target_ml = Column(Integer, nullable=True)
    sleep_target_hours = Column(Float, nullable=True)

    # --- WELLBEING ---
    stress_level = Column(Text, nullable=True)
    mood_tags = Column(JSONType, nullable=False, default=list)
    sleep_challenges = Column(JSONType, nullable=False, default=list)
    injuries = Column(JSONType, nullable=False, default=list)
    medical_conditions = Column(JSONType, nullable=False, default=list)
    support_expectations = Column(Text, nullable=True)
    profile_completed = Column(Boolean, default=False, nullable=False)


class MoodLog(Base):
    __tablename__ = "mood_log"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("user_profile.id"), nullable=False)
    mood = Column(Text, nullable=False, default="balanced")
    custom_mood = Column(Text, nullable=True)
    energy_level = Column(Text, nullable=True)  # low | moderate | high
    stress_level = Column(Text, nullable=True)
    motivation_level = Column(Text, nullable=True)
    soreness_level = Column(Text, nullable=True)
    tags = Column(JSONType, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("ix_mood_log_user_created", "user_id", "created_at"),
    )


class PersonalizedPlanRecord(Base):
    """
    One generated plan document.

    Several rows may exist per user; the current plan is the most recently
    updated one. Plan sections are stored as JSON blobs in the shape of the
    pydantic plan models.
    """
    __tablename__ = "personalized_plan"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("user_profile.id"), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    source = Column(Text, nullable=False, default="fallback")
    generated_reason = Column(Text, nullable=False, default="initial")
    workout_plan = Column(JSONType, nullable=False)
    nutrition_plan = Column(JSONType, nullable=False)
    lifestyle_plan = Column(JSONType, nullable=False)
    readiness_score = Column(Float, nullable=True)
    # "metadata" is reserved on declarative classes
    plan_metadata = Column("metadata", JSONType, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("source IN ('external', 'fallback', 'hybrid')", name="ck_personalized_plan_source"),
        CheckConstraint(
            "readiness_score IS NULL OR (readiness_score >= 0 AND readiness_score <= 100)",
            name="ck_personalized_plan_readiness_range",
        ),
        Index("ix_personalized_plan_user_updated", "user_id", "updated_at"),
    )
