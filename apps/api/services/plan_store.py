"""
Persistence collaborators for plan generation.

The orchestrator depends only on the async protocols below; the SQLAlchemy
implementations are what the HTTP layer wires in. Every SQLAlchemy error is
rolled back and re-raised as PersistenceFailureError.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, PersistenceFailureError
from models import MoodLog, PersonalizedPlanRecord, UserProfileRecord
from schemas import MoodSnapshot, PersonalizedPlan, UserProfile

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    async def get(self, user_id: str) -> UserProfile: ...


class MoodStore(Protocol):
    async def list_recent(self, user_id: str, limit: int = 5) -> List[MoodSnapshot]: ...


class PlanStore(Protocol):
    async def create(self, plan: PersonalizedPlan) -> PersonalizedPlan: ...

    async def latest(self, user_id: str) -> Optional[PersonalizedPlan]: ...

    async def save(self, plan: PersonalizedPlan) -> PersonalizedPlan: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _SqlStore:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, error: SQLAlchemyError) -> PersistenceFailureError:
        self.db.rollback()
        logger.error(
            f"Database error during {operation}: {error}",
            extra={"extra_fields": {"operation": operation}},
        )
        return PersistenceFailureError(operation, str(error.__class__.__name__))


# =============================================================================
# PROFILES
# =============================================================================

PROFILE_FIELDS = tuple(f for f in UserProfile.model_fields if f != "id")


class SqlProfileStore(_SqlStore):
    async def get(self, user_id: str) -> UserProfile:
        try:
            record = self.db.get(UserProfileRecord, user_id)
        except SQLAlchemyError as e:
            raise self._fail("get_profile", e) from e
        if record is None:
            raise NotFoundError("User", user_id)
        return UserProfile.model_validate(record, from_attributes=True)

    async def upsert(self, user_id: str, fields: Dict[str, Any]) -> UserProfile:
        """Apply ``fields`` to the profile (creating it if needed) and mark it completed."""
        try:
            record = self.db.get(UserProfileRecord, user_id)
            if record is None:
                record = UserProfileRecord(id=user_id)
                self.db.add(record)
            for name, value in fields.items():
                if name in PROFILE_FIELDS and value is not None:
                    setattr(record, name, value)
            record.profile_completed = True
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("upsert_profile", e) from e

        logger.info(
            "Profile intake saved",
            extra={"extra_fields": {"user_id": user_id, "fields": sorted(fields)}},
        )
        return UserProfile.model_validate(record, from_attributes=True)


# =============================================================================
# MOODS
# =============================================================================

class SqlMoodStore(_SqlStore):
    async def list_recent(self, user_id: str, limit: int = 5) -> List[MoodSnapshot]:
        """Newest-first mood check-ins for ``user_id``."""
        try:
            rows = (
                self.db.query(MoodLog)
                .filter(MoodLog.user_id == user_id)
                .order_by(MoodLog.created_at.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("list_moods", e) from e
        return [MoodSnapshot.model_validate(row, from_attributes=True) for row in rows]


# =============================================================================
# PLANS
# =============================================================================

def _to_plan(record: PersonalizedPlanRecord) -> PersonalizedPlan:
    return PersonalizedPlan(
        id=record.id,
        user_id=record.user_id,
        version=record.version,
        source=record.source,
        generated_reason=record.generated_reason,
        workout_plan=record.workout_plan,
        nutrition_plan=record.nutrition_plan,
        lifestyle_plan=record.lifestyle_plan,
        readiness_score=record.readiness_score,
        metadata=record.plan_metadata or {},
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _document(plan: PersonalizedPlan) -> Dict[str, Any]:
    data = plan.model_dump(mode="json")
    return {
        "version": data["version"],
        "source": data["source"],
        "generated_reason": data["generated_reason"],
        "workout_plan": data["workout_plan"],
        "nutrition_plan": data["nutrition_plan"],
        "lifestyle_plan": data["lifestyle_plan"],
        "readiness_score": data["readiness_score"],
        "plan_metadata": data["metadata"],
    }


class SqlPlanStore(_SqlStore):
    async def create(self, plan: PersonalizedPlan) -> PersonalizedPlan:
        now = _utcnow()
        record = PersonalizedPlanRecord(
            id=plan.id or str(uuid.uuid4()),
            user_id=plan.user_id,
            created_at=now,
            updated_at=now,
            **_document(plan),
        )
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("create_plan", e) from e
        return _to_plan(record)

    async def latest(self, user_id: str) -> Optional[PersonalizedPlan]:
        try:
            record = (
                self.db.query(PersonalizedPlanRecord)
                .filter(PersonalizedPlanRecord.user_id == user_id)
                .order_by(PersonalizedPlanRecord.updated_at.desc(), PersonalizedPlanRecord.created_at.desc())
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("latest_plan", e) from e
        return _to_plan(record) if record is not None else None

    async def save(self, plan: PersonalizedPlan) -> PersonalizedPlan:
        if not plan.id:
            return await self.create(plan)
        try:
            record = self.db.get(PersonalizedPlanRecord, plan.id)
            if record is None:
                raise NotFoundError("PersonalizedPlan", plan.id)
            for name, value in _document(plan).items():
                setattr(record, name, value)
            record.updated_at = _utcnow()
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise self._fail("save_plan", e) from e
        return _to_plan(record)
