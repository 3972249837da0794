"""
Personalization API Router

Endpoints for:
- Reading the user's current plan
- Generating a new plan (local engine + optional external planner)
- Adding user-requested foods to the current nutrition plan
- Saving onboarding intake answers to the profile

All plan logic lives in services.personalization; handlers only delegate.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.exceptions import NotFoundError
from schemas import (
    GeneratePlanRequest,
    IntakeRequest,
    NutritionAdjustRequest,
    PlanResponse,
    ProfileResponse,
)
from services.exercise_enricher import ExerciseSearchClient
from services.external_planner import ExternalPlannerClient
from services.personalization import PersonalizationService
from services.plan_store import SqlMoodStore, SqlPlanStore, SqlProfileStore

router = APIRouter(prefix="/v1/personalization", tags=["Personalization"])


def get_personalization_service(db: Session = Depends(get_db)) -> PersonalizationService:
    return PersonalizationService(
        profile_store=SqlProfileStore(db),
        mood_store=SqlMoodStore(db),
        plan_store=SqlPlanStore(db),
        planner=ExternalPlannerClient.from_settings(),
        exercise_search=ExerciseSearchClient.from_settings(),
    )


@router.get("/{user_id}", response_model=PlanResponse)
async def get_current_plan(
    user_id: str,
    service: PersonalizationService = Depends(get_personalization_service),
):
    """Most recently updated plan for the user."""
    plan = await service.get_latest(user_id)
    if plan is None:
        raise NotFoundError("PersonalizedPlan", user_id)
    return PlanResponse(plan=plan)


@router.post("/{user_id}/generate", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def generate_plan(
    user_id: str,
    request: GeneratePlanRequest,
    service: PersonalizationService = Depends(get_personalization_service),
):
    plan = await service.generate(user_id, request.reason, metadata=request.metadata)
    return PlanResponse(plan=plan)


@router.post("/{user_id}/nutrition/adjust", response_model=PlanResponse)
async def adjust_nutrition(
    user_id: str,
    request: NutritionAdjustRequest,
    service: PersonalizationService = Depends(get_personalization_service),
):
    """Append foods as snacks; calorie and macro targets become the new totals."""
    plan = await service.adjust_nutrition(user_id, request.foods, request.purpose)
    return PlanResponse(plan=plan)


@router.post("/{user_id}/intake", response_model=ProfileResponse)
async def save_intake(
    user_id: str,
    request: IntakeRequest,
    db: Session = Depends(get_db),
):
    """Merge intake answers into the profile and mark it completed."""
    profile = await SqlProfileStore(db).upsert(user_id, request.model_dump(exclude_none=True))
    return ProfileResponse(user=profile)
