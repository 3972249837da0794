"""
Tests for the personalization orchestrator

Collaborators are in-memory fakes; the external planner is a real client
pointed at an httpx.MockTransport.
"""
import random
from datetime import datetime, timezone

import httpx
import pytest

from core.exceptions import NotFoundError, PersistenceFailureError, PreconditionFailedError
from schemas import WEEK_DAYS
from services.external_planner import ExternalPlannerClient
from services.mood_adjuster import STRESS_GUIDANCE
from services.personalization import PersonalizationService

FIXED_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeProfileStore:
    def __init__(self, *profiles):
        self.profiles = {p.id: p for p in profiles}

    async def get(self, user_id):
        if user_id not in self.profiles:
            raise NotFoundError("User", user_id)
        return self.profiles[user_id]


class FakeMoodStore:
    def __init__(self, moods=None):
        self.moods = moods or []
        self.calls = []

    async def list_recent(self, user_id, limit=5):
        self.calls.append((user_id, limit))
        return self.moods[:limit]


class FakePlanStore:
    def __init__(self):
        self.plans = []

    async def create(self, plan):
        stored = plan.model_copy(update={
            "id": f"plan-{len(self.plans) + 1}",
            "created_at": FIXED_NOW,
            "updated_at": FIXED_NOW,
        })
        self.plans.append(stored)
        return stored

    async def latest(self, user_id):
        mine = [p for p in self.plans if p.user_id == user_id]
        return mine[-1] if mine else None

    async def save(self, plan):
        self.plans = [p for p in self.plans if p.id != plan.id] + [plan]
        return plan


class FailingPlanStore(FakePlanStore):
    async def create(self, plan):
        raise PersistenceFailureError("create_plan", "OperationalError")


def _planner(body, status_code=200):
    return ExternalPlannerClient(
        url="https://planner.test/plan",
        api_key="k",
        transport=httpx.MockTransport(lambda request: httpx.Response(status_code, json=body)),
    )


EXTERNAL_PLAN = {
    "focus_summary": "AI strength block",
    "schedule": [
        {"day": "Monday", "focus": "Lower", "sessions": [
            {"name": "Squat Day", "focus": "lower_strength", "duration_minutes": 50, "intensity": "high",
             "exercises": [{"name": "Back Squat", "sets": 5, "reps": 5}]},
        ]},
    ],
    "nutrition_plan": {"meals": [{"name": "AI Oats", "meal_type": "breakfast", "calories": 480}]},
    "metadata": {"model": "planner-v2"},
}


@pytest.fixture
def make_service(sample_profile):
    def _make(moods=None, planner=None, plan_store=None, rng_value=None):
        rng = random.Random(1)
        if rng_value is not None:
            rng.random = lambda: rng_value
        return PersonalizationService(
            profile_store=FakeProfileStore(sample_profile),
            mood_store=FakeMoodStore(moods),
            plan_store=plan_store or FakePlanStore(),
            planner=planner,
            exercise_search=None,
            rng=rng,
        )
    return _make


class TestGenerate:
    @pytest.mark.asyncio
    async def test_unknown_user_raises_not_found(self, make_service):
        with pytest.raises(NotFoundError):
            await make_service().generate("nobody", "initial")

    @pytest.mark.asyncio
    async def test_fallback_only(self, make_service):
        """No planner configured -> complete local plan, source fallback"""
        service = make_service(rng_value=0.5)

        plan = await service.generate("user-1", "initial personalized plan")

        assert plan.id == "plan-1"
        assert plan.source == "fallback"
        assert plan.version == 1
        assert plan.generated_reason == "initial personalized plan"
        assert tuple(d.day for d in plan.workout_plan.schedule) == WEEK_DAYS
        assert plan.readiness_score == 85.0
        assert "generated_at" in plan.metadata
        assert plan.metadata["moods_used"] == []
        assert "external_source" not in plan.metadata

    @pytest.mark.asyncio
    async def test_mood_store_queried_with_lookback_limit(self, make_service):
        service = make_service()
        await service.generate("user-1", "initial")
        assert service.mood_store.calls == [("user-1", 5)]

    @pytest.mark.asyncio
    async def test_hybrid_when_external_schedule(self, make_service):
        plan = await make_service(planner=_planner(EXTERNAL_PLAN)).generate("user-1", "refresh")

        assert plan.source == "hybrid"
        assert plan.workout_plan.focus_summary == "AI strength block"
        assert [d.day for d in plan.workout_plan.schedule] == ["Monday"]
        assert plan.nutrition_plan.meals[0].name == "AI Oats"
        assert plan.metadata["external_source"] == "ai-workout-planner"
        assert plan.metadata["external_metadata"] == {"model": "planner-v2"}

    @pytest.mark.asyncio
    async def test_empty_external_schedule_is_fallback(self, make_service):
        """{schedule: []} -> fallback schedule, source fallback"""
        plan = await make_service(planner=_planner({"schedule": []})).generate("user-1", "refresh")

        assert plan.source == "fallback"
        assert tuple(d.day for d in plan.workout_plan.schedule) == WEEK_DAYS
        assert "external_source" not in plan.metadata

    @pytest.mark.asyncio
    async def test_planner_outage_degrades(self, make_service):
        plan = await make_service(planner=_planner({"error": "down"}, status_code=502)).generate("user-1", "refresh")
        assert plan.source == "fallback"
        assert len(plan.workout_plan.schedule) == 7

    @pytest.mark.asyncio
    async def test_misconfigured_planner_url_degrades(self, make_service):
        planner = ExternalPlannerClient(url="http://[::1/plan", api_key="k")
        plan = await make_service(planner=planner).generate("user-1", "refresh")
        assert plan.source == "fallback"
        assert tuple(d.day for d in plan.workout_plan.schedule) == WEEK_DAYS

    @pytest.mark.asyncio
    async def test_loose_external_fields_still_hybrid(self, make_service):
        body = {"schedule": [{"day": "Monday", "sessions": [
            {"name": "Push", "exercises": [{"name": "Bench", "sets": 4, "reps": "8-12"}]},
        ]}]}
        plan = await make_service(planner=_planner(body)).generate("user-1", "refresh")

        assert plan.source == "hybrid"
        bench = plan.workout_plan.schedule[0].sessions[0].exercises[0]
        assert (bench.sets, bench.reps) == (4, 8)

    @pytest.mark.asyncio
    async def test_recent_stressed_mood_adjusts_plan(self, make_service, recent_mood):
        mood = recent_mood("stressed", stress_level="high")
        plan = await make_service(moods=[mood]).generate("user-1", "check-in")

        monday = plan.workout_plan.schedule[0]
        assert monday.sessions[0].intensity == "moderate"
        assert monday.sessions[0].guidance == STRESS_GUIDANCE
        assert plan.metadata["moods_used"][0]["mood"] == "stressed"

    @pytest.mark.asyncio
    async def test_caller_metadata_honoured(self, make_service):
        plan = await make_service().generate(
            "user-1", "coach override", metadata={"readiness_score": 55, "version": 3, "coach": "sam"},
        )
        assert plan.readiness_score == 55.0
        assert plan.version == 3
        assert plan.metadata["coach"] == "sam"

    @pytest.mark.asyncio
    async def test_persistence_failure_propagates(self, make_service):
        with pytest.raises(PersistenceFailureError):
            await make_service(plan_store=FailingPlanStore()).generate("user-1", "initial")


class TestAdjustNutrition:
    @pytest.mark.asyncio
    async def test_empty_foods_is_precondition_failure(self, make_service):
        """Checked before the plan lookup"""
        with pytest.raises(PreconditionFailedError):
            await make_service().adjust_nutrition("user-1", [], "test")

    @pytest.mark.asyncio
    async def test_no_plan_is_not_found(self, make_service):
        with pytest.raises(NotFoundError):
            await make_service().adjust_nutrition("user-1", ["oats"], "test")

    @pytest.mark.asyncio
    async def test_adjusts_latest_plan(self, make_service):
        service = make_service()
        generated = await service.generate("user-1", "initial")
        snacks_before = len(generated.nutrition_plan.snacks)

        adjusted = await service.adjust_nutrition("user-1", ["grilled chicken breast"], "test")

        nutrition = adjusted.nutrition_plan
        assert adjusted.id == generated.id
        assert len(nutrition.snacks) == snacks_before + 1
        assert nutrition.calories_target == sum(m.calories for m in nutrition.meals + nutrition.snacks)
        assert adjusted.workout_plan == generated.workout_plan
        assert adjusted.metadata["last_adjustment_reason"] == "test"
        assert adjusted.metadata["last_adjustment_foods"] == ["grilled chicken breast"]
        assert len(adjusted.metadata["adjustment_history"]) == 1
        assert "updated_at" in adjusted.metadata

    @pytest.mark.asyncio
    async def test_history_accumulates_and_purpose_defaults(self, make_service):
        service = make_service()
        await service.generate("user-1", "initial")

        await service.adjust_nutrition("user-1", ["tofu"], "")
        adjusted = await service.adjust_nutrition("user-1", ["quinoa"], None)

        history = adjusted.metadata["adjustment_history"]
        assert [h["foods"] for h in history] == [["tofu"], ["quinoa"]]
        assert adjusted.metadata["last_adjustment_reason"] == "personal preference"


class TestGetLatest:
    @pytest.mark.asyncio
    async def test_none_before_generation(self, make_service):
        assert await make_service().get_latest("user-1") is None

    @pytest.mark.asyncio
    async def test_returns_most_recent(self, make_service):
        service = make_service()
        await service.generate("user-1", "first")
        await service.generate("user-1", "second")
        assert (await service.get_latest("user-1")).generated_reason == "second"
