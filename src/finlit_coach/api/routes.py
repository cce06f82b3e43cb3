"""REST API routes for profiles, onboarding, lessons and quizzes."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from finlit_coach.config import get_settings
from finlit_coach.curriculum.catalog import lesson_content
from finlit_coach.curriculum.service import PlanService, build_plan_generator, complete_onboarding
from finlit_coach.learning.quiz_engine import grade_answers
from finlit_coach.learning.tracker import ProgressTracker
from finlit_coach.learning.unlock import is_locked, lesson_cards
from finlit_coach.models.plan import LearningPlan
from finlit_coach.models.profile import OnboardingAnswers, ProfilePatch
from finlit_coach.storage.files import safe_key
from finlit_coach.storage.profile_store import load_profile, update_profile

logger = structlog.get_logger()
router = APIRouter(prefix="/api")

_plan_service: PlanService | None = None


class QuizSubmission(BaseModel):
    answers: list[str]


def get_user_id(x_user_id: Annotated[str, Header()]) -> str:
    try:
        return safe_key(x_user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid user ID format")


def get_plan_service() -> PlanService:
    global _plan_service
    if _plan_service is None:
        _plan_service = PlanService(build_plan_generator(get_settings()))
    return _plan_service


def get_tracker() -> ProgressTracker:
    settings = get_settings()
    return ProgressTracker(settings.data_dir, settings.monotonic_completion)


UserId = Annotated[str, Depends(get_user_id)]
Tracker = Annotated[ProgressTracker, Depends(get_tracker)]


def _require_plan(user_id: str) -> LearningPlan:
    plan = load_profile(get_settings().data_dir, user_id).current_plan
    if plan is None:
        raise HTTPException(status_code=404, detail="No learning plan yet, complete onboarding first")
    return plan


def _open_lesson_index(plan: LearningPlan, lesson_id: str, completed: set[str]) -> int:
    index = plan.index_of(lesson_id)
    if index < 0:
        raise HTTPException(status_code=404, detail="Lesson not found")
    if is_locked(plan.lessons, completed, index):
        raise HTTPException(status_code=403, detail="Complete the previous lesson first")
    return index


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/profile")
async def get_profile(user_id: UserId) -> dict:
    """Current user's profile."""
    return load_profile(get_settings().data_dir, user_id).model_dump(mode="json", by_alias=True)


@router.patch("/profile")
async def patch_profile(user_id: UserId, patch: ProfilePatch) -> dict:
    """Merge-patch the user's profile."""
    changes = patch.model_dump(exclude_unset=True)
    data_dir = get_settings().data_dir
    if changes:
        profile = update_profile(data_dir, user_id, changes)
    else:
        profile = load_profile(data_dir, user_id)
    return profile.model_dump(mode="json", by_alias=True)


@router.post("/onboarding")
async def onboarding(
    user_id: UserId,
    answers: OnboardingAnswers,
    service: Annotated[PlanService, Depends(get_plan_service)],
) -> dict:
    """Generate the user's learning plan from onboarding answers and store it."""
    data_dir = get_settings().data_dir
    if load_profile(data_dir, user_id).current_plan is not None:
        raise HTTPException(status_code=409, detail="Learning plan already exists")
    profile = await complete_onboarding(data_dir, user_id, answers, service)
    return {
        "plan": profile.current_plan.to_wire(),
        "profile": profile.model_dump(mode="json", by_alias=True),
    }


@router.get("/plan")
async def get_plan(user_id: UserId, tracker: Tracker) -> dict:
    """Plan with per-lesson completion and lock state for the dashboard."""
    plan = _require_plan(user_id)
    completed = tracker.completed_ids(user_id)
    cards = lesson_cards(plan.lessons, completed)
    return {
        "plan": plan.to_wire(),
        "lessons": [card.model_dump(mode="json", by_alias=True) for card in cards],
        "completedCount": sum(card.completed for card in cards),
        "totalCount": len(cards),
    }


@router.get("/lessons/{lesson_id}")
async def get_lesson(lesson_id: str, user_id: UserId, tracker: Tracker) -> dict:
    """A single open lesson with its body text."""
    plan = _require_plan(user_id)
    completed = tracker.completed_ids(user_id)
    index = _open_lesson_index(plan, lesson_id, completed)
    lesson = plan.lessons[index]
    data = lesson.to_wire()
    data["content"] = lesson_content(lesson)
    data["completed"] = lesson_id in completed
    data["hasQuiz"] = lesson.has_quiz
    return data


@router.post("/lessons/{lesson_id}/complete")
async def complete_lesson(lesson_id: str, user_id: UserId, tracker: Tracker) -> dict:
    """Mark a lesson completed without a quiz."""
    plan = _require_plan(user_id)
    _open_lesson_index(plan, lesson_id, tracker.completed_ids(user_id))
    change = tracker.complete_lesson(user_id, lesson_id)
    return {
        "progress": change.progress.model_dump(mode="json"),
        "pointsAwarded": change.points_awarded,
    }


@router.post("/lessons/{lesson_id}/quiz")
async def submit_quiz(
    lesson_id: str,
    submission: QuizSubmission,
    user_id: UserId,
    tracker: Tracker,
) -> dict:
    """Grade a full set of quiz answers and record the score."""
    plan = _require_plan(user_id)
    index = _open_lesson_index(plan, lesson_id, tracker.completed_ids(user_id))
    session = grade_answers(plan.lessons[index].quiz, submission.answers)
    score = session.finish()
    change = tracker.submit_quiz(user_id, lesson_id, score)
    return {
        "score": score,
        "passed": session.passed,
        "correct": session.correct_count,
        "total": session.total_questions,
        "results": session.answers,
        "progress": change.progress.model_dump(mode="json"),
        "pointsAwarded": change.points_awarded,
    }


@router.get("/progress")
async def list_progress(user_id: UserId, tracker: Tracker) -> list[dict]:
    """All progress rows for the user."""
    return [row.model_dump(mode="json") for row in tracker.all(user_id)]
