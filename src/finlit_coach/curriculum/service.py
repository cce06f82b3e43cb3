"""Plan generation entry points: generator selection, per-user guard, onboarding."""

from pathlib import Path
from typing import Protocol

import structlog
from pydantic import ValidationError

from finlit_coach.config import Settings
from finlit_coach.curriculum.ai_generator import AIPlanGenerator
from finlit_coach.curriculum.template_generator import TemplatePlanGenerator
from finlit_coach.errors import GenerationError, GenerationInProgressError
from finlit_coach.models.plan import LearningPlan
from finlit_coach.models.profile import OnboardingAnswers, UserProfile
from finlit_coach.storage.profile_store import update_profile

logger = structlog.get_logger()


class PlanGenerator(Protocol):
    async def generate(self, answers: OnboardingAnswers) -> LearningPlan: ...


def build_plan_generator(settings: Settings) -> PlanGenerator:
    """AI generator when an API key is configured, template generator otherwise."""
    if not settings.openai_api_key:
        logger.info("plan_generator_selected", generator="template")
        return TemplatePlanGenerator()
    logger.info("plan_generator_selected", generator="ai", model=settings.plan_model)
    return AIPlanGenerator(
        api_key=settings.openai_api_key,
        model=settings.plan_model,
        lesson_count=settings.plan_lesson_count,
        timeout_seconds=settings.plan_timeout_seconds,
        temperature=settings.plan_temperature,
        max_tokens=settings.plan_max_tokens,
    )


class PlanService:
    """Runs plan generation with at most one request in flight per user."""

    def __init__(self, generator: PlanGenerator):
        self.generator = generator
        self._in_progress: set[str] = set()

    def is_generating(self, user_id: str) -> bool:
        return user_id in self._in_progress

    async def generate_for_user(self, user_id: str, answers: OnboardingAnswers) -> LearningPlan:
        """Generate a plan for one user.

        Raises:
            GenerationInProgressError: A request for this user is already running.
            GenerationError: Both the AI path and the fallback failed.
        """
        if user_id in self._in_progress:
            raise GenerationInProgressError(user_id)
        self._in_progress.add(user_id)
        try:
            plan = await self.generator.generate(answers)
        except GenerationError:
            raise
        except (OSError, KeyError, ValidationError) as e:
            logger.exception("plan_generation_failed", user_id=user_id)
            raise GenerationError(f"plan generation failed: {e}") from e
        finally:
            self._in_progress.discard(user_id)

        logger.info(
            "plan_generated",
            user_id=user_id,
            source=plan.source,
            lesson_count=len(plan.lessons),
        )
        return plan


async def complete_onboarding(
    data_dir: Path,
    user_id: str,
    answers: OnboardingAnswers,
    service: PlanService,
) -> UserProfile:
    """Generate a plan from onboarding answers and store it in the profile."""
    plan = await service.generate_for_user(user_id, answers)
    return update_profile(
        data_dir,
        user_id,
        {
            "income_range": answers.income_range,
            "financial_goals": answers.financial_goals,
            "onboarding": answers,
            "learning_plan": [plan],
        },
    )
