"""LLM-backed learning-plan generator with deterministic fallback."""

import asyncio
import json
import math
import re

import structlog
from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from finlit_coach.curriculum import catalog
from finlit_coach.curriculum.prompts import PLAN_SYSTEM_PROMPT, build_plan_prompt
from finlit_coach.curriculum.template_generator import TemplatePlanGenerator
from finlit_coach.errors import GenerationError, PlanDecodeError, PlanValidationError
from finlit_coach.models.plan import LearningPlan, QuizQuestion
from finlit_coach.models.profile import OnboardingAnswers

logger = structlog.get_logger()

_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```\s*$")


def strip_code_fences(text: str) -> str:
    """Remove a markdown code fence wrapped around the completion, if any."""
    text = _FENCE_OPEN.sub("", text, count=1)
    return _FENCE_CLOSE.sub("", text, count=1).strip()


def decode_plan_text(text: str | None) -> dict:
    """Decode completion text into a JSON object in two stages.

    Stage one parses the fence-stripped text. If that yields a string, the
    model double-encoded its answer and stage two parses the string once
    more. Anything other than an object at the end is rejected.

    Raises:
        PlanDecodeError: When either stage fails.
    """
    cleaned = strip_code_fences(text or "")
    if not cleaned:
        raise PlanDecodeError("empty completion")
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise PlanDecodeError(f"completion is not valid JSON: {e}") from e

    if isinstance(value, str):
        try:
            value = json.loads(strip_code_fences(value))
        except json.JSONDecodeError as e:
            raise PlanDecodeError(f"double-encoded completion is not valid JSON: {e}") from e

    if not isinstance(value, dict):
        raise PlanDecodeError(f"expected a JSON object, got {type(value).__name__}")
    return value


def _checked_quiz(lesson_id: str, quiz) -> list[QuizQuestion]:
    """Validated quiz for a lesson, or the placeholder quiz if it is unusable."""
    if not isinstance(quiz, list) or not quiz:
        logger.warning("lesson_quiz_missing", lesson_id=lesson_id)
        return catalog.placeholder_quiz(lesson_id)
    try:
        return [QuizQuestion.model_validate(q) for q in quiz]
    except ValidationError as e:
        logger.warning("lesson_quiz_invalid", lesson_id=lesson_id, errors=e.error_count())
        return catalog.placeholder_quiz(lesson_id)


def validate_plan_payload(payload: dict, language: str = "en") -> LearningPlan:
    """Turn a decoded payload into a LearningPlan, patching broken quizzes.

    Raises:
        PlanValidationError: If lessons are missing or structurally invalid.
    """
    lessons = payload.get("lessons")
    if not isinstance(lessons, list) or not lessons:
        raise PlanValidationError("missing lessons array")

    patched = []
    for index, raw in enumerate(lessons):
        if not isinstance(raw, dict):
            raise PlanValidationError(f"lesson {index + 1} is not an object")
        lesson_id = str(raw.get("id", index + 1))
        patched.append({**raw, "id": lesson_id, "quiz": _checked_quiz(lesson_id, raw.get("quiz"))})

    data = {
        **payload,
        "lessons": patched,
        "language": language,
        "source": "ai",
    }
    data.setdefault("estimatedCompletionWeeks", math.ceil(len(patched) / 2))
    try:
        return LearningPlan.model_validate(data)
    except ValidationError as e:
        raise PlanValidationError(str(e)) from e


class AIPlanGenerator:
    """Generates plans through the chat-completions API in JSON mode.

    Falls back to the template generator on any request, decode or
    validation failure, so ``generate`` does not raise GenerationError
    unless the fallback itself breaks.

    Args:
        api_key: OpenAI API key.
        model: Chat model for plan generation.
        lesson_count: Number of lessons to request.
        timeout_seconds: Upper bound on one completion request.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        lesson_count: int = 5,
        timeout_seconds: float = 30.0,
        temperature: float = 0.5,
        max_tokens: int = 4000,
        fallback: TemplatePlanGenerator | None = None,
    ):
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout_seconds)
        self.model = model
        self.lesson_count = lesson_count
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.fallback = fallback or TemplatePlanGenerator()

    async def request_plan(self, answers: OnboardingAnswers) -> LearningPlan:
        """Call the model once and decode its answer.

        Raises:
            GenerationError: On request failure, timeout, or unusable output.
        """
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": PLAN_SYSTEM_PROMPT},
                        {"role": "user", "content": build_plan_prompt(answers, self.lesson_count)},
                    ],
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                    response_format={"type": "json_object"},
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(f"plan request timed out after {self.timeout_seconds}s") from e
        except OpenAIError as e:
            raise GenerationError(f"plan request failed: {e}") from e

        if not response.choices:
            raise PlanDecodeError("completion has no choices")
        payload = decode_plan_text(response.choices[0].message.content)
        return validate_plan_payload(payload, language=catalog.resolve_locale(answers.language))

    async def generate(self, answers: OnboardingAnswers) -> LearningPlan:
        try:
            plan = await self.request_plan(answers)
        except GenerationError as e:
            logger.warning("plan_fallback", reason=str(e), error_type=type(e).__name__)
            return await self.fallback.generate(answers)
        logger.info("ai_plan_generated", model=self.model, lesson_count=len(plan.lessons))
        return plan
