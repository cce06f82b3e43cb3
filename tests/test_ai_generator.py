"""Tests for the AI plan generator: decoding, validation and fallback."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from openai import OpenAIError

from finlit_coach.curriculum.ai_generator import (
    AIPlanGenerator,
    decode_plan_text,
    strip_code_fences,
    validate_plan_payload,
)
from finlit_coach.curriculum.prompts import build_plan_prompt
from finlit_coach.errors import GenerationError, PlanDecodeError, PlanValidationError
from finlit_coach.models.profile import OnboardingAnswers


def ai_payload(lesson_count: int = 5, with_quiz: bool = True) -> dict:
    lessons = []
    for i in range(1, lesson_count + 1):
        lesson = {
            "id": str(i),
            "title": f"Lesson {i}",
            "description": "Two sentences. About money.",
            "category": "Budgeting",
            "difficulty": 2,
            "estimatedMinutes": 10,
            "content": "Some culturally relevant content.",
            "why": "Because it matters.",
        }
        if with_quiz:
            lesson["quiz"] = [
                {
                    "id": f"{i}-{j}",
                    "question": "Pick one",
                    "options": ["w", "x", "y", "z"],
                    "correctAnswer": "x",
                    "explanation": "x is right.",
                }
                for j in range(1, 4)
            ]
        lessons.append(lesson)
    return {
        "lessons": lessons,
        "personalizedMessage": "Hello from the model",
        "estimatedCompletionWeeks": 3,
    }


def completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def answers() -> OnboardingAnswers:
    return OnboardingAnswers(
        country="Canada",
        language="en",
        age_group="25-34",
        income_range="30k_60k",
        cultural_value="family first",
        financial_goals="pay off debt and invest",
    )


@pytest.fixture
def generator() -> AIPlanGenerator:
    return AIPlanGenerator(api_key="test-key", timeout_seconds=0.5)


class TestDecodePlanText:
    def test_plain_json(self):
        assert decode_plan_text('{"lessons": []}') == {"lessons": []}

    def test_strips_json_fence(self):
        text = '```json\n{"lessons": [1]}\n```'
        assert decode_plan_text(text) == {"lessons": [1]}

    def test_strips_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_double_encoded(self):
        payload = ai_payload()
        assert decode_plan_text(json.dumps(json.dumps(payload))) == payload

    def test_double_encoded_with_fence_inside(self):
        inner = '```json\n{"a": 1}\n```'
        assert decode_plan_text(json.dumps(inner)) == {"a": 1}

    def test_malformed(self):
        with pytest.raises(PlanDecodeError):
            decode_plan_text('{"lessons": [}')

    def test_malformed_second_stage(self):
        with pytest.raises(PlanDecodeError):
            decode_plan_text(json.dumps("{not json"))

    def test_empty(self):
        with pytest.raises(PlanDecodeError):
            decode_plan_text("")
        with pytest.raises(PlanDecodeError):
            decode_plan_text(None)

    def test_non_object(self):
        with pytest.raises(PlanDecodeError):
            decode_plan_text("[1, 2, 3]")


class TestValidatePlanPayload:
    def test_valid_payload(self):
        plan = validate_plan_payload(ai_payload(), language="fr")
        assert len(plan.lessons) == 5
        assert plan.source == "ai"
        assert plan.language == "fr"
        assert plan.personalized_message == "Hello from the model"
        assert plan.estimated_completion_weeks == 3

    def test_missing_quiz_gets_placeholder(self):
        plan = validate_plan_payload(ai_payload(with_quiz=False))
        for lesson in plan.lessons:
            assert len(lesson.quiz) == 3
            assert lesson.quiz[0].id == f"{lesson.id}-1"
            assert lesson.quiz[0].correct_answer == "Option A"

    def test_bad_answer_gets_placeholder(self):
        payload = ai_payload()
        payload["lessons"][2]["quiz"][1]["correctAnswer"] = "not an option"
        plan = validate_plan_payload(payload)
        assert plan.lessons[2].quiz[0].question == "What is the main concept of this lesson?"
        assert plan.lessons[0].quiz[0].question == "Pick one"

    def test_missing_lessons(self):
        with pytest.raises(PlanValidationError):
            validate_plan_payload({"personalizedMessage": "hi"})
        with pytest.raises(PlanValidationError):
            validate_plan_payload({"lessons": []})

    def test_bad_category(self):
        payload = ai_payload()
        payload["lessons"][0]["category"] = "Crypto"
        with pytest.raises(PlanValidationError):
            validate_plan_payload(payload)

    def test_weeks_default_from_lesson_count(self):
        payload = ai_payload()
        del payload["estimatedCompletionWeeks"]
        assert validate_plan_payload(payload).estimated_completion_weeks == 3


class TestPrompt:
    def test_prompt_includes_profile_and_count(self, answers):
        prompt = build_plan_prompt(answers, 5)
        assert "Country: Canada" in prompt
        assert "Financial Goals: pay off debt and invest" in prompt
        assert "Generate exactly 5 lessons" in prompt
        assert "Real Estate" in prompt
        assert '"correctAnswer": "Money earned"' in prompt


class TestAIPlanGenerator:
    async def test_uses_model_output(self, generator, answers):
        mock_create = AsyncMock(return_value=completion(json.dumps(ai_payload())))
        with patch.object(generator.client.chat.completions, "create", new=mock_create):
            plan = await generator.generate(answers)
        assert plan.source == "ai"
        assert len(plan.lessons) == 5
        kwargs = mock_create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["model"] == "gpt-4o-mini"

    async def test_double_encoded_output(self, generator, answers):
        text = json.dumps(json.dumps(ai_payload()))
        with patch.object(
            generator.client.chat.completions, "create",
            new=AsyncMock(return_value=completion(text)),
        ):
            plan = await generator.generate(answers)
        assert plan.source == "ai"

    async def test_malformed_output_falls_back(self, generator, answers):
        with patch.object(
            generator.client.chat.completions, "create",
            new=AsyncMock(return_value=completion("Sure! Here is your plan: {")),
        ):
            plan = await generator.generate(answers)
        assert plan.source == "template"
        assert len(plan.lessons) == 10
        assert plan.lessons[4].why == "This directly addresses your goal of managing debt."

    async def test_api_error_falls_back(self, generator, answers):
        with patch.object(
            generator.client.chat.completions, "create",
            new=AsyncMock(side_effect=OpenAIError("rate limited")),
        ):
            plan = await generator.generate(answers)
        assert plan.source == "template"

    async def test_timeout_falls_back(self, answers):
        generator = AIPlanGenerator(api_key="test-key", timeout_seconds=0.01)

        async def slow(**kwargs):
            await asyncio.sleep(1)

        with patch.object(generator.client.chat.completions, "create", new=slow):
            plan = await generator.generate(answers)
        assert plan.source == "template"

    async def test_no_choices_falls_back(self, generator, answers):
        with patch.object(
            generator.client.chat.completions, "create",
            new=AsyncMock(return_value=SimpleNamespace(choices=[])),
        ):
            plan = await generator.generate(answers)
        assert plan.source == "template"

    async def test_request_plan_raises(self, generator, answers):
        with patch.object(
            generator.client.chat.completions, "create",
            new=AsyncMock(return_value=completion('{"lessons": "nope"}')),
        ):
            with pytest.raises(GenerationError):
                await generator.request_plan(answers)
