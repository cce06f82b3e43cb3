"""Deterministic learning-plan generator built from the static curriculum tables."""

import math

import structlog

from finlit_coach.curriculum import catalog
from finlit_coach.models.plan import LearningPlan, Lesson
from finlit_coach.models.profile import IncomeRange, OnboardingAnswers

logger = structlog.get_logger()

INCOME_CLAUSE_LESSON_ID = "1"


def income_label(locale_table: dict, income_range: str | None) -> str:
    """Localized income bracket label; unknown brackets read as "not specified"."""
    labels = locale_table["income_labels"]
    return labels.get(income_range or "", labels[IncomeRange.PREFER_NOT_SAY.value])


def resolve_why(lesson_id: str, default: str, goals: str, overrides: dict[str, str]) -> str:
    """Pick the rationale for a lesson, honouring goal keyword overrides.

    Args:
        lesson_id: Template lesson id.
        default: Per-lesson default rationale.
        goals: Lower-cased free-text financial goals.
        overrides: Locale override texts keyed by trigger name.
    """
    why = default
    for trigger in catalog.why_triggers():
        if trigger["lesson_id"] != lesson_id:
            continue
        text = overrides.get(trigger["override"])
        if text and any(keyword in goals for keyword in trigger["keywords"]):
            why = text
    return why


def generate_template_plan(
    income_range: str | None,
    financial_goals: str | None,
    lang: str | None = "en",
) -> LearningPlan:
    """Build the ten-lesson template plan.

    Pure in (locale, income range, goals): the same inputs always give the
    same plan.

    Args:
        income_range: Income bracket key such as ``"30k_60k"``.
        financial_goals: Free-text goals; matched case-insensitively.
        lang: Requested locale; unsupported values fall back to English.

    Returns:
        LearningPlan with ``source="template"``.
    """
    locale = catalog.resolve_locale(lang)
    table = catalog.get_locale_table(locale)
    label = income_label(table, income_range)
    goals_text = financial_goals or ""
    goals = goals_text.lower()

    lessons = []
    for template in catalog.lesson_templates():
        lesson_id = template["id"]
        strings = table["lessons"][lesson_id]
        if lesson_id == INCOME_CLAUSE_LESSON_ID:
            why = table["income_clause"].format(
                income_label=label, why=strings["why_default"]
            )
        else:
            why = resolve_why(lesson_id, strings["why_default"], goals, table["why_overrides"])
        lessons.append(
            Lesson(
                id=lesson_id,
                title=strings["title"],
                description=strings["description"],
                category=template["category"],
                category_label=strings["category_label"],
                difficulty=template["difficulty"],
                estimated_minutes=template["estimated_minutes"],
                why=why,
                quiz=catalog.quiz_bank(lesson_id),
            )
        )

    return LearningPlan(
        lessons=lessons,
        personalized_message=table["personalized_message"].format(
            income_label=label, goals=goals_text
        ),
        estimated_completion_weeks=math.ceil(len(lessons) / 2),
        language=locale,
        source="template",
    )


class TemplatePlanGenerator:
    """Plan generator that never calls out and never fails."""

    async def generate(self, answers: OnboardingAnswers) -> LearningPlan:
        plan = generate_template_plan(
            answers.income_range, answers.financial_goals, answers.language
        )
        logger.info(
            "template_plan_generated",
            language=plan.language,
            lesson_count=len(plan.lessons),
        )
        return plan
