"""Static curriculum tables: lesson templates, locales, quiz bank and content."""

from functools import lru_cache

from finlit_coach.config import load_curriculum_file
from finlit_coach.models.plan import Category, Lesson, QuizQuestion

SUPPORTED_LOCALES = ("en", "fr", "es", "de")
DEFAULT_LOCALE = "en"

_LANGUAGE_NAMES = {
    "english": "en",
    "french": "fr",
    "français": "fr",
    "francais": "fr",
    "spanish": "es",
    "español": "es",
    "espanol": "es",
    "german": "de",
    "deutsch": "de",
}


def resolve_locale(lang: str | None) -> str:
    """Map a language code or name to a supported locale, English otherwise.

    Accepts region-tagged codes such as ``fr-CA``.
    """
    if not lang:
        return DEFAULT_LOCALE
    value = lang.strip().lower()
    if value in SUPPORTED_LOCALES:
        return value
    if value in _LANGUAGE_NAMES:
        return _LANGUAGE_NAMES[value]
    prefix = value.replace("_", "-").split("-", 1)[0]
    if prefix in SUPPORTED_LOCALES:
        return prefix
    return DEFAULT_LOCALE


@lru_cache(maxsize=1)
def _lesson_table() -> dict:
    return load_curriculum_file("lessons.yaml")


@lru_cache(maxsize=len(SUPPORTED_LOCALES))
def get_locale_table(locale: str) -> dict:
    """Locale strings: income labels, lesson texts, why overrides, templates."""
    return load_curriculum_file(f"locales/{resolve_locale(locale)}.yaml")


@lru_cache(maxsize=1)
def _quiz_table() -> dict[str, list[QuizQuestion]]:
    raw = load_curriculum_file("quizzes.yaml").get("quizzes", {})
    return {
        str(lesson_id): [QuizQuestion.model_validate(q) for q in questions]
        for lesson_id, questions in raw.items()
    }


@lru_cache(maxsize=1)
def _content_table() -> dict[str, str]:
    raw = load_curriculum_file("content.yaml").get("content", {})
    return {str(k): v.strip() for k, v in raw.items()}


def lesson_templates() -> list[dict]:
    """Template lesson metadata in prerequisite order."""
    return [
        {**entry, "id": str(entry["id"]), "category": Category(entry["category"])}
        for entry in _lesson_table()["lessons"]
    ]


def why_triggers() -> list[dict]:
    return _lesson_table().get("why_triggers", [])


def quiz_bank(lesson_id: str) -> list[QuizQuestion]:
    """Stock quiz for a template lesson id; empty if none exists."""
    return [q.model_copy(deep=True) for q in _quiz_table().get(str(lesson_id), [])]


def placeholder_quiz(lesson_id: str) -> list[QuizQuestion]:
    """Generic 3-question quiz for generated lessons that arrive without one."""
    return [
        QuizQuestion(
            id=f"{lesson_id}-1",
            question="What is the main concept of this lesson?",
            options=["Option A", "Option B", "Option C", "Option D"],
            correct_answer="Option A",
            explanation="This covers the key concept discussed in the lesson.",
        ),
        QuizQuestion(
            id=f"{lesson_id}-2",
            question="How can you apply this lesson?",
            options=["Apply method 1", "Apply method 2", "Apply method 3", "Apply method 4"],
            correct_answer="Apply method 1",
            explanation="This is the most practical way to use what you learned.",
        ),
        QuizQuestion(
            id=f"{lesson_id}-3",
            question="Why is this lesson important?",
            options=["Reason 1", "Reason 2", "Reason 3", "Reason 4"],
            correct_answer="Reason 1",
            explanation="This lesson helps you build stronger financial habits.",
        ),
    ]


def lesson_content(lesson: Lesson) -> str:
    """Body text for a lesson: its own content, the static text by id, or its description."""
    if lesson.content:
        return lesson.content
    return _content_table().get(lesson.id, lesson.description)
