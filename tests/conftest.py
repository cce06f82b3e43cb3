"""Shared fixtures."""

import pytest

from finlit_coach.models.plan import LearningPlan, Lesson, QuizQuestion


def make_question(qid: str, correct: str = "A") -> QuizQuestion:
    return QuizQuestion(
        id=qid,
        question=f"Question {qid}?",
        options=["A", "B", "C", "D"],
        correct_answer=correct,
        explanation="Because.",
    )


def make_lesson(lesson_id: str, quiz_size: int = 3) -> Lesson:
    return Lesson(
        id=lesson_id,
        title=f"Lesson {lesson_id}",
        description="A lesson.",
        category="Savings",
        difficulty=1,
        estimated_minutes=10,
        why="Useful.",
        quiz=[make_question(f"{lesson_id}-{i + 1}") for i in range(quiz_size)],
    )


@pytest.fixture
def questions() -> list[QuizQuestion]:
    return [make_question("q1", "A"), make_question("q2", "B"), make_question("q3", "C")]


@pytest.fixture
def small_plan() -> LearningPlan:
    return LearningPlan(
        lessons=[make_lesson("1"), make_lesson("2"), make_lesson("3", quiz_size=0)],
        personalized_message="Welcome!",
        estimated_completion_weeks=2,
    )
