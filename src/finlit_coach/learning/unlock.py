"""Sequential lesson unlock policy."""

from collections.abc import Collection, Sequence

from pydantic import BaseModel

from finlit_coach.models.plan import Lesson


def is_locked(lessons: Sequence[Lesson], completed_ids: Collection[str], index: int) -> bool:
    """Whether the lesson at ``index`` is locked.

    The first lesson is always open. Any other lesson opens only when the
    lesson directly before it is completed; nothing else in the chain matters.
    """
    if index < 0 or index >= len(lessons):
        raise IndexError(f"lesson index {index} out of range")
    if index == 0:
        return False
    return lessons[index - 1].id not in completed_ids


class LessonCard(BaseModel):
    """Dashboard entry for one lesson."""

    lesson: Lesson
    position: int
    completed: bool
    locked: bool


def lesson_cards(lessons: Sequence[Lesson], completed_ids: Collection[str]) -> list[LessonCard]:
    """Dashboard lesson list in plan order with completion and lock state."""
    return [
        LessonCard(
            lesson=lesson,
            position=i,
            completed=lesson.id in completed_ids,
            locked=is_locked(lessons, completed_ids, i),
        )
        for i, lesson in enumerate(lessons)
    ]
