"""Lesson progress persistence: one JSON document per user, rows keyed by lesson id.

Every mutation is a single locked read-modify-write, so an upsert for a
(user, lesson) pair is atomic and there is never more than one row per pair.
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import structlog
from pydantic import ValidationError

from finlit_coach.errors import StorageError
from finlit_coach.models.progress import (
    LESSON_COMPLETION_POINTS,
    PASSING_SCORE,
    QUIZ_PASS_POINTS,
    ProgressChange,
    UserLessonProgress,
)
from finlit_coach.storage.files import document_dir, exclusive_lock, read_json, safe_key, write_json

logger = structlog.get_logger()

PROGRESS_DIRNAME = "progress"


def get_progress_path(data_dir: Path, user_id: str) -> Path:
    return document_dir(data_dir, PROGRESS_DIRNAME) / f"{safe_key(user_id)}.json"


def _read_rows(path: Path) -> dict[str, UserLessonProgress]:
    data = read_json(path) or {"lessons": {}}
    try:
        return {
            lesson_id: UserLessonProgress.model_validate(row)
            for lesson_id, row in data.get("lessons", {}).items()
        }
    except ValidationError as e:
        raise StorageError(f"corrupt progress document {path.name}: {e}") from e


def _write_rows(path: Path, rows: dict[str, UserLessonProgress]) -> None:
    write_json(
        path,
        {"lessons": {lesson_id: row.model_dump(mode="json") for lesson_id, row in rows.items()}},
    )


def _upsert(
    data_dir: Path,
    user_id: str,
    lesson_id: str,
    mutate: Callable[[UserLessonProgress], None],
) -> ProgressChange:
    path = get_progress_path(data_dir, user_id)
    with exclusive_lock(path):
        rows = _read_rows(path)
        row = rows.get(lesson_id) or UserLessonProgress(user_id=user_id, lesson_id=lesson_id)
        was_completed = row.completed
        mutate(row)
        row.updated_at = datetime.now()
        rows[lesson_id] = row
        _write_rows(path, rows)
    return ProgressChange(progress=row, newly_completed=row.completed and not was_completed)


def list_progress(data_dir: Path, user_id: str) -> list[UserLessonProgress]:
    return list(_read_rows(get_progress_path(data_dir, user_id)).values())


def get_progress(data_dir: Path, user_id: str, lesson_id: str) -> UserLessonProgress | None:
    return _read_rows(get_progress_path(data_dir, user_id)).get(lesson_id)


def completed_lesson_ids(data_dir: Path, user_id: str) -> set[str]:
    return {row.lesson_id for row in list_progress(data_dir, user_id) if row.completed}


def mark_complete(data_dir: Path, user_id: str, lesson_id: str) -> ProgressChange:
    """Mark a lesson completed without a quiz. Attempts and score are untouched."""

    def _complete(row: UserLessonProgress) -> None:
        if not row.completed:
            row.completed = True
            row.completed_at = datetime.now()
            row.pending_points = LESSON_COMPLETION_POINTS

    change = _upsert(data_dir, user_id, lesson_id, _complete)
    logger.info(
        "lesson_marked_complete",
        user_id=user_id,
        lesson_id=lesson_id,
        newly_completed=change.newly_completed,
    )
    return change


def record_quiz_score(
    data_dir: Path,
    user_id: str,
    lesson_id: str,
    score: int,
    monotonic: bool = False,
) -> ProgressChange:
    """Record the latest quiz score for a lesson.

    Each call counts as one attempt. ``completed`` follows the latest score,
    so a failed retake un-completes a passed lesson unless ``monotonic`` is
    set, in which case completion is kept once reached.

    Args:
        score: Percentage score, 0-100.
        monotonic: Keep ``completed`` once it has been true.

    Raises:
        ValueError: If ``score`` is outside 0-100.
    """
    if not 0 <= score <= 100:
        raise ValueError(f"score must be between 0 and 100, got {score}")
    passed = score >= PASSING_SCORE

    def _record(row: UserLessonProgress) -> None:
        row.attempts += 1
        row.score = score
        if monotonic and row.completed:
            return
        if passed:
            if not row.completed:
                row.completed_at = datetime.now()
                row.pending_points = QUIZ_PASS_POINTS
            row.completed = True
        else:
            row.completed = False
            row.completed_at = None
            row.pending_points = 0

    change = _upsert(data_dir, user_id, lesson_id, _record)
    logger.info(
        "quiz_score_recorded",
        user_id=user_id,
        lesson_id=lesson_id,
        score=score,
        attempts=change.progress.attempts,
        completed=change.progress.completed,
    )
    return change


def claim_points(
    data_dir: Path,
    user_id: str,
    lesson_id: str,
    award: Callable[[int], object],
) -> int:
    """Hand a lesson's pending points to ``award`` and clear them.

    ``award`` runs while the progress lock is held and the points are only
    cleared after it returns, so a failed award leaves them pending for the
    next claim and concurrent claims never pay out twice.

    Returns:
        The points awarded, 0 if nothing was pending.
    """
    path = get_progress_path(data_dir, user_id)
    with exclusive_lock(path):
        rows = _read_rows(path)
        row = rows.get(lesson_id)
        if row is None or not row.pending_points:
            return 0
        points = row.pending_points
        award(points)
        row.pending_points = 0
        row.updated_at = datetime.now()
        _write_rows(path, rows)
    logger.info("points_claimed", user_id=user_id, lesson_id=lesson_id, points=points)
    return points
