"""Progress tracking with point awards on completion."""

from pathlib import Path

import structlog

from finlit_coach.models.progress import ProgressChange, UserLessonProgress
from finlit_coach.storage import profile_store, progress_store

logger = structlog.get_logger()


class ProgressTracker:
    """Records lesson completions and quiz scores for users.

    Points are awarded when a lesson transitions to completed: +10 for a
    plain completion, +20 for a passing quiz. Repeating a completion awards
    nothing, except points left pending by a failed profile write, which the
    next call for that lesson pays out.

    Args:
        data_dir: Root directory of the profile and progress documents.
        monotonic_completion: Keep lessons completed after a failed retake.
    """

    def __init__(self, data_dir: Path, monotonic_completion: bool = False):
        self.data_dir = data_dir
        self.monotonic_completion = monotonic_completion

    def get(self, user_id: str, lesson_id: str) -> UserLessonProgress | None:
        return progress_store.get_progress(self.data_dir, user_id, lesson_id)

    def all(self, user_id: str) -> list[UserLessonProgress]:
        return progress_store.list_progress(self.data_dir, user_id)

    def completed_ids(self, user_id: str) -> set[str]:
        return progress_store.completed_lesson_ids(self.data_dir, user_id)

    def _award(self, user_id: str, change: ProgressChange) -> ProgressChange:
        if change.progress.pending_points:
            change.points_awarded = progress_store.claim_points(
                self.data_dir,
                user_id,
                change.progress.lesson_id,
                lambda points: profile_store.increment_points(self.data_dir, user_id, points),
            )
            change.progress.pending_points = 0
        return change

    def complete_lesson(self, user_id: str, lesson_id: str) -> ProgressChange:
        change = progress_store.mark_complete(self.data_dir, user_id, lesson_id)
        return self._award(user_id, change)

    def submit_quiz(self, user_id: str, lesson_id: str, score: int) -> ProgressChange:
        change = progress_store.record_quiz_score(
            self.data_dir,
            user_id,
            lesson_id,
            score,
            monotonic=self.monotonic_completion,
        )
        return self._award(user_id, change)
