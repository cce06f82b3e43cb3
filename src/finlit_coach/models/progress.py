"""Per-user, per-lesson progress models."""

from datetime import datetime

from pydantic import BaseModel, Field

PASSING_SCORE = 70
LESSON_COMPLETION_POINTS = 10
QUIZ_PASS_POINTS = 20


class UserLessonProgress(BaseModel):
    """Progress row keyed by (user_id, lesson_id)."""

    user_id: str
    lesson_id: str
    completed: bool = False
    score: int | None = Field(default=None, ge=0, le=100)
    attempts: int = Field(default=0, ge=0)
    # points earned by the last transition to completed, not yet added to the profile
    pending_points: int = Field(default=0, ge=0)
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class ProgressChange(BaseModel):
    """Result of a progress upsert."""

    progress: UserLessonProgress
    newly_completed: bool = False
    points_awarded: int = 0
