"""Error taxonomy for plan generation, storage and quiz sessions."""


class FinlitError(Exception):
    """Base class for all application errors."""


class GenerationError(FinlitError):
    """The plan generator could not produce a plan."""


class PlanDecodeError(GenerationError):
    """The completion text could not be decoded into a JSON object."""


class PlanValidationError(GenerationError):
    """A decoded plan violates the learning-plan structure."""


class GenerationInProgressError(GenerationError):
    """A plan is already being generated for this user."""

    def __init__(self, user_id: str):
        super().__init__(f"Plan generation already in progress for user {user_id}")
        self.user_id = user_id


class StorageError(FinlitError):
    """Reading or writing a profile or progress document failed.

    Every write is an upsert keyed by stable identifiers, so callers can
    retry the operation safely.
    """


class QuizStateError(FinlitError):
    """A quiz session transition was attempted from an illegal state."""
