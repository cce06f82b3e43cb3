"""Single-session quiz state machine."""

from collections.abc import Sequence
from enum import StrEnum

import structlog

from finlit_coach.errors import QuizStateError
from finlit_coach.models.plan import QuizQuestion
from finlit_coach.models.progress import PASSING_SCORE

logger = structlog.get_logger()


class QuizState(StrEnum):
    """Quiz session states."""

    ANSWERING = "answering"
    EXPLAINING = "explaining"
    COMPLETE = "complete"


def percentage(correct: int, total: int) -> int:
    """Score as a whole percentage, halves rounded up."""
    return (200 * correct + total) // (2 * total)


class QuizSession:
    """Walks through a lesson quiz one question at a time.

    ``answering(i)`` -> ``submit`` -> ``explaining(i)`` -> ``next`` ->
    ``answering(i + 1)`` or ``complete``. ``finish`` returns the score once
    the session is complete; ``retake`` starts over.

    Args:
        questions: Quiz questions in order. Must not be empty.

    Raises:
        QuizStateError: If ``questions`` is empty.
    """

    def __init__(self, questions: Sequence[QuizQuestion]):
        if not questions:
            raise QuizStateError("cannot start a quiz with no questions")
        self.questions = list(questions)
        self._state = QuizState.ANSWERING
        self._index = 0
        self._selection: str | None = None
        self._answers: list[bool] = []

    @property
    def state(self) -> QuizState:
        return self._state

    @property
    def question_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> QuizQuestion:
        return self.questions[self._index]

    @property
    def selection(self) -> str | None:
        return self._selection

    @property
    def answers(self) -> list[bool]:
        return list(self._answers)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def correct_count(self) -> int:
        return sum(self._answers)

    @property
    def score(self) -> int:
        return percentage(self.correct_count, self.total_questions)

    @property
    def passed(self) -> bool:
        return self.score >= PASSING_SCORE

    def _require(self, state: QuizState, action: str) -> None:
        if self._state != state:
            raise QuizStateError(f"cannot {action} while {self._state.value}")

    def select_answer(self, option: str) -> None:
        self._require(QuizState.ANSWERING, "select an answer")
        if option not in self.current_question.options:
            raise QuizStateError(f"{option!r} is not an option for this question")
        self._selection = option

    def submit(self) -> bool:
        """Grade the selected option and move to the explanation.

        Returns:
            Whether the selection was correct.
        """
        self._require(QuizState.ANSWERING, "submit")
        if self._selection is None:
            raise QuizStateError("cannot submit without a selected answer")
        correct = self._selection == self.current_question.correct_answer
        self._answers.append(correct)
        self._state = QuizState.EXPLAINING
        return correct

    def next(self) -> None:
        self._require(QuizState.EXPLAINING, "advance")
        if self._index + 1 < self.total_questions:
            self._index += 1
            self._selection = None
            self._state = QuizState.ANSWERING
        else:
            self._state = QuizState.COMPLETE

    def retake(self) -> None:
        self._require(QuizState.COMPLETE, "retake")
        self._index = 0
        self._selection = None
        self._answers = []
        self._state = QuizState.ANSWERING

    def finish(self) -> int:
        """Final score for a completed session, 0-100."""
        self._require(QuizState.COMPLETE, "finish")
        logger.debug(
            "quiz_finished",
            correct=self.correct_count,
            total=self.total_questions,
            score=self.score,
        )
        return self.score


def grade_answers(questions: Sequence[QuizQuestion], answers: Sequence[str]) -> QuizSession:
    """Drive a full session from a batch of selected options, in question order.

    Raises:
        QuizStateError: If the quiz is empty or the answer count does not match.
    """
    session = QuizSession(questions)
    if len(answers) != session.total_questions:
        raise QuizStateError(
            f"expected {session.total_questions} answers, got {len(answers)}"
        )
    for option in answers:
        session.select_answer(option)
        session.submit()
        session.next()
    return session
