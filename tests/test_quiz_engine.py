"""Tests for the quiz session state machine."""

import pytest

from finlit_coach.errors import QuizStateError
from finlit_coach.learning.quiz_engine import QuizSession, QuizState, grade_answers, percentage

from conftest import make_question


def answer(session: QuizSession, option: str) -> bool:
    session.select_answer(option)
    correct = session.submit()
    session.next()
    return correct


class TestPercentage:
    @pytest.mark.parametrize(
        "correct, total, expected",
        [(2, 3, 67), (1, 3, 33), (3, 3, 100), (0, 3, 0), (1, 2, 50), (7, 10, 70), (1, 8, 13)],
    )
    def test_rounding(self, correct, total, expected):
        assert percentage(correct, total) == expected


class TestTransitions:
    def test_initial_state(self, questions):
        session = QuizSession(questions)
        assert session.state == QuizState.ANSWERING
        assert session.question_index == 0
        assert session.selection is None

    def test_select_keeps_state(self, questions):
        session = QuizSession(questions)
        session.select_answer("B")
        session.select_answer("A")
        assert session.state == QuizState.ANSWERING
        assert session.selection == "A"

    def test_submit_moves_to_explaining(self, questions):
        session = QuizSession(questions)
        session.select_answer("A")
        assert session.submit() is True
        assert session.state == QuizState.EXPLAINING
        assert session.question_index == 0
        assert session.answers == [True]

    def test_next_clears_selection(self, questions):
        session = QuizSession(questions)
        answer(session, "D")
        assert session.state == QuizState.ANSWERING
        assert session.question_index == 1
        assert session.selection is None
        assert session.answers == [False]

    def test_last_next_completes(self, questions):
        session = QuizSession(questions)
        for option in ["A", "B", "C"]:
            answer(session, option)
        assert session.state == QuizState.COMPLETE
        assert session.finish() == 100

    def test_retake_resets(self, questions):
        session = QuizSession(questions)
        for option in ["D", "D", "D"]:
            answer(session, option)
        session.retake()
        assert session.state == QuizState.ANSWERING
        assert session.question_index == 0
        assert session.answers == []


class TestIllegalTransitions:
    def test_submit_without_selection(self, questions):
        with pytest.raises(QuizStateError):
            QuizSession(questions).submit()

    def test_select_while_explaining(self, questions):
        session = QuizSession(questions)
        session.select_answer("A")
        session.submit()
        with pytest.raises(QuizStateError):
            session.select_answer("B")
        with pytest.raises(QuizStateError):
            session.submit()

    def test_next_while_answering(self, questions):
        with pytest.raises(QuizStateError):
            QuizSession(questions).next()

    def test_finish_before_complete(self, questions):
        with pytest.raises(QuizStateError):
            QuizSession(questions).finish()

    def test_retake_before_complete(self, questions):
        with pytest.raises(QuizStateError):
            QuizSession(questions).retake()

    def test_unknown_option(self, questions):
        with pytest.raises(QuizStateError):
            QuizSession(questions).select_answer("E")

    def test_empty_quiz_rejected(self):
        with pytest.raises(QuizStateError):
            QuizSession([])


class TestScoring:
    def test_two_of_three(self, questions):
        session = QuizSession(questions)
        for option in ["A", "B", "D"]:
            answer(session, option)
        assert session.finish() == 67
        assert session.passed is False

    def test_pass_threshold(self, questions):
        session = grade_answers(questions, ["A", "B", "C"])
        assert session.passed is True

    def test_exactly_seventy_passes(self):
        questions = [make_question(f"q{i}", "A") for i in range(10)]
        session = grade_answers(questions, ["A"] * 7 + ["B"] * 3)
        assert session.finish() == 70
        assert session.passed is True

    def test_sixty_nine_fails(self):
        questions = [make_question(f"q{i}", "A") for i in range(13)]
        session = grade_answers(questions, ["A"] * 9 + ["B"] * 4)
        assert session.finish() == 69
        assert session.passed is False


class TestGradeAnswers:
    def test_batch_submission(self, questions):
        session = grade_answers(questions, ["A", "C", "C"])
        assert session.state == QuizState.COMPLETE
        assert session.answers == [True, False, True]
        assert session.finish() == 67

    def test_wrong_answer_count(self, questions):
        with pytest.raises(QuizStateError):
            grade_answers(questions, ["A"])
