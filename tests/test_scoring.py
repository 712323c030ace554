import pytest

from syllabuser.services.exam_loader import QuestionItem
from syllabuser.services.scoring import score_answers


def _questions(count, correct=1):
    return [
        QuestionItem(id=f"q{i}", text=f"Q{i}", options=("a", "b", "c", "d"), correct_option=correct)
        for i in range(count)
    ]


def test_mixed_answers_with_negative_marking():
    questions = _questions(10)
    selections = {f"q{i}": 1 for i in range(6)}
    selections.update({f"q{i}": 2 for i in range(6, 9)})

    score = score_answers(questions, selections, 0.25)

    assert (score.correct, score.wrong, score.unanswered) == (6, 3, 1)
    assert score.net_mark == pytest.approx(5.25)
    assert score.total == 10


def test_all_correct_scores_full_marks():
    questions = _questions(5, correct=3)
    score = score_answers(questions, {q.id: 3 for q in questions}, 0.5)

    assert score.wrong == 0
    assert score.net_mark == 5


def test_no_selections():
    score = score_answers(_questions(4), {}, 1.0)

    assert (score.correct, score.wrong, score.unanswered) == (0, 0, 4)
    assert score.net_mark == 0


def test_net_mark_can_go_negative():
    score = score_answers(_questions(2), {"q0": 4, "q1": 4}, 1.0)

    assert score.net_mark == -2


def test_selections_for_unknown_questions_are_ignored():
    score = score_answers(_questions(2), {"q0": 1, "other": 2}, 0.25)

    assert score.correct + score.wrong + score.unanswered == 2
    assert score.correct == 1
    assert score.unanswered == 1


def test_scoring_is_pure():
    questions = _questions(3)
    selections = {"q0": 1, "q1": 2}
    first = score_answers(questions, selections, 0.25)
    second = score_answers(questions, selections, 0.25)

    assert first == second
    assert selections == {"q0": 1, "q1": 2}
