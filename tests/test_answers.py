import pytest

from syllabuser.core.exceptions import ValidationError
from syllabuser.services.answers import AnswerTracker
from syllabuser.services.exam_loader import QuestionItem


@pytest.fixture
def tracker():
    questions = [
        QuestionItem(id=f"q{i}", text=f"Q{i}", options=("a", "b", "c", "d"), correct_option=1)
        for i in range(3)
    ]
    return AnswerTracker(questions)


def test_reselecting_replaces_previous_choice(tracker):
    tracker.select_answer("q0", 2)
    tracker.select_answer("q0", 4)

    assert tracker.current_selection("q0") == 4
    assert tracker.snapshot() == {"q0": 4}


def test_navigation_keeps_selections(tracker):
    tracker.select_answer("q0", 3)
    tracker.next()
    tracker.select_answer("q1", 1)
    tracker.previous()

    assert tracker.cursor == 0
    assert tracker.current_question.id == "q0"
    assert tracker.snapshot() == {"q0": 3, "q1": 1}


def test_cursor_is_bounded(tracker):
    tracker.previous()
    assert tracker.cursor == 0

    for _ in range(5):
        tracker.next()
    assert tracker.cursor == 2
    assert tracker.at_last_question


def test_unknown_question_rejected(tracker):
    with pytest.raises(ValidationError):
        tracker.select_answer("missing", 1)


@pytest.mark.parametrize("option", [0, 5])
def test_option_out_of_range_rejected(tracker, option):
    with pytest.raises(ValidationError):
        tracker.select_answer("q0", option)
    assert tracker.current_selection("q0") is None


def test_snapshot_is_a_copy(tracker):
    tracker.select_answer("q0", 1)
    snapshot = tracker.snapshot()
    snapshot["q0"] = 4

    assert tracker.current_selection("q0") == 1
