"""Result scoring with negative marking."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from syllabuser.services.exam_loader import QuestionItem


@dataclass(frozen=True)
class ScoreBreakdown:
    total: int
    correct: int
    wrong: int
    unanswered: int
    net_mark: float


def score_answers(
    questions: Sequence[QuestionItem],
    selections: Mapping[str, int],
    negative_mark: float,
) -> ScoreBreakdown:
    """Score a selection map against a question set.

    A missing selection is unanswered, a matching one is correct, anything else
    is wrong. Selections for questions outside the set are ignored.
    ``net_mark = correct - wrong * negative_mark`` and may be negative.
    """
    correct = wrong = unanswered = 0
    for question in questions:
        selected = selections.get(question.id)
        if selected is None:
            unanswered += 1
        elif selected == question.correct_option:
            correct += 1
        else:
            wrong += 1

    return ScoreBreakdown(
        total=len(questions),
        correct=correct,
        wrong=wrong,
        unanswered=unanswered,
        net_mark=correct - wrong * float(negative_mark),
    )
