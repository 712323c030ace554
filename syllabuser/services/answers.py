"""In-memory answer selection and question navigation."""

from collections.abc import Sequence

from syllabuser.core.exceptions import ValidationError
from syllabuser.services.exam_loader import QuestionItem

OPTION_COUNT = 4


class AnswerTracker:
    """One selected option per question plus a bounded cursor."""

    def __init__(self, questions: Sequence[QuestionItem]):
        self._questions = tuple(questions)
        self._ids = {question.id for question in self._questions}
        self._selections: dict[str, int] = {}
        self._cursor = 0

    @property
    def questions(self) -> tuple[QuestionItem, ...]:
        return self._questions

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current_question(self) -> QuestionItem:
        return self._questions[self._cursor]

    @property
    def at_last_question(self) -> bool:
        return self._cursor == len(self._questions) - 1

    @property
    def answered_count(self) -> int:
        return len(self._selections)

    def select_answer(self, question_id: str, option_index: int) -> None:
        """Set or replace the selection for a question."""
        if question_id not in self._ids:
            raise ValidationError(
                "Question is not part of this exam",
                details={"question_id": question_id},
            )
        if not 1 <= option_index <= OPTION_COUNT:
            raise ValidationError(
                f"Option must be between 1 and {OPTION_COUNT}",
                details={"option_index": option_index},
            )
        self._selections[question_id] = option_index

    def current_selection(self, question_id: str) -> int | None:
        return self._selections.get(question_id)

    def next(self) -> int:
        if self._cursor < len(self._questions) - 1:
            self._cursor += 1
        return self._cursor

    def previous(self) -> int:
        if self._cursor > 0:
            self._cursor -= 1
        return self._cursor

    def go_to(self, index: int) -> int:
        if not 0 <= index < len(self._questions):
            raise ValidationError(
                "Question index out of range",
                details={"index": index, "total": len(self._questions)},
            )
        self._cursor = index
        return self._cursor

    def snapshot(self) -> dict[str, int]:
        return dict(self._selections)
