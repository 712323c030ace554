"""Parsing of authored question batches.

Batches arrive as JSON text or an already-decoded list of objects shaped like
``{"question": ..., "options": [4 strings], "answer": ..., "explanation": ...}``.
The whole batch is validated before anything is written; one bad item rejects
the batch.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

from syllabuser.core.exceptions import MalformedInputError

OPTION_LETTERS = "ABCD"
OPTION_LABEL = re.compile(r"^option\s+([a-d])$", re.IGNORECASE)


@dataclass(frozen=True)
class ParsedQuestion:
    text: str
    options: tuple[str, str, str, str]
    correct_option: int
    explanation: str | None = None

    def to_fields(self, exam_id: str) -> dict[str, Any]:
        return {
            "exam_id": exam_id,
            "text": self.text,
            "option_1": self.options[0],
            "option_2": self.options[1],
            "option_3": self.options[2],
            "option_4": self.options[3],
            "correct_option": self.correct_option,
            "explanation": self.explanation,
        }


def resolve_answer(answer: Any, options: tuple[str, ...]) -> int | None:
    """Map an authored answer to a 1-based option index.

    Accepts ``"Option A"``..``"Option D"``, the exact option text, a single
    letter, or an integer 1..4. Returns ``None`` when nothing matches.
    """
    if isinstance(answer, bool):
        return None
    if isinstance(answer, int):
        return answer if 1 <= answer <= len(options) else None
    if not isinstance(answer, str):
        return None

    answer = answer.strip()
    label = OPTION_LABEL.match(answer)
    if label:
        return OPTION_LETTERS.index(label.group(1).upper()) + 1

    stripped = [option.strip() for option in options]
    if answer in stripped:
        return stripped.index(answer) + 1

    if len(answer) == 1 and answer.upper() in OPTION_LETTERS:
        return OPTION_LETTERS.index(answer.upper()) + 1

    if answer.isdigit() and 1 <= int(answer) <= len(options):
        return int(answer)

    return None


def _parse_item(index: int, item: Any) -> tuple[ParsedQuestion | None, list[dict[str, Any]]]:
    errors: list[dict[str, Any]] = []

    def error(field: str, message: str) -> None:
        errors.append({"index": index, "field": field, "message": message})

    if not isinstance(item, dict):
        error("item", "Each question must be an object")
        return None, errors

    text = item.get("question")
    if not isinstance(text, str) or not text.strip():
        error("question", "Question text is required")

    options = item.get("options")
    if (
        not isinstance(options, list)
        or len(options) != len(OPTION_LETTERS)
        or not all(isinstance(option, str) and option.strip() for option in options)
    ):
        error("options", f"Exactly {len(OPTION_LETTERS)} non-empty options are required")
        options = None

    explanation = item.get("explanation")
    if explanation is not None and not isinstance(explanation, str):
        error("explanation", "Explanation must be text")

    correct = None
    if options is not None:
        correct = resolve_answer(item.get("answer"), tuple(options))
        if correct is None:
            error("answer", f"Answer {item.get('answer')!r} does not match any option")

    if errors:
        return None, errors

    return (
        ParsedQuestion(
            text=text.strip(),
            options=tuple(option.strip() for option in options),
            correct_option=correct,
            explanation=explanation.strip() if explanation and explanation.strip() else None,
        ),
        errors,
    )


def parse_question_batch(payload: str | list[Any]) -> list[ParsedQuestion]:
    """Validate a whole batch; raises ``MalformedInputError`` listing every problem."""
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedInputError(
                "Questions are not valid JSON",
                [{"index": None, "field": "questions", "message": f"line {e.lineno} column {e.colno}: {e.msg}"}],
            )

    if not isinstance(payload, list):
        raise MalformedInputError(
            "Questions must be a JSON array",
            [{"index": None, "field": "questions", "message": "Expected a list of question objects"}],
        )
    if not payload:
        raise MalformedInputError(
            "At least one question is required",
            [{"index": None, "field": "questions", "message": "Empty question list"}],
        )

    parsed: list[ParsedQuestion] = []
    errors: list[dict[str, Any]] = []
    for index, item in enumerate(payload):
        question, item_errors = _parse_item(index, item)
        errors.extend(item_errors)
        if question is not None:
            parsed.append(question)

    if errors:
        raise MalformedInputError(f"{len(errors)} problem(s) found in the question batch", errors)
    return parsed
