"""At-most-once submission latch and result document construction."""

import enum
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from syllabuser.services.exam_loader import ExamDescriptor
from syllabuser.services.scoring import ScoreBreakdown

logger = logging.getLogger(__name__)


class SubmissionTrigger(str, enum.Enum):
    """What caused a submission."""

    TIMER = "TIMER"
    SUBMIT = "SUBMIT"
    FINAL_SUBMIT = "FINAL_SUBMIT"


@dataclass(frozen=True)
class SubmissionOutcome:
    accepted: bool
    trigger: SubmissionTrigger
    result: Any = None


class SubmissionGuard:
    """Runs the submit action at most once successfully.

    The latch is taken synchronously before the first ``await``, so a timer
    expiry and a manual submit racing on the event loop cannot both pass. A
    failing action releases the latch so the submission can be retried.
    """

    def __init__(self) -> None:
        self._in_flight = False
        self._done = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def done(self) -> bool:
        return self._done

    def try_acquire(self) -> bool:
        if self._in_flight or self._done:
            return False
        self._in_flight = True
        return True

    async def run(
        self,
        trigger: SubmissionTrigger,
        action: Callable[[], Awaitable[Any]],
    ) -> SubmissionOutcome:
        if not self.try_acquire():
            logger.debug(f"Submission via {trigger.value} ignored; already submitting or submitted")
            return SubmissionOutcome(accepted=False, trigger=trigger)

        try:
            result = await action()
        except BaseException:
            self._in_flight = False
            raise

        self._in_flight = False
        self._done = True
        return SubmissionOutcome(accepted=True, trigger=trigger, result=result)


def build_result_fields(
    exam: ExamDescriptor,
    student_id: str,
    student_name: str | None,
    score: ScoreBreakdown,
    answers: Mapping[str, int],
    submitted_at: datetime | None = None,
) -> dict[str, Any]:
    """Fields of the persisted ``results`` document."""
    return {
        "student_id": student_id,
        "student_name": student_name,
        "exam_id": exam.id,
        "exam_title": exam.title,
        "course_id": exam.course_id,
        "total_questions": score.total,
        "correct_answers": score.correct,
        "wrong_answers": score.wrong,
        "unanswered": score.unanswered,
        "net_mark": score.net_mark,
        "answer_snapshot": dict(answers),
        "submitted_at": submitted_at or datetime.now(timezone.utc),
    }
