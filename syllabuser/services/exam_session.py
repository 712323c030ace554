"""Exam-taking sessions.

An ``ExamSession`` is one student's attempt at one exam. It owns the countdown,
the answer tracker, the submission latch and the integrity guard, and moves
through ``ACTIVE -> SUBMITTING -> FINISHED`` (or ``CLOSED`` when torn down
before finishing). ``ExamSessionRegistry`` keeps at most one live session per
student and exam.
"""

import asyncio
import enum
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

from syllabuser.core.config import settings
from syllabuser.core.exceptions import (
    AppException,
    NotFoundError,
    SessionStateError,
    SubmissionFailedError,
)
from syllabuser.models.base import new_document_id
from syllabuser.services.answers import AnswerTracker
from syllabuser.services.countdown import Countdown, format_remaining, initial_remaining_seconds, is_urgent
from syllabuser.services.documents import Collections, DocumentStore
from syllabuser.services.exam_loader import ExamDataLoader, LoadedExam
from syllabuser.services.integrity import InputEvent, IntegrityGuard
from syllabuser.services.scoring import score_answers
from syllabuser.services.submission import (
    SubmissionGuard,
    SubmissionOutcome,
    SubmissionTrigger,
    build_result_fields,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, enum.Enum):
    """Exam session lifecycle."""

    ACTIVE = "ACTIVE"
    SUBMITTING = "SUBMITTING"
    FINISHED = "FINISHED"
    CLOSED = "CLOSED"


class ExamSession:
    """A single timed attempt."""

    def __init__(
        self,
        loaded: LoadedExam,
        student_id: str,
        store: DocumentStore,
        student_name: str | None = None,
        clock: Clock = utc_now,
        tick_interval: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        session_id: str | None = None,
    ):
        self.id = session_id or new_document_id()
        self.exam = loaded.exam
        self.student_id = student_id
        self.student_name = loaded.student_name or student_name
        self.store = store
        self._clock = clock
        self._sleep = sleep

        self.status = SessionStatus.ACTIVE
        self.opened_at = clock()
        self.finished_at: datetime | None = None
        self.result: dict[str, Any] | None = None
        self.last_error: dict[str, Any] | None = None
        self.submitted_via: SubmissionTrigger | None = None
        self._retry_task: asyncio.Task | None = None

        self.tracker = AnswerTracker(loaded.questions)
        self.guard = SubmissionGuard()
        self.integrity = IntegrityGuard(self.id)
        self.countdown = Countdown(
            initial_remaining_seconds(self.exam.duration_minutes, self.exam.end_time, self.opened_at),
            self._on_timer_expired,
            tick_interval=tick_interval,
            sleep=sleep,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_live(self) -> bool:
        return self.status in (SessionStatus.ACTIVE, SessionStatus.SUBMITTING)

    async def start(self) -> None:
        logger.info(
            f"Exam session {self.id} started",
            extra={
                "exam_id": self.exam.id,
                "student_id": self.student_id,
                "remaining_seconds": self.countdown.remaining,
            },
        )
        await self.countdown.start()

    async def close(self) -> None:
        """Tear the session down; a pending timer will never submit afterwards."""
        self.countdown.cancel()
        self._cancel_retry()
        self.integrity.release()
        if self.status is not SessionStatus.FINISHED:
            self.status = SessionStatus.CLOSED
            self.finished_at = self.finished_at or self._clock()
        logger.info(f"Exam session {self.id} closed", extra={"status": self.status.value})

    def _require_active(self, action: str) -> None:
        if self.status is not SessionStatus.ACTIVE:
            raise SessionStateError(
                f"Cannot {action} while the session is {self.status.value.lower()}",
                session_status=self.status.value,
            )

    # ------------------------------------------------------------------
    # Answering
    # ------------------------------------------------------------------

    def select_answer(self, question_id: str, option_index: int) -> None:
        self._require_active("answer")
        if self.countdown.remaining <= 0:
            raise SessionStateError("Time is up", session_status=self.status.value)
        self.tracker.select_answer(question_id, option_index)

    def next_question(self) -> int:
        self._require_active("navigate")
        return self.tracker.next()

    def previous_question(self) -> int:
        self._require_active("navigate")
        return self.tracker.previous()

    def go_to_question(self, index: int) -> int:
        self._require_active("navigate")
        return self.tracker.go_to(index)

    def report_input(self, event: InputEvent) -> bool:
        return self.integrity.inspect(event)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def _persist_result(self) -> dict[str, Any]:
        self.status = SessionStatus.SUBMITTING
        answers = self.tracker.snapshot()
        score = score_answers(self.tracker.questions, answers, self.exam.negative_mark)
        fields = build_result_fields(
            self.exam,
            self.student_id,
            self.student_name,
            score,
            answers,
            submitted_at=self._clock(),
        )

        try:
            result = await self.store.create_document(Collections.RESULTS, fields)
        except Exception as e:
            if self.status is SessionStatus.SUBMITTING:
                self.status = SessionStatus.ACTIVE
            reason = e.code if isinstance(e, AppException) else type(e).__name__
            self.last_error = {"code": "SUBMISSION_FAILED", "reason": reason}
            logger.error(f"Failed to save result for exam session {self.id}: {e}")
            if self.countdown.expired:
                self._schedule_retry()
            raise SubmissionFailedError(self.id, reason=reason) from e

        self.result = result
        self.last_error = None
        self.finished_at = self._clock()
        if self.status is SessionStatus.SUBMITTING:
            self.status = SessionStatus.FINISHED
        self.countdown.cancel()
        self._cancel_retry()
        self.integrity.release()
        return result

    async def submit(self, trigger: SubmissionTrigger = SubmissionTrigger.SUBMIT) -> SubmissionOutcome:
        """Score and persist the attempt once; later calls are not accepted."""
        if self.status is SessionStatus.CLOSED:
            raise SessionStateError("Exam session is closed", session_status=self.status.value)
        settled = self.guard.done or self.guard.in_flight
        if trigger is SubmissionTrigger.FINAL_SUBMIT and not settled and not self.tracker.at_last_question:
            raise SessionStateError(
                "Final submit is only available on the last question",
                session_status=self.status.value,
            )

        outcome = await self.guard.run(trigger, self._persist_result)
        if outcome.accepted:
            self.submitted_via = trigger
            logger.info(
                f"Exam session {self.id} submitted via {trigger.value}",
                extra={"result_id": outcome.result["id"], "net_mark": outcome.result["net_mark"]},
            )
        return outcome

    async def _on_timer_expired(self) -> None:
        if self.status is not SessionStatus.ACTIVE:
            return
        logger.info(f"Time is up for exam session {self.id}; auto-submitting")
        try:
            await self.submit(SubmissionTrigger.TIMER)
        except SubmissionFailedError:
            # Answers stay in memory; retried in the background and by a manual submit.
            logger.warning(f"Auto-submit failed for exam session {self.id}")

    def _schedule_retry(self) -> None:
        if self._retry_task is not None and not self._retry_task.done():
            return
        self._retry_task = asyncio.get_running_loop().create_task(self._retry_auto_submit())

    def _cancel_retry(self) -> None:
        task = self._retry_task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _retry_auto_submit(self) -> None:
        """Retry a failed timer submission with a doubling delay.

        When every attempt fails, ``finished_at`` is set while the session stays
        ACTIVE, so a manual submit still works and the registry purge closes it
        after the retention window.
        """
        delay = settings.AUTO_SUBMIT_RETRY_DELAY_SECONDS
        attempts = settings.AUTO_SUBMIT_RETRY_ATTEMPTS
        for attempt in range(1, attempts + 1):
            await self._sleep(delay)
            delay *= 2
            if self.status is not SessionStatus.ACTIVE or self.guard.done:
                return
            logger.info(f"Retrying auto-submit for exam session {self.id} (attempt {attempt}/{attempts})")
            try:
                await self.submit(SubmissionTrigger.TIMER)
                return
            except SubmissionFailedError:
                continue

        self.finished_at = self._clock()
        logger.error(f"Auto-submit for exam session {self.id} gave up after {attempts} attempts")

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def state(self) -> dict[str, Any]:
        question = self.tracker.current_question
        remaining = self.countdown.remaining
        return {
            "session_id": self.id,
            "exam_id": self.exam.id,
            "exam_title": self.exam.title,
            "status": self.status.value,
            "remaining_seconds": remaining,
            "remaining_display": format_remaining(remaining),
            "is_urgent": is_urgent(remaining),
            "total_questions": len(self.tracker.questions),
            "answered_count": self.tracker.answered_count,
            "current_index": self.tracker.cursor,
            "at_last_question": self.tracker.at_last_question,
            "current_question": {
                "id": question.id,
                "text": question.text,
                "options": list(question.options),
                "selected_option": self.tracker.current_selection(question.id),
            },
            "answers": self.tracker.snapshot(),
            "blocked_input_count": self.integrity.blocked_count,
            "last_error": self.last_error,
            "submitted_via": self.submitted_via.value if self.submitted_via else None,
            "result_id": self.result["id"] if self.result else None,
            "redirect_to": settings.RESULTS_REDIRECT_PATH if self.status is SessionStatus.FINISHED else None,
        }


class _KeyLock:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.holders = 0


class ExamSessionRegistry:
    """Live sessions keyed by id, at most one live per (student, exam)."""

    def __init__(
        self,
        loader: ExamDataLoader,
        store: DocumentStore,
        clock: Clock = utc_now,
        tick_interval: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.loader = loader
        self.store = store
        self._clock = clock
        self._tick_interval = tick_interval
        self._sleep = sleep
        self._sessions: dict[str, ExamSession] = {}
        self._by_key: dict[tuple[str, str], str] = {}
        self._locks: dict[tuple[str, str], _KeyLock] = {}
        self._shut_down = False

    def __len__(self) -> int:
        return len(self._sessions)

    @asynccontextmanager
    async def _locked(self, key: tuple[str, str]) -> AsyncIterator[None]:
        """Serialize opens per key; the entry goes away with its last holder."""
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0 and self._locks.get(key) is entry:
                del self._locks[key]

    def _live_session(self, key: tuple[str, str]) -> ExamSession | None:
        session_id = self._by_key.get(key)
        session = self._sessions.get(session_id) if session_id else None
        if session is not None and session.is_live:
            return session
        return None

    async def open(
        self,
        student_id: str,
        exam_id: str,
        student_name: str | None = None,
    ) -> ExamSession:
        """Return the student's live session for the exam, or load and start one."""
        if self._shut_down:
            raise SessionStateError("Exam sessions are shutting down")

        key = (student_id, exam_id)
        async with self._locked(key):
            existing = self._live_session(key)
            if existing is not None:
                logger.debug(f"Reusing exam session {existing.id} for student {student_id}")
                return existing

            loaded = await self.loader.load(exam_id, student_id)
            if self._shut_down:
                raise SessionStateError("Exam sessions are shutting down")

            session = ExamSession(
                loaded,
                student_id,
                self.store,
                student_name=student_name,
                clock=self._clock,
                tick_interval=self._tick_interval,
                sleep=self._sleep,
            )
            self._sessions[session.id] = session
            self._by_key[key] = session.id
            await session.start()
            return session

    def get(self, session_id: str, student_id: str | None = None) -> ExamSession:
        session = self._sessions.get(session_id)
        # Other students' sessions are reported as missing
        if session is None or (student_id is not None and session.student_id != student_id):
            raise NotFoundError("Exam session", session_id)
        return session

    async def close(self, session_id: str, student_id: str | None = None) -> None:
        session = self.get(session_id, student_id)
        await session.close()

    def _forget(self, session: ExamSession) -> None:
        self._sessions.pop(session.id, None)
        key = (session.student_id, session.exam.id)
        if self._by_key.get(key) == session.id:
            del self._by_key[key]

    async def purge_finished(self, older_than: timedelta | None = None) -> int:
        """Drop finished or closed sessions past the retention window.

        ACTIVE sessions whose auto-submit gave up carry ``finished_at`` too;
        they are closed and dropped on the same schedule.
        """
        if older_than is None:
            older_than = timedelta(minutes=settings.FINISHED_SESSION_RETENTION_MINUTES)
        cutoff = self._clock() - older_than

        stale = [
            session
            for session in self._sessions.values()
            if session.status is not SessionStatus.SUBMITTING
            and session.finished_at is not None
            and session.finished_at <= cutoff
        ]
        for session in stale:
            if session.status is SessionStatus.ACTIVE:
                logger.warning(f"Closing exam session {session.id}; its result was never saved")
                await session.close()
            self._forget(session)

        if stale:
            logger.info(f"Purged {len(stale)} finished exam sessions")
        return len(stale)

    async def shutdown(self) -> None:
        self._shut_down = True
        for session in list(self._sessions.values()):
            await session.close()
        self._sessions.clear()
        self._by_key.clear()
        self._locks.clear()
