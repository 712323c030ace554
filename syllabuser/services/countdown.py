"""Exam countdown.

Remaining time is derived from the server-anchored end time, then stepped
down by the tick loop and re-anchored to the deadline on every tick. It is the
single value the rest of the session reads.
"""

import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

from syllabuser.core.config import settings

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def initial_remaining_seconds(
    duration_minutes: int,
    end_time: datetime,
    now: datetime | None = None,
) -> int:
    """Seconds left: the exam duration capped by time until the exam window closes."""
    now = as_utc(now or datetime.now(timezone.utc))
    until_end = max(0.0, (as_utc(end_time) - now).total_seconds())
    return int(math.floor(min(duration_minutes * 60, until_end)))


def format_remaining(seconds: int) -> str:
    """Render seconds as zero-padded ``MM:SS``."""
    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def is_urgent(seconds: int, threshold: int | None = None) -> bool:
    if threshold is None:
        threshold = settings.EXAM_URGENT_THRESHOLD_SECONDS
    return seconds < threshold


class Countdown:
    """Per-second ticker that calls ``on_expire`` exactly once at zero.

    The deadline is fixed when the countdown is created. Each tick takes the
    smaller of the decremented counter and the whole seconds left until the
    deadline by ``clock``, so a lagging event loop never extends the time.
    """

    def __init__(
        self,
        remaining_seconds: int,
        on_expire: Callable[[], Awaitable[None] | None],
        tick_interval: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ):
        self._remaining = max(0, int(remaining_seconds))
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._deadline = as_utc(self._clock()) + timedelta(seconds=self._remaining)
        self._on_expire = on_expire
        self._tick_interval = tick_interval or settings.EXAM_TICK_SECONDS
        self._sleep = sleep
        self._task: asyncio.Task | None = None
        self._started = False
        self._alive = True
        self._expired = False

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def deadline(self) -> datetime:
        return self._deadline

    def _seconds_to_deadline(self) -> int:
        left = (self._deadline - as_utc(self._clock())).total_seconds()
        return max(0, math.ceil(left))

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def expired(self) -> bool:
        return self._expired

    async def _fire(self) -> None:
        if self._expired or not self._alive:
            return
        self._expired = True
        outcome = self._on_expire()
        if inspect.isawaitable(outcome):
            await outcome

    async def _run(self) -> None:
        while self._alive and self._remaining > 0:
            await self._sleep(self._tick_interval)
            if not self._alive:
                return
            self._remaining = max(0, min(self._remaining - 1, self._seconds_to_deadline()))
        if self._alive:
            await self._fire()

    async def start(self) -> None:
        """Begin ticking. Fires immediately when no time is left."""
        if self._started or not self._alive:
            return
        self._started = True
        if self._remaining == 0:
            await self._fire()
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        """Stop ticking; ``on_expire`` will not run afterwards."""
        self._alive = False
        if self._task is not None and not self._task.done():
            # The expiry callback cancels its own countdown; don't cancel it mid-submit.
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if self._task is not current:
                self._task.cancel()

    stop = cancel
