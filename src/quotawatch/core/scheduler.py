"""Periodic poll scheduling with a reentrancy guard."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from collections.abc import Callable
from enum import StrEnum

import structlog

from quotawatch.models import DEFAULT_POLL_INTERVAL

logger = structlog.get_logger(__name__)

PollRound = Callable[[], Awaitable[None]]


class SchedulerState(StrEnum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    POLLING = "polling"


class PollScheduler:
    """Runs poll rounds on a timer.

    At most one round is in flight. Triggering while a round runs returns
    an awaitable for that round instead of starting another. The timer task
    is the only thing cancelled by stop(); an in-flight round always
    finishes.

    Usage:
        scheduler = PollScheduler(engine.poll_round, interval=60)
        scheduler.start()
        await scheduler.trigger_now()
        await scheduler.stop()
    """

    def __init__(self, poll_round: PollRound, interval: float = DEFAULT_POLL_INTERVAL):
        self._poll_round = poll_round
        self.interval = interval
        self._timer: asyncio.Task | None = None
        self._round: asyncio.Task | None = None
        self.rounds_started = 0

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def polling(self) -> bool:
        return self._round is not None and not self._round.done()

    @property
    def state(self) -> SchedulerState:
        if self.polling:
            return SchedulerState.POLLING
        if self.running:
            return SchedulerState.SCHEDULED
        return SchedulerState.IDLE

    def start(self, interval: float | None = None) -> None:
        """Arm the timer and poll immediately. No-op if already running."""
        if interval is not None:
            self.interval = interval
        if self.running:
            return
        self._arm(immediate=True)

    def set_interval(self, interval: float) -> None:
        """Change the interval, re-arming the timer if it is running.

        The next round is due one new interval from now. A round already in
        flight is left alone.
        """
        self.interval = interval
        if self.running:
            self._cancel_timer()
            self._arm(immediate=False)
        logger.debug("poll_interval_changed", interval=interval)

    def trigger_now(self) -> Awaitable[None]:
        """Start a round unless one is in flight; return an awaitable for it."""
        if not self.polling:
            self.rounds_started += 1
            self._round = asyncio.create_task(
                self._run_round(), name=f"quotawatch-poll-{self.rounds_started}"
            )
        # Shielded so a cancelled waiter never cancels the round itself
        return asyncio.shield(self._round)

    def cancel(self) -> None:
        """Cancel the timer without waiting for it."""
        self._cancel_timer()

    async def stop(self) -> None:
        """Cancel the timer and wait for it to exit."""
        timer = self._cancel_timer()
        if timer is not None:
            await asyncio.wait({timer})

    async def wait_idle(self) -> None:
        """Wait for the in-flight round, if any."""
        if self._round is not None and not self._round.done():
            await asyncio.wait({self._round})

    def _arm(self, immediate: bool) -> None:
        self._timer = asyncio.create_task(self._tick(immediate), name="quotawatch-timer")

    def _cancel_timer(self) -> asyncio.Task | None:
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
            return timer
        return None

    async def _tick(self, immediate: bool) -> None:
        if immediate:
            await self.trigger_now()
        while True:
            await asyncio.sleep(self.interval)
            await self.trigger_now()

    async def _run_round(self) -> None:
        logger.debug("poll_round_started", round=self.rounds_started)
        try:
            await self._poll_round()
        except Exception:
            logger.exception("poll_round_failed", round=self.rounds_started)
        else:
            logger.debug("poll_round_finished", round=self.rounds_started)
