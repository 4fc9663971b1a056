"""
Auto-refresh scheduler module for the domain health system.

This module provides a recurring interval timer that runs a full probe sweep.
It is a two-state machine:

- IDLE: no timer armed (interval 0)
- RUNNING: exactly one recurring timer armed at the current interval

Changing the interval always cancels the armed timer before a new one is
armed, so there is never more than one live timer.
"""

import asyncio
import inspect
from enum import Enum
from typing import Any, Callable, Optional

from .audit_logger import AuditLogger
from .enums import LogLevel


class SchedulerState(Enum):
    """Auto-refresh scheduler state."""

    IDLE = "idle"
    RUNNING = "running"


class AutoRefreshScheduler:
    """
    Interval timer driving periodic probe sweeps.

    The tick callback may be a plain function or return an awaitable; an
    awaitable result is awaited before the next interval starts counting.
    Exceptions raised by the callback are logged and do not stop the timer.
    """

    def __init__(
        self,
        on_tick: Callable[[], Any],
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the scheduler in the IDLE state.

        Args:
            on_tick: Called once per interval while RUNNING
            logger: Optional audit logger
        """
        self._on_tick = on_tick
        self._logger = logger
        self._interval: float = 0
        self._timer: Optional[asyncio.Task] = None
        self._tick_count = 0
        self._closed = False

    async def __aenter__(self) -> "AutoRefreshScheduler":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def set_interval(self, seconds: float) -> None:
        """
        Set the refresh interval in seconds.

        A positive value arms a timer (replacing any armed one), zero disarms.
        Setting the interval it already has changes nothing. Arming needs a
        running event loop.

        Raises:
            ValueError: If seconds is negative
            RuntimeError: If the scheduler has been closed
        """
        if seconds < 0:
            raise ValueError(f"Interval must be >= 0, got {seconds}")
        if self._closed:
            raise RuntimeError("Scheduler is closed")
        if seconds == self._interval:
            return

        self._cancel_timer()
        self._interval = seconds

        if seconds > 0:
            self._timer = asyncio.get_running_loop().create_task(self._run(seconds))
            self._log(LogLevel.INFO, f"Auto-refresh every {seconds}s", {"interval": seconds})
        else:
            self._log(LogLevel.INFO, "Auto-refresh off", {})

    def stop(self) -> None:
        """Return to IDLE."""
        self.set_interval(0)

    def close(self) -> None:
        """Cancel the timer for good. Safe to call more than once."""
        self._cancel_timer()
        self._interval = 0
        self._closed = True

    async def _run(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self._tick_count += 1
            try:
                result = self._on_tick()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                if self._logger:
                    self._logger.log_error("AutoRefreshScheduler", "Tick failed", e, {"interval": interval})

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def state(self) -> SchedulerState:
        if self._timer is not None and not self._timer.done():
            return SchedulerState.RUNNING
        return SchedulerState.IDLE

    def is_running(self) -> bool:
        """Check if a timer is armed."""
        return self.state is SchedulerState.RUNNING

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def tick_count(self) -> int:
        """Ticks fired since construction."""
        return self._tick_count

    @property
    def timer(self) -> Optional[asyncio.Task]:
        """The armed timer task, if any."""
        return self._timer

    @property
    def closed(self) -> bool:
        return self._closed

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "AutoRefreshScheduler", message, data)
