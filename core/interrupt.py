"""Cooperative stop / cancel machinery.

:class:`InterruptController` owns the stop flag and the count of
in-flight suspendable tasks.  Every await that can take a while (RPC
calls, receipt waits, explicit delays) is bracketed with :meth:`task` so
a stop request can tell when the bot is truly quiescent.

Stops are cooperative: nothing in flight is cancelled.  Loops check
:attr:`stop_requested` at iteration boundaries and
:meth:`cancellable_delay` wakes up as soon as a stop is requested.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

logger = logging.getLogger(__name__)


class InterruptController:
    """Stop flag, active-task counter and cancellable sleep."""

    def __init__(self) -> None:
        self._stop_event = asyncio.Event()
        self._active_tasks = 0
        # One interruption notice per stop episode
        self._notice_logged = False

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    @property
    def active_tasks(self) -> int:
        return self._active_tasks

    def enter_task(self) -> None:
        self._active_tasks += 1

    def exit_task(self) -> None:
        self._active_tasks = max(0, self._active_tasks - 1)

    @asynccontextmanager
    async def task(self) -> AsyncIterator[None]:
        """Bracket a suspendable operation with enter/exit."""
        self.enter_task()
        try:
            yield
        finally:
            self.exit_task()

    def _log_notice_once(self, message: str) -> None:
        if not self._notice_logged:
            self._notice_logged = True
            logger.info(message)

    async def cancellable_delay(self, seconds: float) -> bool:
        """Sleep for *seconds* unless a stop is (or becomes) requested.

        Returns:
            ``True`` if the full delay elapsed, ``False`` if it was cut
            short (or skipped) by a stop request.
        """
        if self.stop_requested:
            self._log_notice_once("Process stopped successfully.")
            return False

        async with self.task():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=max(0.0, seconds))
            except asyncio.TimeoutError:
                return True

        self._log_notice_once("Process interrupted.")
        return False

    def request_stop(self) -> None:
        self._stop_event.set()

    def clear(self) -> None:
        """End the stop episode: reset the flag and the notice latch."""
        self._stop_event.clear()
        self._notice_logged = False

    async def wait_until_idle(
        self,
        poll_interval: float = 1.0,
        on_wait: Optional[Callable[[int], None]] = None,
    ) -> None:
        """Poll until no task is active.

        Args:
            poll_interval: Seconds between checks.
            on_wait: Called with the current count on every check that
                finds work still in flight.
        """
        while self._active_tasks > 0:
            if on_wait is not None:
                on_wait(self._active_tasks)
            await asyncio.sleep(poll_interval)
