import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Cancel handle for a callback scheduled with :class:`Scheduler`."""

    def __init__(self, handle: Optional[asyncio.TimerHandle] = None):
        self._handle = handle
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()


class Scheduler:
    """Runs plain callbacks after a delay on the running event loop."""

    def call_later(
        self, delay: float, fn: Callable[..., Any], *args: Any
    ) -> ScheduledTask:
        loop = asyncio.get_running_loop()
        task = ScheduledTask()

        def _fire() -> None:
            if task.cancelled:
                return
            try:
                fn(*args)
            except Exception:
                logger.exception("Scheduled callback %r failed", fn)

        task._handle = loop.call_later(delay, _fire)
        return task
