# study_core/reader/timer.py
"""Reading-time accounting for one open document."""

import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)


def format_elapsed(total_seconds: int) -> str:
    """
    Format seconds as "mm:ss", or "h:mm:ss" from one hour up.

    Examples:
        65 -> "01:05"
        3725 -> "1:02:05"
    """
    total_seconds = max(0, int(total_seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


class ReadingTimer:
    """
    Accumulates reading time across pause/resume cycles.

    Only running intervals are counted, pausing twice or resuming twice is
    harmless, and close() hands the total to the flush callback exactly
    once no matter how often it is called. A flush that raises leaves the
    timer open with its time intact, so close() can be retried.
    """

    def __init__(
        self,
        *,
        already_elapsed: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        self._accumulated = max(0.0, float(already_elapsed))
        self._running_since: float | None = None
        self._closed = False

    @property
    def is_running(self) -> bool:
        return self._running_since is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start (or resume) counting. No-op if already running or closed."""
        if self._closed or self._running_since is not None:
            return
        self._running_since = self._clock()

    resume = start

    def pause(self) -> None:
        """Stop counting and bank the running interval."""
        if self._running_since is None:
            return
        self._accumulated += max(0.0, self._clock() - self._running_since)
        self._running_since = None

    def toggle(self) -> None:
        if self.is_running:
            self.pause()
        else:
            self.start()

    def elapsed(self) -> float:
        """Seconds counted so far, including the current running interval."""
        if self._running_since is None:
            return self._accumulated
        return self._accumulated + max(0.0, self._clock() - self._running_since)

    def elapsed_seconds(self) -> int:
        return int(round(self.elapsed()))

    def close(self, flush: Callable[[int], None]) -> bool:
        """
        Stop the timer and flush the accumulated seconds.

        Returns:
            True if this call flushed, False if the timer was already closed

        Raises:
            Whatever flush raises; the timer then stays open (paused)
        """
        if self._closed:
            return False
        self.pause()
        total = self.elapsed_seconds()
        logger.info(f"Flushing {total}s of reading time")
        flush(total)
        self._closed = True
        return True
