"""Self-exclusive, failure-isolating wrapper around a periodic task."""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Optional

from trendtracker.log import log_event
from trendtracker.models import TaskRun

logger = logging.getLogger(__name__)


class GuardedTask:
    """Runs a task body at most once at a time and never lets it raise.

    A firing that arrives while the previous one is still in progress is
    skipped, not queued. Failures are logged and reported as a failed
    TaskRun.
    """

    def __init__(
        self,
        name: str,
        func: Callable[[], Optional[dict[str, Any]]],
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the task.

        Args:
            name: Task name used in log events.
            func: Task body. Returns summary counts for the success event.
            clock: Returns the current wall-clock time.
        """
        self.name = name
        self._func = func
        self._clock = clock
        self._lock = threading.Lock()
        self.last_run: Optional[TaskRun] = None

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def run(self) -> TaskRun:
        """Execute one firing of the task."""
        if not self._lock.acquire(blocking=False):
            log_event(
                logger,
                logging.WARNING,
                "task.skipped",
                job=self.name,
                reason="previous run still in progress",
            )
            return TaskRun(task=self.name, status="skipped", finished_at=self._clock())

        started = self._clock()
        try:
            log_event(logger, logging.INFO, "task.started", job=self.name)
            try:
                summary = self._func() or {}
            except Exception as e:
                log_event(
                    logger,
                    logging.ERROR,
                    "task.failed",
                    exc_info=True,
                    job=self.name,
                    error=e,
                )
                run = TaskRun(
                    task=self.name,
                    status="failed",
                    started_at=started,
                    finished_at=self._clock(),
                    error=f"{type(e).__name__}: {e}",
                )
            else:
                log_event(logger, logging.INFO, "task.succeeded", job=self.name, **summary)
                run = TaskRun(
                    task=self.name,
                    status="succeeded",
                    started_at=started,
                    finished_at=self._clock(),
                    summary=summary,
                )
            self.last_run = run
            return run
        finally:
            self._lock.release()
