"""
WorkerPool: bounded executor for short-lived background tasks.

Write tasks, script runs and firmware uploads all go through one pool.
Concurrency is capped by max_workers; the number of queued-or-running
tasks is capped by max_pending. A full pool rejects new work instead of
queueing without limit.

Each task runs in isolation: an exception is logged and stored on the
returned future, and never reaches other tasks or the caller's thread.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable

from uart_debug.exceptions import PoolSaturatedError

logger = logging.getLogger(__name__)


class WorkerPool:
    """
    Thread pool with a bounded pending-task count.

    Example:
        pool = WorkerPool(max_workers=4, max_pending=16)
        future = pool.submit("write", link.write, b"ping")
        pool.shutdown()
    """

    def __init__(self, max_workers: int = 8, max_pending: int = 64) -> None:
        """
        Initialize pool.

        Args:
            max_workers: Maximum tasks running at once
            max_pending: Maximum tasks queued or running at once
        """
        if max_pending < max_workers:
            raise ValueError("max_pending must be >= max_workers")
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="uart-worker"
        )
        self._slots = threading.BoundedSemaphore(max_pending)
        self._max_pending = max_pending
        self._pending = 0
        self._count_lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Number of tasks queued or running."""
        with self._count_lock:
            return self._pending

    def submit(self, label: str, fn: Callable[..., Any], *args: Any) -> Future:
        """
        Run fn(*args) on a worker thread.

        Args:
            label: Short task description used in log messages
            fn: Callable to run
            *args: Positional arguments for fn

        Returns:
            Future for the task result

        Raises:
            PoolSaturatedError: If max_pending tasks are already in flight
        """
        if not self._slots.acquire(blocking=False):
            logger.warning("Rejected %s task: pool saturated", label)
            raise PoolSaturatedError(self.pending)
        with self._count_lock:
            self._pending += 1
        try:
            return self._executor.submit(self._run, label, fn, *args)
        except RuntimeError:
            self._release()
            raise

    def _run(self, label: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception:
            logger.exception("Background %s task failed", label)
            raise
        finally:
            self._release()

    def _release(self) -> None:
        with self._count_lock:
            self._pending -= 1
        self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and optionally wait for running tasks."""
        self._executor.shutdown(wait=wait, cancel_futures=not wait)
