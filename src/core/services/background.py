"""Fire-and-forget background work for request handlers.

Lambda may freeze the execution environment once the handler returns, so
dispatched work is not guaranteed to finish; the scheduled cache sync picks
up anything that was lost.
"""

from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
import threading
from typing import Any

from aws_lambda_powertools import Logger

logger = Logger(UTC=True)


class BackgroundDispatcher:
    """Runs callables on a small thread pool without blocking the caller."""

    def __init__(self, max_workers: int = 1) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="background",
        )

    def dispatch(self, func: Callable[[], Any], *, task_name: str) -> Future:
        """Submit `func` and return immediately.

        Failures are logged by a done-callback and never reach the caller.
        """
        future = self._executor.submit(func)
        future.add_done_callback(lambda done: self._log_outcome(done, task_name))
        logger.debug("Background task dispatched", extra={"task_name": task_name})
        return future

    @staticmethod
    def _log_outcome(future: Future, task_name: str) -> None:
        if future.cancelled():
            logger.warning("Background task cancelled", extra={"task_name": task_name})
            return

        exc = future.exception()
        if exc is not None:
            logger.error(
                "Background task failed",
                extra={
                    "task_name": task_name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return

        logger.debug("Background task finished", extra={"task_name": task_name})

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_default_dispatcher: BackgroundDispatcher | None = None
_default_lock = threading.Lock()


def get_default_dispatcher() -> BackgroundDispatcher:
    """Return the per-process shared dispatcher."""
    global _default_dispatcher

    with _default_lock:
        if _default_dispatcher is None:
            _default_dispatcher = BackgroundDispatcher()
        return _default_dispatcher
