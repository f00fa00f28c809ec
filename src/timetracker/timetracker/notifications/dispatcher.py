"""Run notification jobs off the request path.

A job's failure is logged and dropped; the transition that queued it has
already committed.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

Job = Callable[[], object]


class Dispatcher(Protocol):
    def submit(self, job: Job, *, description: str = "notification") -> None:
        raise NotImplementedError

    def shutdown(self, wait: bool = True) -> None:
        raise NotImplementedError


class InlineDispatcher(Dispatcher):
    """Runs jobs immediately on the calling thread."""

    def submit(self, job: Job, *, description: str = "notification") -> None:
        try:
            job()
        except Exception:
            logger.exception("%s failed", description)

    def shutdown(self, wait: bool = True) -> None:
        return None


class BackgroundDispatcher(Dispatcher):
    def __init__(self, max_workers: int = 2):
        self._pool = ThreadPoolExecutor(max_workers=max(1, int(max_workers)), thread_name_prefix="notify")

    def submit(self, job: Job, *, description: str = "notification") -> None:
        future = self._pool.submit(job)
        future.add_done_callback(lambda f: self._log_outcome(f, description))

    @staticmethod
    def _log_outcome(future: Future, description: str) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("%s failed", description, exc_info=(type(exc), exc, exc.__traceback__))
        else:
            logger.debug("%s done", description)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)
