"""Bounded thread pool with a join-all barrier."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any

from ota.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class WorkerPool:
    """Run submitted tasks on at most ``max_workers`` threads.

    ``join()`` blocks until every submitted task has finished. A task that
    raises does not affect its siblings: the exception is logged and counted
    as a failure, and ``join()`` still waits for the rest.
    """

    def __init__(self, max_workers: int, *, name: str = "ota-worker") -> None:
        if max_workers < 1:
            msg = f"Worker count must be greater than 0, got {max_workers}"
            raise InvalidArgumentError(msg)
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._futures: list[Future[Any]] = []

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future[Any]:
        """Queue one task for execution."""
        future = self._executor.submit(fn, *args)
        self._futures.append(future)
        return future

    def join(self) -> list[Any]:
        """Wait for all submitted tasks and return the results of successful ones.

        Results are in submission order; failed tasks are omitted.
        """
        futures, self._futures = self._futures, []
        wait(futures)
        results: list[Any] = []
        for future in futures:
            exc = future.exception()
            if exc is not None:
                logger.error("Worker task failed: %s", exc, exc_info=exc)
                continue
            results.append(future.result())
        return results

    def shutdown(self) -> None:
        """Wait for outstanding tasks and release the worker threads."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()
