"""
Parallel execution utilities.

Provides a bounded thread-pool executor used to scan search roots
concurrently. Threads are used because the work is dominated by file and
archive I/O.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed, Future
from typing import List, Dict, Any, Optional, Callable, TypeVar, Generic
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


def default_worker_count() -> int:
    """Worker count sized to the available parallelism."""
    return os.cpu_count() or 4


@dataclass
class TaskResult(Generic[T]):
    """Result of a parallel task."""

    task_id: str
    result: Optional[T]
    error: Optional[BaseException]
    duration: float

    @property
    def success(self) -> bool:
        """Check if task succeeded."""
        return self.error is None


class ParallelExecutor:
    """
    Fixed-size thread pool with per-task error capture.
    """

    def __init__(self, max_workers: Optional[int] = None):
        """
        Initialize parallel executor.

        Args:
            max_workers: Maximum number of worker threads
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self.max_workers = max_workers or default_worker_count()

        self._executor: Optional[ThreadPoolExecutor] = None
        self._shutdown = False

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.shutdown()

    def start(self):
        """Start the executor."""
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="classfinder"
            )
            self._shutdown = False

    def shutdown(self, wait: bool = True):
        """Shutdown the executor."""
        if self._executor and not self._shutdown:
            self._executor.shutdown(wait=wait)
            self._executor = None
            self._shutdown = True

    def run_all(
        self,
        func: Callable[[T], R],
        items: List[T],
        task_id: Callable[[T], str] = str
    ) -> List[TaskResult[R]]:
        """
        Run ``func`` over every item and wait for all of them.

        A task that raises does not affect the others; its exception is
        captured in the corresponding TaskResult.

        Args:
            func: Function to apply
            items: Items to process
            task_id: Builds a label for each item

        Returns:
            Task results in the order of ``items``
        """
        if not items:
            return []

        self.start()

        def timed(item: T) -> TaskResult[R]:
            started = time.perf_counter()
            try:
                value = func(item)
            except Exception as e:
                logger.error(f"Task {task_id(item)} failed: {e}", exc_info=True)
                return TaskResult(task_id(item), None, e, time.perf_counter() - started)
            return TaskResult(task_id(item), value, None, time.perf_counter() - started)

        futures: Dict[Future, int] = {}
        for i, item in enumerate(items):
            futures[self._executor.submit(timed, item)] = i

        results: List[Any] = [None] * len(items)
        for future in as_completed(futures):
            results[futures[future]] = future.result()

        return results
