"""Parallel execution helpers."""

from .parallel import ParallelExecutor, TaskResult, default_worker_count

__all__ = ["ParallelExecutor", "TaskResult", "default_worker_count"]
