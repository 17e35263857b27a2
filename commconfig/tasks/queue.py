"""Inline task registry for background work."""
from __future__ import annotations

from typing import Any, Callable

from commconfig.core.logging import get_logger

logger = get_logger(__name__)

INLINE_TASKS: dict[str, Callable[..., Any]] = {}


def register_task(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator to register a task under ``name``."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        INLINE_TASKS[name] = func
        return func

    return decorator


class TaskQueue:
    """Run registered tasks synchronously in the calling process."""

    def enqueue(self, task_name: str, *args: Any, **kwargs: Any) -> Any:
        task = INLINE_TASKS.get(task_name)
        if not task:
            raise ValueError(f"Task '{task_name}' is not registered")
        logger.debug("task_dispatched", task=task_name)
        return task(*args, **kwargs)


_task_queue: TaskQueue | None = None


def get_task_queue() -> TaskQueue:
    global _task_queue
    if _task_queue is None:
        _task_queue = TaskQueue()
    return _task_queue


__all__ = ["get_task_queue", "register_task", "INLINE_TASKS", "TaskQueue"]
