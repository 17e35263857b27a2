"""Task queue initialisation."""

from commconfig.tasks.queue import get_task_queue, register_task

# Import job definitions to ensure they are registered with the queue when package is loaded.
from commconfig.tasks import jobs as _jobs  # noqa: F401

__all__ = ["get_task_queue", "register_task"]
