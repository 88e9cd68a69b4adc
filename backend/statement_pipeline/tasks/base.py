"""Base Celery task class that records unexpected task failures."""

import logging

from celery import Task

logger = logging.getLogger(__name__)


class LoggedTask(Task):
    """Base task class that logs failures with their task context.

    Statement tasks report expected failures in their return value, so this
    only fires for bugs and worker-level errors (e.g. time limits).

    Usage:
        @celery_app.task(base=LoggedTask, bind=True)
        def my_task(self, arg1, arg2):
            ...
    """

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            f"Task {self.name} ({task_id}) failed: {type(exc).__name__}: {exc}",
            extra={
                "task_name": self.name,
                "task_id": task_id,
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
            },
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)
