import logging
from typing import Any, Optional

from core.celery import celery_app

logger = logging.getLogger(__name__)

PUSH_TASK_NAME = "dispatch_push_notification"


class TaskQueueService:
    """
    Service for handing background work to the Celery worker pool.

    Submissions are fire-and-forget: callers never wait on the result and
    a broker outage is logged rather than raised.
    """

    def __init__(self, app=celery_app):
        self.celery = app

    def submit_task(
        self,
        task_name: str,
        args: tuple = None,
        kwargs: dict = None,
        countdown: int = None,
        **options
    ) -> Optional[str]:
        """
        Submit a task by name.

        Returns:
            The Celery task id, or None when the broker rejected it
        """
        try:
            result = self.celery.send_task(
                task_name,
                args=args or (),
                kwargs=kwargs or {},
                countdown=countdown,
                **options
            )
            return result.id
        except Exception as e:
            logger.error(f"Error submitting task {task_name}: {str(e)}")
            return None

    def enqueue_push(self, notification_id: int) -> Optional[str]:
        """Schedule push delivery for a stored notification."""
        task_id = self.submit_task(PUSH_TASK_NAME, args=(notification_id,))
        if task_id:
            logger.debug(f"Queued push for notification {notification_id} as task {task_id}")
        return task_id


# Global instance
task_queue = TaskQueueService()
