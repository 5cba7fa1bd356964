import logging

from celery import shared_task

from database import SessionLocal
from services.push_service import PushDispatcher

logger = logging.getLogger(__name__)


@shared_task(name="dispatch_push_notification", ignore_result=True)
def dispatch_push_notification(notification_id: int) -> None:
    """
    Background task delivering a notification to the recipient's browsers.

    Runs outside the request transaction and never raises, so a failed
    delivery is never retried against an already-pruned endpoint.
    """
    db = SessionLocal()
    try:
        result = PushDispatcher(db).dispatch(notification_id)
        logger.info(
            f"Push for notification {notification_id}: "
            f"sent={result.sent} gone={result.gone} failed={result.failed}"
        )
    except Exception as e:
        db.rollback()
        logger.error(f"Error dispatching push for notification {notification_id}: {str(e)}", exc_info=True)
    finally:
        db.close()
