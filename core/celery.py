import logging

from celery import Celery

from config import settings

logger = logging.getLogger(__name__)


class CeleryConfig:
    """Celery configuration."""

    # Serialization
    accept_content = ['json']
    task_serializer = 'json'
    result_serializer = 'json'
    timezone = 'UTC'
    enable_utc = True

    # Task settings
    task_default_queue = 'default'
    task_ignore_result = True

    # Worker settings
    worker_prefetch_multiplier = 1
    worker_max_tasks_per_child = 100

    # Task time limits
    task_time_limit = 120
    task_soft_time_limit = 100


def create_celery_app():
    """Create and configure a new Celery application."""
    app = Celery(
        'tunecircle',
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=['tasks.push_tasks']
    )

    # Load configuration from object
    app.config_from_object(CeleryConfig)

    return app

# Create the Celery app
celery_app = create_celery_app()

if __name__ == '__main__':
    celery_app.start()
