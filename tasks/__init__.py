from core.celery import celery_app

__all__ = ('celery_app',)

# Import tasks to register them with Celery
from . import push_tasks  # noqa
