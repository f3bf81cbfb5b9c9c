from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

celery_app = Celery(
    "payroll",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.import_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    beat_schedule={
        # Daily at 02:00: pull yesterday's QuickBooks time into open pay periods
        "nightly-time-import": {
            "task": "app.tasks.import_tasks.import_open_pay_periods",
            "schedule": crontab(hour=2, minute=0),
        },
    },
)
