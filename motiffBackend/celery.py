"""
Celery Configuration for Motiff Backend

Configures Celery for background jobs: expiring unpaid orders and
generating the monthly vendor payouts.
"""

import os

from celery import Celery
from celery.schedules import crontab


# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "motiffBackend.settings")

app = Celery("motiffBackend")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

app.conf.beat_schedule = {
    # Cancel orders that stayed unpaid past the payment window
    "cancel-expired-orders": {
        "task": "marketplace.tasks.cancel_expired_orders_task",
        "schedule": 60.0 * 60.0,  # Every hour
        "options": {"expires": 15.0 * 60.0, "queue": "marketplace_tasks"},
    },
    # Monthly vendor payouts for the previous calendar month
    "generate-vendor-payouts": {
        "task": "vendors.tasks.generate_vendor_payouts_task",
        "schedule": crontab(minute=0, hour=2, day_of_month=1),
        "options": {"expires": 60.0 * 60.0, "queue": "vendor_tasks"},
    },
}

app.conf.update(
    task_routes={
        "marketplace.tasks.*": {"queue": "marketplace_tasks"},
        "vendors.tasks.*": {"queue": "vendor_tasks"},
    },
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=60 * 60 * 24,  # Results expire after 24 hours
    worker_max_tasks_per_child=1000,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
)
