"""Celery configuration."""
import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    os.getenv("DJANGO_SETTINGS_MODULE", "config.settings.dev"),
)

app = Celery("subintel")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Beat schedule
app.conf.beat_schedule = {
    "subscriptions-close-usage-week": {
        "task": "subscriptions.tasks.close_usage_week",
        "schedule": crontab(minute=5, hour=0, day_of_week="mon"),  # Weekly, Monday 00:05
    },
    "subscriptions-reset-monthly-counters": {
        "task": "subscriptions.tasks.reset_monthly_counters",
        "schedule": crontab(minute=0, hour=0, day_of_month=1),  # Monthly
    },
    "subscriptions-cleanup-usage-history": {
        "task": "subscriptions.tasks.cleanup_usage_history",
        "schedule": crontab(minute=30, hour=3),  # Daily at 3:30am
    },
    "intelligence-refresh-usage-alerts": {
        "task": "intelligence.tasks.refresh_usage_alerts",
        "schedule": crontab(minute=0, hour="*/6"),  # Every 6 hours
    },
}
