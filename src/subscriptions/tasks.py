"""Celery tasks for usage history maintenance."""
import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from subscriptions import services
from subscriptions.models import ActivityEvent, FeatureUsage, SubscriptionAccount

logger = logging.getLogger("subintel")


def _iter_accounts(account_id=None):
    qs = SubscriptionAccount.objects.exclude(status=SubscriptionAccount.Status.CANCELLED)
    if account_id:
        qs = qs.filter(pk=account_id)
    return qs


@shared_task(name="subscriptions.tasks.close_usage_week")
def close_usage_week(account_id=None):
    """Close the week that just ended for every live account."""
    today = timezone.localdate()
    last_week = services.week_start_for(today) - timedelta(days=7)
    total = 0
    for account in _iter_accounts(account_id):
        services.close_usage_week(account, last_week)
        total += 1
    return f"weeks closed={total}"


@shared_task(name="subscriptions.tasks.reset_monthly_counters")
def reset_monthly_counters(account_id=None):
    if timezone.localdate().day != 1 and not account_id:
        return "skipped: not first day of month"
    total = 0
    for account in _iter_accounts(account_id):
        services.reset_monthly_counters(account)
        total += 1
    return f"accounts reset={total}"


@shared_task(name="subscriptions.tasks.cleanup_usage_history")
def cleanup_usage_history(retention_days=None):
    retention_days = int(retention_days or settings.USAGE_HISTORY_RETENTION_DAYS)
    cutoff = timezone.now() - timedelta(days=retention_days)
    events, _ = ActivityEvent.objects.filter(occurred_at__lt=cutoff).delete()
    features, _ = FeatureUsage.objects.filter(date__lt=cutoff.date()).delete()
    logger.info("Usage history cleanup: %s events, %s feature rows removed.", events, features)
    return f"events={events} features={features}"
