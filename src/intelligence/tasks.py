"""Celery tasks for the subscription intelligence engine."""
import logging

from celery import shared_task

from intelligence.engine import SubscriptionIntelligenceEngine
from intelligence.exceptions import AccountNotFound
from intelligence.optimization import build_usage_alerts
from subscriptions.models import SubscriptionAccount
from subscriptions.services import sync_usage_alerts

logger = logging.getLogger("subintel")


def _iter_accounts(account_id=None):
    qs = SubscriptionAccount.objects.filter(status=SubscriptionAccount.Status.ACTIVE)
    if account_id:
        qs = qs.filter(pk=account_id)
    return qs


@shared_task(name="intelligence.tasks.refresh_usage_alerts")
def refresh_usage_alerts(account_id=None):
    """Persist approaching-limit alerts (idempotent per account and day)."""
    engine = SubscriptionIntelligenceEngine()
    created = 0
    for account in _iter_accounts(account_id):
        try:
            snapshot = engine.repository.load(account.user_id)
        except AccountNotFound:
            logger.warning("Account %s vanished during alert refresh.", account.pk)
            continue
        patterns = engine.analyze(snapshot)
        created += sync_usage_alerts(account, build_usage_alerts(patterns))
    return f"usage alerts created={created}"
