from datetime import timedelta

import pytest
from django.utils import timezone

from subscriptions.models import ActivityEvent, FeatureUsage, SubscriptionAccount, WeeklyUsage
from subscriptions.services import week_start_for
from subscriptions.tasks import cleanup_usage_history, close_usage_week, reset_monthly_counters


@pytest.mark.django_db
def test_close_usage_week_records_last_week_for_live_accounts(account, pro_user):
    cancelled = pro_user.subscription
    cancelled.status = SubscriptionAccount.Status.CANCELLED
    cancelled.save(update_fields=["status", "updated_at"])

    assert close_usage_week() == "weeks closed=1"
    assert close_usage_week() == "weeks closed=1"

    last_week = week_start_for(timezone.localdate()) - timedelta(days=7)
    assert WeeklyUsage.objects.filter(account=account, week_start=last_week).count() == 1
    assert not WeeklyUsage.objects.filter(account=cancelled).exists()


@pytest.mark.django_db
def test_reset_monthly_counters_for_one_account(account):
    account.ai_requests = 8
    account.products = 2
    account.save(update_fields=["ai_requests", "products", "updated_at"])

    assert reset_monthly_counters(account_id=account.pk) == "accounts reset=1"

    account.refresh_from_db()
    assert account.ai_requests == 0
    assert account.products == 2


@pytest.mark.django_db
def test_cleanup_usage_history_drops_old_rows(account):
    now = timezone.now()
    ActivityEvent.objects.create(account=account, kind=ActivityEvent.Kind.LOGIN, occurred_at=now - timedelta(days=400))
    recent = ActivityEvent.objects.create(account=account, kind=ActivityEvent.Kind.LOGIN, occurred_at=now)
    FeatureUsage.objects.create(account=account, date=(now - timedelta(days=400)).date(), feature_name="AI Scraping")

    result = cleanup_usage_history()

    assert result == "events=1 features=1"
    assert list(ActivityEvent.objects.filter(account=account)) == [recent]
    assert not FeatureUsage.objects.exists()
