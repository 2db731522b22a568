from datetime import date, datetime, timezone as dt_timezone

import pytest

from intelligence.types import AlertSeverity, AlertType, UsageAlert as EngineAlert
from subscriptions.limits import Tier
from subscriptions.models import ActivityEvent, FeatureUsage, OfferInteraction, UsageAlert, WeeklyUsage
from subscriptions.services import (
    UsageLimitExceeded,
    close_usage_week,
    record_login,
    record_offer_interaction,
    record_usage,
    release_usage,
    reset_monthly_counters,
    sync_usage_alerts,
    track_feature_usage,
    update_storage_usage,
    week_start_for,
)

WEDNESDAY = datetime(2025, 3, 12, 10, 30, tzinfo=dt_timezone.utc)


def test_week_start_for_is_monday():
    assert week_start_for(date(2025, 3, 12)) == date(2025, 3, 10)
    assert week_start_for(date(2025, 3, 10)) == date(2025, 3, 10)
    assert week_start_for(date(2025, 3, 16)) == date(2025, 3, 10)


@pytest.mark.django_db
def test_account_is_created_with_the_user(user):
    assert user.subscription.tier == Tier.FREE
    assert user.subscription.current_usage()["ai_requests"] == 0


@pytest.mark.django_db
def test_record_usage_updates_counter_and_weekly_history(account):
    record_usage(account, "ai_requests", 3, at=WEDNESDAY)
    record_usage(account, "products", at=WEDNESDAY)

    assert account.ai_requests == 3
    week = WeeklyUsage.objects.get(account=account, week_start=date(2025, 3, 10))
    assert week.ai_requests == 3
    assert week.products == 1
    assert week.total_activity == 4


@pytest.mark.django_db
def test_record_usage_enforces_free_tier_limit(account):
    record_usage(account, "ai_requests", 10)

    with pytest.raises(UsageLimitExceeded) as excinfo:
        record_usage(account, "ai_requests")

    assert excinfo.value.limit == 10
    assert excinfo.value.requested == 11
    account.refresh_from_db()
    assert account.ai_requests == 10


@pytest.mark.django_db
def test_record_usage_without_limit_enforcement(account):
    record_usage(account, "marketplace_listings", 3, enforce_limit=False)

    assert account.marketplace_listings == 3


@pytest.mark.django_db
def test_pro_tier_is_unmetered(pro_user):
    account = record_usage(pro_user.subscription, "ai_requests", 500)

    assert account.ai_requests == 500


@pytest.mark.django_db
def test_record_usage_rejects_storage_and_non_positive_amounts(account):
    with pytest.raises(ValueError):
        record_usage(account, "storage", 10)
    with pytest.raises(ValueError):
        record_usage(account, "products", 0)


@pytest.mark.django_db
def test_release_usage_never_goes_negative(account):
    record_usage(account, "products", 2)

    release_usage(account, "products", 5)

    assert account.products == 0


@pytest.mark.django_db
def test_update_storage_usage_respects_limit(account):
    update_storage_usage(account, 50 * 1024 * 1024)
    with pytest.raises(UsageLimitExceeded):
        update_storage_usage(account, 60 * 1024 * 1024)

    update_storage_usage(account, -80 * 1024 * 1024)

    assert account.storage == 0


@pytest.mark.django_db
def test_track_feature_usage_aggregates_per_day(account):
    track_feature_usage(account, "AI Scraping", at=WEDNESDAY)
    usage = track_feature_usage(account, "AI Scraping", count=2, duration=30, at=WEDNESDAY)

    assert usage.usage_count == 3
    assert usage.usage_duration == 30
    assert FeatureUsage.objects.filter(account=account).count() == 1
    assert ActivityEvent.objects.filter(account=account, kind=ActivityEvent.Kind.FEATURE).count() == 2


@pytest.mark.django_db
def test_track_feature_usage_stores_canonical_keys(account):
    track_feature_usage(account, "AI Scraping", at=WEDNESDAY)
    usage = track_feature_usage(account, "ai_scraping", at=WEDNESDAY)

    assert usage.feature_name == "ai_scraping"
    assert usage.usage_count == 2
    assert FeatureUsage.objects.filter(account=account).count() == 1
    with pytest.raises(ValueError):
        track_feature_usage(account, "   ")


@pytest.mark.django_db
def test_record_login_creates_login_event(user):
    event = record_login(user, at=WEDNESDAY)

    assert event.kind == ActivityEvent.Kind.LOGIN
    assert event.account == user.subscription


@pytest.mark.django_db
def test_logging_in_through_django_records_login(client, user):
    client.force_login(user)

    assert ActivityEvent.objects.filter(account=user.subscription, kind=ActivityEvent.Kind.LOGIN).count() == 1


@pytest.mark.django_db
def test_close_usage_week_keeps_empty_weeks_and_stamps_storage(account):
    update_storage_usage(account, 4096)

    row = close_usage_week(account, date(2025, 3, 12))
    again = close_usage_week(account, date(2025, 3, 10))

    assert row.pk == again.pk
    assert row.week_start == date(2025, 3, 10)
    assert row.total_activity == 0
    assert again.storage == 4096


@pytest.mark.django_db
def test_reset_monthly_counters_keeps_holdings(account):
    record_usage(account, "ai_requests", 4)
    record_usage(account, "file_uploads", 2)
    record_usage(account, "products", 2)

    reset_monthly_counters(account)
    account.refresh_from_db()

    assert account.ai_requests == 0
    assert account.file_uploads == 0
    assert account.products == 2


@pytest.mark.django_db
def test_sync_usage_alerts_is_idempotent_per_title_and_day(account):
    alert = EngineAlert(
        type=AlertType.APPROACHING_LIMIT,
        severity=AlertSeverity.WARNING,
        title="AI requests limit approaching",
        message="You've used 90% of your ai requests limit",
        resource="ai_requests",
        threshold=10,
        current_value=9,
    )

    assert sync_usage_alerts(account, [alert], today=date(2025, 3, 12)) == 1
    assert sync_usage_alerts(account, [alert], today=date(2025, 3, 12)) == 0
    assert sync_usage_alerts(account, [alert], today=date(2025, 3, 13)) == 1
    assert UsageAlert.objects.filter(account=account).count() == 2


@pytest.mark.django_db
def test_record_offer_interaction(account):
    interaction = record_offer_interaction(account, "new-user-1", "accepted", {"source": "banner"})

    assert interaction.action == OfferInteraction.Action.ACCEPTED
    assert interaction.metadata == {"source": "banner"}
    with pytest.raises(ValueError):
        record_offer_interaction(account, "new-user-1", "ignored")
