"""Business services for usage metering and usage history."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from subscriptions.limits import Resource, feature_key, is_over_limit
from subscriptions.models import (
    ActivityEvent,
    FeatureUsage,
    OfferInteraction,
    SubscriptionAccount,
    UsageAlert,
    WeeklyUsage,
)

logger = logging.getLogger("subintel")

# Counters consumed within a billing month; the others track current holdings.
MONTHLY_RESOURCES = (Resource.AI_REQUESTS, Resource.FILE_UPLOADS)


class UsageLimitExceeded(ValueError):
    """Raised when metering would push a counter past the tier limit."""

    def __init__(self, resource: str, limit: int, requested: int):
        self.resource = resource
        self.limit = limit
        self.requested = requested
        super().__init__(f"{Resource(resource).label} limit reached ({limit}).")


def week_start_for(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def get_or_create_account(user) -> SubscriptionAccount:
    account, created = SubscriptionAccount.objects.get_or_create(user=user)
    if created:
        logger.info("Subscription account created for user %s.", user.pk)
    return account


def _weekly_row(account: SubscriptionAccount, day: date) -> WeeklyUsage:
    row, _created = WeeklyUsage.objects.get_or_create(account=account, week_start=week_start_for(day))
    return row


def record_usage(account: SubscriptionAccount, resource: str, amount: int = 1, *, at: datetime | None = None,
                 enforce_limit: bool = True) -> SubscriptionAccount:
    """Increment a metered counter and this week's history row."""
    resource = Resource(resource)
    if resource == Resource.STORAGE:
        raise ValueError("Storage is metered with update_storage_usage().")
    if amount <= 0:
        raise ValueError("Usage amount must be positive.")
    at = at or timezone.now()
    field_name = str(resource)

    with transaction.atomic():
        locked = SubscriptionAccount.objects.select_for_update().get(pk=account.pk)
        requested = getattr(locked, field_name) + amount
        limit = locked.limits[field_name]
        if enforce_limit and is_over_limit(requested, limit):
            raise UsageLimitExceeded(field_name, limit, requested)

        SubscriptionAccount.objects.filter(pk=locked.pk).update(**{field_name: F(field_name) + amount})
        row = _weekly_row(locked, timezone.localdate(at))
        WeeklyUsage.objects.filter(pk=row.pk).update(
            **{field_name: F(field_name) + amount},
            total_activity=F("total_activity") + amount,
        )

    account.refresh_from_db(fields=[field_name, "updated_at"])
    return account


def release_usage(account: SubscriptionAccount, resource: str, amount: int = 1) -> SubscriptionAccount:
    """Decrement a holding counter (a deleted product or listing)."""
    field_name = str(Resource(resource))
    with transaction.atomic():
        locked = SubscriptionAccount.objects.select_for_update().get(pk=account.pk)
        setattr(locked, field_name, max(0, getattr(locked, field_name) - amount))
        locked.save(update_fields=[field_name, "updated_at"])
    account.refresh_from_db(fields=[field_name, "updated_at"])
    return account


def update_storage_usage(account: SubscriptionAccount, delta_bytes: int) -> SubscriptionAccount:
    with transaction.atomic():
        locked = SubscriptionAccount.objects.select_for_update().get(pk=account.pk)
        requested = max(0, locked.storage + delta_bytes)
        limit = locked.limits[Resource.STORAGE.value]
        if delta_bytes > 0 and is_over_limit(requested, limit):
            raise UsageLimitExceeded(Resource.STORAGE.value, limit, requested)
        locked.storage = requested
        locked.save(update_fields=["storage", "updated_at"])
    account.refresh_from_db(fields=["storage", "updated_at"])
    return account


def track_feature_usage(account: SubscriptionAccount, feature_name: str, count: int = 1, duration: int = 0,
                        at: datetime | None = None) -> FeatureUsage:
    feature_name = feature_key(feature_name)
    if not feature_name:
        raise ValueError("Feature name is required.")
    at = at or timezone.now()
    day = timezone.localdate(at)
    for _attempt in range(2):
        try:
            with transaction.atomic():
                usage, _created = FeatureUsage.objects.get_or_create(
                    account=account,
                    date=day,
                    feature_name=feature_name,
                )
                FeatureUsage.objects.filter(pk=usage.pk).update(
                    usage_count=F("usage_count") + count,
                    usage_duration=F("usage_duration") + duration,
                )
                ActivityEvent.objects.create(
                    account=account,
                    kind=ActivityEvent.Kind.FEATURE,
                    feature_name=feature_name,
                    occurred_at=at,
                )
            usage.refresh_from_db(fields=["usage_count", "usage_duration"])
            return usage
        except IntegrityError:
            # Concurrent first use of the feature on that day.
            continue
    raise ValueError("Unable to record feature usage. Try again.")


def record_login(user, at: datetime | None = None) -> ActivityEvent:
    account = get_or_create_account(user)
    return ActivityEvent.objects.create(
        account=account,
        kind=ActivityEvent.Kind.LOGIN,
        occurred_at=at or timezone.now(),
    )


def close_usage_week(account: SubscriptionAccount, week_start: date) -> WeeklyUsage:
    """Make sure the week exists in the history and stamp the storage level.

    Weeks without activity still get a row so the history series keeps its
    zero weeks.
    """
    week_start = week_start_for(week_start)
    row, created = WeeklyUsage.objects.get_or_create(account=account, week_start=week_start)
    row.storage = account.storage
    row.save(update_fields=["storage", "updated_at"])
    if created:
        logger.debug("Empty usage week %s recorded for account %s.", row.week_label, account.pk)
    return row


def reset_monthly_counters(account: SubscriptionAccount) -> SubscriptionAccount:
    fields = [str(resource) for resource in MONTHLY_RESOURCES]
    for field_name in fields:
        setattr(account, field_name, 0)
    account.save(update_fields=fields + ["updated_at"])
    return account


def sync_usage_alerts(account: SubscriptionAccount, alerts, today: date | None = None) -> int:
    """Persist engine alerts, at most one per account and title per day."""
    today = today or timezone.localdate()
    created_count = 0
    for alert in alerts:
        _obj, created = UsageAlert.objects.get_or_create(
            account=account,
            title=alert.title,
            alert_date=today,
            defaults={
                "alert_type": str(alert.type),
                "severity": str(alert.severity),
                "message": alert.message,
                "threshold": alert.threshold,
                "current_value": alert.current_value,
            },
        )
        if created:
            created_count += 1
    return created_count


def record_offer_interaction(account: SubscriptionAccount, offer_id: str, action: str,
                             metadata: dict | None = None) -> OfferInteraction:
    interaction = OfferInteraction.objects.create(
        account=account,
        offer_id=offer_id,
        action=OfferInteraction.Action(action),
        metadata=metadata or {},
    )
    logger.info("Offer %s %s by account %s.", offer_id, action, account.pk)
    return interaction
