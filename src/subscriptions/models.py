"""Models for subscription accounts, metered usage and usage history."""
from django.conf import settings
from django.db import models
from django.utils import timezone

from core.models import TimeStampedModel
from subscriptions.limits import RESOURCES, BillingInterval, Tier, limits_for


class SubscriptionAccount(TimeStampedModel):
    """One subscription per user, carrying the live usage counters."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        PAUSED = "paused", "Paused"
        CANCELLED = "cancelled", "Cancelled"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="subscription",
    )
    tier = models.CharField(max_length=10, choices=Tier.choices, default=Tier.FREE, db_index=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE, db_index=True)
    billing_interval = models.CharField(max_length=10, choices=BillingInterval.choices, default=BillingInterval.MONTHLY)
    ai_requests = models.PositiveIntegerField(default=0)
    products = models.PositiveIntegerField(default=0)
    marketplace_listings = models.PositiveIntegerField(default=0)
    file_uploads = models.PositiveIntegerField(default=0)
    storage = models.PositiveBigIntegerField(default=0, help_text="Bytes stored.")

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.user} ({self.tier})"

    @property
    def limits(self) -> dict[str, int]:
        return limits_for(self.tier)

    def current_usage(self) -> dict[str, int]:
        return {resource: getattr(self, resource) for resource in RESOURCES}


class WeeklyUsage(TimeStampedModel):
    """Usage totals for one account over one ISO week (Monday start)."""

    account = models.ForeignKey(
        SubscriptionAccount,
        on_delete=models.CASCADE,
        related_name="weekly_usage",
    )
    week_start = models.DateField(db_index=True)
    ai_requests = models.PositiveIntegerField(default=0)
    products = models.PositiveIntegerField(default=0)
    marketplace_listings = models.PositiveIntegerField(default=0)
    file_uploads = models.PositiveIntegerField(default=0)
    storage = models.PositiveBigIntegerField(default=0)
    total_activity = models.PositiveIntegerField(default=0)

    class Meta:
        unique_together = [["account", "week_start"]]
        ordering = ["account", "week_start"]

    def __str__(self):
        return f"{self.account} {self.week_label}"

    @property
    def week_label(self) -> str:
        year, week, _ = self.week_start.isocalendar()
        return f"{year}-W{week:02d}"

    def usage(self) -> dict[str, int]:
        return {resource: getattr(self, resource) for resource in RESOURCES}


class FeatureUsage(TimeStampedModel):
    """Daily usage of one named product feature."""

    account = models.ForeignKey(
        SubscriptionAccount,
        on_delete=models.CASCADE,
        related_name="feature_usage",
    )
    date = models.DateField(db_index=True)
    feature_name = models.CharField(max_length=100)
    usage_count = models.PositiveIntegerField(default=0)
    usage_duration = models.PositiveIntegerField(default=0, help_text="Seconds spent in the feature.")

    class Meta:
        unique_together = [["account", "date", "feature_name"]]
        ordering = ["account", "-date", "feature_name"]

    def __str__(self):
        return f"{self.account} {self.feature_name} {self.date}"


class ActivityEvent(TimeStampedModel):
    """Timestamped login or feature event, source of engagement aggregates."""

    class Kind(models.TextChoices):
        LOGIN = "login", "Login"
        FEATURE = "feature", "Feature"

    account = models.ForeignKey(
        SubscriptionAccount,
        on_delete=models.CASCADE,
        related_name="activity_events",
    )
    kind = models.CharField(max_length=10, choices=Kind.choices, db_index=True)
    feature_name = models.CharField(max_length=100, blank=True, default="")
    occurred_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-occurred_at"]
        indexes = [
            models.Index(fields=["account", "kind", "occurred_at"], name="sub_activity_acct_kind_idx"),
        ]

    def __str__(self):
        return f"{self.account} {self.kind} {self.occurred_at:%Y-%m-%d %H:%M}"


class UsageAlert(TimeStampedModel):
    """Approaching-limit alert persisted for an account (one per title per day)."""

    class Severity(models.TextChoices):
        INFO = "info", "Info"
        WARNING = "warning", "Warning"
        CRITICAL = "critical", "Critical"

    class Status(models.TextChoices):
        OPEN = "open", "Open"
        ACKNOWLEDGED = "acknowledged", "Acknowledged"
        RESOLVED = "resolved", "Resolved"

    account = models.ForeignKey(
        SubscriptionAccount,
        on_delete=models.CASCADE,
        related_name="usage_alerts",
    )
    alert_date = models.DateField(default=timezone.localdate, db_index=True)
    alert_type = models.CharField(max_length=40)
    severity = models.CharField(max_length=10, choices=Severity.choices, db_index=True)
    title = models.CharField(max_length=150)
    message = models.TextField(blank=True, default="")
    threshold = models.PositiveBigIntegerField(null=True, blank=True)
    current_value = models.PositiveBigIntegerField(null=True, blank=True)
    status = models.CharField(max_length=15, choices=Status.choices, default=Status.OPEN, db_index=True)

    class Meta:
        unique_together = [["account", "title", "alert_date"]]
        ordering = ["-alert_date", "severity"]

    def __str__(self):
        return f"{self.account} {self.severity} {self.title}"


class OfferInteraction(TimeStampedModel):
    """Viewed / accepted / declined event on a personalized offer."""

    class Action(models.TextChoices):
        VIEWED = "viewed", "Viewed"
        ACCEPTED = "accepted", "Accepted"
        DECLINED = "declined", "Declined"

    account = models.ForeignKey(
        SubscriptionAccount,
        on_delete=models.CASCADE,
        related_name="offer_interactions",
    )
    offer_id = models.CharField(max_length=120, db_index=True)
    action = models.CharField(max_length=10, choices=Action.choices)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.account} {self.offer_id} {self.action}"
