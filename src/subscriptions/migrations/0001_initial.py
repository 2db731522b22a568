import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


def _timestamped():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="SubscriptionAccount",
            fields=_timestamped() + [
                ("tier", models.CharField(choices=[("free", "Free"), ("pro", "Pro")], db_index=True, default="free", max_length=10)),
                ("status", models.CharField(choices=[("active", "Active"), ("paused", "Paused"), ("cancelled", "Cancelled")], db_index=True, default="active", max_length=10)),
                ("billing_interval", models.CharField(choices=[("monthly", "Monthly"), ("yearly", "Yearly")], default="monthly", max_length=10)),
                ("ai_requests", models.PositiveIntegerField(default=0)),
                ("products", models.PositiveIntegerField(default=0)),
                ("marketplace_listings", models.PositiveIntegerField(default=0)),
                ("file_uploads", models.PositiveIntegerField(default=0)),
                ("storage", models.PositiveBigIntegerField(default=0, help_text="Bytes stored.")),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="subscription",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="WeeklyUsage",
            fields=_timestamped() + [
                ("week_start", models.DateField(db_index=True)),
                ("ai_requests", models.PositiveIntegerField(default=0)),
                ("products", models.PositiveIntegerField(default=0)),
                ("marketplace_listings", models.PositiveIntegerField(default=0)),
                ("file_uploads", models.PositiveIntegerField(default=0)),
                ("storage", models.PositiveBigIntegerField(default=0)),
                ("total_activity", models.PositiveIntegerField(default=0)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="weekly_usage",
                        to="subscriptions.subscriptionaccount",
                    ),
                ),
            ],
            options={
                "ordering": ["account", "week_start"],
                "unique_together": {("account", "week_start")},
            },
        ),
        migrations.CreateModel(
            name="FeatureUsage",
            fields=_timestamped() + [
                ("date", models.DateField(db_index=True)),
                ("feature_name", models.CharField(max_length=100)),
                ("usage_count", models.PositiveIntegerField(default=0)),
                ("usage_duration", models.PositiveIntegerField(default=0, help_text="Seconds spent in the feature.")),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="feature_usage",
                        to="subscriptions.subscriptionaccount",
                    ),
                ),
            ],
            options={
                "ordering": ["account", "-date", "feature_name"],
                "unique_together": {("account", "date", "feature_name")},
            },
        ),
        migrations.CreateModel(
            name="ActivityEvent",
            fields=_timestamped() + [
                ("kind", models.CharField(choices=[("login", "Login"), ("feature", "Feature")], db_index=True, max_length=10)),
                ("feature_name", models.CharField(blank=True, default="", max_length=100)),
                ("occurred_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="activity_events",
                        to="subscriptions.subscriptionaccount",
                    ),
                ),
            ],
            options={
                "ordering": ["-occurred_at"],
                "indexes": [models.Index(fields=["account", "kind", "occurred_at"], name="sub_activity_acct_kind_idx")],
            },
        ),
        migrations.CreateModel(
            name="UsageAlert",
            fields=_timestamped() + [
                ("alert_date", models.DateField(db_index=True, default=django.utils.timezone.localdate)),
                ("alert_type", models.CharField(max_length=40)),
                ("severity", models.CharField(choices=[("info", "Info"), ("warning", "Warning"), ("critical", "Critical")], db_index=True, max_length=10)),
                ("title", models.CharField(max_length=150)),
                ("message", models.TextField(blank=True, default="")),
                ("threshold", models.PositiveBigIntegerField(blank=True, null=True)),
                ("current_value", models.PositiveBigIntegerField(blank=True, null=True)),
                ("status", models.CharField(choices=[("open", "Open"), ("acknowledged", "Acknowledged"), ("resolved", "Resolved")], db_index=True, default="open", max_length=15)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="usage_alerts",
                        to="subscriptions.subscriptionaccount",
                    ),
                ),
            ],
            options={
                "ordering": ["-alert_date", "severity"],
                "unique_together": {("account", "title", "alert_date")},
            },
        ),
        migrations.CreateModel(
            name="OfferInteraction",
            fields=_timestamped() + [
                ("offer_id", models.CharField(db_index=True, max_length=120)),
                ("action", models.CharField(choices=[("viewed", "Viewed"), ("accepted", "Accepted"), ("declined", "Declined")], max_length=10)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="offer_interactions",
                        to="subscriptions.subscriptionaccount",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
