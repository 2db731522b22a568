"""Admin configuration for subscription and usage models."""
from django.contrib import admin

from subscriptions.models import (
    ActivityEvent,
    FeatureUsage,
    OfferInteraction,
    SubscriptionAccount,
    UsageAlert,
    WeeklyUsage,
)


@admin.register(SubscriptionAccount)
class SubscriptionAccountAdmin(admin.ModelAdmin):
    list_display = ("user", "tier", "status", "billing_interval", "ai_requests", "products", "created_at")
    list_filter = ("tier", "status", "billing_interval")
    search_fields = ("user__username", "user__email")
    list_select_related = ("user",)
    readonly_fields = ("created_at", "updated_at")


@admin.register(WeeklyUsage)
class WeeklyUsageAdmin(admin.ModelAdmin):
    list_display = ("account", "week_start", "ai_requests", "products", "file_uploads", "total_activity")
    list_filter = ("week_start",)
    date_hierarchy = "week_start"
    list_select_related = ("account__user",)


@admin.register(FeatureUsage)
class FeatureUsageAdmin(admin.ModelAdmin):
    list_display = ("account", "date", "feature_name", "usage_count", "usage_duration")
    list_filter = ("feature_name", "date")
    search_fields = ("feature_name", "account__user__email")
    list_select_related = ("account__user",)


@admin.register(ActivityEvent)
class ActivityEventAdmin(admin.ModelAdmin):
    list_display = ("account", "kind", "feature_name", "occurred_at")
    list_filter = ("kind",)
    date_hierarchy = "occurred_at"
    list_select_related = ("account__user",)


@admin.register(UsageAlert)
class UsageAlertAdmin(admin.ModelAdmin):
    list_display = ("account", "title", "severity", "status", "alert_date")
    list_filter = ("severity", "status", "alert_date")
    search_fields = ("title", "account__user__email")
    list_select_related = ("account__user",)
    readonly_fields = ("alert_type", "threshold", "current_value", "created_at")


@admin.register(OfferInteraction)
class OfferInteractionAdmin(admin.ModelAdmin):
    list_display = ("account", "offer_id", "action", "created_at")
    list_filter = ("action",)
    search_fields = ("offer_id",)
    list_select_related = ("account__user",)
