"""Snapshot loading from the subscriptions tables.

The engine never queries the database itself: a repository reads everything
it needs once, up front, and hands over an immutable :class:`AccountSnapshot`.
"""
from __future__ import annotations

from datetime import datetime, timedelta

from django.db.models import Count, Sum
from django.db.models.functions import ExtractHour, TruncDate
from django.utils import timezone

from intelligence.exceptions import AccountNotFound
from intelligence.types import AccountSnapshot, WeeklyTrend
from subscriptions.models import ActivityEvent, FeatureUsage, SubscriptionAccount, WeeklyUsage
from subscriptions.services import week_start_for

LOGIN_WINDOW_DAYS = 28
ACTIVITY_WINDOW_DAYS = 30


class DjangoSnapshotRepository:
    """Reads account snapshots through the Django ORM."""

    def __init__(self, history_weeks: int = 8):
        self.history_weeks = history_weeks

    def _get_account(self, user_id) -> SubscriptionAccount:
        try:
            return SubscriptionAccount.objects.select_related("user").get(user_id=user_id)
        except SubscriptionAccount.DoesNotExist:
            raise AccountNotFound(user_id) from None

    def load_account(self, user_id, now: datetime | None = None) -> AccountSnapshot:
        """Tier, counters and join date only."""
        account = self._get_account(user_id)
        return AccountSnapshot(
            user_id=account.user_id,
            tier=account.tier,
            joined_at=account.user.date_joined,
            current_usage=account.current_usage(),
        )

    def load(self, user_id, now: datetime | None = None) -> AccountSnapshot:
        now = now or timezone.now()
        account = self._get_account(user_id)
        return AccountSnapshot(
            user_id=account.user_id,
            tier=account.tier,
            joined_at=account.user.date_joined,
            current_usage=account.current_usage(),
            history=self.weekly_history(account, now),
            login_frequency=self.login_frequency(account, now),
            feature_usage=self.feature_usage(account, now),
            time_of_day_usage=self.time_of_day_usage(account, now),
        )

    def weekly_history(self, account: SubscriptionAccount, now: datetime) -> tuple[WeeklyTrend, ...]:
        """Closed weeks before the one containing ``now``, oldest first."""
        current_week = week_start_for(timezone.localdate(now))
        rows = list(
            WeeklyUsage.objects
            .filter(account=account, week_start__lt=current_week)
            .order_by("-week_start")[: self.history_weeks]
        )
        rows.reverse()
        return tuple(
            WeeklyTrend(week=row.week_label, usage=row.usage(), total_activity=row.total_activity)
            for row in rows
        )

    def login_frequency(self, account: SubscriptionAccount, now: datetime) -> float:
        """Distinct login days per week over the last four weeks (0..7)."""
        login_days = (
            ActivityEvent.objects
            .filter(
                account=account,
                kind=ActivityEvent.Kind.LOGIN,
                occurred_at__gte=now - timedelta(days=LOGIN_WINDOW_DAYS),
                occurred_at__lte=now,
            )
            .annotate(day=TruncDate("occurred_at"))
            .order_by()
            .values("day")
            .distinct()
            .count()
        )
        return round(login_days / (LOGIN_WINDOW_DAYS / 7), 2)

    def feature_usage(self, account: SubscriptionAccount, now: datetime) -> dict[str, int]:
        since = (now - timedelta(days=ACTIVITY_WINDOW_DAYS)).date()
        rows = (
            FeatureUsage.objects
            .filter(account=account, date__gte=since)
            .order_by()
            .values("feature_name")
            .annotate(total=Sum("usage_count"))
        )
        return {row["feature_name"]: int(row["total"] or 0) for row in rows}

    def time_of_day_usage(self, account: SubscriptionAccount, now: datetime) -> dict[int, int]:
        rows = (
            ActivityEvent.objects
            .filter(account=account, occurred_at__gte=now - timedelta(days=ACTIVITY_WINDOW_DAYS))
            .annotate(hour=ExtractHour("occurred_at"))
            .order_by()
            .values("hour")
            .annotate(total=Count("id"))
        )
        return {int(row["hour"]): row["total"] for row in rows}
