from datetime import datetime, timedelta, timezone as dt_timezone

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from intelligence.exceptions import AccountNotFound
from intelligence.types import AccountSnapshot, WeeklyTrend
from intelligence.usage import analyze_usage
from subscriptions.limits import RESOURCES, Tier

User = get_user_model()

FIXED_NOW = datetime(2025, 3, 12, 12, 0, tzinfo=dt_timezone.utc)


class StubRepository:
    """In-memory snapshot source keyed by user id."""

    def __init__(self, *snapshots):
        self.snapshots = {snapshot.user_id: snapshot for snapshot in snapshots}
        self.calls = []

    def load(self, user_id, now=None):
        self.calls.append(("load", user_id))
        try:
            return self.snapshots[user_id]
        except KeyError:
            raise AccountNotFound(user_id) from None

    def load_account(self, user_id, now=None):
        self.calls.append(("load_account", user_id))
        return self.load(user_id, now)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def user(db):
    return User.objects.create_user(
        username="ada",
        email="ada@test.com",
        password="testpass123",
    )


@pytest.fixture
def pro_user(db):
    user = User.objects.create_user(
        username="grace",
        email="grace@test.com",
        password="testpass123",
    )
    user.subscription.tier = Tier.PRO
    user.subscription.save(update_fields=["tier", "updated_at"])
    return user


@pytest.fixture
def account(user):
    return user.subscription


@pytest.fixture
def api_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def make_history():
    """Build weekly history rows from per-resource series of equal length."""

    def _make(total_activity=None, **series):
        length = max([len(values) for values in series.values()] + [len(total_activity or [])])
        weeks = []
        for index in range(length):
            usage = {resource: 0 for resource in RESOURCES}
            for resource, values in series.items():
                usage[resource] = values[index]
            total = total_activity[index] if total_activity else sum(usage.values())
            weeks.append(WeeklyTrend(week=f"2025-W{index + 1:02d}", usage=usage, total_activity=total))
        return tuple(weeks)

    return _make


@pytest.fixture
def make_snapshot(now):
    def _make(tier=Tier.FREE, age_days=60, usage=None, history=(), login_frequency=3.0,
              feature_usage=None, time_of_day_usage=None, user_id=1):
        current_usage = {resource: 0 for resource in RESOURCES}
        current_usage.update(usage or {})
        return AccountSnapshot(
            user_id=user_id,
            tier=tier,
            joined_at=now - timedelta(days=age_days),
            current_usage=current_usage,
            history=tuple(history),
            login_frequency=login_frequency,
            feature_usage=dict(feature_usage or {}),
            time_of_day_usage=dict(time_of_day_usage or {}),
        )

    return _make


@pytest.fixture
def make_patterns(make_snapshot):
    def _make(**kwargs):
        return analyze_usage(make_snapshot(**kwargs))

    return _make


@pytest.fixture
def stub_repository_class():
    return StubRepository
