"""Usage pattern analysis.

Turns the live counters and the weekly usage history of an account into one
:class:`UsageMetric` per metered resource plus account-level engagement
figures. Short histories are zero-filled inside the fixed-size windows
(4-week average, 2-point trend windows) instead of failing.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from intelligence.types import AccountSnapshot, Trend, UsageMetric, UsagePatterns
from subscriptions.limits import RESOURCES, Resource, limits_for, usage_percentage

logger = logging.getLogger("subintel")

WEEKLY_WINDOW = 4
TREND_WINDOW = 2
GROWTH_WINDOW = 4
TREND_UP_RATIO = Decimal("1.1")
TREND_DOWN_RATIO = Decimal("0.9")
PROJECTION_UP = Decimal("1.3")
PROJECTION_DOWN = Decimal("0.8")


def _round_int(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _ratio(numerator, denominator) -> float:
    if not denominator:
        return 0.0
    return float(numerator) / float(denominator)


def classify_trend(series: Sequence[int]) -> str:
    """Compare the mean of the last two points with the mean of the first two."""
    recent = Decimal(sum(series[-TREND_WINDOW:])) / TREND_WINDOW
    older = Decimal(sum(series[:TREND_WINDOW])) / TREND_WINDOW
    if recent > older * TREND_UP_RATIO:
        return Trend.INCREASING
    if recent < older * TREND_DOWN_RATIO:
        return Trend.DECREASING
    return Trend.STABLE


def project_monthly(current: int, trend: str) -> int:
    if trend == Trend.INCREASING:
        return _round_int(Decimal(current) * PROJECTION_UP)
    if trend == Trend.DECREASING:
        return _round_int(Decimal(current) * PROJECTION_DOWN)
    return current


def build_metric(current: int, limit: int, series: Sequence[int]) -> UsageMetric:
    """Build the metric of one resource from its counter, limit and history."""
    series = list(series)
    trend = classify_trend(series)
    return UsageMetric(
        current=current,
        limit=limit,
        percentage=usage_percentage(current, limit),
        trend=trend,
        weekly_average=sum(series[-WEEKLY_WINDOW:]) / WEEKLY_WINDOW,
        monthly_average=_ratio(sum(series), len(series)),
        peak_usage=max(series + [current]),
        projected_monthly=project_monthly(current, trend),
    )


def monthly_growth(series: Sequence[int]) -> float:
    """Signed growth between the first and the last four weeks of AI requests."""
    if len(series) < GROWTH_WINDOW:
        return 0.0
    older = sum(series[:GROWTH_WINDOW])
    recent = sum(series[-GROWTH_WINDOW:])
    return _ratio(recent - older, older)


def analyze_usage(snapshot: AccountSnapshot, limits: dict[str, int] | None = None) -> UsagePatterns:
    limits = limits or limits_for(snapshot.tier)
    history = tuple(snapshot.history)
    if len(history) < GROWTH_WINDOW:
        logger.debug(
            "Short usage history for user %s (%s weeks), zero-filling windows.",
            snapshot.user_id,
            len(history),
        )

    metrics = {}
    for resource in RESOURCES:
        series = [week.usage.get(resource, 0) for week in history]
        metrics[resource] = build_metric(
            current=snapshot.current_usage.get(resource, 0),
            limit=limits.get(resource, 0),
            series=series,
        )

    return UsagePatterns(
        **metrics,
        login_frequency=snapshot.login_frequency,
        feature_usage=dict(snapshot.feature_usage),
        time_of_day_usage=dict(snapshot.time_of_day_usage),
        weekly_trends=history,
        monthly_growth=monthly_growth([week.usage.get(Resource.AI_REQUESTS, 0) for week in history]),
    )
