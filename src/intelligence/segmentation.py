"""Behavioral segmentation.

The primary classifier only ever answers ``new_user``, ``power_user`` or
``casual_user``. ``at_risk``, ``price_sensitive`` and ``high_value`` are
overlays derived from churn and tier signals; they travel next to the primary
segment inside a :class:`SegmentProfile` and never replace it.
"""
from __future__ import annotations

from intelligence.churn import churn_score
from intelligence.types import SegmentProfile, SegmentType, UsagePatterns, UserSegment
from subscriptions.limits import Resource, Tier, UNLIMITED

NEW_USER_DAYS = 30
POWER_USER_AI_REQUESTS = 50
PRICE_SENSITIVE_MIN_AGE_DAYS = 90
PRICE_SENSITIVE_USAGE_PERCENT = 80
AT_RISK_SCORE = 50
HIGH_VALUE_MAX_RISK_SCORE = 30

SEGMENTS = {
    SegmentType.NEW_USER: UserSegment(
        type=SegmentType.NEW_USER,
        characteristics=("Recently joined", "Exploring features"),
        typical_behavior=("High initial activity", "Feature discovery"),
        recommended_strategy="Onboarding and education focus",
    ),
    SegmentType.POWER_USER: UserSegment(
        type=SegmentType.POWER_USER,
        characteristics=("High usage", "Feature adoption"),
        typical_behavior=("Regular usage", "Advanced features"),
        recommended_strategy="Value reinforcement and advanced features",
    ),
    SegmentType.CASUAL_USER: UserSegment(
        type=SegmentType.CASUAL_USER,
        characteristics=("Moderate usage", "Basic features"),
        typical_behavior=("Occasional usage", "Simple workflows"),
        recommended_strategy="Engagement and feature discovery",
    ),
    SegmentType.AT_RISK: UserSegment(
        type=SegmentType.AT_RISK,
        characteristics=("Declining usage", "Low engagement"),
        typical_behavior=("Infrequent logins", "Narrow feature use"),
        recommended_strategy="Retention offers and proactive support",
    ),
    SegmentType.PRICE_SENSITIVE: UserSegment(
        type=SegmentType.PRICE_SENSITIVE,
        characteristics=("Long-time free user", "Working at plan limits"),
        typical_behavior=("Works around limits", "Defers upgrades"),
        recommended_strategy="Discounted or yearly pricing",
    ),
    SegmentType.HIGH_VALUE: UserSegment(
        type=SegmentType.HIGH_VALUE,
        characteristics=("Pro subscriber", "Heavy usage"),
        typical_behavior=("Daily usage", "Advanced features"),
        recommended_strategy="Loyalty rewards and early access",
    ),
}


def classify_segment(current_usage: dict[str, int], account_age_days: int,
                     power_user_ai_requests: int = POWER_USER_AI_REQUESTS) -> UserSegment:
    """First match wins: account age, then AI request volume, then casual."""
    if account_age_days < NEW_USER_DAYS:
        return SEGMENTS[SegmentType.NEW_USER]
    if current_usage.get(Resource.AI_REQUESTS, 0) > power_user_ai_requests:
        return SEGMENTS[SegmentType.POWER_USER]
    return SEGMENTS[SegmentType.CASUAL_USER]


def _near_any_limit(patterns: UsagePatterns) -> bool:
    return any(
        metric.limit != UNLIMITED and metric.percentage > PRICE_SENSITIVE_USAGE_PERCENT
        for metric in patterns.metrics().values()
    )


def derive_overlays(primary: UserSegment, patterns: UsagePatterns, tier: str, account_age_days: int) -> tuple[UserSegment, ...]:
    risk_score = churn_score(patterns)
    overlays = []
    if risk_score >= AT_RISK_SCORE:
        overlays.append(SEGMENTS[SegmentType.AT_RISK])
    if tier == Tier.FREE and account_age_days >= PRICE_SENSITIVE_MIN_AGE_DAYS and _near_any_limit(patterns):
        overlays.append(SEGMENTS[SegmentType.PRICE_SENSITIVE])
    if tier == Tier.PRO and primary.type == SegmentType.POWER_USER and risk_score < HIGH_VALUE_MAX_RISK_SCORE:
        overlays.append(SEGMENTS[SegmentType.HIGH_VALUE])
    return tuple(overlays)


def build_profile(patterns: UsagePatterns, current_usage: dict[str, int], tier: str, account_age_days: int,
                  power_user_ai_requests: int = POWER_USER_AI_REQUESTS) -> SegmentProfile:
    primary = classify_segment(current_usage, account_age_days, power_user_ai_requests)
    return SegmentProfile(primary=primary, overlays=derive_overlays(primary, patterns, tier, account_age_days))
