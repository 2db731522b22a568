"""Subscription change recommendations (upgrade, downgrade, pause)."""
from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from intelligence.types import (
    RecommendationType,
    SegmentProfile,
    SegmentType,
    SubscriptionRecommendation,
    UsagePatterns,
    Urgency,
)
from subscriptions.limits import BillingInterval, Tier

UPGRADE_THRESHOLD = 40
DOWNGRADE_THRESHOLD = 50
PAUSE_THRESHOLD = 50

UPGRADE_VALIDITY = timedelta(days=7)
DOWNGRADE_VALIDITY = timedelta(days=30)
PAUSE_VALIDITY = timedelta(days=14)

UPGRADE_POTENTIAL_VALUE = Decimal("200")

GOAL_COST_OPTIMIZATION = "cost_optimization"
GOAL_FEATURE_ACCESS = "feature_access"
CONSTRAINT_BUDGET_CONSCIOUS = "budget_conscious"


def _confidence(signals) -> tuple[int, list[str]]:
    triggered = [(points, reason) for fired, points, reason in signals if fired]
    return sum(points for points, _ in triggered), [reason for _, reason in triggered]


def recommend_upgrade(patterns: UsagePatterns, tier: str, account_age_days: int, profile: SegmentProfile,
                      now: datetime) -> SubscriptionRecommendation | None:
    if tier != Tier.FREE:
        return None
    ai_heavy = patterns.ai_requests.percentage > 80
    confidence, reasoning = _confidence([
        (ai_heavy, 30, "You're using 80%+ of your AI request limit"),
        (patterns.products.percentage > 70, 25, "You're approaching your product creation limit"),
        (patterns.monthly_growth > 0.2, 20, "Your usage is growing rapidly (+20% monthly)"),
        (patterns.login_frequency > 4, 15, "You're highly engaged (4+ logins per week)"),
        (account_age_days > 14, 10, "You've been using the platform for 2+ weeks"),
    ])
    if confidence < UPGRADE_THRESHOLD:
        return None
    if profile.matches(SegmentType.PRICE_SENSITIVE):
        interval = BillingInterval.YEARLY
    else:
        interval = BillingInterval.MONTHLY
    return SubscriptionRecommendation(
        type=RecommendationType.UPGRADE,
        tier=Tier.PRO,
        interval=interval,
        confidence=confidence,
        reasoning=tuple(reasoning),
        potential_value=UPGRADE_POTENTIAL_VALUE,
        urgency=Urgency.HIGH if ai_heavy else Urgency.LOW,
        valid_until=now + UPGRADE_VALIDITY,
    )


def recommend_downgrade(patterns: UsagePatterns, tier: str, now: datetime,
                        monthly_price: Decimal) -> SubscriptionRecommendation | None:
    if tier != Tier.PRO:
        return None
    confidence, reasoning = _confidence([
        (patterns.ai_requests.current < 5, 30, "You're using very few AI requests"),
        (patterns.login_frequency < 1, 25, "Low engagement (less than 1 login per week)"),
        (patterns.active_feature_count < 2, 20, "Limited feature usage"),
    ])
    if confidence < DOWNGRADE_THRESHOLD:
        return None
    return SubscriptionRecommendation(
        type=RecommendationType.DOWNGRADE,
        tier=Tier.FREE,
        confidence=confidence,
        reasoning=tuple(reasoning),
        potential_savings=monthly_price,
        urgency=Urgency.LOW,
        valid_until=now + DOWNGRADE_VALIDITY,
    )


def recommend_pause(patterns: UsagePatterns, tier: str, now: datetime,
                    monthly_price: Decimal) -> SubscriptionRecommendation | None:
    confidence, reasoning = _confidence([
        (patterns.login_frequency < 0.5, 40, "Very low activity (less than 2 logins per month)"),
        (patterns.ai_requests.current == 0, 30, "No AI requests this month"),
    ])
    if confidence < PAUSE_THRESHOLD:
        return None
    return SubscriptionRecommendation(
        type=RecommendationType.PAUSE,
        tier=tier,
        confidence=confidence,
        reasoning=tuple(reasoning),
        potential_savings=monthly_price,
        urgency=Urgency.MEDIUM,
        valid_until=now + PAUSE_VALIDITY,
    )


def generate_recommendations(patterns: UsagePatterns, tier: str, account_age_days: int, profile: SegmentProfile,
                             now: datetime, monthly_price: Decimal) -> list[SubscriptionRecommendation]:
    candidates = [
        recommend_upgrade(patterns, tier, account_age_days, profile, now),
        recommend_downgrade(patterns, tier, now, monthly_price),
        recommend_pause(patterns, tier, now, monthly_price),
    ]
    emitted = [candidate for candidate in candidates if candidate is not None]
    return sorted(emitted, key=lambda item: item.confidence, reverse=True)


# ---------------------------------------------------------------------------
# Goal based filtering
# ---------------------------------------------------------------------------


def apply_goals(recommendations: Iterable[SubscriptionRecommendation], goals: Iterable[str] = (),
                constraints: Iterable[str] = ()) -> list[SubscriptionRecommendation]:
    """Keep recommendations serving at least one goal, then apply constraints.

    Without goals every recommendation is kept.
    """
    goals = set(goals)
    constraints = set(constraints)
    kept = []
    for item in recommendations:
        if goals:
            serves_cost = GOAL_COST_OPTIMIZATION in goals and (
                item.type == RecommendationType.DOWNGRADE or bool(item.potential_savings)
            )
            serves_access = GOAL_FEATURE_ACCESS in goals and (
                item.type == RecommendationType.UPGRADE or bool(item.potential_value)
            )
            if not (serves_cost or serves_access):
                continue
        if CONSTRAINT_BUDGET_CONSCIOUS in constraints and item.interval:
            item = dataclasses.replace(item, interval=BillingInterval.YEARLY)
        kept.append(item)
    return kept


def projected_totals(recommendations: Iterable[SubscriptionRecommendation]) -> dict[str, Decimal]:
    savings = Decimal("0.00")
    value = Decimal("0.00")
    for item in recommendations:
        savings += item.potential_savings or Decimal("0.00")
        value += item.potential_value or Decimal("0.00")
    return {"projected_savings": savings, "projected_value": value}
