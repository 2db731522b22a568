"""Churn risk assessment.

Additive factor model: each triggered factor adds (or, for growth,
subtracts) points, the total is clamped to 0..100 and mapped onto a risk
level. Retention actions are proposed from the level and the factors.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from intelligence.types import (
    ChurnFactor,
    ChurnRiskAssessment,
    FactorImpact,
    Priority,
    RetentionAction,
    RetentionActionType,
    RiskLevel,
    Trend,
    UsagePatterns,
)
from subscriptions.limits import Tier

ASSESSMENT_CONFIDENCE = 85

RISK_THRESHOLDS = (
    (70, RiskLevel.CRITICAL),
    (50, RiskLevel.HIGH),
    (30, RiskLevel.MEDIUM),
)

TIME_TO_CHURN_DAYS = {
    RiskLevel.CRITICAL.value: 7,
    RiskLevel.HIGH.value: 30,
}

INTERVENTION_URGENCY = {
    RiskLevel.CRITICAL.value: "immediate",
    RiskLevel.HIGH.value: "within_week",
    RiskLevel.MEDIUM.value: "within_month",
}

DECLINE_FRACTION_THRESHOLD = 0.3
LOW_ENGAGEMENT_LOGINS = 2
LIMITED_FEATURES = 3
GROWTH_THRESHOLD = 0.1

RETENTION_DISCOUNT_MONTHS = 3
RETENTION_DISCOUNT_RATE = Decimal("0.50")
LIFETIME_MONTHS = 12


@dataclass(frozen=True)
class _ScoredFactor:
    factor: ChurnFactor
    points: int


def risk_level_for_score(score) -> str:
    for threshold, level in RISK_THRESHOLDS:
        if score >= threshold:
            return level
    return RiskLevel.LOW


def _clamp(value, low=0, high=100):
    return max(low, min(high, value))


def _scored_factors(patterns: UsagePatterns) -> list[_ScoredFactor]:
    factors = []

    metrics = patterns.metrics()
    declining = sum(1 for metric in metrics.values() if metric.trend == Trend.DECREASING)
    decline_fraction = declining / len(metrics)
    if decline_fraction > DECLINE_FRACTION_THRESHOLD:
        factors.append(_ScoredFactor(
            ChurnFactor(
                factor="usage_decline",
                impact=FactorImpact.NEGATIVE,
                weight=0.3,
                description=f"Usage has declined by {round(decline_fraction * 100)}% recently",
            ),
            30,
        ))

    if patterns.login_frequency < LOW_ENGAGEMENT_LOGINS:
        factors.append(_ScoredFactor(
            ChurnFactor(
                factor="low_engagement",
                impact=FactorImpact.NEGATIVE,
                weight=0.25,
                description=f"User logs in only {patterns.login_frequency:g} times per week",
            ),
            25,
        ))

    active_features = patterns.active_feature_count
    if active_features < LIMITED_FEATURES:
        factors.append(_ScoredFactor(
            ChurnFactor(
                factor="limited_feature_usage",
                impact=FactorImpact.NEGATIVE,
                weight=0.2,
                description=f"User only uses {active_features} features regularly",
            ),
            20,
        ))

    if patterns.monthly_growth > GROWTH_THRESHOLD:
        factors.append(_ScoredFactor(
            ChurnFactor(
                factor="growing_usage",
                impact=FactorImpact.POSITIVE,
                weight=-0.2,
                description=f"Usage is growing by {round(patterns.monthly_growth * 100)}% monthly",
            ),
            -15,
        ))

    return factors


def churn_score(patterns: UsagePatterns) -> int:
    """Clamped factor score, without building retention actions."""
    return _clamp(sum(item.points for item in _scored_factors(patterns)))


def retention_actions(risk_level: str, factors, monthly_price: Decimal) -> list[RetentionAction]:
    names = {factor.factor for factor in factors}
    actions = []
    if risk_level in (RiskLevel.HIGH, RiskLevel.CRITICAL):
        actions.append(RetentionAction(
            type=RetentionActionType.DISCOUNT,
            title="Special Retention Offer",
            description="50% off next 3 months to keep you as a valued member",
            priority=Priority.HIGH,
            estimated_impact=60,
            cost=(monthly_price * RETENTION_DISCOUNT_MONTHS * RETENTION_DISCOUNT_RATE).quantize(Decimal("0.01")),
        ))
    if "limited_feature_usage" in names:
        actions.append(RetentionAction(
            type=RetentionActionType.EDUCATION,
            title="Personal Feature Tour",
            description="One-on-one session to show you powerful features you haven't tried",
            priority=Priority.MEDIUM,
            estimated_impact=40,
        ))
    if "low_engagement" in names:
        actions.append(RetentionAction(
            type=RetentionActionType.SUPPORT,
            title="Check-in Call",
            description="Personal call to understand your needs and help optimize your workflow",
            priority=Priority.MEDIUM,
            estimated_impact=35,
        ))
    return actions


def assess_churn_risk(patterns: UsagePatterns, monthly_price: Decimal = Decimal("29.00")) -> ChurnRiskAssessment:
    scored = _scored_factors(patterns)
    score = _clamp(sum(item.points for item in scored))
    level = risk_level_for_score(score)
    factors = tuple(item.factor for item in scored)
    return ChurnRiskAssessment(
        risk_level=level,
        score=score,
        factors=factors,
        retention_actions=tuple(retention_actions(level, factors, monthly_price)),
        confidence=ASSESSMENT_CONFIDENCE,
        time_to_churn=TIME_TO_CHURN_DAYS.get(level),
    )


def neutral_assessment() -> ChurnRiskAssessment:
    return ChurnRiskAssessment(
        risk_level=RiskLevel.LOW,
        score=0,
        factors=(),
        retention_actions=(),
        confidence=ASSESSMENT_CONFIDENCE,
    )


# ---------------------------------------------------------------------------
# Intervention planning
# ---------------------------------------------------------------------------


def intervention_urgency(risk_level: str) -> str:
    return INTERVENTION_URGENCY.get(risk_level, "monitor")


def prioritize_actions(actions, limit: int = 3) -> list[RetentionAction]:
    return sorted(actions, key=lambda action: action.estimated_impact, reverse=True)[:limit]


def retention_economics(tier: str, actions, monthly_price: Decimal) -> dict:
    """Lifetime value at stake versus the cost of the proposed actions."""
    lifetime_value = monthly_price * LIFETIME_MONTHS if tier == Tier.PRO else Decimal("0.00")
    investment = sum((action.cost or Decimal("0.00") for action in actions), Decimal("0.00"))
    if investment:
        roi = ((lifetime_value - investment) / investment * 100).quantize(Decimal("0.01"))
    else:
        roi = Decimal("0.00")
    return {
        "customer_lifetime_value": lifetime_value.quantize(Decimal("0.01")),
        "retention_investment": investment.quantize(Decimal("0.01")),
        "return_on_investment": roi,
    }
