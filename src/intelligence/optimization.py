"""Optimization suggestions and plan utilisation analytics."""
from __future__ import annotations

from decimal import Decimal

from intelligence.types import (
    AlertSeverity,
    AlertType,
    BillingOptimization,
    BillingOptimizationType,
    Difficulty,
    OptimizationSuggestion,
    SuggestionImpact,
    SuggestionType,
    UsageAlert,
    UsagePatterns,
)
from subscriptions.limits import FEATURES, UNLIMITED, Feature, Resource, Tier, feature_key

# Storage is excluded from utilisation scoring; it is billed by plan, not by count.
UTILISATION_RESOURCES = (
    Resource.AI_REQUESTS,
    Resource.PRODUCTS,
    Resource.MARKETPLACE_LISTINGS,
    Resource.FILE_UPLOADS,
)

ALERT_WARNING_PERCENT = 80
ALERT_CRITICAL_PERCENT = 95
UNDERUTILISED_FEATURE_USES = 5
PROJECTION_MULTIPLIERS = {
    "week": Decimal("0.25"),
    "month": Decimal("1"),
    "quarter": Decimal("3"),
    "year": Decimal("12"),
}
PROJECTION_CONFIDENCE = 75
BILLING_PROJECTION_CONFIDENCE = 85


def feature_label(name: str) -> str:
    key = feature_key(name)
    return Feature(key).label if key in FEATURES else name


def unused_features(feature_usage: dict[str, int]) -> list[str]:
    used = {feature_key(name) for name, uses in feature_usage.items() if uses}
    return [feature for feature in FEATURES if feature not in used]


def peak_hours(time_of_day_usage: dict[int, int], count: int = 1) -> list[int]:
    ranked = sorted(
        ((hour, uses) for hour, uses in time_of_day_usage.items() if uses > 0),
        key=lambda item: (-item[1], item[0]),
    )
    return [int(hour) for hour, _ in ranked[:count]]


def generate_suggestions(patterns: UsagePatterns) -> list[OptimizationSuggestion]:
    suggestions = []

    if patterns.ai_requests.percentage > 80:
        suggestions.append(OptimizationSuggestion(
            type=SuggestionType.USAGE,
            title="Optimize AI Request Usage",
            description="You're using 80%+ of your AI requests. Consider batching requests or upgrading.",
            impact=SuggestionImpact.LIMIT_OPTIMIZATION,
            difficulty=Difficulty.EASY,
            estimated_time="5 minutes",
            steps=(
                "Batch multiple questions into single requests",
                "Use templates for common queries",
                "Consider upgrading to Pro for unlimited requests",
            ),
        ))

    unused = unused_features(patterns.feature_usage)
    if unused:
        suggestions.append(OptimizationSuggestion(
            type=SuggestionType.FEATURES,
            title="Discover Unused Features",
            description=f"You haven't used {len(unused)} powerful features that could boost your productivity.",
            impact=SuggestionImpact.FEATURE_DISCOVERY,
            potential_value=Decimal("100"),
            difficulty=Difficulty.EASY,
            estimated_time="10 minutes",
            steps=tuple(f"Try the {feature_label(feature)} feature" for feature in unused),
        ))

    peak = peak_hours(patterns.time_of_day_usage)
    if peak:
        suggestions.append(OptimizationSuggestion(
            type=SuggestionType.WORKFLOW,
            title="Optimize Your Work Schedule",
            description=f"You're most active at {peak[0]}:00. Schedule important tasks during peak hours.",
            impact=SuggestionImpact.EFFICIENCY,
            difficulty=Difficulty.EASY,
            estimated_time="Ongoing",
        ))

    return suggestions


def filter_suggestions(suggestions, optimization_type: str | None) -> list[OptimizationSuggestion]:
    """Match on suggestion type or on an impact named after the requested focus."""
    if not optimization_type:
        return list(suggestions)
    impacts = {f"{optimization_type}_saving", f"{optimization_type}_optimization", optimization_type}
    return [item for item in suggestions if item.type == optimization_type or str(item.impact) in impacts]


# ---------------------------------------------------------------------------
# Utilisation analytics
# ---------------------------------------------------------------------------


def _utilisation(metric) -> float:
    return metric.current / metric.limit * 100 if metric.limit else 0.0


def usage_efficiency(patterns: UsagePatterns) -> dict:
    metrics = patterns.metrics()
    breakdown = {}
    for resource in UTILISATION_RESOURCES:
        metric = metrics[str(resource)]
        breakdown[str(resource)] = 100.0 if metric.limit == UNLIMITED else round(min(100.0, _utilisation(metric)), 2)
    overall = round(sum(breakdown.values()) / len(breakdown))
    return {"overall": overall, "breakdown": breakdown}


def optimization_score(patterns: UsagePatterns) -> int:
    """Plan fit score: 60-80% utilisation is optimal, both sides are penalised."""
    metrics = patterns.metrics()
    scores = []
    for resource in UTILISATION_RESOURCES:
        metric = metrics[str(resource)]
        if metric.limit == UNLIMITED:
            scores.append(100.0)
            continue
        utilisation = _utilisation(metric)
        if 60 <= utilisation <= 80:
            scores.append(100.0)
        elif utilisation < 60:
            scores.append(utilisation + 20)
        else:
            scores.append(max(0.0, 100 - (utilisation - 80)))
    return round(sum(scores) / len(scores))


def efficiency_rating(score: int) -> str:
    if score >= 90:
        return "excellent"
    if score >= 75:
        return "good"
    if score >= 60:
        return "fair"
    return "poor"


def build_usage_alerts(patterns: UsagePatterns) -> list[UsageAlert]:
    alerts = []
    for resource, metric in patterns.metrics().items():
        if metric.limit == UNLIMITED or metric.percentage <= ALERT_WARNING_PERCENT:
            continue
        label = Resource(resource).label
        severity = AlertSeverity.CRITICAL if metric.percentage > ALERT_CRITICAL_PERCENT else AlertSeverity.WARNING
        alerts.append(UsageAlert(
            type=AlertType.APPROACHING_LIMIT,
            severity=severity,
            title=f"{label} limit approaching",
            message=f"You've used {metric.percentage}% of your {label.lower()} limit",
            resource=resource,
            threshold=metric.limit,
            current_value=metric.current,
            suggested_actions=(
                "Consider upgrading to Pro for unlimited usage",
                "Optimize your current usage patterns",
                "Monitor usage more closely",
            ),
        ))
    return alerts


def project_usage(patterns: UsagePatterns, timeframe: str = "month") -> dict:
    multiplier = PROJECTION_MULTIPLIERS.get(timeframe, PROJECTION_MULTIPLIERS["year"])
    metrics = patterns.metrics()
    projection = {
        str(resource): round(metrics[str(resource)].projected_monthly * multiplier)
        for resource in UTILISATION_RESOURCES
    }
    projection["confidence"] = PROJECTION_CONFIDENCE
    projection["timeframe"] = timeframe
    return projection


def cost_optimizations(patterns: UsagePatterns, tier: str, monthly_price: Decimal) -> list[BillingOptimization]:
    metrics = patterns.metrics().values()
    optimizations = []
    if tier == Tier.PRO and all(metric.percentage < 30 for metric in metrics):
        optimizations.append(BillingOptimization(
            type=BillingOptimizationType.PLAN_CHANGE,
            title="Consider Downgrading to Free Tier",
            description="Your usage is consistently low. You could save money with the free tier.",
            potential_savings=monthly_price,
            effort="low",
            impact="high",
            implementation=(
                "Review your actual usage needs",
                "Downgrade to free tier",
                "Monitor usage and upgrade if needed",
            ),
        ))
    if tier == Tier.FREE and any(metric.percentage > 80 for metric in metrics):
        optimizations.append(BillingOptimization(
            type=BillingOptimizationType.PLAN_CHANGE,
            title="Upgrade to Pro for Better Value",
            description="You're hitting limits frequently. Pro offers unlimited usage.",
            potential_value=Decimal("200"),
            effort="low",
            impact="high",
            implementation=(
                "Upgrade to Pro plan",
                "Utilize unlimited features",
                "Scale your operations",
            ),
        ))
    return optimizations


def workflow_optimizations(patterns: UsagePatterns) -> list[BillingOptimization]:
    optimizations = []
    hours = peak_hours(patterns.time_of_day_usage, count=3)
    if hours:
        optimizations.append(BillingOptimization(
            type=BillingOptimizationType.TIMING_OPTIMIZATION,
            title="Optimize Work Schedule",
            description=f"You're most productive during hours {', '.join(str(hour) for hour in hours)}. "
                        "Schedule important tasks then.",
            effort="low",
            impact="medium",
            implementation=(
                "Block calendar during peak hours",
                "Schedule AI-intensive tasks during peak times",
                "Use off-peak hours for planning and review",
            ),
        ))

    underused = [
        feature for feature, uses in patterns.feature_usage.items()
        if uses < UNDERUTILISED_FEATURE_USES
    ]
    if underused:
        optimizations.append(BillingOptimization(
            type=BillingOptimizationType.FEATURE_SUBSTITUTION,
            title="Explore Underutilized Features",
            description=f"You have {len(underused)} features that could improve your workflow.",
            potential_value=Decimal("50"),
            effort="medium",
            impact="medium",
            implementation=tuple(f"Learn and integrate {feature_label(feature)}" for feature in underused),
        ))
    return optimizations


def usage_based_billing(tier: str, monthly_price: Decimal) -> dict:
    """Current period cost and flat projections; usage is not billed per unit."""
    base_cost = monthly_price if tier == Tier.PRO else Decimal("0.00")
    return {
        "current_period": {
            "base_cost": base_cost,
            "usage_costs": {"ai_requests": Decimal("0.00"), "storage": Decimal("0.00"), "features": Decimal("0.00")},
            "total_cost": base_cost,
        },
        "projected_costs": {
            "next_month": base_cost,
            "next_quarter": base_cost * 3,
            "next_year": base_cost * 12,
            "confidence": BILLING_PROJECTION_CONFIDENCE,
        },
    }


def potential_totals(suggestions) -> dict[str, Decimal]:
    return {
        "potential_savings": sum((item.potential_savings or Decimal("0") for item in suggestions), Decimal("0")),
        "potential_value": sum((item.potential_value or Decimal("0") for item in suggestions), Decimal("0")),
    }
