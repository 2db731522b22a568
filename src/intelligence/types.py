"""Value types produced by the subscription intelligence engine.

Everything here is an immutable, per-request value: the engine builds these
from an :class:`AccountSnapshot`, returns them, and keeps nothing. Closed
vocabularies are ``TextChoices`` so that API layers and admin screens share
the exact same labels.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from django.db import models

from subscriptions.limits import RESOURCES

# ---------------------------------------------------------------------------
# Closed vocabularies
# ---------------------------------------------------------------------------


class Trend(models.TextChoices):
    INCREASING = "increasing", "Increasing"
    DECREASING = "decreasing", "Decreasing"
    STABLE = "stable", "Stable"


class SegmentType(models.TextChoices):
    NEW_USER = "new_user", "New user"
    POWER_USER = "power_user", "Power user"
    CASUAL_USER = "casual_user", "Casual user"
    AT_RISK = "at_risk", "At risk"
    HIGH_VALUE = "high_value", "High value"
    PRICE_SENSITIVE = "price_sensitive", "Price sensitive"


class RecommendationType(models.TextChoices):
    UPGRADE = "upgrade", "Upgrade"
    DOWNGRADE = "downgrade", "Downgrade"
    PAUSE = "pause", "Pause"
    MAINTAIN = "maintain", "Maintain"


class Urgency(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


class Priority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


PRIORITY_RANK = {Priority.HIGH.value: 2, Priority.MEDIUM.value: 1, Priority.LOW.value: 0}


class RiskLevel(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    CRITICAL = "critical", "Critical"


class FactorImpact(models.TextChoices):
    POSITIVE = "positive", "Positive"
    NEGATIVE = "negative", "Negative"


class RetentionActionType(models.TextChoices):
    DISCOUNT = "discount", "Discount"
    FEATURE_UNLOCK = "feature_unlock", "Feature unlock"
    SUPPORT = "support", "Support"
    EDUCATION = "education", "Education"
    PAUSE_OPTION = "pause_option", "Pause option"


class OfferType(models.TextChoices):
    DISCOUNT = "discount", "Discount"
    TRIAL_EXTENSION = "trial_extension", "Trial extension"
    FEATURE_UNLOCK = "feature_unlock", "Feature unlock"
    BONUS_CREDITS = "bonus_credits", "Bonus credits"


class SuggestionType(models.TextChoices):
    USAGE = "usage", "Usage"
    BILLING = "billing", "Billing"
    FEATURES = "features", "Features"
    WORKFLOW = "workflow", "Workflow"


class SuggestionImpact(models.TextChoices):
    COST_SAVING = "cost_saving", "Cost saving"
    EFFICIENCY = "efficiency", "Efficiency"
    FEATURE_DISCOVERY = "feature_discovery", "Feature discovery"
    LIMIT_OPTIMIZATION = "limit_optimization", "Limit optimization"


class Difficulty(models.TextChoices):
    EASY = "easy", "Easy"
    MEDIUM = "medium", "Medium"
    HARD = "hard", "Hard"


class AlertType(models.TextChoices):
    APPROACHING_LIMIT = "approaching_limit", "Approaching limit"
    UNUSUAL_SPIKE = "unusual_spike", "Unusual spike"
    COST_INCREASE = "cost_increase", "Cost increase"
    OPTIMIZATION_OPPORTUNITY = "optimization_opportunity", "Optimization opportunity"


class AlertSeverity(models.TextChoices):
    INFO = "info", "Info"
    WARNING = "warning", "Warning"
    CRITICAL = "critical", "Critical"


class BillingOptimizationType(models.TextChoices):
    PLAN_CHANGE = "plan_change", "Plan change"
    USAGE_REDUCTION = "usage_reduction", "Usage reduction"
    TIMING_OPTIMIZATION = "timing_optimization", "Timing optimization"
    FEATURE_SUBSTITUTION = "feature_substitution", "Feature substitution"


# ---------------------------------------------------------------------------
# Input snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeeklyTrend:
    week: str
    usage: dict[str, int]
    total_activity: int


@dataclass(frozen=True)
class AccountSnapshot:
    """Everything the engine reads about one account, loaded once per request."""

    user_id: int
    tier: str
    joined_at: datetime
    current_usage: dict[str, int]
    history: tuple[WeeklyTrend, ...] = ()
    login_frequency: float = 0.0
    feature_usage: dict[str, int] = field(default_factory=dict)
    time_of_day_usage: dict[int, int] = field(default_factory=dict)

    def account_age_days(self, now: datetime) -> int:
        return max(0, (now - self.joined_at).days)


# ---------------------------------------------------------------------------
# Usage patterns
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UsageMetric:
    current: int
    limit: int
    percentage: int
    trend: str
    weekly_average: float
    monthly_average: float
    peak_usage: int
    projected_monthly: int


@dataclass(frozen=True)
class UsagePatterns:
    ai_requests: UsageMetric
    products: UsageMetric
    marketplace_listings: UsageMetric
    file_uploads: UsageMetric
    storage: UsageMetric
    login_frequency: float
    feature_usage: dict[str, int]
    time_of_day_usage: dict[int, int]
    weekly_trends: tuple[WeeklyTrend, ...]
    monthly_growth: float

    def metrics(self) -> dict[str, UsageMetric]:
        return {resource: getattr(self, resource) for resource in RESOURCES}

    @property
    def active_feature_count(self) -> int:
        return sum(1 for count in self.feature_usage.values() if count > 0)


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserSegment:
    type: str
    characteristics: tuple[str, ...]
    typical_behavior: tuple[str, ...]
    recommended_strategy: str


OVERLAY_PRECEDENCE = (SegmentType.AT_RISK, SegmentType.PRICE_SENSITIVE, SegmentType.HIGH_VALUE)


@dataclass(frozen=True)
class SegmentProfile:
    """Primary segment plus the overlays derived from churn and tier signals."""

    primary: UserSegment
    overlays: tuple[UserSegment, ...] = ()

    @property
    def effective(self) -> UserSegment:
        for segment_type in OVERLAY_PRECEDENCE:
            for overlay in self.overlays:
                if overlay.type == segment_type:
                    return overlay
        return self.primary

    @property
    def types(self) -> tuple[str, ...]:
        return (self.primary.type,) + tuple(overlay.type for overlay in self.overlays)

    def matches(self, segment_type: str) -> bool:
        return segment_type in self.types


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SubscriptionRecommendation:
    type: str
    confidence: int
    reasoning: tuple[str, ...]
    urgency: str
    valid_until: datetime
    tier: str | None = None
    interval: str | None = None
    potential_savings: Decimal | None = None
    potential_value: Decimal | None = None


@dataclass(frozen=True)
class ChurnFactor:
    factor: str
    impact: str
    weight: float
    description: str


@dataclass(frozen=True)
class RetentionAction:
    type: str
    title: str
    description: str
    priority: str
    estimated_impact: int
    cost: Decimal | None = None


@dataclass(frozen=True)
class ChurnRiskAssessment:
    risk_level: str
    score: int
    factors: tuple[ChurnFactor, ...]
    retention_actions: tuple[RetentionAction, ...]
    confidence: int
    time_to_churn: int | None = None


@dataclass(frozen=True)
class PersonalizedOffer:
    id: str
    type: str
    title: str
    description: str
    value: Decimal
    valid_until: datetime
    target_segment: str
    priority: str
    estimated_conversion: int
    conditions: tuple[str, ...] = ()
    original_price: Decimal | None = None
    discounted_price: Decimal | None = None
    discount_percentage: int | None = None


@dataclass(frozen=True)
class PricingFactor:
    factor: str
    adjustment: Decimal
    reasoning: str


@dataclass(frozen=True)
class DynamicPricing:
    user_id: int
    base_price: Decimal
    adjusted_price: Decimal
    adjustment_factor: Decimal
    reasoning: tuple[PricingFactor, ...]
    valid_until: datetime
    segment: str


@dataclass(frozen=True)
class OptimizationSuggestion:
    type: str
    title: str
    description: str
    impact: str
    difficulty: str
    steps: tuple[str, ...] = ()
    estimated_time: str | None = None
    potential_savings: Decimal | None = None
    potential_value: Decimal | None = None


@dataclass(frozen=True)
class UsageAlert:
    type: str
    severity: str
    title: str
    message: str
    resource: str | None = None
    threshold: int | None = None
    current_value: int | None = None
    suggested_actions: tuple[str, ...] = ()


@dataclass(frozen=True)
class BillingOptimization:
    type: str
    title: str
    description: str
    effort: str
    impact: str
    implementation: tuple[str, ...] = ()
    potential_savings: Decimal | None = None
    potential_value: Decimal | None = None


@dataclass(frozen=True)
class SubscriptionIntelligence:
    user_id: int
    current_tier: str
    usage_patterns: UsagePatterns
    segment: SegmentProfile
    recommendations: tuple[SubscriptionRecommendation, ...]
    churn_risk: ChurnRiskAssessment
    personalized_offers: tuple[PersonalizedOffer, ...]
    optimization_suggestions: tuple[OptimizationSuggestion, ...]
    generated_at: datetime
    degraded_sections: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Payload conversion
# ---------------------------------------------------------------------------


def to_payload(value):
    """Convert engine values into JSON-ready primitives.

    Decimals become strings (money keeps its two decimals), datetimes become
    ISO 8601 strings and dict keys are stringified.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        payload = {f.name: to_payload(getattr(value, f.name)) for f in dataclasses.fields(value)}
        if isinstance(value, SegmentProfile):
            payload["effective"] = to_payload(value.effective)
        return payload
    if isinstance(value, models.Choices):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): to_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_payload(item) for item in value]
    return value
