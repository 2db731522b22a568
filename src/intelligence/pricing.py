"""Segment-driven dynamic pricing."""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from intelligence.types import DynamicPricing, PricingFactor, SegmentProfile, SegmentType

PRICING_VALIDITY = timedelta(days=7)
CENTS = Decimal("0.01")

# First matching segment wins; no factor above 1.0 is defined.
PRICING_RULES = (
    (SegmentType.AT_RISK, PricingFactor("retention_pricing", Decimal("0.65"), "Churn prevention pricing")),
    (SegmentType.PRICE_SENSITIVE, PricingFactor("price_sensitivity", Decimal("0.8"), "Price-sensitive user retention")),
    (SegmentType.NEW_USER, PricingFactor("new_user_discount", Decimal("0.7"), "First-time user incentive")),
    (SegmentType.POWER_USER, PricingFactor("power_user_value", Decimal("1.0"), "High usage justifies full price")),
)

STANDARD_PRICING = PricingFactor("standard_pricing", Decimal("1.0"), "No segment adjustment applies")


def select_pricing_factor(profile: SegmentProfile) -> tuple[str, PricingFactor]:
    for segment_type, factor in PRICING_RULES:
        if profile.matches(segment_type):
            return segment_type, factor
    return profile.primary.type, STANDARD_PRICING


def compute_dynamic_pricing(user_id, profile: SegmentProfile, base_price: Decimal, now: datetime) -> DynamicPricing:
    segment, factor = select_pricing_factor(profile)
    adjustment_factor = factor.adjustment
    return DynamicPricing(
        user_id=user_id,
        base_price=base_price,
        adjusted_price=(base_price * adjustment_factor).quantize(CENTS, rounding=ROUND_HALF_UP),
        adjustment_factor=adjustment_factor,
        reasoning=(factor,),
        valid_until=now + PRICING_VALIDITY,
        segment=segment,
    )
