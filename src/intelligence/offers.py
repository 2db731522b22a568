"""Personalized, time-boxed offers.

Each rule emits at most one offer whose id is derived from the offer kind and
the user id, so re-evaluating an account never produces a second copy of the
same offer.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from intelligence.types import (
    PRIORITY_RANK,
    OfferType,
    PersonalizedOffer,
    Priority,
    SegmentProfile,
    SegmentType,
    UsagePatterns,
)
from subscriptions.limits import Tier

NEW_USER_DAYS = 30
NEW_USER_DISCOUNT = 50
BONUS_CREDITS = 50
RETENTION_MONTHS = 3
DEFAULT_MAX_OFFERS = 5
MAX_OFFERS = 10


def offer_id(kind: str, user_id) -> str:
    return f"{kind}-{user_id}"


def _price_label(amount: Decimal) -> str:
    return f"{amount:.2f}".rstrip("0").rstrip(".")


def _is_heavy_user(patterns: UsagePatterns) -> bool:
    return (
        patterns.ai_requests.percentage > 70
        or patterns.products.percentage > 70
        or patterns.login_frequency > 5
    )


def _new_user_offer(user_id, monthly_price: Decimal, target: str, now: datetime) -> PersonalizedOffer:
    discounted = (monthly_price * (100 - NEW_USER_DISCOUNT) / 100).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return PersonalizedOffer(
        id=offer_id("new-user", user_id),
        type=OfferType.DISCOUNT,
        title="New User Special: 50% Off Pro Plan",
        description="Get 50% off your first month of Pro to unlock unlimited features",
        value=Decimal(NEW_USER_DISCOUNT),
        original_price=monthly_price,
        discounted_price=discounted,
        discount_percentage=NEW_USER_DISCOUNT,
        valid_until=now + timedelta(days=7),
        conditions=("Valid for first-time Pro subscribers only",),
        target_segment=target,
        priority=Priority.HIGH,
        estimated_conversion=25,
    )


def _heavy_user_offer(user_id, target: str, now: datetime) -> PersonalizedOffer:
    return PersonalizedOffer(
        id=offer_id("heavy-user", user_id),
        type=OfferType.BONUS_CREDITS,
        title="Power User Bonus: Extra AI Credits",
        description=f"Get {BONUS_CREDITS} bonus AI requests this month for being an active user",
        value=Decimal(BONUS_CREDITS),
        valid_until=now + timedelta(days=14),
        target_segment=target,
        priority=Priority.MEDIUM,
        estimated_conversion=40,
    )


def _retention_offer(user_id, monthly_price: Decimal, retention_price: Decimal, target: str,
                     now: datetime) -> PersonalizedOffer:
    percentage = int(((monthly_price - retention_price) * 100 / monthly_price).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return PersonalizedOffer(
        id=offer_id("retention", user_id),
        type=OfferType.DISCOUNT,
        title=f"We Miss You: {RETENTION_MONTHS} Months for ${_price_label(retention_price)}/month",
        description="Special pricing to keep you as a valued Pro member",
        value=Decimal(percentage),
        original_price=monthly_price,
        discounted_price=retention_price,
        discount_percentage=percentage,
        valid_until=now + timedelta(days=3),
        conditions=("Valid for 3 months only", "Cannot be combined with other offers"),
        target_segment=target,
        priority=Priority.HIGH,
        estimated_conversion=60,
    )


def sort_offers(offers: Iterable[PersonalizedOffer]) -> list[PersonalizedOffer]:
    """Highest priority first, then highest estimated conversion."""
    return sorted(
        offers,
        key=lambda offer: (PRIORITY_RANK[str(offer.priority)], offer.estimated_conversion),
        reverse=True,
    )


def generate_offers(user_id, patterns: UsagePatterns, tier: str, account_age_days: int, profile: SegmentProfile,
                    now: datetime, monthly_price: Decimal, retention_price: Decimal) -> list[PersonalizedOffer]:
    target = profile.effective.type
    offers = []
    if account_age_days < NEW_USER_DAYS and tier == Tier.FREE:
        offers.append(_new_user_offer(user_id, monthly_price, target, now))
    if _is_heavy_user(patterns) and tier == Tier.FREE:
        offers.append(_heavy_user_offer(user_id, target, now))
    if profile.matches(SegmentType.AT_RISK) and tier == Tier.PRO:
        offers.append(_retention_offer(user_id, monthly_price, retention_price, target, now))
    return sort_offers(offers)


# ---------------------------------------------------------------------------
# Filtering and metrics
# ---------------------------------------------------------------------------


def filter_offers(offers: Iterable[PersonalizedOffer], types: Iterable[str] | None = None,
                  target_segment: str | None = None, max_offers: int = DEFAULT_MAX_OFFERS) -> list[PersonalizedOffer]:
    wanted_types = {str(item) for item in types or ()}
    selected = [
        offer for offer in offers
        if (not wanted_types or str(offer.type) in wanted_types)
        and (not target_segment or offer.target_segment == target_segment)
    ]
    max_offers = max(1, min(MAX_OFFERS, int(max_offers)))
    return sort_offers(selected)[:max_offers]


def offer_metrics(offers: Iterable[PersonalizedOffer]) -> dict:
    offers = list(offers)
    total_value = sum((offer.value for offer in offers), Decimal("0"))
    expected_revenue = sum(
        ((offer.discounted_price or Decimal("0")) * offer.estimated_conversion / 100 for offer in offers),
        Decimal("0"),
    )
    if offers:
        average_conversion = round(sum(offer.estimated_conversion for offer in offers) / len(offers), 2)
    else:
        average_conversion = 0
    return {
        "total_offers": len(offers),
        "total_potential_value": total_value,
        "average_conversion": average_conversion,
        "expected_revenue": expected_revenue.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
    }
