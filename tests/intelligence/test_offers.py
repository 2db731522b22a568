from datetime import timedelta
from decimal import Decimal

from intelligence.offers import filter_offers, generate_offers, offer_metrics
from intelligence.segmentation import SEGMENTS
from intelligence.types import OfferType, Priority, SegmentProfile, SegmentType
from subscriptions.limits import Tier

PRICE = Decimal("29.00")
RETENTION_PRICE = Decimal("19.00")
NEW_USER = SegmentProfile(primary=SEGMENTS[SegmentType.NEW_USER])
AT_RISK_PRO = SegmentProfile(
    primary=SEGMENTS[SegmentType.CASUAL_USER],
    overlays=(SEGMENTS[SegmentType.AT_RISK],),
)


def _offers(patterns, tier, age, profile, now, user_id=42):
    return generate_offers(user_id, patterns, tier, age, profile, now, PRICE, RETENTION_PRICE)


def test_new_free_user_gets_half_price_offer(make_patterns, now):
    offers = _offers(make_patterns(age_days=5), Tier.FREE, 5, NEW_USER, now)

    assert len(offers) == 1
    offer = offers[0]
    assert offer.id == "new-user-42"
    assert offer.type == OfferType.DISCOUNT
    assert offer.discounted_price == Decimal("14.50")
    assert offer.discount_percentage == 50
    assert offer.priority == Priority.HIGH
    assert offer.estimated_conversion == 25
    assert offer.target_segment == SegmentType.NEW_USER
    assert offer.valid_until == now + timedelta(days=7)


def test_heavy_new_user_gets_both_offers_sorted_by_priority(make_patterns, now):
    patterns = make_patterns(age_days=5, usage={"ai_requests": 8})

    offers = _offers(patterns, Tier.FREE, 5, NEW_USER, now)

    assert [offer.id for offer in offers] == ["new-user-42", "heavy-user-42"]
    assert offers[1].type == OfferType.BONUS_CREDITS
    assert offers[1].value == Decimal("50")


def test_at_risk_pro_user_gets_retention_offer(make_patterns, now):
    patterns = make_patterns(tier=Tier.PRO, age_days=200, login_frequency=1)

    offers = _offers(patterns, Tier.PRO, 200, AT_RISK_PRO, now)

    assert len(offers) == 1
    offer = offers[0]
    assert offer.id == "retention-42"
    assert offer.title == "We Miss You: 3 Months for $19/month"
    assert offer.value == Decimal("34")
    assert offer.discounted_price == RETENTION_PRICE
    assert offer.target_segment == SegmentType.AT_RISK
    assert offer.valid_until == now + timedelta(days=3)


def test_offer_ids_are_stable_across_evaluations(make_patterns, now):
    patterns = make_patterns(age_days=5, usage={"ai_requests": 8})

    first = _offers(patterns, Tier.FREE, 5, NEW_USER, now)
    second = _offers(patterns, Tier.FREE, 5, NEW_USER, now + timedelta(hours=1))

    assert [offer.id for offer in first] == [offer.id for offer in second]
    assert len({offer.id for offer in first}) == len(first)


def test_established_casual_user_gets_no_offer(make_patterns, now):
    casual = SegmentProfile(primary=SEGMENTS[SegmentType.CASUAL_USER])

    assert _offers(make_patterns(age_days=60), Tier.FREE, 60, casual, now) == []


def test_filter_offers_by_type_segment_and_count(make_patterns, now):
    offers = _offers(make_patterns(age_days=5, usage={"ai_requests": 8}), Tier.FREE, 5, NEW_USER, now)

    assert [offer.type for offer in filter_offers(offers, types=["bonus_credits"])] == [OfferType.BONUS_CREDITS]
    assert filter_offers(offers, target_segment=SegmentType.AT_RISK) == []
    assert len(filter_offers(offers, max_offers=0)) == 1
    assert len(filter_offers(offers, max_offers=50)) == 2


def test_offer_metrics(make_patterns, now):
    offers = _offers(make_patterns(age_days=5, usage={"ai_requests": 8}), Tier.FREE, 5, NEW_USER, now)

    metrics = offer_metrics(offers)

    assert metrics["total_offers"] == 2
    assert metrics["total_potential_value"] == Decimal("100")
    assert metrics["average_conversion"] == 32.5
    assert metrics["expected_revenue"] == Decimal("3.63")


def test_offer_metrics_without_offers():
    assert offer_metrics([]) == {
        "total_offers": 0,
        "total_potential_value": Decimal("0"),
        "average_conversion": 0,
        "expected_revenue": Decimal("0.00"),
    }
