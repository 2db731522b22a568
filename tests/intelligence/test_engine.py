from decimal import Decimal

import pytest

from intelligence import engine as engine_module
from intelligence.conf import EngineConfig
from intelligence.engine import SubscriptionIntelligenceEngine
from intelligence.exceptions import AccountNotFound
from intelligence.types import RecommendationType, RiskLevel, SegmentType, to_payload
from subscriptions.limits import Tier


@pytest.fixture
def build_engine(stub_repository_class, now):
    def _build(*snapshots, **config):
        return SubscriptionIntelligenceEngine(
            repository=stub_repository_class(*snapshots),
            config=EngineConfig(**config),
            clock=lambda: now,
        )

    return _build


def test_heavy_free_user_gets_upgrade_offers_and_alert_worthy_suggestions(build_engine, make_snapshot, make_history):
    snapshot = make_snapshot(
        age_days=10,
        usage={"ai_requests": 9, "products": 3},
        history=make_history(ai_requests=[2, 3, 6, 9]),
        login_frequency=5,
        feature_usage={"AI Scraping": 8, "Product Creation": 3, "Bulk Operations": 1},
        time_of_day_usage={10: 4},
    )

    report = build_engine(snapshot).generate_intelligence(snapshot.user_id)

    assert report.current_tier == Tier.FREE
    assert report.segment.primary.type == SegmentType.NEW_USER
    assert report.recommendations[0].type == RecommendationType.UPGRADE
    assert report.churn_risk.risk_level == RiskLevel.LOW
    assert [offer.id for offer in report.personalized_offers] == ["new-user-1", "heavy-user-1"]
    assert report.optimization_suggestions[0].title == "Optimize AI Request Usage"
    assert report.degraded_sections == ()


def test_idle_pro_user_is_flagged_at_risk(build_engine, make_snapshot, make_history):
    snapshot = make_snapshot(
        tier=Tier.PRO,
        age_days=200,
        usage={"products": 4},
        history=make_history(ai_requests=[20, 20, 1, 0], products=[6, 6, 1, 1]),
        login_frequency=0.25,
    )

    report = build_engine(snapshot).generate_intelligence(snapshot.user_id)

    assert report.churn_risk.risk_level == RiskLevel.CRITICAL
    assert report.churn_risk.time_to_churn == 7
    assert report.segment.primary.type == SegmentType.CASUAL_USER
    assert report.segment.effective.type == SegmentType.AT_RISK
    assert [item.type for item in report.recommendations] == [RecommendationType.DOWNGRADE, RecommendationType.PAUSE]
    assert [offer.id for offer in report.personalized_offers] == ["retention-1"]
    assert report.personalized_offers[0].target_segment == SegmentType.AT_RISK


def test_failing_branch_degrades_to_neutral_value(build_engine, make_snapshot, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("offer store down")

    monkeypatch.setattr(engine_module, "generate_offers", explode)
    snapshot = make_snapshot(age_days=5, usage={"ai_requests": 9, "products": 3})

    report = build_engine(snapshot).generate_intelligence(snapshot.user_id)

    assert report.personalized_offers == ()
    assert report.degraded_sections == ("personalized_offers",)
    assert report.recommendations


def test_failing_churn_branch_reports_low_risk(build_engine, make_snapshot, monkeypatch):
    def explode(*args, **kwargs):
        raise ValueError("bad history")

    monkeypatch.setattr(engine_module, "assess_churn_risk", explode)
    snapshot = make_snapshot(login_frequency=0)

    report = build_engine(snapshot).generate_intelligence(snapshot.user_id)

    assert report.churn_risk.risk_level == RiskLevel.LOW
    assert report.churn_risk.score == 0
    assert report.degraded_sections == ("churn_risk",)


def test_missing_account_aborts_the_report(build_engine):
    engine = build_engine()

    with pytest.raises(AccountNotFound):
        engine.generate_intelligence(404)
    with pytest.raises(AccountNotFound):
        engine.generate_dynamic_pricing(404)


def test_dynamic_pricing_uses_primary_segment_and_configured_price(build_engine, make_snapshot):
    snapshot = make_snapshot(age_days=3)
    engine = build_engine(snapshot, pro_monthly_price=Decimal("40.00"))

    pricing = engine.generate_dynamic_pricing(snapshot.user_id)

    assert pricing.segment == SegmentType.NEW_USER
    assert pricing.adjusted_price == Decimal("28.00")
    assert engine.repository.calls[0] == ("load_account", 1)


def test_report_payload_is_json_ready(build_engine, make_snapshot, now):
    snapshot = make_snapshot(age_days=5, time_of_day_usage={9: 2})

    payload = to_payload(build_engine(snapshot).generate_intelligence(snapshot.user_id))

    assert payload["generated_at"] == now.isoformat()
    assert payload["segment"]["effective"]["type"] == "new_user"
    assert payload["personalized_offers"][0]["discounted_price"] == "14.50"
    assert payload["usage_patterns"]["time_of_day_usage"] == {"9": 2}
    assert payload["degraded_sections"] == []
