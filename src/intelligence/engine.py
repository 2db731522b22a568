"""Subscription intelligence orchestration.

``generate_intelligence`` loads one snapshot, analyses usage, classifies the
account and then evaluates recommendations, churn risk, offers and
optimization suggestions concurrently. A failing branch is logged and
replaced by its neutral value; its name is reported in
``degraded_sections``. Only a missing account aborts the report.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from django.utils import timezone

from intelligence.churn import assess_churn_risk, neutral_assessment
from intelligence.conf import EngineConfig
from intelligence.offers import generate_offers
from intelligence.optimization import generate_suggestions
from intelligence.pricing import compute_dynamic_pricing
from intelligence.recommendations import generate_recommendations
from intelligence.repository import DjangoSnapshotRepository
from intelligence.segmentation import build_profile, classify_segment
from intelligence.types import (
    AccountSnapshot,
    DynamicPricing,
    SegmentProfile,
    SubscriptionIntelligence,
    UsagePatterns,
)
from intelligence.usage import analyze_usage

logger = logging.getLogger("subintel")


class SubscriptionIntelligenceEngine:
    """Stateless between calls; build one per request or share freely."""

    def __init__(self, repository=None, config: EngineConfig | None = None, clock=timezone.now):
        self.config = config or EngineConfig.from_settings()
        self.repository = repository or DjangoSnapshotRepository(history_weeks=self.config.history_weeks)
        self.clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate_intelligence(self, user_id) -> SubscriptionIntelligence:
        now = self.clock()
        snapshot = self.repository.load(user_id, now=now)
        return self.build_report(snapshot, now)

    def generate_dynamic_pricing(self, user_id) -> DynamicPricing:
        now = self.clock()
        snapshot = self.repository.load_account(user_id, now=now)
        primary = classify_segment(
            snapshot.current_usage,
            snapshot.account_age_days(now),
            self.config.power_user_ai_requests,
        )
        return compute_dynamic_pricing(
            snapshot.user_id,
            SegmentProfile(primary=primary),
            self.config.pro_monthly_price,
            now,
        )

    # ------------------------------------------------------------------
    # Report assembly
    # ------------------------------------------------------------------

    def analyze(self, snapshot: AccountSnapshot) -> UsagePatterns:
        return analyze_usage(snapshot)

    def build_report(self, snapshot: AccountSnapshot, now) -> SubscriptionIntelligence:
        account_age = snapshot.account_age_days(now)
        patterns = self.analyze(snapshot)
        profile = build_profile(
            patterns,
            snapshot.current_usage,
            snapshot.tier,
            account_age,
            self.config.power_user_ai_requests,
        )
        price = self.config.pro_monthly_price

        branches = {
            "recommendations": (
                lambda: generate_recommendations(patterns, snapshot.tier, account_age, profile, now, price),
                [],
            ),
            "churn_risk": (
                lambda: assess_churn_risk(patterns, price),
                neutral_assessment(),
            ),
            "personalized_offers": (
                lambda: generate_offers(
                    snapshot.user_id, patterns, snapshot.tier, account_age, profile, now,
                    price, self.config.retention_offer_price,
                ),
                [],
            ),
            "optimization_suggestions": (
                lambda: generate_suggestions(patterns),
                [],
            ),
        }
        results, degraded = self._run_branches(snapshot.user_id, branches)

        return SubscriptionIntelligence(
            user_id=snapshot.user_id,
            current_tier=snapshot.tier,
            usage_patterns=patterns,
            segment=profile,
            recommendations=tuple(results["recommendations"]),
            churn_risk=results["churn_risk"],
            personalized_offers=tuple(results["personalized_offers"]),
            optimization_suggestions=tuple(results["optimization_suggestions"]),
            generated_at=now,
            degraded_sections=tuple(degraded),
        )

    def _run_branches(self, user_id, branches):
        results = {}
        degraded = []
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {name: executor.submit(func) for name, (func, _default) in branches.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception:
                    logger.exception("Intelligence branch %s failed for user %s.", name, user_id)
                    results[name] = branches[name][1]
                    degraded.append(name)
        return results, degraded


def generate_intelligence(user_id) -> SubscriptionIntelligence:
    return SubscriptionIntelligenceEngine().generate_intelligence(user_id)


def generate_dynamic_pricing(user_id) -> DynamicPricing:
    return SubscriptionIntelligenceEngine().generate_dynamic_pricing(user_id)
