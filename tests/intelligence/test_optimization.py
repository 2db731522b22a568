from decimal import Decimal

from intelligence.optimization import (
    build_usage_alerts,
    cost_optimizations,
    efficiency_rating,
    filter_suggestions,
    generate_suggestions,
    optimization_score,
    peak_hours,
    potential_totals,
    project_usage,
    unused_features,
    usage_based_billing,
    usage_efficiency,
    workflow_optimizations,
)
from intelligence.types import AlertSeverity, BillingOptimizationType, SuggestionType
from subscriptions.limits import FEATURES, Tier

PRICE = Decimal("29.00")
FREE_USAGE = {"ai_requests": 6, "products": 3, "marketplace_listings": 0, "file_uploads": 5}


def test_suggestions_cover_usage_features_and_workflow(make_patterns):
    patterns = make_patterns(
        usage={"ai_requests": 9},
        feature_usage={"AI Scraping": 4},
        time_of_day_usage={9: 3, 14: 5},
    )

    suggestions = generate_suggestions(patterns)

    assert [item.type for item in suggestions] == [
        SuggestionType.USAGE,
        SuggestionType.FEATURES,
        SuggestionType.WORKFLOW,
    ]
    assert len(suggestions[1].steps) == len(FEATURES) - 1
    assert suggestions[2].description.startswith("You're most active at 14:00.")


def test_unused_features_accept_stored_keys_and_display_names(make_patterns):
    patterns = make_patterns(feature_usage={"ai_scraping": 4, "Bulk Operations": 1, "product_creation": 0})

    unused = unused_features(patterns.feature_usage)
    suggestion = generate_suggestions(patterns)[0]

    assert "ai_scraping" not in unused
    assert "bulk_operations" not in unused
    assert "product_creation" in unused
    assert len(unused) == len(FEATURES) - 2
    assert suggestion.steps[0] == "Try the Product Creation feature"


def test_no_workflow_suggestion_without_activity(make_patterns):
    patterns = make_patterns(feature_usage={feature: 1 for feature in FEATURES})

    assert generate_suggestions(patterns) == []


def test_filter_suggestions_by_type(make_patterns):
    suggestions = generate_suggestions(make_patterns(usage={"ai_requests": 9}, time_of_day_usage={8: 1}))

    assert [item.type for item in filter_suggestions(suggestions, "features")] == [SuggestionType.FEATURES]
    assert [item.type for item in filter_suggestions(suggestions, "efficiency")] == [SuggestionType.WORKFLOW]
    assert filter_suggestions(suggestions, None) == suggestions


def test_peak_hours_ranked_by_usage_then_hour():
    assert peak_hours({9: 3, 14: 5, 10: 5, 3: 0}, count=3) == [10, 14, 9]
    assert peak_hours({}) == []


def test_usage_efficiency_and_score_for_free_account(make_patterns):
    patterns = make_patterns(usage=FREE_USAGE)

    efficiency = usage_efficiency(patterns)

    assert efficiency["breakdown"] == {
        "ai_requests": 60.0,
        "products": 100.0,
        "marketplace_listings": 0.0,
        "file_uploads": 100.0,
    }
    assert efficiency["overall"] == 65
    assert optimization_score(patterns) == 70
    assert efficiency_rating(70) == "fair"


def test_unlimited_resources_count_as_fully_efficient(make_patterns):
    patterns = make_patterns(tier=Tier.PRO, usage={"ai_requests": 3})

    assert usage_efficiency(patterns)["overall"] == 100
    assert optimization_score(patterns) == 100
    assert efficiency_rating(100) == "excellent"


def test_efficiency_rating_bands():
    assert efficiency_rating(90) == "excellent"
    assert efficiency_rating(89) == "good"
    assert efficiency_rating(75) == "good"
    assert efficiency_rating(60) == "fair"
    assert efficiency_rating(59) == "poor"


def test_usage_alerts_above_eighty_percent(make_patterns):
    patterns = make_patterns(usage={"ai_requests": 9, "products": 3, "file_uploads": 4})

    alerts = {alert.resource: alert for alert in build_usage_alerts(patterns)}

    assert set(alerts) == {"ai_requests", "products"}
    assert alerts["ai_requests"].severity == AlertSeverity.WARNING
    assert alerts["ai_requests"].title == "AI requests limit approaching"
    assert alerts["ai_requests"].threshold == 10
    assert alerts["ai_requests"].current_value == 9
    assert alerts["products"].severity == AlertSeverity.CRITICAL


def test_no_alerts_for_unlimited_tier(make_patterns):
    assert build_usage_alerts(make_patterns(tier=Tier.PRO, usage={"ai_requests": 10_000})) == []


def test_project_usage_scales_monthly_projection(make_patterns):
    patterns = make_patterns(usage=FREE_USAGE)

    projection = project_usage(patterns, "quarter")

    assert projection["ai_requests"] == 18
    assert projection["file_uploads"] == 15
    assert projection["confidence"] == 75
    assert projection["timeframe"] == "quarter"
    assert "storage" not in projection


def test_cost_optimizations_for_idle_pro_and_busy_free(make_patterns):
    idle_pro = cost_optimizations(make_patterns(tier=Tier.PRO), Tier.PRO, PRICE)
    busy_free = cost_optimizations(make_patterns(usage=FREE_USAGE), Tier.FREE, PRICE)

    assert [item.title for item in idle_pro] == ["Consider Downgrading to Free Tier"]
    assert idle_pro[0].potential_savings == PRICE
    assert [item.type for item in busy_free] == [BillingOptimizationType.PLAN_CHANGE]
    assert busy_free[0].potential_value == Decimal("200")


def test_workflow_optimizations(make_patterns):
    patterns = make_patterns(
        feature_usage={"AI Scraping": 12, "Bulk Operations": 2},
        time_of_day_usage={9: 4, 11: 2, 15: 7, 20: 1},
    )

    optimizations = workflow_optimizations(patterns)

    assert [item.type for item in optimizations] == [
        BillingOptimizationType.TIMING_OPTIMIZATION,
        BillingOptimizationType.FEATURE_SUBSTITUTION,
    ]
    assert "15, 9, 11" in optimizations[0].description
    assert optimizations[1].implementation == ("Learn and integrate Bulk Operations",)


def test_usage_based_billing_and_potential_totals(make_patterns):
    billing = usage_based_billing(Tier.PRO, PRICE)

    assert billing["current_period"]["total_cost"] == PRICE
    assert billing["projected_costs"]["next_year"] == Decimal("348.00")
    assert usage_based_billing(Tier.FREE, PRICE)["current_period"]["base_cost"] == Decimal("0.00")

    suggestions = generate_suggestions(make_patterns(usage={"ai_requests": 9}))
    totals = potential_totals(suggestions + cost_optimizations(make_patterns(tier=Tier.PRO), Tier.PRO, PRICE))
    assert totals == {"potential_savings": PRICE, "potential_value": Decimal("100")}
