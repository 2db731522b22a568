"""Main API URL router for /api/v1/."""
from django.urls import path

from api.v1 import intelligence_views

app_name = "api"

urlpatterns = [
    path(
        "subscription-intelligence/",
        intelligence_views.SubscriptionIntelligenceAPIView.as_view(),
        name="subscription-intelligence",
    ),
    path(
        "subscription-intelligence/recommendations/",
        intelligence_views.RecommendationsAPIView.as_view(),
        name="subscription-intelligence-recommendations",
    ),
    path(
        "subscription-intelligence/churn-prediction/",
        intelligence_views.ChurnPredictionAPIView.as_view(),
        name="subscription-intelligence-churn-prediction",
    ),
    path(
        "subscription-intelligence/personalized-offers/",
        intelligence_views.PersonalizedOffersAPIView.as_view(),
        name="subscription-intelligence-personalized-offers",
    ),
    path(
        "subscription-intelligence/usage-optimization/",
        intelligence_views.UsageOptimizationAPIView.as_view(),
        name="subscription-intelligence-usage-optimization",
    ),
    path(
        "subscription-intelligence/dynamic-pricing/",
        intelligence_views.DynamicPricingAPIView.as_view(),
        name="subscription-intelligence-dynamic-pricing",
    ),
]
