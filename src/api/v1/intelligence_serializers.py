"""Request serializers for the subscription intelligence endpoints."""
from __future__ import annotations

from rest_framework import serializers

from intelligence.offers import DEFAULT_MAX_OFFERS, MAX_OFFERS
from intelligence.recommendations import CONSTRAINT_BUDGET_CONSCIOUS, GOAL_COST_OPTIMIZATION, GOAL_FEATURE_ACCESS
from intelligence.types import OfferType, SegmentType
from subscriptions.models import OfferInteraction

TIMEFRAME_CHOICES = ("week", "month", "quarter", "year")
OPTIMIZATION_TYPE_CHOICES = ("cost", "efficiency", "features", "workflow")


class CommaSeparatedChoiceField(serializers.ListField):
    """Accept either a JSON list or a comma separated query string value."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [item.strip() for item in data.split(",") if item.strip()]
        return super().to_internal_value(data)


class IntelligenceQuerySerializer(serializers.Serializer):
    include_recommendations = serializers.BooleanField(required=False, default=True)
    include_churn_analysis = serializers.BooleanField(required=False, default=True)
    include_personalized_offers = serializers.BooleanField(required=False, default=True)
    include_dynamic_pricing = serializers.BooleanField(required=False, default=False)
    timeframe = serializers.ChoiceField(choices=TIMEFRAME_CHOICES, required=False, default="month")


class RecommendationRequestSerializer(serializers.Serializer):
    goals = serializers.ListField(
        child=serializers.ChoiceField(choices=(GOAL_COST_OPTIMIZATION, GOAL_FEATURE_ACCESS)),
        required=False,
        default=list,
    )
    constraints = serializers.ListField(
        child=serializers.ChoiceField(choices=(CONSTRAINT_BUDGET_CONSCIOUS,)),
        required=False,
        default=list,
    )
    timeframe = serializers.ChoiceField(choices=TIMEFRAME_CHOICES, required=False, default="month")


class ChurnQuerySerializer(serializers.Serializer):
    include_retention_actions = serializers.BooleanField(required=False, default=True)
    time_horizon = serializers.IntegerField(required=False, default=30, min_value=1, max_value=365)


class OfferQuerySerializer(serializers.Serializer):
    max_offers = serializers.IntegerField(required=False, default=DEFAULT_MAX_OFFERS, min_value=1, max_value=MAX_OFFERS)
    offer_types = CommaSeparatedChoiceField(
        child=serializers.ChoiceField(choices=OfferType.choices),
        required=False,
        default=list,
    )


class OfferRequestSerializer(OfferQuerySerializer):
    target_segment = serializers.ChoiceField(choices=SegmentType.choices, required=False, allow_null=True)


class OfferInteractionSerializer(serializers.Serializer):
    offer_id = serializers.CharField(max_length=120)
    action = serializers.ChoiceField(choices=OfferInteraction.Action.choices)
    metadata = serializers.DictField(required=False, default=dict)


class OptimizationRequestSerializer(serializers.Serializer):
    optimization_type = serializers.ChoiceField(choices=OPTIMIZATION_TYPE_CHOICES, required=False, allow_null=True)
    timeframe = serializers.ChoiceField(choices=TIMEFRAME_CHOICES, required=False, default="month")
    include_projections = serializers.BooleanField(required=False, default=True)
