"""REST API endpoints for subscription intelligence."""
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.intelligence_serializers import (
    ChurnQuerySerializer,
    IntelligenceQuerySerializer,
    OfferInteractionSerializer,
    OfferQuerySerializer,
    OfferRequestSerializer,
    OptimizationRequestSerializer,
    RecommendationRequestSerializer,
)
from intelligence.churn import intervention_urgency, prioritize_actions, retention_economics
from intelligence.engine import SubscriptionIntelligenceEngine
from intelligence.exceptions import AccountNotFound
from intelligence.offers import filter_offers, offer_metrics
from intelligence.optimization import (
    build_usage_alerts,
    cost_optimizations,
    efficiency_rating,
    filter_suggestions,
    optimization_score,
    potential_totals,
    project_usage,
    usage_based_billing,
    usage_efficiency,
    workflow_optimizations,
)
from intelligence.recommendations import apply_goals, projected_totals
from intelligence.types import RecommendationType, Urgency, to_payload
from subscriptions.models import SubscriptionAccount
from subscriptions.services import record_offer_interaction


def get_engine() -> SubscriptionIntelligenceEngine:
    return SubscriptionIntelligenceEngine()


def _not_found(exc: AccountNotFound) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)


def _validated(serializer_class, data) -> dict:
    serializer = serializer_class(data=data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def _query_data(request) -> dict:
    """Flatten query params so comma separated lists reach the serializer as strings."""
    return {key: request.query_params.get(key) for key in request.query_params}


class _IntelligenceAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def handle_exception(self, exc):
        if isinstance(exc, AccountNotFound):
            return _not_found(exc)
        return super().handle_exception(exc)


class SubscriptionIntelligenceAPIView(_IntelligenceAPIView):
    """GET/POST /api/v1/subscription-intelligence/"""

    def _report(self, request, params):
        engine = get_engine()
        intelligence = engine.generate_intelligence(request.user.pk)
        payload = to_payload(intelligence)
        if not params["include_recommendations"]:
            payload.pop("recommendations")
        if not params["include_churn_analysis"]:
            payload.pop("churn_risk")
        if not params["include_personalized_offers"]:
            payload.pop("personalized_offers")
        if params["include_dynamic_pricing"]:
            payload["dynamic_pricing"] = to_payload(engine.generate_dynamic_pricing(request.user.pk))
        payload["timeframe"] = params["timeframe"]
        return Response(payload)

    def get(self, request):
        return self._report(request, _validated(IntelligenceQuerySerializer, _query_data(request)))

    def post(self, request):
        return self._report(request, _validated(IntelligenceQuerySerializer, request.data))


class RecommendationsAPIView(_IntelligenceAPIView):
    """GET/POST /api/v1/subscription-intelligence/recommendations/"""

    def get(self, request):
        intelligence = get_engine().generate_intelligence(request.user.pk)
        return Response({
            "recommendations": to_payload(intelligence.recommendations),
            "current_tier": intelligence.current_tier,
            "usage_patterns": to_payload(intelligence.usage_patterns),
        })

    def post(self, request):
        params = _validated(RecommendationRequestSerializer, request.data)
        intelligence = get_engine().generate_intelligence(request.user.pk)
        recommendations = apply_goals(intelligence.recommendations, params["goals"], params["constraints"])
        payload = {
            "recommendations": to_payload(recommendations),
            "optimizations": to_payload(intelligence.optimization_suggestions),
            "current_tier": intelligence.current_tier,
            "usage_patterns": to_payload(intelligence.usage_patterns),
            "timeframe": params["timeframe"],
        }
        payload.update(to_payload(projected_totals(recommendations)))
        return Response(payload)


class ChurnPredictionAPIView(_IntelligenceAPIView):
    """GET/POST /api/v1/subscription-intelligence/churn-prediction/"""

    def get(self, request):
        params = _validated(ChurnQuerySerializer, _query_data(request))
        intelligence = get_engine().generate_intelligence(request.user.pk)
        payload = {
            "churn_risk": to_payload(intelligence.churn_risk),
            "usage_patterns": to_payload(intelligence.usage_patterns),
            "current_tier": intelligence.current_tier,
            "time_horizon": params["time_horizon"],
        }
        if params["include_retention_actions"]:
            payload["retention_actions"] = to_payload(intelligence.churn_risk.retention_actions)
        return Response(payload)

    def post(self, request):
        params = _validated(ChurnQuerySerializer, request.data)
        engine = get_engine()
        intelligence = engine.generate_intelligence(request.user.pk)
        churn = intelligence.churn_risk
        prioritized = prioritize_actions(churn.retention_actions)

        churn_payload = to_payload(churn)
        churn_payload["intervention_urgency"] = intervention_urgency(churn.risk_level)
        churn_payload["prioritized_actions"] = to_payload(prioritized)
        if not params["include_retention_actions"]:
            churn_payload.pop("retention_actions")
            churn_payload.pop("prioritized_actions")

        retention_recommendations = [
            item for item in intelligence.recommendations
            if item.type == RecommendationType.MAINTAIN or item.urgency == Urgency.HIGH
        ]
        return Response({
            "churn_risk": churn_payload,
            "retention_metrics": to_payload(
                retention_economics(intelligence.current_tier, prioritized, engine.config.pro_monthly_price)
            ),
            "recommendations": to_payload(retention_recommendations),
            "time_horizon": params["time_horizon"],
        })


class PersonalizedOffersAPIView(_IntelligenceAPIView):
    """GET/POST/PUT /api/v1/subscription-intelligence/personalized-offers/"""

    def get(self, request):
        params = _validated(OfferQuerySerializer, _query_data(request))
        engine = get_engine()
        intelligence = engine.generate_intelligence(request.user.pk)
        offers = filter_offers(
            intelligence.personalized_offers,
            types=params["offer_types"],
            max_offers=params["max_offers"],
        )
        return Response({
            "offers": to_payload(offers),
            "dynamic_pricing": to_payload(engine.generate_dynamic_pricing(request.user.pk)),
            "segment": to_payload(intelligence.segment),
            "current_tier": intelligence.current_tier,
        })

    def post(self, request):
        params = _validated(OfferRequestSerializer, request.data)
        engine = get_engine()
        intelligence = engine.generate_intelligence(request.user.pk)
        offers = filter_offers(
            intelligence.personalized_offers,
            types=params["offer_types"],
            target_segment=params.get("target_segment"),
            max_offers=params["max_offers"],
        )
        return Response({
            "offers": to_payload(offers),
            "dynamic_pricing": to_payload(engine.generate_dynamic_pricing(request.user.pk)),
            "segment": to_payload(intelligence.segment),
            "metrics": to_payload(offer_metrics(offers)),
        })

    def put(self, request):
        params = _validated(OfferInteractionSerializer, request.data)
        account = get_object_or_404(SubscriptionAccount, user=request.user)
        interaction = record_offer_interaction(account, params["offer_id"], params["action"], params["metadata"])
        return Response(
            {
                "id": str(interaction.id),
                "offer_id": interaction.offer_id,
                "action": interaction.action,
                "recorded_at": interaction.created_at.isoformat(),
            },
            status=status.HTTP_201_CREATED,
        )


class UsageOptimizationAPIView(_IntelligenceAPIView):
    """GET/POST /api/v1/subscription-intelligence/usage-optimization/"""

    def get(self, request):
        engine = get_engine()
        intelligence = engine.generate_intelligence(request.user.pk)
        patterns = intelligence.usage_patterns
        return Response({
            "suggestions": to_payload(intelligence.optimization_suggestions),
            "efficiency": usage_efficiency(patterns),
            "cost_optimizations": to_payload(
                cost_optimizations(patterns, intelligence.current_tier, engine.config.pro_monthly_price)
            ),
            "workflow_optimizations": to_payload(workflow_optimizations(patterns)),
            "usage_patterns": to_payload(patterns),
            "current_tier": intelligence.current_tier,
        })

    def post(self, request):
        params = _validated(OptimizationRequestSerializer, request.data)
        optimization_type = params.get("optimization_type")
        engine = get_engine()
        intelligence = engine.generate_intelligence(request.user.pk)
        patterns = intelligence.usage_patterns
        price = engine.config.pro_monthly_price

        suggestions = filter_suggestions(intelligence.optimization_suggestions, optimization_type)
        billing_optimizations = []
        if optimization_type in (None, "cost"):
            billing_optimizations.extend(cost_optimizations(patterns, intelligence.current_tier, price))
        if optimization_type in (None, "workflow"):
            billing_optimizations.extend(workflow_optimizations(patterns))

        score = optimization_score(patterns)
        metrics = potential_totals(list(suggestions) + billing_optimizations)
        metrics["optimization_score"] = score
        metrics["efficiency_rating"] = efficiency_rating(score)

        payload = {
            "optimizations": to_payload(suggestions),
            "billing_optimizations": to_payload(billing_optimizations),
            "usage_based_billing": to_payload(usage_based_billing(intelligence.current_tier, price)),
            "metrics": to_payload(metrics),
            "recommendations": to_payload(intelligence.recommendations),
            "alerts": to_payload(build_usage_alerts(patterns)),
        }
        if params["include_projections"]:
            payload["projections"] = project_usage(patterns, params["timeframe"])
        return Response(payload)


class DynamicPricingAPIView(_IntelligenceAPIView):
    """GET /api/v1/subscription-intelligence/dynamic-pricing/"""

    def get(self, request):
        return Response(to_payload(get_engine().generate_dynamic_pricing(request.user.pk)))
