"""Tier limits for metered resources, and the product feature vocabulary.

A limit of ``UNLIMITED`` (-1) means the resource is not metered on that tier.
Storage is expressed in bytes, everything else in monthly counts.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django.db import models

UNLIMITED = -1

MIB = 1024 * 1024
GIB = 1024 * MIB


class Tier(models.TextChoices):
    FREE = "free", "Free"
    PRO = "pro", "Pro"


class BillingInterval(models.TextChoices):
    MONTHLY = "monthly", "Monthly"
    YEARLY = "yearly", "Yearly"


class Resource(models.TextChoices):
    AI_REQUESTS = "ai_requests", "AI requests"
    PRODUCTS = "products", "Products"
    MARKETPLACE_LISTINGS = "marketplace_listings", "Marketplace listings"
    FILE_UPLOADS = "file_uploads", "File uploads"
    STORAGE = "storage", "Storage"


RESOURCES = tuple(Resource.values)


class Feature(models.TextChoices):
    AI_SCRAPING = "ai_scraping", "AI Scraping"
    PRODUCT_CREATION = "product_creation", "Product Creation"
    MARKETPLACE_LISTING = "marketplace_listing", "Marketplace Listing"
    ANALYTICS_DASHBOARD = "analytics_dashboard", "Analytics Dashboard"
    BULK_OPERATIONS = "bulk_operations", "Bulk Operations"
    CUSTOM_BRANDING = "custom_branding", "Custom Branding"
    ADVANCED_ANALYTICS = "advanced_analytics", "Advanced Analytics"


FEATURES = tuple(Feature.values)


def feature_key(name: str) -> str:
    """Canonical feature key: ``"AI Scraping"`` and ``"ai_scraping"`` name the same feature."""
    return "_".join(name.strip().lower().split())

TIER_LIMITS = {
    Tier.FREE: {
        Resource.AI_REQUESTS: 10,
        Resource.PRODUCTS: 3,
        Resource.MARKETPLACE_LISTINGS: 1,
        Resource.FILE_UPLOADS: 5,
        Resource.STORAGE: 100 * MIB,
    },
    Tier.PRO: {
        Resource.AI_REQUESTS: UNLIMITED,
        Resource.PRODUCTS: UNLIMITED,
        Resource.MARKETPLACE_LISTINGS: UNLIMITED,
        Resource.FILE_UPLOADS: UNLIMITED,
        Resource.STORAGE: 10 * GIB,
    },
}


def limits_for(tier: str) -> dict[str, int]:
    """Return the limits of ``tier``; unknown tiers get the free limits."""
    try:
        return {str(key): value for key, value in TIER_LIMITS[Tier(tier)].items()}
    except ValueError:
        return {str(key): value for key, value in TIER_LIMITS[Tier.FREE].items()}


def usage_percentage(current, limit) -> int:
    if limit == UNLIMITED or not limit:
        return 0
    ratio = Decimal(current) * 100 / Decimal(limit)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_over_limit(current, limit) -> bool:
    if limit == UNLIMITED:
        return False
    return current > limit
