"""Engine configuration read from Django settings."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings


@dataclass(frozen=True)
class EngineConfig:
    pro_monthly_price: Decimal = Decimal("29.00")
    retention_offer_price: Decimal = Decimal("19.00")
    history_weeks: int = 8
    power_user_ai_requests: int = 50
    max_workers: int = 4

    @classmethod
    def from_settings(cls) -> "EngineConfig":
        return cls(
            pro_monthly_price=Decimal(str(getattr(settings, "PRO_MONTHLY_PRICE", cls.pro_monthly_price))),
            retention_offer_price=Decimal(str(getattr(settings, "RETENTION_OFFER_PRICE", cls.retention_offer_price))),
            history_weeks=int(getattr(settings, "INTELLIGENCE_HISTORY_WEEKS", cls.history_weeks)),
            power_user_ai_requests=int(
                getattr(settings, "INTELLIGENCE_POWER_USER_AI_REQUESTS", cls.power_user_ai_requests)
            ),
            max_workers=max(1, int(getattr(settings, "INTELLIGENCE_MAX_WORKERS", cls.max_workers))),
        )
