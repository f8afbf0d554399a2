from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db import get_db
from app.domain.pricing import PricingConfig
from app.services import QuotationService, RateCardService, ShipperQuoteRequestService, ShipperService


async def get_actor_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> Optional[str]:
    """
    Acting user for audit/created_by fields.
    Auth lives in front of this service; we only read the forwarded header.
    """
    value = (x_user_id or "").strip()
    return value or None


@lru_cache(maxsize=1)
def get_pricing_config() -> PricingConfig:
    return PricingConfig.from_settings(get_settings())


def get_quotation_service(
    db: Session = Depends(get_db),
    config: PricingConfig = Depends(get_pricing_config),
) -> QuotationService:
    return QuotationService(db, config)


def get_rate_card_service(
    db: Session = Depends(get_db),
    config: PricingConfig = Depends(get_pricing_config),
) -> RateCardService:
    return RateCardService(db, config)


def get_quote_request_service(
    db: Session = Depends(get_db),
    config: PricingConfig = Depends(get_pricing_config),
) -> ShipperQuoteRequestService:
    return ShipperQuoteRequestService(db, config)


def get_shipper_service(db: Session = Depends(get_db)) -> ShipperService:
    return ShipperService(db)
