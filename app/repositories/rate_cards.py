# app/repositories/rate_cards.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.domain.pricing import ZERO, RateCardSnapshot, parse_surcharges, parse_weight_slabs
from app.models.rate_card import RateCard
from app.models.shipper import Shipper
from app.repositories.numbering import next_daily_number


def _dec(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None:
        return default
    return Decimal(str(value))


@dataclass
class RateCardFilters:
    shipper_id: Optional[str] = None
    status: Optional[str] = None
    rate_type: Optional[str] = None
    shipment_type: Optional[str] = None
    origin: Optional[str] = None
    destination: Optional[str] = None
    valid_on: Optional[date] = None


def to_snapshot(card: RateCard, default_currency: str = "USD") -> RateCardSnapshot:
    return RateCardSnapshot(
        id=card.id,
        rate_card_number=card.rate_card_number,
        shipment_type=card.shipment_type,
        origin=card.origin_airport,
        destination=card.destination_airport,
        weight_slabs=parse_weight_slabs(card.weight_slabs or [], default_currency),
        surcharges=parse_surcharges(card.surcharges),
        min_weight_kg=_dec(card.min_weight_kg),
        max_weight_kg=_dec(card.max_weight_kg),
        origin_handling_charges=_dec(card.origin_handling_charges, ZERO),
        destination_handling_charges=_dec(card.destination_handling_charges, ZERO),
        margin_percentage=_dec(card.margin_percentage),
        shipper_name=card.shipper_name,
    )


def get_rate_card_by_id(db: Session, rate_card_id: str) -> RateCard | None:
    return (
        db.query(RateCard)
        .options(joinedload(RateCard.shipper))
        .filter(RateCard.id == rate_card_id)
        .first()
    )


def generate_rate_card_number(db: Session, day: date) -> str:
    return next_daily_number(db, RateCard.rate_card_number, "RC", day)


def find_by_route(db: Session, origin: str, destination: str, on: date) -> List[RateCard]:
    """
    ACTIVE cards for an exact origin/destination pair, valid on `on`.
    Cards of inactive shippers are left out.
    Ordered by rate_card_number so selection ties resolve the same way every time.
    """
    return (
        db.query(RateCard)
        .options(joinedload(RateCard.shipper))
        .join(RateCard.shipper)
        .filter(
            Shipper.is_active.is_(True),
            func.upper(RateCard.origin_airport) == origin.strip().upper(),
            func.upper(RateCard.destination_airport) == destination.strip().upper(),
            RateCard.status == "ACTIVE",
            RateCard.valid_from <= on,
            RateCard.valid_until >= on,
        )
        .order_by(RateCard.rate_card_number.asc())
        .all()
    )


def find_active_card(
    db: Session, shipper_id: str, origin: str, destination: str, shipment_type: str
) -> RateCard | None:
    return (
        db.query(RateCard)
        .filter(
            RateCard.shipper_id == shipper_id,
            func.upper(RateCard.origin_airport) == origin.strip().upper(),
            func.upper(RateCard.destination_airport) == destination.strip().upper(),
            RateCard.shipment_type == shipment_type,
            RateCard.status == "ACTIVE",
        )
        .first()
    )


def list_rate_cards(db: Session, filters: RateCardFilters) -> List[RateCard]:
    q = db.query(RateCard).options(joinedload(RateCard.shipper))

    if filters.shipper_id:
        q = q.filter(RateCard.shipper_id == filters.shipper_id)
    if filters.status:
        q = q.filter(RateCard.status == filters.status.upper())
    if filters.rate_type:
        q = q.filter(RateCard.rate_type == filters.rate_type)
    if filters.shipment_type:
        q = q.filter(RateCard.shipment_type == filters.shipment_type)
    if filters.origin:
        q = q.filter(func.upper(RateCard.origin_airport).like(f"%{filters.origin.upper()}%"))
    if filters.destination:
        q = q.filter(func.upper(RateCard.destination_airport).like(f"%{filters.destination.upper()}%"))
    if filters.valid_on:
        q = q.filter(RateCard.valid_from <= filters.valid_on, RateCard.valid_until >= filters.valid_on)

    return q.order_by(RateCard.created_at.desc(), RateCard.rate_card_number.desc()).all()


def active_rate_cards(db: Session, today: date) -> List[RateCard]:
    return (
        db.query(RateCard)
        .options(joinedload(RateCard.shipper))
        .filter(
            RateCard.status == "ACTIVE",
            RateCard.valid_from <= today,
            RateCard.valid_until >= today,
        )
        .order_by(RateCard.origin_airport.asc(), RateCard.destination_airport.asc(), RateCard.rate_card_number.asc())
        .all()
    )


def expiring_rate_cards(db: Session, today: date, days: int) -> List[RateCard]:
    return (
        db.query(RateCard)
        .options(joinedload(RateCard.shipper))
        .filter(
            RateCard.status == "ACTIVE",
            RateCard.valid_until >= today,
            RateCard.valid_until <= today + timedelta(days=days),
        )
        .order_by(RateCard.valid_until.asc(), RateCard.rate_card_number.asc())
        .all()
    )


def create_rate_card(db: Session, values: Dict[str, Any]) -> RateCard:
    card = RateCard(**values)
    db.add(card)
    db.flush()
    return card


def update_rate_card(db: Session, card: RateCard, values: Dict[str, Any]) -> RateCard:
    for key, value in values.items():
        setattr(card, key, value)
    db.add(card)
    db.flush()
    return card
