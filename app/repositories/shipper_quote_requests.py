# app/repositories/shipper_quote_requests.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from app.models.shipper_quote_request import ShipperQuoteRequest
from app.repositories.numbering import next_daily_number


@dataclass
class QuoteRequestFilters:
    shipper_id: Optional[str] = None
    quotation_id: Optional[str] = None
    status: Optional[str] = None
    requested_by: Optional[str] = None


def get_request_by_id(db: Session, request_id: str) -> ShipperQuoteRequest | None:
    return (
        db.query(ShipperQuoteRequest)
        .options(joinedload(ShipperQuoteRequest.shipper))
        .filter(ShipperQuoteRequest.id == request_id)
        .first()
    )


def generate_request_number(db: Session, day: date) -> str:
    return next_daily_number(db, ShipperQuoteRequest.request_number, "SQR", day)


def list_requests(db: Session, filters: QuoteRequestFilters) -> List[ShipperQuoteRequest]:
    q = db.query(ShipperQuoteRequest).options(joinedload(ShipperQuoteRequest.shipper))

    if filters.shipper_id:
        q = q.filter(ShipperQuoteRequest.shipper_id == filters.shipper_id)
    if filters.quotation_id:
        q = q.filter(ShipperQuoteRequest.quotation_id == filters.quotation_id)
    if filters.status:
        q = q.filter(ShipperQuoteRequest.status == filters.status.upper())
    if filters.requested_by:
        q = q.filter(ShipperQuoteRequest.requested_by == filters.requested_by)

    return q.order_by(ShipperQuoteRequest.requested_at.desc(), ShipperQuoteRequest.request_number.desc()).all()


def create_request(db: Session, values: Dict[str, Any]) -> ShipperQuoteRequest:
    req = ShipperQuoteRequest(**values)
    db.add(req)
    db.flush()
    return req


def update_request(db: Session, req: ShipperQuoteRequest, values: Dict[str, Any]) -> ShipperQuoteRequest:
    for key, value in values.items():
        setattr(req, key, value)
    db.add(req)
    db.flush()
    return req


def delete_request(db: Session, req: ShipperQuoteRequest) -> None:
    db.delete(req)
    db.flush()
