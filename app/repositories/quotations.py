# app/repositories/quotations.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.quotation import Quotation
from app.repositories.numbering import next_daily_number

SORTABLE = {"created_at", "updated_at", "quote_number", "valid_until", "total_cost", "customer_name", "status"}


@dataclass
class QuotationFilters:
    status: Sequence[str] = field(default_factory=list)
    customer_id: Optional[str] = None
    shipment_type: Optional[str] = None
    created_by: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None
    # True = only quotes whose validity ended, False = only still valid ones
    expired: Optional[bool] = None


@dataclass
class Pagination:
    page: int = 1
    limit: int = 20
    sort_by: str = "created_at"
    sort_order: str = "desc"

    @property
    def offset(self) -> int:
        return (max(self.page, 1) - 1) * self.limit


def get_quotation_by_id(db: Session, quotation_id: str) -> Quotation | None:
    return db.query(Quotation).filter(Quotation.id == quotation_id).first()


def get_quotation_by_number(db: Session, quote_number: str) -> Quotation | None:
    return db.query(Quotation).filter(Quotation.quote_number == quote_number).first()


def generate_quote_number(db: Session, day: date) -> str:
    return next_daily_number(db, Quotation.quote_number, "QT", day)


def create_quotation(db: Session, values: Dict[str, Any]) -> Quotation:
    quotation = Quotation(**values)
    db.add(quotation)
    db.flush()
    return quotation


def update_quotation(db: Session, quotation: Quotation, values: Dict[str, Any]) -> Quotation:
    for key, value in values.items():
        setattr(quotation, key, value)
    db.add(quotation)
    db.flush()
    return quotation


def delete_quotation(db: Session, quotation: Quotation) -> None:
    db.delete(quotation)
    db.flush()


def list_quotations(
    db: Session,
    filters: QuotationFilters,
    pagination: Pagination,
    *,
    today: date,
) -> Tuple[List[Quotation], int]:
    q = db.query(Quotation)

    if filters.status:
        q = q.filter(Quotation.status.in_([s.upper() for s in filters.status]))
    if filters.customer_id:
        q = q.filter(Quotation.customer_id == filters.customer_id)
    if filters.shipment_type:
        q = q.filter(Quotation.shipment_type == filters.shipment_type)
    if filters.created_by:
        q = q.filter(Quotation.created_by == filters.created_by)
    if filters.date_from:
        q = q.filter(func.date(Quotation.created_at) >= filters.date_from)
    if filters.date_to:
        q = q.filter(func.date(Quotation.created_at) <= filters.date_to)
    if filters.search:
        pattern = f"%{filters.search.lower()}%"
        q = q.filter(
            or_(
                func.lower(Quotation.quote_number).like(pattern),
                func.lower(Quotation.customer_name).like(pattern),
                func.lower(Quotation.customer_email).like(pattern),
            )
        )
    if filters.expired is True:
        q = q.filter(Quotation.valid_until < today)
    elif filters.expired is False:
        q = q.filter(Quotation.valid_until >= today)

    total = q.count()

    sort_col = getattr(Quotation, pagination.sort_by if pagination.sort_by in SORTABLE else "created_at")
    order = sort_col.asc() if pagination.sort_order.lower() == "asc" else sort_col.desc()
    rows = (
        q.order_by(order, Quotation.quote_number.asc())
        .offset(pagination.offset)
        .limit(pagination.limit)
        .all()
    )
    return rows, total


def quotations_for_customer(db: Session, customer_id: str) -> List[Quotation]:
    return (
        db.query(Quotation)
        .filter(Quotation.customer_id == customer_id)
        .order_by(Quotation.created_at.desc(), Quotation.quote_number.desc())
        .all()
    )


def expiring_quotations(db: Session, today: date, days: int) -> List[Quotation]:
    # only SENT quotes can still be accepted, so only those are worth a reminder
    return (
        db.query(Quotation)
        .filter(
            Quotation.status == "SENT",
            Quotation.valid_until >= today,
            Quotation.valid_until <= today + timedelta(days=days),
        )
        .order_by(Quotation.valid_until.asc(), Quotation.quote_number.asc())
        .all()
    )
