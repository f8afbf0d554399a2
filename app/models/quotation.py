# app/models/quotation.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


class Quotation(Base):
    __tablename__ = "quotations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    # QT-YYYYMMDD-NNN
    quote_number: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)

    # customer
    customer_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    shipment_type: Mapped[str] = mapped_column(String(50), index=True, nullable=False)

    # route
    origin_location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    origin_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    destination_location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    destination_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # cargo
    cargo_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cargo_weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    cargo_volume_cbm: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), nullable=True)
    cargo_dimensions: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    chargeable_weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    service_requirements: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # pricing
    total_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    cost_breakdown: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # source tracking: INVENTORY | ON_DEMAND | MANUAL
    quote_source_mode: Mapped[str] = mapped_column(String(20), index=True, nullable=False, default="MANUAL")
    rate_card_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("rate_cards.id", ondelete="SET NULL"), index=True, nullable=True
    )
    shipper_quote_request_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    shipper_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    margin_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    margin_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # validity
    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[date] = mapped_column(Date, index=True, nullable=False)

    # status/meta
    status: Mapped[str] = mapped_column(String(20), index=True, nullable=False, default="DRAFT")
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    internal_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    approved_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Quotation id={self.id} number={self.quote_number!r} status={self.status}>"
