# app/models/shipper_quote_request.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class ShipperQuoteRequest(Base):
    """On-demand price request sent to a shipper (no rate card available)."""

    __tablename__ = "shipper_quote_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    # SQR-YYYYMMDD-NNN
    request_number: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)

    quotation_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("quotations.id", ondelete="SET NULL"), index=True, nullable=True
    )
    shipper_id: Mapped[str] = mapped_column(
        ForeignKey("shippers.id", ondelete="CASCADE"), index=True, nullable=False
    )

    shipment_type: Mapped[str] = mapped_column(String(50), nullable=False)
    commodity_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    origin_location: Mapped[str] = mapped_column(String(255), nullable=False)
    origin_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    destination_location: Mapped[str] = mapped_column(String(255), nullable=False)
    destination_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    gross_weight_kg: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cargo_volume_cbm: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 3), nullable=True)
    dimensions: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    incoterm: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    special_handling: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    required_by_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # PENDING | SENT | RECEIVED | DECLINED | EXPIRED
    status: Mapped[str] = mapped_column(String(20), index=True, nullable=False, default="PENDING")
    shipper_quote_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    shipper_quote_currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    shipper_quote_validity: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    shipper_quote_file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shipper_response_details: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # null = use configured default margin
    margin_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    margin_flat_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    final_quote_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    responded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    requested_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
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

    shipper: Mapped["Shipper"] = relationship("Shipper")

    @property
    def shipper_name(self) -> Optional[str]:
        return self.shipper.shipper_name if self.shipper else None

    def __repr__(self) -> str:
        return f"<ShipperQuoteRequest id={self.id} number={self.request_number!r} status={self.status}>"
