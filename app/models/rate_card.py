# app/models/rate_card.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from sqlalchemy import JSON, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class RateCard(Base):
    """Pre-negotiated shipper rate for one route + shipment type (inventory mode)."""

    __tablename__ = "rate_cards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    rate_card_number: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)

    shipper_id: Mapped[str] = mapped_column(
        ForeignKey("shippers.id", ondelete="CASCADE"), index=True, nullable=False
    )

    # AIR_FREIGHT | SEA_FREIGHT | ODC | BREAK_BULK
    rate_type: Mapped[str] = mapped_column(String(50), nullable=False)
    shipment_type: Mapped[str] = mapped_column(String(50), index=True, nullable=False)

    # route (IATA / port codes, stored upper-case)
    origin_airport: Mapped[str] = mapped_column(String(10), index=True, nullable=False)
    origin_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    origin_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    destination_airport: Mapped[str] = mapped_column(String(10), index=True, nullable=False)
    destination_city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    destination_country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    commodity_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    min_weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    max_weight_kg: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # [{"min_kg": 0, "max_kg": 45, "rate_per_kg": 125, "currency": "USD"}, ...]; max_kg null = open-ended
    weight_slabs: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    # {"FSC": 0.15, "SSC": 0.05, "DG": 500}; FSC/SSC fractions of freight, DG flat
    surcharges: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    origin_handling_charges: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    destination_handling_charges: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    valid_from: Mapped[date] = mapped_column(Date, nullable=False)
    valid_until: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    # ACTIVE | INACTIVE | EXPIRED | PENDING
    status: Mapped[str] = mapped_column(String(20), index=True, nullable=False, default="ACTIVE")

    transit_time_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    free_storage_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # null = use configured default margin
    margin_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    margin_flat_fee: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
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

    shipper: Mapped["Shipper"] = relationship("Shipper", back_populates="rate_cards")

    @property
    def shipper_name(self) -> Optional[str]:
        return self.shipper.shipper_name if self.shipper else None

    def __repr__(self) -> str:
        return (
            f"<RateCard id={self.id} number={self.rate_card_number!r} "
            f"{self.origin_airport}->{self.destination_airport} status={self.status}>"
        )
