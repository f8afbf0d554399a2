# app/models/shipper.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


class Shipper(Base):
    """Airline, shipping line, GSA or forwarder we buy capacity from."""

    __tablename__ = "shippers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    shipper_code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    shipper_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # AIRLINE | SHIPPING_LINE | GSA | FREIGHT_FORWARDER
    shipper_type: Mapped[Optional[str]] = mapped_column(String(100), index=True, nullable=True)

    contact_person: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
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

    rate_cards: Mapped[List["RateCard"]] = relationship("RateCard", back_populates="shipper")

    def __repr__(self) -> str:
        return f"<Shipper id={self.id} code={self.shipper_code!r}>"
