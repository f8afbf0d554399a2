# app/models/audit_event.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


class AuditEvent(Base):
    """Append-only trail of state changes; written in the same transaction as the change."""

    __tablename__ = "audit_events"

    event_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    action_type: Mapped[str] = mapped_column(String(100), index=True, nullable=False)
    actor: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    target_type: Mapped[Optional[str]] = mapped_column(String(50), index=True, nullable=True)
    target_id: Mapped[Optional[str]] = mapped_column(String(36), index=True, nullable=True)

    old_value: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    new_value: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AuditEvent {self.action_type} {self.target_type}:{self.target_id}>"
