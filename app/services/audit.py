# app/services/audit.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.audit_event import AuditEvent


@dataclass(frozen=True)
class AuditWrite:
    action_type: str
    actor: Optional[str] = None
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    reason: Optional[str] = None
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    event_id: Optional[str] = None  # optional idempotency key


def _jsonable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class AuditLogger:
    """
    Writes audit rows into the caller's session.
    - No commit here: the row lands in the same transaction as the business write
    - Fail closed: if the write fails, the exception propagates and the service rolls back
    """

    def __init__(self, db: Session):
        self._db = db

    def log(self, w: AuditWrite) -> str:
        if not w.action_type or not str(w.action_type).strip():
            raise ValueError("action_type is required")

        event_id = w.event_id or f"{w.action_type.lower()}:{uuid.uuid4().hex}"
        self._db.add(
            AuditEvent(
                event_id=event_id,
                action_type=w.action_type,
                actor=w.actor,
                target_type=w.target_type,
                target_id=w.target_id,
                reason=w.reason,
                old_value=_jsonable(w.old_value),
                new_value=_jsonable(w.new_value),
            )
        )
        self._db.flush()
        return event_id
