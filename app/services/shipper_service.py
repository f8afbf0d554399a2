# app/services/shipper_service.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.logging_config import logger
from app.db import transaction
from app.domain.errors import NotFoundError, ValidationError
from app.domain.validation import is_valid_email
from app.models.shipper import Shipper
from app.repositories import shippers as repo
from app.services.audit import AuditLogger, AuditWrite

SHIPPER_TYPES = {"AIRLINE", "SHIPPING_LINE", "GSA", "FREIGHT_FORWARDER"}

SHIPPER_FIELDS = (
    "shipper_code",
    "shipper_name",
    "shipper_type",
    "contact_person",
    "contact_email",
    "contact_phone",
    "country",
    "is_active",
    "notes",
)


def _validate_shipper(values: Mapping[str, Any]) -> str:
    """Checks a (merged) shipper record, returns the normalized code."""
    code = str(values.get("shipper_code") or "").strip().upper()
    if not code:
        raise ValidationError("Shipper code is required", code="SHIPPER_CODE_REQUIRED")
    if not str(values.get("shipper_name") or "").strip():
        raise ValidationError("Shipper name is required", code="SHIPPER_NAME_REQUIRED")
    if values.get("shipper_type") and values["shipper_type"] not in SHIPPER_TYPES:
        raise ValidationError(
            f"Unknown shipper type: {values['shipper_type']}",
            code="SHIPPER_TYPE_INVALID",
            meta={"allowed": sorted(SHIPPER_TYPES)},
        )
    if values.get("contact_email") and not is_valid_email(values["contact_email"]):
        raise ValidationError("Invalid contact email format", code="EMAIL_INVALID")
    return code


def require_active_shipper(db: Session, shipper_id: str) -> Shipper:
    """Rate cards and quote requests may only point at an existing, active carrier."""
    shipper = repo.get_shipper_by_id(db, shipper_id)
    if not shipper:
        raise ValidationError("Shipper does not exist", code="SHIPPER_NOT_FOUND", meta={"shipper_id": shipper_id})
    if not shipper.is_active:
        raise ValidationError("Shipper is inactive", code="SHIPPER_INACTIVE", meta={"shipper_id": shipper_id})
    return shipper


class ShipperService:
    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditLogger(db)

    def get(self, shipper_id: str) -> Shipper:
        shipper = repo.get_shipper_by_id(self.db, shipper_id)
        if not shipper:
            raise NotFoundError("Shipper not found", meta={"shipper_id": shipper_id})
        return shipper

    def list(self, *, active_only: bool = False, shipper_type: Optional[str] = None) -> List[Shipper]:
        return repo.list_shippers(self.db, active_only=active_only, shipper_type=shipper_type)

    def create(self, data: Mapping[str, Any], actor_id: Optional[str] = None) -> Shipper:
        values = {k: data.get(k) for k in SHIPPER_FIELDS if data.get(k) is not None}

        code = _validate_shipper(values)
        if repo.get_shipper_by_code(self.db, code):
            raise ValidationError("Shipper code already exists", code="SHIPPER_CODE_TAKEN", meta={"shipper_code": code})

        values["shipper_code"] = code

        with transaction(self.db):
            shipper = repo.create_shipper(self.db, values)
            self.audit.log(
                AuditWrite(
                    action_type="SHIPPER_CREATED",
                    actor=actor_id,
                    target_type="shipper",
                    target_id=shipper.id,
                    new_value={"shipper_code": code, "shipper_name": shipper.shipper_name},
                )
            )

        logger.bind(shipper_id=shipper.id, shipper_code=code).info("shipper_created")
        return shipper

    def update(self, shipper_id: str, fields: Mapping[str, Any], actor_id: Optional[str] = None) -> Shipper:
        shipper = self.get(shipper_id)

        changes: Dict[str, Any] = {k: fields[k] for k in SHIPPER_FIELDS if k in fields}
        merged = {k: getattr(shipper, k) for k in SHIPPER_FIELDS}
        merged.update(changes)
        code = _validate_shipper(merged)

        if "shipper_code" in changes:
            other = repo.get_shipper_by_code(self.db, code)
            if other and other.id != shipper.id:
                raise ValidationError(
                    "Shipper code already exists",
                    code="SHIPPER_CODE_TAKEN",
                    meta={"shipper_code": code},
                )
            changes["shipper_code"] = code

        with transaction(self.db):
            shipper = repo.update_shipper(self.db, shipper, changes)
            self.audit.log(
                AuditWrite(
                    action_type="SHIPPER_UPDATED",
                    actor=actor_id,
                    target_type="shipper",
                    target_id=shipper.id,
                    new_value={"fields": sorted(changes)},
                )
            )

        logger.bind(shipper_id=shipper.id, fields=sorted(changes)).info("shipper_updated")
        return shipper

    def _set_active(self, shipper_id: str, active: bool, action: str, actor_id: Optional[str]) -> Shipper:
        shipper = self.get(shipper_id)
        old = shipper.is_active

        with transaction(self.db):
            shipper = repo.update_shipper(self.db, shipper, {"is_active": active})
            self.audit.log(
                AuditWrite(
                    action_type=action,
                    actor=actor_id,
                    target_type="shipper",
                    target_id=shipper.id,
                    old_value={"is_active": old},
                    new_value={"is_active": active},
                )
            )

        logger.bind(shipper_id=shipper.id, is_active=active).info(action.lower())
        return shipper

    def delete(self, shipper_id: str, actor_id: Optional[str] = None) -> None:
        # soft delete, rate cards and quote requests keep their shipper_id
        self._set_active(shipper_id, False, "SHIPPER_DELETED", actor_id)

    def activate(self, shipper_id: str, actor_id: Optional[str] = None) -> Shipper:
        return self._set_active(shipper_id, True, "SHIPPER_ACTIVATED", actor_id)

    def deactivate(self, shipper_id: str, actor_id: Optional[str] = None) -> Shipper:
        return self._set_active(shipper_id, False, "SHIPPER_DEACTIVATED", actor_id)
