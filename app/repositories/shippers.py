# app/repositories/shippers.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.shipper import Shipper


def get_shipper_by_id(db: Session, shipper_id: str) -> Shipper | None:
    return db.query(Shipper).filter(Shipper.id == shipper_id).first()


def get_shipper_by_code(db: Session, shipper_code: str) -> Shipper | None:
    return db.query(Shipper).filter(Shipper.shipper_code == shipper_code).first()


def list_shippers(db: Session, *, active_only: bool = False, shipper_type: Optional[str] = None) -> List[Shipper]:
    q = db.query(Shipper)
    if active_only:
        q = q.filter(Shipper.is_active.is_(True))
    if shipper_type:
        q = q.filter(Shipper.shipper_type == shipper_type)
    return q.order_by(Shipper.shipper_name.asc()).all()


def create_shipper(db: Session, values: Dict[str, Any]) -> Shipper:
    shipper = Shipper(**values)
    db.add(shipper)
    db.flush()
    return shipper


def update_shipper(db: Session, shipper: Shipper, values: Dict[str, Any]) -> Shipper:
    for key, value in values.items():
        setattr(shipper, key, value)
    db.add(shipper)
    db.flush()
    return shipper
