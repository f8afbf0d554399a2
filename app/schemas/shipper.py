# app/schemas/shipper.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ShipperCreate(BaseModel):
    shipper_code: Optional[str] = None
    shipper_name: Optional[str] = None
    shipper_type: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    country: Optional[str] = None
    is_active: bool = True
    notes: Optional[str] = None


class ShipperOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    shipper_code: str
    shipper_name: str
    shipper_type: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    country: Optional[str] = None
    is_active: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class ShipperUpdate(BaseModel):
    shipper_code: Optional[str] = None
    shipper_name: Optional[str] = None
    shipper_type: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    country: Optional[str] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None
