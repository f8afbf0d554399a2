# app/schemas/rate_card.py
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class RateCardCreate(BaseModel):
    shipper_id: Optional[str] = None
    rate_type: Optional[str] = None
    shipment_type: Optional[str] = None

    origin_airport: Optional[str] = None
    origin_city: Optional[str] = None
    origin_country: Optional[str] = None
    destination_airport: Optional[str] = None
    destination_city: Optional[str] = None
    destination_country: Optional[str] = None

    commodity_type: Optional[str] = None
    min_weight_kg: Optional[Decimal] = None
    max_weight_kg: Optional[Decimal] = None

    # slabs/surcharges stay loose here; the service validates them with error codes
    weight_slabs: Optional[List[Dict[str, Any]]] = None
    surcharges: Optional[Dict[str, Any]] = None

    origin_handling_charges: Optional[Decimal] = None
    destination_handling_charges: Optional[Decimal] = None

    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    status: Optional[str] = None

    transit_time_days: Optional[int] = None
    free_storage_days: Optional[int] = None
    margin_percentage: Optional[Decimal] = None
    margin_flat_fee: Optional[Decimal] = None
    notes: Optional[str] = None


class RateCardUpdate(RateCardCreate):
    pass


class CalculateRequest(BaseModel):
    weight_kg: Decimal
    volume_cbm: Optional[Decimal] = None


class RateCardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    rate_card_number: str
    shipper_id: str
    shipper_name: Optional[str] = None

    rate_type: str
    shipment_type: str
    origin_airport: str
    origin_city: Optional[str] = None
    origin_country: Optional[str] = None
    destination_airport: str
    destination_city: Optional[str] = None
    destination_country: Optional[str] = None

    commodity_type: Optional[str] = None
    min_weight_kg: Optional[Decimal] = None
    max_weight_kg: Optional[Decimal] = None
    weight_slabs: List[Dict[str, Any]]
    surcharges: Dict[str, Any]
    origin_handling_charges: Decimal
    destination_handling_charges: Decimal

    valid_from: date
    valid_until: date
    status: str
    transit_time_days: Optional[int] = None
    free_storage_days: Optional[int] = None
    margin_percentage: Optional[Decimal] = None
    margin_flat_fee: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
