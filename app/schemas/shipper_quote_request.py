# app/schemas/shipper_quote_request.py
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuoteRequestCreate(BaseModel):
    shipper_id: Optional[str] = None
    shipment_type: Optional[str] = None
    commodity_type: Optional[str] = None

    origin_location: Optional[str] = None
    origin_country: Optional[str] = None
    destination_location: Optional[str] = None
    destination_country: Optional[str] = None

    gross_weight_kg: Optional[Decimal] = None
    cargo_volume_cbm: Optional[Decimal] = None
    dimensions: Optional[Dict[str, Any]] = None

    incoterm: Optional[str] = None
    special_handling: Optional[str] = None
    required_by_date: Optional[date] = None

    shipper_quote_currency: Optional[str] = None
    margin_percentage: Optional[Decimal] = None
    margin_flat_fee: Optional[Decimal] = None
    notes: Optional[str] = None


class QuoteRequestUpdate(QuoteRequestCreate):
    status: Optional[str] = None
    shipper_quote_amount: Optional[Decimal] = None
    shipper_quote_validity: Optional[date] = None
    shipper_quote_file_url: Optional[str] = None
    shipper_response_details: Optional[Dict[str, Any]] = None


class ShipperResponse(BaseModel):
    shipper_quote_amount: Decimal
    shipper_quote_currency: Optional[str] = None
    shipper_quote_validity: Optional[date] = None
    shipper_quote_file_url: Optional[str] = None
    shipper_response_details: Optional[Dict[str, Any]] = None


class ConvertRequest(BaseModel):
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    valid_days: Optional[int] = Field(None, ge=1, le=365)
    notes: Optional[str] = None
    internal_notes: Optional[str] = None


class QuoteRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    request_number: str
    quotation_id: Optional[str] = None
    shipper_id: str
    shipper_name: Optional[str] = None

    shipment_type: str
    commodity_type: Optional[str] = None
    origin_location: str
    origin_country: Optional[str] = None
    destination_location: str
    destination_country: Optional[str] = None

    gross_weight_kg: Decimal
    cargo_volume_cbm: Optional[Decimal] = None
    dimensions: Optional[Dict[str, Any]] = None
    incoterm: Optional[str] = None
    special_handling: Optional[str] = None
    required_by_date: Optional[date] = None

    status: str
    shipper_quote_amount: Optional[Decimal] = None
    shipper_quote_currency: str
    shipper_quote_validity: Optional[date] = None
    shipper_quote_file_url: Optional[str] = None
    shipper_response_details: Optional[Dict[str, Any]] = None

    margin_percentage: Optional[Decimal] = None
    margin_flat_fee: Optional[Decimal] = None
    final_quote_amount: Optional[Decimal] = None

    requested_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    requested_by: Optional[str] = None
    notes: Optional[str] = None
