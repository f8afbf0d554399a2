# app/schemas/quotation.py
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuotationCreate(BaseModel):
    # required-ness is checked by the service so clients get domain error codes
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None

    shipment_type: Optional[str] = None
    origin_location: Optional[str] = None
    origin_country: Optional[str] = None
    destination_location: Optional[str] = None
    destination_country: Optional[str] = None

    cargo_description: Optional[str] = None
    cargo_weight_kg: Optional[Decimal] = None
    cargo_volume_cbm: Optional[Decimal] = None
    cargo_dimensions: Optional[Dict[str, Any]] = None
    service_requirements: Optional[Dict[str, Any]] = None

    total_cost: Optional[Decimal] = None
    currency: Optional[str] = None
    cost_breakdown: Optional[Dict[str, Any]] = None

    valid_from: Optional[date] = None
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None


class QuotationUpdate(QuotationCreate):
    status: Optional[str] = None


class StatusUpdate(BaseModel):
    status: str


class AutoQuotationRequest(BaseModel):
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None

    shipment_type: Optional[str] = None
    origin_location: Optional[str] = None
    origin_country: Optional[str] = None
    destination_location: Optional[str] = None
    destination_country: Optional[str] = None

    cargo_description: Optional[str] = None
    cargo_weight_kg: Optional[Decimal] = None
    cargo_volume_cbm: Optional[Decimal] = None
    cargo_dimensions: Optional[Dict[str, Any]] = None
    service_requirements: Optional[Dict[str, Any]] = None

    valid_days: Optional[int] = Field(None, ge=1, le=365)
    notes: Optional[str] = None
    internal_notes: Optional[str] = None


class FindRatesRequest(BaseModel):
    origin: Optional[str] = None
    destination: Optional[str] = None
    chargeable_weight: Optional[Decimal] = None
    shipment_type: Optional[str] = None


class QuotationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    quote_number: str
    customer_id: str
    customer_name: str
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None

    shipment_type: str
    origin_location: Optional[str] = None
    origin_country: Optional[str] = None
    destination_location: Optional[str] = None
    destination_country: Optional[str] = None

    cargo_description: Optional[str] = None
    cargo_weight_kg: Optional[Decimal] = None
    cargo_volume_cbm: Optional[Decimal] = None
    cargo_dimensions: Optional[Dict[str, Any]] = None
    chargeable_weight: Optional[Decimal] = None
    service_requirements: Optional[Dict[str, Any]] = None

    total_cost: Decimal
    currency: str
    cost_breakdown: Optional[Dict[str, Any]] = None

    quote_source_mode: str
    rate_card_id: Optional[str] = None
    shipper_quote_request_id: Optional[str] = None
    shipper_cost: Optional[Decimal] = None
    margin_percentage: Optional[Decimal] = None
    margin_amount: Optional[Decimal] = None

    valid_from: date
    valid_until: date
    status: str
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    created_by: Optional[str] = None
    approved_by: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None


class QuotationPage(BaseModel):
    items: List[QuotationOut]
    total: int
    page: int
    limit: int
    total_pages: int
