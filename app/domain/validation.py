from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from .errors import ValidationError

D = Decimal

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email or ""))


def to_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(
            f"{field_name} is not a valid date",
            meta={"field": field_name, "value": str(value)},
        )


def to_decimal(value: Any, field_name: str) -> Optional[D]:
    if value is None or value == "":
        return None
    try:
        d = D(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(
            f"{field_name} is not a valid number",
            meta={"field": field_name, "value": str(value)},
        )
    if not d.is_finite():
        raise ValidationError(
            f"{field_name} must be a finite number",
            code="NUMBER_INVALID",
            meta={"field": field_name, "value": str(value)},
        )
    return d


def validate_validity_window(valid_from: Any, valid_until: Any) -> None:
    start = to_date(valid_from, "valid_from")
    end = to_date(valid_until, "valid_until")
    if start is None or end is None:
        raise ValidationError("Validity dates are required", code="VALIDITY_REQUIRED")
    if start >= end:
        raise ValidationError(
            "Valid until date must be after valid from date",
            code="VALIDITY_ORDER",
            meta={"valid_from": start.isoformat(), "valid_until": end.isoformat()},
        )


def validate_quotation_data(data: Mapping[str, Any]) -> None:
    """
    Field rules for a (merged) quotation record. Runs before any write,
    so a failing record never reaches the repository.
    """
    name = data.get("customer_name")
    if not name or not str(name).strip():
        raise ValidationError("Customer name is required", code="CUSTOMER_NAME_REQUIRED")

    if not data.get("shipment_type"):
        raise ValidationError("Shipment type is required", code="SHIPMENT_TYPE_REQUIRED")

    total = to_decimal(data.get("total_cost"), "total_cost")
    if total is None or total < 0:
        raise ValidationError(
            "Valid total cost is required",
            code="TOTAL_COST_INVALID",
            meta={"total_cost": None if total is None else str(total)},
        )

    validate_validity_window(data.get("valid_from"), data.get("valid_until"))

    email = data.get("customer_email")
    if email and not is_valid_email(str(email)):
        raise ValidationError(
            "Invalid customer email format",
            code="EMAIL_INVALID",
            meta={"customer_email": str(email)},
        )

    if not data.get("customer_id"):
        raise ValidationError("Customer id is required", code="CUSTOMER_ID_REQUIRED")


def validate_quote_request_data(data: Mapping[str, Any]) -> None:
    if not data.get("shipper_id"):
        raise ValidationError("Shipper ID is required", code="SHIPPER_REQUIRED")
    if not data.get("shipment_type"):
        raise ValidationError("Shipment type is required", code="SHIPMENT_TYPE_REQUIRED")
    if not data.get("origin_location"):
        raise ValidationError("Origin location is required", code="ORIGIN_REQUIRED")
    if not data.get("destination_location"):
        raise ValidationError("Destination location is required", code="DESTINATION_REQUIRED")

    weight = to_decimal(data.get("gross_weight_kg"), "gross_weight_kg")
    if weight is None or weight <= 0:
        raise ValidationError(
            "Valid gross weight is required",
            code="WEIGHT_INVALID",
            meta={"gross_weight_kg": None if weight is None else str(weight)},
        )
