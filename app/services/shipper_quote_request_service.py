# app/services/shipper_quote_request_service.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.logging_config import logger
from app.db import transaction
from app.domain.errors import NotFoundError, ValidationError
from app.domain.lifecycle import QuoteRequestStatus, QuotationStatus, parse_quote_request_status, validate_request_transition
from app.domain.pricing import PricingConfig, chargeable_weight, round_money
from app.domain.validation import to_date, to_decimal, validate_quotation_data, validate_quote_request_data
from app.models.quotation import Quotation
from app.models.shipper_quote_request import ShipperQuoteRequest
from app.observability.metrics import quotations_created, quote_requests_converted
from app.repositories import quotations as quotation_repo
from app.repositories import shipper_quote_requests as repo
from app.repositories.shipper_quote_requests import QuoteRequestFilters
from app.services.audit import AuditLogger, AuditWrite
from app.services.shipper_service import require_active_shipper

REQUEST_FIELDS = (
    "shipper_id",
    "shipment_type",
    "commodity_type",
    "origin_location",
    "origin_country",
    "destination_location",
    "destination_country",
    "gross_weight_kg",
    "cargo_volume_cbm",
    "dimensions",
    "incoterm",
    "special_handling",
    "required_by_date",
    "margin_percentage",
    "margin_flat_fee",
    "notes",
)
RESPONSE_FIELDS = (
    "shipper_quote_amount",
    "shipper_quote_currency",
    "shipper_quote_validity",
    "shipper_quote_file_url",
    "shipper_response_details",
)
DATE_FIELDS = ("required_by_date", "shipper_quote_validity")
DECIMAL_FIELDS = ("gross_weight_kg", "cargo_volume_cbm", "margin_percentage", "margin_flat_fee", "shipper_quote_amount")

CUSTOMER_FIELDS = ("customer_id", "customer_name", "customer_email", "customer_phone", "notes", "internal_notes")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce(values: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(values)
    for key in DATE_FIELDS:
        if key in out:
            out[key] = to_date(out[key], key)
    for key in DECIMAL_FIELDS:
        if key in out:
            out[key] = to_decimal(out[key], key)
            if out[key] is not None and out[key] < 0:
                raise ValidationError(f"{key} must be non-negative", code="VALUE_NEGATIVE", meta={"field": key})
    return out


@dataclass(frozen=True)
class ConversionResult:
    quotation: Quotation
    shipper_quote_request: ShipperQuoteRequest
    cost_breakdown: Dict[str, Any]


class ShipperQuoteRequestService:
    """On-demand mode: ask a shipper for a price, then turn the answer into a customer quote."""

    def __init__(
        self,
        db: Session,
        config: Optional[PricingConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.config = config or PricingConfig()
        self.clock = clock
        self.audit = AuditLogger(db)

    def _today(self) -> date:
        return self.clock().date()

    # -----------------------------
    # Reads
    # -----------------------------

    def get(self, request_id: str) -> ShipperQuoteRequest:
        req = repo.get_request_by_id(self.db, request_id)
        if not req:
            raise NotFoundError("Shipper quote request not found", meta={"request_id": request_id})
        return req

    def list(self, filters: Optional[QuoteRequestFilters] = None) -> List[ShipperQuoteRequest]:
        return repo.list_requests(self.db, filters or QuoteRequestFilters())

    def pending(self) -> List[ShipperQuoteRequest]:
        return repo.list_requests(self.db, QuoteRequestFilters(status=QuoteRequestStatus.PENDING.value))

    def received(self) -> List[ShipperQuoteRequest]:
        return repo.list_requests(self.db, QuoteRequestFilters(status=QuoteRequestStatus.RECEIVED.value))

    def by_quotation(self, quotation_id: str) -> List[ShipperQuoteRequest]:
        return repo.list_requests(self.db, QuoteRequestFilters(quotation_id=quotation_id))

    # -----------------------------
    # Writes
    # -----------------------------

    def create(self, data: Mapping[str, Any], actor_id: Optional[str] = None) -> ShipperQuoteRequest:
        record = {k: data.get(k) for k in REQUEST_FIELDS if k in data}
        validate_quote_request_data(record)
        values = _coerce(record)

        require_active_shipper(self.db, values["shipper_id"])

        with transaction(self.db):
            values.update(
                request_number=repo.generate_request_number(self.db, self._today()),
                status=QuoteRequestStatus.PENDING.value,
                shipper_quote_currency=data.get("shipper_quote_currency") or self.config.default_currency,
                requested_at=self.clock(),
                requested_by=actor_id,
            )
            req = repo.create_request(self.db, values)
            self.audit.log(
                AuditWrite(
                    action_type="QUOTE_REQUEST_CREATED",
                    actor=actor_id,
                    target_type="shipper_quote_request",
                    target_id=req.id,
                    new_value={"request_number": req.request_number, "shipper_id": req.shipper_id},
                )
            )

        logger.bind(request_id=req.id, request_number=req.request_number, shipper_id=req.shipper_id).info(
            "quote_request_created"
        )
        return req

    def _status_fields(self, target: QuoteRequestStatus) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"status": target.value}
        if target is QuoteRequestStatus.RECEIVED:
            fields["responded_at"] = self.clock()
        return fields

    def update(self, request_id: str, fields: Mapping[str, Any], actor_id: Optional[str] = None) -> ShipperQuoteRequest:
        req = self.get(request_id)

        editable = REQUEST_FIELDS + RESPONSE_FIELDS
        changes = {k: fields[k] for k in editable if k in fields}
        merged = {k: getattr(req, k) for k in REQUEST_FIELDS}
        merged.update({k: v for k, v in changes.items() if k in REQUEST_FIELDS})
        validate_quote_request_data(merged)

        values = _coerce(changes)
        if "shipper_id" in changes:
            require_active_shipper(self.db, changes["shipper_id"])
        if fields.get("status") is not None:
            requested = parse_quote_request_status(fields["status"])
            if requested.value != req.status:
                target = validate_request_transition(req.status, requested)
                values.update(self._status_fields(target))

        return self._write(req, values, "QUOTE_REQUEST_UPDATED", actor_id)

    def update_status(self, request_id: str, status: Any, actor_id: Optional[str] = None) -> ShipperQuoteRequest:
        req = self.get(request_id)
        target = validate_request_transition(req.status, status)
        return self._write(req, self._status_fields(target), "QUOTE_REQUEST_STATUS_CHANGED", actor_id)

    def record_response(
        self,
        request_id: str,
        amount: Any,
        *,
        currency: Optional[str] = None,
        validity: Any = None,
        file_url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        actor_id: Optional[str] = None,
    ) -> ShipperQuoteRequest:
        req = self.get(request_id)

        quote_amount = to_decimal(amount, "shipper_quote_amount")
        if quote_amount is None or quote_amount <= 0:
            raise ValidationError("Valid shipper quote amount is required", code="QUOTE_AMOUNT_INVALID")

        target = validate_request_transition(req.status, QuoteRequestStatus.RECEIVED)

        values: Dict[str, Any] = {
            "shipper_quote_amount": quote_amount,
            "shipper_quote_currency": currency or req.shipper_quote_currency or self.config.default_currency,
            "shipper_quote_validity": to_date(validity, "shipper_quote_validity"),
            "shipper_quote_file_url": file_url,
            "shipper_response_details": details,
        }
        values.update(self._status_fields(target))
        return self._write(req, values, "QUOTE_REQUEST_RESPONSE_RECORDED", actor_id)

    def _write(
        self,
        req: ShipperQuoteRequest,
        values: Dict[str, Any],
        action: str,
        actor_id: Optional[str],
    ) -> ShipperQuoteRequest:
        old_status = req.status
        with transaction(self.db):
            req = repo.update_request(self.db, req, values)
            self.audit.log(
                AuditWrite(
                    action_type=action,
                    actor=actor_id,
                    target_type="shipper_quote_request",
                    target_id=req.id,
                    old_value={"status": old_status},
                    new_value={"status": req.status, "fields": sorted(values)},
                )
            )

        logger.bind(request_id=req.id, **{"from": old_status, "to": req.status}).info(action.lower())
        return req

    def delete(self, request_id: str, actor_id: Optional[str] = None) -> None:
        req = self.get(request_id)
        with transaction(self.db):
            self.audit.log(
                AuditWrite(
                    action_type="QUOTE_REQUEST_DELETED",
                    actor=actor_id,
                    target_type="shipper_quote_request",
                    target_id=req.id,
                    old_value={"request_number": req.request_number, "status": req.status},
                )
            )
            repo.delete_request(self.db, req)
        logger.bind(request_id=request_id).info("quote_request_deleted")

    # -----------------------------
    # Conversion
    # -----------------------------

    def convert_to_quotation(
        self,
        request_id: str,
        data: Mapping[str, Any],
        actor_id: Optional[str] = None,
    ) -> ConversionResult:
        """
        RECEIVED request + customer data -> DRAFT quotation (source ON_DEMAND).

        margin = amount * pct / 100 + flat fee, total rounded half-up to cents.
        Quotation insert and back-link are one transaction.
        """
        req = self.get(request_id)

        if req.status != QuoteRequestStatus.RECEIVED.value:
            raise ValidationError(
                "Can only convert requests with RECEIVED status",
                code="REQUEST_NOT_RECEIVED",
                meta={"status": req.status},
            )
        if req.shipper_quote_amount is None:
            raise ValidationError("Shipper quote amount is required", code="QUOTE_AMOUNT_REQUIRED")
        if req.quotation_id:
            raise ValidationError(
                "Request was already converted",
                code="ALREADY_CONVERTED",
                meta={"quotation_id": req.quotation_id},
            )

        amount = Decimal(str(req.shipper_quote_amount))
        pct = (
            Decimal(str(req.margin_percentage))
            if req.margin_percentage is not None
            else self.config.default_margin_percentage
        )
        flat_fee = Decimal(str(req.margin_flat_fee)) if req.margin_flat_fee is not None else Decimal("0")
        margin_amount = amount * pct / Decimal("100") + flat_fee
        total = round_money(amount + margin_amount)
        currency = req.shipper_quote_currency or self.config.default_currency

        cost_breakdown = {
            "shipper_quote_amount": format(amount, "f"),
            "margin_percentage": format(pct, "f"),
            "margin_flat_fee": format(flat_fee, "f"),
            "margin_amount": format(margin_amount, "f"),
            "total_cost": format(total, "f"),
            "currency": currency,
            "quote_request": {
                "id": req.id,
                "request_number": req.request_number,
                "shipper_name": req.shipper_name,
            },
        }

        valid_days = data.get("valid_days")
        if valid_days is None:
            valid_days = self.config.default_validity_days
        if int(valid_days) < 1:
            raise ValidationError("valid_days must be at least 1", code="VALID_DAYS_INVALID", meta={"valid_days": valid_days})

        today = self._today()
        record: Dict[str, Any] = {k: data.get(k) for k in CUSTOMER_FIELDS if k in data}
        record.update(
            shipment_type=req.shipment_type,
            origin_location=req.origin_location,
            origin_country=req.origin_country,
            destination_location=req.destination_location,
            destination_country=req.destination_country,
            cargo_description=req.commodity_type,
            cargo_weight_kg=req.gross_weight_kg,
            cargo_volume_cbm=req.cargo_volume_cbm,
            cargo_dimensions=req.dimensions,
            total_cost=total,
            currency=currency,
            cost_breakdown=cost_breakdown,
            valid_from=today,
            valid_until=today + timedelta(days=int(valid_days)),
        )
        validate_quotation_data(record)

        record.update(
            chargeable_weight=chargeable_weight(
                req.gross_weight_kg,
                req.cargo_volume_cbm,
                divisor=self.config.volumetric_divisor,
            ),
            quote_source_mode="ON_DEMAND",
            shipper_quote_request_id=req.id,
            shipper_cost=round_money(amount),
            margin_percentage=pct,
            margin_amount=round_money(margin_amount),
            status=QuotationStatus.DRAFT.value,
            created_by=actor_id,
        )

        with transaction(self.db):
            record["quote_number"] = quotation_repo.generate_quote_number(self.db, today)
            quotation = quotation_repo.create_quotation(self.db, record)
            req = repo.update_request(
                self.db,
                req,
                {"quotation_id": quotation.id, "final_quote_amount": total},
            )
            self.audit.log(
                AuditWrite(
                    action_type="QUOTE_REQUEST_CONVERTED",
                    actor=actor_id,
                    target_type="shipper_quote_request",
                    target_id=req.id,
                    new_value={
                        "quotation_id": quotation.id,
                        "quote_number": quotation.quote_number,
                        "total_cost": total,
                    },
                )
            )

        quotations_created.labels(source="ON_DEMAND").inc()
        quote_requests_converted.inc()
        logger.bind(
            request_id=req.id,
            quotation_id=quotation.id,
            quote_number=quotation.quote_number,
            total_cost=str(total),
        ).info("quote_request_converted")
        return ConversionResult(quotation=quotation, shipper_quote_request=req, cost_breakdown=cost_breakdown)
