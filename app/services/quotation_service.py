# app/services/quotation_service.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.logging_config import logger
from app.db import transaction
from app.domain.errors import InternalInconsistencyError, InvalidTransitionError, NotFoundError, ValidationError
from app.domain.lifecycle import QuotationStatus, parse_quotation_status, status_side_effects, validate_transition
from app.domain.pricing import (
    CostBreakdown,
    PricingConfig,
    RateCardSnapshot,
    calculate_cost,
    chargeable_weight,
    filter_candidates,
    round_money,
    select_rate_card,
)
from app.domain.validation import to_date, to_decimal, validate_quotation_data
from app.models.quotation import Quotation
from app.models.rate_card import RateCard
from app.observability.metrics import pricing_outcomes, quotations_created, status_transitions
from app.repositories import quotations as repo
from app.repositories import rate_cards as rate_card_repo
from app.repositories.quotations import Pagination, QuotationFilters
from app.services.audit import AuditLogger, AuditWrite

# fields a caller may set on a quotation directly
QUOTATION_FIELDS = (
    "customer_id",
    "customer_name",
    "customer_email",
    "customer_phone",
    "shipment_type",
    "origin_location",
    "origin_country",
    "destination_location",
    "destination_country",
    "cargo_description",
    "cargo_weight_kg",
    "cargo_volume_cbm",
    "cargo_dimensions",
    "service_requirements",
    "total_cost",
    "currency",
    "cost_breakdown",
    "valid_from",
    "valid_until",
    "notes",
    "internal_notes",
)
DATE_FIELDS = ("valid_from", "valid_until")
DECIMAL_FIELDS = ("cargo_weight_kg", "cargo_volume_cbm", "total_cost")


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
    return out


@dataclass(frozen=True)
class AutoQuotationResult:
    quotation: Quotation
    rate_card: RateCard
    cost_breakdown: CostBreakdown


class QuotationService:
    """
    Quotation lifecycle + inventory-mode pricing.

    Owns the unit of work: repositories only flush, this class commits
    (or rolls back) once per operation, audit row included.
    """

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

    def get(self, quotation_id: str) -> Quotation:
        quotation = repo.get_quotation_by_id(self.db, quotation_id)
        if not quotation:
            raise NotFoundError("Quotation not found", meta={"quotation_id": quotation_id})
        return quotation

    def get_by_number(self, quote_number: str) -> Quotation:
        quotation = repo.get_quotation_by_number(self.db, quote_number)
        if not quotation:
            raise NotFoundError("Quotation not found", meta={"quote_number": quote_number})
        return quotation

    def list(
        self,
        filters: Optional[QuotationFilters] = None,
        pagination: Optional[Pagination] = None,
    ) -> Tuple[List[Quotation], int]:
        pagination = pagination or Pagination()
        if pagination.page < 1 or not 1 <= pagination.limit <= 100:
            raise ValidationError(
                "page must be >= 1 and limit between 1 and 100",
                code="PAGINATION_INVALID",
                meta={"page": pagination.page, "limit": pagination.limit},
            )
        return repo.list_quotations(self.db, filters or QuotationFilters(), pagination, today=self._today())

    def customer_quotations(self, customer_id: str) -> List[Quotation]:
        return repo.quotations_for_customer(self.db, customer_id)

    def expiring_soon(self, days: int = 7) -> List[Quotation]:
        if days < 1 or days > 365:
            raise ValidationError("Days must be between 1 and 365", code="DAYS_INVALID", meta={"days": days})
        return repo.expiring_quotations(self.db, self._today(), days)

    # -----------------------------
    # Writes
    # -----------------------------

    def _insert(self, values: Dict[str, Any], actor_id: Optional[str]) -> Quotation:
        source = values.get("quote_source_mode") or "MANUAL"

        with transaction(self.db):
            values.update(
                quote_number=repo.generate_quote_number(self.db, self._today()),
                status=QuotationStatus.DRAFT.value,
                quote_source_mode=source,
                created_by=actor_id,
            )
            quotation = repo.create_quotation(self.db, values)
            self.audit.log(
                AuditWrite(
                    action_type="QUOTATION_CREATED",
                    actor=actor_id,
                    target_type="quotation",
                    target_id=quotation.id,
                    new_value={
                        "quote_number": quotation.quote_number,
                        "total_cost": quotation.total_cost,
                        "source": source,
                    },
                )
            )

        quotations_created.labels(source=source).inc()
        logger.bind(
            quotation_id=quotation.id,
            quote_number=quotation.quote_number,
            source=source,
            actor_id=actor_id,
        ).info("quotation_created")
        return quotation

    def _chargeable_weight(self, values: Mapping[str, Any]) -> Optional[Decimal]:
        if values.get("cargo_weight_kg") is None:
            return None
        return chargeable_weight(
            values.get("cargo_weight_kg"),
            values.get("cargo_volume_cbm"),
            divisor=self.config.volumetric_divisor,
        )

    def create(self, data: Mapping[str, Any], actor_id: Optional[str] = None) -> Quotation:
        record = {k: data.get(k) for k in QUOTATION_FIELDS if k in data}
        if not record.get("currency"):
            record["currency"] = self.config.default_currency

        # nothing touches the DB before this passes
        validate_quotation_data(record)

        values = _coerce(record)
        values["chargeable_weight"] = self._chargeable_weight(values)
        return self._insert(values, actor_id)

    def update(self, quotation_id: str, fields: Mapping[str, Any], actor_id: Optional[str] = None) -> Quotation:
        quotation = self.get(quotation_id)

        changes = {k: fields[k] for k in QUOTATION_FIELDS if k in fields}
        merged = {k: getattr(quotation, k) for k in QUOTATION_FIELDS}
        merged.update(changes)
        validate_quotation_data(merged)

        target: Optional[QuotationStatus] = None
        if fields.get("status") is not None:
            requested = parse_quotation_status(fields["status"])
            if requested.value != quotation.status:
                target = validate_transition(quotation.status, requested)

        values = _coerce(changes)
        if "cargo_weight_kg" in changes or "cargo_volume_cbm" in changes:
            values["chargeable_weight"] = self._chargeable_weight(_coerce(merged))

        old_status = quotation.status
        if target is not None:
            values.update(
                status_side_effects(target, self.clock(), actor_id=actor_id, accepted_at=quotation.accepted_at)
            )

        with transaction(self.db):
            quotation = repo.update_quotation(self.db, quotation, values)
            self.audit.log(
                AuditWrite(
                    action_type="QUOTATION_UPDATED",
                    actor=actor_id,
                    target_type="quotation",
                    target_id=quotation.id,
                    old_value={"status": old_status},
                    new_value={"fields": sorted(values)},
                )
            )

        if target is not None:
            status_transitions.labels(from_status=old_status, to_status=target.value, result="success").inc()
        logger.bind(quotation_id=quotation.id, fields=sorted(values)).info("quotation_updated")
        return quotation

    def update_status(self, quotation_id: str, new_status: Any, actor_id: Optional[str] = None) -> Quotation:
        quotation = self.get(quotation_id)
        current = quotation.status

        try:
            target = validate_transition(current, new_status)
        except InvalidTransitionError as e:
            status_transitions.labels(from_status=e.current, to_status=e.target, result="rejected").inc()
            logger.bind(quotation_id=quotation.id, **{"from": e.current, "to": e.target}).warning(
                "quotation_status_rejected"
            )
            raise

        values = status_side_effects(target, self.clock(), actor_id=actor_id, accepted_at=quotation.accepted_at)

        with transaction(self.db):
            quotation = repo.update_quotation(self.db, quotation, values)
            self.audit.log(
                AuditWrite(
                    action_type="QUOTATION_STATUS_CHANGED",
                    actor=actor_id,
                    target_type="quotation",
                    target_id=quotation.id,
                    old_value={"status": current},
                    new_value={"status": target.value},
                )
            )

        status_transitions.labels(from_status=current, to_status=target.value, result="success").inc()
        logger.bind(
            quotation_id=quotation.id,
            quote_number=quotation.quote_number,
            actor_id=actor_id,
            **{"from": current, "to": target.value},
        ).info("quotation_status_changed")
        return quotation

    def send(self, quotation_id: str, actor_id: Optional[str] = None) -> Quotation:
        return self.update_status(quotation_id, QuotationStatus.SENT, actor_id)

    def accept(self, quotation_id: str, actor_id: Optional[str] = None) -> Quotation:
        return self.update_status(quotation_id, QuotationStatus.ACCEPTED, actor_id)

    def delete(self, quotation_id: str, actor_id: Optional[str] = None) -> None:
        quotation = self.get(quotation_id)
        with transaction(self.db):
            self.audit.log(
                AuditWrite(
                    action_type="QUOTATION_DELETED",
                    actor=actor_id,
                    target_type="quotation",
                    target_id=quotation.id,
                    old_value={"quote_number": quotation.quote_number, "status": quotation.status},
                )
            )
            repo.delete_quotation(self.db, quotation)
        logger.bind(quotation_id=quotation_id).info("quotation_deleted")

    # -----------------------------
    # Inventory pricing
    # -----------------------------

    def _candidates(
        self,
        origin: str,
        destination: str,
        weight: Decimal,
        shipment_type: str,
        on: Optional[date] = None,
    ) -> List[Tuple[RateCard, RateCardSnapshot]]:
        cards = rate_card_repo.find_by_route(self.db, origin, destination, on or self._today())
        by_id = {c.id: c for c in cards}
        snapshots = [rate_card_repo.to_snapshot(c, self.config.default_currency) for c in cards]
        matched = filter_candidates(snapshots, shipment_type=shipment_type, weight=weight)
        return [(by_id[s.id], s) for s in matched]

    def find_matching_rate_cards(
        self,
        origin: str,
        destination: str,
        weight: Any,
        shipment_type: str,
    ) -> List[RateCard]:
        if not origin or not destination or not shipment_type:
            raise ValidationError(
                "origin, destination, chargeable_weight and shipment_type are required",
                code="SEARCH_INCOMPLETE",
            )
        w = to_decimal(weight, "chargeable_weight")
        if w is None or w <= 0:
            raise ValidationError("Valid chargeable weight is required", code="WEIGHT_INVALID")

        pairs = self._candidates(origin, destination, w, shipment_type)
        logger.bind(
            origin=origin,
            destination=destination,
            chargeable_weight=str(w),
            shipment_type=shipment_type,
            match_count=len(pairs),
        ).info("rate_cards_matched")
        return [card for card, _ in pairs]

    def auto_generate_quotation(self, request: Mapping[str, Any], actor_id: Optional[str] = None) -> AutoQuotationResult:
        """
        Price a shipment from the best matching rate card and store it as a DRAFT quote.

        Everything is computed before the first write; a failure at any step
        leaves no quotation behind.
        """
        if not request.get("origin_location"):
            raise ValidationError("Origin location is required", code="ORIGIN_REQUIRED")
        if not request.get("destination_location"):
            raise ValidationError("Destination location is required", code="DESTINATION_REQUIRED")
        if not request.get("shipment_type"):
            raise ValidationError("Shipment type is required", code="SHIPMENT_TYPE_REQUIRED")

        try:
            weight = chargeable_weight(
                request.get("cargo_weight_kg"),
                request.get("cargo_volume_cbm"),
                divisor=self.config.volumetric_divisor,
            )
        except ValidationError:
            pricing_outcomes.labels(result="invalid").inc()
            raise

        valid_days = request.get("valid_days")
        if valid_days is None:
            valid_days = self.config.default_validity_days
        if int(valid_days) < 1:
            raise ValidationError("valid_days must be at least 1", code="VALID_DAYS_INVALID", meta={"valid_days": valid_days})

        log = logger.bind(
            origin=request.get("origin_location"),
            destination=request.get("destination_location"),
            shipment_type=request.get("shipment_type"),
            chargeable_weight=str(weight),
        )

        pairs = self._candidates(
            request["origin_location"],
            request["destination_location"],
            weight,
            request["shipment_type"],
        )
        try:
            selected = select_rate_card([s for _, s in pairs], self.config)
            breakdown = calculate_cost(selected, weight, self.config)
        except NotFoundError:
            pricing_outcomes.labels(result="no_rate_card").inc()
            log.info("auto_quote_no_rate_card")
            raise
        except InternalInconsistencyError as e:
            pricing_outcomes.labels(result="inconsistent").inc()
            log.error("auto_quote_inconsistent", **e.meta)
            raise

        card = next(c for c, s in pairs if s.id == selected.id)
        log.bind(rate_card_number=selected.rate_card_number, margin_percentage=str(breakdown.margin_percentage)).info(
            "rate_card_selected"
        )

        today = self._today()
        record = {k: request.get(k) for k in QUOTATION_FIELDS if k in request}
        record.update(
            total_cost=breakdown.total_cost,
            currency=breakdown.currency,
            cost_breakdown=breakdown.to_dict(),
            valid_from=today,
            valid_until=today + timedelta(days=int(valid_days)),
        )
        validate_quotation_data(record)

        values = _coerce(record)
        values.update(
            quote_source_mode="INVENTORY",
            rate_card_id=selected.id,
            chargeable_weight=weight,
            shipper_cost=round_money(breakdown.shipper_cost),
            margin_percentage=breakdown.margin_percentage,
            margin_amount=round_money(breakdown.margin_amount),
        )
        quotation = self._insert(values, actor_id)

        pricing_outcomes.labels(result="priced").inc()
        log.bind(quotation_id=quotation.id, total_cost=str(breakdown.total_cost)).info("auto_quote_generated")
        return AutoQuotationResult(quotation=quotation, rate_card=card, cost_breakdown=breakdown)
