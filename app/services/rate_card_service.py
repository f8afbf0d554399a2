# app/services/rate_card_service.py
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.logging_config import logger
from app.db import transaction
from app.domain.errors import NotFoundError, ValidationError
from app.domain.pricing import (
    CostBreakdown,
    PricingConfig,
    WeightSlab,
    calculate_cost,
    chargeable_weight,
    parse_surcharges,
    validate_weight_slabs,
)
from app.domain.validation import to_date, to_decimal, validate_validity_window
from app.models.rate_card import RateCard
from app.repositories import rate_cards as repo
from app.repositories.rate_cards import RateCardFilters
from app.services.audit import AuditLogger, AuditWrite
from app.services.shipper_service import require_active_shipper

RATE_TYPES = {"AIR_FREIGHT", "SEA_FREIGHT", "ODC", "BREAK_BULK"}
RATE_CARD_STATUSES = {"ACTIVE", "INACTIVE", "EXPIRED", "PENDING"}

RATE_CARD_FIELDS = (
    "shipper_id",
    "rate_type",
    "shipment_type",
    "origin_airport",
    "origin_city",
    "origin_country",
    "destination_airport",
    "destination_city",
    "destination_country",
    "commodity_type",
    "min_weight_kg",
    "max_weight_kg",
    "weight_slabs",
    "surcharges",
    "origin_handling_charges",
    "destination_handling_charges",
    "valid_from",
    "valid_until",
    "status",
    "transit_time_days",
    "free_storage_days",
    "margin_percentage",
    "margin_flat_fee",
    "notes",
)
DECIMAL_FIELDS = (
    "min_weight_kg",
    "max_weight_kg",
    "origin_handling_charges",
    "destination_handling_charges",
    "margin_percentage",
    "margin_flat_fee",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _slabs_from_raw(raw: Any, default_currency: str) -> List[WeightSlab]:
    if not raw:
        raise ValidationError("At least one weight slab is required", code="SLABS_REQUIRED")

    slabs: List[WeightSlab] = []
    for i, item in enumerate(raw):
        if not isinstance(item, Mapping) or item.get("min_kg") is None or item.get("rate_per_kg") is None:
            raise ValidationError(
                "Weight slab must have min_kg, max_kg and rate_per_kg",
                code="SLAB_INCOMPLETE",
                meta={"slab_index": i},
            )
        slabs.append(
            WeightSlab(
                min_kg=to_decimal(item["min_kg"], "min_kg"),
                max_kg=to_decimal(item.get("max_kg"), "max_kg"),
                rate_per_kg=to_decimal(item["rate_per_kg"], "rate_per_kg"),
                currency=str(item.get("currency") or default_currency),
            )
        )
    return slabs


def normalize_rate_card(record: Dict[str, Any], default_currency: str = "USD") -> Dict[str, Any]:
    """
    Validate a (merged) rate card record and return column values.
    Raises ValidationError on the first broken rule.
    """
    if not record.get("shipper_id"):
        raise ValidationError("Shipper ID is required", code="SHIPPER_REQUIRED")
    if not record.get("rate_type"):
        raise ValidationError("Rate type is required", code="RATE_TYPE_REQUIRED")
    if record["rate_type"] not in RATE_TYPES:
        raise ValidationError(
            f"Unknown rate type: {record['rate_type']}",
            code="RATE_TYPE_INVALID",
            meta={"rate_type": record["rate_type"], "allowed": sorted(RATE_TYPES)},
        )
    if not record.get("shipment_type"):
        raise ValidationError("Shipment type is required", code="SHIPMENT_TYPE_REQUIRED")
    if not record.get("origin_airport") or not record.get("destination_airport"):
        raise ValidationError("Origin and destination are required", code="ROUTE_REQUIRED")

    validate_validity_window(record.get("valid_from"), record.get("valid_until"))

    slabs = _slabs_from_raw(record.get("weight_slabs"), default_currency)
    validate_weight_slabs(slabs)

    values = dict(record)
    for key in DECIMAL_FIELDS:
        if key in values:
            values[key] = to_decimal(values[key], key)
            if values[key] is not None and values[key] < 0:
                raise ValidationError(f"{key} must be non-negative", code="VALUE_NEGATIVE", meta={"field": key})

    lo, hi = values.get("min_weight_kg"), values.get("max_weight_kg")
    if lo is not None and hi is not None and lo > hi:
        raise ValidationError(
            "min_weight_kg must not exceed max_weight_kg",
            code="WEIGHT_BOUNDS",
            meta={"min_weight_kg": str(lo), "max_weight_kg": str(hi)},
        )

    status = str(values.get("status") or "ACTIVE").upper()
    if status not in RATE_CARD_STATUSES:
        raise ValidationError(f"Unknown rate card status: {status}", code="UNKNOWN_STATUS", meta={"status": status})

    try:
        surcharges = parse_surcharges(values.get("surcharges"))
    except ValidationError as e:
        raise ValidationError("Surcharges must be finite numbers", code="SURCHARGE_INVALID", meta=e.meta)
    if any(v < 0 for v in surcharges.values()):
        raise ValidationError("Surcharges must be non-negative", code="SURCHARGE_INVALID")

    values.update(
        origin_airport=str(values["origin_airport"]).strip().upper(),
        destination_airport=str(values["destination_airport"]).strip().upper(),
        valid_from=to_date(values["valid_from"], "valid_from"),
        valid_until=to_date(values["valid_until"], "valid_until"),
        weight_slabs=[s.to_dict() for s in slabs],
        surcharges={k: format(v, "f") for k, v in surcharges.items()},
        status=status,
    )
    for key in ("origin_handling_charges", "destination_handling_charges"):
        if values.get(key) is None:
            values[key] = to_decimal(0, key)
    return values


class RateCardService:
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

    def get(self, rate_card_id: str) -> RateCard:
        card = repo.get_rate_card_by_id(self.db, rate_card_id)
        if not card:
            raise NotFoundError("Rate card not found", meta={"rate_card_id": rate_card_id})
        return card

    def list(self, filters: Optional[RateCardFilters] = None) -> List[RateCard]:
        return repo.list_rate_cards(self.db, filters or RateCardFilters())

    def active(self) -> List[RateCard]:
        return repo.active_rate_cards(self.db, self._today())

    def search(
        self,
        origin: Optional[str],
        destination: Optional[str],
        on: Any = None,
        weight: Any = None,
    ) -> List[RateCard]:
        if not origin or not destination:
            raise ValidationError("Origin and destination are required for search", code="ROUTE_REQUIRED")

        cards = repo.find_by_route(self.db, origin, destination, to_date(on, "date") or self._today())

        w = to_decimal(weight, "weight")
        if w is not None and w > 0:
            cards = [
                c for c in cards
                if repo.to_snapshot(c, self.config.default_currency).within_card_bounds(w)
            ]
        return cards

    def expiring_soon(self, days: int = 30) -> List[RateCard]:
        if days < 1 or days > 365:
            raise ValidationError("Days must be between 1 and 365", code="DAYS_INVALID", meta={"days": days})
        return repo.expiring_rate_cards(self.db, self._today(), days)

    def calculate(self, rate_card_id: str, weight_kg: Any, volume_cbm: Any = None) -> CostBreakdown:
        """Cost preview for one card; nothing is written."""
        card = self.get(rate_card_id)
        snapshot = repo.to_snapshot(card, self.config.default_currency)
        weight = chargeable_weight(weight_kg, volume_cbm, divisor=self.config.volumetric_divisor)

        # here a missing slab is bad user input, not a data bug
        if not snapshot.within_card_bounds(weight) or snapshot.find_slab(weight) is None:
            raise ValidationError(
                "Rate card does not cover this weight",
                code="WEIGHT_NOT_COVERED",
                meta={"rate_card_number": card.rate_card_number, "chargeable_weight": format(weight, "f")},
            )
        return calculate_cost(snapshot, weight, self.config)

    def create(self, data: Mapping[str, Any], actor_id: Optional[str] = None) -> RateCard:
        record = {k: data.get(k) for k in RATE_CARD_FIELDS if k in data}
        values = normalize_rate_card(record, self.config.default_currency)

        require_active_shipper(self.db, values["shipper_id"])

        with transaction(self.db):
            values.update(
                rate_card_number=repo.generate_rate_card_number(self.db, self._today()),
                created_by=actor_id,
            )
            card = repo.create_rate_card(self.db, values)
            self.audit.log(
                AuditWrite(
                    action_type="RATE_CARD_CREATED",
                    actor=actor_id,
                    target_type="rate_card",
                    target_id=card.id,
                    new_value={"rate_card_number": card.rate_card_number, "status": card.status},
                )
            )

        logger.bind(
            rate_card_id=card.id,
            rate_card_number=card.rate_card_number,
            route=f"{card.origin_airport}-{card.destination_airport}",
        ).info("rate_card_created")
        return card

    def update(self, rate_card_id: str, fields: Mapping[str, Any], actor_id: Optional[str] = None) -> RateCard:
        card = self.get(rate_card_id)

        changes = {k: fields[k] for k in RATE_CARD_FIELDS if k in fields}
        merged = {k: getattr(card, k) for k in RATE_CARD_FIELDS}
        merged.update(changes)
        values = normalize_rate_card(merged, self.config.default_currency)

        if "shipper_id" in changes:
            require_active_shipper(self.db, values["shipper_id"])

        # write back only what was asked for, in normalized form
        updates = {k: values[k] for k in changes}

        with transaction(self.db):
            card = repo.update_rate_card(self.db, card, updates)
            self.audit.log(
                AuditWrite(
                    action_type="RATE_CARD_UPDATED",
                    actor=actor_id,
                    target_type="rate_card",
                    target_id=card.id,
                    new_value={"fields": sorted(updates)},
                )
            )

        logger.bind(rate_card_id=card.id, fields=sorted(updates)).info("rate_card_updated")
        return card

    def _set_status(self, rate_card_id: str, status: str, action: str, actor_id: Optional[str]) -> RateCard:
        card = self.get(rate_card_id)
        old = card.status

        with transaction(self.db):
            card = repo.update_rate_card(self.db, card, {"status": status})
            self.audit.log(
                AuditWrite(
                    action_type=action,
                    actor=actor_id,
                    target_type="rate_card",
                    target_id=card.id,
                    old_value={"status": old},
                    new_value={"status": status},
                )
            )

        logger.bind(rate_card_id=card.id, **{"from": old, "to": status}).info("rate_card_status_changed")
        return card

    def delete(self, rate_card_id: str, actor_id: Optional[str] = None) -> None:
        # soft delete, the row stays for quotations that reference it
        self._set_status(rate_card_id, "INACTIVE", "RATE_CARD_DELETED", actor_id)

    def activate(self, rate_card_id: str, actor_id: Optional[str] = None) -> RateCard:
        return self._set_status(rate_card_id, "ACTIVE", "RATE_CARD_ACTIVATED", actor_id)

    def deactivate(self, rate_card_id: str, actor_id: Optional[str] = None) -> RateCard:
        return self._set_status(rate_card_id, "INACTIVE", "RATE_CARD_DEACTIVATED", actor_id)
