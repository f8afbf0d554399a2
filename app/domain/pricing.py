"""
Rate resolution + cost calculation for inventory (rate card) quotations.

Everything in here is pure: no DB, no clock, no settings lookups. Callers pass
a PricingConfig and RateCardSnapshot objects; identical input gives an
identical CostBreakdown.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import InternalInconsistencyError, NotFoundError, ValidationError

D = Decimal
CENT = D("0.01")
ZERO = D("0")

PERCENT_SURCHARGES = ("FSC", "SSC")  # fraction of freight cost
FLAT_SURCHARGES = ("DG",)  # absolute amount


def _d(value: Any, default: Optional[D] = None) -> Optional[D]:
    if value is None or value == "":
        return default
    try:
        d = D(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Not a valid number: {value}", code="NUMBER_INVALID", meta={"value": str(value)})
    if not d.is_finite():
        raise ValidationError(f"Number must be finite: {value}", code="NUMBER_INVALID", meta={"value": str(value)})
    return d


def _s(value: D) -> str:
    return format(value, "f")


def round_money(amount: D) -> D:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


# -----------------------------
# Config
# -----------------------------


@dataclass(frozen=True)
class PricingConfig:
    default_margin_percentage: D = D("15")
    volumetric_divisor: D = D("167")
    default_currency: str = "USD"
    default_validity_days: int = 7

    @classmethod
    def from_settings(cls, s: Any) -> "PricingConfig":
        return cls(
            default_margin_percentage=D(str(s.default_margin_percentage)),
            volumetric_divisor=D(str(s.volumetric_divisor)),
            default_currency=str(s.default_currency),
            default_validity_days=int(s.default_quote_validity_days),
        )


# -----------------------------
# Rate card snapshot
# -----------------------------


@dataclass(frozen=True)
class WeightSlab:
    min_kg: D
    max_kg: Optional[D]  # None = open-ended ("and above")
    rate_per_kg: D
    currency: str = "USD"

    def covers(self, weight: D) -> bool:
        # half-open [min, max): a weight on a boundary belongs to the next slab
        if weight < self.min_kg:
            return False
        return self.max_kg is None or weight < self.max_kg

    @staticmethod
    def from_dict(d: Mapping[str, Any], default_currency: str = "USD") -> "WeightSlab":
        return WeightSlab(
            min_kg=_d(d.get("min_kg"), ZERO),
            max_kg=_d(d.get("max_kg")),
            rate_per_kg=_d(d.get("rate_per_kg"), ZERO),
            currency=str(d.get("currency") or default_currency),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_kg": _s(self.min_kg),
            "max_kg": None if self.max_kg is None else _s(self.max_kg),
            "rate_per_kg": _s(self.rate_per_kg),
            "currency": self.currency,
        }


@dataclass(frozen=True)
class RateCardSnapshot:
    """Read-only view of a rate card, decoupled from the ORM row."""

    id: str
    rate_card_number: str
    shipment_type: str
    origin: str
    destination: str
    weight_slabs: Tuple[WeightSlab, ...]
    surcharges: Mapping[str, D] = field(default_factory=dict)
    min_weight_kg: Optional[D] = None
    max_weight_kg: Optional[D] = None
    origin_handling_charges: D = ZERO
    destination_handling_charges: D = ZERO
    margin_percentage: Optional[D] = None  # None = config default
    shipper_name: Optional[str] = None

    def effective_margin(self, config: PricingConfig) -> D:
        if self.margin_percentage is None:
            return config.default_margin_percentage
        return self.margin_percentage

    def within_card_bounds(self, weight: D) -> bool:
        if self.min_weight_kg is not None and weight < self.min_weight_kg:
            return False
        if self.max_weight_kg is not None and weight > self.max_weight_kg:
            return False
        return True

    def find_slab(self, weight: D) -> Optional[WeightSlab]:
        for slab in self.weight_slabs:
            if slab.covers(weight):
                return slab
        return None


def parse_weight_slabs(raw: Iterable[Mapping[str, Any]], default_currency: str = "USD") -> Tuple[WeightSlab, ...]:
    return tuple(WeightSlab.from_dict(s, default_currency) for s in (raw or []))


def parse_surcharges(raw: Optional[Mapping[str, Any]]) -> Dict[str, D]:
    out: Dict[str, D] = {}
    for key, value in (raw or {}).items():
        amount = _d(value)
        if amount is not None:
            out[str(key).upper()] = amount
    return out


def validate_weight_slabs(slabs: Sequence[WeightSlab]) -> None:
    """
    Slabs must be non-empty, non-negative, ordered by min_kg and
    non-overlapping; only the last slab may be open-ended.
    """
    if not slabs:
        raise ValidationError("At least one weight slab is required", code="SLABS_REQUIRED")

    for i, slab in enumerate(slabs):
        meta = {"slab_index": i, "slab": slab.to_dict()}
        if slab.min_kg < 0 or slab.rate_per_kg < 0 or (slab.max_kg is not None and slab.max_kg < 0):
            raise ValidationError("Weight slab values must be non-negative", code="SLAB_NEGATIVE", meta=meta)
        if slab.max_kg is not None and slab.max_kg <= slab.min_kg:
            raise ValidationError("Weight slab max_kg must be greater than min_kg", code="SLAB_RANGE", meta=meta)
        if slab.max_kg is None and i != len(slabs) - 1:
            raise ValidationError("Only the last weight slab may be open-ended", code="SLAB_OPEN_ENDED", meta=meta)
        if i > 0:
            prev = slabs[i - 1]
            if prev.max_kg is None or slab.min_kg < prev.max_kg:
                raise ValidationError("Weight slabs must be ordered and non-overlapping", code="SLAB_OVERLAP", meta=meta)


# -----------------------------
# Step 1: chargeable weight
# -----------------------------


def chargeable_weight(
    weight_kg: Any,
    volume_cbm: Any = None,
    *,
    divisor: D = D("167"),
) -> D:
    weight = _d(weight_kg)
    if weight is None or weight <= 0:
        raise ValidationError("Valid cargo weight is required", code="WEIGHT_INVALID", meta={"cargo_weight_kg": str(weight_kg)})

    volume = _d(volume_cbm)
    if volume is None:
        return weight
    if volume < 0:
        raise ValidationError("Cargo volume must be non-negative", code="VOLUME_INVALID", meta={"cargo_volume_cbm": str(volume_cbm)})

    return max(weight, volume * divisor)


# -----------------------------
# Step 2 + 3: candidates and selection
# -----------------------------


def filter_candidates(
    cards: Iterable[RateCardSnapshot],
    *,
    shipment_type: str,
    weight: D,
) -> List[RateCardSnapshot]:
    out: List[RateCardSnapshot] = []
    for card in cards:
        if card.shipment_type != shipment_type:
            continue
        if not card.within_card_bounds(weight):
            continue
        if card.find_slab(weight) is None:
            continue
        out.append(card)
    return out


def select_rate_card(cards: Sequence[RateCardSnapshot], config: PricingConfig) -> RateCardSnapshot:
    """
    Highest effective margin wins. Ties keep the first card in input order,
    so callers must hand in a deterministically ordered sequence.
    """
    if not cards:
        raise NotFoundError(
            "No rate card for route/weight combination. Please use an on-demand quote request.",
            code="NO_RATE_CARD",
        )

    best = cards[0]
    best_margin = best.effective_margin(config)
    for card in cards[1:]:
        margin = card.effective_margin(config)
        if margin > best_margin:
            best, best_margin = card, margin
    return best


# -----------------------------
# Step 4: cost computation
# -----------------------------


@dataclass(frozen=True)
class CostBreakdown:
    chargeable_weight: D
    applicable_rate: D
    freight_cost: D
    surcharges: Mapping[str, D]
    surcharge_total: D
    handling_origin: D
    handling_destination: D
    handling_total: D
    shipper_cost: D
    margin_percentage: D
    margin_amount: D
    total_cost: D
    currency: str
    rate_card_id: str
    rate_card_number: str
    shipper_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe form, persisted verbatim on the quotation."""
        return {
            "chargeable_weight": _s(self.chargeable_weight),
            "applicable_rate": _s(self.applicable_rate),
            "freight_cost": _s(self.freight_cost),
            "surcharges": {
                **{k: _s(v) for k, v in self.surcharges.items()},
                "total": _s(self.surcharge_total),
            },
            "handling_charges": {
                "origin": _s(self.handling_origin),
                "destination": _s(self.handling_destination),
                "total": _s(self.handling_total),
            },
            "shipper_cost": _s(self.shipper_cost),
            "margin": {
                "percentage": _s(self.margin_percentage),
                "amount": _s(self.margin_amount),
            },
            "total_cost": _s(self.total_cost),
            "currency": self.currency,
            "rate_card": {
                "id": self.rate_card_id,
                "number": self.rate_card_number,
                "shipper": self.shipper_name,
            },
        }


def calculate_cost(card: RateCardSnapshot, weight: D, config: PricingConfig) -> CostBreakdown:
    slab = card.find_slab(weight)
    if slab is None:
        raise InternalInconsistencyError(
            "No weight slab covers the chargeable weight of a selected rate card",
            code="SLAB_MISMATCH",
            meta={
                "rate_card_id": card.id,
                "rate_card_number": card.rate_card_number,
                "chargeable_weight": _s(weight),
                "weight_slabs": [s.to_dict() for s in card.weight_slabs],
            },
        )

    freight = weight * slab.rate_per_kg

    surcharges: Dict[str, D] = {}
    for key in PERCENT_SURCHARGES:
        fraction = card.surcharges.get(key)
        surcharges[key] = freight * fraction if fraction else ZERO
    for key in FLAT_SURCHARGES:
        surcharges[key] = card.surcharges.get(key) or ZERO
    surcharge_total = sum(surcharges.values(), ZERO)

    handling_origin = card.origin_handling_charges or ZERO
    handling_destination = card.destination_handling_charges or ZERO
    handling_total = handling_origin + handling_destination

    shipper_cost = freight + surcharge_total + handling_total

    margin_pct = card.effective_margin(config)
    margin_amount = shipper_cost * margin_pct / D("100")

    return CostBreakdown(
        chargeable_weight=weight,
        applicable_rate=slab.rate_per_kg,
        freight_cost=freight,
        surcharges=surcharges,
        surcharge_total=surcharge_total,
        handling_origin=handling_origin,
        handling_destination=handling_destination,
        handling_total=handling_total,
        shipper_cost=shipper_cost,
        margin_percentage=margin_pct,
        margin_amount=margin_amount,
        total_cost=round_money(shipper_cost + margin_amount),
        currency=slab.currency,
        rate_card_id=card.id,
        rate_card_number=card.rate_card_number,
        shipper_name=card.shipper_name,
    )
