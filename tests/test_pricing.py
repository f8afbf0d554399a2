from decimal import Decimal

import pytest

from app.domain.errors import InternalInconsistencyError, NotFoundError, ValidationError
from app.domain.pricing import (
    PricingConfig,
    RateCardSnapshot,
    WeightSlab,
    calculate_cost,
    chargeable_weight,
    filter_candidates,
    select_rate_card,
    validate_weight_slabs,
)

D = Decimal


def _slab(lo, hi, rate, currency="USD"):
    return WeightSlab(min_kg=D(lo), max_kg=None if hi is None else D(hi), rate_per_kg=D(rate), currency=currency)


def _card(**kw):
    base = dict(
        id="rc-1",
        rate_card_number="RC-20260310-001",
        shipment_type="AIR_EXPORT",
        origin="BOM",
        destination="DXB",
        weight_slabs=(_slab("0", "100", "5.0"), _slab("100", "500", "4.2"), _slab("500", None, "3.8")),
        surcharges={"FSC": D("0.12")},
        origin_handling_charges=D("50"),
        margin_percentage=D("15"),
        shipper_name="Emirates SkyCargo",
    )
    base.update(kw)
    return RateCardSnapshot(**base)


# -----------------------------
# chargeable weight
# -----------------------------


def test_chargeable_weight_without_volume_is_actual_weight():
    assert chargeable_weight("150") == D("150")


def test_chargeable_weight_uses_volumetric_when_larger():
    # 1.5 cbm * 167 = 250.5 kg > 100 kg
    assert chargeable_weight("100", "1.5") == D("250.5")


def test_chargeable_weight_keeps_actual_when_larger():
    assert chargeable_weight("300", "0.5") == D("300")


def test_chargeable_weight_custom_divisor():
    assert chargeable_weight("10", "1", divisor=D("200")) == D("200")


@pytest.mark.parametrize("weight", [None, "", "0", "-5"])
def test_chargeable_weight_rejects_missing_or_non_positive(weight):
    with pytest.raises(ValidationError) as exc:
        chargeable_weight(weight)
    assert exc.value.code == "WEIGHT_INVALID"


@pytest.mark.parametrize("weight", ["NaN", "Infinity", "-Infinity"])
def test_chargeable_weight_rejects_non_finite(weight):
    with pytest.raises(ValidationError) as exc:
        chargeable_weight(weight)
    assert exc.value.code == "NUMBER_INVALID"


def test_chargeable_weight_rejects_negative_volume():
    with pytest.raises(ValidationError) as exc:
        chargeable_weight("10", "-1")
    assert exc.value.code == "VOLUME_INVALID"


# -----------------------------
# slabs
# -----------------------------


def test_slab_boundary_belongs_to_next_slab():
    card = _card()
    assert card.find_slab(D("99.99")).rate_per_kg == D("5.0")
    assert card.find_slab(D("100")).rate_per_kg == D("4.2")
    assert card.find_slab(D("500")).rate_per_kg == D("3.8")


def test_open_ended_slab_covers_any_larger_weight():
    assert _card().find_slab(D("100000")).rate_per_kg == D("3.8")


def test_validate_slabs_rejects_overlap():
    with pytest.raises(ValidationError) as exc:
        validate_weight_slabs([_slab("0", "100", "5"), _slab("90", "200", "4")])
    assert exc.value.code == "SLAB_OVERLAP"


def test_validate_slabs_only_last_may_be_open():
    with pytest.raises(ValidationError) as exc:
        validate_weight_slabs([_slab("0", None, "5"), _slab("100", "200", "4")])
    assert exc.value.code == "SLAB_OPEN_ENDED"


def test_validate_slabs_rejects_empty_range():
    with pytest.raises(ValidationError) as exc:
        validate_weight_slabs([_slab("100", "100", "5")])
    assert exc.value.code == "SLAB_RANGE"


def test_validate_slabs_rejects_negative_rate():
    with pytest.raises(ValidationError) as exc:
        validate_weight_slabs([_slab("0", "100", "-1")])
    assert exc.value.code == "SLAB_NEGATIVE"


def test_validate_slabs_allows_gaps():
    validate_weight_slabs([_slab("0", "100", "5"), _slab("200", None, "4")])


# -----------------------------
# candidates + selection
# -----------------------------


def test_filter_drops_other_shipment_types():
    cards = [_card(shipment_type="AIR_IMPORT"), _card(id="rc-2")]
    assert [c.id for c in filter_candidates(cards, shipment_type="AIR_EXPORT", weight=D("150"))] == ["rc-2"]


def test_filter_applies_inclusive_card_bounds():
    card = _card(min_weight_kg=D("150"), max_weight_kg=D("300"))
    assert filter_candidates([card], shipment_type="AIR_EXPORT", weight=D("150")) == [card]
    assert filter_candidates([card], shipment_type="AIR_EXPORT", weight=D("300")) == [card]
    assert filter_candidates([card], shipment_type="AIR_EXPORT", weight=D("149")) == []
    assert filter_candidates([card], shipment_type="AIR_EXPORT", weight=D("301")) == []


def test_filter_drops_cards_without_covering_slab():
    card = _card(weight_slabs=(_slab("0", "100", "5"),))
    assert filter_candidates([card], shipment_type="AIR_EXPORT", weight=D("100")) == []


def test_select_highest_margin():
    cfg = PricingConfig()
    low = _card(id="low", margin_percentage=D("10"))
    high = _card(id="high", margin_percentage=D("20"))
    assert select_rate_card([low, high], cfg).id == "high"


def test_select_tie_keeps_first_in_order():
    cfg = PricingConfig()
    a = _card(id="a", rate_card_number="RC-20260310-001")
    b = _card(id="b", rate_card_number="RC-20260310-002")
    assert select_rate_card([a, b], cfg).id == "a"
    assert select_rate_card([b, a], cfg).id == "b"


def test_select_missing_margin_counts_as_default():
    cfg = PricingConfig(default_margin_percentage=D("15"))
    unset = _card(id="unset", margin_percentage=None)
    ten = _card(id="ten", margin_percentage=D("10"))
    assert select_rate_card([ten, unset], cfg).id == "unset"


def test_select_without_candidates_is_not_found():
    with pytest.raises(NotFoundError) as exc:
        select_rate_card([], PricingConfig())
    assert exc.value.code == "NO_RATE_CARD"


# -----------------------------
# cost computation
# -----------------------------


def test_reference_scenario_150kg():
    b = calculate_cost(_card(), D("150"), PricingConfig())

    assert b.applicable_rate == D("4.2")
    assert b.freight_cost == D("630.0")
    assert b.surcharges["FSC"] == D("75.600")
    assert b.surcharges["SSC"] == D("0")
    assert b.surcharges["DG"] == D("0")
    assert b.surcharge_total == D("75.600")
    assert b.handling_total == D("50")
    assert b.shipper_cost == D("755.600")
    assert b.margin_amount == D("113.34")
    assert b.total_cost == D("868.94")
    assert b.currency == "USD"
    assert b.rate_card_number == "RC-20260310-001"


def test_flat_dg_and_ssc_surcharges():
    card = _card(surcharges={"FSC": D("0.10"), "SSC": D("0.05"), "DG": D("120")}, origin_handling_charges=D("0"))
    b = calculate_cost(card, D("200"), PricingConfig())
    # freight 840, FSC 84, SSC 42, DG 120
    assert b.surcharge_total == D("246")
    assert b.shipper_cost == D("1086")
    assert b.total_cost == D("1248.90")


def test_destination_handling_is_added():
    b = calculate_cost(_card(destination_handling_charges=D("25")), D("150"), PricingConfig())
    assert b.handling_total == D("75")


def test_missing_margin_uses_config_default():
    b = calculate_cost(_card(margin_percentage=None), D("150"), PricingConfig(default_margin_percentage=D("10")))
    assert b.margin_percentage == D("10")
    assert b.total_cost == D("831.16")


def test_single_rounding_step_half_up():
    # 1 kg * 0.005 = 0.005, zero margin -> rounds half up to 0.01
    card = _card(
        weight_slabs=(_slab("0", None, "0.005"),),
        surcharges={},
        origin_handling_charges=D("0"),
        margin_percentage=D("0"),
    )
    assert calculate_cost(card, D("1"), PricingConfig()).total_cost == D("0.01")


def test_same_input_same_breakdown():
    cfg = PricingConfig()
    assert calculate_cost(_card(), D("150"), cfg).to_dict() == calculate_cost(_card(), D("150"), cfg).to_dict()


def test_breakdown_dict_shape():
    out = calculate_cost(_card(), D("150"), PricingConfig()).to_dict()
    assert out["total_cost"] == "868.94"
    assert out["surcharges"]["total"] == "75.600"
    assert out["handling_charges"] == {"origin": "50", "destination": "0", "total": "50"}
    assert out["margin"]["percentage"] == "15"
    assert out["rate_card"] == {"id": "rc-1", "number": "RC-20260310-001", "shipper": "Emirates SkyCargo"}


def test_no_covering_slab_is_internal_inconsistency():
    card = _card(weight_slabs=(_slab("0", "100", "5"),))
    with pytest.raises(InternalInconsistencyError) as exc:
        calculate_cost(card, D("150"), PricingConfig())
    assert exc.value.status_code == 500
    assert exc.value.meta["rate_card_number"] == "RC-20260310-001"
