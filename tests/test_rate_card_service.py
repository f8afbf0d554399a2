from datetime import timedelta
from decimal import Decimal

import pytest

from app.domain.errors import NotFoundError, ValidationError
from app.models import AuditEvent, RateCard
from app.repositories import rate_cards as repo
from app.repositories.rate_cards import RateCardFilters


def test_create_assigns_number_and_normalizes(rate_card_service, rate_card_payload):
    card = rate_card_service.create(
        rate_card_payload(origin_airport=" bom ", destination_airport="dxb", surcharges={"fsc": 0.12}),
        actor_id="ops",
    )

    assert card.rate_card_number == "RC-20260310-001"
    assert card.status == "ACTIVE"
    assert card.origin_airport == "BOM"
    assert card.destination_airport == "DXB"
    assert card.surcharges == {"FSC": "0.12"}
    assert card.weight_slabs[0] == {"min_kg": "0", "max_kg": "100", "rate_per_kg": "5.00", "currency": "USD"}
    assert card.destination_handling_charges == Decimal("0")
    assert card.shipper_name == "Emirates SkyCargo"


def test_create_is_audited(db, make_rate_card):
    card = make_rate_card()
    event = db.query(AuditEvent).filter(AuditEvent.action_type == "RATE_CARD_CREATED").one()
    assert event.target_id == card.id


@pytest.mark.parametrize(
    "overrides,code",
    [
        ({"weight_slabs": []}, "SLABS_REQUIRED"),
        ({"weight_slabs": [{"max_kg": 100}]}, "SLAB_INCOMPLETE"),
        ({"weight_slabs": [{"min_kg": 100, "max_kg": 100, "rate_per_kg": 1}]}, "SLAB_RANGE"),
        (
            {
                "weight_slabs": [
                    {"min_kg": 0, "max_kg": None, "rate_per_kg": 1},
                    {"min_kg": 100, "max_kg": None, "rate_per_kg": 1},
                ]
            },
            "SLAB_OPEN_ENDED",
        ),
        (
            {
                "weight_slabs": [
                    {"min_kg": 0, "max_kg": 150, "rate_per_kg": 1},
                    {"min_kg": 100, "max_kg": None, "rate_per_kg": 1},
                ]
            },
            "SLAB_OVERLAP",
        ),
        ({"weight_slabs": [{"min_kg": 0, "max_kg": None, "rate_per_kg": -1}]}, "SLAB_NEGATIVE"),
        ({"rate_type": "TELEPORT"}, "RATE_TYPE_INVALID"),
        ({"rate_type": None}, "RATE_TYPE_REQUIRED"),
        ({"destination_airport": ""}, "ROUTE_REQUIRED"),
        ({"valid_until": None}, "VALIDITY_REQUIRED"),
        ({"min_weight_kg": "600", "max_weight_kg": "100"}, "WEIGHT_BOUNDS"),
        ({"margin_percentage": "-5"}, "VALUE_NEGATIVE"),
        ({"status": "ARCHIVED"}, "UNKNOWN_STATUS"),
        ({"surcharges": {"FSC": "-0.1"}}, "SURCHARGE_INVALID"),
    ],
)
def test_create_rejects_bad_cards(db, rate_card_service, rate_card_payload, overrides, code):
    with pytest.raises(ValidationError) as exc:
        rate_card_service.create(rate_card_payload(**overrides))

    assert exc.value.code == code
    assert db.query(RateCard).count() == 0


@pytest.mark.parametrize("bad", ["NaN", "Infinity", "-Infinity", float("nan"), float("inf")])
def test_create_rejects_non_finite_slab_rate(db, rate_card_service, rate_card_payload, bad):
    slabs = [
        {"min_kg": 0, "max_kg": 100, "rate_per_kg": "5.00"},
        {"min_kg": 100, "max_kg": None, "rate_per_kg": bad},
    ]
    with pytest.raises(ValidationError) as exc:
        rate_card_service.create(rate_card_payload(weight_slabs=slabs))

    assert exc.value.code == "NUMBER_INVALID"
    assert exc.value.meta["field"] == "rate_per_kg"
    assert db.query(RateCard).count() == 0


@pytest.mark.parametrize("field", ["min_kg", "max_kg"])
def test_create_rejects_non_finite_slab_bounds(db, rate_card_service, rate_card_payload, field):
    slab = {"min_kg": 0, "max_kg": 100, "rate_per_kg": "5.00", field: "Infinity"}
    with pytest.raises(ValidationError) as exc:
        rate_card_service.create(rate_card_payload(weight_slabs=[slab]))

    assert exc.value.code == "NUMBER_INVALID"
    assert db.query(RateCard).count() == 0


@pytest.mark.parametrize("bad", ["NaN", "Infinity", "-Infinity", float("nan"), float("inf")])
def test_create_rejects_non_finite_surcharge(db, rate_card_service, rate_card_payload, bad):
    with pytest.raises(ValidationError) as exc:
        rate_card_service.create(rate_card_payload(surcharges={"FSC": bad}))

    assert exc.value.code == "SURCHARGE_INVALID"
    assert db.query(RateCard).count() == 0


def test_update_rejects_non_finite_values(rate_card_service, make_rate_card):
    card = make_rate_card()

    with pytest.raises(ValidationError) as exc:
        rate_card_service.update(card.id, {"surcharges": {"FSC": "NaN"}})
    assert exc.value.code == "SURCHARGE_INVALID"

    with pytest.raises(ValidationError) as exc:
        rate_card_service.update(card.id, {"weight_slabs": [{"min_kg": 0, "max_kg": None, "rate_per_kg": "inf"}]})
    assert exc.value.code == "NUMBER_INVALID"

    assert rate_card_service.get(card.id).surcharges == {"FSC": "0.12"}


def test_create_requires_existing_shipper(db, rate_card_service, rate_card_payload):
    with pytest.raises(ValidationError) as exc:
        rate_card_service.create(rate_card_payload(shipper_id="no-such-shipper"))
    assert exc.value.code == "SHIPPER_NOT_FOUND"
    assert db.query(RateCard).count() == 0


def test_update_revalidates_and_keeps_other_fields(rate_card_service, make_rate_card):
    card = make_rate_card()

    updated = rate_card_service.update(card.id, {"margin_percentage": "18", "origin_airport": "del"})
    assert updated.margin_percentage == Decimal("18")
    assert updated.origin_airport == "DEL"
    assert updated.destination_airport == "DXB"

    with pytest.raises(ValidationError) as exc:
        rate_card_service.update(card.id, {"weight_slabs": []})
    assert exc.value.code == "SLABS_REQUIRED"


def test_update_missing_card(rate_card_service):
    with pytest.raises(NotFoundError):
        rate_card_service.update("nope", {"notes": "x"})


def test_soft_delete_hides_card_from_route_search(db, rate_card_service, make_rate_card, today):
    card = make_rate_card()
    rate_card_service.delete(card.id, actor_id="ops")

    assert db.query(RateCard).count() == 1
    assert rate_card_service.get(card.id).status == "INACTIVE"
    assert repo.find_by_route(db, "BOM", "DXB", today) == []


def test_activate_and_deactivate(rate_card_service, make_rate_card):
    card = make_rate_card(status="PENDING")
    assert rate_card_service.active() == []

    rate_card_service.activate(card.id)
    assert [c.id for c in rate_card_service.active()] == [card.id]

    rate_card_service.deactivate(card.id)
    assert rate_card_service.active() == []


def test_list_filters(rate_card_service, make_rate_card):
    make_rate_card()
    make_rate_card(destination_airport="DOH")

    assert len(rate_card_service.list()) == 2
    assert len(rate_card_service.list(RateCardFilters(destination="doh"))) == 1
    assert rate_card_service.list(RateCardFilters(status="inactive")) == []


def test_search_requires_route(rate_card_service):
    with pytest.raises(ValidationError) as exc:
        rate_card_service.search("BOM", None)
    assert exc.value.code == "ROUTE_REQUIRED"


def test_search_filters_on_card_weight_bounds(rate_card_service, make_rate_card, today):
    small = make_rate_card(max_weight_kg="100")
    large = make_rate_card(min_weight_kg="100")

    assert [c.id for c in rate_card_service.search("bom", "dxb", today, 50)] == [small.id]
    # card-level bounds are inclusive at both ends
    assert {c.id for c in rate_card_service.search("BOM", "DXB", today, 100)} == {small.id, large.id}
    assert len(rate_card_service.search("BOM", "DXB")) == 2


def test_search_respects_validity_date(rate_card_service, make_rate_card, today):
    make_rate_card()
    assert rate_card_service.search("BOM", "DXB", today + timedelta(days=31)) == []
    assert len(rate_card_service.search("BOM", "DXB", (today + timedelta(days=30)).isoformat())) == 1


def test_expiring_soon(rate_card_service, make_rate_card, today):
    soon = make_rate_card(valid_until=today + timedelta(days=5))
    make_rate_card(valid_until=today + timedelta(days=60))

    assert [c.id for c in rate_card_service.expiring_soon(30)] == [soon.id]
    with pytest.raises(ValidationError) as exc:
        rate_card_service.expiring_soon(0)
    assert exc.value.code == "DAYS_INVALID"


def test_calculate_preview(db, rate_card_service, make_rate_card):
    card = make_rate_card()

    breakdown = rate_card_service.calculate(card.id, "150")

    assert breakdown.total_cost == Decimal("868.94")
    assert breakdown.rate_card_number == card.rate_card_number
    assert db.query(AuditEvent).filter(AuditEvent.target_type == "quotation").count() == 0


def test_calculate_uses_volumetric_weight(rate_card_service, make_rate_card):
    card = make_rate_card()
    breakdown = rate_card_service.calculate(card.id, "100", "3")
    assert breakdown.chargeable_weight == Decimal("501")
    assert breakdown.applicable_rate == Decimal("3.80")


def test_calculate_outside_card_bounds(rate_card_service, make_rate_card):
    card = make_rate_card(min_weight_kg="200")
    with pytest.raises(ValidationError) as exc:
        rate_card_service.calculate(card.id, "150")
    assert exc.value.code == "WEIGHT_NOT_COVERED"


def test_calculate_rejects_bad_weight(rate_card_service, make_rate_card):
    card = make_rate_card()
    with pytest.raises(ValidationError) as exc:
        rate_card_service.calculate(card.id, "-3")
    assert exc.value.code == "WEIGHT_INVALID"


# -----------------------------
# shippers
# -----------------------------


def test_shipper_code_is_unique_and_upper_cased(shipper_service, shipper):
    assert shipper.shipper_code == "EK"
    with pytest.raises(ValidationError) as exc:
        shipper_service.create({"shipper_code": "ek", "shipper_name": "Duplicate"})
    assert exc.value.code == "SHIPPER_CODE_TAKEN"


@pytest.mark.parametrize(
    "data,code",
    [
        ({"shipper_name": "No code"}, "SHIPPER_CODE_REQUIRED"),
        ({"shipper_code": "QR"}, "SHIPPER_NAME_REQUIRED"),
        ({"shipper_code": "QR", "shipper_name": "Qatar", "shipper_type": "TRAIN"}, "SHIPPER_TYPE_INVALID"),
        ({"shipper_code": "QR", "shipper_name": "Qatar", "contact_email": "nope"}, "EMAIL_INVALID"),
    ],
)
def test_shipper_validation(shipper_service, data, code):
    with pytest.raises(ValidationError) as exc:
        shipper_service.create(data)
    assert exc.value.code == code


def test_list_shippers(shipper_service, shipper):
    shipper_service.create({"shipper_code": "MSK", "shipper_name": "Maersk", "shipper_type": "SHIPPING_LINE"})
    assert [s.shipper_code for s in shipper_service.list()] == ["EK", "MSK"]
    assert [s.shipper_code for s in shipper_service.list(shipper_type="AIRLINE")] == ["EK"]


def test_update_shipper(db, shipper_service, shipper):
    updated = shipper_service.update(shipper.id, {"shipper_name": "Emirates Cargo", "shipper_code": "eka"}, actor_id="ops")

    assert updated.shipper_name == "Emirates Cargo"
    assert updated.shipper_code == "EKA"
    assert updated.shipper_type == "AIRLINE"
    event = db.query(AuditEvent).filter(AuditEvent.action_type == "SHIPPER_UPDATED").one()
    assert event.target_id == shipper.id
    assert event.actor == "ops"


def test_update_shipper_revalidates(shipper_service, shipper):
    shipper_service.create({"shipper_code": "QR", "shipper_name": "Qatar Airways Cargo"})

    with pytest.raises(ValidationError) as exc:
        shipper_service.update(shipper.id, {"shipper_code": "qr"})
    assert exc.value.code == "SHIPPER_CODE_TAKEN"

    with pytest.raises(ValidationError) as exc:
        shipper_service.update(shipper.id, {"contact_email": "not-an-email"})
    assert exc.value.code == "EMAIL_INVALID"

    # same code on the same shipper is not a clash
    assert shipper_service.update(shipper.id, {"shipper_code": "ek"}).shipper_code == "EK"


def test_update_missing_shipper(shipper_service):
    with pytest.raises(NotFoundError):
        shipper_service.update("nope", {"shipper_name": "x"})


def test_delete_shipper_is_soft(db, shipper_service, shipper):
    shipper_service.delete(shipper.id, actor_id="ops")

    assert shipper_service.get(shipper.id).is_active is False
    assert [s.shipper_code for s in shipper_service.list(active_only=True)] == []
    event = db.query(AuditEvent).filter(AuditEvent.action_type == "SHIPPER_DELETED").one()
    assert event.old_value == {"is_active": True}
    assert event.new_value == {"is_active": False}


def test_deactivate_and_activate_shipper(db, shipper_service, shipper):
    assert shipper_service.deactivate(shipper.id).is_active is False
    assert shipper_service.activate(shipper.id).is_active is True

    actions = [e.action_type for e in db.query(AuditEvent).filter(AuditEvent.target_id == shipper.id)]
    assert "SHIPPER_DEACTIVATED" in actions
    assert "SHIPPER_ACTIVATED" in actions

    with pytest.raises(NotFoundError):
        shipper_service.activate("nope")


def test_inactive_shipper_cannot_get_new_rate_cards(db, shipper_service, rate_card_service, rate_card_payload, shipper):
    shipper_service.deactivate(shipper.id)

    with pytest.raises(ValidationError) as exc:
        rate_card_service.create(rate_card_payload())
    assert exc.value.code == "SHIPPER_INACTIVE"
    assert db.query(RateCard).count() == 0


def test_inactive_shipper_cards_leave_route_search(db, shipper_service, make_rate_card, shipper, today):
    card = make_rate_card()
    shipper_service.deactivate(shipper.id)
    assert repo.find_by_route(db, "BOM", "DXB", today) == []

    shipper_service.activate(shipper.id)
    assert [c.id for c in repo.find_by_route(db, "BOM", "DXB", today)] == [card.id]
