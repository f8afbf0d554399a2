# app/routers/rate_cards.py
from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_actor_id, get_rate_card_service
from app.repositories.rate_cards import RateCardFilters
from app.routers.common import dump, dump_all, ok
from app.schemas.rate_card import CalculateRequest, RateCardCreate, RateCardOut, RateCardUpdate
from app.services import RateCardService

router = APIRouter(prefix="/api/v1/rate-cards", tags=["rate-cards"])


@router.get("")
def list_rate_cards(
    shipper_id: Optional[str] = None,
    status: Optional[str] = None,
    rate_type: Optional[str] = None,
    shipment_type: Optional[str] = None,
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    valid_on: Optional[date] = None,
    service: RateCardService = Depends(get_rate_card_service),
):
    filters = RateCardFilters(
        shipper_id=shipper_id,
        status=status,
        rate_type=rate_type,
        shipment_type=shipment_type,
        origin=origin,
        destination=destination,
        valid_on=valid_on,
    )
    cards = service.list(filters)
    return ok(dump_all(RateCardOut, cards), count=len(cards))


@router.get("/active")
def active_rate_cards(service: RateCardService = Depends(get_rate_card_service)):
    cards = service.active()
    return ok(dump_all(RateCardOut, cards), count=len(cards))


@router.get("/expiring")
def expiring_rate_cards(
    days: int = 30,
    service: RateCardService = Depends(get_rate_card_service),
):
    cards = service.expiring_soon(days)
    return ok(dump_all(RateCardOut, cards), count=len(cards))


@router.get("/search")
def search_rate_cards(
    origin: Optional[str] = None,
    destination: Optional[str] = None,
    on: Optional[date] = Query(None, alias="date"),
    weight: Optional[Decimal] = None,
    service: RateCardService = Depends(get_rate_card_service),
):
    cards = service.search(origin, destination, on, weight)
    return ok(dump_all(RateCardOut, cards), count=len(cards))


@router.get("/{rate_card_id}")
def get_rate_card(
    rate_card_id: str,
    service: RateCardService = Depends(get_rate_card_service),
):
    return ok(dump(RateCardOut, service.get(rate_card_id)))


@router.post("/{rate_card_id}/calculate")
def calculate_cost(
    rate_card_id: str,
    payload: CalculateRequest,
    service: RateCardService = Depends(get_rate_card_service),
):
    breakdown = service.calculate(rate_card_id, payload.weight_kg, payload.volume_cbm)
    return ok(breakdown.to_dict())


@router.post("", status_code=201)
def create_rate_card(
    payload: RateCardCreate,
    service: RateCardService = Depends(get_rate_card_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    card = service.create(payload.model_dump(exclude_none=True), actor_id)
    return ok(dump(RateCardOut, card), message="Rate card created successfully")


@router.put("/{rate_card_id}")
def update_rate_card(
    rate_card_id: str,
    payload: RateCardUpdate,
    service: RateCardService = Depends(get_rate_card_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    card = service.update(rate_card_id, payload.model_dump(exclude_unset=True), actor_id)
    return ok(dump(RateCardOut, card), message="Rate card updated successfully")


@router.delete("/{rate_card_id}")
def delete_rate_card(
    rate_card_id: str,
    service: RateCardService = Depends(get_rate_card_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    service.delete(rate_card_id, actor_id)
    return ok(None, message="Rate card deleted successfully")


@router.post("/{rate_card_id}/activate")
def activate_rate_card(
    rate_card_id: str,
    service: RateCardService = Depends(get_rate_card_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return ok(dump(RateCardOut, service.activate(rate_card_id, actor_id)), message="Rate card activated")


@router.post("/{rate_card_id}/deactivate")
def deactivate_rate_card(
    rate_card_id: str,
    service: RateCardService = Depends(get_rate_card_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return ok(dump(RateCardOut, service.deactivate(rate_card_id, actor_id)), message="Rate card deactivated")
