# app/routers/shippers.py
from typing import Optional

from fastapi import APIRouter, Depends

from app.dependencies import get_actor_id, get_shipper_service
from app.routers.common import dump, dump_all, ok
from app.schemas.shipper import ShipperCreate, ShipperOut, ShipperUpdate
from app.services import ShipperService

router = APIRouter(prefix="/api/v1/shippers", tags=["shippers"])


@router.get("")
def list_shippers(
    active_only: bool = False,
    shipper_type: Optional[str] = None,
    service: ShipperService = Depends(get_shipper_service),
):
    rows = service.list(active_only=active_only, shipper_type=shipper_type)
    return ok(dump_all(ShipperOut, rows), count=len(rows))


@router.get("/{shipper_id}")
def get_shipper(shipper_id: str, service: ShipperService = Depends(get_shipper_service)):
    return ok(dump(ShipperOut, service.get(shipper_id)))


@router.post("", status_code=201)
def create_shipper(
    payload: ShipperCreate,
    service: ShipperService = Depends(get_shipper_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    shipper = service.create(payload.model_dump(exclude_none=True), actor_id)
    return ok(dump(ShipperOut, shipper), message="Shipper created successfully")


@router.put("/{shipper_id}")
def update_shipper(
    shipper_id: str,
    payload: ShipperUpdate,
    service: ShipperService = Depends(get_shipper_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    shipper = service.update(shipper_id, payload.model_dump(exclude_unset=True), actor_id)
    return ok(dump(ShipperOut, shipper), message="Shipper updated successfully")


@router.delete("/{shipper_id}")
def delete_shipper(
    shipper_id: str,
    service: ShipperService = Depends(get_shipper_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    service.delete(shipper_id, actor_id)
    return ok(None, message="Shipper deleted successfully")


@router.post("/{shipper_id}/activate")
def activate_shipper(
    shipper_id: str,
    service: ShipperService = Depends(get_shipper_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return ok(dump(ShipperOut, service.activate(shipper_id, actor_id)), message="Shipper activated")


@router.post("/{shipper_id}/deactivate")
def deactivate_shipper(
    shipper_id: str,
    service: ShipperService = Depends(get_shipper_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return ok(dump(ShipperOut, service.deactivate(shipper_id, actor_id)), message="Shipper deactivated")
