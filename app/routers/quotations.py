# app/routers/quotations.py
import math
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_actor_id, get_quotation_service
from app.repositories.quotations import Pagination, QuotationFilters
from app.routers.common import dump, dump_all, ok
from app.schemas.quotation import (
    AutoQuotationRequest,
    FindRatesRequest,
    QuotationCreate,
    QuotationOut,
    QuotationPage,
    QuotationUpdate,
    StatusUpdate,
)
from app.schemas.rate_card import RateCardOut
from app.services import QuotationService

router = APIRouter(prefix="/api/v1/quotations", tags=["quotations"])


@router.get("")
def list_quotations(
    status: Optional[List[str]] = Query(None),
    customer_id: Optional[str] = None,
    shipment_type: Optional[str] = None,
    created_by: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    expired: Optional[bool] = None,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    service: QuotationService = Depends(get_quotation_service),
):
    # ?status=SENT,DRAFT and ?status=SENT&status=DRAFT both work
    statuses = [s.strip() for raw in (status or []) for s in raw.split(",") if s.strip()]
    filters = QuotationFilters(
        status=statuses,
        customer_id=customer_id,
        shipment_type=shipment_type,
        created_by=created_by,
        date_from=date_from,
        date_to=date_to,
        search=search,
        expired=expired,
    )
    pagination = Pagination(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    rows, total = service.list(filters, pagination)

    result = QuotationPage(
        items=[QuotationOut.model_validate(r) for r in rows],
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )
    return ok(result.model_dump(mode="json"))


@router.get("/expiring")
def expiring_quotations(
    days: int = 7,
    service: QuotationService = Depends(get_quotation_service),
):
    rows = service.expiring_soon(days)
    return ok(dump_all(QuotationOut, rows), count=len(rows))


@router.get("/customer/{customer_id}")
def customer_quotations(
    customer_id: str,
    service: QuotationService = Depends(get_quotation_service),
):
    rows = service.customer_quotations(customer_id)
    return ok(dump_all(QuotationOut, rows), count=len(rows))


@router.get("/number/{quote_number}")
def get_quotation_by_number(
    quote_number: str,
    service: QuotationService = Depends(get_quotation_service),
):
    return ok(dump(QuotationOut, service.get_by_number(quote_number)))


@router.post("/find-rates")
def find_rates(
    payload: FindRatesRequest,
    service: QuotationService = Depends(get_quotation_service),
):
    cards = service.find_matching_rate_cards(
        payload.origin,
        payload.destination,
        payload.chargeable_weight,
        payload.shipment_type,
    )
    return ok(dump_all(RateCardOut, cards), count=len(cards))


@router.post("/auto-generate", status_code=201)
def auto_generate(
    payload: AutoQuotationRequest,
    service: QuotationService = Depends(get_quotation_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    result = service.auto_generate_quotation(payload.model_dump(exclude_none=True), actor_id)
    return ok(
        {
            "quotation": dump(QuotationOut, result.quotation),
            "rate_card": dump(RateCardOut, result.rate_card),
            "cost_breakdown": result.cost_breakdown.to_dict(),
        },
        message="Quotation auto-generated successfully",
    )


@router.get("/{quotation_id}")
def get_quotation(
    quotation_id: str,
    service: QuotationService = Depends(get_quotation_service),
):
    return ok(dump(QuotationOut, service.get(quotation_id)))


@router.post("", status_code=201)
def create_quotation(
    payload: QuotationCreate,
    service: QuotationService = Depends(get_quotation_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    quotation = service.create(payload.model_dump(exclude_none=True), actor_id)
    return ok(dump(QuotationOut, quotation), message="Quotation created successfully")


@router.patch("/{quotation_id}")
def update_quotation(
    quotation_id: str,
    payload: QuotationUpdate,
    service: QuotationService = Depends(get_quotation_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    quotation = service.update(quotation_id, payload.model_dump(exclude_unset=True), actor_id)
    return ok(dump(QuotationOut, quotation), message="Quotation updated successfully")


@router.patch("/{quotation_id}/status")
def update_quotation_status(
    quotation_id: str,
    payload: StatusUpdate,
    service: QuotationService = Depends(get_quotation_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    quotation = service.update_status(quotation_id, payload.status, actor_id)
    return ok(dump(QuotationOut, quotation), message=f"Quotation status updated to {quotation.status}")


@router.post("/{quotation_id}/send")
def send_quotation(
    quotation_id: str,
    service: QuotationService = Depends(get_quotation_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return ok(dump(QuotationOut, service.send(quotation_id, actor_id)), message="Quotation sent")


@router.post("/{quotation_id}/accept")
def accept_quotation(
    quotation_id: str,
    service: QuotationService = Depends(get_quotation_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    return ok(dump(QuotationOut, service.accept(quotation_id, actor_id)), message="Quotation accepted")


@router.delete("/{quotation_id}")
def delete_quotation(
    quotation_id: str,
    service: QuotationService = Depends(get_quotation_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    service.delete(quotation_id, actor_id)
    return ok(None, message="Quotation deleted successfully")
