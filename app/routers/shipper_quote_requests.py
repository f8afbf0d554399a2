# app/routers/shipper_quote_requests.py
from typing import Optional

from fastapi import APIRouter, Depends

from app.dependencies import get_actor_id, get_quote_request_service
from app.repositories.shipper_quote_requests import QuoteRequestFilters
from app.routers.common import dump, dump_all, ok
from app.schemas.quotation import QuotationOut, StatusUpdate
from app.schemas.shipper_quote_request import (
    ConvertRequest,
    QuoteRequestCreate,
    QuoteRequestOut,
    QuoteRequestUpdate,
    ShipperResponse,
)
from app.services import ShipperQuoteRequestService

router = APIRouter(prefix="/api/v1/shipper-quote-requests", tags=["shipper-quote-requests"])


@router.get("")
def list_requests(
    shipper_id: Optional[str] = None,
    quotation_id: Optional[str] = None,
    status: Optional[str] = None,
    requested_by: Optional[str] = None,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
):
    filters = QuoteRequestFilters(
        shipper_id=shipper_id,
        quotation_id=quotation_id,
        status=status,
        requested_by=requested_by,
    )
    rows = service.list(filters)
    return ok(dump_all(QuoteRequestOut, rows), count=len(rows))


@router.get("/pending")
def pending_requests(service: ShipperQuoteRequestService = Depends(get_quote_request_service)):
    rows = service.pending()
    return ok(dump_all(QuoteRequestOut, rows), count=len(rows))


@router.get("/received")
def received_requests(service: ShipperQuoteRequestService = Depends(get_quote_request_service)):
    rows = service.received()
    return ok(dump_all(QuoteRequestOut, rows), count=len(rows))


@router.get("/quotation/{quotation_id}")
def requests_for_quotation(
    quotation_id: str,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
):
    rows = service.by_quotation(quotation_id)
    return ok(dump_all(QuoteRequestOut, rows), count=len(rows))


@router.get("/{request_id}")
def get_request(
    request_id: str,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
):
    return ok(dump(QuoteRequestOut, service.get(request_id)))


@router.post("", status_code=201)
def create_request(
    payload: QuoteRequestCreate,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    req = service.create(payload.model_dump(exclude_none=True), actor_id)
    return ok(dump(QuoteRequestOut, req), message="Shipper quote request created successfully")


@router.patch("/{request_id}")
def update_request(
    request_id: str,
    payload: QuoteRequestUpdate,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    req = service.update(request_id, payload.model_dump(exclude_unset=True), actor_id)
    return ok(dump(QuoteRequestOut, req), message="Shipper quote request updated successfully")


@router.patch("/{request_id}/status")
def update_request_status(
    request_id: str,
    payload: StatusUpdate,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    req = service.update_status(request_id, payload.status, actor_id)
    return ok(dump(QuoteRequestOut, req), message=f"Status updated to {req.status}")


@router.post("/{request_id}/response")
def record_response(
    request_id: str,
    payload: ShipperResponse,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    req = service.record_response(
        request_id,
        payload.shipper_quote_amount,
        currency=payload.shipper_quote_currency,
        validity=payload.shipper_quote_validity,
        file_url=payload.shipper_quote_file_url,
        details=payload.shipper_response_details,
        actor_id=actor_id,
    )
    return ok(dump(QuoteRequestOut, req), message="Shipper response recorded")


@router.post("/{request_id}/convert", status_code=201)
def convert_to_quotation(
    request_id: str,
    payload: ConvertRequest,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    result = service.convert_to_quotation(request_id, payload.model_dump(exclude_none=True), actor_id)
    return ok(
        {
            "quotation": dump(QuotationOut, result.quotation),
            "shipper_quote_request": dump(QuoteRequestOut, result.shipper_quote_request),
            "cost_breakdown": result.cost_breakdown,
        },
        message="Converted to quotation",
    )


@router.delete("/{request_id}")
def delete_request(
    request_id: str,
    service: ShipperQuoteRequestService = Depends(get_quote_request_service),
    actor_id: Optional[str] = Depends(get_actor_id),
):
    service.delete(request_id, actor_id)
    return ok(None, message="Shipper quote request deleted successfully")
