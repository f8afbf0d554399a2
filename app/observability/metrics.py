# app/observability/metrics.py
from fastapi import APIRouter
from starlette.responses import Response

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["observability"])

quotations_created = Counter(
    "freight_quotations_created_total",
    "Quotations created",
    ["source"],  # MANUAL|INVENTORY|ON_DEMAND
)

status_transitions = Counter(
    "freight_quotation_status_transitions_total",
    "Quotation status change attempts",
    ["from_status", "to_status", "result"],  # result: success|rejected
)

pricing_outcomes = Counter(
    "freight_pricing_total",
    "Auto pricing attempts",
    ["result"],  # priced|no_rate_card|invalid|inconsistent
)

quote_requests_converted = Counter(
    "freight_shipper_quote_requests_converted_total",
    "On-demand shipper quotes converted into quotations",
)

latency_hist = Histogram(
    "freight_api_latency_seconds",
    "API latency per route",
    ["route"],
)


@router.get("/metrics", include_in_schema=True)
def metrics() -> Response:
    # Prometheus expects text/plain; version=0.0.4
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
