from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

from .errors import InvalidTransitionError, ValidationError


class QuotationStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"
    CONVERTED = "CONVERTED"


class QuoteRequestStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    RECEIVED = "RECEIVED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


S = QuotationStatus
R = QuoteRequestStatus

# Self-loops allow field edits while a quote is still open.
QUOTATION_TRANSITIONS: Mapping[QuotationStatus, FrozenSet[QuotationStatus]] = {
    S.DRAFT: frozenset({S.SENT, S.DRAFT}),
    S.SENT: frozenset({S.ACCEPTED, S.REJECTED, S.EXPIRED, S.SENT}),
    S.ACCEPTED: frozenset({S.CONVERTED}),
    S.REJECTED: frozenset(),
    S.EXPIRED: frozenset(),
    S.CONVERTED: frozenset(),
}

QUOTE_REQUEST_TRANSITIONS: Mapping[QuoteRequestStatus, FrozenSet[QuoteRequestStatus]] = {
    R.PENDING: frozenset({R.SENT, R.RECEIVED, R.DECLINED, R.EXPIRED}),
    R.SENT: frozenset({R.RECEIVED, R.DECLINED, R.EXPIRED}),
    R.RECEIVED: frozenset({R.RECEIVED}),
    R.DECLINED: frozenset(),
    R.EXPIRED: frozenset(),
}


def parse_quotation_status(value: Any) -> QuotationStatus:
    if isinstance(value, QuotationStatus):
        return value
    try:
        return QuotationStatus(str(value).upper())
    except ValueError:
        raise ValidationError(
            f"Unknown quotation status: {value}",
            code="UNKNOWN_STATUS",
            meta={"status": str(value)},
        )


def parse_quote_request_status(value: Any) -> QuoteRequestStatus:
    if isinstance(value, QuoteRequestStatus):
        return value
    try:
        return QuoteRequestStatus(str(value).upper())
    except ValueError:
        raise ValidationError(
            f"Unknown quote request status: {value}",
            code="UNKNOWN_STATUS",
            meta={"status": str(value)},
        )


def is_terminal(status: QuotationStatus) -> bool:
    return not QUOTATION_TRANSITIONS[status]


def validate_transition(current: Any, target: Any) -> QuotationStatus:
    """
    Returns the parsed target status, raises InvalidTransitionError when the
    edge is not in QUOTATION_TRANSITIONS.
    """
    cur = parse_quotation_status(current)
    new = parse_quotation_status(target)
    if new not in QUOTATION_TRANSITIONS[cur]:
        raise InvalidTransitionError(cur.value, new.value)
    return new


def validate_request_transition(current: Any, target: Any) -> QuoteRequestStatus:
    cur = parse_quote_request_status(current)
    new = parse_quote_request_status(target)
    if new not in QUOTE_REQUEST_TRANSITIONS[cur]:
        raise InvalidTransitionError(cur.value, new.value, entity="shipper quote request")
    return new


def status_side_effects(
    target: QuotationStatus,
    now: datetime,
    *,
    actor_id: Optional[str] = None,
    accepted_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Timestamp/approver fields that accompany a status change."""
    fields: Dict[str, Any] = {"status": target.value}

    if target is S.SENT:
        fields["sent_at"] = now
    elif target is S.ACCEPTED:
        fields["accepted_at"] = now
    elif target is S.REJECTED:
        fields["rejected_at"] = now
    elif target is S.CONVERTED:
        fields["accepted_at"] = accepted_at or now

    if actor_id and target in (S.SENT, S.ACCEPTED):
        fields["approved_by"] = actor_id

    return fields
