# Models package: importing it registers every table on Base.metadata

from .audit_event import AuditEvent
from .quotation import Quotation
from .rate_card import RateCard
from .shipper import Shipper
from .shipper_quote_request import ShipperQuoteRequest

__all__ = [
    "AuditEvent",
    "Quotation",
    "RateCard",
    "Shipper",
    "ShipperQuoteRequest",
]
