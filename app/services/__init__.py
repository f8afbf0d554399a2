# Services package: one class per aggregate, each owns its unit of work

from .quotation_service import AutoQuotationResult, QuotationService
from .rate_card_service import RateCardService
from .shipper_quote_request_service import ConversionResult, ShipperQuoteRequestService
from .shipper_service import ShipperService

__all__ = [
    "AutoQuotationResult",
    "ConversionResult",
    "QuotationService",
    "RateCardService",
    "ShipperQuoteRequestService",
    "ShipperService",
]
