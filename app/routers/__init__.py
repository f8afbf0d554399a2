# Routers package for the freight quotation API

from . import quotations, rate_cards, shipper_quote_requests, shippers

__all__ = [
    "quotations",
    "rate_cards",
    "shipper_quote_requests",
    "shippers",
]
