"""Jupiter routing: wire models, API client and route processing."""

from jupitrails.routing.jupiter import JupiterClient
from jupitrails.routing.models import PriorityConfig, PriorityLevel, Quote, QuoteRequest, SwapInfo
from jupitrails.routing.route import ProcessedRoute, RouteHop, RouteProcessor, transaction_url

__all__ = [
    "JupiterClient",
    "PriorityConfig",
    "PriorityLevel",
    "ProcessedRoute",
    "Quote",
    "QuoteRequest",
    "RouteHop",
    "RouteProcessor",
    "SwapInfo",
    "transaction_url",
]
