"""Routing aggregator boundary: bundle, route and price requests."""

from .client import AggregatorClient
from .errors import RouterError
from .models import BundleResponse, RouteResponse, TokenPrice

__all__ = [
    "AggregatorClient",
    "BundleResponse",
    "RouteResponse",
    "RouterError",
    "TokenPrice",
]
