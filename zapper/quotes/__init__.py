"""Advisory quotes: hybrid estimates, price impact and the zap quote service."""

from .estimator import HybridEstimate, QuoteEstimator, SplitPlan
from .impact import exchange_rate, price_impact, usd_value
from .prices import PriceService
from .service import ZapService, create_zap_service

__all__ = [
    # Estimates
    "HybridEstimate",
    "QuoteEstimator",
    "SplitPlan",
    # Valuation
    "exchange_rate",
    "price_impact",
    "usd_value",
    "PriceService",
    # Service
    "ZapService",
    "create_zap_service",
]
