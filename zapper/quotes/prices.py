"""USD token prices with an injected TTL cache."""

from __future__ import annotations

import structlog

from zapper.aggregator.client import AggregatorClient
from zapper.aggregator.errors import RouterError
from zapper.cache import TTLCache
from zapper.models.types import normalize_address

logger = structlog.get_logger()


class PriceService:
    """Fetches USD prices through the aggregator, caching them per instance."""

    def __init__(self, aggregator: AggregatorClient, cache: TTLCache[float]) -> None:
        self._aggregator = aggregator
        self._cache = cache

    async def get_prices(self, addresses: list[str]) -> dict[str, float]:
        """Prices keyed by lowercase address; unpriced tokens are omitted.

        Raises:
            RouterError: If the price request fails
        """
        wanted = list(dict.fromkeys(normalize_address(a) for a in addresses))
        prices: dict[str, float] = {}
        missing: list[str] = []
        for address in wanted:
            cached = self._cache.get(address)
            if cached is None:
                missing.append(address)
            else:
                prices[address] = cached

        if missing:
            fetched = await self._aggregator.get_token_prices(missing)
            for address, price in fetched.items():
                self._cache.set(address, price)
                prices[address] = price
        return prices

    async def get_prices_or_empty(self, addresses: list[str]) -> dict[str, float]:
        """get_prices for display-only callers: a failed lookup yields no prices."""
        try:
            return await self.get_prices(addresses)
        except RouterError as err:
            logger.warning("price_lookup_failed", tokens=len(addresses), error=str(err))
            return {}
