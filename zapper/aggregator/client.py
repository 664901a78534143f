"""Async client for the routing aggregator API.

The client never retries: a failed request raises RouterError carrying the
retryable classification, and retry policy belongs to the caller.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from zapper.bundles.actions import Bundle
from zapper.bundles.encoding import bundle_query_params, encode_bundle
from zapper.constants import CHAIN_ID, DEFAULT_SLIPPAGE_BPS
from zapper.models.types import normalize_address

from .errors import RouterError
from .models import BundleResponse, RouteResponse, TokenPrice

logger = structlog.get_logger()

BUNDLE_PATH = "/api/v1/shortcuts/bundle"
ROUTE_PATH = "/api/v1/shortcuts/route"
PRICES_PATH = "/api/v1/prices"


class AggregatorClient:
    """Bundle, route and price requests against the aggregator.

    Pass an httpx.AsyncClient to share a connection pool (or a mock
    transport in tests); otherwise each request opens its own client.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        chain_id: int = CHAIN_ID,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._chain_id = chain_id
        self._timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        url = f"{self._base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.request(
                    method, url, params=params, json=json, headers=self._headers()
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(
                        method, url, params=params, json=json, headers=self._headers()
                    )
        except httpx.HTTPError as err:
            logger.warning("router_request_failed", path=path, error=str(err))
            raise RouterError.transport(str(err)) from err

        if response.status_code >= 400:
            error = RouterError.from_status(response.status_code, response.text[:200] or None)
            logger.warning(
                "router_error_response",
                path=path,
                status=response.status_code,
                retryable=error.retryable,
            )
            raise error

        try:
            return response.json()
        except ValueError as err:
            raise RouterError("Router returned invalid JSON", status=response.status_code) from err

    async def get_bundle(self, bundle: Bundle, from_address: str) -> BundleResponse:
        """Submit a bundle for routing and get the executable transaction.

        Raises:
            RouterError: On transport failure, non-2xx status or malformed payload
        """
        params = bundle_query_params(bundle, from_address, self._chain_id)
        body = await self._request("POST", BUNDLE_PATH, params=params, json=encode_bundle(bundle))
        try:
            result = BundleResponse.model_validate(body)
        except ValidationError as err:
            raise RouterError(f"Malformed bundle response: {err}", status=200) from err

        logger.debug(
            "bundle_routed",
            action_count=len(bundle),
            gas=result.gas,
            outputs=len(result.amounts_out),
        )
        return result

    async def get_route(
        self,
        *,
        from_address: str,
        token_in: str,
        token_out: str,
        amount_in: int,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
        receiver: str | None = None,
    ) -> RouteResponse:
        """Quote and build a single token-to-token route.

        Raises:
            RouterError: On transport failure, non-2xx status or malformed payload
        """
        params: dict[str, Any] = {
            "chainId": str(self._chain_id),
            "fromAddress": from_address,
            "tokenIn": token_in,
            "tokenOut": token_out,
            "amountIn": str(amount_in),
            "slippage": str(slippage_bps),
            "routingStrategy": "router",
        }
        if receiver is not None:
            params["receiver"] = receiver

        body = await self._request("GET", ROUTE_PATH, params=params)
        try:
            return RouteResponse.model_validate(body)
        except ValidationError as err:
            raise RouterError(f"Malformed route response: {err}", status=200) from err

    async def get_token_prices(self, addresses: list[str]) -> dict[str, float]:
        """USD prices keyed by lowercase address. Tokens without a price are omitted.

        Raises:
            RouterError: On transport failure or non-2xx status
        """
        if not addresses:
            return {}
        body = await self._request(
            "GET",
            f"{PRICES_PATH}/{self._chain_id}",
            params={"addresses": [normalize_address(a) for a in addresses]},
        )
        entries = body if isinstance(body, list) else [body]

        prices: dict[str, float] = {}
        for entry in entries:
            try:
                price = TokenPrice.model_validate(entry)
            except ValidationError:
                logger.debug("token_price_skipped", entry=entry)
                continue
            prices[normalize_address(price.address)] = price.price
        return prices
