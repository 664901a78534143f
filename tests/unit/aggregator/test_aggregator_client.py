"""Tests for the routing aggregator client."""

import asyncio
import json

import httpx
import pytest

from zapper.aggregator import AggregatorClient, RouterError
from zapper.aggregator.client import BUNDLE_PATH, PRICES_PATH, ROUTE_PATH
from zapper.bundles import compose_zap_in
from tests.helpers import (
    AGGREGATOR_URL,
    CRV,
    ONE,
    USER,
    WETH,
    YCVXCRV,
    bundle_payload,
    mock_client,
    route_payload,
)


def make_client(handler, **kwargs) -> AggregatorClient:
    return AggregatorClient(AGGREGATOR_URL, client=mock_client(handler), **kwargs)


class TestGetBundle:
    def test_posts_encoded_actions_with_params(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=bundle_payload({YCVXCRV: 5 * ONE}))

        bundle = compose_zap_in(WETH, YCVXCRV, ONE)
        response = asyncio.run(make_client(handler).get_bundle(bundle, USER))

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == BUNDLE_PATH
        assert request.url.params["fromAddress"] == USER
        assert request.url.params["chainId"] == "1"
        body = json.loads(request.content)
        assert [entry["action"] for entry in body] == ["route", "deposit"]
        assert response.amount_out(YCVXCRV.upper().replace("0X", "0x")) == 5 * ONE
        assert response.gas == 450000

    def test_api_key_sent_as_bearer(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=bundle_payload({}))

        client = make_client(handler, api_key="secret")
        asyncio.run(client.get_bundle(compose_zap_in(WETH, YCVXCRV, ONE), USER))
        assert seen[0].headers["Authorization"] == "Bearer secret"

    def test_malformed_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        bundle = compose_zap_in(WETH, YCVXCRV, ONE)
        with pytest.raises(RouterError, match="Malformed bundle response"):
            asyncio.run(make_client(handler).get_bundle(bundle, USER))


class TestErrorClassification:
    @pytest.mark.parametrize(
        "status,retryable",
        [(400, False), (404, False), (429, True), (500, True), (503, True)],
    )
    def test_status(self, status, retryable):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, text="nope")

        with pytest.raises(RouterError) as exc_info:
            asyncio.run(make_client(handler).get_token_prices([WETH]))
        assert exc_info.value.status == status
        assert exc_info.value.retryable is retryable

    def test_timeout_is_retryable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(RouterError) as exc_info:
            asyncio.run(make_client(handler).get_token_prices([WETH]))
        assert exc_info.value.status is None
        assert exc_info.value.retryable is True


class TestGetRoute:
    def test_query_params(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=route_payload(3 * ONE))

        response = asyncio.run(
            make_client(handler).get_route(
                from_address=USER, token_in=WETH, token_out=CRV, amount_in=ONE, slippage_bps=50
            )
        )
        params = seen[0].url.params
        assert seen[0].url.path == ROUTE_PATH
        assert params["amountIn"] == str(ONE)
        assert params["slippage"] == "50"
        assert "receiver" not in params
        assert int(response.amount_out) == 3 * ONE


class TestGetTokenPrices:
    def test_prices_keyed_by_lowercase_address(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json=[
                    {"address": WETH.upper().replace("0X", "0x"), "price": 2500.0},
                    {"address": CRV, "price": None},
                ],
            )

        prices = asyncio.run(make_client(handler).get_token_prices([WETH, CRV]))
        assert seen[0].url.path == f"{PRICES_PATH}/1"
        assert prices == {WETH: 2500.0}

    def test_no_addresses_no_request(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("unexpected request")

        assert asyncio.run(make_client(handler).get_token_prices([])) == {}
