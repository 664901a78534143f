"""Zap quotes: compose the bundle, route it, value the result.

Each quote method returns a ZapQuote or None. Network and pool-math failures
become None (logged at warning) and are never read as a zero amount.
Composition errors are the caller's mistake and propagate unchanged.
"""

from __future__ import annotations

import asyncio

import structlog

from zapper.aggregator.client import AggregatorClient
from zapper.aggregator.errors import RouterError
from zapper.aggregator.models import BundleResponse
from zapper.amm.errors import AmmError
from zapper.bundles.actions import Bundle
from zapper.bundles.composer import (
    HybridRoute,
    HybridStrategy,
    compose_hybrid,
    compose_vault_to_vault,
    compose_zap_in,
    compose_zap_out,
)
from zapper.bundles.slippage import apply_slippage_buffer, validate_slippage
from zapper.cache import TTLCache
from zapper.chain.errors import RpcError
from zapper.chain.reader import PoolSnapshotReader, create_web3
from zapper.config import ZapperConfig, load_config
from zapper.models.quote import HybridBreakdown, ZapQuote
from zapper.models.types import normalize_address, same_address
from zapper.registry import get_vault_by_address
from zapper.uint256 import Uint256Error

from .estimator import HybridEstimate, QuoteEstimator
from .impact import exchange_rate, price_impact, usd_value
from .prices import PriceService

logger = structlog.get_logger()

# Failures that turn a quote into None
QUOTE_FAILURES = (RouterError, RpcError, AmmError, Uint256Error)


def _decimals(address: str, default: int) -> int:
    vault = get_vault_by_address(address)
    return vault.decimals if vault is not None else default


class ZapService:
    """Quotes for every zap flow.

    Args:
        aggregator: Router client for bundles, single routes and prices
        reader: Contract reads for pool snapshots and vault previews
        prices: USD price lookups (cached per service instance)
        estimator: Hybrid route estimator, built from reader when omitted
        config: Slippage default and composer behaviour
    """

    def __init__(
        self,
        aggregator: AggregatorClient,
        reader: PoolSnapshotReader,
        prices: PriceService,
        *,
        estimator: QuoteEstimator | None = None,
        config: ZapperConfig | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._reader = reader
        self._prices = prices
        self._estimator = estimator or QuoteEstimator(reader)
        self._config = config or ZapperConfig()

    def _slippage(self, slippage_bps: int | str | None) -> int:
        if slippage_bps is None:
            return self._config.default_slippage_bps
        return validate_slippage(slippage_bps)

    async def _route_bundle(
        self, bundle: Bundle, from_address: str, tokens: list[str]
    ) -> tuple[BundleResponse, dict[str, float]]:
        response, prices = await asyncio.gather(
            self._aggregator.get_bundle(bundle, from_address),
            self._prices.get_prices_or_empty(tokens),
        )
        return response, prices

    def _build_quote(
        self,
        *,
        input_token: str,
        output_token: str,
        amount_in: int,
        estimated_output: int,
        input_decimals: int,
        output_decimals: int,
        bundle: Bundle,
        response: BundleResponse,
        prices: dict[str, float],
        hybrid: HybridBreakdown | None = None,
    ) -> ZapQuote:
        input_usd = usd_value(amount_in, input_decimals, prices.get(input_token))
        output_usd = usd_value(estimated_output, output_decimals, prices.get(output_token))
        return ZapQuote(
            input_token=input_token,
            output_token=output_token,
            amount_in=amount_in,
            estimated_output=estimated_output,
            exchange_rate=exchange_rate(
                amount_in, input_decimals, estimated_output, output_decimals
            ),
            price_impact=price_impact(input_usd, output_usd),
            gas=response.gas,
            tx=response.tx,
            bundle=bundle,
            hybrid=hybrid,
        )

    async def _quote_bundle(
        self,
        flow: str,
        bundle: Bundle,
        *,
        from_address: str,
        input_token: str,
        output_token: str,
        amount_in: int,
        input_decimals: int,
        output_decimals: int,
    ) -> ZapQuote | None:
        try:
            response, prices = await self._route_bundle(
                bundle, from_address, [input_token, output_token]
            )
        except QUOTE_FAILURES as err:
            logger.warning("quote_failed", flow=flow, error=str(err))
            return None

        estimated_output = response.amount_out(output_token)
        if estimated_output is None:
            logger.warning("quote_missing_output", flow=flow, token=output_token)
            return None

        return self._build_quote(
            input_token=input_token,
            output_token=output_token,
            amount_in=amount_in,
            estimated_output=estimated_output,
            input_decimals=input_decimals,
            output_decimals=output_decimals,
            bundle=bundle,
            response=response,
            prices=prices,
        )

    async def quote_zap_in(
        self,
        token_in: str,
        vault: str,
        amount_in: int,
        *,
        from_address: str,
        underlying: str | None = None,
        slippage_bps: int | str | None = None,
        receiver: str | None = None,
        input_decimals: int = 18,
    ) -> ZapQuote | None:
        """Quote token -> vault shares.

        Raises:
            BundleCompositionError: If the request can't be composed
        """
        bundle = compose_zap_in(
            token_in,
            vault,
            amount_in,
            underlying=underlying,
            slippage_bps=self._slippage(slippage_bps),
            receiver=receiver,
            config=self._config.composer,
        )
        vault = normalize_address(vault)
        return await self._quote_bundle(
            "zap-in",
            bundle,
            from_address=from_address,
            input_token=normalize_address(token_in),
            output_token=vault,
            amount_in=amount_in,
            input_decimals=input_decimals,
            output_decimals=_decimals(vault, 18),
        )

    async def quote_zap_out(
        self,
        vault: str,
        token_out: str,
        shares: int,
        *,
        from_address: str,
        underlying: str | None = None,
        slippage_bps: int | str | None = None,
        receiver: str | None = None,
        output_decimals: int = 18,
    ) -> ZapQuote | None:
        """Quote vault shares -> token.

        Raises:
            BundleCompositionError: If the request can't be composed
        """
        bundle = compose_zap_out(
            vault,
            token_out,
            shares,
            underlying=underlying,
            slippage_bps=self._slippage(slippage_bps),
            receiver=receiver,
            config=self._config.composer,
        )
        vault = normalize_address(vault)
        return await self._quote_bundle(
            "zap-out",
            bundle,
            from_address=from_address,
            input_token=vault,
            output_token=normalize_address(token_out),
            amount_in=shares,
            input_decimals=_decimals(vault, 18),
            output_decimals=output_decimals,
        )

    async def quote_vault_to_vault(
        self,
        source_vault: str,
        target_vault: str,
        shares: int,
        *,
        from_address: str,
        source_underlying: str | None = None,
        target_underlying: str | None = None,
        slippage_bps: int | str | None = None,
        receiver: str | None = None,
    ) -> ZapQuote | None:
        """Quote moving shares from one vault into another.

        Raises:
            SelfZapError: If source and target are the same vault
        """
        bundle = compose_vault_to_vault(
            source_vault,
            target_vault,
            shares,
            source_underlying=source_underlying,
            target_underlying=target_underlying,
            slippage_bps=self._slippage(slippage_bps),
            receiver=receiver,
            config=self._config.composer,
        )
        source = normalize_address(source_vault)
        target = normalize_address(target_vault)
        return await self._quote_bundle(
            "vault-to-vault",
            bundle,
            from_address=from_address,
            input_token=source,
            output_token=target,
            amount_in=shares,
            input_decimals=_decimals(source, 18),
            output_decimals=_decimals(target, 18),
        )

    async def _base_amount(
        self,
        input_token: str,
        base_token: str,
        amount_in: int,
        *,
        from_address: str,
        slippage_bps: int,
    ) -> int:
        """Base token available to the hybrid legs, buffered below the route estimate."""
        if same_address(input_token, base_token):
            return amount_in
        route = await self._aggregator.get_route(
            from_address=from_address,
            token_in=input_token,
            token_out=base_token,
            amount_in=amount_in,
            slippage_bps=slippage_bps,
        )
        buffer = self._config.composer.upstream_buffer_bps
        return apply_slippage_buffer(int(route.amount_out), buffer)

    async def _estimate_hybrid(
        self, route: HybridRoute, base_amount: int, *, crypto: bool, precisions: tuple[int, int]
    ) -> HybridEstimate:
        if crypto:
            return await self._estimator.estimate_crypto(route, base_amount, precisions=precisions)
        return await self._estimator.estimate_stable(route, base_amount, precisions=precisions)

    async def quote_hybrid(
        self,
        input_token: str,
        vault: str,
        amount_in: int,
        route: HybridRoute,
        *,
        from_address: str,
        crypto: bool = False,
        precisions: tuple[int, int] = (1, 1),
        slippage_bps: int | str | None = None,
        receiver: str | None = None,
        input_decimals: int = 18,
    ) -> ZapQuote | None:
        """Quote a hybrid wrap+swap / mint zap into a derivative vault.

        The swap/mint split comes from the estimator; the vault's
        previewDeposit of the estimated derivative amount is handed to the
        router as the final output estimate.

        Raises:
            BundleCompositionError: If the request can't be composed
        """
        slippage = self._slippage(slippage_bps)
        input_token = normalize_address(input_token, validate=True)
        vault = normalize_address(vault, validate=True)

        try:
            base_amount = await self._base_amount(
                input_token,
                route.base_token,
                amount_in,
                from_address=from_address,
                slippage_bps=slippage,
            )
            estimate, prices = await asyncio.gather(
                self._estimate_hybrid(route, base_amount, crypto=crypto, precisions=precisions),
                self._prices.get_prices_or_empty([input_token, vault]),
            )
            if estimate.output == 0:
                logger.warning("quote_zero_estimate", flow="hybrid", pool=route.pool)
                return None
            shares = await self._reader.preview_deposit(vault, estimate.output)
        except QUOTE_FAILURES as err:
            logger.warning("quote_failed", flow="hybrid", error=str(err))
            return None

        plan = estimate.plan
        bundle = compose_hybrid(
            input_token,
            vault,
            amount_in,
            route,
            strategy=plan.strategy,
            expected_swap_output=estimate.swap_output if plan.swap_amount else None,
            swap_amount=plan.swap_amount if plan.strategy == HybridStrategy.SPLIT else None,
            mint_amount=plan.mint_amount if plan.strategy == HybridStrategy.SPLIT else None,
            final_output_estimate=shares,
            slippage_bps=slippage,
            receiver=receiver,
            config=self._config.composer,
        )

        try:
            response = await self._aggregator.get_bundle(bundle, from_address)
        except QUOTE_FAILURES as err:
            logger.warning("quote_failed", flow="hybrid", error=str(err))
            return None

        # Skip-quote bundles echo the supplied estimate; otherwise trust the router
        estimated_output = response.amount_out(vault)
        if estimated_output is None:
            estimated_output = shares

        logger.debug(
            "hybrid_quoted",
            vault=vault,
            strategy=plan.strategy.value,
            base_amount=base_amount,
            shares=estimated_output,
        )
        return self._build_quote(
            input_token=input_token,
            output_token=vault,
            amount_in=amount_in,
            estimated_output=estimated_output,
            input_decimals=input_decimals,
            output_decimals=_decimals(vault, 18),
            bundle=bundle,
            response=response,
            prices=prices,
            hybrid=estimate.breakdown(route),
        )


def create_zap_service(config: ZapperConfig | None = None) -> ZapService:
    """Wire a ZapService to the configured endpoints.

    Each collaborator opens its own HTTP client per request, so the service
    can be shared across concurrent requests. Prices are cached for
    config.price_cache_ttl seconds per service instance.
    """
    config = config or load_config()
    aggregator = AggregatorClient(
        config.aggregator_url,
        api_key=config.aggregator_api_key,
        chain_id=config.chain_id,
        timeout=config.http_timeout,
    )
    reader = PoolSnapshotReader(create_web3(config.rpc_url, timeout=config.http_timeout))
    prices = PriceService(aggregator, TTLCache(config.price_cache_ttl))
    logger.info(
        "zap_service_created",
        aggregator_url=config.aggregator_url,
        chain_id=config.chain_id,
        price_cache_ttl=config.price_cache_ttl,
    )
    return ZapService(aggregator, reader, prices, config=config)
