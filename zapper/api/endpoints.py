"""API endpoints for bundles, quotes and simulation."""

from collections.abc import Awaitable
from functools import lru_cache
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from zapper.bundles.actions import Bundle
from zapper.bundles.composer import (
    compose_hybrid,
    compose_vault_to_vault,
    compose_zap_in,
    compose_zap_out,
)
from zapper.bundles.encoding import bundle_query_params, encode_bundle
from zapper.chain.storage import StorageLayout
from zapper.config import ZapperConfig, load_config
from zapper.constants import ENSO_ROUTER
from zapper.models.quote import PriceImpactRequest, ZapQuote
from zapper.models.requests import (
    HybridRequest,
    VaultToVaultRequest,
    ZapInRequest,
    ZapOutRequest,
)
from zapper.models.types import Address, Bytes, Uint256
from zapper.quotes.impact import price_impact
from zapper.quotes.service import ZapService, create_zap_service
from zapper.simulation.client import SimulationClient, SimulationResult

logger = structlog.get_logger()

router = APIRouter()


@lru_cache(maxsize=1)
def get_config() -> ZapperConfig:
    """Dependency provider for the engine configuration.

    Override in tests:
        app.dependency_overrides[get_config] = lambda: ZapperConfig(...)
    """
    return load_config()


@lru_cache(maxsize=1)
def _default_zap_service() -> ZapService:
    return create_zap_service(get_config())


def get_zap_service() -> ZapService:
    """Dependency provider for the quote service.

    Override this in tests to inject a service with mocked clients:
        app.dependency_overrides[get_zap_service] = lambda: service
    """
    return _default_zap_service()


def get_simulation_client() -> SimulationClient:
    """Dependency provider for the simulation client."""
    config = get_config()
    return SimulationClient(
        config.simulation_url,
        access_key=config.simulation_access_key,
        network_id=config.chain_id,
        timeout=config.http_timeout,
    )


class BundleBody(BaseModel):
    """Router request for a composed bundle: the action array plus its query parameters."""

    actions: list[dict[str, Any]]
    params: dict[str, str]


class QuoteBody(BaseModel):
    """Quote result; quote is null when no quote could be produced."""

    quote: ZapQuote | None = None


class PriceImpactBody(BaseModel):
    price_impact: float | None = Field(default=None, alias="priceImpact")

    model_config = {"populate_by_name": True}


class SimulationRequest(BaseModel):
    """Transaction to simulate, optionally with the sender pre-funded in a token."""

    from_address: Address = Field(alias="from")
    to: Address
    data: Bytes
    value: Uint256 = "0"
    gas: int | None = None
    input_token: Address | None = Field(default=None, alias="inputToken")
    spender: Address = ENSO_ROUTER
    balance_slot: int = Field(default=0, ge=0, alias="balanceSlot")
    allowance_slot: int = Field(default=1, ge=0, alias="allowanceSlot")
    layout: StorageLayout = StorageLayout.SOLIDITY

    model_config = {"populate_by_name": True}


def _bundle_body(bundle: Bundle, from_address: str, config: ZapperConfig) -> BundleBody:
    return BundleBody(
        actions=encode_bundle(bundle),
        params=bundle_query_params(bundle, from_address, config.chain_id),
    )


def _rejected(flow: str, err: ValueError) -> HTTPException:
    logger.warning("bundle_rejected", flow=flow, error=str(err))
    return HTTPException(status_code=400, detail=str(err))


async def _run_quote(flow: str, pending: Awaitable[ZapQuote | None]) -> QuoteBody:
    try:
        quote = await pending
    except ValueError as err:
        raise _rejected(flow, err) from err
    except Exception:
        # Quotes are advisory: an unexpected failure is a missing quote, not a 500
        logger.exception("quote_error", flow=flow)
        return QuoteBody()
    return QuoteBody(quote=quote)


@router.post("/bundles/zap-in")
async def bundle_zap_in(
    request: ZapInRequest, config: ZapperConfig = Depends(get_config)
) -> BundleBody:
    """Compose a token -> vault bundle.

    Error Handling:
        - Invalid request schema: 422 (Pydantic)
        - Composition error (unsupported pair, bad slippage): 400 with the message
    """
    try:
        bundle = compose_zap_in(
            request.token_in,
            request.vault,
            int(request.amount_in),
            underlying=request.underlying,
            slippage_bps=request.slippage,
            receiver=request.receiver,
            config=config.composer,
        )
    except ValueError as err:
        raise _rejected("zap-in", err) from err
    return _bundle_body(bundle, request.from_address, config)


@router.post("/bundles/zap-out")
async def bundle_zap_out(
    request: ZapOutRequest, config: ZapperConfig = Depends(get_config)
) -> BundleBody:
    """Compose a vault -> token bundle."""
    try:
        bundle = compose_zap_out(
            request.vault,
            request.token_out,
            int(request.shares),
            underlying=request.underlying,
            slippage_bps=request.slippage,
            receiver=request.receiver,
            config=config.composer,
        )
    except ValueError as err:
        raise _rejected("zap-out", err) from err
    return _bundle_body(bundle, request.from_address, config)


@router.post("/bundles/vault-to-vault")
async def bundle_vault_to_vault(
    request: VaultToVaultRequest, config: ZapperConfig = Depends(get_config)
) -> BundleBody:
    """Compose a vault -> vault bundle. Same source and target is a 400."""
    try:
        bundle = compose_vault_to_vault(
            request.source_vault,
            request.target_vault,
            int(request.shares),
            source_underlying=request.source_underlying,
            target_underlying=request.target_underlying,
            slippage_bps=request.slippage,
            receiver=request.receiver,
            config=config.composer,
        )
    except ValueError as err:
        raise _rejected("vault-to-vault", err) from err
    return _bundle_body(bundle, request.from_address, config)


def _optional_int(value: str | None) -> int | None:
    return int(value) if value is not None else None


@router.post("/bundles/hybrid")
async def bundle_hybrid(
    request: HybridRequest, config: ZapperConfig = Depends(get_config)
) -> BundleBody:
    """Compose a hybrid bundle from caller-supplied estimates."""
    try:
        bundle = compose_hybrid(
            request.input_token,
            request.vault,
            int(request.amount_in),
            request.route.to_route(),
            strategy=request.strategy,
            expected_swap_output=_optional_int(request.expected_swap_output),
            swap_amount=_optional_int(request.swap_amount),
            mint_amount=_optional_int(request.mint_amount),
            final_output_estimate=_optional_int(request.final_output_estimate),
            slippage_bps=request.slippage,
            receiver=request.receiver,
            config=config.composer,
        )
    except ValueError as err:
        raise _rejected("hybrid", err) from err
    return _bundle_body(bundle, request.from_address, config)


@router.post("/quotes/price-impact")
async def quote_price_impact(request: PriceImpactRequest) -> PriceImpactBody:
    """Percent of USD value lost between input and output; null when unknown."""
    return PriceImpactBody(price_impact=price_impact(request.input_usd, request.output_usd))


@router.post("/quotes/zap-in")
async def quote_zap_in(
    request: ZapInRequest, service: ZapService = Depends(get_zap_service)
) -> QuoteBody:
    """Quote a token -> vault zap.

    Error Handling:
        - Composition error: 400 with the message
        - Network or pool-math failure: 200 with a null quote
    """
    return await _run_quote(
        "zap-in",
        service.quote_zap_in(
            request.token_in,
            request.vault,
            int(request.amount_in),
            from_address=request.from_address,
            underlying=request.underlying,
            slippage_bps=request.slippage,
            receiver=request.receiver,
        ),
    )


@router.post("/quotes/zap-out")
async def quote_zap_out(
    request: ZapOutRequest, service: ZapService = Depends(get_zap_service)
) -> QuoteBody:
    return await _run_quote(
        "zap-out",
        service.quote_zap_out(
            request.vault,
            request.token_out,
            int(request.shares),
            from_address=request.from_address,
            underlying=request.underlying,
            slippage_bps=request.slippage,
            receiver=request.receiver,
        ),
    )


@router.post("/quotes/vault-to-vault")
async def quote_vault_to_vault(
    request: VaultToVaultRequest, service: ZapService = Depends(get_zap_service)
) -> QuoteBody:
    return await _run_quote(
        "vault-to-vault",
        service.quote_vault_to_vault(
            request.source_vault,
            request.target_vault,
            int(request.shares),
            from_address=request.from_address,
            source_underlying=request.source_underlying,
            target_underlying=request.target_underlying,
            slippage_bps=request.slippage,
            receiver=request.receiver,
        ),
    )


@router.post("/quotes/hybrid")
async def quote_hybrid(
    request: HybridRequest, service: ZapService = Depends(get_zap_service)
) -> QuoteBody:
    """Quote a hybrid zap; the swap/mint split is estimated from live pool state."""
    return await _run_quote(
        "hybrid",
        service.quote_hybrid(
            request.input_token,
            request.vault,
            int(request.amount_in),
            request.route.to_route(),
            from_address=request.from_address,
            crypto=request.crypto_pool,
            precisions=request.route.precisions,
            slippage_bps=request.slippage,
            receiver=request.receiver,
        ),
    )


@router.post("/simulate")
async def simulate(
    request: SimulationRequest, client: SimulationClient = Depends(get_simulation_client)
) -> dict[str, Any]:
    """Preflight a router transaction.

    Always 200: the body says whether the transaction would revert or the
    backend could not be reached (retryable).
    """
    if request.input_token is not None:
        result: SimulationResult = await client.simulate_funded(
            from_address=request.from_address,
            to=request.to,
            data=request.data,
            input_token=request.input_token,
            value=int(request.value),
            gas=request.gas,
            spender=request.spender,
            balance_slot_index=request.balance_slot,
            allowance_slot_index=request.allowance_slot,
            layout=request.layout,
        )
    else:
        result = await client.simulate(
            from_address=request.from_address,
            to=request.to,
            data=request.data,
            value=int(request.value),
            gas=request.gas,
        )
    return {
        "success": result.success,
        "reverted": result.reverted,
        "gasUsed": result.gas_used,
        "revertReason": result.revert_reason,
        "retryable": result.retryable,
        "simulationId": result.simulation_id,
    }
