"""Bundle composer: zap flow parameters in, ordered action list out.

Every template chains amounts with dynamic references wherever the router
supports them, so a bundle stays correct when the router's execution path
returns a different amount than any off-chain estimate. Literal amounts
appear only where the amount is known exactly (the caller's own input) or
where no reference is possible (split legs, exchange min_dy).

Flow templates:
    zap-in:         route(token -> asset), deposit(Ref 0)
    zap-out:        redeem(shares), route(Ref 0 -> token)
    vault-to-vault: redeem(shares), [route(Ref 0)], deposit(Ref last)
    hybrid:         [route(token -> base)], wrap/mint, exchange, approve, deposit

Composition is pure and synchronous. Invalid requests raise a
BundleCompositionError subclass before any action is built.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from zapper.config import DEFAULT_COMPOSER_CONFIG, ComposerConfig
from zapper.models.types import normalize_address, same_address
from zapper.registry import underlying_of

from .actions import (
    UNLIMITED,
    ApproveArgs,
    Bundle,
    BundleAction,
    DepositArgs,
    DynamicRef,
    ExchangeArgs,
    LiteralAmount,
    MintArgs,
    RedeemArgs,
    RouteArgs,
    literal,
    ref,
)
from .errors import (
    BundleCompositionError,
    MissingOutputEstimateError,
    SelfZapError,
    UnsupportedPairError,
)
from .slippage import apply_slippage_buffer, calculate_min_dy, validate_slippage

logger = structlog.get_logger()

AmountArg = LiteralAmount | DynamicRef


class FlowKind(str, Enum):
    """Supported zap flows."""

    ZAP_IN = "zap-in"
    ZAP_OUT = "zap-out"
    VAULT_TO_VAULT = "vault-to-vault"
    HYBRID = "hybrid"


class HybridStrategy(str, Enum):
    """How the base token becomes the vault's derivative asset.

    SWAP: wrap base 1:1, exchange the wrapper for the derivative in a pool
    MINT: mint the derivative 1:1 directly from base
    SPLIT: swap part (up to the pool's peg point) and mint the rest
    """

    SWAP = "swap"
    MINT = "mint"
    SPLIT = "split"


@dataclass(frozen=True)
class HybridRoute:
    """Contracts involved in a wrap+swap path into a derivative vault asset.

    Attributes:
        base_token: Token the route starts from (e.g. CVX)
        wrapper: 1:1 wrapper of base_token accepted by the pool
        derivative: Token the pool pays out and the vault accepts
        pool: Curve pool exchanging wrapper for derivative
        i: Pool index of the wrapper
        j: Pool index of the derivative
        minter: Contract minting derivative 1:1 from base_token, if any
        swap_protocol: Display name of the swap leg
        mint_protocol: Display name of the mint leg
    """

    base_token: str
    wrapper: str
    derivative: str
    pool: str
    i: int = 0
    j: int = 1
    minter: str | None = None
    swap_protocol: str = "curve"
    mint_protocol: str = "mint"


# --- Action builders ---


def _route(token_in: str, token_out: str, amount: AmountArg, slippage_bps: int) -> BundleAction:
    return BundleAction(
        protocol="enso",
        args=RouteArgs(
            token_in=token_in, token_out=token_out, amount_in=amount, slippage=slippage_bps
        ),
    )


def _deposit(asset: str, vault: str, amount: AmountArg) -> BundleAction:
    return BundleAction(
        protocol="erc4626",
        args=DepositArgs(token_in=asset, token_out=vault, amount_in=amount, primary_address=vault),
    )


def _redeem(vault: str, asset: str, amount: AmountArg) -> BundleAction:
    return BundleAction(
        protocol="erc4626",
        args=RedeemArgs(token_in=vault, token_out=asset, amount_in=amount, primary_address=vault),
    )


def _approve(token: str, spender: str, amount: AmountArg) -> BundleAction:
    return BundleAction(
        protocol="erc20", args=ApproveArgs(token=token, spender=spender, amount=amount)
    )


def _mint(contract: str, amount: AmountArg, is_lock: bool | None = None) -> BundleAction:
    return BundleAction(
        protocol="enso", args=MintArgs(address=contract, amount=amount, is_lock=is_lock)
    )


def _exchange(pool: str, i: int, j: int, dx: AmountArg, min_dy: int) -> BundleAction:
    return BundleAction(
        protocol="enso", args=ExchangeArgs(pool=pool, i=i, j=j, dx=dx, min_dy=min_dy)
    )


# --- Finalization ---


def _finalize(
    flow: FlowKind,
    actions: list[BundleAction],
    *,
    receiver: str | None,
    final_output_estimate: int | None,
    config: ComposerConfig,
) -> Bundle:
    """Attach the router flags and build (and validate) the bundle.

    Raises:
        MissingOutputEstimateError: If chaining is extensive and no estimate
            was supplied
    """
    dynamic_count = sum(1 for action in actions if action.is_dynamic)
    extensive = dynamic_count >= config.extensive_chaining_threshold

    if extensive and final_output_estimate is None:
        raise MissingOutputEstimateError(
            f"Bundle chains {dynamic_count} dynamic amounts; "
            "a final output estimate is required to skip the router quote"
        )

    bundle = Bundle(
        actions=actions,
        final_output_estimate=final_output_estimate,
        skip_quote=extensive,
        receiver=receiver,
    )
    logger.debug(
        "bundle_composed",
        flow=flow.value,
        action_count=len(actions),
        dynamic_count=dynamic_count,
        skip_quote=extensive,
    )
    return bundle


def _positive(amount: int, what: str) -> int:
    if amount <= 0:
        raise BundleCompositionError(f"{what} must be positive, got {amount}")
    return amount


# --- Flows ---


def compose_zap_in(
    token_in: str,
    vault: str,
    amount_in: int,
    *,
    underlying: str | None = None,
    slippage_bps: int | str | None = None,
    receiver: str | None = None,
    config: ComposerConfig = DEFAULT_COMPOSER_CONFIG,
) -> Bundle:
    """Token -> vault shares: route into the vault asset, deposit the route's output.

    Raises:
        UnsupportedPairError: If token_in is the vault itself or its asset
    """
    _positive(amount_in, "Zap-in amount")
    slippage = validate_slippage(slippage_bps)
    token_in = normalize_address(token_in, validate=True)
    vault = normalize_address(vault, validate=True)
    asset = normalize_address(underlying, validate=True) if underlying else underlying_of(vault)

    if same_address(token_in, vault):
        raise UnsupportedPairError("Cannot zap vault shares into the same vault")
    if same_address(token_in, asset):
        raise UnsupportedPairError("Input token is the vault asset; deposit directly instead")

    actions = [
        _route(token_in, asset, literal(amount_in), slippage),
        _deposit(asset, vault, ref(0)),
    ]
    return _finalize(
        FlowKind.ZAP_IN, actions, receiver=receiver, final_output_estimate=None, config=config
    )


def compose_zap_out(
    vault: str,
    token_out: str,
    shares: int,
    *,
    underlying: str | None = None,
    slippage_bps: int | str | None = None,
    receiver: str | None = None,
    config: ComposerConfig = DEFAULT_COMPOSER_CONFIG,
) -> Bundle:
    """Vault shares -> token: redeem, then route the redeemed assets.

    Raises:
        UnsupportedPairError: If token_out is the vault itself or its asset
    """
    _positive(shares, "Share amount")
    slippage = validate_slippage(slippage_bps)
    vault = normalize_address(vault, validate=True)
    token_out = normalize_address(token_out, validate=True)
    asset = normalize_address(underlying, validate=True) if underlying else underlying_of(vault)

    if same_address(token_out, vault):
        raise UnsupportedPairError("Cannot zap vault shares out into the same vault")
    if same_address(token_out, asset):
        raise UnsupportedPairError("Output token is the vault asset; redeem directly instead")

    actions = [
        _redeem(vault, asset, literal(shares)),
        _route(asset, token_out, ref(0), slippage),
    ]
    return _finalize(
        FlowKind.ZAP_OUT, actions, receiver=receiver, final_output_estimate=None, config=config
    )


def compose_vault_to_vault(
    source_vault: str,
    target_vault: str,
    shares: int,
    *,
    source_underlying: str | None = None,
    target_underlying: str | None = None,
    slippage_bps: int | str | None = None,
    receiver: str | None = None,
    config: ComposerConfig = DEFAULT_COMPOSER_CONFIG,
) -> Bundle:
    """Move a position between vaults in one transaction.

    Same underlying: redeem then deposit the redeemed amount. Different
    underlying: a route step in between, each step consuming the previous
    step's output.

    Raises:
        SelfZapError: If source and target are the same vault
    """
    if same_address(source_vault, target_vault):
        raise SelfZapError(normalize_address(source_vault))

    _positive(shares, "Share amount")
    slippage = validate_slippage(slippage_bps)
    source = normalize_address(source_vault, validate=True)
    target = normalize_address(target_vault, validate=True)
    source_asset = (
        normalize_address(source_underlying, validate=True)
        if source_underlying
        else underlying_of(source)
    )
    target_asset = (
        normalize_address(target_underlying, validate=True)
        if target_underlying
        else underlying_of(target)
    )

    actions = [_redeem(source, source_asset, literal(shares))]
    if not same_address(source_asset, target_asset):
        actions.append(_route(source_asset, target_asset, ref(0), slippage))
    actions.append(_deposit(target_asset, target, ref(len(actions) - 1)))

    return _finalize(
        FlowKind.VAULT_TO_VAULT,
        actions,
        receiver=receiver,
        final_output_estimate=None,
        config=config,
    )


def compose_hybrid(
    input_token: str,
    vault: str,
    amount_in: int,
    route: HybridRoute,
    *,
    strategy: HybridStrategy = HybridStrategy.SWAP,
    expected_swap_output: int | None = None,
    swap_amount: int | None = None,
    mint_amount: int | None = None,
    final_output_estimate: int | None = None,
    slippage_bps: int | str | None = None,
    receiver: str | None = None,
    config: ComposerConfig = DEFAULT_COMPOSER_CONFIG,
) -> Bundle:
    """Token -> derivative vault through a wrap+swap and/or direct mint path.

    When input_token already is route.base_token the route leg is skipped
    and every amount up to the exchange is the caller's literal input.
    Otherwise the route's output is referenced by every following step, and
    the final approval and deposit both reference the exchange output.

    Args:
        input_token: Token the user spends
        vault: Target vault, whose asset is route.derivative
        amount_in: Amount of input_token
        route: Contracts of the hybrid path
        strategy: SWAP, MINT or SPLIT
        expected_swap_output: Estimated exchange output, used for min_dy
            (required for SWAP and SPLIT)
        swap_amount: Base amount sent through the pool (SPLIT only)
        mint_amount: Base amount minted directly (SPLIT only)
        final_output_estimate: Expected vault shares; required when the
            bundle chains extensively
        slippage_bps: Slippage for the route leg and exchange min_dy
        receiver: Final share receiver, None for the sender
        config: Composer behaviour

    Raises:
        UnsupportedPairError: If the strategy needs a contract the route lacks
        MissingOutputEstimateError: If a required estimate is missing
        BundleCompositionError: On non-positive amounts or a zero swap estimate
    """
    _positive(amount_in, "Hybrid amount")
    slippage = validate_slippage(slippage_bps)
    input_token = normalize_address(input_token, validate=True)
    vault = normalize_address(vault, validate=True)
    base = normalize_address(route.base_token, validate=True)
    wrapper = normalize_address(route.wrapper, validate=True)
    derivative = normalize_address(route.derivative, validate=True)
    pool = normalize_address(route.pool, validate=True)
    minter = normalize_address(route.minter, validate=True) if route.minter else None

    if same_address(input_token, derivative):
        raise UnsupportedPairError("Input token is the vault asset; deposit directly instead")

    # A split with an empty leg is one of the single-leg strategies
    if strategy == HybridStrategy.SPLIT:
        if swap_amount is None or mint_amount is None:
            raise BundleCompositionError("Split strategy requires swap_amount and mint_amount")
        if mint_amount == 0:
            strategy = HybridStrategy.SWAP
        elif swap_amount == 0:
            strategy = HybridStrategy.MINT

    if strategy in (HybridStrategy.MINT, HybridStrategy.SPLIT) and minter is None:
        raise UnsupportedPairError(f"No direct minter configured for {derivative}")
    min_dy = 0
    if strategy in (HybridStrategy.SWAP, HybridStrategy.SPLIT):
        if expected_swap_output is None:
            raise MissingOutputEstimateError("Exchange min_dy requires an expected swap output")
        min_dy = calculate_min_dy(expected_swap_output, slippage)

    input_is_base = same_address(input_token, base)
    actions: list[BundleAction] = []

    # Amount of base available to the following steps
    if input_is_base:
        base_amount: AmountArg = literal(amount_in)
    else:
        actions.append(_route(input_token, base, literal(amount_in), slippage))
        base_amount = ref(0)

    # Literal approvals are unbounded; referenced approvals match the spend
    def approval(amount: AmountArg) -> AmountArg:
        return amount if isinstance(amount, DynamicRef) else UNLIMITED

    if strategy == HybridStrategy.SWAP:
        actions.append(_approve(base, wrapper, approval(base_amount)))
        actions.append(_mint(wrapper, base_amount))
        actions.append(_approve(wrapper, pool, approval(base_amount)))
        actions.append(_exchange(pool, route.i, route.j, base_amount, min_dy))
        output = ref(len(actions) - 1)

    elif strategy == HybridStrategy.MINT:
        actions.append(_approve(base, minter, approval(base_amount)))
        actions.append(_mint(minter, base_amount, is_lock=True))  # locked mint is fee-free, 1:1
        output = ref(len(actions) - 1)

    else:
        _positive(swap_amount, "Split swap amount")
        _positive(mint_amount, "Split mint amount")
        if input_is_base and swap_amount + mint_amount > amount_in:
            raise BundleCompositionError(
                f"Split legs ({swap_amount} + {mint_amount}) exceed input {amount_in}"
            )
        swap_leg = literal(swap_amount)
        mint_leg = literal(mint_amount)
        actions.append(_approve(base, wrapper, UNLIMITED))
        actions.append(_mint(wrapper, swap_leg))
        actions.append(_approve(wrapper, pool, UNLIMITED))
        actions.append(_exchange(pool, route.i, route.j, swap_leg, min_dy))
        actions.append(_approve(base, minter, UNLIMITED))
        actions.append(_mint(minter, mint_leg, is_lock=True))
        # Neither leg can be referenced as a total; deposit a buffered sum
        output = literal(apply_slippage_buffer(expected_swap_output + mint_amount, slippage))

    actions.append(_approve(derivative, vault, approval(output)))
    actions.append(_deposit(derivative, vault, output))

    return _finalize(
        FlowKind.HYBRID,
        actions,
        receiver=receiver,
        final_output_estimate=final_output_estimate,
        config=config,
    )
