"""Aggregator wire encoding for bundles.

The router accepts an ordered JSON array of {protocol, action, args}
objects. Literal amounts are decimal strings; dynamic amounts are
{"useOutputOfCallAt": index}. Mint and exchange have no native router
action and are sent as generic contract calls.
"""

from __future__ import annotations

from typing import Any

from zapper.constants import EXCHANGE_ABI, LOCKING_MINT_ABI, MINT_ABI

from .actions import (
    ActionKind,
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
)

# Router action used for arbitrary contract calls
CALL_ACTION = "call"


def encode_amount(amount: LiteralAmount | DynamicRef) -> str | dict[str, int]:
    if isinstance(amount, DynamicRef):
        return {"useOutputOfCallAt": amount.index}
    return amount.value


def _encode_args(args: Any) -> tuple[str, dict[str, Any]]:
    if isinstance(args, RouteArgs):
        return ActionKind.ROUTE.value, {
            "tokenIn": args.token_in,
            "tokenOut": args.token_out,
            "amountIn": encode_amount(args.amount_in),
            "slippage": str(args.slippage),
        }

    if isinstance(args, (DepositArgs, RedeemArgs)):
        return args.kind, {
            "tokenIn": args.token_in,
            "tokenOut": args.token_out,
            "amountIn": encode_amount(args.amount_in),
            "primaryAddress": args.primary_address,
        }

    if isinstance(args, ApproveArgs):
        return ActionKind.APPROVE.value, {
            "token": args.token,
            "spender": args.spender,
            "amount": encode_amount(args.amount),
        }

    if isinstance(args, MintArgs):
        call_args: list[Any] = [args.receiver, encode_amount(args.amount)]
        abi = MINT_ABI
        if args.is_lock is not None:
            call_args.append(args.is_lock)
            abi = LOCKING_MINT_ABI
        return CALL_ACTION, {
            "address": args.address,
            "method": "mint",
            "abi": abi,
            "args": call_args,
        }

    if isinstance(args, ExchangeArgs):
        return CALL_ACTION, {
            "address": args.pool,
            "method": "exchange",
            "abi": EXCHANGE_ABI,
            "args": [args.i, args.j, encode_amount(args.dx), args.min_dy],
        }

    raise TypeError(f"Unknown action arguments: {type(args).__name__}")


def encode_action(action: BundleAction) -> dict[str, Any]:
    """Render one action as a router request object."""
    name, args = _encode_args(action.args)
    return {"protocol": action.protocol, "action": name, "args": args}


def encode_bundle(bundle: Bundle) -> list[dict[str, Any]]:
    """Render a bundle as the router's request body."""
    return [encode_action(action) for action in bundle.actions]


def bundle_query_params(bundle: Bundle, from_address: str, chain_id: int) -> dict[str, str]:
    """Query parameters accompanying a bundle request.

    When the bundle skips the router's quote pass, the precomputed final
    output estimate travels with it.
    """
    params = {
        "chainId": str(chain_id),
        "fromAddress": from_address,
        "routingStrategy": bundle.routing_strategy,
    }
    if bundle.receiver is not None:
        params["receiver"] = bundle.receiver
    if bundle.skip_quote:
        params["skipQuote"] = "true"
        params["amountOut"] = str(bundle.final_output_estimate)
    return params
