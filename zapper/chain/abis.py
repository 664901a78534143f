"""Minimal ABIs for the view functions the reader calls."""

from typing import Any


def _view(name: str, *inputs: str, output: str = "uint256") -> dict[str, Any]:
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": f"arg{n}", "type": kind} for n, kind in enumerate(inputs)],
        "outputs": [{"name": "", "type": output}],
    }


# StableSwap-NG; A_precise and offpeg_fee_multiplier are missing on older pools
STABLE_POOL_ABI = [
    _view("balances", "uint256"),
    _view("A"),
    _view("A_precise"),
    _view("fee"),
    _view("offpeg_fee_multiplier"),
    _view("get_dy", "int128", "int128", "uint256"),
]

# CryptoSwap v2 (two-coin); coin indices are uint256
CRYPTO_POOL_ABI = [
    _view("balances", "uint256"),
    _view("A"),
    _view("gamma"),
    _view("D"),
    _view("mid_fee"),
    _view("out_fee"),
    _view("fee_gamma"),
    _view("price_scale"),
    _view("get_dy", "uint256", "uint256", "uint256"),
]

ERC4626_ABI = [
    _view("previewDeposit", "uint256"),
]
