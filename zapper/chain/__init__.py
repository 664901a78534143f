"""On-chain reads: web3 pool snapshots, vault previews, storage slots."""

from .errors import ContractReadError, RpcError, RpcTransportError
from .reader import PoolSnapshotReader, create_web3
from .storage import (
    StorageLayout,
    allowance_slot,
    balance_slot,
    build_funding_overrides,
    storage_value,
)

__all__ = [
    "ContractReadError",
    "PoolSnapshotReader",
    "RpcError",
    "RpcTransportError",
    "StorageLayout",
    "allowance_slot",
    "balance_slot",
    "build_funding_overrides",
    "create_web3",
    "storage_value",
]
