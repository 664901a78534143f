"""Zap engine: off-chain quotes and bundles for single-transaction vault zaps."""

__version__ = "0.1.0"
__all__ = ["__version__"]
