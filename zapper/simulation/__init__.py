"""Preflight simulation of router transactions."""

from .client import SimulationClient, SimulationResult, extract_revert_reason

__all__ = ["SimulationClient", "SimulationResult", "extract_revert_reason"]
