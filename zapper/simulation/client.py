"""Preflight transaction simulation.

Posts a router transaction to a Tenderly-style simulation backend, with
optional storage overrides so a sender can be simulated without holding the
input token. Failures never raise: the result says whether the transaction
would revert or the backend could not be used at all.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from zapper.chain.storage import StorageLayout, build_funding_overrides
from zapper.constants import ENSO_ROUTER
from zapper.models.types import normalize_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class SimulationResult:
    """Outcome of a simulation.

    Attributes:
        success: The transaction executed without reverting
        reverted: The backend ran the transaction and it reverted
        gas_used: Gas consumed, when reported
        revert_reason: Revert reason or backend error message
        retryable: The backend was unreachable or failed; the transaction
            itself was not judged
        simulation_id: Backend identifier of the stored simulation

    Examples:
        result = SimulationResult.ok(gas_used=412000)
        assert result.success and not result.retryable

        result = SimulationResult.unreachable("timeout")
        assert not result.success and not result.reverted and result.retryable
    """

    success: bool
    reverted: bool = False
    gas_used: int | None = None
    revert_reason: str | None = None
    retryable: bool = False
    simulation_id: str | None = None

    @classmethod
    def ok(cls, gas_used: int | None = None, simulation_id: str | None = None) -> SimulationResult:
        return cls(success=True, gas_used=gas_used, simulation_id=simulation_id)

    @classmethod
    def revert(
        cls,
        reason: str | None,
        gas_used: int | None = None,
        simulation_id: str | None = None,
    ) -> SimulationResult:
        return cls(
            success=False,
            reverted=True,
            gas_used=gas_used,
            revert_reason=reason,
            simulation_id=simulation_id,
        )

    @classmethod
    def unreachable(cls, detail: str) -> SimulationResult:
        return cls(success=False, revert_reason=detail, retryable=True)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _parse_gas(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def extract_revert_reason(payload: dict[str, Any]) -> str | None:
    """Best-effort revert reason from a simulation payload."""
    simulation = _as_dict(payload.get("simulation"))
    transaction = _as_dict(payload.get("transaction"))
    call_trace = _as_dict(_as_dict(transaction.get("transaction_info")).get("call_trace"))
    candidates = (
        simulation.get("error_message"),
        transaction.get("error_message"),
        call_trace.get("error_reason"),
        simulation.get("error"),
        _as_dict(payload.get("error")).get("message"),
    )
    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


class SimulationClient:
    """Async client for the simulation backend."""

    def __init__(
        self,
        url: str,
        *,
        access_key: str | None = None,
        network_id: int = 1,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._access_key = access_key
        self._network_id = network_id
        self._timeout = timeout
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._access_key:
            headers["X-Access-Key"] = self._access_key
        return headers

    async def simulate(
        self,
        *,
        from_address: str,
        to: str,
        data: str,
        value: int = 0,
        gas: int | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> SimulationResult:
        """Simulate one transaction.

        Returns:
            SimulationResult; transport failures and non-2xx responses come
            back as retryable results rather than exceptions
        """
        request: dict[str, Any] = {
            "network_id": str(self._network_id),
            "from": from_address,
            "to": to,
            "input": data,
            "value": str(value),
            "simulation_type": "full",
            "save": False,
        }
        if gas is not None:
            request["gas"] = gas
        if overrides:
            request["overrides"] = overrides

        try:
            if self._client is not None:
                response = await self._client.post(self._url, json=request, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._url, json=request, headers=self._headers())
        except httpx.HTTPError as err:
            logger.warning("simulation_unreachable", to=to, error=str(err))
            return SimulationResult.unreachable(str(err) or type(err).__name__)

        try:
            payload = _as_dict(response.json())
        except ValueError:
            payload = {}

        reason = extract_revert_reason(payload)
        if response.status_code >= 400:
            logger.warning("simulation_backend_error", status=response.status_code, error=reason)
            return SimulationResult.unreachable(
                reason or f"Simulation backend returned HTTP {response.status_code}"
            )

        simulation = _as_dict(payload.get("simulation")) or _as_dict(payload.get("transaction"))
        transaction = _as_dict(payload.get("transaction"))
        gas_used = _parse_gas(simulation.get("gas_used", transaction.get("gas_used")))
        simulation_id = simulation.get("id")

        if simulation.get("status") is False:
            logger.info("simulation_reverted", to=to, reason=reason, gas_used=gas_used)
            return SimulationResult.revert(reason, gas_used=gas_used, simulation_id=simulation_id)

        return SimulationResult.ok(gas_used=gas_used, simulation_id=simulation_id)

    async def simulate_funded(
        self,
        *,
        from_address: str,
        to: str,
        data: str,
        input_token: str,
        value: int = 0,
        gas: int | None = None,
        spender: str = ENSO_ROUTER,
        balance_slot_index: int = 0,
        allowance_slot_index: int = 1,
        layout: StorageLayout = StorageLayout.SOLIDITY,
    ) -> SimulationResult:
        """Simulate with the sender pre-funded and pre-approved in `input_token`.

        The slot indices and layout must match the token contract's storage.
        """
        overrides = build_funding_overrides(
            input_token,
            normalize_address(from_address, validate=True),
            spender,
            balance_slot_index=balance_slot_index,
            allowance_slot_index=allowance_slot_index,
            layout=layout,
        )
        return await self.simulate(
            from_address=from_address,
            to=to,
            data=data,
            value=value,
            gas=gas,
            overrides=overrides,
        )
