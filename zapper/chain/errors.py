"""Contract-read errors."""


class RpcError(Exception):
    """Base class for JSON-RPC failures."""

    retryable = False


class RpcTransportError(RpcError):
    """The RPC endpoint could not be reached or answered with a non-2xx status."""

    retryable = True


class ContractReadError(RpcError):
    """A contract call reverted or returned no data for a required field."""

    def __init__(self, address: str, field: str, detail: str | None = None) -> None:
        self.address = address
        self.field = field
        message = f"Failed to read {field} from {address}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
