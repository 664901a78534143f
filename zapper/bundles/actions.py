"""Pydantic models for bundle actions and their amounts.

An action amount is either a literal value fixed at composition time or a
reference to the output of an earlier action, resolved by the router when
the transaction executes:

    Amount = LiteralAmount(value) | DynamicRef(index)

Each action kind has a fixed argument model. A Bundle validates all of its
references once, on construction.
"""

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Discriminator, Field, Tag, model_validator

from zapper.constants import ENSO_ROUTER_EXECUTOR, MAX_ALLOWANCE
from zapper.models.types import Address, SlippageBps, Uint256

from .errors import InvalidReferenceError, MissingOutputEstimateError


class ActionKind(str, Enum):
    """Sub-action kinds the router can execute."""

    ROUTE = "route"
    MINT = "mint"
    EXCHANGE = "exchange"
    DEPOSIT = "deposit"
    REDEEM = "redeem"
    APPROVE = "approve"


class LiteralAmount(BaseModel):
    """Amount fixed when the bundle is composed."""

    kind: Literal["literal"] = "literal"
    value: Uint256

    model_config = {"frozen": True}

    @property
    def as_int(self) -> int:
        return int(self.value)


class DynamicRef(BaseModel):
    """Amount equal to whatever action `index` produced at execution time."""

    kind: Literal["ref"] = "ref"
    index: int = Field(ge=0)

    model_config = {"frozen": True}


def _get_amount_kind(v: dict[str, Any] | LiteralAmount | DynamicRef) -> str:
    """Discriminator function for Amount union type."""
    if isinstance(v, dict):
        return str(v.get("kind", "literal"))
    return v.kind


def _coerce_wire_amount(value: Any) -> Any:
    if isinstance(value, dict) and "useOutputOfCallAt" in value:
        return {"kind": "ref", "index": value["useOutputOfCallAt"]}
    if isinstance(value, (int, str)) and not isinstance(value, bool):
        return {"kind": "literal", "value": value}
    return value


Amount = Annotated[
    Annotated[LiteralAmount, Tag("literal")] | Annotated[DynamicRef, Tag("ref")],
    Discriminator(_get_amount_kind),
]


def literal(value: int | str) -> LiteralAmount:
    return LiteralAmount(value=value)


def ref(index: int) -> DynamicRef:
    return DynamicRef(index=index)


UNLIMITED = LiteralAmount(value=MAX_ALLOWANCE)

# Names of amount-typed fields across all argument models
_AMOUNT_FIELDS = ("amount_in", "amount", "dx")


class _ActionArgs(BaseModel):
    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _accept_wire_amounts(cls, data: Any) -> Any:
        # Accept {"useOutputOfCallAt": i} and bare literals for amount fields
        if not isinstance(data, dict):
            return data
        keys = set()
        for name in _AMOUNT_FIELDS:
            field = cls.model_fields.get(name)
            if field is not None:
                keys.add(name)
                if field.alias:
                    keys.add(field.alias)
        return {key: _coerce_wire_amount(val) if key in keys else val for key, val in data.items()}

    def amounts(self) -> list[LiteralAmount | DynamicRef]:
        """Every amount-typed argument of this action."""
        return [getattr(self, name) for name in _AMOUNT_FIELDS if name in type(self).model_fields]


class RouteArgs(_ActionArgs):
    """Aggregator-routed swap of token_in into token_out."""

    kind: Literal["route"] = "route"
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount_in: Amount = Field(alias="amountIn")
    slippage: SlippageBps = Field(default=100, description="Slippage tolerance in bps.")


class DepositArgs(_ActionArgs):
    """ERC-4626 deposit of the vault's asset."""

    kind: Literal["deposit"] = "deposit"
    token_in: Address = Field(alias="tokenIn", description="Underlying asset.")
    token_out: Address = Field(alias="tokenOut", description="Vault share token.")
    amount_in: Amount = Field(alias="amountIn")
    primary_address: Address = Field(alias="primaryAddress", description="Vault contract.")


class RedeemArgs(_ActionArgs):
    """ERC-4626 redemption of vault shares."""

    kind: Literal["redeem"] = "redeem"
    token_in: Address = Field(alias="tokenIn", description="Vault share token.")
    token_out: Address = Field(alias="tokenOut", description="Underlying asset.")
    amount_in: Amount = Field(alias="amountIn")
    primary_address: Address = Field(alias="primaryAddress", description="Vault contract.")


class ApproveArgs(_ActionArgs):
    """ERC-20 approval granted by the router."""

    kind: Literal["approve"] = "approve"
    token: Address
    spender: Address
    amount: Amount


class MintArgs(_ActionArgs):
    """Wrap or mint a derivative token from its base token.

    With is_lock set, the call is the three-argument derivative mint that
    returns the minted amount; otherwise it is a plain 1:1 wrapper mint.
    """

    kind: Literal["mint"] = "mint"
    address: Address = Field(description="Minting contract.")
    receiver: Address = Field(default=ENSO_ROUTER_EXECUTOR)
    amount: Amount
    is_lock: bool | None = Field(default=None, alias="isLock")


class ExchangeArgs(_ActionArgs):
    """Direct Curve pool exchange."""

    kind: Literal["exchange"] = "exchange"
    pool: Address
    i: int = Field(ge=0, le=1)
    j: int = Field(ge=0, le=1)
    dx: Amount
    min_dy: Uint256 = Field(alias="minDy")

    @model_validator(mode="after")
    def _distinct_coins(self) -> "ExchangeArgs":
        if self.i == self.j:
            raise ValueError(f"Exchange coin indices must differ, got i=j={self.i}")
        return self


ActionArgs = Annotated[
    RouteArgs | DepositArgs | RedeemArgs | ApproveArgs | MintArgs | ExchangeArgs,
    Field(discriminator="kind"),
]


class BundleAction(BaseModel):
    """One step of a bundle: a protocol identifier plus per-kind arguments."""

    protocol: str = Field(description="Protocol the router uses to execute this action.")
    args: ActionArgs

    model_config = {"populate_by_name": True}

    @property
    def kind(self) -> ActionKind:
        return ActionKind(self.args.kind)

    def amounts(self) -> list[LiteralAmount | DynamicRef]:
        return self.args.amounts()

    @property
    def is_dynamic(self) -> bool:
        """True if any amount of this action is resolved at execution time."""
        return any(isinstance(a, DynamicRef) for a in self.amounts())


def check_references(actions: list[BundleAction]) -> None:
    """Reject any dynamic amount that is not a strictly backward reference.

    Several later actions may reference the same earlier output.

    Raises:
        InvalidReferenceError: On a self or forward reference
    """
    for position, action in enumerate(actions):
        for amount in action.amounts():
            if isinstance(amount, DynamicRef) and amount.index >= position:
                raise InvalidReferenceError(position, amount.index)


class Bundle(BaseModel):
    """Ordered list of actions executed atomically by the router.

    Attributes:
        actions: Actions in execution order, addressed by 0-based index
        final_output_estimate: Precomputed final output handed to the router
            when it is told to skip its own quote
        skip_quote: Ask the router to bypass its quote/simulation pass
        routing_strategy: "router" (executor contract) or "delegate"
        receiver: Address receiving the final output, None for the sender
    """

    actions: list[BundleAction] = Field(default_factory=list)
    final_output_estimate: Uint256 | None = Field(default=None, alias="finalOutputEstimate")
    skip_quote: bool = Field(default=False, alias="skipQuote")
    routing_strategy: Literal["router", "delegate"] = Field(
        default="router", alias="routingStrategy"
    )
    receiver: Address | None = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def _validate(self) -> "Bundle":
        check_references(self.actions)
        if self.skip_quote and self.final_output_estimate is None:
            raise MissingOutputEstimateError(
                "Skipping the router quote requires a final output estimate"
            )
        return self

    def __len__(self) -> int:
        return len(self.actions)

    def __getitem__(self, index: int) -> BundleAction:
        return self.actions[index]

    @property
    def dynamic_action_count(self) -> int:
        return sum(1 for action in self.actions if action.is_dynamic)

    def consumers_of(self, index: int) -> list[int]:
        """Indices of the actions consuming the output of action `index`."""
        return [
            position
            for position, action in enumerate(self.actions)
            if any(isinstance(a, DynamicRef) and a.index == index for a in action.amounts())
        ]
