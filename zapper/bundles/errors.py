"""Bundle composition errors.

All derive from ValueError: they describe requests that can never produce a
valid bundle, so retrying them is pointless.
"""


class BundleCompositionError(ValueError):
    """Base class for errors raised while composing a bundle."""

    pass


class SelfZapError(BundleCompositionError):
    """Source and target vault are the same contract."""

    def __init__(self, vault: str) -> None:
        self.vault = vault
        super().__init__("Cannot zap from a vault to itself")


class UnsupportedPairError(BundleCompositionError):
    """No action template exists for the requested token pair."""

    pass


class InvalidReferenceError(BundleCompositionError):
    """A dynamic amount points at its own action or a later one."""

    def __init__(self, action_index: int, ref_index: int) -> None:
        self.action_index = action_index
        self.ref_index = ref_index
        super().__init__(
            f"Action {action_index} references output of action {ref_index}; "
            "references must point to an earlier action"
        )


class MissingOutputEstimateError(BundleCompositionError):
    """Extensively chained bundle composed without a final-output estimate."""

    pass


class InvalidSlippageError(BundleCompositionError):
    """Slippage outside the accepted basis-point range."""

    pass
