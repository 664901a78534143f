"""Bundle composition: action models, flow templates, wire encoding."""

from .errors import (
    BundleCompositionError,
    InvalidReferenceError,
    InvalidSlippageError,
    MissingOutputEstimateError,
    SelfZapError,
    UnsupportedPairError,
)

from .actions import (
    UNLIMITED,
    ActionKind,
    Amount,
    Bundle,
    BundleAction,
    DynamicRef,
    LiteralAmount,
    check_references,
    literal,
    ref,
)
from .composer import (
    FlowKind,
    HybridRoute,
    HybridStrategy,
    compose_hybrid,
    compose_vault_to_vault,
    compose_zap_in,
    compose_zap_out,
)
from .encoding import bundle_query_params, encode_action, encode_amount, encode_bundle
from .slippage import apply_slippage_buffer, calculate_min_dy, validate_slippage

__all__ = [
    # Errors
    "BundleCompositionError",
    "InvalidReferenceError",
    "InvalidSlippageError",
    "MissingOutputEstimateError",
    "SelfZapError",
    "UnsupportedPairError",
    # Models
    "UNLIMITED",
    "ActionKind",
    "Amount",
    "Bundle",
    "BundleAction",
    "DynamicRef",
    "LiteralAmount",
    "check_references",
    "literal",
    "ref",
    # Composer
    "FlowKind",
    "HybridRoute",
    "HybridStrategy",
    "compose_hybrid",
    "compose_vault_to_vault",
    "compose_zap_in",
    "compose_zap_out",
    # Encoding
    "bundle_query_params",
    "encode_action",
    "encode_amount",
    "encode_bundle",
    # Slippage
    "apply_slippage_buffer",
    "calculate_min_dy",
    "validate_slippage",
]
