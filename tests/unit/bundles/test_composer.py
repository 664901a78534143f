"""Tests for the bundle composer flow templates."""

import pytest

from zapper.bundles import (
    UNLIMITED,
    ActionKind,
    BundleCompositionError,
    DynamicRef,
    HybridStrategy,
    InvalidSlippageError,
    LiteralAmount,
    MissingOutputEstimateError,
    SelfZapError,
    UnsupportedPairError,
    compose_hybrid,
    compose_vault_to_vault,
    compose_zap_in,
    compose_zap_out,
    literal,
    ref,
)
from zapper.config import ComposerConfig
from tests.helpers import (
    CRV,
    CVX,
    CVXCRV,
    DERIVATIVE,
    DERIVATIVE_VAULT,
    MINTER,
    ONE,
    OTHER_VAULT,
    POOL,
    USER,
    WETH,
    WRAPPER,
    YCVXCRV,
    YSCVXCRV,
    make_hybrid_route,
)


def kinds(bundle) -> list[ActionKind]:
    return [action.kind for action in bundle.actions]


class TestZapIn:
    """Token -> vault."""

    def test_two_actions_with_reference(self):
        bundle = compose_zap_in(WETH, YCVXCRV, ONE)
        assert kinds(bundle) == [ActionKind.ROUTE, ActionKind.DEPOSIT]
        assert bundle[0].args.amount_in == literal(ONE)
        assert bundle[1].args.amount_in == DynamicRef(index=0)

    def test_routes_into_registered_asset(self):
        bundle = compose_zap_in(WETH, YCVXCRV, ONE)
        assert bundle[0].args.token_out == CVXCRV
        assert bundle[1].args.token_in == CVXCRV
        assert bundle[1].args.primary_address == YCVXCRV

    def test_explicit_underlying_for_unregistered_vault(self):
        bundle = compose_zap_in(WETH, OTHER_VAULT, ONE, underlying=CRV)
        assert bundle[0].args.token_out == CRV

    def test_addresses_normalized(self):
        bundle = compose_zap_in(WETH.upper().replace("0X", "0x"), YCVXCRV, ONE)
        assert bundle[0].args.token_in == WETH

    def test_no_skip_quote(self):
        bundle = compose_zap_in(WETH, YCVXCRV, ONE)
        assert bundle.skip_quote is False
        assert bundle.final_output_estimate is None

    def test_receiver_and_slippage_carried(self):
        bundle = compose_zap_in(WETH, YCVXCRV, ONE, slippage_bps=50, receiver=USER)
        assert bundle.receiver == USER
        assert bundle[0].args.slippage == 50

    def test_vault_as_input_rejected(self):
        with pytest.raises(UnsupportedPairError):
            compose_zap_in(YCVXCRV, YCVXCRV, ONE)

    def test_asset_as_input_rejected(self):
        with pytest.raises(UnsupportedPairError, match="deposit directly"):
            compose_zap_in(CVXCRV, YCVXCRV, ONE)

    def test_zero_amount_rejected(self):
        with pytest.raises(BundleCompositionError):
            compose_zap_in(WETH, YCVXCRV, 0)

    def test_invalid_slippage_rejected(self):
        with pytest.raises(InvalidSlippageError):
            compose_zap_in(WETH, YCVXCRV, ONE, slippage_bps=9000)

    def test_invalid_address_rejected(self):
        with pytest.raises(ValueError):
            compose_zap_in("0x1234", YCVXCRV, ONE)



class TestZapOut:
    """Vault -> token."""

    def test_redeem_then_route_reference(self):
        bundle = compose_zap_out(YCVXCRV, WETH, 5 * ONE)
        assert kinds(bundle) == [ActionKind.REDEEM, ActionKind.ROUTE]
        assert bundle[0].args.amount_in == literal(5 * ONE)
        assert bundle[1].args.amount_in == ref(0)
        assert bundle[1].args.token_in == CVXCRV
        assert bundle[1].args.token_out == WETH

    def test_asset_as_output_rejected(self):
        with pytest.raises(UnsupportedPairError):
            compose_zap_out(YCVXCRV, CVXCRV, ONE)

    def test_vault_as_output_rejected(self):
        with pytest.raises(UnsupportedPairError):
            compose_zap_out(YCVXCRV, YCVXCRV, ONE)


class TestVaultToVault:
    @pytest.mark.parametrize("shares", [0, 1, ONE, 10**30])
    def test_self_zap_rejected_for_any_amount(self, shares):
        with pytest.raises(SelfZapError, match="Cannot zap from a vault to itself"):
            compose_vault_to_vault(YCVXCRV, YCVXCRV, shares)

    def test_self_zap_is_case_insensitive(self):
        with pytest.raises(SelfZapError):
            compose_vault_to_vault(YCVXCRV, "0x" + YCVXCRV[2:].upper(), ONE)

    def test_same_underlying_redeem_then_deposit(self):
        bundle = compose_vault_to_vault(YCVXCRV, YSCVXCRV, ONE)
        assert kinds(bundle) == [ActionKind.REDEEM, ActionKind.DEPOSIT]
        assert bundle[1].args.amount_in == ref(0)
        assert bundle[1].args.token_out == YSCVXCRV

    def test_different_underlying_inserts_route(self):
        bundle = compose_vault_to_vault(YCVXCRV, OTHER_VAULT, ONE, target_underlying=WETH)
        assert kinds(bundle) == [ActionKind.REDEEM, ActionKind.ROUTE, ActionKind.DEPOSIT]
        assert bundle[1].args.amount_in == ref(0)
        assert bundle[2].args.amount_in == ref(1)
        assert bundle[2].args.token_in == WETH

    def test_extensive_chaining_needs_estimate(self):
        """With a lower threshold, a routed vault-to-vault bundle needs an estimate."""
        config = ComposerConfig(extensive_chaining_threshold=2)
        with pytest.raises(MissingOutputEstimateError):
            compose_vault_to_vault(
                YCVXCRV, OTHER_VAULT, ONE, target_underlying=WETH, config=config
            )


class TestHybridSwap:
    """Wrap + pool exchange."""

    def test_base_input_uses_literals_up_to_exchange(self):
        bundle = compose_hybrid(
            CVX, DERIVATIVE_VAULT, 10 * ONE, make_hybrid_route(), expected_swap_output=11 * ONE
        )
        assert kinds(bundle) == [
            ActionKind.APPROVE,
            ActionKind.MINT,
            ActionKind.APPROVE,
            ActionKind.EXCHANGE,
            ActionKind.APPROVE,
            ActionKind.DEPOSIT,
        ]
        assert bundle[0].args.amount == UNLIMITED
        assert bundle[1].args.amount == literal(10 * ONE)
        assert isinstance(bundle[3].args.dx, LiteralAmount)

    def test_base_input_approval_and_deposit_share_exchange_output(self):
        bundle = compose_hybrid(
            CVX, DERIVATIVE_VAULT, 10 * ONE, make_hybrid_route(), expected_swap_output=11 * ONE
        )
        assert bundle[4].args.amount == ref(3)
        assert bundle[5].args.amount_in == ref(3)
        assert bundle.consumers_of(3) == [4, 5]

    def test_other_input_chains_references(self):
        bundle = compose_hybrid(
            WETH,
            DERIVATIVE_VAULT,
            ONE,
            make_hybrid_route(),
            expected_swap_output=900 * ONE,
            final_output_estimate=850 * ONE,
        )
        assert kinds(bundle)[0] == ActionKind.ROUTE
        assert bundle[0].args.amount_in == literal(ONE)
        assert bundle[0].args.token_out == CVX
        # approve, mint, approve, exchange all consume the route output
        for index in (1, 2, 3, 4):
            assert ref(0) in bundle[index].amounts()
        assert bundle[2].args.amount == ref(0)
        assert bundle[5].args.amount == ref(4)
        assert bundle[6].args.amount_in == ref(4)

    def test_other_input_skips_router_quote(self):
        bundle = compose_hybrid(
            WETH,
            DERIVATIVE_VAULT,
            ONE,
            make_hybrid_route(),
            expected_swap_output=900 * ONE,
            final_output_estimate=850 * ONE,
        )
        assert bundle.skip_quote is True
        assert bundle.final_output_estimate == str(850 * ONE)

    def test_other_input_without_estimate_rejected(self):
        with pytest.raises(MissingOutputEstimateError):
            compose_hybrid(
                WETH, DERIVATIVE_VAULT, ONE, make_hybrid_route(), expected_swap_output=900 * ONE
            )

    def test_min_dy_from_expected_output(self):
        bundle = compose_hybrid(
            CVX,
            DERIVATIVE_VAULT,
            10 * ONE,
            make_hybrid_route(),
            expected_swap_output=11 * ONE,
            slippage_bps=100,
        )
        exchange = bundle[3].args
        assert int(exchange.min_dy) == 11 * ONE * 99 // 100
        assert exchange.pool == POOL
        assert (exchange.i, exchange.j) == (0, 1)

    def test_exchange_spends_wrapper(self):
        bundle = compose_hybrid(
            CVX, DERIVATIVE_VAULT, 10 * ONE, make_hybrid_route(), expected_swap_output=11 * ONE
        )
        assert bundle[1].args.address == WRAPPER
        assert bundle[2].args.token == WRAPPER
        assert bundle[2].args.spender == POOL

    def test_missing_expected_output_rejected(self):
        with pytest.raises(MissingOutputEstimateError):
            compose_hybrid(CVX, DERIVATIVE_VAULT, 10 * ONE, make_hybrid_route())

    def test_derivative_as_input_rejected(self):
        with pytest.raises(UnsupportedPairError):
            compose_hybrid(
                DERIVATIVE,
                DERIVATIVE_VAULT,
                ONE,
                make_hybrid_route(),
                expected_swap_output=ONE,
            )


class TestHybridMint:
    def test_direct_mint(self):
        bundle = compose_hybrid(
            CVX, DERIVATIVE_VAULT, 10 * ONE, make_hybrid_route(), strategy=HybridStrategy.MINT
        )
        assert kinds(bundle) == [
            ActionKind.APPROVE,
            ActionKind.MINT,
            ActionKind.APPROVE,
            ActionKind.DEPOSIT,
        ]
        mint = bundle[1].args
        assert mint.address == MINTER
        assert mint.is_lock is True
        assert bundle[3].args.amount_in == ref(1)

    def test_mint_without_minter_rejected(self):
        with pytest.raises(UnsupportedPairError):
            compose_hybrid(
                CVX,
                DERIVATIVE_VAULT,
                ONE,
                make_hybrid_route(minter=None),
                strategy=HybridStrategy.MINT,
            )


class TestHybridSplit:
    """Swap up to the peg point, mint the rest."""

    def test_split_legs_are_literal(self):
        bundle = compose_hybrid(
            CVX,
            DERIVATIVE_VAULT,
            10 * ONE,
            make_hybrid_route(),
            strategy=HybridStrategy.SPLIT,
            swap_amount=6 * ONE,
            mint_amount=4 * ONE,
            expected_swap_output=61 * ONE // 10,
        )
        assert len(bundle) == 8
        assert bundle[1].args.amount == literal(6 * ONE)
        assert bundle[3].args.dx == literal(6 * ONE)
        assert bundle[5].args.address == MINTER
        assert bundle[5].args.is_lock is True
        assert bundle[5].args.amount == literal(4 * ONE)

    def test_split_deposits_buffered_total(self):
        bundle = compose_hybrid(
            CVX,
            DERIVATIVE_VAULT,
            10 * ONE,
            make_hybrid_route(),
            strategy=HybridStrategy.SPLIT,
            swap_amount=6 * ONE,
            mint_amount=4 * ONE,
            expected_swap_output=61 * ONE // 10,
            slippage_bps=100,
        )
        expected = (61 * ONE // 10 + 4 * ONE) * 99 // 100
        assert bundle[-1].args.amount_in == literal(expected)
        assert bundle[-2].args.amount == UNLIMITED

    def test_split_without_mint_collapses_to_swap(self):
        bundle = compose_hybrid(
            CVX,
            DERIVATIVE_VAULT,
            10 * ONE,
            make_hybrid_route(),
            strategy=HybridStrategy.SPLIT,
            swap_amount=10 * ONE,
            mint_amount=0,
            expected_swap_output=11 * ONE,
        )
        assert len(bundle) == 6
        assert bundle[-1].args.amount_in == ref(3)

    def test_split_without_swap_collapses_to_mint(self):
        bundle = compose_hybrid(
            CVX,
            DERIVATIVE_VAULT,
            10 * ONE,
            make_hybrid_route(),
            strategy=HybridStrategy.SPLIT,
            swap_amount=0,
            mint_amount=10 * ONE,
        )
        assert len(bundle) == 4

    def test_split_needs_both_amounts(self):
        with pytest.raises(BundleCompositionError):
            compose_hybrid(
                CVX,
                DERIVATIVE_VAULT,
                10 * ONE,
                make_hybrid_route(),
                strategy=HybridStrategy.SPLIT,
                swap_amount=6 * ONE,
                expected_swap_output=6 * ONE,
            )

    def test_split_exceeding_input_rejected(self):
        with pytest.raises(BundleCompositionError, match="exceed input"):
            compose_hybrid(
                CVX,
                DERIVATIVE_VAULT,
                10 * ONE,
                make_hybrid_route(),
                strategy=HybridStrategy.SPLIT,
                swap_amount=8 * ONE,
                mint_amount=4 * ONE,
                expected_swap_output=8 * ONE,
            )
