"""Tests for the static vault registry."""

from zapper.registry import CVXCRV, YCVXCRV, YSCVXCRV, get_vault_by_address, underlying_of
from tests.helpers import OTHER_VAULT, WETH


class TestVaultRegistry:
    def test_lookup_by_address_is_case_insensitive(self):
        vault = get_vault_by_address("0x" + YSCVXCRV[2:].upper())
        assert vault is not None
        assert vault.symbol == "yscvxCRV"

    def test_unknown_vault(self):
        assert get_vault_by_address(OTHER_VAULT) is None

    def test_underlying(self):
        assert underlying_of(YCVXCRV) == CVXCRV
        assert underlying_of(OTHER_VAULT, default=WETH) == WETH
