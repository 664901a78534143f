"""Tests for pool snapshot and vault reads."""

import asyncio

import aiohttp
import pytest

from zapper.amm.stableswap import FEE_DENOMINATOR, compute_ann
from zapper.chain.errors import ContractReadError, RpcTransportError
from zapper.chain.reader import PoolSnapshotReader, create_web3
from tests.helpers import DERIVATIVE_VAULT, ONE, POOL, RPC_URL, fake_web3, selector


def make_reader(values, **kwargs):
    w3, provider = fake_web3(values, **kwargs)
    return PoolSnapshotReader(w3), provider


def stable_values():
    """Everything a StableSwap snapshot reads except balances."""
    return {
        (POOL, "A()"): 50,
        (POOL, "fee()"): 4000000,
        (POOL, "offpeg_fee_multiplier()"): 2 * FEE_DENOMINATOR,
    }


class TestStableSnapshot:
    def test_snapshot_fields(self):
        # balances(i) shares one selector; the fake answers both indices alike
        reader, _ = make_reader(stable_values() | {(POOL, "balances(uint256)"): 1000 * ONE})
        snapshot = asyncio.run(reader.stable_snapshot(POOL))

        assert snapshot.xp == (1000 * ONE, 1000 * ONE)
        assert snapshot.ann == compute_ann(50)
        assert snapshot.base_fee == 4000000
        assert snapshot.offpeg_fee_multiplier == 2 * FEE_DENOMINATOR

    def test_precisions_scale_balances(self):
        reader, _ = make_reader(stable_values() | {(POOL, "balances(uint256)"): 1000 * 10**6})
        snapshot = asyncio.run(reader.stable_snapshot(POOL, precisions=(10**12, 1)))
        assert snapshot.xp == (1000 * ONE, 1000 * 10**6)

    def test_a_precise(self):
        values = stable_values() | {(POOL, "balances(uint256)"): ONE, (POOL, "A_precise()"): 5000}
        reader, provider = make_reader(values)
        snapshot = asyncio.run(reader.stable_snapshot(POOL, a_precise=True))

        assert snapshot.ann == compute_ann(5000, True)
        assert selector("A_precise()") in {data[:10] for data in provider.calls}

    def test_missing_offpeg_defaults_to_flat_fee(self):
        values = stable_values() | {(POOL, "balances(uint256)"): ONE}
        del values[(POOL, "offpeg_fee_multiplier()")]
        reader, _ = make_reader(values)
        snapshot = asyncio.run(reader.stable_snapshot(POOL))
        assert snapshot.offpeg_fee_multiplier == FEE_DENOMINATOR

    def test_reverted_balance_raises(self):
        reader, _ = make_reader(stable_values())
        with pytest.raises(ContractReadError, match="balances"):
            asyncio.run(reader.stable_snapshot(POOL))

    def test_transport_failure(self):
        reader, _ = make_reader({}, error=aiohttp.ClientConnectionError("connection refused"))
        with pytest.raises(RpcTransportError):
            asyncio.run(reader.stable_snapshot(POOL))


class TestCryptoSnapshot:
    VALUES = {
        (POOL, "A()"): 400000,
        (POOL, "gamma()"): 145000000000000,
        (POOL, "D()"): 2000 * ONE,
        (POOL, "mid_fee()"): 26000000,
        (POOL, "out_fee()"): 45000000,
        (POOL, "fee_gamma()"): 230000000000000,
        (POOL, "price_scale()"): ONE,
        (POOL, "balances(uint256)"): 1000 * ONE,
    }

    def test_snapshot_fields(self):
        reader, _ = make_reader(self.VALUES)
        snapshot = asyncio.run(reader.crypto_snapshot(POOL, precisions=(1, 10**12)))

        assert snapshot.a == 400000
        assert snapshot.gamma == 145000000000000
        assert snapshot.d == 2000 * ONE
        assert snapshot.price_scale == ONE
        assert snapshot.balances == (1000 * ONE, 1000 * ONE)
        assert snapshot.precisions == (1, 10**12)

    def test_any_missing_field_raises(self):
        values = dict(self.VALUES)
        del values[(POOL, "mid_fee()")]
        reader, _ = make_reader(values)
        with pytest.raises(ContractReadError, match="mid_fee"):
            asyncio.run(reader.crypto_snapshot(POOL))


class TestSingleReads:
    def test_get_dy_int128_indices(self):
        reader, provider = make_reader({(POOL, "get_dy(int128,int128,uint256)"): 99})
        assert asyncio.run(reader.get_dy(POOL, 0, 1, 100)) == 99
        assert provider.calls[0].startswith(selector("get_dy(int128,int128,uint256)"))

    def test_get_dy_uint256_indices(self):
        reader, provider = make_reader({(POOL, "get_dy(uint256,uint256,uint256)"): 99})
        assert asyncio.run(reader.get_dy(POOL, 0, 1, 100, uint256_indices=True)) == 99
        assert provider.calls[0].startswith(selector("get_dy(uint256,uint256,uint256)"))

    def test_preview_deposit(self):
        reader, _ = make_reader({(DERIVATIVE_VAULT, "previewDeposit(uint256)"): 95 * ONE})
        shares = asyncio.run(reader.preview_deposit(DERIVATIVE_VAULT, 100 * ONE))
        assert shares == 95 * ONE

    def test_reverted_preview_raises(self):
        reader, _ = make_reader({})
        with pytest.raises(ContractReadError, match="previewDeposit"):
            asyncio.run(reader.preview_deposit(DERIVATIVE_VAULT, ONE))


class TestCreateWeb3:
    def test_read_only_connection(self):
        w3 = create_web3(RPC_URL, timeout=5.0)
        assert w3.provider.endpoint_uri == RPC_URL
