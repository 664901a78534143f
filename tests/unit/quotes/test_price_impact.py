"""Tests for price impact and USD valuation helpers."""

import pytest

from zapper.quotes import exchange_rate, price_impact, usd_value


class TestPriceImpact:
    def test_loss_is_positive(self):
        assert price_impact(100.0, 90.0) == pytest.approx(10.0)

    def test_gain_is_negative(self):
        assert price_impact(100.0, 110.0) == pytest.approx(-10.0)

    def test_zero_input_value_is_unknown(self):
        assert price_impact(0.0, 5.0) is None

    @pytest.mark.parametrize("input_usd,output_usd", [(None, 1.0), (1.0, None), (None, None)])
    def test_missing_price_is_unknown(self, input_usd, output_usd):
        assert price_impact(input_usd, output_usd) is None


class TestUsdValue:
    def test_scales_by_decimals(self):
        assert usd_value(2 * 10**6, 6, 1.5) == pytest.approx(3.0)

    def test_no_price(self):
        assert usd_value(10**18, 18, None) is None


class TestExchangeRate:
    def test_whole_token_rate(self):
        assert exchange_rate(10**18, 18, 2500 * 10**6, 6) == pytest.approx(2500.0)

    def test_zero_input(self):
        assert exchange_rate(0, 18, 5, 18) == 0.0
