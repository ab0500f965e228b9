"""
Tests for option liquidity scoring and strike selection.
"""

import pytest

from ingestion.transforms.validators import InvalidInputError
from options.liquidity import (
    calculate_liquidity,
    select_liquid_call,
    simulation_premium,
    validate_contract,
)
from options.models import LiquidityScore, OptionContract


class TestCalculateLiquidity:
    """Tests for calculate_liquidity function."""

    def test_good(self):
        info = calculate_liquidity(OptionContract(100.0, bid=1.00, ask=1.05, open_interest=200))

        assert info.mid == pytest.approx(1.025)
        assert info.is_liquid
        assert info.score == LiquidityScore.GOOD

    def test_fair(self):
        # spread 0.2 on mid 1.1 is about 18%
        info = calculate_liquidity(OptionContract(100.0, bid=1.00, ask=1.20, open_interest=50))

        assert info.is_liquid
        assert info.score == LiquidityScore.FAIR

    def test_tight_spread_low_open_interest_still_liquid(self):
        info = calculate_liquidity(OptionContract(100.0, bid=1.00, ask=1.02, open_interest=0))

        assert info.is_liquid
        assert info.score == LiquidityScore.POOR

    def test_no_bid(self):
        info = calculate_liquidity(OptionContract(100.0, bid=0.0, ask=0.50, open_interest=500))

        assert info.mid == 0.50
        assert info.spread_percent == pytest.approx(100.0)
        assert not info.is_liquid
        assert info.score == LiquidityScore.POOR

    def test_no_quote(self):
        info = calculate_liquidity(OptionContract(100.0))

        assert info.spread_percent == 100.0
        assert not info.is_liquid


class TestSelectLiquidCall:
    """Tests for select_liquid_call function."""

    def test_prefers_liquid_nearest_target(self):
        calls = [
            OptionContract(100.0, bid=4.0, ask=4.2, open_interest=300),
            OptionContract(105.0, bid=0.0, ask=1.0),
            OptionContract(110.0, bid=0.8, ask=0.9, open_interest=150),
        ]

        contract, info = select_liquid_call(calls, 105.0, 90.0)

        # 100 and 110 tie on distance; min keeps the first
        assert contract.strike == 100.0
        assert info.is_liquid

    def test_illiquid_chain_still_returns_pick(self):
        calls = [
            OptionContract(105.0, bid=0.0, ask=1.0),
            OptionContract(110.0, bid=0.0, ask=0.5, last_price=0.4),
        ]

        contract, info = select_liquid_call(calls, 106.0, 90.0)

        assert contract.strike == 105.0
        assert not info.is_liquid

    def test_nothing_above_floor(self):
        calls = [OptionContract(80.0, bid=20.0, ask=20.5, open_interest=100)]

        assert select_liquid_call(calls, 105.0, 90.0) is None

    def test_bad_quote_rejected(self):
        with pytest.raises(InvalidInputError, match="bid"):
            select_liquid_call([OptionContract(100.0, bid=-1.0)], 100.0, 90.0)


class TestSimulationPremium:

    def test_liquid_uses_mid(self):
        contract = OptionContract(100.0, bid=2.0, ask=2.2, open_interest=500)

        assert simulation_premium(contract, calculate_liquidity(contract)) == pytest.approx(2.1)

    def test_illiquid_uses_bid(self):
        contract = OptionContract(100.0, bid=1.0, ask=2.0)

        assert simulation_premium(contract, calculate_liquidity(contract)) == 1.0

    def test_last_price_haircut(self):
        contract = OptionContract(100.0, last_price=1.5)

        assert simulation_premium(contract, calculate_liquidity(contract)) == pytest.approx(1.2)

    def test_unusable(self):
        contract = OptionContract(100.0, ask=1.0)

        assert simulation_premium(contract, calculate_liquidity(contract)) is None


def test_validate_contract_type():
    with pytest.raises(InvalidInputError, match="OptionContract"):
        validate_contract({'strike': 100.0})
