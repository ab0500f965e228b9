"""
Tests for covered call simulation.
"""

import pytest
from datetime import date

from ingestion.transforms.validators import InvalidInputError
from options.models import OptionContract, OptionExpiration, OptionsChain
from options.simulation import (
    CycleConfig,
    select_expiration,
    simulate_covered_call,
    summarize_covered_calls,
)

CALLS = [
    OptionContract(95.0, bid=6.0, ask=6.3, open_interest=400, implied_volatility=0.25),
    OptionContract(100.0, bid=3.5, ask=3.7, open_interest=800, implied_volatility=0.25),
    OptionContract(105.0, bid=2.0, ask=2.2, open_interest=500, implied_volatility=0.25),
    OptionContract(110.0, bid=0.9, ask=1.0, open_interest=300, implied_volatility=0.25),
]


@pytest.fixture
def chain():
    return OptionsChain(
        symbol='AAPL',
        underlying_price=100.0,
        expirations=[
            OptionExpiration(date(2024, 1, 2), 1, CALLS),
            OptionExpiration(date(2024, 1, 11), 10, CALLS),
            OptionExpiration(date(2024, 1, 31), 30, CALLS),
            OptionExpiration(date(2024, 2, 20), 50, CALLS),
        ],
    )


class TestSelectExpiration:

    def test_monthly(self, chain):
        assert select_expiration(chain.expirations, 'monthly').days_to_expiration == 30

    def test_weekly(self, chain):
        assert select_expiration(chain.expirations, 'weekly').days_to_expiration == 10

    def test_out_of_range_falls_back_to_nearest(self, chain):
        config = CycleConfig(target=100, min=90, max=120)

        assert select_expiration(chain.expirations, config).days_to_expiration == 50

    def test_only_expiring_contracts(self):
        expirations = [OptionExpiration(date(2024, 1, 2), 1)]

        assert select_expiration(expirations, 'monthly') is None

    def test_unknown_cycle(self, chain):
        with pytest.raises(InvalidInputError, match="unknown expiration cycle"):
            select_expiration(chain.expirations, 'quarterly')


class TestSimulateCoveredCall:
    """Tests for simulate_covered_call function."""

    def test_monthly_five_percent_otm(self, chain):
        result = simulate_covered_call(chain, 250, 5.0, 'monthly', risk_free_rate=0.05)

        assert result.strike == 105.0
        assert result.contracts == 2
        assert result.days_to_expiration == 30
        assert result.premium == pytest.approx(2.1)
        assert result.total_premium == pytest.approx(420.0)
        assert result.breakeven == pytest.approx(97.9)
        assert result.max_profit == pytest.approx(1420.0)
        assert result.annualized_yield == pytest.approx((1.021 ** (365 / 30) - 1) * 100)
        assert 0 < result.assignment_probability < 50
        assert not result.low_liquidity

    def test_no_usable_expiration(self):
        chain = OptionsChain('AAPL', 100.0, [])

        assert simulate_covered_call(chain, 100, 5.0) is None

    def test_all_strikes_below_floor(self):
        expirations = [OptionExpiration(date(2024, 1, 31), 30, [OptionContract(50.0, bid=50.0, ask=50.5)])]
        chain = OptionsChain('AAPL', 100.0, expirations)

        assert simulate_covered_call(chain, 100, 5.0) is None

    def test_low_liquidity_flagged(self):
        calls = [OptionContract(105.0, bid=0.0, ask=1.0, last_price=0.5)]
        chain = OptionsChain('XYZ', 100.0, [OptionExpiration(date(2024, 1, 31), 30, calls)])

        result = simulate_covered_call(chain, 100, 5.0, risk_free_rate=0.05)

        assert result.low_liquidity
        assert result.premium == pytest.approx(0.4)

    def test_risk_free_rate_from_environment(self, chain, monkeypatch):
        monkeypatch.setenv('PORTFOLIO_RISK_FREE_RATE', '0.0')

        default = simulate_covered_call(chain, 100, 5.0)
        explicit = simulate_covered_call(chain, 100, 5.0, risk_free_rate=0.0)

        assert default.delta == pytest.approx(explicit.delta)


class TestSummarize:

    def test_value_weighted_yield(self, chain):
        small = simulate_covered_call(chain, 100, 5.0, 'monthly', risk_free_rate=0.05)
        large = simulate_covered_call(chain, 300, 10.0, 'monthly', risk_free_rate=0.05)

        summary = summarize_covered_calls([small, large])

        assert summary['positions'] == 2
        assert summary['covered_value'] == pytest.approx(40000.0)
        assert summary['total_premium'] == pytest.approx(small.total_premium + large.total_premium)
        expected = (small.annualized_yield * 1 + large.annualized_yield * 3) / 4
        assert summary['annualized_yield'] == pytest.approx(expected)
        assert summary['low_liquidity_count'] == 0

    def test_empty(self):
        summary = summarize_covered_calls([])

        assert summary['total_premium'] == 0
        assert summary['annualized_yield'] == 0.0


class TestCannotSimulate:
    """Holdings with no simulatable call."""

    def test_unquoted_underlying(self):
        calls = [OptionContract(5.0, bid=0.5, ask=0.6, open_interest=100)]
        chain = OptionsChain('AAA', 0.0, [OptionExpiration(date(2024, 1, 31), 30, calls)])

        assert simulate_covered_call(chain, 100, 5.0, 'monthly', 0.05) is None

    def test_non_finite_underlying_rejected(self, chain):
        broken = OptionsChain('AAPL', float('nan'), chain.expirations)

        with pytest.raises(InvalidInputError, match="underlying_price"):
            simulate_covered_call(broken, 100, 5.0)

    def test_fewer_shares_than_one_contract(self, chain):
        assert simulate_covered_call(chain, 99, 5.0, 'monthly', 0.05) is None
