"""
Tests for the metrics aggregator.
"""

import json
import pytest
from datetime import date, timedelta

from analysis.guardrails import DataQualityError
from analysis.metrics_aggregator import (
    CALCULATION_VERSION,
    aligned_returns,
    compose_portfolio_metrics,
)
from analysis.models import AssetMetadata, Fundamentals, Position, PricePoint
from ingestion.transforms.validators import InvalidInputError

START = date(2024, 1, 1)


def make_series(closes, start=START):
    return [PricePoint(start + timedelta(days=i), c) for i, c in enumerate(closes)]


@pytest.fixture
def portfolio():
    positions = [
        Position('AAPL', 10, 1500.0, 2000.0, day_change_percent=1.0,
                 purchase_date=date(2023, 1, 1), sector='Technology', country='US'),
        Position('JPM', 20, 2500.0, 2500.0, day_change_percent=-0.5,
                 purchase_date=date(2023, 6, 1)),
    ]
    prices = {
        'AAPL': make_series([100.0 + (i % 5) for i in range(40)]),
        'JPM': make_series([120.0 - (i % 3) for i in range(40)]),
    }
    benchmark = make_series([400.0 + (i % 4) for i in range(40)])
    metadata = {'JPM': AssetMetadata('JPM', sector='Financials', country='United States',
                                     market_cap=5e11)}
    fundamentals = {'AAPL': Fundamentals(pe=30.0, eps=6.0, market_cap=3e12)}
    return positions, prices, benchmark, metadata, fundamentals


class TestComposePortfolioMetrics:
    """Tests for compose_portfolio_metrics function."""

    def test_document_sections(self, portfolio):
        positions, prices, benchmark, metadata, fundamentals = portfolio

        result = compose_portfolio_metrics(
            positions, 500.0, prices, benchmark, metadata, fundamentals,
            as_of_date=date(2024, 2, 9)
        )

        assert set(result) == {
            'as_of_date', 'summary', 'allocations', 'performance', 'risk',
            'correlation', 'factor_exposure', 'scenarios', 'data_quality', 'metadata'
        }
        assert result['as_of_date'] == '2024-02-09'
        assert set(result['allocations']) == {'sector', 'region', 'country', 'asset_type'}
        assert result['metadata']['calculation_version'] == CALCULATION_VERSION
        assert result['metadata']['benchmark_aligned'] is True
        assert result['metadata']['return_observations'] == 39

    def test_summary_includes_cash(self, portfolio):
        positions, prices, benchmark, metadata, fundamentals = portfolio

        result = compose_portfolio_metrics(positions, 500.0, prices, benchmark, metadata, fundamentals)

        assert result['summary']['total_value'] == pytest.approx(5000.0)
        assert result['summary']['position_count'] == 2
        sectors = {b['label']: b for b in result['allocations']['sector']}
        assert sectors['Cash']['value'] == pytest.approx(500.0)
        assert sectors['Financial Services']['value'] == pytest.approx(2500.0)

    def test_json_serializable(self, portfolio):
        positions, prices, benchmark, metadata, fundamentals = portfolio

        result = compose_portfolio_metrics(positions, 0.0, prices, benchmark, metadata, fundamentals)

        json.dumps(result)
        assert len(result['scenarios']) == 5
        assert result['correlation']['symbols'] == ['AAPL', 'JPM']

    def test_without_benchmark(self, portfolio):
        positions, prices, _, metadata, fundamentals = portfolio

        result = compose_portfolio_metrics(positions, 0.0, prices, None, metadata, fundamentals)

        assert result['risk']['beta'] == 1.0
        assert result['metadata']['benchmark_aligned'] is False

    def test_no_price_history_degrades(self):
        """A new account with no price history still gets a full document."""
        positions = [Position('AAA', 10, 1000.0, 1100.0, sector='Technology')]

        result = compose_portfolio_metrics(positions, 0.0, {}, as_of_date=date(2024, 2, 9))

        assert result['summary']['total_gain_loss'] == pytest.approx(100.0)
        assert result['risk']['beta'] == 1.0
        assert result['risk']['volatility'] == 0.0
        assert result['correlation']['matrix'] == [[1.0]]
        assert result['scenarios'][0]['portfolio_impact'] == pytest.approx(-0.55)
        assert result['data_quality']['symbols_without_history'] == ['AAA']
        assert any('No price history' in w for w in result['data_quality']['warnings'])

    def test_data_quality_warnings(self, portfolio):
        positions, prices, benchmark, _, _ = portfolio
        prices = dict(prices, JPM=prices['JPM'][-5:])

        result = compose_portfolio_metrics(positions, 0.0, prices, benchmark, as_of_date=date(2024, 3, 1))
        found = result['data_quality']['warnings']

        assert any("Insufficient price history for: ['JPM']" in w for w in found)
        assert any('AAPL price data is 21 days old' in w for w in found)

    def test_fresh_history_has_no_warnings(self, portfolio):
        positions, prices, benchmark, _, _ = portfolio

        result = compose_portfolio_metrics(positions, 0.0, prices, benchmark, as_of_date=date(2024, 2, 9))

        assert result['data_quality']['warnings'] == []

    def test_empty_portfolio(self):
        result = compose_portfolio_metrics([], 1000.0, {})

        assert result['summary']['total_value'] == pytest.approx(1000.0)
        assert result['risk']['volatility'] == 0.0
        assert result['correlation']['matrix'] == []

    def test_nan_input_rejected(self, portfolio):
        _, prices, _, _, _ = portfolio
        positions = [Position('AAPL', 10, 1500.0, float('nan'))]

        with pytest.raises((InvalidInputError, DataQualityError)):
            compose_portfolio_metrics(positions, 0.0, prices)

    def test_data_quality_reports_missing_symbols(self, portfolio):
        positions, prices, _, _, _ = portfolio
        positions = positions + [Position('NEW', 1, 10.0, 10.0)]

        result = compose_portfolio_metrics(positions, 0.0, prices)

        assert result['data_quality']['symbols_without_history'] == ['NEW']
        assert set(result['data_quality']['price_coverage_pct']) == {'AAPL', 'JPM'}


class TestAlignedReturns:

    def test_restricted_to_shared_dates(self):
        positions = [Position('AAA', 1, 100.0, 100.0)]
        prices = {'AAA': make_series([100.0, 101.0, 102.0, 103.0])}
        benchmark = make_series([50.0, 51.0, 52.0], start=START + timedelta(days=1))

        result = aligned_returns(prices, positions, benchmark)

        # AAA returns on days 1-3, benchmark on days 2-3
        assert len(result['portfolio']) == 2
        assert len(result['benchmark']) == 2
        assert result['portfolio'][0] == pytest.approx(1.0 / 101.0)

    def test_disjoint_benchmark(self):
        positions = [Position('AAA', 1, 100.0, 100.0)]
        prices = {'AAA': make_series([100.0, 101.0, 102.0])}
        benchmark = make_series([50.0, 51.0], start=START + timedelta(days=100))

        result = aligned_returns(prices, positions, benchmark)

        assert len(result['portfolio']) == 2
        assert result['benchmark'] == []
