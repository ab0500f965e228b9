"""
Tests for boundary validators - malformed caller input must fail fast.
"""

import math
import pytest
from datetime import date

from analysis.models import CashFlow, CashFlowKind, Position, PricePoint
from ingestion.transforms.validators import (
    InvalidInputError,
    validate_cash_balance,
    validate_cash_flows,
    validate_position,
    validate_positions,
    validate_price_series,
    validate_returns,
)


class TestPositionValidation:
    """Tests for validate_position and validate_positions."""

    def test_valid_position(self):
        validate_position(Position('AAPL', 10, 1500.0, 1800.0, purchase_date=date(2023, 1, 1)))

    def test_negative_shares_rejected(self):
        with pytest.raises(InvalidInputError, match="shares must be non-negative"):
            validate_position(Position('AAPL', -1, 100.0, 100.0))

    @pytest.mark.parametrize("field", ['cost_basis', 'market_value'])
    def test_non_finite_values_rejected(self, field):
        kwargs = {'symbol': 'AAPL', 'shares': 1, 'cost_basis': 100.0, 'market_value': 100.0}
        kwargs[field] = math.nan

        with pytest.raises(InvalidInputError, match="must be finite"):
            validate_position(Position(**kwargs))

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidInputError, match="must be numeric"):
            validate_position(Position('AAPL', '10', 100.0, 100.0))

    def test_empty_symbol_rejected(self):
        with pytest.raises(InvalidInputError, match="symbol"):
            validate_position(Position('  ', 1, 100.0, 100.0))

    def test_wrong_type_rejected(self):
        with pytest.raises(InvalidInputError, match="expected Position"):
            validate_position({'symbol': 'AAPL'})

    def test_bad_purchase_date_rejected(self):
        with pytest.raises(InvalidInputError, match="purchase_date"):
            validate_position(Position('AAPL', 1, 100.0, 100.0, purchase_date='2024-01-01'))

    def test_positions_none_is_empty(self):
        assert validate_positions(None) == []

    def test_positions_string_rejected(self):
        with pytest.raises(InvalidInputError):
            validate_positions('AAPL')

    def test_positions_returns_list(self):
        positions = (Position('AAPL', 1, 100.0, 100.0),)
        assert validate_positions(positions) == list(positions)


class TestCashValidation:
    """Tests for cash balance and cash flow validation."""

    def test_cash_balance_coerced_to_float(self):
        assert validate_cash_balance(100) == 100.0

    def test_infinite_cash_rejected(self):
        with pytest.raises(InvalidInputError):
            validate_cash_balance(math.inf)

    def test_cash_flows_valid(self):
        flows = [CashFlow(date(2024, 1, 1), 1000.0, CashFlowKind.DEPOSIT)]
        assert validate_cash_flows(flows) == flows

    def test_cash_flow_kind_as_string(self):
        """String kinds that match the enum are accepted."""
        validate_cash_flows([CashFlow(date(2024, 1, 1), 10.0, 'dividend')])

    def test_unknown_cash_flow_kind(self):
        with pytest.raises(InvalidInputError, match="unknown cash flow kind"):
            validate_cash_flows([CashFlow(date(2024, 1, 1), 10.0, 'bonus')])

    def test_cash_flow_date_must_be_date(self):
        with pytest.raises(InvalidInputError, match="date"):
            validate_cash_flows([CashFlow('2024-01-01', 10.0)])


class TestSeriesValidation:
    """Tests for price and return series validation."""

    def test_price_series_valid(self):
        series = [PricePoint(date(2024, 1, 1), 100.0)]
        assert validate_price_series(series) == series

    def test_price_series_none(self):
        assert validate_price_series(None) == []

    def test_price_series_wrong_item(self):
        with pytest.raises(InvalidInputError, match="expected PricePoint"):
            validate_price_series([(date(2024, 1, 1), 100.0)])

    def test_price_series_nan_close(self):
        with pytest.raises(InvalidInputError, match="close"):
            validate_price_series([PricePoint(date(2024, 1, 1), math.nan)])

    def test_returns_valid(self):
        assert validate_returns([0.01, -0.02]) == [0.01, -0.02]

    def test_returns_nan_rejected(self):
        with pytest.raises(InvalidInputError):
            validate_returns([0.01, math.nan])

    def test_returns_none_is_empty(self):
        assert validate_returns(None) == []
