"""
Tests for data quality guardrails.
"""

import math
import pytest
from datetime import date, timedelta

from analysis.guardrails import (
    DataQualityError,
    DataQualityWarning,
    check_data_freshness,
    check_price_history_sufficiency,
    create_data_quality_report,
    run_all_guardrails,
    validate_numeric_outputs,
    validate_price_data_integrity,
)
from analysis.models import PricePoint


def make_series(closes, end=date(2024, 3, 1)):
    start = end - timedelta(days=len(closes) - 1)
    return [PricePoint(start + timedelta(days=i), c) for i, c in enumerate(closes)]


class TestPriceHistorySufficiency:

    def test_split(self):
        prices = {
            'LONG': make_series([100.0] * 30),
            'SHORT': make_series([100.0] * 5),
        }

        sufficient, insufficient = check_price_history_sufficiency(prices, ['LONG', 'SHORT'])

        assert sufficient == ['LONG']
        assert insufficient == ['SHORT']

    def test_no_history_at_all(self):
        with pytest.raises(DataQualityError, match="No price history available"):
            check_price_history_sufficiency({}, ['AAA', 'BBB'])

    def test_mostly_insufficient_warns(self):
        prices = {
            'A': make_series([100.0] * 30),
            'B': make_series([100.0] * 3),
            'C': make_series([100.0] * 3),
        }

        with pytest.warns(DataQualityWarning, match="Limited price history"):
            check_price_history_sufficiency(prices, ['A', 'B', 'C'])

    def test_empty_symbols(self):
        assert check_price_history_sufficiency({}, []) == ([], [])


class TestNumericOutputs:
    """Tests for validate_numeric_outputs function."""

    def test_finite_document_passes(self):
        validate_numeric_outputs({'risk': {'beta': 1.0, 'alpha': None}, 'flag': True})

    def test_nested_nan(self):
        document = {'risk': {'sharpe_ratio': 0.5}, 'scenarios': [{'impact': math.nan}]}

        with pytest.raises(DataQualityError, match=r"NaN value found in scenarios\[0\]\.impact"):
            validate_numeric_outputs(document)

    def test_infinite(self):
        with pytest.raises(DataQualityError, match="Infinite value found in risk.beta"):
            validate_numeric_outputs({'risk': {'beta': math.inf}})

    def test_tuple_values(self):
        with pytest.raises(DataQualityError):
            validate_numeric_outputs({'pair': ('AAA', float('-inf'))})


class TestFreshnessAndIntegrity:

    def test_stale_series(self):
        prices = {'OLD': make_series([100.0] * 3, end=date(2024, 1, 1))}

        stale = check_data_freshness(prices, as_of_date=date(2024, 1, 31))

        assert len(stale) == 1
        assert 'OLD price data is 30 days old' in stale[0]

    def test_fresh_series(self):
        prices = {'NEW': make_series([100.0] * 3, end=date(2024, 1, 30))}

        assert check_data_freshness(prices, as_of_date=date(2024, 1, 31)) == []

    def test_large_move_flagged(self):
        found = validate_price_data_integrity('JMP', make_series([100.0, 101.0, 130.0]))

        assert len(found) == 1
        assert 'large price movement' in found[0]

    def test_non_positive_close_flagged(self):
        found = validate_price_data_integrity('BAD', make_series([100.0, 0.0, 100.0]))

        assert any('non-positive close' in w for w in found)


class TestRunAllGuardrails:

    def test_clean_run_and_report(self):
        prices = {'AAA': make_series([100.0 + i * 0.1 for i in range(30)])}

        results = run_all_guardrails(prices, ['AAA'], {'risk': {'beta': 1.0}}, as_of_date=date(2024, 3, 1))

        assert results['data_quality_checks']['numeric_validation'] == 'passed'
        assert results['warnings'] == []
        assert results['errors'] == []
        assert 'DATA QUALITY ACCEPTABLE' in create_data_quality_report(results)

    def test_warnings_collected(self):
        prices = {
            'AAA': make_series([100.0 + i * 0.1 for i in range(30)]),
            'BBB': make_series([100.0, 150.0], end=date(2024, 1, 1)),
        }

        results = run_all_guardrails(prices, ['AAA', 'BBB'], {}, as_of_date=date(2024, 3, 1))
        report = create_data_quality_report(results)

        assert results['data_quality_checks']['sufficient_data']['insufficient_symbols'] == ['BBB']
        assert len(results['warnings']) == 3
        assert 'WARNINGS PRESENT' in report

    def test_nan_metrics_raise(self):
        prices = {'AAA': make_series([100.0] * 30)}

        with pytest.raises(DataQualityError):
            run_all_guardrails(prices, ['AAA'], {'risk': {'beta': math.nan}})
