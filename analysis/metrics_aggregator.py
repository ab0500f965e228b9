"""
Metrics aggregator - composes all portfolio calculations into one metrics document.
Pure function that combines summary, allocation, performance, risk, correlation,
factor exposure and stress scenarios.
"""

import logging
import warnings
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd

# Import all calculation modules
from analysis.calculations.allocation import allocate, summarize
from analysis.calculations.correlation import compute_correlation
from analysis.calculations.factors import compute_factor_exposure
from analysis.calculations.performance import compute_performance
from analysis.calculations.returns import portfolio_returns_by_date, returns_by_date
from analysis.calculations.risk import compute_risk
from analysis.calculations.scenarios import run_scenarios
from analysis.guardrails import (
    DataQualityError,
    DataQualityWarning,
    check_data_freshness,
    check_price_history_sufficiency,
    validate_numeric_outputs,
)
from analysis.models import (
    AllocationDimension,
    AssetMetadata,
    CashFlow,
    Fundamentals,
    Position,
    PricePoint,
    ValuePoint,
)
from ingestion.transforms.validators import validate_positions

# Set up logger
logger = logging.getLogger(__name__)

CALCULATION_VERSION = '1.0.0'


def aligned_returns(
    price_series_by_symbol: Dict[str, List[PricePoint]],
    positions: List[Position],
    benchmark_series: Optional[List[PricePoint]] = None
) -> Dict[str, List[float]]:
    """
    Portfolio and benchmark daily returns restricted to shared dates.

    Without a benchmark the full portfolio return series is returned and the
    benchmark list is empty.
    """
    portfolio = portfolio_returns_by_date(price_series_by_symbol, positions)
    if not benchmark_series:
        return {'portfolio': portfolio.tolist(), 'benchmark': []}

    benchmark = returns_by_date(benchmark_series)
    joined = pd.concat([portfolio, benchmark], axis=1, join='inner').dropna()
    if joined.empty:
        logger.warning("Portfolio and benchmark returns share no dates")
        return {'portfolio': portfolio.tolist(), 'benchmark': []}

    return {
        'portfolio': joined.iloc[:, 0].tolist(),
        'benchmark': joined.iloc[:, 1].tolist(),
    }


def compose_portfolio_metrics(
    positions: List[Position],
    cash_balance: float,
    price_series_by_symbol: Dict[str, List[PricePoint]],
    benchmark_series: Optional[List[PricePoint]] = None,
    metadata_by_symbol: Optional[Dict[str, AssetMetadata]] = None,
    fundamentals_by_symbol: Optional[Dict[str, Fundamentals]] = None,
    cash_flows: Optional[List[CashFlow]] = None,
    history: Optional[List[ValuePoint]] = None,
    as_of_date: Optional[date] = None,
    risk_free_rate: Optional[float] = None
) -> Dict[str, Any]:
    """
    Compose all portfolio metrics into one JSON-ready dictionary.

    Args:
        positions: Current holdings
        cash_balance: Uninvested cash
        price_series_by_symbol: Close-price history per symbol
        benchmark_series: Benchmark close-price history (optional)
        metadata_by_symbol: Sector/country/market cap per symbol
        fundamentals_by_symbol: P/E, EPS, market cap per symbol
        cash_flows: External cash flow ledger
        history: Portfolio value history
        as_of_date: Valuation date (defaults to today)
        risk_free_rate: Annual risk-free rate (defaults to configuration)

    Returns:
        Metrics dictionary

    Symbols without price history degrade risk and correlation to their
    neutral values; the gaps are reported under data_quality.

    Raises:
        DataQualityError: If any composed metric is NaN or infinite
        InvalidInputError: If inputs are malformed
    """
    positions = validate_positions(positions)
    price_series_by_symbol = price_series_by_symbol or {}
    if as_of_date is None:
        as_of_date = date.today()

    symbols = [p.symbol for p in positions]

    summary = summarize(positions, cash_balance)
    allocations = {
        dimension.value: [
            asdict(bucket)
            for bucket in allocate(positions, cash_balance, dimension, metadata_by_symbol)
        ]
        for dimension in AllocationDimension
    }

    performance = compute_performance(positions, history, cash_flows, as_of_date)

    returns = aligned_returns(price_series_by_symbol, positions, benchmark_series)
    risk = compute_risk(returns['portfolio'], returns['benchmark'], risk_free_rate)

    correlation = compute_correlation(price_series_by_symbol, symbols)
    factors = compute_factor_exposure(positions, metadata_by_symbol, fundamentals_by_symbol)
    scenarios = run_scenarios(positions, metadata_by_symbol)

    data_quality = _calculate_data_quality_metrics(price_series_by_symbol, symbols, as_of_date)

    metadata = {
        'calculated_at': datetime.now().isoformat(),
        'calculation_version': CALCULATION_VERSION,
        'return_observations': len(returns['portfolio']),
        'benchmark_aligned': bool(returns['benchmark']),
    }

    logger.info(
        f"Composed metrics for {len(positions)} positions "
        f"({len(returns['portfolio'])} return observations)"
    )

    document = {
        'as_of_date': as_of_date.isoformat(),
        'summary': asdict(summary),
        'allocations': allocations,
        'performance': asdict(performance),
        'risk': asdict(risk),
        'correlation': asdict(correlation),
        'factor_exposure': asdict(factors),
        'scenarios': [asdict(s) for s in scenarios],
        'data_quality': data_quality,
        'metadata': metadata
    }

    validate_numeric_outputs(document)
    return document


def _calculate_data_quality_metrics(
    price_series_by_symbol: Dict[str, List[PricePoint]],
    symbols: List[str],
    as_of_date: date
) -> Dict[str, Any]:
    """Price history coverage per held symbol, with guardrail warnings."""
    coverage = {}
    missing = []
    quality_warnings = []

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always', DataQualityWarning)
        try:
            _, insufficient = check_price_history_sufficiency(price_series_by_symbol, symbols)
            if insufficient:
                quality_warnings.append(
                    f"Insufficient price history for: {insufficient}. "
                    f"Risk and correlation metrics may be unreliable."
                )
        except DataQualityError as e:
            quality_warnings.append(str(e))
    quality_warnings.extend(
        str(w.message) for w in caught if issubclass(w.category, DataQualityWarning)
    )

    held = {s: price_series_by_symbol[s] for s in symbols if price_series_by_symbol.get(s)}
    quality_warnings.extend(check_data_freshness(held, as_of_date))

    for symbol in dict.fromkeys(symbols):
        series = price_series_by_symbol.get(symbol) or []
        if not series:
            missing.append(symbol)
            continue

        dates = pd.to_datetime([p.date for p in series])
        date_range = (dates.max() - dates.min()).days
        # Rough expected trading days: 5/7 of calendar days
        expected_trading_days = max(1, int(date_range * 5 / 7))
        coverage[symbol] = min(100.0, (dates.nunique() / expected_trading_days) * 100)

    return {
        'price_coverage_pct': coverage,
        'symbols_without_history': missing,
        'warnings': quality_warnings,
    }
