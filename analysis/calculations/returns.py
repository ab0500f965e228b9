"""
Returns calculation utilities.
Pure functions for simple daily returns from close-price series.
"""

import logging
from typing import Dict, List

import numpy as np
import pandas as pd

from analysis.models import Position, PricePoint
from ingestion.transforms.normalizers import normalize_price_series

# Set up logger
logger = logging.getLogger(__name__)


def simple_returns(prices: List[float]) -> np.ndarray:
    """
    Calculate simple period-over-period returns.

    Formula: R_t = (P_t - P_{t-1}) / P_{t-1}

    Args:
        prices: List of prices in chronological order

    Returns:
        Numpy array of returns (length = len(prices) - 1), empty if < 2 prices.
        Periods whose previous price is not positive are skipped.

    Example:
        prices = [100, 110, 99] -> [0.10, -0.10]
    """
    if len(prices) < 2:
        return np.array([])

    prices_array = np.asarray(prices, dtype=float)
    previous = prices_array[:-1]
    current = prices_array[1:]

    valid = previous > 0
    if not valid.all():
        logger.debug(f"Skipping {int((~valid).sum())} periods with non-positive previous close")

    return (current[valid] - previous[valid]) / previous[valid]


def daily_returns(series: List[PricePoint]) -> List[float]:
    """
    Daily simple returns from a price series in any order.

    The series is sorted by date and deduplicated before differencing.
    """
    ordered = normalize_price_series(series)
    return simple_returns([p.close for p in ordered]).tolist()


def returns_by_date(series: List[PricePoint]) -> pd.Series:
    """
    Daily simple returns indexed by the date each return is realized.

    Used to align returns of symbols with different histories on shared dates.
    """
    ordered = normalize_price_series(series)
    if len(ordered) < 2:
        return pd.Series(dtype=float)

    closes = pd.Series(
        [p.close for p in ordered],
        index=[p.date for p in ordered],
        dtype=float,
    )
    previous = closes.shift(1)
    returns = (closes - previous) / previous
    # First row has no previous close; non-positive previous closes are unusable
    return returns[previous > 0]


def portfolio_returns_by_date(
    price_series_by_symbol: Dict[str, List[PricePoint]],
    positions: List[Position]
) -> pd.Series:
    """
    Market-value weighted daily portfolio returns indexed by date.

    Each position contributes weight * its own daily return on every date
    where it has a return; weights are current market value / total value.
    Dates are the union of all position return dates, in order.

    Args:
        price_series_by_symbol: Close-price history per symbol
        positions: Current holdings (weights come from market_value)

    Returns:
        Series of daily portfolio returns (empty if no usable data)
    """
    total_value = sum(p.market_value for p in positions)
    if total_value <= 0:
        return pd.Series(dtype=float)

    weighted = []
    for position in positions:
        series = price_series_by_symbol.get(position.symbol)
        if not series:
            logger.debug(f"No price history for {position.symbol}; excluded from portfolio returns")
            continue
        symbol_returns = returns_by_date(series)
        if symbol_returns.empty:
            continue
        weighted.append(symbol_returns * (position.market_value / total_value))

    if not weighted:
        return pd.Series(dtype=float)

    combined = pd.concat(weighted, axis=1).sort_index()
    return combined.sum(axis=1, min_count=1).dropna()


def portfolio_daily_returns(
    price_series_by_symbol: Dict[str, List[PricePoint]],
    positions: List[Position]
) -> List[float]:
    """Market-value weighted daily portfolio returns as a plain list."""
    return portfolio_returns_by_date(price_series_by_symbol, positions).tolist()
