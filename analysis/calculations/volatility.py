"""
Volatility calculation utilities.
Pure functions for log returns and realized volatility calculations.
"""

import math
from typing import List

import numpy as np

from analysis.models import PricePoint
from ingestion.transforms.normalizers import normalize_price_series

TRADING_DAYS_PER_YEAR = 252


def log_returns(prices: List[float]) -> np.ndarray:
    """
    Calculate log returns from price series.

    Formula: r_t = ln(P_t / P_{t-1})

    Args:
        prices: List of prices in chronological order

    Returns:
        Numpy array of log returns. Pairs with a non-positive price are
        skipped; empty when fewer than 2 prices.
    """
    if len(prices) < 2:
        return np.array([])

    price_array = np.asarray(prices, dtype=float)
    previous = price_array[:-1]
    current = price_array[1:]
    valid = (previous > 0) & (current > 0)

    return np.log(current[valid] / previous[valid])


def realized_vol(
    log_ret: np.ndarray,
    annualize: int = TRADING_DAYS_PER_YEAR
) -> float:
    """
    Calculate annualized realized volatility from log returns.

    Formula: sigma = std(log_returns, ddof=1) * sqrt(annualize)

    Args:
        log_ret: Array of log returns
        annualize: Annualization factor (252 for daily to annual)

    Returns:
        Annualized volatility as decimal (0.25 = 25%), 0.0 when fewer
        than 2 finite returns are available
    """
    returns = np.asarray(log_ret, dtype=float)
    returns = returns[np.isfinite(returns)]

    if len(returns) < 2:
        return 0.0

    std_dev = np.std(returns, ddof=1)
    return float(std_dev * math.sqrt(annualize))


def trailing_volatility(prices: List[float], window: int) -> float:
    """
    Realized volatility of the last `window` log returns ending at the last price.

    Uses whatever history exists when it is shorter than the window.
    """
    if window < 2:
        window = 2
    recent = prices[-(window + 1):]
    return realized_vol(log_returns(recent))


def historical_volatility(
    series: List[PricePoint],
    window: int = 20
) -> List[dict]:
    """
    Rolling annualized historical volatility.

    Args:
        series: Price series (any order; sorted and deduplicated here)
        window: Rolling window of log returns

    Returns:
        List of {'date', 'hv'} dicts, one per complete window, dated at the
        last price of the window. Empty when history is shorter than window + 1.
    """
    ordered = normalize_price_series(series)
    if window < 2 or len(ordered) < window + 1:
        return []

    closes = [p.close for p in ordered]
    results = []

    for end in range(window, len(ordered)):
        window_prices = closes[end - window:end + 1]
        results.append({
            'date': ordered[end].date,
            'hv': realized_vol(log_returns(window_prices)),
        })

    return results
