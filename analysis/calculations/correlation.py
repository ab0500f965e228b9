"""
Correlation calculation utilities.
Pairwise Pearson correlation of daily returns, aligned on shared dates.
"""

import logging
import math
from typing import Dict, List

import numpy as np
import pandas as pd

from analysis.calculations.returns import returns_by_date
from analysis.models import CorrelationMatrix, CorrelationPair, PricePoint
from ingestion.transforms.validators import validate_price_series

# Set up logger
logger = logging.getLogger(__name__)

TOP_PAIRS = 10
NEAR_PERFECT = 0.99


def pearson_correlation(x: pd.Series, y: pd.Series) -> float:
    """
    Pearson correlation of two return series over their common dates.

    Args:
        x: Returns indexed by date
        y: Returns indexed by date

    Returns:
        Correlation clipped to [-1, 1]; 0.0 when fewer than 2 shared
        observations or either side has zero variance
    """
    aligned = pd.concat([x, y], axis=1, join='inner').dropna()
    if len(aligned) < 2:
        return 0.0

    a = aligned.iloc[:, 0].to_numpy(dtype=float)
    b = aligned.iloc[:, 1].to_numpy(dtype=float)
    n = len(a)

    numerator = n * np.sum(a * b) - np.sum(a) * np.sum(b)
    denominator_sq = (n * np.sum(a * a) - np.sum(a) ** 2) * (n * np.sum(b * b) - np.sum(b) ** 2)
    if denominator_sq <= 0:
        return 0.0

    value = float(numerator / math.sqrt(denominator_sq))
    if not math.isfinite(value):
        return 0.0
    return max(-1.0, min(1.0, value))


def _unique_symbols(symbols: List[str]) -> List[str]:
    seen = set()
    unique = []
    for symbol in symbols:
        if symbol not in seen:
            seen.add(symbol)
            unique.append(symbol)
    return unique


def compute_correlation(
    price_series_by_symbol: Dict[str, List[PricePoint]],
    symbols: List[str]
) -> CorrelationMatrix:
    """
    Correlation matrix of daily returns for a set of symbols.

    Duplicate symbols (the same holding in several accounts) are collapsed,
    keeping first-seen order. A symbol with fewer than 2 prices gets empty
    returns and correlates 0 with everything else.

    Args:
        price_series_by_symbol: Close-price history per symbol
        symbols: Symbols to include, possibly with duplicates

    Returns:
        CorrelationMatrix with a symmetric matrix (diagonal 1), the 10 most
        correlated pairs below 0.99 and the 10 least correlated pairs

    Raises:
        InvalidInputError: If a price series is malformed
    """
    unique = _unique_symbols(list(symbols))

    returns_map: Dict[str, pd.Series] = {}
    for symbol in unique:
        series = validate_price_series(price_series_by_symbol.get(symbol), f"{symbol} prices")
        returns_map[symbol] = returns_by_date(series)
        if returns_map[symbol].empty:
            logger.debug(f"{symbol}: insufficient price history for correlation")

    size = len(unique)
    matrix = [[0.0] * size for _ in range(size)]
    pairs: List[CorrelationPair] = []

    for i in range(size):
        matrix[i][i] = 1.0
        for j in range(i + 1, size):
            value = pearson_correlation(returns_map[unique[i]], returns_map[unique[j]])
            matrix[i][j] = value
            matrix[j][i] = value
            pairs.append(CorrelationPair(pair=(unique[i], unique[j]), value=value))

    high = sorted(
        (p for p in pairs if p.value < NEAR_PERFECT),
        key=lambda p: p.value,
        reverse=True
    )[:TOP_PAIRS]
    low = sorted(pairs, key=lambda p: p.value)[:TOP_PAIRS]

    return CorrelationMatrix(
        symbols=unique,
        matrix=matrix,
        high_correlations=high,
        low_correlations=low,
    )
