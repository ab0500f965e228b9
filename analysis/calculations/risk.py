"""
Risk metrics from daily return series.
Volatility, Sharpe, Sortino, drawdown, CAPM beta/alpha, tracking and VaR.
"""

import logging
import math
from typing import List, Optional

import numpy as np

from analysis.calculations.drawdown import max_drawdown_from_returns
from analysis.config import get_risk_free_rate
from analysis.models import RiskMetrics
from ingestion.transforms.validators import validate_returns

# Set up logger
logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
VAR_CONFIDENCE_TAIL = 0.05
# Dispersion below this is floating-point noise
NUMERIC_TOLERANCE = 1e-9


def _sample_variance(values: np.ndarray) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.var(values, ddof=1))


def value_at_risk(returns: List[float], tail: float = VAR_CONFIDENCE_TAIL) -> float:
    """
    Historical VaR as a positive loss percentage.

    Picks the sorted return at index floor(n * tail); no interpolation.
    """
    if len(returns) == 0:
        return 0.0
    ordered = np.sort(np.asarray(returns, dtype=float))
    index = int(math.floor(len(ordered) * tail))
    return float(-ordered[index] * 100)


def compute_risk(
    portfolio_returns: List[float],
    benchmark_returns: Optional[List[float]] = None,
    risk_free_rate: Optional[float] = None
) -> RiskMetrics:
    """
    Compute risk metrics for a daily return series.

    Args:
        portfolio_returns: Daily portfolio returns as decimals
        benchmark_returns: Daily benchmark returns; beta, alpha, R-squared,
            tracking error and information ratio are only computed when the
            lengths match
        risk_free_rate: Annual risk-free rate (defaults to configured 5%)

    Returns:
        RiskMetrics. Neutral defaults (beta 1, everything else 0) when fewer
        than 2 portfolio observations exist.

    Raises:
        InvalidInputError: If a series contains non-numeric or non-finite values
    """
    portfolio = np.asarray(validate_returns(portfolio_returns, "portfolio returns"), dtype=float)
    benchmark = np.asarray(validate_returns(benchmark_returns, "benchmark returns"), dtype=float)

    if len(portfolio) < 2:
        return RiskMetrics()

    if risk_free_rate is None:
        risk_free_rate = get_risk_free_rate()

    annualizer = math.sqrt(TRADING_DAYS_PER_YEAR)
    daily_rfr = risk_free_rate / TRADING_DAYS_PER_YEAR

    mean = float(np.mean(portfolio))
    std_dev = math.sqrt(_sample_variance(portfolio))
    if std_dev <= NUMERIC_TOLERANCE:
        std_dev = 0.0
    volatility = std_dev * annualizer * 100

    # Sharpe
    excess = portfolio - daily_rfr
    avg_excess = float(np.mean(excess))
    sharpe = (avg_excess / std_dev) * annualizer if std_dev > 0 else 0.0

    # Sortino: downside deviation over negative excess returns only
    downside = excess[excess < 0]
    downside_deviation = math.sqrt(float(np.mean(downside ** 2))) if len(downside) > 0 else 0.0
    sortino = (avg_excess / downside_deviation) * annualizer if downside_deviation > NUMERIC_TOLERANCE else 0.0

    max_drawdown = max_drawdown_from_returns(portfolio)

    beta = 1.0
    alpha = 0.0
    r_squared = 0.0
    tracking_error = 0.0
    information_ratio = 0.0

    if len(benchmark) == len(portfolio) and len(benchmark) > 0:
        benchmark_mean = float(np.mean(benchmark))
        benchmark_variance = _sample_variance(benchmark)
        covariance = float(
            np.sum((portfolio - mean) * (benchmark - benchmark_mean)) / (len(portfolio) - 1)
        )

        if benchmark_variance > 0:
            beta = covariance / benchmark_variance
        else:
            logger.debug("Benchmark variance is zero; beta defaults to 1")

        alpha = (mean - daily_rfr - beta * (benchmark_mean - daily_rfr)) * TRADING_DAYS_PER_YEAR * 100

        predicted = mean + beta * (benchmark - benchmark_mean)
        ss_res = float(np.sum((portfolio - predicted) ** 2))
        ss_tot = float(np.sum((portfolio - mean) ** 2))
        r_squared = 1 - (ss_res / ss_tot) if ss_tot > 0 else 0.0

        tracking_diff = portfolio - benchmark
        tracking_std = math.sqrt(_sample_variance(tracking_diff))
        if tracking_std <= NUMERIC_TOLERANCE:
            tracking_std = 0.0
        tracking_error = tracking_std * annualizer * 100

        if tracking_error > 0:
            information_ratio = (float(np.mean(tracking_diff)) * TRADING_DAYS_PER_YEAR * 100) / tracking_error
    elif len(benchmark) > 0:
        logger.info(
            f"Benchmark length {len(benchmark)} differs from portfolio length "
            f"{len(portfolio)}; skipping relative metrics"
        )

    return RiskMetrics(
        volatility=volatility,
        sharpe_ratio=sharpe,
        sortino_ratio=sortino,
        max_drawdown=max_drawdown,
        beta=beta,
        alpha=alpha,
        r_squared=r_squared,
        information_ratio=information_ratio,
        tracking_error=tracking_error,
        var_95=value_at_risk(portfolio),
    )
