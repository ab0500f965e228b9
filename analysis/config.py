"""
Runtime configuration for the analytics engine.
Values come from the environment (optionally a .env file) and are read at call time.
"""

import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def get_risk_free_rate() -> float:
    """Annual risk-free rate as decimal (0.05 = 5%)."""
    return float(os.getenv('PORTFOLIO_RISK_FREE_RATE', '0.05'))


def get_benchmark_symbol() -> str:
    return os.getenv('PORTFOLIO_BENCHMARK_SYMBOL', 'SPY').strip().upper()


def get_iv_multiplier() -> float:
    """Multiplier applied to realized volatility when no implied volatility is known."""
    return float(os.getenv('OPTIONS_IV_MULTIPLIER', '1.2'))


def get_hv_window() -> int:
    """Trailing window (trading days) for historical volatility estimates."""
    return int(os.getenv('OPTIONS_HV_WINDOW', '20'))


def get_backtest_max_events() -> int:
    """Number of most recent backtest events kept for display."""
    return int(os.getenv('BACKTEST_MAX_EVENTS', '20'))
