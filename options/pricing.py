"""
Option pricing utilities.
Black-Scholes prices, delta, assignment probability, strikes and covered call yields.
"""

import math
from typing import List

from scipy.stats import norm

DAYS_PER_YEAR = 365
SHARES_PER_CONTRACT = 100


def _d1_d2(S: float, K: float, T: float, r: float, sigma: float):
    d1 = (math.log(S / K) + (r + sigma ** 2 / 2) * T) / (sigma * math.sqrt(T))
    return d1, d1 - sigma * math.sqrt(T)


def black_scholes_call(S: float, K: float, T: float, r: float, sigma: float) -> float:
    """
    Black-Scholes price of a European call.

    Args:
        S: Underlying price
        K: Strike
        T: Time to expiration in years
        r: Continuously compounded risk-free rate (0.05 = 5%)
        sigma: Volatility as decimal (0.30 = 30%)

    Returns:
        Call price; intrinsic value when T, sigma, S or K is not positive
    """
    if T <= 0 or sigma <= 0 or S <= 0 or K <= 0:
        return max(0.0, S - K)

    d1, d2 = _d1_d2(S, K, T, r, sigma)
    return float(S * norm.cdf(d1) - K * math.exp(-r * T) * norm.cdf(d2))


def black_scholes_put(S: float, K: float, T: float, r: float, sigma: float) -> float:
    """Black-Scholes price of a European put; intrinsic value when any input is not positive."""
    if T <= 0 or sigma <= 0 or S <= 0 or K <= 0:
        return max(0.0, K - S)

    d1, d2 = _d1_d2(S, K, T, r, sigma)
    return float(K * math.exp(-r * T) * norm.cdf(-d2) - S * norm.cdf(-d1))


def call_delta(
    current_price: float,
    strike: float,
    days_to_expiration: float,
    volatility: float,
    risk_free_rate: float = 0.05
) -> float:
    if days_to_expiration <= 0 or volatility <= 0 or current_price <= 0 or strike <= 0:
        return 1.0 if current_price >= strike else 0.0

    T = days_to_expiration / DAYS_PER_YEAR
    d1, _ = _d1_d2(current_price, strike, T, risk_free_rate, volatility)
    return float(norm.cdf(d1))


def assignment_probability(
    current_price: float,
    strike: float,
    days_to_expiration: float,
    volatility: float,
    risk_free_rate: float = 0.05
) -> float:
    """
    Probability (percent) that the call finishes in the money, N(d2).
    """
    if days_to_expiration <= 0 or volatility <= 0 or current_price <= 0 or strike <= 0:
        return 100.0 if current_price >= strike else 0.0

    T = days_to_expiration / DAYS_PER_YEAR
    _, d2 = _d1_d2(current_price, strike, T, risk_free_rate, volatility)
    return float(norm.cdf(d2) * 100)


def strike_increment(price: float) -> float:
    """Listed strike spacing for a given underlying price."""
    if price < 5:
        return 0.5
    if price < 25:
        return 1.0
    if price < 200:
        return 2.5
    return 5.0


def calculate_strike(current_price: float, moneyness_percent: float, increment: float = 1.0) -> float:
    """
    Strike at the given moneyness, rounded to the nearest increment.

    Positive moneyness is out of the money for a call (5 = 5% above spot).
    """
    target = current_price * (1 + moneyness_percent / 100)
    return round(target / increment) * increment


def closest_strike(target_strike: float, available_strikes: List[float]) -> float:
    """Nearest listed strike; the target itself when nothing is listed."""
    if not available_strikes:
        return target_strike
    return min(available_strikes, key=lambda s: abs(s - target_strike))


def annualized_premium_yield(premium: float, stock_price: float, days_to_expiration: float) -> float:
    """
    Compounded annual yield (percent) of collecting `premium` every cycle.

    (1 + premium / price)^(365 / DTE) - 1
    """
    if stock_price <= 0 or days_to_expiration <= 0:
        return 0.0
    cycle_yield = premium / stock_price
    return ((1 + cycle_yield) ** (DAYS_PER_YEAR / days_to_expiration) - 1) * 100


def yield_if_called(premium: float, strike: float, current_price: float, days_to_expiration: float) -> float:
    """Annualized yield (percent) of premium plus capital gain up to the strike."""
    if current_price <= 0 or days_to_expiration <= 0:
        return 0.0
    capital_gain = max(0.0, strike - current_price)
    total_return = (premium + capital_gain) / current_price
    return ((1 + total_return) ** (DAYS_PER_YEAR / days_to_expiration) - 1) * 100


def contract_count(shares: float) -> int:
    """Whole contracts that can be covered by a share count."""
    return int(shares // SHARES_PER_CONTRACT)


def breakeven(current_price: float, premium: float) -> float:
    return current_price - premium


def max_profit(shares: float, current_price: float, strike: float, premium: float) -> float:
    """Premium plus capital gain to the strike, in dollars, for whole contracts only."""
    contracts = contract_count(shares)
    capital_gain = max(0.0, strike - current_price) * contracts * SHARES_PER_CONTRACT
    return capital_gain + premium * contracts * SHARES_PER_CONTRACT
