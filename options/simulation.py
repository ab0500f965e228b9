"""
Covered call simulation against a live options chain.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from analysis.config import get_risk_free_rate
from ingestion.transforms.validators import InvalidInputError
from options.liquidity import select_liquid_call, simulation_premium
from options.models import CoveredCallSimulation, OptionExpiration, OptionsChain
from options.pricing import (
    annualized_premium_yield,
    assignment_probability,
    breakeven,
    calculate_strike,
    call_delta,
    contract_count,
    max_profit,
    strike_increment,
    yield_if_called,
)

# Set up logger
logger = logging.getLogger(__name__)

MIN_DAYS_TO_EXPIRATION = 2
STRIKE_FLOOR_RATIO = 0.9
DEFAULT_IMPLIED_VOLATILITY = 0.30


@dataclass(frozen=True)
class CycleConfig:
    target: int
    min: int
    max: int


CYCLES = {
    'weekly': CycleConfig(target=7, min=4, max=14),
    'monthly': CycleConfig(target=30, min=20, max=45),
    '45dte': CycleConfig(target=45, min=35, max=60),
}


def get_cycle_config(cycle: Union[str, CycleConfig]) -> CycleConfig:
    if isinstance(cycle, CycleConfig):
        return cycle
    try:
        return CYCLES[cycle]
    except KeyError:
        raise InvalidInputError(f"unknown expiration cycle: {cycle!r}")


def select_expiration(
    expirations: List[OptionExpiration],
    cycle: Union[str, CycleConfig]
) -> Optional[OptionExpiration]:
    """
    Expiration closest to the cycle's target DTE.

    Expirations under 2 days out are ignored. Those inside the cycle's
    [min, max] range are preferred over the rest.
    """
    config = get_cycle_config(cycle)
    usable = [e for e in expirations if e.days_to_expiration >= MIN_DAYS_TO_EXPIRATION]
    if not usable:
        return None

    in_range = [e for e in usable if config.min <= e.days_to_expiration <= config.max]
    pool = in_range or usable
    return min(pool, key=lambda e: abs(e.days_to_expiration - config.target))


def simulate_covered_call(
    chain: OptionsChain,
    shares: int,
    moneyness_percent: float,
    cycle: Union[str, CycleConfig] = 'monthly',
    risk_free_rate: Optional[float] = None
) -> Optional[CoveredCallSimulation]:
    """
    Simulate writing covered calls on a holding from a live chain.

    Args:
        chain: Options chain for the underlying
        shares: Shares held
        moneyness_percent: Target moneyness (5 = 5% out of the money)
        cycle: 'weekly', 'monthly', '45dte' or a CycleConfig
        risk_free_rate: Annual rate for delta/probability estimates

    Returns:
        CoveredCallSimulation, or None when fewer than 100 shares are held,
        the underlying has no positive price, or no expiration, no strike at
        or above 90% of spot, or no usable quote exists

    Raises:
        InvalidInputError: If the underlying price is not a finite number
    """
    price = chain.underlying_price
    if isinstance(price, bool) or not isinstance(price, numbers.Real) or not math.isfinite(price):
        raise InvalidInputError(f"{chain.symbol} underlying_price must be a finite number, got {price!r}")
    if price <= 0:
        logger.info(f"{chain.symbol}: no positive underlying price; cannot simulate")
        return None

    contracts = contract_count(shares)
    if contracts == 0:
        logger.info(f"{chain.symbol}: {shares} shares cover no whole contract")
        return None

    if risk_free_rate is None:
        risk_free_rate = get_risk_free_rate()

    expiration = select_expiration(chain.expirations, cycle)
    if expiration is None:
        logger.info(f"{chain.symbol}: no usable expiration for cycle {cycle}")
        return None

    target_strike = calculate_strike(price, moneyness_percent, strike_increment(price))

    selected = select_liquid_call(expiration.calls, target_strike, price * STRIKE_FLOOR_RATIO)
    if selected is None:
        logger.info(f"{chain.symbol}: no calls at or above {price * STRIKE_FLOOR_RATIO:.2f}")
        return None
    contract, liquidity = selected

    premium = simulation_premium(contract, liquidity)
    if premium is None:
        logger.info(f"{chain.symbol}: no usable quote for strike {contract.strike}")
        return None

    dte = expiration.days_to_expiration
    iv = contract.implied_volatility or DEFAULT_IMPLIED_VOLATILITY

    return CoveredCallSimulation(
        symbol=chain.symbol,
        shares=shares,
        contracts=contracts,
        current_price=price,
        strike=contract.strike,
        expiration_date=expiration.expiration_date,
        days_to_expiration=dte,
        premium=premium,
        total_premium=premium * contracts * 100,
        annualized_yield=annualized_premium_yield(premium, price, dte),
        yield_if_called=yield_if_called(premium, contract.strike, price, dte),
        assignment_probability=assignment_probability(price, contract.strike, dte, iv, risk_free_rate),
        delta=call_delta(price, contract.strike, dte, iv, risk_free_rate),
        breakeven=breakeven(price, premium),
        max_profit=max_profit(shares, price, contract.strike, premium),
        liquidity=liquidity,
        low_liquidity=not liquidity.is_liquid,
    )


def summarize_covered_calls(simulations: List[CoveredCallSimulation]) -> Dict[str, float]:
    """
    Portfolio-wide income from one cycle of covered calls.

    Returns:
        Dictionary with total premium, covered value, value-weighted
        annualized yield and count of low-liquidity picks
    """
    total_premium = sum(s.total_premium for s in simulations)
    covered_value = sum(s.contracts * 100 * s.current_price for s in simulations)

    if covered_value > 0:
        weighted_yield = sum(
            s.annualized_yield * s.contracts * 100 * s.current_price for s in simulations
        ) / covered_value
    else:
        weighted_yield = 0.0

    return {
        'total_premium': total_premium,
        'covered_value': covered_value,
        'annualized_yield': weighted_yield,
        'positions': len(simulations),
        'low_liquidity_count': sum(1 for s in simulations if s.low_liquidity),
    }
