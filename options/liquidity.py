"""
Option liquidity scoring and strike selection.
"""

import logging
import math
import numbers
from typing import List, Optional, Tuple

from ingestion.transforms.validators import InvalidInputError
from options.models import LiquidityInfo, LiquidityScore, OptionContract

# Set up logger
logger = logging.getLogger(__name__)

# Liquidity thresholds
MIN_BID = 0.05
MAX_SPREAD_PERCENT = 30.0

ILLIQUID_LAST_PRICE_HAIRCUT = 0.8

_SCORE_ORDER = {
    LiquidityScore.GOOD: 0,
    LiquidityScore.FAIR: 1,
    LiquidityScore.POOR: 2,
}


def validate_contract(contract: OptionContract) -> None:
    """
    Raises:
        InvalidInputError: If the contract is not an OptionContract or a quote
            field is negative or non-finite
    """
    if not isinstance(contract, OptionContract):
        raise InvalidInputError(f"expected OptionContract, got {type(contract)}")

    for name in ('strike', 'bid', 'ask', 'last_price', 'volume', 'open_interest'):
        value = getattr(contract, name)
        if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
            raise InvalidInputError(f"{name} must be a finite number, got {value!r}")
        if value < 0:
            raise InvalidInputError(f"{name} must be non-negative, got {value}")


def calculate_liquidity(contract: OptionContract) -> LiquidityInfo:
    """
    Liquidity metrics for one contract.

    Mid is the bid/ask midpoint when both sides are quoted, otherwise
    whichever of ask, bid or last price is available. A contract is liquid
    with a bid of at least $0.05 and a spread of at most 30% of mid.

    Returns:
        LiquidityInfo with score good (spread <= 10%, OI >= 100), fair
        (spread <= 25%, OI >= 20) or poor
    """
    bid = contract.bid
    ask = contract.ask
    if bid > 0 and ask > 0:
        mid = (bid + ask) / 2
    else:
        mid = ask or bid or contract.last_price

    spread = ask - bid
    spread_percent = (spread / mid) * 100 if mid > 0 else 100.0

    has_bid = bid >= MIN_BID
    is_liquid = has_bid and spread_percent <= MAX_SPREAD_PERCENT

    if has_bid and spread_percent <= 10 and contract.open_interest >= 100:
        score = LiquidityScore.GOOD
    elif has_bid and spread_percent <= 25 and contract.open_interest >= 20:
        score = LiquidityScore.FAIR
    else:
        score = LiquidityScore.POOR

    return LiquidityInfo(
        bid=bid,
        ask=ask,
        mid=mid,
        spread=spread,
        spread_percent=spread_percent,
        volume=contract.volume,
        open_interest=contract.open_interest,
        is_liquid=is_liquid,
        score=score,
    )


def select_liquid_call(
    calls: List[OptionContract],
    target_strike: float,
    min_price: float
) -> Optional[Tuple[OptionContract, LiquidityInfo]]:
    """
    Pick the call to write from one expiration.

    Calls below min_price (typically 90% of spot) are ignored. The liquid
    contract nearest the target strike wins; when none are liquid the best
    score nearest the target is returned, and the caller should surface a
    low-liquidity warning from `LiquidityInfo.is_liquid`.

    Args:
        calls: Call contracts for one expiration
        target_strike: Desired strike
        min_price: Strike floor

    Returns:
        (contract, liquidity) or None when no contract is at or above the floor

    Raises:
        InvalidInputError: If a contract carries negative or non-finite quotes
    """
    for call in calls:
        validate_contract(call)

    candidates = [
        (call, calculate_liquidity(call), abs(call.strike - target_strike))
        for call in calls
        if call.strike >= min_price
    ]
    if not candidates:
        return None

    liquid = [c for c in candidates if c[1].is_liquid]
    if liquid:
        best = min(liquid, key=lambda c: c[2])
    else:
        logger.debug(f"No liquid calls near strike {target_strike}; using best available")
        best = min(candidates, key=lambda c: (_SCORE_ORDER[c[1].score], c[2]))

    return best[0], best[1]


def simulation_premium(contract: OptionContract, liquidity: LiquidityInfo) -> Optional[float]:
    """
    Per-share premium a seller can expect.

    Mid for liquid two-sided quotes, else the bid, else the last trade less
    20%. None when no quote is usable.
    """
    if liquidity.is_liquid and contract.bid > 0 and contract.ask > 0:
        return (contract.bid + contract.ask) / 2
    if contract.bid > 0:
        return contract.bid
    if contract.last_price > 0:
        return contract.last_price * ILLIQUID_LAST_PRICE_HAIRCUT
    return None
