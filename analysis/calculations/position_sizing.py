"""
Position sizing utilities.
Fixed-risk, half-Kelly and ATR-based share counts with constraint checks.
"""

import math
from typing import List, Optional, Tuple

from analysis.models import PositionSizeResult
from ingestion.transforms.validators import InvalidInputError

KELLY_FRACTION = 0.5
MAX_KELLY_WEIGHT = 0.25
DEFAULT_ATR_MULTIPLIER = 2.0


def _check_inputs(portfolio_value: float, entry_price: float) -> None:
    if not math.isfinite(portfolio_value) or portfolio_value <= 0:
        raise InvalidInputError(f"portfolio_value must be positive, got {portfolio_value}")
    if not math.isfinite(entry_price) or entry_price <= 0:
        raise InvalidInputError(f"entry_price must be positive, got {entry_price}")


def _risk_reward(target_price: Optional[float], entry_price: float, risk_per_share: float) -> Optional[float]:
    if not target_price or risk_per_share <= 0:
        return None
    return abs(target_price - entry_price) / risk_per_share


def fixed_risk_size(
    portfolio_value: float,
    entry_price: float,
    stop_loss: float,
    risk_percent: float,
    target_price: Optional[float] = None
) -> PositionSizeResult:
    """
    Size a position so that hitting the stop loses a fixed share of the portfolio.

    Args:
        portfolio_value: Total portfolio value
        entry_price: Planned entry price
        stop_loss: Stop price
        risk_percent: Fraction of portfolio to risk (0.02 = 2%)
        target_price: Optional profit target for the risk/reward ratio

    Returns:
        PositionSizeResult; zero shares when entry equals stop
    """
    _check_inputs(portfolio_value, entry_price)

    risk_per_share = abs(entry_price - stop_loss)
    if risk_per_share == 0:
        return PositionSizeResult(
            method='fixed_risk',
            shares=0,
            position_size=0.0,
            portfolio_weight=0.0,
            risk_amount=0.0,
            risk_reward_ratio=None,
            stop_loss=stop_loss,
            target_price=target_price or None,
        )

    shares = int(math.floor(portfolio_value * risk_percent / risk_per_share))
    position_size = shares * entry_price

    return PositionSizeResult(
        method='fixed_risk',
        shares=shares,
        position_size=position_size,
        portfolio_weight=position_size / portfolio_value,
        risk_amount=shares * risk_per_share,
        risk_reward_ratio=_risk_reward(target_price, entry_price, risk_per_share),
        stop_loss=stop_loss,
        target_price=target_price or None,
    )


def kelly_fraction(win_rate: float, avg_win: float, avg_loss: float) -> float:
    """
    Half-Kelly fraction, floored at 0 and capped at 25% of the portfolio.

    f* = (b * p - q) / b with b = avg_win / avg_loss.
    """
    if avg_win <= 0 or avg_loss <= 0:
        return 0.0
    b = avg_win / avg_loss
    p = win_rate
    q = 1 - p
    fraction = (b * p - q) / b
    return min(max(0.0, fraction * KELLY_FRACTION), MAX_KELLY_WEIGHT)


def kelly_size(
    portfolio_value: float,
    entry_price: float,
    stop_loss: float,
    target_price: Optional[float] = None,
    win_rate: float = 0.5,
    avg_win: float = 0.1,
    avg_loss: float = 0.05
) -> PositionSizeResult:
    """Size a position with the half-Kelly criterion."""
    _check_inputs(portfolio_value, entry_price)

    fraction = kelly_fraction(win_rate, avg_win, avg_loss)
    shares = int(math.floor(portfolio_value * fraction / entry_price))
    position_size = shares * entry_price
    risk_per_share = abs(entry_price - stop_loss)

    return PositionSizeResult(
        method='kelly',
        shares=shares,
        position_size=position_size,
        portfolio_weight=position_size / portfolio_value,
        risk_amount=shares * risk_per_share,
        risk_reward_ratio=_risk_reward(target_price, entry_price, risk_per_share),
        stop_loss=stop_loss,
        target_price=target_price or None,
    )


def atr_size(
    portfolio_value: float,
    entry_price: float,
    risk_percent: float,
    atr: float,
    atr_multiplier: float = DEFAULT_ATR_MULTIPLIER,
    target_price: Optional[float] = None
) -> PositionSizeResult:
    """
    Size a position with a stop placed atr * multiplier below entry.

    Zero shares (stop at entry) when the ATR is not positive.
    """
    _check_inputs(portfolio_value, entry_price)

    if atr <= 0:
        return PositionSizeResult(
            method='atr',
            shares=0,
            position_size=0.0,
            portfolio_weight=0.0,
            risk_amount=0.0,
            risk_reward_ratio=None,
            stop_loss=entry_price,
            target_price=target_price or None,
        )

    stop_distance = atr * atr_multiplier
    shares = int(math.floor(portfolio_value * risk_percent / stop_distance))
    position_size = shares * entry_price

    return PositionSizeResult(
        method='atr',
        shares=shares,
        position_size=position_size,
        portfolio_weight=position_size / portfolio_value,
        risk_amount=shares * stop_distance,
        risk_reward_ratio=_risk_reward(target_price, entry_price, stop_distance),
        stop_loss=entry_price - stop_distance,
        target_price=target_price or None,
    )


def average_true_range(
    highs: List[float],
    lows: List[float],
    closes: List[float],
    period: int = 14
) -> float:
    """
    Average True Range over the last `period` bars.

    True range = max(high - low, |high - prev close|, |low - prev close|).
    Returns 0.0 when any series is shorter than period + 1.
    """
    if min(len(highs), len(lows), len(closes)) < period + 1:
        return 0.0

    true_ranges = [
        max(
            highs[i] - lows[i],
            abs(highs[i] - closes[i - 1]),
            abs(lows[i] - closes[i - 1])
        )
        for i in range(1, len(highs))
    ]
    recent = true_ranges[-period:]
    return sum(recent) / len(recent)


def validate_position_size(
    result: PositionSizeResult,
    portfolio_value: float,
    max_position_weight: float = 0.10,
    max_risk_percent: float = 0.05
) -> Tuple[bool, List[str]]:
    """
    Check a sizing result against portfolio constraints.

    A risk/reward ratio below 1 only warns; it does not invalidate.

    Returns:
        Tuple of (is_valid, warnings)
    """
    warnings = []
    is_valid = True

    if result.portfolio_weight > max_position_weight:
        warnings.append(
            f"Position size ({result.portfolio_weight * 100:.1f}%) exceeds maximum "
            f"allowed ({max_position_weight * 100:.0f}%)"
        )
        is_valid = False

    actual_risk = result.risk_amount / portfolio_value if portfolio_value > 0 else 0.0
    if actual_risk > max_risk_percent:
        warnings.append(
            f"Risk amount ({actual_risk * 100:.2f}%) exceeds maximum "
            f"allowed ({max_risk_percent * 100:.0f}%)"
        )
        is_valid = False

    if result.shares == 0:
        warnings.append("Calculated position size is zero")
        is_valid = False

    if result.risk_reward_ratio is not None and result.risk_reward_ratio < 1:
        warnings.append(f"Risk/reward ratio ({result.risk_reward_ratio:.2f}) is less than 1:1")

    return is_valid, warnings


def round_to_lot(shares: int, lot_size: int = 1) -> int:
    return (shares // lot_size) * lot_size
