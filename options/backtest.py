"""
Historical covered call backtest.

Walks a daily close series as a two-state machine: Holding (no call
written) and ShortCall (one call outstanding until its expiration date).
Premiums are estimated with Black-Scholes since no historical chain exists.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple, Union

from analysis.calculations.volatility import log_returns, realized_vol, trailing_volatility
from analysis.config import (
    get_backtest_max_events,
    get_hv_window,
    get_iv_multiplier,
    get_risk_free_rate,
)
from analysis.models import PricePoint
from ingestion.transforms.normalizers import normalize_price_series
from ingestion.transforms.validators import InvalidInputError, validate_price_series
from options.models import BacktestEvent, BacktestEventKind, BacktestResult
from options.pricing import (
    DAYS_PER_YEAR,
    SHARES_PER_CONTRACT,
    black_scholes_call,
    calculate_strike,
    contract_count,
    strike_increment,
)

# Set up logger
logger = logging.getLogger(__name__)

ASSIGNMENT_POLICIES = ('continue', 'stop')


@dataclass(frozen=True)
class Holding:
    """Shares held with no call outstanding."""
    pass


@dataclass(frozen=True)
class ShortCall:
    """One covered call cycle outstanding."""
    strike: float
    expiration_date: date
    premium: float
    opened_on: date


BacktestState = Union[Holding, ShortCall]


def open_short_call(
    bar: PricePoint,
    contracts: int,
    moneyness_percent: float,
    target_dte: int,
    volatility: float,
    risk_free_rate: float
) -> ShortCall:
    """
    Write calls at the configured moneyness on this bar's close.

    Premium is the Black-Scholes call value for the full position
    (per-share price * contracts * 100).
    """
    strike = calculate_strike(bar.close, moneyness_percent, strike_increment(bar.close))
    per_share = black_scholes_call(
        bar.close,
        strike,
        target_dte / DAYS_PER_YEAR,
        risk_free_rate,
        volatility
    )
    return ShortCall(
        strike=strike,
        expiration_date=bar.date + timedelta(days=target_dte),
        premium=per_share * contracts * SHARES_PER_CONTRACT,
        opened_on=bar.date,
    )


def settle_short_call(state: ShortCall, bar: PricePoint) -> Tuple[Holding, BacktestEventKind]:
    """
    Resolve an outstanding call on the first bar at or after its expiration.

    A close at or above the strike is an assignment; otherwise the call
    expires worthless. Either way the premium is kept and the shares are
    held again for the next cycle.
    """
    if bar.close >= state.strike:
        return Holding(), BacktestEventKind.ASSIGNMENT
    return Holding(), BacktestEventKind.EXPIRATION


def _estimate_volatility(
    closes: List[float],
    index: int,
    hv_window: int,
    iv_multiplier: float
) -> float:
    """Trailing realized volatility scaled as an implied volatility stand-in."""
    realized = trailing_volatility(closes[:index + 1], hv_window)
    if realized <= 0:
        # Not enough trailing history yet; use the whole series
        realized = realized_vol(log_returns(closes))
    return realized * iv_multiplier


def backtest_covered_call(
    price_series: List[PricePoint],
    shares: int,
    moneyness_percent: float,
    target_dte: int,
    assumed_iv: Optional[float] = None,
    risk_free_rate: Optional[float] = None,
    iv_multiplier: Optional[float] = None,
    hv_window: Optional[int] = None,
    max_events: Optional[int] = None,
    assignment_policy: str = 'continue'
) -> BacktestResult:
    """
    Backtest writing covered calls over a historical close series.

    Each cycle opens on a bar, expires target_dte calendar days later and
    settles on the first bar at or after that date; the next cycle opens on
    the settlement bar. A cycle whose expiration falls after the last bar is
    never opened.

    Args:
        price_series: Daily closes (any order; sorted and deduplicated)
        shares: Shares held; whole contracts only
        moneyness_percent: Strike distance from spot (5 = 5% out of the money)
        target_dte: Calendar days per cycle
        assumed_iv: Fixed volatility; when None, trailing realized volatility
            times iv_multiplier is used
        risk_free_rate: Annual rate (defaults to configuration)
        iv_multiplier: Realized-to-implied multiplier (defaults to 1.2)
        hv_window: Trailing window for realized volatility (defaults to 20)
        max_events: Number of most recent events kept (defaults to 20)
        assignment_policy: 'continue' re-enters Holding after assignment;
            'stop' ends the backtest at the first assignment

    Returns:
        BacktestResult; empty when fewer than 100 shares or 2 prices

    Raises:
        InvalidInputError: If the series is malformed, target_dte is not
            positive or the assignment policy is unknown
    """
    series = normalize_price_series(validate_price_series(price_series))
    if target_dte is None or target_dte <= 0:
        raise InvalidInputError(f"target_dte must be positive, got {target_dte}")
    if assignment_policy not in ASSIGNMENT_POLICIES:
        raise InvalidInputError(f"unknown assignment policy: {assignment_policy!r}")

    if risk_free_rate is None:
        risk_free_rate = get_risk_free_rate()
    if iv_multiplier is None:
        iv_multiplier = get_iv_multiplier()
    if hv_window is None:
        hv_window = get_hv_window()
    if max_events is None:
        max_events = get_backtest_max_events()

    contracts = contract_count(shares)
    if contracts == 0 or len(series) < 2:
        return BacktestResult(
            start_date=series[0].date if series else None,
            end_date=series[-1].date if series else None,
        )

    closes = [p.close for p in series]
    last_date = series[-1].date

    state: BacktestState = Holding()
    events: List[BacktestEvent] = []
    total_premium = 0.0
    cycles = 0
    assignments = 0
    stopped = False

    for index, bar in enumerate(series):
        if isinstance(state, ShortCall) and bar.date >= state.expiration_date:
            settled = state
            state, kind = settle_short_call(settled, bar)
            if kind == BacktestEventKind.ASSIGNMENT:
                assignments += 1
            events.append(BacktestEvent(
                date=bar.date,
                kind=kind,
                strike=settled.strike,
                close=bar.close,
                premium=settled.premium,
                cumulative_premium=total_premium,
            ))
            if kind == BacktestEventKind.ASSIGNMENT and assignment_policy == 'stop':
                stopped = True
                break

        if isinstance(state, Holding):
            if bar.date + timedelta(days=target_dte) > last_date:
                break
            if bar.close <= 0:
                continue

            volatility = (
                assumed_iv if assumed_iv is not None
                else _estimate_volatility(closes, index, hv_window, iv_multiplier)
            )
            state = open_short_call(
                bar, contracts, moneyness_percent, target_dte, volatility, risk_free_rate
            )
            total_premium += state.premium
            cycles += 1
            events.append(BacktestEvent(
                date=bar.date,
                kind=BacktestEventKind.ROLL,
                strike=state.strike,
                close=bar.close,
                premium=state.premium,
                cumulative_premium=total_premium,
            ))

    start_date = series[0].date
    end_date = series[-1].date
    elapsed_years = (end_date - start_date).days / DAYS_PER_YEAR
    average_value = (sum(closes) / len(closes)) * shares

    if elapsed_years > 0 and average_value > 0:
        annualized_yield = (total_premium / average_value) / elapsed_years * 100
    else:
        annualized_yield = 0.0

    logger.debug(
        f"Backtest {start_date} to {end_date}: {cycles} cycles, "
        f"{assignments} assignments{' (stopped)' if stopped else ''}"
    )

    return BacktestResult(
        start_date=start_date,
        end_date=end_date,
        total_premium=total_premium,
        total_cycles=cycles,
        assignment_count=assignments,
        assignment_rate=(assignments / cycles) * 100 if cycles > 0 else 0.0,
        average_premium_per_cycle=total_premium / cycles if cycles > 0 else 0.0,
        annualized_yield=annualized_yield,
        events=events[-max_events:] if max_events > 0 else [],
    )
