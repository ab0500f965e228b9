"""
Performance calculation utilities.
Simple, cash-flow adjusted, annualized and Modified Dietz time-weighted returns.
"""

import logging
from datetime import date
from typing import List, Optional

from analysis.models import (
    CashFlow,
    CashFlowKind,
    CashFlowSummary,
    GainType,
    PerformanceMetrics,
    Position,
    ValuePoint,
)
from ingestion.transforms.validators import (
    InvalidInputError,
    validate_cash_flows,
    validate_positions,
)

# Set up logger
logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365
MIN_ANNUALIZATION_DAYS = 30
MIN_ANNUALIZED_PERCENT = -100.0
MAX_ANNUALIZED_PERCENT = 500.0


def summarize_cash_flows(cash_flows: List[CashFlow]) -> CashFlowSummary:
    """
    Total deposits, withdrawals, dividends and fees.

    Withdrawals and fees are counted by magnitude regardless of input sign.
    """
    deposits = withdrawals = dividends = fees = 0.0

    for flow in cash_flows:
        kind = CashFlowKind(flow.kind)
        if kind == CashFlowKind.DEPOSIT:
            deposits += flow.amount
        elif kind == CashFlowKind.WITHDRAWAL:
            withdrawals += abs(flow.amount)
        elif kind == CashFlowKind.DIVIDEND:
            dividends += flow.amount
        elif kind == CashFlowKind.FEE:
            fees += abs(flow.amount)

    return CashFlowSummary(
        deposits=deposits,
        withdrawals=withdrawals,
        dividends=dividends,
        fees=fees,
    )


def signed_flow_amount(flow: CashFlow) -> float:
    """Withdrawals always count as outflows, whatever sign the caller used."""
    if CashFlowKind(flow.kind) == CashFlowKind.WITHDRAWAL:
        return -abs(flow.amount)
    return flow.amount


def average_holding_days(positions: List[Position], as_of: date) -> float:
    """
    Cost-basis weighted average holding period in days.

    Each position is held at least 1 day. Positions without a purchase
    date or with non-positive cost do not contribute; 365 days is assumed
    when nothing contributes.
    """
    weighted_days = 0.0
    total_weight = 0.0

    for position in positions:
        if position.purchase_date is None or position.cost_basis <= 0:
            continue
        days_held = max(1, (as_of - position.purchase_date).days)
        weighted_days += days_held * position.cost_basis
        total_weight += position.cost_basis

    if total_weight <= 0:
        return float(DAYS_PER_YEAR)
    return weighted_days / total_weight


def annualize_return(total_return_percent: float, days_held: float) -> float:
    """
    Annualize a holding-period return.

    Periods under 30 days are returned raw: extrapolating them gives
    unstable numbers. Otherwise (1 + r)^(1 / years) - 1, clamped to
    [-100%, +500%].

    Args:
        total_return_percent: Holding-period return in percent
        days_held: Holding period in calendar days

    Returns:
        Annualized return in percent
    """
    if days_held < MIN_ANNUALIZATION_DAYS:
        return total_return_percent

    years = days_held / DAYS_PER_YEAR
    if years <= 0 or total_return_percent <= -100:
        return total_return_percent

    raw = ((1 + total_return_percent / 100) ** (1 / years) - 1) * 100
    return max(MIN_ANNUALIZED_PERCENT, min(MAX_ANNUALIZED_PERCENT, raw))


def modified_dietz_return(
    start_value: float,
    end_value: float,
    cash_flows: List[CashFlow],
    start_date: date,
    end_date: date
) -> Optional[float]:
    """
    Modified Dietz approximation of time-weighted return.

    Each flow inside [start_date, end_date] is weighted by the fraction of
    the period remaining after it occurs:

        (end - start - sum(flows)) / (start + sum(flow * days_remaining / total_days))

    Args:
        start_value: Portfolio value at start_date
        end_value: Portfolio value at end_date
        cash_flows: External flows; those outside the window are ignored
        start_date: Window start
        end_date: Window end

    Returns:
        Return in percent, or None when the denominator is not positive
    """
    total_days = max(1, (end_date - start_date).days)

    weighted_flows = 0.0
    total_flows = 0.0
    for flow in cash_flows:
        if flow.date < start_date or flow.date > end_date:
            continue
        amount = signed_flow_amount(flow)
        days_remaining = (end_date - flow.date).days
        weighted_flows += amount * (days_remaining / total_days)
        total_flows += amount

    denominator = start_value + weighted_flows
    if denominator <= 0:
        logger.debug(f"Modified Dietz denominator {denominator:.2f} is not positive")
        return None

    return ((end_value - start_value - total_flows) / denominator) * 100


def compute_performance(
    positions: List[Position],
    history: Optional[List[ValuePoint]] = None,
    cash_flows: Optional[List[CashFlow]] = None,
    as_of: Optional[date] = None
) -> PerformanceMetrics:
    """
    Compute portfolio performance metrics.

    Args:
        positions: Current holdings
        history: Portfolio value history (any order)
        cash_flows: External cash flow ledger
        as_of: Valuation date for holding periods (defaults to today)

    Returns:
        PerformanceMetrics with returns in percent

    Raises:
        InvalidInputError: If positions, history or cash flows are malformed
    """
    positions = validate_positions(positions)
    cash_flows = validate_cash_flows(cash_flows)
    history = list(history or [])
    for point in history:
        if not isinstance(point, ValuePoint):
            raise InvalidInputError(f"history expected ValuePoint, got {type(point)}")

    if as_of is None:
        as_of = date.today()

    total_value = sum(p.market_value for p in positions)
    total_cost = sum(p.cost_basis for p in positions)

    flows = summarize_cash_flows(cash_flows)
    net_invested = flows.net_invested

    # Simple return against cost basis
    total_return = total_value - total_cost
    total_return_percent = (total_return / total_cost) * 100 if total_cost > 0 else 0.0

    # Against everything put in minus everything taken out
    if net_invested > 0:
        cash_flow_adjusted_percent = ((total_value - net_invested) / net_invested) * 100
    else:
        cash_flow_adjusted_percent = total_return_percent

    annualized = annualize_return(total_return_percent, average_holding_days(positions, as_of))

    time_weighted = total_return_percent
    if cash_flows and len(history) > 1:
        ordered = sorted(history, key=lambda p: p.date)
        dietz = modified_dietz_return(
            start_value=ordered[0].value,
            end_value=ordered[-1].value,
            cash_flows=cash_flows,
            start_date=ordered[0].date,
            end_date=ordered[-1].date,
        )
        if dietz is not None:
            time_weighted = dietz
        else:
            logger.info("Falling back to simple return for time-weighted return")

    money_weighted = cash_flow_adjusted_percent if cash_flows else annualized

    return PerformanceMetrics(
        total_return=total_return,
        total_return_percent=total_return_percent,
        cash_flow_adjusted_return_percent=cash_flow_adjusted_percent,
        annualized_return=annualized,
        time_weighted_return=time_weighted,
        money_weighted_return=money_weighted,
        net_invested=net_invested,
        total_dividends=flows.dividends,
        total_fees=flows.fees,
    )


def _one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # Feb 29 -> Mar 1 of the following year
        return date(day.year + 1, 3, 1)


def gain_type(purchase_date: date, as_of: Optional[date] = None) -> GainType:
    """Long-term once the lot has been held for at least one year."""
    if as_of is None:
        as_of = date.today()
    return GainType.LONG_TERM if as_of >= _one_year_after(purchase_date) else GainType.SHORT_TERM


def days_until_long_term(purchase_date: date, as_of: Optional[date] = None) -> int:
    if as_of is None:
        as_of = date.today()
    return max(0, (_one_year_after(purchase_date) - as_of).days)
