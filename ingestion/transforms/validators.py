"""
Boundary validators for analytics inputs.
Pure functions - no IO, network, or side effects.

Statistical edge cases (thin data, zero denominators) are NOT errors and are
handled by the engines. These checks only reject malformed caller input.
"""

import math
import numbers
from datetime import date
from typing import Any, Iterable, List, Optional

from analysis.models import CashFlow, CashFlowKind, Position, PricePoint


class InvalidInputError(ValueError):
    """Raised when a caller passes a malformed input shape."""
    pass


def _check_number(value: Any, name: str, *, allow_negative: bool = True) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidInputError(f"{name} must be numeric, got {type(value)}")

    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite, got {value}")

    if not allow_negative and value < 0:
        raise InvalidInputError(f"{name} must be non-negative, got {value}")


def validate_position(position: Any) -> None:
    """
    Validate a single position record.

    Raises:
        InvalidInputError: If validation fails
    """
    if not isinstance(position, Position):
        raise InvalidInputError(f"expected Position, got {type(position)}")

    if not isinstance(position.symbol, str) or not position.symbol.strip():
        raise InvalidInputError(f"symbol must be a non-empty string, got {position.symbol!r}")

    _check_number(position.shares, f"{position.symbol} shares", allow_negative=False)
    _check_number(position.cost_basis, f"{position.symbol} cost_basis")
    _check_number(position.market_value, f"{position.symbol} market_value")
    _check_number(position.day_change_percent, f"{position.symbol} day_change_percent")

    if position.purchase_date is not None and not isinstance(position.purchase_date, date):
        raise InvalidInputError(
            f"{position.symbol} purchase_date must be date, got {type(position.purchase_date)}"
        )


def validate_positions(positions: Optional[Iterable[Any]]) -> List[Position]:
    """Validate a collection of positions and return it as a list."""
    if positions is None:
        return []

    if isinstance(positions, (str, bytes)):
        raise InvalidInputError("positions must be a collection of Position records")

    result = list(positions)
    for position in result:
        validate_position(position)
    return result


def validate_cash_balance(cash_balance: Any) -> float:
    _check_number(cash_balance, "cash_balance")
    return float(cash_balance)


def validate_cash_flows(cash_flows: Optional[Iterable[Any]]) -> List[CashFlow]:
    """
    Validate cash flow records.

    Raises:
        InvalidInputError: If a record is malformed or has an unknown kind
    """
    if cash_flows is None:
        return []

    result = list(cash_flows)
    for flow in result:
        if not isinstance(flow, CashFlow):
            raise InvalidInputError(f"expected CashFlow, got {type(flow)}")
        if not isinstance(flow.date, date):
            raise InvalidInputError(f"cash flow date must be date, got {type(flow.date)}")
        _check_number(flow.amount, "cash flow amount")
        try:
            CashFlowKind(flow.kind)
        except ValueError:
            raise InvalidInputError(f"unknown cash flow kind: {flow.kind!r}")
    return result


def validate_price_series(points: Any, name: str = "price series") -> List[PricePoint]:
    """
    Validate the shape of a price series.

    Non-positive closes are allowed through; return calculations skip them.
    """
    if points is None:
        return []

    if isinstance(points, (str, bytes)):
        raise InvalidInputError(f"{name} must be a sequence of PricePoint")

    result = list(points)
    for point in result:
        if not isinstance(point, PricePoint):
            raise InvalidInputError(f"{name} expected PricePoint, got {type(point)}")
        if not isinstance(point.date, date):
            raise InvalidInputError(f"{name} date must be date, got {type(point.date)}")
        _check_number(point.close, f"{name} close")
    return result


def validate_returns(returns: Any, name: str = "returns") -> List[float]:
    """Validate a daily return series and return it as a list of floats."""
    if returns is None:
        return []

    if isinstance(returns, (str, bytes)):
        raise InvalidInputError(f"{name} must be a sequence of numbers")

    result = [r for r in returns]
    for value in result:
        _check_number(value, name)
    return [float(r) for r in result]
