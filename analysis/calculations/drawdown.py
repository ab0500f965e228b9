"""
Drawdown calculation utilities.
Pure functions for maximum drawdown from return series and value paths.
"""

from datetime import date
from typing import Dict, List, Optional, Union

import numpy as np


def max_drawdown_from_returns(returns: List[float]) -> float:
    """
    Maximum peak-to-trough decline of a compounded return path.

    The path starts at 1 and compounds (1 + r) each period; the peak is
    tracked from the first compounded value.

    Args:
        returns: Periodic simple returns in chronological order

    Returns:
        Max drawdown in percent as a positive number (25.0 = 25% decline),
        0.0 for an empty series
    """
    if len(returns) == 0:
        return 0.0

    cumulative = np.cumprod(1.0 + np.asarray(returns, dtype=float))
    running_max = np.maximum.accumulate(cumulative)

    with np.errstate(divide='ignore', invalid='ignore'):
        drawdowns = np.where(running_max > 0, (running_max - cumulative) / running_max, 0.0)

    return float(max(0.0, np.max(drawdowns)) * 100)


def drawdown_stats(
    values: List[float],
    dates: List[date]
) -> Dict[str, Union[float, date, int, None]]:
    """
    Maximum drawdown statistics for a value path (e.g. portfolio value history).

    Finds the largest peak-to-trough decline and recovery information.

    Args:
        values: Values in chronological order
        dates: Corresponding dates

    Returns:
        Dictionary with drawdown statistics:
        - max_drawdown_pct: Largest decline as decimal (negative), None if < 2 values
        - peak_date: Date of peak before max drawdown
        - trough_date: Date of lowest point
        - recovery_date: Date when value exceeded peak (None if no recovery)
        - drawdown_days: Periods from peak to trough
        - recovery_days: Periods from trough to recovery (None if no recovery)
    """
    empty = {
        'max_drawdown_pct': None,
        'peak_date': None,
        'trough_date': None,
        'recovery_date': None,
        'drawdown_days': None,
        'recovery_days': None
    }

    if len(values) < 2 or len(values) != len(dates):
        return empty

    values_array = np.asarray(values, dtype=float)
    if np.any(values_array <= 0):
        return empty

    # Track running maximum (peak)
    running_max = np.maximum.accumulate(values_array)
    drawdowns = (values_array / running_max) - 1

    trough_idx = int(np.argmin(drawdowns))
    max_drawdown_pct = float(drawdowns[trough_idx])

    # First occurrence of the peak value at or before the trough
    peak_value = running_max[trough_idx]
    peak_idx = int(np.argmax(values_array[:trough_idx + 1] >= peak_value))

    recovery_idx: Optional[int] = None
    if abs(max_drawdown_pct) < 1e-10:
        recovery_idx = peak_idx
    else:
        for i in range(trough_idx + 1, len(values_array)):
            if values_array[i] > peak_value:
                recovery_idx = i
                break

    return {
        'max_drawdown_pct': max_drawdown_pct,
        'peak_date': dates[peak_idx],
        'trough_date': dates[trough_idx],
        'recovery_date': dates[recovery_idx] if recovery_idx is not None else None,
        'drawdown_days': trough_idx - peak_idx,
        'recovery_days': (recovery_idx - trough_idx) if recovery_idx is not None else None
    }
