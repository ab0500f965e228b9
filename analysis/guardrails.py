"""
Guardrails for the analytics engine - validation and safety checks.
Flags thin or stale price history and rejects non-finite metric documents.
"""

import math
import warnings
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from analysis.models import PricePoint
from ingestion.transforms.normalizers import normalize_price_series


class DataQualityError(Exception):
    """Raised when data quality issues require user intervention."""
    pass


class DataQualityWarning(UserWarning):
    """Raised when data quality issues should be noted but don't block execution."""
    pass


# Minimum price observations for a metric family to be meaningful
MIN_DAYS_REQUIRED = {
    'returns': 2,
    'risk': 22,        # one month of returns
    'correlation': 22,
    'volatility': 21,  # default HV window + 1
    'annual': 253,
}


def check_price_history_sufficiency(
    price_series_by_symbol: Dict[str, List[PricePoint]],
    symbols: List[str],
    min_days: int = MIN_DAYS_REQUIRED['risk']
) -> Tuple[List[str], List[str]]:
    """
    Split symbols by whether they have enough price history.

    Args:
        price_series_by_symbol: Close-price history per symbol
        symbols: Symbols that should have history
        min_days: Minimum number of distinct price dates

    Returns:
        Tuple of (sufficient_symbols, insufficient_symbols)

    Raises:
        DataQualityError: If no symbol has any price history at all
    """
    sufficient = []
    insufficient = []
    any_history = False

    for symbol in dict.fromkeys(symbols):
        series = normalize_price_series(price_series_by_symbol.get(symbol) or [])
        if series:
            any_history = True
        if len(series) >= min_days:
            sufficient.append(symbol)
        else:
            insufficient.append(symbol)

    if symbols and not any_history:
        raise DataQualityError(
            f"No price history available for any of {len(set(symbols))} symbols. "
            f"Risk and correlation metrics cannot be calculated."
        )

    if insufficient and len(insufficient) > len(sufficient):
        warnings.warn(
            f"Limited price history for {len(insufficient)} of "
            f"{len(insufficient) + len(sufficient)} symbols; "
            f"recommend at least {min_days} days for reliable metrics.",
            DataQualityWarning
        )

    return sufficient, insufficient


def validate_numeric_outputs(metrics_dict: Dict[str, Any]) -> None:
    """
    Validate that every numeric value in a metrics document is finite.

    Walks nested dicts, lists and tuples.

    Raises:
        DataQualityError: If NaN or infinite values found
    """
    def check_value(value: Any, path: str) -> None:
        if value is None or isinstance(value, bool):
            return

        if isinstance(value, dict):
            for key, item in value.items():
                check_value(item, f"{path}.{key}" if path else str(key))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                check_value(item, f"{path}[{index}]")
        elif isinstance(value, (int, float)):
            if math.isnan(value):
                raise DataQualityError(f"NaN value found in {path}")
            if math.isinf(value):
                raise DataQualityError(f"Infinite value found in {path}")

    check_value(metrics_dict, '')


def check_data_freshness(
    price_series_by_symbol: Dict[str, List[PricePoint]],
    as_of_date: Optional[date] = None,
    max_price_age_days: int = 7
) -> List[str]:
    """
    Warn about symbols whose latest price is older than max_price_age_days.

    Returns:
        List of freshness warnings
    """
    stale = []
    today = as_of_date or date.today()

    for symbol, series in price_series_by_symbol.items():
        if not series:
            continue
        latest = max(p.date for p in series)
        age = (today - latest).days
        if age > max_price_age_days:
            stale.append(
                f"{symbol} price data is {age} days old (latest: {latest}). "
                f"Consider updating with recent data."
            )

    return stale


def validate_price_data_integrity(symbol: str, series: List[PricePoint]) -> List[str]:
    """
    Detect anomalies in one price series.

    Returns:
        List of integrity warnings (>20% daily moves, non-positive closes)
    """
    found = []
    ordered = normalize_price_series(series)

    non_positive = [p.date for p in ordered if p.close <= 0]
    if non_positive:
        found.append(f"{symbol}: non-positive close on {len(non_positive)} days: {non_positive}")

    for previous, current in zip(ordered, ordered[1:]):
        if previous.close <= 0:
            continue
        daily_change = abs((current.close / previous.close) - 1)
        if daily_change > 0.20:
            found.append(
                f"{symbol}: large price movement on {current.date}: "
                f"{daily_change:.1%} change (${previous.close:.2f} → ${current.close:.2f})"
            )

    return found


def run_all_guardrails(
    price_series_by_symbol: Dict[str, List[PricePoint]],
    symbols: List[str],
    metrics_dict: Dict[str, Any],
    as_of_date: Optional[date] = None
) -> Dict[str, Any]:
    """
    Run all guardrail checks and compile results.

    Args:
        price_series_by_symbol: Close-price history per symbol
        symbols: Held symbols
        metrics_dict: Composed metrics document
        as_of_date: Reference date for freshness checks

    Returns:
        Dictionary with guardrail results and warnings

    Raises:
        DataQualityError: If critical issues found that require user intervention
    """
    guardrail_results = {
        'timestamp': (as_of_date or date.today()).isoformat(),
        'data_quality_checks': {
            'sufficient_data': None,
            'numeric_validation': None,
            'freshness_check': None,
            'price_integrity': None
        },
        'warnings': [],
        'errors': []
    }

    try:
        # 1. Sufficient history
        sufficient, insufficient = check_price_history_sufficiency(price_series_by_symbol, symbols)
        guardrail_results['data_quality_checks']['sufficient_data'] = {
            'sufficient_symbols': sufficient,
            'insufficient_symbols': insufficient
        }
        if insufficient:
            guardrail_results['warnings'].append(
                f"Insufficient price history for: {insufficient}. "
                f"Risk and correlation metrics may be unreliable."
            )

        # 2. Numeric validation
        validate_numeric_outputs(metrics_dict)
        guardrail_results['data_quality_checks']['numeric_validation'] = 'passed'

        # 3. Freshness
        freshness_warnings = check_data_freshness(price_series_by_symbol, as_of_date)
        guardrail_results['data_quality_checks']['freshness_check'] = freshness_warnings
        guardrail_results['warnings'].extend(freshness_warnings)

        # 4. Price integrity
        integrity_warnings = []
        for symbol in dict.fromkeys(symbols):
            integrity_warnings.extend(
                validate_price_data_integrity(symbol, price_series_by_symbol.get(symbol) or [])
            )
        guardrail_results['data_quality_checks']['price_integrity'] = integrity_warnings
        guardrail_results['warnings'].extend(integrity_warnings)

        return guardrail_results

    except DataQualityError as e:
        guardrail_results['errors'].append(str(e))
        raise  # Re-raise for caller to handle


def create_data_quality_report(guardrail_results: Dict[str, Any]) -> str:
    """
    Create human-readable data quality report.

    Args:
        guardrail_results: Results from run_all_guardrails()

    Returns:
        Formatted text report
    """
    report = [
        "📊 Portfolio Data Quality Report",
        f"Generated: {guardrail_results['timestamp']}",
        "=" * 50,
        ""
    ]

    errors = guardrail_results.get('errors', [])
    if errors:
        report.append("🚨 CRITICAL ISSUES:")
        for error in errors:
            report.append(f"   • {error}")
        report.append("")

    found_warnings = guardrail_results.get('warnings', [])
    if found_warnings:
        report.append("⚠️  WARNINGS:")
        for warning in found_warnings:
            report.append(f"   • {warning}")
        report.append("")

    data_check = guardrail_results['data_quality_checks']['sufficient_data']
    if data_check:
        report.append("📈 PRICE HISTORY:")
        if data_check['sufficient_symbols']:
            report.append(f"   ✅ Sufficient: {', '.join(data_check['sufficient_symbols'])}")
        if data_check['insufficient_symbols']:
            report.append(f"   ❌ Insufficient: {', '.join(data_check['insufficient_symbols'])}")
        report.append("")

    if errors:
        report.append("🚨 OVERALL STATUS: CRITICAL ISSUES FOUND")
        report.append("   Manual review required before proceeding.")
    elif found_warnings:
        report.append("⚠️  OVERALL STATUS: WARNINGS PRESENT")
        report.append("   Proceed with caution and note limitations.")
    else:
        report.append("✅ OVERALL STATUS: DATA QUALITY ACCEPTABLE")
        report.append("   Safe to proceed with analysis.")

    return "\n".join(report)
