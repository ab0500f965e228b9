"""
Heuristic factor exposure scoring.
Value, growth, momentum, quality and size exposures from holdings and fundamentals.
"""

from typing import Dict, List, Optional

from analysis.models import (
    AssetMetadata,
    FactorExposure,
    Fundamentals,
    Position,
    SizeExposure,
)
from ingestion.transforms.normalizers import resolve_sector
from ingestion.transforms.validators import validate_positions

GROWTH_SECTORS = frozenset({'Technology', 'Healthcare', 'Consumer Cyclical'})
SMALL_CAP_LIMIT = 2e9
MID_CAP_LIMIT = 10e9


def _clamp(score: float) -> float:
    return max(-1.0, min(1.0, score))


def _value_score(pe: Optional[float]) -> float:
    if pe is None or pe <= 0:
        return 0.0
    if pe < 15:
        return 1.0
    if pe < 25:
        return 0.5
    return -0.5


def compute_factor_exposure(
    positions: List[Position],
    metadata_by_symbol: Optional[Dict[str, AssetMetadata]] = None,
    fundamentals_by_symbol: Optional[Dict[str, Fundamentals]] = None
) -> FactorExposure:
    """
    Estimate portfolio factor exposures.

    Each position contributes in proportion to its market value weight:
    - value: P/E < 15 -> +1, < 25 -> +0.5, otherwise -0.5 (positive P/E only)
    - growth: +0.7 for Technology/Healthcare/Consumer Cyclical, +0.5 for P/E > 30
    - momentum: sign(day change) * min(|day change| / 2, 1)
    - quality: +0.8 for positive EPS
    - size: weight bucketed by market cap (< $2B small, < $10B mid, else large)

    Args:
        positions: Current holdings
        metadata_by_symbol: Sector and market cap per symbol
        fundamentals_by_symbol: P/E, EPS and market cap per symbol

    Returns:
        FactorExposure with scalar scores clamped to [-1, 1]; all zeros when
        total market value is 0
    """
    positions = validate_positions(positions)
    metadata_by_symbol = metadata_by_symbol or {}
    fundamentals_by_symbol = fundamentals_by_symbol or {}

    total_value = sum(p.market_value for p in positions)
    if total_value == 0:
        return FactorExposure()

    value_score = 0.0
    growth_score = 0.0
    momentum_score = 0.0
    quality_score = 0.0
    size = {'small': 0.0, 'mid': 0.0, 'large': 0.0}

    for position in positions:
        weight = position.market_value / total_value
        metadata = metadata_by_symbol.get(position.symbol)
        fundamentals = fundamentals_by_symbol.get(position.symbol) or Fundamentals()

        value_score += weight * _value_score(fundamentals.pe)

        if resolve_sector(position, metadata) in GROWTH_SECTORS:
            growth_score += weight * 0.7
        if fundamentals.pe is not None and fundamentals.pe > 30:
            growth_score += weight * 0.5

        change = position.day_change_percent
        magnitude = min(abs(change) / 2, 1)
        momentum_score += weight * magnitude if change > 0 else -weight * magnitude

        if fundamentals.eps is not None and fundamentals.eps > 0:
            quality_score += weight * 0.8

        market_cap = (metadata.market_cap if metadata else None) or fundamentals.market_cap or 0
        if market_cap > 0:
            if market_cap < SMALL_CAP_LIMIT:
                size['small'] += weight
            elif market_cap < MID_CAP_LIMIT:
                size['mid'] += weight
            else:
                size['large'] += weight

    return FactorExposure(
        value=_clamp(value_score),
        growth=_clamp(growth_score),
        momentum=_clamp(momentum_score),
        quality=_clamp(quality_score),
        size=SizeExposure(**size),
    )
