"""
Portfolio summary and allocation breakdowns.
Pure functions over current holdings and cash.
"""

import logging
from typing import Dict, List, Optional, Union

from analysis.models import (
    AllocationBucket,
    AllocationDimension,
    AssetMetadata,
    PortfolioSummary,
    Position,
)
from ingestion.transforms.normalizers import (
    region_for_country,
    resolve_country,
    resolve_sector,
)
from ingestion.transforms.validators import (
    InvalidInputError,
    validate_cash_balance,
    validate_positions,
)

# Set up logger
logger = logging.getLogger(__name__)

CASH_LABEL = 'Cash'
CASH_ASSET_TYPE = 'cash'


def summarize(positions: List[Position], cash_balance: float = 0.0) -> PortfolioSummary:
    """
    Aggregate value, cost, gain/loss and day change for a set of positions.

    Day change is reconstructed from each position's day change percent:
    previous value = market value / (1 + pct / 100). This works on already
    currency-normalized market values, so no stored previous-day value is needed.

    Args:
        positions: Current holdings
        cash_balance: Uninvested cash

    Returns:
        PortfolioSummary (all zeros when there are no positions and no cash)

    Raises:
        InvalidInputError: If positions or cash balance are malformed
    """
    positions = validate_positions(positions)
    cash_balance = validate_cash_balance(cash_balance)

    if not positions and cash_balance == 0:
        return PortfolioSummary()

    positions_value = sum(p.market_value for p in positions)
    total_value = positions_value + cash_balance
    total_cost = sum(p.cost_basis for p in positions)
    total_gain_loss = positions_value - total_cost
    total_gain_loss_percent = (total_gain_loss / total_cost) * 100 if total_cost > 0 else 0.0

    day_change = 0.0
    for position in positions:
        if position.day_change_percent == 0:
            continue
        growth = 1 + position.day_change_percent / 100
        if growth <= 0:
            logger.warning(
                f"Skipping day change for {position.symbol}: "
                f"{position.day_change_percent}% leaves no previous value"
            )
            continue
        previous_value = position.market_value / growth
        day_change += position.market_value - previous_value

    previous_total = total_value - day_change
    day_change_percent = (day_change / previous_total) * 100 if previous_total > 0 else 0.0

    return PortfolioSummary(
        total_value=total_value,
        total_cost=total_cost,
        total_gain_loss=total_gain_loss,
        total_gain_loss_percent=total_gain_loss_percent,
        day_change=day_change,
        day_change_percent=day_change_percent,
        position_count=len(positions),
    )


def _group_label(
    position: Position,
    dimension: AllocationDimension,
    metadata: Optional[AssetMetadata]
) -> str:
    if dimension == AllocationDimension.SECTOR:
        return resolve_sector(position, metadata)
    if dimension == AllocationDimension.COUNTRY:
        return resolve_country(position, metadata)
    if dimension == AllocationDimension.REGION:
        return region_for_country(resolve_country(position, metadata))
    return position.asset_type or 'other'


def allocate(
    positions: List[Position],
    cash_balance: float = 0.0,
    dimension: Union[AllocationDimension, str] = AllocationDimension.SECTOR,
    metadata_by_symbol: Optional[Dict[str, AssetMetadata]] = None
) -> List[AllocationBucket]:
    """
    Group holdings by sector, region, country or asset type.

    Labels are normalized before grouping, so 'Financials' and
    'Financial Services' land in the same bucket. A synthetic cash bucket is
    appended when cash > 0.

    Args:
        positions: Current holdings
        cash_balance: Uninvested cash
        dimension: Grouping dimension
        metadata_by_symbol: Optional metadata used when a position has no
            sector/country of its own

    Returns:
        Buckets with weight = value / total * 100, sorted by value descending.
        Empty when total value is 0.

    Raises:
        InvalidInputError: If inputs are malformed or dimension is unknown
    """
    positions = validate_positions(positions)
    cash_balance = validate_cash_balance(cash_balance)

    try:
        dimension = AllocationDimension(dimension)
    except ValueError:
        raise InvalidInputError(f"unknown allocation dimension: {dimension!r}")

    metadata_by_symbol = metadata_by_symbol or {}

    total_value = sum(p.market_value for p in positions) + cash_balance
    if total_value == 0:
        return []

    groups: Dict[str, Dict[str, float]] = {}
    for position in positions:
        label = _group_label(position, dimension, metadata_by_symbol.get(position.symbol))
        group = groups.setdefault(label, {'value': 0.0, 'count': 0})
        group['value'] += position.market_value
        group['count'] += 1

    if cash_balance > 0:
        cash_label = CASH_ASSET_TYPE if dimension == AllocationDimension.ASSET_TYPE else CASH_LABEL
        group = groups.setdefault(cash_label, {'value': 0.0, 'count': 0})
        group['value'] += cash_balance

    buckets = [
        AllocationBucket(
            label=label,
            value=data['value'],
            weight=(data['value'] / total_value) * 100,
            count=int(data['count']),
            region=(
                region_for_country(label)
                if dimension == AllocationDimension.COUNTRY and label != CASH_LABEL
                else None
            ),
        )
        for label, data in groups.items()
    ]

    return sorted(buckets, key=lambda b: b.value, reverse=True)
