"""
Historical stress scenarios.
Applies fixed sector shocks to current holdings.
"""

import logging
from typing import Dict, List, Optional

from analysis.models import (
    AssetMetadata,
    Position,
    PositionImpact,
    Scenario,
    ScenarioResult,
)
from ingestion.transforms.normalizers import resolve_sector
from ingestion.transforms.validators import validate_positions

# Set up logger
logger = logging.getLogger(__name__)


HISTORICAL_SCENARIOS = (
    Scenario(
        name='2008 Financial Crisis',
        description='Global financial meltdown triggered by subprime mortgage crisis',
        market_impact=-0.568,
        sector_impacts=(
            ('Financial Services', -0.80),
            ('Real Estate', -0.70),
            ('Consumer Cyclical', -0.65),
            ('Industrials', -0.60),
            ('Technology', -0.55),
            ('Energy', -0.55),
            ('Basic Materials', -0.55),
            ('Communication Services', -0.45),
            ('Healthcare', -0.40),
            ('Consumer Defensive', -0.35),
            ('Utilities', -0.35),
        ),
    ),
    Scenario(
        name='COVID Crash (2020)',
        description='Market crash due to COVID-19 pandemic uncertainty',
        market_impact=-0.339,
        sector_impacts=(
            ('Energy', -0.60),
            ('Real Estate', -0.45),
            ('Financial Services', -0.40),
            ('Industrials', -0.40),
            ('Consumer Cyclical', -0.35),
            ('Communication Services', -0.30),
            ('Basic Materials', -0.30),
            ('Technology', -0.25),
            ('Healthcare', -0.20),
            ('Consumer Defensive', -0.15),
            ('Utilities', -0.20),
        ),
    ),
    Scenario(
        name='2022 Bear Market',
        description='Rate hikes and inflation concerns',
        market_impact=-0.254,
        sector_impacts=(
            ('Technology', -0.35),
            ('Communication Services', -0.40),
            ('Consumer Cyclical', -0.30),
            ('Real Estate', -0.30),
            ('Financial Services', -0.20),
            ('Healthcare', -0.15),
            ('Industrials', -0.15),
            ('Basic Materials', -0.10),
            ('Consumer Defensive', -0.05),
            ('Energy', 0.20),
            ('Utilities', -0.05),
        ),
    ),
    Scenario(
        name='Interest Rate Shock (+3%)',
        description='Rapid interest rate increase scenario',
        market_impact=-0.20,
        sector_impacts=(
            ('Real Estate', -0.35),
            ('Utilities', -0.25),
            ('Technology', -0.25),
            ('Consumer Cyclical', -0.20),
            ('Financial Services', -0.10),
            ('Industrials', -0.15),
            ('Healthcare', -0.10),
            ('Consumer Defensive', -0.10),
            ('Energy', -0.10),
            ('Basic Materials', -0.15),
            ('Communication Services', -0.20),
        ),
    ),
    Scenario(
        name='Tech Selloff (-30%)',
        description='Technology sector specific correction',
        market_impact=-0.15,
        sector_impacts=(
            ('Technology', -0.30),
            ('Communication Services', -0.25),
            ('Consumer Cyclical', -0.15),
            ('Financial Services', -0.10),
            ('Healthcare', -0.05),
            ('Industrials', -0.05),
            ('Consumer Defensive', 0.0),
            ('Energy', 0.0),
            ('Utilities', 0.05),
            ('Real Estate', -0.05),
            ('Basic Materials', -0.05),
        ),
    ),
)


def apply_scenario(
    positions: List[Position],
    metadata_by_symbol: Optional[Dict[str, AssetMetadata]],
    scenario: Scenario
) -> ScenarioResult:
    """
    Apply one stress scenario to current holdings.

    Each position takes the shock for its (normalized) sector, or the
    scenario's market impact when the sector has no specific shock.

    Args:
        positions: Current holdings
        metadata_by_symbol: Sector metadata per symbol
        scenario: Scenario to apply

    Returns:
        ScenarioResult with portfolio impact as a value-weighted decimal
        (-0.55 = -55%) and position impacts sorted by absolute dollar loss
    """
    positions = validate_positions(positions)
    metadata_by_symbol = metadata_by_symbol or {}

    total_value = sum(p.market_value for p in positions)
    impacts = []
    portfolio_impact = 0.0

    for position in positions:
        sector = resolve_sector(position, metadata_by_symbol.get(position.symbol))
        shock = scenario.impact_for(sector)
        impacts.append(PositionImpact(
            symbol=position.symbol,
            impact=shock,
            value=position.market_value * shock,
        ))
        if total_value != 0:
            portfolio_impact += (position.market_value / total_value) * shock

    impacts.sort(key=lambda i: abs(i.value), reverse=True)

    return ScenarioResult(
        name=scenario.name,
        description=scenario.description,
        market_impact=scenario.market_impact,
        portfolio_impact=portfolio_impact,
        position_impacts=impacts,
    )


def run_scenarios(
    positions: List[Position],
    metadata_by_symbol: Optional[Dict[str, AssetMetadata]] = None
) -> List[ScenarioResult]:
    """Run every historical scenario, in table order."""
    results = [apply_scenario(positions, metadata_by_symbol, s) for s in HISTORICAL_SCENARIOS]
    logger.debug(f"Ran {len(results)} stress scenarios over {len(positions or [])} positions")
    return results
