"""
Normalizers for mapping heterogeneous labels and rows to canonical shape.
Pure functions - no IO, network, or side effects.
Minimal normalization - unknown values pass through unchanged.
"""

from types import MappingProxyType
from typing import Dict, List, Optional

from analysis.models import AssetMetadata, Position, PricePoint

UNKNOWN = 'Unknown'


# Sector synonyms from different data providers
SECTOR_MAP = MappingProxyType({
    # Financial Services variants
    'Financial Services': 'Financial Services',
    'Financials': 'Financial Services',
    'Financial': 'Financial Services',

    # Consumer variants
    'Consumer Cyclical': 'Consumer Cyclical',
    'Consumer Discretionary': 'Consumer Cyclical',
    'Consumer Defensive': 'Consumer Defensive',
    'Consumer Staples': 'Consumer Defensive',

    # Technology variants
    'Technology': 'Technology',
    'Information Technology': 'Technology',
    'Tech': 'Technology',

    # Communication variants
    'Communication Services': 'Communication Services',
    'Telecommunications': 'Communication Services',
    'Telecom': 'Communication Services',

    'Healthcare': 'Healthcare',
    'Health Care': 'Healthcare',

    'Industrials': 'Industrials',
    'Industrial': 'Industrials',

    'Energy': 'Energy',
    'Utilities': 'Utilities',

    'Real Estate': 'Real Estate',
    'REIT': 'Real Estate',

    'Basic Materials': 'Basic Materials',
    'Materials': 'Basic Materials',

    # Non-equity buckets
    'Fixed Income': 'Fixed Income',
    'Cash & Equivalents': 'Cash & Equivalents',
    'Commodities': 'Commodities',
    'Multi-Asset': 'Multi-Asset',
    'Index/Broad': 'Index/Broad',
})


# ISO codes and spelling variants to a single display name
COUNTRY_MAP = MappingProxyType({
    'US': 'United States',
    'USA': 'United States',
    'U.S': 'United States',
    'U.S.': 'United States',
    'United States': 'United States',
    'United States of America': 'United States',
    'CA': 'Canada',
    'Canada': 'Canada',
    'MX': 'Mexico',
    'Mexico': 'Mexico',
    'GB': 'United Kingdom',
    'UK': 'United Kingdom',
    'United Kingdom': 'United Kingdom',
    'Great Britain': 'United Kingdom',
    'DE': 'Germany',
    'Germany': 'Germany',
    'FR': 'France',
    'France': 'France',
    'CH': 'Switzerland',
    'Switzerland': 'Switzerland',
    'NL': 'Netherlands',
    'Netherlands': 'Netherlands',
    'IE': 'Ireland',
    'Ireland': 'Ireland',
    'IT': 'Italy',
    'Italy': 'Italy',
    'ES': 'Spain',
    'Spain': 'Spain',
    'SE': 'Sweden',
    'Sweden': 'Sweden',
    'NO': 'Norway',
    'Norway': 'Norway',
    'DK': 'Denmark',
    'Denmark': 'Denmark',
    'FI': 'Finland',
    'Finland': 'Finland',
    'BE': 'Belgium',
    'Belgium': 'Belgium',
    'AT': 'Austria',
    'Austria': 'Austria',
    'PT': 'Portugal',
    'Portugal': 'Portugal',
    'JP': 'Japan',
    'Japan': 'Japan',
    'CN': 'China',
    'China': 'China',
    'HK': 'Hong Kong',
    'Hong Kong': 'Hong Kong',
    'KR': 'South Korea',
    'South Korea': 'South Korea',
    'Korea': 'South Korea',
    'TW': 'Taiwan',
    'Taiwan': 'Taiwan',
    'SG': 'Singapore',
    'Singapore': 'Singapore',
    'AU': 'Australia',
    'Australia': 'Australia',
    'NZ': 'New Zealand',
    'New Zealand': 'New Zealand',
    'IN': 'India',
    'India': 'India',
    'BR': 'Brazil',
    'Brazil': 'Brazil',
    'IL': 'Israel',
    'Israel': 'Israel',
    'AE': 'UAE',
    'UAE': 'UAE',
    'United Arab Emirates': 'UAE',
    'SA': 'Saudi Arabia',
    'Saudi Arabia': 'Saudi Arabia',
    'ZA': 'South Africa',
    'South Africa': 'South Africa',
    'Global': 'Global',
    'Other': 'Other',
})


REGION_MAP = MappingProxyType({
    'United States': 'North America',
    'Canada': 'North America',
    'Mexico': 'North America',
    'United Kingdom': 'Europe',
    'Germany': 'Europe',
    'France': 'Europe',
    'Switzerland': 'Europe',
    'Netherlands': 'Europe',
    'Ireland': 'Europe',
    'Italy': 'Europe',
    'Spain': 'Europe',
    'Sweden': 'Europe',
    'Norway': 'Europe',
    'Denmark': 'Europe',
    'Finland': 'Europe',
    'Belgium': 'Europe',
    'Austria': 'Europe',
    'Portugal': 'Europe',
    'Japan': 'Asia Pacific',
    'China': 'Asia Pacific',
    'Hong Kong': 'Asia Pacific',
    'South Korea': 'Asia Pacific',
    'Taiwan': 'Asia Pacific',
    'Singapore': 'Asia Pacific',
    'Australia': 'Asia Pacific',
    'New Zealand': 'Asia Pacific',
    'India': 'Asia Pacific',
    'Brazil': 'Emerging Markets',
    'South Africa': 'Emerging Markets',
    'Israel': 'Middle East',
    'UAE': 'Middle East',
    'Saudi Arabia': 'Middle East',
    'Global': 'Global',
    'Other': 'Other',
})


def normalize_symbol(symbol: str) -> str:
    """Canonical ticker form: stripped and uppercase."""
    return symbol.strip().upper()


def normalize_sector(sector: Optional[str]) -> str:
    """
    Map a provider sector label to the canonical taxonomy.

    Args:
        sector: Raw sector label (may be None or blank)

    Returns:
        Canonical sector, the input itself when unmapped, or 'Unknown'
    """
    if sector is None or not sector.strip():
        return UNKNOWN
    cleaned = sector.strip()
    return SECTOR_MAP.get(cleaned, cleaned)


def normalize_country(country: Optional[str]) -> str:
    """Map an ISO code or country variant to its display name."""
    if country is None or not country.strip():
        return UNKNOWN
    cleaned = country.strip()
    return COUNTRY_MAP.get(cleaned, cleaned)


def region_for_country(country: Optional[str]) -> str:
    """
    Derive the region for a country label.

    The label is normalized first, so 'US', 'USA' and 'United States'
    all resolve to 'North America'.
    """
    return REGION_MAP.get(normalize_country(country), UNKNOWN)


def resolve_sector(position: Position, metadata: Optional[AssetMetadata] = None) -> str:
    """Manual override, then position field, then metadata; normalized."""
    raw = position.manual_sector or position.sector
    if not raw and metadata is not None:
        raw = metadata.sector
    return normalize_sector(raw)


def resolve_country(position: Position, metadata: Optional[AssetMetadata] = None) -> str:
    raw = position.manual_country or position.country
    if not raw and metadata is not None:
        raw = metadata.country
    return normalize_country(raw)


def normalize_price_series(points: List[PricePoint]) -> List[PricePoint]:
    """
    Sort a price series chronologically and deduplicate by date.

    Deduplication keeps the last row seen for a date (handles provider
    corrections), mirroring primary-key dedup on (symbol, date).
    """
    if not points:
        return []

    seen_dates: Dict = {}
    for point in points:
        seen_dates[point.date] = point

    return [seen_dates[d] for d in sorted(seen_dates)]
