"""
Value types for portfolio analytics.
Immutable records built per analytics request; no I/O, no lifecycle.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple


class CashFlowKind(str, Enum):
    """Enumeration of cash flow kinds."""
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DIVIDEND = "dividend"
    FEE = "fee"
    OTHER = "other"


class AllocationDimension(str, Enum):
    """Grouping dimension for allocation breakdowns."""
    SECTOR = "sector"
    REGION = "region"
    COUNTRY = "country"
    ASSET_TYPE = "asset_type"


class GainType(str, Enum):
    """Capital gains treatment by holding period."""
    LONG_TERM = "long_term"
    SHORT_TERM = "short_term"


@dataclass(frozen=True)
class Position:
    """
    A holding with currency-normalized market value.

    market_value and cost_basis are independent totals; gain/loss is their
    difference, never derived from a stored per-share price.
    """
    symbol: str
    shares: float
    cost_basis: float
    market_value: float
    day_change_percent: float = 0.0
    purchase_date: Optional[date] = None
    asset_type: str = "stock"
    sector: Optional[str] = None
    country: Optional[str] = None
    manual_sector: Optional[str] = None
    manual_country: Optional[str] = None

    @property
    def gain_loss(self) -> float:
        return self.market_value - self.cost_basis


@dataclass(frozen=True)
class CashFlow:
    date: date
    amount: float
    kind: CashFlowKind = CashFlowKind.OTHER


@dataclass(frozen=True)
class PricePoint:
    date: date
    close: float


@dataclass(frozen=True)
class ValuePoint:
    """Portfolio value on a given date."""
    date: date
    value: float


@dataclass(frozen=True)
class AssetMetadata:
    symbol: str
    sector: Optional[str] = None
    country: Optional[str] = None
    market_cap: Optional[float] = None


@dataclass(frozen=True)
class Fundamentals:
    """
    Per-symbol quote fundamentals.

    Every metric is optional; None means "not reported" and consumers
    must check for it explicitly.
    """
    pe: Optional[float] = None
    eps: Optional[float] = None
    market_cap: Optional[float] = None


@dataclass(frozen=True)
class PortfolioSummary:
    total_value: float = 0.0
    total_cost: float = 0.0
    total_gain_loss: float = 0.0
    total_gain_loss_percent: float = 0.0
    day_change: float = 0.0
    day_change_percent: float = 0.0
    position_count: int = 0


@dataclass(frozen=True)
class AllocationBucket:
    label: str
    value: float
    weight: float
    count: int
    region: Optional[str] = None


@dataclass(frozen=True)
class CashFlowSummary:
    deposits: float = 0.0
    withdrawals: float = 0.0
    dividends: float = 0.0
    fees: float = 0.0

    @property
    def net_invested(self) -> float:
        return self.deposits - self.withdrawals


@dataclass(frozen=True)
class PerformanceMetrics:
    """All percentages are expressed in percent (5.0 = 5%)."""
    total_return: float = 0.0
    total_return_percent: float = 0.0
    cash_flow_adjusted_return_percent: float = 0.0
    annualized_return: float = 0.0
    time_weighted_return: float = 0.0
    money_weighted_return: float = 0.0
    net_invested: float = 0.0
    total_dividends: float = 0.0
    total_fees: float = 0.0


@dataclass(frozen=True)
class RiskMetrics:
    """Annualized where applicable; neutral defaults for thin data."""
    volatility: float = 0.0
    sharpe_ratio: float = 0.0
    sortino_ratio: float = 0.0
    max_drawdown: float = 0.0
    beta: float = 1.0
    alpha: float = 0.0
    r_squared: float = 0.0
    information_ratio: float = 0.0
    tracking_error: float = 0.0
    var_95: float = 0.0


@dataclass(frozen=True)
class CorrelationPair:
    pair: Tuple[str, str]
    value: float


@dataclass(frozen=True)
class CorrelationMatrix:
    symbols: List[str] = field(default_factory=list)
    matrix: List[List[float]] = field(default_factory=list)
    high_correlations: List[CorrelationPair] = field(default_factory=list)
    low_correlations: List[CorrelationPair] = field(default_factory=list)


@dataclass(frozen=True)
class SizeExposure:
    small: float = 0.0
    mid: float = 0.0
    large: float = 0.0


@dataclass(frozen=True)
class FactorExposure:
    value: float = 0.0
    growth: float = 0.0
    momentum: float = 0.0
    quality: float = 0.0
    size: SizeExposure = field(default_factory=SizeExposure)


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    market_impact: float
    sector_impacts: Tuple[Tuple[str, float], ...]

    def impact_for(self, sector: str) -> float:
        """Sector impact, falling back to the flat market impact."""
        for name, impact in self.sector_impacts:
            if name == sector:
                return impact
        return self.market_impact


@dataclass(frozen=True)
class PositionImpact:
    symbol: str
    impact: float
    value: float


@dataclass(frozen=True)
class ScenarioResult:
    name: str
    description: str
    market_impact: float
    portfolio_impact: float
    position_impacts: List[PositionImpact] = field(default_factory=list)


@dataclass(frozen=True)
class PositionSizeResult:
    method: str
    shares: int
    position_size: float
    portfolio_weight: float
    risk_amount: float
    risk_reward_ratio: Optional[float]
    stop_loss: float
    target_price: Optional[float]
