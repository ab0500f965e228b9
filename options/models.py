"""
Option contract and covered call result types.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


class LiquidityScore(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class BacktestEventKind(str, Enum):
    ROLL = "roll"
    ASSIGNMENT = "assignment"
    EXPIRATION = "expiration"


@dataclass(frozen=True)
class OptionContract:
    """A single call quote from an options chain."""
    strike: float
    bid: float = 0.0
    ask: float = 0.0
    last_price: float = 0.0
    volume: int = 0
    open_interest: int = 0
    implied_volatility: float = 0.0
    days_to_expiration: int = 0
    contract_symbol: Optional[str] = None


@dataclass(frozen=True)
class OptionExpiration:
    expiration_date: date
    days_to_expiration: int
    calls: List[OptionContract] = field(default_factory=list)


@dataclass(frozen=True)
class OptionsChain:
    symbol: str
    underlying_price: float
    expirations: List[OptionExpiration] = field(default_factory=list)


@dataclass(frozen=True)
class LiquidityInfo:
    bid: float
    ask: float
    mid: float
    spread: float
    spread_percent: float
    volume: int
    open_interest: int
    is_liquid: bool
    score: LiquidityScore


@dataclass(frozen=True)
class CoveredCallSimulation:
    """Result of writing calls against a holding from a live chain."""
    symbol: str
    shares: int
    contracts: int
    current_price: float
    strike: float
    expiration_date: date
    days_to_expiration: int
    premium: float
    total_premium: float
    annualized_yield: float
    yield_if_called: float
    assignment_probability: float
    delta: float
    breakeven: float
    max_profit: float
    liquidity: LiquidityInfo
    low_liquidity: bool


@dataclass(frozen=True)
class BacktestEvent:
    date: date
    kind: BacktestEventKind
    strike: float
    close: float
    premium: float
    cumulative_premium: float


@dataclass(frozen=True)
class BacktestResult:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    total_premium: float = 0.0
    total_cycles: int = 0
    assignment_count: int = 0
    assignment_rate: float = 0.0
    average_premium_per_cycle: float = 0.0
    annualized_yield: float = 0.0
    events: List[BacktestEvent] = field(default_factory=list)
