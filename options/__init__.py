"""
Covered Call Options Module

Option pricing and covered-call income analysis:
- Black-Scholes pricing, delta and assignment probability
- Contract liquidity scoring and strike selection
- Live-chain covered call simulation
- Historical covered call backtesting
"""

__version__ = "0.0.1"
