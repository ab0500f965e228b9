"""
Analysis Engine Module

Calculates portfolio metrics from normalized holdings and price history:
- Summary and allocation breakdowns (sector, region, country, asset type)
- Performance (simple, cash-flow adjusted, annualized, Modified Dietz)
- Risk (volatility, Sharpe, Sortino, drawdown, beta/alpha, VaR)
- Correlation, factor exposure and historical stress scenarios
- Position sizing
"""

__version__ = "0.0.1"
