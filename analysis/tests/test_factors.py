"""
Tests for heuristic factor exposure scoring.
"""

import pytest

from analysis.calculations.factors import compute_factor_exposure
from analysis.models import AssetMetadata, FactorExposure, Fundamentals, Position


class TestFactorExposure:
    """Tests for compute_factor_exposure function."""

    def test_zero_value_portfolio(self):
        assert compute_factor_exposure([]) == FactorExposure()

    def test_value_tiers(self):
        positions = [
            Position('CHEAP', 1, 100.0, 250.0),
            Position('FAIR', 1, 100.0, 250.0),
            Position('RICH', 1, 100.0, 250.0),
            Position('LOSS', 1, 100.0, 250.0),
        ]
        fundamentals = {
            'CHEAP': Fundamentals(pe=10.0),
            'FAIR': Fundamentals(pe=20.0),
            'RICH': Fundamentals(pe=40.0),
            'LOSS': Fundamentals(pe=-5.0),
        }

        result = compute_factor_exposure(positions, {}, fundamentals)

        assert result.value == pytest.approx(0.25 * 1 + 0.25 * 0.5 - 0.25 * 0.5)
        # Only RICH has P/E > 30
        assert result.growth == pytest.approx(0.25 * 0.5)

    def test_growth_sector_uses_normalized_label(self):
        positions = [Position('MSFT', 1, 100.0, 100.0)]
        metadata = {'MSFT': AssetMetadata('MSFT', sector='Information Technology')}

        result = compute_factor_exposure(positions, metadata, {})

        assert result.growth == pytest.approx(0.7)

    def test_momentum_capped(self):
        positions = [
            Position('UP', 1, 100.0, 500.0, day_change_percent=5.0),
            Position('DOWN', 1, 100.0, 500.0, day_change_percent=-1.0),
        ]

        result = compute_factor_exposure(positions)

        # +0.5 * min(2.5, 1) - 0.5 * 0.5
        assert result.momentum == pytest.approx(0.25)

    def test_quality_positive_eps_only(self):
        positions = [Position('A', 1, 1.0, 50.0), Position('B', 1, 1.0, 50.0)]
        fundamentals = {'A': Fundamentals(eps=2.0), 'B': Fundamentals(eps=-1.0)}

        result = compute_factor_exposure(positions, None, fundamentals)

        assert result.quality == pytest.approx(0.4)

    def test_size_buckets(self):
        positions = [
            Position('SML', 1, 1.0, 100.0),
            Position('MID', 1, 1.0, 100.0),
            Position('BIG', 1, 1.0, 200.0),
            Position('UNK', 1, 1.0, 100.0),
        ]
        metadata = {
            'SML': AssetMetadata('SML', market_cap=1e9),
            'BIG': AssetMetadata('BIG', market_cap=2e12),
        }
        fundamentals = {'MID': Fundamentals(market_cap=5e9)}

        result = compute_factor_exposure(positions, metadata, fundamentals)

        assert result.size.small == pytest.approx(0.2)
        assert result.size.mid == pytest.approx(0.2)
        assert result.size.large == pytest.approx(0.4)

    def test_scores_clamped(self):
        positions = [Position('TECH', 1, 1.0, 100.0, sector='Technology')]
        fundamentals = {'TECH': Fundamentals(pe=50.0)}

        result = compute_factor_exposure(positions, {}, fundamentals)

        # 0.7 + 0.5 = 1.2 before clamping
        assert result.growth == 1.0
