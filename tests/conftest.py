import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parents[1] / "src"))

from triangle_store import TrianglePoint
from projection import AccidentYearAggregate


def _points(rows, metric='loss_ratio'):
    """{year: {month: amount}} -> list of TrianglePoints"""
    return [
        TrianglePoint(year, month, metric, amount)
        for year, by_month in rows.items()
        for month, amount in by_month.items()
    ]


@pytest.fixture
def ladder():
    return [12, 24, 36, 48]


@pytest.fixture
def sample_points():
    """
    Loss ratio triangle on the 12-48 month ladder.

    Every accident year develops by the same link ratios so the expected
    factors are easy to check:
        12->24: 1.20   24->36: 1.10   36->48: 1.05
    CDFs to ultimate:
        12: 1.386   24: 1.155   36: 1.05   48: 1.0
    """
    rows = {
        2020: {12: 50.0, 24: 60.0, 36: 66.0, 48: 69.3},
        2021: {12: 40.0, 24: 48.0, 36: 52.8},
        2022: {12: 55.0, 24: 66.0},
        2023: {12: 45.0},
    }
    return _points(rows)


@pytest.fixture
def two_year_points():
    """Ladder [12, 24]: 2024 goes 50 -> 55, 2023 goes 48 -> 52.8 (both 1.10)."""
    rows = {
        2024: {12: 50.0, 24: 55.0},
        2023: {12: 48.0, 24: 52.8},
    }
    return _points(rows)


@pytest.fixture
def financial_points():
    """Premium, paid, reserve and IBNR triangle figures for 2022-2023."""
    points = []
    points += _points({2022: {12: 900.0, 24: 1000.0}, 2023: {12: 1100.0}}, 'earned_premium')
    points += _points({2022: {12: 200.0, 24: 350.0}, 2023: {12: 150.0}}, 'net_paid_loss')
    points += _points({2022: {12: 300.0, 24: 250.0}, 2023: {12: 400.0}}, 'claim_reserves')
    points += _points({2022: {24: 50.0}, 2023: {12: 100.0}}, 'bulk_ibnr')
    return points


@pytest.fixture
def sample_aggregates():
    """Per-record rows; 2022 has two records that must be summed."""
    return [
        AccidentYearAggregate(2022, earned_premium=600.0, net_claim_payment=200.0,
                              reserve_balance=100.0, incurred=400.0, incurred_pct_premium=66.0),
        AccidentYearAggregate(2022, earned_premium=400.0, net_claim_payment=100.0,
                              reserve_balance=50.0, incurred=250.0, incurred_pct_premium=62.0),
        AccidentYearAggregate(2021, incurred_pct_premium=70.0),
        AccidentYearAggregate(2021, incurred_pct_premium=80.0),
    ]
