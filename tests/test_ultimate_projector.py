import sys
from dataclasses import replace
from pathlib import Path

import pytest

# Add src to path so we can import modules
sys.path.insert(0, str(Path(__file__).parents[1] / "src"))

from chain_ladder import ChainLadder
from development import ATAFactor, CumulativeFactorChainer, DevelopmentWarning, FactorSelector
from projection import (
    AccidentYearAggregate,
    LossRatioSource,
    UltimateBasis,
    UltimateProjector,
    summaries_to_frame,
)
from triangle_store import TrianglePoint, TrianglePointStore


@pytest.fixture
def identity_cdfs(ladder):
    return CumulativeFactorChainer(ladder).chain([])


def test_components_from_triangle(financial_points, identity_cdfs):
    """
    2022 (latest 24 mo): premium 1000, paid 350, reserves 250, IBNR 50
        incurred = 650, loss ratio = 65.0
    2023 (latest 12 mo): premium 1100, paid 150, reserves 400, IBNR 100
        incurred = 650, loss ratio = 59.09
    """
    summaries = UltimateProjector(identity_cdfs).project(TrianglePointStore(financial_points))

    assert [s.accident_year for s in summaries] == [2023, 2022]

    ay22 = summaries[1]
    assert ay22.earned_premium == 1000.0
    assert ay22.net_paid == 350.0
    assert ay22.reserves == 250.0
    assert ay22.incurred == 650.0
    assert ay22.ibnr == 50.0
    assert ay22.loss_ratio == pytest.approx(65.0)
    assert ay22.loss_ratio_source == LossRatioSource.INCURRED_TO_PREMIUM
    assert ay22.has_paid_reserve_data
    assert ay22.ibnr_meaningful
    assert ay22.development_age == 24
    assert ay22.ultimate_loss == 650.0
    assert ay22.ultimate_basis == UltimateBasis.COMPONENT_SUM

    ay23 = summaries[0]
    assert ay23.ibnr == 100.0
    assert ay23.loss_ratio == pytest.approx(650 / 1100 * 100)


def test_aggregates_take_precedence(financial_points, sample_aggregates, identity_cdfs):
    """2022 aggregates: premium 1000, paid 300, reserves 150, direct incurred 650."""
    store = TrianglePointStore(financial_points)
    summaries = UltimateProjector(identity_cdfs).project(store, sample_aggregates)
    ay22 = next(s for s in summaries if s.accident_year == 2022)

    assert ay22.net_paid == 300.0
    assert ay22.reserves == 150.0
    assert ay22.incurred == 650.0
    assert ay22.ibnr == 200.0  # 650 - 300 - 150
    assert ay22.ultimate_basis == UltimateBasis.DIRECT_INCURRED
    assert ay22.loss_ratio == pytest.approx(65.0)


def test_record_average_loss_ratio(sample_aggregates, identity_cdfs):
    summaries = UltimateProjector(identity_cdfs).project(TrianglePointStore(), sample_aggregates)
    ay21 = next(s for s in summaries if s.accident_year == 2021)

    assert ay21.loss_ratio == pytest.approx(75.0)
    assert ay21.loss_ratio_source == LossRatioSource.RECORD_AVERAGE
    assert not ay21.has_paid_reserve_data
    assert not ay21.ibnr_meaningful
    assert ay21.ibnr == 0.0
    assert ay21.ultimate_basis == UltimateBasis.NO_DATA


def test_triangle_loss_ratio_and_cdf_projection(sample_points, ladder):
    """2023 has only a 45% loss ratio at 12 months and 1000 earned premium."""
    points = sample_points + [TrianglePoint(2023, 12, 'earned_premium', 1000.0)]
    store = TrianglePointStore(points)
    cdfs = ChainLadder(store, ladder=ladder).calculate_cumulative_factors()

    ay23 = UltimateProjector(cdfs).project_year(2023, store)

    assert ay23.loss_ratio == 45.0
    assert ay23.loss_ratio_source == LossRatioSource.TRIANGLE
    assert ay23.cdf_to_ultimate == pytest.approx(1.386)
    assert ay23.percent_developed == pytest.approx(1 / 1.386)
    assert ay23.projected_ultimate_loss_ratio == pytest.approx(45.0 * 1.386)
    assert ay23.ultimate_loss == pytest.approx(1000.0 * 45.0 * 1.386 / 100)
    assert ay23.ultimate_basis == UltimateBasis.CDF_PROJECTION


def test_incurred_ratio_beats_triangle_loss_ratio(identity_cdfs):
    store = TrianglePointStore([
        TrianglePoint(2024, 12, 'loss_ratio', 80.0),
        TrianglePoint(2024, 12, 'earned_premium', 1000.0),
        TrianglePoint(2024, 12, 'net_paid_loss', 300.0),
    ])
    ay = UltimateProjector(identity_cdfs).project_year(2024, store)

    assert ay.loss_ratio == pytest.approx(30.0)
    assert ay.loss_ratio_source == LossRatioSource.INCURRED_TO_PREMIUM


def test_latest_development_age_is_used_for_triangle_loss_ratio(identity_cdfs):
    store = TrianglePointStore([
        TrianglePoint(2022, 12, 'loss_ratio', 50.0),
        TrianglePoint(2022, 36, 'loss_ratio', 62.0),
        TrianglePoint(2022, 24, 'loss_ratio', 58.0),
    ])
    ay = UltimateProjector(identity_cdfs).project_year(2022, store)
    assert ay.loss_ratio == 62.0


def test_gross_paid_fallback(identity_cdfs):
    store = TrianglePointStore([TrianglePoint(2024, 12, 'gross_paid', 120.0)])
    ay = UltimateProjector(identity_cdfs).project_year(2024, store)

    assert ay.net_paid == 120.0
    assert ay.has_paid_reserve_data


def test_no_data_year_is_flagged(identity_cdfs):
    summaries = UltimateProjector(identity_cdfs).project(
        TrianglePointStore(), [AccidentYearAggregate(2019)]
    )
    ay = summaries[0]

    assert ay.loss_ratio == 0.0
    assert ay.loss_ratio_source == LossRatioSource.NO_DATA
    assert not ay.has_loss_ratio
    assert not ay.has_paid_reserve_data
    assert ay.ultimate_basis == UltimateBasis.NO_DATA


def test_ibnr_never_negative(identity_cdfs):
    aggregates = [AccidentYearAggregate(2024, earned_premium=1000.0, net_claim_payment=500.0,
                                        reserve_balance=400.0, incurred=600.0)]
    ay = UltimateProjector(identity_cdfs).project(TrianglePointStore(), aggregates)[0]
    assert ay.ibnr == 0.0


def test_aggregate_rejects_non_finite():
    with pytest.raises(ValueError):
        AccidentYearAggregate(2024, earned_premium=float('inf'))


def test_summaries_are_immutable(financial_points, identity_cdfs):
    ay = UltimateProjector(identity_cdfs).project(TrianglePointStore(financial_points))[0]
    with pytest.raises(Exception):
        ay.loss_ratio = 0.0


def test_summaries_to_frame(financial_points, identity_cdfs):
    summaries = UltimateProjector(identity_cdfs).project(TrianglePointStore(financial_points))
    frame = summaries_to_frame(summaries)

    assert list(frame.index) == [2023, 2022]
    assert frame.loc[2022, 'incurred'] == 650.0
    assert frame.loc[2022, 'loss_ratio_source'] == 'incurred_to_premium'


def test_zero_cdf_does_not_break_projection(ladder):
    selector = FactorSelector()
    selected = [
        selector.select_transition(12, 24, [ATAFactor(12, 24, 2024, 0.0, from_amount=50.0)]),
        selector.select_transition(24, 36, []),
        selector.select_transition(36, 48, []),
    ]
    # Zero ratios are dropped by selection, so the chain is identity
    assert CumulativeFactorChainer(ladder).chain(selected).cdf_at(12) == 1.0

    # A degenerate chain built by hand projects without development
    forced = [replace(selected[0], selected=0.0)] + selected[1:]
    with pytest.warns(DevelopmentWarning):
        cdfs = CumulativeFactorChainer(ladder).chain(forced)

    store = TrianglePointStore([
        TrianglePoint(2024, 12, 'loss_ratio', 45.0),
        TrianglePoint(2024, 12, 'earned_premium', 1000.0),
    ])
    ay = UltimateProjector(cdfs).project_year(2024, store)

    assert ay.cdf_to_ultimate == 1.0
    assert ay.percent_developed == 1.0
    assert ay.projected_ultimate_loss_ratio == 45.0


def test_aggregate_rejects_non_finite_loss_ratio():
    with pytest.raises(ValueError, match="incurred_pct_premium"):
        AccidentYearAggregate(2024, incurred_pct_premium=float('inf'))
    with pytest.raises(ValueError):
        AccidentYearAggregate(2024, incurred_pct_premium=float('nan'))
