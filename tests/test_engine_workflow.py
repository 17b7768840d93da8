import sys
from pathlib import Path

import pytest

# Add src to path so we can import modules
sys.path.insert(0, str(Path(__file__).parents[1] / "src"))

from capital import CapitalAdequacyStrategy, RBCStatus
from engine_settings import DevelopmentSettings, EngineConfig
from engine_workflow import LossTriangleEngine
from projection import LossRatioSource
from triangle_store import TrianglePoint


@pytest.fixture
def config(ladder):
    return EngineConfig(development=DevelopmentSettings(ladder=ladder))


def test_full_run(config, sample_points, financial_points):
    engine = LossTriangleEngine(config)
    result = engine.run(sample_points + financial_points)

    assert [s.accident_year for s in result.summaries] == [2023, 2022, 2021, 2020]
    assert result.cdfs.cdf_at(12) == pytest.approx(1.386)
    assert [round(s.selected, 4) for s in result.selected_factors] == [1.2, 1.1, 1.05]
    assert result.flags == []

    ay22 = result.summary_for(2022)
    assert ay22.loss_ratio_source == LossRatioSource.INCURRED_TO_PREMIUM
    assert ay22.incurred == 650.0

    ay21 = result.summary_for(2021)
    assert ay21.loss_ratio_source == LossRatioSource.TRIANGLE
    assert not ay21.has_paid_reserve_data

    assert result.capital.accident_years == [2023, 2022, 2021, 2020]
    assert result.capital.total_reserves == pytest.approx(650.0)
    assert result.capital.rbc_ratio is not None
    assert result.summary_for(1990) is None


def test_runs_are_idempotent(config, sample_points, financial_points, sample_aggregates):
    engine = LossTriangleEngine(config)
    first = engine.run(sample_points + financial_points, sample_aggregates)
    second = engine.run(sample_points + financial_points, sample_aggregates)

    assert first == second


def test_inputs_are_not_modified(config, sample_points, sample_aggregates):
    points = list(sample_points)
    aggregates = list(sample_aggregates)

    LossTriangleEngine(config).run(points, aggregates)

    assert points == sample_points
    assert aggregates == sample_aggregates


def test_duplicates_resolved_in_input_order(config, sample_points):
    revised = [TrianglePoint(2023, 12, 'loss_ratio', 47.0)]
    result = LossTriangleEngine(config).run(sample_points + revised)
    assert result.summary_for(2023).loss_ratio == 47.0


def test_single_year_is_flagged(config):
    points = [TrianglePoint(2024, 12, 'loss_ratio', 50.0)]
    result = LossTriangleEngine(config).run(points)

    assert result.ata.is_empty
    assert result.cdfs.is_identity
    assert any("fewer than 2" in flag for flag in result.flags)


def test_unobserved_transition_is_flagged(config, two_year_points):
    result = LossTriangleEngine(config).run(two_year_points)
    assert any("24-36" in flag for flag in result.flags)
    assert result.cdfs.cdf_at(24) == 1.0


def test_no_data_gives_insufficient_status(config):
    result = LossTriangleEngine(config).run([])

    assert result.summaries == []
    assert result.capital.status == RBCStatus.INSUFFICIENT_DATA


def test_heuristic_strategy(config, financial_points):
    engine = LossTriangleEngine(config, strategy='combined_ratio_heuristic')
    result = engine.run(financial_points)

    assert engine.strategy == CapitalAdequacyStrategy.COMBINED_RATIO_HEURISTIC
    assert result.capital.combined_ratio is not None


def test_verbose_and_summary_output(config, sample_points, financial_points, capsys):
    engine = LossTriangleEngine(config, verbose=True)
    result = engine.run(sample_points + financial_points)
    engine.print_summary(result)

    out = capsys.readouterr().out
    assert "PHASE 3: CAPITAL ADEQUACY" in out
    assert "CAPITAL POSITION" in out
    assert "RBC Ratio" in out
