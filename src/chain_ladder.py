"""
Chain-Ladder on Loss Ratio Triangles
Chains age-to-age factors, factor selection and cumulative factors to ultimate
"""

from pathlib import Path
from typing import List, Optional

from development import (
    AgeToAgeCalculator,
    ATAResult,
    CDFResult,
    CumulativeFactorChainer,
    FactorSelector,
    SelectedFactor,
    selected_factors_to_frame,
)
from engine_settings import STANDARD_LADDER, validate_ladder
from triangle_store import MetricType, TrianglePointStore


class ChainLadder:
    """Chain-ladder development of a TrianglePointStore on a fixed ladder"""

    def __init__(
        self,
        store: TrianglePointStore,
        ladder: Optional[List[int]] = None,
        metric_type=MetricType.LOSS_RATIO,
        verbose: bool = False
    ):
        """
        Initialize with a point store

        Args:
            store: Observations keyed by (accident year, development month, metric)
            ladder: Standard development ages in months
            metric_type: Metric used for link ratios (loss_ratio by default)
            verbose: Print progress
        """
        self.store = store
        self.ladder = validate_ladder(ladder if ladder is not None else STANDARD_LADDER)
        self.metric_type = MetricType(metric_type)
        self.verbose = verbose

        self.calculator = AgeToAgeCalculator(self.ladder, self.metric_type)
        self.selector = FactorSelector()
        self.chainer = CumulativeFactorChainer(self.ladder)

        # Results (calculated later)
        self.age_to_age_factors: Optional[ATAResult] = None
        self.selected_factors: Optional[List[SelectedFactor]] = None
        self.cum_factors: Optional[CDFResult] = None

    def calculate_age_to_age_factors(self) -> ATAResult:
        """Calculate per-year age-to-age factors"""
        self.age_to_age_factors = self.calculator.calculate(self.store)
        return self.age_to_age_factors

    def select_development_factors(self) -> List[SelectedFactor]:
        """
        Select one factor per transition

        Returns:
            Selected factors (empty when the triangle has fewer than 2 years)
        """
        if self.age_to_age_factors is None:
            self.calculate_age_to_age_factors()

        self.selected_factors = self.selector.select(self.age_to_age_factors)
        return self.selected_factors

    def calculate_cumulative_factors(self, method: str = 'running') -> CDFResult:
        """Calculate cumulative development factors (each rung to ultimate)"""
        if self.selected_factors is None:
            self.select_development_factors()

        self.cum_factors = self.chainer.chain(self.selected_factors, method=method)
        return self.cum_factors

    def run_full_analysis(self) -> dict:
        """
        Run complete chain-ladder development

        Returns:
            Dictionary with all results
        """
        if self.verbose:
            print("🔗 Running Chain-Ladder Analysis...\n")
            print(f"📊 Step 1: Calculate age-to-age factors ({self.metric_type.value})")
        self.calculate_age_to_age_factors()
        if self.verbose:
            if self.age_to_age_factors.is_empty:
                print("   ⚠️  Fewer than 2 accident years with data - no factors\n")
            else:
                print(f"   ✅ {len(self.age_to_age_factors.accident_years)} accident years, "
                      f"{len(self.age_to_age_factors.transitions)} transitions\n")
            print("📊 Step 2: Select development factors (weighted → simple → 1.0)")

        self.select_development_factors()
        if self.verbose:
            print(f"   ✅ Selected {len(self.selected_factors)} factors\n")
            print("📊 Step 3: Calculate cumulative development factors")

        self.calculate_cumulative_factors()
        if self.verbose:
            status = "monotonic" if self.cum_factors.monotonic else "NOT monotonic"
            print(f"   ✅ Calculated {len(self.cum_factors.factors)} cumulative factors ({status})\n")

        return {
            'age_to_age_factors': self.age_to_age_factors,
            'selected_factors': self.selected_factors,
            'cumulative_factors': self.cum_factors
        }

    def to_frames(self) -> dict:
        """Results as DataFrames for display and export"""
        if self.cum_factors is None:
            self.run_full_analysis()

        return {
            'age_to_age_factors': self.age_to_age_factors.to_frame(),
            'selected_factors': selected_factors_to_frame(self.selected_factors),
            'cumulative_factors': self.cum_factors.to_series().to_frame()
        }

    def summary(self) -> dict:
        """Get summary statistics"""
        if self.cum_factors is None:
            self.run_full_analysis()

        cdfs = self.cum_factors.values()
        return {
            'n_accident_years': len(self.age_to_age_factors.accident_years),
            'n_transitions': len(self.selected_factors),
            'n_defaulted_transitions': sum(1 for s in self.selected_factors if s.n_years == 0),
            'cdf_first_rung': cdfs[0],
            'monotonic': self.cum_factors.monotonic,
            'is_identity': self.cum_factors.is_identity
        }


def display_results(cl: ChainLadder):
    """Pretty print chain-ladder results"""
    frames = cl.to_frames()

    print("\n" + "="*80)
    print("AGE-TO-AGE DEVELOPMENT FACTORS")
    print("="*80 + "\n")
    print(frames['age_to_age_factors'].round(4))

    print("\n" + "="*80)
    print("SELECTED DEVELOPMENT FACTORS")
    print("="*80 + "\n")
    print(frames['selected_factors'].round(4))

    print("\n" + "="*80)
    print("CUMULATIVE DEVELOPMENT FACTORS (to Ultimate)")
    print("="*80 + "\n")
    print(frames['cumulative_factors'].round(4))

    summary = cl.summary()
    print("\n" + "="*80)
    print("SUMMARY STATISTICS")
    print("="*80 + "\n")
    print(f"Accident Years:         {summary['n_accident_years']:>10}")
    print(f"Transitions:            {summary['n_transitions']:>10}")
    print(f"Defaulted to 1.000:     {summary['n_defaulted_transitions']:>10}")
    print(f"CDF at First Rung:      {summary['cdf_first_rung']:>10.4f}")
    print(f"Monotonic CDFs:         {str(summary['monotonic']):>10}")


def save_results(cl: ChainLadder, output_dir: Path):
    """Save all results to CSV"""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    frames = cl.to_frames()
    frames['age_to_age_factors'].to_csv(output_dir / 'age_to_age_factors.csv')
    frames['selected_factors'].to_csv(output_dir / 'selected_factors.csv')
    frames['cumulative_factors'].to_csv(output_dir / 'cumulative_factors.csv')

    if cl.verbose:
        print(f"\n💾 Results saved to {output_dir}/")
