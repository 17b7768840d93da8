"""
Loss Triangle Engine Workflow

End-to-end pipeline from raw observations to a capital position:

1. TrianglePoint store (private copy of the input snapshot)
2. Age-to-age factors on the standard ladder (loss_ratio metric)
3. Factor selection (weighted -> simple -> 1.0)
4. Cumulative development factors to ultimate
5. Ultimate projection per accident year
6. Capital adequacy (RBC ratio)

Every run is a pure function of its inputs: nothing is cached between
runs and the inputs are never modified.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from capital import CapitalAdequacyCalculator, CapitalAdequacyStrategy, CapitalPosition
from chain_ladder import ChainLadder
from development import ATAResult, CDFResult, SelectedFactor
from engine_settings import EngineConfig
from projection import AccidentYearAggregate, AccidentYearSummary, UltimateProjector, summaries_to_frame
from triangle_store import TrianglePoint, TrianglePointStore


@dataclass(frozen=True)
class EngineResult:
    """
    Output of one engine run.

    Attributes:
        ata: Per-year age-to-age factors
        selected_factors: One selected factor per transition
        cdfs: Cumulative development factors per ladder rung
        summaries: One summary per accident year, most recent first
        capital: Capital position over the most recent accident years
        flags: Data-quality notes raised during the run
    """
    ata: ATAResult
    selected_factors: List[SelectedFactor]
    cdfs: CDFResult
    summaries: List[AccidentYearSummary]
    capital: CapitalPosition
    flags: List[str] = field(default_factory=list)

    def summary_for(self, accident_year: int) -> Optional[AccidentYearSummary]:
        for s in self.summaries:
            if s.accident_year == accident_year:
                return s
        return None


class LossTriangleEngine:
    """
    Loss development and capital adequacy pipeline.

    Usage:
        engine = LossTriangleEngine(EngineConfig())
        result = engine.run(points, aggregates)
        result.capital.rbc_ratio
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        strategy=CapitalAdequacyStrategy.FULL_COVARIANCE,
        verbose: bool = False
    ):
        """
        Args:
            config: Engine parameters (validated on construction)
            strategy: Capital model used for the RBC ratio
            verbose: Print progress
        """
        self.config = config if config is not None else EngineConfig()
        self.strategy = CapitalAdequacyStrategy(strategy)
        self.verbose = verbose
        self.capital_calculator = CapitalAdequacyCalculator(self.config, self.strategy)

    def run(
        self,
        points: Iterable[TrianglePoint],
        aggregates: Iterable[AccidentYearAggregate] = (),
        invested_assets: Optional[float] = None,
        affiliate_charge: float = 0.0
    ) -> EngineResult:
        """
        Run the full pipeline on one input snapshot.

        Args:
            points: Triangle observations (later duplicates win)
            aggregates: Per-record accident year aggregates
            invested_assets: Known invested assets, estimated when omitted
            affiliate_charge: R0 affiliate investment charge

        Returns:
            EngineResult
        """
        store = TrianglePointStore(tuple(points))
        aggregates = tuple(aggregates)
        flags = []

        if self.verbose:
            print("\n" + "="*80)
            print("PHASE 1: LOSS DEVELOPMENT")
            print("="*80 + "\n")

        cl = ChainLadder(store, ladder=self.config.development.ladder, verbose=self.verbose)
        development = cl.run_full_analysis()
        ata = development['age_to_age_factors']
        selected = development['selected_factors']
        cdfs = development['cumulative_factors']

        if ata.is_empty:
            flags.append("fewer than 2 accident years with loss ratio data; identity CDFs used")
        for s in selected:
            if s.n_years == 0:
                flags.append(f"no observations for {s.from_month}-{s.to_month}; factor set to 1.0")
        if not cdfs.monotonic:
            flags.append("cumulative development factors are not monotonic")

        if self.verbose:
            print("\n" + "="*80)
            print("PHASE 2: ULTIMATE PROJECTION")
            print("="*80 + "\n")

        summaries = UltimateProjector(cdfs).project(store, aggregates)

        if self.verbose:
            print(f"   ✅ Projected {len(summaries)} accident years\n")
            print("\n" + "="*80)
            print(f"PHASE 3: CAPITAL ADEQUACY ({self.strategy.value})")
            print("="*80 + "\n")

        capital = self.capital_calculator.calculate(
            summaries,
            invested_assets=invested_assets,
            affiliate_charge=affiliate_charge
        )

        if self.verbose:
            ratio = capital.rbc_ratio
            ratio_text = f"{ratio:.1f}%" if ratio is not None else "n/a"
            print(f"   ✅ RBC ratio {ratio_text} ({capital.status.value})\n")

        return EngineResult(
            ata=ata,
            selected_factors=selected,
            cdfs=cdfs,
            summaries=summaries,
            capital=capital,
            flags=flags
        )

    def print_summary(self, result: EngineResult):
        """Print formatted summary"""
        print("\n" + "="*80)
        print("ACCIDENT YEAR SUMMARY")
        print("="*80 + "\n")
        frame = summaries_to_frame(result.summaries)
        display_cols = ['earned_premium', 'net_paid', 'reserves', 'ibnr', 'incurred',
                        'loss_ratio', 'loss_ratio_source', 'ultimate_loss']
        print(frame[display_cols].round(2).to_string())

        capital = result.capital
        print("\n" + "="*80)
        print("CAPITAL POSITION")
        print("="*80 + "\n")
        print(f"Total Reserves:         ${capital.total_reserves:>15,.0f}")
        print(f"Total IBNR:             ${capital.total_ibnr:>15,.0f}")
        print(f"Trailing 12M Premium:   ${capital.trailing_12m_earned_premium:>15,.0f}")
        print(f"Authorized Control Lvl: ${capital.authorized_control_level:>15,.0f}")
        print(f"Policyholder Surplus:   ${capital.policyholder_surplus:>15,.0f}")

        display = self.capital_calculator.display_ratio(capital)
        if display is not None:
            print(f"RBC Ratio:              {display:>15.0f}%")
        print(f"Status:                 {capital.status.value:>15}")

        for flag in result.flags:
            print(f"⚠️  {flag}")
