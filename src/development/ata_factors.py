"""
Age-to-Age Factor Calculation
=============================

Derives link ratios for every adjacent pair of rungs on the standard
development ladder, one per accident year:

    f(i, j) = C(i, j+1) / C(i, j)

where C is the loss ratio triangle. A year whose value at either rung is
missing, zero or negative yields no observation (None) for that
transition. It stays in the list so callers can see which years were
excluded.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from engine_settings import STANDARD_LADDER, validate_ladder
from triangle_store import MetricType, TrianglePointStore


@dataclass(frozen=True)
class ATAFactor:
    """A single observed link ratio (value is None when not observable)."""
    from_month: int
    to_month: int
    accident_year: int
    value: Optional[float]
    from_amount: Optional[float] = None

    @property
    def is_observed(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class ATAResult:
    """
    Container for age-to-age factors.

    Attributes:
        ladder: Development ladder the factors were computed on
        accident_years: Years that had data for the metric
        transitions: (from_month, to_month) pairs, ascending
        factors: One tuple of per-year ATAFactors per transition
    """
    ladder: Tuple[int, ...]
    accident_years: Tuple[int, ...] = ()
    transitions: Tuple[Tuple[int, int], ...] = ()
    factors: Tuple[Tuple[ATAFactor, ...], ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return len(self.transitions) == 0

    def by_transition(self) -> Dict[Tuple[int, int], List[ATAFactor]]:
        return {t: list(f) for t, f in zip(self.transitions, self.factors)}

    def factors_for(self, from_month: int, to_month: int) -> List[ATAFactor]:
        return self.by_transition().get((from_month, to_month), [])

    def to_frame(self) -> pd.DataFrame:
        """Accident years x transitions table of factor values (NaN = no observation)."""
        columns = [f"{a}-{b}" for a, b in self.transitions]
        table = pd.DataFrame(index=list(self.accident_years), columns=columns, dtype=float)
        table.index.name = 'accident_year'
        for col, factors in zip(columns, self.factors):
            for f in factors:
                table.loc[f.accident_year, col] = f.value if f.value is not None else np.nan
        return table


class AgeToAgeCalculator:
    """
    Age-to-age factor calculator over a TrianglePointStore.

    Only the configured metric (loss_ratio by default) is used, and only
    observations that sit on a ladder rung.
    """

    def __init__(self, ladder: Optional[List[int]] = None, metric_type=MetricType.LOSS_RATIO):
        """
        Args:
            ladder: Standard development ages in months (>= 2 rungs)
            metric_type: Metric the link ratios are computed on
        """
        self.ladder = validate_ladder(ladder if ladder is not None else STANDARD_LADDER)
        self.metric_type = MetricType(metric_type)

    @property
    def transitions(self) -> List[Tuple[int, int]]:
        return list(zip(self.ladder[:-1], self.ladder[1:]))

    def calculate(self, store: TrianglePointStore) -> ATAResult:
        """
        Calculate per-year ATA factors for every ladder transition.

        Returns an empty ATAResult (no transitions) when fewer than two
        accident years have any data for the metric. Years whose points
        are all off the ladder still count and get unobserved factors.
        """
        years = tuple(store.accident_years(self.metric_type))

        if len(years) < 2:
            return ATAResult(ladder=tuple(self.ladder), accident_years=years)

        triangle = store.to_triangle(self.metric_type, ladder=self.ladder)
        triangle = triangle.reindex(index=list(years))

        ratios = self.calculate_link_ratios(triangle)

        all_factors = []
        for from_month, to_month in self.transitions:
            transition = []
            for year in years:
                value = ratios.loc[year, from_month]
                from_amount = triangle.loc[year, from_month]
                transition.append(ATAFactor(
                    from_month=from_month,
                    to_month=to_month,
                    accident_year=year,
                    value=None if pd.isna(value) else float(value),
                    from_amount=None if pd.isna(from_amount) else float(from_amount)
                ))
            all_factors.append(tuple(transition))

        return ATAResult(
            ladder=tuple(self.ladder),
            accident_years=years,
            transitions=tuple(self.transitions),
            factors=tuple(all_factors)
        )

    def calculate_link_ratios(self, triangle: pd.DataFrame) -> pd.DataFrame:
        """
        Vectorised link ratios on a ladder-aligned triangle.

        Returns:
            DataFrame indexed like the triangle with one column per "from"
            rung; NaN wherever either side is missing or non-positive
        """
        ratios = pd.DataFrame(index=triangle.index, columns=self.ladder[:-1], dtype=float)

        for from_month, to_month in self.transitions:
            current = triangle[from_month]
            nxt = triangle[to_month]
            valid = current.notna() & nxt.notna() & (current > 0) & (nxt > 0)
            ratios[from_month] = (nxt / current).where(valid)

        return ratios
