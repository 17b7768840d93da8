"""
Development Factor Selection
============================

Collapses the per-year age-to-age factors of each transition into a single
selected factor.

    simple average:   f = (1/n) * sum(f_i)
    weighted average: f = sum(f_i * C_i) / sum(C_i)     (C_i = "from" amount)

Selection precedence is fixed: weighted average if defined, else simple
average if defined, else 1.0 (no further development). Both averages are
always reported so the choice can be audited.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from development.ata_factors import ATAFactor, ATAResult


class SelectionBasis(str, Enum):
    WEIGHTED_AVERAGE = "weighted_average"
    SIMPLE_AVERAGE = "simple_average"
    NO_DEVELOPMENT = "no_development"


@dataclass(frozen=True)
class SelectedFactor:
    """One selected factor per (from_month, to_month) transition."""
    from_month: int
    to_month: int
    simple_average: Optional[float]
    weighted_average: Optional[float]
    selected: float
    basis: SelectionBasis
    n_years: int = 0


class FactorSelector:
    """Selects one representative ATA factor per transition."""

    NO_DEVELOPMENT = 1.0

    def select(self, ata) -> List[SelectedFactor]:
        """
        Select factors for every transition.

        Args:
            ata: ATAResult, or a mapping of (from_month, to_month) -> factors

        Returns:
            SelectedFactors ordered by from_month ascending
        """
        if isinstance(ata, ATAResult):
            grouped = ata.by_transition()
        else:
            grouped = dict(ata)

        return [
            self.select_transition(from_month, to_month, grouped[(from_month, to_month)])
            for from_month, to_month in sorted(grouped)
        ]

    def select_transition(
        self,
        from_month: int,
        to_month: int,
        factors: Iterable[ATAFactor]
    ) -> SelectedFactor:
        """Apply the weighted -> simple -> 1.0 precedence to one transition."""
        # Zero, negative and non-finite ratios count as missing
        observed = [
            f for f in factors
            if f.value is not None and math.isfinite(f.value) and f.value > 0
        ]

        simple = self.simple_average(observed)
        weighted = self.weighted_average(observed)

        if weighted is not None:
            selected, basis = weighted, SelectionBasis.WEIGHTED_AVERAGE
        elif simple is not None:
            selected, basis = simple, SelectionBasis.SIMPLE_AVERAGE
        else:
            selected, basis = self.NO_DEVELOPMENT, SelectionBasis.NO_DEVELOPMENT

        return SelectedFactor(
            from_month=from_month,
            to_month=to_month,
            simple_average=simple,
            weighted_average=weighted,
            selected=selected,
            basis=basis,
            n_years=len(observed)
        )

    @staticmethod
    def simple_average(factors: List[ATAFactor]) -> Optional[float]:
        if not factors:
            return None
        return float(np.mean([f.value for f in factors]))

    @staticmethod
    def weighted_average(factors: List[ATAFactor]) -> Optional[float]:
        # Only observations carrying a positive "from" volume can be weighted
        weighted = [f for f in factors if f.from_amount is not None and f.from_amount > 0]
        if not weighted:
            return None

        values = np.array([f.value for f in weighted])
        weights = np.array([f.from_amount for f in weighted])
        weight_total = weights.sum()
        if weight_total <= 0:
            return None
        return float((values * weights).sum() / weight_total)


def selected_factors_to_frame(selected: List[SelectedFactor]) -> pd.DataFrame:
    """Audit table of the selection, one row per transition."""
    rows = [{
        'Transition': f"{s.from_month}-{s.to_month}",
        'Simple_Avg': s.simple_average,
        'Weighted_Avg': s.weighted_average,
        'Selected': s.selected,
        'Basis': s.basis.value,
        'N_Years': s.n_years
    } for s in selected]
    columns = ['Transition', 'Simple_Avg', 'Weighted_Avg', 'Selected', 'Basis', 'N_Years']
    return pd.DataFrame(rows, columns=columns).set_index('Transition')
