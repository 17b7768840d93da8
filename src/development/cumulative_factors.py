"""
Cumulative Development Factors
==============================

Chains selected age-to-age factors into cumulative development factors
(CDF) to ultimate, one per ladder rung:

    CDF(i) = prod_{j >= i} f(j)          CDF(last rung) = 1.0

For well-formed data CDFs do not increase with development age. A chain
that breaks this (some selected factor below 1.0) is still returned but is
flagged with a DevelopmentWarning and monotonic=False.
"""

import warnings
from dataclasses import dataclass
from typing import List, Optional, Tuple

import pandas as pd

from development.factor_selection import SelectedFactor
from engine_settings import STANDARD_LADDER, validate_ladder


class DevelopmentWarning(UserWarning):
    """Raised (as a warning) for suspicious but usable development patterns."""


@dataclass(frozen=True)
class CumulativeFactor:
    development_months: int
    value: float


@dataclass(frozen=True)
class CDFResult:
    """
    Cumulative factors for every ladder rung.

    Attributes:
        factors: One CumulativeFactor per rung, ascending months
        monotonic: False when a later rung carries more development than an earlier one
        is_identity: True when no selected factors were available
    """
    factors: Tuple[CumulativeFactor, ...]
    monotonic: bool = True
    is_identity: bool = False

    @property
    def ladder(self) -> List[int]:
        return [f.development_months for f in self.factors]

    def values(self) -> List[float]:
        return [f.value for f in self.factors]

    def cdf_at(self, months: int) -> float:
        """
        CDF for a development age.

        Uses the latest rung at or below the age. Ages past the last rung
        are treated as ultimate (1.0); ages before the first rung take the
        first rung's CDF.
        """
        if not self.factors:
            return 1.0
        if months > self.factors[-1].development_months:
            return 1.0

        applicable = [f for f in self.factors if f.development_months <= months]
        if not applicable:
            return self.factors[0].value
        return applicable[-1].value

    def percent_developed(self, months: int) -> Optional[float]:
        """1 / CDF; None when the CDF is not positive."""
        cdf = self.cdf_at(months)
        if cdf <= 0:
            return None
        return 1.0 / cdf

    def to_series(self) -> pd.Series:
        return pd.Series(
            self.values(),
            index=pd.Index(self.ladder, name='development_months'),
            name='CDF'
        )


class CumulativeFactorChainer:
    """Builds CDFs to ultimate from ordered selected factors."""

    TOLERANCE = 1e-9

    def __init__(self, ladder: Optional[List[int]] = None):
        self.ladder = validate_ladder(ladder if ladder is not None else STANDARD_LADDER)

    def chain(self, selected: List[SelectedFactor], method: str = 'running') -> CDFResult:
        """
        Chain selected factors into CDFs.

        Args:
            selected: One SelectedFactor per ladder transition, ascending.
                      An empty list yields identity CDFs.
            method: 'running' (right-to-left running product) or
                    'nested' (explicit product per rung)

        Raises:
            ValueError: Unknown method, or factors that do not line up with the ladder
        """
        if not selected:
            identity = tuple(CumulativeFactor(m, 1.0) for m in self.ladder)
            return CDFResult(factors=identity, monotonic=True, is_identity=True)

        self._check_alignment(selected)
        factors = [s.selected for s in selected]

        if method == 'running':
            values = self._running_product(factors)
        elif method == 'nested':
            values = self._nested_product(factors)
        else:
            raise ValueError(f"Unknown method: {method}")

        cdfs = tuple(CumulativeFactor(m, v) for m, v in zip(self.ladder, values))
        monotonic = self.is_monotonic(values)

        if not monotonic:
            warnings.warn(
                "Cumulative development factors increase with age "
                f"({', '.join(f'{v:.4f}' for v in values)}); check selected factors below 1.0",
                DevelopmentWarning
            )

        return CDFResult(factors=cdfs, monotonic=monotonic)

    def _check_alignment(self, selected: List[SelectedFactor]):
        expected = list(zip(self.ladder[:-1], self.ladder[1:]))
        actual = [(s.from_month, s.to_month) for s in selected]
        if actual != expected:
            raise ValueError(
                f"Selected factors {actual} do not match ladder transitions {expected}"
            )

    @staticmethod
    def _running_product(factors: List[float]) -> List[float]:
        # Start from the end and multiply backwards
        values = [1.0]
        cum_factor = 1.0
        for factor in reversed(factors):
            cum_factor *= factor
            values.append(cum_factor)
        return list(reversed(values))

    @staticmethod
    def _nested_product(factors: List[float]) -> List[float]:
        values = []
        for i in range(len(factors)):
            cdf = 1.0
            for j in range(i, len(factors)):
                cdf *= factors[j]
            values.append(cdf)
        values.append(1.0)  # Ultimate
        return values

    @classmethod
    def is_monotonic(cls, values: List[float]) -> bool:
        """True when CDFs are non-increasing (within tolerance)."""
        return all(
            later <= earlier * (1 + cls.TOLERANCE)
            for earlier, later in zip(values, values[1:])
        )
