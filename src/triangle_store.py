"""
Triangle Point Store
====================

Holds raw loss development observations keyed by
(accident year, development month, metric type).

Duplicate policy: the most recently ingested point wins. A later batch
replaces matching keys from earlier batches, and within one batch the
later record replaces the earlier one.

Example:
    >>> store = TrianglePointStore()
    >>> store.ingest([TrianglePoint(2024, 12, 'loss_ratio', 50.0)])
    >>> store.to_triangle('loss_ratio')
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd


class MetricType(str, Enum):
    EARNED_PREMIUM = "earned_premium"
    NET_PAID_LOSS = "net_paid_loss"
    CLAIM_RESERVES = "claim_reserves"
    BULK_IBNR = "bulk_ibnr"
    LOSS_RATIO = "loss_ratio"
    GROSS_PAID = "gross_paid"


@dataclass(frozen=True)
class TrianglePoint:
    """
    One observed amount.

    Attributes:
        accident_year: Calendar year the loss originated
        development_months: Months since the start of the accident year
        metric_type: One of MetricType (strings are coerced)
        amount: Value in the metric's natural unit (currency or percent)
    """
    accident_year: int
    development_months: int
    metric_type: MetricType
    amount: float

    def __post_init__(self):
        # frozen dataclass: normalise through object.__setattr__
        try:
            metric = MetricType(self.metric_type)
        except ValueError:
            valid = ', '.join(m.value for m in MetricType)
            raise ValueError(f"Unknown metric type '{self.metric_type}'. Valid: {valid}")
        object.__setattr__(self, 'metric_type', metric)
        object.__setattr__(self, 'accident_year', int(self.accident_year))
        object.__setattr__(self, 'development_months', int(self.development_months))
        object.__setattr__(self, 'amount', float(self.amount))

        if self.development_months <= 0:
            raise ValueError(f"development_months must be positive, got {self.development_months}")
        if not math.isfinite(self.amount):
            raise ValueError(f"amount must be finite, got {self.amount}")

    @property
    def key(self) -> Tuple[int, int, MetricType]:
        return (self.accident_year, self.development_months, self.metric_type)


class TrianglePointStore:
    """
    Keyed collection of TrianglePoints.

    The store is the only mutable object in the engine; everything derived
    from it is a fresh view. Use snapshot() to hand an immutable copy to
    downstream components.
    """

    def __init__(self, points: Optional[Iterable[TrianglePoint]] = None):
        self._points: Dict[Tuple[int, int, MetricType], TrianglePoint] = {}
        if points is not None:
            self.ingest(points)

    def ingest(self, points: Iterable[TrianglePoint]) -> int:
        """
        Append or replace a batch of points.

        Returns:
            Number of keys that were replaced by this batch
        """
        replaced = 0
        for point in points:
            if point.key in self._points:
                replaced += 1
            self._points[point.key] = point
        return replaced

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        year_col: str = 'accident_year',
        month_col: str = 'development_months',
        metric_col: str = 'metric_type',
        amount_col: str = 'amount'
    ) -> 'TrianglePointStore':
        """Build a store from a long-format DataFrame (one row per point)."""
        missing = [c for c in (year_col, month_col, metric_col, amount_col) if c not in df.columns]
        if missing:
            raise ValueError(f"Missing columns: {missing}")

        points = [
            TrianglePoint(row[year_col], row[month_col], row[metric_col], row[amount_col])
            for _, row in df.iterrows()
            if pd.notna(row[amount_col])
        ]
        return cls(points)

    def snapshot(self) -> Tuple[TrianglePoint, ...]:
        """Immutable, deterministically ordered copy of every point."""
        return tuple(sorted(
            self._points.values(),
            key=lambda p: (p.accident_year, p.development_months, p.metric_type.value)
        ))

    def get(self, accident_year: int, development_months: int, metric_type) -> Optional[float]:
        point = self._points.get((accident_year, development_months, MetricType(metric_type)))
        return point.amount if point is not None else None

    def accident_years(self, metric_type=None) -> List[int]:
        """Sorted accident years present (optionally for one metric only)."""
        metric = MetricType(metric_type) if metric_type is not None else None
        return sorted({
            p.accident_year for p in self._points.values()
            if metric is None or p.metric_type == metric
        })

    def latest(self, accident_year: int, metric_type) -> Optional[TrianglePoint]:
        """Point at the latest development month for a year/metric, if any."""
        metric = MetricType(metric_type)
        candidates = [
            p for p in self._points.values()
            if p.accident_year == accident_year and p.metric_type == metric
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.development_months)

    def latest_development_age(self, accident_year: int) -> int:
        """Latest development month observed for a year across all metrics (0 if none)."""
        months = [p.development_months for p in self._points.values() if p.accident_year == accident_year]
        return max(months, default=0)

    def to_triangle(self, metric_type, ladder: Optional[List[int]] = None) -> pd.DataFrame:
        """
        Pivot one metric into a triangle.

        Args:
            metric_type: Metric to extract
            ladder: If given, columns are exactly these development months
                    (off-ladder observations dropped, missing rungs NaN)

        Returns:
            DataFrame with accident years as rows, development months as columns
        """
        metric = MetricType(metric_type)
        records = [
            (p.accident_year, p.development_months, p.amount)
            for p in self._points.values() if p.metric_type == metric
        ]
        if not records:
            empty = pd.DataFrame(
                index=pd.Index([], dtype=int, name='accident_year'),
                columns=pd.Index(list(ladder) if ladder is not None else [], name='development_months'),
                dtype=float
            )
            return empty

        df = pd.DataFrame(records, columns=['accident_year', 'development_months', 'amount'])
        triangle = df.pivot(index='accident_year', columns='development_months', values='amount')
        triangle = triangle.sort_index()
        triangle = triangle.reindex(sorted(triangle.columns), axis=1)

        if ladder is not None:
            triangle = triangle.reindex(columns=list(ladder))

        triangle.index.name = 'accident_year'
        triangle.columns.name = 'development_months'
        return triangle.astype(float)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(self.snapshot())
