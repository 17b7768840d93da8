"""
Ultimate Projection by Accident Year
====================================

Combines two sources into one AccidentYearSummary per accident year:

1. Granular per-record aggregates (earned premium, net claim payment,
   reserve balance, incurred, optional loss ratio per record)
2. The development triangle (latest available development age per metric)

Record aggregates take precedence over triangle figures, and direct
incurred figures take precedence over derived ones:

    incurred   = direct incurred, else paid + reserves + bulk IBNR
    IBNR       = max(0, incurred - paid - reserves)
    loss ratio = incurred / earned premium * 100
                 -> triangle loss_ratio at the latest age
                 -> mean of per-record loss ratios
                 -> 0 (flagged no_data)

When no paid or reserve data exists the ultimate is projected from the
latest triangle loss ratio and its cumulative development factor.

The projector never raises on data problems: every branch degrades to a
documented fallback that is recorded on the summary.
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from development.cumulative_factors import CDFResult
from projection.schemas import AccidentYearSummary, LossRatioSource, UltimateBasis
from triangle_store import MetricType, TrianglePointStore


@dataclass(frozen=True)
class AccidentYearAggregate:
    """
    One raw per-record row from the accident-year development source.

    Attributes:
        accident_year: Accident year of the record
        earned_premium: Earned premium
        net_claim_payment: Paid losses net of salvage/subrogation
        reserve_balance: Case reserve balance
        incurred: Incurred losses as reported by the source
        incurred_pct_premium: Loss ratio of this record, if reported
        development_months: Evaluation age of the record, if known
    """
    accident_year: int
    earned_premium: float = 0.0
    net_claim_payment: float = 0.0
    reserve_balance: float = 0.0
    incurred: float = 0.0
    incurred_pct_premium: Optional[float] = None
    development_months: Optional[int] = None

    def __post_init__(self):
        for name in ('earned_premium', 'net_claim_payment', 'reserve_balance', 'incurred'):
            value = float(getattr(self, name) or 0.0)
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, value)
        if self.incurred_pct_premium is not None:
            ratio = float(self.incurred_pct_premium)
            if not math.isfinite(ratio):
                raise ValueError(f"incurred_pct_premium must be finite, got {ratio}")
            object.__setattr__(self, 'incurred_pct_premium', ratio)
        object.__setattr__(self, 'accident_year', int(self.accident_year))


class UltimateProjector:
    """Builds AccidentYearSummaries from a point store, aggregates and CDFs."""

    def __init__(self, cdfs: CDFResult):
        """
        Args:
            cdfs: Cumulative development factors for the loss ratio triangle
        """
        self.cdfs = cdfs

    def project(
        self,
        store: TrianglePointStore,
        aggregates: Iterable[AccidentYearAggregate] = ()
    ) -> List[AccidentYearSummary]:
        """
        Project every accident year present in either input.

        Returns:
            Summaries sorted by accident year, most recent first
        """
        grouped = self._group_aggregates(aggregates)
        years = set(grouped) | set(store.accident_years())

        summaries = [
            self.project_year(year, store, grouped.get(year))
            for year in years
        ]
        return sorted(summaries, key=lambda s: s.accident_year, reverse=True)

    def project_year(
        self,
        year: int,
        store: TrianglePointStore,
        agg: Optional[dict] = None
    ) -> AccidentYearSummary:
        """Summary for one accident year (agg is a grouped aggregate, see _group_aggregates)."""
        agg = agg or self._empty_group()

        def tri(metric: MetricType) -> float:
            point = store.latest(year, metric)
            return point.amount if point is not None else 0.0

        tri_net_paid = tri(MetricType.NET_PAID_LOSS)
        if tri_net_paid <= 0:
            tri_net_paid = tri(MetricType.GROSS_PAID)
        tri_ibnr = tri(MetricType.BULK_IBNR)

        # Record aggregates first, triangle as fallback
        earned = agg['earned_premium'] or tri(MetricType.EARNED_PREMIUM)
        net_paid = agg['net_paid'] or tri_net_paid
        reserves = agg['reserves'] or tri(MetricType.CLAIM_RESERVES)

        has_paid_reserve_data = net_paid > 0 or reserves > 0 or tri_ibnr > 0

        if agg['incurred'] > 0:
            incurred = agg['incurred']
        elif has_paid_reserve_data:
            incurred = net_paid + reserves + tri_ibnr
        else:
            incurred = 0.0

        ibnr = max(0.0, incurred - net_paid - reserves) if has_paid_reserve_data else 0.0

        lr_point = store.latest(year, MetricType.LOSS_RATIO)
        loss_ratio, source = self._select_loss_ratio(
            earned, incurred, lr_point.amount if lr_point is not None else None, agg['loss_ratios']
        )

        development_age = store.latest_development_age(year)
        if development_age == 0:
            development_age = agg['development_months']
        cdf_age = lr_point.development_months if lr_point is not None else development_age
        cdf = self.cdfs.cdf_at(cdf_age)
        if not (math.isfinite(cdf) and cdf > 0):
            # Degenerate chain: project without further development
            cdf = 1.0

        projected_lr = None
        if lr_point is not None and lr_point.amount > 0:
            projected_lr = lr_point.amount * cdf

        if agg['incurred'] > 0:
            ultimate, basis = incurred, UltimateBasis.DIRECT_INCURRED
        elif has_paid_reserve_data:
            ultimate, basis = incurred, UltimateBasis.COMPONENT_SUM
        elif projected_lr is not None and earned > 0:
            ultimate, basis = earned * projected_lr / 100, UltimateBasis.CDF_PROJECTION
        else:
            ultimate, basis = 0.0, UltimateBasis.NO_DATA

        return AccidentYearSummary(
            accident_year=year,
            earned_premium=earned,
            net_paid=net_paid,
            reserves=reserves,
            ibnr=ibnr,
            incurred=incurred,
            loss_ratio=loss_ratio,
            loss_ratio_source=source,
            has_paid_reserve_data=has_paid_reserve_data,
            ibnr_meaningful=has_paid_reserve_data,
            development_age=development_age,
            cdf_to_ultimate=cdf,
            percent_developed=1.0 / cdf,
            projected_ultimate_loss_ratio=projected_lr,
            ultimate_loss=ultimate,
            ultimate_basis=basis
        )

    @staticmethod
    def _select_loss_ratio(
        earned: float,
        incurred: float,
        triangle_lr: Optional[float],
        record_lrs: List[float]
    ):
        if earned > 0 and incurred > 0:
            return incurred / earned * 100, LossRatioSource.INCURRED_TO_PREMIUM
        if triangle_lr is not None and triangle_lr > 0:
            return triangle_lr, LossRatioSource.TRIANGLE
        if record_lrs:
            return float(np.mean(record_lrs)), LossRatioSource.RECORD_AVERAGE
        return 0.0, LossRatioSource.NO_DATA

    @staticmethod
    def _empty_group() -> dict:
        return {
            'earned_premium': 0.0,
            'net_paid': 0.0,
            'reserves': 0.0,
            'incurred': 0.0,
            'loss_ratios': [],
            'development_months': 0
        }

    @classmethod
    def _group_aggregates(cls, aggregates: Iterable[AccidentYearAggregate]) -> Dict[int, dict]:
        """Sum record amounts by accident year; per-record loss ratios are collected."""
        grouped = defaultdict(cls._empty_group)
        for row in aggregates:
            g = grouped[row.accident_year]
            g['earned_premium'] += row.earned_premium
            g['net_paid'] += row.net_claim_payment
            g['reserves'] += row.reserve_balance
            g['incurred'] += row.incurred
            if row.incurred_pct_premium is not None and row.incurred_pct_premium > 0:
                g['loss_ratios'].append(float(row.incurred_pct_premium))
            if row.development_months:
                g['development_months'] = max(g['development_months'], int(row.development_months))
        return dict(grouped)


def summaries_to_frame(summaries: List[AccidentYearSummary]) -> pd.DataFrame:
    """Summaries as a DataFrame indexed by accident year, for export."""
    columns = list(AccidentYearSummary.model_fields)
    rows = [s.model_dump(mode='json') for s in summaries]
    return pd.DataFrame(rows, columns=columns).set_index('accident_year')
