"""
Risk-Based Capital Adequacy
===========================

Folds accident-year summaries into a regulatory capital ratio.

Full covariance model (default):

    R0 = affiliate investment charge (0 without affiliate data)
    R1 = c1 * invested assets                      (fixed income)
    R2 = c2 * equity share * invested assets       (equity)
    R3 = c3 * total reserves                       (credit)
    R4 = c4 * (total reserves + total IBNR)        (underwriting reserve)
    R5 = c5 * trailing 12 month earned premium     (underwriting premium)

    covariance RBC = sqrt(R1^2 + R2^2 + R3^2 + R4^2 + R5^2)
    ACL            = R0 + covariance RBC
    surplus        = a * total reserves + b * trailing premium
    RBC ratio      = surplus / ACL * 100

Combined-ratio heuristic (simplified variant used by earlier dashboards):

    combined ratio = loss ratio + LAE ratio + expense ratio
    ACL            = k * total ultimate loss
    surplus        = s * total reserves

The raw RBC ratio is never clamped; status bands (200% regulatory minimum,
250% target, 300% strong) are evaluated against it.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from capital.schemas import CapitalAdequacyStrategy, CapitalPosition, RBCStatus, RiskCharges
from engine_settings import EngineConfig, RBCThresholds
from projection.schemas import AccidentYearSummary


@dataclass(frozen=True)
class CapitalAggregates:
    """Totals across the accident years that feed the capital models."""
    accident_years: tuple
    total_reserves: float
    total_ibnr: float
    trailing_12m_earned_premium: float
    weighted_loss_ratio: Optional[float]
    total_ultimate_loss: float


def rbc_ratio_for(surplus: float, acl: float) -> Optional[float]:
    """Surplus / ACL in percent; None when ACL is not positive."""
    if acl <= 0:
        return None
    return surplus / acl * 100


def classify_rbc_ratio(ratio: Optional[float], thresholds: RBCThresholds) -> RBCStatus:
    if ratio is None:
        return RBCStatus.INSUFFICIENT_DATA
    if ratio >= thresholds.strong:
        return RBCStatus.EXCELLENT
    if ratio >= thresholds.target:
        return RBCStatus.STRONG
    if ratio >= thresholds.regulatory_minimum:
        return RBCStatus.ADEQUATE
    if ratio >= thresholds.watch:
        return RBCStatus.WATCH
    return RBCStatus.ACTION_REQUIRED


class CapitalModel(ABC):
    """Strategy interface for turning aggregates into a CapitalPosition."""

    strategy: CapitalAdequacyStrategy

    def __init__(self, config: EngineConfig):
        self.config = config

    @abstractmethod
    def evaluate(
        self,
        aggregates: CapitalAggregates,
        invested_assets: Optional[float] = None,
        affiliate_charge: float = 0.0
    ) -> CapitalPosition:
        pass

    def _position(self, aggregates: CapitalAggregates, **fields) -> CapitalPosition:
        ratio = rbc_ratio_for(fields['policyholder_surplus'], fields['authorized_control_level'])
        return CapitalPosition(
            strategy=self.strategy,
            accident_years=list(aggregates.accident_years),
            total_reserves=aggregates.total_reserves,
            total_ibnr=aggregates.total_ibnr,
            trailing_12m_earned_premium=aggregates.trailing_12m_earned_premium,
            weighted_loss_ratio=aggregates.weighted_loss_ratio,
            total_ultimate_loss=aggregates.total_ultimate_loss,
            rbc_ratio=ratio,
            status=classify_rbc_ratio(ratio, self.config.thresholds),
            **fields
        )


class FullCovarianceModel(CapitalModel):
    """R0 + covariance of R1..R5."""

    strategy = CapitalAdequacyStrategy.FULL_COVARIANCE

    def policyholder_surplus(self, aggregates: CapitalAggregates) -> float:
        coef = self.config.surplus
        return coef.reserves * aggregates.total_reserves + coef.premium * aggregates.trailing_12m_earned_premium

    def risk_charges(
        self,
        aggregates: CapitalAggregates,
        invested_assets: float,
        affiliate_charge: float = 0.0
    ) -> RiskCharges:
        coef = self.config.risk_charges
        return RiskCharges(
            r0=affiliate_charge,
            r1=coef.asset * invested_assets,
            r2=coef.equity * coef.equity_allocation * invested_assets,
            r3=coef.credit * aggregates.total_reserves,
            r4=coef.reserve * (aggregates.total_reserves + aggregates.total_ibnr),
            r5=coef.premium * aggregates.trailing_12m_earned_premium
        )

    @staticmethod
    def covariance_rbc(charges: RiskCharges) -> float:
        return math.sqrt(sum(r ** 2 for r in charges.independent()))

    def evaluate(
        self,
        aggregates: CapitalAggregates,
        invested_assets: Optional[float] = None,
        affiliate_charge: float = 0.0
    ) -> CapitalPosition:
        surplus = self.policyholder_surplus(aggregates)

        if invested_assets is None:
            # Assets backing loss liabilities plus surplus
            invested_assets = aggregates.total_reserves + aggregates.total_ibnr + surplus

        charges = self.risk_charges(aggregates, invested_assets, affiliate_charge)
        covariance = self.covariance_rbc(charges)

        return self._position(
            aggregates,
            invested_assets=invested_assets,
            risk_charges=charges,
            covariance_rbc=covariance,
            authorized_control_level=charges.r0 + covariance,
            policyholder_surplus=surplus
        )


class CombinedRatioHeuristic(CapitalModel):
    """ACL as a share of ultimate loss, surplus as a share of reserves."""

    strategy = CapitalAdequacyStrategy.COMBINED_RATIO_HEURISTIC

    def evaluate(
        self,
        aggregates: CapitalAggregates,
        invested_assets: Optional[float] = None,
        affiliate_charge: float = 0.0
    ) -> CapitalPosition:
        settings = self.config.heuristic

        loss_ratio = aggregates.weighted_loss_ratio
        if loss_ratio is None:
            loss_ratio = settings.default_loss_ratio

        return self._position(
            aggregates,
            invested_assets=invested_assets or 0.0,
            combined_ratio=loss_ratio + settings.lae_ratio + settings.expense_ratio,
            authorized_control_level=settings.acl_to_ultimate * aggregates.total_ultimate_loss,
            policyholder_surplus=settings.capital_to_reserves * aggregates.total_reserves
        )


CAPITAL_MODELS = {
    CapitalAdequacyStrategy.FULL_COVARIANCE: FullCovarianceModel,
    CapitalAdequacyStrategy.COMBINED_RATIO_HEURISTIC: CombinedRatioHeuristic,
}


class CapitalAdequacyCalculator:
    """
    Capital position from a set of AccidentYearSummaries.

    Only the `recent_years` most recent accident years are used.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        strategy=CapitalAdequacyStrategy.FULL_COVARIANCE
    ):
        self.config = config if config is not None else EngineConfig()
        self.strategy = CapitalAdequacyStrategy(strategy)
        self.model = CAPITAL_MODELS[self.strategy](self.config)

    def calculate(
        self,
        summaries: List[AccidentYearSummary],
        invested_assets: Optional[float] = None,
        affiliate_charge: float = 0.0
    ) -> CapitalPosition:
        """
        Args:
            summaries: Accident year summaries (any order)
            invested_assets: Known invested assets; estimated when omitted
            affiliate_charge: R0, the affiliate investment charge

        Raises:
            ValueError: Negative invested assets or affiliate charge
        """
        if invested_assets is not None and invested_assets < 0:
            raise ValueError(f"invested_assets must be non-negative, got {invested_assets}")
        if affiliate_charge < 0:
            raise ValueError(f"affiliate_charge must be non-negative, got {affiliate_charge}")

        aggregates = self.aggregate(summaries)
        return self.model.evaluate(aggregates, invested_assets, affiliate_charge)

    def aggregate(self, summaries: List[AccidentYearSummary]) -> CapitalAggregates:
        recent = sorted(summaries, key=lambda s: s.accident_year, reverse=True)
        recent = recent[:self.config.recent_years]

        weighted = [s for s in recent if s.has_loss_ratio and s.earned_premium > 0]
        premium_weight = sum(s.earned_premium for s in weighted)
        weighted_lr = (
            sum(s.loss_ratio * s.earned_premium for s in weighted) / premium_weight
            if premium_weight > 0 else None
        )

        return CapitalAggregates(
            accident_years=tuple(s.accident_year for s in recent),
            total_reserves=sum(s.reserves for s in recent),
            total_ibnr=sum(s.ibnr for s in recent if s.ibnr_meaningful),
            trailing_12m_earned_premium=self.trailing_premium(recent),
            weighted_loss_ratio=weighted_lr,
            total_ultimate_loss=sum(s.ultimate_loss for s in recent)
        )

    @staticmethod
    def trailing_premium(summaries: List[AccidentYearSummary]) -> float:
        """
        Earned premium of the most recent year with premium, annualized
        when that year is younger than 12 months.
        """
        with_premium = [s for s in summaries if s.earned_premium > 0]
        if not with_premium:
            return 0.0

        latest = max(with_premium, key=lambda s: s.accident_year)
        if 0 < latest.development_age < 12:
            return latest.earned_premium * 12 / latest.development_age
        return latest.earned_premium

    def rbc_ratio_for(self, surplus: float, acl: float) -> Optional[float]:
        return rbc_ratio_for(surplus, acl)

    def status_for(self, ratio: Optional[float]) -> RBCStatus:
        return classify_rbc_ratio(ratio, self.config.thresholds)

    def display_ratio(self, position: CapitalPosition) -> Optional[float]:
        thresholds = self.config.thresholds
        return position.display_ratio(thresholds.display_floor, thresholds.display_ceiling)
