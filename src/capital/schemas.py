from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CapitalAdequacyStrategy(str, Enum):
    FULL_COVARIANCE = "full_covariance"                  # R0 + sqrt(R1^2 + ... + R5^2)
    COMBINED_RATIO_HEURISTIC = "combined_ratio_heuristic"


class RBCStatus(str, Enum):
    EXCELLENT = "excellent"               # capital strong
    STRONG = "strong"                     # well capitalized
    ADEQUATE = "adequate"                 # meets regulatory minimum
    WATCH = "watch"                       # below target
    ACTION_REQUIRED = "action_required"   # regulatory action
    INSUFFICIENT_DATA = "insufficient_data"


class RiskCharges(BaseModel):
    """Independent risk charges of the covariance formula."""
    model_config = ConfigDict(frozen=True)

    r0: float = 0.0   # affiliate investments
    r1: float = 0.0   # fixed income asset risk
    r2: float = 0.0   # equity asset risk
    r3: float = 0.0   # credit risk
    r4: float = 0.0   # underwriting reserve risk
    r5: float = 0.0   # underwriting premium risk

    def independent(self) -> List[float]:
        return [self.r1, self.r2, self.r3, self.r4, self.r5]


class CapitalPosition(BaseModel):
    """
    Capital adequacy aggregate across accident years.

    rbc_ratio is the raw ratio (percent). It is never clamped; use
    display_ratio() for presentation.
    """
    model_config = ConfigDict(frozen=True)

    strategy: CapitalAdequacyStrategy
    accident_years: List[int] = []
    total_reserves: float = 0.0
    total_ibnr: float = 0.0
    trailing_12m_earned_premium: float = 0.0
    weighted_loss_ratio: Optional[float] = None
    total_ultimate_loss: float = 0.0
    invested_assets: float = 0.0
    risk_charges: Optional[RiskCharges] = None
    covariance_rbc: Optional[float] = None
    combined_ratio: Optional[float] = None
    authorized_control_level: float = 0.0
    policyholder_surplus: float = 0.0
    rbc_ratio: Optional[float] = None
    status: RBCStatus = RBCStatus.INSUFFICIENT_DATA

    @property
    def meets_regulatory_minimum(self) -> bool:
        return self.status in (RBCStatus.EXCELLENT, RBCStatus.STRONG, RBCStatus.ADEQUATE)

    def display_ratio(self, floor: float = 0.0, ceiling: float = 500.0) -> Optional[float]:
        """RBC ratio clamped to a display range."""
        if self.rbc_ratio is None:
            return None
        return min(ceiling, max(floor, self.rbc_ratio))
