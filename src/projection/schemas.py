from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class LossRatioSource(str, Enum):
    INCURRED_TO_PREMIUM = "incurred_to_premium"   # incurred / earned premium
    TRIANGLE = "triangle"                         # loss_ratio at latest development age
    RECORD_AVERAGE = "record_average"             # mean of per-record loss ratios
    NO_DATA = "no_data"


class UltimateBasis(str, Enum):
    DIRECT_INCURRED = "direct_incurred"
    COMPONENT_SUM = "component_sum"               # paid + reserves + IBNR
    CDF_PROJECTION = "cdf_projection"             # latest loss ratio x CDF x premium
    NO_DATA = "no_data"


class AccidentYearSummary(BaseModel):
    """Derived figures for one accident year."""
    model_config = ConfigDict(frozen=True)

    accident_year: int
    earned_premium: float = 0.0
    net_paid: float = 0.0
    reserves: float = 0.0
    ibnr: float = 0.0
    incurred: float = 0.0
    loss_ratio: float = 0.0
    loss_ratio_source: LossRatioSource = LossRatioSource.NO_DATA
    # False means the zeros above are "nothing reported yet", not real zeros
    has_paid_reserve_data: bool = False
    ibnr_meaningful: bool = False
    development_age: int = 0
    cdf_to_ultimate: float = 1.0
    percent_developed: float = 1.0
    projected_ultimate_loss_ratio: Optional[float] = None
    ultimate_loss: float = 0.0
    ultimate_basis: UltimateBasis = UltimateBasis.NO_DATA

    @property
    def has_loss_ratio(self) -> bool:
        return self.loss_ratio_source != LossRatioSource.NO_DATA
