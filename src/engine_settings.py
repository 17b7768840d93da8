"""
Engine Settings
===============

Named, validated parameters for the loss development and capital adequacy
engine. Every coefficient used by the pipeline lives here; nothing numeric
is hardcoded in the calculators themselves.

Bad values fail at construction (pydantic raises ValidationError, which is
a ValueError subclass), so a misconfigured engine never runs.

Example:
    >>> config = EngineConfig(recent_years=3)
    >>> config.development.ladder
    [12, 24, 36, 48, 60, 72, 84, 96]
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

STANDARD_LADDER = [12, 24, 36, 48, 60, 72, 84, 96]


class DevelopmentSettings(BaseModel):
    """Standard development-age ladder (months)."""
    model_config = ConfigDict(frozen=True)

    ladder: List[int] = Field(default_factory=lambda: list(STANDARD_LADDER))

    @field_validator("ladder")
    @classmethod
    def _check_ladder(cls, ladder: List[int]) -> List[int]:
        return validate_ladder(ladder)


class RiskChargeCoefficients(BaseModel):
    """Percentages applied to aggregates to obtain R1..R5."""
    model_config = ConfigDict(frozen=True)

    asset: float = Field(0.02, gt=0)              # R1, on invested assets
    equity: float = Field(0.15, gt=0)             # R2, on the equity sub-allocation
    equity_allocation: float = Field(0.10, gt=0, le=1)
    credit: float = Field(0.01, gt=0)             # R3, on total reserves
    reserve: float = Field(0.11, gt=0)            # R4, on reserves + IBNR
    premium: float = Field(0.09, gt=0)            # R5, on trailing premium


class SurplusCoefficients(BaseModel):
    """Policyholder surplus = reserves * reserves_coef + premium * premium_coef."""
    model_config = ConfigDict(frozen=True)

    reserves: float = Field(0.55, ge=0)
    premium: float = Field(0.04, ge=0)

    @model_validator(mode="after")
    def _not_all_zero(self):
        if self.reserves == 0 and self.premium == 0:
            raise ValueError("surplus coefficients cannot both be zero")
        return self


class CombinedRatioHeuristicSettings(BaseModel):
    """Inputs to the simplified combined-ratio RBC variant."""
    model_config = ConfigDict(frozen=True)

    lae_ratio: float = Field(15.0, ge=0)
    expense_ratio: float = Field(23.0, ge=0)
    default_loss_ratio: float = Field(65.0, ge=0)
    acl_to_ultimate: float = Field(0.08, gt=0)
    capital_to_reserves: float = Field(0.35, gt=0)


class RBCThresholds(BaseModel):
    """RBC ratio bands (percent), evaluated against the unclamped ratio."""
    model_config = ConfigDict(frozen=True)

    watch: float = Field(150.0, gt=0)
    regulatory_minimum: float = Field(200.0, gt=0)
    target: float = Field(250.0, gt=0)
    strong: float = Field(300.0, gt=0)
    display_floor: float = 0.0
    display_ceiling: float = 500.0

    @model_validator(mode="after")
    def _ordered(self):
        bands = [self.watch, self.regulatory_minimum, self.target, self.strong]
        if any(hi <= lo for lo, hi in zip(bands, bands[1:])):
            raise ValueError(f"thresholds must be strictly increasing, got {bands}")
        if self.display_floor >= self.display_ceiling:
            raise ValueError("display_floor must be below display_ceiling")
        return self


class EngineConfig(BaseModel):
    """Top-level configuration for a full engine run."""
    model_config = ConfigDict(frozen=True)

    development: DevelopmentSettings = Field(default_factory=DevelopmentSettings)
    risk_charges: RiskChargeCoefficients = Field(default_factory=RiskChargeCoefficients)
    surplus: SurplusCoefficients = Field(default_factory=SurplusCoefficients)
    heuristic: CombinedRatioHeuristicSettings = Field(default_factory=CombinedRatioHeuristicSettings)
    thresholds: RBCThresholds = Field(default_factory=RBCThresholds)
    recent_years: int = Field(5, ge=1)


def validate_ladder(ladder) -> List[int]:
    """
    Check a development ladder and return it as a list of ints.

    Raises:
        ValueError: fewer than 2 rungs, a non-positive rung, or rungs not
            strictly increasing
    """
    rungs = [int(m) for m in ladder]
    if len(rungs) < 2:
        raise ValueError(f"Development ladder needs at least 2 rungs, got {rungs}")
    if rungs[0] <= 0:
        raise ValueError(f"Development months must be positive, got {rungs}")
    if any(b <= a for a, b in zip(rungs, rungs[1:])):
        raise ValueError(f"Development ladder must be strictly increasing, got {rungs}")
    return rungs
