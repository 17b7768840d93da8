"""
Capital Adequacy

Risk-based capital ratio from accident year summaries, with two
interchangeable models:

- FullCovarianceModel: R0 + sqrt(R1^2 + ... + R5^2)
- CombinedRatioHeuristic: ACL and surplus as flat shares of ultimate loss and reserves
"""

from .schemas import CapitalAdequacyStrategy, CapitalPosition, RBCStatus, RiskCharges
from .rbc_calculator import (
    CapitalAdequacyCalculator,
    CapitalAggregates,
    CombinedRatioHeuristic,
    FullCovarianceModel,
    classify_rbc_ratio,
    rbc_ratio_for,
)

__all__ = [
    'CapitalAdequacyCalculator',
    'CapitalAdequacyStrategy',
    'CapitalAggregates',
    'CapitalPosition',
    'CombinedRatioHeuristic',
    'FullCovarianceModel',
    'RBCStatus',
    'RiskCharges',
    'classify_rbc_ratio',
    'rbc_ratio_for'
]
