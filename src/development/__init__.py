"""
Loss Development

Building blocks of the development-factor chain:

- ata_factors: per-year age-to-age link ratios on the standard ladder
- factor_selection: weighted / simple / no-development factor selection
- cumulative_factors: cumulative development factors to ultimate
"""

from .ata_factors import AgeToAgeCalculator, ATAFactor, ATAResult
from .factor_selection import FactorSelector, SelectedFactor, SelectionBasis, selected_factors_to_frame
from .cumulative_factors import CDFResult, CumulativeFactor, CumulativeFactorChainer, DevelopmentWarning

__all__ = [
    'AgeToAgeCalculator',
    'ATAFactor',
    'ATAResult',
    'FactorSelector',
    'SelectedFactor',
    'SelectionBasis',
    'selected_factors_to_frame',
    'CDFResult',
    'CumulativeFactor',
    'CumulativeFactorChainer',
    'DevelopmentWarning'
]
