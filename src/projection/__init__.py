"""
Ultimate Projection

Per-accident-year summaries (premium, paid, reserves, IBNR, loss ratio,
projected ultimate) built from record aggregates and the development
triangle.
"""

from .schemas import AccidentYearSummary, LossRatioSource, UltimateBasis
from .ultimate_projector import AccidentYearAggregate, UltimateProjector, summaries_to_frame

__all__ = [
    'AccidentYearAggregate',
    'AccidentYearSummary',
    'LossRatioSource',
    'UltimateBasis',
    'UltimateProjector',
    'summaries_to_frame'
]
