"""
Core estimation: multilateral resistance demeaning and the BVU regression.
"""

from .bvu import BonusVetusOLS, estimate_bvu, build_formula
from .multilateral_resistance import MultilateralResistanceAggregator, apply_mr_demeaning

__all__ = [
    "BonusVetusOLS",
    "estimate_bvu",
    "build_formula",
    "MultilateralResistanceAggregator",
    "apply_mr_demeaning",
]
