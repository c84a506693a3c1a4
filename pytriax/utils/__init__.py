# 文件: pytriax/utils/__init__.py
"""结果后处理工具: Mohr 圆与曲线标定"""

from .mohr import MohrCircle, envelope_shear, mohr_coulomb_sigma1, mohr_coulomb_from_failure
from .calibration import (
    CalibrationResult,
    CurveSummary,
    calibrate,
    estimate_brittle_strength,
    estimate_youngs_modulus,
    offset_yield_stress,
    summarize_curve,
)

__all__ = [
    'MohrCircle',
    'envelope_shear',
    'mohr_coulomb_sigma1',
    'mohr_coulomb_from_failure',
    'CalibrationResult',
    'CurveSummary',
    'calibrate',
    'estimate_brittle_strength',
    'estimate_youngs_modulus',
    'offset_yield_stress',
    'summarize_curve',
]
