# 文件: pytriax/utils/calibration.py
"""
应力-应变曲线后处理与参数标定

提供:
- summarize_curve: 峰值 / 终值统计
- estimate_youngs_modulus: 弹性段最小二乘斜率
- offset_yield_stress: 0.2% 偏移法屈服强度
- estimate_brittle_strength: 由峰值及峰后跌落估计脆性强度
- calibrate: 组合以上结果
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

YIELD_OFFSET_STRAIN = 0.002
ELASTIC_STRAIN_LIMIT = 0.003 * 0.2
MIN_REGRESSION_POINTS = 5
MODULUS_BOUNDS = (1000.0, 200000.0)


@dataclass(frozen=True)
class CurveSummary:
    peak_stress: float
    strain_at_peak: float
    final_stress: float
    final_strain: float
    points: int


@dataclass(frozen=True)
class CalibrationResult:
    """
    Attributes:
        youngs_modulus: 杨氏模量 (MPa)
        yield_strength: 屈服强度 (MPa)
        brittle_strength: 脆性强度 (MPa)
    """
    youngs_modulus: float
    yield_strength: float
    brittle_strength: float


def _as_curve(strains, stresses):
    strains = np.asarray(strains, dtype=float)
    stresses = np.asarray(stresses, dtype=float)
    if strains.shape != stresses.shape or strains.ndim != 1:
        raise ValueError(
            f"Strain and stress must be 1-D sequences of equal length, "
            f"got {strains.shape} and {stresses.shape}"
        )
    return strains, stresses


def summarize_curve(strains: Sequence[float], stresses: Sequence[float]) -> CurveSummary:
    strains, stresses = _as_curve(strains, stresses)
    if stresses.size == 0:
        raise ValueError("Cannot summarize an empty stress-strain curve")
    peak = int(np.argmax(stresses))
    return CurveSummary(
        peak_stress=float(stresses[peak]),
        strain_at_peak=float(strains[peak]),
        final_stress=float(stresses[-1]),
        final_strain=float(strains[-1]),
        points=int(stresses.size),
    )


def estimate_youngs_modulus(strains: Sequence[float], stresses: Sequence[float],
                            default: float = 20000.0,
                            elastic_limit: float = ELASTIC_STRAIN_LIMIT,
                            min_points: int = MIN_REGRESSION_POINTS) -> float:
    """
    弹性段线性回归斜率 σ = E·ε + b

    只用 ε <= elastic_limit 的点; 点数不足时改用前 min_points 个点。
    斜率无法确定时返回 default, 结果限制在 MODULUS_BOUNDS 内。
    """
    strains, stresses = _as_curve(strains, stresses)
    if strains.size == 0:
        return default

    elastic = strains <= elastic_limit
    if np.count_nonzero(elastic) >= min_points:
        x, y = strains[elastic], stresses[elastic]
    else:
        x, y = strains[:min_points], stresses[:min_points]

    n = x.size
    denom = n * np.sum(x * x) - np.sum(x) ** 2
    if abs(denom) < 1e-10:
        slope = default
    else:
        slope = (n * np.sum(x * y) - np.sum(x) * np.sum(y)) / denom

    low, high = MODULUS_BOUNDS
    return float(max(low, min(high, slope)))


def offset_yield_stress(strains: Sequence[float], stresses: Sequence[float],
                        youngs_modulus: float, offset: float = YIELD_OFFSET_STRAIN,
                        min_points: int = MIN_REGRESSION_POINTS) -> float:
    """
    0.2% 偏移法

    在曲线与偏移线 σ = E·(ε - offset) 的第一个交点处线性插值。
    没有交点时按峰值估计: 终值 > 0.8 峰值 (延性) 取 0.85 峰值, 否则取 0.70 峰值。
    结果限制在 [0.001E, 0.2E]。
    """
    strains, stresses = _as_curve(strains, stresses)
    E = youngs_modulus
    if strains.size < min_points:
        return E * 0.05

    offset_line = E * (strains - offset)
    above = stresses >= offset_line

    yield_stress = None
    for i in range(1, strains.size):
        if above[i] != above[i - 1]:
            gap_prev = offset_line[i - 1] - stresses[i - 1]
            slope_diff = (stresses[i] - stresses[i - 1]) - (offset_line[i] - offset_line[i - 1])
            t = gap_prev / slope_diff
            yield_stress = stresses[i - 1] + t * (stresses[i] - stresses[i - 1])
            break

    if yield_stress is None:
        peak = float(stresses.max())
        ductile = strains.size > 10 and stresses[-1] > 0.8 * peak
        yield_stress = peak * (0.85 if ductile else 0.70)

    return float(max(E * 0.001, min(E * 0.2, yield_stress)))


def estimate_brittle_strength(strains: Sequence[float], stresses: Sequence[float],
                              youngs_modulus: float) -> float:
    """
    脆性强度 = 1.05·峰值; 峰后第三个点跌落超过 20% 时取 1.1·峰值。
    结果限制在 [0.005E, 0.3E]。
    """
    strains, stresses = _as_curve(strains, stresses)
    E = youngs_modulus
    if stresses.size == 0:
        return E * 0.08

    peak_index = int(np.argmax(stresses))
    peak = float(stresses[peak_index])
    strength = peak * 1.05

    if peak_index < stresses.size - 3 and peak != 0:
        drop = (peak - stresses[peak_index + 3]) / peak
        if drop > 0.2:
            strength = peak * 1.1

    return float(max(E * 0.005, min(E * 0.3, strength)))


def calibrate(strains: Sequence[float], stresses: Sequence[float],
              default_modulus: float = 20000.0,
              youngs_modulus: Optional[float] = None) -> CalibrationResult:
    """
    由一条应力-应变曲线标定 E、屈服强度与脆性强度

    Args:
        youngs_modulus: 已知模量时跳过回归
    """
    E = youngs_modulus if youngs_modulus is not None else \
        estimate_youngs_modulus(strains, stresses, default=default_modulus)
    return CalibrationResult(
        youngs_modulus=E,
        yield_strength=offset_yield_stress(strains, stresses, E),
        brittle_strength=estimate_brittle_strength(strains, stresses, E),
    )
