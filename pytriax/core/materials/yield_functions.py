# 文件: pytriax/core/materials/yield_functions.py
"""
屈服函数模块

提供:
- MohrCoulomb: 以 √J2 表示的 Mohr-Coulomb 剪切屈服准则

应力分量约定 (逐体素数组元组):
    (σxx, σyy, σzz, σxy, σxz, σyz)
"""

import math
import numpy as np


def mean_stress(stress):
    """平均应力 σm = tr(σ) / 3"""
    sxx, syy, szz = stress[0], stress[1], stress[2]
    return (sxx + syy + szz) / 3.0


def deviatoric_normal(stress):
    """偏应力的三个正分量 (s_xx, s_yy, s_zz)，剪切分量与原应力相同"""
    m = mean_stress(stress)
    return stress[0] - m, stress[1] - m, stress[2] - m


def second_invariant(stress):
    """
    偏应力第二不变量

    J2 = ½(s_xx² + s_yy² + s_zz²) + σxy² + σxz² + σyz²
    """
    dxx, dyy, dzz = deviatoric_normal(stress)
    sxy, sxz, syz = stress[3], stress[4], stress[5]
    return 0.5 * (dxx * dxx + dyy * dyy + dzz * dzz) + (sxy * sxy + sxz * sxz + syz * syz)


class MohrCoulomb:
    """
    Mohr-Coulomb 屈服准则

    屈服函数: f = τ + p·sinφ - c·cosφ
    其中:
        τ = √J2 (等效剪应力)
        p = -σm + Pc (以压为正的平均应力, 相对围压参考)

    f <= 0 为弹性状态, f > 0 需要塑性修正。

    Example:
        yield_fn = MohrCoulomb(cohesion=10e6, friction_angle=30.0, confining=5e6)
        f = yield_fn.evaluate(stress)
    """

    def __init__(self, cohesion: float, friction_angle: float, confining: float = 0.0):
        """
        Args:
            cohesion: 黏聚力 c (Pa)
            friction_angle: 内摩擦角 φ (度)
            confining: 围压参考 Pc (Pa)
        """
        if cohesion < 0:
            raise ValueError(f"Cohesion must be non-negative, got {cohesion}")
        self.cohesion = float(cohesion)
        self.friction_angle = float(friction_angle)
        self.confining = float(confining)

        phi = math.radians(self.friction_angle)
        self.sin_phi = math.sin(phi)
        self.cos_phi = math.cos(phi)

    def pressure(self, stress):
        """以压为正的平均应力 p = -σm + Pc"""
        return -mean_stress(stress) + self.confining

    def equivalent_shear(self, stress):
        """等效剪应力 τ = √max(J2, 0)"""
        return np.sqrt(np.maximum(second_invariant(stress), 0.0))

    def shear_limit(self, stress):
        """剪切强度 c·cosφ - p·sinφ"""
        return self.cohesion * self.cos_phi - self.pressure(stress) * self.sin_phi

    def evaluate(self, stress):
        """
        计算屈服函数值

        Args:
            stress: 应力分量元组

        Returns:
            f: 屈服函数值 (与应力分量同形)
        """
        return self.equivalent_shear(stress) - self.shear_limit(stress)

    def __repr__(self) -> str:
        return (
            f"MohrCoulomb(c={self.cohesion:.2e}, phi={self.friction_angle:.1f}, "
            f"Pc={self.confining:.2e})"
        )
