# 文件: pytriax/core/materials/return_mapping.py
"""
塑性修正模块

提供:
- ScaledReturn: Mohr-Coulomb 偏应力缩放修正

与经典的径向返回不同，这里不求解塑性乘子，而是按 τ 超出剪切强度的比例
直接缩小偏应力和剪应力，且单步缩放不超过上限，保证显式积分稳定。
"""

import numpy as np

from .yield_functions import MohrCoulomb, deviatoric_normal, mean_stress


class ScaledReturn:
    """
    偏应力缩放返回

    算法步骤:
    1. 计算平均应力 σm 与偏应力 s
    2. 计算 τ = √J2 和屈服函数 f
    3. 若 f > 0: scale = (τ - (c·cosφ - p·sinφ)) / τ, 并截断到 scale_cap
    4. s ← (1 - scale)·s, 剪应力 ← (1 - scale)·剪应力
    5. σ = s + σm (平均应力不变)

    Attributes:
        yield_fn: Mohr-Coulomb 屈服函数
        scale_cap: 单步缩放上限 (默认 0.95，不允许一步清零应力)

    Example:
        plastic = ScaledReturn(MohrCoulomb(10e6, 30.0), scale_cap=0.95)
        stress, yielded = plastic.apply(stress_trial)
    """

    def __init__(self, yield_fn: MohrCoulomb, scale_cap: float = 0.95):
        self.yield_fn = yield_fn
        self.scale_cap = float(scale_cap)

    def scale(self, stress):
        """
        计算缩放系数

        Returns:
            (scale, yielded): scale 在未屈服处为 0
        """
        f = self.yield_fn.evaluate(stress)
        yielded = f > 0.0

        tau = self.yield_fn.equivalent_shear(stress)
        safe_tau = np.where(tau > 1e-10, tau, 1e-10)
        # f = τ - (c·cosφ - p·sinφ)
        scale = np.minimum(f / safe_tau, self.scale_cap)
        return np.where(yielded, scale, 0.0), yielded

    def apply(self, stress):
        """
        执行塑性修正

        Args:
            stress: 试探应力分量元组 (σxx, σyy, σzz, σxy, σxz, σyz)

        Returns:
            stress: 修正后的应力分量元组
            yielded: 屈服掩码
        """
        scale, yielded = self.scale(stress)
        keep = 1.0 - scale

        m = mean_stress(stress)
        dxx, dyy, dzz = deviatoric_normal(stress)

        corrected = (
            dxx * keep + m,
            dyy * keep + m,
            dzz * keep + m,
            stress[3] * keep,
            stress[4] * keep,
            stress[5] * keep,
        )
        return corrected, yielded

    def __repr__(self) -> str:
        return f"ScaledReturn(yield_fn={self.yield_fn}, cap={self.scale_cap})"
