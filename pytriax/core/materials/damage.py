# 文件: pytriax/core/materials/damage.py
"""
脆性损伤模块

提供:
- stress_invariants: 应力张量三个主不变量
- max_principal_stress: 由特征三次方程求最大主应力
- BrittleDamage: 拉伸超限驱动的标量损伤修正
"""

import numpy as np


def stress_invariants(stress):
    """
    应力张量主不变量

    I1 = tr(σ)
    I2 = σxx·σyy + σyy·σzz + σzz·σxx - σxy² - σxz² - σyz²
    I3 = det(σ)
    """
    sxx, syy, szz, sxy, sxz, syz = stress
    I1 = sxx + syy + szz
    I2 = sxx * syy + syy * szz + szz * sxx - sxy * sxy - sxz * sxz - syz * syz
    I3 = (sxx * (syy * szz - syz * syz)
          - sxy * (sxy * szz - syz * sxz)
          + sxz * (sxy * syz - syy * sxz))
    return I1, I2, I3


def max_principal_stress(stress):
    """
    最大主应力 (最"拉"的主应力)

    求解特征方程 λ³ - I1·λ² + I2·λ - I3 = 0:
        a = -I1, b = I2, c = -I3
        q = (3b - a²) / 9
        r = (9ab - 27c - 2a³) / 54
        Δ = q³ + r²

    Δ < 0: 三个不等实根, 三角形式
        λ_max = 2√(-q)·cos(θ/3) - a/3, θ = arccos(r / √(-q³))
    Δ >= 0: Cardano 形式, S = ∛(r + √Δ), T = ∛(r - √Δ)
        λ_max = max(S + T, -(S + T)/2) - a/3
        (重根时第二项就是重根本身)

    求解前按每个体素的最大分量幅值归一化, 以避免 Pa 量级立方后的精度损失。

    Args:
        stress: 应力分量元组 (σxx, σyy, σzz, σxy, σxz, σyz)

    Returns:
        与分量同形的最大主应力数组
    """
    comps = [np.asarray(s, dtype=float) for s in stress]
    scale = np.maximum.reduce([np.abs(s) for s in comps])
    scale = np.where(scale > 0.0, scale, 1.0)
    normed = [s / scale for s in comps]

    I1, I2, I3 = stress_invariants(normed)
    a = -I1
    b = I2
    c = -I3

    q = (3.0 * b - a * a) / 9.0
    r = (9.0 * a * b - 27.0 * c - 2.0 * a ** 3) / 54.0
    disc = q ** 3 + r * r
    shift = a / 3.0

    # 三实根分支
    neg_q = np.maximum(-q, 0.0)
    denom = np.sqrt(neg_q ** 3)
    safe_denom = np.where(denom > 0.0, denom, 1.0)
    theta = np.arccos(np.clip(r / safe_denom, -1.0, 1.0))
    trig_root = 2.0 * np.sqrt(neg_q) * np.cos(theta / 3.0) - shift

    # Cardano 分支
    sqrt_disc = np.sqrt(np.maximum(disc, 0.0))
    st = np.cbrt(r + sqrt_disc) + np.cbrt(r - sqrt_disc)
    cardano_root = np.maximum(st, -0.5 * st) - shift

    root = np.where(disc < 0.0, trig_root, cardano_root)
    return root * scale


class BrittleDamage:
    """
    脆性拉伸损伤修正

    算法:
    1. 计算 (塑性修正后) 应力的最大主应力 σ1
    2. 若 σ1 > T 且 D < 1:
        overshoot = min((σ1 - T) / |T|, max_overshoot)
        D_new = min(max_damage, D + overshoot·rate)
        σ ← (1 - D_new)·σ (六个分量)
    3. 其余体素保持不变

    损伤只增不减, 且始终位于 [0, max_damage]。

    Example:
        brittle = BrittleDamage(tensile_strength=5e6)
        stress, damage, cracked = brittle.apply(stress, damage)
    """

    def __init__(self, tensile_strength: float, rate: float = 0.01,
                 max_overshoot: float = 0.1, max_damage: float = 0.95):
        """
        Args:
            tensile_strength: 抗拉强度 T (Pa)
            rate: 超限比到损伤增量的系数
            max_overshoot: 单步超限比上限
            max_damage: 损伤上限
        """
        self.tensile_strength = float(tensile_strength)
        self.rate = float(rate)
        self.max_overshoot = float(max_overshoot)
        self.max_damage = float(max_damage)

    def damage_increment(self, sigma_max):
        """超限体素的损伤增量 (非超限处为 0)"""
        T = self.tensile_strength
        ratio = (sigma_max - T) / max(abs(T), 1e-10)
        ratio = np.clip(ratio, 0.0, self.max_overshoot)
        return ratio * self.rate

    def apply(self, stress, damage):
        """
        执行脆性修正

        Args:
            stress: 应力分量元组
            damage: 当前损伤数组 (不会被原地修改)

        Returns:
            stress: 修正后的应力分量元组
            damage: 新的损伤数组
            cracked: 拉伸超限掩码
        """
        sigma_max = max_principal_stress(stress)
        cracked = (sigma_max > self.tensile_strength) & (damage < 1.0)

        new_damage = np.where(
            cracked,
            np.minimum(self.max_damage, damage + self.damage_increment(sigma_max)),
            damage,
        )
        keep = np.where(cracked, 1.0 - new_damage, 1.0)
        return tuple(s * keep for s in stress), new_damage, cracked

    def __repr__(self) -> str:
        return (
            f"BrittleDamage(T={self.tensile_strength:.2e}, rate={self.rate}, "
            f"cap={self.max_damage})"
        )
