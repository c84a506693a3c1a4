# 文件: pytriax/core/materials/elastic.py
"""
各向同性弹性模型 (带标量损伤)

提供:
- IsotropicElastic: 由杨氏模量和泊松比导出 Lamé 常数，并给出弹性预测增量
"""

import numpy as np
from typing import Tuple

from ..parameters import MPA_TO_PA


class IsotropicElastic:
    """
    各向同性线弹性模型 (率形式 Hooke 定律)

    本构关系 (应力率):
        σ̇_ii = λ·tr(ε̇) + 2μ·ε̇_ii
        σ̇_ij = μ·(∂v_i/∂x_j + ∂v_j/∂x_i)

    损伤后的局部模量: λ = (1 - D)·λ0, μ = (1 - D)·μ0

    Attributes:
        E: 杨氏模量 (MPa)
        nu: 泊松比
        lam: 未损伤 Lamé 第一参数 λ0 (Pa)
        mu: 未损伤剪切模量 μ0 (Pa)
        K: 体积模量 (Pa)
        M: P 波模量 λ0 + 2μ0 (Pa)

    Example:
        elastic = IsotropicElastic(E=20000.0, nu=0.25)
        lam, mu = elastic.damaged(damage)
    """

    def __init__(self, E: float, nu: float):
        """
        Args:
            E: 杨氏模量 (MPa)
            nu: 泊松比, 需满足 -1 < ν < 0.5

        Raises:
            ValueError: 模量非正或泊松比超出有效范围
        """
        if E <= 0:
            raise ValueError(f"Young's modulus must be positive, got {E}")
        if not (-1.0 < nu < 0.5):
            raise ValueError(f"Poisson's ratio must be in (-1, 0.5), got {nu}")

        self.E = float(E)
        self.nu = float(nu)

        E_pa = self.E * MPA_TO_PA
        self._mu = E_pa / (2.0 * (1.0 + nu))
        self._lam = E_pa * nu / ((1.0 + nu) * (1.0 - 2.0 * nu))
        self._K = E_pa / (3.0 * (1.0 - 2.0 * nu))

    @property
    def lam(self) -> float:
        """Lamé 第一参数 λ0 (Pa)"""
        return self._lam

    @property
    def mu(self) -> float:
        """剪切模量 μ0 (Pa)"""
        return self._mu

    @property
    def K(self) -> float:
        """体积模量 (Pa)"""
        return self._K

    @property
    def M(self) -> float:
        """P 波模量 λ0 + 2μ0 (Pa)"""
        return self._lam + 2.0 * self._mu

    def p_wave_speed(self, density: float) -> float:
        """未损伤 P 波速 √((λ0 + 2μ0) / ρ)"""
        return float(np.sqrt(self.M / density))

    def damaged(self, damage) -> Tuple[np.ndarray, np.ndarray]:
        """
        局部损伤模量

        Args:
            damage: 标量或数组, 取值 [0, 1]

        Returns:
            (lam, mu): (1 - D)·λ0, (1 - D)·μ0
        """
        intact = 1.0 - np.asarray(damage, dtype=float)
        return intact * self._lam, intact * self._mu

    @staticmethod
    def stress_increment(grad_v: dict, lam, mu, dt: float) -> Tuple[np.ndarray, ...]:
        """
        弹性预测: 计算一个时间步内的六个应力增量

        Args:
            grad_v: 速度梯度, 键为 'xx','yy','zz','xy','yx','xz','zx','yz','zy'
                    ('xy' 表示 ∂v_x/∂y)
            lam, mu: 局部 Lamé 参数 (标量或与梯度同形数组)
            dt: 时间步长

        Returns:
            (dsxx, dsyy, dszz, dsxy, dsxz, dsyz)
        """
        div_v = grad_v['xx'] + grad_v['yy'] + grad_v['zz']
        dsxx = dt * (lam * div_v + 2.0 * mu * grad_v['xx'])
        dsyy = dt * (lam * div_v + 2.0 * mu * grad_v['yy'])
        dszz = dt * (lam * div_v + 2.0 * mu * grad_v['zz'])
        dsxy = dt * mu * (grad_v['xy'] + grad_v['yx'])
        dsxz = dt * mu * (grad_v['xz'] + grad_v['zx'])
        dsyz = dt * mu * (grad_v['yz'] + grad_v['zy'])
        return dsxx, dsyy, dszz, dsxy, dsxz, dsyz

    def __repr__(self) -> str:
        return f"IsotropicElastic(E={self.E:.2e}MPa, nu={self.nu:.3f})"
