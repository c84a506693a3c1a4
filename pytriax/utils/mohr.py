# 文件: pytriax/utils/mohr.py
"""
Mohr 圆与 Mohr-Coulomb 包络线

约定: 本模块以压为正 (岩石力学习惯), σ1 >= σ3。
"""

import math
from typing import Tuple

import numpy as np


class MohrCircle:
    """
    由两个主应力确定的 Mohr 圆

    Attributes:
        sigma1: 最大主应力
        sigma3: 最小主应力
        center: 圆心 (σ1 + σ3) / 2
        radius: 半径 (σ1 - σ3) / 2
    """

    def __init__(self, sigma1: float, sigma3: float):
        self.sigma1 = max(sigma1, sigma3)
        self.sigma3 = min(sigma1, sigma3)
        self.center = (self.sigma1 + self.sigma3) / 2.0
        self.radius = (self.sigma1 - self.sigma3) / 2.0

    def tangent_point(self, friction_angle: float) -> Tuple[float, float]:
        """
        与倾角为 φ 的包络线相切的点

            σ_f = C - R·sinφ
            τ_f = R·cosφ
        """
        phi = math.radians(friction_angle)
        return self.center - self.radius * math.sin(phi), self.radius * math.cos(phi)

    def failure_plane_angle(self, friction_angle: float) -> float:
        """破坏面与最大主应力面的夹角 45° + φ/2 (度)"""
        return 45.0 + friction_angle / 2.0

    def points(self, n: int = 181) -> Tuple[np.ndarray, np.ndarray]:
        """上半圆采样点 (σ, τ), 用于绘图"""
        theta = np.linspace(0.0, math.pi, n)
        return self.center + self.radius * np.cos(theta), self.radius * np.sin(theta)

    def __repr__(self) -> str:
        return f"MohrCircle(sigma1={self.sigma1:.2f}, sigma3={self.sigma3:.2f})"


def envelope_shear(sigma, cohesion: float, friction_angle: float):
    """Mohr-Coulomb 包络线 τ = c + σ·tanφ"""
    return cohesion + np.asarray(sigma, dtype=float) * math.tan(math.radians(friction_angle))


def mohr_coulomb_sigma1(sigma3: float, cohesion: float, friction_angle: float) -> float:
    """
    给定围压下的理论峰值主应力

        σ1 = σ3·(1 + sinφ)/(1 - sinφ) + 2c·cosφ/(1 - sinφ)
    """
    s = math.sin(math.radians(friction_angle))
    c = math.cos(math.radians(friction_angle))
    return sigma3 * (1.0 + s) / (1.0 - s) + 2.0 * cohesion * c / (1.0 - s)


def mohr_coulomb_from_failure(sigma1: float, sigma3: float, shear_stress: float,
                              yield_strength: float) -> Tuple[float, float]:
    """
    由单个破坏点反算 (c, φ)

    Args:
        sigma1, sigma3: 破坏时的主应力 (MPa)
        shear_stress: 破坏时的剪应力 (MPa)
        yield_strength: 屈服强度 (MPa), 用于约束黏聚力

    Returns:
        (cohesion, friction_angle): φ 限制在 [10, 60] 度,
        c 限制在 [0.05·σy, σy]
    """
    mean = (sigma1 + sigma3) / 2.0
    slope = shear_stress / mean if mean != 0 else 0.0
    phi = math.degrees(math.asin(max(-1.0, min(1.0, slope))))

    s = math.sin(math.radians(phi))
    c = math.cos(math.radians(phi))
    cohesion = (sigma1 - sigma3) / (2.0 * c) - (sigma1 + sigma3) * s / (2.0 * c)

    phi = max(10.0, min(60.0, phi))
    cohesion = max(yield_strength * 0.05, min(yield_strength, cohesion))
    return cohesion, phi
