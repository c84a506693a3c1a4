# 文件: pytriax/solver/stability.py
"""
稳定时间步估计 (CFL 条件)
"""

import math
from dataclasses import dataclass

import numpy as np

from ..core.grid import GridState
from ..core.materials.elastic import IsotropicElastic
from ..core.parameters import SolverConstants


@dataclass(frozen=True)
class TimeStep:
    """
    Attributes:
        dt: 时间步长 (s)
        wave_speed: 截断后的 P 波速 (m/s)
        min_density: 计算所用的最小密度 (kg/m³)
    """
    dt: float
    wave_speed: float
    min_density: float


def min_material_density(grid: GridState, floor: float) -> float:
    """材料体素中的最小正密度, 没有正密度时返回 floor"""
    rho = grid.density[grid.material]
    rho = rho[rho > 0.0]
    if rho.size == 0:
        return float(floor)
    return float(rho.min())


def stable_time_step(grid: GridState, elastic: IsotropicElastic, voxel_size: float,
                     constants: SolverConstants = SolverConstants()) -> TimeStep:
    """
    计算 CFL 安全时间步

        vp = min(√((λ0 + 2μ0) / ρ_min), vp_max)
        dt = max(safety · dx / vp, dt_min)

    只按未损伤模量估计一次, 运行中不随损伤软化重新计算。
    """
    rho_min = min_material_density(grid, constants.density_floor)
    vp = min(elastic.p_wave_speed(rho_min), constants.max_wave_speed)

    dt = constants.cfl_safety * voxel_size / vp
    if not math.isfinite(dt) or dt < constants.min_time_step:
        dt = constants.min_time_step

    return TimeStep(dt=float(dt), wave_speed=float(vp), min_density=rho_min)
