# 文件: pytriax/solver/velocity_update.py
"""
动量更新 (每个内步一次)

    v ← (1 - damping)·v + dt·(∇·σ)/ρ
    u ← u + v·dt
"""

import numpy as np

from ..core.grid import GridState
from ..core.parameters import SolverConstants
from .stencils import INTERIOR, stress_divergence


class VelocityUpdater:
    """
    速度与位移更新器

    只读取本步已提交的应力场, 只写速度和位移。
    阻尼是数值稳定手段, 不代表材料属性。
    """

    def __init__(self, voxel_size: float, constants: SolverConstants = SolverConstants()):
        self.voxel_size = float(voxel_size)
        self.constants = constants

    def step(self, grid: GridState, dt: float) -> None:
        c = self.constants
        mask = grid.interior_material()
        if not mask.any():
            return

        rho = np.maximum(grid.density[INTERIOR], c.density_floor)
        forces = stress_divergence(grid.stress, self.voxel_size, c.gradient_limit, c.stencil)

        keep = 1.0 - c.velocity_damping
        limit = c.velocity_increment_limit
        for v, u, f in zip(grid.velocity, grid.displacement, forces):
            dv = np.clip(dt * f / rho, -limit, limit)
            v_new = np.where(mask, v[INTERIOR] * keep + dv, v[INTERIOR])
            v[INTERIOR] = v_new
            u[INTERIOR] = np.where(mask, u[INTERIOR] + v_new * dt, u[INTERIOR])
