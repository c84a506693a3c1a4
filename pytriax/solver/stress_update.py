# 文件: pytriax/solver/stress_update.py
"""
本构更新 (每个内步一次)

对内部材料体素依次执行:
    弹性预测 → Mohr-Coulomb 塑性修正 (可选) → 脆性损伤修正 (可选) → 提交应力
"""

from typing import Optional

import numpy as np

from ..core.grid import GridState
from ..core.materials import IsotropicElastic, ScaledReturn, BrittleDamage
from ..core.parameters import SolverConstants
from .stencils import INTERIOR, velocity_gradient


class StressUpdater:
    """
    应力更新器

    只读取上一遍提交的速度场, 只写应力和损伤, 因此整个内部区域可以
    一次向量化完成, 不存在同一步内的读写交叉。

    Attributes:
        elastic: 弹性模型
        plastic: 塑性修正器, None 表示关闭
        brittle: 脆性损伤修正器, None 表示关闭
    """

    def __init__(self, elastic: IsotropicElastic, voxel_size: float,
                 plastic: Optional[ScaledReturn] = None,
                 brittle: Optional[BrittleDamage] = None,
                 constants: SolverConstants = SolverConstants()):
        self.elastic = elastic
        self.voxel_size = float(voxel_size)
        self.plastic = plastic
        self.brittle = brittle
        self.constants = constants

    def step(self, grid: GridState, dt: float) -> dict:
        """
        执行一个时间步的应力更新

        Returns:
            dict: {'yielded': 屈服体素数, 'cracked': 拉伸超限体素数}
        """
        c = self.constants
        mask = grid.interior_material()
        if not mask.any():
            return {'yielded': 0, 'cracked': 0}

        # 1. 局部模量 (只有脆性模型开启时才计入损伤)
        damage = grid.damage[INTERIOR]
        if self.brittle is not None:
            lam, mu = self.elastic.damaged(damage)
        else:
            lam, mu = self.elastic.lam, self.elastic.mu

        # 2. 速度梯度
        grad = velocity_gradient(grid.vx, grid.vy, grid.vz, self.voxel_size,
                                 c.gradient_limit, c.stencil)

        # 3. 弹性预测
        increments = IsotropicElastic.stress_increment(grad, lam, mu, dt)
        trial = tuple(
            s[INTERIOR] + np.clip(ds, -c.stress_increment_limit, c.stress_increment_limit)
            for s, ds in zip(grid.stress, increments)
        )

        # 4. 塑性修正
        yielded = 0
        if self.plastic is not None:
            trial, yield_mask = self.plastic.apply(trial)
            yielded = int(np.count_nonzero(yield_mask & mask))

        # 5. 脆性修正
        cracked = 0
        if self.brittle is not None:
            trial, new_damage, crack_mask = self.brittle.apply(trial, damage)
            grid.damage[INTERIOR] = np.where(mask, new_damage, damage)
            cracked = int(np.count_nonzero(crack_mask & mask))

        # 6. 提交
        for s, new in zip(grid.stress, trial):
            s[INTERIOR] = np.where(mask, new, s[INTERIOR])

        return {'yielded': yielded, 'cracked': cracked}
