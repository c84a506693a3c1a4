# 文件: pytriax/core/grid.py
"""
网格状态管理

GridState: 逐体素场变量容器 (速度、应力、损伤、累积位移)
"""

from dataclasses import dataclass
from typing import Dict, Tuple
import numpy as np

FIELD_NAMES = (
    'vx', 'vy', 'vz',
    'sxx', 'syy', 'szz', 'sxy', 'sxz', 'syz',
    'damage',
    'ux', 'uy', 'uz',
)

STRESS_NAMES = ('sxx', 'syy', 'szz', 'sxy', 'sxz', 'syz')


@dataclass(eq=False)
class GridState:
    """
    网格状态容器

    每个场都是独立分配的 (nx, ny, nz) float64 数组, 构造后不再重新分配,
    只允许原地修改。材料掩码和密度在构造时由体数据采样得到。

    Attributes:
        material: 被加载材料的布尔掩码
        density: 密度数组 (kg/m³)
        vx, vy, vz: 速度 (m/s)
        sxx, syy, szz, sxy, sxz, syz: 应力 (Pa, 压为负)
        damage: 标量损伤 [0, 1]
        ux, uy, uz: 累积位移 (m), 仅用于应变采样

    Example:
        grid = GridState.allocate(material_mask, density)
        grid.reset()
        saved = grid.copy()
    """

    material: np.ndarray
    density: np.ndarray
    vx: np.ndarray
    vy: np.ndarray
    vz: np.ndarray
    sxx: np.ndarray
    syy: np.ndarray
    szz: np.ndarray
    sxy: np.ndarray
    sxz: np.ndarray
    syz: np.ndarray
    damage: np.ndarray
    ux: np.ndarray
    uy: np.ndarray
    uz: np.ndarray

    @classmethod
    def allocate(cls, material: np.ndarray, density: np.ndarray) -> 'GridState':
        """
        按材料掩码形状分配全部场

        Raises:
            ValueError: 掩码不是三维或与密度形状不一致
        """
        material = np.asarray(material, dtype=bool)
        if material.ndim != 3:
            raise ValueError(f"Material mask must be 3-D, got shape {material.shape}")
        density = np.asarray(density, dtype=float)
        if density.shape != material.shape:
            raise ValueError(
                f"Density shape {density.shape} does not match grid shape {material.shape}"
            )

        fields = {name: np.zeros(material.shape) for name in FIELD_NAMES}
        return cls(material=material, density=density.copy(), **fields)

    @property
    def shape(self) -> Tuple[int, int, int]:
        nx, ny, nz = self.material.shape
        return (nx, ny, nz)

    @property
    def stress(self) -> Tuple[np.ndarray, ...]:
        """(σxx, σyy, σzz, σxy, σxz, σyz)"""
        return tuple(getattr(self, name) for name in STRESS_NAMES)

    @property
    def velocity(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.vx, self.vy, self.vz

    @property
    def displacement(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        return self.ux, self.uy, self.uz

    @property
    def material_count(self) -> int:
        return int(np.count_nonzero(self.material))

    def interior_material(self) -> np.ndarray:
        """内部 (去掉一层边界) 的材料掩码, 形状 (nx-2, ny-2, nz-2)"""
        return self.material[1:-1, 1:-1, 1:-1]

    def reset(self) -> None:
        """全部动态场原地清零"""
        for name in FIELD_NAMES:
            getattr(self, name).fill(0.0)

    def copy(self) -> 'GridState':
        """
        深拷贝

        Returns:
            GridState: 所有数组独立的副本
        """
        fields = {name: getattr(self, name).copy() for name in FIELD_NAMES}
        return GridState(material=self.material.copy(), density=self.density.copy(), **fields)

    def snapshot(self) -> Dict[str, np.ndarray]:
        """场变量副本字典 (键为 FIELD_NAMES)"""
        return {name: getattr(self, name).copy() for name in FIELD_NAMES}

    def __repr__(self) -> str:
        return (
            f"GridState(shape={self.shape}, material={self.material_count}, "
            f"max_damage={float(self.damage.max()):.3f}, "
            f"stress_max={max(float(np.abs(s).max()) for s in self.stress):.2e})"
        )
