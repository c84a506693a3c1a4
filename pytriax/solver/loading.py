# 文件: pytriax/solver/loading.py
"""
边界加载与应变采样

沿加载轴:
- 确定材料的范围 [min_pos, max_pos]
- 把轴压写到加载面 (材料远端面, 收缩到可更新的内部层)
- 每个内步都在加载面上保持轴压
- 在同一加载面上取内部材料体素的平均位移, 换算为工程应变 (压缩为正)
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ..core.grid import GridState
from ..core.parameters import StressAxis


@dataclass(frozen=True)
class LoadFrame:
    """
    加载几何

    Attributes:
        axis: 加载轴
        min_pos, max_pos: 材料沿加载轴的最小 / 最大坐标
        plane: 施加轴压并采样应变的平面坐标
        sample_length: 初始试样长度 (m)
    """
    axis: StressAxis
    min_pos: int
    max_pos: int
    plane: int
    sample_length: float


def material_extent(material: np.ndarray, axis: StressAxis) -> Tuple[int, int]:
    """
    材料沿加载轴的坐标范围

    Raises:
        ValueError: 网格中没有该材料
    """
    other = tuple(a for a in range(3) if a != axis.value)
    present = np.flatnonzero(material.any(axis=other))
    if present.size == 0:
        raise ValueError("Selected material does not occur in the volume")
    return int(present[0]), int(present[-1])


def build_load_frame(grid: GridState, axis: StressAxis, voxel_size: float) -> LoadFrame:
    """计算加载面和试样长度"""
    min_pos, max_pos = material_extent(grid.material, axis)
    n = grid.shape[axis.value]
    plane = min(max(max_pos, 1), n - 2)
    return LoadFrame(
        axis=axis,
        min_pos=min_pos,
        max_pos=max_pos,
        plane=plane,
        sample_length=(max_pos - min_pos + 1) * voxel_size,
    )


def _plane_index(axis: StressAxis, plane: int):
    index = [slice(None)] * 3
    index[axis.value] = plane
    return tuple(index)


def axial_stress(grid: GridState, axis: StressAxis) -> np.ndarray:
    """加载轴方向的正应力场"""
    return (grid.sxx, grid.syy, grid.szz)[axis.value]


def axial_displacement(grid: GridState, axis: StressAxis) -> np.ndarray:
    """加载轴方向的位移场"""
    return grid.displacement[axis.value]


def apply_axial_load(grid: GridState, frame: LoadFrame, pressure_pa: float) -> int:
    """
    加载面上的材料体素轴向正应力设为 -P

    Returns:
        被加载的体素数
    """
    index = _plane_index(frame.axis, frame.plane)
    loaded = grid.material[index]
    axial_stress(grid, frame.axis)[index][loaded] = -pressure_pa
    return int(np.count_nonzero(loaded))


def sample_strain(grid: GridState, frame: LoadFrame) -> float:
    """
    加载面平均位移换算的轴向应变

        strain = -mean(u_axis) / L0

    只统计加载面内部的材料体素; 最外层体素从不更新, 相当于固定框架。
    加载面上没有内部材料体素时返回 0。
    """
    index = _plane_index(frame.axis, frame.plane)
    loaded = grid.material[index].copy()
    loaded[[0, -1], :] = False
    loaded[:, [0, -1]] = False
    if not loaded.any():
        return 0.0
    mean_disp = float(axial_displacement(grid, frame.axis)[index][loaded].mean())
    return -mean_disp / frame.sample_length
