# 文件: pytriax/core/volume.py
"""
体素数据源接口

求解器只通过点查询读取外部体数据:
- get_label(x, y, z): 材料标签, 越界返回 NO_MATERIAL
- get_density(x, y, z): 密度 (kg/m³), 越界返回 0

模拟器在构造时把数据源一次性采样成密集数组, 运行期间不再回调数据源。
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple
import numpy as np

NO_MATERIAL = 0


class VolumeSource(ABC):
    """
    带标签的体素体抽象基类

    子类必须实现 shape / get_label / get_density,
    label_array / density_array 默认按点查询逐体素采样, 可按需重写。
    """

    @property
    @abstractmethod
    def shape(self) -> Tuple[int, int, int]:
        """体素数 (width, height, depth)"""
        pass

    @abstractmethod
    def get_label(self, x: int, y: int, z: int) -> int:
        """材料标签, 越界返回 NO_MATERIAL"""
        pass

    @abstractmethod
    def get_density(self, x: int, y: int, z: int) -> float:
        """密度, 越界返回 0"""
        pass

    def label_array(self) -> np.ndarray:
        nx, ny, nz = self.shape
        labels = np.empty((nx, ny, nz), dtype=np.int32)
        for x in range(nx):
            for y in range(ny):
                for z in range(nz):
                    labels[x, y, z] = self.get_label(x, y, z)
        return labels

    def density_array(self) -> np.ndarray:
        nx, ny, nz = self.shape
        density = np.empty((nx, ny, nz), dtype=float)
        for x in range(nx):
            for y in range(ny):
                for z in range(nz):
                    density[x, y, z] = self.get_density(x, y, z)
        return density


class VoxelVolume(VolumeSource):
    """
    基于 numpy 数组的体素体

    Attributes:
        labels: 标签数组 (nx, ny, nz)
        densities: 密度数组 (nx, ny, nz)

    Example:
        volume = VoxelVolume(labels, densities)
        volume.get_label(-1, 0, 0)   # -> NO_MATERIAL
    """

    def __init__(self, labels, densities=None, default_density: float = 0.0):
        """
        Args:
            labels: 三维整数标签数组
            densities: 与 labels 同形的密度数组; 为 None 时全部取 default_density
            default_density: 缺省密度 (kg/m³)

        Raises:
            ValueError: 数组维度或形状不匹配
        """
        labels = np.asarray(labels)
        if labels.ndim != 3:
            raise ValueError(f"Label volume must be 3-D, got shape {labels.shape}")

        if densities is None:
            densities = np.full(labels.shape, float(default_density))
        densities = np.asarray(densities, dtype=float)
        if densities.shape != labels.shape:
            raise ValueError(
                f"Density shape {densities.shape} does not match label shape {labels.shape}"
            )

        self.labels = labels.astype(np.int32, copy=False)
        self.densities = densities

    @property
    def shape(self) -> Tuple[int, int, int]:
        nx, ny, nz = self.labels.shape
        return (nx, ny, nz)

    def _inside(self, x: int, y: int, z: int) -> bool:
        nx, ny, nz = self.labels.shape
        return 0 <= x < nx and 0 <= y < ny and 0 <= z < nz

    def get_label(self, x: int, y: int, z: int) -> int:
        if not self._inside(x, y, z):
            return NO_MATERIAL
        return int(self.labels[x, y, z])

    def get_density(self, x: int, y: int, z: int) -> float:
        if not self._inside(x, y, z):
            return 0.0
        return float(self.densities[x, y, z])

    def label_array(self) -> np.ndarray:
        return self.labels

    def density_array(self) -> np.ndarray:
        return self.densities

    def count(self, material_id: int) -> int:
        """指定材料的体素数"""
        return int(np.count_nonzero(self.labels == material_id))

    def __repr__(self) -> str:
        return f"VoxelVolume(shape={self.shape}, labels={np.unique(self.labels).tolist()})"


def uniform_cube(n: int, material_id: int = 1, density: float = 2600.0,
                 shape: Optional[Tuple[int, int, int]] = None) -> VoxelVolume:
    """
    全部为同一材料的立方体样品

    Args:
        n: 边长体素数 (shape 为 None 时使用)
        material_id: 材料标签
        density: 密度 (kg/m³)
        shape: 显式网格形状, 覆盖 n
    """
    shape = shape or (n, n, n)
    labels = np.full(shape, material_id, dtype=np.int32)
    return VoxelVolume(labels, np.full(shape, float(density)))
