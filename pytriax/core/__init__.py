# 文件: pytriax/core/__init__.py
"""
pytriax 核心模块

导出参数、体数据、网格状态、事件与本构组件
"""

# ==============================================================================
# 参数与配置
# ==============================================================================
from .parameters import MPA_TO_PA, StressAxis, SimulationParameters, SolverConstants
from .factory import SimulationFactory

# ==============================================================================
# 数据
# ==============================================================================
from .volume import NO_MATERIAL, VolumeSource, VoxelVolume, uniform_cube
from .grid import GridState
from .events import ProgressEvent, FailureEvent, CompletionEvent, NO_FAILURE

# ==============================================================================
# 本构
# ==============================================================================
from .materials import (
    IsotropicElastic,
    MohrCoulomb,
    ScaledReturn,
    BrittleDamage,
    max_principal_stress,
)


__all__ = [
    # === 参数 ===
    'MPA_TO_PA',
    'StressAxis',
    'SimulationParameters',
    'SolverConstants',
    'SimulationFactory',

    # === 数据 ===
    'NO_MATERIAL',
    'VolumeSource',
    'VoxelVolume',
    'uniform_cube',
    'GridState',
    'ProgressEvent',
    'FailureEvent',
    'CompletionEvent',
    'NO_FAILURE',

    # === 本构 ===
    'IsotropicElastic',
    'MohrCoulomb',
    'ScaledReturn',
    'BrittleDamage',
    'max_principal_stress',
]
