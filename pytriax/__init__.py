# 文件: pytriax/__init__.py
"""
pytriax: 岩石三轴压缩显式弹性动力模拟

使用方法:
    from pytriax import TriaxialSimulator, SimulationFactory, uniform_cube

    volume = uniform_cube(10)
    params = SimulationFactory.for_volume(volume, {
        'E': 20000.0, 'nu': 0.25, 'voxel_size': 1e-3, 'final_axial_pressure': 10.0,
    })
    result = TriaxialSimulator(volume, params).run()
"""

from .core import (
    SimulationParameters,
    SolverConstants,
    StressAxis,
    SimulationFactory,
    VolumeSource,
    VoxelVolume,
    uniform_cube,
    ProgressEvent,
    FailureEvent,
    CompletionEvent,
)
from .solver import TriaxialSimulator, RunState

__version__ = "0.1.0"

__all__ = [
    'SimulationParameters',
    'SolverConstants',
    'StressAxis',
    'SimulationFactory',
    'VolumeSource',
    'VoxelVolume',
    'uniform_cube',
    'ProgressEvent',
    'FailureEvent',
    'CompletionEvent',
    'TriaxialSimulator',
    'RunState',
]
