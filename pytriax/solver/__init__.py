# 文件: pytriax/solver/__init__.py
"""
pytriax 求解器

- stencils.py: 有限差分算子
- stability.py: CFL 时间步
- initializer.py: 场初始化
- stress_update.py / velocity_update.py: 每个内步的两遍更新
- failure.py: 破坏判定
- loading.py: 边界加载与应变采样
- run_state.py: 运行状态机
- simulator.py: 加载主循环与控制接口
"""

from .stability import TimeStep, stable_time_step
from .initializer import initialize_fields
from .stress_update import StressUpdater
from .velocity_update import VelocityUpdater
from .failure import DamageSummary, FailureDetector
from .loading import LoadFrame, build_load_frame, apply_axial_load, sample_strain
from .run_state import RunController, RunState
from .simulator import TriaxialSimulator


__all__ = [
    'TimeStep',
    'stable_time_step',
    'initialize_fields',
    'StressUpdater',
    'VelocityUpdater',
    'DamageSummary',
    'FailureDetector',
    'LoadFrame',
    'build_load_frame',
    'apply_axial_load',
    'sample_strain',
    'RunController',
    'RunState',
    'TriaxialSimulator',
]
