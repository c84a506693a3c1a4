# 文件: pytriax/core/parameters.py
"""
模拟参数定义

提供:
- StressAxis: 加载轴 (X / Y / Z)
- SimulationParameters: 三轴压缩模拟的不可变参数集
- SolverConstants: 求解器经验常数 (安全系数、阻尼、损伤上限等)

单位约定:
    压力、模量、黏聚力、抗拉强度均以 MPa 输入，内部换算为 Pa。
    体素边长以 m 为单位，密度以 kg/m³ 为单位。
    压应力为负 (连续介质力学符号约定)。
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

MPA_TO_PA = 1e6


class StressAxis(Enum):
    """加载轴，value 为数组维度索引"""
    X = 0
    Y = 1
    Z = 2

    @classmethod
    def parse(cls, value) -> 'StressAxis':
        """接受 StressAxis / 'x' / 'Z' / 0..2"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown loading axis '{value}', expected one of x, y, z")
        if isinstance(value, int) and 0 <= value <= 2:
            return cls(value)
        raise ValueError(f"Unknown loading axis {value!r}")


@dataclass(frozen=True)
class SolverConstants:
    """
    求解器经验常数

    这些数值没有严格的物理推导，仅保证显式积分数值稳定、结果定性合理，
    因此全部作为可配置常数保留。

    Attributes:
        cfl_safety: CFL 安全系数 (< 1)
        max_wave_speed: P 波速上限 (m/s)，防止极低密度导致极小时间步
        min_time_step: 时间步下限 (s)
        density_floor: 密度下限 (kg/m³)，用于缺失或非法密度
        gradient_limit: 所有有限差分梯度的截断幅值
        stress_increment_limit: 单步应力增量截断幅值 (Pa)
        velocity_increment_limit: 单步速度增量截断幅值 (m/s)
        velocity_damping: 每步速度衰减比例 (数值阻尼)
        plastic_scale_cap: 塑性修正缩放系数上限
        damage_rate: 超限比到损伤增量的比例系数
        max_overshoot: 单步超限比上限
        max_damage: 损伤上限 (< 1，避免模量奇异)
        failure_threshold: 判定体素失效的损伤阈值
        failure_ratio: 失效体素占比阈值
        failure_max_damage: 最大损伤判定阈值
        progress_interval: 进度事件间隔 (内步数)
        pause_poll_interval: 暂停轮询间隔 (s)
        stencil: 'staggered' (默认) 或 'central'
    """
    cfl_safety: float = 0.2
    max_wave_speed: float = 6000.0
    min_time_step: float = 1e-8
    density_floor: float = 100.0
    gradient_limit: float = 1e12
    stress_increment_limit: float = 1e12
    velocity_increment_limit: float = 1e4
    velocity_damping: float = 0.05
    plastic_scale_cap: float = 0.95
    damage_rate: float = 0.01
    max_overshoot: float = 0.1
    max_damage: float = 0.95
    failure_threshold: float = 0.75
    failure_ratio: float = 0.1
    failure_max_damage: float = 0.9
    progress_interval: int = 10
    pause_poll_interval: float = 0.1
    stencil: str = 'staggered'

    def __post_init__(self):
        if not (0.0 < self.cfl_safety < 1.0):
            raise ValueError(f"CFL safety factor must be in (0, 1), got {self.cfl_safety}")
        if not (0.0 <= self.velocity_damping < 1.0):
            raise ValueError(f"Velocity damping must be in [0, 1), got {self.velocity_damping}")
        if not (0.0 < self.max_damage < 1.0):
            raise ValueError(f"Damage cap must be in (0, 1), got {self.max_damage}")
        if not (0.0 < self.plastic_scale_cap < 1.0):
            raise ValueError(f"Plastic scale cap must be in (0, 1), got {self.plastic_scale_cap}")
        if self.density_floor <= 0 or self.min_time_step <= 0 or self.max_wave_speed <= 0:
            raise ValueError("Density floor, time-step floor and wave-speed ceiling must be positive")
        if self.progress_interval < 1:
            raise ValueError(f"Progress interval must be >= 1, got {self.progress_interval}")
        if self.stencil not in ('staggered', 'central'):
            raise ValueError(f"Unknown stencil '{self.stencil}', expected 'staggered' or 'central'")


@dataclass(frozen=True)
class SimulationParameters:
    """
    三轴压缩模拟参数 (构造后不可变)

    Attributes:
        width, height, depth: 网格体素数 (x, y, z)
        voxel_size: 体素边长 (m)
        material_id: 被加载的材料标签
        confining_pressure: 围压 (MPa)
        initial_axial_pressure: 初始轴压 (MPa)
        final_axial_pressure: 最终轴压 (MPa)
        increments: 压力增量数
        steps_per_increment: 每个增量内的时间步数
        axis: 加载轴
        use_elastic / use_plastic / use_brittle: 子模型开关
        tensile_strength: 抗拉强度 (MPa)
        friction_angle: 内摩擦角 (度)
        cohesion: 黏聚力 (MPa)
        youngs_modulus: 杨氏模量 (MPa)
        poisson_ratio: 泊松比, 需满足 -1 < ν < 0.5

    Raises:
        ValueError: 参数非法时在构造阶段立即抛出
    """
    width: int
    height: int
    depth: int
    voxel_size: float
    material_id: int
    confining_pressure: float
    initial_axial_pressure: float
    final_axial_pressure: float
    increments: int
    youngs_modulus: float
    poisson_ratio: float
    steps_per_increment: int = 200
    axis: StressAxis = StressAxis.Z
    use_elastic: bool = True
    use_plastic: bool = False
    use_brittle: bool = False
    tensile_strength: float = 5.0
    friction_angle: float = 30.0
    cohesion: float = 10.0

    def __post_init__(self):
        # frozen dataclass: 通过 object.__setattr__ 规范化字段
        object.__setattr__(self, 'axis', StressAxis.parse(self.axis))

        for name in ('width', 'height', 'depth'):
            n = getattr(self, name)
            if int(n) != n or n < 3:
                raise ValueError(f"Grid {name} must be an integer >= 3, got {n}")
        if self.voxel_size <= 0:
            raise ValueError(f"Voxel size must be positive, got {self.voxel_size}")
        if self.youngs_modulus <= 0:
            raise ValueError(f"Young's modulus must be positive, got {self.youngs_modulus}")
        if not (-1.0 < self.poisson_ratio < 0.5):
            raise ValueError(f"Poisson's ratio must be in (-1, 0.5), got {self.poisson_ratio}")
        if self.increments < 1:
            raise ValueError(f"Pressure increments must be >= 1, got {self.increments}")
        if self.steps_per_increment < 1:
            raise ValueError(f"Steps per increment must be >= 1, got {self.steps_per_increment}")
        if self.confining_pressure < 0:
            raise ValueError(f"Confining pressure must be non-negative, got {self.confining_pressure}")
        if not (0.0 <= self.friction_angle < 90.0):
            raise ValueError(f"Friction angle must be in [0, 90) degrees, got {self.friction_angle}")
        if self.cohesion < 0:
            raise ValueError(f"Cohesion must be non-negative, got {self.cohesion}")

    @property
    def shape(self) -> Tuple[int, int, int]:
        """网格形状 (width, height, depth)，与场数组一致"""
        return (int(self.width), int(self.height), int(self.depth))

    @property
    def confining_pressure_pa(self) -> float:
        return self.confining_pressure * MPA_TO_PA

    @property
    def tensile_strength_pa(self) -> float:
        return self.tensile_strength * MPA_TO_PA

    @property
    def cohesion_pa(self) -> float:
        return self.cohesion * MPA_TO_PA

    @property
    def friction_angle_rad(self) -> float:
        return math.radians(self.friction_angle)

    def axial_pressure(self, increment: int) -> float:
        """
        第 increment 个增量的目标轴压 (MPa)，在初始与最终轴压之间线性插值

        increment = 0 返回初始轴压, increment = increments 返回最终轴压
        """
        step = (self.final_axial_pressure - self.initial_axial_pressure) / self.increments
        return self.initial_axial_pressure + step * increment

    def __repr__(self) -> str:
        models = [name for name, on in (('elastic', self.use_elastic),
                                        ('plastic', self.use_plastic),
                                        ('brittle', self.use_brittle)) if on]
        return (
            f"SimulationParameters(grid={self.shape}, dx={self.voxel_size:.3e}, "
            f"material={self.material_id}, axis={self.axis.name}, "
            f"Pc={self.confining_pressure:.2f}MPa, "
            f"Pa={self.initial_axial_pressure:.2f}->{self.final_axial_pressure:.2f}MPa, "
            f"models={'+'.join(models) or 'none'})"
        )
