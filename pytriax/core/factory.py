# 文件: pytriax/core/factory.py
"""
模拟参数工厂模块

提供统一的 SimulationParameters 创建入口。
"""

from typing import Any, Dict, Optional

from .parameters import SimulationParameters
from .volume import VolumeSource


class SimulationFactory:
    """
    模拟参数工厂

    根据属性字典创建 SimulationParameters。
    plastic / brittle 段存在即启用对应子模型。

    Example:
        params = SimulationFactory.create('Granite', {
            'E': 20000.0,
            'nu': 0.25,
            'width': 10, 'height': 10, 'depth': 10,
            'voxel_size': 1e-3,
            'material_id': 1,
            'confining_pressure': 5.0,
            'initial_axial_pressure': 5.0,
            'final_axial_pressure': 120.0,
            'increments': 20,
            'plastic': {'cohesion': 10.0, 'friction_angle': 30.0},
            'brittle': {'tensile_strength': 5.0},
        })
    """

    @staticmethod
    def create(name: str, props: Dict[str, Any]) -> SimulationParameters:
        """
        根据属性字典创建模拟参数

        Args:
            name: 配置名称 (用于错误消息)
            props: 属性字典, 结构:
                {
                    'E': float,                     # 杨氏模量 MPa (必需)
                    'nu': float,                    # 泊松比 (必需)
                    'width'/'height'/'depth': int,  # 网格尺寸 (必需)
                    'voxel_size': float,            # 体素边长 m (必需)
                    'material_id': int,             # 默认 1
                    'confining_pressure': float,    # MPa, 默认 0
                    'initial_axial_pressure': float,# MPa, 默认等于围压
                    'final_axial_pressure': float,  # MPa (必需)
                    'increments': int,              # 默认 10
                    'steps_per_increment': int,     # 默认 200
                    'axis': 'x' | 'y' | 'z',        # 默认 'z'
                    'plastic': {                    # 塑性参数 (可选)
                        'cohesion': float,          # MPa, 默认 10
                        'friction_angle': float     # 度, 默认 30
                    },
                    'brittle': {                    # 脆性参数 (可选)
                        'tensile_strength': float   # MPa (必需)
                    }
                }

        Returns:
            SimulationParameters

        Raises:
            ValueError: 缺少必需参数或参数非法
        """
        E = props.get('E')
        nu = props.get('nu')
        if E is None or nu is None:
            raise ValueError(
                f"Simulation '{name}' missing required parameters. "
                f"Got E={E}, nu={nu}"
            )

        missing = [key for key in ('width', 'height', 'depth', 'voxel_size', 'final_axial_pressure')
                   if props.get(key) is None]
        if missing:
            raise ValueError(f"Simulation '{name}' missing required parameters: {', '.join(missing)}")

        confining = float(props.get('confining_pressure', 0.0))
        kwargs = dict(
            width=int(props['width']),
            height=int(props['height']),
            depth=int(props['depth']),
            voxel_size=float(props['voxel_size']),
            material_id=int(props.get('material_id', 1)),
            confining_pressure=confining,
            initial_axial_pressure=float(props.get('initial_axial_pressure', confining)),
            final_axial_pressure=float(props['final_axial_pressure']),
            increments=int(props.get('increments', 10)),
            steps_per_increment=int(props.get('steps_per_increment', 200)),
            axis=props.get('axis', 'z'),
            use_elastic=bool(props.get('elastic', True)),
            youngs_modulus=float(E),
            poisson_ratio=float(nu),
        )

        plastic = props.get('plastic')
        if plastic is not None:
            kwargs['use_plastic'] = True
            kwargs['cohesion'] = float(plastic.get('cohesion', 10.0))
            kwargs['friction_angle'] = float(plastic.get('friction_angle', 30.0))

        brittle = props.get('brittle')
        if brittle is not None:
            tensile = brittle.get('tensile_strength')
            if tensile is None:
                raise ValueError(
                    f"Simulation '{name}' has brittle section but missing 'tensile_strength'"
                )
            kwargs['use_brittle'] = True
            kwargs['tensile_strength'] = float(tensile)

        return SimulationParameters(**kwargs)

    @staticmethod
    def for_volume(volume: VolumeSource, props: Dict[str, Any],
                   name: Optional[str] = None) -> SimulationParameters:
        """
        以体数据的形状作为网格尺寸创建模拟参数

        props 中的 width / height / depth 会被体数据形状覆盖。
        """
        nx, ny, nz = volume.shape
        merged = dict(props)
        merged.update(width=nx, height=ny, depth=nz)
        return SimulationFactory.create(name or type(volume).__name__, merged)

    @staticmethod
    def create_elastic(width: int, height: int, depth: int, voxel_size: float,
                       E: float, nu: float, final_axial_pressure: float,
                       **overrides) -> SimulationParameters:
        """便捷方法: 纯弹性模拟参数"""
        props = dict(width=width, height=height, depth=depth, voxel_size=voxel_size,
                     E=E, nu=nu, final_axial_pressure=final_axial_pressure)
        props.update(overrides)
        return SimulationFactory.create('elastic', props)
