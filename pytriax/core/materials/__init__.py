# 文件: pytriax/core/materials/__init__.py
"""
pytriax 本构系统

分层架构:
- elastic.py: 各向同性弹性 (带标量损伤的局部模量)
- yield_functions.py: Mohr-Coulomb 屈服函数与应力不变量
- return_mapping.py: 偏应力缩放塑性修正
- damage.py: 最大主应力求解与脆性损伤修正

所有本构组件都作用在逐体素数组上, 应力分量约定为元组
(σxx, σyy, σzz, σxy, σxz, σyz)。

使用方法:
    from pytriax.core.materials import IsotropicElastic, MohrCoulomb, ScaledReturn

    elastic = IsotropicElastic(E=20000.0, nu=0.25)
    plastic = ScaledReturn(MohrCoulomb(cohesion=10e6, friction_angle=30.0))
    stress, yielded = plastic.apply(stress_trial)
"""

from .elastic import IsotropicElastic
from .yield_functions import MohrCoulomb, mean_stress, second_invariant
from .return_mapping import ScaledReturn
from .damage import BrittleDamage, max_principal_stress, stress_invariants


__all__ = [
    # 弹性
    'IsotropicElastic',

    # 塑性
    'MohrCoulomb',
    'ScaledReturn',
    'mean_stress',
    'second_invariant',

    # 脆性
    'BrittleDamage',
    'max_principal_stress',
    'stress_invariants',
]
