# 文件: pytriax/solver/initializer.py
"""
场初始化: 清零动态场并施加静水围压
"""

from ..core.grid import GridState


def initialize_fields(grid: GridState, confining_pa: float) -> None:
    """
    初始化网格状态

    1. 速度、应力、损伤、位移全部清零
    2. 材料体素的三个正应力设为 -Pc (压为负)

    可重复调用, 结果相同。

    Args:
        grid: 网格状态 (原地修改)
        confining_pa: 围压 (Pa)
    """
    grid.reset()
    for normal in (grid.sxx, grid.syy, grid.szz):
        normal[grid.material] = -confining_pa
