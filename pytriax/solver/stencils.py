# 文件: pytriax/solver/stencils.py
"""
有限差分算子 (作用于内部区域)

所有算子返回形状为 (nx-2, ny-2, nz-2) 的数组, 对应体素 [1:-1, 1:-1, 1:-1],
并把结果截断到 ±limit, 防止单个失稳体素把 NaN / inf 扩散到全网格。

格式:
    'staggered': 正应变率用前向差分, 剪应变率用后向差分;
                 动量方程中正应力项用后向差分, 剪应力项用前向差分 (互为伴随)
    'central':   应变率全部用中心差分, 动量方程沿用混合单侧差分
"""

import numpy as np

INTERIOR = (slice(1, -1), slice(1, -1), slice(1, -1))


def neighbor(field: np.ndarray, axis: int, offset: int) -> np.ndarray:
    """内部区域沿 axis 平移 offset (-1, 0, +1) 后的视图"""
    index = [slice(1, -1)] * 3
    n = field.shape[axis]
    index[axis] = slice(1 + offset, n - 1 + offset)
    return field[tuple(index)]


def forward(field, axis, h, limit):
    """(f[i+1] - f[i]) / h"""
    grad = (neighbor(field, axis, 1) - neighbor(field, axis, 0)) / h
    return np.clip(grad, -limit, limit)


def backward(field, axis, h, limit):
    """(f[i] - f[i-1]) / h"""
    grad = (neighbor(field, axis, 0) - neighbor(field, axis, -1)) / h
    return np.clip(grad, -limit, limit)


def central(field, axis, h, limit):
    """(f[i+1] - f[i-1]) / 2h"""
    grad = (neighbor(field, axis, 1) - neighbor(field, axis, -1)) / (2.0 * h)
    return np.clip(grad, -limit, limit)


def velocity_gradient(vx, vy, vz, h: float, limit: float, stencil: str = 'staggered') -> dict:
    """
    速度梯度 ∂v_i/∂x_j

    Returns:
        dict: 键 'ij' 表示 ∂v_i/∂x_j, 共 9 项
    """
    velocity = {'x': vx, 'y': vy, 'z': vz}
    axes = {'x': 0, 'y': 1, 'z': 2}

    grad = {}
    for i, v in velocity.items():
        for j, axis in axes.items():
            if stencil == 'central':
                op = central
            elif i == j:
                op = forward
            else:
                op = backward
            grad[i + j] = op(v, axis, h, limit)
    return grad


def stress_divergence(stress, h: float, limit: float, stencil: str = 'staggered'):
    """
    应力散度 ∇·σ

    Args:
        stress: (σxx, σyy, σzz, σxy, σxz, σyz)

    Returns:
        (fx, fy, fz): 内部区域的单位体积合力
    """
    sxx, syy, szz, sxy, sxz, syz = stress

    if stencil == 'central':
        fx = (backward(sxx, 0, h, limit) + backward(sxy, 1, h, limit)
              + backward(sxz, 2, h, limit))
        fy = (forward(sxy, 0, h, limit) + backward(syy, 1, h, limit)
              + backward(syz, 2, h, limit))
        fz = (forward(sxz, 0, h, limit) + forward(syz, 1, h, limit)
              + backward(szz, 2, h, limit))
    else:
        fx = (backward(sxx, 0, h, limit) + forward(sxy, 1, h, limit)
              + forward(sxz, 2, h, limit))
        fy = (forward(sxy, 0, h, limit) + backward(syy, 1, h, limit)
              + forward(syz, 2, h, limit))
        fz = (forward(sxz, 0, h, limit) + forward(syz, 1, h, limit)
              + backward(szz, 2, h, limit))
    return fx, fy, fz
