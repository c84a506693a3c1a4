# 文件: pytriax/solver/failure.py
"""
破坏判定
"""

from dataclasses import dataclass

import numpy as np

from ..core.grid import GridState
from ..core.parameters import SolverConstants


@dataclass(frozen=True)
class DamageSummary:
    """
    损伤统计

    Attributes:
        failed: 损伤超过阈值的材料体素数
        total: 材料体素总数
        max_damage: 材料体素的最大损伤
    """
    failed: int
    total: int
    max_damage: float

    @property
    def failed_ratio(self) -> float:
        return self.failed / self.total if self.total else 0.0


class FailureDetector:
    """
    破坏检测器 (无副作用)

    满足任一条件即判定破坏:
        - 损伤 > threshold 的体素占比 > ratio
        - 最大损伤 > max_damage_bound

    Example:
        detector = FailureDetector(SolverConstants())
        if detector.check(grid): ...
    """

    def __init__(self, constants: SolverConstants = SolverConstants()):
        self.threshold = constants.failure_threshold
        self.ratio = constants.failure_ratio
        self.max_damage_bound = constants.failure_max_damage

    def summarize(self, damage: np.ndarray, material: np.ndarray) -> DamageSummary:
        values = damage[material]
        if values.size == 0:
            return DamageSummary(failed=0, total=0, max_damage=0.0)
        return DamageSummary(
            failed=int(np.count_nonzero(values > self.threshold)),
            total=int(values.size),
            max_damage=float(values.max()),
        )

    def is_failed(self, summary: DamageSummary) -> bool:
        if summary.total == 0:
            return False
        return summary.failed_ratio > self.ratio or summary.max_damage > self.max_damage_bound

    def check(self, grid: GridState) -> bool:
        return self.is_failed(self.summarize(grid.damage, grid.material))
