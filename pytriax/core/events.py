# 文件: pytriax/core/events.py
"""
模拟事件定义

提供:
- ProgressEvent: 进度 (含取消通知)
- FailureEvent: 首次检测到材料破坏
- CompletionEvent: 正常结束时的完整应力-应变结果
"""

from dataclasses import dataclass, asdict
from typing import Optional, Sequence, Tuple
import numpy as np

CANCELLED_STATUS = "cancelled"
NO_FAILURE = -1


@dataclass(frozen=True)
class ProgressEvent:
    """
    进度事件

    Attributes:
        percent: 完成百分比 [0, 100]
        increment: 当前增量序号
        status: 状态文本
    """
    percent: float
    increment: int
    status: str = ""

    @classmethod
    def cancelled(cls) -> 'ProgressEvent':
        """取消通知: percent = 0, increment = 0, status = 'cancelled'"""
        return cls(0.0, 0, CANCELLED_STATUS)

    @property
    def is_cancellation(self) -> bool:
        return self.status == CANCELLED_STATUS and self.percent == 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class FailureEvent:
    """
    破坏事件

    Attributes:
        axial_pressure: 检测时的轴压 (MPa)
        strain: 检测时的轴向应变
        increment: 检测时的增量序号
        total_increments: 总增量数
    """
    axial_pressure: float
    strain: float
    increment: int
    total_increments: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CompletionEvent:
    """
    完成事件

    Attributes:
        strains: 应变序列 (与 stresses 等长、逐项对应)
        stresses: 轴向应力序列 (MPa)
        peak_stress: 峰值应力
        strain_at_peak: 峰值应力对应的应变
        total_increments: 实际执行的增量数 (= 历史长度 - 1)
        failure_detected: 是否检测到破坏
        failure_increment: 首次破坏的增量序号, 未破坏为 NO_FAILURE
    """
    strains: Tuple[float, ...]
    stresses: Tuple[float, ...]
    peak_stress: float
    strain_at_peak: float
    total_increments: int
    failure_detected: bool = False
    failure_increment: int = NO_FAILURE

    @classmethod
    def from_history(cls, strains: Sequence[float], stresses: Sequence[float],
                     failure_increment: Optional[int] = None) -> 'CompletionEvent':
        """
        由应力-应变历史构造完成事件

        Raises:
            ValueError: 序列为空或长度不一致
        """
        if len(strains) != len(stresses):
            raise ValueError(
                f"Strain/stress history length mismatch: {len(strains)} vs {len(stresses)}"
            )
        if len(stresses) == 0:
            raise ValueError("Cannot build a completion event from an empty history")

        peak = int(np.argmax(stresses))
        failed = failure_increment is not None and failure_increment >= 0
        return cls(
            strains=tuple(float(s) for s in strains),
            stresses=tuple(float(s) for s in stresses),
            peak_stress=float(stresses[peak]),
            strain_at_peak=float(strains[peak]),
            total_increments=len(stresses) - 1,
            failure_detected=failed,
            failure_increment=failure_increment if failed else NO_FAILURE,
        )

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """(strains, stresses) numpy 数组"""
        return np.asarray(self.strains), np.asarray(self.stresses)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['strains'] = list(self.strains)
        data['stresses'] = list(self.stresses)
        return data
