from PyQt5.QtCore import QThread, pyqtSignal

from ..core.events import FailureEvent, ProgressEvent
from ..core.parameters import SimulationParameters, SolverConstants
from ..core.volume import VolumeSource
from ..solver.simulator import TriaxialSimulator


class SimulationWorker(QThread):
    """
    三轴模拟线程
    职责：
    1. 在 QThread 中构造并同步运行 TriaxialSimulator
    2. 把日志、进度、监控、破坏、完成事件转发为 Qt 信号
    3. 提供暂停 / 继续 / 破坏后继续 / 终止 (Kill) 控制
    """

    # 信号定义
    log_signal = pyqtSignal(str)
    progress_signal = pyqtSignal(int)
    # 监控信号: {increment, step, pressure, dt, yielded, cracked, max_damage}
    monitor_signal = pyqtSignal(dict)
    # 破坏信号: {axial_pressure, strain, increment, total_increments}
    failure_signal = pyqtSignal(dict)
    # 完成信号: CompletionEvent
    finished_signal = pyqtSignal(object)
    cancelled_signal = pyqtSignal()
    error_signal = pyqtSignal(str)

    def __init__(self, volume: VolumeSource, params: SimulationParameters,
                 constants: SolverConstants = None, auto_continue: bool = False):
        """
        Args:
            volume: 带标签体数据
            params: 模拟参数
            constants: 求解器常数
            auto_continue: 检测到破坏后自动继续加载 (不等待用户确认)
        """
        super().__init__()
        self.volume = volume
        self.params = params
        self.constants = constants
        self.auto_continue = auto_continue
        self.simulator = None

    def _log(self, msg: str):
        """线程安全日志"""
        try:
            self.log_signal.emit(msg)
        finally:
            print(msg)

    # === 控制 ===

    def pause(self):
        if self.simulator is not None:
            self.simulator.pause()

    def resume(self):
        if self.simulator is not None:
            self.simulator.resume()

    def continue_after_failure(self):
        if self.simulator is not None:
            self.simulator.continue_after_failure()

    def kill(self):
        """终止作业: 请求中断并取消模拟"""
        self.requestInterruption()
        if self.simulator is not None:
            self.simulator.cancel()

    # === 事件转发 ===

    def _on_progress(self, event: ProgressEvent):
        # 取消通知由 cancelled_signal 单独发送
        if event.is_cancellation:
            return
        self.progress_signal.emit(int(event.percent))

    def _on_failure(self, event: FailureEvent):
        self.failure_signal.emit(event.to_dict())
        if self.auto_continue:
            self._log("Continuing after failure (auto)")
            self.simulator.continue_after_failure()

    def run(self):
        try:
            # 检查中断请求
            if self.isInterruptionRequested():
                return

            self._log(f"Preparing simulation on volume {self.volume.shape}")
            self.simulator = TriaxialSimulator(self.volume, self.params, self.constants)
            self.simulator.set_log_callback(self._log)
            self.simulator.set_monitor_callback(self.monitor_signal.emit)
            self.simulator.set_interrupt_callback(self.isInterruptionRequested)
            self.simulator.add_progress_listener(self._on_progress)
            self.simulator.add_failure_listener(self._on_failure)

            self.progress_signal.emit(0)
            result = self.simulator.run()

            if result is None:
                self._log("Job Cancelled.")
                self.cancelled_signal.emit()
                return

            self.progress_signal.emit(100)
            self.finished_signal.emit(result)
            self._log("Job Completed.")

        except Exception as e:
            # 如果是中断请求导致的异常，不记录为错误
            if not self.isInterruptionRequested():
                self._log(f"CRITICAL ERROR: {str(e)}")
                import traceback
                traceback.print_exc()
                self.error_signal.emit(str(e))
