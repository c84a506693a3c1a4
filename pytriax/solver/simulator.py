# 文件: pytriax/solver/simulator.py
"""
三轴压缩显式动力模拟器

控制流:
    稳定时间步 → 场初始化 → (每个压力增量) 施加轴压
        → (每个内步) 应力更新 → 恢复加载面轴压 → 速度更新 → 破坏检测
        → 应变采样 → 进度事件
    → 完成事件 (或取消通知)
"""

import threading
from typing import Callable, List, Optional, Tuple

from ..core.events import CompletionEvent, FailureEvent, ProgressEvent, NO_FAILURE
from ..core.grid import GridState
from ..core.materials import BrittleDamage, IsotropicElastic, MohrCoulomb, ScaledReturn
from ..core.parameters import MPA_TO_PA, SimulationParameters, SolverConstants
from ..core.volume import VolumeSource
from .failure import FailureDetector
from .initializer import initialize_fields
from .loading import apply_axial_load, build_load_frame, sample_strain
from .run_state import RunController, RunState
from .stability import TimeStep, stable_time_step
from .stress_update import StressUpdater
from .velocity_update import VelocityUpdater


class TriaxialSimulator:
    """
    三轴压缩模拟器

    特性:
    1. 网格场只由模拟器持有, 外部只能拿到事件和副本
    2. 后台线程运行, 支持暂停 / 继续 / 取消
    3. 检测到破坏时暂停, 需调用 continue_after_failure() 继续加载

    Example:
        sim = TriaxialSimulator(volume, params)
        sim.add_completion_listener(lambda e: print(e.peak_stress))
        sim.start()
        sim.join()
    """

    def __init__(self, volume: VolumeSource, params: SimulationParameters,
                 constants: Optional[SolverConstants] = None):
        """
        Args:
            volume: 带标签的体数据 (构造时一次性采样)
            params: 模拟参数
            constants: 求解器常数, 默认 SolverConstants()

        Raises:
            ValueError: 体数据形状与参数不符, 或体数据中没有所选材料
        """
        self.params = params
        self.constants = constants or SolverConstants()

        labels = volume.label_array()
        if tuple(labels.shape) != params.shape:
            raise ValueError(
                f"Volume shape {tuple(labels.shape)} does not match grid dimensions {params.shape}"
            )
        material = labels == params.material_id
        if not material.any():
            raise ValueError(f"Material {params.material_id} does not occur in the volume")

        self.grid = GridState.allocate(material, volume.density_array())
        self.frame = build_load_frame(self.grid, params.axis, params.voxel_size)

        # 本构组件
        c = self.constants
        self.elastic = IsotropicElastic(params.youngs_modulus, params.poisson_ratio)
        plastic = None
        if params.use_plastic:
            plastic = ScaledReturn(
                MohrCoulomb(params.cohesion_pa, params.friction_angle, params.confining_pressure_pa),
                scale_cap=c.plastic_scale_cap,
            )
        brittle = None
        if params.use_brittle:
            brittle = BrittleDamage(
                params.tensile_strength_pa,
                rate=c.damage_rate,
                max_overshoot=c.max_overshoot,
                max_damage=c.max_damage,
            )

        self.stress_updater = StressUpdater(self.elastic, params.voxel_size, plastic, brittle, c)
        self.velocity_updater = VelocityUpdater(params.voxel_size, c)
        self.failure_detector = FailureDetector(c)
        self.controller = RunController(c.pause_poll_interval)

        self.time_step: Optional[TimeStep] = None
        self.failure_increment = NO_FAILURE
        self.result: Optional[CompletionEvent] = None

        self._strains: List[float] = []
        self._stresses: List[float] = []
        self._history_lock = threading.Lock()

        self._progress_listeners: List[Callable[[ProgressEvent], None]] = []
        self._failure_listeners: List[Callable[[FailureEvent], None]] = []
        self._completion_listeners: List[Callable[[CompletionEvent], None]] = []

        self.log_callback = print
        self.monitor_callback = None  # 监控回调函数
        self.check_interrupt = None   # 中断检查回调

        self._thread: Optional[threading.Thread] = None
        self._disposed = False

    # ------------------------------------------------------------------
    # 回调注册
    # ------------------------------------------------------------------

    def set_log_callback(self, callback):
        self.log_callback = callback

    def set_monitor_callback(self, callback):
        """设置监控回调函数, 与进度事件同频发送内步状态字典"""
        self.monitor_callback = callback

    def set_interrupt_callback(self, callback):
        """设置中断检查回调, 返回 True 时按取消处理"""
        self.check_interrupt = callback

    def add_progress_listener(self, listener: Callable[[ProgressEvent], None]):
        self._progress_listeners.append(listener)

    def add_failure_listener(self, listener: Callable[[FailureEvent], None]):
        self._failure_listeners.append(listener)

    def add_completion_listener(self, listener: Callable[[CompletionEvent], None]):
        self._completion_listeners.append(listener)

    def _emit(self, listeners, event):
        for listener in list(listeners):
            listener(event)

    # ------------------------------------------------------------------
    # 控制接口
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self.controller.state

    @property
    def dt(self) -> Optional[float]:
        return self.time_step.dt if self.time_step else None

    @property
    def failure_detected(self) -> bool:
        return self.failure_increment != NO_FAILURE

    def _check_usable(self):
        if self._disposed:
            raise RuntimeError("Simulator has been disposed")

    def start(self) -> threading.Thread:
        """
        在后台守护线程中运行

        Raises:
            RuntimeError: 已启动过或已释放
        """
        self._check_usable()
        self.controller.begin()
        self._thread = threading.Thread(target=self._execute, name="triaxial-simulation",
                                        daemon=True)
        self._thread.start()
        return self._thread

    def run(self) -> Optional[CompletionEvent]:
        """
        在当前线程同步运行

        Returns:
            完成事件; 被取消时返回 None
        """
        self._check_usable()
        self.controller.begin()
        return self._execute()

    def join(self, timeout: Optional[float] = None) -> bool:
        """等待后台线程结束, 返回线程是否已结束"""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def cancel(self) -> bool:
        return self.controller.cancel()

    def pause(self) -> bool:
        return self.controller.pause()

    def resume(self) -> bool:
        return self.controller.resume()

    def continue_after_failure(self) -> bool:
        return self.controller.continue_after_failure()

    def dispose(self, timeout: Optional[float] = 5.0) -> None:
        """取消运行、等待线程退出并释放监听器"""
        if self._disposed:
            return
        self.controller.cancel()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._progress_listeners.clear()
        self._failure_listeners.clear()
        self._completion_listeners.clear()
        self._disposed = True

    def __enter__(self) -> 'TriaxialSimulator':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
        return False

    # ------------------------------------------------------------------
    # 结果访问
    # ------------------------------------------------------------------

    @property
    def history(self) -> Tuple[List[float], List[float]]:
        """(strains, stresses) 副本"""
        with self._history_lock:
            return list(self._strains), list(self._stresses)

    @property
    def current_strain(self) -> float:
        with self._history_lock:
            return self._strains[-1] if self._strains else 0.0

    @property
    def current_stress(self) -> float:
        with self._history_lock:
            return self._stresses[-1] if self._stresses else self.params.initial_axial_pressure

    def field_snapshot(self) -> dict:
        """
        场变量副本 (damage / 应力 / 速度 / 位移)

        Raises:
            RuntimeError: 已释放, 或工作线程正在计算内步
        """
        self._check_usable()
        with self.controller.quiescent():
            return self.grid.snapshot()

    def _record(self, strain: float, stress: float):
        with self._history_lock:
            self._strains.append(float(strain))
            self._stresses.append(float(stress))

    # ------------------------------------------------------------------
    # 主循环
    # ------------------------------------------------------------------

    def _interrupted(self) -> bool:
        if self.check_interrupt is not None and self.check_interrupt():
            self.controller.cancel()
        return self.controller.cancelled

    def _execute(self) -> Optional[CompletionEvent]:
        try:
            return self._loading_loop()
        except Exception as e:
            self.log_callback(f"Simulation aborted: {e}")
            self.controller.cancel()
            raise

    def _loading_loop(self) -> Optional[CompletionEvent]:
        p = self.params
        controller = self.controller

        # 1. 时间步与初始场
        self.time_step = stable_time_step(self.grid, self.elastic, p.voxel_size, self.constants)
        with controller.stepping():
            initialize_fields(self.grid, p.confining_pressure_pa)

        self.log_callback(f"Starting triaxial simulation: {p}")
        self.log_callback(
            f"dt = {self.time_step.dt:.4e} s, vp = {self.time_step.wave_speed:.1f} m/s, "
            f"rho_min = {self.time_step.min_density:.1f} kg/m3, "
            f"loaded plane {p.axis.name}={self.frame.plane}, L0 = {self.frame.sample_length:.4e} m"
        )
        if not p.use_elastic:
            self.log_callback("Elastic predictor is always active; use_elastic=False has no effect")

        # 2. 历史
        with self._history_lock:
            self._strains.clear()
            self._stresses.clear()
        self._record(0.0, p.initial_axial_pressure)
        self.failure_increment = NO_FAILURE

        # 3. 压力增量
        for inc in range(1, p.increments + 1):
            if self._interrupted() or not controller.wait_while_paused():
                break

            target = p.axial_pressure(inc)
            with controller.stepping():
                apply_axial_load(self.grid, self.frame, target * MPA_TO_PA)

            if not self._run_increment(inc, target) or not controller.wait_while_paused():
                break

            strain = sample_strain(self.grid, self.frame)
            self._record(strain, target)

            percent = int(inc / p.increments * 100.0)
            self._emit(self._progress_listeners,
                       ProgressEvent(percent, inc, f"Loading: {target:.2f} MPa"))
            self.log_callback(f"Increment {inc:>4}/{p.increments} | "
                              f"{target:>10.2f} MPa | strain {strain:.4e}")

        # 4. 取消
        if controller.cancelled:
            self.log_callback("\n*** Simulation cancelled by user ***")
            self._emit(self._progress_listeners, ProgressEvent.cancelled())
            controller.finish()
            return None

        # 5. 完成
        strains, stresses = self.history
        event = CompletionEvent.from_history(strains, stresses, self.failure_increment)
        self.result = event
        controller.finish()

        self.log_callback(
            f"Simulation completed: peak {event.peak_stress:.2f} MPa at strain "
            f"{event.strain_at_peak:.4e}, {event.total_increments} increments"
            + (f", failure at increment {event.failure_increment}" if event.failure_detected else "")
        )
        self._emit(self._completion_listeners, event)
        return event

    def _run_increment(self, inc: int, target: float) -> bool:
        """
        执行一个压力增量内的全部时间步

        Returns:
            False 表示运行被取消
        """
        p = self.params
        c = self.constants
        controller = self.controller
        dt = self.time_step.dt
        steps = p.steps_per_increment
        pressure_pa = target * MPA_TO_PA

        for step in range(steps):
            if self._interrupted() or not controller.wait_while_paused():
                return False

            with controller.stepping():
                stats = self.stress_updater.step(self.grid, dt)
                # 加载面属于可更新内部层, 本构更新后恢复边界轴压
                apply_axial_load(self.grid, self.frame, pressure_pa)
                self.velocity_updater.step(self.grid, dt)

            if step % c.progress_interval == 0:
                percent = int(inc / p.increments * 100.0)
                self._emit(self._progress_listeners, ProgressEvent(
                    percent, inc, f"Loading: {target:.2f} MPa, Step {step + 1}/{steps}"))
                if self.monitor_callback:
                    self.monitor_callback({
                        'increment': inc,
                        'step': step + 1,
                        'pressure': target,
                        'dt': dt,
                        'yielded': stats['yielded'],
                        'cracked': stats['cracked'],
                        'max_damage': float(self.grid.damage.max()),
                    })

            if p.use_brittle and not self.failure_detected and self.failure_detector.check(self.grid):
                self.failure_increment = inc
                strain = sample_strain(self.grid, self.frame)
                self.log_callback(f">>> Failure detected at {target:.2f} MPa "
                                  f"(increment {inc}, strain {strain:.4e}); simulation paused")
                # 先进入暂停, 监听器可以同步调用 continue_after_failure()
                controller.hold_for_failure()
                self._emit(self._failure_listeners,
                           FailureEvent(target, strain, inc, p.increments))

        return True
