# 文件: pytriax/solver/run_state.py
"""
运行状态机

    Idle → Running → {Paused ⇄ Running} → {Completed | Cancelled}

暂停分两种来源:
- 用户暂停: pause() / resume()
- 破坏保持: hold_for_failure() / continue_after_failure()
两者都清除后才回到 Running。取消可以从任何非终止状态进入。
"""

import threading
from contextlib import contextmanager
from enum import Enum


class RunState(Enum):
    IDLE = 'idle'
    RUNNING = 'running'
    PAUSED = 'paused'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.CANCELLED)


class RunController:
    """
    控制端与工作线程共享的运行状态

    所有状态读写都在同一个 Condition 下完成, 任意线程都可以调用控制方法。

    Example:
        controller = RunController()
        controller.begin()
        while ...:
            if not controller.wait_while_paused():
                break
            with controller.stepping():
                ...
        controller.finish()
    """

    def __init__(self, poll_interval: float = 0.1):
        self.poll_interval = poll_interval
        self._cond = threading.Condition()
        self._state = RunState.IDLE
        self._user_paused = False
        self._failure_hold = False
        self._cancelled = False
        self._parked = False
        self._busy = False

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        with self._cond:
            return self._state

    @property
    def cancelled(self) -> bool:
        with self._cond:
            return self._cancelled

    @property
    def parked(self) -> bool:
        """工作线程是否正停在暂停等待中"""
        with self._cond:
            return self._parked

    @property
    def failure_hold(self) -> bool:
        with self._cond:
            return self._failure_hold

    # ------------------------------------------------------------------
    # 状态转移
    # ------------------------------------------------------------------

    def begin(self) -> None:
        """Idle → Running"""
        with self._cond:
            if self._state is not RunState.IDLE:
                raise RuntimeError(f"Cannot start a run in state '{self._state.value}'")
            self._state = RunState.RUNNING

    def _refresh(self) -> None:
        if self._state.is_terminal or self._state is RunState.IDLE:
            return
        paused = self._user_paused or self._failure_hold
        self._state = RunState.PAUSED if paused else RunState.RUNNING
        self._cond.notify_all()

    def pause(self) -> bool:
        """用户暂停, 非运行中调用无效果"""
        with self._cond:
            if self._state not in (RunState.RUNNING, RunState.PAUSED):
                return False
            self._user_paused = True
            self._refresh()
            return True

    def resume(self) -> bool:
        """解除用户暂停 (不解除破坏保持)"""
        with self._cond:
            if not self._user_paused:
                return False
            self._user_paused = False
            self._refresh()
            return True

    def hold_for_failure(self) -> None:
        with self._cond:
            if self._state.is_terminal:
                return
            self._failure_hold = True
            self._refresh()

    def continue_after_failure(self) -> bool:
        """解除破坏保持 (不解除用户暂停)"""
        with self._cond:
            if not self._failure_hold:
                return False
            self._failure_hold = False
            self._refresh()
            return True

    def cancel(self) -> bool:
        """协作式取消, 已终止时无效果"""
        with self._cond:
            if self._state.is_terminal:
                return False
            self._cancelled = True
            self._state = RunState.CANCELLED
            self._cond.notify_all()
            return True

    def finish(self) -> RunState:
        """运行结束: 未取消则进入 Completed"""
        with self._cond:
            if not self._cancelled:
                self._state = RunState.COMPLETED
            self._cond.notify_all()
            return self._state

    # ------------------------------------------------------------------
    # 工作线程侧
    # ------------------------------------------------------------------

    def wait_while_paused(self) -> bool:
        """
        暂停时阻塞 (按 poll_interval 轮询)

        Returns:
            False 表示已取消, 调用方应停止
        """
        with self._cond:
            try:
                while self._state is RunState.PAUSED and not self._cancelled:
                    if not self._parked:
                        self._parked = True
                        self._cond.notify_all()
                    self._cond.wait(self.poll_interval)
            finally:
                self._parked = False
            return not self._cancelled

    def wait_until_parked(self, timeout: float = None) -> bool:
        """等待工作线程进入暂停等待 (供控制端/测试同步使用)"""
        with self._cond:
            return self._cond.wait_for(lambda: self._parked or self._state.is_terminal,
                                       timeout)

    @contextmanager
    def stepping(self):
        """标记一次内步计算, 期间不允许读取场快照"""
        with self._cond:
            self._busy = True
        try:
            yield
        finally:
            with self._cond:
                self._busy = False

    @contextmanager
    def quiescent(self):
        """在工作线程不计算时持有锁, 用于读取一致的场快照"""
        with self._cond:
            if self._busy:
                raise RuntimeError("Fields are being updated; pause the simulation first")
            yield

    def __repr__(self) -> str:
        return (
            f"RunController(state={self._state.value}, user_paused={self._user_paused}, "
            f"failure_hold={self._failure_hold})"
        )
