# 文件: pytriax/tests/test_solver_steps.py
"""
求解器各步骤单元测试: 差分算子、时间步、初始化、应力/速度更新、加载、破坏判定、状态机
"""

import math

import numpy as np
import pytest

from pytriax.core import GridState, SolverConstants, StressAxis
from pytriax.core.materials import BrittleDamage, IsotropicElastic, MohrCoulomb, ScaledReturn
from pytriax.solver import (
    FailureDetector,
    RunController,
    RunState,
    StressUpdater,
    VelocityUpdater,
    apply_axial_load,
    build_load_frame,
    initialize_fields,
    sample_strain,
    stable_time_step,
)
from pytriax.solver.loading import material_extent
from pytriax.solver.stencils import backward, central, forward, velocity_gradient

H = 1e-3


def full_grid(n=6, density=2600.0):
    shape = (n, n, n)
    return GridState.allocate(np.ones(shape, dtype=bool), np.full(shape, density))


class TestGridState:
    """测试网格状态容器"""

    def test_identity_comparison(self):
        """数组字段不参与 == 比较"""
        grid = full_grid()
        clone = grid.copy()
        assert grid == grid
        assert grid != clone
        assert len({grid, clone}) == 2
        assert np.array_equal(clone.sxx, grid.sxx)

    def test_copy_is_independent(self):
        grid = full_grid()
        clone = grid.copy()
        clone.szz.fill(-1.0)
        assert np.all(grid.szz == 0.0)


class TestStencils:
    """测试有限差分算子"""

    def setup_method(self):
        x, y, z = np.indices((6, 7, 8)).astype(float)
        self.field = 3.0 * x * H + 5.0 * y * H - 2.0 * z * H

    def test_linear_field_gradients(self):
        for op in (forward, backward, central):
            assert np.allclose(op(self.field, 0, H, 1e12), 3.0)
            assert np.allclose(op(self.field, 1, H, 1e12), 5.0)
            assert np.allclose(op(self.field, 2, H, 1e12), -2.0)

    def test_interior_shape(self):
        assert forward(self.field, 0, H, 1e12).shape == (4, 5, 6)

    def test_gradient_clamped(self):
        spike = np.zeros((5, 5, 5))
        spike[2, 2, 2] = 1e30
        grad = central(spike, 0, H, 1e12)
        assert np.all(np.abs(grad) <= 1e12)
        assert np.all(np.isfinite(grad))

    @pytest.mark.parametrize("stencil", ['staggered', 'central'])
    def test_velocity_gradient_keys(self, stencil):
        v = np.zeros((5, 5, 5))
        grad = velocity_gradient(v, v, v, H, 1e12, stencil)
        assert set(grad) == {'xx', 'xy', 'xz', 'yx', 'yy', 'yz', 'zx', 'zy', 'zz'}


class TestStability:
    """测试 CFL 时间步"""

    def test_time_step_formula(self):
        grid = full_grid(density=2600.0)
        elastic = IsotropicElastic(E=20000.0, nu=0.25)
        step = stable_time_step(grid, elastic, H)
        vp = math.sqrt(elastic.M / 2600.0)
        assert step.dt == pytest.approx(0.2 * H / vp)
        assert step.wave_speed == pytest.approx(vp)
        assert step.min_density == 2600.0

    def test_minimum_density_used(self):
        grid = full_grid(density=2600.0)
        grid.density[1, 1, 1] = 2000.0
        step = stable_time_step(grid, IsotropicElastic(E=20000.0, nu=0.25), H)
        assert step.min_density == 2000.0

    def test_missing_density_uses_floor_and_ceiling(self):
        grid = full_grid(density=0.0)
        step = stable_time_step(grid, IsotropicElastic(E=20000.0, nu=0.25), H)
        assert step.min_density == 100.0
        # √(M/100) > 6000 → 截断
        assert step.wave_speed == 6000.0
        assert step.dt == pytest.approx(0.2 * H / 6000.0)

    @pytest.mark.parametrize("E, nu, dx", [(1.0, 0.0, 1e-6), (1e6, 0.49, 1.0), (50.0, -0.9, 1e-4)])
    def test_dt_positive_and_finite(self, E, nu, dx):
        step = stable_time_step(full_grid(), IsotropicElastic(E=E, nu=nu), dx)
        assert step.dt > 0 and math.isfinite(step.dt)
        assert step.dt >= SolverConstants().min_time_step


class TestInitializer:
    """测试场初始化"""

    def test_confining_state(self):
        material = np.zeros((6, 6, 6), dtype=bool)
        material[1:5, 1:5, 1:5] = True
        grid = GridState.allocate(material, np.full(material.shape, 2600.0))
        grid.vx[:] = 1.0
        grid.sxy[:] = 3.0
        grid.damage[:] = 0.5
        grid.uz[:] = 1e-3

        initialize_fields(grid, 5e6)

        for normal in (grid.sxx, grid.syy, grid.szz):
            assert np.all(normal[material] == -5e6)
            assert np.all(normal[~material] == 0.0)
        for name in ('vx', 'vy', 'vz', 'sxy', 'sxz', 'syz', 'damage', 'ux', 'uy', 'uz'):
            assert np.all(getattr(grid, name) == 0.0), name

    def test_idempotent(self):
        grid = full_grid()
        initialize_fields(grid, 2e6)
        first = grid.snapshot()
        initialize_fields(grid, 2e6)
        for name, values in grid.snapshot().items():
            assert np.array_equal(values, first[name])


class TestStressUpdater:
    """测试本构更新"""

    def setup_method(self):
        self.elastic = IsotropicElastic(E=20000.0, nu=0.25)
        self.dt = 1e-8

    def test_plastic_disabled_skips_yield_check(self):
        """关闭塑性时, 即使应力远超屈服面也不缩放"""
        grid = full_grid()
        grid.sxy[:] = 500e6
        updater = StressUpdater(self.elastic, H, plastic=None)
        stats = updater.step(grid, self.dt)
        assert np.all(grid.sxy == 500e6)
        assert stats['yielded'] == 0

    def test_plastic_enabled_scales_interior(self):
        grid = full_grid()
        grid.sxy[:] = 500e6
        plastic = ScaledReturn(MohrCoulomb(cohesion=1e6, friction_angle=30.0))
        updater = StressUpdater(self.elastic, H, plastic=plastic)
        stats = updater.step(grid, self.dt)
        assert np.all(grid.sxy[1:-1, 1:-1, 1:-1] < 500e6)
        # 边界层不更新
        assert grid.sxy[0, 0, 0] == 500e6
        assert stats['yielded'] == 4 ** 3

    def test_brittle_disabled_keeps_damage_zero(self):
        grid = full_grid()
        grid.sxx[:] = 100e6
        updater = StressUpdater(self.elastic, H, brittle=None)
        updater.step(grid, self.dt)
        assert np.all(grid.damage == 0.0)

    def test_brittle_tensile_voxel_damaged(self):
        grid = full_grid()
        grid.sxx[2, 2, 2] = 10e6
        brittle = BrittleDamage(tensile_strength=1e6)
        updater = StressUpdater(self.elastic, H, brittle=brittle)
        stats = updater.step(grid, self.dt)
        assert grid.damage[2, 2, 2] > 0.0
        assert grid.sxx[2, 2, 2] < 10e6
        assert stats['cracked'] == 1
        assert np.count_nonzero(grid.damage) == 1

    def test_non_material_voxels_untouched(self):
        material = np.ones((6, 6, 6), dtype=bool)
        material[3, 3, 3] = False
        grid = GridState.allocate(material, np.full(material.shape, 2600.0))
        grid.vx[:] = np.indices(grid.shape)[0] * 1e-3
        updater = StressUpdater(self.elastic, H)
        updater.step(grid, self.dt)
        assert grid.sxx[3, 3, 3] == 0.0
        assert grid.sxx[2, 2, 2] != 0.0

    def test_uniform_expansion_rate(self):
        """vx = a·x: 内部 σxx 增量 = dt·(λ+2μ)·a"""
        grid = full_grid()
        a = 1.0
        grid.vx[:] = a * np.indices(grid.shape)[0] * H
        StressUpdater(self.elastic, H).step(grid, self.dt)
        inner = grid.sxx[1:-1, 1:-1, 1:-1]
        assert np.allclose(inner, self.dt * self.elastic.M * a)
        assert np.allclose(grid.syy[1:-1, 1:-1, 1:-1], self.dt * self.elastic.lam * a)


class TestVelocityUpdater:
    """测试动量更新"""

    def test_uniform_stress_no_motion(self):
        grid = full_grid()
        initialize_fields(grid, 5e6)
        VelocityUpdater(H).step(grid, 1e-8)
        assert np.all(grid.vx == 0.0) and np.all(grid.vz == 0.0)

    def test_stress_gradient_accelerates(self):
        grid = full_grid(density=2000.0)
        a = 1e9
        grid.sxx[:] = a * np.indices(grid.shape)[0] * H
        dt = 1e-7
        VelocityUpdater(H).step(grid, dt)
        expected_v = dt * a / 2000.0
        assert np.allclose(grid.vx[1:-1, 1:-1, 1:-1], expected_v)
        assert np.allclose(grid.ux[1:-1, 1:-1, 1:-1], expected_v * dt)
        assert np.all(grid.vx[0] == 0.0)

    def test_damping(self):
        grid = full_grid()
        grid.vy[:] = 1.0
        VelocityUpdater(H, SolverConstants(velocity_damping=0.05)).step(grid, 1e-8)
        assert np.allclose(grid.vy[1:-1, 1:-1, 1:-1], 0.95)
        assert np.all(grid.vy[0] == 1.0)

    def test_density_floor(self):
        grid = full_grid(density=0.0)
        grid.sxx[:] = 1e9 * np.indices(grid.shape)[0] * H
        VelocityUpdater(H).step(grid, 1e-7)
        assert np.allclose(grid.vx[1:-1, 1:-1, 1:-1], 1e-7 * 1e9 / 100.0)


class TestLoading:
    """测试边界加载与应变采样"""

    def test_full_cube_frame(self):
        grid = full_grid(n=10)
        frame = build_load_frame(grid, StressAxis.Z, H)
        assert (frame.min_pos, frame.max_pos) == (0, 9)
        assert frame.plane == 8
        assert frame.sample_length == pytest.approx(10 * H)

    def test_embedded_sample_frame(self):
        material = np.zeros((10, 10, 10), dtype=bool)
        material[3:7, 3:7, 2:6] = True
        grid = GridState.allocate(material, np.full(material.shape, 2600.0))
        frame = build_load_frame(grid, StressAxis.Z, H)
        assert (frame.min_pos, frame.max_pos, frame.plane) == (2, 5, 5)
        assert material_extent(material, StressAxis.X) == (3, 6)

    def test_missing_material(self):
        with pytest.raises(ValueError):
            material_extent(np.zeros((4, 4, 4), dtype=bool), StressAxis.Y)

    @pytest.mark.parametrize("axis, name", [(StressAxis.X, 'sxx'), (StressAxis.Y, 'syy'), (StressAxis.Z, 'szz')])
    def test_apply_axial_load(self, axis, name):
        grid = full_grid(n=6)
        frame = build_load_frame(grid, axis, H)
        loaded = apply_axial_load(grid, frame, 7e6)
        field = getattr(grid, name)
        assert loaded == 36
        plane = [slice(None)] * 3
        plane[axis.value] = 4
        assert np.all(field[tuple(plane)] == -7e6)
        assert np.count_nonzero(field) == 36

    def test_sample_strain(self):
        grid = full_grid(n=6)
        frame = build_load_frame(grid, StressAxis.Z, H)
        grid.uz[:, :, frame.plane] = -3e-6
        assert sample_strain(grid, frame) == pytest.approx(3e-6 / (6 * H))

    def test_sample_strain_ignores_fixed_frame(self):
        """外层固定体素 (位移恒为 0) 不参与平均"""
        grid = full_grid(n=6)
        frame = build_load_frame(grid, StressAxis.Z, H)
        grid.uz[1:-1, 1:-1, frame.plane] = -3e-6
        assert sample_strain(grid, frame) == pytest.approx(3e-6 / (6 * H))

    def test_held_load_survives_stress_update(self):
        """本构更新改写加载面后, 重新施加即恢复目标轴压"""
        grid = full_grid(n=6)
        frame = build_load_frame(grid, StressAxis.Z, H)
        apply_axial_load(grid, frame, 5e6)
        grid.vz[2:4, 2:4, frame.plane] = -0.01
        StressUpdater(IsotropicElastic(E=20000.0, nu=0.25), H).step(grid, 1e-7)
        assert not np.allclose(grid.szz[1:-1, 1:-1, frame.plane], -5e6)
        apply_axial_load(grid, frame, 5e6)
        assert np.all(grid.szz[:, :, frame.plane] == -5e6)


class TestFailureDetector:
    """测试破坏判定"""

    def setup_method(self):
        self.detector = FailureDetector(SolverConstants())
        self.material = np.ones((10, 10, 1), dtype=bool)

    def test_undamaged(self):
        damage = np.zeros((10, 10, 1))
        assert not self.detector.is_failed(self.detector.summarize(damage, self.material))

    def test_ratio_criterion(self):
        damage = np.zeros((10, 10, 1))
        damage.flat[:11] = 0.8       # 11% > 10%
        summary = self.detector.summarize(damage, self.material)
        assert summary.failed == 11
        assert self.detector.is_failed(summary)

        damage.flat[10] = 0.0        # 10% 不超过阈值
        assert not self.detector.is_failed(self.detector.summarize(damage, self.material))

    def test_max_damage_criterion(self):
        damage = np.zeros((10, 10, 1))
        damage[0, 0, 0] = 0.91
        assert self.detector.is_failed(self.detector.summarize(damage, self.material))

    def test_non_material_ignored(self):
        damage = np.full((10, 10, 1), 0.95)
        material = np.zeros((10, 10, 1), dtype=bool)
        material[0, 0, 0] = True
        damage[0, 0, 0] = 0.0
        assert not self.detector.is_failed(self.detector.summarize(damage, material))


class TestRunController:
    """测试运行状态机"""

    def test_lifecycle(self):
        controller = RunController()
        assert controller.state is RunState.IDLE
        controller.begin()
        assert controller.state is RunState.RUNNING
        assert controller.finish() is RunState.COMPLETED

    def test_begin_twice(self):
        controller = RunController()
        controller.begin()
        with pytest.raises(RuntimeError):
            controller.begin()

    def test_pause_sources_are_independent(self):
        controller = RunController()
        controller.begin()
        controller.hold_for_failure()
        controller.pause()
        assert controller.state is RunState.PAUSED

        # resume 不解除破坏保持
        assert controller.resume()
        assert controller.state is RunState.PAUSED
        # continue_after_failure 解除破坏保持
        assert controller.continue_after_failure()
        assert controller.state is RunState.RUNNING
        assert not controller.continue_after_failure()

    def test_cancel_is_terminal(self):
        controller = RunController()
        controller.begin()
        controller.pause()
        assert controller.cancel()
        assert controller.state is RunState.CANCELLED
        assert not controller.wait_while_paused()
        assert not controller.pause()
        assert controller.finish() is RunState.CANCELLED

    def test_quiescent_refuses_while_stepping(self):
        controller = RunController()
        with controller.stepping():
            with pytest.raises(RuntimeError):
                with controller.quiescent():
                    pass
        with controller.quiescent():
            pass
