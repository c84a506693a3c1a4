# 文件: pytriax/tests/test_constitutive.py
"""
本构组件单元测试
"""

import numpy as np
import pytest

from pytriax.core.materials import (
    BrittleDamage,
    IsotropicElastic,
    MohrCoulomb,
    ScaledReturn,
    max_principal_stress,
    mean_stress,
    second_invariant,
)


def as_components(tensors):
    """(n, 3, 3) 张量 → 应力分量元组"""
    t = np.asarray(tensors, dtype=float)
    return (t[:, 0, 0], t[:, 1, 1], t[:, 2, 2], t[:, 0, 1], t[:, 0, 2], t[:, 1, 2])


def random_symmetric(n, scale, seed=0):
    rng = np.random.default_rng(seed)
    a = rng.normal(scale=scale, size=(n, 3, 3))
    return 0.5 * (a + np.transpose(a, (0, 2, 1)))


class TestIsotropicElastic:
    """测试各向同性弹性模型"""

    def test_lame_constants(self):
        E, nu = 20000.0, 0.25
        elastic = IsotropicElastic(E=E, nu=nu)
        E_pa = E * 1e6
        assert np.isclose(elastic.mu, E_pa / (2 * (1 + nu)))
        assert np.isclose(elastic.lam, E_pa * nu / ((1 + nu) * (1 - 2 * nu)))
        assert np.isclose(elastic.K, E_pa / (3 * (1 - 2 * nu)))

    @pytest.mark.parametrize("E, nu", [(0.0, 0.25), (-1.0, 0.25), (1000.0, 0.5), (1000.0, -1.0)])
    def test_invalid_constants(self, E, nu):
        with pytest.raises(ValueError):
            IsotropicElastic(E=E, nu=nu)

    def test_damaged_moduli(self):
        elastic = IsotropicElastic(E=20000.0, nu=0.25)
        lam, mu = elastic.damaged(np.array([0.0, 0.5, 0.95]))
        assert np.allclose(lam, elastic.lam * np.array([1.0, 0.5, 0.05]))
        assert np.allclose(mu, elastic.mu * np.array([1.0, 0.5, 0.05]))

    def test_uniaxial_strain_rate(self):
        """只有 ∂vx/∂x 时: dσxx = dt(λ+2μ)ε̇, dσyy = dσzz = dt·λ·ε̇"""
        elastic = IsotropicElastic(E=20000.0, nu=0.25)
        keys = ('xx', 'yy', 'zz', 'xy', 'yx', 'xz', 'zx', 'yz', 'zy')
        grad = {k: np.zeros(1) for k in keys}
        grad['xx'] = np.array([1e-3])
        dt = 1e-6
        dsxx, dsyy, dszz, dsxy, dsxz, dsyz = IsotropicElastic.stress_increment(
            grad, elastic.lam, elastic.mu, dt)
        assert np.isclose(dsxx[0], dt * elastic.M * 1e-3)
        assert np.isclose(dsyy[0], dt * elastic.lam * 1e-3)
        assert np.isclose(dszz[0], dt * elastic.lam * 1e-3)
        assert dsxy[0] == 0.0 and dsxz[0] == 0.0 and dsyz[0] == 0.0

    def test_shear_rate(self):
        elastic = IsotropicElastic(E=20000.0, nu=0.25)
        keys = ('xx', 'yy', 'zz', 'xy', 'yx', 'xz', 'zx', 'yz', 'zy')
        grad = {k: np.zeros(1) for k in keys}
        grad['xy'] = np.array([2e-3])
        grad['yx'] = np.array([1e-3])
        dt = 1e-6
        _, _, _, dsxy, _, _ = IsotropicElastic.stress_increment(grad, elastic.lam, elastic.mu, dt)
        assert np.isclose(dsxy[0], dt * elastic.mu * 3e-3)


class TestInvariants:
    """测试应力不变量"""

    def test_mean_and_j2(self):
        tensors = random_symmetric(20, 10e6)
        stress = as_components(tensors)
        expected_mean = np.trace(tensors, axis1=1, axis2=2) / 3.0
        assert np.allclose(mean_stress(stress), expected_mean)

        dev = tensors - expected_mean[:, None, None] * np.eye(3)
        expected_j2 = 0.5 * np.einsum('nij,nij->n', dev, dev)
        assert np.allclose(second_invariant(stress), expected_j2)


class TestMaxPrincipalStress:
    """测试最大主应力三次方程解"""

    def test_random_tensors(self):
        tensors = random_symmetric(200, 20e6, seed=1)
        expected = np.linalg.eigvalsh(tensors)[:, -1]
        result = max_principal_stress(as_components(tensors))
        assert np.allclose(result, expected, rtol=1e-6, atol=1e-2)

    def test_hydrostatic(self):
        """三重根"""
        p = -7e6
        stress = (np.array([p]), np.array([p]), np.array([p]),
                  np.zeros(1), np.zeros(1), np.zeros(1))
        assert np.isclose(max_principal_stress(stress)[0], p, rtol=1e-6)

    def test_repeated_roots(self):
        """二重根: diag(σ, 0, 0) 的两种符号"""
        for sigma in (5e6, -5e6):
            stress = (np.array([sigma]), np.zeros(1), np.zeros(1),
                      np.zeros(1), np.zeros(1), np.zeros(1))
            expected = max(sigma, 0.0)
            assert np.isclose(max_principal_stress(stress)[0], expected, atol=1.0)

    def test_zero_stress(self):
        stress = tuple(np.zeros(3) for _ in range(6))
        assert np.allclose(max_principal_stress(stress), 0.0)

    def test_pure_shear(self):
        tau = 3e6
        stress = (np.zeros(1), np.zeros(1), np.zeros(1),
                  np.array([tau]), np.zeros(1), np.zeros(1))
        assert np.isclose(max_principal_stress(stress)[0], tau, rtol=1e-6)


class TestMohrCoulomb:
    """测试 Mohr-Coulomb 屈服函数"""

    def test_hydrostatic_below_yield(self):
        yield_fn = MohrCoulomb(cohesion=10e6, friction_angle=30.0)
        p = -5e6
        stress = (np.array([p]), np.array([p]), np.array([p]),
                  np.zeros(1), np.zeros(1), np.zeros(1))
        assert yield_fn.evaluate(stress)[0] < 0

    def test_evaluate_formula(self):
        c, phi, pc = 2e6, 30.0, 1e6
        yield_fn = MohrCoulomb(cohesion=c, friction_angle=phi, confining=pc)
        tensors = random_symmetric(10, 10e6, seed=2)
        stress = as_components(tensors)
        tau = np.sqrt(second_invariant(stress))
        p = -mean_stress(stress) + pc
        s, k = np.sin(np.radians(phi)), np.cos(np.radians(phi))
        assert np.allclose(yield_fn.evaluate(stress), tau + p * s - c * k)

    def test_negative_cohesion(self):
        with pytest.raises(ValueError):
            MohrCoulomb(cohesion=-1.0, friction_angle=30.0)


class TestScaledReturn:
    """测试塑性修正"""

    def setup_method(self):
        self.plastic = ScaledReturn(MohrCoulomb(cohesion=1e6, friction_angle=30.0), scale_cap=0.95)

    def shear_state(self, tau):
        return (np.array([-1e6]), np.array([-1e6]), np.array([-1e6]),
                np.array([tau]), np.zeros(1), np.zeros(1))

    def test_elastic_state_unchanged(self):
        stress = self.shear_state(1e5)
        corrected, yielded = self.plastic.apply(stress)
        assert not yielded[0]
        for a, b in zip(stress, corrected):
            assert np.allclose(a, b)

    def test_yielding_state_scaled(self):
        stress = self.shear_state(20e6)
        corrected, yielded = self.plastic.apply(stress)
        assert yielded[0]
        # 平均应力不变, 剪应力减小
        assert np.isclose(mean_stress(corrected)[0], mean_stress(stress)[0])
        assert abs(corrected[3][0]) < abs(stress[3][0])
        yield_fn = self.plastic.yield_fn
        assert yield_fn.evaluate(corrected)[0] <= yield_fn.evaluate(stress)[0]

    def test_scale_capped(self):
        """超大剪应力一步最多缩减 95%"""
        stress = self.shear_state(1e12)
        corrected, _ = self.plastic.apply(stress)
        assert np.isclose(corrected[3][0], 1e12 * 0.05)

    def test_return_to_surface_when_not_capped(self):
        """未触及上限时一步回到屈服面 (p 不变)"""
        stress = self.shear_state(3e6)
        corrected, yielded = self.plastic.apply(stress)
        assert yielded[0]
        assert np.isclose(self.plastic.yield_fn.evaluate(corrected)[0], 0.0, atol=1.0)


class TestBrittleDamage:
    """测试脆性损伤修正"""

    def setup_method(self):
        self.brittle = BrittleDamage(tensile_strength=1e6, rate=0.01, max_overshoot=0.1, max_damage=0.95)

    def tensile_state(self, sigma, n=1):
        return (np.full(n, sigma), np.zeros(n), np.zeros(n),
                np.zeros(n), np.zeros(n), np.zeros(n))

    def test_below_strength_no_damage(self):
        stress = self.tensile_state(0.5e6)
        damage = np.zeros(1)
        corrected, new_damage, cracked = self.brittle.apply(stress, damage)
        assert not cracked[0]
        assert new_damage[0] == 0.0
        assert corrected[0][0] == 0.5e6

    def test_overshoot_increments_damage(self):
        stress = self.tensile_state(1.05e6)
        damage = np.zeros(1)
        corrected, new_damage, cracked = self.brittle.apply(stress, damage)
        assert cracked[0]
        # overshoot 0.05 → 0.05·0.01
        assert np.isclose(new_damage[0], 0.0005)
        assert np.isclose(corrected[0][0], 1.05e6 * (1 - 0.0005))

    def test_increment_capped(self):
        stress = self.tensile_state(100e6)
        _, new_damage, _ = self.brittle.apply(stress, np.zeros(1))
        assert np.isclose(new_damage[0], 0.1 * 0.01)

    def test_damage_capped(self):
        stress = self.tensile_state(100e6)
        _, new_damage, _ = self.brittle.apply(stress, np.array([0.9499]))
        assert new_damage[0] == pytest.approx(0.95)

    def test_damage_never_decreases(self):
        stress = self.tensile_state(0.0, n=3)
        damage = np.array([0.1, 0.5, 0.9])
        _, new_damage, _ = self.brittle.apply(stress, damage)
        assert np.all(new_damage >= damage)

    def test_input_damage_not_modified(self):
        damage = np.zeros(1)
        self.brittle.apply(self.tensile_state(5e6), damage)
        assert damage[0] == 0.0
