"""
Tests for Central Difference Integrator
=======================================
"""

import numpy as np
import pytest
import scipy.linalg
import scipy.sparse as sp
from scipy.sparse.linalg import ArpackNoConvergence

from femdyn.exceptions import (ConfigurationError, EigenvalueEstimationFailure,
                               NonFiniteStateError, SingularMassMatrix, SolverStateError)
from femdyn.solvers import (CentralDifferenceIntegrator, ExplicitDynamicsConfig,
                            IntegratorStatus)
from femdyn.solvers import central_difference


def spring_chain(k=1.0):
    """Two masses on springs: wall - k - m1 - k - m2."""
    K = sp.csr_matrix(k * np.array([[2.0, -1.0], [-1.0, 1.0]]))
    M = sp.diags([1.0, 1.0], format='csr')
    return K, M


def energy(K, mass, state):
    return 0.5 * np.dot(state.V, mass * state.V) + 0.5 * np.dot(state.U, K @ state.U)


class TestSingleMass:
    """Free mass under a constant force."""

    def test_constant_acceleration_is_exact(self):
        config = ExplicitDynamicsConfig(tend=1.0, dt=0.1)
        integ = CentralDifferenceIntegrator(sp.csr_matrix((1, 1)), np.array([1.0]),
                                            load=np.array([1.0]), config=config)
        final = integ.run()
        assert integ.n_steps == 10
        assert final.time == 1.0
        assert np.isclose(final.U[0], 0.5)
        assert np.isclose(final.V[0], 1.0)
        assert np.isclose(final.A[0], 1.0)
        assert integ.status == IntegratorStatus.FINISHED

    def test_last_step_truncated(self):
        times, steps = [], []
        config = ExplicitDynamicsConfig(tend=1.0, dt=0.37)
        integ = CentralDifferenceIntegrator(
            sp.csr_matrix((1, 1)), np.array([1.0]), load=np.array([1.0]), config=config,
            observer=lambda t, s: (times.append(t), steps.append(s.dt)))
        final = integ.run()
        assert np.allclose(times, [0.37, 0.74, 1.0])
        assert times[-1] == 1.0
        assert np.allclose(steps, [0.37, 0.37, 0.26])
        assert np.isclose(final.U[0], 0.5)

    def test_time_dependent_load(self):
        config = ExplicitDynamicsConfig(tend=0.2, dt=0.1)
        integ = CentralDifferenceIntegrator(sp.csr_matrix((1, 1)), np.array([2.0]),
                                            load=lambda t: np.array([10.0 * t]), config=config)
        integ.initialize()
        integ.step()
        assert np.isclose(integ.state.A[0], 0.5)

    def test_initial_acceleration_from_load(self):
        config = ExplicitDynamicsConfig(tend=1.0, dt=0.01)
        integ = CentralDifferenceIntegrator(sp.csr_matrix([[1.0]]), np.array([2.0]),
                                            load=np.array([0.5]), config=config)
        integ.initialize(U0=[1.0])
        state = integ.step()
        # A0 = F0 / M, the spring force of U0 enters at the first step
        assert np.isclose(state.U[0], 1.0 + 0.5 * 0.01 ** 2 * 0.25)
        assert np.isclose(state.A[0], (0.5 - state.U[0]) / 2.0)

    def test_initial_displacement_without_load(self):
        config = ExplicitDynamicsConfig(tend=1.0, dt=0.1)
        integ = CentralDifferenceIntegrator(sp.csr_matrix([[1.0]]), np.array([2.0]),
                                            config=config)
        integ.initialize(U0=[1.0])
        state = integ.step()
        assert state.U[0] == 1.0
        assert np.isclose(state.V[0], 0.5 * 0.1 * (-0.5))

    def test_initial_acceleration_in_equilibrium(self):
        config = ExplicitDynamicsConfig(tend=1.0, dt=0.01, initial_acceleration='equilibrium')
        integ = CentralDifferenceIntegrator(sp.csr_matrix([[1.0]]), np.array([2.0]),
                                            config=config)
        integ.initialize(U0=[1.0])
        state = integ.step()
        assert np.isclose(state.U[0], 1.0 - 0.5 * 0.01 ** 2 * 0.5)


class TestStability:
    """Stable step estimate and behavior around it."""

    def test_stable_time_step(self):
        K, M = spring_chain(k=4.0)
        config = ExplicitDynamicsConfig(tend=1.0, step_reduction=0.9)
        integ = CentralDifferenceIntegrator(K, M, config=config)
        omega_max = np.sqrt(4.0 * (3.0 + np.sqrt(5.0)) / 2.0)
        assert np.isclose(integ.stable_time_step(), 0.9 * 2.0 / omega_max)

    def test_energy_bounded_at_stable_step(self):
        K, M = spring_chain()
        estimator = CentralDifferenceIntegrator(K, M, config=ExplicitDynamicsConfig(tend=1.0))
        dt = estimator.stable_time_step()
        energies = []
        config = ExplicitDynamicsConfig(tend=80 * dt, dt=dt, initial_acceleration='equilibrium')
        integ = CentralDifferenceIntegrator(
            K, M, config=config,
            observer=lambda t, s: energies.append(energy(K, np.ones(2), s)))
        initial = integ.initialize(U0=[0.1, 0.2])
        e0 = energy(K, np.ones(2), initial)
        integ.run()
        assert integ.n_steps == 80
        assert max(energies) <= 1.01 * e0
        assert min(energies) > 0.0

    def test_energy_bounded_from_load_start(self):
        K, M = spring_chain()
        estimator = CentralDifferenceIntegrator(K, M, config=ExplicitDynamicsConfig(tend=1.0))
        dt = estimator.stable_time_step()
        energies = []
        integ = CentralDifferenceIntegrator(
            K, M, config=ExplicitDynamicsConfig(tend=400 * dt, dt=dt),
            observer=lambda t, s: energies.append(energy(K, np.ones(2), s)))
        e0 = energy(K, np.ones(2), integ.initialize(U0=[0.1, 0.2]))
        integ.run()
        # Exact energy oscillates around e0 by at most 1 / (1 - (ω_max dt / 2)²)
        assert max(energies) <= e0 / (1.0 - 0.99 ** 2) * 1.001
        assert min(energies) > 0.0

    def test_stable_time_step_large_system(self):
        n = 800
        main = np.full(n, 2.0)
        main[-1] = 1.0
        K = sp.diags([-np.ones(n - 1), main, -np.ones(n - 1)], [-1, 0, 1], format='csr')
        mass = np.linspace(1.0, 3.0, n)
        integ = CentralDifferenceIntegrator(K, mass, config=ExplicitDynamicsConfig(tend=1.0))
        omega2 = scipy.linalg.eigh(K.toarray(), np.diag(mass), eigvals_only=True)[-1]
        assert np.isclose(integ.stable_time_step(), 0.99 * 2.0 / np.sqrt(omega2), rtol=1e-8)

    def test_eigensolver_failure(self, monkeypatch):
        def no_convergence(*args, **kwargs):
            raise ArpackNoConvergence("ARPACK did not converge", np.array([]), np.array([]))

        monkeypatch.setattr(central_difference, 'eigsh', no_convergence)
        n = 600
        K = sp.diags([np.full(n, 2.0)], [0], format='csr')
        integ = CentralDifferenceIntegrator(K, np.ones(n), config=ExplicitDynamicsConfig(tend=1.0))
        with pytest.raises(EigenvalueEstimationFailure) as info:
            integ.run()
        assert isinstance(info.value.__cause__, ArpackNoConvergence)
        assert integ.status == IntegratorStatus.INITIALIZED

    def test_unstable_step_blows_up(self):
        K, M = spring_chain()
        estimator = CentralDifferenceIntegrator(K, M, config=ExplicitDynamicsConfig(
            tend=1.0, step_reduction=1.0))
        dt = 1.2 * estimator.stable_time_step()
        config = ExplicitDynamicsConfig(tend=60 * dt, dt=dt)
        integ = CentralDifferenceIntegrator(K, M, config=config)
        initial = integ.initialize(U0=[0.1, 0.2])
        final = integ.run()
        assert energy(K, np.ones(2), final) > 1e6 * energy(K, np.ones(2), initial)

    def test_overflow_raises_non_finite(self):
        K, M = spring_chain()
        config = ExplicitDynamicsConfig(tend=1e4, dt=10.0)
        integ = CentralDifferenceIntegrator(K, M, config=config)
        integ.initialize(U0=[1.0, 0.0])
        with np.errstate(over='ignore', invalid='ignore'):
            with pytest.raises(NonFiniteStateError) as info:
                integ.run()
        err = info.value
        assert err.step == integ.n_steps + 1
        assert err.last_valid_time == integ.time
        assert err.dof in (0, 1)
        assert np.all(np.isfinite(integ.state.U))

    def test_no_stiffness_without_dt(self):
        config = ExplicitDynamicsConfig(tend=1.0)
        integ = CentralDifferenceIntegrator(sp.csr_matrix((2, 2)), np.ones(2), config=config)
        with pytest.raises(EigenvalueEstimationFailure):
            integ.run()


class TestDamping:
    """Fixed-point acceleration solve and its exact fallback."""

    def _run(self, **options):
        K, M = spring_chain()
        C = 0.05 * K + 0.1 * M
        config = ExplicitDynamicsConfig(tend=5.0, dt=0.1, **options)
        integ = CentralDifferenceIntegrator(K, M, C, config=config)
        integ.initialize(U0=[0.1, 0.2], V0=[0.0, -0.3])
        return integ, integ.run()

    def test_fixed_point_matches_exact_solve(self):
        _, exact = self._run(implicit_solve=True)
        integ, fixed = self._run(max_fixed_point_iterations=50, acceleration_tolerance=1e-12)
        assert integ.n_fixed_point_iterations > 0
        assert integ.n_implicit_fallbacks == 0
        assert np.allclose(fixed.U, exact.U, rtol=1e-8, atol=1e-12)
        assert np.allclose(fixed.V, exact.V, rtol=1e-8, atol=1e-12)

    def test_fallback_on_non_convergence(self):
        _, exact = self._run(implicit_solve=True)
        integ, fallback = self._run(max_fixed_point_iterations=1, acceleration_tolerance=1e-15)
        assert integ.n_implicit_fallbacks == integ.n_steps
        assert np.allclose(fallback.U, exact.U)
        assert np.allclose(fallback.A, exact.A)

    def test_damping_dissipates(self):
        integ, final = self._run(implicit_solve=True)
        # 0.5 V0.M.V0 + 0.5 U0.K.U0
        initial = 0.045 + 0.01
        assert energy(integ.K, integ.mass, final) < 0.8 * initial


class TestLifeCycle:
    """Construction checks and state transitions."""

    def test_singular_mass(self):
        K, _ = spring_chain()
        with pytest.raises(SingularMassMatrix):
            CentralDifferenceIntegrator(K, np.array([1.0, 0.0]),
                                        config=ExplicitDynamicsConfig(tend=1.0))

    def test_consistent_mass_rejected(self):
        K, _ = spring_chain()
        M = sp.csr_matrix([[2.0, 1.0], [1.0, 2.0]])
        with pytest.raises(ConfigurationError):
            CentralDifferenceIntegrator(K, M, config=ExplicitDynamicsConfig(tend=1.0))

    def test_missing_config(self):
        K, M = spring_chain()
        with pytest.raises(ConfigurationError):
            CentralDifferenceIntegrator(K, M)

    def test_step_before_initialize(self):
        K, M = spring_chain()
        integ = CentralDifferenceIntegrator(K, M, config=ExplicitDynamicsConfig(tend=1.0))
        with pytest.raises(SolverStateError):
            integ.step()

    def test_step_after_finish(self):
        K, M = spring_chain()
        integ = CentralDifferenceIntegrator(K, M, config=ExplicitDynamicsConfig(tend=1.0))
        integ.run()
        with pytest.raises(SolverStateError):
            integ.step()

    def test_observer_called_once_per_step(self):
        K, M = spring_chain()
        calls = []
        integ = CentralDifferenceIntegrator(K, M, config=ExplicitDynamicsConfig(tend=2.0),
                                            observer=lambda t, s: calls.append((t, s.step)))
        integ.initialize(U0=[0.0, 1.0])
        integ.run()
        assert len(calls) == integ.n_steps
        assert [c[1] for c in calls] == list(range(1, integ.n_steps + 1))
        assert calls[-1][0] == 2.0

    def test_observer_sees_initial_state(self):
        K, M = spring_chain()
        calls = []
        config = ExplicitDynamicsConfig(tend=1.0, dt=0.5, observe_initial_state=True)
        integ = CentralDifferenceIntegrator(K, M, load=np.array([0.0, 2.0]), config=config,
                                            observer=lambda t, s: calls.append((t, s)))
        integ.initialize(U0=[0.0, 1.0])
        integ.run()
        assert [(t, s.step) for t, s in calls] == [(0.0, 0), (0.5, 1), (1.0, 2)]
        initial = calls[0][1]
        assert np.allclose(initial.U, [0.0, 1.0])
        assert np.allclose(initial.A, [0.0, 2.0])
        assert initial.dt == 0.5

    def test_state_is_read_only(self):
        K, M = spring_chain()
        integ = CentralDifferenceIntegrator(K, M, config=ExplicitDynamicsConfig(tend=1.0))
        state = integ.initialize(U0=[1.0, 0.0])
        with pytest.raises(ValueError):
            state.U[0] = 2.0
