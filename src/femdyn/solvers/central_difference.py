"""
Central Difference Integrator
=============================

Explicit centered-difference (Newmark β = 0, γ = 1/2) integration of

    M A + C V + K U = F(t)

with a lumped (diagonal) mass matrix M and optional Rayleigh damping C.

Per step:
    1. U1 = U0 + dt V0 + dt²/2 A0
    2. F = F(t + dt)
    3. (M + dt/2 C) A1 = F - K U1 - C (V0 + dt/2 A0)
    4. V1 = V0 + dt/2 (A0 + A1)

Without damping step 3 is a diagonal solve. With damping, C is split into
its diagonal and off-diagonal parts and step 3 is solved by fixed-point
iteration on the diagonal part; if the iteration budget is exhausted the
exact sparse solve is used instead.

The step is conditionally stable: dt < 2/ω_max, with ω_max² the largest
generalized eigenvalue of (K, M).
"""

import enum
import logging
import numpy as np
import scipy.linalg
import scipy.sparse as sp
from dataclasses import dataclass
from scipy.sparse.linalg import eigsh, factorized, ArpackError, ArpackNoConvergence
from typing import Callable, Optional, Union

from ..exceptions import (ConfigurationError, EigenvalueEstimationFailure,
                          FixedPointNonConvergence, InvalidDOFIndex,
                          NonFiniteStateError, SingularMassMatrix, SolverStateError)
from .config import ExplicitDynamicsConfig

logger = logging.getLogger(__name__)

# Systems up to this size use a dense eigenvalue solver
_DENSE_EIGEN_LIMIT = 500

# Relative tolerance for recognizing that a step lands on tend
_TIME_TOLERANCE = 1e-9


class IntegratorStatus(enum.Enum):
    """Life cycle of an integration run."""
    UNINITIALIZED = 'uninitialized'
    INITIALIZED = 'initialized'
    STEPPING = 'stepping'
    FINISHED = 'finished'


@dataclass(frozen=True)
class DynamicState:
    """
    Committed dynamic state; arrays are read-only snapshots.

    Attributes:
        U: displacement, shape (n,)
        V: velocity, shape (n,)
        A: acceleration, shape (n,)
        time: simulation time
        step: number of committed steps
        dt: size of the last committed step (nominal step before the first)
    """
    U: np.ndarray
    V: np.ndarray
    A: np.ndarray
    time: float
    step: int
    dt: float


def _snapshot(x: np.ndarray) -> np.ndarray:
    y = np.array(x, dtype=np.float64)
    y.flags.writeable = False
    return y


def _first_nonfinite(x: np.ndarray) -> Optional[int]:
    bad = np.flatnonzero(~np.isfinite(x))
    return int(bad[0]) if bad.size else None


class CentralDifferenceIntegrator:
    """
    Explicit time integrator on assembled system matrices.

    Attributes:
        K: stiffness matrix, CSR
        mass: lumped mass diagonal, shape (n,)
        C: damping matrix, CSR
        config: ExplicitDynamicsConfig
        status: IntegratorStatus
        dt: nominal time step (None until stepping starts, unless configured)
        n_steps: committed steps
        n_fixed_point_iterations: total iterations of the damped acceleration solve
        n_implicit_fallbacks: steps that needed the exact solve after the
            fixed-point iteration failed
    """

    def __init__(self, K: sp.spmatrix, M: Union[sp.spmatrix, np.ndarray],
                 C: Optional[sp.spmatrix] = None,
                 load: Union[Callable[[float], np.ndarray], np.ndarray, None] = None,
                 config: Optional[ExplicitDynamicsConfig] = None,
                 observer: Optional[Callable[[float, DynamicState], None]] = None):
        """
        Args:
            K: stiffness matrix, shape (n, n)
            M: lumped mass, diagonal sparse matrix or diagonal vector
            C: damping matrix (None for no damping)
            load: function of time returning F(t), a constant vector, or None
            config: solver options; tend is required
            observer: called as observer(time, state) after every committed step,
                and once for t = 0 when config.observe_initial_state is set

        Raises:
            SingularMassMatrix: if a mass entry is zero, negative or not finite
        """
        if config is None:
            raise ConfigurationError("A configuration with tend is required")
        self.config = config
        self.K = sp.csr_matrix(K)
        n = self.K.shape[0]

        if sp.issparse(M):
            mass = np.asarray(M.diagonal(), dtype=np.float64)
            offdiag = sp.csr_matrix(M) - sp.diags(mass)
            if offdiag.count_nonzero():
                raise ConfigurationError("Mass matrix must be diagonal (lumped)")
        else:
            mass = np.asarray(M, dtype=np.float64).ravel()
        if mass.shape[0] != n:
            raise ConfigurationError(f"Mass has {mass.shape[0]} entries, K has {n} rows")
        bad = np.flatnonzero(~np.isfinite(mass) | (mass <= 0.0))
        if bad.size:
            raise SingularMassMatrix(f"Lumped mass entry {int(bad[0])} is "
                                     f"{mass[bad[0]]!r}; all entries must be positive")
        self.mass = mass

        self.C = sp.csr_matrix((n, n)) if C is None else sp.csr_matrix(C)
        self._damped = self.C.count_nonzero() > 0
        self._c_diag = self.C.diagonal()
        self._c_rest = sp.csr_matrix(self.C - sp.diags(self._c_diag))
        self._c_rest.eliminate_zeros()
        self._exact_solver = None

        if load is None:
            self._load = lambda t: np.zeros(n)
        elif callable(load):
            self._load = load
        else:
            F = np.asarray(load, dtype=np.float64).ravel()
            self._load = lambda t: F
        self.observer = observer

        self.status = IntegratorStatus.UNINITIALIZED
        self.dt = config.dt
        self.n_steps = 0
        self.n_fixed_point_iterations = 0
        self.n_implicit_fallbacks = 0
        self._U = self._V = self._A = None
        self._time = 0.0
        self._last_dt = config.dt or 0.0

    @property
    def n_dofs(self) -> int:
        """Number of free DOFs."""
        return self.K.shape[0]

    @property
    def time(self) -> float:
        """Time of the last committed state."""
        return self._time

    @property
    def state(self) -> DynamicState:
        """Snapshot of the last committed state."""
        if self.status == IntegratorStatus.UNINITIALIZED:
            raise SolverStateError("Integrator has not been initialized")
        A = self._A if self._A is not None else np.zeros(self.n_dofs)
        return DynamicState(_snapshot(self._U), _snapshot(self._V), _snapshot(A),
                            self._time, self.n_steps, self._last_dt)

    def stable_time_step(self) -> float:
        """
        Stable time step from the dominant frequency of (K, M).

        dt = step_reduction * 2 / ω_max

        Returns:
            dt

        Raises:
            EigenvalueEstimationFailure: if the largest eigenvalue is not
                positive and finite, or the eigensolver fails
        """
        n = self.n_dofs
        if n == 0:
            raise EigenvalueEstimationFailure("System has no free DOFs")
        scale = sp.diags(1.0 / np.sqrt(self.mass))
        A = scale @ self.K @ scale
        try:
            if n <= _DENSE_EIGEN_LIMIT:
                omega2 = scipy.linalg.eigvalsh(A.toarray())[-1]
            else:
                omega2 = eigsh(A, k=1, which='LA', return_eigenvectors=False)[0]
        except (ArpackNoConvergence, ArpackError, np.linalg.LinAlgError) as exc:
            raise EigenvalueEstimationFailure(
                f"Eigenvalue estimation of (K, M) failed: {exc}") from exc
        if not np.isfinite(omega2) or omega2 <= 0.0:
            raise EigenvalueEstimationFailure(
                f"Largest eigenvalue of (K, M) is {omega2!r}; K must have a positive "
                f"eigenvalue (give dt explicitly for systems without stiffness)")
        omega = float(np.sqrt(omega2))
        dt = self.config.step_reduction * 2.0 / omega
        logger.info("Dominant angular frequency %.6g rad/s, stable time step %.6g s",
                    omega, dt)
        return dt

    def initialize(self, U0: Optional[np.ndarray] = None,
                   V0: Optional[np.ndarray] = None) -> DynamicState:
        """
        Set the initial displacement and velocity (zero when omitted).

        The initial acceleration is computed when stepping starts, from the
        load at t = 0 alone unless config.initial_acceleration is
        'equilibrium'.
        """
        if self.status != IntegratorStatus.UNINITIALIZED:
            raise SolverStateError(f"Cannot initialize in status {self.status.value}")
        n = self.n_dofs
        self._U = np.zeros(n) if U0 is None else np.array(U0, dtype=np.float64).ravel()
        self._V = np.zeros(n) if V0 is None else np.array(V0, dtype=np.float64).ravel()
        for name, x in (('U0', self._U), ('V0', self._V)):
            if x.size != n:
                raise InvalidDOFIndex(f"{name} has length {x.size}, expected {n}")
        self._time = 0.0
        self.status = IntegratorStatus.INITIALIZED
        return self.state

    def _start_stepping(self) -> None:
        if self.dt is None:
            self.dt = self.stable_time_step()
        self._last_dt = self.dt
        # A0 = M^-1 F0
        R0 = self._load(0.0)
        if self.config.initial_acceleration == 'equilibrium':
            R0 = R0 - self.K @ self._U - self.C @ self._V
        A0 = R0 / self.mass
        dof = _first_nonfinite(A0)
        if dof is not None:
            raise NonFiniteStateError(0.0, 0, 0.0, 'acceleration', dof)
        self._A = A0
        self.status = IntegratorStatus.STEPPING
        logger.info("Starting explicit integration: %d DOFs, dt = %.6g, tend = %.6g, "
                    "damping %s", self.n_dofs, self.dt, self.config.tend,
                    "on" if self._damped else "off")
        if self.config.observe_initial_state and self.observer is not None:
            self.observer(self._time, self.state)

    def _exact_solve(self, rhs: np.ndarray, dt: float) -> np.ndarray:
        """Solve (M + dt/2 C) A = rhs; the factorization is reused while dt is unchanged."""
        if self._exact_solver is None or self._exact_solver[0] != dt:
            lhs = sp.csc_matrix(sp.diags(self.mass) + (dt / 2.0) * self.C)
            self._exact_solver = (dt, factorized(lhs))
        return self._exact_solver[1](rhs)

    def _fixed_point(self, rhs: np.ndarray, A0: np.ndarray, dt: float) -> np.ndarray:
        """
        Iterate A <- (M + dt/2 Cdiag)^-1 (rhs - dt/2 Crest A).

        Raises:
            FixedPointNonConvergence: if the increment does not drop below
                acceleration_tolerance times the predictor norm
        """
        d = self.mass + (dt / 2.0) * self._c_diag
        A1 = (rhs - (dt / 2.0) * (self._c_rest @ A0)) / d
        reference = np.linalg.norm(A1)
        tol = self.config.acceleration_tolerance * reference
        increment = np.inf
        for _ in range(self.config.max_fixed_point_iterations):
            previous = A1
            A1 = (rhs - (dt / 2.0) * (self._c_rest @ A1)) / d
            self.n_fixed_point_iterations += 1
            increment = np.linalg.norm(previous - A1)
            if increment <= tol:
                return A1
        raise FixedPointNonConvergence(self.config.max_fixed_point_iterations,
                                       float(increment), float(reference))

    def _acceleration(self, rhs: np.ndarray, A0: np.ndarray, dt: float,
                      time: float) -> np.ndarray:
        if not self._damped:
            return rhs / self.mass
        if self.config.implicit_solve:
            return self._exact_solve(rhs, dt)
        try:
            return self._fixed_point(rhs, A0, dt)
        except FixedPointNonConvergence as exc:
            logger.debug("t = %.6g: %s; using exact solve", time, exc)
            self.n_implicit_fallbacks += 1
            return self._exact_solve(rhs, dt)

    def step(self) -> DynamicState:
        """
        Advance by one step and commit the new state.

        The last step is shortened so that the run ends exactly at tend.

        Returns:
            the committed state

        Raises:
            SolverStateError: if not initialized or already finished
            NonFiniteStateError: if the new state has NaN or infinite
                entries; the step is not committed
        """
        if self.status == IntegratorStatus.UNINITIALIZED:
            raise SolverStateError("Call initialize() before stepping")
        if self.status == IntegratorStatus.FINISHED:
            raise SolverStateError(f"Integration finished at t = {self._time:.6g}")
        if self.status == IntegratorStatus.INITIALIZED:
            self._start_stepping()

        tend = self.config.tend
        t0, dt = self._time, self.dt
        last = t0 + dt >= tend - _TIME_TOLERANCE * dt
        if last:
            dt = tend - t0
        t1 = tend if last else t0 + dt
        step = self.n_steps + 1
        U0, V0, A0 = self._U, self._V, self._A

        U1 = U0 + dt * V0 + (dt ** 2 / 2.0) * A0
        F = self._load(t1)
        rhs = F - self.K @ U1 - self.C @ (V0 + (dt / 2.0) * A0)
        A1 = self._acceleration(rhs, A0, dt, t1)
        V1 = V0 + (dt / 2.0) * (A0 + A1)

        for quantity, x in (('displacement', U1), ('acceleration', A1), ('velocity', V1)):
            dof = _first_nonfinite(x)
            if dof is not None:
                raise NonFiniteStateError(t1, step, t0, quantity, dof)

        self._U, self._V, self._A = U1, V1, A1
        self._time = t1
        self._last_dt = dt
        self.n_steps = step
        if last:
            self.status = IntegratorStatus.FINISHED

        state = self.state
        if self.observer is not None:
            self.observer(t1, state)
        return state

    def run(self) -> DynamicState:
        """
        Step until tend (initializing with zero state if needed).

        Returns:
            the final state
        """
        if self.status == IntegratorStatus.UNINITIALIZED:
            self.initialize()
        while self.status != IntegratorStatus.FINISHED:
            self.step()
        logger.info("Finished at t = %.6g after %d steps (%d fixed-point iterations, "
                    "%d exact-solve fallbacks)", self._time, self.n_steps,
                    self.n_fixed_point_iterations, self.n_implicit_fallbacks)
        return self.state
