"""
Explicit Dynamics Solver
========================

Linear elastodynamics of a finite element model by centered differences.

Setup:
    1. Classify the displacement field with the essential conditions and
       number its free DOFs; the velocity field shares the classification.
    2. Assemble K, lumped M and Rayleigh C = αK + βM.
    3. Build the time-independent load: constant tractions plus the load of
       constant nonzero prescribed displacements.
    4. Set the initial displacement and velocity.

At every step the time-dependent tractions and prescribed displacements are
evaluated at the new time and added to the time-independent load.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Union

from ..assembly import (BoundaryConditionManager, EssentialBC, TractionBC,
                        assemble_mass, assemble_stiffness, rayleigh_damping)
from ..exceptions import ConfigurationError, NonFiniteStateError
from ..fields import NodalField
from ..mesh import NodeSet
from ..physics import DeformationModel
from .central_difference import CentralDifferenceIntegrator, DynamicState
from .config import ExplicitDynamicsConfig

logger = logging.getLogger(__name__)

InitialValue = Union[None, float, Sequence[float], Callable[[np.ndarray], np.ndarray]]


@dataclass
class InitialCondition:
    """
    Initial displacement and velocity.

    Each entry is a function of the (n_nodes, dim) coordinate array
    returning an (n_nodes, dim) array, a constant vector (or scalar) used
    for every node, or None for zero.
    """
    displacement: InitialValue = None
    velocity: InitialValue = None

    @staticmethod
    def evaluate(value: InitialValue, xyz: np.ndarray, dim: int) -> np.ndarray:
        """Nodal values of one initial-condition entry, shape (n_nodes, dim)."""
        n = xyz.shape[0]
        if value is None:
            return np.zeros((n, dim))
        if callable(value):
            result = np.asarray(value(xyz), dtype=np.float64)
            return result.reshape(n, dim)
        return np.broadcast_to(np.asarray(value, dtype=np.float64), (n, dim)).copy()


class ExplicitDynamicsSolver:
    """
    Finite element driver of the centered-difference integrator.

    Attributes:
        nodes: NodeSet
        regions: DeformationModel per region
        bcs: BoundaryConditionManager of the displacement field
        config: ExplicitDynamicsConfig
        u: displacement field, updated after every step
        v: velocity field, updated after every step
        K, M, C: assembled system matrices
        integrator: CentralDifferenceIntegrator
    """

    def __init__(self, nodes: NodeSet, regions: Sequence[DeformationModel],
                 boundary_conditions: Optional[Dict[str, Sequence]] = None,
                 config: Union[ExplicitDynamicsConfig, Dict, None] = None,
                 initial_condition: Optional[InitialCondition] = None,
                 observer: Optional[Callable[[float, 'ExplicitDynamicsSolver'], None]] = None):
        """
        Args:
            nodes: node set of the model
            regions: one DeformationModel per region
            boundary_conditions: dict with optional 'essential' (list of
                EssentialBC) and 'traction' (list of TractionBC) entries
            config: solver options (ExplicitDynamicsConfig or dict)
            initial_condition: initial displacement and velocity
            observer: called as observer(time, solver) after every committed step
                (and at t = 0 with config.observe_initial_state)
        """
        if config is None:
            raise ConfigurationError("A configuration with tend is required")
        if isinstance(config, dict):
            config = ExplicitDynamicsConfig.from_dict(config)
        if not regions:
            raise ConfigurationError("At least one region is required")
        boundary_conditions = dict(boundary_conditions or {})
        unknown = set(boundary_conditions) - {'essential', 'traction'}
        if unknown:
            raise ConfigurationError(f"Unknown boundary condition kinds: {sorted(unknown)}")

        self.nodes = nodes
        self.regions = list(regions)
        self.config = config
        self.observer = observer
        for model in self.regions:
            model.fes.validate(nodes)

        # DOF fields
        self.u = NodalField('displacement', nodes.n_nodes, nodes.dim)
        essential: Sequence[EssentialBC] = boundary_conditions.get('essential', ())
        traction: Sequence[TractionBC] = boundary_conditions.get('traction', ())
        self.bcs = BoundaryConditionManager(self.u, essential, traction)
        self.bcs.classify()
        self.v = self.u.copy('velocity')
        self.v.fixed_values = self.bcs.fixed_velocities(0.0)
        self.v.apply_ebc()
        logger.debug(self.bcs.summary())

        # System matrices
        self.K = assemble_stiffness(self.regions, nodes, self.u)
        self.M = assemble_mass(self.regions, nodes, self.u)
        self.C = rayleigh_damping(self.K, self.M, config.rayleigh_stiffness,
                                  config.rayleigh_mass)

        # Loads
        self._load_indep = (
            self.bcs.equivalent_load(nodes, 0.0, time_dependent=False)
            + self.bcs.nonzero_fixed_load(self.regions, nodes, 0.0, time_dependent=False)
        )

        # Initial conditions
        ic = initial_condition or InitialCondition()
        self.u.values = InitialCondition.evaluate(ic.displacement, nodes.xyz, nodes.dim)
        self.u.apply_ebc()
        self.v.values = InitialCondition.evaluate(ic.velocity, nodes.xyz, nodes.dim)
        self.v.apply_ebc()

        self.integrator = CentralDifferenceIntegrator(
            self.K, self.M, self.C, load=self._load, config=config,
            observer=self._on_step)
        self.integrator.initialize(self.u.gather_sysvec(), self.v.gather_sysvec())

    @property
    def time(self) -> float:
        """Time of the last committed state."""
        return self.integrator.time

    @property
    def dt(self) -> Optional[float]:
        """Nominal time step (known once stepping has started or if configured)."""
        return self.integrator.dt

    @property
    def state(self) -> DynamicState:
        """Last committed dynamic state (free DOFs)."""
        return self.integrator.state

    def stable_time_step(self) -> float:
        """Stable time step of the assembled system."""
        return self.integrator.stable_time_step()

    def _load(self, time: float) -> np.ndarray:
        F = self._load_indep.copy()
        if self.bcs.any_time_dependent_traction:
            F += self.bcs.equivalent_load(self.nodes, time, time_dependent=True)
        if self.bcs.any_time_dependent_essential:
            F += self.bcs.nonzero_fixed_load(self.regions, self.nodes, time,
                                             time_dependent=True)
        return F

    def _on_step(self, time: float, state: DynamicState) -> None:
        if self.bcs.any_time_dependent_essential:
            self.bcs.apply(time)
            self.v.fixed_values = self.bcs.fixed_velocities(time)
        self.u.scatter_sysvec(state.U)
        self.v.scatter_sysvec(state.V)
        if self.observer is not None:
            self.observer(time, self)

    def _translate(self, exc: NonFiniteStateError) -> NonFiniteStateError:
        if exc.dof is None:
            return exc
        return exc.with_dof(self.u.equation_to_dof(exc.dof))

    def step(self) -> DynamicState:
        """
        Advance one step; the fields are updated and the observer called.

        Raises:
            NonFiniteStateError: with dof given as (node, component)
        """
        try:
            return self.integrator.step()
        except NonFiniteStateError as exc:
            raise self._translate(exc) from exc

    def run(self) -> DynamicState:
        """
        Integrate to tend.

        Returns:
            final DynamicState

        Raises:
            EigenvalueEstimationFailure: before the first step, if no stable
                step can be computed
            NonFiniteStateError: with dof given as (node, component)
        """
        try:
            return self.integrator.run()
        except NonFiniteStateError as exc:
            raise self._translate(exc) from exc
