"""
Boundary Conditions
===================

Essential (prescribed displacement) and traction boundary conditions, and
the manager that applies them to the displacement field and turns them into
load vectors on the free DOFs.

Conflicts between essential conditions on the same (node, component) are
resolved by application order: the condition listed last wins.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Union, TYPE_CHECKING

from ..elements import (IntegrationRule, default_rule, jacobian_matrix,
                        jacobian_measure)
from ..exceptions import MeshError
from ..mesh import ElementSet
from .assemblers import SystemVectorAssembler
from .global_assembly import nonzero_ebc_load

if TYPE_CHECKING:
    from ..fields import NodalField
    from ..mesh import NodeSet
    from ..physics import DeformationModel

logger = logging.getLogger(__name__)

Value = Union[float, Callable[[float], float]]


@dataclass
class EssentialBC:
    """
    Prescribed displacement on a list of nodes.

    Attributes:
        node_list: node indices
        component: component index or indices; None for all components
        fixed_value: constant, or function of time
        is_fixed: False releases the DOFs instead of fixing them
        fixed_velocity: velocity of the fixed DOFs, constant or function
            of time
        time_dependent: True when fixed_value is a function; set once
    """
    node_list: Sequence[int]
    component: Union[int, Sequence[int], None] = None
    fixed_value: Value = 0.0
    is_fixed: bool = True
    fixed_velocity: Value = 0.0
    time_dependent: bool = field(init=False)

    def __post_init__(self):
        self.node_list = np.atleast_1d(np.asarray(self.node_list, dtype=np.int64))
        self.time_dependent = callable(self.fixed_value)

    @classmethod
    def from_element_set(cls, fes: ElementSet, **kwargs) -> 'EssentialBC':
        """Condition on all nodes connected by an element set."""
        return cls(fes.connected_nodes(), **kwargs)

    def value_at(self, time: float) -> float:
        """Prescribed displacement at a given time."""
        return self.fixed_value(time) if self.time_dependent else self.fixed_value

    def velocity_at(self, time: float) -> float:
        """Prescribed velocity at a given time."""
        return self.fixed_velocity(time) if callable(self.fixed_velocity) else self.fixed_velocity


@dataclass
class TractionBC:
    """
    Distributed traction on a set of boundary elements.

    Attributes:
        fes: boundary element set
        traction: traction vector (one entry per field component), or a
            function of time returning it
        integration_rule: quadrature on the boundary elements
            (default rule of the element type when None)
        other_dimension: thickness of plane models, 1 for solids
        time_dependent: True when traction is a function; set once
    """
    fes: ElementSet
    traction: Union[Sequence[float], Callable[[float], Sequence[float]]]
    integration_rule: Optional[IntegrationRule] = None
    other_dimension: float = 1.0
    time_dependent: bool = field(init=False)

    def __post_init__(self):
        if self.integration_rule is None:
            self.integration_rule = default_rule(self.fes.etype)
        if self.integration_rule.dim != self.fes.manifold_dim:
            raise MeshError(f"Integration rule of dimension {self.integration_rule.dim} "
                            f"does not match {self.fes.element_type} elements")
        self.time_dependent = callable(self.traction)

    def traction_at(self, time: float) -> np.ndarray:
        """Traction vector at a given time."""
        t = self.traction(time) if self.time_dependent else self.traction
        return np.atleast_1d(np.asarray(t, dtype=np.float64))

    def equivalent_load(self, geom: 'NodeSet', u: 'NodalField',
                        time: float = 0.0) -> np.ndarray:
        """
        Consistent nodal loads of the traction.

        F_(a,c) = Σ_e Σ_q N_a(ξ_q) t_c |J| w_q

        Args:
            geom: node coordinates
            u: numbered displacement field
            time: time at which the traction is evaluated

        Returns:
            F: shape (nfreedofs,), zero on fixed DOFs
        """
        t = self.traction_at(time)
        if t.size != u.dim:
            raise MeshError(f"Traction has {t.size} components, field has {u.dim}")
        assembler = SystemVectorAssembler(u.nfreedofs)
        conn = self.fes.conn
        dofnums = u.gather_dofnums(conn)
        etype = self.fes.etype
        for e in range(conn.shape[0]):
            X = geom.xyz[conn[e]]
            Fe = np.zeros((conn.shape[1], u.dim))
            for pc, w in self.integration_rule:
                N = etype.shape_functions(pc)
                J = jacobian_matrix(X, etype.shape_function_derivatives(pc))
                Fe += np.outer(N, t) * (jacobian_measure(J, self.other_dimension) * w)
            assembler.assemble(Fe.ravel(), dofnums[e])
        return assembler.make_vector()


class BoundaryConditionManager:
    """
    Apply essential conditions to a displacement field and build the loads
    of traction and nonzero essential conditions.

    Args:
        field: displacement field the conditions act on
        essential: essential conditions, in application order
        traction: traction conditions
    """

    def __init__(self, field: 'NodalField', essential: Sequence[EssentialBC] = (),
                 traction: Sequence[TractionBC] = ()):
        self.field = field
        self.essential: List[EssentialBC] = list(essential)
        self.traction: List[TractionBC] = list(traction)

    @property
    def any_time_dependent_essential(self) -> bool:
        """True if some essential condition prescribes a function of time."""
        return any(bc.time_dependent for bc in self.essential)

    @property
    def any_time_dependent_traction(self) -> bool:
        """True if some traction condition is a function of time."""
        return any(bc.time_dependent for bc in self.traction)

    def _set_all(self, time: float) -> None:
        for bc in self.essential:
            self.field.set_ebc(bc.node_list, bc.component, bc.is_fixed,
                               bc.value_at(time) if bc.is_fixed else 0.0)
        self.field.apply_ebc()

    def classify(self) -> int:
        """
        Mark fixed DOFs (values at t = 0) and number the free DOFs.

        Returns:
            number of free DOFs
        """
        self._set_all(0.0)
        nfree = self.field.number_dofs()
        logger.info("Field %r: %d free DOFs, %d fixed", self.field.name, nfree,
                    int(np.count_nonzero(self.field.is_fixed)))
        return nfree

    def apply(self, time: float) -> None:
        """
        Write the prescribed values at a given time into the field.

        Re-applying the same conditions never changes the classification,
        so the numbering stays valid.
        """
        self._set_all(time)

    def _fixed_array(self, time: float, time_dependent: Optional[bool],
                     velocity: bool = False) -> np.ndarray:
        values = np.zeros((self.field.n_nodes, self.field.dim))
        comps_all = np.arange(self.field.dim)
        for bc in self.essential:
            comps = comps_all if bc.component is None else np.atleast_1d(bc.component)
            idx = np.ix_(bc.node_list, comps)
            selected = time_dependent is None or bc.time_dependent == time_dependent
            if bc.is_fixed and selected:
                values[idx] = bc.velocity_at(time) if velocity else bc.value_at(time)
            else:
                values[idx] = 0.0
        return values

    def fixed_values(self, time: float,
                     time_dependent: Optional[bool] = None) -> np.ndarray:
        """
        Prescribed displacements of a subset of the essential conditions.

        Values are attributed by application order over the full list of
        conditions; DOFs whose last condition is outside the subset get zero.

        Args:
            time: evaluation time
            time_dependent: True or False to select only the time-dependent or
                time-independent conditions; None for all

        Returns:
            values: shape (n_nodes, dim)
        """
        return self._fixed_array(time, time_dependent)

    def fixed_velocities(self, time: float) -> np.ndarray:
        """Prescribed velocities of all fixed DOFs, shape (n_nodes, dim)."""
        return self._fixed_array(time, None, velocity=True)

    def equivalent_load(self, geom: 'NodeSet', time: float,
                        time_dependent: Optional[bool] = None) -> np.ndarray:
        """
        Loads of the traction conditions.

        Args:
            geom: node coordinates
            time: evaluation time
            time_dependent: select a subset of the tractions (None for all)

        Returns:
            F: shape (nfreedofs,)
        """
        F = np.zeros(self.field.nfreedofs)
        for bc in self.traction:
            if time_dependent is None or bc.time_dependent == time_dependent:
                F += bc.equivalent_load(geom, self.field, time)
        return F

    def nonzero_fixed_load(self, models: Sequence['DeformationModel'], geom: 'NodeSet',
                           time: float, time_dependent: Optional[bool] = None) -> np.ndarray:
        """
        Load on the free DOFs due to nonzero prescribed displacements.

        Args:
            models: deformation models of all regions
            geom: node coordinates
            time: evaluation time
            time_dependent: select a subset of the essential conditions

        Returns:
            F: shape (nfreedofs,)
        """
        values = self.fixed_values(time, time_dependent)
        if not np.any(values[self.field.is_fixed]):
            return np.zeros(self.field.nfreedofs)
        with self.field.fixed_value_overlay(values):
            return nonzero_ebc_load(models, geom, self.field)

    def summary(self) -> str:
        """Return summary of boundary conditions."""
        n_fixed = int(np.count_nonzero(self.field.is_fixed))
        lines = [f"Boundary Conditions Summary ({n_fixed} fixed DOFs):"]
        for i, bc in enumerate(self.essential):
            kind = "time-dependent" if bc.time_dependent else "constant"
            action = "fix" if bc.is_fixed else "release"
            comps = "all" if bc.component is None else bc.component
            lines.append(f"  - essential {i}: {action} {len(bc.node_list)} nodes, "
                         f"components {comps}, {kind}")
        for i, bc in enumerate(self.traction):
            kind = "time-dependent" if bc.time_dependent else "constant"
            lines.append(f"  - traction {i}: {bc.fes.n_elements} "
                         f"{bc.fes.element_type} elements, {kind}")
        return "\n".join(lines)
