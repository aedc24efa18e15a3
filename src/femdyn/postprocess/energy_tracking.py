"""
Energy Tracking
===============

Record kinetic and strain energy during explicit time integration.

    kinetic = 1/2 V^T M V
    strain  = 1/2 U^T K U

An EnergyTracker is an observer: pass it (or its bound method) as the
observer of a CentralDifferenceIntegrator or ExplicitDynamicsSolver.
"""

import numpy as np
import scipy.sparse as sp
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class EnergyRecord:
    """Energy quantities at a single committed step."""
    step: int
    time: float
    kinetic_energy: float
    strain_energy: float

    @property
    def total_energy(self) -> float:
        """Kinetic plus strain energy."""
        return self.kinetic_energy + self.strain_energy


class EnergyTracker:
    """
    Track energy quantities over the simulation.

    Args:
        K: stiffness matrix; taken from the solver when None
        M: mass matrix; taken from the solver when None
    """

    def __init__(self, K: Optional[sp.spmatrix] = None, M: Optional[sp.spmatrix] = None):
        self.K = K
        self.M = M
        self.records: List[EnergyRecord] = []

    def __call__(self, time: float, source) -> None:
        """
        Observer entry point.

        Args:
            time: time of the committed state
            source: DynamicState, or a solver exposing state, K and M
        """
        state = getattr(source, 'state', source)
        K = self.K if self.K is not None else source.K
        M = self.M if self.M is not None else source.M
        self.add_record(state.step, time, state.U, state.V, K, M)

    def add_record(self, step: int, time: float, U: np.ndarray, V: np.ndarray,
                   K: sp.spmatrix, M: sp.spmatrix) -> EnergyRecord:
        """
        Add a new energy record.

        Args:
            step: committed step index
            time: simulation time
            U: displacement, free DOFs
            V: velocity, free DOFs
            K: stiffness matrix
            M: mass matrix (sparse diagonal or diagonal vector)

        Returns:
            the new record
        """
        MV = M @ V if sp.issparse(M) else np.asarray(M) * V
        record = EnergyRecord(step=step, time=time,
                              kinetic_energy=0.5 * float(V @ MV),
                              strain_energy=0.5 * float(U @ (K @ U)))
        self.records.append(record)
        return record

    def get_arrays(self) -> Dict[str, np.ndarray]:
        """
        Get energy quantities as numpy arrays.

        Returns:
            Dictionary with keys: 'step', 'time', 'kinetic', 'strain', 'total'
        """
        return {
            'step': np.array([r.step for r in self.records], dtype=np.int64),
            'time': np.array([r.time for r in self.records]),
            'kinetic': np.array([r.kinetic_energy for r in self.records]),
            'strain': np.array([r.strain_energy for r in self.records]),
            'total': np.array([r.total_energy for r in self.records]),
        }

    def check_bounded(self, factor: float = 2.0,
                      reference: Optional[float] = None) -> bool:
        """
        Check that the total energy never exceeds factor * reference.

        Args:
            factor: allowed growth
            reference: reference energy (default: first recorded total)

        Returns:
            True if bounded (trivially True with no records)
        """
        if not self.records:
            return True
        total = self.get_arrays()['total']
        if reference is None:
            reference = total[0]
        return bool(np.all(np.isfinite(total)) and total.max() <= factor * abs(reference))

    def summary(self) -> str:
        """Return summary of the recorded energies."""
        if not self.records:
            return "Energy Summary: no records"
        total = self.get_arrays()['total']
        return (f"Energy Summary ({len(self.records)} steps): "
                f"total min {total.min():.6g}, max {total.max():.6g}, "
                f"final {total[-1]:.6g}")
