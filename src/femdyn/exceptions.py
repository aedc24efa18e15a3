"""
Exceptions
==========

Error taxonomy for mesh validation, DOF bookkeeping and time integration.

Setup errors (mesh, configuration, DOF access) are raised eagerly, before any
time stepping. Numerical errors raised during stepping are fatal, with the
exception of FixedPointNonConvergence which the integrator recovers from.
"""

from typing import Optional


class FEMError(Exception):
    """Base class for all femdyn errors."""


class MeshError(FEMError, ValueError):
    """Malformed node set, element set or connectivity."""


class ConfigurationError(FEMError, ValueError):
    """Invalid or unknown solver configuration option."""


class InvalidDOFIndex(FEMError, IndexError):
    """Node, component or equation index out of range for a field."""


class FieldNumberingError(FEMError):
    """Field accessed by equation number before its DOFs were numbered."""


class SingularMassMatrix(FEMError):
    """Lumped mass matrix has a zero, negative or non-finite entry."""


class EigenvalueEstimationFailure(FEMError):
    """The dominant eigenvalue of (K, M) could not be estimated."""


class FixedPointNonConvergence(FEMError):
    """
    Fixed-point acceleration iteration exhausted its budget.

    Recoverable: the integrator falls back to an exact solve.
    """

    def __init__(self, iterations: int, increment: float, reference: float):
        self.iterations = iterations
        self.increment = increment
        self.reference = reference
        super().__init__(
            f"fixed-point iteration did not converge in {iterations} iterations "
            f"(|dA| = {increment:.3e}, |A| = {reference:.3e})"
        )


class SolverStateError(FEMError, RuntimeError):
    """Integrator operation not permitted in its current state."""


class NonFiniteStateError(FEMError):
    """
    NaN or infinity appeared in the dynamic state.

    Attributes:
        time: simulation time of the step that failed
        step: index of the step that failed (1-based)
        last_valid_time: time of the last committed state
        quantity: 'displacement', 'velocity' or 'acceleration'
        dof: equation number of the first offending entry, or a
            (node, component) pair when the caller could resolve it
    """

    def __init__(self, time: float, step: int, last_valid_time: float,
                 quantity: str, dof=None, message: Optional[str] = None):
        self.time = time
        self.step = step
        self.last_valid_time = last_valid_time
        self.quantity = quantity
        self.dof = dof
        if message is None:
            message = (f"non-finite {quantity} at step {step}, t = {time:.6g} "
                       f"(dof {dof}); last valid time {last_valid_time:.6g}")
        super().__init__(message)

    def with_dof(self, dof) -> 'NonFiniteStateError':
        """Return a copy of the error with the DOF re-labelled."""
        return NonFiniteStateError(self.time, self.step, self.last_valid_time,
                                   self.quantity, dof)
