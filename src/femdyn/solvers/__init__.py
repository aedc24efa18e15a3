"""
Solvers Module
==============

Explicit centered-difference time integration of linear elastodynamics.
"""

from .config import ExplicitDynamicsConfig
from .central_difference import CentralDifferenceIntegrator, DynamicState, IntegratorStatus
from .explicit_dynamics import ExplicitDynamicsSolver, InitialCondition

__all__ = [
    "ExplicitDynamicsConfig",
    "CentralDifferenceIntegrator",
    "DynamicState",
    "IntegratorStatus",
    "ExplicitDynamicsSolver",
    "InitialCondition",
]
