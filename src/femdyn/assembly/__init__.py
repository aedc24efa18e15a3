"""
Assembly Module
===============

Global matrix and vector assembly, and boundary condition processing.
"""

from .assemblers import (
    SparseSystemMatrixAssembler,
    DiagonalSystemMatrixAssembler,
    SystemVectorAssembler,
)
from .global_assembly import (
    assemble_stiffness,
    assemble_mass,
    rayleigh_damping,
    nonzero_ebc_load,
)
from .boundary_conditions import EssentialBC, TractionBC, BoundaryConditionManager

__all__ = [
    "SparseSystemMatrixAssembler",
    "DiagonalSystemMatrixAssembler",
    "SystemVectorAssembler",
    "assemble_stiffness",
    "assemble_mass",
    "rayleigh_damping",
    "nonzero_ebc_load",
    "EssentialBC",
    "TractionBC",
    "BoundaryConditionManager",
]
