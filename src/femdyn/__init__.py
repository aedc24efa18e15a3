"""
femdyn
======

Finite element assembly and explicit time integration of linear
elastodynamics.

Modules:
    mesh: Node sets, element sets, structured generators and mesh I/O
    elements: Element capability sets, integration rules, Jacobian geometry
    physics: Elastic materials and element stiffness/mass operators
    fields: Nodal DOF fields and equation numbering
    assembly: Global assembly and boundary conditions
    solvers: Centered-difference integrator and finite element driver
    postprocess: Energy tracking, integration-point reductions, plots
"""

from . import exceptions
from . import mesh
from . import elements
from . import physics
from . import fields
from . import assembly
from . import solvers
from . import postprocess
from .logging_config import setup_logging

__version__ = "0.1.0"
__all__ = ["exceptions", "mesh", "elements", "physics", "fields", "assembly",
           "solvers", "postprocess", "setup_logging"]
