"""
Mesh Module
===========

Node sets, homogeneous element sets, structured generators and mesh I/O.
"""

from .node_set import NodeSet
from .element_set import ElementSet
from .mesh_generators import line_mesh, rectangle_mesh, block_mesh, to_quadratic
from .mesh_io import read_mesh, write_mesh

__all__ = [
    "NodeSet",
    "ElementSet",
    "line_mesh",
    "rectangle_mesh",
    "block_mesh",
    "to_quadratic",
    "read_mesh",
    "write_mesh",
]
