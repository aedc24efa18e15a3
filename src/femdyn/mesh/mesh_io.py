"""
Mesh I/O Functions
==================

Read and write meshes and nodal results through meshio.

The node orderings of all supported element types coincide with the VTK
orderings meshio uses, so connectivity is passed through unchanged.
"""

import logging
import meshio
import numpy as np
from typing import Dict, List, Optional, Tuple

from ..exceptions import MeshError
from .node_set import NodeSet
from .element_set import ElementSet

logger = logging.getLogger(__name__)


_TO_MESHIO = {
    'P1': 'vertex',
    'L2': 'line',
    'L3': 'line3',
    'T3': 'triangle',
    'T6': 'triangle6',
    'Q4': 'quad',
    'Q8': 'quad8',
    'T4': 'tetra',
    'T10': 'tetra10',
    'H8': 'hexahedron',
    'H20': 'hexahedron20',
}
_FROM_MESHIO = {v: k for k, v in _TO_MESHIO.items()}


def read_mesh(filename: str, dim: Optional[int] = None) -> Tuple[NodeSet, List[ElementSet]]:
    """
    Read a mesh file in any format meshio understands.

    Cell blocks of unsupported types are skipped with a warning.

    Args:
        filename: path to the mesh file
        dim: number of coordinates to keep (default: all meshio points columns)

    Returns:
        (NodeSet, list of ElementSet), one element set per cell block
    """
    mesh_data = meshio.read(filename)
    points = mesh_data.points if dim is None else mesh_data.points[:, :dim]
    nodes = NodeSet(points)

    element_sets = []
    for cell_block in mesh_data.cells:
        tag = _FROM_MESHIO.get(cell_block.type)
        if tag is None:
            logger.warning("Skipping unsupported cell type %r in %s",
                           cell_block.type, filename)
            continue
        fes = ElementSet(tag, cell_block.data, label=cell_block.type)
        fes.validate(nodes)
        element_sets.append(fes)

    if not element_sets:
        raise MeshError(f"No supported cells found in {filename}")
    logger.info("Read %d nodes and %d element sets from %s",
                nodes.n_nodes, len(element_sets), filename)
    return nodes, element_sets


def write_mesh(filename: str, nodes: NodeSet, element_sets: List[ElementSet],
               point_data: Optional[Dict[str, np.ndarray]] = None) -> None:
    """
    Write a mesh with optional nodal fields (e.g. displacement) to a file.

    Args:
        filename: output filename; the extension selects the format (.vtu, .vtk, ...)
        nodes: node set
        element_sets: element sets to write as cell blocks
        point_data: dict of nodal arrays, shape (n_nodes,) or (n_nodes, k)
    """
    points = nodes.xyz
    if nodes.dim < 3:
        points = np.column_stack([points, np.zeros((nodes.n_nodes, 3 - nodes.dim))])
    cells = [(_TO_MESHIO[fes.element_type], fes.conn) for fes in element_sets]

    point_data = dict(point_data) if point_data else {}
    for name, data in point_data.items():
        data = np.asarray(data, dtype=np.float64)
        if data.shape[0] != nodes.n_nodes:
            raise MeshError(f"Point data {name!r} has {data.shape[0]} rows, "
                            f"expected {nodes.n_nodes}")
        # Vector fields are written with three components
        if data.ndim == 2 and data.shape[1] < 3:
            data = np.column_stack([data, np.zeros((nodes.n_nodes, 3 - data.shape[1]))])
        point_data[name] = data

    meshio.write(filename, meshio.Mesh(points=points, cells=cells,
                                       point_data=point_data))
    logger.debug("Wrote mesh to %s", filename)
