"""
Mesh Generators
===============

Structured meshes of bars, rectangles and blocks, and conversion of linear
meshes to their quadratic counterparts.
"""

import numpy as np
from typing import Dict, Tuple

from ..elements import H20, T6, T10
from ..exceptions import MeshError
from .node_set import NodeSet
from .element_set import ElementSet


# Linear type -> (quadratic type, corner pairs of the inserted mid-edge nodes)
_QUADRATIC_UPGRADE = {
    'L2': ('L3', ((0, 1),)),
    'T3': ('T6', T6.edges),
    'Q4': ('Q8', ((0, 1), (1, 2), (2, 3), (3, 0))),
    'T4': ('T10', T10.edges),
    'H8': ('H20', H20.edges),
}

# Kuhn split of the H8 cell into six tetrahedra along the 0-6 diagonal
_HEX_TO_TETS = ((0, 1, 2, 6), (0, 1, 5, 6), (0, 3, 2, 6),
                (0, 3, 7, 6), (0, 4, 5, 6), (0, 4, 7, 6))


def _orient_positive(xyz: np.ndarray, conn: np.ndarray) -> np.ndarray:
    """Swap the second and third node of simplices with negative volume."""
    X = xyz[conn]
    edges = X[:, 1:, :] - X[:, :1, :]
    vol = np.linalg.det(edges)
    flip = vol < 0
    conn = conn.copy()
    conn[flip, 1:3] = conn[flip][:, [2, 1]]
    return conn


def line_mesh(length: float, n_elements: int, element_type: str = 'L2',
              x0: float = 0.0) -> Tuple[NodeSet, ElementSet]:
    """
    Uniform mesh of the interval [x0, x0 + length].

    Args:
        length: length of the interval
        n_elements: number of elements
        element_type: 'L2' or 'L3'
        x0: left end

    Returns:
        (NodeSet, ElementSet)
    """
    if n_elements < 1 or length <= 0:
        raise MeshError("line_mesh needs n_elements >= 1 and length > 0")
    xyz = np.linspace(x0, x0 + length, n_elements + 1).reshape(-1, 1)
    conn = np.column_stack([np.arange(n_elements), np.arange(1, n_elements + 1)])
    nodes, fes = NodeSet(xyz), ElementSet('L2', conn)
    if element_type == 'L2':
        return nodes, fes
    if element_type == 'L3':
        return to_quadratic(nodes, fes)
    raise MeshError(f"line_mesh supports L2 and L3, got {element_type!r}")


def rectangle_mesh(Lx: float, Ly: float, nx: int, ny: int,
                   element_type: str = 'Q4') -> Tuple[NodeSet, ElementSet]:
    """
    Structured mesh of the rectangle [0, Lx] x [0, Ly].

    Triangles split each cell along the lower-left to upper-right diagonal.

    Args:
        Lx, Ly: domain dimensions
        nx, ny: number of divisions in x and y
        element_type: 'Q4', 'Q8', 'T3' or 'T6'

    Returns:
        (NodeSet, ElementSet)
    """
    n_nodes_x = nx + 1
    xs, ys = np.meshgrid(np.linspace(0.0, Lx, nx + 1), np.linspace(0.0, Ly, ny + 1))
    xyz = np.column_stack([xs.ravel(), ys.ravel()])

    def node_idx(i, j):
        return j * n_nodes_x + i

    quads = np.array([[node_idx(i, j), node_idx(i + 1, j),
                       node_idx(i + 1, j + 1), node_idx(i, j + 1)]
                      for j in range(ny) for i in range(nx)], dtype=np.int64)
    nodes = NodeSet(xyz)
    if element_type in ('Q4', 'Q8'):
        fes = ElementSet('Q4', quads)
    elif element_type in ('T3', 'T6'):
        tris = np.vstack([quads[:, [0, 1, 2]], quads[:, [0, 2, 3]]])
        fes = ElementSet('T3', tris)
    else:
        raise MeshError(f"rectangle_mesh supports Q4, Q8, T3 and T6, got {element_type!r}")
    if element_type in ('Q8', 'T6'):
        return to_quadratic(nodes, fes)
    return nodes, fes


def block_mesh(Lx: float, Ly: float, Lz: float, nx: int, ny: int, nz: int,
               element_type: str = 'H8') -> Tuple[NodeSet, ElementSet]:
    """
    Structured mesh of the block [0, Lx] x [0, Ly] x [0, Lz].

    Tetrahedral meshes split every hexahedral cell into six tetrahedra
    sharing the same cell diagonal, so neighbouring cells conform.

    Args:
        Lx, Ly, Lz: block dimensions
        nx, ny, nz: number of divisions along each axis
        element_type: 'H8', 'H20', 'T4' or 'T10'

    Returns:
        (NodeSet, ElementSet)
    """
    zs, ys, xs = np.meshgrid(np.linspace(0.0, Lz, nz + 1),
                             np.linspace(0.0, Ly, ny + 1),
                             np.linspace(0.0, Lx, nx + 1), indexing='ij')
    xyz = np.column_stack([xs.ravel(), ys.ravel(), zs.ravel()])

    def node_idx(i, j, k):
        return (k * (ny + 1) + j) * (nx + 1) + i

    hexes = []
    for k in range(nz):
        for j in range(ny):
            for i in range(nx):
                hexes.append([node_idx(i, j, k), node_idx(i + 1, j, k),
                              node_idx(i + 1, j + 1, k), node_idx(i, j + 1, k),
                              node_idx(i, j, k + 1), node_idx(i + 1, j, k + 1),
                              node_idx(i + 1, j + 1, k + 1), node_idx(i, j + 1, k + 1)])
    hexes = np.array(hexes, dtype=np.int64)
    nodes = NodeSet(xyz)
    if element_type in ('H8', 'H20'):
        fes = ElementSet('H8', hexes)
    elif element_type in ('T4', 'T10'):
        tets = np.vstack([hexes[:, list(t)] for t in _HEX_TO_TETS])
        fes = ElementSet('T4', _orient_positive(xyz, tets))
    else:
        raise MeshError(f"block_mesh supports H8, H20, T4 and T10, got {element_type!r}")
    if element_type in ('H20', 'T10'):
        return to_quadratic(nodes, fes)
    return nodes, fes


def to_quadratic(nodes: NodeSet, fes: ElementSet) -> Tuple[NodeSet, ElementSet]:
    """
    Insert mid-edge nodes to turn a linear mesh into a quadratic one.

    Edges shared between elements get a single new node; existing node
    numbers are kept and the new nodes are appended.

    Args:
        nodes: node set of the linear mesh
        fes: linear element set (L2, T3, Q4, T4 or H8)

    Returns:
        (NodeSet, ElementSet) of the quadratic mesh
    """
    if fes.element_type not in _QUADRATIC_UPGRADE:
        raise MeshError(f"No quadratic counterpart for {fes.element_type}")
    new_type, edges = _QUADRATIC_UPGRADE[fes.element_type]

    edge_dict: Dict[Tuple[int, int], int] = {}
    new_xyz = []
    mid_conn = np.zeros((fes.n_elements, len(edges)), dtype=np.int64)
    for elem_idx, elem_nodes in enumerate(fes.conn):
        for local_edge, (i, j) in enumerate(edges):
            n1, n2 = int(elem_nodes[i]), int(elem_nodes[j])
            edge_key = (min(n1, n2), max(n1, n2))
            if edge_key not in edge_dict:
                edge_dict[edge_key] = nodes.n_nodes + len(new_xyz)
                new_xyz.append(0.5 * (nodes.xyz[n1] + nodes.xyz[n2]))
            mid_conn[elem_idx, local_edge] = edge_dict[edge_key]

    xyz = np.vstack([nodes.xyz, np.array(new_xyz).reshape(-1, nodes.dim)])
    conn = np.hstack([fes.conn, mid_conn])
    return NodeSet(xyz), ElementSet(new_type, conn, label=fes.label)
