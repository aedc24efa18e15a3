"""
Element Capability Sets
=======================

Every element type is a flat class providing shape functions, their
parametric derivatives and boundary-face extraction. Element sets store only
the type tag; the capability object is looked up in a registry by tag.
"""

import numpy as np
from typing import Dict, List, Optional, Tuple

from ..exceptions import MeshError


_REGISTRY: Dict[str, 'ElementType'] = {}


def register_element_type(cls):
    """Class decorator: instantiate the capability set and register its tag."""
    instance = cls()
    if instance.tag in _REGISTRY:
        raise ValueError(f"Element type {instance.tag!r} registered twice")
    _REGISTRY[instance.tag] = instance
    return cls


def get_element_type(tag: str) -> 'ElementType':
    """
    Look up the capability set for an element-type tag.

    Args:
        tag: element-type tag, e.g. 'H8' or 'T10'

    Returns:
        ElementType instance

    Raises:
        MeshError: if the tag is unknown
    """
    try:
        return _REGISTRY[tag]
    except KeyError:
        raise MeshError(f"Unknown element type {tag!r}; "
                        f"known types: {sorted(_REGISTRY)}") from None


def list_element_types() -> List[str]:
    """Tags of all registered element types."""
    return sorted(_REGISTRY)


class ElementType:
    """
    Capability set of one element variant.

    Attributes:
        tag: element-type tag
        n_nodes: number of nodes per element
        manifold_dim: dimension of the parametric domain (0 to 3)
        boundary_type: tag of the boundary element type (None for points)
        boundary_faces: local node indices of each boundary face
        node_parametric_coords: shape (n_nodes, manifold_dim)
    """

    tag: str = ''
    n_nodes: int = 0
    manifold_dim: int = 0
    boundary_type: Optional[str] = None
    boundary_faces: Tuple[Tuple[int, ...], ...] = ()
    node_parametric_coords: np.ndarray = np.zeros((0, 0))

    def shape_functions(self, pc: np.ndarray) -> np.ndarray:
        """
        Evaluate the basis functions.

        Args:
            pc: parametric coordinates, shape (manifold_dim,)

        Returns:
            N: shape (n_nodes,)
        """
        raise NotImplementedError

    def shape_function_derivatives(self, pc: np.ndarray) -> np.ndarray:
        """
        Evaluate the basis function derivatives w.r.t. parametric coordinates.

        Args:
            pc: parametric coordinates, shape (manifold_dim,)

        Returns:
            dN: shape (n_nodes, manifold_dim)
        """
        raise NotImplementedError

    def boundary_conn(self, conn: np.ndarray) -> np.ndarray:
        """
        Extract boundary-face connectivity.

        Faces are listed element by element, in the local face order of the
        type.

        Args:
            conn: shape (n_elements, n_nodes)

        Returns:
            face connectivity, shape (n_elements * n_faces, n_face_nodes)
        """
        if not self.boundary_faces:
            raise MeshError(f"Element type {self.tag} has no boundary")
        conn = np.atleast_2d(np.asarray(conn, dtype=np.int64))
        faces = np.array(self.boundary_faces, dtype=np.int64)
        return conn[:, faces].reshape(-1, faces.shape[1])

    def __repr__(self) -> str:
        return f"{type(self).__name__}(tag={self.tag!r}, n_nodes={self.n_nodes})"


def tensor_lagrange(nodes: np.ndarray, pc: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Multilinear basis on the bi-unit cube and its parametric gradient.

    N_i = prod_k (1 + x_k a_ik) / 2^d

    Args:
        nodes: node parametric coordinates a, shape (n, d), entries +-1
        pc: evaluation point x, shape (d,)

    Returns:
        N: shape (n,), dN: shape (n, d)
    """
    d = nodes.shape[1]
    factors = 1.0 + nodes * pc  # (n, d)
    scale = 1.0 / 2 ** d
    N = scale * np.prod(factors, axis=1)
    dN = np.zeros_like(nodes)
    for j in range(d):
        others = np.prod(np.delete(factors, j, axis=1), axis=1)
        dN[:, j] = scale * nodes[:, j] * others
    return N, dN


def serendipity(nodes: np.ndarray, pc: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Quadratic serendipity basis (Q8, H20) and its parametric gradient.

    Corner nodes: prod_k (1 + x_k a_k) (sum_k x_k a_k - (d - 1)) / 2^d.
    Mid-edge nodes (a_m = 0): (1 - x_m^2) prod_{k != m} (1 + x_k a_k) / 2^(d-1).

    Args:
        nodes: node parametric coordinates, shape (n, d), entries in {-1, 0, 1}
        pc: evaluation point, shape (d,)

    Returns:
        N: shape (n,), dN: shape (n, d)
    """
    n, d = nodes.shape
    N = np.zeros(n)
    dN = np.zeros((n, d))
    for i, a in enumerate(nodes):
        zero = np.flatnonzero(a == 0)
        if zero.size == 0:
            f = 1.0 + a * pc
            s = np.dot(a, pc) - (d - 1)
            scale = 1.0 / 2 ** d
            N[i] = scale * np.prod(f) * s
            for j in range(d):
                pj = np.prod(np.delete(f, j))
                dN[i, j] = scale * a[j] * pj * (s + f[j])
        else:
            m = zero[0]
            f = 1.0 + a * pc
            f[m] = 1.0 - pc[m] ** 2
            scale = 1.0 / 2 ** (d - 1)
            N[i] = scale * np.prod(f)
            for j in range(d):
                pj = np.prod(np.delete(f, j))
                if j == m:
                    dN[i, j] = scale * (-2.0 * pc[m]) * pj
                else:
                    dN[i, j] = scale * a[j] * pj
    return N, dN


def quadratic_simplex(L: np.ndarray, dL: np.ndarray,
                      edges: Tuple[Tuple[int, int], ...]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Quadratic basis on a simplex from barycentric coordinates (T6, T10).

    Corner i: L_i (2 L_i - 1); mid-edge (i, j): 4 L_i L_j.

    Args:
        L: barycentric coordinates, shape (d + 1,)
        dL: their parametric gradient, shape (d + 1, d)
        edges: corner pairs of the mid-edge nodes, in node order

    Returns:
        N: shape (d + 1 + len(edges),), dN: shape (same, d)
    """
    N = [Li * (2.0 * Li - 1.0) for Li in L]
    dN = [(4.0 * Li - 1.0) * dLi for Li, dLi in zip(L, dL)]
    for i, j in edges:
        N.append(4.0 * L[i] * L[j])
        dN.append(4.0 * (dL[i] * L[j] + L[i] * dL[j]))
    return np.array(N), np.array(dN)
