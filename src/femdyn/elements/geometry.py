"""
Element Geometry
================

Jacobian of the isoparametric map and the derived integration measure.
"""

import numpy as np

from ..exceptions import MeshError


def jacobian_matrix(X: np.ndarray, dN: np.ndarray) -> np.ndarray:
    """
    Jacobian of the map from parametric to physical coordinates.

    J = X^T dN

    Args:
        X: element node coordinates, shape (n_nodes, space_dim)
        dN: parametric derivatives, shape (n_nodes, manifold_dim)

    Returns:
        J: shape (space_dim, manifold_dim)
    """
    return np.asarray(X, dtype=np.float64).T @ dN


def jacobian_measure(J: np.ndarray, other_dimension: float = 1.0) -> float:
    """
    Integration measure (length, area or volume) per unit parametric measure.

    For a manifold of lower dimension than the embedding space the measure
    is sqrt(det(J^T J)). The other dimension (cross-section of a bar,
    thickness of a plane model) multiplies the result; for a point element
    the measure is the other dimension itself.

    Args:
        J: Jacobian matrix, shape (space_dim, manifold_dim)
        other_dimension: complementary measure

    Returns:
        measure: positive scalar

    Raises:
        MeshError: if the element is degenerate or inverted
    """
    space_dim, manifold_dim = J.shape
    if manifold_dim == 0:
        return float(other_dimension)
    if space_dim == manifold_dim:
        det = np.linalg.det(J)
    else:
        det = np.sqrt(max(np.linalg.det(J.T @ J), 0.0))
    if det <= 1e-300:
        raise MeshError(f"Degenerate or inverted element (Jacobian {det:.3e})")
    return float(det * other_dimension)


def spatial_derivatives(dN: np.ndarray, J: np.ndarray) -> np.ndarray:
    """
    Basis function derivatives w.r.t. physical coordinates.

    dN/dx = dN/dxi @ J^-1 (manifold and space dimension equal)

    Args:
        dN: parametric derivatives, shape (n_nodes, dim)
        J: Jacobian matrix, shape (dim, dim)

    Returns:
        dNdx: shape (n_nodes, dim)
    """
    if J.shape[0] != J.shape[1]:
        raise MeshError("Spatial derivatives need a full-dimensional element, "
                        f"got Jacobian of shape {J.shape}")
    return np.linalg.solve(J.T, dN.T).T
