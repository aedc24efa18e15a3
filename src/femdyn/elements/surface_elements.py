"""
Surface Elements
================

Triangles (T3, T6) on the standard triangle r, s >= 0, r + s <= 1, and
quadrilaterals (Q4, Q8) on the bi-unit square. Used for plane models and
as the boundary faces of solid elements.
"""

import numpy as np

from .base import (ElementType, register_element_type, tensor_lagrange,
                   serendipity, quadratic_simplex)


_TRIANGLE_DL = np.array([[-1.0, -1.0],
                         [1.0, 0.0],
                         [0.0, 1.0]])


def _triangle_barycentric(pc):
    r, s = np.asarray(pc, dtype=float).ravel()[:2]
    return np.array([1.0 - r - s, r, s])


@register_element_type
class T3(ElementType):
    """Three-node linear triangle."""

    tag = 'T3'
    n_nodes = 3
    manifold_dim = 2
    boundary_type = 'L2'
    boundary_faces = ((0, 1), (1, 2), (2, 0))
    node_parametric_coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0]])

    def shape_functions(self, pc):
        return _triangle_barycentric(pc)

    def shape_function_derivatives(self, pc):
        return _TRIANGLE_DL.copy()


@register_element_type
class T6(ElementType):
    """Six-node quadratic triangle; mid-side nodes on edges 1-2, 2-3, 3-1."""

    tag = 'T6'
    n_nodes = 6
    manifold_dim = 2
    boundary_type = 'L3'
    boundary_faces = ((0, 1, 3), (1, 2, 4), (2, 0, 5))
    node_parametric_coords = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0],
                                       [0.5, 0.0], [0.5, 0.5], [0.0, 0.5]])
    edges = ((0, 1), (1, 2), (2, 0))

    def shape_functions(self, pc):
        return quadratic_simplex(_triangle_barycentric(pc), _TRIANGLE_DL, self.edges)[0]

    def shape_function_derivatives(self, pc):
        return quadratic_simplex(_triangle_barycentric(pc), _TRIANGLE_DL, self.edges)[1]


@register_element_type
class Q4(ElementType):
    """Four-node bilinear quadrilateral."""

    tag = 'Q4'
    n_nodes = 4
    manifold_dim = 2
    boundary_type = 'L2'
    boundary_faces = ((0, 1), (1, 2), (2, 3), (3, 0))
    node_parametric_coords = np.array([[-1.0, -1.0], [1.0, -1.0],
                                       [1.0, 1.0], [-1.0, 1.0]])

    def shape_functions(self, pc):
        return tensor_lagrange(self.node_parametric_coords, np.asarray(pc, dtype=float))[0]

    def shape_function_derivatives(self, pc):
        return tensor_lagrange(self.node_parametric_coords, np.asarray(pc, dtype=float))[1]


@register_element_type
class Q8(ElementType):
    """Eight-node serendipity quadrilateral; mid-side nodes follow the corners."""

    tag = 'Q8'
    n_nodes = 8
    manifold_dim = 2
    boundary_type = 'L3'
    boundary_faces = ((0, 1, 4), (1, 2, 5), (2, 3, 6), (3, 0, 7))
    node_parametric_coords = np.array([[-1.0, -1.0], [1.0, -1.0],
                                       [1.0, 1.0], [-1.0, 1.0],
                                       [0.0, -1.0], [1.0, 0.0],
                                       [0.0, 1.0], [-1.0, 0.0]])

    def shape_functions(self, pc):
        return serendipity(self.node_parametric_coords, np.asarray(pc, dtype=float))[0]

    def shape_function_derivatives(self, pc):
        return serendipity(self.node_parametric_coords, np.asarray(pc, dtype=float))[1]
