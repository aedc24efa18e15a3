"""
Solid Elements
==============

Tetrahedra (T4, T10) on the standard tetrahedron r, s, t >= 0,
r + s + t <= 1, and hexahedra (H8, H20) on the bi-unit cube.

Node numbering:
    T10: corners 1-4, then mid-edge nodes on 1-2, 2-3, 3-1, 1-4, 2-4, 3-4
    H20: corners 1-8, then mid-edge nodes on 1-2, 2-3, 3-4, 4-1,
         5-6, 6-7, 7-8, 8-5, 1-5, 2-6, 3-7, 4-8
"""

import numpy as np

from .base import (ElementType, register_element_type, tensor_lagrange,
                   serendipity, quadratic_simplex)


_TET_DL = np.array([[-1.0, -1.0, -1.0],
                    [1.0, 0.0, 0.0],
                    [0.0, 1.0, 0.0],
                    [0.0, 0.0, 1.0]])

_HEX_CORNERS = np.array([[-1.0, -1.0, -1.0], [1.0, -1.0, -1.0],
                         [1.0, 1.0, -1.0], [-1.0, 1.0, -1.0],
                         [-1.0, -1.0, 1.0], [1.0, -1.0, 1.0],
                         [1.0, 1.0, 1.0], [-1.0, 1.0, 1.0]])


def _tet_barycentric(pc):
    r, s, t = np.asarray(pc, dtype=float).ravel()[:3]
    return np.array([1.0 - r - s - t, r, s, t])


@register_element_type
class T4(ElementType):
    """Four-node linear tetrahedron."""

    tag = 'T4'
    n_nodes = 4
    manifold_dim = 3
    boundary_type = 'T3'
    boundary_faces = ((0, 2, 1), (0, 1, 3), (1, 2, 3), (2, 0, 3))
    node_parametric_coords = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0],
                                       [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]])

    def shape_functions(self, pc):
        return _tet_barycentric(pc)

    def shape_function_derivatives(self, pc):
        return _TET_DL.copy()


@register_element_type
class T10(ElementType):
    """Ten-node quadratic tetrahedron."""

    tag = 'T10'
    n_nodes = 10
    manifold_dim = 3
    boundary_type = 'T6'
    boundary_faces = ((0, 2, 1, 6, 5, 4),
                      (0, 1, 3, 4, 8, 7),
                      (1, 2, 3, 5, 9, 8),
                      (2, 0, 3, 6, 7, 9))
    node_parametric_coords = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0],
                                       [0.0, 1.0, 0.0], [0.0, 0.0, 1.0],
                                       [0.5, 0.0, 0.0], [0.5, 0.5, 0.0],
                                       [0.0, 0.5, 0.0], [0.0, 0.0, 0.5],
                                       [0.5, 0.0, 0.5], [0.0, 0.5, 0.5]])
    edges = ((0, 1), (1, 2), (2, 0), (0, 3), (1, 3), (2, 3))

    def shape_functions(self, pc):
        return quadratic_simplex(_tet_barycentric(pc), _TET_DL, self.edges)[0]

    def shape_function_derivatives(self, pc):
        return quadratic_simplex(_tet_barycentric(pc), _TET_DL, self.edges)[1]


@register_element_type
class H8(ElementType):
    """Eight-node trilinear hexahedron."""

    tag = 'H8'
    n_nodes = 8
    manifold_dim = 3
    boundary_type = 'Q4'
    boundary_faces = ((0, 3, 2, 1), (0, 1, 5, 4), (1, 2, 6, 5),
                      (2, 3, 7, 6), (3, 0, 4, 7), (5, 6, 7, 4))
    node_parametric_coords = _HEX_CORNERS

    def shape_functions(self, pc):
        return tensor_lagrange(self.node_parametric_coords, np.asarray(pc, dtype=float))[0]

    def shape_function_derivatives(self, pc):
        return tensor_lagrange(self.node_parametric_coords, np.asarray(pc, dtype=float))[1]


@register_element_type
class H20(ElementType):
    """Twenty-node serendipity hexahedron."""

    tag = 'H20'
    n_nodes = 20
    manifold_dim = 3
    boundary_type = 'Q8'
    boundary_faces = ((0, 3, 2, 1, 11, 10, 9, 8),
                      (0, 1, 5, 4, 8, 17, 12, 16),
                      (1, 2, 6, 5, 9, 18, 13, 17),
                      (2, 3, 7, 6, 10, 19, 14, 18),
                      (3, 0, 4, 7, 11, 16, 15, 19),
                      (5, 6, 7, 4, 13, 14, 15, 12))
    # Corner pairs of the mid-edge nodes, in node order
    edges = ((0, 1), (1, 2), (2, 3), (3, 0),
             (4, 5), (5, 6), (6, 7), (7, 4),
             (0, 4), (1, 5), (2, 6), (3, 7))
    node_parametric_coords = np.vstack([
        _HEX_CORNERS,
        np.array([(_HEX_CORNERS[i] + _HEX_CORNERS[j]) / 2.0 for i, j in edges]),
    ])

    def shape_functions(self, pc):
        return serendipity(self.node_parametric_coords, np.asarray(pc, dtype=float))[0]

    def shape_function_derivatives(self, pc):
        return serendipity(self.node_parametric_coords, np.asarray(pc, dtype=float))[1]
