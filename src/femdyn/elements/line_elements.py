"""
Point and Line Elements
=======================

P1 (point), L2 (linear bar) and L3 (quadratic bar).

Parametric domain of the line elements is [-1, 1]; node order is
end, end, middle.
"""

import numpy as np

from .base import ElementType, register_element_type, tensor_lagrange


@register_element_type
class P1(ElementType):
    """Point element: boundary of a bar, carries the cross-section."""

    tag = 'P1'
    n_nodes = 1
    manifold_dim = 0
    node_parametric_coords = np.zeros((1, 0))

    def shape_functions(self, pc):
        return np.ones(1)

    def shape_function_derivatives(self, pc):
        return np.zeros((1, 0))


@register_element_type
class L2(ElementType):
    """Two-node line element."""

    tag = 'L2'
    n_nodes = 2
    manifold_dim = 1
    boundary_type = 'P1'
    boundary_faces = ((0,), (1,))
    node_parametric_coords = np.array([[-1.0], [1.0]])

    def shape_functions(self, pc):
        return tensor_lagrange(self.node_parametric_coords, np.asarray(pc, dtype=float))[0]

    def shape_function_derivatives(self, pc):
        return tensor_lagrange(self.node_parametric_coords, np.asarray(pc, dtype=float))[1]


@register_element_type
class L3(ElementType):
    """Three-node quadratic line element."""

    tag = 'L3'
    n_nodes = 3
    manifold_dim = 1
    boundary_type = 'P1'
    boundary_faces = ((0,), (1,))
    node_parametric_coords = np.array([[-1.0], [1.0], [0.0]])

    def shape_functions(self, pc):
        xi = float(np.asarray(pc).ravel()[0])
        return np.array([xi * (xi - 1.0) / 2.0,
                         xi * (xi + 1.0) / 2.0,
                         1.0 - xi ** 2])

    def shape_function_derivatives(self, pc):
        xi = float(np.asarray(pc).ravel()[0])
        return np.array([[xi - 0.5],
                         [xi + 0.5],
                         [-2.0 * xi]])
