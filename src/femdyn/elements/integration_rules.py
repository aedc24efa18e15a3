"""
Integration Rules
=================

Quadrature rules on the parametric domains of the element types.

Each rule exposes:
    param_coords: shape (n_points, dim)
    weights: shape (n_points,)
"""

import itertools
import numpy as np
from typing import Union

from .base import get_element_type


class IntegrationRule:
    """Quadrature points and weights on a parametric domain."""

    def __init__(self, param_coords: np.ndarray, weights: np.ndarray):
        self.param_coords = np.atleast_2d(np.asarray(param_coords, dtype=np.float64))
        self.weights = np.asarray(weights, dtype=np.float64).ravel()
        if self.param_coords.shape[0] != self.weights.shape[0]:
            raise ValueError("param_coords and weights must have the same length")

    @property
    def n_points(self) -> int:
        """Number of quadrature points."""
        return len(self.weights)

    @property
    def dim(self) -> int:
        """Dimension of the parametric domain."""
        return self.param_coords.shape[1]

    def __iter__(self):
        return zip(self.param_coords, self.weights)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_points={self.n_points}, dim={self.dim})"


class GaussRule(IntegrationRule):
    """
    Tensor-product Gauss-Legendre rule on the bi-unit cube [-1, 1]^dim.

    Args:
        dim: 1, 2 or 3
        order: number of points per direction
    """

    def __init__(self, dim: int, order: int):
        if dim not in (1, 2, 3):
            raise ValueError(f"dim must be 1, 2 or 3, got {dim}")
        if order < 1:
            raise ValueError(f"order must be positive, got {order}")
        x, w = np.polynomial.legendre.leggauss(order)
        # Last coordinate varies fastest
        pc = np.array(list(itertools.product(x, repeat=dim)))
        wt = np.array([np.prod(ws) for ws in itertools.product(w, repeat=dim)])
        super().__init__(pc, wt)
        self.order = order


class TriangleRule(IntegrationRule):
    """
    Rule on the standard triangle; weights sum to 1/2.

    Args:
        npts: 1 (degree 1), 3 (degree 2) or 6 (degree 4)
    """

    def __init__(self, npts: int = 1):
        if npts == 1:
            pc = [[1.0 / 3.0, 1.0 / 3.0]]
            w = [0.5]
        elif npts == 3:
            pc = [[1.0 / 6.0, 1.0 / 6.0],
                  [2.0 / 3.0, 1.0 / 6.0],
                  [1.0 / 6.0, 2.0 / 3.0]]
            w = [1.0 / 6.0] * 3
        elif npts == 6:
            a, wa = 0.445948490915965, 0.223381589678011
            b, wb = 0.091576213509771, 0.109951743655322
            pc = [[a, a], [1 - 2 * a, a], [a, 1 - 2 * a],
                  [b, b], [1 - 2 * b, b], [b, 1 - 2 * b]]
            w = [wa / 2] * 3 + [wb / 2] * 3
        else:
            raise ValueError(f"Unsupported number of triangle points: {npts}. "
                             f"'npts' must be 1, 3 or 6.")
        super().__init__(pc, w)


class TetRule(IntegrationRule):
    """
    Rule on the standard tetrahedron; weights sum to 1/6.

    Args:
        npts: 1 (degree 1), 4 (degree 2) or 5 (degree 3)
    """

    def __init__(self, npts: int = 1):
        if npts == 1:
            pc = [[0.25, 0.25, 0.25]]
            w = [1.0 / 6.0]
        elif npts == 4:
            a = 0.5854101966249685
            b = 0.1381966011250105
            pc = [[b, b, b], [a, b, b], [b, a, b], [b, b, a]]
            w = [1.0 / 24.0] * 4
        elif npts == 5:
            pc = [[0.25, 0.25, 0.25],
                  [1.0 / 6.0, 1.0 / 6.0, 1.0 / 6.0],
                  [0.5, 1.0 / 6.0, 1.0 / 6.0],
                  [1.0 / 6.0, 0.5, 1.0 / 6.0],
                  [1.0 / 6.0, 1.0 / 6.0, 0.5]]
            w = [-2.0 / 15.0] + [3.0 / 40.0] * 4
        else:
            raise ValueError(f"Unsupported number of tetrahedron points: {npts}. "
                             f"'npts' must be 1, 4 or 5.")
        super().__init__(pc, w)


class PointRule(IntegrationRule):
    """Single unit-weight point on a zero-dimensional domain."""

    def __init__(self):
        super().__init__(np.zeros((1, 0)), [1.0])


_DEFAULT_RULES = {
    'P1': lambda: PointRule(),
    'L2': lambda: GaussRule(1, 2),
    'L3': lambda: GaussRule(1, 3),
    'T3': lambda: TriangleRule(3),
    'T6': lambda: TriangleRule(6),
    'Q4': lambda: GaussRule(2, 2),
    'Q8': lambda: GaussRule(2, 3),
    'T4': lambda: TetRule(4),
    'T10': lambda: TetRule(4),
    'H8': lambda: GaussRule(3, 2),
    'H20': lambda: GaussRule(3, 3),
}


def default_rule(element_type: Union[str, object]) -> IntegrationRule:
    """
    Default integration rule for stiffness and mass of an element type.

    Args:
        element_type: type tag or ElementType instance

    Returns:
        IntegrationRule
    """
    tag = element_type if isinstance(element_type, str) else element_type.tag
    get_element_type(tag)
    return _DEFAULT_RULES[tag]()
