"""
Elements Module
===============

Element capability sets (shape functions, parametric derivatives, boundary
faces) dispatched by type tag, quadrature rules and element geometry.
"""

from .base import ElementType, get_element_type, list_element_types, register_element_type
from .line_elements import P1, L2, L3
from .surface_elements import T3, T6, Q4, Q8
from .solid_elements import T4, T10, H8, H20
from .integration_rules import (
    IntegrationRule,
    GaussRule,
    TriangleRule,
    TetRule,
    PointRule,
    default_rule,
)
from .geometry import jacobian_matrix, jacobian_measure, spatial_derivatives

__all__ = [
    "ElementType",
    "get_element_type",
    "list_element_types",
    "register_element_type",
    "P1", "L2", "L3",
    "T3", "T6", "Q4", "Q8",
    "T4", "T10", "H8", "H20",
    "IntegrationRule",
    "GaussRule",
    "TriangleRule",
    "TetRule",
    "PointRule",
    "default_rule",
    "jacobian_matrix",
    "jacobian_measure",
    "spatial_derivatives",
]
