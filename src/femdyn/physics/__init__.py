"""
Physics Module
==============

Material law and element-level operators of linear elastodynamics.
"""

from .material import IsotropicMaterial, OrthotropicMaterial
from .deformation import DeformationModel, strain_displacement_matrix

__all__ = [
    "IsotropicMaterial",
    "OrthotropicMaterial",
    "DeformationModel",
    "strain_displacement_matrix",
]
