"""
Linear Deformation Model
========================

Element-level operators of small-strain linear elasticity for one region:
an element set, its integration rule and its material.

Displacement DOFs of an element are ordered node-major, component-minor:
    [u_0x, u_0y, (u_0z), u_1x, u_1y, ...]
"""

import numpy as np
from typing import Iterator, Optional, Union

from ..elements import (IntegrationRule, default_rule, jacobian_matrix,
                        jacobian_measure, spatial_derivatives)
from ..exceptions import MeshError
from ..mesh import ElementSet
from .material import IsotropicMaterial, OrthotropicMaterial


def strain_displacement_matrix(dNdx: np.ndarray) -> np.ndarray:
    """
    Compute the strain-displacement matrix B.

    ε = B u_e, engineering shear strains.

    Args:
        dNdx: spatial derivatives of the basis functions, shape (n_nodes, dim)

    Returns:
        B: shape (1, n), (3, 2n) or (6, 3n) for dim 1, 2, 3
    """
    n, dim = dNdx.shape
    if dim == 1:
        return dNdx.T.copy()

    if dim == 2:
        B = np.zeros((3, 2 * n))
        B[0, 0::2] = dNdx[:, 0]
        B[1, 1::2] = dNdx[:, 1]
        B[2, 0::2] = dNdx[:, 1]
        B[2, 1::2] = dNdx[:, 0]
        return B

    B = np.zeros((6, 3 * n))
    B[0, 0::3] = dNdx[:, 0]
    B[1, 1::3] = dNdx[:, 1]
    B[2, 2::3] = dNdx[:, 2]
    B[3, 0::3] = dNdx[:, 1]
    B[3, 1::3] = dNdx[:, 0]
    B[4, 1::3] = dNdx[:, 2]
    B[4, 2::3] = dNdx[:, 1]
    B[5, 0::3] = dNdx[:, 2]
    B[5, 2::3] = dNdx[:, 0]
    return B


class DeformationModel:
    """
    Linear elastic deformation model of one region.

    Attributes:
        fes: ElementSet of the region
        integration_rule: quadrature used for stiffness and mass
        material: IsotropicMaterial or OrthotropicMaterial
        reduction: 'strain' or 'stress' for plane models
        other_dimension: cross-section (bars), thickness (plane models),
            or mass/measure of point elements; 1 for solids
    """

    def __init__(self, fes: ElementSet, integration_rule: Optional[IntegrationRule],
                 material: Union[IsotropicMaterial, OrthotropicMaterial],
                 reduction: str = 'strain',
                 other_dimension: float = 1.0):
        if integration_rule is None:
            integration_rule = default_rule(fes.etype)
        if fes.manifold_dim != integration_rule.dim:
            raise MeshError(f"Integration rule of dimension {integration_rule.dim} "
                            f"does not match {fes.element_type} elements")
        if other_dimension <= 0:
            raise MeshError(f"other_dimension must be positive, got {other_dimension}")
        self.fes = fes
        self.integration_rule = integration_rule
        self.material = material
        self.reduction = reduction
        self.other_dimension = other_dimension

        # Basis values at the quadrature points are the same for every element
        self._N = [fes.etype.shape_functions(pc) for pc, _ in integration_rule]
        self._dN = [fes.etype.shape_function_derivatives(pc) for pc, _ in integration_rule]

    def __repr__(self) -> str:
        return (f"DeformationModel({self.fes.element_type}, "
                f"n_elements={self.fes.n_elements}, material={self.material})")

    def shape_functions(self, pc: np.ndarray) -> np.ndarray:
        """Basis functions of the region's element type at a parametric point."""
        return self.fes.etype.shape_functions(pc)

    def shape_function_derivatives(self, pc: np.ndarray) -> np.ndarray:
        """Parametric basis derivatives of the region's element type."""
        return self.fes.etype.shape_function_derivatives(pc)

    def _check_solid(self, X: np.ndarray) -> int:
        dim = X.shape[1]
        if self.fes.manifold_dim not in (0, dim):
            raise MeshError(f"{self.fes.element_type} elements in {dim}-D space: "
                            f"stiffness needs a full-dimensional element")
        return dim

    def local_stiffness(self, X: np.ndarray) -> np.ndarray:
        """
        Element stiffness matrix.

        K_e = Σ_q B^T D B |J| w

        Args:
            X: element node coordinates, shape (n_nodes, dim)

        Returns:
            K_e: shape (n_nodes*dim, n_nodes*dim)
        """
        dim = self._check_solid(X)
        n = X.shape[0]
        Ke = np.zeros((n * dim, n * dim))
        if self.fes.manifold_dim == 0:
            # Point elements carry mass only
            return Ke

        D = self.material.stiffness_matrix(dim, self.reduction)
        for dN, (_, w) in zip(self._dN, self.integration_rule):
            J = jacobian_matrix(X, dN)
            B = strain_displacement_matrix(spatial_derivatives(dN, J))
            Ke += B.T @ D @ B * (jacobian_measure(J, self.other_dimension) * w)
        return Ke

    def local_mass(self, X: np.ndarray) -> np.ndarray:
        """
        Lumped element mass (HRZ).

        The diagonal of the consistent mass is scaled so that it sums to the
        element mass; every entry is positive for all supported element types.

        Args:
            X: element node coordinates, shape (n_nodes, dim)

        Returns:
            m_e: diagonal of the lumped mass, shape (n_nodes*dim,)
        """
        dim = X.shape[1]
        rho = self.material.rho
        diag = np.zeros(X.shape[0])
        total = 0.0
        for N, dN, (_, w) in zip(self._N, self._dN, self.integration_rule):
            dV = jacobian_measure(jacobian_matrix(X, dN), self.other_dimension) * w
            diag += rho * N**2 * dV
            total += rho * dV
        lumped = diag * (total / diag.sum())
        return np.repeat(lumped, dim)

    def strain_energy_density(self, X: np.ndarray, Ue: np.ndarray) -> Iterator[float]:
        """
        Strain energy density 1/2 ε^T D ε at each quadrature point.

        Args:
            X: element node coordinates, shape (n_nodes, dim)
            Ue: element displacements, node-major, shape (n_nodes*dim,)

        Yields:
            strain energy density at the successive quadrature points
        """
        dim = self._check_solid(X)
        if self.fes.manifold_dim == 0:
            return
        D = self.material.stiffness_matrix(dim, self.reduction)
        Ue = np.asarray(Ue, dtype=np.float64).ravel()
        for dN in self._dN:
            J = jacobian_matrix(X, dN)
            eps = strain_displacement_matrix(spatial_derivatives(dN, J)) @ Ue
            yield 0.5 * float(eps @ D @ eps)
