"""
Material Models
===============

Isotropic and orthotropic linear elastic materials with mass density.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from ..exceptions import ConfigurationError


@dataclass
class IsotropicMaterial:
    """
    Isotropic linear elastic material.

    Attributes:
        E: Young's modulus [Pa]
        nu: Poisson's ratio [-]
        rho: mass density [kg/m³]
    """
    E: float
    nu: float = 0.0
    rho: float = 1.0

    def __post_init__(self):
        """Validate material parameters."""
        if self.E <= 0:
            raise ConfigurationError(f"Young's modulus must be positive, got {self.E}")
        if not -1 < self.nu < 0.5:
            raise ConfigurationError(f"Poisson's ratio must be in (-1, 0.5), got {self.nu}")
        if self.rho <= 0:
            raise ConfigurationError(f"Mass density must be positive, got {self.rho}")

    @property
    def lame_lambda(self) -> float:
        """
        First Lamé parameter λ.

        λ = E·ν / ((1+ν)(1-2ν))
        """
        return self.E * self.nu / ((1 + self.nu) * (1 - 2 * self.nu))

    @property
    def lame_mu(self) -> float:
        """
        Second Lamé parameter μ (shear modulus).

        μ = E / (2(1+ν))
        """
        return self.E / (2 * (1 + self.nu))

    def wave_speed(self) -> float:
        """Dilatational wave speed sqrt((λ + 2μ)/ρ)."""
        return float(np.sqrt((self.lame_lambda + 2 * self.lame_mu) / self.rho))

    def stiffness_matrix(self, dim: int, reduction: str = 'strain') -> np.ndarray:
        """
        Material stiffness D in Voigt notation (engineering shear strains).

        Args:
            dim: 1 (uniaxial), 2 (plane) or 3 (triaxial)
            reduction: for dim 2, 'strain' (plane strain) or 'stress'
                (plane stress); ignored otherwise

        Returns:
            D: (1, 1), (3, 3) ordered [xx, yy, xy], or (6, 6) ordered
            [xx, yy, zz, xy, yz, zx]
        """
        E, nu = self.E, self.nu

        if dim == 1:
            return np.array([[E]])

        if dim == 2:
            if reduction == 'strain':
                # ε_zz = 0
                factor = E / ((1 + nu) * (1 - 2 * nu))
                return factor * np.array([
                    [1 - nu, nu, 0],
                    [nu, 1 - nu, 0],
                    [0, 0, (1 - 2 * nu) / 2]
                ])
            if reduction == 'stress':
                # σ_zz = 0
                factor = E / (1 - nu**2)
                return factor * np.array([
                    [1, nu, 0],
                    [nu, 1, 0],
                    [0, 0, (1 - nu) / 2]
                ])
            raise ConfigurationError(f"Unknown reduction {reduction!r}; "
                                     f"use 'strain' or 'stress'")

        if dim == 3:
            lam, mu = self.lame_lambda, self.lame_mu
            D = np.zeros((6, 6))
            D[:3, :3] = lam
            D[:3, :3] += 2 * mu * np.eye(3)
            D[3:, 3:] = mu * np.eye(3)
            return D

        raise ConfigurationError(f"dim must be 1, 2 or 3, got {dim}")


def _voigt_to_tensor(v: np.ndarray) -> np.ndarray:
    xx, yy, zz, xy, yz, zx = v
    return np.array([[xx, xy / 2, zx / 2],
                     [xy / 2, yy, yz / 2],
                     [zx / 2, yz / 2, zz]])


def _tensor_to_voigt(e: np.ndarray) -> np.ndarray:
    return np.array([e[0, 0], e[1, 1], e[2, 2], 2 * e[0, 1], 2 * e[1, 2], 2 * e[0, 2]])


def strain_rotation_matrix(Rm: np.ndarray) -> np.ndarray:
    """
    Voigt transformation of engineering strains into the material frame.

    Args:
        Rm: (3, 3) orthonormal matrix whose columns are the material
            directions in global coordinates

    Returns:
        T: (6, 6) with ε_material = T ε_global
    """
    T = np.zeros((6, 6))
    for j, unit in enumerate(np.eye(6)):
        T[:, j] = _tensor_to_voigt(Rm.T @ _voigt_to_tensor(unit) @ Rm)
    return T


@dataclass
class OrthotropicMaterial:
    """
    Orthotropic linear elastic material.

    Directions 1, 2, 3 are the columns of the orientation matrix Rm (global
    axes when Rm is None). Poisson's ratios follow ν_ij = -ε_j / ε_i under
    uniaxial stress along i.

    Attributes:
        E1, E2, E3: Young's moduli [Pa]
        G12, G13, G23: shear moduli [Pa]
        nu12, nu13, nu23: Poisson's ratios [-]
        rho: mass density [kg/m³]
        Rm: constant orientation, (3, 3) or (2, 2) for in-plane rotations
    """
    E1: float
    E2: float
    E3: float
    G12: float
    G13: float
    G23: float
    nu12: float = 0.0
    nu13: float = 0.0
    nu23: float = 0.0
    rho: float = 1.0
    Rm: Optional[np.ndarray] = None

    def __post_init__(self):
        """Validate material parameters and the orientation."""
        moduli = {'E1': self.E1, 'E2': self.E2, 'E3': self.E3,
                  'G12': self.G12, 'G13': self.G13, 'G23': self.G23}
        for name, value in moduli.items():
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")
        if self.rho <= 0:
            raise ConfigurationError(f"Mass density must be positive, got {self.rho}")
        if np.any(np.linalg.eigvalsh(self.compliance_matrix()) <= 0):
            raise ConfigurationError("Poisson's ratios give a compliance that is "
                                     "not positive definite")
        if self.Rm is not None:
            Rm = np.asarray(self.Rm, dtype=np.float64)
            if Rm.shape == (2, 2):
                Rm = np.block([[Rm, np.zeros((2, 1))], [np.zeros((1, 2)), np.ones((1, 1))]])
            if Rm.shape != (3, 3) or not np.allclose(Rm.T @ Rm, np.eye(3)):
                raise ConfigurationError("Rm must be an orthonormal (3, 3) or (2, 2) matrix")
            self.Rm = Rm

    def compliance_matrix(self) -> np.ndarray:
        """Compliance in the material frame, (6, 6) ordered [11, 22, 33, 12, 23, 31]."""
        E1, E2, E3 = self.E1, self.E2, self.E3
        S = np.zeros((6, 6))
        S[:3, :3] = [[1 / E1, -self.nu12 / E1, -self.nu13 / E1],
                     [-self.nu12 / E1, 1 / E2, -self.nu23 / E2],
                     [-self.nu13 / E1, -self.nu23 / E2, 1 / E3]]
        S[3, 3] = 1 / self.G12
        S[4, 4] = 1 / self.G23
        S[5, 5] = 1 / self.G13
        return S

    def _global_compliance(self) -> np.ndarray:
        S = self.compliance_matrix()
        if self.Rm is None:
            return S
        # D_global = T^T D T
        T = strain_rotation_matrix(self.Rm)
        return np.linalg.inv(T.T @ np.linalg.inv(S) @ T)

    def stiffness_matrix(self, dim: int, reduction: str = 'strain') -> np.ndarray:
        """
        Material stiffness D in global Voigt notation (engineering shear strains).

        Args:
            dim: 1 (uniaxial along x), 2 (plane) or 3 (triaxial)
            reduction: for dim 2, 'strain' (plane strain) or 'stress'
                (plane stress); ignored otherwise

        Returns:
            D: (1, 1), (3, 3) ordered [xx, yy, xy], or (6, 6) ordered
            [xx, yy, zz, xy, yz, zx]
        """
        S = self._global_compliance()

        if dim == 1:
            return np.array([[1.0 / S[0, 0]]])

        if dim == 2:
            plane = [0, 1, 3]
            if reduction == 'strain':
                return np.linalg.inv(S)[np.ix_(plane, plane)]
            if reduction == 'stress':
                return np.linalg.inv(S[np.ix_(plane, plane)])
            raise ConfigurationError(f"Unknown reduction {reduction!r}; "
                                     f"use 'strain' or 'stress'")

        if dim == 3:
            return np.linalg.inv(S)

        raise ConfigurationError(f"dim must be 1, 2 or 3, got {dim}")
