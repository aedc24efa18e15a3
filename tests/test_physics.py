"""
Tests for Physics Module
========================
"""

import numpy as np
import pytest

from femdyn.elements import GaussRule
from femdyn.exceptions import ConfigurationError, MeshError
from femdyn.mesh import ElementSet, block_mesh, rectangle_mesh
from femdyn.physics import (IsotropicMaterial, OrthotropicMaterial, DeformationModel,
                            strain_displacement_matrix)


@pytest.fixture
def steel():
    return IsotropicMaterial(E=210e9, nu=0.3, rho=7850.0)


class TestMaterial:
    """Tests for IsotropicMaterial."""

    def test_material_invalid_parameters(self):
        with pytest.raises(ConfigurationError):
            IsotropicMaterial(E=-1, nu=0.3, rho=1.0)
        with pytest.raises(ValueError):
            IsotropicMaterial(E=210e9, nu=0.5, rho=1.0)
        with pytest.raises(ValueError):
            IsotropicMaterial(E=210e9, nu=0.3, rho=0.0)

    def test_lame_parameters(self, steel):
        assert np.isclose(steel.lame_mu, 210e9 / (2 * 1.3))
        assert np.isclose(steel.lame_lambda, 210e9 * 0.3 / (1.3 * 0.4))

    def test_uniaxial(self, steel):
        assert np.allclose(steel.stiffness_matrix(1), [[210e9]])

    def test_plane_stress(self):
        mat = IsotropicMaterial(E=1.0, nu=0.25)
        D = mat.stiffness_matrix(2, 'stress')
        assert np.allclose(D, np.array([[1, 0.25, 0], [0.25, 1, 0], [0, 0, 0.375]]) / (1 - 0.0625))

    def test_triaxial_symmetric_and_shear(self, steel):
        D = steel.stiffness_matrix(3)
        assert D.shape == (6, 6)
        assert np.allclose(D, D.T)
        assert np.allclose(np.diag(D)[3:], steel.lame_mu)

    def test_plane_strain_matches_triaxial(self, steel):
        D3 = steel.stiffness_matrix(3)
        D2 = steel.stiffness_matrix(2, 'strain')
        assert np.allclose(D2, D3[np.ix_([0, 1, 3], [0, 1, 3])])

    def test_unknown_reduction(self, steel):
        with pytest.raises(ConfigurationError):
            steel.stiffness_matrix(2, 'axisymmetric')


class TestOrthotropicMaterial:
    """Tests for OrthotropicMaterial."""

    @pytest.fixture
    def layer(self):
        return OrthotropicMaterial(E1=140e9, E2=10e9, E3=10e9, G12=5e9, G13=5e9, G23=3.5e9,
                                   nu12=0.3, nu13=0.3, nu23=0.4, rho=1600.0)

    @staticmethod
    def as_orthotropic(mat, Rm=None):
        G = mat.lame_mu
        return OrthotropicMaterial(E1=mat.E, E2=mat.E, E3=mat.E, G12=G, G13=G, G23=G,
                                   nu12=mat.nu, nu13=mat.nu, nu23=mat.nu, rho=mat.rho, Rm=Rm)

    @pytest.mark.parametrize("dim, reduction", [(1, None), (2, 'strain'), (2, 'stress'), (3, None)])
    def test_isotropic_parameters(self, steel, dim, reduction):
        ortho = self.as_orthotropic(steel)
        assert np.allclose(ortho.stiffness_matrix(dim, reduction),
                           steel.stiffness_matrix(dim, reduction))

    def test_isotropic_unaffected_by_rotation(self):
        mat = IsotropicMaterial(E=1.0, nu=0.25)
        c, s = np.cos(0.4), np.sin(0.4)
        ortho = self.as_orthotropic(mat, Rm=[[c, -s], [s, c]])
        assert np.allclose(ortho.stiffness_matrix(3), mat.stiffness_matrix(3))

    def test_fiber_direction(self, layer):
        assert np.isclose(layer.stiffness_matrix(1)[0, 0], 140e9)
        D = layer.stiffness_matrix(3)
        assert np.allclose(D, D.T)
        assert np.isclose(D[3, 3], 5e9)
        assert np.isclose(D[4, 4], 3.5e9)

    def test_rotation_about_z(self, layer):
        # Fibers along global y
        rotated = OrthotropicMaterial(**{**layer.__dict__, 'Rm': [[0, -1, 0], [1, 0, 0], [0, 0, 1]]})
        D, Dr = layer.stiffness_matrix(3), rotated.stiffness_matrix(3)
        assert np.isclose(Dr[0, 0], D[1, 1])
        assert np.isclose(Dr[1, 1], D[0, 0])
        assert np.isclose(Dr[3, 3], D[3, 3])
        assert np.isclose(Dr[4, 4], D[5, 5])
        assert np.isclose(rotated.stiffness_matrix(1)[0, 0], 10e9)
        assert np.isclose(rotated.stiffness_matrix(2, 'stress')[1, 1],
                          layer.stiffness_matrix(2, 'stress')[0, 0])

    def test_plane_stress_compliance(self, layer):
        D = layer.stiffness_matrix(2, 'stress')
        S = np.linalg.inv(D)
        assert np.isclose(S[0, 0], 1 / 140e9)
        assert np.isclose(S[0, 1], -0.3 / 140e9)
        assert np.isclose(S[2, 2], 1 / 5e9)

    def test_invalid_parameters(self, layer):
        with pytest.raises(ConfigurationError):
            OrthotropicMaterial(**{**layer.__dict__, 'G23': 0.0})
        with pytest.raises(ConfigurationError):
            OrthotropicMaterial(E1=1.0, E2=1.0, E3=1.0, G12=1.0, G13=1.0, G23=1.0, nu12=1.5)
        with pytest.raises(ConfigurationError):
            OrthotropicMaterial(**{**layer.__dict__, 'Rm': [[1, 1], [0, 1]]})

    def test_element_stiffness(self):
        mat = IsotropicMaterial(E=1.0, nu=0.25, rho=2.0)
        nodes, fes = block_mesh(1.0, 1.0, 1.0, 1, 1, 1)
        X = nodes.xyz[fes.conn[0]]
        iso = DeformationModel(fes, None, mat)
        ortho = DeformationModel(fes, None, self.as_orthotropic(mat))
        assert np.allclose(ortho.local_stiffness(X), iso.local_stiffness(X))
        assert np.allclose(ortho.local_mass(X), iso.local_mass(X))


class TestStrainDisplacement:
    """Tests for the B matrix."""

    def test_shapes(self):
        assert strain_displacement_matrix(np.ones((2, 1))).shape == (1, 2)
        assert strain_displacement_matrix(np.ones((4, 2))).shape == (3, 8)
        assert strain_displacement_matrix(np.ones((8, 3))).shape == (6, 24)


class TestDeformationModel:
    """Element stiffness and lumped mass."""

    def test_bar_stiffness(self):
        mat = IsotropicMaterial(E=100.0, nu=0.0, rho=2.0)
        fes = ElementSet('L2', [[0, 1]])
        model = DeformationModel(fes, None, mat, other_dimension=0.5)
        X = np.array([[0.0], [2.0]])
        k = 100.0 * 0.5 / 2.0
        assert np.allclose(model.local_stiffness(X), k * np.array([[1, -1], [-1, 1]]))
        assert np.allclose(model.local_mass(X), [1.0, 1.0])

    @pytest.mark.parametrize("etype", ['H8', 'H20', 'T4', 'T10'])
    def test_solid_lumped_mass(self, steel, etype):
        nodes, fes = block_mesh(1.0, 1.0, 1.0, 1, 1, 1, element_type=etype)
        model = DeformationModel(fes, None, steel)
        total = 0.0
        for conn in fes.conn:
            m = model.local_mass(nodes.xyz[conn])
            assert m.shape == (3 * fes.n_nodes_per_element,)
            assert np.all(m > 0)
            total += m[0::3].sum()
        assert np.isclose(total, steel.rho * 1.0)

    @pytest.mark.parametrize("etype", ['H8', 'H20', 'T10'])
    def test_rigid_body_modes(self, steel, etype):
        nodes, fes = block_mesh(1.0, 2.0, 1.0, 1, 1, 1, element_type=etype)
        model = DeformationModel(fes, None, steel)
        X = nodes.xyz[fes.conn[0]]
        Ke = model.local_stiffness(X)
        assert np.allclose(Ke, Ke.T, rtol=1e-10, atol=1e-6 * np.abs(Ke).max())
        translation = np.tile([1.0, -2.0, 0.5], X.shape[0])
        # Infinitesimal rotation about z
        rotation = np.column_stack([-X[:, 1], X[:, 0], np.zeros(X.shape[0])]).ravel()
        scale = np.abs(Ke).max()
        assert np.allclose(Ke @ translation, 0.0, atol=1e-8 * scale)
        assert np.allclose(Ke @ rotation, 0.0, atol=1e-8 * scale)

    def test_plane_element_thickness(self):
        mat = IsotropicMaterial(E=1.0, nu=0.0, rho=3.0)
        nodes, fes = rectangle_mesh(2.0, 1.0, 1, 1, element_type='Q8')
        model = DeformationModel(fes, None, mat, reduction='stress', other_dimension=0.1)
        m = model.local_mass(nodes.xyz[fes.conn[0]])
        assert np.all(m > 0)
        assert np.isclose(m[0::2].sum(), 3.0 * 2.0 * 0.1)

    def test_point_element_mass_only(self):
        mat = IsotropicMaterial(E=1.0, rho=1.0)
        model = DeformationModel(ElementSet('P1', [[0]]), None, mat, other_dimension=4.0)
        X = np.array([[0.5]])
        assert np.allclose(model.local_mass(X), [4.0])
        assert np.allclose(model.local_stiffness(X), 0.0)

    def test_uniform_strain_energy_density(self):
        mat = IsotropicMaterial(E=10.0, rho=1.0)
        model = DeformationModel(ElementSet('L3', [[0, 1, 2]]), None, mat)
        X = np.array([[0.0], [2.0], [1.0]])
        Ue = 0.01 * X.ravel()
        densities = list(model.strain_energy_density(X, Ue))
        assert len(densities) == 3
        assert np.allclose(densities, 0.5 * 10.0 * 0.01 ** 2)

    def test_rule_dimension_mismatch(self, steel):
        _, fes = block_mesh(1.0, 1.0, 1.0, 1, 1, 1)
        with pytest.raises(MeshError):
            DeformationModel(fes, GaussRule(2, 2), steel)
