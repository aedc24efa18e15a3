"""
Tests for Assembly Module
=========================
"""

import numpy as np
import pytest
import scipy.sparse as sp

from femdyn.assembly import (
    SparseSystemMatrixAssembler, DiagonalSystemMatrixAssembler, SystemVectorAssembler,
    assemble_stiffness, assemble_mass, rayleigh_damping, nonzero_ebc_load,
)
from femdyn.fields import NodalField
from femdyn.mesh import line_mesh, rectangle_mesh
from femdyn.physics import IsotropicMaterial, DeformationModel


@pytest.fixture
def bar():
    """Unit bar of four L2 elements, E = A = rho = 1, left end fixed."""
    nodes, fes = line_mesh(1.0, 4)
    model = DeformationModel(fes, None, IsotropicMaterial(E=1.0, rho=1.0))
    u = NodalField('displacement', nodes.n_nodes, 1)
    u.set_ebc([0])
    u.number_dofs()
    return nodes, model, u


class TestAssemblers:
    """Scatter-add behavior of the accumulators."""

    def test_fixed_dofs_dropped(self):
        asm = SparseSystemMatrixAssembler(2)
        asm.assemble(np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]]),
                     [1, -1, 0])
        K = asm.make_matrix().toarray()
        assert np.allclose(K, [[9.0, 7.0], [3.0, 1.0]])

    def test_duplicates_summed(self):
        asm = SparseSystemMatrixAssembler(3)
        for dofs in ([0, 1], [1, 2]):
            asm.assemble(np.array([[1.0, -1.0], [-1.0, 1.0]]), dofs)
        K = asm.make_matrix()
        assert sp.isspmatrix_csr(K)
        assert np.allclose(K.toarray(), [[1, -1, 0], [-1, 2, -1], [0, -1, 1]])

    def test_all_fixed_element_ignored(self):
        asm = SparseSystemMatrixAssembler(2)
        asm.assemble(np.eye(2), [-1, -1])
        assert asm.make_matrix().nnz == 0

    def test_diagonal_and_vector(self):
        dasm = DiagonalSystemMatrixAssembler(2)
        vasm = SystemVectorAssembler(2)
        for dofs in ([0, -1], [0, 1]):
            dasm.assemble(np.array([1.0, 2.0]), dofs)
            vasm.assemble(np.array([3.0, 4.0]), dofs)
        assert np.allclose(dasm.make_matrix().diagonal(), [2.0, 2.0])
        assert np.allclose(vasm.make_vector(), [6.0, 4.0])

    def test_deterministic(self):
        rng = np.random.default_rng(0)
        mats = [rng.standard_normal((3, 3)) for _ in range(20)]
        dofs = [rng.integers(-1, 5, size=3) for _ in range(20)]

        def build():
            asm = SparseSystemMatrixAssembler(5)
            for m, d in zip(mats, dofs):
                asm.assemble(m, d)
            return asm.make_matrix().toarray()

        assert np.array_equal(build(), build())


class TestGlobalAssembly:
    """Global operators of small meshes."""

    def test_bar_stiffness(self, bar):
        nodes, model, u = bar
        K = assemble_stiffness([model], nodes, u).toarray()
        expected = 4.0 * np.array([[2, -1, 0, 0], [-1, 2, -1, 0],
                                   [0, -1, 2, -1], [0, 0, -1, 1]])
        assert np.allclose(K, expected)

    def test_bar_mass(self, bar):
        nodes, model, u = bar
        M = assemble_mass([model], nodes, u)
        assert np.allclose(M.toarray(), np.diag(M.diagonal()))
        assert np.allclose(M.diagonal(), [0.25, 0.25, 0.25, 0.125])

    def test_plate_operators(self):
        nodes, fes = rectangle_mesh(2.0, 1.0, 4, 2, element_type='Q8')
        mat = IsotropicMaterial(E=1000.0, nu=0.3, rho=2.0)
        model = DeformationModel(fes, None, mat, reduction='stress', other_dimension=0.5)
        u = NodalField('displacement', nodes.n_nodes, 2)
        u.number_dofs()
        K = assemble_stiffness([model], nodes, u)
        M = assemble_mass([model], nodes, u)
        assert abs(K - K.T).max() < 1e-9 * abs(K).max()
        assert np.all(M.diagonal() > 0)
        # Each component carries the full mass
        assert np.isclose(M.diagonal().sum(), 2 * 2.0 * 2.0 * 0.5)

    def test_rayleigh_damping(self, bar):
        nodes, model, u = bar
        K = assemble_stiffness([model], nodes, u)
        M = assemble_mass([model], nodes, u)
        C = rayleigh_damping(K, M, 0.1, 2.0)
        assert np.allclose(C.toarray(), 0.1 * K.toarray() + 2.0 * M.toarray())
        C0 = rayleigh_damping(K, M, 0.0, 0.0)
        assert C0.shape == K.shape
        assert C0.nnz == 0

    def test_nonzero_ebc_load(self, bar):
        nodes, model, u = bar
        u.set_ebc([0], value=0.1)
        F = nonzero_ebc_load([model], nodes, u)
        assert np.allclose(F, [0.4, 0.0, 0.0, 0.0])

    def test_zero_ebc_load(self, bar):
        nodes, model, u = bar
        assert np.allclose(nonzero_ebc_load([model], nodes, u), 0.0)
