"""
Tests for Boundary Conditions
=============================
"""

import numpy as np
import pytest

from femdyn.assembly import EssentialBC, TractionBC, BoundaryConditionManager
from femdyn.exceptions import MeshError
from femdyn.fields import NodalField
from femdyn.mesh import ElementSet, line_mesh, rectangle_mesh
from femdyn.physics import IsotropicMaterial, DeformationModel


@pytest.fixture
def plate():
    nodes, fes = rectangle_mesh(2.0, 1.0, 2, 1)
    u = NodalField('displacement', nodes.n_nodes, 2)
    return nodes, fes, u


def right_edge(nodes, fes):
    bdry = fes.boundary()
    return bdry.subset(bdry.select_box(nodes, [2.0, 2.0, 0.0, 1.0], inflate=1e-9))


class TestEssentialBC:
    """Prescribed displacement records."""

    def test_time_dependence_fixed_at_construction(self):
        bc = EssentialBC([0, 1], fixed_value=lambda t: 2.0 * t)
        assert bc.time_dependent
        assert bc.value_at(0.5) == 1.0
        assert not EssentialBC([0], fixed_value=3.0).time_dependent

    def test_velocity(self):
        bc = EssentialBC([0], fixed_value=lambda t: t ** 2, fixed_velocity=lambda t: 2 * t)
        assert bc.velocity_at(1.5) == 3.0

    def test_from_element_set(self):
        bc = EssentialBC.from_element_set(ElementSet('L2', [[4, 2], [2, 7]]), component=0)
        assert list(bc.node_list) == [2, 4, 7]


class TestTractionBC:
    """Consistent loads of surface tractions."""

    def test_load_sums_to_resultant(self, plate):
        nodes, fes, u = plate
        edge = right_edge(nodes, fes)
        assert edge.n_elements == 1
        u.number_dofs()
        F = TractionBC(edge, [3.0, -1.0], other_dimension=0.5).equivalent_load(nodes, u)
        F = F.reshape(-1, 2)
        assert np.allclose(F.sum(axis=0), [1.5, -0.5])
        loaded = np.flatnonzero(np.any(F != 0, axis=1))
        assert set(loaded) == set(edge.connected_nodes())

    def test_load_skips_fixed_dofs(self, plate):
        nodes, fes, u = plate
        edge = right_edge(nodes, fes)
        u.set_ebc(edge.connected_nodes(), component=1)
        u.number_dofs()
        F = TractionBC(edge, [0.0, 1.0]).equivalent_load(nodes, u)
        assert np.allclose(F, 0.0)

    def test_time_dependent_traction(self, plate):
        nodes, fes, u = plate
        u.number_dofs()
        bc = TractionBC(right_edge(nodes, fes), lambda t: [t, 0.0])
        assert bc.time_dependent
        assert np.isclose(bc.equivalent_load(nodes, u, time=2.0).sum(), 2.0)

    def test_component_mismatch(self, plate):
        nodes, fes, u = plate
        u.number_dofs()
        with pytest.raises(MeshError):
            TractionBC(right_edge(nodes, fes), [1.0]).equivalent_load(nodes, u)


class TestBoundaryConditionManager:
    """Application order, subsets and derived loads."""

    @pytest.fixture
    def bar(self):
        nodes, fes = line_mesh(1.0, 4)
        model = DeformationModel(fes, None, IsotropicMaterial(E=1.0, rho=1.0))
        u = NodalField('displacement', nodes.n_nodes, 1)
        essential = [
            EssentialBC([0], fixed_value=0.1),
            EssentialBC([4], fixed_value=lambda t: t, fixed_velocity=1.0),
        ]
        manager = BoundaryConditionManager(u, essential)
        manager.classify()
        return nodes, model, u, manager

    def test_classify(self, bar):
        _, _, u, manager = bar
        assert u.nfreedofs == 3
        assert u.values[0, 0] == 0.1
        assert u.values[4, 0] == 0.0
        assert manager.any_time_dependent_essential
        assert not manager.any_time_dependent_traction

    def test_apply_keeps_numbering(self, bar):
        _, _, u, manager = bar
        manager.apply(0.5)
        assert u.is_numbered
        assert u.values[4, 0] == 0.5

    def test_fixed_value_subsets(self, bar):
        _, _, _, manager = bar
        assert np.allclose(manager.fixed_values(2.0)[:, 0], [0.1, 0, 0, 0, 2.0])
        assert np.allclose(manager.fixed_values(2.0, time_dependent=True)[:, 0],
                           [0, 0, 0, 0, 2.0])
        assert np.allclose(manager.fixed_values(2.0, time_dependent=False)[:, 0],
                           [0.1, 0, 0, 0, 0])
        assert np.allclose(manager.fixed_velocities(2.0)[:, 0], [0, 0, 0, 0, 1.0])

    def test_last_applied_wins(self):
        u = NodalField('displacement', 3, 1)
        manager = BoundaryConditionManager(u, [
            EssentialBC([0, 1], fixed_value=lambda t: t),
            EssentialBC([1], fixed_value=5.0),
        ])
        manager.classify()
        assert u.values[1, 0] == 5.0
        # Node 1 belongs to the constant subset only
        assert np.allclose(manager.fixed_values(3.0, time_dependent=True)[:, 0], [3.0, 0, 0])
        assert np.allclose(manager.fixed_values(3.0, time_dependent=False)[:, 0], [0, 5.0, 0])

    def test_release(self):
        u = NodalField('displacement', 2, 2)
        manager = BoundaryConditionManager(u, [
            EssentialBC([0, 1]),
            EssentialBC([1], component=0, is_fixed=False),
        ])
        assert manager.classify() == 1
        assert u.equation_to_dof(0) == (1, 0)

    def test_nonzero_fixed_load(self, bar):
        nodes, model, _, manager = bar
        F = manager.nonzero_fixed_load([model], nodes, 0.5)
        # -K_fr u_f with k = 4 per element
        assert np.allclose(F, [0.4, 0.0, 2.0])
        F_indep = manager.nonzero_fixed_load([model], nodes, 0.5, time_dependent=False)
        assert np.allclose(F_indep, [0.4, 0.0, 0.0])

    def test_overlay_does_not_leak(self, bar):
        nodes, model, u, manager = bar
        manager.nonzero_fixed_load([model], nodes, 10.0)
        assert u.fixed_values[4, 0] == 0.0

    def test_summary(self, bar):
        _, _, _, manager = bar
        text = manager.summary()
        assert "2 fixed DOFs" in text
        assert "time-dependent" in text
        assert "constant" in text
