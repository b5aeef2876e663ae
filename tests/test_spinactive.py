"""Tests for spin-active interfaces."""

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from usadel_1d.config.enums import InterfaceKind
from usadel_1d.core.propagator import Propagator, nambu_matrix
from usadel_1d.core.spin import SpinMatrix
from usadel_1d.materials.descriptor import Interface
from usadel_1d.physics.boundary import BoundaryCondition
from usadel_1d.physics.spinactive import (
    SpinActiveInterface,
    magnetization_matrix,
    spinactive_current,
)


@pytest.fixture
def nambu_pair(random_spin):
    """Two Nambu propagators built from random Riccati parameters."""
    G0 = nambu_matrix(random_spin(), random_spin())
    G1 = nambu_matrix(random_spin(), random_spin())
    return G0, G1


def _interface(**kwargs):
    kwargs.setdefault("kind", InterfaceKind.SPINACTIVE)
    return Interface(**kwargs)


class TestMagnetizationMatrix:
    """Tests for the 4x4 magnetization matrix."""

    def test_structure(self):
        """diag(m·σ, (m·σ)*) for m along y."""
        M = magnetization_matrix((0, 1, 0))
        assert_allclose(M[:2, :2], [[0, -1j], [1j, 0]])
        assert_allclose(M[2:, 2:], [[0, 1j], [-1j, 0]])
        assert_allclose(M[:2, 2:], 0)

    def test_zero_vector_falls_back_to_base(self):
        """A zero misalignment reuses the barrier magnetization."""
        M = magnetization_matrix((0, 0, 1))
        assert_array_equal(magnetization_matrix((0, 0, 0), base=M), M)
        assert_array_equal(magnetization_matrix((0, 0, 0)), np.zeros((4, 4)))

    def test_interface_normalizes_directions(self):
        """Magnetization vectors are stored as unit vectors."""
        interface = _interface(magnetization=(0, 3, 4))
        assert interface.magnetization == pytest.approx((0, 0.6, 0.8))


class TestCurrent:
    """Tests for the matrix current through a spin-active barrier."""

    def test_unpolarized_is_commutator(self, nambu_pair):
        """P = Q = 0 gives exactly [G0, G1]."""
        G0, G1 = nambu_pair
        M = magnetization_matrix((0, 0, 1))
        current = spinactive_current(G0, G1, M, M, M, 0.0, 0.0)
        assert_array_equal(current, G0 @ G1 - G1 @ G0)

    def test_polarization_changes_current(self, nambu_pair):
        """A polarized barrier filters the transmitted propagator."""
        G0, G1 = nambu_pair
        M = magnetization_matrix((1, 0, 0))
        plain = spinactive_current(G0, G1, M, M, M, 0.0, 0.0)
        polarized = spinactive_current(G0, G1, M, M, M, 0.5, 0.0)
        assert not np.allclose(plain, polarized)

    def test_second_order_terms_change_current(self, nambu_pair):
        """A non-zero second-order coefficient adds extra terms."""
        G0, G1 = nambu_pair
        M = magnetization_matrix((0, 0, 1))
        first = spinactive_current(G0, G1, M, M, M, 0.2, 0.5)
        second = spinactive_current(G0, G1, M, M, M, 0.2, 0.5, secondorder=0.1)
        assert not np.allclose(first, second)

    def test_conductance_scaling(self, nambu_pair):
        """The current is linear in the conductance."""
        G0, G1 = nambu_pair
        weak = SpinActiveInterface(_interface(conductance=0.2, polarization=0.3), True)
        strong = SpinActiveInterface(_interface(conductance=0.6, polarization=0.3), True)
        assert_allclose(strong.current(G0, G1), 3 * weak.current(G0, G1))

    def test_insulator_ignores_polarization(self):
        """Without neighbour only reflection survives, at unit conductance."""
        edge = SpinActiveInterface(
            _interface(kind=InterfaceKind.VACUUM, spinmixing=0.5, polarization=0.7), False
        )
        assert edge.conductance == 1.0
        assert edge.polarization == 0.0


class TestSpinMixingEdge:
    """Tests for a spin-mixing insulating edge."""

    def test_is_spinactive(self):
        """A vacuum edge with spin-mixing uses the spin-active condition."""
        assert _interface(kind=InterfaceKind.VACUUM, spinmixing=0.5).spinactive
        assert not Interface().spinactive

    def test_normal_state_reduces_to_vacuum(self):
        """Without pair correlations the spin-mixing edge gives r = dg."""
        dg_state = Propagator(dg=SpinMatrix([[0.1, 0.2j], [0.0, -0.3]]))
        condition = BoundaryCondition(
            _interface(kind=InterfaceKind.VACUUM, spinmixing=0.5), "a", has_neighbor=False
        )
        r, rt = condition(dg_state.g, dg_state.gt, dg_state.dg, dg_state.dgt)
        assert r.isclose(dg_state.dg)
        assert rt.isclose(dg_state.dgt)

    def test_acts_on_superconducting_state(self):
        """Spin mixing converts singlet correlations at the edge."""
        bulk = Propagator.bcs(0.5 + 0.01j, 1.0)
        condition = BoundaryCondition(
            _interface(kind=InterfaceKind.VACUUM, spinmixing=0.5), "b", has_neighbor=False
        )
        r, _ = condition(bulk.g, bulk.gt, bulk.dg, bulk.dgt)
        assert not r.isclose(bulk.dg)

    def test_edges_have_opposite_signs(self):
        """The spin-mixing term enters the left and right edges with opposite signs."""
        bulk = Propagator.bcs(0.5 + 0.01j, 1.0)
        interface = _interface(kind=InterfaceKind.VACUUM, spinmixing=0.5)
        ra, _ = BoundaryCondition(interface, "a", False)(bulk.g, bulk.gt, bulk.dg, bulk.dgt)
        rb, _ = BoundaryCondition(interface, "b", False)(bulk.g, bulk.gt, bulk.dg, bulk.dgt)
        assert ra.isclose(-rb)
