"""Tests for the boundary conditions at layer edges."""

import pytest
import numpy as np
from numpy.testing import assert_allclose
from scipy.optimize import root

from usadel_1d.config.enums import InterfaceKind
from usadel_1d.config.simulation_config import StackConfig
from usadel_1d.config.validation import ConfigurationError, validate_config
from usadel_1d.core.propagator import Propagator
from usadel_1d.core.spin import SpinMatrix
from usadel_1d.materials.descriptor import (
    Conductor,
    Interface,
    SpinOrbitCoupling,
    Superconductor,
)
from usadel_1d.physics.boundary import BoundaryCondition, tunnel_residual
from usadel_1d.physics.spinorbit import SpinOrbitField


def _residual(condition, state, neighbor=None):
    return condition(state.g, state.gt, state.dg, state.dgt, neighbor)


class TestLinkage:
    """Tests for the interface kind / neighbour consistency checks."""

    def test_vacuum_with_neighbor_rejected(self):
        """A vacuum edge cannot have a neighbouring material."""
        with pytest.raises(ConfigurationError, match="vacuum"):
            BoundaryCondition(Interface(), "a", has_neighbor=True)

    @pytest.mark.parametrize(
        "kind", [InterfaceKind.TRANSPARENT, InterfaceKind.TUNNEL, InterfaceKind.SPINACTIVE]
    )
    def test_coupled_edge_without_neighbor_rejected(self, kind):
        """Coupled edges need a material on the other side."""
        with pytest.raises(ConfigurationError, match="no neighbouring material"):
            BoundaryCondition(Interface(kind=kind), "b", has_neighbor=False)

    def test_invalid_side_rejected(self):
        """Only the left (a) and right (b) edges exist."""
        with pytest.raises(ValueError, match="side"):
            BoundaryCondition(Interface(), "c", has_neighbor=False)

    @pytest.mark.parametrize("kind", [InterfaceKind.TUNNEL, InterfaceKind.TRANSPARENT])
    @pytest.mark.parametrize(
        "params",
        [{"polarization": 0.8}, {"spinmixing": 0.5}, {"spinmixing": 0.5, "secondorder": 0.1}],
    )
    def test_spinactive_parameters_need_spinactive_kind(self, kind, params):
        """Polarization and spin mixing are rejected rather than dropped."""
        interface = Interface(kind=kind, conductance=0.3, **params)
        with pytest.raises(ConfigurationError, match="only apply to spinactive"):
            BoundaryCondition(interface, "a", has_neighbor=True)

    def test_spinactive_parameters_fail_stack_validation(self):
        interface = Interface(kind=InterfaceKind.TUNNEL, polarization=0.8, spinmixing=0.5)
        layers = [
            Superconductor(name="S", interface_b=interface),
            Conductor(name="N", interface_a=interface),
        ]
        valid, errors = validate_config(StackConfig(layers=layers), raise_on_error=False)
        assert not valid
        assert any("polarization, spinmixing" in e for e in errors)

    def test_invalid_interface_rejected(self):
        """Interface validation errors surface as ConfigurationError."""
        interface = Interface(kind=InterfaceKind.TUNNEL, conductance=0.0)
        with pytest.raises(ConfigurationError, match="conductance"):
            BoundaryCondition(interface, "a", has_neighbor=True)


class TestVacuum:
    """Tests for the insulating edge."""

    def test_residual_is_derivative(self, random_propagator):
        """r = dg and rt = dgt."""
        condition = BoundaryCondition(Interface(), "a", has_neighbor=False)
        r, rt = _residual(condition, random_propagator)
        assert r.isclose(random_propagator.dg)
        assert rt.isclose(random_propagator.dgt)


class TestTransparent:
    """Tests for the continuity condition."""

    def test_continuity(self, random_propagator, singlet_factory):
        """r = g - g_n, independent of the derivatives."""
        neighbor = singlet_factory(0.2, -0.2)
        condition = BoundaryCondition(
            Interface(kind=InterfaceKind.TRANSPARENT), "b", has_neighbor=True
        )
        r, rt = _residual(condition, random_propagator, neighbor)
        assert r.isclose(random_propagator.g - neighbor.g)
        assert rt.isclose(random_propagator.gt - neighbor.gt)

    def test_spinorbit_not_added(self, random_propagator, singlet_factory):
        """Transparent edges impose continuity only, even with spin-orbit coupling."""
        neighbor = singlet_factory(0.2, -0.2)
        field = SpinOrbitField.from_coupling(SpinOrbitCoupling(nanowire=0.4))
        interface = Interface(kind=InterfaceKind.TRANSPARENT)
        plain = _residual(BoundaryCondition(interface, "a", True), random_propagator, neighbor)
        gauged = _residual(
            BoundaryCondition(interface, "a", True, spinorbit=field), random_propagator, neighbor
        )
        assert plain[0].isclose(gauged[0])


class TestTunnel:
    """Tests for the Kupriyanov-Lukichev condition."""

    def test_equal_states_carry_no_current(self, random_propagator, tunnel):
        """Identical propagators on both sides give r = dg."""
        p = random_propagator
        neighbor = Propagator(g=p.g, gt=p.gt)
        for side in ("a", "b"):
            r, rt = _residual(BoundaryCondition(tunnel, side, True), p, neighbor)
            assert r.isclose(p.dg)
            assert rt.isclose(p.dgt)

    def test_sides_are_mirrored(self, random_propagator, singlet_factory):
        """The current enters the left and right edges with opposite signs."""
        p = random_propagator
        neighbor = singlet_factory(0.3 + 0.1j, -0.3 + 0.1j)
        ra, _ = tunnel_residual("a", 0.3, p.g, p.gt, p.dg, p.dgt, neighbor)
        rb, _ = tunnel_residual("b", 0.3, p.g, p.gt, p.dg, p.dgt, neighbor)
        assert (ra - p.dg).isclose(-(rb - p.dg))

    def test_current_scales_with_conductance(self, random_propagator, singlet_factory):
        """The tunneling current is linear in the conductance."""
        p = random_propagator
        neighbor = singlet_factory(0.3, -0.3)
        weak, _ = tunnel_residual("a", 0.1, p.g, p.gt, p.dg, p.dgt, neighbor)
        strong, _ = tunnel_residual("a", 0.4, p.g, p.gt, p.dg, p.dgt, neighbor)
        assert (strong - p.dg).isclose(4 * (weak - p.dg))

    @pytest.mark.parametrize("side", ["a", "b"])
    def test_matches_spinactive_without_polarization(self, singlet_factory, side):
        """For singlets, KL equals the spin-active condition with P = Q = 0."""
        state = singlet_factory(0.4 + 0.1j, -0.3 + 0.2j, da=0.1, db=-0.2j)
        neighbor = singlet_factory(0.1 - 0.2j, 0.2 + 0.05j)
        tunnel = BoundaryCondition(
            Interface(kind=InterfaceKind.TUNNEL, conductance=0.3), side, True
        )
        spinactive = BoundaryCondition(
            Interface(kind=InterfaceKind.SPINACTIVE, conductance=0.3), side, True
        )
        r_tunnel, rt_tunnel = _residual(tunnel, state, neighbor)
        r_active, rt_active = _residual(spinactive, state, neighbor)
        assert_allclose(r_tunnel.matrix, r_active.matrix, atol=1e-12)
        assert_allclose(rt_tunnel.matrix, rt_active.matrix, atol=1e-12)

    def test_spinorbit_gauge_term(self, random_propagator, singlet_factory, tunnel):
        """With spin-orbit coupling the edge derivative becomes covariant."""
        p = random_propagator
        neighbor = singlet_factory(0.2, -0.2)
        field = SpinOrbitField.from_coupling(SpinOrbitCoupling(nanowire=0.4))
        plain = _residual(BoundaryCondition(tunnel, "b", True), p, neighbor)
        gauged = _residual(BoundaryCondition(tunnel, "b", True, spinorbit=field), p, neighbor)
        extra = field.boundary_terms(p.g, p.gt)
        assert (gauged[0] - plain[0]).isclose(extra[0])
        assert (gauged[1] - plain[1]).isclose(extra[1])
        assert np.max(np.abs(extra[0].matrix)) > 0

    def test_large_conductance_approaches_continuity(self, singlet_factory, random_spin):
        """As κ grows, the root of the KL residual tends to g = g_n."""
        neighbor = singlet_factory(0.3 + 0.1j, -0.2 + 0.1j)
        dg, dgt = random_spin(), random_spin()

        def distance(conductance):
            condition = BoundaryCondition(
                Interface(kind=InterfaceKind.TUNNEL, conductance=conductance), "a", True
            )

            def residual(x):
                g, gt = SpinMatrix.from_real(x[:8]), SpinMatrix.from_real(x[8:])
                r, rt = condition(g, gt, dg, dgt, neighbor)
                return np.concatenate([r.to_real(), rt.to_real()]) / conductance

            start = np.concatenate([neighbor.g.to_real(), neighbor.gt.to_real()]) + 0.05
            solution = root(residual, start)
            assert solution.success
            return np.max(np.abs(solution.x[:8] - neighbor.g.to_real()))

        assert distance(1e6) < 1e-5
        assert distance(1e6) < distance(10.0)


class TestNeighborIndependence:
    """Tests that insulating edges ignore neighbour data."""

    def test_vacuum_ignores_neighbor(self, random_propagator, singlet_factory):
        """Distinct neighbour states give identical vacuum residuals."""
        condition = BoundaryCondition(Interface(), "b", has_neighbor=False)
        p = random_propagator
        first = _residual(condition, p, singlet_factory(0.1, -0.1))
        second = _residual(condition, p, singlet_factory(0.5j, 0.3))
        assert first[0].isclose(second[0])
        assert first[1].isclose(second[1])
