"""Tests for the diffusion equation and its correction terms."""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from usadel_1d.core.propagator import Propagator, normalization
from usadel_1d.core.spin import PAULI2, PAULI3, SpinMatrix
from usadel_1d.materials.descriptor import (
    Conductor,
    Ferromagnet,
    SpinOrbitCoupling,
    SpinScattering,
    Superconductor,
)
from usadel_1d.physics.diffusion import DiffusionEquation, depairing_terms
from usadel_1d.physics.spinorbit import SpinOrbitField, coupling_field
from usadel_1d.physics.spinscattering import scattering_terms

ENERGY = 0.7 + 0.01j


def _second_derivative(equation, state, z=0.5):
    return equation(ENERGY, z, state.g, state.gt, state.dg, state.dgt)


class TestConductor:
    """Tests for the normal-metal equation."""

    def test_normal_state_is_fixed_point(self, normal_state):
        """g = gt = 0 solves the normal-metal equation."""
        d2g, d2gt = _second_derivative(DiffusionEquation(Conductor()), normal_state)
        assert_allclose(d2g.matrix, 0)
        assert_allclose(d2gt.matrix, 0)

    def test_baseline_terms(self, random_propagator):
        """d2g = -2 dg Nt gt dg - 2i e g."""
        p = random_propagator
        N, Nt = normalization(p.g, p.gt)
        d2g, _ = _second_derivative(DiffusionEquation(Conductor()), p)
        expected = -2 * (p.dg * Nt * p.gt * p.dg) - 2j * ENERGY * p.g
        assert d2g.isclose(expected)

    def test_evaluation_has_no_side_effects(self, random_propagator):
        """Calling the equation leaves its inputs untouched."""
        p = random_propagator
        before = p.to_real().copy()
        equation = DiffusionEquation(Conductor(depairing=0.1))
        first = _second_derivative(equation, p)
        second = _second_derivative(equation, p)
        assert_allclose(p.to_real(), before)
        assert_allclose(first[0].matrix, second[0].matrix)

    def test_batched_positions(self, random_spin):
        """The equation evaluates a whole mesh at once."""
        shape = (7,)
        g, gt, dg, dgt = (random_spin(shape=shape) for _ in range(4))
        z = np.linspace(0, 1, 7)
        d2g, d2gt = DiffusionEquation(Conductor())(ENERGY, z, g, gt, dg, dgt)
        assert d2g.shape == shape
        assert d2gt.shape == shape


class TestSuperconductor:
    """Tests for the pairing term."""

    def test_bcs_state_is_fixed_point(self, location):
        """The bulk BCS solution is a uniform solution of the equation."""
        equation = DiffusionEquation(Superconductor(), location, np.ones(len(location)))
        bulk = Propagator.bcs(ENERGY, 1.0)
        d2g, d2gt = _second_derivative(equation, bulk)
        assert_allclose(d2g.matrix, 0, atol=1e-12)
        assert_allclose(d2gt.matrix, 0, atol=1e-12)

    def test_gap_profile_interpolation(self, location):
        """The gap is linearly interpolated in position."""
        gap = np.linspace(0, 1, len(location)) + 0j
        equation = DiffusionEquation(Superconductor(), location, gap)
        assert equation.gap_at(0.5) == pytest.approx(0.5, abs=1e-8)

    def test_requires_gap_profile(self):
        """A superconductor cannot be built without its gap."""
        with pytest.raises(ValueError, match="gap"):
            DiffusionEquation(Superconductor())

    def test_gap_snapshot_is_immutable(self, location):
        """Later changes of the caller's array do not leak into the equation."""
        gap = np.ones(len(location), dtype=complex)
        equation = DiffusionEquation(Superconductor(), location, gap)
        gap[:] = 0
        assert equation.gap_at(0.5) == pytest.approx(1.0)


class TestFerromagnet:
    """Tests for the exchange field term."""

    def test_exchange_splits_normal_state_only_through_pairs(self, normal_state):
        """Without pair correlations the exchange field has no effect."""
        equation = DiffusionEquation(Ferromagnet(exchange=(0, 0, 3)))
        d2g, _ = _second_derivative(equation, normal_state)
        assert_allclose(d2g.matrix, 0)

    def test_exchange_acts_on_singlet(self, singlet_factory):
        """A z field converts singlets into triplets."""
        state = singlet_factory(0.3, -0.3)
        plain = _second_derivative(DiffusionEquation(Conductor()), state)[0]
        magnetic = _second_derivative(DiffusionEquation(Ferromagnet(exchange=(0, 0, 3))), state)[0]
        assert not plain.isclose(magnetic)


class TestSpinScattering:
    """Tests for spin-flip and spin-orbit impurity scattering."""

    def test_vanishes_without_rates(self, random_propagator):
        """Zero rates give exactly zero contributions."""
        p = random_propagator
        d2g, d2gt = scattering_terms(p.g, p.gt, 0.0, 0.0)
        assert_allclose(d2g.matrix, 0)
        assert_allclose(d2gt.matrix, 0)

    def test_spinorbit_leaves_singlet_unchanged(self, singlet_factory):
        """Spin-orbit scattering does not act on a singlet."""
        state = singlet_factory(0.4 + 0.1j, -0.2 + 0.3j)
        d2g, d2gt = scattering_terms(state.g, state.gt, 0.0, 0.5)
        assert_allclose(d2g.matrix, 0, atol=1e-12)
        assert_allclose(d2gt.matrix, 0, atol=1e-12)

    def test_spinflip_equals_depairing_for_singlet(self, singlet_factory):
        """On a singlet, spin-flip scattering acts as depairing of strength 1.5 γ."""
        state = singlet_factory(0.4 + 0.1j, -0.2 + 0.3j)
        N, Nt = normalization(state.g, state.gt)
        scattering = scattering_terms(state.g, state.gt, 0.2, 0.0)
        depairing = depairing_terms(0.3, state.g, state.gt, N, Nt)
        assert scattering[0].isclose(depairing[0], atol=1e-12)
        assert scattering[1].isclose(depairing[1], atol=1e-12)

    def test_included_by_descriptor(self, singlet_factory):
        """SpinScattering on a conductor adds the scattering terms."""
        state = singlet_factory(0.4, -0.4)
        plain = _second_derivative(DiffusionEquation(Conductor()), state)[0]
        scattering = _second_derivative(
            DiffusionEquation(Conductor(spinscattering=SpinScattering(spinflip=0.2))), state
        )[0]
        extra = scattering_terms(state.g, state.gt, 0.2, 0.0)[0]
        assert (scattering - plain).isclose(extra, atol=1e-12)

    def test_negative_rates_rejected(self):
        """Scattering rates must be non-negative."""
        with pytest.raises(ValueError, match="Spin scattering"):
            SpinScattering(spinflip=-1.0)


class TestSpinOrbit:
    """Tests for the spin-orbit gauge field terms."""

    def test_coupling_field(self):
        """Rashba coupling gives Ax = -α σ2, Ay = α σ1, Az = 0."""
        ax, ay, az = coupling_field(SpinOrbitCoupling.from_rashba(0.5))
        assert ax.isclose(-0.5 * SpinMatrix([[0, -1j], [1j, 0]]))
        assert ay.isclose(0.5 * SpinMatrix([[0, 1], [1, 0]]))
        assert az.isclose(SpinMatrix())

    def test_couplings_add(self):
        """Couplings combine component-wise."""
        total = SpinOrbitCoupling.from_rashba(0.1) + SpinOrbitCoupling.from_nanowire(0.2)
        assert total == SpinOrbitCoupling(rashba=0.1, nanowire=0.2)

    def test_normal_state_unaffected(self, normal_state):
        """A gauge field does not act on the normal state."""
        field = SpinOrbitField.from_coupling(SpinOrbitCoupling(rashba=0.3, nanowire=0.2))
        N, Nt = normal_state.normalization()
        d2g, d2gt = field.diffusion_terms(
            normal_state.g, normal_state.gt, normal_state.dg, normal_state.dgt, N, Nt
        )
        assert_allclose(d2g.matrix, 0)
        assert_allclose(d2gt.matrix, 0)

    def test_inactive_coupling_is_skipped(self, random_propagator):
        """An all-zero coupling leaves the equation unchanged."""
        p = random_propagator
        plain = _second_derivative(DiffusionEquation(Conductor()), p)[0]
        zero = _second_derivative(DiffusionEquation(Conductor(spinorbit=SpinOrbitCoupling())), p)[0]
        assert plain.isclose(zero)

    def test_uniform_singlet_unaffected(self, singlet_factory):
        """A Rashba field commutes with a uniform singlet."""
        state = singlet_factory(0.4, -0.4)
        field = SpinOrbitField.from_coupling(SpinOrbitCoupling(rashba=0.5))
        N, Nt = normalization(state.g, state.gt)
        d2g, d2gt = field.diffusion_terms(state.g, state.gt, state.dg, state.dgt, N, Nt)
        assert_allclose(d2g.matrix, 0, atol=1e-12)
        assert_allclose(d2gt.matrix, 0, atol=1e-12)

    def test_triplet_is_rotated(self):
        """A Rashba field acts on a uniform z-triplet."""
        triplet = PAULI3 * (1j * PAULI2)
        state = Propagator(g=0.3 * triplet, gt=-0.3 * triplet)
        field = SpinOrbitField.from_coupling(SpinOrbitCoupling(rashba=0.5))
        N, Nt = normalization(state.g, state.gt)
        d2g, _ = field.diffusion_terms(state.g, state.gt, state.dg, state.dgt, N, Nt)
        assert np.max(np.abs(d2g.matrix)) > 1e-3


class TestDepairing:
    """Tests for orbital depairing."""

    def test_depairing_scales_with_thouless(self, singlet_factory):
        """The depairing strength is measured in units of the Thouless energy."""
        state = singlet_factory(0.4, -0.4)
        plain = _second_derivative(DiffusionEquation(Conductor(thouless=2.0)), state)[0]
        depaired = _second_derivative(
            DiffusionEquation(Conductor(thouless=2.0, depairing=0.4)), state
        )[0]
        N, Nt = normalization(state.g, state.gt)
        assert (depaired - plain).isclose(depairing_terms(0.2, state.g, state.gt, N, Nt)[0])
