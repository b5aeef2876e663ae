"""Tests for the Riccati propagator and its observables."""

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from usadel_1d.core.constants import BCS_TANH_FACTOR
from usadel_1d.core.propagator import (
    MODE_MATRICES,
    TAU3,
    Propagator,
    advanced,
    distribution_matrix,
    equilibrium_distribution,
    nambu_gradient,
    nambu_matrix,
)
from usadel_1d.materials.descriptor import SpinOrbitCoupling
from usadel_1d.physics.spinorbit import SpinOrbitField


class TestNambuMatrix:
    """Tests for the 4x4 retarded propagator."""

    def test_normal_state_is_tau3(self, normal_state):
        """g = gt = 0 gives G = τ3."""
        assert_allclose(normal_state.retarded(), TAU3)

    def test_normalization(self, random_propagator):
        """Any Riccati pair gives a normalized propagator, G² = 1."""
        G = random_propagator.retarded()
        assert_allclose(G @ G, np.eye(4), atol=1e-10)

    def test_advanced_relation(self, random_propagator):
        """G^A = -τ3 (G^R)† τ3."""
        GR = random_propagator.retarded()
        GA = random_propagator.advanced()
        assert_allclose(GA, -TAU3 @ GR.conj().T @ TAU3)

    def test_gradient_matches_finite_difference(self, random_propagator):
        """nambu_gradient is the derivative along (dg, dgt)."""
        p = random_propagator
        h = 1e-6
        forward = nambu_matrix(p.g + h * p.dg, p.gt + h * p.dgt)
        backward = nambu_matrix(p.g - h * p.dg, p.gt - h * p.dgt)
        assert_allclose(
            nambu_gradient(p.g, p.gt, p.dg, p.dgt), (forward - backward) / (2 * h), atol=1e-6
        )

    def test_batched_matches_pointwise(self, random_spin):
        """A batched propagator equals the stack of pointwise ones."""
        g, gt = random_spin(shape=(3,)), random_spin(shape=(3,))
        batched = Propagator(g=g, gt=gt).retarded()
        for k in range(3):
            single = nambu_matrix(type(g)(g.matrix[k]), type(gt)(gt.matrix[k]))
            assert_allclose(batched[k], single)


class TestSerialization:
    """Tests for the 32-real packing of a propagator."""

    def test_round_trip_is_exact(self, random_propagator):
        """from_real(to_real(p)) reproduces all four spin matrices bit for bit."""
        p = random_propagator
        q = Propagator.from_real(p.to_real())
        for name in ("g", "gt", "dg", "dgt"):
            assert_array_equal(getattr(q, name).matrix, getattr(p, name).matrix)

    def test_layout(self, random_propagator):
        """to_real concatenates g, gt, dg, dgt, 8 reals each."""
        values = random_propagator.to_real()
        assert values.shape == (32,)
        assert_array_equal(values[16:24], random_propagator.dg.to_real())

    def test_rejects_wrong_width(self):
        """Only 32 reals per point are accepted."""
        with pytest.raises(ValueError, match="32"):
            Propagator.from_real(np.zeros(30))


class TestBCS:
    """Tests for the bulk BCS solution."""

    def test_zero_gap_is_normal(self):
        """A vanishing gap gives g = gt = 0."""
        p = Propagator.bcs(0.5 + 0.01j, 0.0)
        assert_array_equal(p.g.matrix, np.zeros((2, 2)))

    def test_density_of_states(self):
        """Above the gap the DOS follows E / sqrt(E² - Δ²)."""
        p = Propagator.bcs(2.0 + 1e-8j, 1.0)
        assert p.dos() == pytest.approx(2 / np.sqrt(3), rel=1e-6)

    def test_subgap_density_vanishes(self):
        """Inside the gap the DOS is of the order of the broadening."""
        p = Propagator.bcs(0.5 + 1e-6j, 1.0)
        assert abs(p.dos()) < 1e-4

    def test_phase(self):
        """The singlet amplitude carries the gap phase."""
        p = Propagator.bcs(2.0 + 1e-8j, 1j)
        f = p.correlation()
        assert np.angle(f) == pytest.approx(np.pi / 2, abs=1e-6)

    def test_gap_edge_rejected(self):
        """Without broadening the gap edge E = |Δ| has no finite solution."""
        with pytest.raises(ValueError, match="gap edge"):
            Propagator.bcs(1.0 + 0j, 1.0)
        assert np.all(np.isfinite(Propagator.bcs(1.0 + 1e-3j, 1.0).to_real()))


class TestDistribution:
    """Tests for distribution modes and matrices."""

    def test_equilibrium(self):
        """Without bias only the heat mode survives, tanh(1.76 E / 2T)."""
        h = equilibrium_distribution(0.3, 0.5)
        expected = np.zeros(8)
        expected[4] = np.tanh(BCS_TANH_FACTOR * 0.3 / 0.5)
        assert_allclose(h, expected)

    def test_voltage_creates_charge_mode(self):
        """A charge bias populates the charge mode only."""
        h = equilibrium_distribution(0.3, 0.5, voltage=0.1)
        assert h[0] != 0
        assert_allclose(h[1:4], 0)

    def test_spin_voltage_creates_spin_mode(self):
        """A spin bias populates the z spin mode."""
        h = equilibrium_distribution(0.3, 0.5, spinvoltage=0.1)
        assert h[3] != 0
        assert h[0] == pytest.approx(0)

    def test_distribution_matrix(self):
        """H = Σ h_k ρ_k."""
        h = np.arange(8, dtype=float)
        assert_allclose(distribution_matrix(h), np.tensordot(h, MODE_MATRICES, axes=1))


class TestObservables:
    """Tests for densities, accumulations and currents."""

    def test_normal_density(self, normal_state):
        """The normal metal has unit DOS and no spin polarization."""
        assert_allclose(normal_state.density(), [1.0, 0.0, 0.0, 0.0])

    def test_normal_equilibrium_accumulation(self):
        """In equilibrium only the heat accumulation is non-zero."""
        p = Propagator(h=equilibrium_distribution(0.3, 0.5))
        accumulation = p.accumulation()
        assert accumulation[0] == pytest.approx(0)
        assert accumulation[4] == pytest.approx(p.h[4])

    def test_uniform_state_carries_no_current(self):
        """dg = dgt = 0 and dh = 0 carry neither supercurrent nor lossy current."""
        p = Propagator.bcs(0.7 + 0.01j, 1.0)
        p.h = equilibrium_distribution(0.7, 0.3)
        assert_allclose(p.supercurrent(), 0, atol=1e-12)
        assert_allclose(p.lossycurrent(), 0, atol=1e-12)

    def test_lossy_current_in_normal_metal(self):
        """In a normal metal the charge current is dh_0 (Ohm's law)."""
        dh = np.zeros(8)
        dh[0] = 0.2
        p = Propagator(dh=dh)
        assert p.lossycurrent()[0] == pytest.approx(0.2)

    def test_lossy_current_is_covariant(self):
        """A spin-z distribution is rotated into a spin-y current by the gauge field."""
        h = np.zeros(8)
        h[3] = 0.4
        p = Propagator(h=h)
        gauge = SpinOrbitField.from_coupling(SpinOrbitCoupling(nanowire=0.5)).gauge()
        assert_allclose(p.lossycurrent(), 0, atol=1e-12)
        expected = np.zeros(8)
        expected[2] = 2 * 0.5 * 0.4
        assert_allclose(p.lossycurrent(gauge), expected, atol=1e-12)

    def test_batched_observables(self, random_spin):
        """Observables keep the batch shape."""
        p = Propagator(g=random_spin(shape=(2, 3)), gt=random_spin(shape=(2, 3)))
        assert p.density().shape == (2, 3, 4)
        assert p.correlation().shape == (2, 3)
        assert p.accumulation().shape == (2, 3, 8)

    def test_advanced_function_is_involution(self, random_propagator):
        """Applying the retarded-to-advanced map twice is the identity."""
        GR = random_propagator.retarded()
        assert_allclose(advanced(advanced(GR)), GR)
