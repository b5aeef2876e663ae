"""Pytest configuration and shared fixtures for usadel_1d tests."""

import pytest
import numpy as np

from usadel_1d.config.enums import EnergyGridType, InterfaceKind
from usadel_1d.core.grid import create_energy_grid, create_location_grid
from usadel_1d.core.propagator import Propagator
from usadel_1d.core.spin import PAULI2, SpinMatrix
from usadel_1d.materials.descriptor import Conductor, Interface, Superconductor
from usadel_1d.materials.material import Material


# Fixtures for random spin matrices and propagators


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(1234)


@pytest.fixture
def random_spin(rng):
    """Factory for random complex spin matrices of moderate size."""
    def make(scale=0.3, shape=()):
        values = rng.normal(size=shape + (2, 2)) + 1j * rng.normal(size=shape + (2, 2))
        return SpinMatrix(scale * values)
    return make


@pytest.fixture
def random_propagator(random_spin):
    """Propagator with random (g, gt, dg, dgt)."""
    return Propagator(
        g=random_spin(),
        gt=random_spin(),
        dg=random_spin(),
        dgt=random_spin(),
    )


@pytest.fixture
def singlet_factory():
    """Factory for pure singlet states g = a iσ2, gt = b iσ2."""
    def make(a, b, da=0.0, db=0.0):
        return Propagator(
            g=a * (1j * PAULI2),
            gt=b * (1j * PAULI2),
            dg=da * (1j * PAULI2),
            dgt=db * (1j * PAULI2),
        )
    return make


@pytest.fixture
def normal_state():
    """Normal-metal propagator g = gt = 0."""
    return Propagator()


# Fixtures for meshes and materials


@pytest.fixture
def location():
    """Coarse position mesh."""
    return create_location_grid(20)


@pytest.fixture
def small_energy():
    """A few energies below and above the gap."""
    return create_energy_grid(6, 0.05, 1.5, EnergyGridType.UNIFORM)


@pytest.fixture
def bcs_energy():
    """BCS mesh up to the Debye cutoff of the default coupling."""
    return create_energy_grid(600, 1e-6, grid_type=EnergyGridType.BCS, coupling=0.2)


@pytest.fixture
def conductor(small_energy, location):
    """Isolated normal metal."""
    return Material(Conductor(name="N"), small_energy, location)


@pytest.fixture
def superconductor(bcs_energy):
    """Isolated bulk superconductor on a BCS mesh."""
    return Material(Superconductor(name="S"), bcs_energy, create_location_grid(5))


@pytest.fixture
def tunnel():
    """Kupriyanov-Lukichev interface."""
    return Interface(kind=InterfaceKind.TUNNEL, conductance=0.3)
