"""Core data structures: spin algebra, propagators, meshes and state grids."""

from usadel_1d.core.grid import create_energy_grid, create_location_grid, debye_cutoff
from usadel_1d.core.propagator import OBSERVABLES, Propagator, equilibrium_distribution
from usadel_1d.core.spin import (
    PAULI0,
    PAULI1,
    PAULI2,
    PAULI3,
    SingularMatrixError,
    SpinMatrix,
    anticommutator,
    commutator,
)
from usadel_1d.core.state import MaterialState, create_initial_state

__all__ = [
    "SpinMatrix",
    "SingularMatrixError",
    "PAULI0",
    "PAULI1",
    "PAULI2",
    "PAULI3",
    "commutator",
    "anticommutator",
    "Propagator",
    "OBSERVABLES",
    "equilibrium_distribution",
    "MaterialState",
    "create_initial_state",
    "create_energy_grid",
    "create_location_grid",
    "debye_cutoff",
]
