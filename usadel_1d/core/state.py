"""Material state grid.

Riccati states live on an (energy, position) grid owned by one material.
The grid is stored packed, 32 reals per point in Propagator.to_real()
order, which is the layout the BVP driver exchanges with the solver.

Memory Layout:
    riccati[Ne, Nz, 32]       packed (g, gt, dg, dgt)
    distribution[Ne, Nz, 8]   distribution modes h
    gradient[Ne, Nz, 8]       distribution gradient dh
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from usadel_1d.core.propagator import Propagator, equilibrium_distribution

# Edge labels: "a" is the left edge (z = 0), "b" the right edge (z = 1)
EDGES = ("a", "b")


@dataclass
class MaterialState:
    """Propagators of one material on its (energy, position) grid.

    Attributes:
        energy: Energy mesh [Ne], read-only
        location: Position mesh [Nz], read-only
        riccati: Packed Riccati states [Ne, Nz, 32]
        distribution: Distribution modes [Ne, Nz, 8]
        gradient: Distribution gradients [Ne, Nz, 8]
    """

    energy: np.ndarray
    location: np.ndarray
    riccati: np.ndarray = field(default_factory=lambda: np.array([]))
    distribution: np.ndarray = field(default_factory=lambda: np.array([]))
    gradient: np.ndarray = field(default_factory=lambda: np.array([]))

    def __post_init__(self):
        """Freeze the meshes and allocate missing arrays."""
        self.energy = _frozen(self.energy)
        self.location = _frozen(self.location)
        if np.any(np.diff(self.location) <= 0):
            raise ValueError("location mesh must be strictly increasing")

        ne, nz = self.shape
        if self.riccati.size == 0:
            self.riccati = np.zeros((ne, nz, 32))
        if self.distribution.size == 0:
            self.distribution = np.zeros((ne, nz, 8))
        if self.gradient.size == 0:
            self.gradient = np.zeros((ne, nz, 8))

        for name, width in (("riccati", 32), ("distribution", 8), ("gradient", 8)):
            arr = getattr(self, name)
            if arr.shape != (ne, nz, width):
                raise ValueError(
                    f"{name} shape {arr.shape} does not match grid "
                    f"expected {(ne, nz, width)}"
                )

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.energy), len(self.location)

    def propagator(self, n: int, m: int) -> Propagator:
        """Propagator at energy index n and position index m."""
        return Propagator.from_real(
            self.riccati[n, m], h=self.distribution[n, m], dh=self.gradient[n, m]
        )

    def propagators(self) -> Propagator:
        """Batched propagator over the whole grid (a copy)."""
        return Propagator.from_real(
            self.riccati.copy(), h=self.distribution.copy(), dh=self.gradient.copy()
        )

    def row(self, n: int) -> np.ndarray:
        """Packed Riccati states [Nz, 32] of energy n (a copy)."""
        return self.riccati[n].copy()

    def set_row(self, n: int, values: np.ndarray) -> None:
        """Replace the whole energy row n.

        Raises:
            ValueError: If values has the wrong shape or contains non-finite entries
        """
        values = np.asarray(values, dtype=np.float64)
        expected = (len(self.location), 32)
        if values.shape != expected:
            raise ValueError(f"row shape {values.shape} does not match expected {expected}")
        if not np.all(np.isfinite(values)):
            raise ValueError(f"row {n} contains non-finite values")
        self.riccati[n] = values

    def edge(self, side: str) -> tuple[Propagator, ...]:
        """Read-only snapshot of the edge propagators, one per energy.

        Args:
            side: "a" for the left edge, "b" for the right edge
        """
        if side not in EDGES:
            raise ValueError(f"side must be one of {EDGES}, got {side!r}")
        m = 0 if side == "a" else -1
        return tuple(
            Propagator.from_real(
                self.riccati[n, m].copy(),
                h=self.distribution[n, m].copy(),
                dh=self.gradient[n, m].copy(),
            )
            for n in range(len(self.energy))
        )

    def copy(self) -> MaterialState:
        return MaterialState(
            energy=self.energy,
            location=self.location,
            riccati=self.riccati.copy(),
            distribution=self.distribution.copy(),
            gradient=self.gradient.copy(),
        )

    def max_difference(self, other: MaterialState) -> float:
        """Largest absolute difference between the packed Riccati states."""
        if self.riccati.shape != other.riccati.shape:
            raise ValueError("cannot compare states on different grids")
        return float(np.max(np.abs(self.riccati - other.riccati)))


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    if arr.ndim != 1 or arr.size == 0:
        raise ValueError(f"mesh must be a non-empty 1D array, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


def create_initial_state(
    energy: np.ndarray,
    location: np.ndarray,
    scattering: float,
    thouless: float,
    gap: complex = 0.0,
    temperature: float = 1e-6,
    voltage: float = 0.0,
    spinvoltage: float = 0.0,
    spintemperature: float = 0.0,
) -> MaterialState:
    """Create a state filled with the bulk BCS solution and equilibrium distributions.

    Args:
        energy: Energy mesh
        location: Position mesh
        scattering: Inelastic scattering rate
        thouless: Thouless energy used to normalize the complex energy
        gap: Uniform pair potential of the initial guess (0 for a normal metal)
        temperature: Reservoir temperature
        voltage, spinvoltage, spintemperature: Reservoir biases

    Returns:
        Initialized MaterialState
    """
    state = MaterialState(energy=energy, location=location)
    nz = len(state.location)
    for n, e in enumerate(state.energy):
        bulk = Propagator.bcs(complex(e, scattering) / thouless, gap / thouless)
        state.riccati[n] = np.broadcast_to(bulk.to_real(), (nz, 32))
        state.distribution[n] = equilibrium_distribution(
            e, temperature, voltage, spinvoltage, spintemperature
        )
    return state
