"""Energy and position meshes.

Positions are normalized to the material length and kept a hair inside the
open interval (0, 1). Energies are in units of the bulk gap; the default
piecewise mesh concentrates points around the gap edge where propagators
vary fastest.

Import Policy:
    from usadel_1d.core.grid import create_energy_grid, create_location_grid

DO NOT use: from usadel_1d.core.grid import *
"""

from __future__ import annotations

import numpy as np

from usadel_1d.config.defaults import (
    DEFAULT_COUPLING,
    DEFAULT_ENERGIES,
    DEFAULT_ENERGY_GRID_TYPE,
    DEFAULT_ENERGY_MAX,
    DEFAULT_ENERGY_MIN,
    DEFAULT_POSITIONS,
    PIECEWISE_BREAKPOINTS,
)
from usadel_1d.config.enums import EnergyGridType
from usadel_1d.core.constants import LOCATION_EDGE_OFFSET

# Share of the points given to each piecewise segment except the last
_PIECEWISE_FRACTIONS = (2 / 3, 1 / 6)


def create_location_grid(points: int = DEFAULT_POSITIONS) -> np.ndarray:
    """Uniform mesh on (0, 1) with the edges offset by LOCATION_EDGE_OFFSET."""
    if points < 2:
        raise ValueError(f"A location mesh needs at least 2 points, got {points}")
    return np.linspace(LOCATION_EDGE_OFFSET, 1 - LOCATION_EDGE_OFFSET, points)


def debye_cutoff(coupling: float) -> float:
    """Upper energy limit cosh(1/λ) of the weak-coupling gap equation."""
    return float(np.cosh(1 / coupling))


def create_energy_grid(
    points: int = DEFAULT_ENERGIES,
    energy_min: float = DEFAULT_ENERGY_MIN,
    energy_max: float = DEFAULT_ENERGY_MAX,
    grid_type: EnergyGridType = DEFAULT_ENERGY_GRID_TYPE,
    coupling: float = DEFAULT_COUPLING,
) -> np.ndarray:
    """Create a strictly increasing energy mesh.

    Args:
        points: Number of energies
        energy_min: First energy
        energy_max: Last energy (ignored for BCS, which ends at the Debye cutoff)
        grid_type: Discretization strategy
        coupling: BCS coupling constant, used by the BCS grid type

    Returns:
        Energy array of length points
    """
    if points < 1:
        raise ValueError(f"An energy mesh needs at least 1 point, got {points}")
    if grid_type == EnergyGridType.BCS:
        energy_max = debye_cutoff(coupling)
    if points == 1:
        return np.array([energy_min], dtype=np.float64)
    if energy_max <= energy_min:
        raise ValueError(f"energy_max ({energy_max}) must be > energy_min ({energy_min})")

    if grid_type == EnergyGridType.UNIFORM:
        return np.linspace(energy_min, energy_max, points)
    if grid_type in (EnergyGridType.PIECEWISE, EnergyGridType.BCS):
        return _piecewise_grid(points, energy_min, energy_max)
    raise ValueError(f"Unknown energy grid type: {grid_type}")


def _piecewise_grid(points: int, energy_min: float, energy_max: float) -> np.ndarray:
    edges = [energy_min] + [b for b in PIECEWISE_BREAKPOINTS if energy_min < b < energy_max]
    edges.append(energy_max)
    segments = len(edges) - 1
    if points < 4 * segments:
        return np.linspace(energy_min, energy_max, points)

    counts = [max(1, int(round(f * points))) for f in _PIECEWISE_FRACTIONS[: segments - 1]]
    counts.append(points - sum(counts))
    pieces = []
    for k, count in enumerate(counts):
        last = k == segments - 1
        pieces.append(np.linspace(edges[k], edges[k + 1], count, endpoint=last))
    return np.concatenate(pieces)
