"""Stack Configuration - Single Source of Truth (SSOT)

This module provides the configuration dataclasses for a full calculation:
the layers of the stack, the meshes they are solved on, the boundary-value
solver settings and the self-consistency loop.

Import Policy:
    from usadel_1d.config.simulation_config import StackConfig, GridConfig, SolverConfig

DO NOT use: from usadel_1d.config.simulation_config import *
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from usadel_1d.config.defaults import (
    DEFAULT_CONVERGENCE_TOLERANCE,
    DEFAULT_COUPLING,
    DEFAULT_ENERGIES,
    DEFAULT_ENERGY_GRID_TYPE,
    DEFAULT_ENERGY_MAX,
    DEFAULT_ENERGY_MIN,
    DEFAULT_ERROR_CONTROL,
    DEFAULT_ITERATIONS,
    DEFAULT_ORDER,
    DEFAULT_POSITIONS,
    DEFAULT_SCALING,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOLERANCE,
    SUPPORTED_ORDERS,
)
from usadel_1d.config.enums import EnergyGridType, ErrorControl, InterfaceKind
from usadel_1d.core.grid import create_energy_grid, create_location_grid
from usadel_1d.materials.descriptor import Conductor, MaterialDescriptor, descriptor_from_dict


@dataclass
class SolverConfig:
    """Boundary-value solver settings.

    Attributes:
        scaling: Maximum number of mesh nodes per position point
        order: Collocation order (2, 4 or 6)
        control: Error control mode
        tolerance: Residual tolerance
    """

    scaling: int = DEFAULT_SCALING
    order: int = DEFAULT_ORDER
    control: ErrorControl = DEFAULT_ERROR_CONTROL
    tolerance: float = DEFAULT_TOLERANCE

    def __post_init__(self):
        """Coerce the error control mode."""
        self.control = ErrorControl(self.control)

    def validate(self) -> list[str]:
        """Validate solver configuration.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        if self.scaling < 1:
            errors.append(f"scaling must be >= 1, got {self.scaling}")
        if self.order not in SUPPORTED_ORDERS:
            errors.append(f"order must be one of {SUPPORTED_ORDERS}, got {self.order}")
        if self.tolerance <= 0:
            errors.append(f"tolerance must be > 0, got {self.tolerance}")
        return errors


@dataclass
class GridConfig:
    """Energy and position meshes shared by all layers.

    Attributes:
        positions: Number of position points per layer
        energies: Number of energy points
        energy_min, energy_max: Energy range (energy_max unused for BCS grids)
        energy_grid_type: How the energies are distributed
        coupling: BCS coupling fixing the Debye cutoff of BCS grids
    """

    positions: int = DEFAULT_POSITIONS
    energies: int = DEFAULT_ENERGIES
    energy_min: float = DEFAULT_ENERGY_MIN
    energy_max: float = DEFAULT_ENERGY_MAX
    energy_grid_type: EnergyGridType = DEFAULT_ENERGY_GRID_TYPE
    coupling: float = DEFAULT_COUPLING

    def __post_init__(self):
        """Coerce the energy grid type."""
        self.energy_grid_type = EnergyGridType(self.energy_grid_type)

    def validate(self) -> list[str]:
        errors = []
        if self.positions < 2:
            errors.append(f"positions must be >= 2, got {self.positions}")
        if self.energies < 1:
            errors.append(f"energies must be >= 1, got {self.energies}")
        if self.energy_min < 0:
            errors.append(f"energy_min must be >= 0, got {self.energy_min}")
        if self.energy_grid_type != EnergyGridType.BCS and self.energies > 1:
            if self.energy_max <= self.energy_min:
                errors.append(
                    f"energy_max ({self.energy_max}) must be > energy_min ({self.energy_min})"
                )
        if self.coupling <= 0:
            errors.append(f"coupling must be > 0, got {self.coupling}")
        return errors

    def energy_mesh(self) -> np.ndarray:
        return create_energy_grid(
            self.energies, self.energy_min, self.energy_max, self.energy_grid_type, self.coupling
        )

    def location_mesh(self) -> np.ndarray:
        return create_location_grid(self.positions)


@dataclass
class StackConfig:
    """Complete configuration of a multilayer calculation.

    Layers are ordered left to right; layer i's interface_b and layer i+1's
    interface_a describe the same physical interface from both sides.

    Attributes:
        layers: Material descriptors, left to right
        solver: Boundary-value solver settings
        grid: Mesh settings
        temperature: Temperature (units of the bulk critical temperature)
        iterations: Maximum number of self-consistency sweeps
        convergence_tolerance: Sweep-to-sweep change below which iteration stops
    """

    layers: list[MaterialDescriptor] = field(default_factory=list)
    solver: SolverConfig = field(default_factory=SolverConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    temperature: float = DEFAULT_TEMPERATURE
    iterations: int = DEFAULT_ITERATIONS
    convergence_tolerance: float = DEFAULT_CONVERGENCE_TOLERANCE

    def validate(self) -> list[str]:
        """Validate the complete configuration, including the layer linkage.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        if not self.layers:
            errors.append("a stack needs at least one layer")
        errors.extend(self.solver.validate())
        errors.extend(self.grid.validate())
        if self.temperature <= 0:
            errors.append(f"temperature must be > 0, got {self.temperature}")
        if self.iterations < 1:
            errors.append(f"iterations must be >= 1, got {self.iterations}")
        if self.convergence_tolerance <= 0:
            errors.append(
                f"convergence_tolerance must be > 0, got {self.convergence_tolerance}"
            )

        for index, layer in enumerate(self.layers):
            errors.extend(layer.validate())
            first = index == 0
            last = index == len(self.layers) - 1
            if first != (layer.interface_a.kind == InterfaceKind.VACUUM):
                errors.append(
                    f"{layer.name}: interface_a must be vacuum exactly when there is no left neighbour"
                )
            if last != (layer.interface_b.kind == InterfaceKind.VACUUM):
                errors.append(
                    f"{layer.name}: interface_b must be vacuum exactly when there is no right neighbour"
                )
        return errors

    def to_dict(self) -> dict:
        """Convert configuration to dictionary for serialization."""
        return {
            "layers": [layer.to_dict() for layer in self.layers],
            "solver": {
                "scaling": self.solver.scaling,
                "order": self.solver.order,
                "control": self.solver.control.value,
                "tolerance": self.solver.tolerance,
            },
            "grid": {
                "positions": self.grid.positions,
                "energies": self.grid.energies,
                "energy_min": self.grid.energy_min,
                "energy_max": self.grid.energy_max,
                "energy_grid_type": self.grid.energy_grid_type.value,
                "coupling": self.grid.coupling,
            },
            "temperature": self.temperature,
            "iterations": self.iterations,
            "convergence_tolerance": self.convergence_tolerance,
        }

    @classmethod
    def from_dict(cls, data: dict) -> StackConfig:
        """Create configuration from dictionary.

        Unknown top-level keys are ignored; unknown layer parameters raise.
        """
        return cls(
            layers=[descriptor_from_dict(layer) for layer in data.get("layers", [])],
            solver=SolverConfig(**data.get("solver", {})),
            grid=GridConfig(**data.get("grid", {})),
            temperature=data.get("temperature", DEFAULT_TEMPERATURE),
            iterations=data.get("iterations", DEFAULT_ITERATIONS),
            convergence_tolerance=data.get("convergence_tolerance", DEFAULT_CONVERGENCE_TOLERANCE),
        )


def create_default_config(**kwargs) -> StackConfig:
    """Create a configuration with a single normal-metal layer.

    Args:
        **kwargs: Overrides for StackConfig fields

    Returns:
        StackConfig
    """
    kwargs.setdefault("layers", [Conductor()])
    return StackConfig(**kwargs)
