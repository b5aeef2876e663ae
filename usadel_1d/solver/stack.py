"""Multilayer orchestration.

A Stack owns its materials in left-to-right order; the neighbours of
material i are i-1 and i+1 (None at the outer edges). Updating a material
takes read-only snapshots of the neighbours' facing edges first, so the
per-energy solves never see a neighbour change underneath them.

Import Policy:
    from usadel_1d.solver.stack import Stack, StackResult

DO NOT use: from usadel_1d.solver.stack import *
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from usadel_1d.config.enums import MaterialKind
from usadel_1d.config.simulation_config import StackConfig
from usadel_1d.config.validation import ConfigurationError, validate_config
from usadel_1d.materials.material import Material
from usadel_1d.solver.bvp import BoundaryValueSolver, BVPDriver

logger = logging.getLogger(__name__)


@dataclass
class StackResult:
    """Outcome of a self-consistent stack calculation.

    Attributes:
        stack: The solved stack (materials hold the final state)
        deltas: Change of every sweep performed
        converged: Whether the last change was below the tolerance
        config: Configuration the stack was built from
        runtime_seconds: Wall-clock runtime
        critical_temperature: Result of a critical temperature search, if run
    """

    stack: Stack
    deltas: list[float]
    converged: bool
    config: Optional[StackConfig] = None
    runtime_seconds: float = 0.0
    critical_temperature: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "deltas": list(self.deltas),
            "converged": self.converged,
            "runtime_seconds": self.runtime_seconds,
            "critical_temperature": self.critical_temperature,
            "config": None if self.config is None else self.config.to_dict(),
        }


class Stack:
    """Chain of materials solved self-consistently.

    Args:
        materials: Materials ordered left to right
        driver: BVP driver used for every update

    Raises:
        ConfigurationError: If the stack is empty or the energy meshes differ
    """

    def __init__(self, materials: list[Material], driver: Optional[BVPDriver] = None):
        if not materials:
            raise ConfigurationError("a stack needs at least one material")
        reference = materials[0].energy
        for material in materials[1:]:
            if material.energy.shape != reference.shape or not np.array_equal(
                material.energy, reference
            ):
                raise ConfigurationError(
                    f"{material.name}: energy mesh differs from {materials[0].name}"
                )
        self.materials = list(materials)
        self.driver = driver if driver is not None else BVPDriver()

    @classmethod
    def from_config(
        cls, config: StackConfig, backend: Optional[BoundaryValueSolver] = None
    ) -> Stack:
        """Build materials and driver from a validated configuration."""
        validate_config(config, raise_on_error=True)
        energy = config.grid.energy_mesh()
        location = config.grid.location_mesh()
        materials = [
            Material(layer, energy, location, temperature=config.temperature)
            for layer in config.layers
        ]
        return cls(materials, BVPDriver(config.solver, backend))

    def __len__(self) -> int:
        return len(self.materials)

    def __getitem__(self, index: int) -> Material:
        return self.materials[index]

    def neighbors(self, index: int) -> tuple[Optional[int], Optional[int]]:
        """Indices of the left and right neighbours of material index."""
        left = index - 1 if index > 0 else None
        right = index + 1 if index < len(self.materials) - 1 else None
        return left, right

    def superconductors(self) -> list[Material]:
        return [m for m in self.materials if m.kind == MaterialKind.SUPERCONDUCTOR]

    def initialize(self, gap: Optional[complex] = None) -> None:
        """Reset every material; superconductors start from gap if given."""
        for material in self.materials:
            if material.kind == MaterialKind.SUPERCONDUCTOR:
                material.initialize(gap)
            else:
                material.initialize()

    def set_temperature(self, temperature: float) -> None:
        for material in self.materials:
            material.set_temperature(temperature)

    def update(self, index: int) -> float:
        """Solve material index against its neighbours' current edges.

        Returns:
            Largest of the state change and the gap change
        """
        material = self.materials[index]
        left, right = self.neighbors(index)
        left_edge = None if left is None else self.materials[left].state.edge("b")
        right_edge = None if right is None else self.materials[right].state.edge("a")

        change = self.driver.update(material, left_edge, right_edge)
        gap_change = material.update_posthook()
        return max(change, gap_change)

    def sweep(self) -> float:
        """Update every material once, left to right."""
        return max(self.update(index) for index in range(len(self.materials)))

    def converge(self, max_iterations: int, tolerance: float) -> list[float]:
        """Sweep until the change drops below tolerance.

        Returns:
            Change of every sweep performed

        Raises:
            ConfigurationError: If max_iterations < 1
        """
        if max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be >= 1, got {max_iterations}")
        deltas = []
        for iteration in range(max_iterations):
            delta = self.sweep()
            deltas.append(delta)
            logger.info(f"Sweep {iteration + 1}/{max_iterations}: change {delta:.3e}")
            if delta < tolerance:
                break
        else:
            logger.warning(
                f"Stack not converged after {max_iterations} sweeps (last change {deltas[-1]:.3e})"
            )
        return deltas

    def __repr__(self) -> str:
        return f"Stack({[m.name for m in self.materials]})"
