"""Runtime material: a layer descriptor together with its meshes and state.

A Material owns its propagator grid and, for superconductors, its gap
profile. Solving is done by the BVP driver from a SolveSetup snapshot
produced by update_prehook(); update_posthook() then derives the integrated
observables and, for superconductors, solves the gap equation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.interpolate import PchipInterpolator

from usadel_1d.config.defaults import DEFAULT_TEMPERATURE
from usadel_1d.config.enums import MaterialKind
from usadel_1d.config.validation import ConfigurationError
from usadel_1d.core.constants import BCS_TANH_FACTOR, GAP_EQUATION_MIN_ENERGY
from usadel_1d.core.grid import debye_cutoff
from usadel_1d.core.propagator import equilibrium_distribution
from usadel_1d.core.state import MaterialState, create_initial_state
from usadel_1d.materials.descriptor import MaterialDescriptor
from usadel_1d.physics.boundary import BoundaryCondition
from usadel_1d.physics.diffusion import DiffusionEquation
from usadel_1d.physics.spinorbit import SpinOrbitField

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolveSetup:
    """Immutable inputs of one update pass over a material.

    Attributes:
        energies: Complex energies (E + iδ) / ε_T, one per energy point
        diffusion: Right-hand side of the Usadel equation
        boundary_a: Left edge boundary condition
        boundary_b: Right edge boundary condition
    """

    energies: np.ndarray
    diffusion: DiffusionEquation
    boundary_a: BoundaryCondition
    boundary_b: BoundaryCondition


def integrate(energy: np.ndarray, values: np.ndarray, lower: float, upper: float) -> np.ndarray:
    """Integrate samples along the first axis with a PCHIP interpolant.

    Returns zeros when fewer than two energies are available.
    """
    values = np.asarray(values)
    if len(energy) < 2:
        return np.zeros(values.shape[1:], dtype=values.dtype)
    if np.iscomplexobj(values):
        return integrate(energy, values.real, lower, upper) + 1j * integrate(
            energy, values.imag, lower, upper
        )
    return PchipInterpolator(energy, values, axis=0).integrate(lower, upper)


class Material:
    """One layer of a stack.

    Attributes:
        descriptor: Layer parameters
        state: Propagator grid
        temperature: Temperature of the layer
        gap: Complex gap profile [Nz] (superconductors only, else None)
        density: Spin-resolved density of states [Ne, Nz, 4]
        correlation: Integrated singlet correlation [Nz]
        accumulation, supercurrent, lossycurrent: Integrated observables [Nz, 8]
    """

    def __init__(
        self,
        descriptor: MaterialDescriptor,
        energy: np.ndarray,
        location: np.ndarray,
        temperature: float = DEFAULT_TEMPERATURE,
    ):
        errors = descriptor.validate()
        if errors:
            raise ConfigurationError(
                f"Material '{descriptor.name}' is invalid:\n"
                + "\n".join(f"  - {err}" for err in errors)
            )
        if temperature <= 0:
            raise ConfigurationError(f"temperature must be > 0, got {temperature}")

        self.descriptor = descriptor
        self.temperature = temperature
        self.spinorbit = None
        if descriptor.spinorbit is not None and descriptor.spinorbit.active:
            self.spinorbit = SpinOrbitField.from_coupling(descriptor.spinorbit, descriptor.thouless)

        self.state = MaterialState(energy=energy, location=location)
        self.gap = None
        self.initialize()

        ne, nz = self.state.shape
        self.density = np.ones((ne, nz, 4)) * np.array([1.0, 0.0, 0.0, 0.0])
        self.correlation = np.zeros(nz, dtype=np.complex128)
        self.accumulation = np.zeros((nz, 8))
        self.supercurrent = np.zeros((nz, 8))
        self.lossycurrent = np.zeros((nz, 8))

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def kind(self) -> MaterialKind:
        return self.descriptor.kind

    @property
    def energy(self) -> np.ndarray:
        return self.state.energy

    @property
    def location(self) -> np.ndarray:
        return self.state.location

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self, gap: Optional[complex] = None) -> None:
        """Reset the propagators to a uniform BCS state.

        Args:
            gap: Pair potential of the initial state; defaults to the
                descriptor's initial_gap. Superconductors also reset their
                gap profile to this value.
        """
        if gap is None:
            gap = self.descriptor.initial_gap
        d = self.descriptor
        self.state = create_initial_state(
            self.state.energy,
            self.state.location,
            scattering=d.scattering,
            thouless=d.thouless,
            gap=gap,
            temperature=self.temperature,
            voltage=d.voltage,
            spinvoltage=d.spinvoltage,
            spintemperature=d.spintemperature,
        )
        if self.kind == MaterialKind.SUPERCONDUCTOR:
            self.gap = np.full(len(self.location), gap, dtype=np.complex128)

    def set_temperature(self, temperature: float) -> None:
        """Change the temperature and re-equilibrate the distribution functions."""
        if temperature <= 0:
            raise ConfigurationError(f"temperature must be > 0, got {temperature}")
        self.temperature = temperature
        d = self.descriptor
        for n, e in enumerate(self.energy):
            self.state.distribution[n] = equilibrium_distribution(
                e, temperature, d.voltage, d.spinvoltage, d.spintemperature
            )

    # ------------------------------------------------------------------
    # Gap profile
    # ------------------------------------------------------------------

    def gap_at(self, z) -> np.ndarray:
        """Linearly interpolated gap at position(s) z (zero for non-superconductors)."""
        if self.gap is None:
            return np.zeros_like(np.asarray(z, dtype=np.float64), dtype=np.complex128)
        return np.interp(z, self.location, self.gap.real) + 1j * np.interp(
            z, self.location, self.gap.imag
        )

    def gap_mean(self) -> complex:
        if self.gap is None:
            return 0j
        return complex(np.mean(self.gap))

    def set_gap(self, gap) -> None:
        """Replace the gap profile with a scalar or a per-position array."""
        if self.kind != MaterialKind.SUPERCONDUCTOR:
            raise ConfigurationError(f"'{self.name}' is not a superconductor")
        values = np.broadcast_to(np.asarray(gap, dtype=np.complex128), self.location.shape)
        self.gap = values.copy()

    # ------------------------------------------------------------------
    # Update hooks
    # ------------------------------------------------------------------

    def update_prehook(self, has_left: bool, has_right: bool) -> SolveSetup:
        """Build the immutable solve inputs for the current parameters.

        Args:
            has_left: Whether a neighbour is attached at the left edge
            has_right: Whether a neighbour is attached at the right edge

        Raises:
            ConfigurationError: If an interface does not fit the linkage
        """
        d = self.descriptor
        return SolveSetup(
            energies=(self.energy + 1j * d.scattering) / d.thouless,
            diffusion=DiffusionEquation(d, self.location, self.gap),
            boundary_a=BoundaryCondition(d.interface_a, "a", has_left, self.spinorbit),
            boundary_b=BoundaryCondition(d.interface_b, "b", has_right, self.spinorbit),
        )

    def update_posthook(self) -> float:
        """Recompute observables after a solve pass.

        Returns:
            Change of the mean gap (0 for non-superconductors)
        """
        self._update_observables()
        if self.kind == MaterialKind.SUPERCONDUCTOR:
            return self._update_gap()
        return 0.0

    def _update_observables(self) -> None:
        E = self.energy
        propagators = self.state.propagators()
        gauge = None if self.spinorbit is None else self.spinorbit.gauge()

        self.density = propagators.density()
        correlation = propagators.correlation()
        accumulation = propagators.accumulation()
        supercurrent = propagators.supercurrent(gauge)
        lossycurrent = propagators.lossycurrent(gauge)

        # Heat and spin-heat observables are energy weighted
        scale = np.where(np.arange(8) >= 4, E[:, None], 1.0)
        accumulation = accumulation * scale[:, None, :]
        supercurrent = supercurrent * scale[:, None, :]
        lossycurrent = lossycurrent * scale[:, None, :]

        lower, upper = E[0], E[-1]
        # Correlations grow logarithmically with the cutoff
        if upper > 1:
            correlation = correlation / np.arccosh(upper)
        self.correlation = integrate(E, correlation, lower, upper)
        self.accumulation = integrate(E, accumulation, lower, upper)
        self.supercurrent = integrate(E, supercurrent, lower, upper)
        self.lossycurrent = integrate(E, lossycurrent, lower, upper)

    def _update_gap(self) -> float:
        """Solve the BCS gap equation on the current propagators.

        Δ(z) = λ ∫ singlet(E, z) tanh(BCS_TANH_FACTOR E / T) dE, integrated from
        GAP_EQUATION_MIN_ENERGY to the Debye cutoff cosh(1/λ).
        """
        E = self.energy
        coupling = self.descriptor.coupling
        singlet = self.state.propagators().correlation()
        kernel = coupling * np.tanh(BCS_TANH_FACTOR * E / self.temperature)
        integrand = kernel[:, None] * singlet

        lower = max(GAP_EQUATION_MIN_ENERGY, E[0])
        upper = min(debye_cutoff(coupling), E[-1])
        gap = integrate(E, integrand, lower, upper)

        previous = self.gap_mean()
        self.gap = np.asarray(gap, dtype=np.complex128)
        change = abs(self.gap_mean() - previous)
        logger.info(f"{self.name}: mean gap {abs(self.gap_mean()):.6f}, gap change {change:.3e}")
        return change

    def __repr__(self) -> str:
        ne, nz = self.state.shape
        return f"Material({self.name!r}, kind={self.kind.value}, grid={ne}x{nz})"
