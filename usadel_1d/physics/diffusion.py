"""Usadel diffusion equation in Riccati parametrization.

Given the complex energy e = (E + iδ)/ε_T, the normalized position z and the
local Riccati state, the equation returns the second derivatives

    d2g  = -2 dg Nt gt dg - 2i e g   + corrections
    d2gt = -2 dgt N g dgt - 2i e gt  + corrections

where the corrections (pairing, exchange field, spin-orbit coupling,
spin-dependent scattering, orbital depairing) are switched on by the
material descriptor. All terms are additive and evaluated on batches of
positions, as requested by the collocation solver.

Import Policy:
    from usadel_1d.physics.diffusion import DiffusionEquation

DO NOT use: from usadel_1d.physics.diffusion import *
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from usadel_1d.config.enums import MaterialKind
from usadel_1d.core.propagator import normalization
from usadel_1d.core.spin import PAULI0, PAULI2, SpinMatrix, spin_vector
from usadel_1d.materials.descriptor import MaterialDescriptor
from usadel_1d.physics.spinorbit import SpinOrbitField
from usadel_1d.physics.spinscattering import scattering_terms


def conductor_terms(
    energy: complex,
    g: SpinMatrix,
    gt: SpinMatrix,
    dg: SpinMatrix,
    dgt: SpinMatrix,
    N: SpinMatrix,
    Nt: SpinMatrix,
) -> tuple[SpinMatrix, SpinMatrix]:
    """Baseline normal-metal diffusion terms."""
    d2g = -2 * (dg * Nt * gt * dg) - 2j * energy * g
    d2gt = -2 * (dgt * N * g * dgt) - 2j * energy * gt
    return d2g, d2gt


def pairing_terms(gap, g: SpinMatrix, gt: SpinMatrix) -> tuple[SpinMatrix, SpinMatrix]:
    """BCS pair potential terms for a (per-point) gap already divided by ε_T."""
    gapt = np.conj(gap)
    d2g = gapt * (g * PAULI2 * g) - gap * PAULI2
    d2gt = gapt * PAULI2 - gap * (gt * PAULI2 * gt)
    return d2g, d2gt


def exchange_terms(field: SpinMatrix, g: SpinMatrix, gt: SpinMatrix) -> tuple[SpinMatrix, SpinMatrix]:
    """Exchange field h·σ (already divided by ε_T)."""
    fieldt = field.conjugate()
    d2g = -1j * (field * g - g * fieldt)
    d2gt = 1j * (fieldt * gt - gt * field)
    return d2g, d2gt


def depairing_terms(
    strength: float, g: SpinMatrix, gt: SpinMatrix, N: SpinMatrix, Nt: SpinMatrix
) -> tuple[SpinMatrix, SpinMatrix]:
    """Orbital magnetic depairing (strength already divided by ε_T)."""
    d2g = strength * ((2 * N - PAULI0) * g)
    d2gt = strength * ((2 * Nt - PAULI0) * gt)
    return d2g, d2gt


class DiffusionEquation:
    """Right-hand side of the Usadel equation for one layer.

    The instance captures an immutable snapshot of the material parameters
    (and, for superconductors, of the gap profile) taken when it was built,
    so it can be called with arbitrary trial states without touching the
    material.

    Args:
        descriptor: Layer variant and parameters
        location: Position mesh of the gap profile (superconductors)
        gap: Complex gap profile on location (superconductors)
    """

    def __init__(
        self,
        descriptor: MaterialDescriptor,
        location: Optional[np.ndarray] = None,
        gap: Optional[np.ndarray] = None,
    ):
        self.kind = descriptor.kind
        self.thouless = descriptor.thouless
        self.depairing = descriptor.depairing / descriptor.thouless

        self.spinorbit = None
        if descriptor.spinorbit is not None and descriptor.spinorbit.active:
            self.spinorbit = SpinOrbitField.from_coupling(descriptor.spinorbit, descriptor.thouless)

        self.spinscattering = None
        if descriptor.spinscattering is not None and descriptor.spinscattering.active:
            self.spinscattering = descriptor.spinscattering

        self.exchange = None
        if self.kind == MaterialKind.FERROMAGNET:
            self.exchange = spin_vector(descriptor.exchange) / descriptor.thouless

        self.location = None
        self.gap = None
        if self.kind == MaterialKind.SUPERCONDUCTOR:
            if location is None or gap is None:
                raise ValueError("A superconductor needs a location mesh and a gap profile")
            self.location = np.array(location, dtype=np.float64)
            self.gap = np.array(gap, dtype=np.complex128)
            if self.gap.shape != self.location.shape:
                raise ValueError(
                    f"gap shape {self.gap.shape} does not match location shape {self.location.shape}"
                )
            self.location.flags.writeable = False
            self.gap.flags.writeable = False

    def gap_at(self, z) -> np.ndarray:
        """Linearly interpolated gap at position(s) z (zero outside superconductors)."""
        if self.gap is None:
            return np.zeros_like(np.asarray(z, dtype=np.float64), dtype=np.complex128)
        real = np.interp(z, self.location, self.gap.real)
        imag = np.interp(z, self.location, self.gap.imag)
        return real + 1j * imag

    def __call__(
        self,
        energy: complex,
        z,
        g: SpinMatrix,
        gt: SpinMatrix,
        dg: SpinMatrix,
        dgt: SpinMatrix,
    ) -> tuple[SpinMatrix, SpinMatrix]:
        """Second derivatives (d2g, d2gt) at position(s) z.

        Args:
            energy: Complex energy (E + iδ) / ε_T
            z: Position, or array of positions matching the batch shape of g
            g, gt, dg, dgt: Riccati state and derivatives

        Raises:
            SingularMatrixError: If the normalization matrices are singular
        """
        N, Nt = normalization(g, gt)
        d2g, d2gt = conductor_terms(energy, g, gt, dg, dgt, N, Nt)

        if self.kind == MaterialKind.SUPERCONDUCTOR:
            pg, pgt = pairing_terms(self.gap_at(z) / self.thouless, g, gt)
            d2g, d2gt = d2g + pg, d2gt + pgt
        elif self.kind == MaterialKind.FERROMAGNET:
            hg, hgt = exchange_terms(self.exchange, g, gt)
            d2g, d2gt = d2g + hg, d2gt + hgt

        if self.spinorbit is not None:
            sg, sgt = self.spinorbit.diffusion_terms(g, gt, dg, dgt, N, Nt)
            d2g, d2gt = d2g + sg, d2gt + sgt

        if self.spinscattering is not None:
            sg, sgt = scattering_terms(
                g,
                gt,
                self.spinscattering.spinflip,
                self.spinscattering.spinorbit,
                self.thouless,
            )
            d2g, d2gt = d2g + sg, d2gt + sgt

        if self.depairing > 0:
            dg2, dgt2 = depairing_terms(self.depairing, g, gt, N, Nt)
            d2g, d2gt = d2g + dg2, d2gt + dgt2

        return d2g, d2gt
