"""Riccati-parametrized quasiclassical propagator and its observables.

The retarded propagator in Nambu x spin space is encoded by two spin
matrices (g, gt) and their spatial derivatives (dg, dgt):

    G(1:2,1:2) = +N (1 + g gt)      G(1:2,3:4) = +2 N g
    G(3:4,1:2) = -2 Nt gt           G(3:4,3:4) = -Nt (1 + gt g)

with N = (1 - g gt)^-1 and Nt = (1 - gt g)^-1. Like SpinMatrix, everything
here broadcasts over leading batch axes: a Propagator holds either one
(energy, position) point or a whole grid of them, together with the
distribution function.

Observable vectors (currents, accumulations, distribution modes) use the
component order of OBSERVABLES: charge, spin x/y/z, heat, spin-heat x/y/z.

Import Policy:
    from usadel_1d.core.propagator import Propagator, nambu_matrix, equilibrium_distribution

DO NOT use: from usadel_1d.core.propagator import *
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from usadel_1d.core.constants import BCS_TANH_FACTOR
from usadel_1d.core.spin import PAULI, PAULI0, PAULI2, SpinMatrix

OBSERVABLES = (
    "charge",
    "spin_x",
    "spin_y",
    "spin_z",
    "heat",
    "spinheat_x",
    "spinheat_y",
    "spinheat_z",
)


def block_diagonal(upper: np.ndarray, lower: np.ndarray) -> np.ndarray:
    """Assemble a 4x4 Nambu matrix from two 2x2 diagonal blocks."""
    upper = np.asarray(upper, dtype=np.complex128)
    lower = np.asarray(lower, dtype=np.complex128)
    shape = np.broadcast_shapes(upper.shape[:-2], lower.shape[:-2])
    result = np.zeros(shape + (4, 4), dtype=np.complex128)
    result[..., :2, :2] = upper
    result[..., 2:, 2:] = lower
    return result


def _mode_matrices() -> np.ndarray:
    sigma = [p.matrix for p in PAULI]
    modes = [block_diagonal(sigma[0], -sigma[0])]
    modes += [block_diagonal(sigma[k], np.conj(sigma[k])) for k in (1, 2, 3)]
    modes += [block_diagonal(sigma[0], sigma[0])]
    modes += [block_diagonal(sigma[k], -np.conj(sigma[k])) for k in (1, 2, 3)]
    stacked = np.array(modes)
    stacked.flags.writeable = False
    return stacked


# Nambu matrices of the distribution modes, in OBSERVABLES order
MODE_MATRICES = _mode_matrices()

# Nambu-space τ3
TAU3 = MODE_MATRICES[0]

# σ0..σ3 stacked for einsum contractions
PAULI_MATRICES = np.array([p.matrix for p in PAULI])


def normalization(g: SpinMatrix, gt: SpinMatrix) -> tuple[SpinMatrix, SpinMatrix]:
    """Normalization matrices N = (1 - g gt)^-1 and Nt = (1 - gt g)^-1."""
    N = (PAULI0 - g * gt).inverse()
    Nt = (PAULI0 - gt * g).inverse()
    return N, Nt


def nambu_matrix(g: SpinMatrix, gt: SpinMatrix) -> np.ndarray:
    """Retarded propagator as a (..., 4, 4) Nambu x spin array."""
    N, Nt = normalization(g, gt)
    shape = np.broadcast_shapes(g.shape, gt.shape)
    G = np.empty(shape + (4, 4), dtype=np.complex128)
    G[..., :2, :2] = (N * (PAULI0 + g * gt)).matrix
    G[..., :2, 2:] = (2 * (N * g)).matrix
    G[..., 2:, :2] = (-2 * (Nt * gt)).matrix
    G[..., 2:, 2:] = (-(Nt * (PAULI0 + gt * g))).matrix
    return G


def nambu_gradient(
    g: SpinMatrix, gt: SpinMatrix, dg: SpinMatrix, dgt: SpinMatrix
) -> np.ndarray:
    """Spatial derivative of nambu_matrix(g, gt)."""
    N, Nt = normalization(g, gt)
    dN = N * (dg * gt + g * dgt) * N
    dNt = Nt * (dgt * g + gt * dg) * Nt
    shape = np.broadcast_shapes(g.shape, gt.shape, dg.shape, dgt.shape)
    dG = np.empty(shape + (4, 4), dtype=np.complex128)
    dG[..., :2, :2] = (2 * dN).matrix
    dG[..., :2, 2:] = (2 * (dN * g + N * dg)).matrix
    dG[..., 2:, :2] = (-2 * (dNt * gt + Nt * dgt)).matrix
    dG[..., 2:, 2:] = (-2 * dNt).matrix
    return dG


def advanced(retarded: np.ndarray) -> np.ndarray:
    """G^A = -τ3 (G^R)† τ3"""
    return -TAU3 @ np.conj(np.swapaxes(retarded, -1, -2)) @ TAU3


def blocks(matrix: np.ndarray) -> tuple[SpinMatrix, SpinMatrix, SpinMatrix, SpinMatrix]:
    """Split a (..., 4, 4) Nambu array into its four spin blocks (11, 12, 21, 22)."""
    return (
        SpinMatrix(matrix[..., :2, :2]),
        SpinMatrix(matrix[..., :2, 2:]),
        SpinMatrix(matrix[..., 2:, :2]),
        SpinMatrix(matrix[..., 2:, 2:]),
    )


def riccati_projection(
    current: np.ndarray, g: SpinMatrix, gt: SpinMatrix
) -> tuple[SpinMatrix, SpinMatrix]:
    """Project a 4x4 matrix current onto the Riccati residual space.

    Returns:
        ((1 - g gt)(I12 - I11 g), (1 - gt g)(I21 - I22 gt))
    """
    I11, I12, I21, I22 = blocks(current)
    r = (PAULI0 - g * gt) * (I12 - I11 * g)
    rt = (PAULI0 - gt * g) * (I21 - I22 * gt)
    return r, rt


def selfenergy_projection(
    selfenergy: np.ndarray, g: SpinMatrix, gt: SpinMatrix
) -> tuple[SpinMatrix, SpinMatrix]:
    """Project a 4x4 self-energy onto the Riccati equations.

    A self-energy S entering the Usadel equation as [S, G] contributes
    -P to d2g and +Pt to d2gt, where

        P  = g S21 g + S11 g - g S22 - S12
        Pt = gt S12 gt + S22 gt - gt S11 - S21
    """
    S11, S12, S21, S22 = blocks(selfenergy)
    P = g * S21 * g + S11 * g - g * S22 - S12
    Pt = gt * S12 * gt + S22 * gt - gt * S11 - S21
    return P, Pt


def distribution_matrix(modes: np.ndarray) -> np.ndarray:
    """Nambu matrix H = Σ_k h_k ρ_k of an 8-component distribution."""
    modes = np.asarray(modes, dtype=np.float64)
    return np.tensordot(modes, MODE_MATRICES, axes=([-1], [0]))


def equilibrium_distribution(
    energy: float,
    temperature: float,
    voltage: float = 0.0,
    spinvoltage: float = 0.0,
    spintemperature: float = 0.0,
) -> np.ndarray:
    """Distribution modes of a (spin-)biased Fermi-Dirac reservoir.

    Each spin band s = ±1 of electrons (c = +1) and holes (c = -1) sees the
    bias c V + c s Vs and the temperature T + s Ts.

    Args:
        energy: Quasiparticle energy
        temperature: Temperature, in units of the bulk critical temperature
        voltage: Charge bias
        spinvoltage: Spin-dependent bias
        spintemperature: Spin-dependent temperature offset

    Returns:
        Distribution modes in OBSERVABLES order
    """

    def fermi(c: int, s: int) -> float:
        return np.tanh(
            BCS_TANH_FACTOR * (energy + c * voltage + c * s * spinvoltage)
            / (temperature + s * spintemperature)
        ) / 4

    fpp, fpm, fmp, fmm = fermi(+1, +1), fermi(+1, -1), fermi(-1, +1), fermi(-1, -1)
    modes = np.zeros(8)
    modes[0] = fpp + fpm - fmp - fmm
    modes[3] = fpp - fpm - fmp + fmm
    modes[4] = fpp + fpm + fmp + fmm
    modes[7] = fpp - fpm + fmp - fmm
    return modes


class Propagator:
    """Quasiclassical propagator at one (energy, position) point, or a batch of them.

    Attributes:
        g, gt: Riccati parameters
        dg, dgt: Their derivatives with respect to the normalized position
        h: Distribution modes (8 components, OBSERVABLES order)
        dh: Derivative of the distribution modes
    """

    __slots__ = ("g", "gt", "dg", "dgt", "h", "dh")

    def __init__(
        self,
        g: Optional[SpinMatrix] = None,
        gt: Optional[SpinMatrix] = None,
        dg: Optional[SpinMatrix] = None,
        dgt: Optional[SpinMatrix] = None,
        h: Optional[np.ndarray] = None,
        dh: Optional[np.ndarray] = None,
    ):
        self.g = g if g is not None else SpinMatrix()
        self.gt = gt if gt is not None else SpinMatrix()
        self.dg = dg if dg is not None else SpinMatrix()
        self.dgt = dgt if dgt is not None else SpinMatrix()
        shape = self.g.shape + (8,)
        self.h = np.zeros(shape) if h is None else np.asarray(h, dtype=np.float64)
        self.dh = np.zeros(shape) if dh is None else np.asarray(dh, dtype=np.float64)

    @classmethod
    def bcs(cls, energy: complex, gap: complex) -> Propagator:
        """Bulk BCS solution at complex energy with pair potential gap.

        With θ = atanh(|Δ|/ε) the Riccati parameters are
        g = (Δ/|Δ|) tanh(θ/2) iσ2 and gt = -(Δ*/|Δ|) tanh(θ/2) iσ2.
        A vanishing gap gives the normal state g = gt = 0.

        Raises:
            ValueError: If the energy sits exactly on the real-axis gap edge
        """
        if gap == 0:
            return cls()
        if energy == abs(gap):
            raise ValueError(
                f"BCS state is singular at the gap edge E = |Δ| = {abs(gap)}; "
                "use a non-zero scattering rate"
            )
        theta = np.arctanh(abs(gap) / energy)
        scalar = np.sinh(theta) / (1 + np.cosh(theta))
        phase = gap / abs(gap)
        g = (scalar * phase) * (1j * PAULI2)
        gt = (-scalar * np.conj(phase)) * (1j * PAULI2)
        return cls(g=g, gt=gt)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_real(self) -> np.ndarray:
        """Pack (g, gt, dg, dgt) into 32 reals per point."""
        return np.concatenate(
            [self.g.to_real(), self.gt.to_real(), self.dg.to_real(), self.dgt.to_real()],
            axis=-1,
        )

    @classmethod
    def from_real(cls, values, h=None, dh=None) -> Propagator:
        """Unpack 32 reals written by to_real()."""
        values = np.asarray(values, dtype=np.float64)
        if values.shape[-1:] != (32,):
            raise ValueError(f"Expected 32 reals per point, got shape {values.shape}")
        return cls(
            g=SpinMatrix.from_real(values[..., 0:8]),
            gt=SpinMatrix.from_real(values[..., 8:16]),
            dg=SpinMatrix.from_real(values[..., 16:24]),
            dgt=SpinMatrix.from_real(values[..., 24:32]),
            h=h,
            dh=dh,
        )

    # ------------------------------------------------------------------
    # Nambu-space matrices
    # ------------------------------------------------------------------

    def normalization(self) -> tuple[SpinMatrix, SpinMatrix]:
        return normalization(self.g, self.gt)

    def retarded(self) -> np.ndarray:
        return nambu_matrix(self.g, self.gt)

    def retarded_gradient(self, gauge: Optional[np.ndarray] = None) -> np.ndarray:
        """Derivative of G^R, optionally covariant: dG - i[A, G]."""
        dG = nambu_gradient(self.g, self.gt, self.dg, self.dgt)
        if gauge is not None:
            G = self.retarded()
            dG = dG - 1j * (gauge @ G - G @ gauge)
        return dG

    def advanced(self) -> np.ndarray:
        return advanced(self.retarded())

    def advanced_gradient(self, gauge: Optional[np.ndarray] = None) -> np.ndarray:
        return advanced(self.retarded_gradient(gauge))

    def distribution(self) -> np.ndarray:
        return distribution_matrix(self.h)

    def keldysh(self) -> np.ndarray:
        """G^K = G^R H - H G^A"""
        H = self.distribution()
        return self.retarded() @ H - H @ self.advanced()

    # ------------------------------------------------------------------
    # Observables
    # ------------------------------------------------------------------

    def density(self) -> np.ndarray:
        """Spin-resolved density of states Re Tr(σ_k G11)/2, k = 0..3."""
        G11 = self.retarded()[..., :2, :2]
        return np.real(np.einsum("kij,...ji->...k", PAULI_MATRICES, G11)) / 2

    def dos(self) -> np.ndarray:
        """Density of states normalized to the normal-metal value."""
        return self.density()[..., 0]

    def correlation(self) -> np.ndarray:
        """Singlet pair amplitude (f_s - conj(ft_s)) / 2."""
        N, Nt = self.normalization()
        singlet = -1j * PAULI2
        f = (2 * (N * self.g) * singlet).trace() / 2
        ft = (2 * (Nt * self.gt) * singlet).trace() / 2
        return (f - np.conj(ft)) / 2

    def accumulation(self) -> np.ndarray:
        """Charge, spin, heat and spin-heat accumulation, Re Tr(ρ_k τ3 G^K)/8."""
        GK = self.keldysh()
        return np.real(np.einsum("kij,jl,...li->...k", MODE_MATRICES, TAU3, GK)) / 8

    def supercurrent(self, gauge: Optional[np.ndarray] = None) -> np.ndarray:
        """Spectral (supercurrent) part of the matrix current, Re Tr(ρ_k I)/8.

        I = G^R dG^R H - H G^A dG^A
        """
        H = self.distribution()
        current = (
            self.retarded() @ self.retarded_gradient(gauge) @ H
            - H @ self.advanced() @ self.advanced_gradient(gauge)
        )
        return _mode_traces(current)

    def distribution_gradient(self, gauge: Optional[np.ndarray] = None) -> np.ndarray:
        """Derivative of H, optionally covariant: dH - i[A, H]."""
        dH = distribution_matrix(self.dh)
        if gauge is not None:
            H = self.distribution()
            dH = dH - 1j * (gauge @ H - H @ gauge)
        return dH

    def lossycurrent(self, gauge: Optional[np.ndarray] = None) -> np.ndarray:
        """Dissipative part of the matrix current, Re Tr(ρ_k I)/8.

        I = dH - G^R dH G^A
        """
        dH = self.distribution_gradient(gauge)
        current = dH - self.retarded() @ dH @ self.advanced()
        return _mode_traces(current)

    def __repr__(self) -> str:
        return f"Propagator(g={self.g.matrix.tolist()}, gt={self.gt.matrix.tolist()})"


def _mode_traces(current: np.ndarray) -> np.ndarray:
    return np.real(np.einsum("kij,...ji->...k", MODE_MATRICES, current)) / 8
