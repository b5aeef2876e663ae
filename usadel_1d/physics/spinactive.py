"""Spin-active tunneling interfaces.

The matrix current through a spin-polarized, spin-mixing barrier is built
from the Nambu propagators on this side (G0) and the other side (G1):

    S0 = G1 + P/(1+√(1-P²)) {M, G1} + (1-√(1-P²))/(1+√(1-P²)) M G1 M
    S1 = -iQ M0
    I  = [G0, S0 + S1]

with M the barrier magnetization matrix and M0 the magnetization seen by
reflected quasiparticles. A non-zero second-order coefficient R adds the
second-order transmission, reflection and cross terms; these assume equal
interface parameters on both sides and a narrow distribution of channel
transmissions, and are only included on request.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from usadel_1d.core.propagator import block_diagonal, nambu_matrix, riccati_projection
from usadel_1d.core.spin import SpinMatrix, spin_vector
from usadel_1d.materials.descriptor import Interface

# Magnetization vectors shorter than this are treated as absent
MAGNETIZATION_EPSILON = 1e-12


def magnetization_matrix(vector, base: Optional[np.ndarray] = None) -> np.ndarray:
    """4x4 magnetization matrix diag(m·σ, (m·σ)*).

    Args:
        vector: Magnetization direction
        base: Matrix returned unchanged when vector is (numerically) zero;
            defaults to the zero matrix

    Returns:
        Complex 4x4 array
    """
    vector = np.asarray(vector, dtype=np.float64)
    if np.linalg.norm(vector) <= MAGNETIZATION_EPSILON:
        return np.zeros((4, 4), dtype=np.complex128) if base is None else np.array(base)
    upper = spin_vector(vector).matrix
    return block_diagonal(upper, np.conj(upper))


def _commutator(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return a @ b - b @ a


def spinactive_current(
    G0: np.ndarray,
    G1: np.ndarray,
    M: np.ndarray,
    M0: np.ndarray,
    M1: np.ndarray,
    polarization: float,
    spinmixing: float,
    secondorder: float = 0.0,
) -> np.ndarray:
    """Matrix current through a spin-active barrier (before conductance scaling).

    Args:
        G0: Nambu propagator on this side
        G1: Nambu propagator on the other side (zero for an insulator)
        M: Magnetization matrix of the barrier (transmission)
        M0: Magnetization matrix for reflection on this side
        M1: Magnetization matrix for reflection on the other side
        polarization: Spin polarization P
        spinmixing: First-order spin-mixing Q
        secondorder: Second-order spin-mixing R (0 disables the second-order terms)

    Returns:
        4x4 matrix current; exactly [G0, G1] when P = Q = 0
    """
    if polarization == 0 and spinmixing == 0:
        return _commutator(G0, G1)

    Pr = np.sqrt(1 - polarization**2)
    Pp = 1 + Pr
    Pm = 1 - Pr

    def transmission(G: np.ndarray) -> np.ndarray:
        return G + (polarization / Pp) * (M @ G + G @ M) + (Pm / Pp) * (M @ G @ M)

    S0 = transmission(G1)
    S1 = (-1j * spinmixing) * M0
    current = _commutator(G0, S0 + S1)

    if secondorder != 0:
        S1 = transmission(G1 @ M1 @ G1 - M1)
        current = (
            current
            + (0.50 * secondorder / spinmixing) * (S0 @ G0 @ S0)
            + (0.25j * secondorder) * _commutator(G0, S0 @ G0 @ M0 + M0 @ G0 @ S0 + S1)
            + (0.25 * secondorder * spinmixing) * _commutator(G0, M0 @ G0 @ M0)
        )
    return current


class SpinActiveInterface:
    """Spin-active boundary condition of one edge, prepared for solving.

    An edge without neighbour acts as a spin-active insulator: its
    parameters are normalized to the normal-state conductance (conductance 1)
    and only the reflection (spin-mixing) terms survive.

    Args:
        interface: Interface parameters of this edge
        has_neighbor: Whether a material is attached on the other side
    """

    def __init__(self, interface: Interface, has_neighbor: bool):
        self.has_neighbor = has_neighbor
        self.conductance = interface.conductance if has_neighbor else 1.0
        self.polarization = interface.polarization if has_neighbor else 0.0
        self.spinmixing = interface.spinmixing
        self.secondorder = interface.secondorder

        self.M = magnetization_matrix(interface.magnetization)
        self.M0 = magnetization_matrix(interface.misalignment, base=self.M)
        self.M1 = self.M.copy()

    def current(self, G0: np.ndarray, G1: Optional[np.ndarray]) -> np.ndarray:
        """Matrix current 0.25 κ I(G0, G1); G1 = None means no neighbour."""
        if G1 is None:
            G1 = np.zeros((4, 4), dtype=np.complex128)
        return 0.25 * self.conductance * spinactive_current(
            G0, G1, self.M, self.M0, self.M1, self.polarization, self.spinmixing, self.secondorder
        )

    def residual(
        self,
        side: str,
        g: SpinMatrix,
        gt: SpinMatrix,
        dg: SpinMatrix,
        dgt: SpinMatrix,
        neighbor_g: Optional[SpinMatrix] = None,
        neighbor_gt: Optional[SpinMatrix] = None,
    ) -> tuple[SpinMatrix, SpinMatrix]:
        """Boundary residual (r, rt) on edge side ("a" left, "b" right)."""
        G0 = nambu_matrix(g, gt)
        G1 = None
        if self.has_neighbor:
            G1 = nambu_matrix(neighbor_g, neighbor_gt)
        r, rt = riccati_projection(self.current(G0, G1), g, gt)
        if side == "a":
            return dg + r, dgt + rt
        return dg - r, dgt - rt
