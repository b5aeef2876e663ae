"""Spin-orbit coupling as an SU(2) gauge field.

Linear-in-momentum spin-orbit coupling enters the Usadel equation through
the covariant derivative ∂g -> ∂g - i(A g + g Ã). In a one-dimensional
layer only Az multiplies a real derivative; Ax and Ay still contribute
through the transverse components of the covariant Laplacian.
"""

from __future__ import annotations

import numpy as np

from usadel_1d.core.propagator import block_diagonal
from usadel_1d.core.spin import PAULI1, PAULI2, SpinMatrix
from usadel_1d.materials.descriptor import SpinOrbitCoupling


def coupling_field(coupling: SpinOrbitCoupling) -> tuple[SpinMatrix, SpinMatrix, SpinMatrix]:
    """Gauge field (Ax, Ay, Az) of Rashba, Dresselhaus and nanowire couplings."""
    ax = coupling.dresselhaus * PAULI1 - coupling.rashba * PAULI2
    ay = coupling.rashba * PAULI1 - coupling.dresselhaus * PAULI2
    az = -coupling.nanowire * PAULI1
    return ax, ay, az


class SpinOrbitField:
    """Gauge field of one layer, scaled by 1/sqrt(thouless).

    Attributes:
        A: (Ax, Ay, Az)
        At: Tilde conjugates (Axt, Ayt, Azt)
        A2: Ax² + Ay² + Az²
        A2t: Tilde conjugate of A2
    """

    def __init__(self, field: tuple[SpinMatrix, SpinMatrix, SpinMatrix], thouless: float = 1.0):
        scale = 1 / np.sqrt(thouless)
        self.A = tuple(scale * component for component in field)
        self.At = tuple(component.conjugate() for component in self.A)
        ax, ay, az = self.A
        self.A2 = ax * ax + ay * ay + az * az
        self.A2t = self.A2.conjugate()

    @classmethod
    def from_coupling(cls, coupling: SpinOrbitCoupling, thouless: float = 1.0) -> SpinOrbitField:
        return cls(coupling_field(coupling), thouless)

    def diffusion_terms(
        self,
        g: SpinMatrix,
        gt: SpinMatrix,
        dg: SpinMatrix,
        dgt: SpinMatrix,
        N: SpinMatrix,
        Nt: SpinMatrix,
    ) -> tuple[SpinMatrix, SpinMatrix]:
        """Contributions to (d2g, d2gt)."""
        az, azt = self.A[2], self.At[2]

        d2g = self.A2 * g - g * self.A2t
        d2gt = self.A2t * gt - gt * self.A2
        for a, at in zip(self.A, self.At):
            d2g = d2g + 2 * ((a * g + g * at) * Nt * (at + gt * a * g))
            d2gt = d2gt + 2 * ((at * gt + gt * a) * N * (a + g * at * gt))

        d2g = d2g + 2j * ((az + g * azt * gt) * N * dg) + 2j * (dg * Nt * (azt + gt * az * g))
        d2gt = d2gt - 2j * ((azt + gt * az * g) * Nt * dgt) - 2j * (dgt * N * (az + g * azt * gt))
        return d2g, d2gt

    def boundary_terms(self, g: SpinMatrix, gt: SpinMatrix) -> tuple[SpinMatrix, SpinMatrix]:
        """Gauge terms turning the edge derivative into a covariant one.

        Identical on both edges: r -= i(Az g + g Azt), rt += i(Azt gt + gt Az).
        """
        az, azt = self.A[2], self.At[2]
        return -1j * (az * g + g * azt), 1j * (azt * gt + gt * az)

    def gauge(self) -> np.ndarray:
        """Nambu gauge field diag(+Az, -Azt) for covariant current expressions."""
        return block_diagonal(self.A[2].matrix, -self.At[2].matrix)
