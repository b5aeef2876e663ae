"""Spin-flip and spin-orbit impurity scattering.

Both are isotropic self-energies built from the propagator itself,

    Σ_sf = (γ_sf / 8) Σ_k S_k G S_k,   S_k = diag(σ_k, σ_k*)
    Σ_so = (γ_so / 8) Σ_k T_k G T_k,   T_k = diag(σ_k, -σ_k*)

and act on the Riccati parameters through selfenergy_projection(). For a
singlet condensate spin-orbit scattering drops out, while spin-flip
scattering is equivalent to orbital depairing of strength 1.5 γ_sf.
"""

from __future__ import annotations

import numpy as np

from usadel_1d.core.propagator import MODE_MATRICES, nambu_matrix, selfenergy_projection
from usadel_1d.core.spin import SpinMatrix

# Spin and spin-heat distribution modes double as the scattering vertices
SPINFLIP_VERTICES = MODE_MATRICES[1:4]
SPINORBIT_VERTICES = MODE_MATRICES[5:8]


def scattering_selfenergy(G: np.ndarray, spinflip: float, spinorbit: float) -> np.ndarray:
    """Combined spin-dependent scattering self-energy of G (shape (..., 4, 4))."""
    sigma = np.zeros_like(G)
    for rate, vertices in ((spinflip, SPINFLIP_VERTICES), (spinorbit, SPINORBIT_VERTICES)):
        if rate == 0:
            continue
        for vertex in vertices:
            sigma = sigma + (rate / 8) * (vertex @ G @ vertex)
    return sigma


def scattering_terms(
    g: SpinMatrix, gt: SpinMatrix, spinflip: float, spinorbit: float, thouless: float = 1.0
) -> tuple[SpinMatrix, SpinMatrix]:
    """Contributions of spin-dependent scattering to (d2g, d2gt).

    Returns zero matrices when both rates vanish.
    """
    if spinflip == 0 and spinorbit == 0:
        zero = SpinMatrix(np.zeros(g.matrix.shape, dtype=np.complex128))
        return zero, zero
    sigma = scattering_selfenergy(nambu_matrix(g, gt), spinflip, spinorbit) / thouless
    P, Pt = selfenergy_projection(sigma, g, gt)
    return P, -Pt
