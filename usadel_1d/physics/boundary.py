"""Boundary conditions at the two edges of a layer.

Every boundary condition is a residual pair (r, rt) that the BVP solver
drives to zero:

    vacuum        r = dg
    transparent   r = g - g_n
    tunnel        r = dg -+ κ (1 - g gt_n) N_n (g -+ g_n)     (left / right edge)
    spin-active   r = dg +- (1 - g gt)(I12 - I11 g)

with the mirrored expressions for rt. With spin-orbit coupling the
derivative is replaced by the covariant one on every edge except a
transparent one.

Import Policy:
    from usadel_1d.physics.boundary import BoundaryCondition

DO NOT use: from usadel_1d.physics.boundary import *
"""

from __future__ import annotations

from typing import Optional

from usadel_1d.config.enums import InterfaceKind
from usadel_1d.config.validation import ConfigurationError
from usadel_1d.core.propagator import Propagator, normalization
from usadel_1d.core.spin import PAULI0, SpinMatrix
from usadel_1d.materials.descriptor import Interface
from usadel_1d.physics.spinactive import SpinActiveInterface
from usadel_1d.physics.spinorbit import SpinOrbitField

SIDES = ("a", "b")


def vacuum_residual(dg: SpinMatrix, dgt: SpinMatrix) -> tuple[SpinMatrix, SpinMatrix]:
    """Zero matrix current through an insulating edge."""
    return dg, dgt


def transparent_residual(
    g: SpinMatrix, gt: SpinMatrix, neighbor: Propagator
) -> tuple[SpinMatrix, SpinMatrix]:
    """Continuity of the Riccati parameters across the edge."""
    return g - neighbor.g, gt - neighbor.gt


def tunnel_residual(
    side: str,
    conductance: float,
    g: SpinMatrix,
    gt: SpinMatrix,
    dg: SpinMatrix,
    dgt: SpinMatrix,
    neighbor: Propagator,
) -> tuple[SpinMatrix, SpinMatrix]:
    """Kupriyanov-Lukichev tunneling boundary condition."""
    Nn, Nnt = normalization(neighbor.g, neighbor.gt)
    if side == "a":
        r = dg - conductance * ((PAULI0 - g * neighbor.gt) * Nn * (g - neighbor.g))
        rt = dgt - conductance * ((PAULI0 - gt * neighbor.g) * Nnt * (gt - neighbor.gt))
    else:
        r = dg - conductance * ((PAULI0 - g * neighbor.gt) * Nn * (neighbor.g - g))
        rt = dgt - conductance * ((PAULI0 - gt * neighbor.g) * Nnt * (neighbor.gt - gt))
    return r, rt


class BoundaryCondition:
    """Boundary residual of one edge, prepared before a solve.

    Args:
        interface: Interface parameters of the edge
        side: "a" (left edge) or "b" (right edge)
        has_neighbor: Whether a material is attached beyond the edge
        spinorbit: Spin-orbit field of the layer, if any

    Raises:
        ConfigurationError: If the interface kind does not fit the linkage
    """

    def __init__(
        self,
        interface: Interface,
        side: str,
        has_neighbor: bool,
        spinorbit: Optional[SpinOrbitField] = None,
    ):
        if side not in SIDES:
            raise ValueError(f"side must be one of {SIDES}, got {side!r}")
        if interface.kind == InterfaceKind.VACUUM and has_neighbor:
            raise ConfigurationError(
                f"interface_{side} is vacuum but a neighbouring material is attached"
            )
        if interface.kind != InterfaceKind.VACUUM and not has_neighbor:
            raise ConfigurationError(
                f"interface_{side} is {interface.kind.value} but no neighbouring material is attached"
            )
        errors = interface.validate(f"interface_{side}")
        if errors:
            raise ConfigurationError("; ".join(errors))

        self.kind = interface.kind
        self.side = side
        self.conductance = interface.conductance
        self.spinorbit = spinorbit
        self.spinactive = None
        if interface.spinactive:
            self.spinactive = SpinActiveInterface(interface, has_neighbor)

    def __call__(
        self,
        g: SpinMatrix,
        gt: SpinMatrix,
        dg: SpinMatrix,
        dgt: SpinMatrix,
        neighbor: Optional[Propagator] = None,
    ) -> tuple[SpinMatrix, SpinMatrix]:
        """Residual (r, rt) for the edge state and the neighbour's edge propagator."""
        if self.kind == InterfaceKind.TRANSPARENT:
            return transparent_residual(g, gt, neighbor)

        if self.spinactive is not None:
            if self.kind == InterfaceKind.VACUUM:
                r, rt = self.spinactive.residual(self.side, g, gt, dg, dgt)
            else:
                r, rt = self.spinactive.residual(
                    self.side, g, gt, dg, dgt, neighbor.g, neighbor.gt
                )
        elif self.kind == InterfaceKind.TUNNEL:
            r, rt = tunnel_residual(self.side, self.conductance, g, gt, dg, dgt, neighbor)
        else:
            r, rt = vacuum_residual(dg, dgt)

        if self.spinorbit is not None:
            sr, srt = self.spinorbit.boundary_terms(g, gt)
            r, rt = r + sr, rt + srt
        return r, rt
