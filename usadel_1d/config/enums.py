"""
Configuration Enums for usadel_1d

This module defines all enumeration types used throughout the configuration.
These enums provide type-safe configuration options and improve code documentation.

Import Policy:
    from usadel_1d.config.enums import MaterialKind, InterfaceKind, ErrorControl, EnergyGridType

DO NOT use: from usadel_1d.config.enums import *
"""

from enum import Enum


class MaterialKind(Enum):
    """Material variant tag used to dispatch the diffusion equation.

    Options:
        CONDUCTOR: Normal diffusive metal (baseline Usadel equation)
        SUPERCONDUCTOR: Conductor with a self-consistent BCS pair potential
        FERROMAGNET: Conductor with a homogeneous exchange field
    """
    CONDUCTOR = "conductor"
    SUPERCONDUCTOR = "superconductor"
    FERROMAGNET = "ferromagnet"


class InterfaceKind(Enum):
    """Boundary condition applied at one edge of a material.

    Options:
        VACUUM: Insulating edge, zero matrix current (no neighbour)
        TRANSPARENT: Propagator continuity with the neighbour
        TUNNEL: Kupriyanov-Lukichev tunneling boundary condition
        SPINACTIVE: Spin-active tunneling interface (polarization, spin-mixing)

    Note:
        A VACUUM edge with non-zero spin-mixing is a spin-active insulator.
    """
    VACUUM = "vacuum"
    TRANSPARENT = "transparent"
    TUNNEL = "tunnel"
    SPINACTIVE = "spinactive"


class ErrorControl(Enum):
    """Error control mode requested from the boundary-value solver.

    Options:
        DEFECT: Control the residual (defect) of the collocation equations
        GLOBAL: Control an estimate of the global error
        DEFECT_THEN_GLOBAL: Defect control first, then global error control
        DEFECT_AND_GLOBAL: Both controls simultaneously

    Note:
        The scipy backend supports DEFECT only.
    """
    DEFECT = "defect"
    GLOBAL = "global"
    DEFECT_THEN_GLOBAL = "defect_then_global"
    DEFECT_AND_GLOBAL = "defect_and_global"


class EnergyGridType(Enum):
    """Energy mesh discretization strategies.

    Options:
        UNIFORM: Linear spacing between energy_min and energy_max
        PIECEWISE: Dense below 1.5 gaps, coarser up to 4.5 gaps, sparse up to energy_max
        BCS: PIECEWISE mesh ending at the Debye cutoff cosh(1/coupling), as required
            by the gap equation
    """
    UNIFORM = "uniform"
    PIECEWISE = "piecewise"
    BCS = "bcs"
