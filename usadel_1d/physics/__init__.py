"""Usadel equation right-hand sides and boundary conditions.

Submodules:
    diffusion: Diffusion equation with pairing, exchange and depairing terms
    boundary: Vacuum, transparent, tunneling and spin-active edges
    spinactive: Matrix current through spin-active barriers
    spinorbit: SU(2) gauge field of spin-orbit coupling
    spinscattering: Spin-flip and spin-orbit impurity scattering
"""

from usadel_1d.physics.boundary import BoundaryCondition
from usadel_1d.physics.diffusion import DiffusionEquation
from usadel_1d.physics.spinactive import SpinActiveInterface, spinactive_current
from usadel_1d.physics.spinorbit import SpinOrbitField

__all__ = [
    "BoundaryCondition",
    "DiffusionEquation",
    "SpinActiveInterface",
    "SpinOrbitField",
    "spinactive_current",
]
