"""Quasiclassical Superconductivity in One-Dimensional Multilayers

A solver for the Usadel equation in Riccati parametrization. Each layer of
a stack is a diffusive conductor, superconductor or ferromagnet; layers are
coupled through vacuum, transparent, tunneling or spin-active interfaces.

Key Principles:
- Riccati parametrization: G^R encoded by two 2x2 spin matrices (g, gt)
- One two-point boundary-value problem per energy and layer
- Self-consistent BCS gap equation for superconductors
- Stack sweeps until the state and gap changes fall below a tolerance

Version: 1.0
"""

__version__ = "1.0"

# Core data structures
from usadel_1d.core.propagator import Propagator
from usadel_1d.core.spin import SingularMatrixError, SpinMatrix
from usadel_1d.core.state import MaterialState

# Materials
from usadel_1d.materials import (
    Conductor,
    Ferromagnet,
    Interface,
    SpinOrbitCoupling,
    SpinScattering,
    Superconductor,
)
from usadel_1d.materials.material import Material

# Solving
from usadel_1d.solver import (
    BVPDriver,
    BVPNonConvergenceError,
    ScipyBVPSolver,
    Stack,
    StackResult,
    critical_temperature,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "SpinMatrix",
    "SingularMatrixError",
    "Propagator",
    "MaterialState",
    # Materials
    "Conductor",
    "Superconductor",
    "Ferromagnet",
    "Interface",
    "SpinOrbitCoupling",
    "SpinScattering",
    "Material",
    # Solving
    "BVPDriver",
    "BVPNonConvergenceError",
    "ScipyBVPSolver",
    "Stack",
    "StackResult",
    "critical_temperature",
]
