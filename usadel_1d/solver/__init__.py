"""BVP driver, multilayer orchestration and reporting.

The command-line interface lives in usadel_1d.solver.api and is not
imported here, so that ``python -m usadel_1d.solver.api`` runs cleanly.
"""

from usadel_1d.solver.bvp import (
    BVPDriver,
    BVPNonConvergenceError,
    BVPSolution,
    BoundaryValueSolver,
    ScipyBVPSolver,
)
from usadel_1d.solver.critical import critical_temperature
from usadel_1d.solver.stack import Stack, StackResult

__all__ = [
    "BVPDriver",
    "BVPNonConvergenceError",
    "BVPSolution",
    "BoundaryValueSolver",
    "ScipyBVPSolver",
    "Stack",
    "StackResult",
    "critical_temperature",
]
