"""Per-energy boundary-value solves of the Usadel equation.

For every energy the Riccati state of a material is a solution of a
two-point boundary-value problem on the position mesh. The driver packs
the stored row into the solver layout, hands the ODE right-hand side and
the boundary residual to a BoundaryValueSolver backend, and writes the
converged row back into the material.

Packing:
    row[Nz, 32]  (state layout, Propagator.to_real per position)
    y[32, Nz]    (solver layout, one column per mesh node)

    y[0:8]   g       y[8:16]  gt
    y[16:24] dg      y[24:32] dgt

Import Policy:
    from usadel_1d.solver.bvp import BVPDriver, ScipyBVPSolver, BVPNonConvergenceError

DO NOT use: from usadel_1d.solver.bvp import *
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence

import numpy as np
from scipy.integrate import solve_bvp

from usadel_1d.config.defaults import DEFAULT_ERROR_CONTROL, DEFAULT_ORDER
from usadel_1d.config.enums import ErrorControl
from usadel_1d.config.simulation_config import SolverConfig
from usadel_1d.config.validation import ConfigurationError
from usadel_1d.core.propagator import Propagator
from usadel_1d.core.spin import SingularMatrixError
from usadel_1d.physics.boundary import BoundaryCondition
from usadel_1d.physics.diffusion import DiffusionEquation

logger = logging.getLogger(__name__)

OdeFunction = Callable[[np.ndarray, np.ndarray], np.ndarray]
BoundaryFunction = Callable[[np.ndarray, np.ndarray], np.ndarray]


class BVPNonConvergenceError(RuntimeError):
    """Raised when the boundary-value solver fails at one energy.

    Attributes:
        energy: Energy at which the solve failed
    """

    def __init__(self, message: str, energy: Optional[float] = None):
        super().__init__(message)
        self.energy = energy


@dataclass
class BVPSolution:
    """Outcome of one backend solve.

    Attributes:
        values: Solution sampled on the requested mesh [32, Nz]
        success: Whether the backend reached the tolerance
        message: Backend status message
        nodes: Number of mesh nodes used by the backend
    """

    values: np.ndarray
    success: bool
    message: str = ""
    nodes: int = 0


class BoundaryValueSolver(Protocol):
    """Two-point boundary-value solver capability."""

    def supports(self, order: int, control: ErrorControl) -> bool:
        ...

    def solve(
        self,
        mesh: np.ndarray,
        values: np.ndarray,
        ode: OdeFunction,
        bc: BoundaryFunction,
        order: int,
        control: ErrorControl,
        tolerance: float,
        max_nodes: int,
    ) -> BVPSolution:
        ...


class ScipyBVPSolver:
    """Backend built on scipy.integrate.solve_bvp.

    solve_bvp is a fourth-order collocation method controlling the relative
    residual of the collocation equations, i.e. order 4 with defect control.
    """

    ORDER = 4
    CONTROLS = (ErrorControl.DEFECT,)

    def __init__(self, verbose: int = 0):
        self.verbose = verbose

    def supports(self, order: int, control: ErrorControl) -> bool:
        return order == self.ORDER and ErrorControl(control) in self.CONTROLS

    def solve(
        self,
        mesh: np.ndarray,
        values: np.ndarray,
        ode: OdeFunction,
        bc: BoundaryFunction,
        order: int = DEFAULT_ORDER,
        control: ErrorControl = DEFAULT_ERROR_CONTROL,
        tolerance: float = 1e-4,
        max_nodes: int = 1000,
    ) -> BVPSolution:
        if not self.supports(order, control):
            raise ConfigurationError(
                f"scipy backend supports order {self.ORDER} with "
                f"{[c.value for c in self.CONTROLS]} control, got order {order} "
                f"with {ErrorControl(control).value}"
            )
        result = solve_bvp(
            ode,
            bc,
            mesh,
            values,
            tol=tolerance,
            bc_tol=tolerance,
            max_nodes=max_nodes,
            verbose=self.verbose,
        )
        return BVPSolution(
            values=result.sol(mesh),
            success=bool(result.success),
            message=str(result.message),
            nodes=len(result.x),
        )


def pack_row(row: np.ndarray) -> np.ndarray:
    """Convert a state row [Nz, 32] into solver layout [32, Nz]."""
    row = np.asarray(row, dtype=np.float64)
    if row.ndim != 2 or row.shape[1] != 32:
        raise ValueError(f"Expected a row of shape (Nz, 32), got {row.shape}")
    return np.ascontiguousarray(row.T)


def unpack_row(values: np.ndarray) -> np.ndarray:
    """Convert solver layout [32, Nz] back into a state row [Nz, 32]."""
    values = np.asarray(values, dtype=np.float64)
    if values.ndim != 2 or values.shape[0] != 32:
        raise ValueError(f"Expected values of shape (32, Nz), got {values.shape}")
    return np.ascontiguousarray(values.T)


def make_ode(energy: complex, diffusion: DiffusionEquation) -> OdeFunction:
    """ODE right-hand side y' = f(z, y) in solver layout.

    Args:
        energy: Complex energy (E + iδ) / ε_T
        diffusion: Diffusion equation of the material

    Returns:
        Function mapping (z[M], y[32, M]) to dy/dz[32, M]
    """

    def ode(z: np.ndarray, y: np.ndarray) -> np.ndarray:
        state = Propagator.from_real(y.T)
        d2g, d2gt = diffusion(energy, z, state.g, state.gt, state.dg, state.dgt)
        return np.concatenate([y[16:32], d2g.to_real().T, d2gt.to_real().T], axis=0)

    return ode


def make_bc(
    boundary_a: BoundaryCondition,
    boundary_b: BoundaryCondition,
    neighbor_a: Optional[Propagator] = None,
    neighbor_b: Optional[Propagator] = None,
) -> BoundaryFunction:
    """Boundary residual in solver layout.

    Args:
        boundary_a, boundary_b: Boundary conditions of the left and right edges
        neighbor_a: Right-edge propagator of the left neighbour, if any
        neighbor_b: Left-edge propagator of the right neighbour, if any

    Returns:
        Function mapping (y(0)[32], y(1)[32]) to the 32 residuals
    """

    def bc(ya: np.ndarray, yb: np.ndarray) -> np.ndarray:
        pa = Propagator.from_real(ya)
        pb = Propagator.from_real(yb)
        ra, rta = boundary_a(pa.g, pa.gt, pa.dg, pa.dgt, neighbor_a)
        rb, rtb = boundary_b(pb.g, pb.gt, pb.dg, pb.dgt, neighbor_b)
        return np.concatenate([ra.to_real(), rta.to_real(), rb.to_real(), rtb.to_real()])

    return bc


class BVPDriver:
    """Solves the Usadel equation of a material over its full energy mesh.

    Args:
        config: Solver settings
        backend: Boundary-value solver; defaults to ScipyBVPSolver

    Raises:
        ConfigurationError: If the backend cannot honour the configured
            order and error control

    Example:
        >>> driver = BVPDriver(SolverConfig())
        >>> change = driver.update(material)
    """

    def __init__(
        self,
        config: Optional[SolverConfig] = None,
        backend: Optional[BoundaryValueSolver] = None,
    ):
        self.config = config if config is not None else SolverConfig()
        self.backend = backend if backend is not None else ScipyBVPSolver()

        errors = self.config.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))
        if not self.backend.supports(self.config.order, self.config.control):
            raise ConfigurationError(
                f"{type(self.backend).__name__} cannot solve with order "
                f"{self.config.order} and {self.config.control.value} error control"
            )

    def solve_energy(
        self,
        energy: float,
        complex_energy: complex,
        location: np.ndarray,
        row: np.ndarray,
        diffusion: DiffusionEquation,
        boundary_a: BoundaryCondition,
        boundary_b: BoundaryCondition,
        neighbor_a: Optional[Propagator] = None,
        neighbor_b: Optional[Propagator] = None,
    ) -> np.ndarray:
        """Solve one energy, starting from the given row.

        Args:
            energy: Real energy (for error reporting)
            complex_energy: Complex energy entering the diffusion equation
            location: Position mesh [Nz]
            row: Initial guess [Nz, 32]
            diffusion: Diffusion equation snapshot
            boundary_a, boundary_b: Boundary condition snapshots
            neighbor_a, neighbor_b: Neighbour edge propagators at this energy

        Returns:
            Converged row [Nz, 32]

        Raises:
            SingularMatrixError: If a normalization matrix became singular
            BVPNonConvergenceError: If the backend failed or returned non-finite values
        """
        ode = make_ode(complex_energy, diffusion)
        bc = make_bc(boundary_a, boundary_b, neighbor_a, neighbor_b)
        max_nodes = self.config.scaling * len(location)

        try:
            solution = self.backend.solve(
                location,
                pack_row(row),
                ode,
                bc,
                order=self.config.order,
                control=self.config.control,
                tolerance=self.config.tolerance,
                max_nodes=max_nodes,
            )
        except SingularMatrixError as e:
            raise SingularMatrixError(f"E = {energy:.6g}: {e}", energy=energy) from e

        if not solution.success:
            raise BVPNonConvergenceError(
                f"BVP solve failed at E = {energy:.6g}: {solution.message}", energy=energy
            )
        if not np.all(np.isfinite(solution.values)):
            raise BVPNonConvergenceError(
                f"BVP solve returned non-finite values at E = {energy:.6g}", energy=energy
            )
        return unpack_row(solution.values)

    def update(
        self,
        material,
        left_edge: Optional[Sequence[Propagator]] = None,
        right_edge: Optional[Sequence[Propagator]] = None,
    ) -> float:
        """Solve every energy of a material and store the results.

        Args:
            material: Material to update
            left_edge: Right-edge propagators of the left neighbour, one per energy
            right_edge: Left-edge propagators of the right neighbour, one per energy

        Returns:
            Largest change of the packed Riccati state

        Raises:
            ConfigurationError: If the interfaces do not fit the linkage
            SingularMatrixError, BVPNonConvergenceError: On a failed energy
        """
        energies = material.energy
        for edge, label in ((left_edge, "left"), (right_edge, "right")):
            if edge is not None and len(edge) != len(energies):
                raise ConfigurationError(
                    f"{material.name}: {label} neighbour has {len(edge)} energies, "
                    f"expected {len(energies)}"
                )

        setup = material.update_prehook(left_edge is not None, right_edge is not None)
        logger.info(f"Updating {material.name} ({len(energies)} energies)")

        previous = material.state.copy()
        for n, energy in enumerate(energies):
            logger.debug(f"[{n + 1}/{len(energies)}] E = {energy:.6f}")
            row = self.solve_energy(
                energy,
                setup.energies[n],
                material.location,
                material.state.row(n),
                setup.diffusion,
                setup.boundary_a,
                setup.boundary_b,
                None if left_edge is None else left_edge[n],
                None if right_edge is None else right_edge[n],
            )
            material.state.set_row(n, row)

        change = material.state.max_difference(previous)
        logger.info(f"{material.name}: max state change {change:.3e}")
        return change
