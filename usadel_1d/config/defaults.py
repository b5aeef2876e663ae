"""
Default Configuration Constants for usadel_1d

This module contains ALL default values used throughout the package.
This is the Single Source of Truth (SSOT) for default configuration.

IMPORTANT Import Policies:
    1. DO NOT use: from usadel_1d.config.defaults import *
       This causes namespace pollution and makes tracking difficult.

    2. DO use explicit imports:
       from usadel_1d.config.defaults import DEFAULT_THOULESS, DEFAULT_SCATTERING

    3. DO NOT define defaults elsewhere. All defaults must be in this file.

Units:
    Energies and temperatures are measured in units of the zero-temperature
    bulk gap and the bulk critical temperature respectively; positions are
    normalized to the material length.
"""

from usadel_1d.config.enums import EnergyGridType, ErrorControl

# =============================================================================
# Material Defaults
# =============================================================================

# Thouless energy of a layer (diffusion constant / length²)
DEFAULT_THOULESS = 1.0

# Inelastic scattering rate, added as imaginary part of the energy
# Note: Keeps the propagators analytic at the gap edge. Values below
# MIN_SAFE_SCATTERING make the normalization matrices nearly singular there.
DEFAULT_SCATTERING = 0.01
MIN_SAFE_SCATTERING = 1e-4

# Orbital depairing strength (0 disables the term)
DEFAULT_DEPAIRING = 0.0

# BCS coupling constant; the Debye cutoff is cosh(1 / coupling)
DEFAULT_COUPLING = 0.2

# Temperature (units of the bulk critical temperature)
DEFAULT_TEMPERATURE = 1e-6

# Initial gap magnitude of a superconducting layer and of a normal layer
DEFAULT_SUPERCONDUCTOR_GAP = 1.0
DEFAULT_CONDUCTOR_GAP = 0.0

# =============================================================================
# Interface Defaults
# =============================================================================

DEFAULT_CONDUCTANCE = 0.3
DEFAULT_POLARIZATION = 0.0
DEFAULT_SPINMIXING = 0.0
DEFAULT_SECONDORDER = 0.0
DEFAULT_MAGNETIZATION = (0.0, 0.0, 1.0)
DEFAULT_MISALIGNMENT = (0.0, 0.0, 0.0)

# =============================================================================
# Grid Defaults
# =============================================================================

# Number of position points per layer
DEFAULT_POSITIONS = 151

# Number of energy points
DEFAULT_ENERGIES = 600

# Energy range
DEFAULT_ENERGY_MIN = 1e-6
DEFAULT_ENERGY_MAX = 30.0
DEFAULT_ENERGY_GRID_TYPE = EnergyGridType.PIECEWISE

# Breakpoints of the piecewise energy mesh
# Two thirds of the points below the first breakpoint, one sixth up to the second.
PIECEWISE_BREAKPOINTS = (1.5, 4.5)

# =============================================================================
# Solver Defaults
# =============================================================================

# Maximum number of mesh nodes = positions * scaling
DEFAULT_SCALING = 64

# Collocation order (2, 4 or 6)
DEFAULT_ORDER = 4
SUPPORTED_ORDERS = (2, 4, 6)

DEFAULT_ERROR_CONTROL = ErrorControl.DEFECT

# Residual tolerance of the boundary-value solver
DEFAULT_TOLERANCE = 1e-4

# =============================================================================
# Self-Consistency Defaults
# =============================================================================

# Maximum number of sweeps over a stack
DEFAULT_ITERATIONS = 10

# Stop iterating once the largest state change drops below this
DEFAULT_CONVERGENCE_TOLERANCE = 1e-5

# Critical temperature search
DEFAULT_BISECTIONS = 12
DEFAULT_BISECTION_ITERATIONS = 4
DEFAULT_BISECTION_LOWER = 0.0
DEFAULT_BISECTION_UPPER = 1.5
DEFAULT_BISECTION_GAP = 1e-5
