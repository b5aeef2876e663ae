"""Numerical and physical constants for the Riccati/Usadel engine.

This module is the Single Source of Truth (SSOT) for the constants shared
by the spin algebra, the propagator observables and the gap equation.

Import Policy:
    from usadel_1d.core.constants import DETERMINANT_FLOOR, BCS_TANH_FACTOR

DO NOT use: from usadel_1d.core.constants import *
"""

# =============================================================================
# Spin Algebra
# =============================================================================

# Smallest |det| accepted by SpinMatrix.inverse()
# Normalization matrices closer to singular than this are reported as
# SingularMatrixError instead of propagating inf/NaN into the solver.
DETERMINANT_FLOOR = 1e-13

# Absolute tolerance used by SpinMatrix.isclose()
SPIN_TOLERANCE = 1e-10

# =============================================================================
# BCS Theory
# =============================================================================

# Ratio Δ0 / (2 Tc) = π / (2 e^γ) of weak-coupling BCS theory
# Enters the equilibrium distribution tanh(BCS_TANH_FACTOR * E / T) when
# energies are measured in units of the zero-temperature bulk gap and
# temperatures in units of the bulk critical temperature.
BCS_TANH_FACTOR = 0.8819384944310228

# Lower integration limit of the gap equation (avoids E = 0 exactly)
GAP_EQUATION_MIN_ENERGY = 1e-6

# =============================================================================
# Mesh Geometry
# =============================================================================

# Offset of the first/last position point from the material edges
# Positions are normalized to the material length, z in (0, 1).
LOCATION_EDGE_OFFSET = 1e-10
