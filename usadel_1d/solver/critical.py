"""Critical temperature by bisection.

At each trial temperature every superconductor restarts from a weak
uniform gap. After a few sweeps the gap has grown if the temperature is
below the critical one and decayed otherwise.
"""

from __future__ import annotations

import logging

import numpy as np

from usadel_1d.config.defaults import (
    DEFAULT_BISECTION_GAP,
    DEFAULT_BISECTION_ITERATIONS,
    DEFAULT_BISECTION_LOWER,
    DEFAULT_BISECTION_UPPER,
    DEFAULT_BISECTIONS,
)
from usadel_1d.config.validation import ConfigurationError
from usadel_1d.solver.stack import Stack

logger = logging.getLogger(__name__)


def critical_temperature(
    stack: Stack,
    bisections: int = DEFAULT_BISECTIONS,
    iterations: int = DEFAULT_BISECTION_ITERATIONS,
    lower: float = DEFAULT_BISECTION_LOWER,
    upper: float = DEFAULT_BISECTION_UPPER,
    gap: float = DEFAULT_BISECTION_GAP,
) -> float:
    """Bisect for the temperature at which the gap vanishes.

    Args:
        stack: Stack with at least one superconductor
        bisections: Number of interval halvings
        iterations: Sweeps per trial temperature
        lower, upper: Initial temperature bracket
        gap: Seed gap of the weakly superconducting state

    Returns:
        Midpoint of the final bracket

    Raises:
        ConfigurationError: If the stack has no superconductor or the
            bracket is invalid
    """
    superconductors = stack.superconductors()
    if not superconductors:
        raise ConfigurationError("critical temperature search needs a superconductor")
    if not 0 <= lower < upper:
        raise ConfigurationError(f"invalid temperature bracket [{lower}, {upper}]")
    if gap <= 0:
        raise ConfigurationError(f"seed gap must be > 0, got {gap}")

    bracket = (lower, upper)
    for n in range(bisections):
        temperature = (lower + upper) / 2
        stack.set_temperature(temperature)
        stack.initialize(gap)
        for _ in range(iterations):
            stack.sweep()

        growth = np.mean([abs(m.gap_mean()) for m in superconductors]) / gap
        if growth >= 1:
            lower = temperature
        else:
            upper = temperature
        logger.info(
            f"[{n + 1}/{bisections}] T = {temperature:.6f}, gap growth {growth:.4f}, "
            f"bracket [{lower:.6f}, {upper:.6f}]"
        )

    result = (lower + upper) / 2
    if lower == bracket[0] or upper == bracket[1]:
        logger.warning(f"Critical temperature {result:.6f} is at the edge of the search bracket")
    return result
