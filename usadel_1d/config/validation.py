"""
Configuration Validation Utilities

This module provides the configuration error types and the validation and
safety checks run before any solve.

Import Policy:
    from usadel_1d.config.validation import ConfigurationError, validate_config, warn_if_unsafe

DO NOT use: from usadel_1d.config.validation import *
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING

from usadel_1d.config.defaults import MIN_SAFE_SCATTERING

if TYPE_CHECKING:
    from usadel_1d.config.simulation_config import StackConfig


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


class ConfigurationWarning(Warning):
    """Warning for potentially unsafe configuration choices."""

    pass


def stack_layout(config: StackConfig) -> str:
    """Layer sequence with the interface kinds between them, e.g. S |tunnel| N."""
    if not config.layers:
        return "<empty stack>"
    parts = [config.layers[0].name]
    for layer in config.layers[1:]:
        parts.append(f"|{layer.interface_a.kind.value}|")
        parts.append(layer.name)
    return " ".join(parts)


def validate_config(config: StackConfig, raise_on_error: bool = True) -> tuple[bool, list[str]]:
    """Check that a stack can be built and solved.

    Covers the solver and grid settings, every layer with its two
    interfaces, and the linkage between neighbouring layers.

    Args:
        config: StackConfig to check
        raise_on_error: If True, raise ConfigurationError listing every problem

    Returns:
        Tuple of (is_valid, error_messages)

    Raises:
        ConfigurationError: If the stack is not solvable and raise_on_error=True
    """
    errors = config.validate()
    if not errors:
        return True, []

    if raise_on_error:
        lines = "\n".join(f"  {err}" for err in errors)
        raise ConfigurationError(f"Stack [{stack_layout(config)}] cannot be solved:\n{lines}")
    return False, errors


def warn_if_unsafe(config: StackConfig) -> list[str]:
    """Warn about choices that are valid but numerically or physically risky.

    Checks:
        1. Second-order spin-mixing terms (unvalidated approximation)
        2. Inelastic scattering below MIN_SAFE_SCATTERING (near-singular gap edge)
        3. Solver tolerance looser than 1e-2
        4. Very coarse position meshes

    Args:
        config: StackConfig to check

    Returns:
        List of warning messages (each also issued as a ConfigurationWarning)
    """
    messages = []

    for layer in config.layers:
        for label, interface in (("interface_a", layer.interface_a), ("interface_b", layer.interface_b)):
            if interface.secondorder != 0:
                messages.append(
                    f"{layer.name}.{label}: second-order spin-mixing terms are an untested "
                    "approximation (equal parameters on both sides, narrow channel distribution)"
                )
        if layer.scattering < MIN_SAFE_SCATTERING:
            messages.append(
                f"{layer.name}: scattering {layer.scattering} < {MIN_SAFE_SCATTERING}; "
                "normalization matrices may become singular at the gap edge"
            )

    if config.solver.tolerance > 1e-2:
        messages.append(f"solver tolerance {config.solver.tolerance} is very loose")

    if config.grid.positions < 10:
        messages.append(f"only {config.grid.positions} position points per layer")

    for message in messages:
        warnings.warn(message, ConfigurationWarning, stacklevel=2)

    return messages


def validate_and_warn(config: StackConfig) -> None:
    """Run validation and safety checks.

    Raises:
        ConfigurationError: If validation fails
    """
    validate_config(config, raise_on_error=True)
    warn_if_unsafe(config)
