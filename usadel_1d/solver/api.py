"""
High-Level API for usadel_1d Stack Calculations

This module provides a convenient Python API and CLI interface for solving
multilayer stacks of diffusive conductors and superconductors.

This is the recommended entry point for users who want to:
- Solve stacks described in YAML or JSON files
- Search for the critical temperature of a stack
- Export densities of states and observables

Import Policy:
    from usadel_1d.solver.api import run_stack, run_from_config
    # Or use CLI: python -m usadel_1d.solver.api --config stack.yaml

DO NOT use: from usadel_1d.solver.api import *
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from usadel_1d.config.simulation_config import StackConfig, create_default_config
from usadel_1d.config.validation import validate_and_warn
from usadel_1d.config.yaml_loader import get_default, get_defaults, merge_with_defaults
from usadel_1d.solver.bvp import BoundaryValueSolver
from usadel_1d.solver.critical import critical_temperature
from usadel_1d.solver.exporters import export_observables_csv, save_result, write_dos
from usadel_1d.solver.stack import Stack, StackResult

logger = logging.getLogger(__name__)

# Sections of defaults.yaml that are templates rather than StackConfig fields
_TEMPLATE_SECTIONS = ("layer", "interface", "critical")


def _read_file(config_path: Path) -> dict[str, Any]:
    if config_path.suffix in (".yaml", ".yml"):
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    if config_path.suffix == ".json":
        with open(config_path) as f:
            return json.load(f)
    raise ValueError(f"Unsupported config format: {config_path.suffix}")


def merge_stack_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Fill a user stack dictionary with the packaged defaults.

    Top-level keys are merged over defaults.yaml; every layer is merged
    over the 'layer' template and each of its interfaces over the
    'interface' template.
    """
    merged = merge_with_defaults({k: v for k, v in data.items() if k != "layers"})
    for section in _TEMPLATE_SECTIONS:
        merged.pop(section, None)

    layers = []
    for layer in data.get("layers", []):
        layer = merge_with_defaults(layer, section="layer")
        for key in ("interface_a", "interface_b"):
            if key in layer:
                layer[key] = merge_with_defaults(layer[key], section="interface")
        layers.append(layer)
    merged["layers"] = layers
    return merged


def load_stack_config(config_path: Union[str, Path]) -> StackConfig:
    """Load a stack configuration from a YAML or JSON file.

    Args:
        config_path: Path to YAML or JSON configuration file

    Returns:
        StackConfig (not yet validated)

    Example:
        >>> config = load_stack_config("stacks/bilayer.yaml")
        >>> [layer.name for layer in config.layers]
        ['S', 'N']
    """
    return StackConfig.from_dict(merge_stack_dict(_read_file(Path(config_path))))


def build_stack(config: StackConfig, backend: Optional[BoundaryValueSolver] = None) -> Stack:
    """Validate a configuration and build its stack.

    Raises:
        ConfigurationError: If config validation fails
    """
    validate_and_warn(config)
    return Stack.from_config(config, backend)


def run_stack(
    config: Optional[StackConfig] = None,
    critical: bool = False,
    critical_options: Optional[dict[str, Any]] = None,
    backend: Optional[BoundaryValueSolver] = None,
) -> StackResult:
    """Solve a stack self-consistently.

    Args:
        config: Stack configuration (single normal layer if None)
        critical: Also search for the critical temperature
        critical_options: Overrides of the 'critical' defaults (bisections,
            iterations, lower, upper, gap)
        backend: Boundary-value solver backend (scipy if None)

    Returns:
        StackResult with the solved stack

    Example:
        >>> from usadel_1d.solver.api import run_stack
        >>> result = run_stack(load_stack_config("stacks/bilayer.yaml"))
        >>> print(f"Converged: {result.converged}")
    """
    if config is None:
        config = create_default_config()

    start = time.time()
    stack = build_stack(config, backend)
    deltas = stack.converge(config.iterations, config.convergence_tolerance)
    converged = bool(deltas) and deltas[-1] < config.convergence_tolerance

    tc = None
    if critical:
        options = merge_with_defaults(critical_options or {}, section="critical")
        tc = critical_temperature(stack, **options)
        logger.info(f"Critical temperature: {tc:.6f}")

    return StackResult(
        stack=stack,
        deltas=deltas,
        converged=converged,
        config=config,
        runtime_seconds=time.time() - start,
        critical_temperature=tc,
    )


def run_from_config(
    config_path: Union[str, Path],
    critical: bool = False,
    backend: Optional[BoundaryValueSolver] = None,
) -> StackResult:
    """Solve the stack described by a configuration file.

    A 'critical' section in the file overrides the bisection defaults.

    Example:
        >>> from usadel_1d.solver.api import run_from_config
        >>> result = run_from_config("stacks/bilayer.yaml")
    """
    data = _read_file(Path(config_path))
    config = StackConfig.from_dict(merge_stack_dict(data))
    return run_stack(config, critical=critical, critical_options=data.get("critical"), backend=backend)


def create_cli_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="usadel_1d quasiclassical multilayer solver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Solve a single normal layer with default parameters
  python -m usadel_1d.solver.api

  # Solve a stack from a config file
  python -m usadel_1d.solver.api --config bilayer.yaml

  # Search for the critical temperature
  python -m usadel_1d.solver.api --config bulk.yaml --critical

  # Save results and densities of states
  python -m usadel_1d.solver.api --config bilayer.yaml --output results.npz --dos dos/
        """,
    )

    parser.add_argument("--config", type=str, help="Path to stack file (YAML/JSON)")

    # Self-consistency
    parser.add_argument(
        "--iterations",
        type=int,
        help=f"Maximum number of sweeps (default: {get_default('iterations')})",
    )
    parser.add_argument(
        "--temperature",
        type=float,
        help=f"Temperature in units of Tc (default: {get_default('temperature')})",
    )
    parser.add_argument(
        "--critical",
        action="store_true",
        help=(
            "Search for the critical temperature "
            f"({get_default('critical.bisections')} bisections in "
            f"[{get_default('critical.lower')}, {get_default('critical.upper')}])"
        ),
    )

    # Output
    parser.add_argument("--output", type=str, help="Output file path (format: .npz, .json)")
    parser.add_argument(
        "--format",
        type=str,
        default="npz",
        choices=["npz", "json"],
        help="Output format (default: npz)",
    )
    parser.add_argument("--dos", type=str, metavar="DIR", help="Write DOS and observable tables to DIR")

    # Other options
    parser.add_argument("--verbose", action="store_true", help="Log every energy point")
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("--version", action="version", version="usadel_1d v1.0")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = create_cli_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING if args.quiet else logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        data = {}
        if args.config:
            data = _read_file(Path(args.config))
        if args.iterations is not None:
            data["iterations"] = args.iterations
        if args.temperature is not None:
            data["temperature"] = args.temperature

        if data.get("layers"):
            config = StackConfig.from_dict(merge_stack_dict(data))
        else:
            defaults = get_defaults()
            config = create_default_config(
                temperature=data.get("temperature", defaults["temperature"]),
                iterations=data.get("iterations", defaults["iterations"]),
            )

        result = run_stack(config, critical=args.critical, critical_options=data.get("critical"))

        if args.dos:
            for i, material in enumerate(result.stack.materials):
                write_dos(material, Path(args.dos) / f"{i}_{material.name}_dos.dat")
                export_observables_csv(material, Path(args.dos) / f"{i}_{material.name}.csv")

        if args.output:
            save_result(result, args.output, format=args.format)
            if not args.quiet:
                print(f"Results saved to: {args.output}")

        if not args.quiet:
            print(f"Sweeps: {len(result.deltas)}, converged: {result.converged}")
            if result.critical_temperature is not None:
                print(f"Critical temperature: {result.critical_temperature:.8f}")

        return 0 if result.converged else 1

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug("Traceback", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())


__all__ = [
    "merge_stack_dict",
    "load_stack_config",
    "build_stack",
    "run_stack",
    "run_from_config",
    "save_result",
    "create_cli_parser",
    "main",
]
