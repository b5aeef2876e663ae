"""Configuration Module - defaults, enums, configuration dataclasses and validation.

Default Configuration (loaded from defaults.yaml):
    from usadel_1d.config import get_default, get_defaults

    tolerance = get_default('solver.tolerance')
    positions = get_default('grid.positions')

Recommended Usage:
    from usadel_1d.config.simulation_config import StackConfig, create_default_config
    from usadel_1d.config.validation import validate_and_warn

    config = create_default_config(temperature=0.1)
    validate_and_warn(config)

Import Policy:
    DO NOT use: from usadel_1d.config import *

Submodules:
    enums: Configuration enumerations (MaterialKind, InterfaceKind, ErrorControl, EnergyGridType)
    defaults: Default constants
    yaml_loader: YAML defaults loader (get_default, get_defaults, merge_with_defaults)
    simulation_config: Configuration dataclasses (SolverConfig, GridConfig, StackConfig)
    validation: Validation utilities (ConfigurationError, validate_config, warn_if_unsafe)

Note:
    simulation_config and validation depend on usadel_1d.materials and are
    imported from their submodules rather than re-exported here.
"""

from usadel_1d.config.enums import EnergyGridType, ErrorControl, InterfaceKind, MaterialKind
from usadel_1d.config.yaml_loader import get_default, get_defaults, merge_with_defaults, reload_defaults

__all__ = [
    "EnergyGridType",
    "ErrorControl",
    "InterfaceKind",
    "MaterialKind",
    "get_default",
    "get_defaults",
    "merge_with_defaults",
    "reload_defaults",
]
