"""Layer descriptors.

Import Policy:
    from usadel_1d.materials import Conductor, Superconductor, Interface
    from usadel_1d.materials.material import Material

Note:
    The runtime Material depends on usadel_1d.physics, which itself reads
    the descriptors, so it is imported from its submodule rather than
    re-exported here.
"""

from usadel_1d.materials.descriptor import (
    Conductor,
    Ferromagnet,
    Interface,
    MaterialDescriptor,
    SpinOrbitCoupling,
    SpinScattering,
    Superconductor,
    descriptor_from_dict,
)

__all__ = [
    "Conductor",
    "Superconductor",
    "Ferromagnet",
    "Interface",
    "SpinOrbitCoupling",
    "SpinScattering",
    "MaterialDescriptor",
    "descriptor_from_dict",
]
