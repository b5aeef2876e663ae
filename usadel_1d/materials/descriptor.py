"""Material descriptors: the parameters of one layer in a stack.

Each layer is one of a fixed set of frozen dataclass variants, tagged by
MaterialKind. The variants carry only the parameters they need; the
diffusion equation dispatches on the tag and shares the physics helpers
in usadel_1d.physics.

Energies are in units of the bulk gap, temperatures in units of the bulk
critical temperature, and positions are normalized to the layer length.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Optional

import numpy as np

from usadel_1d.config.defaults import (
    DEFAULT_CONDUCTANCE,
    DEFAULT_CONDUCTOR_GAP,
    DEFAULT_COUPLING,
    DEFAULT_DEPAIRING,
    DEFAULT_MAGNETIZATION,
    DEFAULT_MISALIGNMENT,
    DEFAULT_POLARIZATION,
    DEFAULT_SCATTERING,
    DEFAULT_SECONDORDER,
    DEFAULT_SPINMIXING,
    DEFAULT_SUPERCONDUCTOR_GAP,
    DEFAULT_THOULESS,
)
from usadel_1d.config.enums import InterfaceKind, MaterialKind


def _unit_vector(values, name: str) -> tuple[float, float, float]:
    """Normalize a 3-vector; the zero vector stays zero."""
    vector = np.asarray(values, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"{name} must have 3 components, got {tuple(np.shape(values))}")
    norm = np.linalg.norm(vector)
    if norm > 0:
        vector = vector / norm
    return tuple(float(v) for v in vector)


@dataclass(frozen=True)
class Interface:
    """Boundary condition parameters for one edge of a layer.

    Attributes:
        kind: Boundary condition type
        conductance: Tunneling conductance relative to the bulk (KL parameter)
        polarization: Spin polarization of the barrier, |P| <= 1
        spinmixing: First-order spin-mixing angle (reflection phase shift)
        secondorder: Second-order spin-mixing coefficient. These terms assume
            identical interface parameters on both sides and a narrow
            distribution of channel transmissions; they are an unvalidated
            approximation and are only added when this is non-zero.
        magnetization: Barrier magnetization direction (normalized)
        misalignment: Magnetization seen by reflected electrons on this side,
            if different from magnetization (normalized, zero means aligned)
    """

    kind: InterfaceKind = InterfaceKind.VACUUM
    conductance: float = DEFAULT_CONDUCTANCE
    polarization: float = DEFAULT_POLARIZATION
    spinmixing: float = DEFAULT_SPINMIXING
    secondorder: float = DEFAULT_SECONDORDER
    magnetization: tuple = DEFAULT_MAGNETIZATION
    misalignment: tuple = DEFAULT_MISALIGNMENT

    def __post_init__(self):
        """Coerce the kind and normalize the direction vectors."""
        object.__setattr__(self, "kind", InterfaceKind(self.kind))
        object.__setattr__(self, "magnetization", _unit_vector(self.magnetization, "magnetization"))
        object.__setattr__(self, "misalignment", _unit_vector(self.misalignment, "misalignment"))

    @property
    def spinactive(self) -> bool:
        """True if the spin-active boundary condition applies at this edge."""
        if self.kind == InterfaceKind.SPINACTIVE:
            return True
        return self.kind == InterfaceKind.VACUUM and self.spinmixing != 0

    def validate(self, label: str = "interface") -> list[str]:
        """Validate interface parameters.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        if self.conductance < 0:
            errors.append(f"{label}: conductance must be >= 0, got {self.conductance}")
        if self.kind in (InterfaceKind.TUNNEL, InterfaceKind.SPINACTIVE) and self.conductance == 0:
            errors.append(f"{label}: a {self.kind.value} interface needs a conductance > 0")
        if abs(self.polarization) > 1:
            errors.append(f"{label}: polarization must satisfy |P| <= 1, got {self.polarization}")
        if self.secondorder != 0 and self.spinmixing == 0:
            errors.append(f"{label}: secondorder requires a non-zero spinmixing")
        if self.kind in (InterfaceKind.TUNNEL, InterfaceKind.TRANSPARENT):
            ignored = [
                name
                for name in ("polarization", "spinmixing", "secondorder")
                if getattr(self, name) != 0
            ]
            if ignored:
                errors.append(
                    f"{label}: {', '.join(ignored)} only apply to spinactive interfaces, "
                    f"not {self.kind.value}"
                )
        if self.spinactive and (self.polarization != 0 or self.spinmixing != 0):
            if not any(self.magnetization):
                errors.append(f"{label}: spin-active interface needs a non-zero magnetization")
        return errors

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        data["magnetization"] = list(self.magnetization)
        data["misalignment"] = list(self.misalignment)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Interface:
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class SpinOrbitCoupling:
    """Linear-in-momentum spin-orbit coupling, written as an SU(2) gauge field.

    Attributes:
        rashba: Rashba coefficient α, contributes A = (-α σ2, +α σ1, 0)
        dresselhaus: Dresselhaus coefficient β, contributes A = (+β σ1, -β σ2, 0)
        nanowire: Coupling along the wire, contributes A = (0, 0, -x σ1)
    """

    rashba: float = 0.0
    dresselhaus: float = 0.0
    nanowire: float = 0.0

    @classmethod
    def from_rashba(cls, strength: float) -> SpinOrbitCoupling:
        return cls(rashba=strength)

    @classmethod
    def from_dresselhaus(cls, strength: float) -> SpinOrbitCoupling:
        return cls(dresselhaus=strength)

    @classmethod
    def from_nanowire(cls, strength: float) -> SpinOrbitCoupling:
        return cls(nanowire=strength)

    def __add__(self, other: SpinOrbitCoupling) -> SpinOrbitCoupling:
        if not isinstance(other, SpinOrbitCoupling):
            return NotImplemented
        return SpinOrbitCoupling(
            rashba=self.rashba + other.rashba,
            dresselhaus=self.dresselhaus + other.dresselhaus,
            nanowire=self.nanowire + other.nanowire,
        )

    @property
    def active(self) -> bool:
        return any((self.rashba, self.dresselhaus, self.nanowire))

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> SpinOrbitCoupling:
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class SpinScattering:
    """Isotropic spin-dependent impurity scattering rates.

    Attributes:
        spinflip: Spin-flip (magnetic impurity) scattering rate
        spinorbit: Spin-orbit impurity scattering rate
    """

    spinflip: float = 0.0
    spinorbit: float = 0.0

    def __post_init__(self):
        """Validate scattering rates."""
        if self.spinflip < 0 or self.spinorbit < 0:
            raise ValueError(
                f"Spin scattering rates must be >= 0: "
                f"spinflip={self.spinflip}, spinorbit={self.spinorbit}"
            )

    @property
    def active(self) -> bool:
        return self.spinflip > 0 or self.spinorbit > 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> SpinScattering:
        return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class Conductor:
    """Normal diffusive conductor.

    Attributes:
        name: Layer identifier
        thouless: Thouless energy (diffusion constant / length²)
        scattering: Inelastic scattering rate (imaginary energy)
        depairing: Orbital depairing strength
        gap: Magnitude of the BCS state used as initial guess
        phase: Phase of the initial gap, in units of π
        voltage: Charge bias of the equilibrium distribution
        spinvoltage: Spin bias of the equilibrium distribution
        spintemperature: Spin-dependent temperature offset
        spinorbit: Optional spin-orbit coupling
        spinscattering: Optional spin-flip / spin-orbit impurity scattering
        interface_a: Left edge boundary condition
        interface_b: Right edge boundary condition
    """

    name: str = "conductor"
    thouless: float = DEFAULT_THOULESS
    scattering: float = DEFAULT_SCATTERING
    depairing: float = DEFAULT_DEPAIRING
    gap: float = DEFAULT_CONDUCTOR_GAP
    phase: float = 0.0
    voltage: float = 0.0
    spinvoltage: float = 0.0
    spintemperature: float = 0.0
    spinorbit: Optional[SpinOrbitCoupling] = None
    spinscattering: Optional[SpinScattering] = None
    interface_a: Interface = field(default_factory=Interface)
    interface_b: Interface = field(default_factory=Interface)

    @property
    def kind(self) -> MaterialKind:
        return MaterialKind.CONDUCTOR

    @property
    def initial_gap(self) -> complex:
        """Complex pair potential gap * exp(iπ phase)."""
        return self.gap * np.exp(1j * np.pi * self.phase)

    def validate(self) -> list[str]:
        """Validate layer parameters, including both interfaces.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        if self.thouless <= 0:
            errors.append(f"{self.name}: thouless must be > 0, got {self.thouless}")
        if self.scattering < 0:
            errors.append(f"{self.name}: scattering must be >= 0, got {self.scattering}")
        if self.depairing < 0:
            errors.append(f"{self.name}: depairing must be >= 0, got {self.depairing}")
        if self.gap < 0:
            errors.append(f"{self.name}: gap must be >= 0, got {self.gap}")
        if self.gap != 0 and self.scattering == 0:
            errors.append(
                f"{self.name}: a BCS initial state needs scattering > 0 "
                "(the real-axis gap edge is singular)"
            )
        errors.extend(self.interface_a.validate(f"{self.name}.interface_a"))
        errors.extend(self.interface_b.validate(f"{self.name}.interface_b"))
        return errors

    def to_dict(self) -> dict:
        """Convert descriptor to dictionary for serialization."""
        data = {"kind": self.kind.value}
        for f in fields(self):
            value = getattr(self, f.name)
            if hasattr(value, "to_dict"):
                value = value.to_dict()
            elif isinstance(value, tuple):
                value = list(value)
            data[f.name] = value
        return data


@dataclass(frozen=True)
class Superconductor(Conductor):
    """Conductor with a self-consistent BCS pair potential.

    Attributes:
        coupling: BCS coupling constant λ; the Debye cutoff is cosh(1/λ)
    """

    name: str = "superconductor"
    gap: float = DEFAULT_SUPERCONDUCTOR_GAP
    coupling: float = DEFAULT_COUPLING

    @property
    def kind(self) -> MaterialKind:
        return MaterialKind.SUPERCONDUCTOR

    def validate(self) -> list[str]:
        errors = super().validate()
        if self.coupling <= 0:
            errors.append(f"{self.name}: coupling must be > 0, got {self.coupling}")
        return errors


@dataclass(frozen=True)
class Ferromagnet(Conductor):
    """Conductor with a homogeneous exchange field.

    Attributes:
        exchange: Exchange field vector (h_x, h_y, h_z), in units of the gap
    """

    name: str = "ferromagnet"
    exchange: tuple = (0.0, 0.0, 0.0)

    def __post_init__(self):
        """Validate the exchange field."""
        if len(self.exchange) != 3:
            raise ValueError(f"exchange must have 3 components, got {self.exchange}")
        object.__setattr__(self, "exchange", tuple(float(h) for h in self.exchange))

    @property
    def kind(self) -> MaterialKind:
        return MaterialKind.FERROMAGNET


# Any layer variant; Superconductor and Ferromagnet extend Conductor
MaterialDescriptor = Conductor

_VARIANTS = {
    MaterialKind.CONDUCTOR: Conductor,
    MaterialKind.SUPERCONDUCTOR: Superconductor,
    MaterialKind.FERROMAGNET: Ferromagnet,
}


def _known_fields(cls, data: dict) -> dict:
    names = {f.name for f in fields(cls)}
    unknown = set(data) - names - {"kind"}
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} parameters: {sorted(unknown)}")
    return {k: v for k, v in data.items() if k in names}


def descriptor_from_dict(data: dict) -> Conductor:
    """Create the material variant named by data['kind'].

    Nested 'interface_a', 'interface_b', 'spinorbit' and 'spinscattering'
    dictionaries are converted to their dataclasses.

    Raises:
        ValueError: If the kind or a parameter name is unknown
    """
    data = dict(data)
    kind = MaterialKind(data.pop("kind", MaterialKind.CONDUCTOR.value))
    cls = _VARIANTS[kind]
    for key in ("interface_a", "interface_b"):
        if isinstance(data.get(key), dict):
            data[key] = Interface.from_dict(data[key])
    if isinstance(data.get("spinorbit"), dict):
        data["spinorbit"] = SpinOrbitCoupling.from_dict(data["spinorbit"])
    if isinstance(data.get("spinscattering"), dict):
        data["spinscattering"] = SpinScattering.from_dict(data["spinscattering"])
    return cls(**_known_fields(cls, data))
