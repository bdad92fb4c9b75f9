'''Propagation settings consumed by the integrated state processors
State kind enumeration, per-kind sizes and settings node definitions'''

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional, Tuple, Union

from .errors import (LayoutInconsistencyError, UndefinedSettingsError,
                     UnknownStateTypeError)


# define an enumerated list of integrated state kinds
class IntegratedStateType(Enum):
    HYBRID = 'hybrid'
    TRANSLATIONAL = 'translational'   # [x;y;z;vx;vy;vz] per body
    ROTATIONAL = 'rotational'         # [q0;q1;q2;q3;wx;wy;wz] per body
    BODY_MASS = 'mass'                # [m] per body
    CUSTOM = 'custom'                 # opaque, sized by the settings node


# Kinds for which processors exist, in the order they are applied
PROCESSED_STATE_TYPES = (
    IntegratedStateType.TRANSLATIONAL,
    IntegratedStateType.ROTATIONAL,
    IntegratedStateType.BODY_MASS,
)

_SINGLE_STATE_SIZES = {
    IntegratedStateType.TRANSLATIONAL: 6,
    IntegratedStateType.ROTATIONAL: 7,
    IntegratedStateType.BODY_MASS: 1,
}

_DIFFERENTIAL_EQUATION_ORDERS = {
    IntegratedStateType.TRANSLATIONAL: 2,
    IntegratedStateType.ROTATIONAL: 1,
    IntegratedStateType.BODY_MASS: 1,
}

_ACCELERATION_SIZES = {
    IntegratedStateType.TRANSLATIONAL: 3,
    IntegratedStateType.ROTATIONAL: 3,
    IntegratedStateType.BODY_MASS: 1,
}


def parse_state_type(state_type) -> IntegratedStateType:
    """Convert string or enum to IntegratedStateType enum"""
    if isinstance(state_type, IntegratedStateType):
        return state_type
    elif isinstance(state_type, str):
        type_map = {
            'hybrid': IntegratedStateType.HYBRID,
            'multi_type': IntegratedStateType.HYBRID,
            'translational': IntegratedStateType.TRANSLATIONAL,
            'translational_state': IntegratedStateType.TRANSLATIONAL,
            'rotational': IntegratedStateType.ROTATIONAL,
            'rotational_state': IntegratedStateType.ROTATIONAL,
            'mass': IntegratedStateType.BODY_MASS,
            'body_mass': IntegratedStateType.BODY_MASS,
            'body_mass_state': IntegratedStateType.BODY_MASS,
            'custom': IntegratedStateType.CUSTOM,
            'custom_state': IntegratedStateType.CUSTOM,
        }
        if state_type.lower() in type_map:
            return type_map[state_type.lower()]
        raise UnknownStateTypeError(
            f"Unknown integrated state type '{state_type}'. "
            f"Use: {list(type_map.keys())}"
        )
    raise UnknownStateTypeError(
        f"Cannot interpret {state_type!r} as an integrated state type"
    )


def _lookup(table, state_type, quantity):
    state_type = parse_state_type(state_type)
    if state_type not in table:
        raise UnknownStateTypeError(
            f"Did not recognize state type '{state_type.value}' "
            f"when getting {quantity}"
        )
    return table[state_type]


def single_state_size(state_type) -> int:
    """Number of flat-vector entries used by one body of the given kind."""
    return _lookup(_SINGLE_STATE_SIZES, state_type, "size")


def differential_equation_order(state_type) -> int:
    """Order of the governing differential equation of the given kind."""
    return _lookup(_DIFFERENTIAL_EQUATION_ORDERS, state_type, "order")


def acceleration_size(state_type) -> int:
    """Size of the highest-order derivative of one body of the given kind."""
    return _lookup(_ACCELERATION_SIZES, state_type, "acceleration size")


def _check_body_list(bodies: Tuple[str, ...], label: str):
    if len(set(bodies)) != len(bodies):
        raise LayoutInconsistencyError(
            f"Duplicate entries in {label}: {list(bodies)}"
        )


"""
Settings nodes. Each node reports its kind through the ``state_type`` class
attribute and its extent in the flat state vector through ``state_size``.
Validation of node contents happens when processors are created, so that
inconsistent settings abort processor construction rather than the
definition of the settings themselves.
"""
@dataclass(frozen=True)
class TranslationalStateSettings:
    """
    Translational propagation of one or more bodies.

    Attributes
    ----------
    bodies_to_integrate : tuple of str
        Propagated bodies, in the order of their blocks in the state vector
    central_bodies : tuple of str
        Integration origin of each propagated body (same order)
    """
    bodies_to_integrate: Tuple[str, ...]
    central_bodies: Tuple[str, ...]
    state_type: ClassVar[IntegratedStateType] = IntegratedStateType.TRANSLATIONAL

    def __post_init__(self):
        object.__setattr__(self, 'bodies_to_integrate', tuple(self.bodies_to_integrate))
        object.__setattr__(self, 'central_bodies', tuple(self.central_bodies))

    @property
    def state_size(self) -> int:
        return single_state_size(self.state_type) * len(self.bodies_to_integrate)

    def validate(self):
        if len(self.bodies_to_integrate) != len(self.central_bodies):
            raise LayoutInconsistencyError(
                f"Translational settings list {len(self.bodies_to_integrate)} "
                f"bodies to integrate but {len(self.central_bodies)} central bodies"
            )
        _check_body_list(self.bodies_to_integrate, "bodies to integrate")
        for body, central_body in zip(self.bodies_to_integrate, self.central_bodies):
            if body == central_body:
                raise LayoutInconsistencyError(
                    f"Body '{body}' cannot be propagated with respect to itself"
                )


@dataclass(frozen=True)
class RotationalStateSettings:
    """
    Rotational propagation of one or more bodies.

    Each body occupies a quaternion (scalar first) followed by the angular
    velocity vector in the body-fixed frame.
    """
    bodies_to_integrate: Tuple[str, ...]
    state_type: ClassVar[IntegratedStateType] = IntegratedStateType.ROTATIONAL

    def __post_init__(self):
        object.__setattr__(self, 'bodies_to_integrate', tuple(self.bodies_to_integrate))

    @property
    def state_size(self) -> int:
        return single_state_size(self.state_type) * len(self.bodies_to_integrate)

    def validate(self):
        _check_body_list(self.bodies_to_integrate, "rotationally propagated bodies")


@dataclass(frozen=True)
class MassStateSettings:
    """Mass propagation of one or more bodies."""
    bodies_with_mass_to_propagate: Tuple[str, ...]
    state_type: ClassVar[IntegratedStateType] = IntegratedStateType.BODY_MASS

    def __post_init__(self):
        object.__setattr__(self, 'bodies_with_mass_to_propagate',
                           tuple(self.bodies_with_mass_to_propagate))

    @property
    def bodies_to_integrate(self) -> Tuple[str, ...]:
        return self.bodies_with_mass_to_propagate

    @property
    def state_size(self) -> int:
        return single_state_size(self.state_type) * len(self.bodies_with_mass_to_propagate)

    def validate(self):
        _check_body_list(self.bodies_with_mass_to_propagate, "bodies with mass to propagate")


@dataclass(frozen=True)
class CustomStateSettings:
    """
    User-defined state entries. Opaque to this package: no processor is
    created, the entries only shift the start index of what follows.
    """
    state_size: int = 0
    name: Optional[str] = None
    state_type: ClassVar[IntegratedStateType] = IntegratedStateType.CUSTOM

    def validate(self):
        if self.state_size < 0:
            raise LayoutInconsistencyError(
                f"Custom state size must be non-negative, got {self.state_size}"
            )


@dataclass(frozen=True)
class HybridStateSettings:
    """
    Ordered concatenation of single-kind settings in one flat state vector.

    Entries may not themselves be hybrid; this, and undefined (None)
    entries, are rejected when processors are created.
    """
    propagator_settings: Tuple[Optional["SingleStateSettings"], ...] = field(default=())
    state_type: ClassVar[IntegratedStateType] = IntegratedStateType.HYBRID

    def __post_init__(self):
        object.__setattr__(self, 'propagator_settings', tuple(self.propagator_settings))

    @property
    def state_size(self) -> int:
        total = 0
        for index, settings in enumerate(self.propagator_settings):
            if settings is None:
                raise UndefinedSettingsError(
                    f"Hybrid propagator settings entry {index} is not defined"
                )
            total += settings.state_size
        return total


SingleStateSettings = Union[TranslationalStateSettings, RotationalStateSettings,
                            MassStateSettings, CustomStateSettings]
PropagatorSettings = Union[SingleStateSettings, HybridStateSettings]


def hybrid(*settings: PropagatorSettings) -> HybridStateSettings:
    """Shorthand for ``HybridStateSettings((a, b, ...))``."""
    return HybridStateSettings(tuple(settings))
