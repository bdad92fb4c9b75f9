"""
Hodos: Integrated State Reconciliation for Astrodynamics Simulations

A Python package turning the flat numerical output of an orbit/attitude/mass
propagation into continuously queryable ephemerides, rotation models and
mass functions of the bodies of a simulation environment.
"""

# Configuration and errors
from .config import config, temp_config
from .errors import (
    HodosError,
    LayoutInconsistencyError,
    UnknownStateTypeError,
    AmbiguousHybridCompositionError,
    NestedHybridError,
    UndefinedSettingsError,
    BodyNotFoundError,
    MissingEphemerisError,
    WrongEphemerisTypeError,
    UnsupportedOperationError,
    FrameDependencyError,
    InterpolationRangeError,
)

# Propagation settings and state layout
from .propagation_settings import (
    IntegratedStateType,
    TranslationalStateSettings,
    RotationalStateSettings,
    MassStateSettings,
    CustomStateSettings,
    HybridStateSettings,
    hybrid,
    single_state_size,
    differential_equation_order,
    acceleration_size,
)
from .layout import StateSegment, StateLayout, build_state_layout

# Solutions and interpolation
from .solution import NumericalSolutionMap, Arc, MultiArcSolution
from .interpolation import LAGRANGE_ORDER, LagrangeInterpolator

# Environment
from .ephemerides import (
    ConstantEphemeris,
    TabulatedEphemeris,
    MultiArcEphemeris,
    ConstantRotationalEphemeris,
    TabulatedRotationalEphemeris,
)
from .bodies import Body, BodyCollection
from .frames import ReferenceFrameManager, determine_ephemeris_update_order

# Processors
from .processors import (
    IntegratedStateProcessor,
    TranslationalStateProcessor,
    RotationalStateProcessor,
    MassStateProcessor,
)
from .factory import (
    create_integrated_state_processors,
    check_translational_states_feasibility,
    reset_integrated_states,
    reset_integrated_multi_arc_states,
)

# Package metadata
__version__ = "0.1.0"

# Define what gets imported with "from hodos import *"
__all__ = [
    # Configuration
    "config",
    "temp_config",
    # Errors
    "HodosError",
    "LayoutInconsistencyError",
    "UnknownStateTypeError",
    "AmbiguousHybridCompositionError",
    "NestedHybridError",
    "UndefinedSettingsError",
    "BodyNotFoundError",
    "MissingEphemerisError",
    "WrongEphemerisTypeError",
    "UnsupportedOperationError",
    "FrameDependencyError",
    "InterpolationRangeError",
    # Settings and layout
    "IntegratedStateType",
    "TranslationalStateSettings",
    "RotationalStateSettings",
    "MassStateSettings",
    "CustomStateSettings",
    "HybridStateSettings",
    "hybrid",
    "single_state_size",
    "differential_equation_order",
    "acceleration_size",
    "StateSegment",
    "StateLayout",
    "build_state_layout",
    # Solutions and interpolation
    "NumericalSolutionMap",
    "Arc",
    "MultiArcSolution",
    "LAGRANGE_ORDER",
    "LagrangeInterpolator",
    # Environment
    "ConstantEphemeris",
    "TabulatedEphemeris",
    "MultiArcEphemeris",
    "ConstantRotationalEphemeris",
    "TabulatedRotationalEphemeris",
    "Body",
    "BodyCollection",
    "ReferenceFrameManager",
    "determine_ephemeris_update_order",
    # Processors
    "IntegratedStateProcessor",
    "TranslationalStateProcessor",
    "RotationalStateProcessor",
    "MassStateProcessor",
    "create_integrated_state_processors",
    "check_translational_states_feasibility",
    "reset_integrated_states",
    "reset_integrated_multi_arc_states",
]
