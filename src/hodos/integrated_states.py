'''Installation of integrated states into the environment
Per-kind extraction, frame translation, interpolation and ephemeris reset'''

import logging
import warnings
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .bodies import Body, BodyCollection
from .config import config
from .ephemerides import TabulatedEphemeris, TabulatedRotationalEphemeris
from .errors import (BodyNotFoundError, LayoutInconsistencyError,
                     MissingEphemerisError, WrongEphemerisTypeError)
from .frames import TranslationFunction
from .interpolation import (LagrangeInterpolator, create_rotational_state_interpolator,
                            create_scalar_interpolator, create_state_interpolator)
from .solution import NumericalSolutionMap
from .utils import precision_name, validation_error

_log = logging.getLogger(__name__)


# ========== SHARED CHECKS ==========
def check_segment_size(state_type_label: str, size: int, element_width: int,
                       bodies: Sequence[str]):
    """Check that ``size`` matches ``element_width`` entries per body."""
    required_size = element_width * len(bodies)
    if size != required_size:
        raise LayoutInconsistencyError(
            f"Size of {state_type_label} state ({size}) inconsistent with number of "
            f"bodies {list(bodies)}: expected {required_size}"
        )


def check_solution_width(solution: NumericalSolutionMap, start_index: int, size: int):
    """
    Check that the flat states hold entries ``[start_index, start_index + size)``
    at enough epochs to interpolate.
    """
    if len(solution) < 2:
        raise LayoutInconsistencyError(
            f"Integrated states have {len(solution)} epoch(s), at least 2 are "
            f"required to interpolate"
        )
    if solution.width < start_index + size:
        raise LayoutInconsistencyError(
            f"Integrated states have {solution.width} entries, cannot hold a segment "
            f"of size {size} starting at {start_index}"
        )


def resolve_update_order(update_order: Sequence[str],
                         bodies_to_integrate: Sequence[str]) -> List[str]:
    """
    Order in which ``bodies_to_integrate`` are reset.

    An empty ``update_order`` means the order of ``bodies_to_integrate``.

    Raises
    ------
    LayoutInconsistencyError
        If the order has a different size or repeats a body
    BodyNotFoundError
        If the order names a body that is not integrated
    """
    if len(update_order) == 0:
        return list(bodies_to_integrate)
    if len(update_order) != len(bodies_to_integrate):
        raise LayoutInconsistencyError(
            f"Ephemeris update order {list(update_order)} does not have the size of "
            f"the bodies to integrate {list(bodies_to_integrate)}"
        )
    for body in update_order:
        if body not in bodies_to_integrate:
            raise BodyNotFoundError(
                f"Body '{body}' in ephemeris update order is not among the "
                f"bodies to integrate {list(bodies_to_integrate)}"
            )
    if len(set(update_order)) != len(update_order):
        raise LayoutInconsistencyError(
            f"Ephemeris update order {list(update_order)} repeats a body"
        )
    return list(update_order)


def cast_to_precision(interpolator: LagrangeInterpolator, scalar_type, time_type,
                      description: str, warn: bool = True) -> LagrangeInterpolator:
    """
    Cast ``interpolator`` to the precision of the representation it replaces.

    A warning is issued when a cast is needed (and ``config.WARN_ON_PRECISION_CAST``).
    """
    scalar_type = np.dtype(scalar_type)
    time_type = np.dtype(time_type)
    if interpolator.dtype == scalar_type and interpolator.time_dtype == time_type:
        return interpolator
    if warn and config.WARN_ON_PRECISION_CAST:
        warnings.warn(
            f"Resetting {description} with states of precision "
            f"({precision_name(interpolator.dtype)}, {precision_name(interpolator.time_dtype)}) "
            f"while the existing representation uses "
            f"({precision_name(scalar_type)}, {precision_name(time_type)}); casting",
            UserWarning,
            stacklevel=3
        )
    return interpolator.astype(scalar_type, time_type)


# ========== TRANSLATIONAL STATES ==========
def convert_numerical_solution_to_ephemeris_input(
        solution: NumericalSolutionMap, start_index: int,
        translation_function: Optional[TranslationFunction] = None) -> NumericalSolutionMap:
    """
    Cartesian state history of one body, w.r.t. its ephemeris origin.

    Parameters
    ----------
    solution : NumericalSolutionMap
        Integrated flat states
    start_index : int
        Index of the body's 6-entry block in the flat states
    translation_function : callable, optional
        State of the ephemeris origin w.r.t. the integration origin, as a
        function of time; subtracted from every sample when given
    """
    history = solution.extract(start_index, 6)
    if translation_function is not None:
        history = history.subtract(translation_function)
    return history


def reset_integrated_ephemeris_of_body(body: Body, state_history: NumericalSolutionMap):
    """
    Replace the tabulated ephemeris interpolator of ``body`` with one built from
    ``state_history``.

    Raises
    ------
    MissingEphemerisError
        If the body has no ephemeris
    WrongEphemerisTypeError
        If the body's ephemeris is not tabulated
    """
    ephemeris = body.ephemeris
    if ephemeris is None:
        raise MissingEphemerisError(
            f"Could not reset ephemeris of body '{body.name}', it has no ephemeris"
        )
    if not isinstance(ephemeris, TabulatedEphemeris):
        raise WrongEphemerisTypeError(
            f"Could not reset ephemeris of body '{body.name}': expected a tabulated "
            f"ephemeris, found {type(ephemeris).__name__}"
        )
    interpolator = create_state_interpolator(state_history)
    interpolator = cast_to_precision(interpolator, ephemeris.scalar_type,
                                     ephemeris.time_type, f"ephemeris of body '{body.name}'")
    ephemeris.reset_interpolator(interpolator)


def reset_integrated_ephemerides(
        bodies: BodyCollection,
        solution: NumericalSolutionMap,
        bodies_to_integrate: Sequence[str],
        start_index_and_size: Tuple[int, int],
        update_order: Sequence[str] = (),
        translation_functions: Optional[Dict[str, TranslationFunction]] = None,
        update_dependent_quantities: bool = True):
    """
    Install the translational states of ``bodies_to_integrate`` as their ephemerides.

    Bodies are processed sequentially in ``update_order``, so that a translation
    function reading another body's ephemeris sees its updated version. A
    failure part way leaves the earlier bodies updated.

    Parameters
    ----------
    bodies : BodyCollection
        Environment to update
    solution : NumericalSolutionMap
        Integrated flat states, each body w.r.t. its integration origin
    bodies_to_integrate : sequence of str
        Bodies in the order of their blocks in the flat states
    start_index_and_size : tuple of int
        Start index and total size of the translational segment
    update_order : sequence of str, optional
        Order in which to reset the bodies (default: block order)
    translation_functions : dict, optional
        Per body, the state of its ephemeris origin w.r.t. its integration origin
    update_dependent_quantities : bool, optional
        Refresh all bodies' ephemeris-dependent quantities afterwards (default True)
    """
    start_index, size = start_index_and_size
    check_segment_size("translational", size, 6, bodies_to_integrate)
    check_solution_width(solution, start_index, size)
    order = resolve_update_order(update_order, bodies_to_integrate)
    translation_functions = translation_functions or {}
    bodies_to_integrate = list(bodies_to_integrate)

    _log.debug("Resetting translational ephemerides in order %s", order)
    for body_name in order:
        body_index = bodies_to_integrate.index(body_name)
        history = convert_numerical_solution_to_ephemeris_input(
            solution, start_index + 6 * body_index, translation_functions.get(body_name))
        reset_integrated_ephemeris_of_body(bodies[body_name], history)
        _log.debug("Reset ephemeris of %s from entries [%d, %d) over [%s, %s]",
                   body_name, start_index + 6 * body_index,
                   start_index + 6 * (body_index + 1), solution.t0, solution.tf)

    if update_dependent_quantities:
        bodies.update_dependent_quantities()


# ========== ROTATIONAL STATES ==========
def reset_integrated_rotational_ephemeris_of_body(body: Body,
                                                  state_history: NumericalSolutionMap) -> bool:
    """
    Replace the tabulated rotational ephemeris interpolator of ``body``.

    A missing or non-tabulated rotational ephemeris raises when
    ``config.STRICT_ROTATIONAL_RESET`` is set and is otherwise reported
    with a warning, leaving the body untouched.

    Returns
    -------
    bool
        True if the rotational ephemeris was reset
    """
    rotational_ephemeris = body.rotational_ephemeris
    if rotational_ephemeris is None:
        validation_error(
            f"Could not reset rotational ephemeris of body '{body.name}', "
            f"it has no rotational ephemeris",
            MissingEphemerisError, strict=config.STRICT_ROTATIONAL_RESET)
        return False
    if not isinstance(rotational_ephemeris, TabulatedRotationalEphemeris):
        validation_error(
            f"Could not reset rotational ephemeris of body '{body.name}': expected a "
            f"tabulated rotational ephemeris, found {type(rotational_ephemeris).__name__}",
            WrongEphemerisTypeError, strict=config.STRICT_ROTATIONAL_RESET)
        return False

    interpolator = create_rotational_state_interpolator(state_history)
    interpolator = cast_to_precision(
        interpolator, rotational_ephemeris.scalar_type, rotational_ephemeris.time_type,
        f"rotational ephemeris of body '{body.name}'")
    rotational_ephemeris.reset(interpolator)
    return True


def reset_integrated_rotational_ephemerides(
        bodies: BodyCollection,
        solution: NumericalSolutionMap,
        bodies_to_integrate: Sequence[str],
        start_index_and_size: Tuple[int, int],
        update_dependent_quantities: bool = True):
    """
    Install the rotational states (quaternion, angular velocity) of
    ``bodies_to_integrate`` as their rotational ephemerides.
    """
    start_index, size = start_index_and_size
    check_segment_size("rotational", size, 7, bodies_to_integrate)
    check_solution_width(solution, start_index, size)

    for body_index, body_name in enumerate(bodies_to_integrate):
        history = solution.extract(start_index + 7 * body_index, 7)
        if reset_integrated_rotational_ephemeris_of_body(bodies[body_name], history):
            _log.debug("Reset rotational ephemeris of %s", body_name)
        else:
            _log.debug("Skipped rotational ephemeris of %s", body_name)

    if update_dependent_quantities:
        bodies.update_dependent_quantities()


# ========== BODY MASSES ==========
def reset_integrated_body_mass(
        bodies: BodyCollection,
        solution: NumericalSolutionMap,
        bodies_to_integrate: Sequence[str],
        start_index_and_size: Tuple[int, int],
        update_dependent_quantities: bool = True):
    """
    Install the integrated masses of ``bodies_to_integrate`` as mass functions.

    Masses are interpolated in double precision regardless of the solution's precision.
    """
    start_index, size = start_index_and_size
    check_segment_size("body mass", size, 1, bodies_to_integrate)
    check_solution_width(solution, start_index, size)
    times = solution.times.astype(np.float64)

    for body_index, body_name in enumerate(bodies_to_integrate):
        body = bodies[body_name]
        masses = solution.column(start_index + body_index).astype(np.float64)
        body.set_body_mass_function(create_scalar_interpolator(times, masses))
        _log.debug("Reset mass function of %s", body_name)

    if update_dependent_quantities:
        bodies.update_dependent_quantities()
