'''Installation of multi-arc translational states
One tabulated ephemeris per arc, swapped into each body's multi-arc ephemeris'''

import logging
from typing import Dict, Optional, Sequence, Tuple, Union

from .bodies import Body, BodyCollection
from .ephemerides import MultiArcEphemeris, TabulatedEphemeris
from .errors import MissingEphemerisError, WrongEphemerisTypeError
from .frames import TranslationFunction
from .integrated_states import (cast_to_precision, check_segment_size,
                                check_solution_width,
                                convert_numerical_solution_to_ephemeris_input,
                                resolve_update_order)
from .interpolation import create_state_interpolator
from .solution import MultiArcSolution, NumericalSolutionMap

_log = logging.getLogger(__name__)


def as_multi_arc_solution(solutions: Union[MultiArcSolution, Sequence[NumericalSolutionMap]],
                          arc_start_times: Optional[Sequence[float]] = None) -> MultiArcSolution:
    """Pair per-arc solutions with their start times, unless already paired."""
    if isinstance(solutions, MultiArcSolution):
        if arc_start_times is not None and list(arc_start_times) != solutions.arc_start_times:
            raise ValueError(
                f"Arc start times {list(arc_start_times)} differ from those of the "
                f"multi-arc solution {solutions.arc_start_times}"
            )
        return solutions
    if arc_start_times is None:
        raise ValueError("Arc start times are required when passing a list of solutions")
    return MultiArcSolution.from_lists(solutions, arc_start_times)


def reset_multi_arc_ephemeris_of_body(body: Body,
                                      state_histories: Sequence[NumericalSolutionMap],
                                      arc_start_times: Sequence[float]):
    """
    Replace all arcs of the multi-arc ephemeris of ``body``.

    Each arc becomes a tabulated ephemeris with the origin, orientation and
    precision of the existing multi-arc ephemeris. The new arcs and their
    start times are swapped in together.

    Raises
    ------
    MissingEphemerisError
        If the body has no ephemeris
    WrongEphemerisTypeError
        If the body's ephemeris is not multi-arc
    """
    ephemeris = body.ephemeris
    if ephemeris is None:
        raise MissingEphemerisError(
            f"Could not reset multi-arc ephemeris of body '{body.name}', it has no ephemeris"
        )
    if not isinstance(ephemeris, MultiArcEphemeris):
        raise WrongEphemerisTypeError(
            f"Could not reset multi-arc ephemeris of body '{body.name}': expected a "
            f"multi-arc ephemeris, found {type(ephemeris).__name__}"
        )

    single_arc_ephemerides = []
    for arc_index, history in enumerate(state_histories):
        interpolator = create_state_interpolator(history)
        # One warning per body is enough
        interpolator = cast_to_precision(
            interpolator, ephemeris.scalar_type, ephemeris.time_type,
            f"multi-arc ephemeris of body '{body.name}'", warn=arc_index == 0)
        single_arc_ephemerides.append(TabulatedEphemeris(
            interpolator,
            ephemeris.reference_frame_origin,
            ephemeris.reference_frame_orientation,
            scalar_type=ephemeris.scalar_type,
            time_type=ephemeris.time_type,
        ))
    ephemeris.reset_single_arc_ephemerides(single_arc_ephemerides, arc_start_times)


def reset_multi_arc_integrated_ephemerides(
        bodies: BodyCollection,
        solutions: Union[MultiArcSolution, Sequence[NumericalSolutionMap]],
        arc_start_times: Optional[Sequence[float]],
        bodies_to_integrate: Sequence[str],
        start_index_and_size: Tuple[int, int],
        update_order: Sequence[str] = (),
        translation_functions: Optional[Dict[str, TranslationFunction]] = None,
        update_dependent_quantities: bool = True):
    """
    Install multi-arc translational states as multi-arc ephemerides.

    For each body (in ``update_order``) one interpolator is built per arc,
    exactly as in the single-arc case, with the frame translation evaluated
    at each arc's own sample times.

    Parameters
    ----------
    bodies : BodyCollection
        Environment to update
    solutions : MultiArcSolution or sequence of NumericalSolutionMap
        Integrated flat states of each arc
    arc_start_times : sequence of float
        Start time of each arc (may be None if ``solutions`` is a MultiArcSolution)
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
    multi_arc_solution = as_multi_arc_solution(solutions, arc_start_times)
    start_index, size = start_index_and_size
    check_segment_size("translational", size, 6, bodies_to_integrate)
    for arc in multi_arc_solution:
        check_solution_width(arc.solution, start_index, size)
    order = resolve_update_order(update_order, bodies_to_integrate)
    translation_functions = translation_functions or {}
    bodies_to_integrate = list(bodies_to_integrate)
    start_times = multi_arc_solution.arc_start_times

    _log.debug("Resetting multi-arc ephemerides of %d arcs in order %s",
               len(multi_arc_solution), order)
    for body_name in order:
        body_index = bodies_to_integrate.index(body_name)
        histories = [
            convert_numerical_solution_to_ephemeris_input(
                arc.solution, start_index + 6 * body_index,
                translation_functions.get(body_name))
            for arc in multi_arc_solution
        ]
        reset_multi_arc_ephemeris_of_body(bodies[body_name], histories, start_times)
        _log.debug("Reset multi-arc ephemeris of %s with arcs starting at %s",
                   body_name, start_times)

    if update_dependent_quantities:
        bodies.update_dependent_quantities()
