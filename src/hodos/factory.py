'''Creation and application of integrated state processors
Recursive processor factory over (hybrid) propagation settings, and the
drivers applying all processors to a solution'''

import logging
from functools import reduce
from typing import Dict, List, Optional, Sequence, Tuple

from .bodies import BodyCollection
from .errors import (AmbiguousHybridCompositionError, BodyNotFoundError,
                     LayoutInconsistencyError, MissingEphemerisError,
                     NestedHybridError, UndefinedSettingsError,
                     UnknownStateTypeError)
from .frames import ReferenceFrameManager
from .layout import segment_for_settings
from .multi_arc import as_multi_arc_solution
from .processors import (IntegratedStateProcessor, MassStateProcessor,
                         RotationalStateProcessor, TranslationalStateProcessor,
                         as_solution_map)
from .propagation_settings import (PROCESSED_STATE_TYPES, IntegratedStateType,
                                   PropagatorSettings, parse_state_type)

_log = logging.getLogger(__name__)

ProcessorMap = Dict[IntegratedStateType, List[IntegratedStateProcessor]]


def check_translational_states_feasibility(bodies: BodyCollection,
                                           bodies_to_integrate: Sequence[str]):
    """
    Check that every body to integrate exists and carries an ephemeris to reset.

    Raises
    ------
    BodyNotFoundError
        If a body is not in the collection
    MissingEphemerisError
        If a body has no ephemeris
    """
    for body_name in bodies_to_integrate:
        if bodies[body_name].ephemeris is None:
            raise MissingEphemerisError(
                f"Body '{body_name}' is propagated but has no ephemeris to reset"
            )


def _create_single_processor(settings, segment, bodies: BodyCollection,
                             frame_manager: ReferenceFrameManager) -> IntegratedStateProcessor:
    state_type = segment.state_type
    missing = [name for name in segment.bodies if name not in bodies]
    if missing:
        raise BodyNotFoundError(
            f"Bodies {missing} of the {state_type.value} settings are not in the body collection"
        )

    if state_type == IntegratedStateType.TRANSLATIONAL:
        check_translational_states_feasibility(bodies, settings.bodies_to_integrate)
        return TranslationalStateProcessor.from_frame_manager(
            frame_manager, segment.start_index, segment.size,
            settings.bodies_to_integrate, settings.central_bodies)
    elif state_type == IntegratedStateType.ROTATIONAL:
        return RotationalStateProcessor(segment.start_index, segment.size,
                                        settings.bodies_to_integrate)
    elif state_type == IntegratedStateType.BODY_MASS:
        return MassStateProcessor(segment.start_index, segment.size,
                                  settings.bodies_with_mass_to_propagate)
    raise UnknownStateTypeError(f"No processor exists for {state_type.value} states")


def _merge(processors: ProcessorMap, addition: ProcessorMap) -> ProcessorMap:
    merged = {state_type: list(entries) for state_type, entries in processors.items()}
    for state_type, entries in addition.items():
        merged.setdefault(state_type, []).extend(entries)
    return merged


def create_integrated_state_processors(
        settings: Optional[PropagatorSettings],
        bodies: BodyCollection,
        start_index: int = 0,
        frame_manager: Optional[ReferenceFrameManager] = None) -> Tuple[ProcessorMap, int]:
    """
    Create the processors for all segments of the flat state vector.

    Hybrid settings are processed entry by entry, each entry starting where
    the previous one ended. Custom settings produce no processor but still
    occupy their reported size.

    Parameters
    ----------
    settings : propagator settings
        Single-kind or hybrid settings node
    bodies : BodyCollection
        Environment the processors will update
    start_index : int, optional
        Index of the first entry covered by ``settings`` (default 0)
    frame_manager : ReferenceFrameManager, optional
        Source of update orders and frame translations
        (default: a manager built on ``bodies``)

    Returns
    -------
    processors : dict
        Processors per state kind, in flat-vector order
    size : int
        Number of entries covered by ``settings``

    Raises
    ------
    UndefinedSettingsError
        If the settings, or a hybrid entry, are None
    NestedHybridError
        If a hybrid entry is hybrid
    AmbiguousHybridCompositionError
        If a non-custom hybrid entry does not yield exactly one processor
    UnknownStateTypeError
        If a settings node reports an unrecognized kind
    LayoutInconsistencyError
        If a node's contents are inconsistent

    Examples
    --------
    >>> processors, size = create_integrated_state_processors(
    ...     hybrid(TranslationalStateSettings(['Earth', 'Mars'], ['SSB', 'SSB']),
    ...            MassStateSettings(['Earth', 'Mars'])), bodies)
    >>> size
    14
    >>> processors[IntegratedStateType.BODY_MASS][0].start_index
    12
    """
    if settings is None:
        raise UndefinedSettingsError("Cannot create processors, propagator settings are not defined")
    if frame_manager is None:
        frame_manager = ReferenceFrameManager(bodies)

    state_type = parse_state_type(getattr(settings, 'state_type', None))
    if state_type == IntegratedStateType.HYBRID:
        return _create_hybrid_processors(settings, bodies, start_index, frame_manager)

    segment = segment_for_settings(settings, start_index)
    if state_type == IntegratedStateType.CUSTOM:
        return {}, segment.size
    processor = _create_single_processor(settings, segment, bodies, frame_manager)
    return {state_type: [processor]}, segment.size


def _create_hybrid_processors(settings, bodies: BodyCollection, start_index: int,
                              frame_manager: ReferenceFrameManager) -> Tuple[ProcessorMap, int]:

    def fold(accumulated, indexed_entry):
        processors, next_index = accumulated
        index, entry = indexed_entry
        if entry is None:
            raise UndefinedSettingsError(
                f"Hybrid propagator settings entry {index} is not defined"
            )
        entry_type = parse_state_type(getattr(entry, 'state_type', None))
        if entry_type == IntegratedStateType.HYBRID:
            raise NestedHybridError(
                f"Hybrid propagator settings entry {index} is itself hybrid"
            )

        entry_processors, entry_size = create_integrated_state_processors(
            entry, bodies, next_index, frame_manager)
        if entry_type != IntegratedStateType.CUSTOM:
            if len(entry_processors) != 1:
                raise AmbiguousHybridCompositionError(
                    f"Hybrid propagator settings entry {index} ({entry_type.value}) "
                    f"yielded processors of {len(entry_processors)} types, expected 1"
                )
            if len(next(iter(entry_processors.values()))) != 1:
                raise AmbiguousHybridCompositionError(
                    f"Hybrid propagator settings entry {index} ({entry_type.value}) "
                    f"yielded multiple processors of a single type"
                )
        return _merge(processors, entry_processors), next_index + entry_size

    processors, end_index = reduce(fold, enumerate(settings.propagator_settings),
                                   ({}, start_index))
    _log.debug("Created processors %s covering entries [%d, %d)",
               {state_type.value: len(entries) for state_type, entries in processors.items()},
               start_index, end_index)
    return processors, end_index - start_index


"""
Drivers applying every processor to integration output. Processors are
applied per kind in PROCESSED_STATE_TYPES order; the ephemeris-dependent
quantities of all bodies are refreshed once, at the end.
"""
def _check_state_size(width: int, state_size: Optional[int]):
    if state_size is not None and width != state_size:
        raise LayoutInconsistencyError(
            f"Processors cover {state_size} entries, but the integrated state "
            f"vector has {width}"
        )


def reset_integrated_states(solution, processors: ProcessorMap, bodies: BodyCollection,
                            state_size: Optional[int] = None):
    """
    Install a single-arc solution into ``bodies`` with all ``processors``.

    Parameters
    ----------
    solution : NumericalSolutionMap or mapping
        Integrated flat states
    processors : dict
        Processors per kind, from :func:`create_integrated_state_processors`
    bodies : BodyCollection
        Environment to update
    state_size : int, optional
        Size returned by the factory; if given, the flat states must have
        exactly this length
    """
    solution = as_solution_map(solution)
    _check_state_size(solution.width, state_size)
    for state_type in PROCESSED_STATE_TYPES:
        for processor in processors.get(state_type, ()):
            processor.process_integrated_states(solution, bodies,
                                                update_dependent_quantities=False)
    bodies.update_dependent_quantities()


def reset_integrated_multi_arc_states(solutions, processors: ProcessorMap,
                                      bodies: BodyCollection,
                                      arc_start_times: Optional[Sequence[float]] = None,
                                      state_size: Optional[int] = None):
    """
    Install a multi-arc solution into ``bodies`` with all ``processors``.

    Only translational states can be reset per arc; other processors raise
    UnsupportedOperationError.
    """
    if not hasattr(solutions, 'arcs'):
        solutions = [as_solution_map(solution) for solution in solutions]
    multi_arc_solution = as_multi_arc_solution(solutions, arc_start_times)
    _check_state_size(multi_arc_solution.width, state_size)
    for state_type in PROCESSED_STATE_TYPES:
        for processor in processors.get(state_type, ()):
            processor.process_integrated_multi_arc_states(
                multi_arc_solution, None, bodies, update_dependent_quantities=False)
    bodies.update_dependent_quantities()
