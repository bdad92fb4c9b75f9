'''Integrated state processors
One processor per segment of the flat state vector, installing its kind of
quantity into the environment'''

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Dict, List, Sequence, Tuple

from .bodies import BodyCollection
from .errors import LayoutInconsistencyError, UnsupportedOperationError
from .frames import ReferenceFrameManager, TranslationFunction
from .integrated_states import (reset_integrated_body_mass,
                                reset_integrated_ephemerides,
                                reset_integrated_rotational_ephemerides,
                                resolve_update_order)
from .layout import StateSegment
from .multi_arc import reset_multi_arc_integrated_ephemerides
from .propagation_settings import IntegratedStateType
from .solution import NumericalSolutionMap

_log = logging.getLogger(__name__)


def as_solution_map(solution) -> NumericalSolutionMap:
    """Accept a NumericalSolutionMap or a plain {time: flat state} mapping."""
    if isinstance(solution, NumericalSolutionMap):
        return solution
    return NumericalSolutionMap.from_dict(solution)


class IntegratedStateProcessor(ABC):
    """
    Installs one segment of the integrated states into the environment.

    A processor is created once, when the propagation is set up, and may be
    applied to any number of solutions. The environment is passed to each
    call rather than stored.

    Parameters
    ----------
    start_index : int
        Index of the first entry of the segment in the flat state vector
    size : int
        Number of entries of the segment
    bodies_to_integrate : sequence of str
        Bodies in the order of their blocks in the segment
    """
    state_type: ClassVar[IntegratedStateType]

    def __init__(self, start_index: int, size: int, bodies_to_integrate: Sequence[str]):
        self._segment = StateSegment(self.state_type, start_index, size,
                                     tuple(bodies_to_integrate))
        _log.debug("Created %s processor for %s at entries [%d, %d)",
                   self.state_type.value, list(bodies_to_integrate),
                   start_index, start_index + size)

    # ========== PROPERTY ACCESS ==========
    @property
    def segment(self) -> StateSegment:
        return self._segment

    @property
    def start_index(self) -> int:
        return self._segment.start_index

    @property
    def size(self) -> int:
        return self._segment.size

    @property
    def start_index_and_size(self) -> Tuple[int, int]:
        return self._segment.start_index, self._segment.size

    @property
    def bodies_to_integrate(self) -> Tuple[str, ...]:
        return self._segment.bodies

    # ========== PROCESSING ==========
    @abstractmethod
    def process_integrated_states(self, solution, bodies: BodyCollection,
                                  update_dependent_quantities: bool = True):
        """
        Install this processor's segment of ``solution`` into ``bodies``.

        Parameters
        ----------
        solution : NumericalSolutionMap or mapping
            Integrated flat states over one time span
        bodies : BodyCollection
            Environment to update
        update_dependent_quantities : bool, optional
            Refresh all bodies' ephemeris-dependent quantities afterwards
        """

    def process_integrated_multi_arc_states(self, solutions, arc_start_times,
                                            bodies: BodyCollection,
                                            update_dependent_quantities: bool = True):
        """Install this processor's segment of every arc into ``bodies``."""
        raise UnsupportedOperationError(
            f"Multi-arc reset of {self.state_type.value} states is not yet supported"
        )

    def __repr__(self):
        return (f"{type(self).__name__}(start_index={self.start_index}, "
                f"size={self.size}, bodies={list(self.bodies_to_integrate)})")


class TranslationalStateProcessor(IntegratedStateProcessor):
    """
    Processor resetting tabulated (single- or multi-arc) ephemerides from
    translational states.

    Only the update order is fixed at construction. Frame translations are
    built from the body collection passed to each call, so a processor never
    reads from a collection it does not write to.

    Parameters
    ----------
    start_index, size, bodies_to_integrate
        See IntegratedStateProcessor
    central_bodies : sequence of str
        Integration origin of each body
    update_order : sequence of str, optional
        Order in which bodies are reset (default: block order)
    """
    state_type = IntegratedStateType.TRANSLATIONAL

    def __init__(self, start_index: int, size: int, bodies_to_integrate: Sequence[str],
                 central_bodies: Sequence[str], update_order: Sequence[str] = ()):
        super().__init__(start_index, size, bodies_to_integrate)
        if len(central_bodies) != len(bodies_to_integrate):
            raise LayoutInconsistencyError(
                f"Got {len(bodies_to_integrate)} bodies to integrate but "
                f"{len(central_bodies)} central bodies"
            )
        self._central_bodies = tuple(central_bodies)
        self._update_order = tuple(resolve_update_order(update_order, bodies_to_integrate))
        _log.debug("Translational update order %s", list(self._update_order))

    @classmethod
    def from_frame_manager(cls, frame_manager: ReferenceFrameManager, start_index: int,
                           size: int, bodies_to_integrate: Sequence[str],
                           central_bodies: Sequence[str]) -> "TranslationalStateProcessor":
        """Resolve the update order from the current environment."""
        update_order = frame_manager.resolve_update_order(bodies_to_integrate, central_bodies)
        return cls(start_index, size, bodies_to_integrate, central_bodies, update_order)

    @property
    def central_bodies(self) -> Tuple[str, ...]:
        return self._central_bodies

    @property
    def update_order(self) -> List[str]:
        return list(self._update_order)

    def translation_functions(self, bodies: BodyCollection) -> Dict[str, TranslationFunction]:
        """
        Translation functions of the bodies whose integration and ephemeris
        origins differ, reading the ephemerides of ``bodies`` when called.
        """
        functions = ReferenceFrameManager(bodies).get_translation_functions(
            self._central_bodies, self.bodies_to_integrate)
        _log.debug("Translated bodies %s", sorted(functions))
        return functions

    def process_integrated_states(self, solution, bodies: BodyCollection,
                                  update_dependent_quantities: bool = True):
        reset_integrated_ephemerides(
            bodies, as_solution_map(solution), self.bodies_to_integrate,
            self.start_index_and_size, self._update_order,
            self.translation_functions(bodies), update_dependent_quantities)

    def process_integrated_multi_arc_states(self, solutions, arc_start_times,
                                            bodies: BodyCollection,
                                            update_dependent_quantities: bool = True):
        if not hasattr(solutions, 'arcs'):
            solutions = [as_solution_map(solution) for solution in solutions]
        reset_multi_arc_integrated_ephemerides(
            bodies, solutions, arc_start_times, self.bodies_to_integrate,
            self.start_index_and_size, self._update_order,
            self.translation_functions(bodies), update_dependent_quantities)


class RotationalStateProcessor(IntegratedStateProcessor):
    """Processor resetting tabulated rotational ephemerides from rotational states."""
    state_type = IntegratedStateType.ROTATIONAL

    def process_integrated_states(self, solution, bodies: BodyCollection,
                                  update_dependent_quantities: bool = True):
        reset_integrated_rotational_ephemerides(
            bodies, as_solution_map(solution), self.bodies_to_integrate,
            self.start_index_and_size, update_dependent_quantities)


class MassStateProcessor(IntegratedStateProcessor):
    """Processor installing interpolated integrated masses as body mass functions."""
    state_type = IntegratedStateType.BODY_MASS

    def process_integrated_states(self, solution, bodies: BodyCollection,
                                  update_dependent_quantities: bool = True):
        reset_integrated_body_mass(
            bodies, as_solution_map(solution), self.bodies_to_integrate,
            self.start_index_and_size, update_dependent_quantities)
