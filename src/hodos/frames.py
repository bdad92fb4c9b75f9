'''Frame translations between integration origins and ephemeris origins
ReferenceFrameManager and ephemeris update ordering'''

import numpy as np
from typing import Callable, Dict, List, Optional, Sequence

from .bodies import BodyCollection
from .errors import (BodyNotFoundError, FrameDependencyError,
                     LayoutInconsistencyError, MissingEphemerisError)

TranslationFunction = Callable[[float], np.ndarray]


def _stable_topological_order(bodies: Sequence[str],
                              dependencies: Dict[str, set]) -> List[str]:
    """
    Order ``bodies`` so each one follows all of its dependencies.

    Among bodies that are ready at the same time, the input order is kept.
    """
    remaining = list(bodies)
    placed = set()
    order = []
    while remaining:
        for body in remaining:
            if dependencies.get(body, set()) <= placed:
                break
        else:
            raise FrameDependencyError(
                f"Ephemeris origins of bodies {remaining} form a cycle, "
                f"no update order exists"
            )
        remaining.remove(body)
        placed.add(body)
        order.append(body)
    return order


def determine_ephemeris_update_order(bodies: Sequence[str],
                                     central_bodies: Sequence[str],
                                     ephemeris_origins: Sequence[str]) -> List[str]:
    """
    Order in which propagated bodies have their ephemerides reset.

    A body is updated after every other propagated body that is its
    central body or its ephemeris origin, since its frame translation
    reads their (already updated) ephemerides.

    Parameters
    ----------
    bodies : sequence of str
        Propagated bodies
    central_bodies : sequence of str
        Integration origin of each body
    ephemeris_origins : sequence of str
        Current ephemeris origin of each body

    Returns
    -------
    list of str
        Permutation of ``bodies``

    Raises
    ------
    LayoutInconsistencyError
        If the three sequences differ in length
    FrameDependencyError
        If the dependencies are cyclic

    Examples
    --------
    >>> determine_ephemeris_update_order(['Mars', 'Earth'], ['Earth', 'SSB'], ['SSB', 'SSB'])
    ['Earth', 'Mars']
    """
    if not len(bodies) == len(central_bodies) == len(ephemeris_origins):
        raise LayoutInconsistencyError(
            f"Got {len(bodies)} bodies, {len(central_bodies)} central bodies and "
            f"{len(ephemeris_origins)} ephemeris origins"
        )
    propagated = set(bodies)
    dependencies = {}
    for body, central_body, origin in zip(bodies, central_bodies, ephemeris_origins):
        dependencies[body] = ({central_body, origin} & propagated) - {body}
    return _stable_topological_order(bodies, dependencies)


class ReferenceFrameManager:
    """
    Relative states between bodies of a collection.

    Each body's ephemeris is expressed w.r.t. its own origin, which is
    either another body or the global frame origin of the collection.
    States w.r.t. the global origin are found by walking these origin
    chains. All queries read the ephemerides installed at call time.

    Parameters
    ----------
    bodies : BodyCollection
        Environment whose ephemerides are queried
    """

    def __init__(self, bodies: BodyCollection):
        if not isinstance(bodies, BodyCollection):
            raise TypeError(f"Expected a BodyCollection, got {type(bodies).__name__}")
        self._bodies = bodies

    @property
    def bodies(self) -> BodyCollection:
        return self._bodies

    @property
    def global_frame_origin(self) -> str:
        return self._bodies.global_frame_origin

    # ========== ORIGINS ==========
    def get_ephemeris_origin(self, body_name: str) -> str:
        body = self._bodies[body_name]
        if body.ephemeris is None:
            raise MissingEphemerisError(
                f"Body '{body_name}' has no ephemeris, cannot determine its origin"
            )
        return body.ephemeris.reference_frame_origin

    def get_ephemeris_origins(self, body_names: Sequence[str]) -> List[str]:
        return [self.get_ephemeris_origin(name) for name in body_names]

    def origin_chain(self, name: str) -> List[str]:
        """Names from ``name`` up to (excluding) the global frame origin."""
        chain = []
        current = name
        while current != self.global_frame_origin:
            if current in chain:
                raise FrameDependencyError(
                    f"Ephemeris origins form a cycle: {' -> '.join(chain + [current])}"
                )
            chain.append(current)
            current = self.get_ephemeris_origin(current)
        return chain

    # ========== STATES ==========
    def global_state(self, name: str, t) -> np.ndarray:
        """Cartesian state of ``name`` w.r.t. the global frame origin at time t."""
        state = np.zeros(6)
        for body_name in self.origin_chain(name):
            state = state + self._bodies[body_name].state_at(t)
        return state

    def relative_state(self, target: str, observer: str, t) -> np.ndarray:
        """Cartesian state of ``target`` w.r.t. ``observer`` at time t."""
        return self.global_state(target, t) - self.global_state(observer, t)

    # ========== TRANSLATIONS ==========
    def get_frame_translation_function(self, integration_origin: str,
                                       ephemeris_origin: str) -> Optional[TranslationFunction]:
        """
        Offset to subtract from states w.r.t. ``integration_origin`` to express
        them w.r.t. ``ephemeris_origin``: the state of the ephemeris origin
        w.r.t. the integration origin. None if the origins coincide.
        """
        if integration_origin == ephemeris_origin:
            return None
        for name in (integration_origin, ephemeris_origin):
            if name != self.global_frame_origin and name not in self._bodies:
                raise BodyNotFoundError(
                    f"Frame origin '{name}' is neither a body nor the global frame origin"
                )

        def translation(t):
            return self.relative_state(ephemeris_origin, integration_origin, t)

        return translation

    def get_translation_functions(self, central_bodies: Sequence[str],
                                  bodies_to_integrate: Sequence[str]) -> Dict[str, TranslationFunction]:
        """Translation function of every body whose two origins differ."""
        if len(central_bodies) != len(bodies_to_integrate):
            raise LayoutInconsistencyError(
                f"Got {len(bodies_to_integrate)} bodies but {len(central_bodies)} central bodies"
            )
        functions = {}
        for body, central_body in zip(bodies_to_integrate, central_bodies):
            function = self.get_frame_translation_function(
                central_body, self.get_ephemeris_origin(body))
            if function is not None:
                functions[body] = function
        return functions

    def resolve_update_order(self, bodies_to_integrate: Sequence[str],
                             central_bodies: Sequence[str],
                             ephemeris_origins: Optional[Sequence[str]] = None) -> List[str]:
        """
        Safe update order of ``bodies_to_integrate``.

        Unlike :func:`determine_ephemeris_update_order`, dependencies
        are followed along the full origin chains, so a body whose origin
        is expressed w.r.t. a propagated body also waits for that body.
        """
        if ephemeris_origins is None:
            ephemeris_origins = self.get_ephemeris_origins(bodies_to_integrate)
        if not len(bodies_to_integrate) == len(central_bodies) == len(ephemeris_origins):
            raise LayoutInconsistencyError(
                f"Got {len(bodies_to_integrate)} bodies, {len(central_bodies)} central "
                f"bodies and {len(ephemeris_origins)} ephemeris origins"
            )
        propagated = set(bodies_to_integrate)
        dependencies = {}
        for body, central_body, origin in zip(bodies_to_integrate, central_bodies,
                                              ephemeris_origins):
            reached = set()
            for start in (central_body, origin):
                if start in propagated:
                    reached.add(start)
                if start != self.global_frame_origin and start in self._bodies:
                    reached.update(self._chain_or_stop(start, body))
            dependencies[body] = (reached & propagated) - {body}
        return _stable_topological_order(bodies_to_integrate, dependencies)

    def _chain_or_stop(self, start: str, body: str) -> List[str]:
        # Origin chain of ``start``, cut where it reaches ``body`` itself
        chain = []
        current = start
        while current != self.global_frame_origin and current not in chain:
            if current == body:
                raise FrameDependencyError(
                    f"Frame origin chain of '{start}' passes through '{body}', "
                    f"which is translated w.r.t. it"
                )
            chain.append(current)
            ephemeris = self._bodies[current].ephemeris
            if ephemeris is None:
                break
            current = ephemeris.reference_frame_origin
        return chain
