'''Decomposition of a flat integrated state vector into per-kind segments
StateSegment and StateLayout definitions, layout builder'''

from dataclasses import dataclass
from functools import reduce
from typing import Iterator, Optional, Tuple

from .errors import (LayoutInconsistencyError, NestedHybridError,
                     UndefinedSettingsError)
from .propagation_settings import (IntegratedStateType, PropagatorSettings,
                                   parse_state_type, single_state_size)


@dataclass(frozen=True)
class StateSegment:
    """
    Contiguous range of a flat state vector holding one kind of quantity.

    Attributes
    ----------
    state_type : IntegratedStateType
        Kind of quantity stored in the segment
    start_index : int
        Index of the first entry of the segment in the flat vector
    size : int
        Number of entries in the segment
    bodies : tuple of str
        Bodies whose blocks make up the segment, in vector order
    """
    state_type: IntegratedStateType
    start_index: int
    size: int
    bodies: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'state_type', parse_state_type(self.state_type))
        object.__setattr__(self, 'bodies', tuple(self.bodies))
        if self.start_index < 0:
            raise LayoutInconsistencyError(
                f"Segment start index must be non-negative, got {self.start_index}"
            )
        if self.size < 0:
            raise LayoutInconsistencyError(
                f"Segment size must be non-negative, got {self.size}"
            )
        if self.state_type == IntegratedStateType.HYBRID:
            raise LayoutInconsistencyError("A segment cannot be of hybrid type")
        if self.state_type != IntegratedStateType.CUSTOM:
            required_size = single_state_size(self.state_type) * len(self.bodies)
            if self.size != required_size:
                raise LayoutInconsistencyError(
                    f"Size of {self.state_type.value} segment inconsistent with "
                    f"number of bodies: {len(self.bodies)} bodies require "
                    f"{required_size} entries, got {self.size}"
                )

    @property
    def end_index(self) -> int:
        """Index one past the last entry of the segment."""
        return self.start_index + self.size

    @property
    def element_width(self) -> int:
        """Entries per body (0 for custom segments)."""
        if self.state_type == IntegratedStateType.CUSTOM:
            return 0
        return single_state_size(self.state_type)

    def body_offset(self, body_index: int) -> int:
        """Start index of the block of the body at ``body_index``."""
        return self.start_index + self.element_width * body_index


class StateLayout:
    """
    Ordered, contiguous, non-overlapping list of segments.

    Examples
    --------
    >>> layout = build_state_layout(hybrid(
    ...     TranslationalStateSettings(['Earth', 'Moon'], ['SSB', 'Earth']),
    ...     MassStateSettings(['Earth', 'Moon'])))
    >>> [s.start_index for s in layout]
    [0, 12]
    >>> layout.size
    14
    """

    def __init__(self, segments=(), start_index: int = 0):
        self._segments = tuple(segments)
        self._start_index = start_index
        expected_start = start_index
        for segment in self._segments:
            if segment.start_index != expected_start:
                raise LayoutInconsistencyError(
                    f"Segments must be contiguous: expected a segment starting "
                    f"at {expected_start}, got one starting at {segment.start_index}"
                )
            expected_start = segment.end_index

    @property
    def segments(self) -> Tuple[StateSegment, ...]:
        return self._segments

    @property
    def start_index(self) -> int:
        return self._start_index

    @property
    def size(self) -> int:
        """Total number of entries covered by the layout."""
        return sum(segment.size for segment in self._segments)

    @property
    def end_index(self) -> int:
        return self._start_index + self.size

    def segments_of_type(self, state_type) -> Tuple[StateSegment, ...]:
        state_type = parse_state_type(state_type)
        return tuple(s for s in self._segments if s.state_type == state_type)

    def validate_state_length(self, length: int):
        """
        Check that the layout covers a flat vector of ``length`` entries exactly.

        Raises
        ------
        LayoutInconsistencyError
            If the segment sizes do not add up to ``length``
        """
        if self.end_index != length:
            raise LayoutInconsistencyError(
                f"State layout covers {self.end_index} entries "
                f"(segments {[(s.state_type.value, s.start_index, s.size) for s in self]}), "
                f"but the integrated state vector has {length}"
            )

    def __iter__(self) -> Iterator[StateSegment]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __getitem__(self, index) -> StateSegment:
        return self._segments[index]

    def __repr__(self):
        return (f"StateLayout(start_index={self._start_index}, size={self.size}, "
                f"segments={len(self._segments)})")


def segment_for_settings(settings, start_index: int) -> StateSegment:
    """Create the segment of a single (non-hybrid) settings node."""
    settings.validate()
    state_type = parse_state_type(settings.state_type)
    if state_type == IntegratedStateType.CUSTOM:
        return StateSegment(state_type, start_index, settings.state_size)
    return StateSegment(state_type, start_index, settings.state_size,
                        settings.bodies_to_integrate)


def build_state_layout(settings: Optional[PropagatorSettings],
                       start_index: int = 0) -> StateLayout:
    """
    Compute the segments of the flat state vector produced by ``settings``.

    For hybrid settings the layout is the ordered concatenation of the
    layouts of its entries, built as a left fold that threads the running
    start index from one entry to the next.

    Raises
    ------
    UndefinedSettingsError
        If the settings (or an entry of hybrid settings) are None
    NestedHybridError
        If a hybrid entry is itself hybrid
    UnknownStateTypeError
        If a node reports an unrecognized kind
    """
    if settings is None:
        raise UndefinedSettingsError("Cannot build state layout, settings are not defined")

    state_type = parse_state_type(getattr(settings, 'state_type', None))
    if state_type != IntegratedStateType.HYBRID:
        return StateLayout([segment_for_settings(settings, start_index)], start_index)

    def fold(accumulated, indexed_entry):
        segments, next_index = accumulated
        index, entry = indexed_entry
        if entry is None:
            raise UndefinedSettingsError(
                f"Hybrid propagator settings entry {index} is not defined"
            )
        if parse_state_type(getattr(entry, 'state_type', None)) == IntegratedStateType.HYBRID:
            raise NestedHybridError(
                f"Hybrid propagator settings entry {index} is itself hybrid"
            )
        segment = segment_for_settings(entry, next_index)
        return segments + (segment,), segment.end_index

    segments, _ = reduce(fold, enumerate(settings.propagator_settings), ((), start_index))
    return StateLayout(segments, start_index)
