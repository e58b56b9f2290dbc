"""Attribute resolution across the nesting tiers of a DICOM object.

Multi-frame objects keep values such as position, orientation or rescale
parameters inside functional group sequences, either once for all frames
(shared) or once per frame; legacy single-frame objects put the same tags on
the root data set. `AttributeResolver` hides the difference by searching a
fixed, ordered list of locations and returning the first value found.

Search order for `AttributeResolver.resolve`:

1. item 0 of the Shared Functional Groups Sequence, then `subsequence`
2. item `frame_index` of the Per-frame Functional Groups Sequence, then `subsequence`
3. item 0 of the nuclear medicine Detector Information Sequence
4. the root data set

`AttributeResolver.resolve_number` reads the root value first, then the
shared and per-frame groups, because the flat tag is authoritative when a
vendor populates both.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any, Callable, Sequence

from dcmframes.dicom.accessor import DataSetAccessor
from dcmframes.dicom.tags import DicomTag
from dcmframes.loggers import logger

__all__ = [
    "AttributeLocation",
    "AttributeResolver",
    "Reader",
]

Reader = Callable[[DataSetAccessor, int], Any]
"""Reads one tag from one data set, returning ``None`` when absent."""

Lookup = Callable[[], DataSetAccessor | None]
"""Locates the data set that would hold the value for one tier."""


class AttributeLocation(Enum):
    DIRECT = auto()
    SHARED_FUNCTIONAL_GROUP = auto()
    PER_FRAME_FUNCTIONAL_GROUP = auto()
    MODALITY_SEQUENCE = auto()


MODALITY_SEQUENCE_TAG = DicomTag.DetectorInformationSequence


def _read_string(accessor: DataSetAccessor, tag: int) -> str | None:
    return accessor.string(tag)


def _read_float_string(accessor: DataSetAccessor, tag: int) -> float | None:
    return accessor.float_string(tag)


def _has_value(value: Any) -> bool:  # noqa: ANN401
    return value is not None and value != ""


class AttributeResolver:
    """Resolve attributes of one data set across functional group tiers.

    Parameters
    ----------
    accessor : DataSetAccessor
        Accessor over the root data set.

    Examples
    --------
    >>> resolver = AttributeResolver(DataSetAccessor(ds))
    >>> resolver.resolve(
    ...     DicomTag.ImagePositionPatient,
    ...     DicomTag.PlanePositionSequence,
    ...     frame_index=3,
    ... )
    '-120.0\\\\120.0\\\\55.0'
    """

    def __init__(self, accessor: DataSetAccessor) -> None:
        self.accessor = accessor

    def find_in_group_sequence(
        self, sequence: int, subsequence: int, index: int
    ) -> DataSetAccessor | None:
        """Item 0 of `subsequence` inside item `index` of `sequence`."""
        group = self.accessor.item(sequence, index)
        if group is None:
            return None
        return group.item(subsequence, 0)

    def per_frame_item(self, frame_index: int) -> DataSetAccessor | None:
        return self.accessor.item(
            DicomTag.PerFrameFunctionalGroupsSequence, frame_index
        )

    def _shared(self, subsequence: int) -> Lookup:
        return lambda: self.find_in_group_sequence(
            DicomTag.SharedFunctionalGroupsSequence, subsequence, 0
        )

    def _per_frame(self, subsequence: int, frame_index: int) -> Lookup:
        return lambda: self.find_in_group_sequence(
            DicomTag.PerFrameFunctionalGroupsSequence, subsequence, frame_index
        )

    def _modality(self) -> Lookup:
        return lambda: self.accessor.item(MODALITY_SEQUENCE_TAG, 0)

    def _direct(self) -> Lookup:
        return lambda: self.accessor

    def _search(
        self,
        tiers: Sequence[tuple[AttributeLocation, Lookup]],
        tag: int,
        read: Reader,
    ) -> tuple[AttributeLocation | None, Any]:
        for location, lookup in tiers:
            holder = lookup()
            if holder is None:
                continue
            value = read(holder, tag)
            if _has_value(value):
                return location, value
        return None, None

    def resolve(
        self,
        tag: int,
        subsequence: int,
        frame_index: int = 0,
        read: Reader = _read_string,
    ) -> Any:  # noqa: ANN401
        """First non-empty value of `tag` across all four tiers.

        Returns
        -------
        Any
            The value produced by `read`, or ``None`` when no tier holds it.
        """
        tiers = [
            (AttributeLocation.SHARED_FUNCTIONAL_GROUP, self._shared(subsequence)),
            (
                AttributeLocation.PER_FRAME_FUNCTIONAL_GROUP,
                self._per_frame(subsequence, frame_index),
            ),
            (AttributeLocation.MODALITY_SEQUENCE, self._modality()),
            (AttributeLocation.DIRECT, self._direct()),
        ]
        location, value = self._search(tiers, tag, read)
        if location is not None:
            logger.debug(
                "Resolved attribute",
                tag=int(tag),
                location=location.name,
                frame_index=frame_index,
            )
        return value

    def resolve_number(
        self,
        tag: int,
        subsequence: int,
        frame_index: int = 0,
        read: Reader = _read_float_string,
    ) -> float | None:
        """Numeric value of `tag`, preferring the root data set.

        A stored zero is a value and stops the search.
        """
        tiers = [
            (AttributeLocation.DIRECT, self._direct()),
            (AttributeLocation.SHARED_FUNCTIONAL_GROUP, self._shared(subsequence)),
            (
                AttributeLocation.PER_FRAME_FUNCTIONAL_GROUP,
                self._per_frame(subsequence, frame_index),
            ),
        ]
        _, value = self._search(tiers, tag, read)
        return value

    def resolve_in_frame(
        self,
        subsequence: int,
        tag: int,
        frame_index: int,
        read: Reader = _read_string,
    ) -> Any:  # noqa: ANN401
        """Value of `tag` in item 0 of `subsequence` of one per-frame item.

        Only the per-frame tier is consulted; ``None`` when the path is
        missing at any level.
        """
        holder = self._per_frame(subsequence, frame_index)()
        if holder is None:
            return None
        return read(holder, tag)
