"""Structured attributes built from repeating sequences.

These values are not single tags: ultrasound calibration regions, the
segments of a segmentation object and their recommended display colors are
each assembled from several elements of every sequence item.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Sequence

from dcmframes.dicom.accessor import DataSetAccessor
from dcmframes.dicom.tags import DicomTag

__all__ = [
    "ULTRASOUND_UNITS",
    "SegmentationSegment",
    "UltrasoundRegion",
    "decode_cielab",
    "scale_cielab",
    "segmentation_segments",
    "ultrasound_regions",
    "units_name",
]

ULTRASOUND_UNITS: dict[int, str] = {
    0: "none",
    1: "percent",
    2: "dB",
    3: "cm",
    4: "seconds",
    5: "hertz",
    6: "dB/seconds",
    7: "cm/sec",
    8: "cm2",
    9: "cm2/sec",
    10: "cm3",
    11: "cm3/sec",
    12: "degrees",
}

UNKNOWN_CODE = "unknown"


def units_name(code: int | None) -> str:
    """Physical units name for an ultrasound units code, ``"none"`` if unknown."""
    return ULTRASOUND_UNITS.get(code if code is not None else 0, "none")


@dataclass(frozen=True)
class UltrasoundRegion:
    x0: int | None
    y0: int | None
    x1: int | None
    y1: int | None
    axis_x: int | None
    axis_y: int | None
    units_x: str
    units_y: str
    delta_x: float | None
    delta_y: float | None


def ultrasound_regions(accessor: DataSetAccessor) -> list[UltrasoundRegion]:
    """One `UltrasoundRegion` per item of the Sequence of Ultrasound Regions."""
    regions = []
    for dataset in accessor.items(DicomTag.SequenceOfUltrasoundRegions):
        item = accessor.child(dataset)
        regions.append(
            UltrasoundRegion(
                x0=item.uint32(DicomTag.RegionLocationMinX0),
                y0=item.uint32(DicomTag.RegionLocationMinY0),
                x1=item.uint32(DicomTag.RegionLocationMaxX1),
                y1=item.uint32(DicomTag.RegionLocationMaxY1),
                axis_x=item.int32(DicomTag.ReferencePixelX0),
                axis_y=item.int32(DicomTag.ReferencePixelY0),
                units_x=units_name(item.uint16(DicomTag.PhysicalUnitsXDirection)),
                units_y=units_name(item.uint16(DicomTag.PhysicalUnitsYDirection)),
                delta_x=item.double(DicomTag.PhysicalDeltaX),
                delta_y=item.double(DicomTag.PhysicalDeltaY),
            )
        )
    return regions


def scale_cielab(values: Sequence[int]) -> list[float]:
    """Rescale PCS-encoded CIELab values to L in [0, 100], a and b in [-128, 127].

    References
    ----------
    DICOM Standard Part 3, Section C.10.7.1.1
    """
    lightness, a, b = values[:3]
    return [
        lightness / 65535 * 100,
        a / 65535 * 255 - 128,
        b / 65535 * 255 - 128,
    ]


def decode_cielab(raw: bytes) -> list[float]:
    """Decode three little-endian uint16 values and rescale them to CIELab.

    Examples
    --------
    >>> decode_cielab(b"\\xff\\xff\\x00\\x00\\xff\\xff")
    [100.0, -128.0, 127.0]
    """
    return scale_cielab(struct.unpack_from("<3H", raw))


@dataclass(frozen=True)
class SegmentationSegment:
    recommended_display_cielab: list[float] | None
    segmentation_code_designator: str
    segmentation_code_value: str
    segmentation_code_meaning: str
    segment_number: int | None
    segment_label: str | None
    segment_algorithm_type: str | None


def _recommended_display_cielab(item: DataSetAccessor) -> list[float] | None:
    raw = item.raw_bytes(DicomTag.RecommendedDisplayCIELabValue)
    if raw is not None:
        return decode_cielab(raw) if len(raw) >= 6 else None

    values = item.numbers(DicomTag.RecommendedDisplayCIELabValue, "H")
    if not values or len(values) < 3:
        return None
    return scale_cielab(values)


def _segmentation_code(item: DataSetAccessor) -> tuple[str, str, str]:
    code = item.item(DicomTag.AnatomicRegionSequence, 0)
    if code is None:
        return UNKNOWN_CODE, UNKNOWN_CODE, UNKNOWN_CODE
    return (
        code.string(DicomTag.CodingSchemeDesignator) or UNKNOWN_CODE,
        code.string(DicomTag.CodeValue) or UNKNOWN_CODE,
        code.string(DicomTag.CodeMeaning) or UNKNOWN_CODE,
    )


def segmentation_segments(accessor: DataSetAccessor) -> list[SegmentationSegment]:
    """Segments described by the Segment Sequence of a SEG object."""
    segments = []
    for dataset in accessor.items(DicomTag.SegmentSequence):
        item = accessor.child(dataset)
        designator, value, meaning = _segmentation_code(item)
        segments.append(
            SegmentationSegment(
                recommended_display_cielab=_recommended_display_cielab(item),
                segmentation_code_designator=designator,
                segmentation_code_value=value,
                segmentation_code_meaning=meaning,
                segment_number=item.uint16(DicomTag.SegmentNumber) or None,
                segment_label=item.string(DicomTag.SegmentLabel) or None,
                segment_algorithm_type=item.string(DicomTag.SegmentAlgorithmType)
                or None,
            )
        )
    return segments
