"""Locate the bytes of one frame inside a data set's pixel data.

Native pixel data is one contiguous value and frames are fixed-size slices
of it. Encapsulated pixel data is a Basic Offset Table item followed by one
or more fragment items, and the mapping from frames to fragments depends on
what the writer chose to populate:

* a non-empty Basic Offset Table gives the start of every frame;
* with an empty table and one fragment per frame, fragment ``k`` is frame ``k``;
* with an empty table and a different number of fragments, frame boundaries
  are recovered by scanning fragment tails for the JPEG EOI marker and an
  equivalent offset table is built from them.

References
----------
DICOM Standard Part 5, Annex A.4
"""

from __future__ import annotations

import struct
from functools import cached_property
from io import BytesIO

from pydicom.encaps import parse_basic_offsets, parse_fragments
from pydicom.uid import UID

from dcmframes.dicom.accessor import DataSetAccessor
from dcmframes.dicom.tags import DicomTag
from dcmframes.exceptions import FrameIndexError, UnsupportedEncodingError
from dcmframes.loggers import logger
from dcmframes.pixels.types import PixelFrameDescriptor

__all__ = ["EOI_MARKER", "PixelLocator"]

EOI_MARKER = b"\xff\xd9"
"""JPEG/JPEG-LS end of image (and JPEG 2000 end of codestream) marker."""

EOI_SEARCH_WINDOW = 10
"""Trailing bytes of a fragment searched for `EOI_MARKER`, to allow for padding."""

PIXEL_DATA_TAGS = (
    ("PixelData", DicomTag.PixelData),
    ("FloatPixelData", DicomTag.FloatPixelData),
    ("DoubleFloatPixelData", DicomTag.DoubleFloatPixelData),
)


class PixelLocator:
    """Frame locator for one data set's pixel data.

    Parameters
    ----------
    accessor : DataSetAccessor
        Accessor over the root data set.
    transfer_syntax_uid : str | None
        Transfer syntax of the data set, from the file meta information.

    Notes
    -----
    The locator only borrows the pixel data value; `read_frame` is the one
    place where bytes are copied out for the codec.
    """

    def __init__(
        self, accessor: DataSetAccessor, transfer_syntax_uid: str | None
    ) -> None:
        self.accessor = accessor
        self.transfer_syntax_uid = transfer_syntax_uid

    @cached_property
    def pixel_keyword(self) -> str:
        for keyword, tag in PIXEL_DATA_TAGS:
            if self.accessor.raw_value(tag) is not None:
                return keyword
        msg = "The data set has no (7FE0,0010) 'Pixel Data' element"
        raise UnsupportedEncodingError(msg)

    @cached_property
    def pixel_value(self) -> bytes:
        """The pixel data element value, borrowed from the data set."""
        tag = dict(PIXEL_DATA_TAGS)[self.pixel_keyword]
        value = self.accessor.raw_value(tag)
        if isinstance(value, memoryview):
            value = value.tobytes()
        if not isinstance(value, (bytes, bytearray)):
            msg = f"Unexpected pixel data value of type {type(value).__name__}"
            raise UnsupportedEncodingError(msg)
        return value

    @property
    def pixel_data(self) -> memoryview:
        return memoryview(self.pixel_value)

    @property
    def is_encapsulated(self) -> bool:
        """True when the pixel data is stored as fragments."""
        if self.pixel_keyword != "PixelData":
            return False
        elem = self.accessor.element(DicomTag.PixelData)
        if elem is not None and elem.is_undefined_length:
            return True
        uid = self.transfer_syntax_uid
        if uid is None or not UID(uid).is_transfer_syntax:
            return False
        return UID(uid).is_encapsulated

    @property
    def number_of_frames(self) -> int:
        frames = self.accessor.int_string(DicomTag.NumberOfFrames)
        return frames if frames and frames > 0 else 1

    ###########################################################################
    # Encapsulated pixel data
    ###########################################################################

    @cached_property
    def _encapsulated_layout(self) -> tuple[list[int], list[tuple[int, int]], list[int]]:
        """Basic offsets, fragment payload ranges and fragment item positions.

        Item positions are relative to the first fragment item, the origin
        the Basic Offset Table uses.
        """
        data = self.pixel_data
        # BytesIO shares an immutable bytes value rather than copying it
        buffer = BytesIO(self.pixel_value)
        try:
            basic_offsets = parse_basic_offsets(buffer)
            origin = buffer.tell()
            _, item_positions = parse_fragments(buffer)
        except (ValueError, struct.error) as e:
            msg = f"Invalid encapsulated pixel data: {e}"
            raise UnsupportedEncodingError(msg) from e

        fragments = []
        for position in item_positions:
            (length,) = struct.unpack_from("<L", data, position + 4)
            if position + 8 + length > len(data):
                msg = (
                    f"Fragment at offset {position} with length {length} runs "
                    "past the end of the pixel data"
                )
                raise UnsupportedEncodingError(msg)
            fragments.append((position + 8, length))

        if not fragments:
            msg = "The encapsulated pixel data contains no fragments"
            raise UnsupportedEncodingError(msg)

        relative_positions = [position - origin for position in item_positions]
        return basic_offsets, fragments, relative_positions

    @property
    def fragments(self) -> list[tuple[int, int]]:
        return self._encapsulated_layout[1]

    @property
    def basic_offset_table(self) -> list[int]:
        return self._encapsulated_layout[0]

    def frames_are_fragmented(self) -> bool:
        """True when the declared frame count differs from the fragment count."""
        return self.number_of_frames != len(self.fragments)

    def synthesize_offset_table(self) -> list[int]:
        """Build a Basic Offset Table by scanning fragments for JPEG EOI markers.

        A frame ends at every fragment whose trailing bytes contain the EOI
        marker; fragments after the last marker form the final frame.
        """
        _, fragments, positions = self._encapsulated_layout
        if self.number_of_frames == 1:
            return [0]

        data = self.pixel_data
        offsets = [positions[0]]
        for index, (offset, length) in enumerate(fragments[:-1]):
            tail_start = offset + max(length - EOI_SEARCH_WINDOW, 0)
            if EOI_MARKER in data[tail_start : offset + length].tobytes():
                offsets.append(positions[index + 1])

        if len(offsets) != self.number_of_frames:
            logger.warning(
                "Frame boundaries found from JPEG EOI markers do not match "
                "the declared number of frames",
                found=len(offsets),
                expected=self.number_of_frames,
            )
        return offsets

    def _frames_from_offsets(self, offsets: list[int]) -> list[list[int]]:
        """Fragment indices belonging to each frame of an offset table."""
        _, fragments, positions = self._encapsulated_layout
        frames: list[list[int]] = []
        for frame, start in enumerate(offsets):
            end = offsets[frame + 1] if frame + 1 < len(offsets) else None
            frames.append(
                [
                    index
                    for index, position in enumerate(positions)
                    if position >= start and (end is None or position < end)
                ]
            )
        return frames

    @cached_property
    def frame_fragments(self) -> list[list[int]]:
        """Fragment indices making up each frame of the encapsulated data."""
        if self.basic_offset_table:
            return self._frames_from_offsets(self.basic_offset_table)
        if self.frames_are_fragmented():
            return self._frames_from_offsets(self.synthesize_offset_table())
        return [[index] for index in range(len(self.fragments))]

    def _locate_encapsulated(self, frame_index: int) -> PixelFrameDescriptor:
        frames = self.frame_fragments
        if frame_index >= len(frames) or not frames[frame_index]:
            msg = (
                f"Found {len(frames)} frame(s) in the encapsulated pixel data, "
                f"unable to locate frame {frame_index}"
            )
            raise UnsupportedEncodingError(msg)

        ranges = tuple(self.fragments[index] for index in frames[frame_index])
        first_offset = ranges[0][0]
        last_offset, last_length = ranges[-1]
        return PixelFrameDescriptor(
            byte_offset=first_offset,
            byte_length=last_offset + last_length - first_offset,
            is_compressed=True,
            transfer_syntax_uid=self.transfer_syntax_uid,
            fragments=ranges,
        )

    ###########################################################################
    # Native pixel data
    ###########################################################################

    def _locate_native(self, frame_index: int) -> PixelFrameDescriptor:
        rows = self.accessor.uint16(DicomTag.Rows)
        columns = self.accessor.uint16(DicomTag.Columns)
        bits_allocated = self.accessor.uint16(DicomTag.BitsAllocated)
        samples_per_pixel = self.accessor.uint16(DicomTag.SamplesPerPixel) or 1
        if not rows or not columns or not bits_allocated:
            msg = "Rows, Columns and Bits Allocated are required to locate native frames"
            raise UnsupportedEncodingError(msg)

        frame_bits = bits_allocated * rows * columns * samples_per_pixel
        if frame_bits % 8:
            msg = f"A native frame of {frame_bits} bits does not end on a byte boundary"
            raise UnsupportedEncodingError(msg)

        length = frame_bits // 8
        offset = frame_index * length
        if offset + length > len(self.pixel_data):
            msg = (
                f"Frame {frame_index} needs bytes {offset} to {offset + length} "
                f"but the pixel data holds {len(self.pixel_data)}"
            )
            raise UnsupportedEncodingError(msg)

        return PixelFrameDescriptor(
            byte_offset=offset,
            byte_length=length,
            is_compressed=False,
            transfer_syntax_uid=self.transfer_syntax_uid,
        )

    ###########################################################################
    # Public API
    ###########################################################################

    def locate_frame(self, frame_index: int = 0) -> PixelFrameDescriptor:
        """Descriptor of the bytes holding frame `frame_index`.

        Raises
        ------
        UnsupportedEncodingError
            No pixel data, or its framing cannot be interpreted.
        FrameIndexError
            `frame_index` is outside ``[0, number_of_frames)``.
        """
        # resolve the element first so a missing one is reported as such
        _ = self.pixel_keyword
        if not 0 <= frame_index < self.number_of_frames:
            msg = (
                f"Frame index {frame_index} out of range for "
                f"{self.number_of_frames} frame(s)"
            )
            raise FrameIndexError(msg)

        if self.is_encapsulated:
            return self._locate_encapsulated(frame_index)
        return self._locate_native(frame_index)

    def read_frame(self, frame_index: int = 0) -> bytes:
        """Copy of the encoded bytes of frame `frame_index`."""
        descriptor = self.locate_frame(frame_index)
        data = self.pixel_data
        if not descriptor.is_compressed:
            end = descriptor.byte_offset + descriptor.byte_length
            return data[descriptor.byte_offset : end].tobytes()
        return b"".join(
            data[offset : offset + length].tobytes()
            for offset, length in descriptor.fragments
        )
