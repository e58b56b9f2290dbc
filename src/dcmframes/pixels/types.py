from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np

__all__ = [
    "SUPPORTED_SAMPLE_TYPES",
    "ImageInfo",
    "PixelFrameDescriptor",
    "SampleBuffer",
]

SUPPORTED_SAMPLE_TYPES: frozenset[np.dtype] = frozenset(
    np.dtype(kind)
    for kind in (
        np.int8,
        np.uint8,
        np.int16,
        np.uint16,
        np.int32,
        np.uint32,
        np.float32,
        np.float64,
    )
)
"""Closed set of sample element kinds a `SampleBuffer` may hold."""


@dataclass(frozen=True)
class PixelFrameDescriptor:
    """Where one frame's encoded bytes live inside the pixel data value.

    Attributes
    ----------
    byte_offset : int
        Offset of the first byte of the frame, relative to the start of the
        pixel data element value.
    byte_length : int
        Number of bytes from `byte_offset` to the end of the frame. For
        encapsulated data this span includes the item headers between
        fragments.
    is_compressed : bool
        True for encapsulated pixel data.
    transfer_syntax_uid : str | None
        Transfer syntax the frame is encoded with.
    fragments : tuple[tuple[int, int], ...]
        ``(offset, length)`` of every fragment payload that makes up the
        frame, in order. Empty for native data.
    """

    byte_offset: int
    byte_length: int
    is_compressed: bool
    transfer_syntax_uid: str | None
    fragments: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class ImageInfo:
    """Format hints handed to the codec together with a frame's bytes."""

    rows: int
    columns: int
    bits_allocated: int
    samples_per_pixel: int
    signed: bool
    bits_stored: int | None = None
    photometric_interpretation: str | None = None
    planar_configuration: int | None = None
    pixel_keyword: str = "PixelData"

    @property
    def pixels_per_frame(self) -> int:
        return self.rows * self.columns

    @property
    def frame_length_bits(self) -> int:
        return self.bits_allocated * self.rows * self.columns * self.samples_per_pixel


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """Decoded samples of one frame with the metadata needed to interpret them.

    `samples` is always one-dimensional; use `as_image` for a shaped view.
    """

    samples: np.ndarray
    rows: int
    columns: int
    samples_per_pixel: int = 1
    planar_configuration: int | None = None
    photometric_interpretation: str | None = None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        expected = self.rows * self.columns * self.samples_per_pixel
        if self.samples.ndim != 1:
            object.__setattr__(self, "samples", self.samples.reshape(-1))
        if self.samples.size != expected:
            msg = (
                f"Sample count {self.samples.size} does not match "
                f"{self.rows} rows x {self.columns} columns x "
                f"{self.samples_per_pixel} samples per pixel"
            )
            raise ValueError(msg)

    def __len__(self) -> int:
        return int(self.samples.size)

    @property
    def dtype(self) -> np.dtype:
        return self.samples.dtype

    @property
    def number_of_pixels(self) -> int:
        return self.rows * self.columns

    def with_samples(self, samples: np.ndarray, **changes: Any) -> SampleBuffer:  # noqa: ANN401
        """Copy of this buffer holding `samples`, with optional field changes."""
        return replace(self, samples=samples, **changes)

    def as_image(self) -> np.ndarray:
        """Samples shaped ``(rows, columns)`` or ``(rows, columns, samples)``.

        Only meaningful for interleaved buffers (planar configuration 0).
        """
        if self.samples_per_pixel == 1:
            return self.samples.reshape(self.rows, self.columns)
        return self.samples.reshape(self.rows, self.columns, self.samples_per_pixel)
