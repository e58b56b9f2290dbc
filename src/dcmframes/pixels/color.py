"""Normalize decoded samples to a pixel-interleaved RGB-compatible layout.

Rules are applied in order and the first match wins:

1. single sample per pixel: unchanged
2. an RGB-like photometric interpretation, already interleaved: unchanged
3. an RGB-like photometric interpretation stored as planes: de-interleaved
4. ``YBR_FULL``: converted to RGB with the full-range YCbCr transform
5. anything else: `UnsupportedColorSpaceError`

References
----------
DICOM Standard Part 3, Section C.7.6.3.1.2 and C.7.6.3.1.3
"""

from __future__ import annotations

import numpy as np

from dcmframes.exceptions import UnsupportedColorSpaceError, UnsupportedSampleTypeError
from dcmframes.loggers import logger
from dcmframes.pixels.types import SUPPORTED_SAMPLE_TYPES, SampleBuffer

__all__ = [
    "RGB_LIKE",
    "deinterleave",
    "normalize",
    "ybr_full_to_rgb",
]

RGB_LIKE = frozenset({"RGB", "YBR_RCT", "YBR_ICT", "YBR_FULL_422"})
"""Photometric interpretations whose samples are displayed as RGB unchanged."""

# rows of the YCbCr -> RGB matrix, applied to [Y, Cb - 128, Cr - 128]
YBR_FULL_TO_RGB = np.array(
    [
        [1.0, 0.0, 1.402],
        [1.0, -0.34414, -0.71414],
        [1.0, 1.772, 0.0],
    ],
    dtype=np.float64,
)


def _check_dtype(samples: np.ndarray) -> None:
    if samples.dtype.newbyteorder("=") not in SUPPORTED_SAMPLE_TYPES:
        raise UnsupportedSampleTypeError(samples.dtype)


def deinterleave(samples: np.ndarray, samples_per_pixel: int = 3) -> np.ndarray:
    """Reorder plane-major samples into pixel-major order.

    Examples
    --------
    >>> deinterleave(np.array([1, 2, 10, 20, 100, 200]))
    array([  1,  10, 100,   2,  20, 200])
    """
    _check_dtype(samples)
    return samples.reshape(samples_per_pixel, -1).T.reshape(-1).copy()


def ybr_full_to_rgb(samples: np.ndarray) -> np.ndarray:
    """Convert interleaved ``YBR_FULL`` samples to RGB, keeping the dtype.

    No clamping is done. Results are truncated toward zero and integer
    outputs wrap on overflow, the way a C cast behaves.
    """
    _check_dtype(samples)
    ybr = samples.reshape(-1, 3).astype(np.float64)
    ybr[:, 1:] -= 128
    rgb = ybr @ YBR_FULL_TO_RGB.T

    if np.issubdtype(samples.dtype, np.floating):
        return rgb.reshape(-1).astype(samples.dtype)
    return np.trunc(rgb).astype(np.int64).reshape(-1).astype(samples.dtype)


def normalize(
    buffer: SampleBuffer,
    advisories: list[str] | None = None,
) -> SampleBuffer:
    """Return `buffer` with samples interleaved per pixel in an RGB-compatible space.

    Parameters
    ----------
    buffer : SampleBuffer
        Decoded samples of one frame.
    advisories : list[str] | None
        When given, non-fatal notes about the input (such as a missing
        planar configuration) are appended to it.

    Raises
    ------
    UnsupportedColorSpaceError
        The photometric interpretation has no rule.
    UnsupportedSampleTypeError
        Samples must be rearranged or converted but their dtype is not one of
        the supported sample types.
    """
    if buffer.samples_per_pixel == 1:
        return buffer

    photometric = buffer.photometric_interpretation
    planar = buffer.planar_configuration
    if planar is None:
        advisory = "Planar Configuration was not set and was defaulted to 0"
        logger.warning(advisory, photometric_interpretation=photometric)
        if advisories is not None:
            advisories.append(advisory)
        planar = 0

    if photometric in RGB_LIKE:
        if planar == 0:
            return buffer
        return buffer.with_samples(
            deinterleave(buffer.samples, buffer.samples_per_pixel),
            planar_configuration=0,
        )

    if photometric == "YBR_FULL":
        samples = buffer.samples
        if planar == 1:
            samples = deinterleave(samples, buffer.samples_per_pixel)
        return buffer.with_samples(
            ybr_full_to_rgb(samples),
            planar_configuration=0,
            photometric_interpretation="RGB",
        )

    raise UnsupportedColorSpaceError(photometric)
