"""Decode one frame of encoded pixel data into a `SampleBuffer`.

The codec is an injected collaborator: `DicomParser` only relies on the
`Codec` protocol, so callers can substitute their own decoder. The default
`PydicomCodec` reads native (uncompressed) frames directly with numpy and
hands compressed frames to the pixel data decoders that ship with pydicom,
which in turn dispatch to whichever plugins are installed (pylibjpeg,
pillow, gdcm, pyjpegls, ...).
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np
from pydicom.encaps import encapsulate
from pydicom.pixels import get_decoder, unpack_bits
from pydicom.uid import UID

from dcmframes.exceptions import DecodeError
from dcmframes.loggers import logger
from dcmframes.pixels.types import ImageInfo, SampleBuffer

__all__ = ["Codec", "PydicomCodec", "native_dtype"]


@runtime_checkable
class Codec(Protocol):
    """Anything that turns one frame's encoded bytes into samples."""

    def decode(
        self,
        encoded: bytes,
        info: ImageInfo,
        transfer_syntax_uid: str | None,
    ) -> SampleBuffer: ...


FLOAT_DTYPES = {
    "FloatPixelData": np.float32,
    "DoubleFloatPixelData": np.float64,
}


def native_dtype(info: ImageInfo, little_endian: bool = True) -> np.dtype:
    """Sample dtype of natively encoded pixel data.

    Parameters
    ----------
    info : ImageInfo
        Format of the frame.
    little_endian : bool
        Byte order of the transfer syntax.

    Raises
    ------
    ValueError
        If `info.bits_allocated` has no matching numeric type.
    """
    order = "<" if little_endian else ">"
    if info.pixel_keyword in FLOAT_DTYPES:
        return np.dtype(FLOAT_DTYPES[info.pixel_keyword]).newbyteorder(order)

    match info.bits_allocated:
        case 1 | 8:
            kind = "i1" if info.signed else "u1"
        case 16:
            kind = "i2" if info.signed else "u2"
        case 32:
            kind = "i4" if info.signed else "u4"
        case _:
            msg = f"Unsupported Bits Allocated value: {info.bits_allocated}"
            raise ValueError(msg)
    return np.dtype(f"{order}{kind}")


def _sign_extend(samples: np.ndarray, bits_stored: int) -> np.ndarray:
    """Propagate the sign bit of `bits_stored`-bit values through the container."""
    shift = samples.dtype.itemsize * 8 - bits_stored
    if shift <= 0:
        return samples
    return (samples << shift) >> shift


class PydicomCodec:
    """Default codec backed by numpy and `pydicom.pixels`.

    Parameters
    ----------
    decoding_plugin : str, optional
        Name of the pydicom decoding plugin to use for compressed transfer
        syntaxes. An empty string lets pydicom try every available plugin.
    """

    def __init__(self, decoding_plugin: str = "") -> None:
        self.decoding_plugin = decoding_plugin

    def __repr__(self) -> str:
        return f"PydicomCodec(decoding_plugin={self.decoding_plugin!r})"

    def decode(
        self,
        encoded: bytes,
        info: ImageInfo,
        transfer_syntax_uid: str | None,
    ) -> SampleBuffer:
        """Decode one frame.

        Raises
        ------
        DecodeError
            The transfer syntax is unknown, no plugin can decode it, or the
            encoded frame is corrupt or does not match `info`.
        """
        uid = UID(transfer_syntax_uid) if transfer_syntax_uid else None
        try:
            if uid is not None and uid.is_compressed:
                return self._decode_compressed(encoded, info, uid)
            return self._decode_native(encoded, info, uid)
        except DecodeError:
            raise
        except Exception as e:
            logger.debug(
                "Decoding failed",
                transfer_syntax_uid=transfer_syntax_uid,
                error=str(e),
            )
            raise DecodeError(transfer_syntax_uid, str(e)) from e

    def _decode_native(
        self, encoded: bytes, info: ImageInfo, uid: UID | None
    ) -> SampleBuffer:
        little_endian = uid is None or uid.is_little_endian
        dtype = native_dtype(info, little_endian)
        expected = info.rows * info.columns * info.samples_per_pixel

        if info.bits_allocated == 1:
            samples = unpack_bits(encoded)[:expected]
            if info.signed:
                samples = samples.astype(np.int8)
        else:
            samples = np.frombuffer(encoded, dtype=dtype, count=expected)
            samples = samples.astype(dtype.newbyteorder("="))
            if info.signed and info.bits_stored and dtype.kind == "i":
                samples = _sign_extend(samples, info.bits_stored)

        return SampleBuffer(
            samples=samples,
            rows=info.rows,
            columns=info.columns,
            samples_per_pixel=info.samples_per_pixel,
            planar_configuration=info.planar_configuration,
            photometric_interpretation=info.photometric_interpretation,
        )

    def _decode_compressed(
        self, encoded: bytes, info: ImageInfo, uid: UID
    ) -> SampleBuffer:
        decoder = get_decoder(uid)
        if not decoder.is_available:
            missing = "; ".join(decoder.missing_dependencies)
            raise DecodeError(str(uid), f"no decoding plugin is available ({missing})")

        options = {
            "rows": info.rows,
            "columns": info.columns,
            "samples_per_pixel": info.samples_per_pixel,
            "bits_allocated": info.bits_allocated,
            "bits_stored": info.bits_stored or info.bits_allocated,
            "pixel_representation": int(info.signed),
            "photometric_interpretation": info.photometric_interpretation
            or ("MONOCHROME2" if info.samples_per_pixel == 1 else "RGB"),
            "number_of_frames": 1,
            "pixel_keyword": info.pixel_keyword,
        }
        if info.samples_per_pixel > 1:
            options["planar_configuration"] = info.planar_configuration or 0

        arr, properties = decoder.as_array(
            encapsulate([encoded]),
            index=0,
            raw=True,
            decoding_plugin=self.decoding_plugin,
            **options,
        )
        logger.debug(
            "Decoded compressed frame",
            transfer_syntax_uid=str(uid),
            shape=arr.shape,
            dtype=str(arr.dtype),
        )

        return SampleBuffer(
            samples=np.ascontiguousarray(arr).reshape(-1),
            rows=info.rows,
            columns=info.columns,
            samples_per_pixel=info.samples_per_pixel,
            planar_configuration=properties.get(
                "planar_configuration", info.planar_configuration
            ),
            photometric_interpretation=properties.get(
                "photometric_interpretation", info.photometric_interpretation
            ),
        )
