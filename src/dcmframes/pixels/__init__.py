from .codec import Codec, PydicomCodec
from .color import normalize
from .locator import PixelLocator
from .types import (
    SUPPORTED_SAMPLE_TYPES,
    ImageInfo,
    PixelFrameDescriptor,
    SampleBuffer,
)

__all__ = [
    "SUPPORTED_SAMPLE_TYPES",
    "Codec",
    "ImageInfo",
    "PixelFrameDescriptor",
    "PixelLocator",
    "PydicomCodec",
    "SampleBuffer",
    "normalize",
]
