__version__ = "0.3.0"

from .config import DcmFramesSettings
from .dicom import (
    DicomFileRecord,
    DicomParser,
    DicomTag,
    Series,
    collect_series,
    find_dicoms,
    group_series,
    load_dicom,
)
from .exceptions import (
    DcmFramesError,
    DecodeError,
    FrameIndexError,
    ParseError,
    UnsupportedColorSpaceError,
    UnsupportedEncodingError,
    UnsupportedSampleTypeError,
)
from .loggers import logger
from .pixels import ImageInfo, PixelFrameDescriptor, PydicomCodec, SampleBuffer, normalize

__all__ = [
    "DcmFramesSettings",
    "logger",
    ## dicom
    "DicomFileRecord",
    "DicomParser",
    "DicomTag",
    "Series",
    "collect_series",
    "find_dicoms",
    "group_series",
    "load_dicom",
    ## pixels
    "ImageInfo",
    "PixelFrameDescriptor",
    "PydicomCodec",
    "SampleBuffer",
    "normalize",
    ## errors
    "DcmFramesError",
    "DecodeError",
    "FrameIndexError",
    "ParseError",
    "UnsupportedColorSpaceError",
    "UnsupportedEncodingError",
    "UnsupportedSampleTypeError",
]
