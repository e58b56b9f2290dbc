from .accessor import DataSetAccessor
from .attributes import SegmentationSegment, UltrasoundRegion
from .dicom_find import find_dicoms
from .dicom_reader import DicomInput, load_dicom
from .parser import DicomParser
from .resolver import AttributeLocation, AttributeResolver
from .series import (
    DicomFileRecord,
    Series,
    collect_series,
    compare_records,
    group_series,
    read_record,
    sort_records,
)
from .tags import DicomTag

__all__ = [
    "AttributeLocation",
    "AttributeResolver",
    "DataSetAccessor",
    "DicomFileRecord",
    "DicomInput",
    "DicomParser",
    "DicomTag",
    "SegmentationSegment",
    "Series",
    "UltrasoundRegion",
    "collect_series",
    "compare_records",
    "find_dicoms",
    "group_series",
    "load_dicom",
    "read_record",
    "sort_records",
]
