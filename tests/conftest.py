"""Shared fixtures: small synthetic data sets built with pydicom."""

from pathlib import Path
from struct import pack
from typing import Any, Callable

import numpy as np
import pytest
from pydicom.dataset import Dataset, FileMetaDataset
from pydicom.encaps import encapsulate
from pydicom.sequence import Sequence
from pydicom.uid import (
    CTImageStorage,
    ExplicitVRLittleEndian,
    JPEGBaseline8Bit,
    RLELossless,
    generate_uid,
)

DatasetFactory = Callable[..., Dataset]


def _make_dataset(
    transfer_syntax_uid: str = ExplicitVRLittleEndian,
    **elements: Any,
) -> Dataset:
    ds = Dataset()
    ds.file_meta = FileMetaDataset()
    ds.file_meta.TransferSyntaxUID = transfer_syntax_uid
    ds.file_meta.MediaStorageSOPClassUID = CTImageStorage
    sop_instance_uid = elements.pop("SOPInstanceUID", generate_uid())
    ds.file_meta.MediaStorageSOPInstanceUID = sop_instance_uid
    ds.SOPClassUID = CTImageStorage
    ds.SOPInstanceUID = sop_instance_uid
    for keyword, value in elements.items():
        setattr(ds, keyword, value)
    return ds


def _item(**elements: Any) -> Dataset:
    item = Dataset()
    for keyword, value in elements.items():
        setattr(item, keyword, value)
    return item


@pytest.fixture
def make_dataset() -> DatasetFactory:
    """Factory for a data set with file meta and the given keyword elements."""
    return _make_dataset


@pytest.fixture
def make_item() -> Callable[..., Dataset]:
    """Factory for a sequence item with the given keyword elements."""
    return _item


@pytest.fixture
def native_multiframe() -> Dataset:
    """Two 2x3 frames of unsigned 16-bit samples 0..11, little endian."""
    ds = _make_dataset(
        Modality="CT",
        Rows=2,
        Columns=3,
        BitsAllocated=16,
        BitsStored=16,
        HighBit=15,
        PixelRepresentation=0,
        SamplesPerPixel=1,
        PhotometricInterpretation="MONOCHROME2",
        NumberOfFrames=2,
    )
    ds.PixelData = np.arange(12, dtype="<u2").tobytes()
    return ds


@pytest.fixture
def enhanced_ct() -> Dataset:
    """Enhanced multi-frame header with shared and per-frame functional groups."""
    shared = _item(
        PixelMeasuresSequence=Sequence(
            [_item(PixelSpacing=["0.5", "0.5"], SliceThickness="1.25")]
        ),
        PlaneOrientationSequence=Sequence(
            [_item(ImageOrientationPatient=["1", "0", "0", "0", "1", "0"])]
        ),
    )
    per_frame = []
    for index in range(3):
        item = _item(
            PlanePositionSequence=Sequence(
                [_item(ImagePositionPatient=["-120.0", "120.0", f"{55 + index}.0"])]
            ),
            PixelValueTransformationSequence=Sequence(
                [_item(RescaleSlope="1", RescaleIntercept="-1024")]
            ),
            FrameVOILUTSequence=Sequence(
                [_item(WindowCenter="40", WindowWidth=f"{400 + index}")]
            ),
            FrameContentSequence=Sequence(
                [
                    _item(
                        StackID="1",
                        InStackPositionNumber=index + 1,
                        DimensionIndexValues=[1, index + 1],
                    )
                ]
            ),
        )
        per_frame.append(item)

    return _make_dataset(
        Modality="CT",
        SeriesInstanceUID="1.2.3.4",
        StudyInstanceUID="1.2.3",
        PatientID="ANON01",
        PatientName="Doe^Jane",
        NumberOfFrames=3,
        SharedFunctionalGroupsSequence=Sequence([shared]),
        PerFrameFunctionalGroupsSequence=Sequence(per_frame),
    )


def rle_frame(samples: bytes) -> bytes:
    """Encode 8-bit samples as a single-segment RLE Lossless frame."""
    header = pack("<16L", 1, 64, *([0] * 14))
    segment = bytearray()
    for start in range(0, len(samples), 128):
        chunk = samples[start : start + 128]
        segment.append(len(chunk) - 1)
        segment.extend(chunk)
    if len(segment) % 2:
        # 0x80 is a no-op run header, used to reach an even length
        segment.append(0x80)
    return header + bytes(segment)


@pytest.fixture
def rle_dataset() -> Dataset:
    """Single 2x3 frame of 8-bit samples 1..6, RLE Lossless compressed."""
    ds = _make_dataset(
        RLELossless,
        Modality="OT",
        Rows=2,
        Columns=3,
        BitsAllocated=8,
        BitsStored=8,
        HighBit=7,
        PixelRepresentation=0,
        SamplesPerPixel=1,
        PhotometricInterpretation="MONOCHROME2",
    )
    ds.PixelData = encapsulate([rle_frame(bytes([1, 2, 3, 4, 5, 6]))])
    return ds


@pytest.fixture
def make_encapsulated() -> Callable[..., Dataset]:
    """Factory for a JPEG transfer syntax data set with the given framing."""

    def factory(
        frames: list[bytes],
        fragments_per_frame: int = 1,
        has_bot: bool = True,
        number_of_frames: int | None = None,
    ) -> Dataset:
        ds = _make_dataset(
            JPEGBaseline8Bit,
            Rows=2,
            Columns=2,
            BitsAllocated=8,
            SamplesPerPixel=1,
            PhotometricInterpretation="MONOCHROME2",
            NumberOfFrames=number_of_frames or len(frames),
        )
        ds.PixelData = encapsulate(
            frames, fragments_per_frame=fragments_per_frame, has_bot=has_bot
        )
        return ds

    return factory


@pytest.fixture
def write_dicom(tmp_path: Path) -> Callable[[Dataset, str], Path]:
    """Write a data set as a DICOM file under `tmp_path`."""

    def writer(ds: Dataset, name: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        ds.save_as(path, enforce_file_format=True)
        return path

    return writer
