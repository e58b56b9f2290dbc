import pytest
from pydicom.dataset import Dataset
from pydicom.sequence import Sequence

from dcmframes.dicom.accessor import DataSetAccessor
from dcmframes.dicom.tags import DicomTag


@pytest.fixture
def accessor(make_dataset) -> DataSetAccessor:
    ds = make_dataset(
        Modality="MR",
        Rows=256,
        ImagePositionPatient=["-120.0", "120.0", "55.5"],
        InstanceNumber="7",
        PixelAspectRatio=["1", "2"],
        SeriesDescription="",
    )
    ds.add_new(DicomTag.RegionLocationMinX0, "OB", b"\x10\x00\x00\x00")
    ds.add_new(DicomTag.DimensionIndexValues, "OB", b"\x01\x00\x00\x00\x02\x00\x00\x00")
    return DataSetAccessor(ds)


class TestPresence:
    def test_missing_element_reads_as_none(self, accessor: DataSetAccessor) -> None:
        assert accessor.element(DicomTag.PatientID) is None
        assert not accessor.has(DicomTag.PatientID)
        assert accessor.string(DicomTag.PatientID) is None
        assert accessor.uint16(DicomTag.Columns) is None
        assert accessor.float_string(DicomTag.SliceLocation) is None
        assert accessor.numbers(DicomTag.PixelSpacing) is None

    def test_empty_element_reads_as_empty_string(self, accessor: DataSetAccessor) -> None:
        assert accessor.has(DicomTag.SeriesDescription)
        assert accessor.string(DicomTag.SeriesDescription) == ""

    def test_missing_sequence_has_no_items(self, accessor: DataSetAccessor) -> None:
        assert accessor.items(DicomTag.PerFrameFunctionalGroupsSequence) == []
        assert accessor.item(DicomTag.PerFrameFunctionalGroupsSequence, 0) is None


class TestValues:
    def test_string_joins_multiple_values(self, accessor: DataSetAccessor) -> None:
        assert accessor.string(DicomTag.ImagePositionPatient) == "-120.0\\120.0\\55.5"

    def test_indexed_decimal_string(self, accessor: DataSetAccessor) -> None:
        assert accessor.float_string(DicomTag.ImagePositionPatient, 2) == pytest.approx(55.5)
        assert accessor.float_string(DicomTag.ImagePositionPatient, 3) is None

    def test_integer_strings(self, accessor: DataSetAccessor) -> None:
        assert accessor.int_string(DicomTag.InstanceNumber) == 7
        assert accessor.int_string(DicomTag.PixelAspectRatio, 1) == 2

    def test_decoded_integer(self, accessor: DataSetAccessor) -> None:
        assert accessor.uint16(DicomTag.Rows) == 256

    def test_raw_bytes_are_unpacked(self, accessor: DataSetAccessor) -> None:
        assert accessor.uint32(DicomTag.RegionLocationMinX0) == 16
        assert accessor.numbers(DicomTag.DimensionIndexValues, "L") == [1, 2]

    def test_raw_bytes_too_short_for_index(self, accessor: DataSetAccessor) -> None:
        assert accessor.uint32(DicomTag.RegionLocationMinX0, 1) is None

    def test_big_endian_raw_bytes(self) -> None:
        ds = Dataset()
        ds.add_new(DicomTag.RegionLocationMinX0, "OB", b"\x00\x00\x00\x10")
        accessor = DataSetAccessor(ds, little_endian=False)
        assert accessor.uint32(DicomTag.RegionLocationMinX0) == 16


def test_child_inherits_byte_order() -> None:
    item = Dataset()
    item.Rows = 4
    ds = Dataset()
    ds.SharedFunctionalGroupsSequence = Sequence([item])
    accessor = DataSetAccessor(ds, little_endian=False)

    child = accessor.item(DicomTag.SharedFunctionalGroupsSequence, 0)

    assert child is not None
    assert child.little_endian is False
    assert child.uint16(DicomTag.Rows) == 4
    assert accessor.item(DicomTag.SharedFunctionalGroupsSequence, 1) is None
