import pytest
from pydicom.dataset import Dataset
from pydicom.sequence import Sequence

from dcmframes.dicom.accessor import DataSetAccessor
from dcmframes.dicom.resolver import AttributeResolver
from dcmframes.dicom.tags import DicomTag


def _measures(make_item, **elements) -> Dataset:
    return make_item(PixelMeasuresSequence=Sequence([make_item(**elements)]))


@pytest.fixture
def layered(make_dataset, make_item) -> Dataset:
    """Pixel Spacing stored at every tier with a different value."""
    return make_dataset(
        PixelSpacing=["0.9", "0.9"],
        SharedFunctionalGroupsSequence=Sequence(
            [_measures(make_item, PixelSpacing=["0.5", "0.5"])]
        ),
        PerFrameFunctionalGroupsSequence=Sequence(
            [
                _measures(make_item, PixelSpacing=["0.7", "0.7"]),
                _measures(make_item, PixelSpacing=["0.8", "0.8"]),
            ]
        ),
    )


def _resolver(ds: Dataset) -> AttributeResolver:
    return AttributeResolver(DataSetAccessor(ds))


class TestResolve:
    def test_shared_group_wins(self, layered: Dataset) -> None:
        value = _resolver(layered).resolve(
            DicomTag.PixelSpacing, DicomTag.PixelMeasuresSequence, 1
        )
        assert value == "0.5\\0.5"

    @pytest.mark.parametrize("frame_index", [0, 1, 2])
    def test_shared_value_for_every_frame(self, enhanced_ct, frame_index) -> None:
        value = _resolver(enhanced_ct).resolve(
            DicomTag.PixelSpacing, DicomTag.PixelMeasuresSequence, frame_index
        )
        assert value == "0.5\\0.5"

    def test_per_frame_group_before_root(self, layered: Dataset) -> None:
        del layered.SharedFunctionalGroupsSequence
        resolver = _resolver(layered)

        assert (
            resolver.resolve(DicomTag.PixelSpacing, DicomTag.PixelMeasuresSequence, 0)
            == "0.7\\0.7"
        )
        assert (
            resolver.resolve(DicomTag.PixelSpacing, DicomTag.PixelMeasuresSequence, 1)
            == "0.8\\0.8"
        )

    def test_frame_without_item_falls_back_to_root(self, layered: Dataset) -> None:
        del layered.SharedFunctionalGroupsSequence
        value = _resolver(layered).resolve(
            DicomTag.PixelSpacing, DicomTag.PixelMeasuresSequence, 5
        )
        assert value == "0.9\\0.9"

    def test_modality_sequence_before_root(self, make_dataset, make_item) -> None:
        ds = make_dataset(
            SliceThickness="3.0",
            DetectorInformationSequence=Sequence([make_item(SliceThickness="2.0")]),
        )
        assert DicomTag.DetectorInformationSequence in ds
        value = _resolver(ds).resolve(
            DicomTag.SliceThickness, DicomTag.PixelMeasuresSequence
        )
        assert value == "2.0"

    def test_empty_value_falls_through(self, layered: Dataset) -> None:
        shared = layered.SharedFunctionalGroupsSequence[0].PixelMeasuresSequence[0]
        shared.add_new(DicomTag.PixelSpacing, "DS", None)

        value = _resolver(layered).resolve(
            DicomTag.PixelSpacing, DicomTag.PixelMeasuresSequence, 0
        )
        assert value == "0.7\\0.7"

    def test_absent_everywhere_is_none(self, make_dataset) -> None:
        value = _resolver(make_dataset()).resolve(
            DicomTag.PixelSpacing, DicomTag.PixelMeasuresSequence
        )
        assert value is None

    def test_custom_reader(self, layered: Dataset) -> None:
        value = _resolver(layered).resolve(
            DicomTag.PixelSpacing,
            DicomTag.PixelMeasuresSequence,
            read=lambda item, tag: item.float_string(tag, 1),
        )
        assert value == pytest.approx(0.5)


class TestResolveNumber:
    def test_root_value_wins(self, make_dataset, make_item) -> None:
        ds = make_dataset(
            SliceThickness="2.5",
            SharedFunctionalGroupsSequence=Sequence(
                [_measures(make_item, SliceThickness="1.0")]
            ),
        )
        value = _resolver(ds).resolve_number(
            DicomTag.SliceThickness, DicomTag.PixelMeasuresSequence
        )
        assert value == pytest.approx(2.5)

    def test_zero_is_a_value(self, make_dataset, make_item) -> None:
        ds = make_dataset(
            RescaleIntercept="0",
            SharedFunctionalGroupsSequence=Sequence(
                [
                    make_item(
                        PixelValueTransformationSequence=Sequence(
                            [make_item(RescaleIntercept="-1024")]
                        )
                    )
                ]
            ),
        )
        value = _resolver(ds).resolve_number(
            DicomTag.RescaleIntercept, DicomTag.PixelValueTransformationSequence
        )
        assert value == 0.0

    def test_per_frame_value(self, enhanced_ct: Dataset) -> None:
        value = _resolver(enhanced_ct).resolve_number(
            DicomTag.WindowWidth, DicomTag.FrameVOILUTSequence, 2
        )
        assert value == pytest.approx(402.0)

    def test_unparseable_value_is_skipped(self, make_dataset, make_item) -> None:
        ds = make_dataset(
            SharedFunctionalGroupsSequence=Sequence(
                [_measures(make_item, SliceThickness="1.5")]
            ),
        )
        ds.add_new(DicomTag.SliceThickness, "LO", "thick")

        value = _resolver(ds).resolve_number(
            DicomTag.SliceThickness, DicomTag.PixelMeasuresSequence
        )
        assert value == pytest.approx(1.5)


class TestResolveInFrame:
    def test_reads_only_the_frame(self, enhanced_ct: Dataset) -> None:
        resolver = _resolver(enhanced_ct)
        assert (
            resolver.resolve_in_frame(
                DicomTag.FrameContentSequence, DicomTag.StackID, 1
            )
            == "1"
        )
        # shared values are not consulted
        assert (
            resolver.resolve_in_frame(
                DicomTag.PixelMeasuresSequence, DicomTag.PixelSpacing, 0
            )
            is None
        )

    def test_missing_frame(self, enhanced_ct: Dataset) -> None:
        value = _resolver(enhanced_ct).resolve_in_frame(
            DicomTag.FrameContentSequence, DicomTag.StackID, 10
        )
        assert value is None
