"""Per-object view over one DICOM data set.

`DicomParser` exposes the identifiers, geometry, pixel format and per-frame
values a viewer needs, resolving each one across the places different
vendors and IODs store it, and decodes frames into display-ready samples.

Examples
--------
>>> parser = DicomParser("image.dcm")
>>> parser.image_position(frame_index=2)
[-120.0, 120.0, 57.5]
>>> buffer = parser.extract_pixel_data(2)
>>> buffer.as_image().shape
(512, 512)
"""

from __future__ import annotations

from functools import cached_property
from typing import Iterable

from joblib import Parallel, delayed  # type: ignore
from pydicom.dataset import Dataset

from dcmframes.config import DcmFramesSettings
from dcmframes.dicom.accessor import DataSetAccessor
from dcmframes.dicom.attributes import (
    SegmentationSegment,
    UltrasoundRegion,
    segmentation_segments,
    ultrasound_regions,
)
from dcmframes.dicom.dicom_reader import DicomInput, load_dicom
from dcmframes.dicom.resolver import AttributeResolver
from dcmframes.dicom.tags import DicomTag
from dcmframes.exceptions import UnsupportedEncodingError
from dcmframes.loggers import logger
from dcmframes.pixels.codec import Codec, PydicomCodec
from dcmframes.pixels.color import normalize
from dcmframes.pixels.locator import PixelLocator
from dcmframes.pixels.types import ImageInfo, PixelFrameDescriptor, SampleBuffer

__all__ = ["DicomParser"]

THREE_CHANNEL_PHOTOMETRICS = frozenset(
    {
        "RGB",
        "PALETTE COLOR",
        "YBR_FULL",
        "YBR_FULL_422",
        "YBR_PARTIAL_422",
        "YBR_PARTIAL_420",
        "YBR_RCT",
    }
)

FLOAT_PIXEL_DATA_TAGS = (DicomTag.FloatPixelData, DicomTag.DoubleFloatPixelData)


def _split_floats(value: str | None, tag: DicomTag) -> list[float] | None:
    """Parse a backslash separated multi-valued DS string."""
    if not value:
        return None
    try:
        return [float(part) for part in value.split("\\")]
    except ValueError:
        logger.error("Could not parse numeric values", tag=tag, value=value)
        return None


class DicomParser:
    """Metadata and pixel access for one DICOM object.

    Parameters
    ----------
    data : Dataset | str | Path | bytes | BinaryIO
        The object to parse. Anything but a `pydicom.Dataset` is read with
        `load_dicom`, including pixel data.
    codec : Codec | None
        Decoder for pixel data; defaults to `PydicomCodec`.
    settings : DcmFramesSettings | None
        Read and decode options; defaults to the settings from the
        environment.

    Raises
    ------
    ParseError
        If `data` cannot be read as DICOM.
    """

    def __init__(
        self,
        data: DicomInput,
        codec: Codec | None = None,
        settings: DcmFramesSettings | None = None,
    ) -> None:
        self.settings = settings or DcmFramesSettings()
        self.dataset: Dataset = load_dicom(
            data, force=self.settings.force, stop_before_pixels=False
        )
        self.codec: Codec = codec or PydicomCodec(self.settings.decoding_plugin)
        self.accessor = DataSetAccessor(self.dataset)
        self.resolver = AttributeResolver(self.accessor)

    def __repr__(self) -> str:
        return (
            f"DicomParser(modality={self.modality!r}, "
            f"sop_instance_uid={self.sop_instance_uid()!r}, "
            f"number_of_frames={self.number_of_frames})"
        )

    def _string(self, tag: DicomTag) -> str | None:
        return self.accessor.string(tag) or None

    @property
    def raw_header(self) -> Dataset:
        """The parsed data set. Treat it as read-only."""
        return self.dataset

    ###########################################################################
    # Identifiers
    ###########################################################################

    @property
    def series_instance_uid(self) -> str | None:
        return self._string(DicomTag.SeriesInstanceUID)

    @property
    def study_instance_uid(self) -> str | None:
        return self._string(DicomTag.StudyInstanceUID)

    def sop_instance_uid(self, frame_index: int = 0) -> str | None:
        """SOP Instance UID, preferring a per-frame private frame content value."""
        return self.resolver.resolve(
            DicomTag.SOPInstanceUID,
            DicomTag.PrivateFrameContentSequence,
            frame_index,
        )

    @property
    def transfer_syntax_uid(self) -> str | None:
        file_meta = getattr(self.dataset, "file_meta", None)
        if file_meta is not None:
            uid = DataSetAccessor(file_meta).string(DicomTag.TransferSyntaxUID)
            if uid:
                return uid
        return self._string(DicomTag.TransferSyntaxUID)

    @property
    def modality(self) -> str | None:
        return self._string(DicomTag.Modality)

    ###########################################################################
    # Study, series and patient
    ###########################################################################

    @property
    def study_date(self) -> str | None:
        return self._string(DicomTag.StudyDate)

    @property
    def study_description(self) -> str | None:
        return self._string(DicomTag.StudyDescription)

    @property
    def series_date(self) -> str | None:
        return self._string(DicomTag.SeriesDate)

    @property
    def series_description(self) -> str | None:
        return self._string(DicomTag.SeriesDescription)

    @property
    def patient_name(self) -> str | None:
        return self._string(DicomTag.PatientName)

    @property
    def patient_id(self) -> str | None:
        return self._string(DicomTag.PatientID)

    @property
    def patient_birthdate(self) -> str | None:
        return self._string(DicomTag.PatientBirthDate)

    @property
    def patient_sex(self) -> str | None:
        return self._string(DicomTag.PatientSex)

    @property
    def patient_age(self) -> str | None:
        return self._string(DicomTag.PatientAge)

    ###########################################################################
    # Segmentation
    ###########################################################################

    @property
    def segmentation_type(self) -> str | None:
        return self._string(DicomTag.SegmentationType)

    @property
    def segmentation_segments(self) -> list[SegmentationSegment]:
        return segmentation_segments(self.accessor)

    def referenced_segment_number(self, frame_index: int = 0) -> int | None:
        """Segment a SEG frame belongs to, ``None`` outside segmentations."""
        item = self.resolver.find_in_group_sequence(
            DicomTag.PerFrameFunctionalGroupsSequence,
            DicomTag.SegmentIdentificationSequence,
            frame_index,
        )
        if item is None:
            return None
        return item.uint16(DicomTag.ReferencedSegmentNumber)

    ###########################################################################
    # Geometry
    ###########################################################################

    def image_orientation(self, frame_index: int = 0) -> list[float] | None:
        """Row and column direction cosines, six values."""
        value = self.resolver.resolve(
            DicomTag.ImageOrientationPatient,
            DicomTag.PlaneOrientationSequence,
            frame_index,
        )
        return _split_floats(value, DicomTag.ImageOrientationPatient)

    def image_position(self, frame_index: int = 0) -> list[float] | None:
        """Patient coordinates of the first transmitted pixel, three values."""
        value = self.resolver.resolve(
            DicomTag.ImagePositionPatient,
            DicomTag.PlanePositionSequence,
            frame_index,
        )
        return _split_floats(value, DicomTag.ImagePositionPatient)

    def pixel_spacing(self, frame_index: int = 0) -> list[float] | None:
        """Row and column spacing in mm.

        Falls back to Imager Pixel Spacing (0018,1164) when Pixel Spacing is
        stored nowhere. A value that does not hold exactly two numbers is
        logged and treated as absent.
        """
        value = self.resolver.resolve(
            DicomTag.PixelSpacing, DicomTag.PixelMeasuresSequence, frame_index
        ) or self._string(DicomTag.ImagerPixelSpacing)
        if not value:
            return None

        if len(value.split("\\")) != 2:
            logger.error(
                "DICOM spacing format is not supported, expected two values",
                pixel_spacing=value,
            )
            return None
        return _split_floats(value, DicomTag.PixelSpacing)

    def slice_thickness(self, frame_index: int = 0) -> float | None:
        return self.resolver.resolve_number(
            DicomTag.SliceThickness, DicomTag.PixelMeasuresSequence, frame_index
        )

    def spacing_between_slices(self) -> float | None:
        return self.accessor.float_string(DicomTag.SpacingBetweenSlices)

    @property
    def pixel_aspect_ratio(self) -> list[int | None] | None:
        first = self.accessor.int_string(DicomTag.PixelAspectRatio, 0)
        if first is None:
            return None
        return [first, self.accessor.int_string(DicomTag.PixelAspectRatio, 1)]

    def ultrasound_regions(self, frame_index: int = 0) -> list[UltrasoundRegion]:
        """Calibrated regions of an ultrasound image.

        The regions apply to every frame; `frame_index` is accepted for
        symmetry with the other per-frame accessors.
        """
        return ultrasound_regions(self.accessor)

    ###########################################################################
    # Pixel format
    ###########################################################################

    @property
    def rows(self) -> int | None:
        return self.accessor.uint16(DicomTag.Rows)

    @property
    def columns(self) -> int | None:
        return self.accessor.uint16(DicomTag.Columns)

    @property
    def bits_allocated(self) -> int | None:
        return self.accessor.uint16(DicomTag.BitsAllocated)

    @property
    def bits_stored(self) -> int | None:
        return self.accessor.uint16(DicomTag.BitsStored)

    @property
    def high_bit(self) -> int | None:
        return self.accessor.uint16(DicomTag.HighBit)

    @property
    def pixel_representation(self) -> int | None:
        return self.accessor.uint16(DicomTag.PixelRepresentation)

    @property
    def pixel_padding_value(self) -> int | None:
        if self.pixel_representation == 1:
            return self.accessor.int16(DicomTag.PixelPaddingValue)
        return self.accessor.uint16(DicomTag.PixelPaddingValue)

    @property
    def photometric_interpretation(self) -> str | None:
        return self._string(DicomTag.PhotometricInterpretation)

    @property
    def planar_configuration(self) -> int | None:
        return self.accessor.uint16(DicomTag.PlanarConfiguration)

    @property
    def samples_per_pixel(self) -> int | None:
        return self.accessor.uint16(DicomTag.SamplesPerPixel)

    @property
    def number_of_frames(self) -> int:
        """Number of Frames (0028,0008), or 1 when absent."""
        frames = self.accessor.int_string(DicomTag.NumberOfFrames)
        return frames if frames and frames > 0 else 1

    @property
    def number_of_channels(self) -> int:
        """3 for color photometric interpretations, otherwise 1."""
        if self.photometric_interpretation in THREE_CHANNEL_PHOTOMETRICS:
            return 3
        return 1

    @property
    def pixel_type(self) -> int:
        """0 for integer samples, 1 for float or double float pixel data."""
        if any(self.accessor.has(tag) for tag in FLOAT_PIXEL_DATA_TAGS):
            return 1
        return 0

    def invert(self) -> bool:
        """True when the minimum sample value is displayed as white."""
        return self.photometric_interpretation == "MONOCHROME1"

    ###########################################################################
    # Per-frame values
    ###########################################################################

    def rescale_intercept(self, frame_index: int = 0) -> float | None:
        return self.resolver.resolve_number(
            DicomTag.RescaleIntercept,
            DicomTag.PixelValueTransformationSequence,
            frame_index,
        )

    def rescale_slope(self, frame_index: int = 0) -> float | None:
        return self.resolver.resolve_number(
            DicomTag.RescaleSlope,
            DicomTag.PixelValueTransformationSequence,
            frame_index,
        )

    def window_center(self, frame_index: int = 0) -> float | None:
        return self.resolver.resolve_number(
            DicomTag.WindowCenter, DicomTag.FrameVOILUTSequence, frame_index
        )

    def window_width(self, frame_index: int = 0) -> float | None:
        return self.resolver.resolve_number(
            DicomTag.WindowWidth, DicomTag.FrameVOILUTSequence, frame_index
        )

    def instance_number(self, frame_index: int = 0) -> int | None:
        """Instance number of a frame.

        Enhanced objects from some vendors carry one per frame inside the
        private frame content sequence (2005,140F); everything else uses the
        root Instance Number.
        """
        frame = self.resolver.per_frame_item(frame_index)
        if frame is not None:
            content = frame.item(DicomTag.PrivateFrameContentSequence, 0)
            if content is not None:
                return content.int_string(DicomTag.InstanceNumber)
        return self.accessor.int_string(DicomTag.InstanceNumber)

    def dimension_index_values(self, frame_index: int = 0) -> list[int] | None:
        """Dimension Index Values of a frame.

        ``[]`` when the element is present but empty, ``None`` when it or
        the frame content path is missing.
        """
        return self.resolver.resolve_in_frame(
            DicomTag.FrameContentSequence,
            DicomTag.DimensionIndexValues,
            frame_index,
            read=lambda item, tag: (item.numbers(tag, "L") or [])
            if item.has(tag)
            else None,
        )

    def in_stack_position_number(self, frame_index: int = 0) -> int | None:
        return self.resolver.resolve_in_frame(
            DicomTag.FrameContentSequence,
            DicomTag.InStackPositionNumber,
            frame_index,
            read=lambda item, tag: item.uint32(tag),
        )

    def stack_id(self, frame_index: int = 0) -> str | None:
        return (
            self.resolver.resolve_in_frame(
                DicomTag.FrameContentSequence, DicomTag.StackID, frame_index
            )
            or None
        )

    def _frame_increment_target(self) -> int | None:
        """Tag the Frame Increment Pointer (0028,0009) points at."""
        raw = self.accessor.raw_bytes(DicomTag.FrameIncrementPointer)
        if raw is not None:
            values = self.accessor.numbers(DicomTag.FrameIncrementPointer, "H")
            if not values or len(values) < 2:
                return None
            return (values[0] << 16) | values[1]
        pointer = self.accessor.value(DicomTag.FrameIncrementPointer, 0)
        return int(pointer) if pointer is not None else None

    @property
    def frame_time(self) -> float | None:
        """Nominal time between frames in msec.

        Read from the attribute the frame increment pointer refers to (usually
        Frame Time (0018,1063)), otherwise derived from the Recommended
        Display Frame Rate.
        """
        target = self._frame_increment_target()
        if target is not None:
            frame_time = self.accessor.float_string(target)
            if frame_time is not None:
                return frame_time

        frame_rate = self.accessor.int_string(DicomTag.RecommendedDisplayFrameRate)
        if frame_rate:
            return 1000 / frame_rate
        return None

    ###########################################################################
    # Pixel data
    ###########################################################################

    @cached_property
    def locator(self) -> PixelLocator:
        return PixelLocator(self.accessor, self.transfer_syntax_uid)

    def locate_frame(self, frame_index: int = 0) -> PixelFrameDescriptor:
        return self.locator.locate_frame(frame_index)

    def image_info(self) -> ImageInfo:
        """Format hints for the codec, taken from the Image Pixel module.

        Raises
        ------
        UnsupportedEncodingError
            Rows, Columns or Bits Allocated is missing.
        """
        rows, columns, bits_allocated = self.rows, self.columns, self.bits_allocated
        if not rows or not columns or not bits_allocated:
            msg = "Rows, Columns and Bits Allocated are required to decode pixel data"
            raise UnsupportedEncodingError(msg)

        return ImageInfo(
            rows=rows,
            columns=columns,
            bits_allocated=bits_allocated,
            samples_per_pixel=self.samples_per_pixel or 1,
            signed=self.pixel_representation == 1,
            bits_stored=self.bits_stored,
            photometric_interpretation=self.photometric_interpretation,
            planar_configuration=self.planar_configuration,
            pixel_keyword=self.locator.pixel_keyword,
        )

    def extract_pixel_data(
        self,
        frame_index: int = 0,
        advisories: list[str] | None = None,
    ) -> SampleBuffer:
        """Decode one frame and normalize it to interleaved samples.

        Parameters
        ----------
        frame_index : int
            Zero-based frame number.
        advisories : list[str] | None
            Collects non-fatal notes raised while normalizing.

        Raises
        ------
        FrameIndexError
            `frame_index` is out of range.
        UnsupportedEncodingError
            The pixel data is missing or cannot be framed.
        DecodeError
            The codec failed.
        UnsupportedColorSpaceError, UnsupportedSampleTypeError
            The decoded samples cannot be normalized.
        """
        encoded = self.locator.read_frame(frame_index)
        info = self.image_info()
        logger.debug(
            "Decoding frame",
            frame_index=frame_index,
            encoded_bytes=len(encoded),
            transfer_syntax_uid=self.transfer_syntax_uid,
        )
        buffer = self.codec.decode(encoded, info, self.transfer_syntax_uid)
        return normalize(buffer, advisories)

    def extract_frames(
        self,
        frame_indices: Iterable[int] | None = None,
        n_jobs: int | None = None,
    ) -> list[SampleBuffer]:
        """Decode several frames concurrently, in the order requested.

        Frames share the read-only pixel data buffer, so they are decoded on
        threads. The first failure is raised.
        """
        indices = (
            list(frame_indices)
            if frame_indices is not None
            else list(range(self.number_of_frames))
        )
        n_jobs = n_jobs if n_jobs is not None else self.settings.n_jobs
        # populate the cached layout before workers read it
        if indices:
            self.locator.locate_frame(indices[0])
        return Parallel(n_jobs=n_jobs, prefer="threads")(
            delayed(self.extract_pixel_data)(index) for index in indices
        )
