"""Fixed table of the DICOM tags read by dcmframes.

Members are plain integers (``0xGGGGEEEE``) and can be used directly as
`pydicom.Dataset` keys.
"""

from enum import IntEnum

__all__ = ["DicomTag"]


class DicomTag(IntEnum):
    # File meta
    TransferSyntaxUID = 0x00020010

    # Identifiers
    SOPInstanceUID = 0x00080018
    StudyDate = 0x00080020
    SeriesDate = 0x00080021
    Modality = 0x00080060
    CodeValue = 0x00080100
    CodingSchemeDesignator = 0x00080102
    CodeMeaning = 0x00080104
    StudyDescription = 0x00081030
    SeriesDescription = 0x0008103E
    RecommendedDisplayFrameRate = 0x00082144
    AnatomicRegionSequence = 0x00082218

    # Patient
    PatientName = 0x00100010
    PatientID = 0x00100020
    PatientBirthDate = 0x00100030
    PatientSex = 0x00100040
    PatientAge = 0x00101010

    # Acquisition
    SliceThickness = 0x00180050
    SpacingBetweenSlices = 0x00180088
    ImagerPixelSpacing = 0x00181164

    # Ultrasound regions
    SequenceOfUltrasoundRegions = 0x00186011
    RegionLocationMinX0 = 0x00186018
    RegionLocationMinY0 = 0x0018601A
    RegionLocationMaxX1 = 0x0018601C
    RegionLocationMaxY1 = 0x0018601E
    ReferencePixelX0 = 0x00186020
    ReferencePixelY0 = 0x00186022
    PhysicalUnitsXDirection = 0x00186024
    PhysicalUnitsYDirection = 0x00186026
    PhysicalDeltaX = 0x0018602C
    PhysicalDeltaY = 0x0018602E

    # Relationship / geometry
    StudyInstanceUID = 0x0020000D
    SeriesInstanceUID = 0x0020000E
    InstanceNumber = 0x00200013
    ImagePositionPatient = 0x00200032
    ImageOrientationPatient = 0x00200037
    SliceLocation = 0x00201041
    FrameContentSequence = 0x00209111
    PlanePositionSequence = 0x00209113
    PlaneOrientationSequence = 0x00209116
    StackID = 0x00209056
    InStackPositionNumber = 0x00209057
    DimensionIndexValues = 0x00209157

    # Image pixel
    SamplesPerPixel = 0x00280002
    PhotometricInterpretation = 0x00280004
    PlanarConfiguration = 0x00280006
    NumberOfFrames = 0x00280008
    FrameIncrementPointer = 0x00280009
    Rows = 0x00280010
    Columns = 0x00280011
    PixelSpacing = 0x00280030
    PixelAspectRatio = 0x00280034
    BitsAllocated = 0x00280100
    BitsStored = 0x00280101
    HighBit = 0x00280102
    PixelRepresentation = 0x00280103
    PixelPaddingValue = 0x00280120
    WindowCenter = 0x00281050
    WindowWidth = 0x00281051
    RescaleIntercept = 0x00281052
    RescaleSlope = 0x00281053
    PixelMeasuresSequence = 0x00289110
    FrameVOILUTSequence = 0x00289132
    PixelValueTransformationSequence = 0x00289145

    # Nuclear medicine / PET module
    DetectorInformationSequence = 0x00540022

    # Segmentation
    SegmentationType = 0x00620001
    SegmentSequence = 0x00620002
    SegmentNumber = 0x00620004
    SegmentLabel = 0x00620005
    SegmentAlgorithmType = 0x00620008
    SegmentIdentificationSequence = 0x0062000A
    ReferencedSegmentNumber = 0x0062000B
    RecommendedDisplayCIELabValue = 0x0062000D

    # Philips private frame content sequence
    PrivateFrameContentSequence = 0x2005140F

    # Multi-frame functional groups
    SharedFunctionalGroupsSequence = 0x52009229
    PerFrameFunctionalGroupsSequence = 0x52009230

    # Pixel data
    FloatPixelData = 0x7FE00008
    DoubleFloatPixelData = 0x7FE00009
    PixelData = 0x7FE00010

    def __str__(self) -> str:
        return f"({self.value >> 16:04X},{self.value & 0xFFFF:04X}) {self.name}"
