class DcmFramesError(Exception):
    """Base class for all errors raised by dcmframes."""

    pass


class ParseError(DcmFramesError):
    """The input could not be read as a DICOM data set.

    Fatal for that one file only; batch operations log it and move on.
    """

    pass


class UnsupportedEncodingError(DcmFramesError):
    """Pixel data is missing or framed in a way that cannot be located."""

    pass


class FrameIndexError(DcmFramesError, IndexError):
    """Requested frame lies outside ``[0, number_of_frames)``."""

    pass


class DecodeError(DcmFramesError):
    """The codec rejected the transfer syntax or the encoded frame."""

    def __init__(self, transfer_syntax_uid: str | None, reason: str = "") -> None:
        self.transfer_syntax_uid = transfer_syntax_uid
        self.reason = reason
        msg = f"Unable to decode pixel data with transfer syntax '{transfer_syntax_uid}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class UnsupportedColorSpaceError(DcmFramesError):
    """Photometric interpretation has no normalization rule."""

    def __init__(self, photometric_interpretation: str | None) -> None:
        self.photometric_interpretation = photometric_interpretation
        super().__init__(
            f"Photometric interpretation not supported: {photometric_interpretation}"
        )


class UnsupportedSampleTypeError(DcmFramesError):
    """Sample array dtype is not one of the supported numeric kinds."""

    def __init__(self, dtype: object) -> None:
        self.dtype = dtype
        super().__init__(f"Unsupported sample type: {dtype}")
