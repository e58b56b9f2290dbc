import os
import struct
from io import BytesIO, IOBase
from pathlib import Path
from typing import Any, BinaryIO, TypeAlias, cast

from pydicom import dcmread
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError

from dcmframes.exceptions import ParseError

__all__ = ["DicomInput", "load_dicom", "path_from_pathlike"]

# Define a type alias for DICOM input types
DicomInput: TypeAlias = Dataset | str | Path | bytes | bytearray | BinaryIO

READ_ERRORS = (InvalidDicomError, OSError, EOFError, ValueError, struct.error)


def path_from_pathlike(file_object: str | Path | BinaryIO) -> str | BinaryIO:
    """Return the string representation if file_object is path-like,
    otherwise return the object itself.

    Parameters
    ----------
    file_object : str | Path | BinaryIO
        File path or file-like object.

    Returns
    -------
    str | BinaryIO
        String representation of the path or the original file-like object.
    """
    try:
        return os.fspath(file_object)  # type: ignore[arg-type]
    except TypeError:
        return cast("BinaryIO", file_object)


def load_dicom(
    dicom_input: DicomInput,
    force: bool = False,
    stop_before_pixels: bool = False,
    **kwargs: Any,  # noqa: ANN401
) -> Dataset:
    """Load a DICOM file and return the parsed Dataset object.

    This function supports various input types including file paths, byte streams,
    and file-like objects. It uses the `pydicom.dcmread` function to read the DICOM file.

    Notes
    -----
    - If `dicom_input` is already a `Dataset`, it is returned as is.
    - If `dicom_input` is a file path or file-like object, it is read using `pydicom.dcmread`.
    - If `dicom_input` is a byte stream, it is wrapped in a `BytesIO` object and then read.

    Parameters
    ----------
    dicom_input : Dataset | str | Path | bytes | BinaryIO
        Input DICOM file as a `pydicom.Dataset`, file path, byte stream, or file-like object.
    force : bool, optional
        Whether to allow reading DICOM files missing the *File Meta Information*
        header, by default False.
    stop_before_pixels : bool, optional
        Whether to stop reading the DICOM file before loading pixel data, by default False.
    **kwargs
        Additional keyword arguments to pass to `pydicom.dcmread`.
        i.e `specific_tags`.

    Returns
    -------
    Dataset
        Parsed DICOM dataset.

    Raises
    ------
    ParseError
        If the input is of an unsupported type or cannot be read as a DICOM file.
    """
    match dicom_input:
        case Dataset():
            return dicom_input
        case str() | Path() | IOBase():
            dicom_source = path_from_pathlike(dicom_input)
        case bytes() | bytearray():
            dicom_source = BytesIO(dicom_input)
        case _:
            msg = (
                f"Invalid input type for 'dicom_input': {type(dicom_input)}. "
                "Must be a Dataset, str, Path, bytes, or BinaryIO object."
            )
            raise ParseError(msg)

    try:
        return dcmread(
            dicom_source,
            force=force,
            stop_before_pixels=stop_before_pixels,
            **kwargs,
        )
    except READ_ERRORS as e:
        name = dicom_source if isinstance(dicom_source, str) else "<stream>"
        msg = f"Could not parse {name} as DICOM: {e}"
        raise ParseError(msg) from e
