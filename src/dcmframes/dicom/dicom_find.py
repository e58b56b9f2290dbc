"""Discover the DICOM files of a directory tree in a stable order."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Iterable, Iterator

from pydicom.misc import is_dicom

from dcmframes.loggers import logger

__all__ = ["find_dicoms", "has_dicom_header"]

DEFAULT_EXTENSIONS = ("dcm",)

MEDIA_DIRECTORY_NAME = "DICOMDIR"
"""Media storage directory files index a file set and hold no image."""

# groups a data set written without preamble normally starts with
_HEADERLESS_GROUPS = frozenset({0x0002, 0x0008})


def has_dicom_header(file: Path, force: bool = False) -> bool:
    """Whether `file` starts like a DICOM file.

    A file passes when it carries the ``DICM`` prefix after the 128 byte
    preamble. With `force`, files written without preamble and prefix also
    pass when their first element belongs to the file meta or the
    identifying group.
    """
    if is_dicom(file):
        return True
    if not force:
        return False
    with file.open("rb") as fp:
        head = fp.read(4)
    if len(head) < 4:
        return False
    group, _ = struct.unpack("<HH", head)
    return group in _HEADERLESS_GROUPS


def _normalize_extensions(extensions: str | Iterable[str] | None) -> set[str]:
    if extensions is None:
        return set()
    if isinstance(extensions, str):
        extensions = (extensions,)
    return {ext.lower().lstrip(".") for ext in extensions if ext}


def _candidates(directory: Path, recursive: bool) -> Iterator[Path]:
    paths = directory.rglob("*") if recursive else directory.glob("*")
    for path in paths:
        # dot files include the "._" resource forks macOS copies onto media
        if path.name.startswith(".") or path.name.upper() == MEDIA_DIRECTORY_NAME:
            continue
        if path.is_file():
            yield path


def find_dicoms(
    directory: Path,
    extensions: str | Iterable[str] | None = DEFAULT_EXTENSIONS,
    recursive: bool = True,
    check_header: bool = False,
    force: bool = False,
) -> list[Path]:
    """Locate DICOM files below `directory`.

    Parameters
    ----------
    directory : Path
        The directory to search.
    extensions : str | Iterable[str] | None, default=("dcm",)
        Extensions to accept, compared case-insensitively and with or
        without the leading dot. ``None``, an empty string or an empty
        collection accept every file, which suits scanners that write bare
        ``IM0001`` style names.
    recursive : bool, default=True
        Whether to descend into subdirectories.
    check_header : bool, default=False
        Whether to open every candidate and keep only those passing
        `has_dicom_header`. Slower but excludes files that only share the
        extension.
    force : bool, default=False
        Passed on to `has_dicom_header`.

    Returns
    -------
    list[Path]
        Absolute paths, sorted so repeated scans give the same order.

    Examples
    --------
    >>> find_dicoms(Path("/data"), extensions=["dcm", "ima"], recursive=False)
    [PosixPath('/data/scan1.dcm'), PosixPath('/data/scan2.IMA')]
    """
    accepted = _normalize_extensions(extensions)
    logger.debug(
        "Searching for DICOM files",
        directory=str(directory),
        extensions=sorted(accepted) or "any",
        recursive=recursive,
        check_header=check_header,
        force=force,
    )

    found = []
    skipped = 0
    for path in _candidates(directory, recursive):
        if accepted and path.suffix.lower().lstrip(".") not in accepted:
            continue
        if check_header and not has_dicom_header(path, force=force):
            skipped += 1
            continue
        found.append(path.absolute())

    if skipped:
        logger.debug("Skipped files without a DICOM header", count=skipped)
    return sorted(found)
