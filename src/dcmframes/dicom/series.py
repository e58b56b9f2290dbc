"""Group DICOM files into series and order the files of each series.

Files are grouped by Series Instance UID in the order each UID is first
seen. Within a series, files are ordered by a comparator that decides per
pair which key to use:

1. Slice Location, when both files have one
2. otherwise the z component of Image Position (Patient), when both have one
3. otherwise Instance Number, when both have one
4. otherwise the pair is tied and keeps its input order

Because the key is chosen for each pair rather than once per series, a
series whose files populate these attributes inconsistently may not have a
strict total order. The sort is stable, so the result is still
deterministic for a given input order.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cmp_to_key
from pathlib import Path
from typing import Iterable, Sequence

from joblib import Parallel, delayed  # type: ignore
from tqdm import tqdm

from dcmframes.dicom.accessor import DataSetAccessor
from dcmframes.dicom.dicom_reader import load_dicom
from dcmframes.dicom.tags import DicomTag
from dcmframes.exceptions import ParseError
from dcmframes.loggers import logger, tqdm_logging_redirect

__all__ = [
    "UNKNOWN_UID",
    "DicomFileRecord",
    "Series",
    "collect_series",
    "compare_records",
    "group_series",
    "read_record",
    "sort_records",
]

UNKNOWN_UID = "unknown"

SERIES_TAGS = [
    DicomTag.SOPInstanceUID,
    DicomTag.SeriesInstanceUID,
    DicomTag.InstanceNumber,
    DicomTag.ImagePositionPatient,
    DicomTag.SliceLocation,
]


@dataclass(frozen=True)
class DicomFileRecord:
    """The attributes of one file used to group and order it."""

    file: Path
    sop_instance_uid: str
    series_instance_uid: str
    slice_location: float | None = None
    image_position_z: float | None = None
    instance_number: int | None = None


@dataclass(frozen=True)
class Series:
    series_instance_uid: str
    ordered_files: tuple[DicomFileRecord, ...]

    def __len__(self) -> int:
        return len(self.ordered_files)

    @property
    def files(self) -> list[Path]:
        return [record.file for record in self.ordered_files]


def read_record(
    file: str | Path,
    force: bool = False,
    unknown_uid: str = UNKNOWN_UID,
) -> DicomFileRecord:
    """Read the grouping attributes of one file, without its pixel data.

    Raises
    ------
    ParseError
        If the file cannot be read as DICOM.
    """
    dataset = load_dicom(
        file, force=force, stop_before_pixels=True, specific_tags=SERIES_TAGS
    )
    accessor = DataSetAccessor(dataset)
    return DicomFileRecord(
        file=Path(file),
        sop_instance_uid=accessor.string(DicomTag.SOPInstanceUID) or unknown_uid,
        series_instance_uid=accessor.string(DicomTag.SeriesInstanceUID)
        or unknown_uid,
        slice_location=accessor.float_string(DicomTag.SliceLocation),
        image_position_z=accessor.float_string(DicomTag.ImagePositionPatient, 2),
        instance_number=accessor.int_string(DicomTag.InstanceNumber),
    )


def _compare(a: float | None, b: float | None) -> int | None:
    if a is None or b is None:
        return None
    return (a > b) - (a < b)


def compare_records(a: DicomFileRecord, b: DicomFileRecord) -> int:
    """Order two files of the same series; 0 when no shared key exists."""
    for key in ("slice_location", "image_position_z", "instance_number"):
        result = _compare(getattr(a, key), getattr(b, key))
        if result is not None:
            return result
    return 0


def sort_records(records: Iterable[DicomFileRecord]) -> list[DicomFileRecord]:
    return sorted(records, key=cmp_to_key(compare_records))


def group_series(records: Iterable[DicomFileRecord]) -> list[Series]:
    """Group records by series UID and order each group.

    Examples
    --------
    >>> [s.series_instance_uid for s in group_series(records)]
    ['1.2.3.4', 'unknown']
    """
    groups: dict[str, list[DicomFileRecord]] = {}
    for record in records:
        groups.setdefault(record.series_instance_uid, []).append(record)

    return [
        Series(series_instance_uid=uid, ordered_files=tuple(sort_records(files)))
        for uid, files in groups.items()
    ]


def _read_or_report(
    file: Path, force: bool, unknown_uid: str
) -> DicomFileRecord | ParseError:
    # returned rather than raised so one bad file does not stop the batch
    try:
        return read_record(file, force=force, unknown_uid=unknown_uid)
    except ParseError as e:
        return e


def collect_series(
    files: Sequence[str | Path],
    n_jobs: int | None = None,
    show_progress: bool = False,
    failures: list[tuple[Path, str]] | None = None,
    force: bool = False,
    unknown_uid: str = UNKNOWN_UID,
) -> list[Series]:
    """Read `files` in parallel and group them into ordered series.

    Parameters
    ----------
    files : Sequence[str | Path]
        Files to read. Order decides the order of series and of tied files.
    n_jobs : int | None
        Number of joblib workers.
    show_progress : bool
        Show a tqdm progress bar.
    failures : list[tuple[Path, str]] | None
        When given, ``(file, reason)`` is appended for every file that could
        not be parsed.
    force : bool
        Read files that lack the File Meta Information header.
    unknown_uid : str
        Series and SOP Instance UID used when a file has none.

    Returns
    -------
    list[Series]
        One entry per series UID, without the files that failed to parse.
    """
    paths = [Path(file) for file in files]
    with tqdm_logging_redirect():
        results = Parallel(n_jobs=n_jobs)(
            delayed(_read_or_report)(path, force, unknown_uid)
            for path in tqdm(
                paths,
                desc="Reading DICOM headers",
                mininterval=1,
                leave=False,
                disable=not show_progress,
            )
        )

    records = []
    for path, result in zip(paths, results):
        if isinstance(result, ParseError):
            logger.error("Failed to parse DICOM file", file=str(path), error=str(result))
            if failures is not None:
                failures.append((path, str(result)))
            continue
        records.append(result)

    series = group_series(records)
    logger.info(
        "Grouped DICOM files into series",
        files=len(paths),
        parsed=len(records),
        series=len(series),
    )
    return series
