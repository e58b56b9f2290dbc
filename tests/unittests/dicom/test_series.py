from pathlib import Path

import pytest

from dcmframes.dicom.series import (
    DicomFileRecord,
    collect_series,
    compare_records,
    group_series,
    read_record,
    sort_records,
)


@pytest.fixture(autouse=True, scope="module")
def suppress_failure_logging():
    # unreadable files are logged at ERROR on purpose
    from dcmframes.loggers import logger, temporary_log_level

    with temporary_log_level(logger, "CRITICAL"):
        yield


def record(name: str, series: str = "1.2.3", **keys) -> DicomFileRecord:
    return DicomFileRecord(
        file=Path(name), sop_instance_uid=name, series_instance_uid=series, **keys
    )


class TestCompareRecords:
    def test_slice_location_first(self) -> None:
        a = record("a", slice_location=2.0, instance_number=1)
        b = record("b", slice_location=1.0, instance_number=2)
        assert compare_records(a, b) == 1
        assert compare_records(b, a) == -1

    def test_position_when_slice_location_is_missing(self) -> None:
        a = record("a", slice_location=2.0, image_position_z=-10.0)
        b = record("b", image_position_z=5.0)
        assert compare_records(a, b) == -1

    def test_instance_number_last(self) -> None:
        a = record("a", instance_number=4)
        b = record("b", image_position_z=5.0, instance_number=3)
        assert compare_records(a, b) == 1

    def test_no_shared_key_is_a_tie(self) -> None:
        a = record("a", slice_location=1.0)
        b = record("b", instance_number=1)
        assert compare_records(a, b) == 0


class TestSortAndGroup:
    def test_sort_by_slice_location(self) -> None:
        records = [record(str(n), slice_location=n) for n in (3.0, 1.0, 2.0)]
        assert [r.slice_location for r in sort_records(records)] == [1.0, 2.0, 3.0]

    def test_sort_by_instance_number(self) -> None:
        records = [record(str(n), instance_number=n) for n in (3, 1, 2)]
        assert [r.instance_number for r in sort_records(records)] == [1, 2, 3]

    def test_ties_keep_input_order(self) -> None:
        records = [record("first"), record("second"), record("third")]
        assert [r.sop_instance_uid for r in sort_records(records)] == [
            "first",
            "second",
            "third",
        ]

    def test_groups_in_first_seen_order(self) -> None:
        records = [
            record("a2", "A", instance_number=2),
            record("b1", "B", instance_number=1),
            record("a1", "A", instance_number=1),
        ]

        grouped = group_series(records)

        assert [s.series_instance_uid for s in grouped] == ["A", "B"]
        assert [r.sop_instance_uid for r in grouped[0].ordered_files] == ["a1", "a2"]
        assert len(grouped[1]) == 1
        assert grouped[0].files == [Path("a1"), Path("a2")]


@pytest.fixture
def slices(make_dataset, write_dicom) -> list[Path]:
    files = []
    for series_uid, location, instance in [
        ("1.2.3.1", "20.0", 1),
        ("1.2.3.1", "-5.0", 2),
        ("1.2.3.2", "0.0", 1),
        ("1.2.3.1", "7.5", 3),
    ]:
        ds = make_dataset(
            Modality="CT",
            SeriesInstanceUID=series_uid,
            SliceLocation=location,
            InstanceNumber=instance,
            ImagePositionPatient=["0", "0", location],
        )
        files.append(write_dicom(ds, f"{series_uid}_{instance}.dcm"))
    return files


def test_read_record(slices: list[Path]) -> None:
    result = read_record(slices[1])

    assert result.file == slices[1]
    assert result.series_instance_uid == "1.2.3.1"
    assert result.slice_location == pytest.approx(-5.0)
    assert result.image_position_z == pytest.approx(-5.0)
    assert result.instance_number == 2


def test_read_record_without_series_uid(make_dataset, write_dicom) -> None:
    path = write_dicom(make_dataset(Modality="OT"), "no_series.dcm")
    assert read_record(path, unknown_uid="missing").series_instance_uid == "missing"


def test_collect_series(slices: list[Path], tmp_path: Path) -> None:
    garbage = tmp_path / "garbage.dcm"
    garbage.write_bytes(b"this is not a DICOM file")
    failures: list[tuple[Path, str]] = []

    grouped = collect_series([*slices, garbage], n_jobs=1, failures=failures)

    assert [s.series_instance_uid for s in grouped] == ["1.2.3.1", "1.2.3.2"]
    assert [r.slice_location for r in grouped[0].ordered_files] == [-5.0, 7.5, 20.0]
    assert len(grouped[1]) == 1
    assert [path for path, _ in failures] == [garbage]
    assert failures[0][1]
