from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from dcmframes.dicom import find_dicoms
from dcmframes.dicom.dicom_find import has_dicom_header


@pytest.fixture
def temp_dir_with_files():
    with TemporaryDirectory() as temp_dir:
        temp_path = Path(temp_dir)
        (temp_path / "file1.dcm").touch()
        (temp_path / "file2.DCM").touch()
        sub_dir = temp_path / "subdir"
        sub_dir.mkdir()
        (sub_dir / "file3.dcm").touch()
        (sub_dir / "file4.ima").touch()
        yield temp_path


class TestFindDicoms:
    def test_non_recursive(self, temp_dir_with_files) -> None:
        result = find_dicoms(temp_dir_with_files, recursive=False)
        assert [file.name for file in result] == ["file1.dcm", "file2.DCM"]

    def test_recursive(self, temp_dir_with_files) -> None:
        result = find_dicoms(temp_dir_with_files)
        assert [file.name for file in result] == ["file1.dcm", "file2.DCM", "file3.dcm"]
        assert all(file.is_absolute() for file in result)

    @pytest.mark.parametrize("extensions", [["dcm", "ima"], ("DCM", ".IMA")])
    def test_several_extensions(self, temp_dir_with_files, extensions) -> None:
        result = find_dicoms(temp_dir_with_files, extensions=extensions)
        assert len(result) == 4

    @pytest.mark.parametrize("extensions", ["", [], ("",), None])
    def test_any_extension(self, temp_dir_with_files, extensions) -> None:
        (temp_dir_with_files / "IM0001").touch()
        result = find_dicoms(
            temp_dir_with_files, extensions=extensions, recursive=False
        )
        assert [file.name for file in result] == ["IM0001", "file1.dcm", "file2.DCM"]

    def test_order_is_stable(self, temp_dir_with_files) -> None:
        first = find_dicoms(temp_dir_with_files)
        second = find_dicoms(temp_dir_with_files)
        assert first == second == sorted(first)

    def test_directories_are_skipped(self, temp_dir_with_files) -> None:
        (temp_dir_with_files / "folder.dcm").mkdir()
        result = find_dicoms(temp_dir_with_files, recursive=False)
        assert len(result) == 2

    def test_hidden_files_and_dicomdir_are_skipped(self, temp_dir_with_files) -> None:
        (temp_dir_with_files / "._file1.dcm").touch()
        (temp_dir_with_files / "DICOMDIR").touch()
        result = find_dicoms(temp_dir_with_files, extensions="", recursive=False)
        assert [file.name for file in result] == ["file1.dcm", "file2.DCM"]

    def test_header_check(self, temp_dir_with_files, mocker) -> None:
        mocker.patch("dcmframes.dicom.dicom_find.is_dicom", return_value=True)
        result = find_dicoms(temp_dir_with_files, check_header=True)
        assert len(result) == 3

    def test_header_check_rejects_empty_files(self, temp_dir_with_files) -> None:
        result = find_dicoms(temp_dir_with_files, check_header=True, force=True)
        assert result == []

    def test_force_accepts_files_without_preamble(self, temp_dir_with_files) -> None:
        headerless = temp_dir_with_files / "file1.dcm"
        # (0008,0005) Specific Character Set, implicit VR little endian
        headerless.write_bytes(b"\x08\x00\x05\x00\x0a\x00\x00\x00ISO_IR 100")

        assert find_dicoms(temp_dir_with_files, check_header=True) == []
        result = find_dicoms(temp_dir_with_files, check_header=True, force=True)
        assert result == [headerless.absolute()]


class TestHasDicomHeader:
    def test_preamble_and_prefix(self, tmp_path) -> None:
        file = tmp_path / "image.dcm"
        file.write_bytes(b"\x00" * 128 + b"DICM" + b"\x02\x00\x00\x00")
        assert has_dicom_header(file)

    @pytest.mark.parametrize(
        "content", [b"", b"\x08", b"not a dicom file", b"\x10\x00\x10\x00PN"]
    )
    def test_rejected_even_with_force(self, tmp_path, content) -> None:
        file = tmp_path / "other.bin"
        file.write_bytes(content)
        assert not has_dicom_header(file, force=True)
