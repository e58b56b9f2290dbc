from pathlib import Path

import pytest

from dcmframes.config import DcmFramesSettings


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("DCMFRAMES_N_JOBS", raising=False)
    settings = DcmFramesSettings()

    assert settings.n_jobs is None
    assert settings.force is False
    assert settings.decoding_plugin == ""
    assert settings.unknown_series_uid == "unknown"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("DCMFRAMES_N_JOBS", "3")
    monkeypatch.setenv("DCMFRAMES_FORCE", "true")

    settings = DcmFramesSettings()

    assert settings.n_jobs == 3
    assert settings.force is True


def test_keyword_arguments_win(monkeypatch) -> None:
    monkeypatch.setenv("DCMFRAMES_N_JOBS", "3")
    assert DcmFramesSettings(n_jobs=8).n_jobs == 8


def test_yaml_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "dcmframes.yaml"
    original = DcmFramesSettings(
        n_jobs=2, decoding_plugin="pylibjpeg", unknown_series_uid="none"
    )

    original.to_yaml(path)
    loaded = DcmFramesSettings.from_user_yaml(path)

    assert path.exists()
    assert loaded.n_jobs == 2
    assert loaded.decoding_plugin == "pylibjpeg"
    assert loaded.unknown_series_uid == "none"


def test_to_yaml_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(ValueError, match="Failed to save settings"):
        DcmFramesSettings().to_yaml(blocker / "dcmframes.yaml")
