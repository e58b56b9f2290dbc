from __future__ import annotations

from pathlib import Path
from typing import Type

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

__all__ = ["DcmFramesSettings"]


class DcmFramesSettings(BaseSettings):
    """
    Central configuration class for dcmframes.

    Values are taken, highest priority first, from keyword arguments,
    ``DCMFRAMES_*`` environment variables and a ``dcmframes.yaml`` file in
    the current working directory.

    Examples
    --------
    >>> settings = DcmFramesSettings(n_jobs=4)
    >>> settings.unknown_series_uid
    'unknown'
    """

    n_jobs: int | None = Field(
        default=None,
        description="Number of parallel jobs when reading many files. "
        "None lets joblib decide; -1 uses all cores.",
    )
    show_progress: bool = Field(
        default=False,
        description="Show a progress bar when reading many files",
    )
    force: bool = Field(
        default=False,
        description="Read files missing the DICOM File Meta Information header",
    )
    decoding_plugin: str = Field(
        default="",
        description="pydicom decoding plugin used for compressed pixel data. "
        "Empty tries every available plugin.",
    )
    unknown_series_uid: str = Field(
        default="unknown",
        description="Series Instance UID given to files that have none",
    )
    model_config = SettingsConfigDict(
        env_prefix="DCMFRAMES_",
        yaml_file=(Path().cwd() / "dcmframes.yaml",),
        # allow for other fields to be present in the config file
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
        )

    @classmethod
    def from_user_yaml(cls, path: Path) -> DcmFramesSettings:
        """Load settings from a YAML file."""
        source = YamlConfigSettingsSource(cls, yaml_file=path)
        settings = source()
        return cls(**settings)

    def to_yaml(self, path: Path) -> None:
        """Write the settings to `path` as YAML."""
        import yaml  # type: ignore

        model = self.model_dump(mode="json")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w") as f:
                yaml.dump(model, f, sort_keys=False)
        except (OSError, IOError) as e:
            msg = f"Failed to save settings to {path}: {e}"
            raise ValueError(msg) from e
