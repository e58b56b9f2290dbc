import pathlib
from pathlib import Path

import click
from rich import print
from rich.markup import escape
from rich.table import Table

from dcmframes.config import DcmFramesSettings
from dcmframes.dicom.dicom_find import find_dicoms
from dcmframes.dicom.series import collect_series
from dcmframes.loggers import logger


@click.command(no_args_is_help=True)
@click.argument(
    "directory",
    type=click.Path(
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
        path_type=pathlib.Path,
        resolve_path=True,
    ),
)
@click.option(
    "-e",
    "--extension",
    "extensions",
    multiple=True,
    default=("dcm",),
    show_default=True,
    help="File extension to look for, repeatable. Pass an empty string for all files.",
)
@click.option(
    "-j",
    "--n-jobs",
    type=int,
    default=None,
    help="Number of parallel jobs. Defaults to the configured value.",
)
@click.option(
    "-ch",
    "--check-header",
    is_flag=True,
    default=False,
    show_default=True,
    help='Whether to check DICOM header for "DICM" signature.',
)
@click.option(
    "--progress/--no-progress",
    default=None,
    help="Show a progress bar while reading files.",
)
@click.help_option(
    "-h",
    "--help",
)
def series(
    directory: pathlib.Path,
    extensions: tuple[str, ...],
    n_jobs: int | None,
    check_header: bool,
    progress: bool | None,
) -> None:
    """Group the DICOM files of DIRECTORY into ordered series.

    Files are ordered by slice location, then image position, then
    instance number. Files that cannot be parsed are listed separately.
    """
    settings = DcmFramesSettings()
    files = find_dicoms(
        directory,
        extensions=extensions,
        recursive=True,
        check_header=check_header,
        force=settings.force,
    )
    if not files:
        logger.warning("No DICOM files found", directory=str(directory))
        click.echo(f"No DICOM files found in {directory}.")
        return

    failures: list[tuple[Path, str]] = []
    grouped = collect_series(
        files,
        n_jobs=n_jobs if n_jobs is not None else settings.n_jobs,
        show_progress=settings.show_progress if progress is None else progress,
        failures=failures,
        force=settings.force,
        unknown_uid=settings.unknown_series_uid,
    )

    for number, item in enumerate(grouped, start=1):
        table = Table(
            title=f"Series {number}: {item.series_instance_uid} ({len(item)} files)",
            box=None,
        )
        table.add_column("#", justify="right", style="cyan")
        table.add_column("File", style="magenta", overflow="fold")
        table.add_column("Slice Location", justify="right")
        table.add_column("Position Z", justify="right")
        table.add_column("Instance", justify="right")
        for index, record in enumerate(item.ordered_files, start=1):
            table.add_row(
                str(index),
                escape(str(record.file.relative_to(directory))),
                _optional(record.slice_location),
                _optional(record.image_position_z),
                _optional(record.instance_number),
            )
        print(table)

    if failures:
        table = Table(title=f"{len(failures)} file(s) could not be parsed", box=None)
        table.add_column("File", style="red", overflow="fold")
        table.add_column("Reason", overflow="fold")
        for path, reason in failures:
            table.add_row(escape(str(path.relative_to(directory))), escape(reason))
        print(table)


def _optional(value: float | int | None) -> str:
    return "-" if value is None else f"{value:g}"
