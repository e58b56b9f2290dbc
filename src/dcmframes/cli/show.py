import pathlib
from typing import Any

import click
import numpy as np
from rich import print
from rich.markup import escape
from rich.table import Table

from dcmframes.config import DcmFramesSettings
from dcmframes.dicom.parser import DicomParser
from dcmframes.exceptions import DcmFramesError
from dcmframes.loggers import logger


def _format(value: Any) -> str:  # noqa: ANN401
    if value is None:
        return "[orchid1][italic]absent"
    if isinstance(value, float):
        return f"{value:g}"
    if isinstance(value, (list, tuple)):
        return escape(", ".join(_format(v) for v in value))
    return escape(str(value))


def attribute_rows(parser: DicomParser, frame: int) -> list[tuple[str, Any]]:
    """Name and value of every attribute shown for `frame`."""
    return [
        ("Modality", parser.modality),
        ("PatientID", parser.patient_id),
        ("PatientName", parser.patient_name),
        ("StudyInstanceUID", parser.study_instance_uid),
        ("SeriesInstanceUID", parser.series_instance_uid),
        ("SOPInstanceUID", parser.sop_instance_uid(frame)),
        ("TransferSyntaxUID", parser.transfer_syntax_uid),
        ("SeriesDescription", parser.series_description),
        ("Rows", parser.rows),
        ("Columns", parser.columns),
        ("NumberOfFrames", parser.number_of_frames),
        ("SamplesPerPixel", parser.samples_per_pixel),
        ("PhotometricInterpretation", parser.photometric_interpretation),
        ("BitsAllocated", parser.bits_allocated),
        ("PixelRepresentation", parser.pixel_representation),
        ("InstanceNumber", parser.instance_number(frame)),
        ("ImagePosition", parser.image_position(frame)),
        ("ImageOrientation", parser.image_orientation(frame)),
        ("PixelSpacing", parser.pixel_spacing(frame)),
        ("SliceThickness", parser.slice_thickness(frame)),
        ("RescaleSlope", parser.rescale_slope(frame)),
        ("RescaleIntercept", parser.rescale_intercept(frame)),
        ("WindowCenter", parser.window_center(frame)),
        ("WindowWidth", parser.window_width(frame)),
        ("FrameTime", parser.frame_time),
    ]


@click.command(no_args_is_help=True)
@click.argument(
    "dicom_file",
    type=click.Path(
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        path_type=pathlib.Path,
    ),
)
@click.option(
    "--frame",
    "-f",
    default=0,
    show_default=True,
    type=click.IntRange(min=0),
    help="Frame whose per-frame attributes are shown.",
)
@click.option(
    "--decode",
    "-d",
    is_flag=True,
    default=False,
    help="Also decode the frame and summarize its samples.",
)
@click.help_option(
    "-h",
    "--help",
)
def show(dicom_file: pathlib.Path, frame: int, decode: bool) -> None:
    """Display the resolved attributes of one DICOM file.

    \b
    Values are resolved across the functional group sequences of enhanced
    multi-frame objects, so FRAME selects which frame's position,
    orientation, rescale and window values are shown.

    \b
    Examples:
      dcmframes show scan.dcm
      dcmframes show enhanced_ct.dcm --frame 12 --decode
    """
    settings = DcmFramesSettings()
    try:
        parser = DicomParser(dicom_file, settings=settings)
        rows = attribute_rows(parser, frame)
    except DcmFramesError as e:
        logger.error("Failed to read DICOM file", file=str(dicom_file), error=str(e))
        raise click.ClickException(str(e)) from e

    table = Table(title=dicom_file.name, box=None)
    table.add_column("Attribute", justify="left", style="cyan", no_wrap=True)
    table.add_column("Value", style="magenta", overflow="fold")
    for name, value in rows:
        table.add_row(name, _format(value))

    if decode:
        advisories: list[str] = []
        try:
            buffer = parser.extract_pixel_data(frame, advisories)
        except DcmFramesError as e:
            logger.error("Failed to decode frame", frame=frame, error=str(e))
            raise click.ClickException(str(e)) from e
        samples = buffer.samples
        table.add_row("Shape", _format(list(buffer.as_image().shape)))
        table.add_row("DType", str(samples.dtype))
        table.add_row("Min", _format(np.min(samples).item()))
        table.add_row("Max", _format(np.max(samples).item()))
        for advisory in advisories:
            table.add_row("Advisory", escape(advisory))

    print(table)
