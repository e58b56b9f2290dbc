"""Command-line interface for dcmframes.

Commands
--------
show
    Resolved attributes of one file, optionally decoding a frame.
series
    Files of a directory grouped into ordered series.
"""

import click

from dcmframes import __version__

from . import set_log_verbosity
from .series import series
from .show import show


@click.group(no_args_is_help=True)
@set_log_verbosity()
@click.version_option(
    version=__version__,
    package_name="dcmframes",
    prog_name="dcmframes",
    message="%(package)s:%(prog)s:%(version)s",
)
@click.help_option("-h", "--help")
def cli(verbose: int, quiet: bool) -> None:
    """Inspect DICOM attributes, frames and series."""
    pass


cli.add_command(show)
cli.add_command(series)

if __name__ == "__main__":
    cli()
