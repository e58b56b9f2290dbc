"""structlog processors that shape dcmframes log events.

Processors take ``(logger, method_name, event_dict)`` and return the
event dict, see https://www.structlog.org/en/stable/processors.html.
"""

from __future__ import annotations

import datetime
from pathlib import Path

import pytz
from pydicom.datadict import keyword_for_tag
from structlog.typing import EventDict, WrappedLogger

__all__ = [
    "DicomValueRenderer",
    "ZonedTimeStamper",
    "collapse_callsite",
    "format_tag",
]


def _is_tag_key(key: str) -> bool:
    return key == "tag" or key.endswith("_tag")


def format_tag(tag: int) -> str:
    """``(GGGG,EEEE) Keyword``, without the keyword for private tags.

    >>> format_tag(0x00280010)
    '(0028,0010) Rows'
    """
    label = f"({tag >> 16:04X},{tag & 0xFFFF:04X})"
    keyword = keyword_for_tag(tag)
    return f"{label} {keyword}" if keyword else label


class DicomValueRenderer:
    """Render event values that read badly in a log line.

    Integers under a ``tag`` or ``*_tag`` key are shown as group, element
    and keyword. `Path` values below `base_dir` are shown relative to it.
    Byte buffers are replaced by their length, so element values and
    pixel data never end up in the log.

    Parameters
    ----------
    base_dir : Path | None
        Directory paths are made relative to, the working directory when
        omitted.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = (base_dir or Path.cwd()).absolute()

    def _render(self, key: str, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool) and _is_tag_key(key):
            return format_tag(int(value))
        if isinstance(value, Path):
            absolute = value.absolute()
            if absolute.is_relative_to(self.base_dir):
                return str(absolute.relative_to(self.base_dir))
            return str(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return f"<{len(value)} bytes>"
        return value

    def __call__(
        self, _: WrappedLogger, __: str, event_dict: EventDict
    ) -> EventDict:
        for key, value in event_dict.items():
            event_dict[key] = self._render(key, value)
        return event_dict


def collapse_callsite(
    _: WrappedLogger, __: str, event_dict: EventDict
) -> EventDict:
    """Fold the call site parameters into a single ``where`` entry."""
    module = event_dict.pop("module", None)
    func_name = event_dict.pop("func_name", None)
    lineno = event_dict.pop("lineno", None)
    if module is not None:
        event_dict["where"] = f"{module}.{func_name}:{lineno}"
    return event_dict


class ZonedTimeStamper:
    """Stamp events with the current time in a named time zone.

    Parameters
    ----------
    fmt : str
        `strftime` format of the ``timestamp`` entry.
    timezone : str
        IANA zone name, ``UTC`` by default.

    Raises
    ------
    pytz.UnknownTimeZoneError
        If `timezone` is not a known zone.
    """

    def __init__(self, fmt: str = "%Y-%m-%dT%H:%M:%S%z", timezone: str = "UTC") -> None:
        self.fmt = fmt
        self.zone = pytz.timezone(timezone)

    def __call__(
        self, _: WrappedLogger, __: str, event_dict: EventDict
    ) -> EventDict:
        event_dict["timestamp"] = datetime.datetime.now(self.zone).strftime(self.fmt)
        return event_dict
