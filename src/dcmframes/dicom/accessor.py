"""Typed, absence-aware reads over a `pydicom.Dataset`.

`DataSetAccessor` is the single place where element values are turned into
Python scalars. Every read returns ``None`` when the element is missing or
holds no value, so callers never have to guard against `KeyError` or
`AttributeError`. Values that pydicom left undecoded (``OB``/``UN`` bytes)
are unpacked with `struct` using the element size implied by the read.
"""

from __future__ import annotations

import struct
from typing import Any, Callable, TypeAlias

from pydicom.dataelem import DataElement
from pydicom.dataset import Dataset
from pydicom.multival import MultiValue
from pydicom.sequence import Sequence

from dcmframes.loggers import logger

__all__ = ["DataSetAccessor", "Number"]

Number: TypeAlias = int | float

_STRUCT_SIZES = {"B": 1, "b": 1, "H": 2, "h": 2, "L": 4, "l": 4, "f": 4, "d": 8}


def _is_empty(value: Any) -> bool:  # noqa: ANN401
    return value is None or (
        isinstance(value, (str, bytes, list, MultiValue, Sequence))
        and len(value) == 0
    )


class DataSetAccessor:
    """Read-only view over one data set (root or a sequence item).

    Parameters
    ----------
    dataset : pydicom.Dataset
        The parsed data set. It is never modified.
    little_endian : bool | None
        Byte order used to unpack raw byte values. Defaults to the encoding
        the data set was read with, or little endian for in-memory data sets.
    """

    def __init__(self, dataset: Dataset, little_endian: bool | None = None) -> None:
        self.dataset = dataset
        if little_endian is None:
            encoding = getattr(dataset, "original_encoding", None) or (None, None)
            little_endian = encoding[1] is not False
        self.little_endian = little_endian

    def __repr__(self) -> str:
        return f"DataSetAccessor(elements={len(self.dataset)}, little_endian={self.little_endian})"

    @property
    def byte_order(self) -> str:
        return "<" if self.little_endian else ">"

    def child(self, dataset: Dataset) -> DataSetAccessor:
        return DataSetAccessor(dataset, little_endian=self.little_endian)

    ###########################################################################
    # Elements and sequences
    ###########################################################################

    def element(self, tag: int) -> DataElement | None:
        elem = self.dataset.get(int(tag))
        return elem if isinstance(elem, DataElement) else None

    def has(self, tag: int) -> bool:
        return self.element(tag) is not None

    def items(self, tag: int) -> list[Dataset]:
        """Items of the sequence at `tag`, empty when absent or not a sequence."""
        elem = self.element(tag)
        if elem is None or not isinstance(elem.value, Sequence):
            return []
        return list(elem.value)

    def item(self, tag: int, index: int = 0) -> DataSetAccessor | None:
        """Accessor for item `index` of the sequence at `tag`, if present."""
        if index < 0:
            return None
        sequence_items = self.items(tag)
        if index >= len(sequence_items):
            return None
        return self.child(sequence_items[index])

    ###########################################################################
    # Value reads
    ###########################################################################

    def raw_value(self, tag: int) -> Any:  # noqa: ANN401
        elem = self.element(tag)
        return None if elem is None else elem.value

    def raw_bytes(self, tag: int) -> bytes | None:
        value = self.raw_value(tag)
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        return None

    def string(self, tag: int) -> str | None:
        """Element value as text.

        Multi-valued elements are joined with ``\\`` as they are encoded.
        An element that is present but empty gives ``""``.
        """
        elem = self.element(tag)
        if elem is None:
            return None

        value = elem.value
        if value is None:
            return ""
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("latin-1").rstrip("\x00 ").strip()
        if isinstance(value, (MultiValue, list)):
            return "\\".join(str(v) for v in value)
        return str(value).strip()

    def value(self, tag: int, index: int = 0) -> Any:  # noqa: ANN401
        """The `index`-th value of a possibly multi-valued element."""
        value = self.raw_value(tag)
        if _is_empty(value) or index < 0:
            return None
        if isinstance(value, (MultiValue, list)):
            return value[index] if index < len(value) else None
        return value if index == 0 else None

    def _binary(self, tag: int, fmt: str, index: int) -> Number | None:
        value = self.raw_value(tag)
        if isinstance(value, (bytes, bytearray)):
            size = _STRUCT_SIZES[fmt]
            start = index * size
            if index < 0 or start + size > len(value):
                return None
            return struct.unpack_from(f"{self.byte_order}{fmt}", value, start)[0]

        item = self.value(tag, index)
        if item is None:
            return None
        try:
            return float(item) if fmt in "fd" else int(item)
        except (TypeError, ValueError):
            logger.debug("Non-numeric value", tag=int(tag), value=item)
            return None

    def uint16(self, tag: int, index: int = 0) -> int | None:
        return self._binary(tag, "H", index)  # type: ignore[return-value]

    def int16(self, tag: int, index: int = 0) -> int | None:
        return self._binary(tag, "h", index)  # type: ignore[return-value]

    def uint32(self, tag: int, index: int = 0) -> int | None:
        return self._binary(tag, "L", index)  # type: ignore[return-value]

    def int32(self, tag: int, index: int = 0) -> int | None:
        return self._binary(tag, "l", index)  # type: ignore[return-value]

    def double(self, tag: int, index: int = 0) -> float | None:
        return self._binary(tag, "d", index)  # type: ignore[return-value]

    def _from_text(
        self, tag: int, index: int, convert: Callable[[str], Number]
    ) -> Number | None:
        item = self.value(tag, index)
        if item is None:
            return None
        if isinstance(item, (bytes, bytearray)):
            parts = bytes(item).decode("latin-1").strip("\x00 ").split("\\")
            item = parts[index] if index < len(parts) else None
            if item is None:
                return None
        try:
            return convert(str(item).strip())
        except ValueError:
            logger.debug("Unparseable numeric string", tag=int(tag), value=item)
            return None

    def float_string(self, tag: int, index: int = 0) -> float | None:
        """Decimal String (DS) value as `float`."""
        return self._from_text(tag, index, float)  # type: ignore[return-value]

    def int_string(self, tag: int, index: int = 0) -> int | None:
        """Integer String (IS) value as `int`."""
        return self._from_text(tag, index, lambda s: int(float(s)))  # type: ignore[return-value]

    def numbers(self, tag: int, fmt: str = "L") -> list[Number] | None:
        """All values of a numeric element.

        Raw byte values are split into ``len(value) // size`` entries of the
        struct format `fmt`.
        """
        value = self.raw_value(tag)
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray)):
            count = len(value) // _STRUCT_SIZES[fmt]
            return list(struct.unpack_from(f"{self.byte_order}{count}{fmt}", value))
        if isinstance(value, (MultiValue, list)):
            return [float(v) if fmt in "fd" else int(v) for v in value]
        return [float(value) if fmt in "fd" else int(value)]
