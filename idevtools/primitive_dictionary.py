"""The primitive dictionary that carries DTX auxiliary arguments."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, NamedTuple

_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")


class PrimitiveType(IntEnum):
    """Type codes used inside a primitive dictionary."""

    STRING = 0x01
    BYTEARRAY = 0x02
    UINT32 = 0x03
    INT64 = 0x06
    NULL = 0x0A

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    PrimitiveType.NULL: "null",
    PrimitiveType.BYTEARRAY: "binary",
    PrimitiveType.STRING: "string",
    PrimitiveType.UINT32: "uint32",
    PrimitiveType.INT64: "int64",
}


class PrimitiveEntry(NamedTuple):
    """One key/value pair of a primitive dictionary."""

    key_type: PrimitiveType
    key: Any
    value_type: PrimitiveType
    value: Any


@dataclass
class PrimitiveDictionary:
    """Ordered key/value pairs; in practice keys are null and values are method arguments."""

    entries: list[PrimitiveEntry] = field(default_factory=list)

    def add_int32(self, value: int) -> None:
        """Append an unsigned 32-bit value with a null key."""
        self.entries.append(
            PrimitiveEntry(PrimitiveType.NULL, None, PrimitiveType.UINT32, value & 0xFFFFFFFF)
        )

    def add_bytes(self, value: bytes) -> None:
        """Append a byte array with a null key."""
        self.entries.append(
            PrimitiveEntry(PrimitiveType.NULL, None, PrimitiveType.BYTEARRAY, bytes(value))
        )

    @property
    def arguments(self) -> list[Any]:
        """The values of all entries, in order."""
        return [entry.value for entry in self.entries]

    @property
    def value_types(self) -> list[PrimitiveType]:
        return [entry.value_type for entry in self.entries]

    def to_bytes(self) -> bytes:
        """Serialize the dictionary; only null keys are supported."""
        out = bytearray()
        for entry in self.entries:
            if entry.key_type != PrimitiveType.NULL:
                raise ValueError(
                    "Encoding primitive dictionary keys is not supported. "
                    f"Unknown type: {int(entry.key_type)}"
                )
            out += _U32.pack(PrimitiveType.NULL)
            out += _encode_entry(entry.value_type, entry.value)
        return bytes(out)

    def __str__(self) -> str:
        parts = []
        for entry in self.entries:
            value_type = entry.value_type
            if value_type == PrimitiveType.BYTEARRAY:
                shown = entry.value.hex()
            elif value_type in (PrimitiveType.UINT32, PrimitiveType.INT64):
                shown = str(entry.value)
            else:
                shown = "" if entry.value is None else str(entry.value)
            parts.append(f"{{t:{_label_of(value_type)}, v:{shown}}},")
        return "[" + "".join(parts) + "]"


def _label_of(type_code: int) -> str:
    try:
        return PrimitiveType(type_code).label
    except ValueError:
        return "unknown"


def _encode_entry(value_type: int, value: Any) -> bytes:
    if value_type == PrimitiveType.NULL:
        return _U32.pack(PrimitiveType.NULL)
    if value_type == PrimitiveType.UINT32:
        return _U32.pack(PrimitiveType.UINT32) + _U32.pack(value & 0xFFFFFFFF)
    if value_type == PrimitiveType.BYTEARRAY:
        data = bytes(value)
        return _U32.pack(PrimitiveType.BYTEARRAY) + _U32.pack(len(data)) + data
    raise ValueError(f"Unknown DtxPrimitiveDictionaryType: {int(value_type)}")


def _unpack(fmt: struct.Struct, data: bytes, offset: int) -> int:
    try:
        return fmt.unpack_from(data, offset)[0]
    except struct.error as exc:
        raise ValueError(f"truncated primitive dictionary at offset {offset}") from exc


def _read_entry(data: bytes, offset: int) -> tuple[PrimitiveType, Any, int]:
    type_code = _unpack(_U32, data, offset)
    if type_code == PrimitiveType.NULL:
        return PrimitiveType.NULL, None, offset + 4
    if type_code == PrimitiveType.UINT32:
        return PrimitiveType.UINT32, _unpack(_U32, data, offset + 4), offset + 8
    if type_code == PrimitiveType.INT64:
        return PrimitiveType.INT64, _unpack(_U64, data, offset + 4), offset + 12
    if type_code in (PrimitiveType.STRING, PrimitiveType.BYTEARRAY):
        length = _unpack(_U32, data, offset + 4)
        start = offset + 8
        end = start + length
        if end > len(data):
            raise ValueError(f"truncated primitive dictionary entry at offset {offset}")
        chunk = data[start:end]
        if type_code == PrimitiveType.STRING:
            return PrimitiveType.STRING, chunk.decode("utf-8", errors="replace"), end
        return PrimitiveType.BYTEARRAY, chunk, end
    raise ValueError(
        f"Unknown DtxPrimitiveDictionaryType: {type_code}  rawbytes:{data[offset:].hex()}"
    )


def decode_auxiliary(data: bytes) -> PrimitiveDictionary:
    """Decode serialized auxiliary bytes into a PrimitiveDictionary."""
    data = bytes(data)
    entries = []
    offset = 0
    while True:
        key_type, key, offset = _read_entry(data, offset)
        value_type, value, offset = _read_entry(data, offset)
        entries.append(PrimitiveEntry(key_type, key, value_type, value))
        if offset >= len(data):
            break
    return PrimitiveDictionary(entries)