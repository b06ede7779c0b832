"""Decoding of DTX messages from streams and byte buffers."""

from __future__ import annotations

import logging
import plistlib
import struct
from typing import Any, BinaryIO

import lz4.block

from .dtx_errors import DtxError, IncompleteError, OutOfSyncError
from .dtx_message import (
    DTX_MESSAGE_HEADER_LENGTH,
    DTX_MESSAGE_MAGIC,
    AuxiliaryHeader,
    Message,
    MessageType,
    PayloadHeader,
)
from .primitive_dictionary import decode_auxiliary

_log = logging.getLogger(__name__)

_BV41 = 0x62763431
_MAGIC = struct.Struct(">I")
_U32 = struct.Struct("<I")
_HEADER_FIELDS = struct.Struct("<HHIIIII")
_FOUR_U32 = struct.Struct("<IIII")

_PAYLOAD_HEADER_END = 48
_AUX_HEADER_END = 64


def _read_header(data: bytes) -> Message:
    (
        fragment_index,
        fragments,
        message_length,
        identifier,
        conversation_index,
        channel_code,
        expects_reply,
    ) = _HEADER_FIELDS.unpack_from(data, 8)
    return Message(
        fragments=fragments,
        fragment_index=fragment_index,
        message_length=message_length,
        identifier=identifier,
        conversation_index=conversation_index,
        channel_code=channel_code,
        expects_reply=expects_reply == 1,
    )


def _parse_payload_header(data: bytes, offset: int = 0) -> PayloadHeader:
    return PayloadHeader(*_FOUR_U32.unpack_from(data, offset))


def _parse_auxiliary_header(data: bytes, offset: int = 0) -> AuxiliaryHeader:
    return AuxiliaryHeader(*_FOUR_U32.unpack_from(data, offset))


def _unarchive(data: bytes) -> list[Any]:
    """Load a binary plist payload; keyed archives are resolved to their root object."""
    try:
        obj = plistlib.loads(bytes(data))
    except (ValueError, struct.error, IndexError, KeyError, OverflowError, TypeError) as exc:
        raise ValueError(f"could not unarchive payload: {exc}") from exc
    if isinstance(obj, dict) and obj.get("$archiver") == "NSKeyedArchiver":
        top = obj.get("$top")
        objects = obj.get("$objects")
        root = top.get("root") if isinstance(top, dict) else None
        if isinstance(root, plistlib.UID) and isinstance(objects, list):
            if root.data >= len(objects):
                raise ValueError(f"root object {root.data} missing from archive")
            return [objects[root.data]]
    return [obj]


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            got = size - remaining
            raise EOFError(f"expected {size} bytes, got {got}")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def read_message(stream: BinaryIO) -> Message:
    """Read one whole message from a blocking binary stream."""
    header = _read_exact(stream, DTX_MESSAGE_HEADER_LENGTH)
    if _MAGIC.unpack_from(header)[0] != DTX_MESSAGE_MAGIC:
        raise OutOfSyncError(f"Wrong Magic: {header[:4].hex()}")
    result = _read_header(header)

    if result.is_fragment():
        if result.is_first_fragment():
            result.fragment_bytes = header
            return result
        result.fragment_bytes = _read_exact(stream, result.message_length)
        return result

    result.payload_header = _parse_payload_header(_read_exact(stream, 16))

    if result.has_auxiliary():
        result.auxiliary_header = _parse_auxiliary_header(_read_exact(stream, 16))
        aux_bytes = _read_exact(stream, result.auxiliary_header.auxiliary_size)
        result.auxiliary = decode_auxiliary(aux_bytes)

    result.raw_bytes = b""
    if result.has_payload():
        result.payload = _unarchive(_read_exact(stream, result.payload_length()))
    return result


def _parse_payload_bytes(msg: Message, raw: bytes) -> list[Any]:
    offset = 0
    if msg.has_payload():
        offset = _PAYLOAD_HEADER_END
        if msg.has_auxiliary():
            offset += msg.payload_header.auxiliary_length
    body = raw[offset:]
    message_type = msg.payload_header.message_type
    if message_type == MessageType.UNKNOWN_TYPE_ONE:
        return [body]
    if message_type == MessageType.LZ4_COMPRESSED:
        try:
            uncompressed = decompress(body)
        except ValueError as exc:
            _log.info(
                "skipping lz4 compressed msg with %d bytes, decompression error %s",
                len(body),
                exc,
            )
        else:
            _log.info("lz4 compressed %d bytes/ %d uncompressed", len(body), len(uncompressed))
        return [body]
    return _unarchive(body)


def decode_non_blocking(data: bytes) -> tuple[Message, bytes]:
    """Decode one message from the front of ``data``; return it and the bytes left over.

    Raises IncompleteError when more bytes are needed and OutOfSyncError when
    the buffer does not start with the magic bytes.
    """
    data = bytes(data)
    if len(data) < 4:
        raise IncompleteError("Less than 4 bytes")
    if _MAGIC.unpack_from(data)[0] != DTX_MESSAGE_MAGIC:
        raise OutOfSyncError(f"Wrong Magic: {data[:4].hex()}")
    if len(data) < DTX_MESSAGE_HEADER_LENGTH:
        raise IncompleteError("Less than 32 bytes")
    if _U32.unpack_from(data, 4)[0] != DTX_MESSAGE_HEADER_LENGTH:
        raise DtxError(f"Incorrect Header length, should be 32: {data[4:8].hex()}")

    result = _read_header(data)
    if result.is_first_fragment():
        result.fragment_bytes = data[:DTX_MESSAGE_HEADER_LENGTH]
        return result, data[DTX_MESSAGE_HEADER_LENGTH:]
    if result.is_fragment():
        end = result.message_length + DTX_MESSAGE_HEADER_LENGTH
        if len(data) < end:
            raise IncompleteError("Fragment lacks bytes")
        result.fragment_bytes = data[DTX_MESSAGE_HEADER_LENGTH:end]
        return result, data[end:]

    if len(data) < _PAYLOAD_HEADER_END:
        raise IncompleteError("Payload Header missing")
    result.payload_header = _parse_payload_header(data, DTX_MESSAGE_HEADER_LENGTH)

    if result.has_auxiliary():
        if len(data) < _AUX_HEADER_END:
            raise IncompleteError("Aux Header missing")
        result.auxiliary_header = _parse_auxiliary_header(data, _PAYLOAD_HEADER_END)
        aux_end = _PAYLOAD_HEADER_END + result.payload_header.auxiliary_length
        if len(data) < aux_end:
            raise IncompleteError("Aux Payload missing")
        result.auxiliary = decode_auxiliary(data[_AUX_HEADER_END:aux_end])

    total = result.message_length + DTX_MESSAGE_HEADER_LENGTH
    if len(data) < total:
        raise IncompleteError("Payload missing")
    result.raw_bytes = data[:total]

    if result.has_payload():
        result.payload = _parse_payload_bytes(result, result.raw_bytes)

    return result, data[total:]


def decompress(data: bytes) -> bytes:
    """Decompress an LZ4 payload made of 'bv41' chunks that form one LZ4 block."""
    data = bytes(data)
    if len(data) < 4:
        raise ValueError("lz4 payload shorter than 4 bytes")
    total_uncompressed = _U32.unpack_from(data, 0)[0]
    offset = 4
    chunks = []
    while len(data) - offset >= 4 and _MAGIC.unpack_from(data, offset)[0] == _BV41:
        if len(data) - offset < 12:
            raise ValueError("truncated lz4 chunk header")
        compressed_size = _U32.unpack_from(data, offset + 8)[0]
        start = offset + 12
        end = start + compressed_size
        if end > len(data):
            raise ValueError("truncated lz4 chunk")
        chunks.append(data[start:end])
        offset = end
    try:
        return lz4.block.decompress(b"".join(chunks), uncompressed_size=total_uncompressed)
    except (lz4.block.LZ4BlockError, ValueError) as exc:
        raise ValueError(f"lz4 decompression failed: {exc}") from exc