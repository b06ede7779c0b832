"""DTX message model and encoder."""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .primitive_dictionary import PrimitiveDictionary

DTX_MESSAGE_MAGIC = 0x795B3D1F
DTX_MESSAGE_HEADER_LENGTH = 32
DTX_MESSAGE_PAYLOAD_HEADER_LENGTH = 16
DTX_RESERVED_BITS = 0x0

_AUX_HEADER_LENGTH = 16
_AUX_BUFFER_SIZE = 496

_MAGIC = struct.Struct(">I")
_HEADER_REST = struct.Struct("<IHHIIIII")
_FOUR_U32 = struct.Struct("<IIII")


class MessageType(IntEnum):
    """Known DTX payload message types."""

    ACK = 0x0
    UNKNOWN_TYPE_ONE = 0x1
    METHOD_INVOCATION = 0x2
    RESPONSE_WITH_RETURN_VALUE_IN_PAYLOAD = 0x3
    ERROR = 0x4
    LZ4_COMPRESSED = 0x0707


_TYPE_NAMES = {
    MessageType.RESPONSE_WITH_RETURN_VALUE_IN_PAYLOAD: "ResponseWithReturnValueInPayload",
    MessageType.METHOD_INVOCATION: "Methodinvocation",
    MessageType.ACK: "Ack",
    MessageType.LZ4_COMPRESSED: "LZ4Compressed",
    MessageType.UNKNOWN_TYPE_ONE: "UnknownType1",
    MessageType.ERROR: "Error",
}


@dataclass
class PayloadHeader:
    """Message type and payload lengths that follow the 32 byte header."""

    message_type: int = 0
    auxiliary_length: int = 0
    total_payload_length: int = 0
    flags: int = 0


@dataclass
class AuxiliaryHeader:
    """Header preceding the auxiliary dictionary; only the size matters."""

    buffer_size: int = 0
    unknown: int = 0
    auxiliary_size: int = 0
    unknown2: int = 0

    def __str__(self) -> str:
        return (
            f"BufSiz:{self.buffer_size} Unknown:{self.unknown} "
            f"AuxSiz:{self.auxiliary_size} Unknown2:{self.unknown2}"
        )


@dataclass
class Message:
    """A decoded DTX message: header, payload header, auxiliary and payload."""

    fragments: int = 0
    fragment_index: int = 0
    message_length: int = 0
    identifier: int = 0
    conversation_index: int = 0
    channel_code: int = 0
    expects_reply: bool = False
    payload_header: PayloadHeader = field(default_factory=PayloadHeader)
    payload: list[Any] = field(default_factory=list)
    auxiliary_header: AuxiliaryHeader = field(default_factory=AuxiliaryHeader)
    auxiliary: PrimitiveDictionary = field(default_factory=PrimitiveDictionary)
    raw_bytes: bytes = b""
    fragment_bytes: bytes = b""

    def payload_length(self) -> int:
        """Length of the payload without the auxiliary part."""
        return self.payload_header.total_payload_length - self.payload_header.auxiliary_length

    def has_auxiliary(self) -> bool:
        return self.payload_header.auxiliary_length > 0

    def has_payload(self) -> bool:
        return self.payload_length() > 0

    def is_first_fragment(self) -> bool:
        """True for the header-only first message of a fragmented series."""
        return self.fragments > 1 and self.fragment_index == 0

    def is_last_fragment(self) -> bool:
        return self.fragments > 1 and self.fragments - self.fragment_index == 1

    def is_fragment(self) -> bool:
        return self.fragments > 1

    def message_is_first_fragment_for(self, other: Message) -> bool:
        """True if this is the first fragment and ``other`` a later fragment of it."""
        if not self.is_first_fragment():
            return False
        return (
            self.identifier == other.identifier
            and self.fragments == other.fragments
            and other.fragment_index > 0
        )

    def has_error(self) -> bool:
        return self.payload_header.message_type == MessageType.ERROR

    def _type_name(self) -> str:
        message_type = self.payload_header.message_type
        try:
            return _TYPE_NAMES[MessageType(message_type)]
        except ValueError:
            return f"Unknown:{message_type}"

    def __str__(self) -> str:
        e = "e" if self.expects_reply else ""
        return (
            f"i{self.identifier}.{self.conversation_index}{e} c{self.channel_code} "
            f"t:{self._type_name()} mlen:{self.message_length} "
            f"aux_len{self.payload_header.auxiliary_length} paylen{self.payload_length()}"
        )

    def debug_string(self) -> str:
        """Describe the message together with its payload and auxiliary."""
        if self.payload_header.message_type == MessageType.ACK:
            return str(self)
        payload = "none"
        if self.has_payload() and self.payload:
            payload = json.dumps(self.payload[0], default=repr)
        if self.has_auxiliary():
            return (
                f"auxheader:{self.auxiliary_header}\naux:{self.auxiliary}\n"
                f"payload: {payload} \nrawbytes:{self.raw_bytes.hex()}"
            )
        return f"no aux,payload: {payload} \nrawbytes:{self.raw_bytes.hex()}"


def _header(
    message_length: int,
    identifier: int,
    conversation_index: int,
    channel_code: int,
    expects_reply: bool,
) -> bytes:
    return _MAGIC.pack(DTX_MESSAGE_MAGIC) + _HEADER_REST.pack(
        DTX_MESSAGE_HEADER_LENGTH,
        0,
        1,
        message_length & 0xFFFFFFFF,
        identifier & 0xFFFFFFFF,
        conversation_index & 0xFFFFFFFF,
        channel_code & 0xFFFFFFFF,
        1 if expects_reply else 0,
    )


def encode(
    identifier: int,
    conversation_index: int,
    channel_code: int,
    expects_reply: bool,
    message_type: int,
    payload: bytes,
    auxiliary: PrimitiveDictionary | None = None,
) -> bytes:
    """Encode a complete DTX message ready to be sent to a device."""
    aux_bytes = (auxiliary or PrimitiveDictionary()).to_bytes()
    payload = bytes(payload)
    aux_size = len(aux_bytes)
    aux_with_header = aux_size + _AUX_HEADER_LENGTH if aux_size else 0
    message_length = DTX_MESSAGE_PAYLOAD_HEADER_LENGTH + aux_with_header + len(payload)

    parts = [
        _header(message_length, identifier, conversation_index, channel_code, expects_reply),
        _FOUR_U32.pack(
            int(message_type) & 0xFFFFFFFF,
            aux_with_header,
            len(payload) + aux_with_header,
            0,
        ),
    ]
    if aux_size:
        parts.append(_FOUR_U32.pack(_AUX_BUFFER_SIZE, 0, aux_size, 0))
        parts.append(aux_bytes)
    parts.append(payload)
    return b"".join(parts)


def build_ack_message(msg: Message) -> bytes:
    """Build the 48 byte acknowledgement for a message that expects a reply."""
    return _header(
        DTX_MESSAGE_PAYLOAD_HEADER_LENGTH,
        msg.identifier,
        msg.conversation_index + 1,
        msg.channel_code,
        False,
    ) + _FOUR_U32.pack(MessageType.ACK, 0, 0, 0)