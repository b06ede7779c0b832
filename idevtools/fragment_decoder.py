"""Reassembly of fragmented DTX messages."""

from __future__ import annotations

import struct

from .dtx_message import DTX_MESSAGE_HEADER_LENGTH, Message


class FragmentDecoder:
    """Collects the fragments of one message and merges them into a single message.

    The first fragment holds only the 32 byte header announcing the total length;
    each later fragment carries a header followed by a slice of the message body.
    """

    def __init__(self, first_fragment: Message) -> None:
        if not first_fragment.is_first_fragment():
            raise ValueError("Illegal state, need to pass in a first fragment")
        self._first = first_fragment
        self._fragments: list[Message | None] = [None] * (first_fragment.fragments - 1)
        self._finished = False

    def add_fragment(self, fragment: Message) -> bool:
        """Add a fragment; return False if it does not belong to this message."""
        if not self._first.message_is_first_fragment_for(fragment):
            return False
        index = fragment.fragment_index - 1
        if index >= len(self._fragments):
            raise ValueError(
                f"fragment index {fragment.fragment_index} out of range for "
                f"{self._first.fragments} fragments"
            )
        self._fragments[index] = fragment
        if fragment.is_last_fragment():
            self._finished = True
        return True

    def has_finished(self) -> bool:
        """True once the last fragment has been added."""
        return self._finished

    def extract(self) -> bytes:
        """Return the assembled, unfragmented message bytes."""
        if not self._finished:
            raise RuntimeError("illegal state: not all fragments received")
        size = self._first.message_length + DTX_MESSAGE_HEADER_LENGTH
        header = bytearray(self._first.fragment_bytes[:DTX_MESSAGE_HEADER_LENGTH])
        header.extend(bytes(DTX_MESSAGE_HEADER_LENGTH - len(header)))
        struct.pack_into("<HH", header, 8, 0, 1)
        body = b"".join(frag.fragment_bytes for frag in self._fragments if frag is not None)
        assembled = bytes(header) + body
        return assembled[:size].ljust(size, b"\x00")