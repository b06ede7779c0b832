import struct

import pytest

from idevtools.dtx_decoder import decode_non_blocking
from idevtools.dtx_message import DTX_MESSAGE_HEADER_LENGTH, DTX_MESSAGE_MAGIC, Message
from idevtools.fragment_decoder import FragmentDecoder


def _create_header(fragment_index, fragment_count, identifier, length, payload):
    data = bytearray(32 + len(payload))
    struct.pack_into(">I", data, 0, DTX_MESSAGE_MAGIC)
    struct.pack_into(
        "<IHHIIII", data, 4,
        DTX_MESSAGE_HEADER_LENGTH, fragment_index, fragment_count, length, identifier, 0, 0,
    )
    data[32:] = payload
    msg, _ = decode_non_blocking(bytes(data))
    return msg


def _create_fragmented_message(identifier):
    payload = b"payload"
    first = _create_header(0, 3, identifier, len(payload), b"")
    second = _create_header(1, 3, identifier, 4, payload[:4])
    third = _create_header(2, 3, identifier, 3, payload[4:])
    return first, second, third, payload


def _other_frag():
    return Message(fragment_index=1, fragments=3, identifier=3)


def test_defragmentation():
    identifier = 5
    first, second, third, payload = _create_fragmented_message(identifier)
    decoder = FragmentDecoder(first)
    assert decoder.add_fragment(_other_frag()) is False
    assert decoder.has_finished() is False

    assert decoder.add_fragment(second) is True
    assert decoder.has_finished() is False

    assert decoder.add_fragment(third) is True
    assert decoder.has_finished() is True

    result = decoder.extract()
    index, count, length, ident = struct.unpack_from("<HHII", result, 8)
    assert result[DTX_MESSAGE_HEADER_LENGTH:] == payload
    assert index == 0
    assert count == 1
    assert length == len(payload)
    assert ident == identifier


def test_fragment_order_does_not_matter():
    first, second, third, payload = _create_fragmented_message(9)
    decoder = FragmentDecoder(first)
    assert decoder.add_fragment(third)
    assert decoder.add_fragment(second)
    assert decoder.extract()[DTX_MESSAGE_HEADER_LENGTH:] == payload


def test_new_decoder_requires_first_fragment():
    _, second, _, _ = _create_fragmented_message(4)
    with pytest.raises(ValueError):
        FragmentDecoder(second)


def test_extract_before_finished_raises():
    first, _, _, _ = _create_fragmented_message(3)
    decoder = FragmentDecoder(first)
    with pytest.raises(RuntimeError):
        decoder.extract()


def test_missing_middle_fragment_is_zero_padded():
    first, _, third, _ = _create_fragmented_message(6)
    decoder = FragmentDecoder(first)
    assert decoder.add_fragment(third)
    assert decoder.has_finished()
    result = decoder.extract()
    assert len(result) == DTX_MESSAGE_HEADER_LENGTH + 7
    assert result[DTX_MESSAGE_HEADER_LENGTH:] == b"oad\x00\x00\x00\x00"


def test_fragment_index_out_of_range():
    first, _, _, _ = _create_fragmented_message(8)
    decoder = FragmentDecoder(first)
    with pytest.raises(ValueError):
        decoder.add_fragment(Message(fragment_index=5, fragments=3, identifier=8))