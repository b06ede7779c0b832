import struct

import pytest

from idevtools.primitive_dictionary import (
    PrimitiveDictionary,
    PrimitiveEntry,
    PrimitiveType,
    decode_auxiliary,
)


def _u32(value):
    return struct.pack("<I", value)


def test_empty_dictionary_serializes_to_nothing():
    assert PrimitiveDictionary().to_bytes() == b""


def test_int32_wire_format():
    aux = PrimitiveDictionary()
    aux.add_int32(5)
    assert aux.to_bytes() == b"\x0a\x00\x00\x00\x03\x00\x00\x00\x05\x00\x00\x00"


def test_bytes_wire_format():
    aux = PrimitiveDictionary()
    aux.add_bytes(b"abc")
    assert aux.to_bytes() == _u32(0x0A) + _u32(0x02) + _u32(3) + b"abc"


def test_round_trip():
    aux = PrimitiveDictionary()
    aux.add_int32(7)
    aux.add_bytes(b"hello")
    decoded = decode_auxiliary(aux.to_bytes())
    assert decoded.arguments == [7, b"hello"]
    assert decoded.value_types == [PrimitiveType.UINT32, PrimitiveType.BYTEARRAY]
    assert decoded == aux
    assert decoded.to_bytes() == aux.to_bytes()


def test_negative_int32_is_stored_unsigned():
    aux = PrimitiveDictionary()
    aux.add_int32(-1)
    assert decode_auxiliary(aux.to_bytes()).arguments == [0xFFFFFFFF]


def test_decode_string_and_int64():
    data = (
        _u32(0x0A) + _u32(0x01) + _u32(2) + b"hi"
        + _u32(0x0A) + _u32(0x06) + struct.pack("<Q", 2**40)
    )
    decoded = decode_auxiliary(data)
    assert decoded.arguments == ["hi", 2**40]
    assert decoded.value_types == [PrimitiveType.STRING, PrimitiveType.INT64]


def test_string_values_cannot_be_encoded():
    data = _u32(0x0A) + _u32(0x01) + _u32(2) + b"hi"
    with pytest.raises(ValueError):
        decode_auxiliary(data).to_bytes()


def test_non_null_keys_cannot_be_encoded():
    aux = PrimitiveDictionary(
        [PrimitiveEntry(PrimitiveType.UINT32, 1, PrimitiveType.UINT32, 2)]
    )
    with pytest.raises(ValueError):
        aux.to_bytes()


def test_unknown_type_is_rejected():
    with pytest.raises(ValueError):
        decode_auxiliary(_u32(0x0A) + _u32(0x99))


@pytest.mark.parametrize(
    "data",
    [b"", _u32(0x0A), _u32(0x0A) + _u32(0x03) + b"\x01", _u32(0x0A) + _u32(0x02) + _u32(10) + b"ab"],
)
def test_truncated_data_is_rejected(data):
    with pytest.raises(ValueError):
        decode_auxiliary(data)


def test_labels_of_decoded_types():
    decoded = decode_auxiliary(
        _u32(0x0A) + _u32(0x02) + _u32(1) + b"x" + _u32(0x0A) + _u32(0x0A)
    )
    assert [t.label for t in decoded.value_types] == ["binary", "null"]


def test_str_shows_each_value():
    aux = PrimitiveDictionary()
    aux.add_int32(5)
    assert str(aux) == "[{t:uint32, v:5},]"