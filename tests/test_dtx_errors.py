import pytest

from idevtools.dtx_errors import (
    DtxError,
    IncompleteError,
    OutOfSyncError,
    is_incomplete,
    is_out_of_sync,
)


def test_out_of_sync_error_is_detected():
    err = OutOfSyncError("Wrong Magic")
    assert is_out_of_sync(err) is True
    assert is_incomplete(err) is False


def test_incomplete_error_is_detected():
    err = IncompleteError("Less than 4 bytes")
    assert is_incomplete(err) is True
    assert is_out_of_sync(err) is False


def test_message_is_kept():
    err = IncompleteError("Payload missing")
    assert str(err) == "Payload missing"
    assert err.message == "Payload missing"


@pytest.mark.parametrize("err", [ValueError("x"), None, DtxError("plain")])
def test_other_errors_are_neither(err):
    assert is_out_of_sync(err) is False
    assert is_incomplete(err) is False


def test_errors_can_be_caught_as_base_class():
    with pytest.raises(DtxError) as info:
        raise OutOfSyncError("bad")
    assert is_out_of_sync(info.value) is True