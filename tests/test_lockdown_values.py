import plistlib

import pytest

from idevtools.lockdown_values import (
    LABEL,
    LockdownValueError,
    ValueResponse,
    check_set_value_response,
    get_value_request,
    parse_all_values,
    parse_value_response,
    product_version_from_response,
    set_value_request,
)


def test_get_value_request_for_all_values_omits_key_and_domain():
    assert get_value_request("") == {"Label": LABEL, "Request": "GetValue"}


def test_get_value_request_with_domain():
    request = get_value_request("Language", "com.apple.international")
    assert request["Key"] == "Language"
    assert request["Domain"] == "com.apple.international"
    assert request["Request"] == "GetValue"
    assert "Value" not in request


def test_set_value_request_keeps_false_value():
    request = set_value_request("AssistiveTouchEnabledByiTunes", "com.apple.Accessibility", False)
    assert request["Request"] == "SetValue"
    assert request["Value"] is False
    assert plistlib.loads(plistlib.dumps(request)) == request


def test_set_value_request_without_domain():
    request = set_value_request("TimeZone", "", "Europe/Berlin")
    assert "Domain" not in request
    assert request["Value"] == "Europe/Berlin"


def test_parse_value_response_round_trip():
    data = plistlib.dumps(
        {"Key": "ProductVersion", "Request": "GetValue", "Value": "10.3"},
        fmt=plistlib.FMT_BINARY,
    )
    response = parse_value_response(data)
    assert response.key == "ProductVersion"
    assert response.request == "GetValue"
    assert response.error == ""
    assert product_version_from_response(response) == "10.3"


def test_parse_value_response_invalid_is_empty():
    assert parse_value_response(b"junk") == ValueResponse()


def test_product_version_requires_string():
    with pytest.raises(LockdownValueError):
        product_version_from_response(ValueResponse(value=5))


def test_check_set_value_response_raises_device_error():
    response = parse_value_response(plistlib.dumps({"Error": "SetProhibited"}))
    with pytest.raises(LockdownValueError, match="SetProhibited"):
        check_set_value_response("Locale", "en_US", response)


def test_check_set_value_response_accepts_success():
    response = parse_value_response(plistlib.dumps({"Request": "SetValue"}))
    check_set_value_response("Locale", "en_US", response)
    assert response.error == ""


def test_parse_all_values():
    values = {"ProductVersion": "15.4", "DeviceName": "test-device"}
    data = plistlib.dumps({"Request": "GetValue", "Value": values})
    assert parse_all_values(data) == values


def test_parse_all_values_without_dictionary_raises():
    with pytest.raises(LockdownValueError):
        parse_all_values(plistlib.dumps({"Request": "GetValue", "Value": "x"}))


def test_parse_all_values_invalid_plist_raises():
    with pytest.raises(LockdownValueError):
        parse_all_values(b"not a plist")