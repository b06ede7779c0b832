import plistlib
import time

import pytest

from idevtools.lockdown_settings import (
    ACCESSIBILITY_DOMAIN,
    LANGUAGE_DOMAIN,
    AccessibilitySetting,
    LanguageConfiguration,
    accessibility_request,
    interpret_accessibility_value,
    language_from_values,
    language_requests,
    time_requests,
)
from idevtools.lockdown_values import LockdownValueError


@pytest.mark.parametrize("setting", list(AccessibilitySetting))
@pytest.mark.parametrize("enabled", [True, False])
def test_accessibility_request(setting, enabled):
    request = accessibility_request(setting, enabled)
    assert request["Key"] == setting.value
    assert request["Domain"] == "com.apple.Accessibility"
    assert request["Request"] == "SetValue"
    assert request["Value"] is enabled


@pytest.mark.parametrize(
    "setting, key",
    [
        (AccessibilitySetting.ASSISTIVE_TOUCH, "AssistiveTouchEnabledByiTunes"),
        (AccessibilitySetting.VOICE_OVER, "VoiceOverTouchEnabledByiTunes"),
        (AccessibilitySetting.ZOOM_TOUCH, "ZoomTouchEnabledByiTunes"),
    ],
)
def test_accessibility_request_uses_itunes_key(setting, key):
    assert accessibility_request(setting, True)["Key"] == key


def test_accessibility_request_round_trips_through_plist():
    request = accessibility_request(AccessibilitySetting.ZOOM_TOUCH, True)
    assert plistlib.loads(plistlib.dumps(request)) == request


@pytest.mark.parametrize("setting", list(AccessibilitySetting))
def test_interpret_values(setting):
    assert interpret_accessibility_value(setting, 1) is True
    assert interpret_accessibility_value(setting, 0) is False


def test_interpret_none_raises():
    with pytest.raises(LockdownValueError, match="re-pairing"):
        interpret_accessibility_value(AccessibilitySetting.VOICE_OVER, None)


@pytest.mark.parametrize("value", [True, False, "false", 1.0])
def test_interpret_wrong_type_raises(value):
    with pytest.raises(LockdownValueError, match="iOS 11"):
        interpret_accessibility_value(AccessibilitySetting.ASSISTIVE_TOUCH, value)


def test_interpret_out_of_range_raises():
    with pytest.raises(LockdownValueError, match="received 2 instead"):
        interpret_accessibility_value(AccessibilitySetting.ZOOM_TOUCH, 2)


def test_interpret_error_names_the_key():
    with pytest.raises(LockdownValueError) as info:
        interpret_accessibility_value(AccessibilitySetting.ZOOM_TOUCH, None)
    assert f"{ACCESSIBILITY_DOMAIN}.ZoomTouchEnabledByiTunes" in str(info.value)


def test_language_requests_empty():
    assert language_requests(LanguageConfiguration()) == []


def test_language_requests_locale_only():
    requests = language_requests(LanguageConfiguration(locale="de_DE"))
    assert len(requests) == 1
    assert requests[0]["Key"] == "Locale"
    assert requests[0]["Value"] == "de_DE"
    assert requests[0]["Domain"] == "com.apple.international"


def test_language_requests_order():
    requests = language_requests(LanguageConfiguration(language="de", locale="de_DE"))
    assert [r["Key"] for r in requests] == ["Locale", "Language"]
    assert all(r["Domain"] == LANGUAGE_DOMAIN for r in requests)
    assert requests[1]["Value"] == "de"


def test_language_from_values():
    config = language_from_values("en", "en_US", ["en_US", "de_DE"], ["en", "de"])
    assert config == LanguageConfiguration(
        language="en",
        locale="en_US",
        supported_locales=["en_US", "de_DE"],
        supported_languages=["en", "de"],
    )


def test_language_from_values_without_lists():
    config = language_from_values("en", "en_US", None, None)
    assert config.supported_locales == []
    assert config.supported_languages == []


def test_language_from_values_rejects_non_string():
    with pytest.raises(LockdownValueError):
        language_from_values(None, "en_US", [], [])


def test_time_requests():
    first, second = time_requests("Europe/Berlin", 1234)
    assert first["Key"] == "TimeIntervalSince1970"
    assert first["Value"] == 1234
    assert "Domain" not in first
    assert second["Key"] == "TimeZone"
    assert second["Value"] == "Europe/Berlin"
    assert "Domain" not in second


def test_time_requests_default_uses_now():
    before = int(time.time())
    first, _ = time_requests("Europe/Berlin")
    after = int(time.time())
    assert before <= first["Value"] <= after