"""Lockdown requests for accessibility, language and time settings."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .lockdown_values import LockdownValueError, set_value_request

_log = logging.getLogger(__name__)

ACCESSIBILITY_DOMAIN = "com.apple.Accessibility"
LANGUAGE_DOMAIN = "com.apple.international"


class AccessibilitySetting(Enum):
    """Accessibility features that can be toggled through their iTunes keys."""

    ASSISTIVE_TOUCH = "AssistiveTouchEnabledByiTunes"
    VOICE_OVER = "VoiceOverTouchEnabledByiTunes"
    ZOOM_TOUCH = "ZoomTouchEnabledByiTunes"

    @property
    def key(self) -> str:
        return self.value


@dataclass
class LanguageConfiguration:
    """A language and locale, with the lists the device supports."""

    language: str = ""
    locale: str = ""
    supported_locales: list[str] = field(default_factory=list)
    supported_languages: list[str] = field(default_factory=list)


def accessibility_request(setting: AccessibilitySetting, enabled: bool) -> dict[str, Any]:
    """A SetValue request enabling or disabling ``setting``."""
    _log.debug("Setting %s: %s", setting.key, enabled)
    return set_value_request(setting.key, ACCESSIBILITY_DOMAIN, bool(enabled))


def interpret_accessibility_value(setting: AccessibilitySetting, value: Any) -> bool:
    """Turn the device's answer for ``setting`` into a bool.

    The device answers 0 or 1; anything else raises LockdownValueError.
    """
    name = f"{ACCESSIBILITY_DOMAIN}.{setting.key}"
    if value is None:
        raise LockdownValueError(
            f"Received null response when querying {name}. Try re-pairing the device."
        )
    if isinstance(value, bool) or not isinstance(value, int):
        raise LockdownValueError(
            f"Expected unit64 0 or 1 when querying {name}, but received "
            f"{type(value).__name__}:{value!r}. Is this device running iOS 11+?"
        )
    if value not in (0, 1):
        raise LockdownValueError(
            f"Expected a value of 0 or 1 for {name}, received {value} instead!"
        )
    return value == 1


def language_requests(config: LanguageConfiguration) -> list[dict[str, Any]]:
    """SetValue requests for the non-empty locale and language, locale first."""
    requests = []
    if config.locale:
        _log.debug("Setting locale: %s", config.locale)
        requests.append(set_value_request("Locale", LANGUAGE_DOMAIN, config.locale))
    if config.language:
        _log.debug("Setting language: %s", config.language)
        requests.append(set_value_request("Language", LANGUAGE_DOMAIN, config.language))
    if not requests:
        _log.debug("language configuration is empty, no changes made")
    return requests


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


def language_from_values(
    language: Any,
    locale: Any,
    supported_locales: Any,
    supported_languages: Any,
) -> LanguageConfiguration:
    """Build a LanguageConfiguration from the raw values the device returned."""
    if not isinstance(language, str):
        raise LockdownValueError(f"expected a string language, got {language!r}")
    if not isinstance(locale, str):
        raise LockdownValueError(f"expected a string locale, got {locale!r}")
    return LanguageConfiguration(
        language=language,
        locale=locale,
        supported_locales=_string_list(supported_locales),
        supported_languages=_string_list(supported_languages),
    )


def time_requests(time_zone: str, timestamp: int | None = None) -> list[dict[str, Any]]:
    """SetValue requests for the device clock and time zone.

    Without ``timestamp`` the current host time is used.
    """
    if timestamp is None:
        timestamp = int(time.time())
    return [
        set_value_request("TimeIntervalSince1970", "", int(timestamp)),
        set_value_request("TimeZone", "", time_zone),
    ]