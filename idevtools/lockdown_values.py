"""Requests and responses for reading and writing lockdown values."""

from __future__ import annotations

import plistlib
from dataclasses import dataclass
from typing import Any
from xml.parsers.expat import ExpatError

LABEL = "idevtools.control"


class LockdownValueError(Exception):
    """Raised when the device rejects or returns an unusable lockdown value."""


@dataclass
class ValueResponse:
    """The response to a GetValue or SetValue request."""

    key: str = ""
    request: str = ""
    error: str = ""
    domain: str = ""
    value: Any = None


def _load_plist(data: bytes) -> Any:
    try:
        return plistlib.loads(bytes(data))
    except (ValueError, ExpatError, IndexError, KeyError, TypeError, OverflowError) as exc:
        raise LockdownValueError(f"invalid plist: {exc}") from exc


def _request(request: str, key: str, domain: str, value: Any) -> dict[str, Any]:
    message: dict[str, Any] = {"Label": LABEL}
    if key:
        message["Key"] = key
    message["Request"] = request
    if domain:
        message["Domain"] = domain
    if value is not None:
        message["Value"] = value
    return message


def get_value_request(key: str = "", domain: str = "") -> dict[str, Any]:
    """A GetValue request; an empty key asks for all values."""
    return _request("GetValue", key, domain, None)


def set_value_request(key: str, domain: str, value: Any) -> dict[str, Any]:
    """A SetValue request for ``key`` in ``domain``."""
    return _request("SetValue", key, domain, value)


def parse_value_response(data: bytes) -> ValueResponse:
    """Parse a value response; undecodable input gives an empty response."""
    try:
        obj = _load_plist(data)
    except LockdownValueError:
        return ValueResponse()
    if not isinstance(obj, dict):
        return ValueResponse()

    def text(name: str) -> str:
        item = obj.get(name)
        return item if isinstance(item, str) else ""

    return ValueResponse(
        key=text("Key"),
        request=text("Request"),
        error=text("Error"),
        domain=text("Domain"),
        value=obj.get("Value"),
    )


def check_set_value_response(key: str, value: Any, response: ValueResponse) -> None:
    """Raise LockdownValueError if the device reported an error for a SetValue."""
    if response.error:
        raise LockdownValueError(
            f"Failed setting '{key}' to '{value}' with err: {response.error}"
        )


def product_version_from_response(response: ValueResponse) -> str:
    """The ProductVersion string, e.g. "10.3", from a GetValue response."""
    if not isinstance(response.value, str):
        raise LockdownValueError(f"could not convert response to string: {response.value!r}")
    return response.value


def parse_all_values(data: bytes) -> dict[str, Any]:
    """The dictionary of all device values from a GetValue response with no key."""
    obj = _load_plist(data)
    values = obj.get("Value") if isinstance(obj, dict) else None
    if not isinstance(values, dict):
        raise LockdownValueError(f"Failed converting lockdown response:{obj!r}")
    return values