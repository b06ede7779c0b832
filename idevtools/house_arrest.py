"""Requests and responses of the house_arrest container service."""

from __future__ import annotations

import plistlib
from typing import Any
from xml.parsers.expat import ExpatError

SERVICE_NAME = "com.apple.mobile.house_arrest"


class VendContainerError(Exception):
    """Raised when the device refuses to vend an app container."""


def vend_container_request(bundle_id: str) -> dict[str, Any]:
    """The request giving access to the container of the app ``bundle_id``."""
    return {"Command": "VendContainer", "Identifier": bundle_id}


def check_vend_response(data: bytes) -> dict[str, Any]:
    """Return the parsed response if the container was vended, else raise."""
    try:
        response = plistlib.loads(bytes(data))
    except (ValueError, ExpatError, IndexError, KeyError, TypeError, OverflowError) as exc:
        raise VendContainerError(f"invalid vend container response: {exc}") from exc
    if not isinstance(response, dict):
        raise VendContainerError("unknown error during vendcontainer")
    if response.get("Status") == "Complete":
        return response
    error = response.get("Error")
    if isinstance(error, str) and error:
        raise VendContainerError(error)
    raise VendContainerError("unknown error during vendcontainer")