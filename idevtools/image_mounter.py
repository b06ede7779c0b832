"""Requests and checks for the mobile image mounter service."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from .image_downloader import _parse_version

_log = logging.getLogger(__name__)

SERVICE_NAME = "com.apple.mobile.mobile_image_mounter"
IMAGE_TYPE = "Developer"

_IOS14 = (14, 0, 0)


class ImageMounterError(Exception):
    """Raised for invalid images or unexpected image mounter responses."""


def validate_path_and_load_signature(image_path: str | os.PathLike[str]) -> tuple[bytes, int]:
    """Check that ``image_path`` is a .dmg file and load its ``.signature`` companion.

    Returns the signature bytes and the image size.
    """
    path = os.fspath(image_path)
    info = os.stat(path)
    if os.path.isdir(path):
        raise ImageMounterError("provided path is a directory")
    if not path.endswith(".dmg"):
        raise ImageMounterError("provided path is not a dmg file")
    with open(path + ".signature", "rb") as handle:
        signature = handle.read()
    return signature, info.st_size


def lookup_image_request() -> dict[str, Any]:
    """The request listing the signatures of mounted developer images."""
    return {"Command": "LookupImage", "ImageType": IMAGE_TYPE}


def parse_image_list(response: Mapping[str, Any], product_version: str) -> list[bytes]:
    """The signatures of mounted images from a LookupImage response.

    Devices before iOS 14 omit the signature list when nothing is mounted.
    """
    if "Error" in response:
        raise ImageMounterError(f"device error: {response['Error']}")
    if "ImageSignature" not in response:
        if _parse_version(product_version) < _IOS14:
            return []
        raise ImageMounterError(f"invalid response: {dict(response)!r}")
    signatures = response["ImageSignature"]
    if not isinstance(signatures, list):
        return []
    result = []
    for item in signatures:
        if not isinstance(item, (bytes, bytearray)):
            raise ImageMounterError(f"could not convert {item!r} to byte slice")
        result.append(bytes(item))
    return result


def upload_request(signature: bytes, size: int) -> dict[str, Any]:
    """The request announcing an image upload of ``size`` bytes."""
    request = {
        "Command": "ReceiveBytes",
        "ImageSignature": bytes(signature),
        "ImageSize": int(size),
        "ImageType": IMAGE_TYPE,
    }
    _log.debug("sending: %r", request)
    return request


def check_status(response: Mapping[str, Any], expected: str) -> None:
    """Raise ImageMounterError unless the response's Status equals ``expected``."""
    _log.debug("received: %r", response)
    if response.get("Status") != expected:
        raise ImageMounterError(f"unexpected response: {dict(response)!r}")


def mount_request(signature: bytes) -> dict[str, Any]:
    """The request mounting the uploaded image with ``signature``."""
    request = {
        "Command": "MountImage",
        "ImageSignature": bytes(signature),
        "ImageType": IMAGE_TYPE,
    }
    _log.debug("sending: %r", request)
    return request


def hangup_request() -> dict[str, Any]:
    """The request ending the image mounter session."""
    return {"Command": "Hangup"}