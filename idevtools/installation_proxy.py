"""Requests and responses of the installation proxy service."""

from __future__ import annotations

import logging
import plistlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any
from xml.parsers.expat import ExpatError

_log = logging.getLogger(__name__)

SERVICE_NAME = "com.apple.mobile.installation_proxy"

RETURN_ATTRIBUTES: tuple[str, ...] = (
    "ApplicationDSID",
    "ApplicationType",
    "CFBundleDisplayName",
    "CFBundleExecutable",
    "CFBundleIdentifier",
    "CFBundleName",
    "CFBundleShortVersionString",
    "CFBundleVersion",
    "Container",
    "Entitlements",
    "EnvironmentVariables",
    "MinimumOSVersion",
    "Path",
    "ProfileValidated",
    "SBAppTags",
    "SignerIdentity",
    "UIDeviceFamily",
    "UIRequiredDeviceCapabilities",
)

USER_APPS = "User"
SYSTEM_APPS = "System"


class UninstallError(Exception):
    """Raised when the device reports an error while uninstalling an app."""


def _int(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _bool(value: Any) -> bool:
    return value if isinstance(value, bool) else False


def _dict(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


def _int_list(value: Any) -> list[int]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, int) and not isinstance(item, bool)]


@dataclass
class AppInfo:
    """The attributes of one installed app."""

    application_dsid: int = 0
    application_type: str = ""
    cf_bundle_display_name: str = ""
    cf_bundle_executable: str = ""
    cf_bundle_identifier: str = ""
    cf_bundle_name: str = ""
    cf_bundle_short_version_string: str = ""
    cf_bundle_version: str = ""
    container: str = ""
    entitlements: dict[str, Any] = field(default_factory=dict)
    environment_variables: dict[str, Any] = field(default_factory=dict)
    minimum_os_version: str = ""
    path: str = ""
    profile_validated: bool = False
    sb_app_tags: list[str] = field(default_factory=list)
    signer_identity: str = ""
    ui_device_family: list[int] = field(default_factory=list)
    ui_required_device_capabilities: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> AppInfo:
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            application_dsid=_int(data.get("ApplicationDSID")),
            application_type=_str(data.get("ApplicationType")),
            cf_bundle_display_name=_str(data.get("CFBundleDisplayName")),
            cf_bundle_executable=_str(data.get("CFBundleExecutable")),
            cf_bundle_identifier=_str(data.get("CFBundleIdentifier")),
            cf_bundle_name=_str(data.get("CFBundleName")),
            cf_bundle_short_version_string=_str(data.get("CFBundleShortVersionString")),
            cf_bundle_version=_str(data.get("CFBundleVersion")),
            container=_str(data.get("Container")),
            entitlements=_dict(data.get("Entitlements")),
            environment_variables=_dict(data.get("EnvironmentVariables")),
            minimum_os_version=_str(data.get("MinimumOSVersion")),
            path=_str(data.get("Path")),
            profile_validated=_bool(data.get("ProfileValidated")),
            sb_app_tags=_str_list(data.get("SBAppTags")),
            signer_identity=_str(data.get("SignerIdentity")),
            ui_device_family=_int_list(data.get("UIDeviceFamily")),
            ui_required_device_capabilities=_str_list(data.get("UIRequiredDeviceCapabilities")),
        )


@dataclass
class BrowseResponse:
    """One chunk of a Browse answer: a slice of the app list and its position."""

    current_index: int = 0
    current_amount: int = 0
    status: str = ""
    current_list: list[AppInfo] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.status == "Complete"


def browse_request(
    application_type: str = "", show_launch_prohibited_apps: bool = False
) -> dict[str, Any]:
    """A Browse request; an empty ``application_type`` lists apps of every type."""
    client_options: dict[str, Any] = {"ReturnAttributes": list(RETURN_ATTRIBUTES)}
    if application_type:
        client_options["ApplicationType"] = application_type
    if show_launch_prohibited_apps:
        client_options["ShowLaunchProhibitedApps"] = True
    return {"ClientOptions": client_options, "Command": "Browse"}


def parse_browse_response(data: bytes) -> BrowseResponse:
    """Parse one Browse response chunk; raises ValueError on undecodable input."""
    try:
        obj = plistlib.loads(bytes(data))
    except (ValueError, ExpatError, IndexError, KeyError, TypeError, OverflowError) as exc:
        raise ValueError(f"invalid browse response: {exc}") from exc
    if not isinstance(obj, Mapping):
        raise ValueError(f"expected a dictionary, got {type(obj).__name__}")
    raw_list = obj.get("CurrentList")
    apps = [AppInfo.from_dict(item) for item in raw_list] if isinstance(raw_list, list) else []
    return BrowseResponse(
        current_index=_int(obj.get("CurrentIndex")),
        current_amount=_int(obj.get("CurrentAmount")),
        status=_str(obj.get("Status")),
        current_list=apps,
    )


def assemble_app_infos(responses: Iterable[BrowseResponse]) -> list[AppInfo]:
    """Merge the chunks of a Browse answer into one list ordered by position."""
    responses = list(responses)
    size = sum(response.current_amount for response in responses)
    result = [AppInfo() for _ in range(size)]
    for response in responses:
        start = response.current_index
        chunk = response.current_list[: max(0, size - start)]
        result[start : start + len(chunk)] = chunk
    return result


def uninstall_request(bundle_id: str) -> dict[str, Any]:
    """The request removing the app ``bundle_id``."""
    return {
        "Command": "Uninstall",
        "ApplicationIdentifier": bundle_id,
        "ClientOptions": {},
    }


def check_uninstall_finished(response: Mapping[str, Any]) -> bool:
    """True once an uninstall is complete, False while it is still running.

    Raises UninstallError if the device reports an error or an unknown update.
    """
    if "Error" in response:
        raise UninstallError(f"received uninstall error: {response['Error']}")
    if "Status" in response:
        status = response["Status"]
        if status == "Complete":
            _log.info("done uninstalling")
            return True
        _log.info("uninstall status: %s", status)
        return False
    raise UninstallError(f"unknown status update: {dict(response)!r}")