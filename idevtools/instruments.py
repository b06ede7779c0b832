"""Decoding of instruments responses: condition inducer profiles and process lists."""

from __future__ import annotations

import datetime as _dt
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

SERVICE_NAME = "com.apple.instruments.remoteserver"
SERVICE_NAME_IOS14 = "com.apple.instruments.remoteserver.DVTSecureSocketProxy"

DEVICE_INFO_CHANNEL = "com.apple.instruments.server.services.deviceinfo"
CONDITION_INDUCER_CHANNEL = "com.apple.instruments.server.services.ConditionInducer"
XPC_CONTROL_CHANNEL = "com.apple.instruments.server.services.device.xpccontrol"
PROC_CONTROL_CHANNEL = "com.apple.instruments.server.services.processcontrol"
PROC_CONTROL_POSIX_SPAWN_CHANNEL = "com.apple.instruments.server.services.processcontrol.posixspawn"
MOBILE_NOTIFICATIONS_CHANNEL = "com.apple.instruments.server.services.mobilenotifications"
APP_LISTING_CHANNEL = "com.apple.instruments.server.services.device.applictionListing"
WATCH_PROCESS_CONTROL_CHANNEL = "com.apple.dt.Xcode.WatchProcessControl"
ASSETS_CHANNEL = "com.apple.instruments.server.services.assets"
ACTIVITY_TRACE_TAP_CHANNEL = "com.apple.instruments.server.services.activitytracetap"

# Reference date of NSDate values.
APPLE_EPOCH = _dt.datetime(2001, 1, 1, tzinfo=_dt.timezone.utc)


class InstrumentsError(Exception):
    """Raised when an instruments response does not have the expected shape."""


@dataclass
class Profile:
    """One profile belonging to a ProfileType."""

    description: str = ""
    identifier: str = ""
    name: str = ""


@dataclass
class ProfileType:
    """A device condition that can be activated with one of its profiles."""

    active_profile: str = ""
    identifier: str = ""
    profiles_sorted: bool = False
    is_active: bool = False
    name: str = ""
    is_destructive: bool = False
    is_internal: bool = False
    profiles: list[Profile] = field(default_factory=list)


@dataclass
class ProcessInfo:
    """A process running on the device."""

    is_application: bool = False
    name: str = ""
    pid: int = 0
    real_app_name: str = ""
    start_date: _dt.datetime | None = None


def _field(mapping: Mapping[str, Any], key: str, kind: type) -> Any:
    value = mapping.get(key)
    valid = isinstance(value, kind)
    if kind is int and isinstance(value, bool):
        valid = False
    if not valid:
        raise InstrumentsError(
            f"expected {kind.__name__} for '{key}', got {value!r} in {dict(mapping)!r}"
        )
    return value


def verify_profile_and_type(
    types: Iterable[ProfileType], profile_type_identifier: str, profile_identifier: str
) -> tuple[ProfileType, Profile]:
    """Find the profile type and profile with the given identifiers, or raise."""
    found_type = False
    found_profile = False
    result_type = ProfileType()
    result_profile = Profile()
    for profile_type in types:
        if profile_type.identifier != profile_type_identifier:
            continue
        result_type = profile_type
        found_type = True
        for profile in profile_type.profiles:
            if profile.identifier == profile_identifier:
                found_profile = True
                result_profile = profile
    if found_type and found_profile:
        return result_type, result_profile
    raise InstrumentsError(
        f"ProfiletypeIdentifier '{profile_type_identifier}' valid: {str(found_type).lower()}."
        f"  Profile identifier {profile_identifier} valid:{str(found_profile).lower()}"
    )


def decode_profiles(profile_map: Mapping[str, Any]) -> list[Profile]:
    """Decode the 'profiles' list of one raw profile type."""
    if "profiles" not in profile_map:
        raise InstrumentsError(f"failed finding 'profiles' key in map: {dict(profile_map)!r}")
    raw_list = profile_map["profiles"]
    if not isinstance(raw_list, list):
        raise InstrumentsError(
            f"failed converting 'profiles' to list in map: {dict(profile_map)!r}"
        )
    result = []
    for raw in raw_list:
        if not isinstance(raw, Mapping):
            raise InstrumentsError(f"invalid map: {dict(profile_map)!r}")
        result.append(
            Profile(
                description=_field(raw, "description", str),
                identifier=_field(raw, "identifier", str),
                name=_field(raw, "name", str),
            )
        )
    return result


def decode_profile_types(response: Any) -> list[ProfileType]:
    """Decode the answer of availableConditionInducers into ProfileTypes."""
    if not isinstance(response, list):
        raise InstrumentsError(f"invalid response: {response!r}")
    result = []
    for raw in response:
        if not isinstance(raw, Mapping):
            raise InstrumentsError(f"invalid response: {response!r}")
        result.append(
            ProfileType(
                active_profile=_field(raw, "activeProfile", str),
                identifier=_field(raw, "identifier", str),
                is_active=_field(raw, "isActive", bool),
                is_destructive=_field(raw, "isDestructive", bool),
                is_internal=_field(raw, "isInternal", bool),
                name=_field(raw, "name", str),
                profiles_sorted=_field(raw, "profilesSorted", bool),
                profiles=decode_profiles(raw),
            )
        )
    return result


def _to_datetime(value: Any) -> _dt.datetime:
    if isinstance(value, _dt.datetime):
        return value
    if isinstance(value, Mapping) and "NS.time" in value:
        value = value["NS.time"]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return APPLE_EPOCH + _dt.timedelta(seconds=value)
    raise InstrumentsError(f"invalid startDate: {value!r}")


def map_to_process_info(processes: Iterable[Any]) -> list[ProcessInfo]:
    """Decode the answer of runningProcesses into ProcessInfo entries."""
    result = []
    for raw in processes:
        if not isinstance(raw, Mapping):
            raise InstrumentsError(f"invalid process entry: {raw!r}")
        info = ProcessInfo(
            is_application=_field(raw, "isApplication", bool),
            name=_field(raw, "name", str),
            pid=_field(raw, "pid", int),
            real_app_name=_field(raw, "realAppName", str),
        )
        if "startDate" in raw:
            info.start_date = _to_datetime(raw["startDate"])
        result.append(info)
    return result


def extract_map_payload(payload: Sequence[Any]) -> dict[str, Any]:
    """The single dictionary a message payload must consist of."""
    if len(payload) != 1:
        raise InstrumentsError(f"payload of message should have only one element: {payload!r}")
    response = payload[0]
    if not isinstance(response, Mapping):
        raise InstrumentsError(f"payload type of message should be a dictionary: {payload!r}")
    return dict(response)