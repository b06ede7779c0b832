"""Messages exchanged with usbmuxd to list devices and follow attach events."""

from __future__ import annotations

import plistlib
from dataclasses import dataclass, field
from typing import Any
from xml.parsers.expat import ExpatError

PROG_NAME = "go-usbmux"
READ_DEVICES_CLIENT_VERSION = "go-usbmux-0.0.1"
LISTEN_CLIENT_VERSION = "usbmuxd-471.8.1"

ATTACHED = "Attached"
DETACHED = "Detached"


def _load_plist(data: bytes) -> Any:
    try:
        return plistlib.loads(bytes(data))
    except (ValueError, ExpatError, IndexError, KeyError, TypeError, OverflowError) as exc:
        raise ValueError(f"invalid plist: {exc}") from exc


def _as_int(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class DeviceProperties:
    """Device details reported by usbmuxd; the udid is the serial number."""

    connection_speed: int = 0
    connection_type: str = ""
    device_id: int = 0
    location_id: int = 0
    product_id: int = 0
    serial_number: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> DeviceProperties:
        if not isinstance(data, dict):
            return cls()
        return cls(
            connection_speed=_as_int(data.get("ConnectionSpeed")),
            connection_type=_as_str(data.get("ConnectionType")),
            device_id=_as_int(data.get("DeviceID")),
            location_id=_as_int(data.get("LocationID")),
            product_id=_as_int(data.get("ProductID")),
            serial_number=_as_str(data.get("SerialNumber")),
        )


@dataclass
class DeviceEntry:
    """One connected device together with its usbmuxd device id."""

    device_id: int = 0
    message_type: str = ""
    properties: DeviceProperties = field(default_factory=DeviceProperties)

    @classmethod
    def from_dict(cls, data: Any) -> DeviceEntry:
        if not isinstance(data, dict):
            return cls()
        return cls(
            device_id=_as_int(data.get("DeviceID")),
            message_type=_as_str(data.get("MessageType")),
            properties=DeviceProperties.from_dict(data.get("Properties")),
        )


@dataclass
class DeviceList:
    """The devices currently known to usbmuxd."""

    devices: list[DeviceEntry] = field(default_factory=list)

    def __iter__(self):
        return iter(self.devices)

    def __len__(self) -> int:
        return len(self.devices)

    def __str__(self) -> str:
        return "".join(f"{entry.properties.serial_number}\n" for entry in self.devices)

    def to_json_map(self) -> dict[str, list[str]]:
        """A JSON-ready mapping holding all udids."""
        return {"deviceList": [entry.properties.serial_number for entry in self.devices]}


@dataclass
class AttachedMessage:
    """Notification sent when a device is connected to or disconnected from the host."""

    message_type: str = ""
    device_id: int = 0
    properties: DeviceProperties = field(default_factory=DeviceProperties)

    def device_entry(self) -> DeviceEntry:
        return DeviceEntry(
            device_id=self.device_id, message_type=ATTACHED, properties=self.properties
        )

    def is_attached(self) -> bool:
        return self.message_type == ATTACHED

    def is_detached(self) -> bool:
        return self.message_type == DETACHED


def device_list_from_bytes(data: bytes) -> DeviceList:
    """Parse a device list response; undecodable input gives an empty list."""
    try:
        obj = _load_plist(data)
    except ValueError:
        return DeviceList()
    if not isinstance(obj, dict):
        return DeviceList()
    raw = obj.get("DeviceList")
    if not isinstance(raw, list):
        return DeviceList()
    return DeviceList([DeviceEntry.from_dict(item) for item in raw])


def attached_from_bytes(data: bytes) -> AttachedMessage:
    """Parse an attach or detach notification; raises ValueError on bad input."""
    obj = _load_plist(data)
    if not isinstance(obj, dict):
        raise ValueError(f"expected a dictionary, got {type(obj).__name__}")
    return AttachedMessage(
        message_type=_as_str(obj.get("MessageType")),
        device_id=_as_int(obj.get("DeviceID")),
        properties=DeviceProperties.from_dict(obj.get("Properties")),
    )


def read_devices_request() -> dict[str, Any]:
    """The request asking usbmuxd for its device list."""
    return {
        "MessageType": "ListDevices",
        "ProgName": PROG_NAME,
        "ClientVersionString": READ_DEVICES_CLIENT_VERSION,
    }


def listen_request() -> dict[str, Any]:
    """The request that keeps the connection open for attach and detach events."""
    return {
        "MessageType": "Listen",
        "ProgName": PROG_NAME,
        "ClientVersionString": LISTEN_CLIENT_VERSION,
        "ConnType": 1,
    }