"""Locating and downloading developer disk images that match a device's iOS version."""

from __future__ import annotations

import logging
import os
import re
import shutil
import urllib.request
from collections.abc import Iterator
from urllib.parse import quote

_log = logging.getLogger(__name__)

IMAGE_FILE = "DeveloperDiskImage.dmg"
SIGNATURE_FILE = "DeveloperDiskImage.dmg.signature"

AVAILABLE_VERSIONS: tuple[str, ...] = (
    "4.2", "4.3", "5.0", "5.1", "6.0", "6.1", "7.0", "7.1", "8.0", "8.1", "8.2", "8.3",
    "8.4 (12H141)", "9.0 (13A340)", "9.1 (13B5110e)", "9.2 (13C75)", "9.3 (13E230)",
    "10.0 (14A345)", "10.1 (14B72)", "10.2 (14C5062c)", "10.3 (14E269)",
    "11.0 (15A372)", "11.1 (15B87)", "11.2 (15C5092b)", "11.3 (15E5178d)",
    "11.4 (15F5037c)", "12.0 (16A5288q)", "12.1 (16B5059d)", "12.2 (16E5191d)",
    "12.3 (16F148)", "12.4", "13.0", "13.1", "13.2", "13.3", "13.4", "13.5", "13.7",
    "14.0", "14.1", "14.2", "14.4", "14.5", "14.6", "14.7", "14.7.1", "14.8",
    "15.0", "15.1", "15.2", "15.3.1", "15.3", "15.4", "15.5", "15.6", "15.6.1", "15.7",
    "16.0", "16.1", "16.2", "16.3", "16.4", "16.4.1", "16.5",
)

_VERSION_RE = re.compile(
    r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)


def _parse_version(version: str) -> tuple[int, int, int]:
    """Parse a loose semantic version such as "11.2" or "14.7.1"."""
    match = _VERSION_RE.match(version.strip())
    if match is None:
        raise ValueError(f"invalid semantic version: {version!r}")
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    return major, minor, patch


def _version_dir(available: str) -> str:
    return available.split(" (")[0]


def match_available(version: str) -> str:
    """Return the available image version that best fits the device version.

    An exact match wins; otherwise the highest available version below the
    requested one is chosen.
    """
    _log.debug("device version: %s", version)
    requested = _parse_version(version)
    best: tuple[int, int, int] | None = None
    best_name = ""
    for available in AVAILABLE_VERSIONS:
        parsed = _parse_version(_version_dir(available))
        if parsed == requested:
            return available
        if best is None:
            best, best_name = parsed, available
            continue
        if best < parsed < requested:
            best, best_name = parsed, available
    _log.debug("device version: %s bestMatch: %s", version, best_name)
    return best_name


def _walk(path: str) -> Iterator[str]:
    yield path
    if os.path.isdir(path) and not os.path.islink(path):
        for name in sorted(os.listdir(path)):
            yield from _walk(os.path.join(path, name))


def find_image(directory: str | os.PathLike[str], version: str) -> str:
    """Search ``directory`` for the image of ``version``; raise FileNotFoundError if absent."""
    suffix = os.path.join(version, IMAGE_FILE)
    found = ""
    for path in _walk(os.fspath(directory)):
        if path.endswith(suffix):
            found = path
    if not found:
        raise FileNotFoundError("image not found")
    return found


def look_for_image(base_dir: str | os.PathLike[str], version: str) -> str | None:
    """Return the path of an already present image, or None.

    A missing ``base_dir`` is created.
    """
    base = os.fspath(base_dir)
    if not os.path.exists(base):
        os.makedirs(base, exist_ok=True)
        return None
    try:
        return find_image(base, version)
    except FileNotFoundError:
        return None


def _download(url: str, target: str) -> None:
    with urllib.request.urlopen(url) as response, open(target, "wb") as out:
        shutil.copyfileobj(response, out)


def download_image(version: str, base_dir: str | os.PathLike[str], base_url: str) -> str:
    """Make the developer image for the device ``version`` available in ``base_dir``.

    Images already present are reused; otherwise image and signature are
    downloaded from ``base_url``/<image version>/. Returns the image path.
    """
    matched = match_available(version)
    _log.info("device iOS version: %s, getting developer image for iOS %s", version, matched)
    existing = look_for_image(base_dir, matched)
    if existing:
        _log.info("%s already downloaded", existing)
        return existing

    version_dir = _version_dir(matched)
    remote_dir = f"{base_url.rstrip('/')}/{quote(matched, safe='()')}"
    target_dir = os.path.join(os.fspath(base_dir), version_dir)
    os.mkdir(target_dir, 0o755)

    image_path = os.path.join(target_dir, IMAGE_FILE)
    image_url = f"{remote_dir}/{IMAGE_FILE}?raw=true"
    _log.info("downloading '%s' to path '%s'", image_url, image_path)
    _download(image_url, image_path)
    _download(
        f"{remote_dir}/{SIGNATURE_FILE}?raw=true",
        os.path.join(target_dir, SIGNATURE_FILE),
    )
    return image_path