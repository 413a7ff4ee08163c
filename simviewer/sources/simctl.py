"""Simulator and app enumeration through ``xcrun simctl``.

Running devices are asked for their apps via ``simctl listapps``; shut-down
devices (or a failing ``listapps``) fall back to scanning the device's data
directory for app bundles and their data containers.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from collections.abc import Callable
from pathlib import Path

from ..content.plist import load_plist_dict
from ..errors import FetchError
from .fs import normalize_path
from .types import AppSummary, DeviceSummary

logger = logging.getLogger(__name__)

RUNTIME_PREFIX = "com.apple.CoreSimulator.SimRuntime."
APPLE_BUNDLE_PREFIX = "com.apple."
ALREADY_BOOTED_MARKER = "Unable to boot device in current state: Booted"
CONTAINER_METADATA = ".com.apple.mobile_container_manager.metadata.plist"
DEFAULT_DEVICES_ROOT = Path.home() / "Library" / "Developer" / "CoreSimulator" / "Devices"
SIMCTL_TIMEOUT_SECONDS = 30.0

Runner = Callable[..., subprocess.CompletedProcess]


def format_runtime(runtime: str) -> str:
    """``com.apple.CoreSimulator.SimRuntime.iOS-17-2`` -> ``iOS 17.2``."""
    name = runtime.replace(RUNTIME_PREFIX, "", 1)
    name = name.replace("iOS-", "iOS ", 1)
    return name.replace("-", ".")


def parse_device_list(payload: str) -> list[DeviceSummary]:
    """Parse ``simctl list devices --json`` output into available iOS devices."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise FetchError(f"Cannot parse simctl device list: {exc}") from exc
    devices_by_runtime = data.get("devices") if isinstance(data, dict) else None
    if not isinstance(devices_by_runtime, dict):
        raise FetchError("simctl device list has no 'devices' object")
    out: list[DeviceSummary] = []
    for runtime, devices in devices_by_runtime.items():
        if "iOS" not in runtime or not isinstance(devices, list):
            continue
        for device in devices:
            if not isinstance(device, dict) or not device.get("isAvailable", False):
                continue
            out.append(
                DeviceSummary(
                    udid=str(device.get("udid", "")),
                    name=str(device.get("name", "")),
                    runtime=format_runtime(runtime),
                    state=str(device.get("state", "")),
                )
            )
    out.sort(key=lambda device: (device.name, device.runtime))
    return out


def _unquote(value: str) -> str:
    return value.strip().rstrip(";").strip().strip('"')


def parse_listapps(output: str) -> list[dict[str, str]]:
    """Parse the OpenStep-style plist printed by ``simctl listapps``.

    Apple system bundles are skipped. Each result holds ``bundle_id`` plus
    whichever of ``name``, ``version``, ``path`` and ``data_container`` were
    present.
    """
    apps: list[dict[str, str]] = []
    current: dict[str, str] | None = None
    depth = 0
    fields = {
        "CFBundleDisplayName": "name",
        "CFBundleName": "bundle_name",
        "CFBundleShortVersionString": "version",
        "Path": "path",
        "DataContainer": "data_container",
    }
    for raw in output.splitlines():
        line = raw.strip()
        if line.endswith("{"):
            depth += 1
            if depth == 2 and " = " in line:
                bundle_id = _unquote(line.split(" = ", 1)[0])
                current = None if bundle_id.startswith(APPLE_BUNDLE_PREFIX) else {"bundle_id": bundle_id}
            continue
        if line.startswith("}"):
            if depth == 2 and current is not None:
                apps.append(current)
                current = None
            depth = max(0, depth - 1)
            continue
        if current is None or depth != 2 or " = " not in line:
            continue
        key, _, value = line.partition(" = ")
        target = fields.get(_unquote(key))
        if target is not None:
            current[target] = _unquote(value)
    return apps


def find_data_container(data_root: Path, bundle_id: str) -> str | None:
    """Locate the data container whose metadata names ``bundle_id``."""
    try:
        candidates = sorted(p for p in data_root.iterdir() if p.is_dir())
    except OSError:
        return None
    for candidate in candidates:
        metadata = load_plist_dict(str(candidate / CONTAINER_METADATA))
        if metadata and metadata.get("MCMMetadataIdentifier") == bundle_id:
            return str(candidate)
    return None


class SimctlSource:
    """``DeviceSource`` backed by ``xcrun simctl`` and the simulator data tree."""

    def __init__(self, runner: Runner = subprocess.run, devices_root: Path = DEFAULT_DEVICES_ROOT) -> None:
        self._run_process = runner
        self.devices_root = devices_root

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        try:
            return self._run_process(
                ["xcrun", "simctl", *args],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=SIMCTL_TIMEOUT_SECONDS,
            )
        except FileNotFoundError as exc:
            raise FetchError("xcrun not found; Xcode command line tools are required") from exc
        except (OSError, subprocess.SubprocessError) as exc:
            raise FetchError(f"simctl {args[0]} failed: {exc}") from exc

    def _bundle_root(self, udid: str) -> Path:
        return self.devices_root / udid / "data" / "Containers" / "Bundle" / "Application"

    def _data_root(self, udid: str) -> Path:
        return self.devices_root / udid / "data" / "Containers" / "Data" / "Application"

    def app_count(self, udid: str) -> int:
        """Count installed bundles without asking simctl (works while shut down)."""
        try:
            with os.scandir(self._bundle_root(udid)) as entries:
                return sum(1 for entry in entries if entry.is_dir())
        except OSError:
            return 0

    def list_devices(self) -> list[DeviceSummary]:
        proc = self._run("list", "devices", "--json")
        if proc.returncode != 0:
            raise FetchError(f"simctl list failed: {(proc.stderr or '').strip() or proc.returncode}")
        devices = parse_device_list(proc.stdout)
        return [
            DeviceSummary(
                udid=device.udid,
                name=device.name,
                runtime=device.runtime,
                state=device.state,
                app_count=self.app_count(device.udid),
            )
            for device in devices
        ]

    def list_apps(self, device: DeviceSummary) -> list[AppSummary]:
        """List user apps on ``device``, sorted by display name."""
        apps: list[AppSummary] | None = None
        if device.is_running:
            try:
                apps = self._apps_from_listapps(device)
            except FetchError as exc:
                logger.warning("listapps failed for %s, scanning data directory: %s", device.udid, exc)
        if apps is None:
            apps = self._apps_from_data_dir(device)
        apps.sort(key=lambda app: (app.name.lower(), app.bundle_id))
        return apps

    def _apps_from_listapps(self, device: DeviceSummary) -> list[AppSummary]:
        proc = self._run("listapps", device.udid)
        if proc.returncode != 0:
            raise FetchError(f"simctl listapps failed: {(proc.stderr or '').strip() or proc.returncode}")
        out = []
        for raw in parse_listapps(proc.stdout):
            bundle_id = raw["bundle_id"]
            data = raw.get("data_container")
            out.append(
                AppSummary(
                    bundle_id=bundle_id,
                    name=raw.get("name") or raw.get("bundle_name") or bundle_id,
                    version=raw.get("version", ""),
                    bundle_path=normalize_path(raw.get("path", "")),
                    data_path=normalize_path(data) if data else None,
                    device_name=device.name,
                    device_udid=device.udid,
                )
            )
        return out

    def _apps_from_data_dir(self, device: DeviceSummary) -> list[AppSummary]:
        root = self._bundle_root(device.udid)
        try:
            bundle_dirs = sorted(p for p in root.iterdir() if p.is_dir())
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise FetchError(f"Cannot read app directory {root}: {exc}") from exc
        out = []
        for bundle_dir in bundle_dirs:
            try:
                app_path = next(p for p in sorted(bundle_dir.iterdir()) if p.suffix == ".app")
            except (StopIteration, OSError):
                continue
            info = load_plist_dict(str(app_path / "Info.plist")) or {}
            bundle_id = str(info.get("CFBundleIdentifier") or "")
            name = str(info.get("CFBundleDisplayName") or info.get("CFBundleName") or app_path.stem)
            out.append(
                AppSummary(
                    bundle_id=bundle_id or "Unknown",
                    name=name,
                    version=str(info.get("CFBundleShortVersionString") or ""),
                    bundle_path=str(app_path),
                    data_path=find_data_container(self._data_root(device.udid), bundle_id) if bundle_id else None,
                    device_name=device.name,
                    device_udid=device.udid,
                )
            )
        return out

    def list_all_apps(self) -> list[AppSummary]:
        """Apps of every device that has any, sorted by name then device."""
        apps: list[AppSummary] = []
        for device in self.list_devices():
            if device.app_count <= 0 and not device.is_running:
                continue
            try:
                apps.extend(self.list_apps(device))
            except FetchError as exc:
                logger.warning("skipping apps of %s: %s", device.name, exc)
        apps.sort(key=lambda app: (app.name.lower(), app.device_name))
        return apps

    def boot(self, udid: str) -> bool:
        """Boot ``udid`` and bring up Simulator.app.

        Returns ``False`` when the device was already booted.
        """
        proc = self._run("boot", udid)
        if proc.returncode != 0:
            if ALREADY_BOOTED_MARKER in (proc.stderr or ""):
                return False
            raise FetchError(f"Failed to boot simulator: {(proc.stderr or '').strip() or proc.returncode}")
        try:
            self._run_process(["open", "-a", "Simulator"], check=False, timeout=SIMCTL_TIMEOUT_SECONDS)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("could not open Simulator.app: %s", exc)
        return True

    def reveal(self, path: str) -> None:
        """Select ``path`` in a Finder window."""
        try:
            proc = self._run_process(
                ["open", "-R", path],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
                timeout=SIMCTL_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise FetchError(f"open -R failed: {exc}") from exc
        if proc.returncode != 0:
            raise FetchError((proc.stderr or "").strip() or f"open -R exited with {proc.returncode}")


__all__ = [
    "SimctlSource",
    "find_data_container",
    "format_runtime",
    "parse_device_list",
    "parse_listapps",
]
