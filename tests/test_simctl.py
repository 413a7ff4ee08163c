from __future__ import annotations

import json
import plistlib
import subprocess
import tempfile
import unittest
from pathlib import Path

from simviewer.errors import FetchError
from simviewer.sources import simctl
from simviewer.sources.types import DeviceSummary

DEVICE_JSON = json.dumps(
    {
        "devices": {
            "com.apple.CoreSimulator.SimRuntime.iOS-17-2": [
                {"udid": "AAA", "name": "iPhone 15", "state": "Booted", "isAvailable": True},
                {"udid": "BBB", "name": "iPhone SE", "state": "Shutdown", "isAvailable": False},
                {"udid": "CCC", "name": "iPad Air", "state": "Shutdown", "isAvailable": True},
            ],
            "com.apple.CoreSimulator.SimRuntime.watchOS-10-0": [
                {"udid": "WWW", "name": "Watch", "state": "Booted", "isAvailable": True},
            ],
        }
    }
)

LISTAPPS_OUTPUT = """{
    "com.example.Notes" =     {
        ApplicationType = User;
        CFBundleDisplayName = Notes;
        CFBundleIdentifier = "com.example.Notes";
        CFBundleName = NotesApp;
        CFBundleShortVersionString = "2.1";
        DataContainer = "file:///tmp/Data/Application/ABC/";
        GroupContainers =         {
            "group.com.example" = "file:///tmp/Shared/";
        };
        Path = "/tmp/Bundle/Application/XYZ/Notes.app";
    };
    "com.apple.mobilesafari" =     {
        CFBundleDisplayName = Safari;
    };
    "org.sample.NoData" =     {
        CFBundleName = NoData;
    };
}
"""


class FakeRunner:
    def __init__(self, responses: dict[str, tuple[int, str, str]] | None = None, error: Exception | None = None):
        self.responses = responses or {}
        self.error = error
        self.calls: list[list[str]] = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        if self.error is not None:
            raise self.error
        key = cmd[2] if cmd[:2] == ["xcrun", "simctl"] else cmd[0]
        code, out, err = self.responses.get(key, (0, "", ""))
        return subprocess.CompletedProcess(cmd, code, out, err)


class ParsingTests(unittest.TestCase):
    def test_format_runtime(self) -> None:
        self.assertEqual(simctl.format_runtime("com.apple.CoreSimulator.SimRuntime.iOS-17-2"), "iOS 17.2")
        self.assertEqual(simctl.format_runtime("com.apple.CoreSimulator.SimRuntime.iOS-18-0"), "iOS 18.0")

    def test_device_list_keeps_available_ios_devices_sorted(self) -> None:
        devices = simctl.parse_device_list(DEVICE_JSON)
        self.assertEqual([d.name for d in devices], ["iPad Air", "iPhone 15"])
        self.assertEqual(devices[1].runtime, "iOS 17.2")
        self.assertTrue(devices[1].is_running)
        self.assertEqual(devices[0].state_display, "Not Running")

    def test_bad_device_json_raises_fetch_error(self) -> None:
        with self.assertRaises(FetchError):
            simctl.parse_device_list("not json")
        with self.assertRaises(FetchError):
            simctl.parse_device_list("[]")

    def test_listapps_skips_apple_bundles(self) -> None:
        apps = simctl.parse_listapps(LISTAPPS_OUTPUT)
        self.assertEqual([app["bundle_id"] for app in apps], ["com.example.Notes", "org.sample.NoData"])
        notes = apps[0]
        self.assertEqual(notes["name"], "Notes")
        self.assertEqual(notes["version"], "2.1")
        self.assertEqual(notes["data_container"], "file:///tmp/Data/Application/ABC/")
        self.assertEqual(notes["path"], "/tmp/Bundle/Application/XYZ/Notes.app")
        self.assertNotIn("data_container", apps[1])


class SimctlSourceTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _install_app(self, udid: str, bundle_id: str, name: str) -> None:
        app = self.root / udid / "data" / "Containers" / "Bundle" / "Application" / "B1" / f"{name}.app"
        app.mkdir(parents=True)
        with open(app / "Info.plist", "wb") as handle:
            plistlib.dump({"CFBundleIdentifier": bundle_id, "CFBundleName": name, "CFBundleShortVersionString": "1.0"}, handle)
        data = self.root / udid / "data" / "Containers" / "Data" / "Application" / "D1"
        data.mkdir(parents=True)
        with open(data / simctl.CONTAINER_METADATA, "wb") as handle:
            plistlib.dump({"MCMMetadataIdentifier": bundle_id}, handle)

    def test_list_devices_counts_bundles(self) -> None:
        self._install_app("CCC", "org.sample.Game", "Game")
        runner = FakeRunner({"list": (0, DEVICE_JSON, "")})
        devices = simctl.SimctlSource(runner=runner, devices_root=self.root).list_devices()
        self.assertEqual([(d.udid, d.app_count) for d in devices], [("CCC", 1), ("AAA", 0)])
        self.assertEqual(runner.calls[0], ["xcrun", "simctl", "list", "devices", "--json"])

    def test_running_device_uses_listapps(self) -> None:
        runner = FakeRunner({"listapps": (0, LISTAPPS_OUTPUT, "")})
        device = DeviceSummary("AAA", "iPhone 15", "iOS 17.2", "Booted")
        apps = simctl.SimctlSource(runner=runner, devices_root=self.root).list_apps(device)
        self.assertEqual([app.name for app in apps], ["NoData", "Notes"])
        notes = apps[1]
        self.assertEqual(notes.data_path, "/tmp/Data/Application/ABC")
        self.assertEqual(notes.device_name, "iPhone 15")
        self.assertIsNone(apps[0].data_path)

    def test_shutdown_device_scans_data_directory(self) -> None:
        self._install_app("CCC", "org.sample.Game", "Game")
        runner = FakeRunner()
        device = DeviceSummary("CCC", "iPad Air", "iOS 17.2", "Shutdown")
        apps = simctl.SimctlSource(runner=runner, devices_root=self.root).list_apps(device)
        self.assertEqual(runner.calls, [])
        self.assertEqual(len(apps), 1)
        self.assertEqual(apps[0].bundle_id, "org.sample.Game")
        self.assertEqual(apps[0].version, "1.0")
        self.assertTrue(apps[0].data_path.endswith("D1"))

    def test_failing_listapps_falls_back_to_scan(self) -> None:
        self._install_app("AAA", "org.sample.Game", "Game")
        runner = FakeRunner({"listapps": (1, "", "boom")})
        device = DeviceSummary("AAA", "iPhone 15", "iOS 17.2", "Booted")
        with self.assertLogs("simviewer.sources.simctl", level="WARNING"):
            apps = simctl.SimctlSource(runner=runner, devices_root=self.root).list_apps(device)
        self.assertEqual([app.name for app in apps], ["Game"])

    def test_boot(self) -> None:
        runner = FakeRunner()
        self.assertTrue(simctl.SimctlSource(runner=runner, devices_root=self.root).boot("CCC"))
        self.assertEqual(runner.calls, [["xcrun", "simctl", "boot", "CCC"], ["open", "-a", "Simulator"]])

    def test_boot_already_booted(self) -> None:
        stderr = "An error was encountered: Unable to boot device in current state: Booted"
        runner = FakeRunner({"boot": (149, "", stderr)})
        self.assertFalse(simctl.SimctlSource(runner=runner, devices_root=self.root).boot("AAA"))

    def test_boot_failure_raises(self) -> None:
        runner = FakeRunner({"boot": (1, "", "Invalid device")})
        with self.assertRaisesRegex(FetchError, "Invalid device"):
            simctl.SimctlSource(runner=runner, devices_root=self.root).boot("ZZZ")

    def test_reveal_selects_the_path_in_finder(self) -> None:
        runner = FakeRunner()
        simctl.SimctlSource(runner=runner, devices_root=self.root).reveal("/data/Library")
        self.assertEqual(runner.calls, [["open", "-R", "/data/Library"]])

    def test_reveal_failure_raises(self) -> None:
        runner = FakeRunner({"open": (1, "", "The file /nope does not exist.")})
        with self.assertRaisesRegex(FetchError, "does not exist"):
            simctl.SimctlSource(runner=runner, devices_root=self.root).reveal("/nope")
        with self.assertRaisesRegex(FetchError, "open -R failed"):
            simctl.SimctlSource(runner=FakeRunner(error=FileNotFoundError("open")), devices_root=self.root).reveal("/x")

    def test_missing_xcrun_is_a_fetch_error(self) -> None:
        runner = FakeRunner(error=FileNotFoundError("xcrun"))
        with self.assertRaisesRegex(FetchError, "xcrun not found"):
            simctl.SimctlSource(runner=runner, devices_root=self.root).list_devices()


if __name__ == "__main__":
    unittest.main()
