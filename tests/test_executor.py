from __future__ import annotations

import threading
import time
import unittest
from types import SimpleNamespace

from simviewer.errors import FetchError
from simviewer.loader.pagination import TablePage
from simviewer.navigation import requests as req
from simviewer.navigation.actions import ThemeChanged
from simviewer.runtime.executor import Collaborators, RequestExecutor, execute
from simviewer.sources.types import ColumnInfo, DeviceSummary, TableSchema

DEVICE = DeviceSummary("A1", "iPhone 15", "iOS 17.2", "Booted")
TABLE = TableSchema("t", 3, (ColumnInfo("id", "INTEGER"),))


def _sources() -> Collaborators:
    devices = SimpleNamespace(
        list_devices=lambda: [DEVICE],
        list_apps=lambda device: ["apps of " + device.udid],
        list_all_apps=lambda: ["everything"],
        boot=lambda udid: udid == "A1",
        reveal=lambda path: "revealed " + path,
    )
    fs = SimpleNamespace(
        read_dir=lambda path: ["entries of " + path],
        read_range=lambda path, start, length: b"x" * length,
    )
    database = SimpleNamespace(
        list_tables=lambda path: [TABLE],
        fetch_rows=lambda path, table, offset, limit: [(i,) for i in range(offset, min(3, offset + limit))],
    )
    return Collaborators(devices=devices, fs=fs, database=database)


def _collect(executor: RequestExecutor, count: int, timeout: float = 2.0) -> list:
    deadline = time.monotonic() + timeout
    results: list = []
    while len(results) < count and time.monotonic() < deadline:
        results.extend(executor.drain_results())
        time.sleep(0.005)
    return results


class ExecuteTests(unittest.TestCase):
    def test_requests_map_to_collaborators(self) -> None:
        sources = _sources()
        self.assertEqual(execute(req.FetchDevices(1, 1), sources), [DEVICE])
        self.assertEqual(execute(req.FetchApps(2, 1, device=DEVICE), sources), ["apps of A1"])
        self.assertEqual(execute(req.FetchAllApps(3, 1), sources), ["everything"])
        self.assertTrue(execute(req.BootDevice(4, 1, udid="A1", name="iPhone 15"), sources))
        self.assertEqual(execute(req.FetchDirectory(5, 1, path="/d"), sources), ["entries of /d"])
        self.assertEqual(execute(req.FetchChunk(6, 1, path="/f", index=2, start=8, length=4), sources), b"xxxx")
        self.assertEqual(execute(req.FetchTables(7, 1, path="/db"), sources), [TABLE])
        self.assertEqual(execute(req.RevealInFinder(9, 1, path="/data", name="Notes"), sources), "revealed /data")

    def test_fetch_page_builds_a_table_page(self) -> None:
        page = execute(req.FetchPage(8, 1, path="/db", table=TABLE, offset=0, page_size=50), _sources())
        self.assertIsInstance(page, TablePage)
        self.assertEqual(page.rows, ((0,), (1,), (2,)))

    def test_unknown_request_type(self) -> None:
        with self.assertRaises(TypeError):
            execute(req.Request(1, 1), _sources())


class RequestExecutorTests(unittest.TestCase):
    def test_results_and_errors_are_queued(self) -> None:
        def run(request, sources):
            if request.request_id == 2:
                raise FetchError("simctl list failed: boom")
            return request.request_id * 10

        executor = RequestExecutor(_sources(), workers=1, run=run)
        try:
            with self.assertLogs("simviewer.runtime.executor", level="WARNING"):
                executor.submit(req.FetchDevices(1, 1), req.FetchDevices(2, 1), req.FetchDevices(3, 1))
                results = _collect(executor, 3)
        finally:
            executor.stop()
        self.assertEqual([r.request.request_id for r in results], [1, 2, 3])
        self.assertEqual(results[0].payload, 10)
        self.assertIsInstance(results[1].error, FetchError)
        self.assertIsNone(results[1].payload)
        self.assertEqual(executor.drain_results(), [])

    def test_work_runs_off_the_calling_thread(self) -> None:
        seen: list[str] = []

        def run(request, sources):
            seen.append(threading.current_thread().name)
            return None

        executor = RequestExecutor(_sources(), workers=2, run=run)
        try:
            executor.submit(req.FetchDevices(1, 1))
            self.assertEqual(len(_collect(executor, 1)), 1)
        finally:
            executor.stop()
        self.assertTrue(seen[0].startswith("simviewer-worker-"))

    def test_posted_actions_share_the_result_queue(self) -> None:
        executor = RequestExecutor(_sources(), workers=1, run=lambda request, sources: "done")
        try:
            executor.post(ThemeChanged("light"))
            executor.submit(req.FetchDevices(1, 1))
            results = _collect(executor, 2)
        finally:
            executor.stop()
        self.assertEqual(results[0], ThemeChanged("light"))
        self.assertEqual(results[1].payload, "done")

    def test_submit_after_stop_is_dropped(self) -> None:
        calls: list[int] = []
        executor = RequestExecutor(_sources(), workers=1, run=lambda request, sources: calls.append(1))
        executor.submit(req.FetchDevices(1, 1))
        _collect(executor, 1)
        executor.stop()
        executor.submit(req.FetchDevices(2, 1))
        time.sleep(0.05)
        self.assertEqual(calls, [1])
        executor.stop()


if __name__ == "__main__":
    unittest.main()
