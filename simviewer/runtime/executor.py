"""Background worker that executes navigation requests.

Requests run in submission order on a small pool of daemon threads. Every
completion, successful or not, is queued as an ``AsyncResult`` and collected
by the event loop through ``drain_results``. Other background producers, such
as the theme watcher, ``post`` their actions onto the same queue.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue

from ..content.opener import open_file
from ..loader.pagination import fetch_page
from ..navigation import requests as req
from ..navigation.actions import AsyncResult
from ..sources.types import DatabaseReader, DeviceSource, FileSystem

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 2


@dataclass(frozen=True)
class Collaborators:
    """External systems the requests are executed against."""

    devices: DeviceSource
    fs: FileSystem
    database: DatabaseReader


def execute(request: req.Request, sources: Collaborators) -> object:
    """Run one request synchronously and return its payload."""
    if isinstance(request, req.FetchDevices):
        return sources.devices.list_devices()
    if isinstance(request, req.FetchApps):
        return sources.devices.list_apps(request.device)
    if isinstance(request, req.FetchAllApps):
        return sources.devices.list_all_apps()
    if isinstance(request, req.BootDevice):
        return sources.devices.boot(request.udid)
    if isinstance(request, req.RevealInFinder):
        return sources.devices.reveal(request.path)
    if isinstance(request, req.FetchDirectory):
        return sources.fs.read_dir(request.path)
    if isinstance(request, req.OpenFile):
        return open_file(sources.fs, request.path, width=request.width, height=request.height)
    if isinstance(request, req.FetchChunk):
        return sources.fs.read_range(request.path, request.start, request.length)
    if isinstance(request, req.FetchTables):
        return sources.database.list_tables(request.path)
    if isinstance(request, req.FetchPage):
        return fetch_page(sources.database, request.path, request.table, request.offset, request.page_size)
    raise TypeError(f"unknown request type: {type(request).__name__}")


class RequestExecutor:
    """FIFO request runner with thread-safe result delivery."""

    def __init__(
        self,
        sources: Collaborators,
        workers: int = DEFAULT_WORKERS,
        run: Callable[[req.Request, Collaborators], object] = execute,
    ) -> None:
        self._sources = sources
        self._run = run
        self._jobs: Queue[req.Request | None] = Queue()
        self._results: Queue[object] = Queue()
        self._threads = [
            threading.Thread(target=self._worker, name=f"simviewer-worker-{n}", daemon=True)
            for n in range(max(1, workers))
        ]
        self._started = False
        self._stopped = False
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            if self._started or self._stopped:
                return
            self._started = True
        for thread in self._threads:
            thread.start()

    def stop(self) -> None:
        """Ask workers to exit once queued jobs are done."""
        with self._lock:
            if not self._started or self._stopped:
                return
            self._stopped = True
        for _ in self._threads:
            self._jobs.put(None)

    def submit(self, *requests: req.Request) -> None:
        if self._stopped:
            logger.debug("executor stopped; dropping %d request(s)", len(requests))
            return
        self.start()
        for request in requests:
            self._jobs.put(request)

    def _worker(self) -> None:
        while True:
            request = self._jobs.get()
            if request is None:
                return
            try:
                payload = self._run(request, self._sources)
            except Exception as exc:
                logger.warning("%s failed: %s", type(request).__name__, exc)
                result = AsyncResult(request=request, error=exc)
            else:
                result = AsyncResult(request=request, payload=payload)
            self._results.put(result)

    def post(self, action: object) -> None:
        """Queue an action produced outside the worker pool."""
        self._results.put(action)

    def drain_results(self) -> list[object]:
        """Drain completed results and posted actions without blocking."""
        out: list[object] = []
        while True:
            try:
                out.append(self._results.get_nowait())
            except Empty:
                break
        return out


__all__ = ["Collaborators", "RequestExecutor", "execute"]
