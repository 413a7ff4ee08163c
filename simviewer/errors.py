"""Error taxonomy shared by collaborators and the navigation machine.

Collaborators translate low-level failures into these types so the
state machine only has to recover from three kinds of problems.
"""

from __future__ import annotations


class SimviewerError(Exception):
    """Base class for recoverable simviewer failures."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)


class FetchError(SimviewerError):
    """A collaborator call (process, listing, query) failed."""


class ReadError(SimviewerError):
    """A file or table could not be read."""

    def __init__(self, path: str, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Cannot read {path}: {detail}", path=path)


class UnsupportedFormatError(SimviewerError):
    """A renderer cannot handle the payload it was given.

    Consumed by the content opener's fallback chain; never shown as an error.
    """


__all__ = [
    "SimviewerError",
    "FetchError",
    "ReadError",
    "UnsupportedFormatError",
]
