"""Live search and boolean filter over list views.

Matches are always recomputed from the full source sequence, so deleting
characters from a query never leaves stale narrowing behind.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import TypeVar

from .sources.types import AppSummary, DeviceSummary, Entry, TableSchema
from .viewport import clamp_cursor

T = TypeVar("T")

FieldsFn = Callable[[T], Iterable[str]]


@dataclass(frozen=True)
class FilterState:
    """Query text plus the independent boolean filter flag."""

    query: str = ""
    editing: bool = False
    flag: bool = False

    @property
    def active(self) -> bool:
        return bool(self.query) or self.flag

    def toggled_flag(self) -> FilterState:
        return replace(self, flag=not self.flag)


EMPTY_FILTER = FilterState()


def matches_query(fields: Iterable[str], query: str) -> bool:
    """Return whether any field contains ``query`` case-insensitively."""
    if not query:
        return True
    needle = query.lower()
    return any(needle in (field or "").lower() for field in fields)


def apply_query(
    items: Sequence[T],
    query: str,
    fields_for: FieldsFn,
    predicate: Callable[[T], bool] | None = None,
) -> tuple[int, ...]:
    """Return source indices of items matching ``query`` and ``predicate``.

    Indices keep source order. With an empty query and no predicate this is
    the identity mapping.
    """
    if not query and predicate is None:
        return tuple(range(len(items)))
    out: list[int] = []
    for idx, item in enumerate(items):
        if predicate is not None and not predicate(item):
            continue
        if matches_query(fields_for(item), query):
            out.append(idx)
    return tuple(out)


def remap_cursor(old_matched: Sequence[int], old_cursor: int, new_matched: Sequence[int]) -> int:
    """Carry the selection across a change of matched indices.

    If the previously selected source item is still matched the cursor follows
    it, otherwise it resets to the first match (or ``-1`` when none match).
    """
    if not new_matched:
        return -1
    if 0 <= old_cursor < len(old_matched):
        selected = old_matched[old_cursor]
        for pos, idx in enumerate(new_matched):
            if idx == selected:
                return pos
    return clamp_cursor(0, len(new_matched))


def device_fields(device: DeviceSummary) -> tuple[str, ...]:
    return (device.name, device.runtime, device.state)


def app_fields(app: AppSummary) -> tuple[str, ...]:
    return (app.name, app.bundle_id, app.version)


def all_app_fields(app: AppSummary) -> tuple[str, ...]:
    return (app.name, app.bundle_id, app.version, app.device_name)


def entry_fields(entry: Entry) -> tuple[str, ...]:
    return (entry.name,)


def table_fields(table: TableSchema) -> tuple[str, ...]:
    return (table.name,)


def device_has_apps(device: DeviceSummary) -> bool:
    return device.app_count > 0


__all__ = [
    "EMPTY_FILTER",
    "FilterState",
    "all_app_fields",
    "app_fields",
    "apply_query",
    "device_fields",
    "device_has_apps",
    "entry_fields",
    "matches_query",
    "remap_cursor",
    "table_fields",
]
