"""In-memory tracker for offline demos (CHRONOS_MOCK=1)."""

from __future__ import annotations

import datetime as dt
import itertools
from typing import Dict, List, Optional

from .clockify import entry_bounds
from .errors import ApiError
from .models import ActivityItem, ReportEntry, ReportMonth, TimeEntry


class MemoryTracker:
    def __init__(self, entries: Optional[List[ReportEntry]] = None):
        self.entries: Dict[str, ReportEntry] = {}
        self._ids = itertools.count(1)
        for e in entries or []:
            self.entries[e.id] = e

    def _next_id(self) -> str:
        return f"mem-{next(self._ids)}"

    @staticmethod
    def _to_report(entry_id: str, entry: TimeEntry) -> ReportEntry:
        start, end = entry_bounds(entry)
        return ReportEntry(id=entry_id, description=entry.description, start=start, end=end)

    def fetch_entries(self, start: dt.datetime, end: dt.datetime) -> List[ReportEntry]:
        return [e for e in self.entries.values() if start <= e.start <= end]

    def create_entry(self, entry: TimeEntry) -> str:
        entry_id = self._next_id()
        self.entries[entry_id] = self._to_report(entry_id, entry)
        return entry_id

    def update_entry(self, entry_id: str, entry: TimeEntry) -> None:
        if entry_id not in self.entries:
            raise ApiError(f"time entry {entry_id} not found", status=404)
        self.entries[entry_id] = self._to_report(entry_id, entry)

    def delete_entry(self, entry_id: str) -> None:
        if self.entries.pop(entry_id, None) is None:
            raise ApiError(f"time entry {entry_id} not found", status=404)


def generate_demo_entries(month: ReportMonth) -> List[ReportEntry]:
    """Synthetic weekday entries for a few tasks across ``month``."""
    tasks = ["Code review", "Feature work", "Meetings"]
    minutes = [30, 90, 120, 45, 60]
    out: List[ReportEntry] = []
    n = 0
    for day in month.days:
        if month.is_weekend(day):
            continue
        for i, task in enumerate(tasks):
            if (day + i) % 3 == 0:
                continue
            n += 1
            start = dt.datetime(month.year, month.month, day, 9 + 2 * i, tzinfo=dt.timezone.utc)
            length = minutes[(day + i) % len(minutes)]
            out.append(ReportEntry(id=f"demo-{n}", description=task, start=start,
                                   end=start + dt.timedelta(minutes=length)))
    return out


def generate_demo_activity() -> Dict[str, List[ActivityItem]]:
    now = dt.datetime.now(dt.timezone.utc).replace(microsecond=0)
    linear = [
        ActivityItem("linear", f"ENG-{100 + i}", title, (now - dt.timedelta(hours=5 * i)).isoformat())
        for i, title in enumerate(["Fix report totals", "Add task popup", "Refresh keybinding"])
    ]
    gitlab = [
        ActivityItem("gitlab", "pushed to", "main", now.isoformat()),
        ActivityItem("gitlab", "opened", "Grid editor", now.isoformat()),
    ]
    return {"Linear": linear, "Git": gitlab}
