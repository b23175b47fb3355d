import datetime as dt
import json
import os
import sys
from typing import List, Optional

import pytest

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from chronos.errors import ApiError  # noqa: E402
from chronos.grid import ReportGrid  # noqa: E402
from chronos.models import ReportEntry, ReportMonth, TimeEntry  # noqa: E402

FIXED_NOW = dt.datetime(2024, 3, 14, 10, 45, 12)


class RecordingTracker:
    """Tracker double that records calls and can be told to fail."""

    def __init__(self, entries: Optional[List[ReportEntry]] = None):
        self.entries = list(entries or [])
        self.calls: List[tuple] = []
        self.fail: set = set()
        self._next = 0

    def _maybe_fail(self, op: str) -> None:
        if op in self.fail:
            raise ApiError(f"{op} exploded", status=500)

    def fetch_entries(self, start, end):
        self.calls.append(("fetch", start, end))
        self._maybe_fail("fetch")
        return list(self.entries)

    def create_entry(self, entry: TimeEntry) -> str:
        self.calls.append(("create", entry))
        self._maybe_fail("create")
        self._next += 1
        return f"new-{self._next}"

    def update_entry(self, entry_id: str, entry: TimeEntry) -> None:
        self.calls.append(("update", entry_id, entry))
        self._maybe_fail("update")

    def delete_entry(self, entry_id: str) -> None:
        self.calls.append(("delete", entry_id))
        self._maybe_fail("delete")

    def ops(self) -> List[str]:
        return [c[0] for c in self.calls]


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload


class DummySession:
    def __init__(self, *responses, exc=None):
        self.responses = list(responses)
        self.exc = exc
        self.requests = []
        self.headers = {}

    def request(self, method, url, timeout=None, **kwargs):
        self.requests.append((method, url, timeout, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.responses.pop(0)


def entry(entry_id, task, day, minutes, hour=9, month=(2024, 3), running=False) -> ReportEntry:
    start = dt.datetime(month[0], month[1], day, hour, tzinfo=dt.timezone.utc)
    end = None if running else start + dt.timedelta(minutes=minutes)
    return ReportEntry(id=entry_id, description=task, start=start, end=end)


@pytest.fixture
def march():
    # 2024-03-01 is a Friday; the 2nd and 3rd are a weekend.
    return ReportMonth(2024, 3)


@pytest.fixture
def tracker():
    return RecordingTracker()


@pytest.fixture
def make_grid(tracker, march):
    def _make(entries=None, project_id=""):
        tracker.entries = list(entries or [])
        return ReportGrid(tracker, march, project_id=project_id, entries=tracker.entries,
                          clock=lambda: FIXED_NOW)
    return _make


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for var in ("CHRONOS_MOCK", "CLOCKIFY_API_KEY", "CLOCKIFY_BASE_URL", "CLOCKIFY_USER_URL",
                "CLOCKIFY_WORKSPACE", "CLOCKIFY_USER_ID", "CLOCKIFY_DEFAULT_PROJECT",
                "LINEAR_API_KEY", "LINEAR_BASE_URL", "GITLAB_API_KEY", "GITLAB_BASE_URL", "GITLAB_USER_ID"):
        monkeypatch.delenv(var, raising=False)
