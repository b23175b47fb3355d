from __future__ import annotations

import calendar
import datetime as dt
import enum
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple


# -----------------------------
# Time entries
# -----------------------------
@dataclass
class TimeEntry:
    description: str               # task name
    time: dt.datetime              # the date gives the day-of-month
    duration: int                  # seconds
    project_id: str = ""
    id: Optional[str] = None       # None until persisted


@dataclass
class ReportEntry:
    id: str
    description: str
    start: dt.datetime
    end: Optional[dt.datetime]     # None while a timer is still running

    @property
    def seconds(self) -> int:
        if self.end is None:
            return 0
        return max(0, int((self.end - self.start).total_seconds()))


class TimeTracker(Protocol):
    """Remote operations the report grid needs from a time-tracking service."""

    def fetch_entries(self, start: dt.datetime, end: dt.datetime) -> List[ReportEntry]: ...

    def create_entry(self, entry: TimeEntry) -> str: ...

    def update_entry(self, entry_id: str, entry: TimeEntry) -> None: ...

    def delete_entry(self, entry_id: str) -> None: ...


# -----------------------------
# Report month
# -----------------------------
@dataclass(frozen=True)
class ReportMonth:
    year: int
    month: int

    @classmethod
    def current(cls, today: Optional[dt.date] = None) -> "ReportMonth":
        today = today or dt.date.today()
        return cls(today.year, today.month)

    @classmethod
    def parse(cls, text: str) -> "ReportMonth":
        """Parse ``YYYY-MM``."""
        try:
            year_s, month_s = text.strip().split("-", 1)
            year, month = int(year_s), int(month_s)
        except ValueError:
            raise ValueError(f"Month must look like YYYY-MM, got {text!r}") from None
        if not 1 <= month <= 12:
            raise ValueError(f"Month out of range: {text!r}")
        return cls(year, month)

    @property
    def day_count(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def days(self) -> List[int]:
        return list(range(1, self.day_count + 1))

    def date(self, day: int) -> dt.date:
        return dt.date(self.year, self.month, day)

    def is_weekend(self, day: int) -> bool:
        return self.date(day).weekday() >= 5

    def weekday_abbr(self, day: int) -> str:
        return calendar.day_abbr[self.date(day).weekday()][:3]

    def contains(self, moment: dt.datetime) -> bool:
        return moment.year == self.year and moment.month == self.month

    def bounds(self) -> Tuple[dt.datetime, dt.datetime]:
        """First and last second of the month in UTC."""
        start = dt.datetime(self.year, self.month, 1, tzinfo=dt.timezone.utc)
        end = start + dt.timedelta(days=self.day_count) - dt.timedelta(seconds=1)
        return start, end

    def label(self) -> str:
        return self.date(1).strftime("%B %Y")


# -----------------------------
# Grid state
# -----------------------------
class EditMode(enum.Enum):
    IDLE = "idle"
    EDITING = "editing"
    ADDING_TASK = "adding-task"


class Focus(enum.Enum):
    GRID = "grid"
    LOG = "log"


class Direction(enum.Enum):
    UP = (-1, 0)
    DOWN = (1, 0)
    LEFT = (0, -1)
    RIGHT = (0, 1)


@dataclass
class CellPosition:
    task_index: int = 0
    day_index: int = 0


# -----------------------------
# Activity feeds
# -----------------------------
@dataclass
class ActivityItem:
    source: str          # "linear" or "gitlab"
    label: str           # issue identifier or event action
    title: str
    timestamp: str = ""  # raw timestamp from the feed
