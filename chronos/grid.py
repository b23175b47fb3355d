"""Report grid state: task/day matrix, remote ids, cursor, edit session and log."""

from __future__ import annotations

import bisect
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .durations import DURATION_CHARS, format_duration, parse_duration
from .errors import ApiError, DurationError
from .models import (
    CellPosition,
    Direction,
    EditMode,
    Focus,
    ReportEntry,
    ReportMonth,
    TimeEntry,
    TimeTracker,
)

logger = logging.getLogger('chronos')

UNNAMED_TASK = "Unnamed Task"
UPDATE_FAILED = "Update failed"
SAVE_FAILED = "Save failed"

Matrix = Dict[str, Dict[int, int]]
RemoteIndex = Dict[str, Dict[int, str]]


# -----------------------------
# Log buffer
# -----------------------------
@dataclass
class LogEntry:
    timestamp: dt.datetime
    level: str
    message: str

    def render(self) -> str:
        return f"[{self.timestamp.strftime('%H:%M:%S')}] {self.level}: {self.message}"


class LogBuffer:
    """Append-only session log with a scrollable view that follows new messages."""

    def __init__(self, clock: Callable[[], dt.datetime] = dt.datetime.now):
        self._clock = clock
        self.entries: List[LogEntry] = []
        self.offset = 0
        self.follow = True
        self.page_size = 4
        self.error_pending = False

    def info(self, message: str) -> None:
        self._append("INFO", message)
        logger.info(message)

    def error(self, message: str) -> None:
        self._append("ERROR", message)
        self.error_pending = True
        logger.error(message)

    def _append(self, level: str, message: str) -> None:
        self.entries.append(LogEntry(self._clock(), level, message))
        self.follow = True

    def clear_error(self) -> None:
        self.error_pending = False

    def lines(self) -> List[str]:
        return [e.render() for e in self.entries]

    def _max_offset(self, height: int) -> int:
        return max(0, len(self.entries) - max(1, height))

    def visible(self, height: int) -> List[LogEntry]:
        """Entries shown in a view ``height`` lines tall."""
        height = max(1, height)
        self.page_size = height
        if self.follow:
            self.offset = self._max_offset(height)
        self.offset = max(0, min(self.offset, self._max_offset(height)))
        return self.entries[self.offset:self.offset + height]

    def scroll(self, delta: int) -> None:
        top = self._max_offset(self.page_size)
        if self.follow:
            self.offset = top
        self.offset = max(0, min(self.offset + delta, top))
        self.follow = self.offset >= top


# -----------------------------
# Grouping
# -----------------------------
def group_entries(entries: List[ReportEntry], month: ReportMonth) -> Tuple[Matrix, RemoteIndex, List[str]]:
    """Fold fetched entries into (matrix, remote ids, sorted task names).

    Same-day duplicates are summed and only the id of the latest-starting
    entry is kept. Running timers and entries starting outside ``month``
    are skipped.
    """
    matrix: Matrix = {}
    remote: RemoteIndex = {}
    latest: Dict[Tuple[str, int], dt.datetime] = {}
    for entry in entries:
        if entry.end is None or not month.contains(entry.start):
            continue
        task = entry.description or UNNAMED_TASK
        day = entry.start.day
        matrix.setdefault(task, {})
        remote.setdefault(task, {})
        matrix[task][day] = matrix[task].get(day, 0) + entry.seconds
        seen = latest.get((task, day))
        if seen is None or entry.start >= seen:
            latest[(task, day)] = entry.start
            remote[task][day] = entry.id
    return matrix, remote, sorted(matrix)


# -----------------------------
# Controller
# -----------------------------
class ReportGrid:
    """Owns every piece of mutable report state and the sync path to the tracker."""

    def __init__(
        self,
        tracker: TimeTracker,
        month: ReportMonth,
        project_id: str = "",
        entries: Optional[List[ReportEntry]] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ):
        self.tracker = tracker
        self.month = month
        self.project_id = project_id
        self.days: List[int] = month.days
        self._clock = clock
        self.matrix: Matrix = {}
        self.remote_ids: RemoteIndex = {}
        self.task_names: List[str] = []
        self.cursor = CellPosition()
        self.mode = EditMode.IDLE
        self.focus = Focus.GRID
        self.edit_buffer = ""
        self.new_task_buffer = ""
        self.buffer_is_placeholder = False
        self.log = LogBuffer(clock)
        if entries is not None:
            self.load(entries)

    # --- state helpers ---
    @property
    def is_idle(self) -> bool:
        return self.mode is EditMode.IDLE

    def load(self, entries: List[ReportEntry]) -> None:
        self.matrix, self.remote_ids, self.task_names = group_entries(entries, self.month)
        self._clamp_cursor()

    def _clamp_cursor(self) -> None:
        self.cursor.task_index = max(0, min(self.cursor.task_index, len(self.task_names) - 1))
        self.cursor.day_index = max(0, min(self.cursor.day_index, len(self.days) - 1))

    def selected_cell(self) -> Optional[Tuple[str, int]]:
        if not self.task_names or not self.days:
            return None
        return self.task_names[self.cursor.task_index], self.days[self.cursor.day_index]

    def duration_at(self, task: str, day: int) -> int:
        return self.matrix.get(task, {}).get(day, 0)

    def remote_id_at(self, task: str, day: int) -> Optional[str]:
        return self.remote_ids.get(task, {}).get(day) or None

    def _entry_time(self, day: int) -> dt.datetime:
        now = self._clock()
        return dt.datetime(self.month.year, self.month.month, day,
                           now.hour, now.minute, now.second, tzinfo=dt.timezone.utc)

    def _reset_edit(self) -> None:
        self.mode = EditMode.IDLE
        self.edit_buffer = ""
        self.buffer_is_placeholder = False

    # --- navigation ---
    def move_cursor(self, direction: Direction) -> None:
        if not self.is_idle or not self.task_names:
            return
        d_task, d_day = direction.value
        self.cursor.task_index += d_task
        self.cursor.day_index += d_day
        self._clamp_cursor()

    def focus_grid(self) -> None:
        if self.is_idle:
            self.focus = Focus.GRID

    def focus_log(self) -> None:
        if self.is_idle:
            self.focus = Focus.LOG

    # --- cell editing ---
    def begin_edit(self) -> None:
        if not self.is_idle:
            return
        cell = self.selected_cell()
        if cell is None:
            self.log.error("No task selected; press Ctrl+N to add one")
            return
        seconds = self.duration_at(*cell)
        self.edit_buffer = format_duration(seconds) if seconds > 0 else ""
        self.buffer_is_placeholder = False
        self.mode = EditMode.EDITING

    def type_char(self, ch: str) -> None:
        if self.mode is EditMode.EDITING:
            if len(ch) != 1 or ch not in DURATION_CHARS:
                return
            if self.buffer_is_placeholder:
                self.edit_buffer = ""
                self.buffer_is_placeholder = False
            self.edit_buffer += ch
        elif self.mode is EditMode.ADDING_TASK:
            if len(ch) == 1 and 32 <= ord(ch) <= 126:
                self.new_task_buffer += ch

    def backspace(self) -> None:
        if self.mode is EditMode.EDITING:
            if self.buffer_is_placeholder:
                self.edit_buffer = ""
                self.buffer_is_placeholder = False
            else:
                self.edit_buffer = self.edit_buffer[:-1]
        elif self.mode is EditMode.ADDING_TASK:
            self.new_task_buffer = self.new_task_buffer[:-1]

    def commit_edit(self) -> None:
        if self.mode is not EditMode.EDITING:
            return
        cell = self.selected_cell()
        if cell is None:
            self._reset_edit()
            return
        task, day = cell
        if self.edit_buffer == "":
            self._commit_empty(task, day)
            return
        try:
            seconds = parse_duration(self.edit_buffer)
        except DurationError:
            self.log.error(f"Invalid duration format: {self.edit_buffer}")
            self._reset_edit()
            return

        entry = TimeEntry(description=task, time=self._entry_time(day),
                          duration=seconds, project_id=self.project_id)
        existing_id = self.remote_id_at(task, day)
        # Written before the remote outcome is known; a failed call is only reported.
        self.matrix.setdefault(task, {})[day] = seconds
        shown = format_duration(seconds)
        when = entry.time.strftime('%Y-%m-%d')

        if existing_id:
            entry.id = existing_id
            self.log.info(f"Attempting to update existing entry (ID {existing_id}): {shown} for '{task}' on {when}")
            try:
                self.tracker.update_entry(existing_id, entry)
            except ApiError as exc:
                self.log.error(f"Failed to update time entry: {exc}")
                self.edit_buffer = UPDATE_FAILED
                self.buffer_is_placeholder = True
                return
            self.log.info(f"Successfully updated {shown} for {task} on day {day} (ID: {existing_id})")
        else:
            self.log.info(f"Attempting to log new entry: {shown} for '{task}' on {when}")
            try:
                new_id = self.tracker.create_entry(entry)
            except ApiError as exc:
                self.log.error(f"Failed to save time entry: {exc}")
                self.edit_buffer = SAVE_FAILED
                self.buffer_is_placeholder = True
                return
            self.remote_ids.setdefault(task, {})[day] = new_id
            self.log.info(f"Successfully logged {shown} for {task} on day {day} (ID: {new_id})")
        self._reset_edit()

    def _commit_empty(self, task: str, day: int) -> None:
        self.log.clear_error()
        self._reset_edit()
        if self.remote_id_at(task, day):
            self.delete_entry()
        elif day in self.matrix.get(task, {}):
            del self.matrix[task][day]
            self.log.info(f"Cleared unsaved value for {task} on day {day}")

    def cancel_edit(self) -> None:
        if self.mode is EditMode.ADDING_TASK:
            self.cancel_add_task()
            return
        if self.mode is EditMode.EDITING:
            self._reset_edit()
            self.log.info("Edit cancelled")

    # --- remote mutations ---
    def delete_entry(self) -> None:
        if not self.is_idle:
            return
        cell = self.selected_cell()
        if cell is None:
            return
        task, day = cell
        existing_id = self.remote_id_at(task, day)
        if not existing_id:
            self.log.error("No time entry to delete at this position")
            return
        shown = format_duration(self.duration_at(task, day))
        self.log.info(f"Attempting to delete entry (ID {existing_id}): {shown} for '{task}' on day {day}")
        try:
            self.tracker.delete_entry(existing_id)
        except ApiError as exc:
            self.log.error(f"Failed to delete time entry: {exc}")
            return
        self.matrix.get(task, {}).pop(day, None)
        self.remote_ids[task].pop(day, None)
        self.log.info(f"Successfully deleted {shown} for {task} on day {day}")

    def refresh(self) -> None:
        if not self.is_idle:
            return
        self.log.info("Refreshing data...")
        start, end = self.month.bounds()
        try:
            entries = self.tracker.fetch_entries(start, end)
        except ApiError as exc:
            self.log.error(f"Failed to refresh data: {exc}")
            return
        self.load(entries)
        self.log.info(f"Data refreshed successfully - found {len(entries)} time entries")

    # --- task list ---
    def begin_add_task(self) -> None:
        if not self.is_idle:
            return
        self.mode = EditMode.ADDING_TASK
        self.new_task_buffer = ""
        self.log.info("Enter new task name (press Enter to confirm, Esc to cancel)")

    def cancel_add_task(self) -> None:
        if self.mode is not EditMode.ADDING_TASK:
            return
        self.mode = EditMode.IDLE
        self.new_task_buffer = ""
        self.log.info("Add new task cancelled")

    def confirm_add_task(self) -> None:
        if self.mode is not EditMode.ADDING_TASK:
            return
        name = self.new_task_buffer.strip()
        self.mode = EditMode.IDLE
        self.new_task_buffer = ""
        if not name:
            self.log.error("Task name cannot be empty")
            return
        if name in self.task_names:
            self.log.error(f"Task '{name}' already exists")
            return
        index = bisect.bisect_left(self.task_names, name)
        self.task_names.insert(index, name)
        self.matrix.setdefault(name, {})
        self.remote_ids.setdefault(name, {})
        self.cursor.task_index = index
        self.cursor.day_index = 0
        self.focus = Focus.GRID
        self.log.info(f"Added new task: '{name}'")
