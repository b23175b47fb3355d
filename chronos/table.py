"""Fixed-width text rendering of the task × day grid."""

from __future__ import annotations

import unicodedata
from typing import Dict, List, Optional

from prompt_toolkit.utils import get_cwidth

from .durations import format_duration
from .models import CellPosition, EditMode, ReportMonth

TASK_COLUMN_WIDTH = 35
DAY_COLUMN_WIDTH = 8
WEEKEND_PLACEHOLDER = "x"
EMPTY_CELL = "-"
ELLIPSIS = "…"
RULE = "─"
JUNCTION = "─┼─"
DIVIDER = " │ "


# -----------------------------
# Cell helpers
# -----------------------------
def _char_width(ch: str) -> int:
    """Printable cell width for a single character."""
    if unicodedata.combining(ch) or unicodedata.category(ch) == "Cf":
        return 0
    fallback = 2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1
    width = get_cwidth(ch)
    if width <= 0:
        return fallback
    return max(width, fallback)


def _display_width(text: str) -> int:
    return sum(_char_width(ch) for ch in text)


def _sanitize_cell_text(s: Optional[str]) -> str:
    return (s or "").replace("\n", " ").replace("\r", " ").replace("\t", " ")


def _truncate(s: str, maxlen: int) -> str:
    """Cut to ``maxlen`` display cells, ending in an ellipsis when shortened."""
    s = _sanitize_cell_text(s)
    if maxlen <= 0:
        return ""
    if _display_width(s) <= maxlen:
        return s
    budget = maxlen - _display_width(ELLIPSIS)
    out: List[str] = []
    width = 0
    for ch in s:
        ch_w = _char_width(ch)
        if width + ch_w > budget:
            break
        out.append(ch)
        width += ch_w
    return "".join(out) + ELLIPSIS


def _truncate_head(s: str, maxlen: int) -> str:
    """Keep the tail of ``s``, behind a leading ellipsis, when it is too wide."""
    s = _sanitize_cell_text(s)
    if _display_width(s) <= maxlen:
        return s
    budget = maxlen - _display_width(ELLIPSIS)
    out: List[str] = []
    width = 0
    for ch in reversed(s):
        ch_w = _char_width(ch)
        if width + ch_w > budget:
            break
        out.append(ch)
        width += ch_w
    return ELLIPSIS + "".join(reversed(out))


def _pad_display(text: Optional[str], width: int, align: str = "left") -> str:
    """Pad/truncate text to an exact display width using spaces."""
    if align == "right":
        raw = _truncate_head(_sanitize_cell_text(text), width)
    else:
        raw = _truncate(_sanitize_cell_text(text), width)
    pad = max(0, width - _display_width(raw))
    if align == "right":
        return " " * pad + raw
    return raw + " " * pad


def _cell(text: str) -> str:
    return _pad_display(text, DAY_COLUMN_WIDTH, align="right")


def _duration_or_dash(seconds: int, weekend: bool = False) -> str:
    if seconds > 0:
        return format_duration(seconds)
    return WEEKEND_PLACEHOLDER if weekend else EMPTY_CELL


# -----------------------------
# Table
# -----------------------------
FIXED_WIDTH = TASK_COLUMN_WIDTH + DAY_COLUMN_WIDTH + len(DIVIDER)


def day_columns_for_width(width: int) -> int:
    """How many day columns fit next to the fixed columns in ``width`` cells."""
    return max(1, (width - FIXED_WIDTH) // DAY_COLUMN_WIDTH)


def build_table(
    matrix: Dict[str, Dict[int, int]],
    task_names: List[str],
    month: ReportMonth,
    cursor: CellPosition,
    mode: EditMode = EditMode.IDLE,
    edit_buffer: str = "",
    first_day: int = 0,
    day_count: Optional[int] = None,
) -> str:
    """Render the grid; ``first_day``/``day_count`` pick a window of day columns.

    Task totals always cover the whole month.
    """
    days = month.days
    stop = len(days) if day_count is None else min(len(days), first_day + day_count)
    shown = list(range(max(0, first_day), stop))
    lines: List[str] = []
    lines.extend(_header_lines(month, [days[i] for i in shown]))
    lines.append(_separator(len(shown)))
    editing = mode is EditMode.EDITING
    for task_index, task in enumerate(task_names):
        row = matrix.get(task, {})
        parts = [_pad_display(task, TASK_COLUMN_WIDTH), _cell(_duration_or_dash(sum(row.get(d, 0) for d in days))), DIVIDER]
        for day_index in shown:
            day = days[day_index]
            selected = cursor.task_index == task_index and cursor.day_index == day_index
            if editing and selected:
                content = f"[{edit_buffer}]"
            else:
                content = _duration_or_dash(row.get(day, 0), month.is_weekend(day))
                if selected:
                    content = f">{content}<"
            parts.append(_cell(content))
        lines.append("".join(parts))
    lines.append(_separator(len(shown)))
    lines.append(_totals_line(matrix, task_names, month, days, shown))
    return "\n".join(lines) + "\n"


def _header_lines(month: ReportMonth, days: List[int]) -> List[str]:
    numbers = [_pad_display("", TASK_COLUMN_WIDTH), _cell("Total"), DIVIDER]
    names = [_pad_display("Task", TASK_COLUMN_WIDTH), _cell(""), DIVIDER]
    for day in days:
        numbers.append(_cell(str(day)))
        names.append(_cell(month.weekday_abbr(day)))
    return ["".join(numbers), "".join(names)]


def _separator(columns: int) -> str:
    return RULE * (TASK_COLUMN_WIDTH + DAY_COLUMN_WIDTH) + JUNCTION + RULE * (DAY_COLUMN_WIDTH * columns)


def _totals_line(matrix: Dict[str, Dict[int, int]], task_names: List[str], month: ReportMonth,
                 days: List[int], shown: List[int]) -> str:
    per_day = {day: sum(matrix.get(task, {}).get(day, 0) for task in task_names) for day in days}
    parts = [_pad_display("TOTAL", TASK_COLUMN_WIDTH), _cell(_duration_or_dash(sum(per_day.values()))), DIVIDER]
    for day_index in shown:
        day = days[day_index]
        parts.append(_cell(_duration_or_dash(per_day[day], month.is_weekend(day))))
    return "".join(parts)
