"""Panel geometry for the report screen.

Rows and columns are terminal cells; each rectangle includes its frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

MIN_FULL_LAYOUT_HEIGHT = 60
POPUP_WIDTH = 50
POPUP_HEIGHT = 5
FULL_LOG_HEIGHT = 6
SIMPLE_LOG_HEIGHT = 5
HELP_HEIGHT = 2


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class LayoutPlan:
    full: bool
    grid: Rect
    log: Rect
    linear: Optional[Rect] = None
    git: Optional[Rect] = None
    help: Optional[Rect] = None
    popup: Optional[Rect] = None

    @property
    def top_height(self) -> int:
        return self.linear.height if self.linear else 0


def compute_layout(columns: int, rows: int, adding_task: bool = False,
                   min_full_height: int = MIN_FULL_LAYOUT_HEIGHT) -> LayoutPlan:
    columns = max(1, columns)
    rows = max(1, rows)
    popup = _popup_rect(columns, rows) if adding_task else None
    if rows < min_full_height:
        return _simple_layout(columns, rows, popup)

    top = max(3, rows // 3)
    mid = columns // 2
    remaining = rows - top - 1
    log_height = FULL_LOG_HEIGHT
    if log_height > (remaining - HELP_HEIGHT) // 2:
        log_height = (remaining - HELP_HEIGHT) // 2
    grid_height = remaining - log_height - HELP_HEIGHT - 1
    grid_y = top + 1
    log_y = grid_y + grid_height
    help_y = log_y + log_height
    return LayoutPlan(
        full=True,
        linear=Rect(0, 0, mid, top + 1),
        git=Rect(mid, 0, columns - mid, top + 1),
        grid=Rect(0, grid_y, columns, grid_height),
        log=Rect(0, log_y, columns, log_height),
        help=Rect(0, help_y, columns, max(0, rows - help_y)),
        popup=popup,
    )


def _simple_layout(columns: int, rows: int, popup: Optional[Rect]) -> LayoutPlan:
    grid_height = max(0, rows - SIMPLE_LOG_HEIGHT - 1)
    return LayoutPlan(
        full=False,
        grid=Rect(0, 0, columns, grid_height + 1),
        log=Rect(0, grid_height + 1, columns, max(0, rows - grid_height - 1)),
        popup=popup,
    )


def _popup_rect(columns: int, rows: int) -> Rect:
    width = min(POPUP_WIDTH, columns)
    height = min(POPUP_HEIGHT, rows)
    return Rect((columns - width) // 2, (rows - height) // 2, width, height)
