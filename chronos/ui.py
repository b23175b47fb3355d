"""Full-screen report editor built on prompt_toolkit.

Panels (top to bottom): Linear activity | Git activity, the time grid, the
log, and a help line. Terminals shorter than the configured height get only
the grid and the log. Every panel is regenerated on each render.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from prompt_toolkit import Application
from prompt_toolkit.data_structures import Size
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout import HSplit, Layout, VSplit, Window
from prompt_toolkit.layout.containers import ConditionalContainer, Float, FloatContainer
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame

from .activity import activity_lines
from .grid import ReportGrid
from .keys import NAMED_KEYS, KeyDispatcher
from .layout import MIN_FULL_LAYOUT_HEIGHT, LayoutPlan, compute_layout
from .models import ActivityItem, EditMode, Focus
from .table import build_table, day_columns_for_width

Fragments = List[Tuple[str, str]]

REPORT_STYLE: Dict[str, str] = {
    'frame.border': '#5f5f5f',
    'frame.label': 'bold #ffd75f',
    'log.info': '#d0d0d0',
    'log.error': 'bold #ff8787',
    'help.key': 'bold',
    'help.text': '#87d7ff',
    'popup': 'bg:#202020 #ffffff',
    'activity': '#d7d7d7',
}

HELP_KEYS = [
    ("Arrow keys", "Navigate"),
    ("Enter", "Edit/Save"),
    ("Q/Esc", "Cancel"),
    ("Ctrl+N", "Add new task"),
    ("Ctrl+D", "Delete entry"),
    ("Ctrl+R", "Refresh"),
    ("Ctrl+T", "Focus table"),
    ("Ctrl+L", "Focus log"),
    ("Ctrl+C", "Exit"),
]

FRAME_CELLS = 2  # one border cell on each side


class ReportScreen:
    def __init__(
        self,
        grid: ReportGrid,
        activity: Optional[Dict[str, List[ActivityItem]]] = None,
        min_full_height: int = MIN_FULL_LAYOUT_HEIGHT,
        size_provider: Optional[Callable[[], Size]] = None,
    ):
        self.grid = grid
        self.activity = activity or {}
        self.min_full_height = min_full_height
        self._size_provider = size_provider
        self.day_offset = 0
        self.app: Optional[Application] = None
        self.dispatcher = KeyDispatcher(grid, on_quit=self.quit)

    # --- geometry ---
    def terminal_size(self) -> Size:
        if self._size_provider is not None:
            return self._size_provider()
        if self.app is not None:
            return self.app.output.get_size()
        return Size(rows=24, columns=80)

    def plan(self) -> LayoutPlan:
        size = self.terminal_size()
        return compute_layout(size.columns, size.rows,
                              adding_task=self.grid.mode is EditMode.ADDING_TASK,
                              min_full_height=self.min_full_height)

    def _visible_days(self, plan: LayoutPlan) -> int:
        visible = day_columns_for_width(plan.grid.width - FRAME_CELLS)
        day_index = self.grid.cursor.day_index
        if day_index < self.day_offset:
            self.day_offset = day_index
        elif day_index >= self.day_offset + visible:
            self.day_offset = day_index - visible + 1
        self.day_offset = max(0, min(self.day_offset, max(0, len(self.grid.days) - visible)))
        return visible

    # --- panel content ---
    def table_text(self) -> str:
        g = self.grid
        visible = self._visible_days(self.plan())
        return build_table(g.matrix, g.task_names, g.month, g.cursor, g.mode, g.edit_buffer,
                           first_day=self.day_offset, day_count=visible)

    def log_fragments(self) -> Fragments:
        height = max(1, self.plan().log.height - FRAME_CELLS)
        frags: Fragments = []
        for entry in self.grid.log.visible(height):
            style = 'class:log.error' if entry.level == 'ERROR' else 'class:log.info'
            frags.append((style, entry.render()))
            frags.append(('', '\n'))
        if frags:
            frags.pop()
        return frags

    def activity_text(self, source_name: str) -> str:
        return "\n".join(activity_lines(self.activity.get(source_name, []), source_name))

    def help_fragments(self) -> Fragments:
        frags: Fragments = []
        for i, (key, action) in enumerate(HELP_KEYS):
            if i:
                frags.append(('class:help.text', ' | '))
            frags.append(('class:help.key', key))
            frags.append(('class:help.text', f': {action}'))
        frags.append(('class:help.text', '\nDuration format: 1h30m, 2h, 45m, 1:30, etc.'))
        return frags

    def popup_text(self) -> str:
        return f"Task name: {self.grid.new_task_buffer}\n\nPress Enter to confirm, Esc to cancel"

    def grid_title(self) -> str:
        marker = "▶ " if self.grid.focus is Focus.GRID and self.grid.mode is not EditMode.ADDING_TASK else ""
        return f" {marker}Time Report - {self.grid.month.label()} "

    def log_title(self) -> str:
        marker = "▶ " if self.grid.focus is Focus.LOG else ""
        flag = " (error)" if self.grid.log.error_pending else ""
        return f" {marker}Log{flag} "

    # --- containers ---
    def _rows(self, pick: Callable[[LayoutPlan], int]) -> Callable[[], Dimension]:
        return lambda: Dimension.exact(max(0, pick(self.plan())))

    def build_container(self) -> FloatContainer:
        is_full = Condition(lambda: self.plan().full)
        is_adding = Condition(lambda: self.grid.mode is EditMode.ADDING_TASK)

        def panel(text: Callable[[], object], wrap: bool = True) -> Window:
            return Window(content=FormattedTextControl(text=text), wrap_lines=wrap, always_hide_cursor=True)

        linear_frame = Frame(panel(lambda: self.activity_text("Linear")), title=" Recent Linear Activity ",
                             style='class:activity',
                             width=lambda: Dimension.exact(self.plan().linear.width) if self.plan().linear else None)
        git_frame = Frame(panel(lambda: self.activity_text("Git")), title=" Recent Git Activity ",
                          style='class:activity')
        top = ConditionalContainer(
            VSplit([linear_frame, git_frame], height=self._rows(lambda p: p.top_height)),
            filter=is_full,
        )
        grid_frame = Frame(panel(self.table_text, wrap=False), title=self.grid_title,
                           height=self._rows(lambda p: p.grid.height))
        log_frame = Frame(panel(self.log_fragments), title=self.log_title,
                          height=self._rows(lambda p: p.log.height))
        help_window = ConditionalContainer(
            Window(content=FormattedTextControl(text=self.help_fragments), wrap_lines=True,
                   height=self._rows(lambda p: p.help.height if p.help else 0)),
            filter=is_full,
        )
        popup = Float(content=ConditionalContainer(
            Frame(panel(self.popup_text), title=" Add New Task ", style='class:popup',
                  width=lambda: Dimension.exact(self.plan().popup.width) if self.plan().popup else None,
                  height=lambda: Dimension.exact(self.plan().popup.height) if self.plan().popup else None),
            filter=is_adding,
        ))
        body = HSplit([top, grid_frame, log_frame, help_window])
        return FloatContainer(content=body, floats=[popup])

    def build_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()
        dispatcher = self.dispatcher

        for key_name in NAMED_KEYS:
            @kb.add(key_name)
            def _(event, key=key_name):
                dispatcher.dispatch(key)

        @kb.add(Keys.Any)
        def _(event):
            ch = event.data or ""
            if len(ch) == 1 and ch.isprintable():
                dispatcher.dispatch(ch)

        return kb

    def build_application(self, input=None, output=None) -> Application:
        self.app = Application(
            layout=Layout(self.build_container()),
            key_bindings=self.build_key_bindings(),
            full_screen=True,
            style=Style.from_dict(REPORT_STYLE),
            input=input,
            output=output,
        )
        # Escape should cancel without waiting for a possible escape sequence.
        self.app.ttimeoutlen = 0.05
        return self.app

    def quit(self) -> None:
        if self.app is not None and self.app.is_running:
            self.app.exit()
