"""Key routing for the report screen.

Keys are prompt_toolkit key names (``up``, ``enter``, ``c-n`` ...) or one
printable character. Routing is a table from (edit mode, key) to a handler;
combinations missing from the table are ignored.
"""

from __future__ import annotations

from typing import Callable, Dict, Tuple

from .grid import ReportGrid
from .models import Direction, EditMode, Focus

UP, DOWN, LEFT, RIGHT = 'up', 'down', 'left', 'right'
ENTER = 'enter'
ESCAPE = 'escape'
BACKSPACE = 'backspace'
PAGE_UP, PAGE_DOWN = 'pageup', 'pagedown'
CTRL_C, CTRL_D, CTRL_L, CTRL_N, CTRL_R, CTRL_T = 'c-c', 'c-d', 'c-l', 'c-n', 'c-r', 'c-t'
CHAR = '<char>'

NAMED_KEYS = (
    UP, DOWN, LEFT, RIGHT, ENTER, ESCAPE, BACKSPACE, PAGE_UP, PAGE_DOWN,
    CTRL_C, CTRL_D, CTRL_L, CTRL_N, CTRL_R, CTRL_T,
)

Handler = Callable[[str], None]


class KeyDispatcher:
    def __init__(self, grid: ReportGrid, on_quit: Callable[[], None]):
        self.grid = grid
        self.on_quit = on_quit
        g = grid
        idle: Dict[str, Handler] = {
            UP: lambda _k: g.move_cursor(Direction.UP),
            DOWN: lambda _k: g.move_cursor(Direction.DOWN),
            LEFT: lambda _k: g.move_cursor(Direction.LEFT),
            RIGHT: lambda _k: g.move_cursor(Direction.RIGHT),
            ENTER: lambda _k: g.begin_edit(),
            'q': self._quit,
            CTRL_N: lambda _k: g.begin_add_task(),
            CTRL_D: lambda _k: g.delete_entry(),
            CTRL_R: lambda _k: g.refresh(),
            CTRL_T: lambda _k: g.focus_grid(),
            CTRL_L: lambda _k: g.focus_log(),
        }
        editing: Dict[str, Handler] = {
            CHAR: g.type_char,
            BACKSPACE: lambda _k: g.backspace(),
            ENTER: lambda _k: g.commit_edit(),
            ESCAPE: lambda _k: g.cancel_edit(),
            'q': lambda _k: g.cancel_edit(),
        }
        adding: Dict[str, Handler] = {
            CHAR: g.type_char,
            BACKSPACE: lambda _k: g.backspace(),
            ENTER: lambda _k: g.confirm_add_task(),
            ESCAPE: lambda _k: g.cancel_add_task(),
            'q': lambda _k: g.cancel_add_task(),
        }
        self.transitions: Dict[Tuple[EditMode, str], Handler] = {}
        for mode, table in ((EditMode.IDLE, idle), (EditMode.EDITING, editing), (EditMode.ADDING_TASK, adding)):
            for key, handler in table.items():
                self.transitions[(mode, key)] = handler
            self.transitions[(mode, CTRL_C)] = self._quit
        # While the log panel has focus these replace the grid bindings.
        self.log_transitions: Dict[str, Handler] = {
            UP: lambda _k: g.log.scroll(-1),
            DOWN: lambda _k: g.log.scroll(1),
            PAGE_UP: lambda _k: g.log.scroll(-g.log.page_size),
            PAGE_DOWN: lambda _k: g.log.scroll(g.log.page_size),
            LEFT: lambda _k: None,
            RIGHT: lambda _k: None,
            ENTER: lambda _k: None,
            CTRL_D: lambda _k: None,
        }

    def _quit(self, _key: str) -> None:
        self.on_quit()

    def lookup(self, key: str):
        mode = self.grid.mode
        if mode is EditMode.IDLE and self.grid.focus is Focus.LOG and key in self.log_transitions:
            return self.log_transitions[key]
        handler = self.transitions.get((mode, key))
        if handler is None and len(key) == 1 and key.isprintable():
            handler = self.transitions.get((mode, CHAR))
        return handler

    def dispatch(self, key: str) -> bool:
        """Route ``key``; return False when the current mode does not handle it."""
        handler = self.lookup(key)
        if handler is None:
            return False
        handler(key)
        return True
