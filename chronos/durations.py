"""Compact duration text: ``1h30m``, ``45m``, ``2h``, ``1.5h`` and ``1:30``."""

from __future__ import annotations

import re
from typing import Dict

from .errors import DurationError

DURATION_CHARS = "0123456789hms:"
MAX_DURATION = 24 * 3600  # one day cell

_UNIT_SECONDS: Dict[str, int] = {"h": 3600, "m": 60, "s": 1}
_GROUP_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)([hms])")
_CLOCK_RE = re.compile(r"^(\d+):([0-5]\d)(?::([0-5]\d))?$")


def parse_duration(text: str) -> int:
    """Return the number of whole seconds described by ``text``."""
    raw = (text or "").strip().lower().replace(" ", "")
    if not raw:
        raise DurationError("empty duration")
    clock = _CLOCK_RE.match(raw)
    if clock:
        hours, minutes, seconds = clock.groups()
        total = int(hours) * 3600 + int(minutes) * 60 + int(seconds or 0)
    else:
        pos = 0
        total_f = 0.0
        for m in _GROUP_RE.finditer(raw):
            if m.start() != pos:
                raise DurationError(f"invalid duration {text!r}")
            total_f += float(m.group(1)) * _UNIT_SECONDS[m.group(2)]
            pos = m.end()
        if pos == 0 or pos != len(raw):
            raise DurationError(f"invalid duration {text!r}")
        if total_f > MAX_DURATION:
            raise DurationError(f"duration longer than 24h: {text!r}")
        total = int(round(total_f))
    if total <= 0:
        raise DurationError(f"duration must be positive: {text!r}")
    if total > MAX_DURATION:
        raise DurationError(f"duration longer than 24h: {text!r}")
    return total


def format_duration(seconds: int) -> str:
    """Format seconds largest unit first, omitting zero units (``0s`` for zero)."""
    seconds = int(seconds)
    if seconds <= 0:
        return "0s"
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    out = ""
    if h:
        out += f"{h}h"
    if m:
        out += f"{m}m"
    if s:
        out += f"{s}s"
    return out
