# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
The two capabilities shared by every backend.

Output is implemented by Terminal (immediate mode) and Screen (buffered).
Input is implemented by both as well, reading from the device underneath.
Code written against these classes doesn't care which backend it drives.

Concurrency contract: an instance has a single logical owner. Nothing here
takes locks, so callers that draw from one thread while blocking in get()
on another must serialize access themselves. Resize callbacks can run on a
thread the caller doesn't control and must not block.
"""

import abc
import unicodedata

from lanterm.constants import KeyType, key_type
from lanterm.constants import color as color_arg
from lanterm.constants import styles as styles_arg
from lanterm.errors import InvalidAttribute

# Lifecycle states
UNINITIALIZED = "uninitialized"
STARTED = "started"
STOPPED = "stopped"


# ---------------------------------------------------------------------------
# Argument checks shared by the backends
# ---------------------------------------------------------------------------


def check_char(ch):
    """
    Return 'ch' if it is a single drawable character. Control characters
    (newline, tab, escape, ...) would desynchronize the cursor bookkeeping and
    are rejected with InvalidAttribute.
    """
    if not isinstance(ch, str) or len(ch) != 1:
        raise InvalidAttribute(f"expected a single character, got {ch!r}")
    if unicodedata.category(ch) in ("Cc", "Zl", "Zp"):
        raise InvalidAttribute(f"can't draw control character {ch!r}")
    return ch


def check_string(s):
    """Return 's' if every character in it is drawable."""
    if not isinstance(s, str):
        raise InvalidAttribute(f"expected a string, got {s!r}")
    for ch in s:
        check_char(ch)
    return s


def check_pos(pos):
    """Return 'pos' as a (column, row) tuple of non-negative ints."""
    try:
        col, row = pos
    except (TypeError, ValueError):
        raise InvalidAttribute(f"position must be a (column, row) pair, not {pos!r}") from None

    for v in (col, row):
        if isinstance(v, bool) or not isinstance(v, int):
            raise InvalidAttribute(f"position must hold ints, not {pos!r}")
        if v < 0:
            raise InvalidAttribute(f"negative position {pos!r}")
    return (col, row)


# ---------------------------------------------------------------------------
# Keystroke
# ---------------------------------------------------------------------------

_POSITIONED = (KeyType.CURSOR_LOCATION, KeyType.MOUSE_EVENT)


class Keystroke:
    """
    A single normalized input event.

    key:
      KeyType of the event

    char:
      The literal character for KeyType.NORMAL, None for everything else

    ctrl/alt/shift:
      Modifier flags, independent of each other

    pos:
      (column, row) reported by cursor-location and mouse events, None
      otherwise
    """

    __slots__ = ("key", "char", "ctrl", "alt", "shift", "pos")

    def __init__(self, key, char=None, ctrl=False, alt=False, shift=False, pos=None):
        key = key_type(key)
        if key is KeyType.NORMAL:
            if not isinstance(char, str) or len(char) != 1:
                raise InvalidAttribute(f"normal keystroke needs one character, got {char!r}")
        elif char is not None:
            raise InvalidAttribute(f"{key.value} keystroke can't carry a character")
        if pos is not None and key not in _POSITIONED:
            raise InvalidAttribute(f"{key.value} keystroke can't carry a position")

        self.key = key
        self.char = char
        self.ctrl = bool(ctrl)
        self.alt = bool(alt)
        self.shift = bool(shift)
        self.pos = tuple(pos) if pos is not None else None

    def _fields(self):
        return (self.key, self.char, self.ctrl, self.alt, self.shift, self.pos)

    def __eq__(self, other):
        if not isinstance(other, Keystroke):
            return NotImplemented
        return self._fields() == other._fields()

    def __hash__(self):
        return hash(self._fields())

    def __repr__(self):
        parts = [self.key.name]
        if self.char is not None:
            parts.append(repr(self.char))
        for name in ("ctrl", "alt", "shift"):
            if getattr(self, name):
                parts.append(name)
        if self.pos is not None:
            parts.append(f"pos={self.pos}")
        return "Keystroke({})".format(", ".join(parts))


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class Output(abc.ABC):
    """
    Drawing capability. Every mutator returns self so calls can be chained.

    Drawing options accepted by write_char()/write_string():

      fg/bg:
        Color or color name. None means the ambient color set with
        set_fg()/set_bg().

      styles:
        Collection of Style or style names. None means the ambient styles.

      flush:
        Flush to the device afterwards. Only Terminal acts on it.

    All options are validated before anything is drawn, and writes outside
    the current size are clipped without error.
    """

    @abc.abstractmethod
    def write_char(self, ch, pos=None, fg=None, bg=None, styles=None, flush=True):
        """Draw one character at 'pos' (default: the cursor) and advance."""

    @abc.abstractmethod
    def write_string(self, s, pos=None, fg=None, bg=None, styles=None, flush=True):
        """Draw 's' left to right. The cursor ends one past its last char."""

    @abc.abstractmethod
    def get_cursor(self):
        """Return the cursor as (column, row)."""

    @abc.abstractmethod
    def set_cursor(self, pos):
        """Move the cursor to 'pos'."""

    @abc.abstractmethod
    def flush(self):
        """Push pending device output."""

    @abc.abstractmethod
    def clear(self):
        """Blank every cell and move the cursor to (0, 0)."""

    @abc.abstractmethod
    def start(self):
        """Enter the active session. A second start() is a no-op."""

    @abc.abstractmethod
    def stop(self):
        """Leave the active session. stop() when not started is a no-op."""

    @abc.abstractmethod
    def get_size(self):
        """Return the current size as (columns, rows)."""

    @abc.abstractmethod
    def add_resize_listener(self, fn):
        """
        Call fn(columns, rows) on every confirmed resize. Returns a handle for
        remove_resize_listener().
        """

    @abc.abstractmethod
    def remove_resize_listener(self, handle):
        """Drop a listener. Unknown handles are ignored."""

    @abc.abstractmethod
    def terminal(self):
        """Return the Terminal this output draws to."""

    @abc.abstractmethod
    def screen(self):
        """Return the Screen this output is, or None."""

    # Ambient drawing state, used when a write leaves fg/bg/styles as None

    def get_fg(self):
        return self._fg

    def set_fg(self, fg):
        self._fg = color_arg(fg)
        return self

    def get_bg(self):
        return self._bg

    def set_bg(self, bg):
        self._bg = color_arg(bg)
        return self

    def get_styles(self):
        return self._styles

    def set_styles(self, styles):
        self._styles = styles_arg(styles)
        return self

    def _attrs(self, fg, bg, styles):
        # Validated (fg, bg, styles) for a write, ambient state filling gaps
        return (
            self._fg if fg is None else color_arg(fg),
            self._bg if bg is None else color_arg(bg),
            self._styles if styles is None else styles_arg(styles),
        )

    def move_cursor(self, pos):
        return self.set_cursor(pos)

    def is_started(self):
        return self._state == STARTED

    def __enter__(self):
        return self.start()

    def __exit__(self, *exc_info):
        self.stop()


class Input(abc.ABC):
    """Keystroke source."""

    @abc.abstractmethod
    def poll(self):
        """Return the next Keystroke, or None at once if none is queued."""

    @abc.abstractmethod
    def get(self):
        """Block until a Keystroke is available and return it."""


def subscribe(backend, callback):
    """Register callback(columns, rows) for resizes of 'backend'."""
    return backend.add_resize_listener(callback)


def unsubscribe(backend, handle):
    """Undo subscribe()."""
    backend.remove_resize_listener(handle)

