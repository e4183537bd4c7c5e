# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
In-memory terminal device.

VirtualDevice emulates what a terminal window would show: a grid of
(char, fg, bg, styles) cells, an alternate screen that hides and later
restores the main one, a keystroke queue and simulated resizes. It is the
backend for "virtual" terminals (headless runs, tests, anything without a
tty) and honors the window options a text terminal ignores: title, initial
size, fonts and palette.
"""

import collections
import threading
import time

from lanterm import config
from lanterm.constants import NO_STYLES, Color, Palette, Style
from lanterm.errors import InputClosed
from lanterm.rawterm import Device, Key, RawKey, decode_key

_BLANK = (" ", Color.DEFAULT, Color.DEFAULT, NO_STYLES)


def _blank_grid(cols, rows):
    return [[_BLANK] * cols for _ in range(rows)]


def _resize_grid(grid, cols, rows):
    # Keep the top-left overlap, drop the rest, pad with blanks
    new = []
    for row in grid[:rows]:
        row = row[:cols]
        new.append(row + [_BLANK] * (cols - len(row)))
    new.extend([_BLANK] * cols for _ in range(rows - len(new)))
    return new


class VirtualDevice(Device):
    """
    cols/rows:
      Initial size

    title:
      Window title

    font:
      Candidate font names, first installed one wins (resolved lazily, see
      the font property)

    font_size:
      Font size in points

    palette:
      Palette used by rgb()
    """

    def __init__(
        self,
        cols=80,
        rows=24,
        title="terminal",
        font=(),
        font_size=14,
        palette=Palette.MAC_OS_X,
    ):
        super().__init__(cols, rows)
        self.title = title
        self.font_size = font_size
        self.palette = palette
        self._font_candidates = tuple(font)
        self._font = None

        self._grid = _blank_grid(cols, rows)
        # Main screen contents while the alternate screen is shown
        self._saved = None

        self._input = collections.deque()
        self._input_cond = threading.Condition()
        self._input_ended = False
        self._eof_sent = False

        # Counters for checking how much a redraw actually sent
        self.chars_written = 0
        self.flushes = 0

    @property
    def font(self):
        """The font family in use."""
        if self._font is None:
            self._font = config.resolve_font(self._font_candidates)
        return self._font

    # --- Inspection ---

    def cell(self, col, row):
        """Return (char, fg, bg, styles) at (col, row)."""
        return self._grid[row][col]

    def line(self, row):
        """Return the characters of 'row' as a string."""
        return "".join(c[0] for c in self._grid[row])

    def snapshot(self):
        """Return every row as a string, top to bottom."""
        return [self.line(row) for row in range(self._size[1])]

    def rgb(self, col, row):
        """
        Return the ((r, g, b), (r, g, b)) foreground and background shown at
        (col, row), after resolving through the palette and applying reverse
        video.
        """
        _, fg, bg, styles = self._grid[row][col]
        fg_rgb = self.palette.rgb(fg)
        bg_rgb = self.palette.rgb(bg, background=True)
        if Style.REVERSE in styles:
            return bg_rgb, fg_rgb
        return fg_rgb, bg_rgb

    def reset_counters(self):
        self.chars_written = 0
        self.flushes = 0

    # --- Output hooks ---

    def _enter(self):
        self._saved = self._grid
        self._grid = _blank_grid(*self._size)
        self._cursor = (0, 0)

    def _exit(self):
        self._grid = self._saved
        self._saved = None

    def _put(self, ch):
        col, row = self._cursor or (0, 0)
        cols, rows = self._size
        if 0 <= col < cols and 0 <= row < rows:
            fg, bg, styles = self._attrs or (Color.DEFAULT, Color.DEFAULT, NO_STYLES)
            self._grid[row][col] = (ch, fg, bg, styles)
        self.chars_written += 1

    def put_char(self, ch):
        # One cell per character, wide or not
        self._put(ch)
        col, row = self._cursor or (0, 0)
        self._cursor = (col + 1, row)

    def _clear(self):
        self._grid = _blank_grid(*self._size)

    def flush(self):
        self.flushes += 1

    def resize(self, cols, rows):
        """Simulate the window being resized. Listeners fire on this thread."""
        if (cols, rows) == self._size:
            return
        self._grid = _resize_grid(self._grid, cols, rows)
        if self._saved is not None:
            self._saved = _resize_grid(self._saved, cols, rows)
        self._size = (cols, rows)
        self._fire_resize(cols, rows)

    # --- Input ---

    def feed(self, *items):
        """
        Queue input. Strings are decoded like bytes arriving from a tty
        (escape sequences included), RawKey instances are queued as-is.
        """
        keys = []
        for item in items:
            if isinstance(item, RawKey):
                keys.append(item)
                continue
            while item:
                key, n = decode_key(item, final=True)
                keys.append(key)
                item = item[n:]

        with self._input_cond:
            self._input.extend(keys)
            self._input_cond.notify_all()

    def end_input(self):
        """Simulate end of the input stream, as when stdin hits EOF."""
        with self._input_cond:
            self._input_ended = True
            self._input_cond.notify_all()

    def read_key(self, timeout=None):
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._input_cond:
            while True:
                if self._closed:
                    raise InputClosed("device is closed")
                if self._input:
                    return self._input.popleft()
                if self._input_ended:
                    if self._eof_sent:
                        raise InputClosed("end of input")
                    self._eof_sent = True
                    return RawKey(Key.EOF)

                if deadline is None:
                    self._input_cond.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    self._input_cond.wait(remaining)

    def close(self):
        super().close()
        with self._input_cond:
            self._input_cond.notify_all()
