# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
Buffered screen on top of a Terminal.

Drawing on a Screen only changes its back buffer, a grid of StyledCell.
redraw() propagates the buffer to the terminal, either completely or as a
delta against what the previous redraw sent (frame diffing). Both produce
the same picture. A delta just sends less.

Resizes reported by the terminal are picked up at the next get_size() or
redraw(). Cells outside the new size are dropped, new cells start blank, and
the next redraw is a complete one.
"""

import logging
from collections.abc import Mapping

from lanterm import config, constants
from lanterm.constants import NO_STYLES, Color, RefreshType
from lanterm.errors import InactiveOutput, InvalidAttribute
from lanterm.protocols import (
    STARTED,
    STOPPED,
    UNINITIALIZED,
    Input,
    Output,
    check_char,
    check_pos,
)
from lanterm.session import session
from lanterm.terminal import get_terminal

_LOG = logging.getLogger("lanterm.screen")

# AUTO redraws turn into COMPLETE ones when at least this share of the cells
# changed
_COMPLETE_THRESHOLD = 0.75

_ITEM_OPTIONS = frozenset(("fg", "bg", "styles", "flush"))


class StyledCell:
    """A character with its colors and styles. Immutable."""

    __slots__ = ("char", "fg", "bg", "styles")

    def __init__(self, char, fg=Color.DEFAULT, bg=Color.DEFAULT, styles=NO_STYLES):
        self.char = check_char(char)
        self.fg = fg
        self.bg = bg
        self.styles = frozenset(styles)

    def __eq__(self, other):
        if not isinstance(other, StyledCell):
            return NotImplemented
        return (
            self.char == other.char
            and self.fg == other.fg
            and self.bg == other.bg
            and self.styles == other.styles
        )

    def __hash__(self):
        return hash((self.char, self.fg, self.bg, self.styles))

    def __repr__(self):
        parts = [repr(self.char)]
        if self.fg != Color.DEFAULT:
            parts.append(f"fg={self.fg.name.lower()}")
        if self.bg != Color.DEFAULT:
            parts.append(f"bg={self.bg.name.lower()}")
        for s in sorted(self.styles, key=lambda s: s.value):
            parts.append(s.name.lower())
        return "StyledCell({})".format(", ".join(parts))


BLANK = StyledCell(" ")


def _blank_grid(cols, rows):
    return [[BLANK] * cols for _ in range(rows)]


def _resize_grid(grid, cols, rows):
    new = []
    for row in grid[:rows]:
        row = row[:cols]
        new.append(row + [BLANK] * (cols - len(row)))
    new.extend([BLANK] * cols for _ in range(rows - len(new)))
    return new


class Screen(Output, Input):
    """
    Double-buffered output on a Terminal.

    The back buffer is sized to the terminal at construction. Writes outside
    it are clipped: nothing is stored, but the cursor still advances. The
    flush write option is accepted and ignored. Only redraw() reaches the
    terminal.
    """

    def __init__(self, terminal):
        self._terminal = terminal
        self._size = terminal.get_size()
        self._back = _blank_grid(*self._size)
        # What the last redraw sent, None until the first one (or after a
        # resize)
        self._front = None
        self._cursor = (0, 0)
        self._fg = Color.DEFAULT
        self._bg = Color.DEFAULT
        self._styles = NO_STYLES
        self._state = UNINITIALIZED
        self._pending_size = None
        self._resize_handle = terminal.add_resize_listener(self._on_resize)

    def _check_started(self):
        if self._state != STARTED:
            raise InactiveOutput(f"screen is {self._state}, not started")

    # --- Lifecycle ---

    def start(self):
        """
        Initialize the screen. This must be called before doing anything else
        to the screen.
        """
        if self._state == STARTED:
            return self
        self._terminal.start()
        self._front = None
        self._state = STARTED
        self.get_size()
        return self

    def stop(self):
        """
        Stop the screen, returning the terminal to what it showed before
        start().
        """
        if self._state != STARTED:
            return self
        self._terminal.stop()
        self._state = STOPPED
        return self

    # --- Resizing ---

    def _on_resize(self, cols, rows):
        # May run on another thread: only record the size
        self._pending_size = (cols, rows)

    def _sync_size(self):
        size, self._pending_size = self._pending_size, None
        if size is None or size == self._size:
            return
        _LOG.debug("resizing back buffer from %dx%d to %dx%d", *(self._size + size))
        self._back = _resize_grid(self._back, *size)
        self._front = None
        self._size = size

    def get_size(self):
        """Return the current size of the screen as (cols, rows)."""
        # Lets the terminal confirm pending resizes, which lands in
        # _on_resize()
        self._terminal.get_size()
        self._sync_size()
        return self._size

    def add_resize_listener(self, fn):
        """
        Call fn(cols, rows) when the screen is resized. Returns a handle for
        remove_resize_listener().
        """
        return self._terminal.add_resize_listener(fn)

    def remove_resize_listener(self, handle):
        self._terminal.remove_resize_listener(handle)

    # --- Back buffer ---

    def _set(self, col, row, cell):
        cols, rows = self._size
        if col < cols and row < rows:
            self._back[row][col] = cell

    def write_char(self, ch, pos=None, fg=None, bg=None, styles=None, flush=True):
        """
        Put a character in the back buffer and move the cursor behind it.
        Note that this cannot be a control character.
        """
        col, row = self._cursor if pos is None else check_pos(pos)
        cell = StyledCell(ch, *self._attrs(fg, bg, styles))
        self._check_started()

        self._set(col, row, cell)
        self._cursor = (col + 1, row)
        return self

    def write_string(self, s, pos=None, fg=None, bg=None, styles=None, flush=True):
        """
        Put a string in the back buffer, ready to be drawn at the next
        redraw. The cursor ends up behind the string.
        """
        if not isinstance(s, str):
            raise InvalidAttribute(f"expected a string, got {s!r}")
        col, row = self._cursor if pos is None else check_pos(pos)
        attrs = self._attrs(fg, bg, styles)
        cells = [StyledCell(ch, *attrs) for ch in s]
        self._check_started()

        for i, cell in enumerate(cells):
            self._set(col + i, row, cell)
        self._cursor = (col + len(cells), row)
        return self

    def _sheet_item(self, item):
        # Returns the cells for one sheet item

        if isinstance(item, str):
            text, opts = item, {}
        elif (
            isinstance(item, (tuple, list))
            and len(item) == 2
            and isinstance(item[0], str)
            and isinstance(item[1], Mapping)
        ):
            text, opts = item
            unknown = set(opts) - _ITEM_OPTIONS
            if unknown:
                raise InvalidAttribute(
                    "unknown sheet item option(s): {}".format(", ".join(sorted(unknown)))
                )
        else:
            raise InvalidAttribute(f"can't draw sheet item {item!r}")

        attrs = self._attrs(opts.get("fg"), opts.get("bg"), opts.get("styles"))
        return [StyledCell(ch, *attrs) for ch in text]

    def put_sheet(self, pos, sheet):
        """
        Draw a sheet with its upper-left corner at 'pos' (buffered, of
        course).

        A sheet is a sequence of rows. The simplest sheet is a list of
        strings:

            screen.put_sheet((2, 0), ["foo", "bar", "hello!"])

             0123456789
            0  foo
            1  bar
            2  hello!

        Rows don't need to be the same length, and shorter rows are *not*
        padded.

        A row can also be a sequence of items. An item is a string or a
        (string, options) pair, with options as for write_string(). Item i of
        a row starts at column x + i, so items are meant to be single
        characters. A longer item runs on to the right and is overwritten by
        the items after it:

            screen.put_sheet((1, 0), [[("r", {"fg": "red"}), ("g", {"fg": "green"})],
                                      ["ab", "c"]])

             0123456789
            0 rg
            1 ac

        The whole sheet is validated before anything is drawn. The cursor ends
        up behind the last cell written.
        """
        x, y = check_pos(pos)

        if isinstance(sheet, str):
            raise InvalidAttribute("a sheet is a sequence of rows, not a string")

        writes = []
        for r, row in enumerate(sheet):
            if isinstance(row, str):
                # A plain string is one item per character
                row = list(row)
            for i, item in enumerate(row):
                for j, cell in enumerate(self._sheet_item(item)):
                    writes.append((x + i + j, y + r, cell))
        self._check_started()

        for col, row, cell in writes:
            self._set(col, row, cell)
        if writes:
            col, row, _ = writes[-1]
            self._cursor = (col + 1, row)
        return self

    def get_char(self, pos):
        """
        Return the StyledCell in the back buffer at 'pos', or None outside the
        screen.
        """
        col, row = check_pos(pos)
        cols, rows = self._size
        if col < cols and row < rows:
            return self._back[row][col]
        return None

    def get_front_char(self, pos):
        """
        Return the StyledCell at 'pos' as of the last redraw, or None if it
        hasn't been drawn.
        """
        col, row = check_pos(pos)
        if self._front is None:
            return None
        cols, rows = self._size
        if col < cols and row < rows:
            return self._front[row][col]
        return None

    def get_cursor(self):
        return self._cursor

    def set_cursor(self, pos):
        self._cursor = check_pos(pos)
        return self

    def clear(self):
        """
        Clear the screen. This is buffered: redraw the screen to see the
        effect. Resets the cursor position to 0, 0.
        """
        self._check_started()
        self._back = _blank_grid(*self._size)
        self._cursor = (0, 0)
        return self

    def flush(self):
        self._terminal.flush()
        return self

    # --- Redraw ---

    def _changes(self):
        for row, (back_row, front_row) in enumerate(zip(self._back, self._front)):
            for col, (cell, old) in enumerate(zip(back_row, front_row)):
                if cell != old:
                    yield col, row, cell

    def _all_cells(self):
        for row, back_row in enumerate(self._back):
            for col, cell in enumerate(back_row):
                yield col, row, cell

    def redraw(self, mode=RefreshType.AUTO):
        """
        Draw the screen, flushing all changes from the back buffer to the
        terminal. Call this after making a batch of changes to the back buffer
        to display them.

        mode:
          RefreshType or its name. COMPLETE rewrites every cell, DELTA only
          the cells that changed since the last redraw, and AUTO picks one of
          the two. Any other value raises InvalidAttribute before anything is
          drawn.
        """
        mode = constants.refresh_type(mode)
        self._check_started()
        self.get_size()

        if self._front is None:
            mode = RefreshType.COMPLETE
            cells = list(self._all_cells())
        else:
            cells = list(self._changes())
            if mode is RefreshType.COMPLETE or (
                mode is RefreshType.AUTO
                and len(cells) >= _COMPLETE_THRESHOLD * self._size[0] * self._size[1]
            ):
                mode = RefreshType.COMPLETE
                cells = list(self._all_cells())
            else:
                mode = RefreshType.DELTA

        _LOG.debug("%s redraw of %d cell(s)", mode.value, len(cells))

        term = self._terminal
        for col, row, cell in cells:
            term.write_char(cell.char, (col, row), cell.fg, cell.bg, cell.styles, flush=False)
        term.set_cursor(self._cursor)
        term.flush()

        self._front = [row[:] for row in self._back]
        return self

    def terminal(self):
        return self._terminal

    def screen(self):
        return self

    # --- Input ---

    def poll(self):
        self._check_started()
        return self._terminal.poll()

    def get(self):
        self._check_started()
        return self._terminal.get()


def get_screen(kind="auto", **options):
    """
    Get a screen object, wrapping a terminal from
    terminal.get_terminal(kind, **options).

    A resize_listener option is subscribed to the screen, after the screen's
    own listener, so that it sees the resized screen.
    """
    listener = config.check_listener(options.pop("resize_listener", None))
    screen = Screen(get_terminal(kind, **options))
    if listener is not None:
        screen.add_resize_listener(listener)
    return screen


# Start the screen, run the body of the with block, then stop it
in_screen = session
