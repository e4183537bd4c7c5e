# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
Immediate-mode terminal.

Every write goes straight to the device underneath. The only buffering is
that of the device itself, which flush (or the flush=True write option)
empties. start()/stop() enter and leave the alternate screen, so whatever was
on the terminal before start() is back after stop().
"""

import logging

from lanterm import config, constants
from lanterm.constants import NO_STYLES, Color
from lanterm.errors import InactiveOutput, UnsupportedBackend
from lanterm.input import read_keystroke
from lanterm.protocols import (
    STARTED,
    STOPPED,
    UNINITIALIZED,
    Input,
    Output,
    check_char,
    check_pos,
    check_string,
)
from lanterm.rawterm import AnsiDevice
from lanterm.session import session
from lanterm.virtual import VirtualDevice

_LOG = logging.getLogger("lanterm.terminal")


class Terminal(Output, Input):
    """
    Terminal drawing directly on a Device.

    The ambient colors and styles (set_fg(), set_bg(), set_styles(),
    set_style(), ...) are per-instance and apply to every later write that
    doesn't pass its own. Options passed to a write only apply to that
    write.

    Writes outside the terminal are clipped: nothing is sent for them, but
    the cursor still advances.
    """

    def __init__(self, device, options=None):
        self._device = device
        self._options = options if options is not None else config.Options()
        self._state = UNINITIALIZED
        self._cursor = (0, 0)
        self._fg = Color.DEFAULT
        self._bg = Color.DEFAULT
        self._styles = NO_STYLES

        if self._options.resize_listener is not None:
            self.add_resize_listener(self._options.resize_listener)

    @property
    def device(self):
        return self._device

    @property
    def options(self):
        return self._options

    def _check_started(self):
        if self._state != STARTED:
            raise InactiveOutput(f"terminal is {self._state}, not started")

    # --- Lifecycle ---

    def start(self):
        if self._state == STARTED:
            return self
        _LOG.debug("starting %s", type(self._device).__name__)
        self._device.enter_private_mode()
        self._device.clear()
        self._device.flush()
        self._cursor = (0, 0)
        self._state = STARTED
        return self

    def stop(self):
        if self._state != STARTED:
            return self
        _LOG.debug("stopping %s", type(self._device).__name__)
        self._device.reset_attributes()
        self._device.exit_private_mode()
        self._device.flush()
        self._state = STOPPED
        return self

    def close(self):
        """Stop, then close the device. Blocked get() calls fail with InputClosed."""
        self.stop()
        self._device.close()

    # --- Output ---

    def _put(self, ch, col, row, attrs):
        cols, rows = self._device.size
        if col < cols and row < rows:
            self._device.set_cursor(col, row)
            self._device.set_attributes(*attrs)
            self._device.put_char(ch)

    def write_char(self, ch, pos=None, fg=None, bg=None, styles=None, flush=True):
        check_char(ch)
        col, row = self._cursor if pos is None else check_pos(pos)
        attrs = self._attrs(fg, bg, styles)
        self._check_started()

        self._put(ch, col, row, attrs)
        self._cursor = (col + 1, row)
        if flush:
            self._device.flush()
        return self

    def write_string(self, s, pos=None, fg=None, bg=None, styles=None, flush=True):
        check_string(s)
        col, row = self._cursor if pos is None else check_pos(pos)
        attrs = self._attrs(fg, bg, styles)
        self._check_started()

        for i, ch in enumerate(s):
            self._put(ch, col + i, row, attrs)
        self._cursor = (col + len(s), row)
        if flush:
            self._device.flush()
        return self

    def get_cursor(self):
        return self._cursor

    def set_cursor(self, pos):
        self._cursor = check_pos(pos)
        if self._state == STARTED:
            cols, rows = self._device.size
            col, row = self._cursor
            self._device.set_cursor(max(0, min(col, cols - 1)), max(0, min(row, rows - 1)))
        return self

    def flush(self):
        self._device.flush()
        return self

    def clear(self):
        """Clear the terminal. The cursor ends up at 0, 0 and output is flushed."""
        self._check_started()
        self._device.clear()
        self._cursor = (0, 0)
        self._device.flush()
        return self

    def get_size(self):
        self._device.check_resize()
        return self._device.size

    def set_style(self, style):
        """Add a single style to the ambient styles."""
        return self.set_styles(self._styles | {style})

    def remove_style(self, style):
        """Remove a single style from the ambient styles."""
        style = constants.style(style)
        return self.set_styles(s for s in self._styles if s is not style)

    def reset_styles(self):
        """Return the ambient colors and styles to their defaults."""
        self._fg = Color.DEFAULT
        self._bg = Color.DEFAULT
        self._styles = NO_STYLES
        return self

    def add_resize_listener(self, fn):
        return self._device.add_resize_listener(config.check_listener(fn))

    def remove_resize_listener(self, handle):
        self._device.remove_resize_listener(handle)

    def terminal(self):
        return self

    def screen(self):
        return None

    # --- Input ---

    def poll(self):
        self._check_started()
        return read_keystroke(self._device, 0)

    def get(self):
        self._check_started()
        return read_keystroke(self._device, None)


def _make_device(kind, options):
    if kind in ("swing", "awt"):
        raise UnsupportedBackend(
            f"{kind} terminals need a windowing toolkit, use 'virtual' for an "
            "in-memory terminal"
        )

    if kind == "virtual":
        return VirtualDevice(
            options.cols,
            options.rows,
            title=options.title,
            font=options.font,
            font_size=options.font_size,
            palette=options.palette,
        )

    if kind == "auto":
        try:
            return AnsiDevice(charset=options.charset)
        except UnsupportedBackend as e:
            _LOG.debug("no text terminal (%s), using a virtual one", e)
            return _make_device("virtual", options)

    # text, unix, cygwin
    return AnsiDevice(charset=options.charset)


def get_terminal(kind="auto", **options):
    """
    Get a terminal object.

    kind can be one of the following:

      auto    - Use a text terminal if stdin/stdout are ttys, and an in-memory
                virtual terminal otherwise. $LANTERM_KIND overrides it.
      text    - Force a text terminal on stdin/stdout.
      unix    - Same as text.
      cygwin  - Same as text.
      virtual - Force an in-memory terminal.
      swing   - Not available, raises UnsupportedBackend.
      awt     - Not available, raises UnsupportedBackend.

    'options' are the keyword arguments of config.Options: title, cols, rows,
    charset, font, font_size, palette and resize_listener. The text terminal
    ignores the window-related ones (title, size, fonts, palette) and uses
    the size of the real terminal.

    Raises UnsupportedBackend right away if the kind can't be created.
    """
    opts = config.Options(**options)
    kind = config.resolve_kind(kind)
    term = Terminal(_make_device(kind, opts), opts)
    _LOG.debug("created %s terminal with %s", kind, opts)
    return term


def get_available_fonts():
    """Return the set of installed font family names."""
    return config.get_available_fonts()


# Start the terminal, run the body of the with block, then stop it
in_terminal = session
