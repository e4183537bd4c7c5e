# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
rawterm -- the device layer underneath Terminal

A Device knows how to move the cursor, switch SGR attributes, put raw
characters, enter and leave the alternate screen, report its size and hand
out decoded key events. Terminal translates the public API into calls on a
Device one to one.

AnsiDevice drives a real tty with VT100/xterm escape sequences. Zero external
dependencies: termios cbreak mode, poll(2)-based input and SIGWINCH for
resizes, all from the standard library. Windows consoles aren't supported,
and asking for one raises UnsupportedBackend.

The key decoder (decode_key()) turns raw input text into RawKey events:
named keys with xterm modifier parameters, F1-F19, cursor-location reports,
mouse reports and Alt-prefixed characters. Mapping those onto Keystroke is
left to lanterm.input.
"""

import codecs
import errno
import logging
import os
import shutil
import signal
import sys
import threading
import time
import unicodedata

from lanterm.constants import NO_STYLES, Color
from lanterm.errors import InputClosed, UnsupportedBackend

_IS_WINDOWS = os.name == "nt"

if not _IS_WINDOWS:
    import select
    import termios

_LOG = logging.getLogger("lanterm.rawterm")

# How long a lone ESC waits for the rest of an escape sequence
_ESC_DELAY_MS = 25

# Upper bound on a single poll() while blocking, so that close() from another
# thread is noticed
_POLL_SLICE_MS = 100

_DEFAULT_ATTRS = (Color.DEFAULT, Color.DEFAULT, NO_STYLES)


# ---------------------------------------------------------------------------
# Decoded input
# ---------------------------------------------------------------------------

# Modifier bits, as in xterm's "1 + bits" modifier parameter
MOD_SHIFT = 1
MOD_ALT = 2
MOD_CTRL = 4


class Key:
    """Named constants for decoded special keys."""

    UP = "key_up"
    DOWN = "key_down"
    LEFT = "key_left"
    RIGHT = "key_right"
    PAGE_UP = "key_page_up"
    PAGE_DOWN = "key_page_down"
    HOME = "key_home"
    END = "key_end"
    INSERT = "key_insert"
    DELETE = "key_delete"
    REVERSE_TAB = "key_reverse_tab"
    F1 = "key_f1"
    F2 = "key_f2"
    F3 = "key_f3"
    F4 = "key_f4"
    F5 = "key_f5"
    F6 = "key_f6"
    F7 = "key_f7"
    F8 = "key_f8"
    F9 = "key_f9"
    F10 = "key_f10"
    F11 = "key_f11"
    F12 = "key_f12"
    F13 = "key_f13"
    F14 = "key_f14"
    F15 = "key_f15"
    F16 = "key_f16"
    F17 = "key_f17"
    F18 = "key_f18"
    F19 = "key_f19"
    CURSOR_LOCATION = "key_cursor_location"
    MOUSE = "key_mouse"
    UNKNOWN = "key_unknown"
    EOF = "key_eof"


class RawKey:
    """
    One decoded input event: either a named key (a Key constant) or a literal
    character, plus modifier bits and an optional (column, row).
    """

    __slots__ = ("key", "char", "mods", "pos")

    def __init__(self, key=None, char=None, mods=0, pos=None):
        self.key = key
        self.char = char
        self.mods = mods
        self.pos = pos

    def __eq__(self, other):
        if not isinstance(other, RawKey):
            return NotImplemented
        return (self.key, self.char, self.mods, self.pos) == (
            other.key,
            other.char,
            other.mods,
            other.pos,
        )

    def __hash__(self):
        return hash((self.key, self.char, self.mods, self.pos))

    def __repr__(self):
        what = self.key if self.key is not None else repr(self.char)
        return f"RawKey({what}, mods={self.mods}, pos={self.pos})"


# CSI <n> ~ sequences. Several numbers per key cover xterm, rxvt and the Linux
# console.
_TILDE_KEYS = {
    1: Key.HOME,
    2: Key.INSERT,
    3: Key.DELETE,
    4: Key.END,
    5: Key.PAGE_UP,
    6: Key.PAGE_DOWN,
    7: Key.HOME,  # rxvt
    8: Key.END,  # rxvt
    11: Key.F1,
    12: Key.F2,
    13: Key.F3,
    14: Key.F4,
    15: Key.F5,
    17: Key.F6,
    18: Key.F7,
    19: Key.F8,
    20: Key.F9,
    21: Key.F10,
    23: Key.F11,
    24: Key.F12,
    25: Key.F13,
    26: Key.F14,
    28: Key.F15,
    29: Key.F16,
    31: Key.F17,
    32: Key.F18,
    33: Key.F19,
}

# Final byte of CSI (ESC [) and SS3 (ESC O) sequences
_FINAL_KEYS = {
    "A": Key.UP,
    "B": Key.DOWN,
    "C": Key.RIGHT,
    "D": Key.LEFT,
    "H": Key.HOME,
    "F": Key.END,
    "P": Key.F1,
    "Q": Key.F2,
    "R": Key.F3,
    "S": Key.F4,
    "Z": Key.REVERSE_TAB,
}


def _params(s):
    # "1;5" -> [1, 5]. Empty fields count as 0. None on anything non-numeric
    # (private-mode markers and the like).
    if not s:
        return []
    try:
        return [int(f) if f else 0 for f in s.split(";")]
    except ValueError:
        return None


def _mods(params):
    # xterm encodes modifiers as 1 + bits in the second parameter
    if len(params) < 2 or params[1] < 2:
        return 0
    return (params[1] - 1) & (MOD_SHIFT | MOD_ALT | MOD_CTRL)


def _mouse_mods(button):
    mods = 0
    if button & 4:
        mods |= MOD_SHIFT
    if button & 8:
        mods |= MOD_ALT
    if button & 16:
        mods |= MOD_CTRL
    return mods


def _decode_csi(text):
    # Returns (RawKey, length) or None if 'text' ends mid-sequence

    # X10 mouse report: three raw bytes follow
    if text.startswith("\x1b[M"):
        if len(text) < 6:
            return None
        button, x, y = (ord(c) - 32 for c in text[3:6])
        return RawKey(Key.MOUSE, mods=_mouse_mods(button), pos=(x - 1, y - 1)), 6

    i = 2
    while i < len(text):
        c = text[i]
        if "\x40" <= c <= "\x7e":
            break
        if not "\x20" <= c <= "\x3f":
            # Not a parameter or intermediate byte. Drop what we have.
            return RawKey(Key.UNKNOWN), i
        i += 1
    else:
        return None

    param_str, final = text[2:i], text[i]
    length = i + 1

    # SGR mouse report: ESC [ < button ; x ; y M/m
    if param_str.startswith("<"):
        params = _params(param_str[1:])
        if final in "Mm" and params and len(params) == 3:
            button, x, y = params
            return (
                RawKey(Key.MOUSE, mods=_mouse_mods(button), pos=(x - 1, y - 1)),
                length,
            )
        return RawKey(Key.UNKNOWN), length

    params = _params(param_str)
    if params is None:
        return RawKey(Key.UNKNOWN), length

    if final == "~":
        key = _TILDE_KEYS.get(params[0] if params else 0, Key.UNKNOWN)
        return RawKey(key, mods=_mods(params)), length

    # Cursor position report (ESC [ row ; col R). "1;<mod>R" is a modified F3
    # instead, so a report for row 1 is ambiguous and decodes as F3.
    if final == "R" and len(params) == 2 and params[0] != 1:
        return RawKey(Key.CURSOR_LOCATION, pos=(params[1] - 1, params[0] - 1)), length

    return RawKey(_FINAL_KEYS.get(final, Key.UNKNOWN), mods=_mods(params)), length


def _decode_ss3(text):
    if len(text) < 3:
        return None
    key = _FINAL_KEYS.get(text[2], Key.UNKNOWN)
    if key == Key.REVERSE_TAB:
        key = Key.UNKNOWN
    return RawKey(key), 3


def decode_key(text, final=False):
    """
    Decode the first key event at the start of 'text'.

    Returns (RawKey, number of characters consumed), or (None, 0) if 'text'
    is empty or ends in the middle of an escape sequence. With final=True,
    more input isn't coming: a dangling ESC is returned as a plain ESC
    character, and ESC followed by one character as Alt+character.
    """
    if not text:
        return None, 0

    ch = text[0]
    if ch != "\x1b":
        return RawKey(char=ch), 1

    if len(text) == 1:
        return (RawKey(char=ch), 1) if final else (None, 0)

    nxt = text[1]
    if nxt == "[":
        res = _decode_csi(text)
    elif nxt == "O":
        res = _decode_ss3(text)
    elif nxt == "\x1b":
        return RawKey(char=ch), 1
    else:
        return RawKey(char=nxt, mods=MOD_ALT), 2

    if res is not None:
        return res

    if not final:
        return None, 0
    if len(text) == 2:
        return RawKey(char=nxt, mods=MOD_ALT), 2
    return RawKey(char=ch), 1


# ---------------------------------------------------------------------------
# Device
# ---------------------------------------------------------------------------


def _is_wide(ch):
    # True for characters that take two columns on a tty
    return unicodedata.east_asian_width(ch) in ("W", "F")


class Device:
    """
    Base class for terminal devices.

    Tracks the cursor, the current SGR attributes and the resize listeners,
    and skips escapes that wouldn't change anything. Subclasses provide the
    _enter/_exit/_move/_sgr/_put/_clear hooks plus flush() and read_key().
    """

    def __init__(self, cols, rows):
        self._size = (cols, rows)
        # None means "unknown", forcing the next set_cursor()/set_attributes()
        # to be emitted
        self._cursor = (0, 0)
        self._attrs = None
        self._private = False
        self._closed = False
        self._listeners = {}
        self._next_handle = 1
        self._listener_lock = threading.Lock()

    @property
    def size(self):
        return self._size

    @property
    def cursor(self):
        return self._cursor

    @property
    def attributes(self):
        return self._attrs

    @property
    def in_private_mode(self):
        return self._private

    @property
    def closed(self):
        return self._closed

    # --- Resize notification ---

    def add_resize_listener(self, fn):
        """Register fn(cols, rows). Returns a handle for removal."""
        with self._listener_lock:
            handle = self._next_handle
            self._next_handle += 1
            self._listeners[handle] = fn
        return handle

    def remove_resize_listener(self, handle):
        with self._listener_lock:
            self._listeners.pop(handle, None)

    def _fire_resize(self, cols, rows):
        with self._listener_lock:
            fns = list(self._listeners.values())
        _LOG.debug("resized to %dx%d, notifying %d listener(s)", cols, rows, len(fns))
        for fn in fns:
            fn(cols, rows)

    def check_resize(self):
        """
        Confirm any pending resize and notify listeners. Returns True if the
        size changed.
        """
        return False

    # --- Output ---

    def enter_private_mode(self):
        if self._private:
            return
        self._private = True
        self._cursor = None
        self._attrs = None
        self._enter()

    def exit_private_mode(self):
        if not self._private:
            return
        self._private = False
        self._exit()
        self._cursor = None
        self._attrs = None

    def set_cursor(self, col, row):
        if self._cursor != (col, row):
            self._move(col, row)
            self._cursor = (col, row)

    def set_attributes(self, fg, bg, styles):
        attrs = (fg, bg, frozenset(styles))
        if attrs != self._attrs:
            self._sgr(*attrs)
            self._attrs = attrs

    def reset_attributes(self):
        self.set_attributes(*_DEFAULT_ATTRS)

    def put_char(self, ch):
        self._put(ch)
        if _is_wide(ch):
            # Where the tty leaves the cursor is up to its width tables.
            # Force a move before the next character.
            self._cursor = None
        elif self._cursor is not None:
            col, row = self._cursor
            self._cursor = (col + 1, row)

    def clear(self):
        # Erasing fills cells with the current background, so drop colors
        # first
        self.reset_attributes()
        self._clear()
        self._cursor = (0, 0)

    def flush(self):
        pass

    def read_key(self, timeout=None):
        """
        Return the next RawKey. timeout=None blocks, 0 polls, anything else
        waits up to that many seconds. Returns None when nothing arrived.
        Raises InputClosed once the input is gone.
        """
        raise NotImplementedError

    def close(self):
        """Leave private mode if needed. Pending and later reads fail."""
        if self._closed:
            return
        if self._private:
            self.reset_attributes()
            self.exit_private_mode()
            self.flush()
        self._closed = True

    # Hooks

    def _enter(self):
        pass

    def _exit(self):
        pass

    def _move(self, col, row):
        pass

    def _sgr(self, fg, bg, styles):
        pass

    def _put(self, ch):
        raise NotImplementedError

    def _clear(self):
        raise NotImplementedError


class AnsiDevice(Device):
    """
    A real tty, driven with VT100/xterm escape sequences.

    infile/outfile:
      Objects with fileno() for input and output. Default to sys.stdin and
      sys.stdout. Both must be terminals.

    charset:
      Codec used to encode output and decode input.
    """

    def __init__(self, infile=None, outfile=None, charset="utf-8"):
        if _IS_WINDOWS:
            raise UnsupportedBackend("text terminals need termios, which Windows lacks")

        try:
            self._in_fd = (infile or sys.stdin).fileno()
            self._out_fd = (outfile or sys.stdout).fileno()
        except (AttributeError, ValueError, OSError):
            raise UnsupportedBackend("stdin/stdout have no file descriptors") from None

        if not os.isatty(self._in_fd):
            raise UnsupportedBackend("stdin is not a terminal")
        if not os.isatty(self._out_fd):
            raise UnsupportedBackend("stdout is not a terminal")

        super().__init__(*self._query_size())

        self._charset = charset
        self._out = []
        self._decoder = codecs.getincrementaldecoder(charset)("replace")
        self._pending = ""
        self._at_eof = False
        self._eof_sent = False
        self._resize_pending = False
        self._old_termios = None
        self._old_sigwinch = None

        self._poller = select.poll()
        self._poller.register(self._in_fd, select.POLLIN)

    def _query_size(self):
        try:
            sz = os.get_terminal_size(self._out_fd)
        except OSError:
            sz = shutil.get_terminal_size()
        return (sz.columns, sz.lines)

    def _set_cbreak(self):
        """Apply cbreak terminal settings: no echo, no canonical mode."""
        new = termios.tcgetattr(self._in_fd)
        # LFLAG: clear ICANON, ECHO, IEXTEN; keep ISIG for Ctrl-C
        new[3] &= ~(termios.ICANON | termios.ECHO | termios.IEXTEN)
        # IFLAG: clear IXON, IXOFF, ICRNL, INLCR, IGNCR
        new[1] &= ~(
            termios.IXON | termios.IXOFF | termios.ICRNL | termios.INLCR | termios.IGNCR
        )
        # Set VMIN=1 (Solaris: VMIN shares slot with VEOF)
        new[6][termios.VMIN] = 1
        new[6][termios.VTIME] = 0
        termios.tcsetattr(self._in_fd, termios.TCSANOW, new)

    def _enter(self):
        self._old_termios = termios.tcgetattr(self._in_fd)
        self._set_cbreak()

        try:
            self._old_sigwinch = signal.signal(signal.SIGWINCH, self._sigwinch_handler)
        except ValueError:
            # signal.signal() only works in the main thread
            self._old_sigwinch = None
            _LOG.warning("not in the main thread, resize events won't be delivered")

        # Enter alternate screen
        self._write_raw("\x1b[?1049h")
        self.flush()

    def _exit(self):
        # Leave alternate screen, show cursor
        self._write_raw("\x1b[?25h")
        self._write_raw("\x1b[?1049l")
        self.flush()

        termios.tcsetattr(self._in_fd, termios.TCSANOW, self._old_termios)
        if self._old_sigwinch is not None:
            signal.signal(signal.SIGWINCH, self._old_sigwinch)
            self._old_sigwinch = None

    def _sigwinch_handler(self, signum, frame):
        """SIGWINCH: set flag, don't resize mid-render."""
        self._resize_pending = True

    def check_resize(self):
        if not self._resize_pending:
            return False
        self._resize_pending = False

        size = self._query_size()
        if size == self._size:
            return False
        self._size = size
        self._fire_resize(*size)
        return True

    # --- Output ---

    def _write_raw(self, s):
        """Append raw string to output. Caller must flush()."""
        self._out.append(s)

    def _move(self, col, row):
        self._write_raw(f"\x1b[{row + 1};{col + 1}H")

    def _sgr(self, fg, bg, styles):
        parts = ["0", fg.sgr_fg(), bg.sgr_bg()]
        parts.extend(str(s.value) for s in sorted(styles, key=lambda s: s.value))
        self._write_raw("\x1b[{}m".format(";".join(parts)))

    def _put(self, ch):
        self._write_raw(ch)

    def _clear(self):
        self._write_raw("\x1b[2J\x1b[H")

    def flush(self):
        if not self._out:
            return
        data = "".join(self._out).encode(self._charset, "replace")
        self._out = []

        # Ensure blocking I/O for flush
        was_blocking = os.get_blocking(self._out_fd)
        if not was_blocking:
            os.set_blocking(self._out_fd, True)
        try:
            while data:
                data = data[os.write(self._out_fd, data) :]
        finally:
            if not was_blocking:
                os.set_blocking(self._out_fd, False)

    # --- Input ---

    def read_key(self, timeout=None):
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            if self._closed:
                raise InputClosed("device is closed")

            key, n = decode_key(self._pending, final=self._at_eof)
            if key is not None:
                self._pending = self._pending[n:]
                return key

            if self._at_eof:
                if self._eof_sent:
                    raise InputClosed("end of input")
                self._eof_sent = True
                return RawKey(Key.EOF)

            # If we have a partial escape sequence, wait briefly for more
            if self._pending:
                wait = _ESC_DELAY_MS
            elif deadline is None:
                wait = _POLL_SLICE_MS
            else:
                remaining = deadline - time.monotonic()
                wait = max(0, min(_POLL_SLICE_MS, int(remaining * 1000)))

            if self._poller.poll(wait):
                try:
                    data = os.read(self._in_fd, 1024)
                except OSError as e:
                    # EIO: the other end of a pty went away
                    if e.errno != errno.EIO:
                        raise
                    data = b""
                if data:
                    self._pending += self._decoder.decode(data)
                else:
                    self._pending += self._decoder.decode(b"", final=True)
                    self._at_eof = True
                continue

            if self._pending:
                # Timeout -- flush escape buffer
                key, n = decode_key(self._pending, final=True)
                self._pending = self._pending[n:]
                return key

            self.check_resize()

            if deadline is not None and time.monotonic() >= deadline:
                return None
