# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC
#
# Device layer: escape skipping in the Device base class, the in-memory
# VirtualDevice, and AnsiDevice driving a pseudo-terminal.

import os
import select
import signal
import sys

import pytest

from lanterm.constants import NO_STYLES, Color, Palette, Style
from lanterm.errors import InputClosed, UnsupportedBackend
from lanterm.rawterm import MOD_CTRL, AnsiDevice, Device, Key, RawKey
from lanterm.terminal import Terminal
from lanterm.virtual import VirtualDevice

# ---------------------------------------------------------------------------
# Device base class
# ---------------------------------------------------------------------------


class RecordingDevice(Device):
    """Device that records the hook calls it receives."""

    def __init__(self):
        super().__init__(10, 2)
        self.calls = []

    def _enter(self):
        self.calls.append("enter")

    def _exit(self):
        self.calls.append("exit")

    def _move(self, col, row):
        self.calls.append(("move", col, row))

    def _sgr(self, fg, bg, styles):
        self.calls.append(("sgr", fg, bg, styles))

    def _put(self, ch):
        self.calls.append(("put", ch))

    def _clear(self):
        self.calls.append("clear")


def test_skips_redundant_cursor_moves():
    dev = RecordingDevice()
    dev.set_cursor(0, 0)
    dev.set_cursor(3, 1)
    dev.put_char("x")
    # put_char() already left the cursor at (4, 1)
    dev.set_cursor(4, 1)
    assert dev.calls == [("move", 3, 1), ("put", "x")]
    assert dev.cursor == (4, 1)


def test_skips_redundant_attributes():
    dev = RecordingDevice()
    dev.set_attributes(Color.RED, Color.DEFAULT, [Style.BOLD])
    dev.set_attributes(Color.RED, Color.DEFAULT, (Style.BOLD,))
    dev.set_attributes(Color.RED, Color.BLUE, ())
    assert dev.calls == [
        ("sgr", Color.RED, Color.DEFAULT, frozenset((Style.BOLD,))),
        ("sgr", Color.RED, Color.BLUE, NO_STYLES),
    ]


def test_private_mode_forgets_state():
    dev = RecordingDevice()
    dev.set_attributes(Color.DEFAULT, Color.DEFAULT, ())
    dev.enter_private_mode()
    dev.enter_private_mode()
    # Nothing is known about the alternate screen
    dev.set_cursor(0, 0)
    dev.set_attributes(Color.DEFAULT, Color.DEFAULT, ())
    dev.exit_private_mode()
    dev.exit_private_mode()
    assert dev.calls == [
        ("sgr", Color.DEFAULT, Color.DEFAULT, NO_STYLES),
        "enter",
        ("move", 0, 0),
        ("sgr", Color.DEFAULT, Color.DEFAULT, NO_STYLES),
        "exit",
    ]


def test_close_leaves_private_mode():
    dev = RecordingDevice()
    dev.enter_private_mode()
    dev.set_attributes(Color.RED, Color.DEFAULT, ())
    dev.close()
    dev.close()
    assert not dev.in_private_mode
    assert dev.closed
    assert dev.calls[-2:] == [("sgr", Color.DEFAULT, Color.DEFAULT, NO_STYLES), "exit"]


def test_clear_resets_background_first():
    dev = RecordingDevice()
    term = Terminal(dev).start()
    term.write_char("x", (0, 0), bg="blue")
    dev.calls.clear()
    term.clear()
    # Erasing with a blue background would paint the whole screen blue
    assert dev.calls == [("sgr", Color.DEFAULT, Color.DEFAULT, NO_STYLES), "clear"]


def test_wide_char_forgets_cursor():
    dev = RecordingDevice()
    term = Terminal(dev).start()
    dev.calls.clear()
    term.write_string("日本", (0, 0))
    # The second character gets an explicit move
    assert dev.calls == [("put", "日"), ("move", 1, 0), ("put", "本")]
    assert dev.cursor is None


def test_resize_listeners():
    dev = RecordingDevice()
    seen = []
    h1 = dev.add_resize_listener(lambda c, r: seen.append(("a", c, r)))
    h2 = dev.add_resize_listener(lambda c, r: seen.append(("b", c, r)))
    assert h1 != h2

    dev._fire_resize(30, 8)
    dev.remove_resize_listener(h1)
    dev.remove_resize_listener(h1)
    dev._fire_resize(40, 9)
    assert seen == [("a", 30, 8), ("b", 30, 8), ("b", 40, 9)]


# ---------------------------------------------------------------------------
# VirtualDevice
# ---------------------------------------------------------------------------


def test_virtual_alternate_screen():
    dev = VirtualDevice(5, 2)
    dev.set_cursor(0, 0)
    dev.put_char("M")
    dev.enter_private_mode()
    assert dev.snapshot() == ["     ", "     "]

    dev.set_cursor(1, 1)
    dev.put_char("A")
    assert dev.snapshot() == ["     ", " A   "]

    dev.exit_private_mode()
    assert dev.snapshot() == ["M    ", "     "]


def test_virtual_clips_writes():
    dev = VirtualDevice(3, 1)
    dev.set_cursor(2, 0)
    dev.put_char("a")
    dev.put_char("b")
    assert dev.line(0) == "  a"
    assert dev.cursor == (4, 0)
    assert dev.chars_written == 2


def test_virtual_wide_char_takes_one_cell():
    dev = VirtualDevice(3, 1)
    dev.set_cursor(0, 0)
    dev.put_char("日")
    dev.put_char("x")
    assert dev.line(0) == "日x "
    assert dev.cursor == (2, 0)


def test_virtual_resize():
    dev = VirtualDevice(4, 2)
    seen = []
    dev.add_resize_listener(lambda c, r: seen.append((c, r)))
    dev.set_cursor(0, 0)
    dev.put_char("x")
    dev.set_cursor(3, 1)
    dev.put_char("y")

    dev.resize(4, 2)
    assert seen == []

    dev.resize(2, 3)
    assert seen == [(2, 3)]
    assert dev.size == (2, 3)
    assert dev.snapshot() == ["x ", "  ", "  "]


def test_virtual_rgb():
    dev = VirtualDevice(2, 1, palette=Palette.XTERM)
    dev.set_cursor(0, 0)
    dev.set_attributes(Color.RED, Color.DEFAULT, ())
    dev.put_char("a")
    dev.set_attributes(Color.RED, Color.DEFAULT, (Style.REVERSE,))
    dev.put_char("b")
    assert dev.rgb(0, 0) == ((205, 0, 0), (0, 0, 0))
    assert dev.rgb(1, 0) == ((0, 0, 0), (205, 0, 0))


def test_virtual_feed_rawkeys():
    dev = VirtualDevice()
    dev.feed(RawKey(Key.F5, mods=MOD_CTRL), "z")
    assert dev.read_key(0) == RawKey(Key.F5, mods=MOD_CTRL)
    assert dev.read_key(0) == RawKey(char="z")
    assert dev.read_key(0) is None
    assert dev.read_key(0.01) is None


def test_virtual_closed_input():
    dev = VirtualDevice()
    dev.feed("a")
    dev.close()
    with pytest.raises(InputClosed):
        dev.read_key(0)


# ---------------------------------------------------------------------------
# AnsiDevice
# ---------------------------------------------------------------------------

needs_pty = pytest.mark.skipif(sys.platform == "win32", reason="needs a pty")


class _Fd:
    # Stand-in for a file object, AnsiDevice only needs fileno()
    def __init__(self, fd):
        self._fd = fd

    def fileno(self):
        return self._fd


def _drain(fd, timeout=0.5):
    """Read everything currently available from 'fd'."""
    data = b""
    while select.select([fd], [], [], timeout)[0]:
        try:
            chunk = os.read(fd, 4096)
        except OSError:
            break
        if not chunk:
            break
        data += chunk
        timeout = 0.05
    return data


@pytest.fixture
def pty_pair():
    import fcntl
    import pty
    import struct
    import termios

    master, slave = pty.openpty()
    # 30 columns, 6 rows
    fcntl.ioctl(slave, termios.TIOCSWINSZ, struct.pack("HHHH", 6, 30, 0, 0))
    yield master, slave
    for fd in (master, slave):
        try:
            os.close(fd)
        except OSError:
            pass


def _set_size(fd, cols, rows):
    import fcntl
    import struct
    import termios

    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", rows, cols, 0, 0))


@needs_pty
def test_ansi_requires_tty():
    r, w = os.pipe()
    try:
        with pytest.raises(UnsupportedBackend):
            AnsiDevice(_Fd(r), _Fd(w))
    finally:
        os.close(r)
        os.close(w)


@needs_pty
def test_ansi_output(pty_pair):
    master, slave = pty_pair
    dev = AnsiDevice(_Fd(slave), _Fd(slave))
    assert dev.size == (30, 6)

    dev.enter_private_mode()
    assert b"\x1b[?1049h" in _drain(master)

    dev.set_cursor(2, 1)
    dev.set_attributes(Color.RED, Color.DEFAULT, (Style.BOLD,))
    dev.put_char("x")
    dev.put_char("y")
    # Nothing goes out before flush()
    assert not select.select([master], [], [], 0.05)[0]
    dev.flush()
    assert _drain(master) == b"\x1b[2;3H\x1b[0;31;49;1mxy"

    dev.clear()
    dev.flush()
    # Colors are reset before erasing
    assert _drain(master) == b"\x1b[0;39;49m\x1b[2J\x1b[H"

    dev.exit_private_mode()
    out = _drain(master)
    assert b"\x1b[?25h" in out
    assert b"\x1b[?1049l" in out
    dev.close()


@needs_pty
def test_ansi_input(pty_pair):
    master, slave = pty_pair
    dev = AnsiDevice(_Fd(slave), _Fd(slave))
    dev.enter_private_mode()
    _drain(master)
    try:
        assert dev.read_key(0) is None

        os.write(master, b"q\x1b[A")
        assert dev.read_key(1.0) == RawKey(char="q")
        assert dev.read_key(1.0) == RawKey(Key.UP)

        # Input arrives undecoded by the line discipline (no ICRNL)
        os.write(master, b"\r")
        assert dev.read_key(1.0) == RawKey(char="\r")

        # A lone ESC is returned once the escape delay passes
        os.write(master, b"\x1b")
        assert dev.read_key(1.0) == RawKey(char="\x1b")

        os.write(master, "é".encode("utf-8"))
        assert dev.read_key(1.0) == RawKey(char="é")
    finally:
        dev.exit_private_mode()
        dev.close()


@needs_pty
def test_ansi_resize(pty_pair):
    master, slave = pty_pair
    dev = AnsiDevice(_Fd(slave), _Fd(slave))
    seen = []
    dev.add_resize_listener(lambda c, r: seen.append((c, r)))
    dev.enter_private_mode()
    try:
        _set_size(slave, 50, 10)
        # Not noticed until SIGWINCH arrives
        assert not dev.check_resize()

        os.kill(os.getpid(), signal.SIGWINCH)
        assert dev.check_resize()
        assert dev.size == (50, 10)
        assert seen == [(50, 10)]
    finally:
        dev.exit_private_mode()
        dev.close()


@needs_pty
def test_ansi_end_of_input(pty_pair):
    master, slave = pty_pair
    dev = AnsiDevice(_Fd(slave), _Fd(slave))
    os.close(master)
    assert dev.read_key(1.0) == RawKey(Key.EOF)
    with pytest.raises(InputClosed):
        dev.read_key(1.0)
