#!/usr/bin/env python3
"""Validate lanterm outside the test suite.

Exercises the registries and key decoder, a virtual Screen session, an
AnsiDevice over a pseudo-terminal, and a real Terminal when stdin/stdout are
a TTY.

Run from the project root: python .ci/validate-lanterm.py
"""

import os
import sys

# Ensure the project root (CWD) is on the import path, since Python
# adds the script's directory (.ci/) rather than CWD by default.
sys.path.insert(0, os.getcwd())

_IS_WINDOWS = os.name == "nt"


def check_units():
    """Registries, key decoding and normalization -- no terminal required."""
    from lanterm import constants
    from lanterm.constants import Color, KeyType, Palette, Style
    from lanterm.input import to_keystroke
    from lanterm.rawterm import MOD_CTRL, Key, decode_key

    # Keyword lookups
    assert constants.color("red") is Color.RED, "color lookup"
    assert constants.style("blinking") is Style.BLINK, "style alias"
    assert constants.key_type("page-up") is KeyType.PAGE_UP, "key lookup"
    assert constants.palette("mac-os-x") is Palette.MAC_OS_X, "palette lookup"
    for pal in Palette:
        for col in Color:
            assert len(pal.rgb(col)) == 3, "rgb for {} in {}".format(col, pal)

    # Decoding
    key, n = decode_key("\x1b[1;5A")
    assert key.key == Key.UP and key.mods == MOD_CTRL and n == 6, "ctrl-up"
    assert decode_key("\x1b") == (None, 0), "partial escape"
    assert to_keystroke(decode_key("\x01")[0]).char == "a", "ctrl-a"

    print("unit checks passed")


def check_virtual_screen():
    """A full Screen session on the in-memory backend."""
    from lanterm import KeyType, get_screen, in_screen

    screen = get_screen("virtual", cols=20, rows=4)
    dev = screen.terminal().device
    with in_screen(screen):
        screen.put_sheet((1, 1), ["hello", [("world", {"fg": "red"})]])
        screen.redraw()
        assert dev.line(1) == " hello              ", "sheet row 1"
        assert dev.line(2) == " world              ", "sheet row 2"

        dev.reset_counters()
        screen.write_char("!", (6, 1))
        screen.redraw()
        assert dev.chars_written == 1, "delta redraw"

        dev.feed("\x1b[5~")
        assert screen.get().key is KeyType.PAGE_UP, "page-up from device"

        dev.resize(30, 5)
        assert screen.get_size() == (30, 5), "resize"

    assert not screen.is_started(), "stopped"
    print("virtual screen checks passed")


def check_pty():
    """AnsiDevice over a pseudo-terminal: output escapes and key input."""
    if _IS_WINDOWS:
        print("pty checks skipped (Windows)")
        return

    import fcntl
    import pty
    import select
    import struct
    import termios

    from lanterm.constants import Color
    from lanterm.rawterm import AnsiDevice, Key, RawKey

    class Fd:
        def __init__(self, fd):
            self.fd = fd

        def fileno(self):
            return self.fd

    def drain(fd):
        data = b""
        timeout = 0.5
        while select.select([fd], [], [], timeout)[0]:
            chunk = os.read(fd, 4096)
            if not chunk:
                break
            data += chunk
            timeout = 0.05
        return data

    master, slave = pty.openpty()
    try:
        fcntl.ioctl(slave, termios.TIOCSWINSZ, struct.pack("HHHH", 10, 40, 0, 0))
        dev = AnsiDevice(Fd(slave), Fd(slave))
        assert dev.size == (40, 10), "pty size"

        dev.enter_private_mode()
        dev.set_cursor(0, 0)
        dev.set_attributes(Color.GREEN, Color.DEFAULT, ())
        dev.put_char("x")
        dev.flush()
        out = drain(master)
        assert b"\x1b[?1049h" in out, "alternate screen"
        assert out.endswith(b"\x1b[1;1H\x1b[0;32;49mx"), "cursor and SGR"

        os.write(master, b"\x1b[B")
        assert dev.read_key(1.0) == RawKey(Key.DOWN), "down key"

        dev.exit_private_mode()
        assert b"\x1b[?1049l" in drain(master), "main screen"
        dev.close()
    finally:
        os.close(master)
        os.close(slave)

    print("pty checks passed")


def check_terminal_init():
    """Terminal start/stop -- full lifecycle on the real TTY.

    Requires a real TTY on stdin/stdout.
    """
    if _IS_WINDOWS:
        print("Terminal start/stop skipped (Windows)")
        return

    if not (os.isatty(sys.stdin.fileno()) and os.isatty(sys.stdout.fileno())):
        print("Terminal start/stop skipped (no TTY)")
        return

    from lanterm import get_terminal

    term = get_terminal("text")
    cols, rows = term.get_size()
    assert cols > 0, "terminal width"
    assert rows > 0, "terminal height"

    with term:
        term.write_string("lanterm", (0, 0), fg="white", bg="blue", styles=["bold"])
        assert term.get_cursor() == (7, 0), "cursor after write"
        term.clear()
        term.poll()
    term.close()
    print("Terminal start/stop passed")


if __name__ == "__main__":
    check_units()
    check_virtual_screen()
    check_pty()
    check_terminal_init()
    print("All checks passed")
