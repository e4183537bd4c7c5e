# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC
#
# Keystroke values, normalization of decoded keys, and reading keystrokes
# through Terminal and Screen.

import threading

import pytest

from lanterm import input as keyinput
from lanterm.constants import KeyType
from lanterm.errors import InactiveOutput, InputClosed, InvalidAttribute
from lanterm.input import get_keystroke, get_keystroke_blocking, to_keystroke
from lanterm.protocols import Keystroke
from lanterm.rawterm import MOD_ALT, MOD_CTRL, MOD_SHIFT, Key, RawKey
from lanterm.terminal import get_terminal

from conftest import device_of

# ---------------------------------------------------------------------------
# Keystroke
# ---------------------------------------------------------------------------


def test_keystroke_fields():
    k = Keystroke("normal", "a", ctrl=True)
    assert k.key is KeyType.NORMAL
    assert k.char == "a"
    assert k.ctrl and not k.alt and not k.shift
    assert k.pos is None


def test_keystroke_validation():
    with pytest.raises(InvalidAttribute):
        Keystroke(KeyType.NORMAL)
    with pytest.raises(InvalidAttribute):
        Keystroke(KeyType.NORMAL, "ab")
    with pytest.raises(InvalidAttribute):
        Keystroke(KeyType.UP, "a")
    with pytest.raises(InvalidAttribute):
        Keystroke(KeyType.UP, pos=(1, 1))
    with pytest.raises(InvalidAttribute):
        Keystroke("no-such-key")

    assert Keystroke(KeyType.MOUSE_EVENT, pos=[3, 4]).pos == (3, 4)


def test_keystroke_equality():
    assert Keystroke(KeyType.UP, shift=True) == Keystroke("up", shift=True)
    assert Keystroke(KeyType.UP) != Keystroke(KeyType.UP, shift=True)
    assert Keystroke(KeyType.NORMAL, "a") != Keystroke(KeyType.NORMAL, "b")
    assert len({Keystroke(KeyType.ENTER), Keystroke("enter")}) == 1


def test_keystroke_repr():
    assert repr(Keystroke(KeyType.NORMAL, "q", ctrl=True)) == "Keystroke(NORMAL, 'q', ctrl)"
    assert (
        repr(Keystroke(KeyType.CURSOR_LOCATION, pos=(1, 2)))
        == "Keystroke(CURSOR_LOCATION, pos=(1, 2))"
    )


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        (RawKey(char="a"), Keystroke(KeyType.NORMAL, "a")),
        (RawKey(char="A"), Keystroke(KeyType.NORMAL, "A")),
        (RawKey(char="é"), Keystroke(KeyType.NORMAL, "é")),
        (RawKey(char="\x1b"), Keystroke(KeyType.ESCAPE)),
        (RawKey(char="\r"), Keystroke(KeyType.ENTER)),
        (RawKey(char="\n"), Keystroke(KeyType.ENTER)),
        (RawKey(char="\t"), Keystroke(KeyType.TAB)),
        (RawKey(char="\x7f"), Keystroke(KeyType.BACKSPACE)),
        (RawKey(char="\x08"), Keystroke(KeyType.BACKSPACE)),
        (RawKey(char="\x01"), Keystroke(KeyType.NORMAL, "a", ctrl=True)),
        (RawKey(char="\x1a"), Keystroke(KeyType.NORMAL, "z", ctrl=True)),
        (RawKey(char="\x00"), Keystroke(KeyType.NORMAL, " ", ctrl=True)),
        (RawKey(char="\x1c"), Keystroke(KeyType.NORMAL, "\\", ctrl=True)),
        (RawKey(char="\x1f"), Keystroke(KeyType.NORMAL, "_", ctrl=True)),
        (RawKey(char="\x85"), Keystroke(KeyType.UNKNOWN)),
        (RawKey(char="x", mods=MOD_ALT), Keystroke(KeyType.NORMAL, "x", alt=True)),
        (RawKey(char="\x1b", mods=MOD_ALT), Keystroke(KeyType.ESCAPE, alt=True)),
        (RawKey(Key.UP), Keystroke(KeyType.UP)),
        (RawKey(Key.PAGE_DOWN), Keystroke(KeyType.PAGE_DOWN)),
        (RawKey(Key.REVERSE_TAB), Keystroke(KeyType.REVERSE_TAB)),
        (RawKey(Key.F12), Keystroke(KeyType.F12)),
        (
            RawKey(Key.LEFT, mods=MOD_CTRL | MOD_SHIFT),
            Keystroke(KeyType.LEFT, ctrl=True, shift=True),
        ),
        (
            RawKey(Key.MOUSE, mods=MOD_CTRL, pos=(4, 2)),
            Keystroke(KeyType.MOUSE_EVENT, ctrl=True, pos=(4, 2)),
        ),
        (
            RawKey(Key.CURSOR_LOCATION, pos=(0, 9)),
            Keystroke(KeyType.CURSOR_LOCATION, pos=(0, 9)),
        ),
        (RawKey(Key.UNKNOWN), Keystroke(KeyType.UNKNOWN)),
        (RawKey(Key.EOF), Keystroke(KeyType.EOF)),
    ],
)
def test_to_keystroke(raw, expected):
    assert to_keystroke(raw) == expected


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------


def test_poll_empty(term):
    assert term.poll() is None
    assert get_keystroke(term) is None


def test_poll_in_order(term):
    device_of(term).feed("q\x1b[A\x1b[1;5C\r")
    assert get_keystroke(term) == Keystroke(KeyType.NORMAL, "q")
    assert term.poll() == Keystroke(KeyType.UP)
    assert term.poll() == Keystroke(KeyType.RIGHT, ctrl=True)
    assert term.poll() == Keystroke(KeyType.ENTER)
    assert term.poll() is None


def test_lone_escape(term):
    device_of(term).feed("\x1b")
    assert term.poll() == Keystroke(KeyType.ESCAPE)


def test_screen_reads_from_terminal(screen):
    device_of(screen).feed("x")
    assert screen.poll() == Keystroke(KeyType.NORMAL, "x")
    assert screen.poll() is None


def test_get_blocks_until_input(term):
    timer = threading.Timer(0.05, device_of(term).feed, ("k",))
    timer.start()
    try:
        assert get_keystroke_blocking(term) == Keystroke(KeyType.NORMAL, "k")
    finally:
        timer.join()


def test_end_of_input(term):
    dev = device_of(term)
    dev.feed("a")
    dev.end_input()
    # Queued keys come first, then a single EOF
    assert term.get() == Keystroke(KeyType.NORMAL, "a")
    assert term.get() == Keystroke(KeyType.EOF)
    with pytest.raises(InputClosed):
        term.get()
    with pytest.raises(InputClosed):
        term.poll()


def test_close_wakes_blocked_reader():
    term = get_terminal("virtual", cols=10, rows=3)
    term.start()
    timer = threading.Timer(0.05, term.device.close)
    timer.start()
    try:
        with pytest.raises(InputClosed):
            term.get()
    finally:
        timer.join()


def test_input_needs_started_output():
    term = get_terminal("virtual", cols=10, rows=3)
    with pytest.raises(InactiveOutput):
        term.poll()
    with pytest.raises(InactiveOutput):
        term.get()
    term.start()
    term.stop()
    with pytest.raises(InactiveOutput):
        term.poll()


def test_module_level_readers(screen):
    device_of(screen).feed("\x1b[2~", "i")
    assert keyinput.poll(screen) == Keystroke(KeyType.INSERT)
    assert keyinput.get(screen) == Keystroke(KeyType.NORMAL, "i")
    assert keyinput.poll(screen) is None
