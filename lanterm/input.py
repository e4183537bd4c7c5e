# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
Keystroke normalization.

Devices decode escape sequences into RawKey events. This module turns those
into Keystroke values, so that a Terminal and a Screen (or a real tty and a
virtual one) report the same key the same way.
"""

from lanterm.constants import KeyType
from lanterm.protocols import Keystroke
from lanterm.rawterm import MOD_ALT, MOD_CTRL, MOD_SHIFT, Key

# Device key name -> KeyType
_KEY_TYPES = {
    Key.UP: KeyType.UP,
    Key.DOWN: KeyType.DOWN,
    Key.LEFT: KeyType.LEFT,
    Key.RIGHT: KeyType.RIGHT,
    Key.PAGE_UP: KeyType.PAGE_UP,
    Key.PAGE_DOWN: KeyType.PAGE_DOWN,
    Key.HOME: KeyType.HOME,
    Key.END: KeyType.END,
    Key.INSERT: KeyType.INSERT,
    Key.DELETE: KeyType.DELETE,
    Key.REVERSE_TAB: KeyType.REVERSE_TAB,
    Key.F1: KeyType.F1,
    Key.F2: KeyType.F2,
    Key.F3: KeyType.F3,
    Key.F4: KeyType.F4,
    Key.F5: KeyType.F5,
    Key.F6: KeyType.F6,
    Key.F7: KeyType.F7,
    Key.F8: KeyType.F8,
    Key.F9: KeyType.F9,
    Key.F10: KeyType.F10,
    Key.F11: KeyType.F11,
    Key.F12: KeyType.F12,
    Key.F13: KeyType.F13,
    Key.F14: KeyType.F14,
    Key.F15: KeyType.F15,
    Key.F16: KeyType.F16,
    Key.F17: KeyType.F17,
    Key.F18: KeyType.F18,
    Key.F19: KeyType.F19,
    Key.CURSOR_LOCATION: KeyType.CURSOR_LOCATION,
    Key.MOUSE: KeyType.MOUSE_EVENT,
    Key.UNKNOWN: KeyType.UNKNOWN,
    Key.EOF: KeyType.EOF,
}

# Control characters with a key of their own. Both CR and LF are Enter: with
# ICRNL cleared, Enter arrives as CR on Unix.
_CONTROL_KEYS = {
    "\x1b": KeyType.ESCAPE,
    "\x7f": KeyType.BACKSPACE,
    "\x08": KeyType.BACKSPACE,
    "\t": KeyType.TAB,
    "\r": KeyType.ENTER,
    "\n": KeyType.ENTER,
}


def to_keystroke(raw):
    """Return the Keystroke for the RawKey 'raw'."""
    ctrl = bool(raw.mods & MOD_CTRL)
    alt = bool(raw.mods & MOD_ALT)
    shift = bool(raw.mods & MOD_SHIFT)

    if raw.key is not None:
        key = _KEY_TYPES.get(raw.key, KeyType.UNKNOWN)
        pos = raw.pos if key in (KeyType.CURSOR_LOCATION, KeyType.MOUSE_EVENT) else None
        return Keystroke(key, ctrl=ctrl, alt=alt, shift=shift, pos=pos)

    ch = raw.char
    if ch in _CONTROL_KEYS:
        return Keystroke(_CONTROL_KEYS[ch], ctrl=ctrl, alt=alt, shift=shift)

    o = ord(ch)
    if o == 0:
        # Ctrl-Space
        return Keystroke(KeyType.NORMAL, " ", ctrl=True, alt=alt, shift=shift)
    if o < 0x1b:
        # Ctrl-A..Ctrl-Z
        return Keystroke(KeyType.NORMAL, chr(o + 0x60), ctrl=True, alt=alt, shift=shift)
    if o < 0x20:
        # Ctrl-\ Ctrl-] Ctrl-^ Ctrl-_
        return Keystroke(KeyType.NORMAL, chr(o + 0x40), ctrl=True, alt=alt, shift=shift)
    if 0x80 <= o < 0xa0:
        # C1 controls
        return Keystroke(KeyType.UNKNOWN, ctrl=ctrl, alt=alt, shift=shift)

    return Keystroke(KeyType.NORMAL, ch, ctrl=ctrl, alt=alt, shift=shift)


def read_keystroke(device, timeout):
    """
    Read one event from 'device' and normalize it. Returns None if nothing
    arrived within 'timeout' (see Device.read_key()).
    """
    raw = device.read_key(timeout)
    if raw is None:
        return None
    return to_keystroke(raw)


def poll(source):
    """Return the next Keystroke from an Input, or None if none is queued."""
    return source.poll()


def get(source):
    """Wait for the next Keystroke from an Input."""
    return source.get()


get_keystroke = poll
get_keystroke_blocking = get
