# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
Character-cell terminal output and keyboard input.

Two backends share one API:

  Terminal - immediate mode, every write goes to the device
  Screen   - double-buffered, writes land in a back buffer that redraw()
             sends to the terminal

Typical use:

    import lanterm

    with lanterm.in_screen(lanterm.get_screen()) as screen:
        screen.write_string("hi", (0, 0), fg="red")
        screen.redraw()
        key = screen.get()
"""

import logging

from lanterm.constants import (
    CHARSETS,
    FALLBACK_FONTS,
    NO_STYLES,
    Color,
    KeyType,
    Palette,
    RefreshType,
    Style,
)
from lanterm.errors import (
    InactiveOutput,
    InputClosed,
    InvalidAttribute,
    LantermError,
    UnsupportedBackend,
)
from lanterm.input import get_keystroke, get_keystroke_blocking
from lanterm.protocols import Input, Keystroke, Output, subscribe, unsubscribe
from lanterm.screen import Screen, StyledCell, get_screen, in_screen
from lanterm.session import run, session
from lanterm.terminal import Terminal, get_available_fonts, get_terminal, in_terminal

__version__ = "0.1.0"

logging.getLogger("lanterm").addHandler(logging.NullHandler())
