# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
Fixed registries: colors, text styles, key types, refresh types, palettes and
charsets.

Each registry is an Enum. The lookup functions at the bottom also accept the
keyword spelling used throughout the API ("page-up", "mac-os-x", "blinking")
and raise InvalidAttribute for anything else, so callers can validate options
before drawing.
"""

import codecs
import enum

from lanterm.errors import InvalidAttribute

# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------


class Color(enum.Enum):
    """One of the eight ANSI colors, or the terminal's own default."""

    BLACK = 0
    RED = 1
    GREEN = 2
    YELLOW = 3
    BLUE = 4
    MAGENTA = 5
    CYAN = 6
    WHITE = 7
    DEFAULT = 9

    def sgr_fg(self):
        """Return the SGR parameter selecting this foreground color."""
        return str(30 + self.value)

    def sgr_bg(self):
        """Return the SGR parameter selecting this background color."""
        return str(40 + self.value)


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------


class Style(enum.Enum):
    """Text attribute. Values are the SGR parameters that enable them."""

    BOLD = 1
    UNDERLINE = 4
    BLINK = 5
    REVERSE = 7
    STRIKETHROUGH = 9
    FRAKTUR = 20
    CIRCLED = 52


NO_STYLES = frozenset()


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


class KeyType(enum.Enum):
    """Category of a Keystroke."""

    NORMAL = "normal"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    INSERT = "insert"
    DELETE = "delete"
    HOME = "home"
    END = "end"
    PAGE_UP = "page-up"
    PAGE_DOWN = "page-down"
    TAB = "tab"
    REVERSE_TAB = "reverse-tab"
    ENTER = "enter"
    F1 = "f1"
    F2 = "f2"
    F3 = "f3"
    F4 = "f4"
    F5 = "f5"
    F6 = "f6"
    F7 = "f7"
    F8 = "f8"
    F9 = "f9"
    F10 = "f10"
    F11 = "f11"
    F12 = "f12"
    F13 = "f13"
    F14 = "f14"
    F15 = "f15"
    F16 = "f16"
    F17 = "f17"
    F18 = "f18"
    F19 = "f19"
    UNKNOWN = "unknown"
    CURSOR_LOCATION = "cursor-location"
    MOUSE_EVENT = "mouse-event"
    EOF = "eof"


# ---------------------------------------------------------------------------
# Redraw modes
# ---------------------------------------------------------------------------


class RefreshType(enum.Enum):
    AUTO = "auto"
    DELTA = "delta"
    COMPLETE = "complete"


# ---------------------------------------------------------------------------
# Palettes
# ---------------------------------------------------------------------------


class Palette(enum.Enum):
    """
    Color scheme used by emulated terminals to turn the eight symbolic
    colors into RGB. Text terminals ignore it: their own settings decide.
    """

    GNOME = "gnome"
    VGA = "vga"
    WINDOWS_XP = "windows-xp"
    MAC_OS_X = "mac-os-x"
    PUTTY = "putty"
    XTERM = "xterm"

    def rgb(self, color, background=False):
        """
        Return the (r, g, b) triple for 'color'. Color.DEFAULT resolves to
        the palette's default foreground, or default background if
        'background' is True.
        """
        table = _PALETTE_RGB[self]
        if color is Color.DEFAULT:
            return table[9] if background else table[8]
        return table[color.value]


# Indices 0-7 follow Color values; 8 is the default foreground and 9 the
# default background.
_PALETTE_RGB = {
    Palette.GNOME: (
        (46, 52, 54),
        (204, 0, 0),
        (78, 154, 6),
        (196, 160, 0),
        (52, 101, 164),
        (117, 80, 123),
        (6, 152, 154),
        (211, 215, 207),
        (211, 215, 207),
        (46, 52, 54),
    ),
    Palette.VGA: (
        (0, 0, 0),
        (170, 0, 0),
        (0, 170, 0),
        (170, 85, 0),
        (0, 0, 170),
        (170, 0, 170),
        (0, 170, 170),
        (170, 170, 170),
        (170, 170, 170),
        (0, 0, 0),
    ),
    Palette.WINDOWS_XP: (
        (0, 0, 0),
        (128, 0, 0),
        (0, 128, 0),
        (128, 128, 0),
        (0, 0, 128),
        (128, 0, 128),
        (0, 128, 128),
        (192, 192, 192),
        (192, 192, 192),
        (0, 0, 0),
    ),
    Palette.MAC_OS_X: (
        (0, 0, 0),
        (194, 54, 33),
        (37, 188, 36),
        (173, 173, 39),
        (73, 46, 225),
        (211, 56, 211),
        (51, 187, 200),
        (203, 204, 205),
        (0, 0, 0),
        (255, 255, 255),
    ),
    Palette.PUTTY: (
        (0, 0, 0),
        (187, 0, 0),
        (0, 187, 0),
        (187, 187, 0),
        (0, 0, 187),
        (187, 0, 187),
        (0, 187, 187),
        (187, 187, 187),
        (187, 187, 187),
        (0, 0, 0),
    ),
    Palette.XTERM: (
        (0, 0, 0),
        (205, 0, 0),
        (0, 205, 0),
        (205, 205, 0),
        (0, 0, 238),
        (205, 0, 205),
        (0, 205, 205),
        (229, 229, 229),
        (229, 229, 229),
        (0, 0, 0),
    ),
}


# ---------------------------------------------------------------------------
# Charsets and fonts
# ---------------------------------------------------------------------------

# Name -> codec name understood by the codecs module
CHARSETS = {
    "utf-8": "utf-8",
}

# Tried in order when none of the requested fonts are installed
FALLBACK_FONTS = (
    "Droid Sans Mono",
    "Inconsolata",
    "DejaVu Sans Mono",
    "Consolas",
    "Monospaced",
    "Mono",
)


# ---------------------------------------------------------------------------
# Name lookups
# ---------------------------------------------------------------------------

# Keyword spellings that differ from the enum member names
_STYLE_ALIASES = {
    "blinking": Style.BLINK,
    "crossed-out": Style.STRIKETHROUGH,
}


def _lookup(enum_cls, value, what, aliases=None):
    if isinstance(value, enum_cls):
        return value

    if isinstance(value, str):
        name = value.strip().lower()
        if aliases and name in aliases:
            return aliases[name]
        try:
            return enum_cls[name.replace("-", "_").upper()]
        except KeyError:
            pass

    raise InvalidAttribute(f"unknown {what}: {value!r}")


def color(value):
    """Return the Color for a Color member or a name like "red"."""
    return _lookup(Color, value, "color")


def style(value):
    """Return the Style for a Style member or a name like "bold"."""
    return _lookup(Style, value, "style", _STYLE_ALIASES)


def styles(values):
    """
    Return a frozenset of Style from any iterable of styles or style names.
    None means no styles. A bare string is rejected rather than being iterated
    character by character.
    """
    if values is None:
        return NO_STYLES
    if isinstance(values, (str, Style)):
        raise InvalidAttribute(
            f"styles must be a collection of styles, not {values!r}"
        )
    try:
        it = iter(values)
    except TypeError:
        raise InvalidAttribute(f"styles must be iterable, not {values!r}") from None
    return frozenset(style(s) for s in it)


def key_type(value):
    """Return the KeyType for a KeyType member or a name like "page-up"."""
    return _lookup(KeyType, value, "key")


def refresh_type(value):
    return _lookup(RefreshType, value, "refresh type")


def palette(value):
    return _lookup(Palette, value, "palette")


def charset(value):
    """
    Return the codec name for a charset name from CHARSETS. Names not in the
    registry are accepted if the codecs module knows them.
    """
    if not isinstance(value, str):
        raise InvalidAttribute(f"unknown charset: {value!r}")

    name = value.strip().lower()
    if name in CHARSETS:
        return CHARSETS[name]
    try:
        return codecs.lookup(name).name
    except LookupError:
        raise InvalidAttribute(f"unknown charset: {value!r}") from None
