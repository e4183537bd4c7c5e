# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
Construction-time options for terminals and screens.

Options can be overridden from the environment:

  LANTERM_KIND:
    Terminal kind to use when the caller asked for "auto" (e.g. "virtual"
    to force a headless run)

  LANTERM_PALETTE:
    Palette to use when the caller didn't pass one

Explicit arguments always win over the environment. Unusable environment
values are ignored with a warning.
"""

import logging
import os
import subprocess

from lanterm import constants
from lanterm.constants import FALLBACK_FONTS
from lanterm.errors import InvalidAttribute

_LOG = logging.getLogger("lanterm.config")

KINDS = ("auto", "text", "unix", "cygwin", "virtual", "swing", "awt")

DEFAULT_PALETTE = constants.Palette.MAC_OS_X

# Last resort when no candidate or fallback font is installed
DEFAULT_FONT = "Monospaced"


def _positive_int(name, value):
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidAttribute(f"{name} must be a positive int, not {value!r}")
    return value


def check_listener(fn):
    if fn is not None and not callable(fn):
        raise InvalidAttribute(f"resize listener must be callable, not {fn!r}")
    return fn


class Options:
    """
    title:
      Name of the terminal window (default "terminal")

    cols/rows:
      Initial size in characters (default 80x24). Text terminals use the
      size of the real window instead.

    charset:
      I/O encoding, a key of constants.CHARSETS or any codec name (default
      "utf-8")

    font:
      Font name or ordered list of candidates. The first installed one wins,
      with constants.FALLBACK_FONTS tried after them.

    font_size:
      Font size (default 14)

    palette:
      Palette or palette name (default "mac-os-x", or $LANTERM_PALETTE)

    resize_listener:
      Function called as fn(cols, rows) on resizes, subscribed at
      construction

    Everything is validated here, so a bad option fails before any device
    is touched.
    """

    __slots__ = (
        "title",
        "cols",
        "rows",
        "charset",
        "font",
        "font_size",
        "palette",
        "resize_listener",
    )

    def __init__(
        self,
        title="terminal",
        cols=80,
        rows=24,
        charset="utf-8",
        font=None,
        font_size=14,
        palette=None,
        resize_listener=None,
    ):
        if not isinstance(title, str):
            raise InvalidAttribute(f"title must be a string, not {title!r}")
        self.title = title
        self.cols = _positive_int("cols", cols)
        self.rows = _positive_int("rows", rows)
        self.charset = constants.charset(charset)

        if font is None:
            font = ()
        elif isinstance(font, str):
            font = (font,)
        else:
            font = tuple(font)
            for f in font:
                if not isinstance(f, str):
                    raise InvalidAttribute(f"font names must be strings, not {f!r}")
        self.font = font

        self.font_size = _positive_int("font_size", font_size)
        self.palette = (
            _env_palette() if palette is None else constants.palette(palette)
        )
        self.resize_listener = check_listener(resize_listener)

    def __repr__(self):
        return "Options({})".format(
            ", ".join(
                f"{name}={getattr(self, name)!r}"
                for name in self.__slots__
                if name != "resize_listener"
            )
        )


def _env_palette():
    name = os.environ.get("LANTERM_PALETTE")
    if not name:
        return DEFAULT_PALETTE
    try:
        return constants.palette(name)
    except InvalidAttribute:
        _LOG.warning("ignoring unknown palette %r in LANTERM_PALETTE", name)
        return DEFAULT_PALETTE


def resolve_kind(kind):
    """
    Validate a terminal kind, replacing "auto" with $LANTERM_KIND when that
    is set to a known kind.
    """
    if kind not in KINDS:
        raise InvalidAttribute(
            "unknown terminal kind {!r}, expected one of {}".format(kind, ", ".join(KINDS))
        )

    if kind == "auto":
        env_kind = os.environ.get("LANTERM_KIND")
        if env_kind:
            if env_kind in KINDS:
                return env_kind
            _LOG.warning("ignoring unknown terminal kind %r in LANTERM_KIND", env_kind)
    return kind


# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------


def get_available_fonts():
    """
    Return the set of installed font family names, as listed by fontconfig's
    fc-list. Empty if fontconfig isn't available.
    """
    try:
        out = subprocess.run(
            ["fc-list", ":", "family"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            universal_newlines=True,
            check=True,
        ).stdout
    except (OSError, subprocess.CalledProcessError):
        return set()

    families = set()
    for line in out.splitlines():
        # One font per line, with aliases separated by commas
        for name in line.split(","):
            name = name.strip()
            if name:
                families.add(name)
    return families


def resolve_font(candidates, available=None):
    """
    Return the first installed font from 'candidates', then from
    FALLBACK_FONTS, and DEFAULT_FONT if none of them are installed.
    """
    if available is None:
        available = get_available_fonts()

    for name in candidates:
        if name in available:
            return name

    if candidates:
        _LOG.warning(
            "none of the fonts %s are installed, using a fallback", ", ".join(candidates)
        )

    for name in FALLBACK_FONTS:
        if name in available:
            return name
    return DEFAULT_FONT
