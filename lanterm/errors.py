# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
Exceptions raised by lanterm.

All of them derive from LantermError. Device-level OSErrors are not wrapped:
they propagate as-is, and the Terminal/Screen that raised them should be
discarded.
"""


class LantermError(Exception):
    """Base class for lanterm errors."""


class InvalidAttribute(LantermError, ValueError):
    """
    Unknown color, style, key or palette name, or an otherwise undrawable
    argument (control character, negative position). Always raised before any
    cell or device state is touched.
    """


class InactiveOutput(LantermError):
    """Operation attempted on a Terminal/Screen that isn't started."""


class InputClosed(LantermError):
    """Keystroke read from a device whose input has been torn down."""


class UnsupportedBackend(LantermError):
    """The requested terminal kind can't be created on this platform."""
