# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC

"""
Scoped use of an Output, and a safe entry point for whole programs.
"""

import atexit
import contextlib


@contextlib.contextmanager
def session(output):
    """
    Start 'output', run the body of the with block, and stop it again, also
    when the body raises.

        with session(get_screen()) as screen:
            ...
    """
    output.start()
    try:
        yield output
    finally:
        output.stop()


def run(fn, kind="auto", screen=True, **options):
    """Safe wrapper: create an output, call fn(output), restore on exit.

    The output is a Screen, or a Terminal if 'screen' is False. 'kind' and
    'options' are passed to get_screen()/get_terminal().

    Catches KeyboardInterrupt (Ctrl-C via SIGINT) and always restores
    terminal state. Returns what fn() returns (None after Ctrl-C).
    """
    if screen:
        from lanterm.screen import get_screen as factory
    else:
        from lanterm.terminal import get_terminal as factory

    out = factory(kind, **options)
    # Register atexit as safety net
    atexit.register(out.stop)
    try:
        with session(out):
            return fn(out)
    except KeyboardInterrupt:
        return None
    finally:
        atexit.unregister(out.stop)
