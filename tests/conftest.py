# Copyright (c) 2026 lanterm contributors
# SPDX-License-Identifier: ISC
#
# Shared fixtures for the lanterm pytest suite.

import os
import sys

import pytest

# Ensure lanterm is importable from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from lanterm.screen import get_screen  # noqa: E402
from lanterm.terminal import get_terminal  # noqa: E402

# Size of the virtual terminals handed out by the fixtures
COLS = 20
ROWS = 5

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep LANTERM_* settings from the calling shell out of the tests."""
    monkeypatch.delenv("LANTERM_KIND", raising=False)
    monkeypatch.delenv("LANTERM_PALETTE", raising=False)
    yield


@pytest.fixture
def term():
    """A started COLSxROWS virtual Terminal, stopped afterwards."""
    t = get_terminal("virtual", cols=COLS, rows=ROWS)
    t.start()
    yield t
    t.stop()


@pytest.fixture
def screen():
    """A started COLSxROWS virtual Screen, stopped afterwards."""
    s = get_screen("virtual", cols=COLS, rows=ROWS)
    s.start()
    yield s
    s.stop()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def device_of(out):
    """Return the VirtualDevice underneath a Terminal or Screen."""
    return out.terminal().device


def blank_line(cols=COLS):
    return " " * cols
