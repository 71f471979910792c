# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Scoped ownership of the interactive terminal.

A TerminalSession holds three pieces of ambient terminal state while it
is active: unbuffered no-echo input (cbreak), the alternate screen (via
rich's Live with screen=True) and mouse capture. Acquire and release are
idempotent, so nested or repeated exits restore the terminal exactly once.

Usage:
    with TerminalSession() as terminal:
        terminal.draw(renderable)
        key = terminal.read_key(0.1)
        with terminal.suspended():
            ...  # plain terminal for an interactive prompt
"""

import logging
import os
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

from rich.console import Console, RenderableType
from rich.live import Live
from rich.text import Text

from tokstat_library.core.errors import TokstatError

# Cross-platform keyboard input
if sys.platform == "win32":
    import msvcrt
    import time
else:
    import select
    import termios
    import tty

app_logger = logging.getLogger("tokstat_app")

KEY_UP = "up"
KEY_DOWN = "down"
KEY_LEFT = "left"
KEY_RIGHT = "right"
KEY_ENTER = "enter"
KEY_ESCAPE = "esc"
KEY_BACKSPACE = "backspace"

ENABLE_MOUSE_CAPTURE = "\x1b[?1000h\x1b[?1006h"
DISABLE_MOUSE_CAPTURE = "\x1b[?1006l\x1b[?1000l"

# Time to wait for the rest of an escape sequence before treating ESC as a key
ESCAPE_SEQUENCE_TIMEOUT = 0.05

_CSI_KEYS = {"A": KEY_UP, "B": KEY_DOWN, "C": KEY_RIGHT, "D": KEY_LEFT}
_WINDOWS_KEYS = {"H": KEY_UP, "P": KEY_DOWN, "M": KEY_RIGHT, "K": KEY_LEFT}


def decode_key(data: str) -> Optional[str]:
    """
    Map raw input characters to a key name or a single printable character.

    Returns None for sequences the dashboard does not handle (mouse
    reports, function keys, control characters).
    """
    if not data:
        return None
    if data == "\x1b":
        return KEY_ESCAPE
    if data.startswith("\x1b"):
        if len(data) >= 3 and data[1] in "[O":
            return _CSI_KEYS.get(data[2])
        return None
    if data in ("\r", "\n"):
        return KEY_ENTER
    if data in ("\x7f", "\x08"):
        return KEY_BACKSPACE
    if len(data) == 1 and data.isprintable():
        return data
    return None


class TerminalSession:
    def __init__(self, console: Optional[Console] = None, stdin=None):
        self.console = console or Console()
        self._stdin = stdin if stdin is not None else sys.stdin
        self._live: Optional[Live] = None
        self._saved_attrs = None
        self.active = False

    # =========================================================================
    # OWNERSHIP
    # =========================================================================

    def acquire(self) -> None:
        """Enter cbreak input, mouse capture and the alternate screen."""
        if self.active:
            return
        if not self._stdin.isatty():
            raise TokstatError("The dashboard needs an interactive terminal")
        if sys.platform != "win32":
            fd = self._stdin.fileno()
            self._saved_attrs = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        try:
            self._write(ENABLE_MOUSE_CAPTURE)
            self._live = Live(
                Text(""),
                console=self.console,
                screen=True,
                auto_refresh=False,
                transient=True,
            )
            self._live.start()
        except BaseException:
            self._restore_input()
            raise
        self.active = True
        app_logger.debug("Terminal acquired")

    def release(self) -> None:
        """Leave the alternate screen and restore the saved input mode."""
        if not self.active:
            return
        self.active = False
        try:
            if self._live is not None:
                self._live.stop()
                self._live = None
            self._write(DISABLE_MOUSE_CAPTURE)
            self.console.show_cursor(True)
        finally:
            self._restore_input()
        app_logger.debug("Terminal released")

    def _restore_input(self) -> None:
        if self._saved_attrs is not None:
            termios.tcsetattr(self._stdin.fileno(), termios.TCSADRAIN, self._saved_attrs)
            self._saved_attrs = None

    def __enter__(self) -> "TerminalSession":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.release()
        return False

    @contextmanager
    def suspended(self) -> Iterator[None]:
        """Hand the plain terminal to someone else, then take it back."""
        self.release()
        try:
            yield
        finally:
            self.acquire()

    # =========================================================================
    # I/O
    # =========================================================================

    def _write(self, sequence: str) -> None:
        if self.console.is_terminal:
            self.console.file.write(sequence)
            self.console.file.flush()

    def draw(self, renderable: RenderableType) -> None:
        if self._live is not None:
            self._live.update(renderable, refresh=True)

    def read_key(self, timeout: float) -> Optional[str]:
        """Wait up to `timeout` seconds for a key press."""
        if not self.active:
            return None
        if sys.platform == "win32":
            return self._read_key_windows(timeout)

        fd = self._stdin.fileno()
        if not select.select([fd], [], [], timeout)[0]:
            return None
        data = os.read(fd, 1)
        if data == b"\x1b":
            data = self._read_escape_sequence(fd)
        elif data and data[0] >= 0xC0:
            # UTF-8 lead byte: read its continuation bytes
            extra = 1 if data[0] < 0xE0 else 2 if data[0] < 0xF0 else 3
            data += os.read(fd, extra)
        return decode_key(data.decode("utf-8", errors="ignore"))

    def _read_escape_sequence(self, fd: int) -> bytes:
        """
        Read the rest of an escape sequence one byte at a time.

        Stops at the sequence's final byte so input queued behind it (held
        arrow keys, fast typing) is left for the next read.
        """
        data = b"\x1b"
        if not select.select([fd], [], [], ESCAPE_SEQUENCE_TIMEOUT)[0]:
            return data
        introducer = os.read(fd, 1)
        data += introducer
        if introducer not in (b"[", b"O"):
            return data
        while select.select([fd], [], [], ESCAPE_SEQUENCE_TIMEOUT)[0]:
            byte = os.read(fd, 1)
            if not byte:
                break
            data += byte
            # SS3 carries a single final byte; CSI ends at the first byte in 0x40-0x7E
            if introducer == b"O" or 0x40 <= byte[0] <= 0x7E:
                break
        return data

    def _read_key_windows(self, timeout: float) -> Optional[str]:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if msvcrt.kbhit():
                char = msvcrt.getwch()
                if char in ("\x00", "\xe0"):
                    return _WINDOWS_KEYS.get(msvcrt.getwch())
                return decode_key(char)
            time.sleep(0.01)
        return None
