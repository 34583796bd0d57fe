"""
ui.py – Live-refreshing terminal code display.

This module contains CodeDisplay, which redraws the current code of every
account once per refresh interval until the process is interrupted
(Ctrl+C raises KeyboardInterrupt, which run() lets propagate to main.py).

Screen layout
-------------
Current TOTP Codes:
-------------------
github: 123456
mail: 654321

Refreshing in 17 seconds... (Ctrl+C to exit)
"""

import logging
import sys
import time
from typing import Callable, Optional, TextIO

from totp import read_clock, seconds_remaining

logger = logging.getLogger("OtpVault")

# ANSI: clear screen, move cursor to the top-left corner.
CLEAR_SCREEN = "\033[2J\033[H"


class CodeDisplay:
    """
    Renders vault codes to a text stream.

    Parameters
    ----------
    vault : SecretVault
        Source of account names and codes; re-read on every frame.
    clock : callable
        Returns the current Unix time.
    sleep : callable
        Blocks for the given number of seconds between frames.
    out : file-like, optional
        Destination stream; defaults to sys.stdout.
    refresh_seconds : float
        Delay between frames.
    """

    def __init__(self, vault, clock: Callable[[], float] = time.time,
                 sleep: Callable[[float], None] = time.sleep,
                 out: Optional[TextIO] = None, refresh_seconds: float = 1) -> None:
        self.vault = vault
        self.clock = clock
        self.sleep = sleep
        self.out = out or sys.stdout
        self.refresh_seconds = refresh_seconds

    def render(self, unix_time: int) -> str:
        """Return one frame of the display for *unix_time*."""
        codes = self.vault.codes(unix_time)
        lines = ["Current TOTP Codes:", "-------------------"]
        for name in sorted(codes):
            lines.append(f"{name}: {codes[name]}")

        remaining = seconds_remaining(unix_time)
        lines.append("")
        lines.append(f"Refreshing in {remaining} seconds... (Ctrl+C to exit)")
        return "\n".join(lines) + "\n"

    def draw(self) -> None:
        """Write one frame.  Raises ClockError if the clock is unusable."""
        frame = self.render(read_clock(self.clock))
        self.out.write(CLEAR_SCREEN + frame)
        self.out.flush()

    def run(self, frames: Optional[int] = None) -> None:
        """
        Redraw forever, or *frames* times when given.

        There is no stop signal other than KeyboardInterrupt.
        """
        logger.debug("Starting live display for %d account(s)", len(self.vault.accounts))
        drawn = 0
        while frames is None or drawn < frames:
            self.draw()
            drawn += 1
            self.sleep(self.refresh_seconds)
