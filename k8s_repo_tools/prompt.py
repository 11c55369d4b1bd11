# Copyright (c) 2026 Mark Ferrell. MIT License.
"""Interactive confirmation before repository writes."""

from __future__ import annotations

import enum
import sys
from typing import TextIO


class Confirmation(enum.Enum):
    """Outcome of a confirmation step."""

    CONFIRMED = "confirmed"
    ABORTED = "aborted"


def show_prompt(message: str, stdin: TextIO | None = None, stdout: TextIO | None = None) -> bool:
    """Ask a yes/no question and return True for 'y' or 'yes'.

    Raises:
        EOFError: If the input is closed before an answer is given.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stdout.write(f"{message} [y/n]: ")
    stdout.flush()
    line = stdin.readline()
    if not line:
        raise EOFError("no answer was given to the confirmation prompt")
    return line.strip().lower() in ("y", "yes")


def confirm(message: str, force: bool, stdin: TextIO | None = None) -> Confirmation:
    """Confirm a write operation, skipping the prompt when force is set."""
    if force:
        return Confirmation.CONFIRMED
    if show_prompt(message, stdin=stdin):
        return Confirmation.CONFIRMED
    return Confirmation.ABORTED
