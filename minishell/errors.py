"""Error reporting shared by the shell's components."""

from __future__ import annotations

import sys
from typing import Optional


class ShellError(Exception):
    """Base class for errors raised by the shell."""


def format_error(prefix: str, arg: Optional[str], message: str) -> str:
    """Build a diagnostic of the form ``prefix: [arg: ]message``."""
    parts = [prefix]
    if arg is not None:
        parts.append(arg)
    parts.append(message)
    return ": ".join(parts)


def print_error(prefix: str, arg: Optional[str], message: str) -> None:
    """Write a formatted diagnostic line to standard error."""
    sys.stderr.write(format_error(prefix, arg, message) + "\n")
    sys.stderr.flush()