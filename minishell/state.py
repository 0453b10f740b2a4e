"""Mutable state carried by a running shell."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ShellState:
    """Environment variables and the status of the last command."""

    env: dict[str, str] = field(default_factory=dict)
    exit_status: int = 0

    def set_exit_status(self, status: int) -> None:
        """Record *status* as the last exit status, also exposed as ``$?``."""
        self.exit_status = status
        self.env["?"] = str(status)