"""Variable expansion and quote removal for command words."""

from __future__ import annotations

import os
import re
from typing import Mapping, Optional

from minishell.errors import ShellError
from minishell.parser import Command
from minishell.state import ShellState

_PIECE = re.compile(
    r"""
    (?P<status>\$\?)
    | (?P<pid>\$\$)
    | \$(?P<name>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<quote>['"])
    | (?P<text>[^'"$]+)
    | (?P<dollar>\$)
    """,
    re.VERBOSE,
)


class AmbiguousRedirectError(ShellError):
    """Raised when a redirection target does not expand to one word."""

    def __init__(self, word: str) -> None:
        super().__init__(f"{word}: ambiguous redirect")
        self.word = word


def expand_variables(text: str, env: Mapping[str, str], exit_status: int) -> str:
    """Replace ``$NAME``, ``$?`` and ``$$`` outside single quotes.

    Quote characters are kept; unknown variables expand to nothing and a
    ``$`` not followed by a name, ``?`` or ``$`` stays as it is.
    """
    in_single = False
    in_double = False
    out: list[str] = []
    for match in _PIECE.finditer(text):
        piece = match.group(0)
        kind = match.lastgroup
        if kind == "quote":
            if piece == "'" and not in_double:
                in_single = not in_single
            elif piece == '"' and not in_single:
                in_double = not in_double
            out.append(piece)
        elif in_single or kind in ("text", "dollar"):
            out.append(piece)
        elif kind == "status":
            out.append(str(exit_status))
        elif kind == "pid":
            out.append(str(os.getpid()))
        else:
            out.append(env.get(match.group("name"), ""))
    return "".join(out)


def remove_quotes(text: str) -> str:
    """Drop the quote characters that open or close a quoted section."""
    in_single = False
    in_double = False
    out: list[str] = []
    for char in text:
        if char == "'" and not in_double:
            in_single = not in_single
        elif char == '"' and not in_single:
            in_double = not in_double
        else:
            out.append(char)
    return "".join(out)


def expand_word(word: str, env: Mapping[str, str], exit_status: int) -> Optional[str]:
    """Expand variables in *word* and remove its quotes.

    Returns ``None`` when nothing is left of the word.
    """
    result = remove_quotes(expand_variables(word, env, exit_status))
    return result or None


def expand_command(command: Command, state: ShellState) -> None:
    """Expand the arguments and redirection targets of *command* in place.

    Arguments that expand to nothing are dropped. A redirection target
    that expands to nothing is left unchanged.
    """
    expanded_args = (
        expand_word(arg, state.env, state.exit_status) for arg in command.args
    )
    command.args = [arg for arg in expanded_args if arg is not None]
    for redirect in command.redirects:
        target = expand_word(redirect.file, state.env, state.exit_status)
        if target is None:
            continue
        if not target:
            state.exit_status = 1
            command.args = []
            raise AmbiguousRedirectError(redirect.file)
        redirect.file = target