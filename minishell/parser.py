"""Grouping tokens into the commands of a pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from minishell.errors import ShellError
from minishell.lexer import Token, TokenType


class ParseError(ShellError):
    """Raised when the tokens do not form a valid pipeline."""


@dataclass
class Redirect:
    """A redirection: its kind and the target word (or heredoc delimiter)."""

    type: TokenType
    file: str


@dataclass
class Command:
    """One simple command of a pipeline."""

    args: list[str] = field(default_factory=list)
    redirects: list[Redirect] = field(default_factory=list)


def parse(tokens: Iterable[Token]) -> list[Command]:
    """Build the list of piped commands described by *tokens*.

    A redirection operator must be followed by a word; otherwise
    :class:`ParseError` is raised. Tokens of other kinds are ignored.
    """
    current = Command()
    commands = [current]
    stream = iter(tokens)
    for token in stream:
        if token.type is TokenType.WORD:
            current.args.append(token.value)
        elif token.type is TokenType.PIPE:
            current = Command()
            commands.append(current)
        elif token.type.is_redirect:
            target = next(stream, None)
            if target is None or target.type is not TokenType.WORD:
                raise ParseError(
                    f"missing file name after '{token.value}'"
                )
            current.redirects.append(Redirect(token.type, target.value))
    return commands