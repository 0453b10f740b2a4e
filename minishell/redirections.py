"""Opening the files named by a command's redirections."""

from __future__ import annotations

import os
import tempfile
from contextlib import ExitStack
from typing import BinaryIO, Iterable, Optional

from minishell.errors import ShellError, format_error
from minishell.heredoc import LineReader, read_heredoc
from minishell.lexer import TokenType
from minishell.parser import Redirect

_PREFIX = "minishell"
_FILE_MODE = 0o644


class RedirectionError(ShellError):
    """Raised when a redirection cannot be set up."""


def strip_surrounding_quotes(name: str) -> str:
    """Remove one pair of matching quotes enclosing the whole of *name*."""
    if len(name) >= 2 and name[0] == name[-1] and name[0] in "'\"":
        return name[1:-1]
    return name


def _prepare_filename(redirect: Redirect) -> str:
    if redirect.type is TokenType.HEREDOC:
        name = redirect.file
    else:
        name = strip_surrounding_quotes(redirect.file)
    if not name:
        raise RedirectionError(format_error(_PREFIX, None, "ambiguous redirect"))
    return name


def _open(name: str, flags: int, mode: str) -> BinaryIO:
    try:
        fd = os.open(name, flags, _FILE_MODE)
    except OSError as exc:
        reason = exc.strerror or str(exc)
        raise RedirectionError(format_error(_PREFIX, name, reason)) from exc
    return os.fdopen(fd, mode)


def _heredoc_stream(delimiter: str, read_line: Optional[LineReader]) -> BinaryIO:
    body = read_heredoc(delimiter, read_line)
    handle = tempfile.TemporaryFile()
    handle.write(body.encode("utf-8", "surrogateescape"))
    handle.seek(0)
    return handle


def open_redirections(
    redirects: Iterable[Redirect],
    stack: ExitStack,
    read_line: Optional[LineReader] = None,
) -> tuple[Optional[BinaryIO], Optional[BinaryIO]]:
    """Open every redirection in order and return ``(stdin, stdout)``.

    Each opened file is registered on *stack*, which closes it. A later
    redirection of the same stream replaces an earlier one, though every
    output file is still created or truncated. ``None`` means the stream
    is not redirected. Raises :class:`RedirectionError` on failure, or
    :class:`~minishell.heredoc.HeredocInterrupted` if a here-document
    read is interrupted.
    """
    stdin: Optional[BinaryIO] = None
    stdout: Optional[BinaryIO] = None
    for redirect in redirects:
        name = _prepare_filename(redirect)
        if redirect.type is TokenType.REDIR_IN:
            stdin = stack.enter_context(_open(name, os.O_RDONLY, "rb"))
        elif redirect.type is TokenType.REDIR_OUT:
            flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC
            stdout = stack.enter_context(_open(name, flags, "wb"))
        elif redirect.type is TokenType.REDIR_APPEND:
            flags = os.O_WRONLY | os.O_CREAT | os.O_APPEND
            stdout = stack.enter_context(_open(name, flags, "ab"))
        elif redirect.type is TokenType.HEREDOC:
            stdin = stack.enter_context(_heredoc_stream(name, read_line))
        else:
            raise RedirectionError(
                format_error(_PREFIX, name, "unsupported redirection")
            )
    return stdin, stdout