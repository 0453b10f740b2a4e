"""Collecting here-document bodies and staging them in temporary files."""

from __future__ import annotations

import contextlib
import os
import tempfile
from typing import Callable, Iterable, Optional

from minishell.errors import ShellError
from minishell.lexer import TokenType
from minishell.parser import Command

TEMP_PREFIX = "heredoc_"
HEREDOC_PROMPT = "> "

LineReader = Callable[[], Optional[str]]


class HeredocInterrupted(ShellError):
    """Raised when reading a here-document is interrupted by the user."""

    status = 130

    def __init__(self) -> None:
        super().__init__("here-document interrupted")


def _prompt_line() -> Optional[str]:
    try:
        return input(HEREDOC_PROMPT)
    except EOFError:
        return None


def _temp_root() -> str:
    return os.path.join(tempfile.gettempdir(), TEMP_PREFIX)


def trim_line(raw: str) -> str:
    """Strip every trailing newline and carriage return from *raw*."""
    return raw.rstrip("\r\n")


def read_heredoc(delimiter: str, read_line: Optional[LineReader] = None) -> str:
    """Read lines until one equals *delimiter* or input ends.

    *read_line* returns the next line, or ``None`` at end of input; it
    defaults to prompting with ``"> "``. Every kept line is returned
    followed by a newline. A ``KeyboardInterrupt`` while reading becomes
    :class:`HeredocInterrupted`.
    """
    reader = read_line or _prompt_line
    body: list[str] = []
    while True:
        try:
            raw = reader()
        except KeyboardInterrupt:
            raise HeredocInterrupted() from None
        if raw is None:
            break
        line = trim_line(raw)
        if line == delimiter:
            break
        body.append(line + "\n")
    return "".join(body)


def _stage_body(body: str) -> str:
    fd, path = tempfile.mkstemp(prefix=TEMP_PREFIX)
    with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape") as handle:
        handle.write(body)
    return path


def preprocess_heredocs(
    commands: Iterable[Command], read_line: Optional[LineReader] = None
) -> None:
    """Read every here-document up front and turn it into an input redirection.

    Each ``<<`` redirection is replaced in place by a ``<`` redirection from
    a temporary file holding the body. On failure, files already staged
    are removed and the error propagates.
    """
    commands = list(commands)
    try:
        for command in commands:
            for redirect in command.redirects:
                if redirect.type is not TokenType.HEREDOC:
                    continue
                body = read_heredoc(redirect.file, read_line)
                redirect.file = _stage_body(body)
                redirect.type = TokenType.REDIR_IN
    except BaseException:
        cleanup_temp_files(commands)
        raise


def cleanup_temp_files(commands: Iterable[Command]) -> None:
    """Remove the temporary files staged by :func:`preprocess_heredocs`."""
    root = _temp_root()
    for command in commands:
        for redirect in command.redirects:
            if redirect.type is TokenType.REDIR_IN and redirect.file.startswith(root):
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(redirect.file)