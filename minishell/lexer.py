"""Splitting a command line into tokens."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

_BLANKS = frozenset(" \t")
_OPERATORS = frozenset("|<>")
_QUOTES = frozenset("'\"")
_WORD_BREAKS = _BLANKS | _OPERATORS


class TokenType(Enum):
    """Kinds of token the lexer and parser know about."""

    WORD = auto()
    PIPE = auto()
    REDIR_IN = auto()
    REDIR_OUT = auto()
    REDIR_APPEND = auto()
    HEREDOC = auto()
    AND = auto()
    OR = auto()
    LPAREN = auto()
    RPAREN = auto()

    @property
    def is_redirect(self) -> bool:
        return self in (
            TokenType.REDIR_IN,
            TokenType.REDIR_OUT,
            TokenType.REDIR_APPEND,
            TokenType.HEREDOC,
        )


@dataclass(frozen=True)
class Token:
    """A lexical token; word values keep their quote characters."""

    value: str
    type: TokenType


def _read_operator(text: str, pos: int) -> tuple[Token, int]:
    char = text[pos]
    doubled = text[pos + 1 : pos + 2] == char
    if char == "|":
        return Token("|", TokenType.PIPE), pos + 1
    if char == "<":
        if doubled:
            return Token("<<", TokenType.HEREDOC), pos + 2
        return Token("<", TokenType.REDIR_IN), pos + 1
    if doubled:
        return Token(">>", TokenType.REDIR_APPEND), pos + 2
    return Token(">", TokenType.REDIR_OUT), pos + 1


def _read_word(text: str, pos: int) -> tuple[str, int]:
    """Read a word made of quoted and unquoted segments, quotes kept."""
    start = pos
    length = len(text)
    while pos < length and text[pos] not in _WORD_BREAKS:
        if text[pos] in _QUOTES:
            closing = text.find(text[pos], pos + 1)
            pos = length if closing == -1 else closing + 1
        else:
            while (
                pos < length
                and text[pos] not in _WORD_BREAKS
                and text[pos] not in _QUOTES
            ):
                pos += 1
    return text[start:pos], pos


def tokenize(text: str) -> list[Token]:
    """Split *text* into words and the operators ``|``, ``<``, ``>``, ``<<``, ``>>``."""
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char in _BLANKS:
            pos += 1
        elif char in _OPERATORS:
            token, pos = _read_operator(text, pos)
            tokens.append(token)
        else:
            word, pos = _read_word(text, pos)
            if word:
                tokens.append(Token(word, TokenType.WORD))
    return tokens