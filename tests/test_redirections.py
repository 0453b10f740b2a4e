from contextlib import ExitStack

import pytest

from minishell.heredoc import HeredocInterrupted
from minishell.lexer import TokenType
from minishell.parser import Redirect
from minishell.redirections import (
    RedirectionError,
    open_redirections,
    strip_surrounding_quotes,
)


def reader(lines):
    items = iter(lines)
    return lambda: next(items, None)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("'a b'", "a b"),
        ('"file"', "file"),
        ("''", ""),
        ("plain", "plain"),
        ("'mixed\"", "'mixed\""),
        ("'", "'"),
        ("", ""),
        ("'x'y'", "x'y"),
    ],
)
def test_strip_surrounding_quotes(name, expected):
    assert strip_surrounding_quotes(name) == expected


def test_output_redirect_creates_file(tmp_path):
    target = tmp_path / "out.txt"
    with ExitStack() as stack:
        stdin, stdout = open_redirections(
            [Redirect(TokenType.REDIR_OUT, str(target))], stack
        )
        assert stdin is None
        stdout.write(b"hello\n")
    assert target.read_bytes() == b"hello\n"
    assert stdout.closed


def test_output_redirect_truncates(tmp_path):
    target = tmp_path / "out.txt"
    target.write_bytes(b"old content")
    with ExitStack() as stack:
        _, stdout = open_redirections(
            [Redirect(TokenType.REDIR_OUT, str(target))], stack
        )
        stdout.write(b"new")
    assert target.read_bytes() == b"new"


def test_append_redirect_keeps_content(tmp_path):
    target = tmp_path / "log.txt"
    target.write_bytes(b"first\n")
    with ExitStack() as stack:
        _, stdout = open_redirections(
            [Redirect(TokenType.REDIR_APPEND, str(target))], stack
        )
        stdout.write(b"second\n")
    assert target.read_bytes() == b"first\nsecond\n"


def test_input_redirect_reads_file(tmp_path):
    source = tmp_path / "in.txt"
    source.write_bytes(b"payload")
    with ExitStack() as stack:
        stdin, stdout = open_redirections(
            [Redirect(TokenType.REDIR_IN, str(source))], stack
        )
        assert stdout is None
        assert stdin.read() == b"payload"


def test_quoted_filename_is_unquoted(tmp_path):
    target = tmp_path / "quoted.txt"
    with ExitStack() as stack:
        _, stdout = open_redirections(
            [Redirect(TokenType.REDIR_OUT, f"'{target}'")], stack
        )
        stdout.write(b"q")
    assert target.read_bytes() == b"q"


def test_missing_input_raises(tmp_path):
    missing = tmp_path / "missing.txt"
    with ExitStack() as stack:
        with pytest.raises(RedirectionError) as info:
            open_redirections([Redirect(TokenType.REDIR_IN, str(missing))], stack)
    assert str(missing) in str(info.value)
    assert str(info.value).startswith("minishell: ")


def test_empty_filename_is_ambiguous():
    with ExitStack() as stack:
        with pytest.raises(RedirectionError) as info:
            open_redirections([Redirect(TokenType.REDIR_OUT, "''")], stack)
    assert "ambiguous redirect" in str(info.value)


def test_empty_heredoc_delimiter_is_ambiguous():
    with ExitStack() as stack:
        with pytest.raises(RedirectionError):
            open_redirections(
                [Redirect(TokenType.HEREDOC, "")], stack, reader(["x"])
            )


def test_heredoc_feeds_stdin():
    with ExitStack() as stack:
        stdin, stdout = open_redirections(
            [Redirect(TokenType.HEREDOC, "EOF")], stack, reader(["a", "b", "EOF"])
        )
        assert stdout is None
        assert stdin.read() == b"a\nb\n"


def test_heredoc_interruption_propagates():
    def interrupted():
        raise KeyboardInterrupt

    with ExitStack() as stack:
        with pytest.raises(HeredocInterrupted):
            open_redirections([Redirect(TokenType.HEREDOC, "EOF")], stack, interrupted)


def test_later_redirect_wins_but_earlier_files_are_created(tmp_path):
    first = tmp_path / "first.txt"
    second = tmp_path / "second.txt"
    with ExitStack() as stack:
        _, stdout = open_redirections(
            [
                Redirect(TokenType.REDIR_OUT, str(first)),
                Redirect(TokenType.REDIR_OUT, str(second)),
            ],
            stack,
        )
        stdout.write(b"data")
    assert first.exists()
    assert first.read_bytes() == b""
    assert second.read_bytes() == b"data"


def test_failure_stops_before_later_redirects(tmp_path):
    missing = tmp_path / "missing.txt"
    later = tmp_path / "later.txt"
    with ExitStack() as stack:
        with pytest.raises(RedirectionError):
            open_redirections(
                [
                    Redirect(TokenType.REDIR_IN, str(missing)),
                    Redirect(TokenType.REDIR_OUT, str(later)),
                ],
                stack,
            )
    assert not later.exists()


def test_no_redirects_returns_none_pair():
    with ExitStack() as stack:
        assert open_redirections([], stack) == (None, None)