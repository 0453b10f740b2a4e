import pytest

from minishell.lexer import Token, TokenType, tokenize


def values(text):
    return [token.value for token in tokenize(text)]


def types(text):
    return [token.type for token in tokenize(text)]


def test_empty_and_blank_input():
    assert tokenize("") == []
    assert tokenize(" \t  ") == []


def test_simple_pipeline():
    assert values("ls -l | wc") == ["ls", "-l", "|", "wc"]
    assert types("ls -l | wc") == [
        TokenType.WORD,
        TokenType.WORD,
        TokenType.PIPE,
        TokenType.WORD,
    ]


def test_operators_without_spaces():
    assert values("cat<<EOF>>out") == ["cat", "<<", "EOF", ">>", "out"]
    assert types("cat<<EOF>>out") == [
        TokenType.WORD,
        TokenType.HEREDOC,
        TokenType.WORD,
        TokenType.REDIR_APPEND,
        TokenType.WORD,
    ]


@pytest.mark.parametrize(
    "text, expected",
    [
        ("<>", [TokenType.REDIR_IN, TokenType.REDIR_OUT]),
        (">>>", [TokenType.REDIR_APPEND, TokenType.REDIR_OUT]),
        ("<<<", [TokenType.HEREDOC, TokenType.REDIR_IN]),
        ("||", [TokenType.PIPE, TokenType.PIPE]),
    ],
)
def test_operator_sequences(text, expected):
    assert types(text) == expected


def test_quotes_are_kept_and_protect_blanks():
    assert values('echo "a b"') == ["echo", '"a b"']
    assert values("echo 'x | y'") == ["echo", "'x | y'"]


def test_adjacent_segments_form_one_word():
    word = "a\"b c\"'d'e"
    assert tokenize(word) == [Token(word, TokenType.WORD)]


def test_unclosed_quote_runs_to_end():
    assert values('echo "abc') == ["echo", '"abc']


def test_tabs_separate_words():
    assert values("a\tb") == ["a", "b"]


def test_unquoted_words_match_split():
    text = "grep -v foo  bar\tbaz"
    assert values(text) == text.split()
    assert all(t is TokenType.WORD for t in types(text))


def test_redirect_property():
    flags = [token.type.is_redirect for token in tokenize("a < b | c >> d << e > f")]
    assert flags == [
        False,
        True,
        False,
        False,
        False,
        True,
        False,
        True,
        False,
        True,
        False,
    ]