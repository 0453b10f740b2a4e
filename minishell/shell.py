"""The interactive and scripted front end of the shell."""

from __future__ import annotations

import contextlib
import os
import signal
import sys
from typing import Iterator, Mapping, Optional, TextIO

from minishell.errors import print_error
from minishell.executor import Builtin, ExitRequested, execute
from minishell.expansion import AmbiguousRedirectError, expand_command
from minishell.heredoc import LineReader
from minishell.lexer import tokenize
from minishell.parser import ParseError, parse
from minishell.state import ShellState

_PREFIX = "minishell"
PROMPT = "minishell> "
INTERRUPTED_STATUS = 130


def _stdin_is_tty() -> bool:
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


@contextlib.contextmanager
def _terminal_settings(stream: TextIO) -> Iterator[None]:
    """Hide echoed control characters (``^C``) while the shell reads input."""
    saved = None
    fd = -1
    try:
        import termios
    except ImportError:
        termios = None
    if termios is not None:
        try:
            if stream.isatty():
                fd = stream.fileno()
                saved = termios.tcgetattr(fd)
                changed = list(saved)
                changed[3] &= ~getattr(termios, "ECHOCTL", 0)
                termios.tcsetattr(fd, termios.TCSANOW, changed)
        except (OSError, ValueError, AttributeError, termios.error):
            saved = None
    try:
        yield
    finally:
        if saved is not None:
            with contextlib.suppress(OSError, termios.error):
                termios.tcsetattr(fd, termios.TCSANOW, saved)


@contextlib.contextmanager
def _interactive_signals() -> Iterator[None]:
    """Ignore quit while the shell is at its prompt; restore defaults after."""
    quit_signal = getattr(signal, "SIGQUIT", None)
    installed = False
    if quit_signal is not None:
        try:
            signal.signal(quit_signal, signal.SIG_IGN)
            installed = True
        except ValueError:
            installed = False
    try:
        yield
    finally:
        if installed:
            signal.signal(quit_signal, signal.SIG_DFL)


class Shell:
    """A shell session: environment, last status and registered builtins."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        builtins: Optional[Mapping[str, Builtin]] = None,
    ) -> None:
        source = os.environ if environ is None else environ
        self.state = ShellState(env=dict(source))
        self.builtins: dict[str, Builtin] = dict(builtins or {})
        self._read_line: Optional[LineReader] = None

    def process_input(self, line: str) -> int:
        """Tokenize, parse, expand and run one command line.

        Returns the status of the line; empty or malformed lines run nothing
        and return 0. :class:`ExitRequested` propagates to the caller.
        """
        if not line:
            return 0
        tokens = tokenize(line)
        if not tokens:
            return 0
        try:
            commands = parse(tokens)
        except ParseError:
            return 0
        try:
            for command in commands:
                expand_command(command, self.state)
        except AmbiguousRedirectError as exc:
            print_error(_PREFIX, None, str(exc))
            self.state.exit_status = 1
            return 1
        return execute(commands, self.state, self.builtins, self._read_line)

    def process_buffer(self, text: str) -> int:
        """Run every non-empty line of *text* and return the last status.

        Here-document bodies are read from the lines that follow the command.
        """
        lines = iter(text.split("\n"))

        def read_line() -> Optional[str]:
            return next(lines, None)

        self._read_line = read_line
        try:
            for line in lines:
                if line:
                    self.process_input(line)
        finally:
            self._read_line = None
        return self.state.exit_status

    def run_interactive(self) -> int:
        """Prompt for and run command lines until end of input or ``exit``."""
        try:
            import readline as history
        except ImportError:
            history = None
        interactive = _stdin_is_tty()
        prompt = PROMPT if interactive else ""
        with _terminal_settings(sys.stdin), _interactive_signals():
            while True:
                try:
                    line = input(prompt)
                except EOFError:
                    if interactive:
                        print("exit")
                    break
                except KeyboardInterrupt:
                    sys.stdout.write("\n")
                    sys.stdout.flush()
                    self.state.set_exit_status(INTERRUPTED_STATUS)
                    continue
                if not line:
                    continue
                if history is not None:
                    history.add_history(line)
                try:
                    self.process_input(line)
                except ExitRequested as exc:
                    return exc.status
        return self.state.exit_status

    def run(self, stream: Optional[TextIO] = None) -> int:
        """Run commands from *stream* (standard input by default).

        A terminal gets the interactive prompt; anything else is read whole
        and run line by line. Returns the shell's final status.
        """
        source = sys.stdin if stream is None else stream
        try:
            if source.isatty():
                return self.run_interactive()
            return self.process_buffer(source.read())
        except ExitRequested as exc:
            return exc.status
        finally:
            sys.stdout.flush()
            sys.stderr.flush()


def main(argv: Optional[list[str]] = None) -> int:
    """Start a shell on standard input and return its exit status."""
    del argv
    return Shell().run(sys.stdin)


if __name__ == "__main__":
    sys.exit(main())