"""Running parsed commands: builtins in the shell, others as child processes."""

from __future__ import annotations

import contextlib
import io
import os
import signal
import subprocess
import sys
import tempfile
from contextlib import ExitStack
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterable, Iterator, Mapping, Optional, TextIO

from minishell.errors import ShellError, print_error
from minishell.heredoc import (
    HeredocInterrupted,
    LineReader,
    cleanup_temp_files,
    preprocess_heredocs,
)
from minishell.parser import Command
from minishell.redirections import RedirectionError, open_redirections
from minishell.state import ShellState

_PREFIX = "minishell"

BUILTIN_NAMES = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})
PARENT_BUILTINS = frozenset({"cd", "export", "unset", "exit"})

Builtin = Callable[[list[str], ShellState, TextIO], int]


class ExitRequested(ShellError):
    """Raised when the ``exit`` builtin asks the shell to terminate."""

    def __init__(self, status: int) -> None:
        super().__init__(f"exit {status}")
        self.status = status


@dataclass
class _Stage:
    """A started pipeline stage: a child process or an already known status."""

    process: Optional[subprocess.Popen] = None
    status: int = 0


def is_builtin(name: Optional[str]) -> bool:
    """Tell whether *name* is one of the shell's builtin commands."""
    return name in BUILTIN_NAMES


def is_parent_builtin(name: Optional[str]) -> bool:
    """Tell whether *name* is a builtin that must run in the shell itself."""
    return name in PARENT_BUILTINS


def find_executable(name: Optional[str], env: Mapping[str, str]) -> Optional[str]:
    """Locate the program *name*, as a path or through ``PATH`` in *env*.

    Names starting with ``/`` or ``./`` are used as they are if they exist;
    any other name is looked up in each ``PATH`` directory in turn.
    """
    if not name:
        return None
    if name.startswith("/") or name.startswith("./"):
        return name if os.path.exists(name) else None
    path_value = env.get("PATH")
    if path_value is None:
        return None
    for directory in filter(None, path_value.split(":")):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def exit_code_from_returncode(returncode: int) -> int:
    """Turn a subprocess return code into a shell status (``128 + signal``)."""
    if returncode < 0:
        return 128 - returncode
    return returncode


def _report(exc: BaseException) -> None:
    sys.stderr.write(f"{exc}\n")
    sys.stderr.flush()


def _lookup_builtin(name: str, builtins: Mapping[str, Builtin]) -> Optional[Builtin]:
    return builtins.get(name) if is_builtin(name) else None


def _call_builtin(
    func: Builtin, args: list[str], state: ShellState, target: Optional[BinaryIO]
) -> int:
    if target is None:
        try:
            return func(args, state, sys.stdout)
        finally:
            sys.stdout.flush()
    stream = io.TextIOWrapper(
        target, encoding="utf-8", errors="surrogateescape", write_through=True
    )
    try:
        return func(args, state, stream)
    finally:
        stream.flush()
        stream.detach()


def _child_env(env: Mapping[str, str]) -> dict[str, str]:
    return {key: value for key, value in env.items() if key != "?"}


def _reset_child_signals() -> None:
    for name in ("SIGINT", "SIGQUIT"):
        if hasattr(signal, name):
            signal.signal(getattr(signal, name), signal.SIG_DFL)


@contextlib.contextmanager
def _signals_ignored() -> Iterator[None]:
    """Ignore interrupt and quit in the shell while it waits for children."""
    saved = {}
    try:
        for name in ("SIGINT", "SIGQUIT"):
            if hasattr(signal, name):
                number = getattr(signal, name)
                saved[number] = signal.signal(number, signal.SIG_IGN)
    except ValueError:
        pass
    try:
        yield
    finally:
        for number, handler in saved.items():
            signal.signal(number, handler if handler is not None else signal.SIG_DFL)


def _empty_input(last: bool) -> Optional[BinaryIO]:
    return None if last else open(os.devnull, "rb")


def _start_stage(
    command: Command,
    state: ShellState,
    builtins: Mapping[str, Builtin],
    pipe_in: Optional[BinaryIO],
    last: bool,
) -> tuple[_Stage, Optional[BinaryIO]]:
    """Start one stage; return it with the stream the next stage reads."""
    with ExitStack() as stack:
        if pipe_in is not None:
            stack.callback(pipe_in.close)
        try:
            redir_in, redir_out = open_redirections(command.redirects, stack)
        except RedirectionError as exc:
            _report(exc)
            return _Stage(status=1), _empty_input(last)
        if not command.args:
            return _Stage(status=0), _empty_input(last)

        name = command.args[0]
        builtin = _lookup_builtin(name, builtins)
        if builtin is not None:
            capture: Optional[BinaryIO] = None
            target = redir_out
            if target is None and not last:
                capture = tempfile.TemporaryFile()
                target = capture
            child_state = ShellState(env=dict(state.env), exit_status=state.exit_status)
            try:
                status = _call_builtin(builtin, list(command.args), child_state, target)
            except ExitRequested as exc:
                status = exc.status
            if capture is not None:
                capture.seek(0)
                return _Stage(status=status), capture
            return _Stage(status=status), _empty_input(last)

        path = find_executable(name, state.env)
        if path is None:
            print_error(_PREFIX, name, "command not found")
            return _Stage(status=127), _empty_input(last)
        stdin = redir_in if redir_in is not None else pipe_in
        if redir_out is not None:
            stdout_arg = redir_out
        elif not last:
            stdout_arg = subprocess.PIPE
        else:
            stdout_arg = None
        try:
            process = subprocess.Popen(
                list(command.args),
                executable=path,
                stdin=stdin,
                stdout=stdout_arg,
                env=_child_env(state.env),
                preexec_fn=_reset_child_signals if os.name == "posix" else None,
            )
        except OSError as exc:
            print_error(_PREFIX, name, exc.strerror or str(exc))
            return _Stage(status=126), _empty_input(last)
        if stdout_arg is subprocess.PIPE:
            return _Stage(process=process), process.stdout
        return _Stage(process=process), _empty_input(last)


def _launch(
    commands: list[Command], state: ShellState, builtins: Mapping[str, Builtin]
) -> list[_Stage]:
    stages: list[_Stage] = []
    incoming: Optional[BinaryIO] = None
    sys.stdout.flush()
    try:
        for index, command in enumerate(commands):
            last = index == len(commands) - 1
            pipe_in, incoming = incoming, None
            stage, incoming = _start_stage(command, state, builtins, pipe_in, last)
            stages.append(stage)
    except BaseException:
        if incoming is not None:
            incoming.close()
        for stage in stages:
            if stage.process is not None:
                with contextlib.suppress(Exception):
                    stage.process.wait()
        raise
    if incoming is not None:
        incoming.close()
    return stages


def _wait(stages: Iterable[_Stage]) -> int:
    quit_code = getattr(signal, "SIGQUIT", None)
    last_status = 0
    with _signals_ignored():
        for stage in stages:
            if stage.process is None:
                last_status = stage.status
                continue
            returncode = stage.process.wait()
            if quit_code is not None and returncode == -quit_code:
                sys.stdout.write("Quit (core dumped)\n")
                sys.stdout.flush()
            last_status = exit_code_from_returncode(returncode)
    return last_status


def run_pipeline(
    commands: Iterable[Command],
    state: ShellState,
    builtins: Optional[Mapping[str, Builtin]] = None,
    read_line: Optional[LineReader] = None,
) -> int:
    """Run *commands* connected by pipes and return the last one's status.

    Here-documents are read first; builtins run on a copy of *state*, so
    they cannot change the shell. Temporary here-document files are
    removed afterwards.
    """
    commands = list(commands)
    builtins = builtins or {}
    try:
        preprocess_heredocs(commands, read_line)
    except HeredocInterrupted as exc:
        return exc.status
    except OSError as exc:
        print_error(_PREFIX, None, exc.strerror or str(exc))
        return 1
    try:
        return _wait(_launch(commands, state, builtins))
    finally:
        cleanup_temp_files(commands)


def _run_parent_builtin(
    command: Command,
    state: ShellState,
    builtin: Builtin,
    read_line: Optional[LineReader],
) -> int:
    with ExitStack() as stack:
        try:
            _, redir_out = open_redirections(command.redirects, stack, read_line)
        except RedirectionError as exc:
            _report(exc)
            status = 1
        except HeredocInterrupted as exc:
            status = exc.status
        else:
            status = _call_builtin(builtin, list(command.args), state, redir_out)
    if command.args[0] == "exit":
        raise ExitRequested(status)
    return status


def execute(
    commands: Iterable[Command],
    state: ShellState,
    builtins: Optional[Mapping[str, Builtin]] = None,
    read_line: Optional[LineReader] = None,
) -> int:
    """Execute a parsed command line and record its status in *state*.

    A lone ``cd``, ``export``, ``unset`` or ``exit`` runs in the shell
    itself; ``exit`` raises :class:`ExitRequested`. Anything else runs as
    a pipeline.
    """
    commands = list(commands)
    if not commands:
        return 0
    builtins = builtins or {}
    first = commands[0]
    parent = None
    if len(commands) == 1 and first.args and is_parent_builtin(first.args[0]):
        parent = builtins.get(first.args[0])
    if parent is not None:
        status = _run_parent_builtin(first, state, parent, read_line)
    else:
        status = run_pipeline(commands, state, builtins, read_line)
    state.set_exit_status(status)
    return status