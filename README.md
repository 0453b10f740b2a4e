# minishell

A small command shell for POSIX systems. It reads command lines, splits them
into words and operators, expands variables, removes quotes, and runs
pipelines of external programs, with redirections and here-documents.
Builtin commands are supplied by the caller as Python functions.

## Features

- Pipelines: `ls | grep py | wc -l`
- Redirections: `<`, `>`, `>>` and here-documents with `<<`
- Single and double quotes; variables are not expanded inside single quotes
- Variable expansion: `$NAME`, `$?` (last exit status) and `$$` (process id);
  unknown variables expand to nothing, and a word that expands to nothing is
  dropped
- A hook for builtin commands named `echo`, `cd`, `pwd`, `export`, `unset`,
  `env` and `exit`

## Installation

```
pip install .
```

## Usage

Start a session on standard input:

```
minishell
```

On a terminal the prompt is `minishell> `. Ctrl-D leaves the shell, which
prints `exit` and ends with the status of the last command. Ctrl-C discards
the current line and sets the status to 130.

When standard input is not a terminal, it is read whole and run line by
line; the body of a here-document is taken from the lines that follow its
command:

```
printf 'cat << END\nfirst line\nsecond line\nEND\n' | minishell
```

## Builtins

The package does not ship implementations of `echo`, `cd`, `pwd`, `export`,
`unset`, `env` or `exit`. Started with the `minishell` command, a line such
as `echo hi` runs whatever `echo` program is found on `PATH`, and `cd`,
`export`, `unset` and `exit` have no effect on the shell. To give them
meaning, pass functions to `minishell.shell.Shell`. A builtin is called as
`func(args, state, out)`, where `args` is the full argument list, `state` is a
`minishell.state.ShellState` (with `env` and `exit_status`) and `out` is a
text stream; it returns the command's status.

```python
import sys
from minishell.executor import ExitRequested
from minishell.shell import Shell

def echo(args, state, out):
    out.write(" ".join(args[1:]) + "\n")
    return 0

def export(args, state, out):
    for arg in args[1:]:
        key, _, value = arg.partition("=")
        state.env[key] = value
    return 0

def exit_(args, state, out):
    return int(args[1]) if len(args) > 1 else state.exit_status

shell = Shell(builtins={"echo": echo, "export": export, "exit": exit_})
sys.exit(shell.run())
```

When `cd`, `export`, `unset` or `exit` is the only command on a line, its
builtin runs on the shell's own state; after `exit` the shell stops with the
status the builtin returned. Builtins inside a pipeline, or any other builtin,
run on a copy of the state and cannot change the shell.

`Shell.process_input(line)` runs a single line and `Shell.process_buffer(text)`
runs every line of a string; both return a status.

## Exit status

An external command that cannot be found has status 127; one that is found
but cannot be started has 126. A command ended by a signal reports 128 plus
the signal number. A redirection that cannot be opened, or whose target is an
empty quoted word such as `> ""` (reported as an ambiguous redirect), gives
status 1. An interrupted here-document gives 130.

## Limitations

- No builtin commands are included; see above.
- Only `|`, `<`, `>`, `>>` and `<<` are understood. There is no `&&`, `||`,
  `;`, subshell, globbing or job control.
- A line with a redirection operator not followed by a word is ignored
  without a message.

## Running the tests

```
pip install .[test]
pytest
```