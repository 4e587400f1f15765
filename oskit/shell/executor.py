"""Execution of a parsed command tree.

Simple commands are built-ins (``cd``, ``exit``/``quit``, ``NAME=value``) or
external programs.  Operators run their children in sequence, conditionally,
in parallel or connected by a pipe; parallel and piped branches run in forked
copies of the shell, so their built-ins do not affect the caller.
"""

from __future__ import annotations

import contextlib
import os
import subprocess
import sys
import traceback
from collections.abc import Callable, Iterator

from .model import Command, IOFlags, Operator, SimpleCommand, Word
from .words import get_argv, get_word

__all__ = ["SHELL_EXIT", "parse_command"]

SHELL_EXIT = -100
_MODE = 0o644
_Streams = tuple["int | None", "int | None", "int | None"]


def _say(text: str) -> None:
    """Write ``text`` to the process's standard output descriptor."""
    with contextlib.suppress(Exception):
        sys.stdout.flush()
    os.write(1, text.encode())


def _output_flags(append: bool) -> int:
    return os.O_RDWR | os.O_CREAT | (os.O_APPEND if append else os.O_TRUNC)


@contextlib.contextmanager
def _redirections(scmd: SimpleCommand) -> Iterator[_Streams]:
    """Open the redirection files; yield descriptors for stdin, stdout, stderr."""
    opened: list[int] = []

    def open_word(word: Word, flags: int) -> int:
        path = get_word(word)
        assert path is not None
        fd = os.open(path, flags, _MODE)
        opened.append(fd)
        return fd

    stdin = stdout = stderr = None
    try:
        if scmd.in_ is not None:
            stdin = open_word(scmd.in_, os.O_RDONLY | os.O_CREAT)
        if (
            scmd.out is not None
            and scmd.err is not None
            and scmd.out.string == scmd.err.string
        ):
            stdout = stderr = open_word(scmd.out, _output_flags(False))
        else:
            if scmd.out is not None:
                stdout = open_word(
                    scmd.out, _output_flags(bool(scmd.io_flags & IOFlags.OUT_APPEND))
                )
            if scmd.err is not None:
                stderr = open_word(
                    scmd.err, _output_flags(bool(scmd.io_flags & IOFlags.ERR_APPEND))
                )
        yield stdin, stdout, stderr
    finally:
        for fd in opened:
            os.close(fd)


def _environment(name: str) -> str:
    try:
        return os.environ[name]
    except KeyError:
        raise RuntimeError(f"{name} is not set") from None


def _shell_cd(directory: Word | None) -> bool:
    """Change directory, keeping PWD and OLDPWD up to date."""
    if directory is None:
        return True

    if directory.string in ("~", "-"):
        cwd = os.getcwd()
        target = _environment("HOME" if directory.string == "~" else "OLDPWD")
        try:
            os.chdir(target)
        except OSError:
            return False
        os.environ["OLDPWD"] = cwd
        os.environ["PWD"] = target
        return True

    old_pwd = os.getcwd()
    try:
        os.chdir(directory.string)
    except OSError:
        return False
    os.environ["OLDPWD"] = old_pwd
    os.environ["PWD"] = os.getcwd()
    return True


def _run_external(scmd: SimpleCommand) -> int:
    argv = get_argv(scmd)
    try:
        with _redirections(scmd) as (stdin, stdout, stderr):
            try:
                completed = subprocess.run(
                    argv, stdin=stdin, stdout=stdout, stderr=stderr, check=False
                )
            except OSError:
                _say(f"Execution failed for '{argv[0]}'\n")
                return 1
    except OSError as exc:
        print(f"open() failed: {exc.strerror}", file=sys.stderr)
        return (exc.errno or 1) & 0xFF
    return completed.returncode & 0xFF if completed.returncode >= 0 else 0


def _parse_simple(scmd: SimpleCommand | None, level: int, father: Command) -> int:
    if scmd is None:
        return SHELL_EXIT

    verb = scmd.verb.string
    if verb in ("exit", "quit"):
        return SHELL_EXIT

    if verb == "cd":
        with _redirections(scmd):
            changed = _shell_cd(scmd.params)
        if not changed:
            assert scmd.params is not None
            _say(f"cd: no such file or directory: {scmd.params.string}\n")
        return 0 if changed else 1

    assign = scmd.verb.next_part
    if assign is not None and assign.string == "=":
        value_part = assign.next_part
        if value_part is None:
            value = ""
        elif not value_part.expand:
            value = value_part.string
        else:
            value = get_word(value_part) or ""
        os.environ[verb] = value
        return 0

    return _run_external(scmd)


def _fork(
    command: Command | None,
    level: int,
    father: Command,
    prepare: Callable[[], None] | None = None,
) -> int:
    """Run ``command`` in a forked copy of the shell; return the child's pid."""
    sys.stdout.flush()
    sys.stderr.flush()
    pid = os.fork()
    if pid:
        return pid
    status = 1
    try:
        if prepare is not None:
            prepare()
        status = parse_command(command, level, father)
    except BaseException:
        traceback.print_exc()
    finally:
        with contextlib.suppress(Exception):
            sys.stdout.flush()
            sys.stderr.flush()
        os._exit(status & 0xFF)


def _wait(pid: int) -> int:
    _, status = os.waitpid(pid, 0)
    return os.WEXITSTATUS(status)


def _run_in_parallel(
    cmd1: Command | None, cmd2: Command | None, level: int, father: Command
) -> int:
    pid1 = _fork(cmd1, level, father)
    pid2 = _fork(cmd2, level, father)
    status1 = _wait(pid1)
    status2 = _wait(pid2)
    return int(bool(status1) and bool(status2))


def _run_on_pipe(
    cmd1: Command | None, cmd2: Command | None, level: int, father: Command
) -> int:
    read_fd, write_fd = os.pipe()

    def writer() -> None:
        os.close(read_fd)
        os.dup2(write_fd, 1)
        os.close(write_fd)

    def reader() -> None:
        os.close(write_fd)
        os.dup2(read_fd, 0)
        os.close(read_fd)

    pid1 = _fork(cmd1, level, father, writer)
    pid2 = _fork(cmd2, level, father, reader)
    os.close(read_fd)
    os.close(write_fd)
    _wait(pid1)
    return _wait(pid2)


def parse_command(
    command: Command | None, level: int = 0, father: Command | None = None
) -> int:
    """Execute ``command``; return its exit status or :data:`SHELL_EXIT`."""
    if command is None:
        return 0

    op = command.op
    if op is Operator.NONE:
        return _parse_simple(command.scmd, level, command)
    if op is Operator.SEQUENTIAL:
        parse_command(command.cmd1, level + 1, command)
        return parse_command(command.cmd2, level + 1, command)
    if op is Operator.PARALLEL:
        return _run_in_parallel(command.cmd1, command.cmd2, level + 1, command)
    if op is Operator.CONDITIONAL_NZERO:
        status = parse_command(command.cmd1, level + 1, command)
        return parse_command(command.cmd2, level + 1, command) if status else status
    if op is Operator.CONDITIONAL_ZERO:
        status = parse_command(command.cmd1, level + 1, command)
        return status if status else parse_command(command.cmd2, level + 1, command)
    if op is Operator.PIPE:
        return _run_on_pipe(command.cmd1, command.cmd2, level + 1, command)
    return SHELL_EXIT