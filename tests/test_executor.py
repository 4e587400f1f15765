import os
import sys
from pathlib import Path

import pytest

from oskit.shell.executor import SHELL_EXIT, parse_command
from oskit.shell.model import Command, IOFlags, Operator, SimpleCommand, Word


def simple(*argv, in_=None, out=None, err=None, io_flags=IOFlags.REGULAR):
    params = None
    for arg in reversed(argv[1:]):
        params = Word(arg, next_word=params)
    scmd = SimpleCommand(Word(argv[0]), params, in_, out, err, io_flags)
    return Command(Operator.NONE, scmd=scmd)


def py(code, **kwargs):
    return simple(sys.executable, "-c", code, **kwargs)


def cd(target):
    return Command(Operator.NONE, scmd=SimpleCommand(Word("cd"), Word(target)))


def simple_from(verb):
    return Command(Operator.NONE, scmd=SimpleCommand(verb))


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PWD", str(tmp_path))
    monkeypatch.setenv("OLDPWD", str(tmp_path))
    return tmp_path


def test_none_command_returns_zero():
    assert parse_command(None, 0, None) == 0


@pytest.mark.parametrize("verb", ["exit", "quit"])
def test_exit_builtins(verb):
    assert parse_command(simple(verb), 0, None) == SHELL_EXIT


def test_external_exit_status():
    assert parse_command(py("import sys; sys.exit(3)"), 0, None) == 3


def test_missing_program_reports_failure(capfd):
    status = parse_command(simple("oskit-no-such-command"), 0, None)
    assert status == 1
    assert "Execution failed for 'oskit-no-such-command'\n" in capfd.readouterr().out


def test_output_redirection(workdir):
    assert parse_command(py("print('hello')", out=Word("out.txt")), 0, None) == 0
    assert (workdir / "out.txt").read_text() == "hello\n"


def test_output_append(workdir):
    command = py("print('x')", out=Word("a.txt"), io_flags=IOFlags.OUT_APPEND)
    assert parse_command(command, 0, None) == 0
    assert parse_command(command, 0, None) == 0
    assert (workdir / "a.txt").read_text() == "x\nx\n"


def test_error_redirection(workdir):
    command = py("import sys; sys.stderr.write('e')", err=Word("e.txt"))
    assert parse_command(command, 0, None) == 0
    assert (workdir / "e.txt").read_text() == "e"


def test_same_file_for_output_and_error(workdir):
    code = "import sys; print('o'); sys.stdout.flush(); sys.stderr.write('e\\n')"
    status = parse_command(py(code, out=Word("both.txt"), err=Word("both.txt")), 0, None)
    assert status == 0
    assert (workdir / "both.txt").read_text() == "o\ne\n"


def test_input_redirection_creates_missing_file(workdir):
    status = parse_command(py("import sys; sys.stdin.read()", in_=Word("in.txt")), 0, None)
    assert status == 0
    assert (workdir / "in.txt").exists()


def test_input_redirection_feeds_stdin(workdir):
    (workdir / "src.txt").write_text("data")
    command = py(
        "import sys; sys.stdout.write(sys.stdin.read())",
        in_=Word("src.txt"),
        out=Word("dst.txt"),
    )
    assert parse_command(command, 0, None) == 0
    assert (workdir / "dst.txt").read_text() == "data"


def test_assignment(monkeypatch):
    monkeypatch.setenv("OSKIT_VAR", "old")
    verb = Word("OSKIT_VAR", next_part=Word("=", next_part=Word("new")))
    assert parse_command(simple_from(verb), 0, None) == 0
    assert os.environ["OSKIT_VAR"] == "new"


def test_assignment_with_expansion(monkeypatch):
    monkeypatch.setenv("OSKIT_VAR", "old")
    monkeypatch.setenv("OSKIT_SRC", "src")
    value = Word("OSKIT_SRC", expand=True, next_part=Word("-x"))
    verb = Word("OSKIT_VAR", next_part=Word("=", next_part=value))
    assert parse_command(simple_from(verb), 0, None) == 0
    assert os.environ["OSKIT_VAR"] == "src-x"


def test_cd_changes_directory(workdir):
    (workdir / "sub").mkdir()
    assert parse_command(cd("sub"), 0, None) == 0
    assert Path(os.getcwd()).resolve() == (workdir / "sub").resolve()
    assert Path(os.environ["OLDPWD"]).resolve() == workdir.resolve()
    assert Path(os.environ["PWD"]).resolve() == (workdir / "sub").resolve()


def test_cd_missing_directory(capfd, workdir):
    assert parse_command(cd("nowhere"), 0, None) == 1
    assert "cd: no such file or directory: nowhere\n" in capfd.readouterr().out
    assert Path(os.getcwd()).resolve() == workdir.resolve()


def test_cd_dash_uses_oldpwd(workdir, monkeypatch):
    other = workdir / "other"
    other.mkdir()
    monkeypatch.setenv("OLDPWD", str(other))
    assert parse_command(cd("-"), 0, None) == 0
    assert Path(os.getcwd()).resolve() == other.resolve()
    assert Path(os.environ["OLDPWD"]).resolve() == workdir.resolve()


def test_cd_tilde_uses_home(workdir, monkeypatch):
    home = workdir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    assert parse_command(cd("~"), 0, None) == 0
    assert Path(os.getcwd()).resolve() == home.resolve()


def test_sequential_returns_second_status(workdir):
    tree = Command(
        Operator.SEQUENTIAL,
        cmd1=py("print(1)", out=Word("first.txt")),
        cmd2=py("import sys; sys.exit(5)"),
    )
    assert parse_command(tree, 0, None) == 5
    assert (workdir / "first.txt").exists()


def test_conditional_zero_stops_on_failure(workdir):
    tree = Command(
        Operator.CONDITIONAL_ZERO,
        cmd1=py("import sys; sys.exit(2)"),
        cmd2=py("pass", out=Word("ran.txt")),
    )
    assert parse_command(tree, 0, None) == 2
    assert not (workdir / "ran.txt").exists()


def test_conditional_nzero_runs_on_failure(workdir):
    tree = Command(
        Operator.CONDITIONAL_NZERO,
        cmd1=py("import sys; sys.exit(2)"),
        cmd2=py("pass", out=Word("ran.txt")),
    )
    assert parse_command(tree, 0, None) == 0
    assert (workdir / "ran.txt").exists()


def test_conditional_nzero_skips_on_success(workdir):
    tree = Command(
        Operator.CONDITIONAL_NZERO,
        cmd1=py("pass"),
        cmd2=py("pass", out=Word("ran.txt")),
    )
    assert parse_command(tree, 0, None) == 0
    assert not (workdir / "ran.txt").exists()


def test_pipe_connects_output_to_input(workdir):
    tree = Command(
        Operator.PIPE,
        cmd1=py("print('piped')"),
        cmd2=py("import sys; sys.stdout.write(sys.stdin.read())", out=Word("p.txt")),
    )
    assert parse_command(tree, 0, None) == 0
    assert (workdir / "p.txt").read_text() == "piped\n"


def test_pipe_returns_second_status():
    tree = Command(
        Operator.PIPE,
        cmd1=py("import sys; sys.exit(7)"),
        cmd2=py("import sys; sys.exit(4)"),
    )
    assert parse_command(tree, 0, None) == 4


def test_parallel_runs_both(workdir):
    tree = Command(
        Operator.PARALLEL,
        cmd1=py("pass", out=Word("one.txt")),
        cmd2=py("pass", out=Word("two.txt")),
    )
    assert parse_command(tree, 0, None) == 0
    assert (workdir / "one.txt").exists()
    assert (workdir / "two.txt").exists()


def test_parallel_both_failing_gives_one():
    tree = Command(
        Operator.PARALLEL,
        cmd1=py("import sys; sys.exit(3)"),
        cmd2=py("import sys; sys.exit(4)"),
    )
    assert parse_command(tree, 0, None) == 1


def test_cd_in_pipe_does_not_change_shell_directory(workdir):
    (workdir / "sub").mkdir()
    tree = Command(Operator.PIPE, cmd1=cd("sub"), cmd2=py("pass"))
    assert parse_command(tree, 0, None) == 0
    assert Path(os.getcwd()).resolve() == workdir.resolve()