import pytest

from oskit.shell.display import format_command
from oskit.shell.model import Command, IOFlags, Operator, SimpleCommand, Word


def simple(verb, params=None, **kwargs):
    return Command(Operator.NONE, scmd=SimpleCommand(verb, params, **kwargs))


def test_simple_command_layout():
    command = simple(Word("ls"), Word("-l"))
    expected = (
        "command_t (\n"
        "    scmd (\n"
        "        simple_command_t (\n"
        "            verb (\n"
        "                'ls'\n"
        "            )\n"
        "            params (\n"
        "                '-l'\n"
        "            )\n"
        "        )\n"
        "    )\n"
        ")\n"
    )
    assert format_command(command) == expected


def test_parts_and_expansion_on_one_line():
    verb = Word("a", next_part=Word("B", expand=True))
    lines = format_command(simple(verb)).splitlines()
    assert any(line.strip() == "'a';    expand('B')" for line in lines)


def test_append_marker_for_output():
    command = simple(Word("cat"), out=Word("log"), io_flags=IOFlags.OUT_APPEND)
    lines = format_command(command).splitlines()
    assert " " * 16 + "APPEND" in lines
    assert "            out (" in lines


def test_no_append_marker_without_flag():
    command = simple(Word("cat"), err=Word("log"))
    text = format_command(command)
    assert "APPEND" not in text
    assert "err (" in text


@pytest.mark.parametrize("op", [op for op in Operator if op is not Operator.NONE])
def test_operator_names(op):
    tree = Command(op, cmd1=simple(Word("a")), cmd2=simple(Word("b")))
    lines = format_command(tree).splitlines()
    assert lines[1] == f"    op == OP_{op.name}"
    assert lines.count("        command_t (") == 2


def test_brackets_balance_and_indent_is_multiple_of_four():
    tree = Command(
        Operator.SEQUENTIAL,
        cmd1=simple(Word("a"), Word("x", next_word=Word("y"))),
        cmd2=Command(Operator.PIPE, cmd1=simple(Word("b")), cmd2=simple(Word("c"))),
    )
    lines = format_command(tree).splitlines()
    opened = sum(line.endswith("(") for line in lines)
    closed = sum(line.strip() == ")" for line in lines)
    assert opened == closed
    assert all((len(line) - len(line.lstrip())) % 4 == 0 for line in lines)


def test_broken_parent_link_is_rejected():
    child = simple(Word("a"))
    tree = Command(Operator.SEQUENTIAL, cmd1=child, cmd2=simple(Word("b")))
    child.up = None
    with pytest.raises(ValueError):
        format_command(tree)


def test_multi_word_verb_is_rejected():
    with pytest.raises(ValueError):
        format_command(simple(Word("a", next_word=Word("b"))))