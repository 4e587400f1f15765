import pytest

from oskit.shell.model import SimpleCommand, Word
from oskit.shell.words import get_argv, get_word


def chain(*texts):
    head = None
    for text in reversed(texts):
        head = Word(text, next_word=head)
    return head


def test_literal_parts_are_concatenated():
    word = Word("ab", next_part=Word("=", next_part=Word("cd")))
    assert get_word(word, {}) == "".join(["ab", "=", "cd"])


def test_expanded_part_uses_environment_mapping():
    env = {"HOME": "/home/someone"}
    word = Word("HOME", expand=True, next_part=Word("/bin"))
    assert get_word(word, env) == env["HOME"] + "/bin"


def test_unset_variable_expands_to_empty():
    word = Word("pre", next_part=Word("MISSING", expand=True))
    assert get_word(word, {}) == "pre"


def test_none_word_gives_none():
    assert get_word(None, {}) is None


def test_default_environment_is_process_environment(monkeypatch):
    monkeypatch.setenv("OSKIT_WORD_TEST", "value")
    assert get_word(Word("OSKIT_WORD_TEST", expand=True)) == "value"


def test_only_first_literal_of_list_is_used():
    word = chain("first", "second")
    assert get_word(word, {}) == "first"


def test_argv_holds_verb_then_params():
    command = SimpleCommand(Word("ls"), params=chain("-l", "/tmp"))
    assert get_argv(command, {}) == ["ls", "-l", "/tmp"]


def test_argv_without_params():
    command = SimpleCommand(Word("true"))
    assert get_argv(command, {}) == ["true"]


def test_argv_expands_every_word():
    env = {"X": "42"}
    params = Word("X", expand=True, next_word=Word("a", next_part=Word("X", expand=True)))
    command = SimpleCommand(Word("echo"), params=params)
    argv = get_argv(command, env)
    assert argv == ["echo", env["X"], "a" + env["X"]]
    assert len(argv) == 1 + len(list(params.iter_words()))