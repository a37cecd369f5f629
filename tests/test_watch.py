import io
import sys
import threading
from pathlib import Path

import pytest

from rustdrill.exercise import Exercise, Mode
from rustdrill.watch import (
    HintBox,
    WatchStatus,
    handle_shell_command,
    pending_after_change,
    spawn_watch_shell,
    watch,
)


@pytest.fixture
def exercise_tree(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    folder = tmp_path / "exercises" / "intro"
    folder.mkdir(parents=True)
    (folder / "a.rs").write_text("fn main() {}\n", encoding="utf-8")
    (folder / "b.rs").write_text("// I AM NOT DONE\nfn main() {}\n", encoding="utf-8")
    (folder / "c.rs").write_text("// I AM NOT DONE\nfn main() {}\n", encoding="utf-8")
    return [
        Exercise(name=n, path=Path("exercises/intro") / f"{n}.rs", mode=Mode.COMPILE)
        for n in ("a", "b", "c")
    ]


def test_hint_box_round_trip():
    box = HintBox()
    assert box.get() is None
    box.set("try harder")
    assert box.get() == "try harder"


def test_hint_command_prints_hint(capsys):
    handle_shell_command("hint\n", HintBox("use a loop"), threading.Event())
    assert capsys.readouterr().out == "use a loop\n"


def test_hint_command_without_hint_prints_nothing(capsys):
    handle_shell_command("hint", HintBox(), threading.Event())
    assert capsys.readouterr().out == ""


def test_clear_command(capsys):
    handle_shell_command("clear", HintBox(), threading.Event())
    assert capsys.readouterr().out == "\x1b[2J\x1b[1;1H\n"


def test_quit_command_sets_event(capsys):
    event = threading.Event()
    handle_shell_command("  quit \n", HintBox(), event)
    assert event.is_set()
    assert capsys.readouterr().out == "Bye!\n"


def test_help_command(capsys):
    event = threading.Event()
    handle_shell_command("help", HintBox(), event)
    out = capsys.readouterr().out
    assert out.startswith("Commands available to you in watch mode:\n")
    assert "  quit   - quits watch mode" in out
    assert not event.is_set()


def test_bang_without_command(capsys):
    handle_shell_command("!", HintBox(), threading.Event())
    assert capsys.readouterr().out == "no command provided\n"


def test_bang_with_missing_program(capsys):
    handle_shell_command("!no-such-program-here --flag", HintBox(), threading.Event())
    out = capsys.readouterr().out
    assert out.startswith("failed to execute command `no-such-program-here --flag`: ")


def test_unknown_command(capsys):
    handle_shell_command("dance\n", HintBox(), threading.Event())
    assert capsys.readouterr().out == "unknown command: dance\n"


def test_spawn_watch_shell_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("hint\nquit\n"))
    event = threading.Event()
    thread = spawn_watch_shell(HintBox("look at line 3"), event)
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert event.is_set()
    out = capsys.readouterr().out
    assert out.startswith("Welcome to watch mode!")
    assert "look at line 3\n" in out
    assert out.endswith("Bye!\n")


def test_pending_after_change_puts_done_changed_first(exercise_tree):
    result = pending_after_change("exercises/intro/a.rs", exercise_tree)
    assert [e.name for e in result] == ["a", "b", "c"]


def test_pending_after_change_changed_pending(exercise_tree):
    result = pending_after_change("exercises/intro/c.rs", exercise_tree)
    assert [e.name for e in result] == ["c", "b"]


def test_pending_after_change_unrelated_file(exercise_tree):
    other = Path("exercises/intro/other.rs")
    other.write_text("fn main() {}\n", encoding="utf-8")
    result = pending_after_change(other, exercise_tree)
    assert [e.name for e in result] == ["b", "c"]


def test_pending_after_change_accepts_absolute_path(exercise_tree):
    absolute = Path("exercises/intro/b.rs").resolve()
    result = pending_after_change(absolute, exercise_tree)
    assert result[0] is exercise_tree[1]
    assert len(result) == 2


def test_watch_with_nothing_to_do_finishes(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "exercises").mkdir()
    assert watch([], False, False) is WatchStatus.FINISHED


def test_watch_without_exercises_directory_raises(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(FileNotFoundError):
        watch([], False, False)