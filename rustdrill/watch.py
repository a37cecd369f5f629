"""Watch mode: re-verify exercises whenever a source file changes."""

from __future__ import annotations

import enum
import os
import queue
import subprocess
import sys
import threading
from collections.abc import Sequence
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rustdrill.exercise import Exercise
from rustdrill.verify import verify

EXERCISES_DIR = "./exercises"
_POLL_SECONDS = 1.0
_RESET_TERMINAL = "\x1bc"

_HELP_LINES = (
    "Commands available to you in watch mode:",
    "  hint   - prints the current exercise's hint",
    "  clear  - clears the screen",
    "  quit   - quits watch mode",
    "  !<cmd> - executes a command, like `!rustc --explain E0381`",
    "  help   - displays this help message",
    "",
    "Watch mode automatically re-evaluates the current exercise",
    "when you edit a file's contents.",
)


class WatchStatus(enum.Enum):
    """How watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class HintBox:
    """Thread-safe holder for the hint of the exercise that failed last."""

    def __init__(self, hint: str | None = None) -> None:
        self._lock = threading.Lock()
        self._hint = hint

    def get(self) -> str | None:
        with self._lock:
            return self._hint

    def set(self, hint: str | None) -> None:
        with self._lock:
            self._hint = hint


def handle_shell_command(
    line: str, hint_box: HintBox, quit_event: threading.Event
) -> None:
    """Carry out one command typed in watch mode."""
    command = line.strip()
    if command == "hint":
        hint = hint_box.get()
        if hint is not None:
            print(hint)
    elif command == "clear":
        print("\x1b[2J\x1b[1;1H")
    elif command == "quit":
        quit_event.set()
        print("Bye!")
    elif command == "help":
        for help_line in _HELP_LINES:
            print(help_line)
    elif command.startswith("!"):
        shell_command = command[1:]
        parts = shell_command.split()
        if not parts:
            print("no command provided")
            return
        try:
            subprocess.run(parts)
        except OSError as err:
            print(f"failed to execute command `{shell_command}`: {err}")
    else:
        print(f"unknown command: {command}")


def spawn_watch_shell(hint_box: HintBox, quit_event: threading.Event) -> threading.Thread:
    """Start a background thread that reads commands from standard input."""
    print(
        "Welcome to watch mode! You can type 'help' to get an overview "
        "of the commands you can use here."
    )

    def _loop() -> None:
        while True:
            try:
                line = sys.stdin.readline()
            except (OSError, ValueError) as err:
                print(f"error reading command: {err}")
                return
            if not line:
                return
            handle_shell_command(line, hint_box, quit_event)

    thread = threading.Thread(target=_loop, name="watch-shell", daemon=True)
    thread.start()
    return thread


def _ends_with(full: Path, tail: Path) -> bool:
    tail_parts = tail.parts
    full_parts = full.parts
    if not tail_parts or len(tail_parts) > len(full_parts):
        return False
    return full_parts[-len(tail_parts):] == tail_parts


def pending_after_change(
    changed_path: str | os.PathLike[str], exercises: Sequence[Exercise]
) -> list[Exercise]:
    """Order exercises to re-check: the changed one first, then every other unfinished one."""
    filepath = Path(changed_path).resolve()
    changed = next((e for e in exercises if _ends_with(filepath, e.path)), None)
    result = [changed] if changed is not None else []
    result.extend(
        e for e in exercises if not _ends_with(filepath, e.path) and not e.looks_done()
    )
    return result


def _clear_screen() -> None:
    """Reset the terminal with an ANSI escape sequence and flush it out at once."""
    stream = sys.stdout
    stream.write(_RESET_TERMINAL + "\n")
    stream.flush()


class _Forwarder(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[str]) -> None:
        super().__init__()
        self._events = events

    def _forward(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._events.put(os.fsdecode(event.src_path))

    def on_created(self, event: FileSystemEvent) -> None:
        self._forward(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._forward(event)


def watch(
    exercises: Sequence[Exercise], verbose: bool, success_hints: bool
) -> WatchStatus:
    """Verify the exercises, then keep re-verifying on changes until all pass or the user quits."""
    root = Path(EXERCISES_DIR)
    if not root.is_dir():
        raise FileNotFoundError(f"cannot watch missing directory {EXERCISES_DIR}")

    events: queue.Queue[str] = queue.Queue()
    quit_event = threading.Event()
    observer = Observer()
    observer.schedule(_Forwarder(events), str(root), recursive=True)
    observer.start()
    try:
        _clear_screen()
        failed = verify(exercises, (0, len(exercises)), verbose, success_hints)
        if failed is None:
            return WatchStatus.FINISHED
        hint_box = HintBox(failed.hint)
        spawn_watch_shell(hint_box, quit_event)

        while True:
            try:
                changed = events.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                pass
            else:
                path = Path(changed)
                if path.suffix == ".rs" and path.exists():
                    pending = pending_after_change(path, exercises)
                    num_done = sum(1 for e in exercises if e.looks_done())
                    _clear_screen()
                    failed = verify(
                        pending, (num_done, len(exercises)), verbose, success_hints
                    )
                    if failed is None:
                        return WatchStatus.FINISHED
                    hint_box.set(failed.hint)
            if quit_event.is_set():
                return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()