"""Checking exercises one after another and reporting how far the learner got."""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.status import Status
from rich.text import Text

from rustdrill.exercise import (
    CompilationError,
    CompiledExercise,
    Exercise,
    Mode,
    RunError,
)
from rustdrill.ui import no_emoji, separator, success, warn

_console = Console(highlight=False, soft_wrap=True, emoji=False, markup=False)

_BAR_WIDTH = 60


def _progress_line(position: int, total: int, percentage: float) -> Text:
    filled = min(position * _BAR_WIDTH // total, _BAR_WIDTH) if total else _BAR_WIDTH
    head = ">" if filled < _BAR_WIDTH else ""
    rest = "-" * (_BAR_WIDTH - filled - len(head))
    return Text.assemble(
        "Progress: [",
        ("#" * filled, "green"),
        (head + rest, "red"),
        f"] {position}/{total} ({percentage:.1f} %)",
    )


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool,
    success_hints: bool,
) -> Exercise | None:
    """Check exercises in order; return the first one that is not finished, else None."""
    num_done, total = progress
    step = 100.0 / total if total else 0.0
    percentage = num_done * step
    position = num_done
    _console.print(_progress_line(position, total, percentage))

    for exercise in exercises:
        match exercise.mode:
            case Mode.TEST | Mode.BUILDSCRIPT:
                finished = _compile_and_test(
                    exercise, interactive=True, verbose=verbose, success_hints=success_hints
                )
            case Mode.COMPILE:
                finished = _compile_and_run_interactively(exercise, success_hints)
            case Mode.CLIPPY:
                finished = _compile_only(exercise, success_hints)
        if not finished:
            return exercise
        percentage += step
        position += 1
        _console.print(_progress_line(position, total, percentage))
    return None


def test(exercise: Exercise, verbose: bool) -> bool:
    """Compile the exercise as a test harness and run it without prompting."""
    return _compile_and_test(exercise, interactive=False, verbose=verbose, success_hints=False)


def _compile(exercise: Exercise, status: Status) -> CompiledExercise | None:
    try:
        return exercise.compile()
    except CompilationError as err:
        status.stop()
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(err.output.stderr)
        return None


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    with _console.status(f"Compiling {exercise}...") as status:
        compiled = _compile(exercise, status)
        if compiled is None:
            return False
        compiled.close()
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    with _console.status(f"Compiling {exercise}...") as status:
        compiled = _compile(exercise, status)
        if compiled is None:
            return False
        status.update(f"Running {exercise}...")
        try:
            with compiled:
                output = compiled.run()
        except RunError as err:
            status.stop()
            warn(f"Ran {exercise} with errors")
            print(err.output.stdout)
            print(err.output.stderr)
            return False
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, *, interactive: bool, verbose: bool, success_hints: bool
) -> bool:
    with _console.status(f"Testing {exercise}...") as status:
        compiled = _compile(exercise, status)
        if compiled is None:
            return False
        try:
            with compiled:
                output = compiled.run()
        except RunError as err:
            status.stop()
            warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
            print(err.output.stdout)
            return False
    if verbose:
        print(output.stdout)
    if interactive:
        return prompt_for_completion(exercise, None, success_hints)
    return True


_SUCCESS_VERBS = {
    Mode.COMPILE: "ran",
    Mode.TEST: "tested",
    Mode.CLIPPY: "compiled",
    Mode.BUILDSCRIPT: "compiled",
}


def _success_message(mode: Mode, plain: bool) -> str:
    match mode:
        case Mode.COMPILE:
            return "The code is compiling!"
        case Mode.TEST:
            return "The code is compiling, and the tests pass!"
        case Mode.CLIPPY:
            if plain:
                return "The code is compiling, and Clippy is happy!"
            return "The code is compiling, and 📎 Clippy 📎 is happy!"
        case Mode.BUILDSCRIPT:
            return "Build script works!"


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    """Return True when the exercise is marked done; otherwise show where the marker is."""
    state = exercise.state()
    if state.done():
        return True

    success(f"Successfully {_SUCCESS_VERBS[exercise.mode]} {exercise}!")

    plain = no_emoji()
    message = _success_message(exercise.mode, plain)
    print()
    if plain:
        print(f"~*~ {message} ~*~")
    else:
        print(f"🎉 🎉  {message} 🎉 🎉")
    print()

    if prompt_output is not None:
        print("Output:")
        _console.print(separator())
        print(prompt_output)
        _console.print(separator())
        print()
    if success_hints:
        print("Hints:")
        _console.print(separator())
        print(exercise.hint)
        _console.print(separator())
        print()

    print("You can keep working on this exercise,")
    _console.print(
        Text.assemble(
            "or jump into the next one by removing the ",
            ("`I AM NOT DONE`", "bold"),
            " comment:",
        )
    )
    print()
    for context_line in state.context:
        _console.print(
            Text.assemble(
                (f"{context_line.number:>2}", "bold blue"),
                " ",
                ("|", "blue"),
                "  ",
                (context_line.line, "bold" if context_line.important else ""),
            )
        )
    return False