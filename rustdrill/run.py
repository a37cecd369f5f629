"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from rich.console import Console

from rustdrill.exercise import CompilationError, Exercise, Mode, RunError
from rustdrill.ui import success, warn
from rustdrill.verify import test

_console = Console(highlight=False, soft_wrap=True, emoji=False, markup=False)


def run(exercise: Exercise, verbose: bool) -> bool:
    """Compile and run one exercise without prompting; return whether it succeeded."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILDSCRIPT:
            return test(exercise, verbose)
        case Mode.COMPILE | Mode.CLIPPY:
            return _compile_and_run(exercise)


def reset(exercise: Exercise) -> bool:
    """Start `git stash -- <path>` for the exercise; return whether it could be started."""
    try:
        subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError:
        return False
    return True


def _compile_and_run(exercise: Exercise) -> bool:
    with _console.status(f"Compiling {exercise}...") as status:
        try:
            compiled = exercise.compile()
        except CompilationError as err:
            status.stop()
            warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
            print(err.output.stderr)
            return False
        status.update(f"Running {exercise}...")
        try:
            with compiled:
                output = compiled.run()
        except RunError as err:
            status.stop()
            print(err.output.stdout)
            print(err.output.stderr)
            warn(f"Ran {exercise} with errors")
            return False
    print(output.stdout)
    success(f"Successfully ran {exercise}")
    return True