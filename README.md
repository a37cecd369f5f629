# rustdrill

A command-line companion for working through a directory of small Rust
exercises. Each exercise is checked with `rustc` (as a binary or as a test
harness), through `cargo clippy`, or through `cargo test` for build-script
exercises. You move on once it compiles, passes, and no longer carries its
`I AM NOT DONE` marker comment.

## Requirements

- Python 3.11 or later
- A Rust toolchain with `rustc` on your `PATH` (and `cargo` for Clippy and
  build-script exercises)
- A working directory containing an `info.toml` that lists the exercises

## Installation

```
pip install .
```

Install with the `test` extra (`pip install .[test]`) to run the test suite
with pytest.

## The exercise list

`info.toml` lists the exercises in the order they should be done. Every entry
needs all four fields:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment to move on."
```

`mode` is one of `compile`, `test`, `clippy` or `buildscript`. Clippy
exercises write `exercises/clippy/Cargo.toml`, build-script exercises write
`exercises/tests/Cargo.toml`, before Cargo is started.

An exercise counts as done when no line of its file matches
`// I AM NOT DONE` (or `/// I AM NOT DONE`, with any spacing).

## Usage

Run commands from the directory that holds `info.toml`; otherwise the program
prints a message and exits with status 1. It also exits with status 1 when
`rustc --version` cannot be run.

```
rustdrill                 # welcome text and a short introduction
rustdrill --version       # print the version
rustdrill watch           # re-verify whenever an exercise file changes
rustdrill verify          # verify all exercises in order, stop at the first failure
rustdrill run intro1      # compile and run (or test) one exercise
rustdrill run next        # run the first exercise not yet done
rustdrill hint intro1     # print the hint for an exercise
rustdrill reset intro1    # start `git stash -- <path>` for an exercise
rustdrill list            # table of exercises with their status
rustdrill lsp             # write rust-project.json for rust-analyzer
rustdrill cicvverify      # grade every exercise, write .github/result/check_result.json
```

Add `--nocapture` before the subcommand to see the output of test exercises.

`verify` and `run` exit with status 1 when an exercise fails; `run`, `hint`
and `reset` exit with status 1 when no exercise has the given name.

### Listing

```
rustdrill list --paths          # only the paths
rustdrill list --names          # only the names
rustdrill list --filter if,var  # names or paths containing any pattern
rustdrill list --solved         # only exercises that are done
rustdrill list --unsolved       # only exercises still pending
```

The short forms `-p`, `-n`, `-f`, `-s` and `-u` work too. The last line
reports how many exercises are done.

### Watch mode

`rustdrill watch` verifies the exercises in order and then waits. Each time a
`.rs` file under `./exercises` is created or modified, the changed exercise is
checked first, followed by the others still pending. While it waits you can
type:

- `hint`   – print the hint for the exercise that is currently failing
- `clear`  – clear the screen
- `quit`   – leave watch mode
- `!<cmd>` – run a command, e.g. `!rustc --explain E0381`
- `help`   – show this list

Pass `--success-hints` to `watch` to also print an exercise's hint when it
compiles but still carries its marker.

### Grading

`rustdrill cicvverify` runs every exercise one after another without
prompting, prints progress as it goes, and writes a JSON report with one
`{"name", "result"}` entry per exercise and totals (`total_exercations`,
`total_succeeds`, `total_failures`, `total_time` in seconds) to
`.github/result/check_result.json`. That directory must already exist.

### rust-analyzer

`rustdrill lsp` adds every `.rs` file below `./exercises` as a crate (edition
2021, with the `test` cfg) and writes `./rust-project.json`. The standard
library source path is taken from `RUST_SRC_PATH`, or derived from
`rustc --print sysroot`.

## Use from Python

```python
from rustdrill.exercise import load_exercises
from rustdrill.verify import verify

exercises = load_exercises("info.toml")
pending = [e for e in exercises if not e.looks_done()]
failed = verify(exercises, (0, len(exercises)), verbose=False, success_hints=False)
```

`Exercise.state()` returns a `State` whose `context` holds the lines around
the marker; `Exercise.compile()` raises `CompilationError` and
`CompiledExercise.run()` raises `RunError`, both carrying the captured output.

## Environment

- `NO_EMOJI` – when set, messages use plain markers instead of emoji.
- `RUST_SRC_PATH` – when set, `rustdrill lsp` uses it as the standard-library
  source path instead of asking `rustc`.

## What it does not do

rustdrill ships no exercises of its own; it works on whatever `info.toml` and
exercise files are in the current directory. It does not install a Rust
toolchain, and `reset` only starts `git stash` without waiting for it or
checking its result.