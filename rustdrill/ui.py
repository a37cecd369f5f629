"""Coloured status lines printed to the terminal."""

from __future__ import annotations

import os

from rich.console import Console
from rich.text import Text

_console = Console(highlight=False, soft_wrap=True, emoji=False, markup=False)

_SEPARATOR = "=" * 20


def no_emoji() -> bool:
    """Return True when the NO_EMOJI environment variable is set."""
    return "NO_EMOJI" in os.environ


def _emit(symbol: str, fallback: str, message: str, colour: str) -> None:
    prefix = fallback if no_emoji() else symbol
    _console.print(Text.assemble((prefix, colour), " ", (message, colour)))


def warn(message: str) -> None:
    """Print a red warning line."""
    _emit("⚠️ ", "!", message, "red")


def success(message: str) -> None:
    """Print a green success line."""
    _emit("✅", "✓", message, "green")


def separator() -> Text:
    """Return the bold rule used to frame output blocks."""
    return Text(_SEPARATOR, style="bold")