"""Clipboard access for the share operation.

`SystemClipboard` pipes text into the first platform copy command it finds
on ``PATH``. When none exists, or the command fails, it raises
`ClipboardUnavailable` and the caller shows the address for manual copying.
"""

from __future__ import annotations

import shutil
import subprocess
from typing import Protocol

from notewall.core.errors import ClipboardUnavailable

# Tried in order; the first one present on PATH wins.
COPY_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("pbcopy",),
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("clip",),
)


class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


class SystemClipboard:
    """Copy through whichever platform clipboard command is installed."""

    def __init__(self, commands: tuple[tuple[str, ...], ...] = COPY_COMMANDS) -> None:
        self.commands = commands

    def copy(self, text: str) -> None:
        for command in self.commands:
            if shutil.which(command[0]) is None:
                continue
            try:
                subprocess.run(command, input=text.encode("utf-8"), check=True, timeout=5)
            except (OSError, subprocess.SubprocessError) as exc:
                raise ClipboardUnavailable(f"{command[0]} failed: {exc}") from exc
            return
        raise ClipboardUnavailable("no clipboard command found")


class MemoryClipboard:
    """Keeps the last copied value; handy in tests and headless sessions."""

    def __init__(self) -> None:
        self.value: str | None = None

    def copy(self, text: str) -> None:
        self.value = text


__all__ = ["COPY_COMMANDS", "Clipboard", "MemoryClipboard", "SystemClipboard"]
