"""Command-line implementations of the PathOpener and ChoicePresenter protocols."""

from __future__ import annotations

import asyncio
import shlex
import subprocess
import sys

from .protocols import SwapCandidate


def _check_readable(path: str) -> None:
    with open(path, "rb"):
        pass


class FileOpener:
    """Confirms a path can be read and optionally hands it to an editor.

    editor is a command line such as "code -r"; the path is appended.
    """

    def __init__(self, editor: str | None = None):
        self.editor = editor
        self._launched: list[subprocess.Popen] = []

    async def open_path(self, path: str) -> None:
        await asyncio.to_thread(_check_readable, path)
        if self.editor:
            self._reap()
            # Raises OSError when the editor binary is missing.
            self._launched.append(subprocess.Popen(
                [*shlex.split(self.editor), path],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            ))

    def _reap(self) -> None:
        # poll() waits on launchers that have exited.
        self._launched = [p for p in self._launched if p.poll() is None]


def _prompt(candidates: list[SwapCandidate], stream=None) -> str | None:
    stream = stream or sys.stderr
    stream.write("Choose swap file:\n")
    for i, c in enumerate(candidates, 1):
        stream.write(f"  {i}) {c.display_label}  {c.full_path}\n")
    stream.write("> ")
    stream.flush()

    try:
        answer = input().strip()
    except EOFError:
        return None

    if not answer.isdigit() or not 1 <= int(answer) <= len(candidates):
        return None
    return candidates[int(answer) - 1].full_path


class PromptChoicePresenter:
    """Numbered terminal prompt; anything but a valid number cancels."""

    async def present_choice(self, candidates: list[SwapCandidate]) -> str | None:
        return await asyncio.to_thread(_prompt, candidates)
