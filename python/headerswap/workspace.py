"""Local file-system collaborators.

Implements the DirectoryReader and WorkspaceSearcher protocols on top of
os.walk. Blocking work runs in a worker thread via asyncio.to_thread;
cancellation is polled between directories.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
from collections.abc import Iterator
from pathlib import Path

import pathspec

from .ignore import is_ignored, load_ignore_patterns
from .protocols import CancellationToken

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 1000


def iter_workspace_files(
    root: str | Path,
    spec: pathspec.PathSpec | None = None,
    token: CancellationToken | None = None,
) -> Iterator[Path]:
    """Yield files under root in sorted walk order, pruning ignored paths.

    Raises:
        SearchCancelled: if token is cancelled mid-walk.
    """
    root_path = Path(root)
    for dirpath, dirnames, filenames in os.walk(root_path):
        if token is not None:
            token.raise_if_cancelled()

        rel_dir = os.path.relpath(dirpath, root_path)
        rel_prefix = "" if rel_dir == "." else rel_dir + os.sep

        dirnames.sort()
        if spec is not None:
            dirnames[:] = [
                d for d in dirnames
                if not is_ignored(rel_prefix + d, spec, is_directory=True)
            ]

        for name in sorted(filenames):
            if spec is not None and is_ignored(rel_prefix + name, spec):
                continue
            yield Path(dirpath) / name


def _list_recursive(directory: str) -> list[str]:
    if not os.path.isdir(directory):
        raise NotADirectoryError(f"not a directory: {directory}")
    return [
        os.path.relpath(path, directory)
        for path in iter_workspace_files(directory)
    ]


class LocalDirectoryReader:
    """DirectoryReader backed by the local file system."""

    async def list_directory(self, directory: str) -> list[str]:
        entries = await asyncio.to_thread(os.listdir, directory)
        return sorted(entries)

    async def list_directory_recursive(self, directory: str) -> list[str]:
        return await asyncio.to_thread(_list_recursive, directory)


class LocalWorkspaceSearcher:
    """WorkspaceSearcher that walks one or more workspace roots.

    Paths matched by each root's .swapignore (or the default template)
    are skipped. At most max_results paths are collected.
    """

    def __init__(
        self,
        roots: list[str],
        max_results: int = DEFAULT_MAX_RESULTS,
        include_gitignore: bool = False,
    ):
        self.roots = roots
        self.max_results = max_results
        self.include_gitignore = include_gitignore

    async def search(self, name_pattern: str, token: CancellationToken) -> list[str]:
        return await asyncio.to_thread(self._search, name_pattern, token)

    def _search(self, name_pattern: str, token: CancellationToken) -> list[str]:
        matches: list[str] = []
        for root in self.roots:
            spec = load_ignore_patterns(root, include_gitignore=self.include_gitignore)
            for path in iter_workspace_files(root, spec, token):
                if not fnmatch.fnmatchcase(path.name, name_pattern):
                    continue
                matches.append(str(path))
                if len(matches) >= self.max_results:
                    logger.warning(
                        "workspace.result_cap_reached",
                        extra={"pattern": name_pattern, "max_results": self.max_results},
                    )
                    return matches
        return matches
