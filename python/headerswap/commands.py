"""Command dispatcher for headerswap.

Routes --command values (or sidecar request commands) to the swap
operations. A Session carries the path cache between requests, so the
sidecar remembers pairs for its whole lifetime.
"""

from __future__ import annotations

import asyncio
import os

from .config import Settings, load_settings
from .host import FileOpener
from .path_cache import PathCache
from .protocols import ChoicePresenter
from .swap import Collaborators, pick, swap
from .workspace import LocalDirectoryReader, LocalWorkspaceSearcher


class Session:
    """Process-lifetime state: the cache and the most recently loaded settings."""

    def __init__(self, editor: str | None = None, presenter: ChoicePresenter | None = None):
        self.editor = editor
        self.presenter = presenter
        self.opener = FileOpener(editor)
        self.settings = Settings()
        self.cache = PathCache(is_disabled=lambda: self.settings.is_caching_disabled())

    def dispatch(self, command: str, project: str, args: dict) -> dict:
        """Dispatch a command.

        Args:
            command: Command name (swap, pick, forget, stats)
            project: Workspace root path
            args: Extra arguments dict

        Returns:
            Dict result of the command
        """
        if command == "swap":
            path = _file_arg(project, args, "file")
            self.settings = load_settings(project, args.get("settings"))
            collaborators = Collaborators(
                reader=LocalDirectoryReader(),
                searcher=LocalWorkspaceSearcher(
                    [project],
                    max_results=self.settings.search_max_results,
                    include_gitignore=args.get("include_gitignore", False),
                ),
                opener=self.opener,
                presenter=self.presenter,
            )
            outcome = asyncio.run(swap(path, self.settings, self.cache, collaborators))
            return outcome.to_dict()

        elif command == "pick":
            path = _file_arg(project, args, "file")
            choice = _file_arg(project, args, "choice")
            self.settings = load_settings(project, args.get("settings"))
            outcome = asyncio.run(pick(path, choice, self.cache, self.opener))
            return outcome.to_dict()

        elif command == "forget":
            if args.get("file"):
                self.cache.remove(_file_arg(project, args, "file"))
            else:
                self.cache.clear()
            return {"entries": len(self.cache)}

        elif command == "stats":
            return {
                "entries": len(self.cache),
                "caching_disabled": self.settings.is_caching_disabled(),
            }

        else:
            return {"error": "UnknownCommand", "message": f"Unknown command: {command}"}


def _file_arg(project: str, args: dict, key: str) -> str:
    value = args.get(key)
    if not value:
        raise ValueError(f"missing required argument: {key}")
    return os.path.abspath(os.path.join(project, value))


def dispatch(command: str, project: str, args: dict, session: Session | None = None) -> dict:
    """Dispatch a command against session, or a fresh one."""
    return (session or Session()).dispatch(command, project, args)
