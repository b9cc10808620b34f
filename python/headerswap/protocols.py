"""Data model and collaborator protocols for headerswap.

Defines the types the resolver passes around and the Protocols that
decouple it from the host environment (file system, search backend,
editor, selection UI).
"""

import os
import threading
from dataclasses import dataclass, field
from typing import Protocol


class SearchCancelled(Exception):
    """Raised by a searcher when its cancellation token fires."""


class SettingsError(ValueError):
    """Raised when a settings file cannot be parsed or has bad values."""


@dataclass(frozen=True)
class FileLocation:
    """A path split into directory, stem and extension (with leading dot)."""
    directory: str
    stem: str
    extension: str

    @classmethod
    def from_path(cls, path: str) -> "FileLocation":
        directory, name = os.path.split(path)
        stem, extension = os.path.splitext(name)
        return cls(directory=directory, stem=stem, extension=extension)

    @property
    def full_path(self) -> str:
        return os.path.join(self.directory, self.stem + self.extension)


@dataclass(frozen=True)
class ExtensionClassification:
    """Header and source extension sets, read-only for one resolution."""
    header_extensions: frozenset[str] = frozenset()
    source_extensions: frozenset[str] = frozenset()

    def search_extensions(self, extension: str) -> frozenset[str]:
        # A header looks for sources; anything else is assumed to be a source.
        if extension in self.header_extensions:
            return self.source_extensions
        return self.header_extensions


@dataclass(frozen=True)
class SwapCandidate:
    full_path: str
    display_label: str

    @classmethod
    def from_path(cls, path: str) -> "SwapCandidate":
        return cls(full_path=os.path.normpath(path), display_label=os.path.basename(path))


@dataclass(frozen=True)
class Resolved:
    path: str
    source: str


@dataclass(frozen=True)
class Ambiguous:
    candidates: list[SwapCandidate] = field(default_factory=list)


@dataclass(frozen=True)
class NotFound:
    reason: str = ""


SwapResult = Resolved | Ambiguous | NotFound


class CancellationToken:
    """Cooperative cancellation flag, safe to poll from worker threads."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SearchCancelled()


class DirectoryReader(Protocol):
    """Protocol for listing directory contents."""

    async def list_directory(self, directory: str) -> list[str]:
        """Return entry names of a single directory level."""
        ...

    async def list_directory_recursive(self, directory: str) -> list[str]:
        """Return every file below directory, as paths relative to it."""
        ...


class WorkspaceSearcher(Protocol):
    """Protocol for searching the whole workspace by file name."""

    async def search(self, name_pattern: str, token: CancellationToken) -> list[str]:
        """Return full paths whose base name matches name_pattern.

        Raises:
            SearchCancelled: if token is cancelled while searching.
        """
        ...


class PathOpener(Protocol):
    async def open_path(self, path: str) -> None:
        """Open path in the host; raise OSError if that is not possible."""
        ...


class ChoicePresenter(Protocol):
    async def present_choice(self, candidates: list[SwapCandidate]) -> str | None:
        """Let a human pick one candidate; None means the prompt was dismissed."""
        ...
