"""The swap command: resolve, disambiguate, open, remember.

This is the caller side of SwapResolver. It owns the two steps the
resolver leaves out: asking a human when several candidates remain, and
writing the pair into the cache once the swap file actually opened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import Settings
from .path_cache import PathCache
from .protocols import (
    Ambiguous,
    CancellationToken,
    ChoicePresenter,
    DirectoryReader,
    NotFound,
    PathOpener,
    Resolved,
    SwapCandidate,
    WorkspaceSearcher,
)
from .resolver import SwapResolver

logger = logging.getLogger(__name__)


@dataclass
class Collaborators:
    """Host capabilities the swap command runs against."""
    reader: DirectoryReader
    searcher: WorkspaceSearcher
    opener: PathOpener
    presenter: ChoicePresenter | None = None


@dataclass
class SwapOutcome:
    """Result of one swap command.

    status is one of: opened, ambiguous, not_found, cancelled, open_failed.
    """
    status: str
    file: str
    swap_path: str | None = None
    source: str | None = None
    candidates: list[SwapCandidate] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "file": self.file,
            "swap_path": self.swap_path,
            "source": self.source,
            "candidates": [
                {"path": c.full_path, "label": c.display_label}
                for c in self.candidates
            ],
            "message": self.message,
        }


async def swap(
    path: str,
    settings: Settings,
    cache: PathCache,
    collaborators: Collaborators,
    token: CancellationToken | None = None,
) -> SwapOutcome:
    """Swap from path to its counterpart.

    A cache hit is opened by the resolver itself. Any other resolved path
    is opened here and only cached when opening succeeds.
    """
    resolver = SwapResolver(
        cache,
        collaborators.reader,
        collaborators.searcher,
        collaborators.opener,
        search_timeout=settings.search_timeout,
    )
    result = await resolver.resolve(path, settings.classification(), token)

    if isinstance(result, NotFound):
        status = "cancelled" if result.reason == "cancelled" else "not_found"
        return SwapOutcome(status=status, file=path, message=result.reason)

    if isinstance(result, Resolved) and result.source == "cache":
        return SwapOutcome(status="opened", file=path, swap_path=result.path, source="cache")

    if isinstance(result, Ambiguous):
        if collaborators.presenter is None:
            return SwapOutcome(status="ambiguous", file=path, candidates=result.candidates)

        choice = await collaborators.presenter.present_choice(result.candidates)
        if choice is None:
            return SwapOutcome(status="cancelled", file=path, message="selection dismissed")
        result = Resolved(choice, "choice")

    return await _open_and_remember(path, result.path, result.source, cache, collaborators.opener)


async def pick(
    path: str,
    choice: str,
    cache: PathCache,
    opener: PathOpener,
) -> SwapOutcome:
    """Finish an ambiguous swap whose candidate was chosen elsewhere."""
    return await _open_and_remember(path, choice, "choice", cache, opener)


async def _open_and_remember(
    path: str,
    swap_path: str,
    source: str,
    cache: PathCache,
    opener: PathOpener,
) -> SwapOutcome:
    try:
        await opener.open_path(swap_path)
    except OSError as e:
        message = f"Failed to open {swap_path}: {e}"
        logger.error(
            "swap.open_failed",
            extra={"file": path, "swap_path": swap_path, "error_message": str(e)},
        )
        return SwapOutcome(status="open_failed", file=path, swap_path=swap_path, source=source, message=message)

    cache.add(path, swap_path)
    logger.debug("swap.opened", extra={"file": path, "swap_path": swap_path, "source": source})
    return SwapOutcome(status="opened", file=path, swap_path=swap_path, source=source)
