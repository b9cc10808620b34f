"""Swap file resolution.

Finds the counterpart of a file (foo.h -> foo.c and back) by file-name
stem and extension, trying progressively wider searches:

    1. the path cache (confirmed by opening the cached path)
    2. the file's own directory
    3. everything under the common root (the parent of the first
       "include" or "src" directory segment)
    4. the whole workspace, ranked by shared path prefix when several
       candidates remain

The resolver never writes to the cache; the caller does that once the
resolved path has been opened successfully.
"""

from __future__ import annotations

import asyncio
import glob
import logging
import os
from collections.abc import Iterable

from .path_cache import PathCache
from .protocols import (
    Ambiguous,
    CancellationToken,
    DirectoryReader,
    ExtensionClassification,
    FileLocation,
    NotFound,
    PathOpener,
    Resolved,
    SearchCancelled,
    SwapCandidate,
    SwapResult,
    WorkspaceSearcher,
)

logger = logging.getLogger(__name__)

# Checked in this order; the first one present in the path wins.
COMMON_ROOT_SEGMENTS = ("include", "src")


def matching_prefix_length(a: str, b: str) -> int:
    """Count leading characters a and b share, ignoring case."""
    count = 0
    for x, y in zip(a.lower(), b.lower()):
        if x != y:
            break
        count += 1
    return count


def rank_candidates(directory: str, candidates: Iterable[SwapCandidate]) -> list[SwapCandidate]:
    """Order candidates by how much of directory their path shares, longest first.

    The sort is stable: equal prefixes keep their discovery order.
    """
    return sorted(
        candidates,
        key=lambda c: matching_prefix_length(directory, c.full_path),
        reverse=True,
    )


def _is_match(name: str, stem: str, extensions: frozenset[str]) -> bool:
    candidate_stem, candidate_ext = os.path.splitext(os.path.basename(name))
    return candidate_stem == stem and candidate_ext in extensions


def common_root(directory: str) -> str | None:
    """Return directory truncated before its first "include" or "src" segment."""
    segments = directory.split(os.sep)
    for anchor in COMMON_ROOT_SEGMENTS:
        if anchor in segments:
            # An anchor directly under the file-system root has no usable parent.
            return os.sep.join(segments[:segments.index(anchor)]) or None
    return None


class SwapResolver:
    """Phased swap-file search over injected collaborators."""

    def __init__(
        self,
        cache: PathCache,
        reader: DirectoryReader,
        searcher: WorkspaceSearcher,
        opener: PathOpener,
        search_timeout: float | None = None,
    ):
        self.cache = cache
        self.reader = reader
        self.searcher = searcher
        self.opener = opener
        self.search_timeout = search_timeout

    async def resolve(
        self,
        path: str,
        classification: ExtensionClassification,
        token: CancellationToken | None = None,
    ) -> SwapResult:
        """Find the swap file for path.

        Args:
            path: Absolute path of the current file
            classification: Header/source extension sets
            token: Cancels the workspace-wide search

        Returns:
            Resolved, Ambiguous (ranked candidates) or NotFound.
        """
        location = FileLocation.from_path(path)
        if not location.extension:
            return NotFound("no extension")

        cached = await self._from_cache(path)
        if cached is not None:
            return cached

        extensions = classification.search_extensions(location.extension)
        if not extensions:
            logger.debug("swap.no_search_extensions", extra={"file": path})
            return NotFound("no search extensions configured")

        found = await self._scan_directory(location, extensions)
        if found is not None:
            return Resolved(found, "directory")

        found = await self._scan_common_root(location, extensions)
        if found is not None:
            return Resolved(found, "common_root")

        return await self._search_workspace(location, extensions, token or CancellationToken())

    async def _from_cache(self, path: str) -> Resolved | None:
        cached = self.cache.get(path)
        if cached is None:
            return None

        try:
            await self.opener.open_path(cached)
        except OSError as e:
            logger.debug(
                "swap.stale_cache_entry",
                extra={"file": path, "cached": cached, "error_message": str(e)},
            )
            self.cache.remove(path)
            return None

        logger.debug("swap.cache_hit", extra={"file": path, "cached": cached})
        return Resolved(cached, "cache")

    async def _scan_directory(self, location: FileLocation, extensions: frozenset[str]) -> str | None:
        try:
            entries = await self.reader.list_directory(location.directory)
        except OSError as e:
            _log_phase_error("directory", location.directory, e)
            return None

        for entry in entries:
            if _is_match(entry, location.stem, extensions):
                return os.path.join(location.directory, entry)
        return None

    async def _scan_common_root(self, location: FileLocation, extensions: frozenset[str]) -> str | None:
        root = common_root(location.directory)
        if root is None:
            return None

        try:
            entries = await self.reader.list_directory_recursive(root)
        except OSError as e:
            _log_phase_error("common_root", root, e)
            return None

        for entry in entries:
            if _is_match(entry, location.stem, extensions):
                return os.path.join(root, entry)
        return None

    async def _search_workspace(
        self,
        location: FileLocation,
        extensions: frozenset[str],
        token: CancellationToken,
    ) -> SwapResult:
        pattern = f"{glob.escape(location.stem)}.*"
        try:
            paths = await asyncio.wait_for(
                self.searcher.search(pattern, token),
                timeout=self.search_timeout,
            )
        except SearchCancelled:
            logger.debug("swap.search_cancelled", extra={"pattern": pattern})
            return NotFound("cancelled")
        except asyncio.TimeoutError:
            token.cancel()
            logger.warning(
                "swap.search_timeout",
                extra={"pattern": pattern, "timeout": self.search_timeout},
            )
            return NotFound("search timed out")
        except OSError as e:
            _log_phase_error("workspace", pattern, e)
            return NotFound("search failed")

        if token.is_cancelled:
            return NotFound("cancelled")

        candidates = [
            SwapCandidate.from_path(p)
            for p in paths
            if _is_match(p, location.stem, extensions)
        ]

        if not candidates:
            return NotFound("no candidates")
        if len(candidates) == 1:
            return Resolved(candidates[0].full_path, "workspace")
        return Ambiguous(rank_candidates(location.directory, candidates))


def _log_phase_error(phase: str, target: str, error: OSError) -> None:
    logger.debug(
        "swap.phase_error",
        extra={
            "phase": phase,
            "target": target,
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )
