"""Tests for the phased swap resolver."""

import asyncio
import logging

from fakes import FakeOpener, FakeReader, FakeSearcher

from headerswap.path_cache import PathCache
from headerswap.protocols import (
    Ambiguous,
    CancellationToken,
    ExtensionClassification,
    NotFound,
    Resolved,
    SwapCandidate,
)
from headerswap.resolver import (
    SwapResolver,
    common_root,
    matching_prefix_length,
    rank_candidates,
)

C_FILES = ExtensionClassification(
    header_extensions=frozenset({".h"}),
    source_extensions=frozenset({".c"}),
)
CPP_FILES = ExtensionClassification(
    header_extensions=frozenset({".h", ".hpp"}),
    source_extensions=frozenset({".c", ".cpp"}),
)


def _resolve(path, classification=C_FILES, reader=None, searcher=None, opener=None,
             cache=None, token=None, search_timeout=None):
    resolver = SwapResolver(
        cache if cache is not None else PathCache(),
        reader or FakeReader(),
        searcher or FakeSearcher(),
        opener or FakeOpener(),
        search_timeout=search_timeout,
    )
    return asyncio.run(resolver.resolve(path, classification, token))


# --- ranking helpers ---


def test_matching_prefix_length():
    assert matching_prefix_length("a/b", "a/b/x.c") == 3
    assert matching_prefix_length("A/B", "a/b/x.c") == 3
    assert matching_prefix_length("a/b", "q/x.c") == 0
    assert matching_prefix_length("a/b", "a/y/x.c") == 2
    assert matching_prefix_length("", "abc") == 0
    assert matching_prefix_length("abc", "abc") == 3


def test_rank_candidates_longest_prefix_first():
    candidates = [SwapCandidate.from_path(p) for p in ["a/b/x.c", "q/x.c", "a/y/x.c"]]
    ranked = rank_candidates("a/b", candidates)
    assert [c.full_path for c in ranked] == ["a/b/x.c", "a/y/x.c", "q/x.c"]


def test_rank_candidates_is_stable_on_ties():
    candidates = [SwapCandidate.from_path(p) for p in ["q/x.c", "a/b/x.c", "r/x.c", "s/x.c"]]
    ranked = rank_candidates("a/b", candidates)
    assert [c.full_path for c in ranked] == ["a/b/x.c", "q/x.c", "r/x.c", "s/x.c"]


def test_common_root():
    assert common_root("/ws/proj/include/mylib") == "/ws/proj"
    assert common_root("/ws/proj/src/a/src") == "/ws/proj"
    # "include" outranks "src" even when "src" comes first in the path
    assert common_root("/ws/src/proj/include") == "/ws/src/proj"
    assert common_root("/ws/proj/lib") is None
    assert common_root("/include/x") is None


# --- phase 0: unusable input ---


def test_no_extension_makes_no_calls():
    reader, searcher, opener = FakeReader(), FakeSearcher(), FakeOpener()
    cache = PathCache()
    cache.add("/ws/Makefile", "/ws/Makefile.c")

    result = _resolve("/ws/Makefile", reader=reader, searcher=searcher, opener=opener, cache=cache)

    assert isinstance(result, NotFound)
    assert reader.calls == []
    assert searcher.calls == []
    assert opener.calls == []


def test_empty_classification_is_not_found():
    reader = FakeReader({"/ws": ["foo.h", "foo.c"]})
    result = _resolve("/ws/foo.h", classification=ExtensionClassification(), reader=reader)
    assert isinstance(result, NotFound)
    assert reader.calls == []


# --- phase 1: cache ---


def test_cache_hit_is_opened_and_returned():
    cache = PathCache()
    cache.add("/ws/include/foo.h", "/ws/src/foo.c")
    reader, opener = FakeReader(), FakeOpener({"/ws/src/foo.c"})

    result = _resolve("/ws/include/foo.h", reader=reader, opener=opener, cache=cache)

    assert result == Resolved("/ws/src/foo.c", "cache")
    assert opener.calls == ["/ws/src/foo.c"]
    assert reader.calls == []


def test_stale_cache_entry_is_removed_and_search_continues(caplog):
    cache = PathCache()
    cache.add("/ws/lib/foo.h", "/ws/lib/foo.c")
    reader = FakeReader({"/ws/lib": ["foo.h", "foo.cpp"]})
    opener = FakeOpener()

    with caplog.at_level(logging.DEBUG, logger="headerswap.resolver"):
        result = _resolve("/ws/lib/foo.h", CPP_FILES, reader=reader, opener=opener, cache=cache)

    assert result == Resolved("/ws/lib/foo.cpp", "directory")
    assert opener.calls == ["/ws/lib/foo.c"]
    assert cache.get("/ws/lib/foo.h") is None

    records = [r for r in caplog.records if r.message == "swap.stale_cache_entry"]
    assert records
    assert records[0].file == "/ws/lib/foo.h"
    assert records[0].cached == "/ws/lib/foo.c"


def test_resolver_does_not_write_cache():
    cache = PathCache()
    _resolve("/ws/foo.h", reader=FakeReader({"/ws": ["foo.c"]}), cache=cache)
    assert len(cache) == 0


# --- phase 2: same directory ---


def test_sibling_wins_without_workspace_search():
    reader = FakeReader({"/ws/lib": ["bar.c", "foo.h", "foo.c"]})
    searcher = FakeSearcher(["/ws/other/foo.c"])

    result = _resolve("/ws/lib/foo.h", reader=reader, searcher=searcher)

    assert result == Resolved("/ws/lib/foo.c", "directory")
    assert searcher.calls == []
    assert reader.calls == [("list", "/ws/lib")]


def test_source_file_looks_for_header():
    reader = FakeReader({"/ws/lib": ["foo.c", "foo.h"]})
    assert _resolve("/ws/lib/foo.c", reader=reader) == Resolved("/ws/lib/foo.h", "directory")


def test_unclassified_extension_looks_for_header():
    reader = FakeReader({"/ws/lib": ["foo.inc", "foo.h"]})
    assert _resolve("/ws/lib/foo.inc", reader=reader) == Resolved("/ws/lib/foo.h", "directory")


def test_first_listed_match_wins():
    reader = FakeReader({"/ws": ["foo.cpp", "foo.c", "foo.hpp"]})
    assert _resolve("/ws/foo.hpp", CPP_FILES, reader=reader) == Resolved("/ws/foo.cpp", "directory")


def test_stem_must_match_exactly():
    reader = FakeReader({"/ws": ["foobar.c", "Foo.c", "foo.c.bak", "foo.h"]})
    searcher = FakeSearcher()
    result = _resolve("/ws/foo.h", reader=reader, searcher=searcher)
    assert isinstance(result, NotFound)
    assert searcher.calls == ["foo.*"]


# --- phase 3: common root ---


def test_common_root_scan():
    reader = FakeReader(
        listings={"/ws/proj/include/mylib": ["foo.h"]},
        trees={"/ws/proj": ["include/mylib/foo.h", "src/mylib/foo.c"]},
    )
    searcher = FakeSearcher(["/ws/elsewhere/foo.c"])

    result = _resolve("/ws/proj/include/mylib/foo.h", reader=reader, searcher=searcher)

    assert result == Resolved("/ws/proj/src/mylib/foo.c", "common_root")
    assert ("walk", "/ws/proj") in reader.calls
    assert searcher.calls == []


def test_directory_listing_failure_still_runs_common_root():
    reader = FakeReader(trees={"/ws/proj": ["src/foo.c", "include/foo.h"]})
    result = _resolve("/ws/proj/include/foo.h", reader=reader)
    assert result == Resolved("/ws/proj/src/foo.c", "common_root")


def test_no_anchor_skips_common_root():
    reader = FakeReader({"/ws/proj/lib": ["foo.h"]})
    searcher = FakeSearcher(["/ws/proj/other/foo.c"])

    result = _resolve("/ws/proj/lib/foo.h", reader=reader, searcher=searcher)

    assert result == Resolved("/ws/proj/other/foo.c", "workspace")
    assert all(call[0] == "list" for call in reader.calls)


# --- phase 4: workspace ---


def test_workspace_single_candidate():
    searcher = FakeSearcher(["/ws/a/foo.txt", "/ws/a/foo.c", "/ws/a/foobar.c"])
    result = _resolve("/ws/b/foo.h", searcher=searcher)
    assert result == Resolved("/ws/a/foo.c", "workspace")
    assert searcher.calls == ["foo.*"]


def test_workspace_no_candidates():
    result = _resolve("/ws/b/foo.h", searcher=FakeSearcher(["/ws/a/foo.txt"]))
    assert result == NotFound("no candidates")


def test_workspace_multiple_candidates_are_ranked():
    searcher = FakeSearcher(["/ws/zz/foo.c", "/ws/app/core/foo.c", "/ws/app/foo.c"])
    result = _resolve("/ws/app/core/inc/foo.h", searcher=searcher)

    assert isinstance(result, Ambiguous)
    assert [c.full_path for c in result.candidates] == [
        "/ws/app/core/foo.c",
        "/ws/app/foo.c",
        "/ws/zz/foo.c",
    ]
    assert result.candidates[0].display_label == "foo.c"


def test_workspace_tied_candidates_keep_discovery_order():
    searcher = FakeSearcher(["/ws/y/foo.c", "/ws/x/foo.c"])
    result = _resolve("/ws/lib/foo.h", searcher=searcher)

    assert isinstance(result, Ambiguous)
    assert [c.full_path for c in result.candidates] == ["/ws/y/foo.c", "/ws/x/foo.c"]


def test_workspace_search_cancelled():
    token = CancellationToken()
    result = _resolve("/ws/lib/foo.h", searcher=FakeSearcher(cancel=True), token=token)
    assert result == NotFound("cancelled")
    assert token.is_cancelled


def test_workspace_search_cancelled_before_results_are_used():
    token = CancellationToken()
    token.cancel()
    result = _resolve("/ws/lib/foo.h", searcher=FakeSearcher(["/ws/a/foo.c"]), token=token)
    assert result == NotFound("cancelled")


def test_workspace_search_timeout():
    class _SlowSearcher:
        def __init__(self):
            self.token = None

        async def search(self, name_pattern, token):
            self.token = token
            await asyncio.sleep(5)
            return []

    searcher = _SlowSearcher()
    result = _resolve("/ws/lib/foo.h", searcher=searcher, search_timeout=0.01)

    assert result == NotFound("search timed out")
    assert searcher.token.is_cancelled


def test_workspace_search_error_is_not_found():
    class _BrokenSearcher:
        async def search(self, name_pattern, token):
            raise PermissionError("denied")

    assert _resolve("/ws/lib/foo.h", searcher=_BrokenSearcher()) == NotFound("search failed")


def test_search_pattern_escapes_glob_characters():
    searcher = FakeSearcher(["/ws/a/foo[1].c"])
    result = _resolve("/ws/b/foo[1].h", searcher=searcher)
    assert searcher.calls == ["foo[[]1].*"]
    assert result == Resolved("/ws/a/foo[1].c", "workspace")
