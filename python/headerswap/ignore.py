"""Ignore file handling (.swapignore).

Gitignore-style pattern matching for excluding paths from the
workspace-wide swap search. Same-directory and common-root scans are
not filtered.
"""

from __future__ import annotations

import os
from pathlib import Path

import pathspec

IGNORE_FILE = ".swapignore"

# Used when the workspace has no .swapignore
DEFAULT_TEMPLATE = """\
# headerswap ignore patterns (gitignore syntax)
.git/
.hg/
.svn/
node_modules/
.venv/
venv/
__pycache__/
.cache/
.ccls-cache/
.clangd/
build/
out/
cmake-build-*/
dist/
target/
.idea/
.vs/
.vscode/
*.o
*.obj
*.a
*.lib
*.so
*.dylib
*.dll
*.exe
*.pch
*.gch
.DS_Store
Thumbs.db
"""


def load_ignore_patterns(
    workspace_dir: str | Path,
    include_gitignore: bool = False,
) -> pathspec.PathSpec:
    """Load ignore patterns from .swapignore, or the default template."""
    workspace_path = Path(workspace_dir)
    ignore_path = workspace_path / IGNORE_FILE
    patterns: list[str] = []

    if include_gitignore:
        patterns.extend(_load_gitignore_patterns(workspace_path))

    if ignore_path.exists():
        patterns.extend(ignore_path.read_text(encoding="utf-8", errors="replace").splitlines())
    else:
        patterns.extend(DEFAULT_TEMPLATE.splitlines())

    return pathspec.PathSpec.from_lines("gitignore", patterns)


def _load_gitignore_patterns(workspace_path: Path) -> list[str]:
    patterns: list[str] = []
    skip_dirs = {".git", ".hg", ".svn", "node_modules", ".venv", "venv", "__pycache__"}

    for dirpath, dirnames, filenames in os.walk(workspace_path):
        dirnames[:] = [name for name in dirnames if name not in skip_dirs]
        if ".gitignore" not in filenames:
            continue
        gitignore_path = Path(dirpath) / ".gitignore"
        rel_dir = os.path.relpath(dirpath, workspace_path)
        prefix = "" if rel_dir == "." else rel_dir.replace(os.sep, "/")
        for line in gitignore_path.read_text(encoding="utf-8", errors="replace").splitlines():
            patterns.append(_translate_gitignore_pattern(line, prefix))

    return patterns


def _translate_gitignore_pattern(pattern: str, prefix: str) -> str:
    """Re-root a nested .gitignore line so it matches from the workspace root."""
    line = pattern.rstrip("\n")
    if not line or line.lstrip().startswith("#"):
        return line

    negated = line.startswith("!")
    body = line[1:] if negated else line

    if body.startswith("\\#"):
        body = body[1:]

    if not prefix:
        return f"!{body}" if negated else body

    prefix = prefix.strip("/")
    if body.startswith("/"):
        combined = f"{prefix}/{body[1:]}"
    elif "/" not in body.rstrip("/"):
        combined = f"{prefix}/**/{body}"
    else:
        combined = f"{prefix}/{body}"

    return f"!{combined}" if negated else combined


def is_ignored(
    rel_path: str,
    spec: pathspec.PathSpec,
    is_directory: bool = False,
) -> bool:
    """Check a workspace-relative path against the spec.

    Directory paths get a trailing slash so that "build/" style patterns match.
    """
    normalized = rel_path.replace(os.sep, "/")
    if is_directory and not normalized.endswith("/"):
        normalized += "/"
    return spec.match_file(normalized)
