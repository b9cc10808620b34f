"""Settings for headerswap.

Settings come from a ``.headerswap.json`` file at the project root, using
the same keys the editor extension exposes under ``swapHeaderSource``.
When no settings file exists the C/C++ defaults below apply. When the
file exists but omits an extension list, that list is empty.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .protocols import ExtensionClassification, SettingsError

logger = logging.getLogger(__name__)

SETTINGS_FILE = ".headerswap.json"
DISABLE_CACHING_ENV = "HEADERSWAP_DISABLE_CACHING"
_TRUTHY = {"1", "true", "yes", "on"}

DEFAULT_SETTINGS = {
    "headerExtensions": [".h", ".hh", ".hpp", ".hxx", ".h++", ".inl"],
    "sourceExtensions": [".c", ".cc", ".cpp", ".cxx", ".c++", ".m", ".mm"],
    "disableCaching": False,
}


@dataclass
class Settings:
    header_extensions: list[str] = field(default_factory=list)
    source_extensions: list[str] = field(default_factory=list)
    disable_caching: bool = False
    search_max_results: int = 1000
    search_timeout: float | None = None

    def classification(self) -> ExtensionClassification:
        return ExtensionClassification(
            header_extensions=frozenset(self.header_extensions),
            source_extensions=frozenset(self.source_extensions),
        )

    def is_caching_disabled(self) -> bool:
        env = os.getenv(DISABLE_CACHING_ENV)
        if env is not None:
            return env.strip().lower() in _TRUTHY
        return self.disable_caching

    @classmethod
    def from_dict(cls, data: dict) -> Settings:
        """Build settings from the JSON key names, validating value types."""
        if not isinstance(data, dict):
            raise SettingsError(f"settings must be a JSON object, got {type(data).__name__}")

        timeout = data.get("searchTimeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
            raise SettingsError("searchTimeout must be a number of seconds")

        max_results = data.get("searchMaxResults", 1000)
        if isinstance(max_results, bool) or not isinstance(max_results, int) or max_results < 1:
            raise SettingsError("searchMaxResults must be a positive integer")

        disable = data.get("disableCaching", False)
        if not isinstance(disable, bool):
            raise SettingsError("disableCaching must be true or false")

        return cls(
            header_extensions=_extension_list(data, "headerExtensions"),
            source_extensions=_extension_list(data, "sourceExtensions"),
            disable_caching=disable,
            search_max_results=max_results,
            search_timeout=float(timeout) if timeout is not None else None,
        )


def _extension_list(data: dict, key: str) -> list[str]:
    raw = data.get(key) or []
    if not isinstance(raw, list) or not all(isinstance(e, str) for e in raw):
        raise SettingsError(f"{key} must be a list of strings")
    # ".h" and "h" both mean the header extension.
    return [e if e.startswith(".") else f".{e}" for e in raw if e]


def load_settings(
    project_dir: str | Path,
    settings_path: str | Path | None = None,
) -> Settings:
    """Load settings for a project.

    Args:
        project_dir: Project (workspace) root
        settings_path: Explicit settings file; defaults to <project>/.headerswap.json

    Returns:
        Settings, DEFAULT_SETTINGS when no settings file exists.

    Raises:
        SettingsError: if the file is not valid JSON or has bad values.
    """
    path = Path(settings_path) if settings_path else Path(project_dir) / SETTINGS_FILE

    if not path.exists():
        if settings_path:
            raise SettingsError(f"settings file not found: {path}")
        logger.debug("config.defaults", extra={"project_dir": str(project_dir)})
        return Settings.from_dict(DEFAULT_SETTINGS)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise SettingsError(f"{path} is not UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise SettingsError(f"invalid JSON in {path}: {e}") from e

    return Settings.from_dict(data)
