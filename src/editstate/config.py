"""Configuration loading from environment variables and editstate.toml."""

from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from editstate.scope import PersistenceScope, default_state_dir

if TYPE_CHECKING:
    from editstate.persistence import Category

_CONFIG_FILENAME = "editstate.toml"
_USER_CONFIG_DIR = Path.home() / ".config" / "editstate"
_CATEGORY_KEYS = ("commands", "search", "files", "clipboard", "splits")

DEFAULT_MAX_ENTRIES = 100
DEFAULT_FILES_EXCLUSIONS = (r".*/\.git/.*",)


@dataclass
class CategoryOptions:
    """Enablement, entry cap and scope for one history category."""

    enabled: bool = False
    max_entries: int = DEFAULT_MAX_ENTRIES
    scope: PersistenceScope = field(default_factory=PersistenceScope.all_in_one)


def resolve_options(override: CategoryOptions | None, default: CategoryOptions) -> CategoryOptions:
    """Effective options: the category's own table if set, else the ``all`` default."""
    return override if override is not None else default


@dataclass
class PersistenceConfig:
    """Per-category persistence settings with an ``all`` fallback."""

    all: CategoryOptions = field(default_factory=CategoryOptions)
    commands: CategoryOptions | None = None
    search: CategoryOptions | None = None
    files: CategoryOptions | None = None
    clipboard: CategoryOptions | None = None
    splits: CategoryOptions | None = None
    files_exclusions: list[re.Pattern[str]] = field(
        default_factory=lambda: [re.compile(p) for p in DEFAULT_FILES_EXCLUSIONS]
    )

    def options(self, category: Category) -> CategoryOptions:
        return resolve_options(getattr(self, category.value), self.all)

    def enabled(self, category: Category) -> bool:
        return self.options(category).enabled

    def max_entries(self, category: Category) -> int:
        return self.options(category).max_entries

    def scope(self, category: Category) -> PersistenceScope:
        return self.options(category).scope

    def exclude(self, path: str | Path) -> bool:
        """True if file history should never record ``path``."""
        text = str(path)
        return any(pattern.search(text) for pattern in self.files_exclusions)


@dataclass
class EditstateConfig:
    """Top-level editstate configuration."""

    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    state_dir: Path = field(default_factory=default_state_dir)
    log_level: str = "INFO"


def _parse_options(data: dict[str, Any], name: str) -> CategoryOptions:
    if not isinstance(data, dict):
        raise ValueError(f"persistence.{name} must be a table")
    unknown = set(data) - {"enabled", "max-entries", "scope"}
    if unknown:
        raise ValueError(f"unknown keys in [persistence.{name}]: {sorted(unknown)}")

    enabled = data.get("enabled", False)
    max_entries = data.get("max-entries", DEFAULT_MAX_ENTRIES)
    if not isinstance(enabled, bool):
        raise ValueError(f"persistence.{name}.enabled must be a boolean")
    if isinstance(max_entries, bool) or not isinstance(max_entries, int) or max_entries < 0:
        raise ValueError(f"persistence.{name}.max-entries must be a non-negative integer")

    scope = PersistenceScope.all_in_one()
    if "scope" in data:
        scope = PersistenceScope.parse(data["scope"])
        if scope.dir is not None:
            scope = PersistenceScope.at(scope.dir.expanduser())

    return CategoryOptions(enabled=enabled, max_entries=max_entries, scope=scope)


def _parse_persistence(data: dict[str, Any]) -> PersistenceConfig:
    config = PersistenceConfig()
    if "all" in data:
        config.all = _parse_options(data["all"], "all")
    for key in _CATEGORY_KEYS:
        if key in data:
            setattr(config, key, _parse_options(data[key], key))

    if "files-exclusions" in data:
        patterns = data["files-exclusions"]
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            raise ValueError("persistence.files-exclusions must be an array of strings")
        try:
            config.files_exclusions = [re.compile(p) for p in patterns]
        except re.error as e:
            raise ValueError(f"invalid persistence.files-exclusions: {e}") from e
    return config


def _find_config_file(config_path: Path | None) -> Path | None:
    if config_path is not None:
        return config_path if config_path.exists() else None
    for candidate in [Path.cwd() / _CONFIG_FILENAME, _USER_CONFIG_DIR / _CONFIG_FILENAME]:
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Path | None = None) -> EditstateConfig:
    """Load configuration from environment variables and optional editstate.toml.

    Priority: environment variables > editstate.toml > defaults.
    ``EDITSTATE_ENABLED`` switches the ``all`` fallback and every category
    table present in the file.
    """
    file_data: dict = {}
    path = _find_config_file(config_path)
    if path is not None:
        try:
            file_data = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"invalid TOML in {path}: {e}") from e

    persistence = _parse_persistence(file_data.get("persistence", {}))

    enabled = os.getenv("EDITSTATE_ENABLED")
    if enabled is not None:
        flag = enabled.strip().lower() in ("1", "true", "yes", "on")
        persistence.all.enabled = flag
        for key in _CATEGORY_KEYS:
            options = getattr(persistence, key)
            if options is not None:
                options.enabled = flag

    state_dir = os.getenv("EDITSTATE_STATE_DIR", file_data.get("state-dir"))

    return EditstateConfig(
        persistence=persistence,
        state_dir=Path(state_dir).expanduser() if state_dir else default_state_dir(),
        log_level=os.getenv("EDITSTATE_LOG_LEVEL", file_data.get("log-level", "INFO")),
    )
