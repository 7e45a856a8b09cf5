"""Map a persistence scope to the directory holding its history files."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

APP_NAME = "editstate"

WORKSPACE_MARKERS = (".git", ".svn", ".hg", ".jj", ".editstate")

# Stands in for path separators when a workspace root becomes a directory name.
SEPARATOR_REPLACEMENT = "%"


class ScopeMode(str, Enum):
    ALL_IN_ONE = "all-in-one"
    PER_WORKSPACE = "per-workspace"
    DIR = "dir"


@dataclass(frozen=True)
class PersistenceScope:
    """Where history files live: one global dir, one per workspace, or a fixed dir."""

    mode: ScopeMode = ScopeMode.ALL_IN_ONE
    dir: Path | None = None

    def __post_init__(self) -> None:
        if (self.mode is ScopeMode.DIR) != (self.dir is not None):
            raise ValueError("a directory is required for, and only for, the 'dir' scope")

    @classmethod
    def all_in_one(cls) -> PersistenceScope:
        return cls(ScopeMode.ALL_IN_ONE)

    @classmethod
    def per_workspace(cls) -> PersistenceScope:
        return cls(ScopeMode.PER_WORKSPACE)

    @classmethod
    def at(cls, path: str | Path) -> PersistenceScope:
        return cls(ScopeMode.DIR, Path(path))

    @classmethod
    def parse(cls, value: Any) -> PersistenceScope:
        """Parse the TOML form: ``"all-in-one"``, ``"per-workspace"`` or ``{ dir = "..." }``."""
        if isinstance(value, str):
            if value == ScopeMode.ALL_IN_ONE.value:
                return cls.all_in_one()
            if value == ScopeMode.PER_WORKSPACE.value:
                return cls.per_workspace()
        elif isinstance(value, dict) and set(value) == {"dir"} and isinstance(value["dir"], str):
            return cls.at(value["dir"])
        raise ValueError(
            f"invalid persistence scope {value!r}: expected 'all-in-one', "
            "'per-workspace' or { dir = \"<path>\" }"
        )


def default_state_dir() -> Path:
    """``$XDG_STATE_HOME/editstate``, else ``~/.local/state/editstate``."""
    xdg_state_home = os.environ.get("XDG_STATE_HOME")
    if xdg_state_home:
        return Path(xdg_state_home) / APP_NAME
    return Path.home() / ".local" / "state" / APP_NAME


def find_workspace(start: Path | None = None) -> Path:
    """Walk up from ``start`` (default: cwd) to the nearest workspace root.

    Falls back to ``start`` itself when no marker directory is found.
    """
    start = (start or Path.cwd()).resolve()
    for p in (start, *start.parents):
        if any((p / marker).exists() for marker in WORKSPACE_MARKERS):
            return p
    return start


def workspace_dirname(root: Path) -> str:
    """Flatten a workspace root into a single directory name.

    ``/home/user/proj`` -> ``home%user%proj``.
    """
    name = root.as_posix()
    if name.startswith("/"):
        name = name[1:]
    return name.replace("/", SEPARATOR_REPLACEMENT)


class ScopeResolver:
    """Resolve scopes against an injected state dir and workspace detector."""

    def __init__(
        self,
        state_dir: Callable[[], Path] = default_state_dir,
        workspace: Callable[[], Path] = find_workspace,
    ) -> None:
        self._state_dir = state_dir
        self._workspace = workspace

    def resolve(self, scope: PersistenceScope) -> Path:
        if scope.mode is ScopeMode.ALL_IN_ONE:
            return self._state_dir()
        if scope.mode is ScopeMode.PER_WORKSPACE:
            return self._state_dir() / workspace_dirname(self._workspace())
        if scope.dir is None:
            raise ValueError("the 'dir' scope has no directory")
        return scope.dir
