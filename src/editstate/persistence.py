"""Category router: one history file per category per scope directory.

Each category has a fixed filename and record type. Reads and writes resolve
the category's scope to a directory, join the filename and delegate to the
generic store in :mod:`editstate.store`.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from editstate import store
from editstate.codec import FILE_HISTORY_ENTRY, SPLIT_ENTRY, TEXT, RecordCodec
from editstate.config import EditstateConfig, PersistenceConfig
from editstate.entries import FileHistoryEntry, SplitEntry
from editstate.scope import ScopeResolver, find_workspace

logger = logging.getLogger(__name__)


class Category(Enum):
    COMMANDS = "commands"
    SEARCH = "search"
    FILES = "files"
    CLIPBOARD = "clipboard"
    SPLITS = "splits"


class CategoryInfo(NamedTuple):
    filename: str
    codec: RecordCodec


CATEGORY_TABLE: dict[Category, CategoryInfo] = {
    Category.COMMANDS: CategoryInfo("command_history", TEXT),
    Category.SEARCH: CategoryInfo("search_history", TEXT),
    Category.FILES: CategoryInfo("file_history", FILE_HISTORY_ENTRY),
    Category.CLIPBOARD: CategoryInfo("clipboard", TEXT),
    Category.SPLITS: CategoryInfo("splits", SPLIT_ENTRY),
}

# Registers whose contents are recorded as line history.
REGISTER_CATEGORIES = {":": Category.COMMANDS, "/": Category.SEARCH}


class Persistence:
    """Push / read / trim history per category."""

    def __init__(self, config: PersistenceConfig, resolver: ScopeResolver | None = None) -> None:
        self.config = config
        self.resolver = resolver or ScopeResolver()

    @classmethod
    def from_config(cls, config: EditstateConfig) -> Persistence:
        state_dir = config.state_dir
        return cls(config.persistence, ScopeResolver(lambda: state_dir, find_workspace))

    # ── Settings ─────────────────────────────────────────────

    def enabled(self, category: Category) -> bool:
        return self.config.enabled(category)

    def max_entries(self, category: Category) -> int:
        return self.config.max_entries(category)

    def exclude(self, path: str | Path) -> bool:
        return self.config.exclude(path)

    def file_path(self, category: Category) -> Path:
        """Resolve the category's history file, creating its directory."""
        directory = self.resolver.resolve(self.config.scope(category))
        path = directory / CATEGORY_TABLE[category].filename
        store.ensure_parent_dir(path)
        return path

    # ── Generic per-category operations ──────────────────────

    def _push(self, category: Category, record) -> None:
        store.push_history(self.file_path(category), record, CATEGORY_TABLE[category].codec)

    def _read(self, category: Category) -> list:
        return store.read_history(self.file_path(category), CATEGORY_TABLE[category].codec)

    def _trim(self, category: Category) -> int:
        return store.trim_history(
            self.file_path(category),
            self.max_entries(category),
            CATEGORY_TABLE[category].codec,
        )

    # ── File history ─────────────────────────────────────────

    def push_file_history(self, entry: FileHistoryEntry) -> None:
        if self.exclude(entry.path):
            logger.debug("Not recording excluded file %s", entry.path)
            return
        self._push(Category.FILES, entry)

    def read_file_history(self) -> list[FileHistoryEntry]:
        return self._read(Category.FILES)

    def trim_file_history(self) -> int:
        return self._trim(Category.FILES)

    # ── Command / search history ─────────────────────────────

    def push_reg_history(self, register: str, line: str) -> None:
        """Record ``line`` for the ``:`` or ``/`` register; other registers are ignored."""
        category = REGISTER_CATEGORIES.get(register)
        if category is None:
            return
        self._push(category, line)

    def push_command_history(self, line: str) -> None:
        self._push(Category.COMMANDS, line)

    def push_search_history(self, line: str) -> None:
        self._push(Category.SEARCH, line)

    def read_command_history(self) -> list[str]:
        """Command lines, most recent first."""
        history = self._read(Category.COMMANDS)
        history.reverse()
        return history

    def read_search_history(self) -> list[str]:
        """Search lines, most recent first."""
        history = self._read(Category.SEARCH)
        history.reverse()
        return history

    def trim_command_history(self) -> int:
        return self._trim(Category.COMMANDS)

    def trim_search_history(self) -> int:
        return self._trim(Category.SEARCH)

    # ── Clipboard ────────────────────────────────────────────

    def write_clipboard_file(self, values: list[str]) -> None:
        """Replace the persisted clipboard with ``values``."""
        store.write_history(self.file_path(Category.CLIPBOARD), values, TEXT)

    def read_clipboard_file(self) -> list[str]:
        return self._read(Category.CLIPBOARD)

    # ── Split layouts ────────────────────────────────────────

    def push_split_entry(self, entry: SplitEntry) -> None:
        """Append a layout snapshot; earlier snapshots with the same name stay until trimmed."""
        self._push(Category.SPLITS, entry)

    def read_split_file(self) -> list[SplitEntry]:
        return self._read(Category.SPLITS)

    def trim_split_file(self) -> int:
        """Collapse stored layouts by name, keeping at most ``max_entries`` names.

        Entries are scanned oldest first. A name seen again replaces its earlier
        snapshot. The scan stops at the first entry that would add a name past
        the cap, so anything stored after that point is dropped, including newer
        snapshots of names already kept. Returns the number of entries dropped.
        """
        path = self.file_path(Category.SPLITS)
        entries = store.read_history(path, SPLIT_ENTRY)
        max_entries = self.max_entries(Category.SPLITS)
        if len(entries) < max_entries:
            return 0

        splits: dict[str, SplitEntry] = {}
        for entry in entries:
            if entry.name not in splits and len(splits) == max_entries:
                break
            splits[entry.name] = entry

        store.write_history(path, splits.values(), SPLIT_ENTRY)
        dropped = len(entries) - len(splits)
        logger.debug("Collapsed %d split entries into %d in %s", len(entries), len(splits), path)
        return dropped
