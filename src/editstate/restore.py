"""Startup restore: trim each enabled category, then load it.

A category that cannot be read (I/O error, corrupt file) comes back empty and is
logged; the other categories are restored independently.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

from editstate.entries import FileHistoryEntry, SplitEntry
from editstate.errors import StoreError
from editstate.persistence import Category, Persistence

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RestoredState:
    """Everything persisted from earlier sessions, ready for the editor."""

    command_history: list[str] = field(default_factory=list)  # newest first
    search_history: list[str] = field(default_factory=list)  # newest first
    file_history: list[FileHistoryEntry] = field(default_factory=list)
    clipboard: list[str] = field(default_factory=list)
    splits: list[SplitEntry] = field(default_factory=list)


def _restore(
    persistence: Persistence,
    category: Category,
    trim: Callable[[], int] | None,
    read: Callable[[], list[T]],
) -> list[T]:
    if not persistence.enabled(category):
        return []
    try:
        if trim is not None:
            trim()
        return read()
    except StoreError as e:
        logger.warning("Starting with empty %s history: %s", category.value, e)
        return []


def restore_state(persistence: Persistence) -> RestoredState:
    p = persistence
    return RestoredState(
        command_history=_restore(p, Category.COMMANDS, p.trim_command_history, p.read_command_history),
        search_history=_restore(p, Category.SEARCH, p.trim_search_history, p.read_search_history),
        file_history=_restore(p, Category.FILES, p.trim_file_history, p.read_file_history),
        clipboard=_restore(p, Category.CLIPBOARD, None, p.read_clipboard_file),
        splits=_restore(p, Category.SPLITS, p.trim_split_file, p.read_split_file),
    )


async def restore_state_async(persistence: Persistence) -> RestoredState:
    """Run :func:`restore_state` in a worker thread."""
    return await asyncio.to_thread(restore_state, persistence)


def file_positions(entries: list[FileHistoryEntry]) -> dict[Path, FileHistoryEntry]:
    """Latest entry per path, for reopening files where they were left."""
    return {entry.path: entry for entry in entries}
