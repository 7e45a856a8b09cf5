"""Record types persisted by the store.

Command and search history, as well as clipboard values, are plain ``str``.
File positions and split layouts get the dataclasses below.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass
class ViewPosition:
    """Scroll position of a view over a document."""

    anchor: int = 0
    horizontal_offset: int = 0
    vertical_offset: int = 0


@dataclass
class Range:
    """A single selection range; ``anchor == head`` is a cursor."""

    anchor: int
    head: int
    old_visual_position: tuple[int, int] | None = None


@dataclass
class Selection:
    ranges: list[Range] = field(default_factory=lambda: [Range(0, 0)])
    primary_index: int = 0

    @classmethod
    def point(cls, pos: int) -> Selection:
        return cls(ranges=[Range(pos, pos)])


@dataclass
class FileHistoryEntry:
    """Last known viewport and selection for a file."""

    path: Path
    view_position: ViewPosition = field(default_factory=ViewPosition)
    selection: Selection = field(default_factory=Selection)


# ── Split layouts ─────────────────────────────────────────────


class Layout(Enum):
    HORIZONTAL = 0
    VERTICAL = 1


@dataclass
class SplitEntryLeaf:
    """Document shown in one split, and whether it held focus."""

    path: Path
    view_position: ViewPosition = field(default_factory=ViewPosition)
    selection: Selection = field(default_factory=Selection)
    focus: bool = False


@dataclass
class Leaf:
    """Tree leaf; ``data`` is None for a split without a persisted document."""

    data: SplitEntryLeaf | None = None


@dataclass
class Node:
    layout: Layout
    children: list[SplitEntryTree] = field(default_factory=list)

    def leaves(self) -> Iterator[Leaf]:
        """Walk the leaves under this node depth-first, left to right."""
        for child in self.children:
            if isinstance(child, Leaf):
                yield child
            else:
                yield from child.leaves()


SplitEntryTree = Leaf | Node


@dataclass
class SplitEntry:
    """A named snapshot of a window split layout."""

    name: str
    tree: SplitEntryTree

    def leaves(self) -> Iterator[Leaf]:
        if isinstance(self.tree, Leaf):
            yield self.tree
        else:
            yield from self.tree.leaves()

    def focused(self) -> SplitEntryLeaf | None:
        for leaf in self.leaves():
            if leaf.data is not None and leaf.data.focus:
                return leaf.data
        return None
