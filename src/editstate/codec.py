"""Self-describing binary record codec (no I/O).

Every record is written as its fields in declaration order, with no outer
framing. Each variable-length value carries its own length, so records encoded
independently can be concatenated and read back one after another:

- int            -> u64 little-endian
- enum variant   -> u32 little-endian
- bool           -> one byte, 0 or 1
- str / path     -> u64 length + UTF-8 bytes
- optional value -> one byte tag (0 absent, 1 present) + value
- list           -> u64 length + items

This is the fixed-width layout bincode uses, so history files written by the
original editor remain readable.
"""

from __future__ import annotations

import struct
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar

from editstate.entries import (
    FileHistoryEntry,
    Layout,
    Leaf,
    Node,
    Range,
    Selection,
    SplitEntry,
    SplitEntryLeaf,
    SplitEntryTree,
    ViewPosition,
)
from editstate.errors import DecodeError, EncodeError

T = TypeVar("T")

_U8 = struct.Struct("<B")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")

# Deepest split layout nesting accepted in either direction.
MAX_SPLIT_DEPTH = 64


# ── Primitive writer / reader ─────────────────────────────────


class Writer:
    """Accumulates encoded bytes for one or more records."""

    def __init__(self) -> None:
        self._buf = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def u8(self, value: int) -> None:
        self._buf += _U8.pack(value)

    def u32(self, value: int) -> None:
        self._buf += _U32.pack(value)

    def u64(self, value: int) -> None:
        self._buf += _U64.pack(value)

    def boolean(self, value: bool) -> None:
        self.u8(1 if value else 0)

    def string(self, value: str) -> None:
        data = value.encode("utf-8")
        self.u64(len(data))
        self._buf += data

    def path(self, value: Path) -> None:
        self.string(str(value))

    def option(self, value: T | None, write: Callable[[T], None]) -> None:
        if value is None:
            self.u8(0)
        else:
            self.u8(1)
            write(value)

    def seq(self, values: list[T], write: Callable[[T], None]) -> None:
        self.u64(len(values))
        for value in values:
            write(value)


class Reader:
    """Reads primitives from a buffer, raising DecodeError past its end."""

    def __init__(self, data: bytes) -> None:
        self._view = memoryview(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self._view) - self.offset

    def _take(self, size: int) -> memoryview:
        if size > self.remaining:
            raise DecodeError(
                f"unexpected end of data at offset {self.offset}: "
                f"need {size} bytes, have {self.remaining}"
            )
        chunk = self._view[self.offset : self.offset + size]
        self.offset += size
        return chunk

    def _unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self._take(fmt.size))[0]

    def u8(self) -> int:
        return self._unpack(_U8)

    def u32(self) -> int:
        return self._unpack(_U32)

    def u64(self) -> int:
        return self._unpack(_U64)

    def boolean(self) -> bool:
        value = self.u8()
        if value > 1:
            raise DecodeError(f"invalid bool byte {value} at offset {self.offset - 1}")
        return value == 1

    def string(self) -> str:
        size = self.u64()
        start = self.offset
        try:
            return str(self._take(size), "utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid UTF-8 string at offset {start}: {e}") from e

    def path(self) -> Path:
        return Path(self.string())

    def option(self, read: Callable[[], T]) -> T | None:
        tag = self.u8()
        if tag == 0:
            return None
        if tag == 1:
            return read()
        raise DecodeError(f"invalid option tag {tag} at offset {self.offset - 1}")

    def seq(self, read: Callable[[], T]) -> list[T]:
        size = self.u64()
        # Every element takes at least one byte; reject absurd lengths early.
        if size > self.remaining:
            raise DecodeError(f"sequence length {size} exceeds remaining data")
        return [read() for _ in range(size)]

    def variant(self, count: int) -> int:
        index = self.u32()
        if index >= count:
            raise DecodeError(f"invalid variant index {index} at offset {self.offset - 4}")
        return index


# ── Record codecs ─────────────────────────────────────────────


@dataclass(frozen=True)
class RecordCodec(Generic[T]):
    """Encode/decode one record type."""

    name: str
    write: Callable[[Writer, T], None]
    read: Callable[[Reader], T]

    def encode(self, record: T) -> bytes:
        return self.encode_all([record])

    def encode_all(self, records: Iterable[T]) -> bytes:
        writer = Writer()
        try:
            for record in records:
                self.write(writer, record)
        except (ValueError, struct.error) as e:
            raise EncodeError(f"cannot encode {self.name} record: {e}") from e
        return writer.getvalue()

    def decode(self, data: bytes) -> T:
        """Decode exactly one record; trailing bytes are an error."""
        reader = Reader(data)
        record = self.read(reader)
        if reader.remaining:
            raise DecodeError(f"{reader.remaining} trailing bytes after {self.name} record")
        return record

    def decode_sequence(self, data: bytes) -> list[T]:
        """Decode back-to-back records until the buffer is exhausted."""
        reader = Reader(data)
        records: list[T] = []
        while reader.remaining:
            records.append(self.read(reader))
        return records


def _write_view_position(w: Writer, pos: ViewPosition) -> None:
    w.u64(pos.anchor)
    w.u64(pos.horizontal_offset)
    w.u64(pos.vertical_offset)


def _read_view_position(r: Reader) -> ViewPosition:
    return ViewPosition(anchor=r.u64(), horizontal_offset=r.u64(), vertical_offset=r.u64())


def _write_visual_position(w: Writer, pos: tuple[int, int]) -> None:
    w.u32(pos[0])
    w.u32(pos[1])


def _read_visual_position(r: Reader) -> tuple[int, int]:
    return (r.u32(), r.u32())


def _write_range(w: Writer, rng: Range) -> None:
    w.u64(rng.anchor)
    w.u64(rng.head)
    w.option(rng.old_visual_position, lambda pos: _write_visual_position(w, pos))


def _read_range(r: Reader) -> Range:
    return Range(
        anchor=r.u64(),
        head=r.u64(),
        old_visual_position=r.option(lambda: _read_visual_position(r)),
    )


def _write_selection(w: Writer, selection: Selection) -> None:
    w.seq(selection.ranges, lambda rng: _write_range(w, rng))
    w.u64(selection.primary_index)


def _read_selection(r: Reader) -> Selection:
    ranges = r.seq(lambda: _read_range(r))
    primary_index = r.u64()
    if ranges and primary_index >= len(ranges):
        raise DecodeError(f"primary index {primary_index} out of {len(ranges)} ranges")
    return Selection(ranges=ranges, primary_index=primary_index)


def _write_file_entry(w: Writer, entry: FileHistoryEntry) -> None:
    w.path(entry.path)
    _write_view_position(w, entry.view_position)
    _write_selection(w, entry.selection)


def _read_file_entry(r: Reader) -> FileHistoryEntry:
    return FileHistoryEntry(
        path=r.path(),
        view_position=_read_view_position(r),
        selection=_read_selection(r),
    )


def _write_split_leaf(w: Writer, leaf: SplitEntryLeaf) -> None:
    w.path(leaf.path)
    _write_view_position(w, leaf.view_position)
    _write_selection(w, leaf.selection)
    w.boolean(leaf.focus)


def _read_split_leaf(r: Reader) -> SplitEntryLeaf:
    return SplitEntryLeaf(
        path=r.path(),
        view_position=_read_view_position(r),
        selection=_read_selection(r),
        focus=r.boolean(),
    )


_LAYOUTS = list(Layout)


def _write_tree(w: Writer, tree: SplitEntryTree, depth: int = 0) -> None:
    if depth > MAX_SPLIT_DEPTH:
        raise ValueError(f"split layout nested deeper than {MAX_SPLIT_DEPTH}")
    if isinstance(tree, Leaf):
        w.u32(0)
        w.option(tree.data, lambda leaf: _write_split_leaf(w, leaf))
    elif isinstance(tree, Node):
        w.u32(1)
        w.u32(tree.layout.value)
        w.seq(tree.children, lambda child: _write_tree(w, child, depth + 1))
    else:
        raise TypeError(f"not a split tree: {tree!r}")


def _read_tree(r: Reader, depth: int = 0) -> SplitEntryTree:
    if depth > MAX_SPLIT_DEPTH:
        raise DecodeError(f"split layout nested deeper than {MAX_SPLIT_DEPTH}")
    if r.variant(2) == 0:
        return Leaf(data=r.option(lambda: _read_split_leaf(r)))
    layout = _LAYOUTS[r.variant(len(_LAYOUTS))]
    return Node(layout=layout, children=r.seq(lambda: _read_tree(r, depth + 1)))


def _write_split_entry(w: Writer, entry: SplitEntry) -> None:
    w.string(entry.name)
    _write_tree(w, entry.tree)


def _read_split_entry(r: Reader) -> SplitEntry:
    return SplitEntry(name=r.string(), tree=_read_tree(r))


TEXT: RecordCodec[str] = RecordCodec("text", Writer.string, Reader.string)
FILE_HISTORY_ENTRY: RecordCodec[FileHistoryEntry] = RecordCodec(
    "file history entry", _write_file_entry, _read_file_entry
)
SPLIT_ENTRY: RecordCodec[SplitEntry] = RecordCodec(
    "split entry", _write_split_entry, _read_split_entry
)
