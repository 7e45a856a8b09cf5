"""Append / read / rewrite / trim over a single history file.

A history file is a back-to-back run of records of one type, with no header.
Appends only ever touch the end of the file; trim is the single operation that
rewrites it, and only when called explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TypeVar

from editstate.codec import RecordCodec
from editstate.errors import DecodeError, EncodeError, StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def ensure_parent_dir(path: Path) -> None:
    """Create the parent directory of ``path`` if missing. Idempotent."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreError(f"cannot create directory {path.parent}: {e}") from e


def push_history(path: Path, record: T, codec: RecordCodec[T]) -> None:
    """Append one record to the end of ``path``."""
    # Encode before opening so a bad record never leaves a partial write.
    try:
        data = codec.encode(record)
    except EncodeError as e:
        raise EncodeError(f"not appending to {path}: {e}") from e
    try:
        with open(path, "ab") as f:
            f.write(data)
    except OSError as e:
        raise StoreError(f"cannot append to {path}: {e}") from e


def read_history(path: Path, codec: RecordCodec[T]) -> list[T]:
    """Return every record in ``path``, oldest first. Missing file -> []."""
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        return []
    except OSError as e:
        raise StoreError(f"cannot read {path}: {e}") from e

    try:
        return codec.decode_sequence(data)
    except DecodeError as e:
        raise DecodeError(f"corrupt {codec.name} history in {path}: {e}") from e


def write_history(path: Path, records: Iterable[T], codec: RecordCodec[T]) -> None:
    """Replace the contents of ``path`` with exactly ``records``."""
    try:
        data = codec.encode_all(records)
    except EncodeError as e:
        raise EncodeError(f"not rewriting {path}: {e}") from e
    try:
        path.write_bytes(data)
    except OSError as e:
        raise StoreError(f"cannot write {path}: {e}") from e


def trim_history(path: Path, max_entries: int, codec: RecordCodec[T]) -> int:
    """Keep only the newest ``max_entries`` records in ``path``.

    The file is rewritten only when it holds more than ``max_entries`` records;
    otherwise it is left byte-for-byte untouched. Returns the number of records
    dropped.
    """
    history = read_history(path, codec)
    if len(history) <= max_entries:
        return 0

    dropped = len(history) - max_entries
    write_history(path, history[dropped:], codec)
    logger.debug("Trimmed %d old %s records from %s", dropped, codec.name, path)
    return dropped
