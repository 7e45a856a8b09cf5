"""Exceptions raised by the history store."""

from __future__ import annotations


class StoreError(Exception):
    """A history file could not be read, written or created."""


class DecodeError(StoreError):
    """A history file holds bytes that are not a valid record sequence."""


class EncodeError(StoreError):
    """A record cannot be represented in the on-disk format."""
