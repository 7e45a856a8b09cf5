"""editstate — persisted editor history across restarts.

Layout (one directory per scope, one file per category):
    ~/.local/state/editstate/          # all-in-one scope
    ├── command_history                # ":" lines, appended
    ├── search_history                 # "/" lines, appended
    ├── file_history                   # cursor + selection per visited file
    ├── clipboard                      # register contents, rewritten whole
    ├── splits                         # named window layouts
    └── home%user%project/             # per-workspace scope, same files

Files are back-to-back binary records without header or index; see
:mod:`editstate.codec`.
"""

from editstate.config import CategoryOptions, EditstateConfig, PersistenceConfig, load_config
from editstate.errors import DecodeError, EncodeError, StoreError
from editstate.persistence import Category, Persistence
from editstate.scope import PersistenceScope, ScopeResolver

__all__ = [
    "Category",
    "CategoryOptions",
    "DecodeError",
    "EditstateConfig",
    "EncodeError",
    "Persistence",
    "PersistenceConfig",
    "PersistenceScope",
    "ScopeResolver",
    "StoreError",
    "load_config",
]
