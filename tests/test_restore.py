"""Tests for restoring persisted state at startup."""

from pathlib import Path

import pytest

from editstate.codec import TEXT
from editstate.config import CategoryOptions, PersistenceConfig
from editstate.entries import FileHistoryEntry, Leaf, Selection, SplitEntry, ViewPosition
from editstate.persistence import Persistence
from editstate.restore import RestoredState, file_positions, restore_state, restore_state_async
from editstate.scope import PersistenceScope, ScopeResolver


def _persistence(hist_dir: Path, enabled: bool = True, **overrides) -> Persistence:
    config = PersistenceConfig(
        all=CategoryOptions(enabled=enabled, max_entries=2, scope=PersistenceScope.at(hist_dir)),
        **overrides,
    )
    return Persistence(config, ScopeResolver(state_dir=lambda: hist_dir))


@pytest.fixture
def persistence(tmp_path: Path) -> Persistence:
    p = _persistence(tmp_path)
    for line in ["wq", "w", "q"]:
        p.push_command_history(line)
    for line in ["foo", "bar"]:
        p.push_search_history(line)
    p.push_file_history(FileHistoryEntry(Path("/a.py"), ViewPosition(anchor=1), Selection.point(5)))
    p.write_clipboard_file(["yanked\n"])
    p.push_split_entry(SplitEntry("main", Leaf(None)))
    return p


class TestRestoreState:
    def test_restores_every_category(self, persistence: Persistence):
        state = restore_state(persistence)
        assert state.command_history == ["q", "w"]
        assert state.search_history == ["bar", "foo"]
        assert [e.path for e in state.file_history] == [Path("/a.py")]
        assert state.clipboard == ["yanked\n"]
        assert [s.name for s in state.splits] == ["main"]

    def test_trims_on_restore(self, persistence: Persistence):
        restore_state(persistence)
        assert persistence.read_command_history() == ["q", "w"]

    def test_disabled_restores_nothing(self, tmp_path: Path):
        p = _persistence(tmp_path, enabled=False)
        p.push_command_history("w")
        assert restore_state(p) == RestoredState()

    def test_disabled_category_only(self, tmp_path: Path):
        p = _persistence(
            tmp_path,
            clipboard=CategoryOptions(enabled=False, scope=PersistenceScope.at(tmp_path)),
        )
        p.write_clipboard_file(["secret"])
        p.push_search_history("kept")
        state = restore_state(p)
        assert state.clipboard == []
        assert state.search_history == ["kept"]

    def test_corrupt_category_restores_empty(self, persistence: Persistence, tmp_path: Path, caplog):
        (tmp_path / "search_history").write_bytes(b"\x09\x00\x00\x00\x00\x00\x00\x00ab")
        with caplog.at_level("WARNING", logger="editstate.restore"):
            state = restore_state(persistence)
        assert state.search_history == []
        assert state.command_history == ["q", "w"]
        assert "search" in caplog.text

    def test_deeply_nested_splits_restore_empty(self, tmp_path: Path, caplog):
        p = _persistence(tmp_path)
        p.push_command_history("w")
        node = (1).to_bytes(4, "little") + (0).to_bytes(4, "little") + (1).to_bytes(8, "little")
        (tmp_path / "splits").write_bytes(TEXT.encode("x") + node * 2000)
        with caplog.at_level("WARNING", logger="editstate.restore"):
            state = restore_state(p)
        assert state.splits == []
        assert state.command_history == ["w"]
        assert "splits" in caplog.text

    async def test_async(self, persistence: Persistence):
        state = await restore_state_async(persistence)
        assert state.command_history == ["q", "w"]


class TestFilePositions:
    def test_latest_entry_per_path_wins(self):
        old = FileHistoryEntry(Path("/a.py"), ViewPosition(anchor=1))
        other = FileHistoryEntry(Path("/b.py"))
        new = FileHistoryEntry(Path("/a.py"), ViewPosition(anchor=9))
        positions = file_positions([old, other, new])
        assert positions == {Path("/a.py"): new, Path("/b.py"): other}

    def test_empty(self):
        assert file_positions([]) == {}
