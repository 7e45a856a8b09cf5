"""Tests for scope resolution and workspace detection."""

from pathlib import Path

import pytest

from editstate.scope import (
    PersistenceScope,
    ScopeMode,
    ScopeResolver,
    default_state_dir,
    find_workspace,
    workspace_dirname,
)


@pytest.fixture
def resolver(tmp_path: Path) -> ScopeResolver:
    return ScopeResolver(
        state_dir=lambda: tmp_path / "state",
        workspace=lambda: Path("/home/user/projects/editor"),
    )


class TestResolve:
    def test_all_in_one(self, resolver: ScopeResolver, tmp_path: Path):
        assert resolver.resolve(PersistenceScope.all_in_one()) == tmp_path / "state"

    def test_per_workspace(self, resolver: ScopeResolver, tmp_path: Path):
        assert resolver.resolve(PersistenceScope.per_workspace()) == (
            tmp_path / "state" / "home%user%projects%editor"
        )

    def test_dir_is_verbatim(self, resolver: ScopeResolver, tmp_path: Path):
        target = tmp_path / "elsewhere"
        assert resolver.resolve(PersistenceScope.at(target)) == target

    def test_resolve_does_not_create(self, resolver: ScopeResolver, tmp_path: Path):
        resolver.resolve(PersistenceScope.all_in_one())
        assert not (tmp_path / "state").exists()

    def test_dir_scope_without_directory(self, resolver: ScopeResolver, tmp_path: Path):
        scope = PersistenceScope.at(tmp_path)
        object.__setattr__(scope, "dir", None)
        with pytest.raises(ValueError, match="no directory"):
            resolver.resolve(scope)


class TestWorkspaceDirname:
    def test_strips_leading_separator(self):
        assert workspace_dirname(Path("/home/user/proj")) == "home%user%proj"

    def test_root(self):
        assert workspace_dirname(Path("/")) == ""

    def test_relative(self):
        assert workspace_dirname(Path("a/b")) == "a%b"


class TestScopeParse:
    def test_all_in_one(self):
        assert PersistenceScope.parse("all-in-one") == PersistenceScope.all_in_one()

    def test_per_workspace(self):
        assert PersistenceScope.parse("per-workspace").mode is ScopeMode.PER_WORKSPACE

    def test_dir(self):
        scope = PersistenceScope.parse({"dir": "/tmp/hist"})
        assert scope.mode is ScopeMode.DIR
        assert scope.dir == Path("/tmp/hist")

    @pytest.mark.parametrize("value", ["everywhere", 3, {"path": "/x"}, {"dir": 1}])
    def test_invalid(self, value):
        with pytest.raises(ValueError, match="invalid persistence scope"):
            PersistenceScope.parse(value)

    def test_dir_requires_path(self):
        with pytest.raises(ValueError):
            PersistenceScope(ScopeMode.DIR)
        with pytest.raises(ValueError):
            PersistenceScope(ScopeMode.ALL_IN_ONE, Path("/x"))


class TestDefaultStateDir:
    def test_xdg(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
        assert default_state_dir() == tmp_path / "editstate"

    def test_fallback(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("XDG_STATE_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_state_dir() == tmp_path / ".local" / "state" / "editstate"


class TestFindWorkspace:
    def test_nearest_marker(self, tmp_path: Path):
        (tmp_path / "repo" / ".git").mkdir(parents=True)
        nested = tmp_path / "repo" / "src" / "pkg"
        nested.mkdir(parents=True)
        assert find_workspace(nested) == (tmp_path / "repo").resolve()

    def test_inner_marker_wins(self, tmp_path: Path):
        (tmp_path / "outer" / ".git").mkdir(parents=True)
        (tmp_path / "outer" / "inner" / ".editstate").mkdir(parents=True)
        start = tmp_path / "outer" / "inner"
        assert find_workspace(start) == start.resolve()

    def test_defaults_to_cwd(self, tmp_path: Path, monkeypatch):
        (tmp_path / ".jj").mkdir()
        monkeypatch.chdir(tmp_path)
        assert find_workspace() == tmp_path.resolve()
