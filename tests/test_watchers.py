"""Tests for watch patterns, the watchfiles watcher and the watcher registry."""

import asyncio
from pathlib import Path

import pytest
from watchfiles import Change

from conftest import wait_for
from notify_on_file.engine import ActionExecutor, SaveOriginTracker, StatusItemCache
from notify_on_file.models import FileEventType, WatcherDeclaration
from notify_on_file.variables import PlaceholderExpander, VariableResolver
from notify_on_file.watchers import (
    WatcherRegistry,
    WatchfilesWatcher,
    WatchPattern,
    expand_braces,
    glob_match,
)


def declare(**data) -> WatcherDeclaration:
    return WatcherDeclaration.model_validate(data)


class TestWatchPattern:
    """Tests for glob matching."""

    def test_expand_braces(self):
        """Test expanding {a,b} alternatives."""
        assert expand_braces("*.{js,ts}") == ["*.js", "*.ts"]
        assert expand_braces("{a,b}/*.{x,y}") == ["a/*.x", "a/*.y", "b/*.x", "b/*.y"]
        assert expand_braces("*.md") == ["*.md"]

    def test_name_only_pattern_matches_anywhere(self):
        """Test that a pattern without "/" matches the file name."""
        assert glob_match("app.js", "*.js")
        assert glob_match("src/deep/app.js", "*.js")
        assert not glob_match("src/app.ts", "*.js")

    def test_double_star(self):
        """Test that "**/" matches at the root and below."""
        assert glob_match("notes.md", "**/*.md")
        assert glob_match("a/b/notes.md", "**/*.md")
        assert not glob_match("a/b/notes.txt", "**/*.md")

    def test_path_pattern(self):
        """Test a pattern anchored at the root."""
        assert glob_match("src/app.js", "src/*.js")
        assert not glob_match("lib/app.js", "src/*.js")

    def test_matches_relative_to_roots(self):
        """Test that files are matched relative to the root they live under."""
        pattern = WatchPattern(glob="src/*.js", roots=[Path("/a"), Path("/b")])

        assert pattern.matches(Path("/b/src/app.js"))
        assert not pattern.matches(Path("/c/src/app.js"))
        assert not pattern.matches(Path("/a"))

    def test_anchored_star_stays_in_segment(self):
        """Test that an anchored "*" does not cross "/"."""
        assert glob_match("app.js", "*.js", anchored=True)
        assert not glob_match("src/app.js", "*.js", anchored=True)
        assert glob_match("src/app.js", "src/?pp.js", anchored=True)
        assert not glob_match("src/lib/app.js", "src/*.js", anchored=True)

    def test_anchored_double_star(self):
        """Test that an anchored "**/" spans zero or more directories."""
        assert glob_match("app.js", "**/*.js", anchored=True)
        assert glob_match("src/lib/app.js", "**/*.{js,ts}", anchored=True)
        assert glob_match("src/lib/app.js", "src/**", anchored=True)
        assert not glob_match("lib/app.js", "src/**/*.js", anchored=True)

    def test_anchored_pattern_matches_direct_children(self):
        """Test WatchPattern.matches with an anchored glob."""
        pattern = WatchPattern(glob="*.zip", roots=[Path("/build")], anchored=True)

        assert pattern.matches(Path("/build/out.zip"))
        assert not pattern.matches(Path("/build/nested/out.zip"))


class TestWatchfilesWatcher:
    """Tests for filtering in the watchfiles-backed watcher."""

    def test_emit_filters(self, project):
        """Test the glob and ignore filters."""
        watcher = WatchfilesWatcher(
            WatchPattern(glob="*.js", roots=[project]), ignore_delete=True
        )
        created, deleted = [], []
        watcher.on_did_create(created.append)
        watcher.on_did_delete(deleted.append)

        watcher.emit(FileEventType.CREATED, project / "src" / "app.js")
        watcher.emit(FileEventType.CREATED, project / "README.md")
        watcher.emit(FileEventType.CREATED, project / "src")
        watcher.emit(FileEventType.DELETED, project / "src" / "app.js")

        assert created == [project / "src" / "app.js"]
        assert deleted == []

    def test_no_events_after_dispose(self, project):
        """Test that a disposed watcher stays silent."""
        watcher = WatchfilesWatcher(WatchPattern(glob="*.js", roots=[project]))
        changed = []
        watcher.on_did_change(changed.append)

        watcher.dispose()
        watcher.emit(FileEventType.CHANGED, project / "src" / "app.js")

        assert changed == []

    @pytest.mark.asyncio
    async def test_missing_root_not_started(self, tmp_path):
        """Test that nothing is watched when every root is missing."""
        watcher = WatchfilesWatcher(WatchPattern(glob="*", roots=[tmp_path / "nope"]))

        watcher.start()

        assert not watcher.is_running

    @pytest.mark.asyncio
    async def test_reports_real_files(self, project):
        """Test a file created on disk reaching a listener."""
        watcher = WatchfilesWatcher(
            WatchPattern(glob="**/*.txt", roots=[project]), step_ms=10, debounce_ms=50
        )
        created = []
        watcher.on_did_create(created.append)
        watcher.start()
        try:
            assert watcher.is_running
            # awatch needs a moment to register with the OS
            await asyncio.sleep(0.3)
            target = project / "new.txt"
            target.write_text("x")
            await wait_for(lambda: target in created, timeout=5.0)
        finally:
            watcher.dispose()

    @pytest.mark.asyncio
    async def test_dotfiles_not_filtered(self, project, monkeypatch):
        """Test that awatch runs without its default filter so "**/.*" can match."""
        calls = []

        async def fake_awatch(*roots, **kwargs):
            calls.append(kwargs)
            yield {(Change.added, str(project / ".env"))}

        monkeypatch.setattr("notify_on_file.watchers.file_watcher.awatch", fake_awatch)
        watcher = WatchfilesWatcher(WatchPattern(glob="**/.*", roots=[project]))
        created = []
        watcher.on_did_create(created.append)
        watcher.start()
        try:
            await wait_for(lambda: created)
        finally:
            watcher.dispose()

        assert calls[0]["watch_filter"] is None
        assert created == [project / ".env"]


# -------------------------------------------------------------------------
# Registry
# -------------------------------------------------------------------------

@pytest.fixture
def tracker(clock):
    return SaveOriginTracker(window_ms=500, clock=clock)


@pytest.fixture
def registry(source, tracker, ui, documents, workspace):
    expander = PlaceholderExpander(
        VariableResolver(workspace, environ={"HOME": "/home/me"}, platform="linux"),
        report=ui.show_error_message,
    )
    executor = ActionExecutor(ui, documents, expander, StatusItemCache(ui))
    return WatcherRegistry(source, tracker, executor, expander, workspace)


class TestWatcherRegistry:
    """Tests for building subscriptions from declarations."""

    @pytest.mark.asyncio
    async def test_subscribes_only_declared_types(self, registry, source):
        """Test that event types without an action list are ignored."""
        await registry.reload([declare(onCreate=[], onDelete=[{"notify": "gone"}])])

        watcher = source.watchers[0]
        assert not watcher.ignore_create
        assert watcher.ignore_change
        assert not watcher.ignore_delete
        assert watcher.listeners[FileEventType.CHANGED] == []

    @pytest.mark.asyncio
    async def test_path_scopes_glob(self, registry, source, project):
        """Test that path is expanded once and becomes the only root."""
        await registry.reload([
            declare(path="${workspaceFolder}/src", globPattern="*.js"),
            declare(path="${userHome}${pathSeparator}build", globPattern="*.zip"),
            declare(globPattern="**/*.md"),
        ])

        assert source.watchers[0].pattern.roots == [project / "src"]
        assert source.watchers[1].pattern.roots == [Path("/home/me/build")]
        assert source.watchers[2].pattern.roots == [project]
        assert source.watchers[0].pattern.anchored
        assert not source.watchers[2].pattern.anchored
        assert source.watchers[0].pattern.matches(project / "src" / "app.js")
        assert not source.watchers[0].pattern.matches(project / "src" / "lib" / "util.js")

    @pytest.mark.asyncio
    async def test_reload_disposes_previous(self, registry, source):
        """Test that every reload tears down the old generation first."""
        await registry.reload([declare(), declare()])
        first = list(source.watchers)

        count = await registry.reload([])

        assert count == 0
        assert len(registry) == 0
        assert all(w.disposed for w in first)
        assert source.live == []

    @pytest.mark.asyncio
    async def test_dispose(self, registry, source):
        """Test shutting the registry down."""
        await registry.reload([declare(onChange=[])])

        registry.dispose()

        assert source.live == []

    @pytest.mark.asyncio
    async def test_change_within_window_dropped(self, registry, source, tracker, ui, project):
        """Test that an editor save is ignored when triggerOnVSCodeSave is false."""
        path = project / "src" / "app.js"
        await registry.reload([declare(
            triggerOnVSCodeSave=False,
            onChange=[{"showStatusBarItem": "changed", "text": "${fileBasename}"}],
        )])

        tracker.mark(path)
        source.watchers[0].fire(FileEventType.CHANGED, path)
        await registry.executor.drain()

        assert ui.get_status_item("changed") is None

    @pytest.mark.asyncio
    async def test_change_after_window_runs(self, registry, source, tracker, clock, ui, project):
        """Test that the same change counts as external once the window passed."""
        path = project / "src" / "app.js"
        await registry.reload([declare(
            triggerOnVSCodeSave=False,
            onChange=[{"showStatusBarItem": "changed", "text": "${fileBasename}"}],
        )])

        tracker.mark(path)
        clock.advance(0.6)
        source.watchers[0].fire(FileEventType.CHANGED, path)
        await registry.executor.drain()

        assert ui.get_status_item("changed").text == "app.js"

    @pytest.mark.asyncio
    async def test_external_change_dropped(self, registry, source, ui, project):
        """Test triggerOnExternalSave: false."""
        await registry.reload([declare(
            triggerOnExternalSave=False,
            onChange=[{"showStatusBarItem": "changed"}],
        )])

        source.watchers[0].fire(FileEventType.CHANGED, project / "src" / "app.js")
        await registry.executor.drain()

        assert ui.get_status_item("changed") is None

    @pytest.mark.asyncio
    async def test_create_and_delete_dispatch(self, registry, source, ui, project):
        """Test create and delete events reaching their action lists."""
        path = project / "dist" / "bundle.js"
        await registry.reload([declare(
            onCreate=[{"showStatusBarItem": "build", "text": "Built ${relativeFile}"}],
            onDelete=[{"removeStatusBarItem": "build"}],
        )])
        watcher = source.watchers[0]

        watcher.fire(FileEventType.CREATED, path)
        await registry.executor.drain()
        assert ui.get_status_item("build").text == "Built dist/bundle.js"

        watcher.fire(FileEventType.DELETED, path)
        await registry.executor.drain()
        assert ui.get_status_item("build") is None

    @pytest.mark.asyncio
    async def test_old_generation_silent_after_reload(self, registry, source, ui, project):
        """Test that a disposed subscription no longer runs actions."""
        await registry.reload([declare(onCreate=[{"showStatusBarItem": "old"}])])
        old = source.watchers[0]
        await registry.reload([declare(onCreate=[{"showStatusBarItem": "new"}])])

        old.fire(FileEventType.CREATED, project / "a.js")
        source.watchers[1].fire(FileEventType.CREATED, project / "a.js")
        await registry.executor.drain()

        assert ui.get_status_item("old") is None
        assert ui.get_status_item("new").visible

    @pytest.mark.asyncio
    async def test_to_dict(self, registry, project):
        """Test describing the active watchers."""
        await registry.reload([declare(globPattern="*.py", onChange=[])])

        assert registry.subscriptions[0].to_dict() == {
            "glob": "*.py",
            "roots": [str(project)],
            "events": ["changed"],
            "trigger_on_vscode_save": True,
            "trigger_on_external_save": True,
        }
