"""Shared fixtures: an in-memory file event source and a headless host."""

import asyncio
from pathlib import Path

import pytest

from notify_on_file.host import FileDocumentStore, HeadlessUI, Workspace, WorkspaceFolder
from notify_on_file.host.base import (
    Disposable,
    FileEventSource,
    FileSystemWatcher,
    SettingsChangeEvent,
    SettingsSource,
    subscribe,
)
from notify_on_file.models import FileEventType


# -------------------------------------------------------------------------
# Fakes
# -------------------------------------------------------------------------

class FakeWatcher(FileSystemWatcher):
    """A watcher whose events are fired by the test."""

    def __init__(self, pattern, ignore_create, ignore_change, ignore_delete):
        self.pattern = pattern
        self.ignore_create = ignore_create
        self.ignore_change = ignore_change
        self.ignore_delete = ignore_delete
        self.disposed = False
        self.listeners = {event_type: [] for event_type in FileEventType}

    def on_did_create(self, listener) -> Disposable:
        return subscribe(self.listeners[FileEventType.CREATED], listener)

    def on_did_change(self, listener) -> Disposable:
        return subscribe(self.listeners[FileEventType.CHANGED], listener)

    def on_did_delete(self, listener) -> Disposable:
        return subscribe(self.listeners[FileEventType.DELETED], listener)

    def dispose(self) -> None:
        self.disposed = True

    def fire(self, event_type: FileEventType, path: Path) -> None:
        if self.disposed:
            return
        for listener in list(self.listeners[event_type]):
            listener(path)


class FakeEventSource(FileEventSource):
    """Records every watcher it creates."""

    def __init__(self):
        self.watchers: list[FakeWatcher] = []

    def create_watcher(self, pattern, ignore_create=False, ignore_change=False, ignore_delete=False):
        watcher = FakeWatcher(pattern, ignore_create, ignore_change, ignore_delete)
        self.watchers.append(watcher)
        return watcher

    @property
    def live(self) -> list[FakeWatcher]:
        return [w for w in self.watchers if not w.disposed]


class DictSettings(SettingsSource):
    """Settings held in a dict; update() notifies listeners."""

    def __init__(self, data: dict = None):
        self.data = data or {}
        self.error = None
        self._listeners = []

    def get_section(self, section: str) -> dict:
        return self.data.get(section) or {}

    def on_did_change(self, listener) -> Disposable:
        return subscribe(self._listeners, listener)

    async def update(self, section: str, value) -> None:
        self.data[section] = value
        for listener in list(self._listeners):
            await listener(SettingsChangeEvent({section}))


class FakeClock:
    """A monotonic clock the test moves forward by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def wait_for(condition, timeout: float = 2.0) -> None:
    """Poll until condition() is true."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(0.01)


# -------------------------------------------------------------------------
# Fixtures
# -------------------------------------------------------------------------

@pytest.fixture
def project(tmp_path):
    """A project folder with a source file."""
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.js").write_text("console.log('hi');\n")
    return root


@pytest.fixture
def workspace(project):
    return Workspace([WorkspaceFolder(name="proj", root=project)])


@pytest.fixture
def ui():
    return HeadlessUI()


@pytest.fixture
def documents():
    return FileDocumentStore()


@pytest.fixture
def source():
    return FakeEventSource()


@pytest.fixture
def clock():
    return FakeClock()
