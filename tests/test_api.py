"""Tests for the HTTP API."""

import pytest
import yaml
from fastapi.testclient import TestClient

from notify_on_file.api.server import create_app


def write_settings(path, project, watchers):
    path.write_text(yaml.safe_dump({
        "workspace": {"folders": [{"name": "proj", "path": str(project)}]},
        "notify-on-file": {"watchers": watchers},
    }))


@pytest.fixture
def settings_path(tmp_path, project):
    path = tmp_path / "settings.yaml"
    write_settings(path, project, [{
        "globPattern": "**/*.js",
        "onChange": [{"showStatusBarItem": "changed", "text": "${relativeFile}"}],
    }])
    return path


@pytest.fixture
def client(settings_path):
    app = create_app(settings_path=settings_path, watch_settings=False)
    with TestClient(app) as client:
        yield client


class TestHealth:
    """Tests for status endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_stats(self, client):
        """Test statistics after startup."""
        stats = client.get("/api/stats").json()

        assert stats["active"] is True
        assert stats["watchers"] == 1
        assert stats["workspace_folders"] == 1
        assert stats["settings_error"] is None

    def test_workspace(self, client, project):
        folders = client.get("/api/workspace").json()

        assert folders == [{"name": "proj", "root": str(project.resolve())}]


class TestWatchers:
    """Tests for watcher endpoints."""

    def test_list_watchers(self, client, project):
        watchers = client.get("/api/watchers").json()

        assert len(watchers) == 1
        assert watchers[0]["glob"] == "**/*.js"
        assert watchers[0]["roots"] == [str(project.resolve())]
        assert watchers[0]["events"] == ["changed"]

    def test_reload(self, client, settings_path, project):
        """Test that a reload picks up the edited file."""
        write_settings(settings_path, project, [{"onCreate": []}, {"onDelete": []}])

        response = client.post("/api/reload")

        assert response.status_code == 200
        assert response.json() == {"watchers": 2, "error": None}
        assert len(client.get("/api/watchers").json()) == 2

    def test_reload_invalid_file(self, client, settings_path):
        """Test that a broken file leaves no watchers and shows an error."""
        settings_path.write_text("notify-on-file: [unclosed\n")

        body = client.post("/api/reload").json()

        assert body["watchers"] == 0
        assert body["error"].startswith("Invalid settings file")
        errors = client.get("/api/errors").json()
        assert errors[-1]["message"] == body["error"]

        client.delete("/api/errors")
        assert client.get("/api/errors").json() == []


class TestNotifications:
    """Tests for notification endpoints."""

    def test_no_notifications(self, client):
        assert client.get("/api/notifications").json() == []

    def test_respond_unknown(self, client):
        response = client.post("/api/notifications/missing/respond", json={"action": "Open"})

        assert response.status_code == 404


class TestDocuments:
    """Tests for document endpoints."""

    def test_save_document(self, client, project):
        """Test saving new content through the editor."""
        path = project / "src" / "app.js"

        response = client.post("/api/documents/save", json={"path": str(path), "text": "edited\n"})

        assert response.status_code == 200
        assert path.read_text() == "edited\n"

        history = client.get("/api/documents/history", params={"path": str(path)}).json()
        assert len(history) == 1

        editor = client.get("/api/editor").json()
        assert editor["active_document"] is None
        assert editor["open_documents"] == [{"path": str(path.resolve()), "dirty": False}]

    def test_save_missing_document(self, client, project):
        response = client.post("/api/documents/save", json={"path": str(project / "nope.js")})

        assert response.status_code == 400


class TestWebSocket:
    """Tests for UI event broadcasts."""

    def test_error_broadcast(self, client, settings_path):
        """Test that an error shown to the user reaches WebSocket clients."""
        with client.websocket_connect("/ws") as websocket:
            settings_path.write_text("notify-on-file: [unclosed\n")
            client.post("/api/reload")

            message = websocket.receive_json()

        assert message["event"] == "error"
        assert message["message"].startswith("Invalid settings file")
