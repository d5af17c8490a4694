"""FastAPI server hosting the extension headless.

The server plays the editor: it owns the UI surface, the documents and the
workspace, and lets a client answer notifications and save documents.
"""

import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from ..exceptions import DocumentError
from ..extension import Extension
from ..host import FileDocumentStore, HeadlessUI, Workspace
from ..host.base import SettingsChangeEvent
from ..models.settings import SECTION, WORKSPACE_SECTION, WorkspaceSettings
from ..watchers import WatchfilesEventSource, YamlSettings, write_example_settings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = "config/settings.yaml"


# -------------------------------------------------------------------------
# Request/Response Models
# -------------------------------------------------------------------------

class RespondRequest(BaseModel):
    """Answer to a notification; no action means dismissed."""
    action: Optional[str] = None


class SaveDocumentRequest(BaseModel):
    """Save a document through the editor, optionally with new content."""
    path: str
    text: Optional[str] = None


class StatsResponse(BaseModel):
    """Extension statistics response."""
    active: bool
    watchers: int
    status_items: int
    pending_notifications: int
    in_flight_actions: int
    tracked_saves: int
    workspace_folders: int
    settings_error: Optional[str]


class WatcherResponse(BaseModel):
    """An active watcher."""
    glob: str
    roots: list[str]
    events: list[str]
    trigger_on_vscode_save: bool
    trigger_on_external_save: bool


class StatusItemResponse(BaseModel):
    """A status bar item."""
    id: str
    text: str
    tooltip: Optional[str]
    color: Optional[str]
    name: Optional[str]
    background_color: Optional[str]
    visible: bool


class NotificationResponse(BaseModel):
    """A notification waiting for an answer."""
    id: str
    message: str
    actions: list[str]
    created_at: str


# -------------------------------------------------------------------------
# WebSocket Connection Manager
# -------------------------------------------------------------------------

class ConnectionManager:
    """Manages WebSocket connections for real-time UI updates."""

    def __init__(self):
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"WebSocket connected. Total connections: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        logger.info(f"WebSocket disconnected. Total connections: {len(self.active_connections)}")

    async def broadcast(self, message: dict):
        """Broadcast a message to all connected clients."""
        if not self.active_connections:
            return

        message_json = json.dumps(message, default=str)

        for connection in self.active_connections.copy():
            try:
                await connection.send_text(message_json)
            except Exception as e:
                logger.warning(f"Error sending WebSocket message: {e}")
                self.disconnect(connection)


# -------------------------------------------------------------------------
# App Factory
# -------------------------------------------------------------------------

def create_app(
    settings_path: Optional[Path | str] = None,
    watch_settings: bool = True,
    shutdown_timeout: float = 5.0,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings_path: YAML settings file (defaults to $NOTIFY_ON_FILE_SETTINGS
            or config/settings.yaml)
        watch_settings: Reload automatically when the settings file changes
        shutdown_timeout: Seconds to wait for running action lists on shutdown
    """
    if settings_path is None:
        settings_path = os.environ.get("NOTIFY_ON_FILE_SETTINGS", DEFAULT_SETTINGS_PATH)

    manager = ConnectionManager()
    settings = YamlSettings(settings_path)
    ui = HeadlessUI()
    documents = FileDocumentStore()
    workspace = Workspace()
    extension = Extension(settings, WatchfilesEventSource(), ui, documents, workspace)

    def update_workspace() -> None:
        try:
            workspace.update_from_settings(
                WorkspaceSettings.model_validate(settings.get_section(WORKSPACE_SECTION))
            )
        except ValidationError as e:
            ui.show_error_message(f"Invalid {WORKSPACE_SECTION} settings: {e}")

    async def on_settings_changed(event: SettingsChangeEvent) -> None:
        if event.affects(WORKSPACE_SECTION):
            update_workspace()

    def on_ui_event(message: dict) -> None:
        asyncio.get_running_loop().create_task(manager.broadcast(message))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info(f"Starting notify-on-file with settings {settings.path}")

        # Registered before the extension so folders are current when it reloads
        settings_subscription = settings.on_did_change(on_settings_changed)
        ui_subscription = ui.on_event(on_ui_event)
        update_workspace()

        await extension.activate()

        watch_task = None
        if watch_settings:
            watch_task = asyncio.create_task(settings.watch())

        yield

        logger.info("Shutting down notify-on-file...")
        if watch_task:
            settings.stop()
            watch_task.cancel()
            try:
                await watch_task
            except asyncio.CancelledError:
                pass

        await extension.deactivate()

        # Pending notifications count as dismissed so their action lists can finish
        for notification in ui.notifications:
            ui.dismiss(notification.id)
        try:
            await asyncio.wait_for(extension.executor.drain(), timeout=shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning("Cancelling action lists still running at shutdown")
            await extension.executor.cancel()

        ui_subscription.dispose()
        settings_subscription.dispose()
        logger.info("notify-on-file stopped")

    app = FastAPI(
        title="notify-on-file API",
        description="Run actions when watched files are created, changed or deleted",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.extension = extension

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/api/stats", response_model=StatsResponse)
    async def get_stats():
        """Get extension statistics."""
        return {
            "active": extension.is_active,
            "watchers": len(extension.registry),
            "status_items": len(extension.status_items),
            "pending_notifications": len(ui.notifications),
            "in_flight_actions": extension.executor.in_flight,
            "tracked_saves": len(extension.tracker),
            "workspace_folders": len(workspace.folders),
            "settings_error": settings.error,
        }

    # -------------------------------------------------------------------------
    # Watchers and Settings
    # -------------------------------------------------------------------------

    @app.get("/api/watchers", response_model=list[WatcherResponse])
    async def list_watchers():
        """List the active watchers."""
        return [s.to_dict() for s in extension.registry.subscriptions]

    @app.post("/api/reload")
    async def reload_settings():
        """Re-read the settings file and rebuild every watcher."""
        event = await settings.reload()
        if not (event.affects(SECTION) or event.affects(WORKSPACE_SECTION)):
            await extension.update_configuration()
        return {"watchers": len(extension.registry), "error": settings.error}

    @app.get("/api/workspace")
    async def get_workspace():
        """List the workspace folders."""
        return [{"name": f.name, "root": str(f.root)} for f in workspace.folders]

    # -------------------------------------------------------------------------
    # UI
    # -------------------------------------------------------------------------

    @app.get("/api/status-items", response_model=list[StatusItemResponse])
    async def list_status_items(visible_only: bool = Query(False)):
        """List status bar items."""
        items = ui.status_items
        if visible_only:
            items = [i for i in items if i.visible]
        return [i.to_dict() for i in items]

    @app.get("/api/notifications", response_model=list[NotificationResponse])
    async def list_notifications():
        """List notifications waiting for an answer."""
        return [n.to_dict() for n in ui.notifications]

    @app.post("/api/notifications/{notification_id}/respond")
    async def respond_to_notification(notification_id: str, request: RespondRequest):
        """Choose a notification action, or dismiss it."""
        try:
            answered = ui.respond(notification_id, request.action)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if not answered:
            raise HTTPException(status_code=404, detail="Notification not found")
        return {"answered": True, "action": request.action}

    @app.get("/api/errors")
    async def list_errors():
        """List error messages shown to the user."""
        return [e.to_dict() for e in ui.errors]

    @app.delete("/api/errors")
    async def clear_errors():
        """Clear the error messages."""
        ui.clear_errors()
        return {"cleared": True}

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    @app.get("/api/editor")
    async def get_editor():
        """The document in the foreground and every open document."""
        active = documents.active_document
        return {
            "active_document": str(active.path) if active else None,
            "open_documents": [
                {"path": str(d.path), "dirty": d.is_dirty} for d in documents.open_documents
            ],
        }

    @app.post("/api/documents/save")
    async def save_document(request: SaveDocumentRequest):
        """Save a document through the editor."""
        try:
            document = await documents.open_text_document(Path(request.path))
            if request.text is not None:
                document.edit(request.text)
            await document.save()
        except DocumentError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"saved": True, "path": str(document.path)}

    @app.get("/api/documents/history")
    async def document_history(path: str = Query(..., description="File path")):
        """Saved revisions of a document."""
        return [r.to_dict() for r in documents.get_history(path)]

    # -------------------------------------------------------------------------
    # WebSocket
    # -------------------------------------------------------------------------

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for real-time UI updates."""
        await manager.connect(websocket)
        try:
            while True:
                data = await websocket.receive_text()
                logger.debug(f"Received WebSocket message: {data}")
        except WebSocketDisconnect:
            manager.disconnect(websocket)

    return app


# -------------------------------------------------------------------------
# Main Entry Point
# -------------------------------------------------------------------------

def main():
    """Run the API server."""
    import argparse

    parser = argparse.ArgumentParser(description="notify-on-file server")
    parser.add_argument("--settings", default=None, help="YAML settings file")
    parser.add_argument("--write-example", action="store_true", help="Write an example settings file and exit")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--log-level", default="info", help="Log level")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings_path = args.settings or os.environ.get("NOTIFY_ON_FILE_SETTINGS", DEFAULT_SETTINGS_PATH)

    if args.write_example:
        write_example_settings(Path(settings_path))
        return

    os.environ["NOTIFY_ON_FILE_SETTINGS"] = str(settings_path)
    uvicorn.run(
        "notify_on_file.api.server:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
