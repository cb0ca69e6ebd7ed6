"""Web server: HTTP + WebSocket surface over the session reconciler"""

import dataclasses
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse, Response

from tmuxbar.reconciler import SessionReconciler
from tmuxbar.render import PreviewRenderer, shorten_path
from tmuxbar.runtime import RuntimeComponents
from tmuxbar.telemetry import get_logger, metrics
from tmuxbar.templates import TemplateRecord, generate_session_name
from tmuxbar.terminal import TerminalApp

from .schemas import (
    CreateSessionRequest,
    CreateWindowRequest,
    FavoriteResponse,
    GroupMemberRequest,
    OperationResponse,
    PreferencesUpdate,
    PreviewResponse,
    RenameRequest,
    ServerStatus,
    SplitRequest,
    TemplateSessionRequest,
    TerminalInfo,
)

logger = get_logger(__name__)


class WebServer:
    """FastAPI app exposing the session list, its views and the operations.

    Every reconciler change is pushed to connected WebSocket clients.
    """

    def __init__(self, components: RuntimeComponents):
        self.app = FastAPI(title="tmuxbar")
        self.components = components
        self.reconciler: SessionReconciler = components.reconciler
        self.clients: list[WebSocket] = []
        self._renderer = PreviewRenderer()

        self._setup_routes()
        self.reconciler.on_change(self._on_change)

    async def _on_change(self, reconciler: SessionReconciler) -> None:
        await self.broadcast({"type": "sessions", **reconciler.snapshot()})

    async def broadcast(self, data: dict) -> None:
        """Send to every client, dropping the ones that went away."""
        for client in list(self.clients):
            try:
                await client.send_json(data)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"[WebServer] Dropping client: {e}")
                if client in self.clients:
                    self.clients.remove(client)

    def _result(self, success: bool) -> OperationResponse:
        return OperationResponse(
            success=success,
            error=None if success else self.reconciler.last_error,
        )

    def _setup_routes(self):
        reconciler = self.reconciler
        templates = self.components.templates
        preferences = self.components.preferences

        @self.app.get("/api/sessions")
        async def list_sessions():
            return reconciler.snapshot()

        @self.app.post("/api/refresh")
        async def refresh():
            await reconciler.refresh_sessions()
            return reconciler.snapshot()

        @self.app.post("/api/sessions", response_model=OperationResponse)
        async def create_session(body: CreateSessionRequest):
            return self._result(await reconciler.create_session(body.name, body.directory))

        @self.app.post("/api/sessions/from-template", response_model=OperationResponse)
        async def create_from_template(body: TemplateSessionRequest):
            template = templates.get(body.template_id)
            if template is None:
                raise HTTPException(status_code=404, detail="Template not found")
            name = body.name or generate_session_name(template.name)
            ok = await reconciler.create_session_from_template(
                template, name, working_directory=body.working_directory
            )
            return self._result(ok)

        @self.app.delete("/api/sessions/{name}", response_model=OperationResponse)
        async def kill_session(name: str):
            return self._result(await reconciler.kill_session(name))

        @self.app.post("/api/sessions/{name}/rename", response_model=OperationResponse)
        async def rename_session(name: str, body: RenameRequest):
            return self._result(await reconciler.rename_session(name, body.new_name))

        @self.app.post("/api/sessions/{name}/windows", response_model=OperationResponse)
        async def create_window(name: str, body: CreateWindowRequest):
            return self._result(await reconciler.create_window(name, body.name))

        @self.app.post("/api/sessions/{name}/split", response_model=OperationResponse)
        async def split(name: str, body: SplitRequest):
            if body.direction == "horizontal":
                ok = await reconciler.split_horizontal(name, body.window_id)
            else:
                ok = await reconciler.split_vertical(name, body.window_id)
            return self._result(ok)

        @self.app.post("/api/sessions/{name}/attach", response_model=OperationResponse)
        async def attach(name: str):
            return self._result(await reconciler.attach_session(name))

        @self.app.post("/api/sessions/{name}/favorite", response_model=FavoriteResponse)
        async def toggle_favorite(name: str):
            favorite = await reconciler.toggle_favorite(name)
            return FavoriteResponse(session_name=name, favorite=favorite)

        @self.app.get("/api/sessions/{name}/preview", response_model=PreviewResponse)
        async def preview(name: str, window: int = 0, pane: int = 0):
            result = await reconciler.preview_pane(name, window, pane)
            return PreviewResponse(
                **dataclasses.asdict(result)
                | {"current_path": shorten_path(result.current_path, str(Path.home()))}
            )

        @self.app.get("/api/sessions/{name}/preview.svg")
        async def preview_svg(name: str, window: int = 0, pane: int = 0):
            result = await reconciler.preview_pane(name, window, pane, escape=True)
            svg = self._renderer.render_ansi_text(result.content, title=name)
            return Response(
                content=svg,
                media_type="image/svg+xml",
                headers={"Cache-Control": "no-cache"},
            )

        @self.app.post("/api/groups/{group}/sessions")
        async def add_to_group(group: str, body: GroupMemberRequest):
            await reconciler.add_to_group(body.session_name, group)
            return reconciler.snapshot()

        @self.app.delete("/api/groups/{group}/sessions/{name}")
        async def remove_from_group(group: str, name: str):
            await reconciler.remove_from_group(name, group)
            return reconciler.snapshot()

        @self.app.get("/api/templates")
        async def list_templates():
            return [
                TemplateRecord.from_template(t).model_dump(mode="json")
                for t in templates.all_templates
            ]

        @self.app.get("/api/templates/export", response_class=PlainTextResponse)
        async def export_templates():
            return PlainTextResponse(templates.export_templates(), media_type="application/json")

        @self.app.post("/api/templates/import", response_model=OperationResponse)
        async def import_templates(request: Request):
            ok = templates.import_templates(await request.body())
            return OperationResponse(success=ok, error=None if ok else "Invalid template data")

        @self.app.get("/api/preferences")
        async def get_preferences():
            return preferences.to_record().model_dump(mode="json")

        @self.app.put("/api/preferences")
        async def update_preferences(body: PreferencesUpdate):
            if body.refresh_interval is not None:
                if body.refresh_interval <= 0:
                    raise HTTPException(status_code=422, detail="refresh_interval must be positive")
                preferences.refresh_interval = body.refresh_interval
            if body.terminal_app is not None:
                preferences.terminal_app = body.terminal_app
            if body.show_window_count is not None:
                preferences.show_window_count = body.show_window_count
            if body.show_attached_indicator is not None:
                preferences.show_attached_indicator = body.show_attached_indicator
            return preferences.to_record().model_dump(mode="json")

        @self.app.get("/api/terminals", response_model=list[TerminalInfo])
        async def list_terminals():
            runner = self.components.runner
            return [
                TerminalInfo(
                    app=app,
                    display_name=app.display_name,
                    installed=app.is_installed(runner),
                    selected=app is preferences.terminal_app,
                )
                for app in TerminalApp
            ]

        @self.app.get("/api/server", response_model=ServerStatus)
        async def server_status():
            return ServerStatus(running=await reconciler.is_server_running())

        @self.app.post("/api/server/start", response_model=OperationResponse)
        async def start_server():
            return self._result(await reconciler.start_server())

        @self.app.post("/api/server/kill", response_model=OperationResponse)
        async def kill_server():
            return self._result(await reconciler.kill_server())

        @self.app.get("/api/metrics")
        async def get_metrics():
            return metrics.snapshot()

        @self.app.websocket("/ws")
        async def websocket_endpoint(websocket: WebSocket):
            await websocket.accept()
            self.clients.append(websocket)
            try:
                await websocket.send_json({"type": "sessions", **reconciler.snapshot()})
                while True:
                    data = await websocket.receive_text()
                    if data == "refresh":
                        await reconciler.refresh_sessions()
            except WebSocketDisconnect:
                if websocket in self.clients:
                    self.clients.remove(websocket)
