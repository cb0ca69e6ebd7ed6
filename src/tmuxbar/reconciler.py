"""Session reconciler

Owns the canonical session list. The list is replaced wholesale on every
refresh (timer or on demand) and never patched field by field. Mutations go
to tmux first and are followed by a refresh on success.

Favorites and groups are read from the PreferencesStore by session name;
the favorite/grouped/ungrouped views are computed on every access.
"""

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from . import config
from .models import Session, SessionTemplate
from .preferences import PreferencesStore
from .process import ExecutionError
from .telemetry import get_logger, metrics
from .templates.engine import TemplateEngine
from .terminal import TerminalLauncher
from .timer import Timer
from .tmux.client import TmuxClient

logger = get_logger(__name__)


class RefreshState(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass
class PanePreview:
    """Snapshot of one pane for the preview popover"""
    session_name: str
    content: str
    current_command: str
    current_path: str


ChangeCallback = Callable[["SessionReconciler"], Awaitable[None]]


class SessionReconciler:
    """Single owner of the live session model.

    All state lives on the event loop that awaits these methods; results of
    tmux calls are merged with one assignment per operation.
    """

    def __init__(
        self,
        client: TmuxClient,
        preferences: PreferencesStore,
        timer: Timer | None = None,
        engine: TemplateEngine | None = None,
        launcher: TerminalLauncher | None = None,
    ):
        self._client = client
        self._preferences = preferences
        self._timer = timer or Timer()
        self._engine = engine or TemplateEngine(client)
        self._launcher = launcher or TerminalLauncher(client.runner)

        self._sessions: list[Session] = []
        self._state = RefreshState.IDLE
        self._refreshes_in_flight = 0
        self._last_error: str | None = None
        self._monitoring = False
        self._callbacks: list[ChangeCallback] = []

        preferences.observe_refresh_interval(self._on_interval_change)

    # === Read-only surface ===

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions)

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state is RefreshState.REFRESHING

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    @property
    def preferences(self) -> PreferencesStore:
        return self._preferences

    def get_session(self, name: str) -> Session | None:
        for session in self._sessions:
            if session.name == name:
                return session
        return None

    # === Change notification ===

    def on_change(self, callback: ChangeCallback) -> None:
        """Register an async callback run after every state change."""
        self._callbacks.append(callback)

    async def _notify(self) -> None:
        for callback in self._callbacks:
            try:
                await callback(self)
            except Exception as e:
                logger.error(f"[Reconciler] Change callback failed: {e}")

    # === Monitoring ===

    async def start_monitoring(self) -> None:
        """Refresh once now, then every ``preferences.refresh_interval``."""
        await self.refresh_sessions()
        self._timer.register_interval(
            config.REFRESH_TASK_NAME,
            self._preferences.refresh_interval,
            self.refresh_sessions,
            run_immediately=False,
        )
        self._timer.start()
        self._monitoring = True
        logger.info(
            f"[Reconciler] Monitoring every {self._preferences.refresh_interval}s"
        )

    def stop_monitoring(self) -> None:
        self._timer.unregister_interval(config.REFRESH_TASK_NAME)
        self._timer.stop()
        self._monitoring = False

    def _on_interval_change(self, interval: float) -> None:
        if self._monitoring:
            self._timer.rearm_interval(config.REFRESH_TASK_NAME, interval)

    # === Refresh ===

    async def refresh_sessions(self) -> None:
        """Replace the session list with tmux's current view.

        On failure the list is cleared and ``last_error`` is set; stale data
        is never kept. Overlapping refreshes are not coalesced, the last one
        to finish wins; the state stays REFRESHING until all of them finish.
        """
        self._refreshes_in_flight += 1
        self._state = RefreshState.REFRESHING
        await self._notify()
        try:
            sessions = await self._client.list_sessions()
        except ExecutionError as e:
            self._sessions = []
            self._last_error = f"Failed to list sessions: {e.message}"
            metrics.inc("refresh.failed")
            logger.warning(f"[Reconciler] {self._last_error}")
        else:
            self._sessions = sessions
            self._last_error = None
            metrics.inc("refresh.ok")
            metrics.gauge("sessions.count", len(sessions))
        finally:
            self._refreshes_in_flight -= 1
            if self._refreshes_in_flight == 0:
                self._state = RefreshState.IDLE
        await self._notify()

    async def _after_mutation(self, ok: bool, error: str) -> bool:
        if ok:
            await self.refresh_sessions()
        else:
            self._last_error = error
            logger.warning(f"[Reconciler] {error}")
            await self._notify()
        return ok

    # === Session operations ===

    async def create_session(self, name: str, directory: str | None = None) -> bool:
        ok = await self._client.create_session(name, directory=directory)
        return await self._after_mutation(ok, f"Failed to create session '{name}'")

    async def create_session_from_template(
        self,
        template: SessionTemplate,
        name: str,
        working_directory: str | None = None,
    ) -> bool:
        """Materialize ``template`` as a new session called ``name``.

        Args:
            working_directory: Overrides the template's directory when given
        """
        name = name.strip()
        if not name:
            return await self._after_mutation(False, "Session name cannot be empty")
        if self.get_session(name) is not None:
            return await self._after_mutation(False, f"Session '{name}' already exists")

        if working_directory:
            template = dataclasses.replace(template, working_directory=working_directory)
        ok = await self._engine.materialize(template, name)
        return await self._after_mutation(
            ok, f"Failed to create session '{name}' from template '{template.name}'"
        )

    async def kill_session(self, name: str) -> bool:
        ok = await self._client.kill_session(name)
        return await self._after_mutation(ok, f"Failed to kill session '{name}'")

    async def rename_session(self, old_name: str, new_name: str) -> bool:
        """Rename a session, carrying its favorite/group membership along.

        Membership moves before tmux is asked to rename, so a failed rename
        leaves preferences pointing at ``new_name``.
        """
        if old_name != new_name:
            self._migrate_membership(old_name, new_name)

        ok = await self._client.rename_session(old_name, new_name)
        return await self._after_mutation(ok, f"Failed to rename session '{old_name}'")

    def _migrate_membership(self, old_name: str, new_name: str) -> None:
        if self._preferences.is_favorite(old_name):
            self._preferences.remove_favorite(old_name)
            self._preferences.add_favorite(new_name)

        for group_name, names in self._preferences.groups.items():
            if old_name in names:
                migrated = [n for n in names if n != old_name]
                migrated.append(new_name)
                self._preferences.update_group(group_name, migrated)
                break

    async def attach_session(self, name: str) -> bool:
        app = self._preferences.terminal_app
        ok = await self._launcher.attach(app, name)
        if not ok:
            self._last_error = f"Failed to open {app.display_name} for session '{name}'"
            await self._notify()
        return ok

    # === Server ===

    async def is_server_running(self) -> bool:
        return await self._client.is_server_running()

    async def start_server(self) -> bool:
        ok = await self._client.start_server()
        return await self._after_mutation(ok, "Failed to start tmux server")

    async def kill_server(self) -> bool:
        """Kill the server and every session on it."""
        ok = await self._client.kill_server()
        return await self._after_mutation(ok, "Failed to kill tmux server")

    # === Window / pane operations ===

    async def create_window(self, session_name: str, name: str | None = None) -> bool:
        ok = await self._client.create_window(session_name, name)
        return await self._after_mutation(ok, f"Failed to create window in '{session_name}'")

    async def rename_window(self, session_name: str, window_id: str, new_name: str) -> bool:
        ok = await self._client.rename_window(session_name, window_id, new_name)
        return await self._after_mutation(ok, f"Failed to rename window in '{session_name}'")

    async def kill_window(self, session_name: str, window_id: str) -> bool:
        ok = await self._client.kill_window(session_name, window_id)
        return await self._after_mutation(ok, f"Failed to kill window in '{session_name}'")

    async def split_horizontal(self, session_name: str, window_id: str | None = None) -> bool:
        ok = await self._client.split_horizontal(session_name, window_id)
        return await self._after_mutation(ok, f"Failed to split pane in '{session_name}'")

    async def split_vertical(self, session_name: str, window_id: str | None = None) -> bool:
        ok = await self._client.split_vertical(session_name, window_id)
        return await self._after_mutation(ok, f"Failed to split pane in '{session_name}'")

    async def preview_pane(
        self,
        session_name: str,
        window_index: int = 0,
        pane_index: int = 0,
        escape: bool = False,
    ) -> PanePreview:
        """Capture a pane's tail plus its command and path. Never raises."""
        content = await self._client.capture_pane(
            session_name, window_index, pane_index, escape=escape
        )
        command = await self._client.get_current_command(session_name, window_index, pane_index)
        path = await self._client.get_current_path(session_name, window_index, pane_index)
        return PanePreview(
            session_name=session_name,
            content=content,
            current_command=command,
            current_path=path,
        )

    # === Favorites & groups ===

    async def toggle_favorite(self, name: str) -> bool:
        """Flip favorite membership.

        Returns:
            Whether ``name`` is a favorite afterwards
        """
        if self._preferences.is_favorite(name):
            self._preferences.remove_favorite(name)
        else:
            self._preferences.add_favorite(name)
        await self._notify()
        return self._preferences.is_favorite(name)

    def is_favorite(self, name: str) -> bool:
        return self._preferences.is_favorite(name)

    async def add_to_group(self, name: str, group_name: str) -> None:
        names = self._preferences.groups.get(group_name, [])
        if name not in names:
            names.append(name)
            self._preferences.update_group(group_name, names)
        await self._notify()

    async def remove_from_group(self, name: str, group_name: str) -> None:
        """Remove ``name`` from a group; a group left empty is deleted."""
        names = self._preferences.groups.get(group_name)
        if names is None:
            return
        names = [n for n in names if n != name]
        if names:
            self._preferences.update_group(group_name, names)
        else:
            self._preferences.remove_group(group_name)
        await self._notify()

    async def create_group(self, group_name: str, session_names: list[str] | None = None) -> None:
        self._preferences.update_group(group_name, list(session_names or []))
        await self._notify()

    # === Derived views ===

    @property
    def favorite_sessions(self) -> list[Session]:
        favorites = self._preferences.favorites
        return sorted(
            (s for s in self._sessions if s.name in favorites), key=lambda s: s.name
        )

    @property
    def grouped_sessions(self) -> dict[str, list[Session]]:
        """Group name -> live member sessions; groups with no live member are omitted."""
        result: dict[str, list[Session]] = {}
        for group_name, names in self._preferences.groups.items():
            members = sorted(
                (s for s in self._sessions if s.name in names), key=lambda s: s.name
            )
            if members:
                result[group_name] = members
        return result

    @property
    def ungrouped_sessions(self) -> list[Session]:
        grouped = {name for names in self._preferences.groups.values() for name in names}
        return sorted(
            (s for s in self._sessions if s.name not in grouped), key=lambda s: s.name
        )

    def snapshot(self) -> dict:
        """Serializable view of the whole surface."""
        return {
            "sessions": [s.to_dict() for s in self._sessions],
            "loading": self.is_loading,
            "error": self._last_error,
            "favorites": [s.name for s in self.favorite_sessions],
            "groups": {g: [s.name for s in ss] for g, ss in self.grouped_sessions.items()},
            "ungrouped": [s.name for s in self.ungrouped_sessions],
        }
