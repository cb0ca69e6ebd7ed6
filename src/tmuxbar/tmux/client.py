"""Tmux client: builds tmux command lines and parses their output."""

from tmuxbar import config
from tmuxbar.models import Pane, Session, Window
from tmuxbar.process import ExecutionError, ProcessRunner
from tmuxbar.telemetry import get_logger, metrics

logger = get_logger(__name__)

_FIELD_SEP = config.FIELD_SEP

# Field order is fixed; consumers index by position.
SESSION_FORMAT = _FIELD_SEP.join([
    "#{session_id}", "#{session_name}", "#{session_windows}", "#{session_attached}"
])
WINDOW_FORMAT = _FIELD_SEP.join([
    "#{window_id}", "#{window_name}", "#{window_active}", "#{window_panes}"
])
# current_command sits before the numeric fields so an empty value is never
# the trailing field (output is stripped).
PANE_FORMAT = _FIELD_SEP.join([
    "#{pane_id}", "#{pane_current_command}", "#{pane_active}",
    "#{pane_width}", "#{pane_height}"
])


def _to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        return 0


def _split_lines(output: str, min_fields: int, kind: str) -> list[list[str]]:
    """Split tmux output into field lists, dropping short lines."""
    rows = []
    for line in output.split("\n"):
        if not line:
            continue
        parts = line.split(_FIELD_SEP)
        if len(parts) < min_fields:
            logger.warning(f"[TmuxClient] Dropping malformed {kind} line: {line!r}")
            continue
        rows.append(parts)
    return rows


def parse_sessions(output: str) -> list[Session]:
    """Parse ``list-sessions`` output produced with SESSION_FORMAT."""
    return [
        Session(
            id=parts[0],
            name=parts[1],
            window_count=_to_int(parts[2]),
            attached=parts[3] == "1",
        )
        for parts in _split_lines(output, 4, "session")
    ]


def parse_windows(output: str) -> list[Window]:
    """Parse ``list-windows`` output produced with WINDOW_FORMAT."""
    return [
        Window(
            id=parts[0],
            name=parts[1],
            active=parts[2] == "1",
            pane_count=_to_int(parts[3]),
        )
        for parts in _split_lines(output, 4, "window")
    ]


def parse_panes(output: str) -> list[Pane]:
    """Parse ``list-panes`` output produced with PANE_FORMAT."""
    return [
        Pane(
            id=parts[0],
            current_command=parts[1] or None,
            active=parts[2] == "1",
            width=_to_int(parts[3]),
            height=_to_int(parts[4]),
        )
        for parts in _split_lines(output, 5, "pane")
    ]


def window_target(session_name: str, window_id: str | int | None = None) -> str:
    if window_id is None:
        return session_name
    return f"{session_name}:{window_id}"


def pane_target(session_name: str, window_index: int, pane_index: int) -> str:
    return f"{session_name}:{window_index}.{pane_index}"


class TmuxClient:
    """Structured access to tmux.

    List operations raise ExecutionError so callers can surface the failure.
    Mutations return True/False and are never retried. Preview and metadata
    queries return an empty string on failure.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        tmux_binary: str | None = None,
        socket_path: str | None = None,
    ):
        """
        Args:
            runner: Process runner; a default one is created if omitted
            tmux_binary: tmux executable, default from config
            socket_path: Optional tmux socket path (-S)
        """
        self._runner = runner or ProcessRunner()
        self._binary = tmux_binary or config.TMUX_BINARY
        self._socket_path = socket_path

    @property
    def runner(self) -> ProcessRunner:
        return self._runner

    async def run(self, *args: str) -> str:
        """Execute a tmux command and return trimmed stdout.

        Raises:
            ExecutionError: tmux exited non-zero (other than "no server")
        """
        cmd = [self._binary]
        if self._socket_path:
            cmd.extend(["-S", self._socket_path])
        cmd.extend(args)
        try:
            return await self._runner.run(*cmd)
        except ExecutionError:
            metrics.inc("tmux.errors", {"command": args[0] if args else ""})
            raise

    async def _run_ok(self, action: str, *args: str) -> bool:
        try:
            await self.run(*args)
            return True
        except ExecutionError as e:
            logger.warning(f"[TmuxClient] Failed to {action}: {e.message}")
            return False

    def is_installed(self) -> bool:
        """Whether the tmux executable can be found."""
        return self._runner.which(self._binary) is not None

    # === Sessions ===

    async def list_sessions(self, include_panes: bool = False) -> list[Session]:
        """List sessions with their windows.

        A session whose windows cannot be listed (e.g. killed between the two
        calls) is kept with an empty window list.

        Args:
            include_panes: Also populate each window's panes

        Returns:
            Sessions in tmux order; empty when no server is running.
        """
        output = await self.run("list-sessions", "-F", SESSION_FORMAT)
        if not output:
            return []

        sessions = parse_sessions(output)
        for session in sessions:
            try:
                session.windows = await self.list_windows(
                    session.name, include_panes=include_panes
                )
            except ExecutionError as e:
                logger.warning(
                    f"[TmuxClient] Failed to list windows for {session.name!r}: {e.message}"
                )
        return sessions

    async def create_session(self, name: str, directory: str | None = None) -> bool:
        args = ["new-session", "-d", "-s", name]
        if directory:
            args.extend(["-c", directory])
        return await self._run_ok(f"create session {name!r}", *args)

    async def kill_session(self, name: str) -> bool:
        return await self._run_ok(f"kill session {name!r}", "kill-session", "-t", name)

    async def rename_session(self, old_name: str, new_name: str) -> bool:
        return await self._run_ok(
            f"rename session {old_name!r}", "rename-session", "-t", old_name, new_name
        )

    # === Windows ===

    async def list_windows(self, session_name: str, include_panes: bool = False) -> list[Window]:
        """List the windows of one session.

        Raises:
            ExecutionError: The session does not exist or tmux failed
        """
        output = await self.run("list-windows", "-t", session_name, "-F", WINDOW_FORMAT)
        if not output:
            return []

        windows = parse_windows(output)
        if include_panes:
            for window in windows:
                window.panes = await self.list_panes(session_name, window.id)
        return windows

    async def create_window(self, session_name: str, name: str | None = None) -> bool:
        args = ["new-window", "-t", session_name]
        if name:
            args.extend(["-n", name])
        return await self._run_ok(f"create window in {session_name!r}", *args)

    async def rename_window(self, session_name: str, window_id: str | int, new_name: str) -> bool:
        return await self._run_ok(
            f"rename window {window_id} in {session_name!r}",
            "rename-window", "-t", window_target(session_name, window_id), new_name,
        )

    async def kill_window(self, session_name: str, window_id: str | int) -> bool:
        return await self._run_ok(
            f"kill window {window_id} in {session_name!r}",
            "kill-window", "-t", window_target(session_name, window_id),
        )

    # === Panes ===

    async def list_panes(self, session_name: str, window_id: str | int) -> list[Pane]:
        """List panes of one window; empty on failure."""
        try:
            output = await self.run(
                "list-panes", "-t", window_target(session_name, window_id), "-F", PANE_FORMAT
            )
        except ExecutionError as e:
            logger.warning(f"[TmuxClient] Failed to list panes: {e.message}")
            return []
        if not output:
            return []
        return parse_panes(output)

    async def split_horizontal(self, session_name: str, window_id: str | int | None = None) -> bool:
        """Split side by side (tmux ``-h``)."""
        return await self._run_ok(
            "split horizontally",
            "split-window", "-h", "-t", window_target(session_name, window_id),
        )

    async def split_vertical(self, session_name: str, window_id: str | int | None = None) -> bool:
        """Split top and bottom (tmux ``-v``)."""
        return await self._run_ok(
            "split vertically",
            "split-window", "-v", "-t", window_target(session_name, window_id),
        )

    async def select_pane(self, session_name: str, window_index: int, pane_index: int) -> bool:
        return await self._run_ok(
            "select pane",
            "select-pane", "-t", pane_target(session_name, window_index, pane_index),
        )

    async def resize_pane(
        self, session_name: str, window_index: int, pane_index: int, width: int
    ) -> bool:
        return await self._run_ok(
            "resize pane",
            "resize-pane", "-t", pane_target(session_name, window_index, pane_index),
            "-x", str(width),
        )

    async def send_keys(
        self, session_name: str, window_index: int, pane_index: int, keys: str, enter: bool = True
    ) -> bool:
        """Type ``keys`` into a pane, optionally followed by Enter.

        The text is passed as a single argument and is not shell-escaped.
        """
        args = ["send-keys", "-t", pane_target(session_name, window_index, pane_index), keys]
        if enter:
            args.append("Enter")
        return await self._run_ok("send keys", *args)

    async def capture_pane(
        self,
        session_name: str,
        window_index: int = 0,
        pane_index: int = 0,
        lines: int = config.CAPTURE_LINES,
        escape: bool = False,
    ) -> str:
        """Capture the last ``lines`` lines of a pane.

        Args:
            escape: Keep ANSI escape sequences (-e) for colour rendering

        Returns:
            Pane text, or "" on failure.
        """
        args = [
            "capture-pane", "-t", pane_target(session_name, window_index, pane_index),
            "-p", "-S", f"-{lines}",
        ]
        if escape:
            args.append("-e")
        try:
            return await self.run(*args)
        except ExecutionError as e:
            logger.warning(f"[TmuxClient] Failed to capture pane: {e.message}")
            return ""

    async def _display(self, target: str, fmt: str) -> str:
        try:
            return await self.run("display-message", "-t", target, "-p", fmt)
        except ExecutionError:
            return ""

    async def get_current_command(
        self, session_name: str, window_index: int = 0, pane_index: int = 0
    ) -> str:
        return await self._display(
            pane_target(session_name, window_index, pane_index), "#{pane_current_command}"
        )

    async def get_current_path(
        self, session_name: str, window_index: int = 0, pane_index: int = 0
    ) -> str:
        return await self._display(
            pane_target(session_name, window_index, pane_index), "#{pane_current_path}"
        )

    # === Server ===

    async def is_server_running(self) -> bool:
        """True when a server with at least one session answers."""
        try:
            return bool(await self.run("list-sessions"))
        except ExecutionError:
            return False

    async def start_server(self) -> bool:
        return await self._run_ok("start server", "start-server")

    async def kill_server(self) -> bool:
        return await self._run_ok("kill server", "kill-server")
