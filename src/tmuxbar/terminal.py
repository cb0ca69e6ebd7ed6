"""Terminal attach strategies.

Each strategy opens a terminal window running ``tmux attach -t <session>``.
"""

import asyncio
import os
from enum import Enum

from . import config
from .process import ExecutionError, ProcessRunner
from .telemetry import get_logger

logger = get_logger(__name__)


def attach_command(session_name: str) -> str:
    # Quoted for the shell the terminal starts; quotes inside the name are not escaped.
    return f"{config.TMUX_BINARY} attach -t '{session_name}'"


class TerminalApp(Enum):
    """Supported terminal applications; values are the persisted names."""
    TERMINAL = "Terminal"
    ITERM2 = "iTerm2"
    ALACRITTY = "Alacritty"
    WARP = "Warp"
    KITTY = "Kitty"

    @property
    def display_name(self) -> str:
        return self.value

    def is_installed(self, runner: ProcessRunner) -> bool:
        if self is TerminalApp.TERMINAL:
            return True
        if self is TerminalApp.ITERM2:
            return os.path.exists("/Applications/iTerm.app")
        if self is TerminalApp.WARP:
            return os.path.exists("/Applications/Warp.app")
        return runner.which(self.value.lower()) is not None


class TerminalLauncher:
    """Attaches to tmux sessions through the chosen terminal application."""

    def __init__(self, runner: ProcessRunner):
        self._runner = runner

    async def attach(self, app: TerminalApp, session_name: str) -> bool:
        """Open ``app`` attached to ``session_name``.

        Returns:
            Whether the terminal could be launched
        """
        logger.info(f"[Terminal] Attaching {session_name!r} via {app.value}")
        if app is TerminalApp.TERMINAL:
            return await self._attach_terminal(session_name)
        if app is TerminalApp.ITERM2:
            return await self._attach_iterm2(session_name)
        if app is TerminalApp.ALACRITTY:
            return self._spawn("alacritty", "-e", config.TMUX_BINARY, "attach", "-t", session_name)
        if app is TerminalApp.WARP:
            return await self._attach_warp(session_name)
        if app is TerminalApp.KITTY:
            return self._spawn("kitty", config.TMUX_BINARY, "attach", "-t", session_name)
        return False

    async def _attach_terminal(self, session_name: str) -> bool:
        script = (
            'tell application "Terminal"\n'
            "    activate\n"
            f'    do script "{attach_command(session_name)}"\n'
            "end tell"
        )
        return await self.run_applescript(script)

    async def _attach_iterm2(self, session_name: str) -> bool:
        """Open a new iTerm2 window through the iTerm2 Python API."""
        import iterm2

        try:
            connection = await iterm2.Connection.async_create()
            window = await iterm2.Window.async_create(
                connection, command=attach_command(session_name)
            )
        except (ConnectionRefusedError, OSError) as e:
            logger.error(f"[Terminal] iTerm2 API unavailable: {e}")
            return False
        if window is None:
            logger.error("[Terminal] iTerm2 did not create a window")
            return False
        app = await iterm2.async_get_app(connection)
        if app is not None:
            await app.async_activate()
        return True

    async def _attach_warp(self, session_name: str) -> bool:
        # Warp has no attach CLI: activate it, then type the command.
        activated = await self.run_applescript('tell application "Warp" to activate')
        if not activated:
            return False
        await asyncio.sleep(config.WARP_KEYSTROKE_DELAY)
        script = (
            'tell application "System Events"\n'
            '    tell process "Warp"\n'
            f'        keystroke "{attach_command(session_name)}"\n'
            "        keystroke return\n"
            "    end tell\n"
            "end tell"
        )
        return await self.run_applescript(script)

    def _spawn(self, executable: str, *args: str) -> bool:
        path = self._runner.which(executable) or f"/usr/local/bin/{executable}"
        return self._runner.spawn(path, *args)

    async def run_applescript(self, script: str) -> bool:
        try:
            await self._runner.run("osascript", "-e", script)
            return True
        except ExecutionError as e:
            logger.error(f"[Terminal] AppleScript error: {e.message}")
            return False
