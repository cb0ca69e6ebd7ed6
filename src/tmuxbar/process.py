"""Subprocess execution for tmux and terminal launchers."""

import asyncio
import os
import shutil
import subprocess

from . import config
from .telemetry import get_logger, metrics

logger = get_logger(__name__)


class ExecutionError(Exception):
    """A command exited non-zero for a reason other than an empty server."""

    def __init__(self, command: list[str], message: str):
        self.command = command
        self.message = message
        super().__init__(message)


def augmented_path(current: str | None = None) -> str:
    """PATH with the common install directories prepended."""
    if current is None:
        current = os.environ.get("PATH", "")
    return os.pathsep.join([*config.EXTRA_PATH_DIRS, current])


class ProcessRunner:
    """Runs commands with an augmented search path.

    Every call is awaited to completion; there is no timeout, so a hung
    command blocks the operation that issued it.
    """

    def __init__(self, extra_env: dict[str, str] | None = None):
        self._env = dict(os.environ)
        self._env["PATH"] = augmented_path(self._env.get("PATH", ""))
        if extra_env:
            self._env.update(extra_env)

    async def run(self, *args: str) -> str:
        """Execute a command and return its trimmed stdout.

        Args:
            *args: argv, e.g. ("tmux", "list-sessions")

        Returns:
            Trimmed stdout. Empty string when tmux reports that no server or
            no sessions exist.

        Raises:
            ExecutionError: On any other non-zero exit, or if the executable
                cannot be started.
        """
        cmd = list(args)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._env,
            )
            stdout, stderr = await proc.communicate()
        except OSError as e:
            metrics.inc("process.errors", {"reason": "spawn"})
            raise ExecutionError(cmd, str(e)) from e

        output = stdout.decode(errors="replace").strip()
        error_output = stderr.decode(errors="replace").strip()

        if proc.returncode != 0:
            if any(marker in error_output for marker in config.BENIGN_ERROR_MARKERS):
                return ""
            message = error_output or f"Command failed with exit code {proc.returncode}"
            logger.debug(f"[Process] {' '.join(cmd)} -> {message}")
            raise ExecutionError(cmd, message)

        return output

    def spawn(self, *args: str) -> bool:
        """Start a detached process without waiting for it.

        Returns:
            True if the process was started.
        """
        try:
            subprocess.Popen(
                list(args),
                env=self._env,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
            return True
        except OSError as e:
            logger.error(f"[Process] Failed to spawn {args[0]}: {e}")
            return False

    def which(self, command: str) -> str | None:
        """Resolve a command on the augmented PATH."""
        return shutil.which(command, path=self._env["PATH"])
