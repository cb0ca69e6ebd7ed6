"""ProcessRunner tests"""

import os
from unittest.mock import AsyncMock, patch

import pytest

from tmuxbar import config
from tmuxbar.process import ExecutionError, ProcessRunner, augmented_path


def fake_proc(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> AsyncMock:
    proc = AsyncMock()
    proc.communicate.return_value = (stdout, stderr)
    proc.returncode = returncode
    return proc


class TestProcessRunner:
    def test_augmented_path_prepends_install_dirs(self):
        path = augmented_path("/custom/bin")
        parts = path.split(os.pathsep)
        assert parts[: len(config.EXTRA_PATH_DIRS)] == config.EXTRA_PATH_DIRS
        assert parts[-1] == "/custom/bin"

    @pytest.mark.asyncio
    async def test_run_success_trims_output(self):
        runner = ProcessRunner()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = fake_proc(b"  work\n")

            result = await runner.run("tmux", "list-sessions")

        assert result == "work"
        call_args = mock_exec.call_args
        assert call_args[0] == ("tmux", "list-sessions")
        assert call_args[1]["env"]["PATH"].startswith(config.EXTRA_PATH_DIRS[0])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "stderr",
        [
            b"no server running on /tmp/tmux-501/default\n",
            b"error connecting to /tmp/tmux-1000/default (No such file or directory)\nno sessions\n",
        ],
    )
    async def test_empty_server_is_success(self, stderr):
        runner = ProcessRunner()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = fake_proc(stderr=stderr, returncode=1)

            assert await runner.run("tmux", "list-sessions") == ""

    @pytest.mark.asyncio
    async def test_failure_carries_stderr(self):
        runner = ProcessRunner()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = fake_proc(stderr=b"duplicate session: work\n", returncode=1)

            with pytest.raises(ExecutionError) as exc_info:
                await runner.run("tmux", "new-session", "-d", "-s", "work")

        assert exc_info.value.message == "duplicate session: work"
        assert exc_info.value.command == ["tmux", "new-session", "-d", "-s", "work"]

    @pytest.mark.asyncio
    async def test_failure_without_stderr_uses_exit_code(self):
        runner = ProcessRunner()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.return_value = fake_proc(returncode=2)

            with pytest.raises(ExecutionError, match="exit code 2"):
                await runner.run("tmux", "kill-server")

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        runner = ProcessRunner()

        with patch("asyncio.create_subprocess_exec", new_callable=AsyncMock) as mock_exec:
            mock_exec.side_effect = FileNotFoundError("tmux")

            with pytest.raises(ExecutionError):
                await runner.run("tmux", "list-sessions")

    def test_spawn(self):
        runner = ProcessRunner()

        with patch("subprocess.Popen") as mock_popen:
            assert runner.spawn("kitty", "tmux", "attach") is True
            assert mock_popen.call_args[0][0] == ["kitty", "tmux", "attach"]
            assert mock_popen.call_args[1]["start_new_session"] is True

            mock_popen.side_effect = OSError("not found")
            assert runner.spawn("kitty") is False

    def test_which_uses_augmented_path(self):
        runner = ProcessRunner()

        with patch("shutil.which", return_value="/opt/homebrew/bin/tmux") as mock_which:
            assert runner.which("tmux") == "/opt/homebrew/bin/tmux"
            assert mock_which.call_args[1]["path"].startswith(config.EXTRA_PATH_DIRS[0])
