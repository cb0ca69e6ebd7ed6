"""TerminalLauncher tests"""

import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from conftest import FakeRunner, tmux_error
from tmuxbar.terminal import TerminalApp, TerminalLauncher, attach_command


@pytest.fixture
def runner():
    return FakeRunner(installed={"tmux", "alacritty"})


@pytest.fixture
def launcher(runner):
    return TerminalLauncher(runner)


def test_attach_command_quotes_name():
    assert attach_command("my work").endswith("attach -t 'my work'")


class TestTerminalApp:
    def test_display_names(self):
        assert TerminalApp.ITERM2.display_name == "iTerm2"
        assert TerminalApp("Kitty") is TerminalApp.KITTY

    def test_terminal_always_installed(self, runner):
        assert TerminalApp.TERMINAL.is_installed(runner)

    def test_cli_terminals_use_which(self, runner):
        assert TerminalApp.ALACRITTY.is_installed(runner)
        assert not TerminalApp.KITTY.is_installed(runner)

    def test_bundle_terminals_check_applications(self, runner):
        with patch("tmuxbar.terminal.os.path.exists", return_value=True) as exists:
            assert TerminalApp.WARP.is_installed(runner)
        exists.assert_called_once_with("/Applications/Warp.app")


class TestAttach:
    @pytest.mark.asyncio
    async def test_terminal_runs_applescript(self, launcher, runner):
        assert await launcher.attach(TerminalApp.TERMINAL, "work") is True

        (call,) = runner.calls
        assert call[:2] == ["osascript", "-e"]
        assert 'tell application "Terminal"' in call[2]
        assert "attach -t 'work'" in call[2]

    @pytest.mark.asyncio
    async def test_applescript_failure(self, launcher, runner):
        runner.responses["-e"] = tmux_error("execution error: Not authorized")

        assert await launcher.attach(TerminalApp.TERMINAL, "work") is False

    @pytest.mark.asyncio
    async def test_alacritty_spawns_with_resolved_path(self, launcher, runner):
        assert await launcher.attach(TerminalApp.ALACRITTY, "work") is True

        assert runner.spawned == [
            ["/usr/bin/alacritty", "-e", "tmux", "attach", "-t", "work"]
        ]
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_kitty_falls_back_to_usr_local(self, launcher, runner):
        assert await launcher.attach(TerminalApp.KITTY, "work") is True

        assert runner.spawned == [["/usr/local/bin/kitty", "tmux", "attach", "-t", "work"]]

    @pytest.mark.asyncio
    async def test_warp_activates_then_types(self, launcher, runner):
        with patch("tmuxbar.terminal.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await launcher.attach(TerminalApp.WARP, "work") is True

        sleep.assert_awaited_once()
        activate, keystroke = (call[2] for call in runner.calls)
        assert activate == 'tell application "Warp" to activate'
        assert "keystroke" in keystroke
        assert "attach -t 'work'" in keystroke

    @pytest.mark.asyncio
    async def test_warp_stops_when_activation_fails(self, launcher, runner):
        runner.responses["-e"] = tmux_error()

        with patch("tmuxbar.terminal.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await launcher.attach(TerminalApp.WARP, "work") is False

        sleep.assert_not_awaited()
        assert len(runner.calls) == 1


class TestITerm2:
    @staticmethod
    def fake_iterm2(window=object(), connect_error=None):
        module = MagicMock()
        if connect_error is not None:
            module.Connection.async_create = AsyncMock(side_effect=connect_error)
        else:
            module.Connection.async_create = AsyncMock(return_value="conn")
        module.Window.async_create = AsyncMock(return_value=window)
        app = MagicMock()
        app.async_activate = AsyncMock()
        module.async_get_app = AsyncMock(return_value=app)
        return module, app

    @pytest.mark.asyncio
    async def test_creates_window_with_attach_command(self, launcher):
        module, app = self.fake_iterm2()

        with patch.dict(sys.modules, {"iterm2": module}):
            assert await launcher.attach(TerminalApp.ITERM2, "work") is True

        module.Window.async_create.assert_awaited_once_with(
            "conn", command=attach_command("work")
        )
        app.async_activate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_api_unavailable(self, launcher):
        module, _ = self.fake_iterm2(connect_error=ConnectionRefusedError())

        with patch.dict(sys.modules, {"iterm2": module}):
            assert await launcher.attach(TerminalApp.ITERM2, "work") is False

    @pytest.mark.asyncio
    async def test_no_window_created(self, launcher):
        module, app = self.fake_iterm2(window=None)

        with patch.dict(sys.modules, {"iterm2": module}):
            assert await launcher.attach(TerminalApp.ITERM2, "work") is False

        app.async_activate.assert_not_awaited()
