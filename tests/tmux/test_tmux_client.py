"""Tests for TmuxClient."""

import pytest

from conftest import FakeRunner, lines, tmux_error
from tmuxbar.process import ExecutionError
from tmuxbar.telemetry import metrics
from tmuxbar.tmux.client import (
    PANE_FORMAT,
    SESSION_FORMAT,
    TmuxClient,
    parse_panes,
    parse_sessions,
    parse_windows,
)


class TestParsing:
    """Output parsing"""

    def test_parse_sessions_in_order(self):
        output = lines(("$0", "work", 2, 1), ("$1", "play", 1, 0), ("$2", "misc", 3, 2))
        sessions = parse_sessions(output)

        assert [s.name for s in sessions] == ["work", "play", "misc"]
        assert [s.id for s in sessions] == ["$0", "$1", "$2"]
        assert sessions[0].window_count == 2
        assert sessions[0].attached is True
        assert sessions[1].attached is False
        # attached only when the field is exactly "1"
        assert sessions[2].attached is False

    def test_malformed_line_dropped(self):
        """A short line is skipped without losing its neighbours"""
        output = "\n".join(["$0\twork\t2\t1", "$1\tbroken", "$2\tplay\t1\t0"])
        sessions = parse_sessions(output)

        assert [s.name for s in sessions] == ["work", "play"]

    def test_non_numeric_count_becomes_zero(self):
        sessions = parse_sessions(lines(("$0", "work", "x", "0")))
        assert sessions[0].window_count == 0

    def test_name_with_colon(self):
        sessions = parse_sessions(lines(("$0", "host:8080", 1, 0)))
        assert sessions[0].name == "host:8080"

    def test_empty_output(self):
        assert parse_sessions("") == []

    def test_parse_windows(self):
        windows = parse_windows(lines(("@1", "editor", 1, 2), ("@2", "logs", 0, 1)))

        assert [w.id for w in windows] == ["@1", "@2"]
        assert windows[0].active is True
        assert windows[0].pane_count == 2
        assert windows[1].active is False

    def test_parse_windows_drops_short_lines(self):
        windows = parse_windows("@1\teditor\t1\n@2\tlogs\t0\t1")
        assert [w.name for w in windows] == ["logs"]

    def test_parse_panes(self):
        panes = parse_panes(lines(("%0", "nvim", 1, 80, 24), ("%1", "", 0, 40, 24)))

        assert panes[0].current_command == "nvim"
        assert panes[0].width == 80
        assert panes[1].current_command is None
        assert panes[1].active is False


class TestTmuxClient:
    """TmuxClient command building and error handling"""

    def test_default_runner_created(self):
        client = TmuxClient()
        assert client.runner is not None

    @pytest.mark.asyncio
    async def test_run_with_socket(self, fake_runner):
        client = TmuxClient(runner=fake_runner, tmux_binary="tmux", socket_path="/tmp/test.sock")
        await client.run("list-sessions")

        assert fake_runner.calls[0] == ["tmux", "-S", "/tmp/test.sock", "list-sessions"]

    @pytest.mark.asyncio
    async def test_run_failure_counts_error(self, client, fake_runner):
        fake_runner.responses["kill-session"] = tmux_error()

        with pytest.raises(ExecutionError):
            await client.run("kill-session", "-t", "x")
        assert metrics.get_counter("tmux.errors", {"command": "kill-session"}) == 1

    @pytest.mark.asyncio
    async def test_list_sessions_populates_windows(self, client, fake_runner):
        fake_runner.responses["list-sessions"] = lines(("$0", "work", 2, 1), ("$1", "play", 1, 0))
        fake_runner.responses["list-windows"] = [
            lines(("@0", "editor", 1, 1), ("@1", "shell", 0, 2)),
            lines(("@2", "game", 1, 1)),
        ]

        sessions = await client.list_sessions()

        assert [len(s.windows) for s in sessions] == [2, 1]
        assert sessions[0].windows[1].pane_count == 2
        assert fake_runner.calls[0] == ["tmux", "list-sessions", "-F", SESSION_FORMAT]
        assert fake_runner.calls[1][:4] == ["tmux", "list-windows", "-t", "work"]
        assert fake_runner.calls[2][:4] == ["tmux", "list-windows", "-t", "play"]

    @pytest.mark.asyncio
    async def test_list_sessions_empty_server(self, client, fake_runner):
        """No server: the runner yields "" and nothing else is queried"""
        fake_runner.responses["list-sessions"] = ""

        assert await client.list_sessions() == []
        assert fake_runner.subcommands() == ["list-sessions"]

    @pytest.mark.asyncio
    async def test_list_sessions_propagates_failure(self, client, fake_runner):
        fake_runner.responses["list-sessions"] = tmux_error("server exited unexpectedly")

        with pytest.raises(ExecutionError):
            await client.list_sessions()

    @pytest.mark.asyncio
    async def test_list_sessions_keeps_session_when_windows_fail(self, client, fake_runner):
        fake_runner.responses["list-sessions"] = lines(("$0", "gone", 1, 0), ("$1", "ok", 1, 0))
        fake_runner.responses["list-windows"] = [tmux_error(), lines(("@1", "w", 1, 1))]

        sessions = await client.list_sessions()

        assert [s.name for s in sessions] == ["gone", "ok"]
        assert sessions[0].windows == []
        assert len(sessions[1].windows) == 1

    @pytest.mark.asyncio
    async def test_list_sessions_with_panes(self, client, fake_runner):
        fake_runner.responses["list-sessions"] = lines(("$0", "work", 1, 0))
        fake_runner.responses["list-windows"] = lines(("@3", "editor", 1, 2))
        fake_runner.responses["list-panes"] = lines(("%0", "nvim", 1, 80, 24), ("%1", "zsh", 0, 80, 24))

        sessions = await client.list_sessions(include_panes=True)

        window = sessions[0].windows[0]
        assert len(window.panes) == window.pane_count == 2
        assert fake_runner.calls[-1] == ["tmux", "list-panes", "-t", "work:@3", "-F", PANE_FORMAT]

    @pytest.mark.asyncio
    async def test_list_panes_failure_is_empty(self, client, fake_runner):
        fake_runner.responses["list-panes"] = tmux_error()
        assert await client.list_panes("work", 0) == []

    @pytest.mark.asyncio
    async def test_create_session(self, client, fake_runner):
        assert await client.create_session("work") is True
        assert await client.create_session("proj", directory="/tmp/proj") is True

        assert fake_runner.calls[0] == ["tmux", "new-session", "-d", "-s", "work"]
        assert fake_runner.calls[1] == [
            "tmux", "new-session", "-d", "-s", "proj", "-c", "/tmp/proj"
        ]

    @pytest.mark.asyncio
    async def test_mutation_failure_returns_false(self, client, fake_runner):
        fake_runner.responses["new-session"] = tmux_error("duplicate session: work")
        assert await client.create_session("work") is False
        # not retried
        assert fake_runner.subcommands() == ["new-session"]

    @pytest.mark.asyncio
    async def test_kill_and_rename_session(self, client, fake_runner):
        await client.kill_session("work")
        await client.rename_session("work", "work2")

        assert fake_runner.calls[0] == ["tmux", "kill-session", "-t", "work"]
        assert fake_runner.calls[1] == ["tmux", "rename-session", "-t", "work", "work2"]

    @pytest.mark.asyncio
    async def test_window_commands(self, client, fake_runner):
        await client.create_window("work")
        await client.create_window("work", "logs")
        await client.rename_window("work", 0, "editor")
        await client.kill_window("work", "@4")

        assert fake_runner.calls == [
            ["tmux", "new-window", "-t", "work"],
            ["tmux", "new-window", "-t", "work", "-n", "logs"],
            ["tmux", "rename-window", "-t", "work:0", "editor"],
            ["tmux", "kill-window", "-t", "work:@4"],
        ]

    @pytest.mark.asyncio
    async def test_split_targets(self, client, fake_runner):
        await client.split_horizontal("work")
        await client.split_vertical("work", 2)

        assert fake_runner.calls == [
            ["tmux", "split-window", "-h", "-t", "work"],
            ["tmux", "split-window", "-v", "-t", "work:2"],
        ]

    @pytest.mark.asyncio
    async def test_pane_commands(self, client, fake_runner):
        await client.select_pane("work", 1, 0)
        await client.resize_pane("work", 1, 1, 40)
        await client.send_keys("work", 1, 2, "npm run dev")
        await client.send_keys("work", 1, 2, "q", enter=False)

        assert fake_runner.calls == [
            ["tmux", "select-pane", "-t", "work:1.0"],
            ["tmux", "resize-pane", "-t", "work:1.1", "-x", "40"],
            ["tmux", "send-keys", "-t", "work:1.2", "npm run dev", "Enter"],
            ["tmux", "send-keys", "-t", "work:1.2", "q"],
        ]

    @pytest.mark.asyncio
    async def test_capture_pane(self, client, fake_runner):
        fake_runner.responses["capture-pane"] = "$ ls\nfile.txt"

        content = await client.capture_pane("work", 0, 1, lines=50, escape=True)

        assert content == "$ ls\nfile.txt"
        assert fake_runner.calls[0] == [
            "tmux", "capture-pane", "-t", "work:0.1", "-p", "-S", "-50", "-e"
        ]

    @pytest.mark.asyncio
    async def test_capture_pane_failure_is_empty(self, client, fake_runner):
        fake_runner.responses["capture-pane"] = tmux_error()
        assert await client.capture_pane("missing") == ""

    @pytest.mark.asyncio
    async def test_metadata_queries(self, client, fake_runner):
        fake_runner.responses["display-message"] = ["vim", "/home/user/src"]

        assert await client.get_current_command("work") == "vim"
        assert await client.get_current_path("work") == "/home/user/src"
        assert fake_runner.calls[0] == [
            "tmux", "display-message", "-t", "work:0.0", "-p", "#{pane_current_command}"
        ]

    @pytest.mark.asyncio
    async def test_metadata_failure_is_empty(self, client, fake_runner):
        fake_runner.responses["display-message"] = tmux_error()
        assert await client.get_current_command("work") == ""
        assert await client.get_current_path("work") == ""

    @pytest.mark.asyncio
    async def test_server_queries(self, client, fake_runner):
        fake_runner.responses["list-sessions"] = ["work: 1 windows", ""]

        assert await client.is_server_running() is True
        assert await client.is_server_running() is False
        assert await client.start_server() is True
        assert await client.kill_server() is True

    def test_is_installed(self):
        assert TmuxClient(runner=FakeRunner(installed={"tmux"}), tmux_binary="tmux").is_installed()
        assert not TmuxClient(runner=FakeRunner(installed=set()), tmux_binary="tmux").is_installed()
