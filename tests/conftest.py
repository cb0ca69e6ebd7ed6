"""Pytest configuration and shared fakes"""

import pytest

from tmuxbar.preferences import PreferencesStore
from tmuxbar.process import ExecutionError
from tmuxbar.telemetry import metrics
from tmuxbar.tmux.client import TmuxClient


class FakeRunner:
    """Stands in for ProcessRunner.

    ``responses`` maps the tmux subcommand (argv[1]) to a string, an
    ExecutionError, a callable taking argv, or a list consumed in order.
    """

    def __init__(self, responses: dict | None = None, installed: set[str] | None = None):
        self.responses = dict(responses or {})
        self.installed = installed if installed is not None else {"tmux"}
        self.calls: list[list[str]] = []
        self.spawned: list[list[str]] = []

    async def run(self, *args: str) -> str:
        self.calls.append(list(args))
        key = args[1] if len(args) > 1 else args[0]
        response = self.responses.get(key, "")
        if isinstance(response, list):
            response = response.pop(0) if response else ""
        if callable(response):
            response = response(list(args))
        if isinstance(response, Exception):
            raise response
        return response

    def spawn(self, *args: str) -> bool:
        self.spawned.append(list(args))
        return True

    def which(self, command: str) -> str | None:
        return f"/usr/bin/{command}" if command in self.installed else None

    def subcommands(self) -> list[str]:
        """tmux subcommands in call order"""
        return [call[1] for call in self.calls if len(call) > 1]


def tmux_error(message: str = "can't find session: nope") -> ExecutionError:
    return ExecutionError(["tmux"], message)


def lines(*rows: tuple) -> str:
    """Join rows of fields the way tmux prints them."""
    return "\n".join("\t".join(str(f) for f in row) for row in rows)


@pytest.fixture
def anyio_backend():
    """Use only the asyncio backend for anyio"""
    return "asyncio"


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def client(fake_runner):
    return TmuxClient(runner=fake_runner, tmux_binary="tmux")


@pytest.fixture
def preferences():
    """In-memory preferences (no file)"""
    return PreferencesStore()


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
