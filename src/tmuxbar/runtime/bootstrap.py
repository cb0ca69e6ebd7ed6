"""Bootstrap - builds the service graph once at startup

Responsibilities:
- create the process runner, tmux client, stores, engine, timer, reconciler
- load persisted preferences and templates
- hand back RuntimeComponents to the caller

Not responsible for:
- starting/stopping monitoring (the caller owns the lifecycle)
- the web server
"""

from dataclasses import dataclass
from pathlib import Path

from .. import config
from ..preferences import PreferencesStore
from ..process import ProcessRunner
from ..reconciler import SessionReconciler
from ..telemetry import get_logger
from ..templates import TemplateEngine, TemplateStore
from ..terminal import TerminalLauncher
from ..timer import Timer
from ..tmux import TmuxClient

logger = get_logger(__name__)


@dataclass
class RuntimeComponents:
    """Everything a front end needs, constructed once and passed around."""

    runner: ProcessRunner
    client: TmuxClient
    preferences: PreferencesStore
    templates: TemplateStore
    engine: TemplateEngine
    launcher: TerminalLauncher
    timer: Timer
    reconciler: SessionReconciler

    async def start(self) -> None:
        await self.reconciler.start_monitoring()
        logger.info("[Bootstrap] Monitoring started")

    def stop(self) -> None:
        self.reconciler.stop_monitoring()
        logger.info("[Bootstrap] Monitoring stopped")


def bootstrap(
    runner: ProcessRunner | None = None,
    data_dir: Path | None = None,
    socket_path: str | None = None,
    persist: bool = True,
) -> RuntimeComponents:
    """Construct the runtime components.

    Args:
        runner: Process runner; replace with a fake in tests
        data_dir: Directory for preferences/templates, default from config
        socket_path: Optional tmux socket path
        persist: If False nothing is read from or written to disk
    """
    runner = runner or ProcessRunner()
    client = TmuxClient(runner=runner, socket_path=socket_path)

    if persist:
        base = data_dir or config.DATA_DIR
        preferences = PreferencesStore(base / config.PREFERENCES_FILE.name)
        templates = TemplateStore(base / config.TEMPLATES_FILE.name)
        preferences.load()
        templates.load()
    else:
        preferences = PreferencesStore()
        templates = TemplateStore()

    engine = TemplateEngine(client)
    launcher = TerminalLauncher(runner)
    timer = Timer()
    reconciler = SessionReconciler(
        client,
        preferences,
        timer=timer,
        engine=engine,
        launcher=launcher,
    )

    if not client.is_installed():
        logger.warning("[Bootstrap] tmux not found on PATH; every refresh will fail")

    logger.info("[Bootstrap] Components created")
    return RuntimeComponents(
        runner=runner,
        client=client,
        preferences=preferences,
        templates=templates,
        engine=engine,
        launcher=launcher,
        timer=timer,
        reconciler=reconciler,
    )
