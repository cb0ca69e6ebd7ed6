"""Template engine: builds a live tmux session from a SessionTemplate.

Application is best-effort. Only creating the base session can fail the
operation; every later step is logged on failure and skipped, earlier steps
are never rolled back.
"""

from tmuxbar import config
from tmuxbar.models import PaneLayout, SessionTemplate, WindowTemplate
from tmuxbar.telemetry import get_logger, metrics
from tmuxbar.tmux.client import TmuxClient

logger = get_logger(__name__)


class TemplateEngine:
    """Issues the ordered tmux calls that reproduce a template's layout."""

    def __init__(self, client: TmuxClient):
        self._client = client

    async def materialize(self, template: SessionTemplate, session_name: str) -> bool:
        """Create ``session_name`` and apply ``template`` to it.

        Returns:
            False only if the base session could not be created.
        """
        created = await self._client.create_session(
            session_name, directory=template.working_directory
        )
        if not created:
            logger.error(
                f"[TemplateEngine] Could not create session {session_name!r} "
                f"for template {template.name!r}"
            )
            return False

        for index, window in enumerate(template.windows):
            await self._apply_window(session_name, index, window)

        logger.info(
            f"[TemplateEngine] Applied {template.name!r} to {session_name!r} "
            f"({len(template.windows)} windows)"
        )
        return True

    async def _apply_window(self, session_name: str, index: int, window: WindowTemplate) -> None:
        # A new session starts with exactly one window at index 0.
        if index == 0:
            ok = await self._client.rename_window(session_name, 0, window.name)
        else:
            ok = await self._client.create_window(session_name, window.name)
        self._check(ok, session_name, f"window {index} ({window.name!r})")

        await self.apply_layout(session_name, index, window.layout)

        for pane_index, command in enumerate(window.commands):
            if not command:
                continue
            ok = await self._client.send_keys(session_name, index, pane_index, command)
            self._check(ok, session_name, f"command in pane {index}.{pane_index}")

    async def apply_layout(self, session_name: str, index: int, layout: PaneLayout) -> None:
        """Run the split recipe for ``layout`` against window ``index``.

        Panes are numbered in creation order, so the step order decides which
        pane index lands in which screen position.
        """
        client = self._client
        if layout is PaneLayout.SINGLE:
            return
        if layout is PaneLayout.HORIZONTAL_SPLIT:
            self._check(await client.split_horizontal(session_name, index), session_name, "split")
        elif layout is PaneLayout.VERTICAL_SPLIT:
            self._check(await client.split_vertical(session_name, index), session_name, "split")
        elif layout is PaneLayout.FOUR_PANE:
            self._check(await client.split_horizontal(session_name, index), session_name, "split")
            self._check(await client.split_vertical(session_name, index), session_name, "split")
            self._check(await client.select_pane(session_name, index, 0), session_name, "select")
            self._check(await client.split_vertical(session_name, index), session_name, "split")
        elif layout is PaneLayout.MAIN_WITH_SIDEBAR:
            self._check(await client.split_horizontal(session_name, index), session_name, "split")
            self._check(
                await client.resize_pane(session_name, index, 1, config.SIDEBAR_WIDTH),
                session_name,
                "resize",
            )

    def _check(self, ok: bool, session_name: str, step: str) -> None:
        if not ok:
            logger.warning(f"[TemplateEngine] {session_name}: {step} failed, continuing")
            metrics.inc("template.step_failed")
