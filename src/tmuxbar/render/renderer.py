"""Pane preview renderer using Rich."""

import io
import re

from rich.console import Console
from rich.text import Text

from tmuxbar import config

# Characters outside the XML 1.0 range
_INVALID_XML_CHARS_RE = re.compile(
    r"[\x00-\x08\x0b\x0c\x0e-\x1a\x1c-\x1f\x7f-\x9f\ud800-\udfff\ufffe\uffff]"
)


def _sanitize_for_xml(text: str) -> str:
    """Drop characters XML cannot carry; ESC (\\x1b) is kept for ANSI parsing."""
    return _INVALID_XML_CHARS_RE.sub("", text)


def shorten_path(path: str, home: str) -> str:
    """Replace a leading home directory with ``~``."""
    if home and path.startswith(home):
        return "~" + path[len(home):]
    return path


class PreviewRenderer:
    """Renders captured pane text (optionally with ANSI colours) to SVG."""

    def __init__(self, width: int = config.PREVIEW_WIDTH):
        self.width = width

    def render_ansi_text(self, text: str, title: str = "", height: int | None = None) -> str:
        """Render ANSI-escaped text to an SVG document.

        Args:
            text: Output of ``capture-pane -e`` (plain text works too)
            title: Window title shown in the SVG chrome
            height: Terminal height in lines
        """
        rich_text = Text.from_ansi(_sanitize_for_xml(text))

        console = Console(
            record=True,
            width=self.width,
            height=height,
            force_terminal=True,
            color_system="truecolor",
            file=io.StringIO(),
        )
        console.print(rich_text, end="")
        return console.export_svg(title=title)

