"""Preview rendering."""

from .renderer import PreviewRenderer, shorten_path

__all__ = ["PreviewRenderer", "shorten_path"]
