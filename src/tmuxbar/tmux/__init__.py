"""tmux command layer."""

from .client import TmuxClient, parse_panes, parse_sessions, parse_windows

__all__ = ["TmuxClient", "parse_panes", "parse_sessions", "parse_windows"]
