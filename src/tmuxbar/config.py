"""tmuxbar configuration

Settings are grouped as follows:
- tmux: binary, search path, output format
- refresh: polling interval and timer tick
- templates: layout recipe constants
- persistence: preference/template file locations
- logging / metrics
- web: HTTP surface
"""

import os
from pathlib import Path

# === tmux ===
TMUX_BINARY = os.environ.get("TMUXBAR_TMUX", "tmux")
# Prepended to PATH so tmux is found when launched outside a login shell
EXTRA_PATH_DIRS = ["/opt/homebrew/bin", "/usr/local/bin", "/usr/bin", "/bin"]
# Tab avoids clashes with colons in session names and paths
FIELD_SEP = "\t"
# stderr fragments that mean "nothing to list" rather than failure
BENIGN_ERROR_MARKERS = ("no server running", "no sessions")

# === Refresh ===
REFRESH_INTERVAL = float(os.environ.get("TMUXBAR_REFRESH_INTERVAL", "3.0"))  # seconds
TIMER_TICK_INTERVAL = 0.5  # seconds
REFRESH_TASK_NAME = "refresh_sessions"

# === Preview ===
CAPTURE_LINES = 30  # scroll-back lines captured for a pane preview
PREVIEW_WIDTH = 80  # columns used when rendering a preview to SVG

# === Templates ===
SIDEBAR_WIDTH = 40  # main-with-sidebar: width of pane 1
WARP_KEYSTROKE_DELAY = 0.5  # seconds between activating Warp and typing

# === Persistence ===
DATA_DIR = Path(os.environ.get("TMUXBAR_HOME", Path.home() / ".tmuxbar"))
PREFERENCES_FILE = DATA_DIR / "preferences.json"
TEMPLATES_FILE = DATA_DIR / "templates.json"
PERSIST_VERSION = 1

# === Preference defaults ===
DEFAULT_TERMINAL_APP = "Terminal"
DEFAULT_SHOW_WINDOW_COUNT = True
DEFAULT_SHOW_ATTACHED_INDICATOR = True

# === Logging ===
LOG_LEVEL = os.environ.get("TMUXBAR_LOG_LEVEL", "INFO")

# === Metrics ===
METRICS_ENABLED = True

# === Web ===
WEB_HOST = os.environ.get("TMUXBAR_HOST", "127.0.0.1")
WEB_PORT = int(os.environ.get("TMUXBAR_PORT", "8766"))
