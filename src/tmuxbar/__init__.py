"""tmuxbar: mirror tmux sessions into a live model and manage them from templates"""

__version__ = "0.1.0"
