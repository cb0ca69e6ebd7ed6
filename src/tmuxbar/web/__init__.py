"""HTTP surface"""

from .server import WebServer

__all__ = ["WebServer"]
