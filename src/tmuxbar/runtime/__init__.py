"""Runtime module - bootstrap and lifecycle"""

from .bootstrap import (
    RuntimeComponents,
    bootstrap,
)

__all__ = [
    "bootstrap",
    "RuntimeComponents",
]
