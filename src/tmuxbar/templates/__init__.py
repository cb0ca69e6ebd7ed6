"""Session templates: built-ins, storage and materialization."""

from .builtin import BUILTIN_TEMPLATES
from .engine import TemplateEngine
from .store import TemplateRecord, TemplateStore, generate_session_name

__all__ = [
    "BUILTIN_TEMPLATES",
    "TemplateEngine",
    "TemplateRecord",
    "TemplateStore",
    "generate_session_name",
]
