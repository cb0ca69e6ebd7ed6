"""Template store: built-in templates plus user templates persisted as JSON."""

import dataclasses
import json
import time
import uuid
from pathlib import Path

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from tmuxbar import persistence
from tmuxbar.models import PaneLayout, SessionTemplate, WindowTemplate
from tmuxbar.telemetry import get_logger

from .builtin import BUILTIN_TEMPLATES

logger = get_logger(__name__)


class WindowTemplateRecord(BaseModel):
    """Interchange form of a WindowTemplate"""

    name: str
    layout: PaneLayout = PaneLayout.SINGLE
    commands: list[str] = Field(default_factory=list)


class TemplateRecord(BaseModel):
    """Interchange form of a SessionTemplate"""

    id: str | None = None
    name: str
    description: str = ""
    icon: str = "terminal"
    working_directory: str | None = None
    windows: list[WindowTemplateRecord] = Field(default_factory=list)
    built_in: bool = False

    @classmethod
    def from_template(cls, template: SessionTemplate) -> "TemplateRecord":
        return cls(
            id=template.id,
            name=template.name,
            description=template.description,
            icon=template.icon,
            working_directory=template.working_directory,
            windows=[
                WindowTemplateRecord(name=w.name, layout=w.layout, commands=list(w.commands))
                for w in template.windows
            ],
            built_in=template.built_in,
        )

    def to_template(self) -> SessionTemplate:
        return SessionTemplate(
            id=self.id or str(uuid.uuid4()),
            name=self.name,
            description=self.description,
            icon=self.icon,
            working_directory=self.working_directory,
            windows=tuple(
                WindowTemplate(w.name, w.layout, tuple(w.commands)) for w in self.windows
            ),
            built_in=self.built_in,
        )


_records_adapter = TypeAdapter(list[TemplateRecord])


def generate_session_name(template_name: str) -> str:
    """Default session name for a template, e.g. "web-development-4821"."""
    base = template_name.strip().lower().replace(" ", "-")
    return f"{base}-{int(time.time()) % 10000}"


class TemplateStore:
    """Holds built-in and custom templates.

    Built-ins are never modified or deleted; every custom mutation is saved
    immediately when the store has a path.
    """

    def __init__(self, path: Path | None = None):
        self._path = path
        self._custom: list[SessionTemplate] = []

    @property
    def custom_templates(self) -> list[SessionTemplate]:
        return list(self._custom)

    @property
    def all_templates(self) -> list[SessionTemplate]:
        return [*BUILTIN_TEMPLATES, *self._custom]

    def get(self, template_id: str) -> SessionTemplate | None:
        for template in self.all_templates:
            if template.id == template_id:
                return template
        return None

    # === Persistence ===

    def load(self) -> None:
        """Load custom templates from disk; keeps the current list on failure."""
        if self._path is None:
            return
        payload = persistence.load(self._path)
        if payload is None:
            return
        try:
            records = _records_adapter.validate_python(payload.get("templates", []))
        except ValidationError as e:
            logger.warning(f"[TemplateStore] Ignoring invalid template file: {e}")
            return
        self._custom = [
            dataclasses.replace(r.to_template(), built_in=False) for r in records
        ]
        logger.info(f"[TemplateStore] Loaded {len(self._custom)} custom templates")

    def save(self) -> bool:
        if self._path is None:
            return True
        return persistence.save({"templates": self._dump(self._custom)}, self._path)

    # === CRUD ===

    def add(self, template: SessionTemplate) -> SessionTemplate:
        added = dataclasses.replace(template, built_in=False)
        self._custom.append(added)
        self.save()
        return added

    def update(self, template: SessionTemplate) -> bool:
        """Replace a custom template with the same id.

        Returns:
            False for built-ins and unknown ids
        """
        if template.built_in:
            return False
        for index, existing in enumerate(self._custom):
            if existing.id == template.id:
                self._custom[index] = template
                self.save()
                return True
        return False

    def delete(self, template: SessionTemplate) -> bool:
        if template.built_in:
            return False
        before = len(self._custom)
        self._custom = [t for t in self._custom if t.id != template.id]
        if len(self._custom) == before:
            return False
        self.save()
        return True

    def duplicate(self, template: SessionTemplate) -> SessionTemplate:
        """Copy any template (built-in included) into a new custom one."""
        copy = dataclasses.replace(
            template,
            id=str(uuid.uuid4()),
            name=f"{template.name} Copy",
            built_in=False,
        )
        self._custom.append(copy)
        self.save()
        return copy

    # === Export / import ===

    def export_templates(self) -> str:
        """Serialize the custom templates (never built-ins) to JSON."""
        return json.dumps(self._dump(self._custom), indent=2)

    def import_templates(self, data: str | bytes) -> bool:
        """Append templates from an export.

        Each imported template gets a fresh id and is marked custom.

        Returns:
            False if ``data`` is not a valid export; nothing is imported then
        """
        try:
            records = _records_adapter.validate_json(data)
        except ValidationError as e:
            logger.warning(f"[TemplateStore] Import rejected: {e.error_count()} errors")
            return False

        for record in records:
            template = record.to_template()
            self._custom.append(
                dataclasses.replace(template, id=str(uuid.uuid4()), built_in=False)
            )
        self.save()
        logger.info(f"[TemplateStore] Imported {len(records)} templates")
        return True

    @staticmethod
    def _dump(templates: list[SessionTemplate]) -> list[dict]:
        return [TemplateRecord.from_template(t).model_dump(mode="json") for t in templates]

