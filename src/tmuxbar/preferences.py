"""Preferences store

Holds favorites, groups, the attach terminal, the refresh interval and
display toggles. Favorites and groups refer to sessions by name.
Every mutation is saved immediately when the store has a path.
"""

from pathlib import Path
from typing import Callable

from pydantic import BaseModel, Field, ValidationError, field_validator

from . import config, persistence
from .telemetry import get_logger
from .terminal import TerminalApp

logger = get_logger(__name__)

IntervalObserver = Callable[[float], None]


class PreferencesRecord(BaseModel):
    """On-disk shape of the preferences file"""

    terminal_app: TerminalApp = TerminalApp(config.DEFAULT_TERMINAL_APP)
    refresh_interval: float = config.REFRESH_INTERVAL
    favorites: list[str] = Field(default_factory=list)
    groups: dict[str, list[str]] = Field(default_factory=dict)
    show_window_count: bool = config.DEFAULT_SHOW_WINDOW_COUNT
    show_attached_indicator: bool = config.DEFAULT_SHOW_ATTACHED_INDICATOR

    @field_validator("refresh_interval")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        # Non-positive stored values fall back to the default
        return value if value > 0 else config.REFRESH_INTERVAL


class PreferencesStore:
    def __init__(self, path: Path | None = None):
        self._path = path
        defaults = PreferencesRecord()
        self._terminal_app = defaults.terminal_app
        self._refresh_interval = defaults.refresh_interval
        self._favorites: set[str] = set()
        self._groups: dict[str, list[str]] = {}
        self._show_window_count = defaults.show_window_count
        self._show_attached_indicator = defaults.show_attached_indicator
        self._interval_observers: list[IntervalObserver] = []

    # === Persistence ===

    def load(self) -> None:
        """Load from disk; missing or invalid files leave the defaults."""
        if self._path is None:
            return
        payload = persistence.load(self._path)
        if payload is None:
            return
        try:
            record = PreferencesRecord.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"[Preferences] Ignoring invalid preferences: {e}")
            return
        self._apply(record)
        logger.info(
            f"[Preferences] Loaded {len(self._favorites)} favorites, {len(self._groups)} groups"
        )

    def save(self) -> bool:
        if self._path is None:
            return True
        return persistence.save(self.to_record().model_dump(mode="json"), self._path)

    def to_record(self) -> PreferencesRecord:
        return PreferencesRecord(
            terminal_app=self._terminal_app,
            refresh_interval=self._refresh_interval,
            favorites=sorted(self._favorites),
            groups={name: list(names) for name, names in self._groups.items()},
            show_window_count=self._show_window_count,
            show_attached_indicator=self._show_attached_indicator,
        )

    def _apply(self, record: PreferencesRecord) -> None:
        self._terminal_app = record.terminal_app
        self._favorites = set(record.favorites)
        self._groups = {name: list(names) for name, names in record.groups.items()}
        self._show_window_count = record.show_window_count
        self._show_attached_indicator = record.show_attached_indicator
        self._set_interval(record.refresh_interval)

    # === Settings ===

    @property
    def terminal_app(self) -> TerminalApp:
        return self._terminal_app

    @terminal_app.setter
    def terminal_app(self, app: TerminalApp) -> None:
        self._terminal_app = app
        self.save()

    @property
    def refresh_interval(self) -> float:
        return self._refresh_interval

    @refresh_interval.setter
    def refresh_interval(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"refresh interval must be positive, got {interval}")
        self._set_interval(interval)
        self.save()

    def _set_interval(self, interval: float) -> None:
        changed = interval != self._refresh_interval
        self._refresh_interval = interval
        if changed:
            for observer in list(self._interval_observers):
                observer(interval)

    def observe_refresh_interval(self, observer: IntervalObserver) -> None:
        """Call ``observer`` with the new interval whenever it changes."""
        self._interval_observers.append(observer)

    @property
    def show_window_count(self) -> bool:
        return self._show_window_count

    @show_window_count.setter
    def show_window_count(self, value: bool) -> None:
        self._show_window_count = value
        self.save()

    @property
    def show_attached_indicator(self) -> bool:
        return self._show_attached_indicator

    @show_attached_indicator.setter
    def show_attached_indicator(self, value: bool) -> None:
        self._show_attached_indicator = value
        self.save()

    # === Favorites ===

    @property
    def favorites(self) -> frozenset[str]:
        return frozenset(self._favorites)

    def add_favorite(self, session_name: str) -> None:
        self._favorites.add(session_name)
        self.save()

    def remove_favorite(self, session_name: str) -> None:
        self._favorites.discard(session_name)
        self.save()

    def is_favorite(self, session_name: str) -> bool:
        return session_name in self._favorites

    # === Groups ===

    @property
    def groups(self) -> dict[str, list[str]]:
        """Copy of group name -> ordered session names."""
        return {name: list(names) for name, names in self._groups.items()}

    def update_group(self, name: str, sessions: list[str]) -> None:
        self._groups[name] = list(sessions)
        self.save()

    def remove_group(self, name: str) -> None:
        if self._groups.pop(name, None) is not None:
            self.save()

    def rename_group(self, old_name: str, new_name: str) -> None:
        if old_name not in self._groups:
            return
        self._groups[new_name] = self._groups.pop(old_name)
        self.save()

    # === Reset ===

    def reset_to_defaults(self) -> None:
        self._apply(PreferencesRecord())
        self.save()
