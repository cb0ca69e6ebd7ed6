"""Domain models

Live tmux state (Session / Window / Pane) is transient and rebuilt on every
refresh. Templates are long-lived and persisted by the template store.
"""

import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum


@dataclass(eq=False)
class Pane:
    """A terminal viewport inside a window."""
    id: str
    active: bool
    width: int = 0
    height: int = 0
    current_command: str | None = None

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Pane) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(eq=False)
class Window:
    """A tmux window; ``panes`` is only filled when explicitly requested."""
    id: str
    name: str
    active: bool
    pane_count: int
    panes: list[Pane] = field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Window) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(eq=False)
class Session:
    """A tmux session.

    Identity is the tmux-assigned ``id`` (e.g. "$3"). ``name`` can change on
    rename and is the key favorites and groups refer to.
    """
    id: str
    name: str
    window_count: int
    attached: bool
    windows: list[Window] = field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Session) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def to_dict(self) -> dict:
        return asdict(self)


class PaneLayout(Enum):
    """Fixed split arrangements a window template can request."""
    SINGLE = "single"
    HORIZONTAL_SPLIT = "horizontal_split"
    VERTICAL_SPLIT = "vertical_split"
    FOUR_PANE = "four_pane"
    MAIN_WITH_SIDEBAR = "main_with_sidebar"

    @property
    def pane_count(self) -> int:
        counts = {
            PaneLayout.SINGLE: 1,
            PaneLayout.HORIZONTAL_SPLIT: 2,
            PaneLayout.VERTICAL_SPLIT: 2,
            PaneLayout.FOUR_PANE: 4,
            PaneLayout.MAIN_WITH_SIDEBAR: 2,
        }
        return counts[self]

    @property
    def label(self) -> str:
        labels = {
            PaneLayout.SINGLE: "Single",
            PaneLayout.HORIZONTAL_SPLIT: "Horizontal Split",
            PaneLayout.VERTICAL_SPLIT: "Vertical Split",
            PaneLayout.FOUR_PANE: "Four Panes",
            PaneLayout.MAIN_WITH_SIDEBAR: "Main + Sidebar",
        }
        return labels[self]


@dataclass(frozen=True)
class WindowTemplate:
    """One window of a session template.

    ``commands`` holds one startup command per pane. It is padded with empty
    strings up to the layout's pane count; extra commands are kept.
    """
    name: str
    layout: PaneLayout = PaneLayout.SINGLE
    commands: tuple[str, ...] = ()

    def __post_init__(self):
        commands = tuple(self.commands)
        missing = max(0, self.layout.pane_count - len(commands))
        object.__setattr__(self, "commands", commands + ("",) * missing)


@dataclass(frozen=True)
class SessionTemplate:
    """Declarative recipe for building a session in one operation."""
    name: str
    description: str
    windows: tuple[WindowTemplate, ...]
    icon: str = "terminal"
    working_directory: str | None = None
    built_in: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        object.__setattr__(self, "windows", tuple(self.windows))
