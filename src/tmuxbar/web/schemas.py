"""Request/response bodies for the HTTP surface"""

from typing import Literal

from pydantic import BaseModel

from tmuxbar.terminal import TerminalApp


class CreateSessionRequest(BaseModel):
    name: str
    directory: str | None = None


class TemplateSessionRequest(BaseModel):
    template_id: str
    name: str | None = None  # generated from the template name when omitted
    working_directory: str | None = None


class RenameRequest(BaseModel):
    new_name: str


class CreateWindowRequest(BaseModel):
    name: str | None = None


class SplitRequest(BaseModel):
    direction: Literal["horizontal", "vertical"] = "horizontal"
    window_id: str | None = None


class GroupMemberRequest(BaseModel):
    session_name: str


class PreferencesUpdate(BaseModel):
    terminal_app: TerminalApp | None = None
    refresh_interval: float | None = None
    show_window_count: bool | None = None
    show_attached_indicator: bool | None = None


class OperationResponse(BaseModel):
    """Result of a mutating call"""

    success: bool
    error: str | None = None


class FavoriteResponse(BaseModel):
    session_name: str
    favorite: bool


class PreviewResponse(BaseModel):
    session_name: str
    content: str
    current_command: str
    current_path: str


class TerminalInfo(BaseModel):
    """One attach strategy as offered to the user"""

    app: TerminalApp
    display_name: str
    installed: bool
    selected: bool


class ServerStatus(BaseModel):
    running: bool
