"""Terminal tab domain package."""

from .models import SessionEvent, SurfaceStyle, TabState, Terminal
from .session import SessionManager
from .surface import (
    SessionLauncher,
    SurfaceFactory,
    TerminalSurface,
    build_shell_command,
    directory_from_uri,
    launch_session,
)

__all__ = [
    "build_shell_command",
    "directory_from_uri",
    "launch_session",
    "SessionEvent",
    "SessionLauncher",
    "SessionManager",
    "SurfaceFactory",
    "SurfaceStyle",
    "TabState",
    "Terminal",
    "TerminalSurface",
]
