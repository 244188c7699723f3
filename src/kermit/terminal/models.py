"""Terminal tab domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from kermit.config import Configuration, CursorShape
from kermit.palette import Color

if TYPE_CHECKING:
    from kermit.terminal.surface import TerminalSurface


class TabState(str, Enum):
    SPAWNING = "spawning"
    RUNNING = "running"
    FAILED = "failed"
    CLOSING = "closing"
    REMOVED = "removed"


@dataclass(frozen=True)
class SurfaceStyle:
    """Everything a surface needs to render one Configuration generation."""

    locale: str
    word_chars: str
    foreground: Color
    background: Color
    foreground_bold: Color
    cursor: Color
    cursor_foreground: Color
    cursor_shape: CursorShape
    palette: tuple[Color, ...]

    @classmethod
    def from_config(cls, config: Configuration) -> SurfaceStyle:
        return cls(
            locale=config.locale,
            word_chars=config.word_chars,
            foreground=Color.from_hex(config.foreground),
            background=Color.from_hex(config.background, alpha=config.opacity),
            foreground_bold=Color.from_hex(config.foreground_bold),
            cursor=Color.from_hex(config.cursor),
            cursor_foreground=Color.from_hex(config.cursor_foreground),
            cursor_shape=config.cursor_shape,
            palette=config.palette,
        )


@dataclass
class Terminal:
    terminal_id: str
    surface: TerminalSurface
    working_directory: str
    font_size: int
    state: TabState = TabState.SPAWNING
    close_pending: bool = False
    pid: int | None = None
    title: str = ""
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SessionEvent:
    terminal_id: str
    step: str
    message: str
