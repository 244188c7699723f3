"""Settings model and line-oriented config file parsing."""

from __future__ import annotations

import logging as py_logging
import re
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kermit.bindings import ActionModifier, KeyBinding
from kermit.palette import PALETTE_SIZE, Color, build_palette

logger = py_logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/kermit/kermit.conf")
DEFAULT_LOCALE = "en_US.UTF-8"
DEFAULT_WORD_CHARS = "-./?%&#_=+@~"
DEFAULT_FONT_FAMILY = "Monospace"
DEFAULT_FONT_SIZE = 9
DEFAULT_OPACITY = 0.98
MAX_COLOR = 0xFFFFFF
MIN_LINE_LENGTH = 4

_COLOR_DIRECTIVE = re.compile(r"^color(\d+)$")
_QUOTES = "\"'"


class CursorShape(str, Enum):
    BLOCK = "block"
    UNDERLINE = "underline"
    IBEAM = "ibeam"


class TabPosition(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


class Configuration(BaseModel):
    model_config = ConfigDict(frozen=True)

    locale: str = DEFAULT_LOCALE
    word_chars: str = DEFAULT_WORD_CHARS
    font_family: str = DEFAULT_FONT_FAMILY
    font_size: int = Field(default=DEFAULT_FONT_SIZE, ge=1)
    opacity: float = Field(default=DEFAULT_OPACITY, ge=0.0, le=1.0)
    foreground: int = Field(default=0xFFFFFF, ge=0, le=MAX_COLOR)
    foreground_bold: int = Field(default=0xFFFFFF, ge=0, le=MAX_COLOR)
    background: int = Field(default=0x000000, ge=0, le=MAX_COLOR)
    cursor: int = Field(default=0xFFFFFF, ge=0, le=MAX_COLOR)
    cursor_foreground: int = Field(default=0x000000, ge=0, le=MAX_COLOR)
    cursor_shape: CursorShape = CursorShape.BLOCK
    action_modifier: ActionModifier = ActionModifier.ALT
    tab_position: TabPosition = TabPosition.BOTTOM
    palette_overrides: Mapping[int, int] = Field(default_factory=lambda: MappingProxyType({}))

    @field_validator("palette_overrides")
    @classmethod
    def _validate_overrides(cls, value: Mapping[int, int]) -> Mapping[int, int]:
        for index, color in value.items():
            if index < 0 or index >= PALETTE_SIZE:
                raise ValueError(f"Invalid palette index: {index}")
            if color < 0 or color > MAX_COLOR:
                raise ValueError(f"Invalid palette color: {color:#x}")
        return MappingProxyType(dict(value))

    @property
    def palette_override_count(self) -> int:
        return len(self.palette_overrides)

    @property
    def palette(self) -> tuple[Color, ...]:
        return build_palette(self.palette_overrides)

    def without_palette_overrides(self) -> Configuration:
        return self.model_copy(update={"palette_overrides": MappingProxyType({})})


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH.expanduser()
    return Path(path).expanduser()


def parse_color(value: str) -> int:
    """Parse ``#rrggbb`` or ``rrggbb`` into a packed ``0xRRGGBB`` integer."""
    text = value.strip()
    if text.startswith("#"):
        text = text[1:]
    color = int(text, 16)
    if color < 0 or color > MAX_COLOR:
        raise ValueError(f"Color out of range: {value}")
    return color


def _strip_quotes(value: str) -> str:
    if value[:1] in _QUOTES:
        value = value[1:]
    if value[-1:] in _QUOTES:
        value = value[:-1]
    return value


def parse_binding(directive: str, remainder: str) -> KeyBinding | None:
    """Parse the ``key~command"`` part of a bind/bindx/bindi line."""
    key, separator, command = remainder.partition("~")
    key = key.strip()
    command = command.rstrip("\r\n")
    if not separator or not key or not command:
        return None
    command = _strip_quotes(command)
    if directive == "bindx":
        command += "\r"
    if not command:
        return None
    return KeyBinding(key=key, command=command, internal=directive == "bindi")


def _parse_font(remainder: str) -> tuple[str, int] | None:
    family, separator, size = remainder.strip().rpartition(" ")
    if not separator or not family.strip():
        return None
    try:
        return family.strip(), int(size)
    except ValueError:
        return None


def _parse_opacity(value: str) -> float | None:
    try:
        opacity = float(value)
    except ValueError:
        return None
    if not 0.0 <= opacity <= 1.0:
        return None
    return opacity


def _cursor_shape(value: str) -> CursorShape:
    if value == CursorShape.UNDERLINE.value:
        return CursorShape.UNDERLINE
    if value == CursorShape.IBEAM.value:
        return CursorShape.IBEAM
    return CursorShape.BLOCK


_COLOR_FIELDS = {
    "cursor": "cursor",
    "cursor_foreground": "cursor_foreground",
    "foreground": "foreground",
    "foreground_bold": "foreground_bold",
    "background": "background",
}


class _SettingsBuilder:
    """Accumulates directive values for one parse pass."""

    def __init__(self) -> None:
        self.values: dict[str, object] = {}
        self.overrides: dict[int, int] = {}
        self.bindings: list[KeyBinding] = []

    def apply(self, line_no: int, line: str) -> None:
        parts = line.split(None, 1)
        if not parts:
            return
        directive = parts[0]
        remainder = parts[1].strip() if len(parts) > 1 else ""
        value = remainder.split(None, 1)[0] if remainder else ""

        if directive == "locale":
            if value:
                self.values["locale"] = value
        elif directive == "char":
            self.values["word_chars"] = _strip_quotes(value)
        elif directive == "key":
            self.values["action_modifier"] = (
                ActionModifier.ALT if value == ActionModifier.ALT.value else ActionModifier.SHIFT
            )
        elif directive in {"bind", "bindx", "bindi"}:
            binding = parse_binding(directive, remainder)
            if binding is None:
                logger.debug("config-skip line=%s reason=unparsable-binding", line_no)
                return
            self.bindings.append(binding)
            logger.debug(
                "config-binding index=%s key=%s command=%r internal=%s",
                len(self.bindings),
                binding.key,
                binding.command,
                binding.internal,
            )
        elif directive == "tab":
            self.values["tab_position"] = (
                TabPosition.BOTTOM if value == TabPosition.BOTTOM.value else TabPosition.TOP
            )
        elif directive == "font":
            font = _parse_font(remainder)
            if font is None or font[1] < 1:
                logger.debug("config-skip line=%s reason=invalid-font", line_no)
                return
            self.values["font_family"], self.values["font_size"] = font
        elif directive == "opacity":
            opacity = _parse_opacity(value)
            if opacity is None:
                logger.debug("config-skip line=%s reason=invalid-opacity", line_no)
                return
            self.values["opacity"] = opacity
        elif directive == "cursor_shape":
            self.values["cursor_shape"] = _cursor_shape(value)
        elif directive in _COLOR_FIELDS:
            color = self._color(line_no, value)
            if color is not None:
                self.values[_COLOR_FIELDS[directive]] = color
        else:
            match = _COLOR_DIRECTIVE.match(directive)
            if match is None:
                logger.debug("config-skip line=%s reason=unknown-directive option=%s", line_no, directive)
                return
            index = int(match.group(1))
            if index >= PALETTE_SIZE:
                logger.debug("config-skip line=%s reason=palette-index index=%s", line_no, index)
                return
            color = self._color(line_no, value)
            if color is not None:
                self.overrides[index] = color

    def _color(self, line_no: int, value: str) -> int | None:
        try:
            return parse_color(value)
        except ValueError:
            logger.debug("config-skip line=%s reason=invalid-color value=%s", line_no, value)
            return None

    def build(self) -> Configuration:
        return Configuration(palette_overrides=self.overrides, **self.values)


def parse_config_text(text: str) -> tuple[Configuration, list[KeyBinding]]:
    builder = _SettingsBuilder()
    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip("\r\n")
        if line.startswith("#") or len(line) < MIN_LINE_LENGTH:
            continue
        builder.apply(line_no, line)
    return builder.build(), builder.bindings


def parse_config(path: str | Path | None = None) -> tuple[Configuration, list[KeyBinding]]:
    """Read a config file into a fresh Configuration and its user bindings.

    A missing or unreadable file is not an error: the built-in defaults and an
    empty binding list are returned.
    """
    resolved = get_config_path(path)
    try:
        text = resolved.read_text(encoding="utf-8", errors="replace")
    except OSError:
        logger.info("config-load path=%s result=not-found", resolved)
        return Configuration(), []
    config, bindings = parse_config_text(text)
    logger.debug(
        "config-load path=%s bindings=%s palette_overrides=%s",
        resolved,
        len(bindings),
        config.palette_override_count,
    )
    return config, bindings
