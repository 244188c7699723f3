"""256-color terminal palette generation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

PALETTE_SIZE = 256

_ANSI_END = 16
_CUBE_END = 232
_ANSI_BASE = 0xC000
_ANSI_BRIGHT = 0x3FFF


@dataclass(frozen=True)
class Color:
    """RGBA color with channels normalized to 0.0-1.0."""

    red: float
    green: float
    blue: float
    alpha: float = 1.0

    @classmethod
    def from_hex(cls, value: int, alpha: float = 1.0) -> Color:
        """Build a color from a packed ``0xRRGGBB`` integer."""
        return cls(
            red=((value & 0xFF0000) >> 16) / 0xFF,
            green=((value & 0x00FF00) >> 8) / 0xFF,
            blue=(value & 0x0000FF) / 0xFF,
            alpha=alpha,
        )

    def to_hex(self) -> int:
        channels = (round(self.red * 0xFF), round(self.green * 0xFF), round(self.blue * 0xFF))
        return (channels[0] << 16) | (channels[1] << 8) | channels[2]

    def css(self) -> str:
        return f"#{self.to_hex():06x}"


def _ansi_color(index: int) -> Color:
    bright = _ANSI_BRIGHT if index > 7 else 0

    def channel(bit: int) -> float:
        # Index 8 (bright black) lands on 0x3fff gray, not black.
        return ((_ANSI_BASE if index & bit else 0) + bright) / 65535.0

    return Color(red=channel(1), green=channel(2), blue=channel(4))


def _cube_color(index: int) -> Color:
    offset = index - _ANSI_END
    red, green, blue = offset // 36, (offset // 6) % 6, offset % 6

    def level(value: int) -> float:
        return (0 if value == 0 else value * 40 + 55) / 255.0

    return Color(red=level(red), green=level(green), blue=level(blue))


def _gray_color(index: int) -> Color:
    shade = 8 + (index - _CUBE_END) * 10
    value = (shade | shade << 8) / 65535.0
    return Color(red=value, green=value, blue=value)


def default_color(index: int) -> Color:
    """Return the algorithmic color for a palette index."""
    if index < 0 or index >= PALETTE_SIZE:
        raise ValueError(f"Palette index out of range: {index}")
    if index < _ANSI_END:
        return _ansi_color(index)
    if index < _CUBE_END:
        return _cube_color(index)
    return _gray_color(index)


def build_palette(
    overrides: Mapping[int, int] | Sequence[int] = (),
) -> tuple[Color, ...]:
    """Build the full 256-entry palette.

    ``overrides`` holds packed ``0xRRGGBB`` values. A sequence overrides the
    leading ``len(overrides)`` indices; a mapping overrides exactly its keys.
    Every other index is regenerated from the ANSI, color-cube and grayscale
    formulas, so the result depends on nothing but the argument.
    """
    if isinstance(overrides, Mapping):
        explicit = dict(overrides)
    else:
        explicit = dict(enumerate(overrides))
    if len(explicit) > PALETTE_SIZE:
        raise ValueError(f"Too many palette overrides: {len(explicit)}")
    for index in explicit:
        if index < 0 or index >= PALETTE_SIZE:
            raise ValueError(f"Palette index out of range: {index}")

    return tuple(
        Color.from_hex(explicit[index]) if index in explicit else default_color(index)
        for index in range(PALETTE_SIZE)
    )
