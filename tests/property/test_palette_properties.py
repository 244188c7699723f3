from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from kermit.config import parse_color
from kermit.palette import PALETTE_SIZE, Color, build_palette, default_color

_COLORS = st.integers(min_value=0, max_value=0xFFFFFF)
_INDICES = st.integers(min_value=0, max_value=PALETTE_SIZE - 1)


@given(st.dictionaries(_INDICES, _COLORS, max_size=40))
def test_overrides_are_verbatim_and_everything_else_is_regenerated(overrides: dict[int, int]) -> None:
    palette = build_palette(overrides)

    assert len(palette) == PALETTE_SIZE
    for index, color in enumerate(palette):
        if index in overrides:
            assert color == Color.from_hex(overrides[index])
        else:
            assert color == default_color(index)


@given(st.lists(_COLORS, max_size=PALETTE_SIZE))
def test_build_is_pure(overrides: list[int]) -> None:
    assert build_palette(overrides) == build_palette(list(overrides))


@given(_COLORS)
def test_parse_color_prefix_is_optional(value: int) -> None:
    text = f"{value:06x}"

    assert parse_color(text) == value
    assert parse_color(f"#{text}") == value
    assert Color.from_hex(value).to_hex() == value
