from __future__ import annotations

import logging as py_logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from kermit.bindings import ActionModifier, KeyBinding
from kermit.config import (
    Configuration,
    CursorShape,
    TabPosition,
    get_config_path,
    parse_binding,
    parse_color,
    parse_config,
    parse_config_text,
)
from kermit.palette import Color, default_color


def _write(tmp_path: Path, *lines: str) -> Path:
    path = tmp_path / "kermit.conf"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def test_load_defaults_when_config_missing(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(py_logging.INFO, logger="kermit.config"):
        config, bindings = parse_config(tmp_path / "missing.conf")
    assert "config-load" in caplog.text
    assert "result=not-found" in caplog.text
    assert config == Configuration()
    assert bindings == []
    assert config.font_family == "Monospace"
    assert config.font_size == 9
    assert config.action_modifier == ActionModifier.ALT
    assert config.tab_position == TabPosition.BOTTOM
    assert config.palette_override_count == 0


def test_default_config_path_is_expanded() -> None:
    path = get_config_path()
    assert path.is_absolute()
    assert path.name == "kermit.conf"
    assert path.parent.name == "kermit"


def test_parse_color_accepts_hash_and_bare_hex() -> None:
    assert parse_color("#1a2b3c") == parse_color("1a2b3c") == 0x1A2B3C
    with pytest.raises(ValueError):
        parse_color("#zzzzzz")
    with pytest.raises(ValueError):
        parse_color("1000000")


def test_reference_config_example(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        "key alt",
        'bindi q~reset"',
        'bindx t~ls"',
        "tab top",
        "opacity 0.8",
        "foreground #ffffff",
    )
    config, bindings = parse_config(path)
    assert config.action_modifier == ActionModifier.ALT
    assert bindings == [
        KeyBinding(key="q", command="reset", internal=True),
        KeyBinding(key="t", command="ls\r", internal=False),
    ]
    assert config.tab_position == TabPosition.TOP
    assert config.opacity == pytest.approx(0.8)
    assert config.foreground == 0xFFFFFF


@pytest.mark.parametrize(
    ("value", "expected"),
    [("top", TabPosition.TOP), ("bottom", TabPosition.BOTTOM), ("left", TabPosition.TOP)],
)
def test_tab_position(value: str, expected: TabPosition) -> None:
    config, _ = parse_config_text(f"tab {value}\n")
    assert config.tab_position == expected


def test_key_directive_falls_back_to_shift() -> None:
    config, _ = parse_config_text("key ctrl\n")
    assert config.action_modifier == ActionModifier.SHIFT


def test_comments_and_short_lines_are_skipped() -> None:
    config, bindings = parse_config_text("# font Sans 20\nab\n\nfont Hack 12\n")
    assert config.font_family == "Hack"
    assert config.font_size == 12
    assert bindings == []


def test_font_family_keeps_every_token_but_the_last() -> None:
    config, _ = parse_config_text("font DejaVu Sans Mono 14\n")
    assert config.font_family == "DejaVu Sans Mono"
    assert config.font_size == 14


def test_invalid_font_and_opacity_keep_defaults() -> None:
    config, _ = parse_config_text("font Hack\nfont Hack big\nopacity 1.5\nopacity dim\n")
    assert config.font_family == "Monospace"
    assert config.font_size == 9
    assert config.opacity == pytest.approx(0.98)


def test_word_chars_strip_surrounding_quotes() -> None:
    config, _ = parse_config_text('char "-./?&#:"\nlocale tr_TR.UTF-8\n')
    assert config.word_chars == "-./?&#:"
    assert config.locale == "tr_TR.UTF-8"


@pytest.mark.parametrize(
    ("value", "expected"),
    [("underline", CursorShape.UNDERLINE), ("ibeam", CursorShape.IBEAM), ("beam", CursorShape.BLOCK)],
)
def test_cursor_shape(value: str, expected: CursorShape) -> None:
    config, _ = parse_config_text(f"cursor_shape {value}\n")
    assert config.cursor_shape == expected


def test_cursor_directives_are_matched_exactly() -> None:
    config, _ = parse_config_text(
        "cursor #ff0000\ncursor_foreground #00ff00\nforeground_bold #0000ff\nbackground 101010\n"
    )
    assert config.cursor == 0xFF0000
    assert config.cursor_foreground == 0x00FF00
    assert config.foreground_bold == 0x0000FF
    assert config.foreground == 0xFFFFFF
    assert config.background == 0x101010


def test_palette_directives_count_distinct_indices() -> None:
    config, _ = parse_config_text(
        "color0 #111111\ncolor1 #222222\ncolor1 #333333\ncolor300 #444444\ncolor2 nothex\n"
    )
    assert config.palette_override_count == 2
    assert config.palette_overrides == {0: 0x111111, 1: 0x333333}
    palette = config.palette
    assert palette[0] == Color.from_hex(0x111111)
    assert palette[1] == Color.from_hex(0x333333)
    assert palette[2] == default_color(2)


def test_sparse_palette_override_keeps_other_indices_generated() -> None:
    config, _ = parse_config_text("color5 #abcdef\n")
    assert config.palette_override_count == 1
    assert config.palette[5] == Color.from_hex(0xABCDEF)
    assert config.palette[0] == default_color(0)


def test_binding_quotes_and_tilde_in_command() -> None:
    assert parse_binding("bind", 'c~"cd ~"') == KeyBinding(key="c", command="cd ~")
    assert parse_binding("bindx", 'f~"df -h"') == KeyBinding(key="f", command="df -h\r")
    assert parse_binding("bindi", "x~new-tab") == KeyBinding(key="x", command="new-tab", internal=True)


@pytest.mark.parametrize("remainder", ["no-separator", '~"ls"', "k~", 'k~""'])
def test_unparsable_bindings_are_dropped(remainder: str) -> None:
    assert parse_binding("bind", remainder) is None


def test_unknown_directives_are_ignored() -> None:
    config, bindings = parse_config_text("colour1 #ffffff\nscrollback 1000\nbind nothing\n")
    assert config == Configuration()
    assert bindings == []


def test_configuration_is_immutable() -> None:
    config = Configuration()
    with pytest.raises(ValidationError):
        config.font_size = 20  # type: ignore[misc]


def test_without_palette_overrides_resets_only_the_palette() -> None:
    config, _ = parse_config_text("color0 #123456\nfont Hack 11\n")
    reset = config.without_palette_overrides()
    assert reset.palette_override_count == 0
    assert reset.font_family == "Hack"
    assert config.palette_override_count == 1


def test_palette_overrides_cannot_be_mutated_in_place() -> None:
    config, _ = parse_config_text("color1 #222222\n")
    with pytest.raises(TypeError):
        config.palette_overrides[2] = 0xFF0000  # type: ignore[index]
    assert config.palette[2] == default_color(2)

    reset = config.without_palette_overrides()
    with pytest.raises(TypeError):
        reset.palette_overrides[2] = 0xFF0000  # type: ignore[index]


def test_palette_overrides_are_copied_from_the_caller() -> None:
    overrides = {4: 0x123456}
    config = Configuration(palette_overrides=overrides)
    overrides[4] = 0xFFFFFF
    overrides[5] = 0xFFFFFF
    assert dict(config.palette_overrides) == {4: 0x123456}
