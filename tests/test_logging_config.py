from __future__ import annotations

import io
import logging as py_logging
from pathlib import Path

import kermit.logging as kermit_logging


def test_default_log_path_is_expanded() -> None:
    path = kermit_logging.default_log_path()

    assert path.is_absolute()
    assert path.name == "kermit.log"
    assert path.parent.name == "kermit"


def test_warning_alias_maps_to_warning_level() -> None:
    logger = kermit_logging.configure_logging("warning")

    assert logger.level == kermit_logging.LOG_LEVELS["WARN"]


def test_unknown_log_level_falls_back_to_warning() -> None:
    logger = kermit_logging.configure_logging("not-a-level")

    assert logger.level == py_logging.WARNING


def test_configure_logging_resets_existing_handlers() -> None:
    logger = kermit_logging.configure_logging("INFO")
    assert len(logger.handlers) == 1

    logger = kermit_logging.configure_logging("INFO")

    assert len(logger.handlers) == 1


def test_stream_handler_respects_requested_level() -> None:
    stream = io.StringIO()
    logger = kermit_logging.configure_logging("ERROR", stream=stream)

    py_logging.getLogger("kermit.terminal.session").warning("quiet")
    py_logging.getLogger("kermit.dispatcher").error("loud")

    output = stream.getvalue()
    assert "quiet" not in output
    assert "loud" in output
    assert logger.propagate is False


def test_configure_logging_adds_debug_file_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "kermit.log"
    stream = io.StringIO()

    logger = kermit_logging.configure_logging("ERROR", stream=stream, log_file=log_file)
    file_handlers = [
        handler for handler in logger.handlers if isinstance(handler, py_logging.FileHandler)
    ]
    py_logging.getLogger("kermit.config").debug("parsed line")

    assert len(file_handlers) == 1
    assert file_handlers[0].level == py_logging.DEBUG
    assert logger.level == py_logging.DEBUG
    assert "parsed line" in log_file.read_text(encoding="utf-8")
    assert stream.getvalue() == ""


def test_configure_logging_ignores_file_handler_oserror(monkeypatch, tmp_path: Path) -> None:
    def raise_os_error(*args: object, **kwargs: object) -> py_logging.Handler:
        raise OSError("disk full")

    monkeypatch.setattr(kermit_logging.py_logging, "FileHandler", raise_os_error)

    logger = kermit_logging.configure_logging("INFO", log_file=tmp_path / "nope" / "kermit.log")

    assert len(logger.handlers) == 1
    assert type(logger.handlers[0]) is py_logging.StreamHandler
    assert logger.level == py_logging.INFO


def test_console_lines_carry_level_label() -> None:
    stream = io.StringIO()
    kermit_logging.configure_logging("DEBUG", stream=stream)

    py_logging.getLogger("kermit.dispatcher").debug("Reloading configuration file...")
    py_logging.getLogger("kermit.terminal.session").warning("Unable to fetch current working directory")

    lines = stream.getvalue().splitlines()
    assert lines == [
        "[ debug ] Reloading configuration file...",
        "[ warn ] Unable to fetch current working directory",
    ]


def test_console_formatter_highlights_label_on_tty() -> None:
    record = py_logging.LogRecord("kermit", py_logging.DEBUG, __file__, 1, "workdir: %s", ("/tmp",), None)

    text = kermit_logging.ConsoleFormatter(color=True).format(record)

    assert text.startswith("\x1b[1m[ ")
    assert "debug" in text
    assert text.endswith("workdir: /tmp\x1b[0m")
