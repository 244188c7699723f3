"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .errors import ExitCode, KermitError, user_facing_error
from .logging import configure_logging, default_log_path

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

_BANNER = (
    "   (+)(+)\n"
    "  /      \\\n"
    "  \\ -==- /\n"
    "   \\    /\n"
    "  <\\/\\/\\/>\n"
    "  /      \\\n"
    " [ kermit ] ~ v{version}\n"
)


@dataclass(frozen=True)
class LaunchOptions:
    config_path: Path | None = None
    working_directory: Path | None = None
    command: str | None = None
    title: str | None = None
    launch_command: tuple[str, ...] = field(default_factory=tuple)


def package_version() -> str:
    try:
        return version("kermit")
    except PackageNotFoundError:
        return "0.0.0"


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def _directory_type(value: str) -> Path:
    path = Path(value).expanduser()
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"working directory does not exist: {value}")
    return path.resolve()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kermit")
    parser.add_argument("-c", "--config", type=Path, default=None, help="Configuration file to read")
    parser.add_argument("-w", "--workdir", type=_directory_type, default=None, help="Working directory")
    parser.add_argument("-e", "--execute", default=None, help="Command to execute in the terminal")
    parser.add_argument("-t", "--title", default=None, help="Window title")
    parser.add_argument("-d", "--debug", action="store_true", help="Print debug messages")
    parser.add_argument("-v", "--version", action="store_true", help="Show version information")
    parser.add_argument("--log-level", type=_log_level_type, default="WARN")
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def build_launch_options(namespace: argparse.Namespace, raw_argv: Sequence[str]) -> LaunchOptions:
    return LaunchOptions(
        config_path=namespace.config.expanduser() if namespace.config is not None else None,
        working_directory=namespace.workdir,
        command=namespace.execute,
        title=namespace.title,
        launch_command=(sys.executable, "-m", "kermit", *raw_argv),
    )


def launch_gui(options: LaunchOptions) -> int:
    from kermit.ui.gtk_app import run_app

    return run_app(options)


def main(
    argv: Sequence[str] | None = None,
    *,
    gui_launcher: Callable[[LaunchOptions], int | None] | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    if namespace.version:
        sys.stderr.write(_BANNER.format(version=package_version()))
        return int(ExitCode.SUCCESS)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    level = "DEBUG" if namespace.debug else namespace.log_level
    logger = configure_logging(level=level, log_file=log_path)

    raw_argv = list(argv) if argv is not None else list(sys.argv[1:])
    options = build_launch_options(namespace, raw_argv)
    logger.debug("Starting session cwd=%s options=%s", os.getcwd(), options)
    try:
        launcher = gui_launcher or launch_gui
        result = launcher(options)
        if isinstance(result, int):
            return result
        return int(ExitCode.SUCCESS)
    except KermitError as exc:
        logger.error(
            "Handled KermitError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=namespace.debug,
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        try:
            print(user_facing_error("Unexpected runtime failure", hint="Re-run with -d"), file=sys.stderr)
        except Exception:
            pass
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
