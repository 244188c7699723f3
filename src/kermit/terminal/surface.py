"""Contracts for the toolkit-side terminal surface and session launcher."""

from __future__ import annotations

import logging as py_logging
import os
import subprocess
from collections.abc import Callable, Mapping, Sequence
from typing import Protocol
from urllib.parse import unquote, urlparse

from kermit.errors import ExitCode, KermitError, spawn_failure
from kermit.terminal.models import SurfaceStyle

logger = py_logging.getLogger(__name__)

FALLBACK_SHELL = "/bin/sh"


class TerminalSurface(Protocol):
    """One embedded terminal widget.

    ``spawn`` returns immediately; the toolkit reports completion later as a
    spawn-result event, and process termination as a child-exit event.
    """

    def spawn(self, argv: Sequence[str], cwd: str) -> None: ...

    def apply_style(self, style: SurfaceStyle) -> None: ...

    def set_font(self, family: str, size: int) -> bool: ...

    def feed_child(self, text: str) -> None: ...

    def copy_clipboard(self) -> None: ...

    def paste_clipboard(self) -> None: ...

    def current_directory_uri(self) -> str | None: ...

    def close(self) -> None: ...


SurfaceFactory = Callable[[str], TerminalSurface]
SessionLauncher = Callable[[Sequence[str], str], None]


def build_shell_command(
    command: str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> list[str]:
    env = os.environ if environ is None else environ
    shell = env.get("SHELL", "").strip() or FALLBACK_SHELL
    if command:
        return [shell, "-c", command]
    return [shell]


def directory_from_uri(uri: str | None) -> str | None:
    """Turn a surface's reported directory (usually a file:// URI) into a path."""
    if not uri:
        return None
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return unquote(parsed.path) or None
    if not parsed.scheme:
        return uri
    return None


def launch_session(argv: Sequence[str], cwd: str) -> None:
    """Start a fully independent session process in ``cwd``."""
    if not argv:
        raise KermitError(
            "Launch command cannot be empty.",
            code=ExitCode.SPAWN_ERROR,
            hint="Start kermit from a command line so it can re-invoke itself.",
        )
    try:
        subprocess.Popen(
            list(argv),
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        raise spawn_failure("Failed to launch a new session.", exc, hint="Check the launch command.") from exc
    logger.info("session-launch cwd=%s command=%s", cwd, " ".join(argv))
