"""Exit codes and the single exception type surfaced to the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    SPAWN_ERROR = 5
    INTERNAL_ERROR = 6
    UNSUPPORTED_PLATFORM = 7


@dataclass
class KermitError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


def spawn_failure(message: str, cause: BaseException, *, hint: str) -> KermitError:
    """Wrap an OS or toolkit process error, keeping its text as the hint."""
    return KermitError(message, code=ExitCode.SPAWN_ERROR, hint=str(cause) or hint)


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
