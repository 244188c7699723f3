"""Tab/session lifecycle state machine."""

from __future__ import annotations

import logging as py_logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path

from kermit.config import Configuration
from kermit.errors import ExitCode, KermitError
from kermit.terminal.models import SessionEvent, SurfaceStyle, TabState, Terminal
from kermit.terminal.surface import (
    SessionLauncher,
    SurfaceFactory,
    build_shell_command,
    directory_from_uri,
    launch_session,
)

logger = py_logging.getLogger(__name__)

DEFAULT_TITLE = "kermit"


class SessionManager:
    """Ordered terminal tabs plus the active index for one window.

    While the session is alive there is always at least one tab; losing the
    last tab ends the session instead.
    """

    def __init__(
        self,
        config: Configuration,
        *,
        surface_factory: SurfaceFactory,
        command: Sequence[str] | None = None,
        working_directory: str | Path | None = None,
        launch_command: Sequence[str] = (),
        launch_directory: str | Path | None = None,
        launcher: SessionLauncher | None = None,
        title: str | None = None,
        on_terminate: Callable[[], None] | None = None,
    ) -> None:
        self._config = config
        self._surface_factory = surface_factory
        self.command = list(command) if command else build_shell_command()
        self.launch_directory = str(launch_directory or os.getcwd())
        self.working_directory = str(working_directory or self.launch_directory)
        self.launch_command = tuple(launch_command)
        self.custom_title = title
        self._launcher = launcher or launch_session
        self._on_terminate = on_terminate
        self._tabs: list[Terminal] = []
        self._closing: dict[str, Terminal] = {}
        self._active = -1
        self._counter = 0
        self._alive = True
        self._events: list[SessionEvent] = []

    @property
    def config(self) -> Configuration:
        return self._config

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def terminals(self) -> list[Terminal]:
        return list(self._tabs)

    @property
    def active_index(self) -> int:
        return self._active

    @property
    def active_terminal(self) -> Terminal | None:
        if 0 <= self._active < len(self._tabs):
            return self._tabs[self._active]
        return None

    @property
    def window_title(self) -> str:
        if self.custom_title:
            return self.custom_title
        active = self.active_terminal
        if active is not None and active.title:
            return active.title
        return DEFAULT_TITLE

    @property
    def pending_closes(self) -> list[str]:
        """Ids of closed tabs still waiting for their exit notification."""
        return list(self._closing)

    def list_events(self) -> list[SessionEvent]:
        return list(self._events)

    def start(self) -> Terminal:
        if self._tabs:
            raise KermitError(
                "Session already started.",
                code=ExitCode.INTERNAL_ERROR,
                hint="Use new_tab to add terminals.",
            )
        return self.new_tab()

    def new_tab(self) -> Terminal:
        if not self._alive:
            raise KermitError(
                "Session has ended.",
                code=ExitCode.RUNTIME_ERROR,
                hint="Start a new kermit session.",
            )
        self._counter += 1
        terminal_id = f"t{self._counter}"
        terminal = Terminal(
            terminal_id=terminal_id,
            surface=self._surface_factory(terminal_id),
            working_directory=self.working_directory,
            font_size=self._config.font_size,
        )
        self._configure(terminal, SurfaceStyle.from_config(self._config))
        self._tabs.append(terminal)
        self._active = len(self._tabs) - 1
        self._record(terminal_id, "create", f"Created tab {self._active + 1}.")

        logger.debug("spawn terminal=%s cwd=%s command=%s", terminal_id, terminal.working_directory, self.command)
        try:
            terminal.surface.spawn(self.command, terminal.working_directory)
        except (KermitError, OSError) as exc:
            self.on_spawn_result(terminal_id, error=str(exc) or "spawn failed")
        return terminal

    def on_spawn_result(self, terminal_id: str, *, pid: int | None = None, error: str = "") -> None:
        terminal = self._find(terminal_id)
        if terminal is None:
            closing = self._closing.get(terminal_id)
            if closing is not None and error:
                # No process means no exit notification will ever drain the latch.
                del self._closing[terminal_id]
                closing.close_pending = False
                closing.state = TabState.REMOVED
                self._record(terminal_id, "spawn-failed", f"Closed before spawn failed: {error}")
                return
            logger.info("spawn-ignored terminal=%s reason=tab-closed", terminal_id)
            return
        if terminal.state != TabState.SPAWNING:
            logger.debug("spawn-ignored terminal=%s state=%s", terminal_id, terminal.state.value)
            return
        if error:
            terminal.state = TabState.FAILED
            terminal.metadata["failure_reason"] = error
            self._record(terminal_id, "spawn-failed", error)
            logger.warning("Terminal %s failed to spawn: %s", terminal_id, error)
            return
        terminal.pid = pid
        terminal.state = TabState.RUNNING
        self._record(terminal_id, "spawn", f"{DEFAULT_TITLE} started. (PID: {pid})")

    def close_tab(self, terminal_id: str | None = None) -> bool:
        if len(self._tabs) <= 1:
            logger.debug("close-tab ignored: last remaining tab")
            return False
        index = self._index_of(terminal_id) if terminal_id else self._active
        if index < 0:
            return False
        terminal = self._tabs[index]
        if terminal.state == TabState.FAILED:
            self._remove(index, TabState.REMOVED)
            self._record(terminal.terminal_id, "close", "Closed tab without a process.")
        else:
            terminal.close_pending = True
            self._closing[terminal.terminal_id] = terminal
            self._remove(index, TabState.CLOSING)
            self._record(terminal.terminal_id, "close", "Close requested.")
        terminal.surface.close()
        return True

    def on_child_exit(self, terminal_id: str, status: int = 0) -> None:
        closing = self._closing.pop(terminal_id, None)
        if closing is not None and closing.close_pending:
            closing.close_pending = False
            closing.state = TabState.REMOVED
            self._record(terminal_id, "child-exit", "Exit after close request acknowledged.")
            return
        if not self._alive:
            return
        index = self._index_of(terminal_id)
        if index < 0:
            logger.debug("child-exit ignored terminal=%s reason=unknown-tab", terminal_id)
            return
        self._record(terminal_id, "child-exit", f"Process exited with status {status}.")
        if len(self._tabs) > 1:
            terminal = self._tabs[index]
            self._remove(index, TabState.REMOVED)
            terminal.surface.close()
            return
        self.terminate()

    def select_tab(self, index: int) -> int:
        if not self._tabs:
            return self._active
        self._active = min(max(index, 0), len(self._tabs) - 1)
        return self._active

    def next_tab(self) -> int:
        if self._tabs:
            self._active = (self._active + 1) % len(self._tabs)
        return self._active

    def prev_tab(self) -> int:
        if self._tabs:
            self._active = (self._active - 1) % len(self._tabs)
        return self._active

    def set_title(self, terminal_id: str, title: str) -> None:
        terminal = self._find(terminal_id)
        if terminal is not None:
            terminal.title = title

    def set_font_size(self, size: int, terminal: Terminal | None = None) -> bool:
        target = terminal or self.active_terminal
        if target is None:
            return False
        if not target.surface.set_font(self._config.font_family, size):
            logger.warning(
                "Rejected font '%s %s' for terminal %s", self._config.font_family, size, target.terminal_id
            )
            return False
        target.font_size = size
        return True

    def apply_config(self, config: Configuration) -> None:
        self._config = config
        style = SurfaceStyle.from_config(config)
        for terminal in self._tabs:
            self._configure(terminal, style)
        logger.debug("config-applied terminals=%s", len(self._tabs))

    def clone(self) -> str:
        directory = self._clone_directory()
        try:
            self._launcher(self.launch_command, directory)
        except KermitError as exc:
            logger.error("Cloning the terminal failed: %s", exc)
            self._record("*", "clone-failed", exc.message)
            return directory
        self._record("*", "clone", f"New session in {directory}.")
        return directory

    def terminate(self) -> None:
        if not self._alive:
            return
        self._alive = False
        tabs, self._tabs = self._tabs, []
        self._closing.clear()
        self._active = -1
        for terminal in tabs:
            terminal.state = TabState.REMOVED
            terminal.surface.close()
        self._record("*", "terminate", "Session ended.")
        if self._on_terminate is not None:
            self._on_terminate()

    def _clone_directory(self) -> str:
        active = self.active_terminal
        uri = active.surface.current_directory_uri() if active is not None else None
        path = directory_from_uri(uri)
        if path is None:
            logger.warning("Unable to fetch current working directory; using %s", self.launch_directory)
            return self.launch_directory
        if not Path(path).is_dir():
            logger.warning("Working directory %s is unavailable; using %s", path, self.launch_directory)
            return self.launch_directory
        return path

    def _configure(self, terminal: Terminal, style: SurfaceStyle) -> None:
        terminal.surface.apply_style(style)
        self.set_font_size(self._config.font_size, terminal)

    def _remove(self, index: int, state: TabState) -> None:
        terminal = self._tabs.pop(index)
        terminal.state = state
        if index < self._active or self._active >= len(self._tabs):
            self._active -= 1
        self._active = max(self._active, 0)

    def _find(self, terminal_id: str) -> Terminal | None:
        index = self._index_of(terminal_id)
        return self._tabs[index] if index >= 0 else None

    def _index_of(self, terminal_id: str) -> int:
        for index, terminal in enumerate(self._tabs):
            if terminal.terminal_id == terminal_id:
                return index
        return -1

    def _record(self, terminal_id: str, step: str, message: str) -> None:
        self._events.append(SessionEvent(terminal_id=terminal_id, step=step, message=message))
        logger.info("session-event terminal=%s step=%s message=%s", terminal_id, step, message)
