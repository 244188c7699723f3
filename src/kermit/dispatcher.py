"""Inbound event routing: key presses, child exits and spawn results."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from kermit.bindings import (
    Action,
    ActionKind,
    InternalAction,
    KeyBinding,
    KeyBindingRegistry,
    Modifier,
)
from kermit.config import Configuration, parse_config
from kermit.errors import ExitCode, KermitError
from kermit.terminal.session import SessionManager

logger = py_logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyPress:
    key_name: str
    modifiers: Modifier | int


@dataclass(frozen=True)
class ChildExit:
    terminal_id: str
    status: int = 0


@dataclass(frozen=True)
class SpawnResult:
    terminal_id: str
    pid: int | None = None
    error: str = ""


@dataclass(frozen=True)
class TitleChanged:
    terminal_id: str
    title: str


Event = KeyPress | ChildExit | SpawnResult | TitleChanged
ConfigLoader = Callable[[Path | None], tuple[Configuration, list[KeyBinding]]]


class ActionDispatcher:
    """Single entry point for every toolkit event on the control thread."""

    def __init__(
        self,
        session: SessionManager,
        registry: KeyBindingRegistry,
        *,
        config_path: str | Path | None = None,
        loader: ConfigLoader | None = None,
    ) -> None:
        self.session = session
        self.registry = registry
        self.config_path = Path(config_path) if config_path is not None else None
        self._loader = loader or parse_config
        self._handlers: dict[InternalAction, Callable[[], None]] = {
            InternalAction.COPY: self._copy,
            InternalAction.PASTE: self._paste,
            InternalAction.NEW_TAB: self._new_tab,
            InternalAction.NEW_WINDOW: self._new_window,
            InternalAction.RELOAD_CONFIG: self.reload_config,
            InternalAction.DEFAULT_CONFIG: self.default_config,
            InternalAction.EXIT: self.session.terminate,
            InternalAction.INC_FONT_SIZE: lambda: self._step_font_size(1),
            InternalAction.DEC_FONT_SIZE: lambda: self._step_font_size(-1),
            InternalAction.DEFAULT_FONT_SIZE: self._default_font_size,
            InternalAction.NEXT_TAB: self._next_tab,
            InternalAction.PREV_TAB: self._prev_tab,
            InternalAction.CLOSE_TAB: self._close_tab,
        }

    def dispatch(self, event: Event) -> bool:
        if isinstance(event, KeyPress):
            return self.on_key_press(event.key_name, event.modifiers)
        if isinstance(event, ChildExit):
            self.session.on_child_exit(event.terminal_id, event.status)
            return True
        if isinstance(event, SpawnResult):
            self.session.on_spawn_result(event.terminal_id, pid=event.pid, error=event.error)
            return True
        if isinstance(event, TitleChanged):
            self.session.set_title(event.terminal_id, event.title)
            return True
        raise KermitError(
            f"Unsupported event: {type(event).__name__}",
            code=ExitCode.INTERNAL_ERROR,
        )

    def on_key_press(self, key_name: str, modifiers: Modifier | int) -> bool:
        action = self.registry.resolve(
            key_name, modifiers, self.session.config.action_modifier
        )
        self.perform(action)
        return action.consumed

    def perform(self, action: Action) -> None:
        if action.kind == ActionKind.PASS_THROUGH:
            return
        if action.kind == ActionKind.SELECT_TAB:
            self.session.select_tab(action.tab_index)
        elif action.kind == ActionKind.LITERAL:
            active = self.session.active_terminal
            if active is not None:
                active.surface.feed_child(action.command)
        else:
            self.run_action(action.command)

    def run_action(self, name: str) -> None:
        try:
            handler = self._handlers[InternalAction(name)]
        except ValueError as exc:
            raise KermitError(
                f"Unknown internal action: {name}",
                code=ExitCode.INTERNAL_ERROR,
                hint="Key binding and action vocabularies are out of sync.",
            ) from exc
        logger.debug("action name=%s", name)
        handler()

    def load(self) -> Configuration:
        """Parse the config file and install the new bindings."""
        config, bindings = self._loader(self.config_path)
        self.registry.load(bindings)
        return config

    def reload_config(self) -> None:
        logger.info("Reloading configuration file...")
        self.session.apply_config(self.load())

    def default_config(self) -> None:
        logger.info("Loading the default configuration...")
        self.session.apply_config(self.session.config.without_palette_overrides())

    def _copy(self) -> None:
        active = self.session.active_terminal
        if active is not None:
            active.surface.copy_clipboard()

    def _paste(self) -> None:
        active = self.session.active_terminal
        if active is not None:
            active.surface.paste_clipboard()

    def _new_tab(self) -> None:
        self.session.new_tab()

    def _new_window(self) -> None:
        self.session.clone()

    def _next_tab(self) -> None:
        self.session.next_tab()

    def _prev_tab(self) -> None:
        self.session.prev_tab()

    def _close_tab(self) -> None:
        self.session.close_tab()

    def _step_font_size(self, delta: int) -> None:
        active = self.session.active_terminal
        if active is not None:
            self.session.set_font_size(active.font_size + delta, active)

    def _default_font_size(self) -> None:
        self.session.set_font_size(self.session.config.font_size)
