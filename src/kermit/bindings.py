"""Key binding table and key-press resolution."""

from __future__ import annotations

import logging as py_logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, IntFlag

logger = py_logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class Modifier(IntFlag):
    """Modifier bits as reported by the toolkit key event state."""

    NONE = 0
    SHIFT = 1 << 0
    CONTROL = 1 << 2
    ALT = 1 << 3


RELEVANT_MODIFIERS = Modifier.CONTROL | Modifier.SHIFT | Modifier.ALT


class ActionModifier(str, Enum):
    ALT = "alt"
    SHIFT = "shift"

    @property
    def mask(self) -> Modifier:
        return Modifier.ALT if self is ActionModifier.ALT else Modifier.SHIFT


class InternalAction(str, Enum):
    COPY = "copy"
    PASTE = "paste"
    NEW_TAB = "new-tab"
    NEW_WINDOW = "new-window"
    RELOAD_CONFIG = "reload-config"
    DEFAULT_CONFIG = "default-config"
    EXIT = "exit"
    INC_FONT_SIZE = "inc-font-size"
    DEC_FONT_SIZE = "dec-font-size"
    DEFAULT_FONT_SIZE = "default-font-size"
    NEXT_TAB = "next-tab"
    PREV_TAB = "prev-tab"
    CLOSE_TAB = "close-tab"


INTERNAL_ACTIONS = frozenset(item.value for item in InternalAction)


@dataclass(frozen=True)
class KeyBinding:
    key: str
    command: str
    internal: bool = False

    def matches(self, key_name: str) -> bool:
        return self.key.casefold() == key_name.casefold()


@dataclass
class DefaultBindingEntry:
    binding: KeyBinding
    invalidated: bool = False


def _internal(key: str, action: InternalAction) -> KeyBinding:
    return KeyBinding(key=key, command=action.value, internal=True)


DEFAULT_BINDINGS: tuple[KeyBinding, ...] = (
    _internal("c", InternalAction.COPY),
    _internal("v", InternalAction.PASTE),
    _internal("t", InternalAction.NEW_TAB),
    _internal("n", InternalAction.NEW_WINDOW),
    _internal("return", InternalAction.NEW_TAB),
    _internal("r", InternalAction.RELOAD_CONFIG),
    _internal("d", InternalAction.DEFAULT_CONFIG),
    _internal("q", InternalAction.EXIT),
    _internal("k", InternalAction.INC_FONT_SIZE),
    _internal("up", InternalAction.INC_FONT_SIZE),
    _internal("j", InternalAction.DEC_FONT_SIZE),
    _internal("down", InternalAction.DEC_FONT_SIZE),
    _internal("equals", InternalAction.DEFAULT_FONT_SIZE),
    _internal("plus", InternalAction.DEFAULT_FONT_SIZE),
    _internal("l", InternalAction.NEXT_TAB),
    _internal("right", InternalAction.NEXT_TAB),
    _internal("page_down", InternalAction.NEXT_TAB),
    _internal("h", InternalAction.PREV_TAB),
    _internal("left", InternalAction.PREV_TAB),
    _internal("page_up", InternalAction.PREV_TAB),
    _internal("w", InternalAction.CLOSE_TAB),
    _internal("backspace", InternalAction.CLOSE_TAB),
)


class ActionKind(str, Enum):
    PASS_THROUGH = "pass-through"
    SELECT_TAB = "select-tab"
    INTERNAL = "internal"
    LITERAL = "literal"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    command: str = ""
    tab_index: int = -1

    @property
    def consumed(self) -> bool:
        return self.kind != ActionKind.PASS_THROUGH


PASS_THROUGH = Action(kind=ActionKind.PASS_THROUGH)


def _action_for(binding: KeyBinding) -> Action:
    if binding.internal:
        return Action(kind=ActionKind.INTERNAL, command=binding.command)
    return Action(kind=ActionKind.LITERAL, command=binding.command)


def key_tab_number(key_name: str) -> int:
    """Return the leading integer of a key name, or 0 when there is none."""
    match = _LEADING_INT.match(key_name)
    if match is None:
        return 0
    return int(match.group(1))


class KeyBindingRegistry:
    """Built-in defaults plus user bindings, rebuilt on every config load."""

    def __init__(self, bindings: Iterable[KeyBinding] = ()) -> None:
        self._defaults: list[DefaultBindingEntry] = []
        self._user: list[KeyBinding] = []
        self.load(bindings)

    @property
    def defaults(self) -> list[DefaultBindingEntry]:
        return list(self._defaults)

    @property
    def user_bindings(self) -> list[KeyBinding]:
        return list(self._user)

    def load(self, bindings: Iterable[KeyBinding]) -> None:
        self._defaults = [DefaultBindingEntry(binding=item) for item in DEFAULT_BINDINGS]
        self._user = []
        for binding in bindings:
            if binding.internal and binding.command not in INTERNAL_ACTIONS:
                logger.warning(
                    "binding-load key=%s unknown internal action=%s", binding.key, binding.command
                )
            self._user.append(binding)
            self._invalidate(binding)
        invalidated = sum(1 for entry in self._defaults if entry.invalidated)
        logger.debug(
            "binding-load user=%s invalidated_defaults=%s", len(self._user), invalidated
        )

    def _invalidate(self, binding: KeyBinding) -> None:
        for entry in self._defaults:
            if (
                entry.binding.command == binding.command
                and entry.binding.internal == binding.internal
            ):
                entry.invalidated = True

    def resolve(
        self,
        key_name: str,
        modifiers: Modifier | int,
        action_modifier: ActionModifier,
    ) -> Action:
        state = Modifier(int(modifiers) & int(RELEVANT_MODIFIERS))
        if state != (action_modifier.mask | Modifier.CONTROL):
            return PASS_THROUGH

        tab_number = key_tab_number(key_name)
        if tab_number != 0:
            return Action(kind=ActionKind.SELECT_TAB, tab_index=tab_number - 1)

        for entry in self._defaults:
            if not entry.invalidated and entry.binding.matches(key_name):
                return _action_for(entry.binding)
        for binding in self._user:
            if binding.matches(key_name):
                return _action_for(binding)
        return PASS_THROUGH
