"""GTK 3 / VTE 2.91 front-end for the kermit session core.

Dependencies: PyGObject, GTK 3, VTE 2.91
    sudo apt install python3-gi gir1.2-vte-2.91 libvte-2.91-0
"""

from __future__ import annotations

import locale
import logging as py_logging
import os
from collections.abc import Sequence

from kermit.bindings import KeyBindingRegistry
from kermit.cli import LaunchOptions
from kermit.config import CursorShape, TabPosition, parse_config
from kermit.dispatcher import ActionDispatcher, ChildExit, Event, KeyPress, SpawnResult, TitleChanged
from kermit.errors import ExitCode, KermitError, spawn_failure
from kermit.palette import Color
from kermit.terminal import SessionManager, SurfaceStyle, build_shell_command

try:
    import gi

    gi.require_version("Gdk", "3.0")
    gi.require_version("Gtk", "3.0")
    gi.require_version("Vte", "2.91")
    from gi.repository import Gdk, GLib, Gtk, Pango, Vte  # noqa: E402
except (ImportError, ValueError) as exc:
    raise KermitError(
        "GTK/VTE bindings are unavailable.",
        code=ExitCode.UNSUPPORTED_PLATFORM,
        hint="Install PyGObject with GTK 3 and VTE 2.91 (pip install 'kermit[gtk]').",
    ) from exc

logger = py_logging.getLogger(__name__)

_CURSOR_SHAPES = {
    CursorShape.BLOCK: Vte.CursorShape.BLOCK,
    CursorShape.UNDERLINE: Vte.CursorShape.UNDERLINE,
    CursorShape.IBEAM: Vte.CursorShape.IBEAM,
}


def _rgba(color: Color) -> Gdk.RGBA:
    rgba = Gdk.RGBA()
    rgba.red, rgba.green, rgba.blue, rgba.alpha = color.red, color.green, color.blue, color.alpha
    return rgba


class VteSurface:
    """Terminal surface backed by one Vte.Terminal widget."""

    def __init__(self, window: KermitWindow, terminal_id: str) -> None:
        self._window = window
        self.terminal_id = terminal_id
        self._pid: int | None = None
        self._closed = False
        self.widget = Vte.Terminal()
        self._exit_handler = self.widget.connect("child-exited", self._on_child_exit)
        self.widget.connect("key-press-event", self._on_key_press)
        self.widget.connect("window-title-changed", self._on_title_changed)
        self.widget.set_hexpand(True)
        self.widget.set_vexpand(True)
        self.widget.show()

    def spawn(self, argv: Sequence[str], cwd: str) -> None:
        try:
            self.widget.spawn_async(
                Vte.PtyFlags.DEFAULT,
                cwd,
                list(argv),
                None,
                GLib.SpawnFlags.DEFAULT,
                None,
                None,
                -1,
                None,
                self._on_spawn_done,
            )
        except GLib.Error as exc:
            raise spawn_failure("Failed to start terminal process.", exc, hint="Check the shell command.") from exc

    def apply_style(self, style: SurfaceStyle) -> None:
        try:
            locale.setlocale(locale.LC_NUMERIC, style.locale)
        except locale.Error:
            logger.debug("Unsupported numeric locale %s", style.locale)
        term = self.widget
        term.set_mouse_autohide(True)
        term.set_scroll_on_output(False)
        term.set_scroll_on_keystroke(True)
        term.set_scrollback_lines(-1)
        term.set_rewrap_on_resize(True)
        term.set_audible_bell(False)
        term.set_allow_bold(True)
        term.set_allow_hyperlink(True)
        term.set_word_char_exceptions(style.word_chars)
        term.set_cursor_blink_mode(Vte.CursorBlinkMode.OFF)
        term.set_color_cursor(_rgba(style.cursor))
        term.set_color_cursor_foreground(_rgba(style.cursor_foreground))
        term.set_cursor_shape(_CURSOR_SHAPES[style.cursor_shape])
        term.set_colors(
            _rgba(style.foreground),
            _rgba(style.background),
            [_rgba(item) for item in style.palette],
        )
        term.set_color_bold(_rgba(style.foreground_bold))

    def set_font(self, family: str, size: int) -> bool:
        if size < 1:
            return False
        desc = Pango.FontDescription.from_string(f"{family} {size}")
        if desc is None or desc.get_size() <= 0:
            return False
        self.widget.set_font(desc)
        return True

    def feed_child(self, text: str) -> None:
        self.widget.feed_child(text.encode("utf-8"))

    def copy_clipboard(self) -> None:
        self.widget.copy_clipboard_format(Vte.Format.TEXT)

    def paste_clipboard(self) -> None:
        self.widget.paste_clipboard()

    def current_directory_uri(self) -> str | None:
        uri = self.widget.get_current_directory_uri()
        if uri:
            return uri
        if self._pid:
            try:
                return os.readlink(f"/proc/{self._pid}/cwd")
            except OSError:
                pass
        return None

    def close(self) -> None:
        """Detach and destroy the widget, hanging up the child on the PTY.

        The child-exited handler is dropped first; the exit is reported once,
        from the main loop, after the session has finished the close.
        """
        if self._closed:
            return
        self._closed = True
        self.widget.disconnect(self._exit_handler)
        self._window.remove_page(self.widget)
        self.widget.destroy()
        GLib.idle_add(self._report_closed)

    def _report_closed(self) -> bool:
        self._window.dispatch(ChildExit(self.terminal_id, 0))
        return GLib.SOURCE_REMOVE

    def _on_spawn_done(self, _terminal, pid, error, *_data) -> None:
        if error:
            self._window.dispatch(SpawnResult(self.terminal_id, error=str(error)))
            return
        self._pid = pid
        self._window.dispatch(SpawnResult(self.terminal_id, pid=pid))

    def _on_child_exit(self, _terminal, status) -> None:
        self._window.dispatch(ChildExit(self.terminal_id, status))

    def _on_key_press(self, _widget, event) -> bool:
        name = Gdk.keyval_name(event.keyval) or ""
        return self._window.dispatch(KeyPress(name, int(event.state)))

    def _on_title_changed(self, _terminal) -> None:
        self._window.dispatch(TitleChanged(self.terminal_id, self.widget.get_window_title() or ""))


class KermitWindow(Gtk.Window):
    """Top-level window holding one notebook page per session tab."""

    def __init__(self, session_factory, registry: KeyBindingRegistry, config_path) -> None:
        super().__init__(title="kermit")
        self._syncing = False
        screen = self.get_screen()
        visual = screen.get_rgba_visual()
        if visual is not None:
            self.set_visual(visual)
        self.notebook = Gtk.Notebook()
        self.notebook.set_scrollable(True)
        self.notebook.popup_disable()
        self.notebook.set_show_border(False)
        self.notebook.connect("switch-page", self._on_switch_page)
        self.add(self.notebook)
        self.connect("delete-event", self._on_delete)

        self.session: SessionManager = session_factory(self)
        self.dispatcher = ActionDispatcher(self.session, registry, config_path=config_path)

    def create_surface(self, terminal_id: str) -> VteSurface:
        return VteSurface(self, terminal_id)

    def dispatch(self, event: Event) -> bool:
        try:
            handled = self.dispatcher.dispatch(event)
        except KermitError as exc:
            logger.error("Action failed (code=%s): %s", int(exc.code), exc)
            handled = True
        if self.session.alive:
            self.sync()
        return handled

    def remove_page(self, widget: Vte.Terminal) -> None:
        page = self.notebook.page_num(widget)
        if page >= 0:
            self._syncing = True
            try:
                self.notebook.remove_page(page)
            finally:
                self._syncing = False

    def sync(self) -> None:
        config = self.session.config
        self._syncing = True
        try:
            for terminal in self.session.terminals:
                widget = terminal.surface.widget
                if self.notebook.page_num(widget) < 0:
                    self.notebook.append_page(widget, None)
            self.notebook.set_show_tabs(len(self.session.terminals) > 1)
            if config.tab_position == TabPosition.TOP:
                self.notebook.set_tab_pos(Gtk.PositionType.TOP)
            else:
                self.notebook.set_tab_pos(Gtk.PositionType.BOTTOM)
            if self.session.active_index >= 0:
                self.notebook.set_current_page(self.session.active_index)
                self.session.active_terminal.surface.widget.grab_focus()
        finally:
            self._syncing = False
        self.override_background_color(
            Gtk.StateFlags.NORMAL, _rgba(Color.from_hex(config.background, alpha=config.opacity))
        )
        self.set_title(self.session.window_title)

    def _on_switch_page(self, _notebook, _page, page_num) -> None:
        if not self._syncing:
            self.session.select_tab(page_num)

    def _on_delete(self, _widget, _event) -> bool:
        self.session.terminate()
        return False


def run_app(options: LaunchOptions) -> int:
    config, bindings = parse_config(options.config_path)
    registry = KeyBindingRegistry(bindings)
    launch_directory = os.getcwd()

    def session_factory(window: KermitWindow) -> SessionManager:
        return SessionManager(
            config,
            surface_factory=window.create_surface,
            command=build_shell_command(options.command),
            working_directory=options.working_directory,
            launch_command=options.launch_command,
            launch_directory=launch_directory,
            title=options.title,
            on_terminate=Gtk.main_quit,
        )

    window = KermitWindow(session_factory, registry, options.config_path)
    window.session.start()
    window.sync()
    window.show_all()
    Gtk.main()
    return int(ExitCode.SUCCESS)
