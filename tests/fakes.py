"""In-memory stand-ins for the toolkit collaborators."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from kermit.terminal import SurfaceStyle

MAX_FONT_SIZE = 72


class FakeSurface:
    def __init__(
        self,
        terminal_id: str,
        *,
        cwd_uri: str | None = None,
        fail_spawn: bool = False,
        on_close: Callable[[str], None] | None = None,
    ) -> None:
        self.terminal_id = terminal_id
        self.cwd_uri = cwd_uri
        self.fail_spawn = fail_spawn
        self.on_close = on_close
        self.spawned: list[tuple[list[str], str]] = []
        self.styles: list[SurfaceStyle] = []
        self.fonts: list[tuple[str, int]] = []
        self.fed: list[str] = []
        self.copies = 0
        self.pastes = 0
        self.closed = False

    def spawn(self, argv: Sequence[str], cwd: str) -> None:
        self.spawned.append((list(argv), cwd))
        if self.fail_spawn:
            raise OSError("No such file or directory")

    def apply_style(self, style: SurfaceStyle) -> None:
        self.styles.append(style)

    def set_font(self, family: str, size: int) -> bool:
        if size < 1 or size > MAX_FONT_SIZE:
            return False
        self.fonts.append((family, size))
        return True

    def feed_child(self, text: str) -> None:
        self.fed.append(text)

    def copy_clipboard(self) -> None:
        self.copies += 1

    def paste_clipboard(self) -> None:
        self.pastes += 1

    def current_directory_uri(self) -> str | None:
        return self.cwd_uri

    def close(self) -> None:
        self.closed = True
        if self.on_close is not None:
            self.on_close(self.terminal_id)


class FakeSurfaceFactory:
    def __init__(self) -> None:
        self.surfaces: dict[str, FakeSurface] = {}
        self.cwd_uri: str | None = None
        self.fail_spawn = False
        self.on_close: Callable[[str], None] | None = None

    def __call__(self, terminal_id: str) -> FakeSurface:
        surface = FakeSurface(
            terminal_id, cwd_uri=self.cwd_uri, fail_spawn=self.fail_spawn, on_close=self.on_close
        )
        self.surfaces[terminal_id] = surface
        return surface
