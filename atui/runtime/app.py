"""Runtime composition layer for atui.

Builds the initial state, wires the terminal, the background task runner,
and the editor into the main loop, and starts it.
"""

from __future__ import annotations

import logging
import shutil
import sys

from ..config import Settings, load_settings
from ..editor import launch_editor
from ..input import read_key
from ..navigation import Navigator, initial_state
from ..palette import resolve_palette
from ..render import write_frame
from ..state import AppState
from ..terminal import TerminalController
from .loop import RuntimeLoopCallbacks, RuntimeLoopTiming, run_main_loop
from .tasks import BackgroundTaskRunner, ClientCache

logger = logging.getLogger(__name__)

KEY_TIMEOUT_MS = 120
SPINNER_FRAME_SECONDS = 0.1


def _terminal_size() -> tuple[int, int]:
    size = shutil.get_terminal_size((80, 24))
    return size.columns, size.lines


def run_app(
    profile: str = "",
    region: str | None = None,
    *,
    no_color: bool = False,
    settings: Settings | None = None,
) -> AppState:
    """Run the interactive browser until the user quits."""
    settings = load_settings() if settings is None else settings
    palette = resolve_palette(settings.colors, no_color=no_color)
    navigator = Navigator(palette)
    runner = BackgroundTaskRunner(ClientCache(region))

    state = initial_state(profile)
    initial_commands = navigator.start(state)
    logger.info("starting with profile %r region %r", profile or None, region)

    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    terminal = TerminalController(stdin_fd, stdout_fd)

    callbacks = RuntimeLoopCallbacks(
        read_key=lambda timeout_ms: read_key(stdin_fd, timeout_ms=timeout_ms),
        terminal_size=_terminal_size,
        paint=write_frame,
        submit=runner.submit,
        drain_events=runner.drain_events,
        open_editor=lambda text: launch_editor(text, terminal.disable_tui_mode, terminal.enable_tui_mode),
    )
    timing = RuntimeLoopTiming(
        key_timeout_ms=KEY_TIMEOUT_MS,
        spinner_frame_seconds=SPINNER_FRAME_SECONDS,
    )
    with terminal.raw_mode():
        return run_main_loop(
            state,
            navigator,
            callbacks,
            timing,
            palette=palette,
            separator=settings.keybinding_separator,
            initial_commands=initial_commands,
        )
