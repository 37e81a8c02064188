"""Main interactive event loop for the terminal UI.

Feeds key presses, terminal resizes, and background completions to the
reducer in arrival order, executes the commands it returns, and repaints
when something changed. Feature logic lives in ``Navigator``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..events import Command, EditorClosed, Event, KeyPressed, OpenEditor, Quit, Resized
from ..navigation import Navigator
from ..palette import DEFAULT_PALETTE, Palette
from ..render import build_render_context, render_screen
from ..state import AppState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeLoopTiming:
    """Timing constants controlling interactive loop behavior."""

    key_timeout_ms: int = 120
    spinner_frame_seconds: float = 0.1


@dataclass(frozen=True)
class RuntimeLoopCallbacks:
    """Injected operations used by ``run_main_loop``.

    Keeping terminal and thread access behind callbacks lets tests drive the
    loop with scripted keys and a synchronous command runner.
    """

    read_key: Callable[[int], str]
    terminal_size: Callable[[], tuple[int, int]]
    paint: Callable[[list[str]], None]
    submit: Callable[[Command], None]
    drain_events: Callable[[], list[Event]]
    open_editor: Callable[[str], str | None]


def run_main_loop(
    state: AppState,
    navigator: Navigator,
    callbacks: RuntimeLoopCallbacks,
    timing: RuntimeLoopTiming = RuntimeLoopTiming(),
    *,
    palette: Palette = DEFAULT_PALETTE,
    separator: str = " ",
    initial_commands: Iterable[Command] = (),
) -> AppState:
    """Run until a ``Quit`` command is produced and return the final state."""
    ops = callbacks
    last_size: tuple[int, int] | None = None
    spinner_frame = 0
    dirty = True

    def dispatch(event: Event) -> bool:
        """Apply ``event`` and run its commands; ``False`` once quitting."""
        _, commands = navigator.update(state, event)
        return execute(commands)

    def execute(commands: Iterable[Command]) -> bool:
        for command in commands:
            if isinstance(command, Quit):
                logger.debug("quit requested")
                return False
            if isinstance(command, OpenEditor):
                error = ops.open_editor(command.text)
                if not dispatch(EditorClosed(error)):
                    return False
                continue
            ops.submit(command)
        return True

    if not execute(initial_commands):
        return state

    while True:
        size = ops.terminal_size()
        if size != last_size:
            last_size = size
            dispatch(Resized(*size))
            dirty = True

        for event in ops.drain_events():
            dirty = True
            if not dispatch(event):
                return state

        if state.loading:
            next_frame = int(time.monotonic() / timing.spinner_frame_seconds)
            if next_frame != spinner_frame:
                spinner_frame = next_frame
                dirty = True

        if dirty:
            ops.paint(render_screen(build_render_context(state), palette, spinner_frame, separator))
            dirty = False

        key = ops.read_key(timing.key_timeout_ms)
        if not key:
            continue
        dirty = True
        if not dispatch(KeyPressed(key)):
            return state


__all__ = ["RuntimeLoopCallbacks", "RuntimeLoopTiming", "run_main_loop"]
