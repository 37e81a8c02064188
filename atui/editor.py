"""Open the displayed policy document in ``$EDITOR``.

The document is written to a temporary ``.json`` file and the editor runs
while the TUI is suspended. Returns an error message string instead of
raising so the caller can show it in the status line.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)


def write_temp_document(text: str) -> Path:
    """Write ``text`` to a new temporary ``.json`` file and return its path."""
    fd, name = tempfile.mkstemp(prefix="atui-policy-", suffix=".json")
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(text)
        if text and not text.endswith("\n"):
            handle.write("\n")
    return Path(name)


def launch_editor(
    text: str,
    disable_tui_mode: Callable[[], None],
    enable_tui_mode: Callable[[], None],
) -> str | None:
    editor_env = os.environ.get("EDITOR", "").strip()
    if not editor_env:
        return "Cannot edit: $EDITOR is not set."
    cmd = shlex.split(editor_env)
    if not cmd:
        return "Cannot edit: $EDITOR is empty."

    try:
        target = write_temp_document(text)
    except OSError as exc:
        return f"Cannot edit: {exc}"

    logger.debug("opening %s with %s", target, cmd[0])
    disable_tui_mode()
    try:
        subprocess.run([*cmd, str(target)], check=False)
    except Exception as exc:
        return f"Failed to launch editor: {exc}"
    finally:
        enable_tui_mode()
        target.unlink(missing_ok=True)
    return None
