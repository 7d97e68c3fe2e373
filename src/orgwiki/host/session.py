"""Editing sessions: the set of open buffers.

The service only ever lists, opens and closes buffers; what "open" means
is up to the session. :class:`EditorSession` runs an external editor
command for each open and remembers the buffer afterwards, so commands
such as "close all notes" or "notes linking here" have something to act
on during a long-lived shell.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol

from orgwiki.exceptions import EditorError, StorageError
from orgwiki.host.prompt import CONFIRM_CLOSE, Prompt
from orgwiki.models.schema import DEFAULT_MODE

logger = logging.getLogger(__name__)

# Extension -> editing mode name, for sessions that have no mode of their own
_MODES_BY_SUFFIX: Dict[str, str] = {
    ".c": "c-mode",
    ".h": "c-mode",
    ".cc": "c++-mode",
    ".cpp": "c++-mode",
    ".hpp": "c++-mode",
    ".clj": "clojure-mode",
    ".css": "css-mode",
    ".el": "emacs-lisp-mode",
    ".go": "go-mode",
    ".hs": "haskell-mode",
    ".html": "html-mode",
    ".java": "java-mode",
    ".js": "js-mode",
    ".json": "json-mode",
    ".lua": "lua-mode",
    ".md": "markdown-mode",
    ".ml": "tuareg-mode",
    ".org": "org-mode",
    ".py": "python-mode",
    ".rb": "ruby-mode",
    ".rs": "rust-mode",
    ".scala": "scala-mode",
    ".sh": "sh-mode",
    ".sql": "sql-mode",
    ".tex": "latex-mode",
    ".toml": "conf-toml-mode",
    ".ts": "typescript-mode",
    ".txt": "text-mode",
    ".yaml": "yaml-mode",
    ".yml": "yaml-mode",
}


def mode_for_path(path: Optional[Path]) -> str:
    """Editing mode name for *path*, ``fundamental-mode`` if unknown."""
    if path is None:
        return DEFAULT_MODE
    return _MODES_BY_SUFFIX.get(Path(path).suffix.lower(), DEFAULT_MODE)


@dataclass
class Buffer:
    """An open buffer.

    Attributes:
        name: Display name
        path: Backing file, None for scratch buffers
        mode: Name of the editing mode active in the buffer
        unsaved: Text not yet written to ``path``, None when clean. Only
            hosts that keep buffer text in memory set it; files handed to
            an external editor are saved by that editor, so their buffers
            stay clean
    """

    name: str
    path: Optional[Path] = None
    mode: str = DEFAULT_MODE
    unsaved: Optional[str] = None

    @property
    def modified(self) -> bool:
        return self.unsaved is not None

    def save(self) -> None:
        """Write pending text to the backing file."""
        if self.unsaved is None or self.path is None:
            return
        try:
            self.path.write_text(self.unsaved, encoding="utf-8")
        except OSError as e:
            raise StorageError(
                f"Failed to save buffer {self.name}",
                operation="save",
                path=str(self.path),
                original_error=e,
            ) from e
        self.unsaved = None


class Session(Protocol):
    """What the service needs from the host's buffer list."""

    def buffers(self) -> List[Buffer]:
        ...

    def current(self) -> Optional[Buffer]:
        ...

    def open(self, path: Path, line: Optional[int] = None) -> Buffer:
        ...

    def close(self, buffer: Buffer) -> bool:
        ...


class EditorSession:
    """Session that hands each opened file to an external editor.

    The editor runs in the foreground and writes the file itself; the
    buffer stays in the session, clean, after the editor exits until it
    is closed. The save/discard/cancel confirmation in ``close`` applies
    to buffers given ``unsaved`` text by the embedding host.

    Args:
        editor: Editor command line, e.g. ``"vim"`` or ``"emacsclient -t"``
        prompt: Used to confirm closing buffers with unsaved text
        runner: ``subprocess.run`` compatible callable
    """

    def __init__(
        self,
        editor: str,
        prompt: Prompt,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.editor = editor
        self._prompt = prompt
        self._run = runner
        self._buffers: List[Buffer] = []
        self._current: Optional[Buffer] = None

    def buffers(self) -> List[Buffer]:
        return list(self._buffers)

    def current(self) -> Optional[Buffer]:
        return self._current

    def find_buffer(self, path: Path) -> Optional[Buffer]:
        target = Path(path).resolve()
        for buffer in self._buffers:
            if buffer.path is not None and buffer.path.resolve() == target:
                return buffer
        return None

    def editor_command(self, path: Path, line: Optional[int] = None) -> List[str]:
        cmd = shlex.split(self.editor)
        if line is not None:
            cmd.append(f"+{line}")
        cmd.append(str(path))
        return cmd

    def open(self, path: Path, line: Optional[int] = None) -> Buffer:
        """Run the editor on *path* and make its buffer current."""
        path = Path(path)
        cmd = self.editor_command(path, line)
        try:
            result = self._run(cmd, check=False)
        except FileNotFoundError as e:
            raise EditorError(
                f"Editor '{cmd[0]}' is not installed or not in PATH", command=cmd
            ) from e
        if result.returncode != 0:
            raise EditorError(
                f"Editor exited with status {result.returncode}",
                command=cmd,
                returncode=result.returncode,
            )

        buffer = self.find_buffer(path)
        if buffer is None:
            buffer = Buffer(name=path.name, path=path, mode=mode_for_path(path))
            self._buffers.append(buffer)
        self._current = buffer
        return buffer

    def close(self, buffer: Buffer) -> bool:
        """Close *buffer*, asking first when it has unsaved text.

        Returns:
            False if the user cancelled, True otherwise
        """
        if buffer.modified:
            answer = self._prompt(CONFIRM_CLOSE, [buffer.name])
            if answer == "cancel":
                logger.info(f"Kept modified buffer {buffer.name}")
                return False
            if answer == "save":
                buffer.save()

        if buffer in self._buffers:
            self._buffers.remove(buffer)
        if self._current is buffer:
            self._current = self._buffers[-1] if self._buffers else None
        logger.debug(f"Closed buffer {buffer.name}")
        return True
