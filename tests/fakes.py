"""Scripted fakes for the host collaborators.

These stand in for the terminal, the editor and the search program so
service tests run without any of them:

- FakePrompt answers from a script and records every question
- FakeSession keeps buffers in memory and records opens and closes
- FakeSearch scans the ``*.org`` files under the root with Python ``re``
  and records every pattern it was asked for
"""
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

from orgwiki.exceptions import PromptCancelledError
from orgwiki.host.session import Buffer, mode_for_path
from orgwiki.models.schema import SearchMatch

Answer = Union[str, Exception]


class FakePrompt:
    """Answers prompts from per-kind queues.

    A queued exception is raised instead of answered; an exhausted or
    missing queue answers with an empty string.
    """

    def __init__(self, answers: Optional[Dict[str, List[Answer]]] = None) -> None:
        self.answers: Dict[str, List[Answer]] = {
            kind: list(queue) for kind, queue in (answers or {}).items()
        }
        self.calls: List[Tuple[str, Optional[List[str]]]] = []

    def __call__(self, kind: str, choices: Optional[Sequence[str]] = None) -> str:
        self.calls.append((kind, list(choices) if choices is not None else None))
        queue = self.answers.get(kind) or []
        if not queue:
            return ""
        answer = queue.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.calls]


class CancellingPrompt(FakePrompt):
    """Prompt that cancels every question."""

    def __call__(self, kind: str, choices: Optional[Sequence[str]] = None) -> str:
        self.calls.append((kind, list(choices) if choices is not None else None))
        raise PromptCancelledError(kind)


class FakeSession:
    """In-memory buffer list."""

    def __init__(self, buffers: Optional[List[Buffer]] = None, refuse: Sequence[str] = ()) -> None:
        self._buffers: List[Buffer] = list(buffers or [])
        self._current: Optional[Buffer] = self._buffers[-1] if self._buffers else None
        self.refuse = set(refuse)
        self.opened: List[Tuple[Path, Optional[int]]] = []
        self.closed: List[Buffer] = []

    def buffers(self) -> List[Buffer]:
        return list(self._buffers)

    def current(self) -> Optional[Buffer]:
        return self._current

    def set_current(self, buffer: Optional[Buffer]) -> None:
        self._current = buffer

    def open(self, path: Path, line: Optional[int] = None) -> Buffer:
        self.opened.append((Path(path), line))
        for buffer in self._buffers:
            if buffer.path == Path(path):
                self._current = buffer
                return buffer
        buffer = Buffer(name=Path(path).name, path=Path(path), mode=mode_for_path(path))
        self._buffers.append(buffer)
        self._current = buffer
        return buffer

    def close(self, buffer: Buffer) -> bool:
        """Close unless the buffer's name is in ``refuse`` (user cancelled)."""
        self.closed.append(buffer)
        if buffer.name in self.refuse:
            return False
        self._buffers.remove(buffer)
        if self._current is buffer:
            self._current = self._buffers[-1] if self._buffers else None
        return True


class FakeSearch:
    """Regex search over the ``*.org`` files directly and below *root*."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.calls: List[Tuple[str, Path]] = []
        self.error = error

    def search(self, pattern: str, root: Path) -> Iterator[SearchMatch]:
        self.calls.append((pattern, Path(root)))
        if self.error is not None:
            raise self.error
        regex = re.compile(pattern)
        if not Path(root).is_dir():
            return
        for path in sorted(Path(root).rglob("*.org")):
            for number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
                if regex.search(line):
                    yield SearchMatch(file=path, line=number, text=line)

    @property
    def patterns(self) -> List[str]:
        return [pattern for pattern, _ in self.calls]
