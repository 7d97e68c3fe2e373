"""Interactive prompts.

The service asks for input through a single callback,
``prompt(kind, choices=None) -> str``. Kinds in use:

- ``"topic"``: pick a note from *choices* or type a new topic
- ``"keywords"``: keywords line for a new note
- ``"confirm-close"``: save / discard / cancel for a modified buffer
"""

import difflib
import logging
from typing import Callable, List, Optional, Protocol, Sequence, TextIO

from orgwiki.exceptions import PromptCancelledError

logger = logging.getLogger(__name__)

TOPIC = "topic"
KEYWORDS = "keywords"
CONFIRM_CLOSE = "confirm-close"

CLOSE_ANSWERS = ("save", "discard", "cancel")

_MAX_SUGGESTIONS = 9


class Prompt(Protocol):
    def __call__(self, kind: str, choices: Optional[Sequence[str]] = None) -> str:
        ...


def fuzzy_candidates(query: str, choices: Sequence[str], limit: int = _MAX_SUGGESTIONS) -> List[str]:
    """Rank *choices* against *query*.

    Case-insensitive substring hits come first (shortest first), followed
    by difflib close matches that are not substring hits.
    """
    needle = query.strip().lower()
    if not needle:
        return list(choices)[:limit]
    substring = sorted(
        (c for c in choices if needle in c.lower()),
        key=lambda c: (len(c), c.lower()),
    )
    lowered = {c.lower(): c for c in choices}
    close = [
        lowered[c]
        for c in difflib.get_close_matches(needle, list(lowered), n=limit, cutoff=0.6)
        if lowered[c] not in substring
    ]
    return (substring + close)[:limit]


class TerminalPrompt:
    """Line-based prompt on a terminal.

    Topic selection accepts a number from the listed choices, an exact
    topic, or free text. Free text that fuzzily matches existing topics
    shows the candidates once more; pressing Enter there keeps the typed
    text so a new note can be created.
    """

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output: Optional[TextIO] = None,
    ):
        self._input = input_func
        self._output = output

    def __call__(self, kind: str, choices: Optional[Sequence[str]] = None) -> str:
        if kind == TOPIC:
            return self._select_topic(list(choices or []))
        if kind == KEYWORDS:
            return self._read(kind, "Keywords: ")
        if kind == CONFIRM_CLOSE:
            return self._confirm_close(choices)
        return self._read(kind, f"{kind}: ")

    def _read(self, kind: str, message: str) -> str:
        try:
            return self._input(message)
        except (EOFError, KeyboardInterrupt) as e:
            raise PromptCancelledError(kind) from e

    def _echo(self, text: str) -> None:
        print(text, file=self._output)

    def _list(self, choices: Sequence[str]) -> None:
        for index, choice in enumerate(choices, start=1):
            self._echo(f"{index:3d}. {choice}")

    def _select_topic(self, choices: List[str]) -> str:
        if choices:
            self._list(choices)
        answer = self._read(TOPIC, "Topic: ").strip()
        if not answer:
            return ""
        if answer.isdigit() and 1 <= int(answer) <= len(choices):
            return choices[int(answer) - 1]
        if answer in choices:
            return answer

        candidates = fuzzy_candidates(answer, choices)
        if not candidates:
            return answer
        self._echo(f"No exact match for '{answer}'. Did you mean:")
        self._list(candidates)
        pick = self._read(TOPIC, f"Number, or Enter to use '{answer}': ").strip()
        if pick.isdigit() and 1 <= int(pick) <= len(candidates):
            return candidates[int(pick) - 1]
        return answer

    def _confirm_close(self, subject: Optional[Sequence[str]]) -> str:
        name = subject[0] if subject else "buffer"
        while True:
            answer = self._read(
                CONFIRM_CLOSE, f"{name} has unsaved changes. [s]ave, [d]iscard, [c]ancel? "
            ).strip().lower()
            for full in CLOSE_ANSWERS:
                if answer and full.startswith(answer):
                    return full
            logger.debug(f"Unrecognised close answer: {answer!r}")
