"""Org header template and parsing for wiki notes.

New notes get a three-line header (title, keywords, blank line) and an
empty section header ready for body text. Everything after that is free
text and never validated.
"""
import logging
import re
from typing import Iterator, Optional, Tuple

from orgwiki.models.schema import (
    KEYWORDS_MARKER,
    LINK_SCHEME,
    NOTE_EXTENSION,
    SECTION_MARKER,
    TITLE_MARKER,
    NoteHeader,
)

logger = logging.getLogger(__name__)

# 1-based line of the empty section header in a freshly rendered note
TEMPLATE_CURSOR_LINE = 4

_HEADER_RE = re.compile(r"^#\+(TITLE|KEYWORDS):[ \t]*(.*)$", re.IGNORECASE)

# [[wiki:target]] or [[wiki:target][description]]
_LINK_RE = re.compile(
    r"\[\[" + re.escape(LINK_SCHEME) + r":([^\]]+)\](?:\[([^\]]*)\])?\]"
)

# Characters with a meaning in both ripgrep and POSIX extended regexes
_REGEX_SPECIALS = frozenset("\\.^$|?*+()[]{}")


class OrgParser:
    """Renders the creation template and reads headers back."""

    def render_template(self, title: str, keywords: str = "") -> str:
        """Render the skeleton written into a newly created note."""
        keywords = " ".join(keywords.split())
        return (
            f"{TITLE_MARKER} {title}\n"
            f"{KEYWORDS_MARKER} {keywords}\n"
            "\n"
            f"{SECTION_MARKER} \n"
        )

    def parse_header(self, content: str) -> NoteHeader:
        """Parse title and keywords from the leading ``#+`` lines.

        Only the in-buffer settings block at the top of the file is read;
        parsing stops at the first line that is neither blank nor a
        ``#+KEY:`` setting.
        """
        fields = {}
        for line in content.splitlines():
            stripped = line.strip()
            if not stripped:
                continue
            if not stripped.startswith("#+"):
                break
            match = _HEADER_RE.match(stripped)
            if match:
                key = match.group(1).lower()
                fields.setdefault(key, match.group(2))
        return NoteHeader(**fields)

    def iter_links(self, content: str) -> Iterator[Tuple[str, Optional[str]]]:
        """Yield ``(target, description)`` for every wiki link in *content*."""
        for match in _LINK_RE.finditer(content):
            yield match.group(1).strip(), match.group(2)


def escape_search_pattern(value: str) -> str:
    """Escape a literal for use in a ripgrep / ``grep -E`` pattern.

    Unlike :func:`re.escape` this leaves spaces and hyphens alone so the
    pattern stays readable in both regex dialects.
    """
    return "".join(f"\\{c}" if c in _REGEX_SPECIALS else c for c in value)


def backlink_pattern(topic: str) -> str:
    """Pattern matching any inline link to *topic*.

    Links may name the target by topic or by file name, so both
    ``[[wiki:rust]]`` and ``[[wiki:rust.org]]`` match.
    """
    return (
        r"\[\[" + LINK_SCHEME + ":" + escape_search_pattern(topic)
        + "(" + escape_search_pattern(NOTE_EXTENSION) + r")?\]"
    )


# Lines carrying the keywords header
KEYWORD_PATTERN = r"^#\+KEYWORDS: "
