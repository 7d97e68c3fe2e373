"""Data models for orgwiki."""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# Fixed note extension; files with any other suffix are not wiki entries
NOTE_EXTENSION = ".org"

TITLE_MARKER = "#+TITLE:"
KEYWORDS_MARKER = "#+KEYWORDS:"
SECTION_MARKER = "*"

# Scheme prefix of inline links, e.g. [[wiki:python-mode (major mode)]]
LINK_SCHEME = "wiki"

# Appended to an editing mode name to form its topic
MODE_TOPIC_SUFFIX = " (major mode)"
DEFAULT_MODE = "fundamental-mode"


class SearchMatch(BaseModel):
    """One line reported by the external search tool."""

    file: Path
    line: int = Field(ge=1)
    text: str = ""

    def format(self, root: Optional[Path] = None) -> str:
        """Render as ``file:line:text``, relative to *root* when possible."""
        shown = self.file
        if root is not None:
            try:
                shown = self.file.relative_to(root)
            except ValueError:
                pass
        return f"{shown}:{self.line}:{self.text}"


class NoteHeader(BaseModel):
    """Header fields written by the creation template."""

    title: str = ""
    keywords: str = ""

    @field_validator("title", "keywords")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @property
    def keyword_list(self) -> List[str]:
        """Keywords split on whitespace and pipes."""
        return [kw for kw in self.keywords.replace("|", " ").split() if kw]
