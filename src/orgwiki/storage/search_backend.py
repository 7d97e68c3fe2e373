"""External text search over the notes directory.

The search tool is an ordinary recursive regex searcher run via
subprocess. Anything accepting ripgrep-compatible flags works; matching
itself is entirely the tool's business. Paths are requested NUL
terminated (``file<NUL>line:text``) because note names may hold colons.
"""

import logging
import shlex
import subprocess
from pathlib import Path
from typing import Iterator, List, Optional, Protocol

from orgwiki.exceptions import ErrorCode, SearchError
from orgwiki.models.schema import NOTE_EXTENSION, SearchMatch

logger = logging.getLogger(__name__)

# ripgrep and grep both exit 1 when nothing matched
_NO_MATCH_RETURNCODE = 1


class SearchBackend(Protocol):
    """Anything that can run a regex search under a directory."""

    def search(self, pattern: str, root: Path) -> Iterator[SearchMatch]:
        ...


def _make_match(path_text: str, number: str, text: str, root: Optional[Path]) -> Optional[SearchMatch]:
    if not path_text or not number.isdigit() or int(number) <= 0:
        return None
    path = Path(path_text)
    if root is not None and not path.is_absolute():
        path = root / path
    return SearchMatch(file=path, line=int(number), text=text)


def parse_match_line(line: str, root: Optional[Path] = None) -> Optional[SearchMatch]:
    """Parse one search output line, or None if it is not one.

    The normal form is ``file<NUL>line:text``, where everything before the
    NUL is the path. Tools that ignore ``--null`` print ``file:line:text``;
    there the line number is taken as the first purely numeric field
    after a colon, which is ambiguous for file names like ``a:1:b.org``.
    """
    if "\0" in line:
        path_text, _, rest = line.partition("\0")
        number, sep, text = rest.partition(":")
        if not sep:
            return None
        return _make_match(path_text, number, text, root)

    start = 0
    while True:
        first = line.find(":", start)
        if first < 0:
            return None
        second = line.find(":", first + 1)
        if second < 0:
            return None
        match = _make_match(line[:first], line[first + 1:second], line[second + 1:], root)
        if match is not None:
            return match
        start = first + 1


class RipgrepSearch:
    """Runs the configured search program and streams its matches.

    Only ``*.org`` files are searched. The program is looked up on PATH
    at call time; a missing program surfaces as a SearchError rather than
    being checked up front.
    """

    def __init__(self, program: str = "rg", timeout: float = 30.0):
        self.program = program
        self.timeout = timeout

    def build_command(self, pattern: str, root: Path) -> List[str]:
        """Command line for a search of *pattern* under *root*."""
        return shlex.split(self.program) + [
            "--no-heading",
            "--line-number",
            "--with-filename",
            "--null",
            "--color",
            "never",
            "--glob",
            f"*{NOTE_EXTENSION}",
            "-e",
            pattern,
            str(root),
        ]

    def search(self, pattern: str, root: Path) -> Iterator[SearchMatch]:
        """Run the search and yield each match.

        Raises:
            SearchError: If the program is missing, times out, or fails
        """
        cmd = self.build_command(pattern, root)
        logger.debug(f"Running search: {cmd}")
        try:
            result = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise SearchError(
                f"Search program '{cmd[0]}' is not installed or not in PATH",
                pattern=pattern,
                command=cmd,
                code=ErrorCode.SEARCH_TOOL_MISSING,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise SearchError(
                f"Search timed out after {self.timeout}s",
                pattern=pattern,
                command=cmd,
                code=ErrorCode.SEARCH_TIMEOUT,
            ) from e

        if result.returncode == _NO_MATCH_RETURNCODE:
            return
        if result.returncode != 0:
            raise SearchError(
                f"Search failed: {cmd[0]}",
                pattern=pattern,
                command=cmd,
                returncode=result.returncode,
                stderr=result.stderr.strip() if result.stderr else None,
            )

        for line in result.stdout.splitlines():
            match = parse_match_line(line, root)
            if match is None:
                logger.debug(f"Skipping unparseable search output: {line[:100]}")
                continue
            yield match
