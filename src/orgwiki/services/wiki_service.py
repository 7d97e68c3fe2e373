"""Service layer for wiki operations.

A note is a ``<topic>.org`` file sitting directly in the notes directory.
WikiService maps topics to those files, creates missing ones from the
header template, and drives the host collaborators (prompt, session,
search) for everything else. It holds no state of its own beyond its
configuration.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from orgwiki.config import OrgWikiConfig
from orgwiki.exceptions import ErrorCode, InvalidTopicError, StorageError
from orgwiki.host.links import LinkRegistry
from orgwiki.host.prompt import KEYWORDS, TOPIC, Prompt
from orgwiki.host.session import Buffer, Session
from orgwiki.models.schema import (
    DEFAULT_MODE,
    KEYWORDS_MARKER,
    LINK_SCHEME,
    MODE_TOPIC_SUFFIX,
    NOTE_EXTENSION,
    NoteHeader,
    SearchMatch,
)
from orgwiki.observability import timed_operation, traced
from orgwiki.storage.org_parser import (
    KEYWORD_PATTERN,
    TEMPLATE_CURSOR_LINE,
    OrgParser,
    backlink_pattern,
)
from orgwiki.storage.search_backend import SearchBackend

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def mode_topic(mode: str) -> str:
    """Topic of the note kept for an editing mode."""
    return f"{mode}{MODE_TOPIC_SUFFIX}"


class WikiService:
    """Note store manager over a flat directory of Org files.

    Args:
        config: Settings; only ``notes_dir`` is read here
        prompt: Interactive input callback
        session: The host's open buffers
        searcher: External text search
        link_registry: Scheme -> handler mapping to register ``wiki:`` links in
    """

    def __init__(
        self,
        config: OrgWikiConfig,
        prompt: Prompt,
        session: Session,
        searcher: SearchBackend,
        link_registry: Optional[LinkRegistry] = None,
        parser: Optional[OrgParser] = None,
    ):
        self.config = config
        self.prompt = prompt
        self.session = session
        self.searcher = searcher
        self.parser = parser or OrgParser()
        self.link_registry: LinkRegistry = {} if link_registry is None else link_registry
        self.register_link_handlers(self.link_registry)

    @property
    def notes_dir(self) -> Path:
        return self.config.get_notes_dir()

    # ------------------------------------------------------------------
    # Topics and paths
    # ------------------------------------------------------------------

    def resolve_topic(self, topic: str) -> Optional[Path]:
        """Map a topic to its note path, None for a blank topic.

        Surrounding whitespace is ignored and the ``.org`` extension is
        optional.

        Raises:
            InvalidTopicError: With ``PATH_TRAVERSAL_DETECTED`` if the path
                would not sit directly in the notes directory (separators,
                ``..``, absolute paths), or ``TOPIC_INVALID`` if it is not a
                usable file name there (NUL bytes, a bare extension)
        """
        name = (topic or "").strip()
        if not name:
            return None
        if "\0" in name:
            raise InvalidTopicError(
                name.replace("\0", "\\0"),
                message="Invalid topic: contains a NUL character",
                code=ErrorCode.TOPIC_INVALID,
            )
        if not name.endswith(NOTE_EXTENSION):
            name += NOTE_EXTENSION
        path = self.notes_dir / name
        if not self.is_wiki_entry(path):
            if path.absolute().parent.resolve() == self.config.canonical_notes_dir():
                raise InvalidTopicError(
                    name,
                    message=f"Invalid topic '{name}': no name before the {NOTE_EXTENSION} extension",
                    code=ErrorCode.TOPIC_INVALID,
                )
            raise InvalidTopicError(name)
        return path

    def is_wiki_entry(self, path: PathLike) -> bool:
        """True iff *path* is a ``.org`` file directly in the notes directory.

        Both sides are compared in canonical form, so symlinked notes
        directories still match. Files in subdirectories never do.
        """
        path = Path(path).expanduser()
        if path.suffix != NOTE_EXTENSION or "\0" in str(path):
            return False
        return path.absolute().parent.resolve() == self.config.canonical_notes_dir()

    def list_topics(self) -> List[str]:
        """Sorted topics of the existing notes; empty if the directory is missing."""
        notes_dir = self.notes_dir
        if not notes_dir.is_dir():
            logger.debug(f"Notes directory does not exist: {notes_dir}")
            return []
        return sorted(
            entry.stem
            for entry in notes_dir.iterdir()
            if entry.suffix == NOTE_EXTENSION and entry.is_file()
        )

    # ------------------------------------------------------------------
    # Visiting notes
    # ------------------------------------------------------------------

    @traced("visit")
    def visit(self, topic: str) -> Optional[Path]:
        """Open the note for *topic*, creating it from the template if missing.

        A blank topic does nothing. For a new note the keywords are asked
        for before anything touches the disk, so cancelling the prompt
        leaves no file behind.

        Returns:
            The note path, or None for a blank topic
        """
        path = self.resolve_topic(topic)
        if path is None:
            logger.debug("Ignoring blank topic")
            return None

        if path.exists():
            self.session.open(path)
            return path

        keywords = self.prompt(KEYWORDS)
        self._create_note(path, keywords)
        self.session.open(path, line=TEMPLATE_CURSOR_LINE)
        return path

    def _create_note(self, path: Path, keywords: str) -> None:
        content = self.parser.render_template(path.stem, keywords)
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(content)
        except FileExistsError:
            logger.debug(f"Note appeared before creation, leaving it as is: {path.name}")
            return
        except OSError as e:
            raise StorageError(
                f"Failed to create note {path.name}",
                operation="create",
                path=str(path),
                original_error=e,
            ) from e
        logger.info(f"Created note {path.name}")

    def find_entry(self) -> Optional[Path]:
        """Pick an existing topic, or type a new one, and visit it."""
        topic = self.prompt(TOPIC, self.list_topics())
        return self.visit(topic)

    def find_entry_for_mode(self, mode: Optional[str] = None) -> Optional[Path]:
        """Visit the note kept for an editing mode.

        Without *mode*, the mode of the session's current buffer is used
        (``fundamental-mode`` when nothing is open).
        """
        if mode is None:
            current = self.session.current()
            mode = current.mode if current is not None else DEFAULT_MODE
        return self.visit(mode_topic(mode))

    # ------------------------------------------------------------------
    # Buffers
    # ------------------------------------------------------------------

    @traced("kill_all_entries")
    def kill_all_entries(self) -> List[Buffer]:
        """Close every open buffer visiting a wiki entry.

        Buffers with unsaved text go through the session's own close
        confirmation; nothing is discarded here.

        Returns:
            The buffers a close was attempted on
        """
        attempted = []
        for buffer in self.session.buffers():
            if buffer.path is None or not self.is_wiki_entry(buffer.path):
                continue
            if not self.session.close(buffer):
                logger.info(f"Close of {buffer.name} was cancelled")
            attempted.append(buffer)
        return attempted

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def links_here(self, file: Optional[PathLike] = None) -> List[SearchMatch]:
        """Lines in any note that link to *file* (default: current buffer).

        Returns an empty list without searching when the file is not a
        wiki entry.
        """
        if file is None:
            current = self.session.current()
            if current is None or current.path is None:
                return []
            file = current.path
        path = Path(file)
        if not self.is_wiki_entry(path):
            logger.debug(f"Not a wiki entry, no backlink search: {path}")
            return []

        pattern = backlink_pattern(path.stem)
        with timed_operation("links_here", topic=path.stem) as op:
            matches = list(self.searcher.search(pattern, self.notes_dir))
            op["result_count"] = len(matches)
        return matches

    def find_keyword(self, terms: Optional[str] = None) -> List[SearchMatch]:
        """Keyword header lines of all notes.

        The search pattern is always the same. *terms* (pipe-separated,
        any may match, case-insensitive) narrows the results afterwards.
        """
        with timed_operation("find_keyword", terms=terms) as op:
            matches = list(self.searcher.search(KEYWORD_PATTERN, self.notes_dir))
            wanted = [t.strip().lower() for t in (terms or "").split("|") if t.strip()]
            if wanted:
                matches = [
                    m for m in matches
                    if any(w in _keywords_of(m.text) for w in wanted)
                ]
            op["result_count"] = len(matches)
        return matches

    # ------------------------------------------------------------------
    # Links and headers
    # ------------------------------------------------------------------

    def register_link_handlers(self, registry: LinkRegistry) -> LinkRegistry:
        """Install :meth:`visit` as the handler for ``wiki:`` links."""
        registry[LINK_SCHEME] = self.visit
        return registry

    def outgoing_links(self, topic: str) -> List[str]:
        """Distinct wiki link targets in a note, in order of appearance."""
        content = self._read(topic)
        if content is None:
            return []
        seen: List[str] = []
        for target, _ in self.parser.iter_links(content):
            if target not in seen:
                seen.append(target)
        return seen

    def read_header(self, topic: str) -> Optional[NoteHeader]:
        """Title and keywords of an existing note, None if it does not exist."""
        content = self._read(topic)
        if content is None:
            return None
        return self.parser.parse_header(content)

    def _read(self, topic: str) -> Optional[str]:
        path = self.resolve_topic(topic)
        if path is None or not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(
                f"Failed to read note {path.name}",
                operation="read",
                path=str(path),
                code=ErrorCode.STORAGE_READ_FAILED,
                original_error=e,
            ) from e


def _keywords_of(line: str) -> str:
    text = line.strip()
    if text.upper().startswith(KEYWORDS_MARKER):
        text = text[len(KEYWORDS_MARKER):]
    return text.lower()
