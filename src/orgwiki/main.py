#!/usr/bin/env python
"""Main entry point for the orgwiki command line."""
import argparse
import cmd
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from orgwiki import __version__
from orgwiki.config import OrgWikiConfig, load_config
from orgwiki.exceptions import ConfigurationError, OrgWikiError
from orgwiki.host.links import follow_link
from orgwiki.host.prompt import TerminalPrompt
from orgwiki.host.session import EditorSession, mode_for_path
from orgwiki.models.schema import SearchMatch
from orgwiki.observability import configure_logging
from orgwiki.services.wiki_service import WikiService
from orgwiki.storage.search_backend import RipgrepSearch

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per operation."""
    parser = argparse.ArgumentParser(
        prog="orgwiki", description="Flat-directory Org wiki"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--notes-dir",
        help="Directory holding the <topic>.org notes",
        type=str,
        default=None,
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("find", help="Pick a note interactively, or type a new topic")
    sub.add_parser("list", help="List existing topics")

    visit = sub.add_parser("visit", help="Open or create the note for TOPIC")
    visit.add_argument("topic")

    mode = sub.add_parser("mode", help="Open or create the note for an editing mode")
    group = mode.add_mutually_exclusive_group()
    group.add_argument("--mode", dest="mode_name", help="Mode name, e.g. python-mode")
    group.add_argument("--file", dest="mode_file", help="Derive the mode from this file")

    links = sub.add_parser("links-here", help="Notes linking to FILE")
    links.add_argument("file")

    keywords = sub.add_parser("keywords", help="Keyword lines of all notes")
    keywords.add_argument("terms", nargs="?", default=None, help="a|b narrows to lines with a or b")

    follow = sub.add_parser("follow", help="Follow a link such as wiki:topic")
    follow.add_argument("link")

    sub.add_parser("shell", help="Interactive shell keeping one editing session")
    return parser


def build_service(cfg: OrgWikiConfig) -> WikiService:
    """Wire the service to the terminal prompt, editor and search program."""
    prompt = TerminalPrompt()
    return WikiService(
        config=cfg,
        prompt=prompt,
        session=EditorSession(cfg.editor, prompt),
        searcher=RipgrepSearch(cfg.search_program, cfg.search_timeout),
    )


def print_matches(matches: Sequence[SearchMatch], root: Path) -> None:
    for match in matches:
        print(match.format(root))


class WikiShell(cmd.Cmd):
    """Interactive loop over one WikiService and its session."""

    intro = "orgwiki shell. Type help or ? to list commands."
    prompt = "wiki> "

    def __init__(self, service: WikiService):
        super().__init__()
        self.service = service

    def _guarded(self, action: Callable[[], None]) -> None:
        try:
            action()
        except OrgWikiError as e:
            print(f"Error: {e}", file=sys.stderr)

    def do_find(self, arg: str) -> None:
        """find: pick a note, or type a new topic"""
        self._guarded(self.service.find_entry)

    def do_visit(self, arg: str) -> None:
        """visit TOPIC: open or create a note"""
        self._guarded(lambda: self.service.visit(arg))

    def do_mode(self, arg: str) -> None:
        """mode [NAME]: note for NAME, or for the current buffer's mode"""
        self._guarded(lambda: self.service.find_entry_for_mode(arg.strip() or None))

    def do_open(self, arg: str) -> None:
        """open FILE: open any file and make it the current buffer"""
        if not arg.strip():
            print("Usage: open FILE")
            return
        self._guarded(lambda: self.service.session.open(Path(arg.strip()).expanduser()))

    def do_buffers(self, arg: str) -> None:
        """buffers: list open buffers"""
        current = self.service.session.current()
        for buffer in self.service.session.buffers():
            marker = "*" if buffer is current else " "
            flag = "+" if buffer.modified else " "
            print(f"{marker}{flag} {buffer.name:40} {buffer.mode}")

    def do_kill_all(self, arg: str) -> None:
        """kill_all: close every open note buffer"""
        def run() -> None:
            closed = self.service.kill_all_entries()
            print(f"Closed {len(closed)} note buffer(s)")
        self._guarded(run)

    def do_links(self, arg: str) -> None:
        """links [FILE]: notes linking to FILE or the current buffer"""
        self._guarded(lambda: print_matches(
            self.service.links_here(arg.strip() or None), self.service.notes_dir
        ))

    def do_keywords(self, arg: str) -> None:
        """keywords [a|b]: keyword lines, optionally narrowed"""
        self._guarded(lambda: print_matches(
            self.service.find_keyword(arg.strip() or None), self.service.notes_dir
        ))

    def do_follow(self, arg: str) -> None:
        """follow LINK: follow a link such as wiki:topic"""
        self._guarded(lambda: follow_link(self.service.link_registry, arg))

    def do_list(self, arg: str) -> None:
        """list: existing topics"""
        for topic in self.service.list_topics():
            print(topic)

    def do_quit(self, arg: str) -> bool:
        """quit: leave the shell"""
        return True

    do_EOF = do_quit

    def emptyline(self) -> bool:
        return False


def run_command(args: argparse.Namespace, service: WikiService) -> int:
    """Run one parsed sub-command, returning the exit status."""
    if args.command == "find":
        service.find_entry()
    elif args.command == "list":
        for topic in service.list_topics():
            print(topic)
    elif args.command == "visit":
        service.visit(args.topic)
    elif args.command == "mode":
        mode = args.mode_name
        if mode is None and args.mode_file:
            mode = mode_for_path(Path(args.mode_file))
        service.find_entry_for_mode(mode)
    elif args.command == "links-here":
        print_matches(service.links_here(args.file), service.notes_dir)
    elif args.command == "keywords":
        print_matches(service.find_keyword(args.terms), service.notes_dir)
    elif args.command == "follow":
        follow_link(service.link_registry, args.link)
    elif args.command == "shell":
        WikiShell(service).cmdloop()
    return 0


def main(
    argv: Optional[List[str]] = None,
    service_factory: Callable[[OrgWikiConfig], WikiService] = build_service,
) -> int:
    """Run the orgwiki command line."""
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config().with_notes_dir(Path(args.notes_dir) if args.notes_dir else None)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    level_name = (args.log_level or cfg.log_level).upper()
    log_level = getattr(logging, level_name, logging.WARNING)
    try:
        configure_logging(log_dir=cfg.log_dir, level=log_level)
    except OSError as e:
        logging.basicConfig(level=log_level)
        logger.warning(f"Failed to configure file logging: {e}")

    service = service_factory(cfg)
    try:
        return run_command(args, service)
    except OrgWikiError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
