"""Host-side collaborators: prompts, editing sessions and link dispatch."""

from orgwiki.host.links import LinkRegistry, follow_link
from orgwiki.host.prompt import Prompt, TerminalPrompt
from orgwiki.host.session import Buffer, EditorSession, Session, mode_for_path

__all__ = [
    "Buffer",
    "EditorSession",
    "LinkRegistry",
    "Prompt",
    "Session",
    "TerminalPrompt",
    "follow_link",
    "mode_for_path",
]
