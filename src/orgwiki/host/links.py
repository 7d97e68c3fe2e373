"""Link-follow dispatch.

A link registry is a plain mapping from scheme name to a handler that
receives the link target. The wiki service registers itself under the
``wiki`` scheme; other schemes can be added by whoever owns the registry.
"""

import logging
import re
from typing import Callable, Dict, Tuple

from orgwiki.exceptions import ErrorCode, LinkError

logger = logging.getLogger(__name__)

LinkHandler = Callable[[str], object]
LinkRegistry = Dict[str, LinkHandler]

_BRACKET_RE = re.compile(r"^\[\[([^\]]+)\](?:\[[^\]]*\])?\]$")
_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*):(.*)$", re.DOTALL)


def split_link(link: str) -> Tuple[str, str]:
    """Split ``scheme:target`` or ``[[scheme:target][desc]]`` into its parts.

    Raises:
        LinkError: If the link has no scheme or an empty target
    """
    text = link.strip()
    bracketed = _BRACKET_RE.match(text)
    if bracketed:
        text = bracketed.group(1)
    match = _SCHEME_RE.match(text)
    if not match:
        raise LinkError("Link has no scheme", link=link)
    scheme, target = match.group(1), match.group(2).strip()
    if not target:
        raise LinkError("Link has an empty target", link=link, scheme=scheme)
    return scheme, target


def follow_link(registry: LinkRegistry, link: str) -> object:
    """Dispatch *link* to the handler registered for its scheme."""
    scheme, target = split_link(link)
    handler = registry.get(scheme)
    if handler is None:
        raise LinkError(
            f"No handler registered for '{scheme}' links",
            link=link,
            scheme=scheme,
            code=ErrorCode.LINK_SCHEME_UNKNOWN,
        )
    logger.debug(f"Following {scheme} link to {target}")
    return handler(target)
