"""Storage layer for orgwiki."""

from orgwiki.storage.org_parser import OrgParser
from orgwiki.storage.search_backend import RipgrepSearch, SearchBackend

__all__ = [
    "OrgParser",
    "RipgrepSearch",
    "SearchBackend",
]
