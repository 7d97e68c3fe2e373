"""
orgwiki - a lightweight wiki convention over a flat directory of Org files.

Notes are plain ``<topic>.org`` files in a single notes directory. This
package resolves topics to files (creating them from a small template),
closes open note buffers in bulk, and shells out to an external search
tool to find backlinks and keyword-tagged notes.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("orgwiki")
except PackageNotFoundError:
    __version__ = "0.3.0"
