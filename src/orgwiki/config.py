"""Configuration module for orgwiki."""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from orgwiki import __version__
from orgwiki.exceptions import ConfigurationError

# Project-level .env, anchored to __file__ so it works regardless of the CWD.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# User-level config, lives outside the notes directory
_USER_ENV = Path.home() / ".orgwiki" / ".env"
load_dotenv(_USER_ENV)


logger = logging.getLogger(__name__)

DEFAULT_NOTES_DIR = Path.home() / "org" / "wiki"


def _default_editor() -> str:
    return os.getenv("ORGWIKI_EDITOR") or os.getenv("VISUAL") or os.getenv("EDITOR") or "vi"


class OrgWikiConfig(BaseModel):
    """Configuration for an orgwiki note store."""

    # Directory holding the <topic>.org files
    notes_dir: Path = Field(
        default_factory=lambda: Path(
            os.getenv("ORGWIKI_DIR", str(DEFAULT_NOTES_DIR))
        ).expanduser()
    )
    # External recursive regex search tool (ripgrep-compatible flags)
    search_program: str = Field(
        default_factory=lambda: os.getenv("ORGWIKI_SEARCH_PROGRAM", "rg"),
        validate_default=True,
    )
    # Environment values arrive as strings and are coerced during validation
    search_timeout: float = Field(
        default_factory=lambda: os.getenv("ORGWIKI_SEARCH_TIMEOUT", "30"),
        validate_default=True,
    )
    # Editor command used by the terminal session; may carry arguments
    editor: str = Field(default_factory=_default_editor)
    log_dir: Path = Field(
        default_factory=lambda: Path(
            os.getenv("ORGWIKI_LOG_DIR", str(Path.home() / ".orgwiki" / "logs"))
        ).expanduser()
    )
    log_level: str = Field(
        default_factory=lambda: os.getenv("ORGWIKI_LOG_LEVEL", "WARNING")
    )
    version: str = Field(default=__version__)

    @field_validator("search_timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("search_timeout must be > 0")
        return v

    @field_validator("search_program")
    @classmethod
    def _non_empty_program(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("search_program cannot be empty")
        return v

    def get_notes_dir(self) -> Path:
        """Absolute notes directory, without requiring it to exist."""
        return self.notes_dir.expanduser().absolute()

    def canonical_notes_dir(self) -> Path:
        """Notes directory with symlinks resolved, used for entry checks."""
        return self.get_notes_dir().resolve()

    def with_notes_dir(self, notes_dir: Optional[Path]) -> "OrgWikiConfig":
        """Return a copy pointing at another notes directory."""
        if notes_dir is None:
            return self
        return self.model_copy(update={"notes_dir": Path(notes_dir).expanduser()})


def load_config(**overrides) -> OrgWikiConfig:
    """Build the configuration from the environment plus *overrides*.

    Invalid settings raise ``ConfigurationError`` naming the first
    offending field instead of a raw pydantic error.
    """
    try:
        return OrgWikiConfig(**overrides)
    except ValidationError as e:
        first = e.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or None
        logger.error(f"Invalid configuration for {key}: {first.get('msg')}")
        raise ConfigurationError(
            f"Invalid configuration: {first.get('msg')}", config_key=key
        ) from e
