"""Custom exceptions for orgwiki.

Provides a structured exception hierarchy with error codes and
machine-readable error information.
"""
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(Enum):
    """Error codes for machine-readable error identification."""

    # Topic errors (1xxx)
    TOPIC_INVALID = 1001
    PATH_TRAVERSAL_DETECTED = 1002

    # Link errors (2xxx)
    LINK_INVALID = 2001
    LINK_SCHEME_UNKNOWN = 2002

    # Storage errors (4xxx)
    STORAGE_READ_FAILED = 4001
    STORAGE_WRITE_FAILED = 4002

    # Search errors (5xxx)
    SEARCH_FAILED = 5001
    SEARCH_TOOL_MISSING = 5002
    SEARCH_TIMEOUT = 5003

    # Configuration errors (6xxx)
    CONFIG_INVALID = 6001

    # Interaction errors (8xxx)
    PROMPT_CANCELLED = 8001
    EDITOR_FAILED = 8002


class OrgWikiError(Exception):
    """Base exception for all orgwiki errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TOPIC_INVALID,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "code_name": self.code.name,
            "message": self.message,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.name}] {self.message} ({detail_str})"
        return f"[{self.code.name}] {self.message}"


class InvalidTopicError(OrgWikiError):
    """Raised when a topic does not resolve to a file directly in the notes directory."""

    def __init__(
        self,
        topic: str,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.PATH_TRAVERSAL_DETECTED
    ):
        super().__init__(
            message or f"Invalid topic '{topic}': must name a file inside the notes directory",
            code=code,
            details={"topic": topic[:100]}
        )
        self.topic = topic


class StorageError(OrgWikiError):
    """Raised when a note file cannot be read or written."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        path: Optional[str] = None,
        code: ErrorCode = ErrorCode.STORAGE_WRITE_FAILED,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if path:
            # Only the file name, full paths stay out of messages
            details["path_hint"] = path.split("/")[-1] if "/" in path else path
        if original_error:
            details["original_error"] = str(original_error)[:200]

        super().__init__(message, code=code, details=details)
        self.operation = operation
        self.path = path
        self.original_error = original_error


class SearchError(OrgWikiError):
    """Raised when the external search program fails.

    Attributes:
        pattern: The regex handed to the search program
        command: Full command line that was run
        returncode: Exit code of the program (if it ran)
        stderr: Error output of the program (if any)
    """

    def __init__(
        self,
        message: str,
        pattern: Optional[str] = None,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
        code: ErrorCode = ErrorCode.SEARCH_FAILED
    ):
        details: Dict[str, Any] = {}
        if pattern:
            details["pattern"] = pattern[:100]
        if returncode is not None:
            details["returncode"] = returncode
        if stderr:
            details["stderr"] = stderr[:200]

        super().__init__(message, code=code, details=details)
        self.pattern = pattern
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class LinkError(OrgWikiError):
    """Raised for malformed links or links with no registered handler."""

    def __init__(
        self,
        message: str,
        link: Optional[str] = None,
        scheme: Optional[str] = None,
        code: ErrorCode = ErrorCode.LINK_INVALID
    ):
        details = {}
        if link:
            details["link"] = link[:100]
        if scheme:
            details["scheme"] = scheme

        super().__init__(message, code=code, details=details)
        self.link = link
        self.scheme = scheme


class PromptCancelledError(OrgWikiError):
    """Raised when the user aborts an interactive prompt."""

    def __init__(self, kind: str):
        super().__init__(
            f"Prompt '{kind}' cancelled",
            code=ErrorCode.PROMPT_CANCELLED,
            details={"kind": kind}
        )
        self.kind = kind


class EditorError(OrgWikiError):
    """Raised when the editor command cannot be launched."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None
    ):
        details: Dict[str, Any] = {}
        if command:
            details["editor"] = command[0]
        if returncode is not None:
            details["returncode"] = returncode

        super().__init__(message, code=ErrorCode.EDITOR_FAILED, details=details)
        self.command = command
        self.returncode = returncode


class ConfigurationError(OrgWikiError):
    """Raised for configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        code: ErrorCode = ErrorCode.CONFIG_INVALID
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, code=code, details=details)
        self.config_key = config_key
