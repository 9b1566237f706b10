"""Error codes and exception handling for mimequery.

This module defines the package-wide ErrorCode enum and the MimeQueryError
exception. A missing file is never an error in itself; these codes describe
what remains once the search has nothing to return or a file that does exist
cannot be used.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Package-wide error code enumeration.

    Categories:
        Resolution: NOT_FOUND, IO_FAILURE, INVALID_ENCODING
        Helper: COMMAND_FAILED (external MIME sniffing programs)
        CLI/config: INVALID_FLAG_COMBINATION, CONFIG_INVALID
    """

    NOT_FOUND = "NOT_FOUND"
    IO_FAILURE = "IO_FAILURE"
    INVALID_ENCODING = "INVALID_ENCODING"
    COMMAND_FAILED = "COMMAND_FAILED"
    INVALID_FLAG_COMBINATION = "INVALID_FLAG_COMBINATION"
    CONFIG_INVALID = "CONFIG_INVALID"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class MimeQueryError(Exception):
    """Base exception for mimequery errors.

    Wraps an ErrorCode with a human-readable message and optional structured
    details for machine-parseable error responses.

    Attributes:
        code: The ErrorCode enum value for this error.
        message: Human-readable error description.
        details: Optional dictionary of additional structured context.

    Example:
        >>> error = MimeQueryError(
        ...     code=ErrorCode.NOT_FOUND,
        ...     message="No results for mime query: text/html",
        ...     details={"query": "text/html"}
        ... )
        >>> error.code
        <ErrorCode.NOT_FOUND: 'NOT_FOUND'>
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize a MimeQueryError.

        Args:
            code: The ErrorCode enum value identifying this error type.
            message: Human-readable error description.
            details: Optional dictionary of additional structured context
                (e.g., the query string, the offending path).
        """
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    def __repr__(self) -> str:
        """Return a developer-friendly representation of the error."""
        return f"MimeQueryError(code={self.code.value!r}, message={self.message!r}, details={self.details!r})"

    def as_issue(self) -> Dict[str, Any]:
        """Return the error as a warning entry for output envelopes."""
        issue: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        path = (self.details or {}).get("path")
        if path is not None:
            issue["path"] = str(path)
        return issue
