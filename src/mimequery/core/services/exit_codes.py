"""Exit code mapping for the mimequery CLI (sysexits.h values)."""

from __future__ import annotations

import os

from mimequery.core.services.error_codes import ErrorCode

EX_SUCCESS = 0
EX_USAGE = getattr(os, "EX_USAGE", 64)
EX_DATAERR = getattr(os, "EX_DATAERR", 65)
EX_NOINPUT = getattr(os, "EX_NOINPUT", 66)
EX_UNAVAILABLE = getattr(os, "EX_UNAVAILABLE", 69)
EX_SOFTWARE = getattr(os, "EX_SOFTWARE", 70)
EX_CANTCREAT = getattr(os, "EX_CANTCREAT", 73)
EX_IOERR = getattr(os, "EX_IOERR", 74)


def exit_code_for_error(error_code: ErrorCode) -> int:
    """Map ErrorCode to a sysexits exit code."""
    mapping = {
        ErrorCode.INVALID_FLAG_COMBINATION: EX_USAGE,
        ErrorCode.NOT_FOUND: EX_NOINPUT,
        ErrorCode.IO_FAILURE: EX_IOERR,
        ErrorCode.INVALID_ENCODING: EX_DATAERR,
        ErrorCode.CONFIG_INVALID: EX_DATAERR,
        ErrorCode.COMMAND_FAILED: EX_UNAVAILABLE,
        ErrorCode.UNKNOWN_ERROR: EX_SOFTWARE,
    }
    return mapping.get(error_code, EX_SOFTWARE)
