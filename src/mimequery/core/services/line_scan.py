"""Line-oriented text helpers shared by the mimeapps.list and .desktop readers.

Neither file is parsed as INI. Lookups are plain substring searches bounded
by physical lines.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, NamedTuple, Optional

from mimequery.core.services.error_codes import ErrorCode, MimeQueryError

LINE_BREAK = "\n"


class LineMatch(NamedTuple):
    line_start: int
    match: int
    line_end: int


def read_text_file(path: Path) -> str:
    """Read ``path`` fully as strict UTF-8.

    Raises:
        MimeQueryError: IO_FAILURE if the file cannot be opened or read,
            INVALID_ENCODING if the bytes are not valid UTF-8.
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as exc:
        raise MimeQueryError(
            ErrorCode.IO_FAILURE,
            f"Could not read {path}: {exc.strerror or exc}",
            details={"path": str(path), "errno": exc.errno},
        ) from exc
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MimeQueryError(
            ErrorCode.INVALID_ENCODING,
            f"{path} is not valid UTF-8",
            details={"path": str(path), "position": exc.start},
        ) from exc


def line_containing(
    text: str, needle: str, *, after_section: Optional[str] = None
) -> Optional[LineMatch]:
    """Locate the physical line holding the first occurrence of ``needle``.

    When ``after_section`` is given, the text must also contain that literal
    header somewhere; otherwise None is returned. The search is unanchored, so
    ``needle`` may match inside an unrelated key or value.
    """
    if after_section is not None and after_section not in text:
        return None
    idx = text.find(needle)
    if idx < 0:
        return None
    line_start = text.rfind(LINE_BREAK, 0, idx) + 1
    line_end = text.find(LINE_BREAK, idx)
    if line_end < 0:
        line_end = len(text)
    return LineMatch(line_start=line_start, match=idx, line_end=line_end)


def value_after(text: str, start: int, end: int, sep: str = "=") -> Optional[str]:
    """Return what follows the first ``sep`` in ``text[start:end]``."""
    pos = text.find(sep, start, end)
    if pos < 0:
        return None
    return text[pos + len(sep) : end]


def physical_lines(text: str) -> Iterator[str]:
    """Yield lines split at ``\\n`` only, each without one trailing ``\\r``.

    Form feeds, vertical tabs and Unicode separators stay inside the line.
    """
    for line in text.split(LINE_BREAK):
        yield line[:-1] if line.endswith("\r") else line


def first_line_starting_with(text: str, prefix: str) -> Optional[str]:
    for line in physical_lines(text):
        if line.startswith(prefix):
            return line
    return None
