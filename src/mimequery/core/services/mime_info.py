"""Content-sniffed MIME type of a file via ``mimetype`` or ``file``."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence, Tuple, Union

from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.observability import log_debug

MIME_INFO_COMMANDS: Tuple[Tuple[str, ...], ...] = (
    ("mimetype", "--brief", "--dereference"),
    ("file", "--brief", "--dereference", "--mime-type"),
)


def drop_trailing_newlines(data: bytes) -> bytes:
    return data.rstrip(b"\n")


def query_mime_info(
    path: Union[str, Path],
    commands: Sequence[Sequence[str]] = MIME_INFO_COMMANDS,
) -> bytes:
    """Return the MIME type of ``path`` as raw bytes.

    The first command that can be started is used; a later one is only tried
    when an earlier program is missing or not executable. Its exit status is
    not inspected.
    """
    failures = []
    for command in commands:
        argv = [*command, str(path)]
        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                check=False,
            )
        except OSError as exc:
            log_debug("mime_info_command_unavailable", command=command[0], error=str(exc))
            failures.append({"command": command[0], "error": str(exc)})
            continue
        log_debug("mime_info_command", argv=argv, returncode=completed.returncode)
        return drop_trailing_newlines(completed.stdout)

    raise MimeQueryError(
        ErrorCode.COMMAND_FAILED,
        f"No MIME detection program could be run for {path}",
        details={"path": str(path), "attempts": failures},
    )
