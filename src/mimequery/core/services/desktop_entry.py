"""Locate application descriptors (.desktop files) and read their Exec binary.

Lookup for a desktop id, per data directory ($XDG_DATA_HOME then
$XDG_DATA_DIRS):

1. Vendor prefix: ``vendor-app.desktop`` is split at the first ``-`` and
   probed as ``applications/vendor/app.desktop`` then
   ``applnk/vendor/app.desktop``.
2. Direct and one level down: ``applications/<id>``, then
   ``applications/*/<id>``, then the same under ``applnk``. Only immediate
   child directories are probed; deeper levels are never walked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from mimequery.core.domain.entities import ErrorPolicy, Resolution
from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.error_policy import skip_on_error
from mimequery.core.services.line_scan import first_line_starting_with, read_text_file
from mimequery.core.services.observability import log_debug
from mimequery.core.services.xdg_environment import DATA_VARIABLES, XdgEnvironment

APPLICATION_SUBDIRS = ("applications", "applnk")
EXEC_PREFIX = "Exec"


def split_vendor(desktop_id: str) -> Optional[tuple[str, str]]:
    """Split ``vendor-app.desktop`` into ``("vendor", "app.desktop")``.

    Everything after the first ``-`` belongs to the app part.
    """
    vendor, sep, app = desktop_id.partition("-")
    if not sep:
        return None
    return vendor, app


def _child_dirs(directory: Path) -> List[Path]:
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        raise MimeQueryError(
            ErrorCode.IO_FAILURE,
            f"Could not list {directory}: {exc.strerror or exc}",
            details={"path": str(directory), "errno": exc.errno},
        ) from exc
    return [entry for entry in entries if entry.is_dir()]


def _probe_vendor(data_dir: Path, desktop_id: str) -> Optional[Path]:
    parts = split_vendor(desktop_id)
    if parts is None:
        return None
    vendor, app = parts
    for subdir in APPLICATION_SUBDIRS:
        candidate = data_dir / subdir / vendor / app
        if candidate.exists():
            return candidate
    return None


def _probe_direct_and_children(data_dir: Path, desktop_id: str) -> Optional[Path]:
    for subdir in APPLICATION_SUBDIRS:
        base = data_dir / subdir
        candidate = base / desktop_id
        if candidate.exists():
            return candidate
        if not base.is_dir():
            continue
        for child in _child_dirs(base):
            candidate = child / desktop_id
            if candidate.exists():
                return candidate
    return None


def find_in_data_dir(data_dir: Path, desktop_id: str) -> Optional[Path]:
    """Apply both lookup strategies to a single data directory."""
    return _probe_vendor(data_dir, desktop_id) or _probe_direct_and_children(
        data_dir, desktop_id
    )


def iter_desktop_file_locations(desktop_id: str, env: XdgEnvironment) -> Iterator[Path]:
    """Yield the descriptor found in each data directory, in priority order."""
    for _, directory in env.iter_search_dirs(*DATA_VARIABLES):
        found = find_in_data_dir(Path(directory), desktop_id)
        if found is not None:
            yield found


def locate_desktop_file(desktop_id: str, env: XdgEnvironment) -> Optional[Path]:
    return next(iter_desktop_file_locations(desktop_id, env), None)


def exec_binary(text: str) -> Optional[Path]:
    """Return the first token of the first ``Exec`` line's value."""
    line = first_line_starting_with(text, EXEC_PREFIX)
    if line is None:
        return None
    _, sep, command = line.partition("=")
    if not sep:
        return None
    tokens = command.split()
    if not tokens:
        return None
    return Path(tokens[0])


def parse_exec(path: Path) -> Optional[Path]:
    """Read a descriptor and return its Exec binary, or None.

    Field codes (``%f``, ``%u``...) and quoting are not interpreted.
    """
    return exec_binary(read_text_file(path))


def resolve_desktop_id(
    desktop_id: str,
    env: XdgEnvironment,
    policy: ErrorPolicy = ErrorPolicy.BEST_EFFORT,
    issues: Optional[List[Dict[str, Any]]] = None,
) -> Optional[Resolution]:
    """Map a desktop id to the binary of the first usable descriptor.

    A descriptor without a usable Exec line does not end the lookup; the
    next data directory's match is tried.
    """
    for _, directory in env.iter_search_dirs(*DATA_VARIABLES):
        location: Optional[Path] = None
        with skip_on_error(policy, issues, stage="locate_desktop_file"):
            location = find_in_data_dir(Path(directory), desktop_id)
        if location is None:
            continue

        binary: Optional[Path] = None
        with skip_on_error(policy, issues, stage="parse_exec"):
            binary = parse_exec(location)
        log_debug(
            "desktop_file_parsed",
            desktop_id=desktop_id,
            path=str(location),
            binary=str(binary) if binary else None,
        )
        if binary is not None:
            return Resolution(binary=binary, desktop_id=desktop_id, desktop_file=location)
    return None
