"""Read the default application ids for a MIME type out of a mimeapps.list.

The lookup is textual: the file must contain a ``[Default Applications]``
header somewhere, and the first occurrence of the MIME string anywhere in the
file selects the entry line. A MIME string that happens to appear earlier in
another key or value will be picked up instead; this mirrors xdg-utils and is
a known limitation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

from mimequery.core.domain.entities import ErrorPolicy, Resolution
from mimequery.core.services.desktop_entry import resolve_desktop_id
from mimequery.core.services.line_scan import line_containing, read_text_file, value_after
from mimequery.core.services.observability import log_debug
from mimequery.core.services.xdg_environment import XdgEnvironment

DEFAULT_APPLICATIONS_SECTION = "[Default Applications]"


def parse_default_applications(text: str, mime_type: str) -> Optional[List[str]]:
    """Return the ordered desktop ids registered for ``mime_type``.

    None means this file says nothing usable about the query: no section
    header, no mention of the MIME type, or a matching line without ``=``.
    """
    found = line_containing(text, mime_type, after_section=DEFAULT_APPLICATIONS_SECTION)
    if found is None:
        return None
    value = value_after(text, found.match, found.line_end)
    if value is None:
        return None
    return [token.strip() for token in value.split(";") if token.strip()]


def scan_mimeapps_list(
    path: Path,
    mime_type: str,
    env: XdgEnvironment,
    policy: ErrorPolicy = ErrorPolicy.BEST_EFFORT,
    issues: Optional[List[Dict[str, Any]]] = None,
) -> Optional[Resolution]:
    """Resolve ``mime_type`` through the ids listed in one mimeapps.list.

    Ids are tried left to right and the first one that resolves wins.

    Raises:
        MimeQueryError: IO_FAILURE / INVALID_ENCODING when ``path`` itself
            cannot be read (the caller applies the error policy).
    """
    desktop_ids = parse_default_applications(read_text_file(path), mime_type)
    log_debug("mimeapps_list_scanned", path=str(path), mime_type=mime_type, desktop_ids=desktop_ids)
    if not desktop_ids:
        return None
    for desktop_id in desktop_ids:
        resolution = resolve_desktop_id(desktop_id, env, policy=policy, issues=issues)
        if resolution is not None:
            return resolution
    return None
