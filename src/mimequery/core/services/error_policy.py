"""Step over unusable candidate files, or stop at them, depending on the error policy."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from mimequery.core.domain.entities import ErrorPolicy
from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.observability import log_candidate_skipped

# Errors a best-effort search may step over. NOT_FOUND is never raised
# mid-search and anything else is a bug that should surface.
SKIPPABLE_CODES = frozenset({ErrorCode.IO_FAILURE, ErrorCode.INVALID_ENCODING})


@contextmanager
def skip_on_error(
    policy: ErrorPolicy,
    issues: Optional[List[Dict[str, Any]]],
    stage: str,
) -> Generator[None, None, None]:
    """Record and step over unusable candidates in best-effort mode.

    Under ``ErrorPolicy.FAIL_FAST`` the error propagates unchanged.
    """
    try:
        yield
    except MimeQueryError as exc:
        if policy is ErrorPolicy.FAIL_FAST or exc.code not in SKIPPABLE_CODES:
            raise
        issue = exc.as_issue()
        issue["stage"] = stage
        if issues is not None:
            issues.append(issue)
        log_candidate_skipped(stage, exc)
