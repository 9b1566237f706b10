from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from mimequery.core.domain.entities import DefaultAppResult, ErrorPolicy
from mimequery.core.services.error_codes import ErrorCode, MimeQueryError
from mimequery.core.services.error_policy import skip_on_error
from mimequery.core.services.mimeapps_list import scan_mimeapps_list
from mimequery.core.services.observability import log_search_candidate
from mimequery.core.services.search_paths import enumerate_search_paths
from mimequery.core.services.xdg_environment import resolve_environment


class QueryDefaultAppUseCase:
    """Find the binary of the default application for a MIME type.

    The environment is snapshotted once per ``execute`` call; nothing is
    cached between calls.
    """

    def __init__(
        self,
        env: Optional[Mapping[str, str]] = None,
        policy: ErrorPolicy = ErrorPolicy.BEST_EFFORT,
    ):
        self._env = env
        self._policy = policy

    def execute(self, mime_type: str) -> DefaultAppResult:
        env = resolve_environment(self._env)
        issues: List[Dict[str, Any]] = []

        for candidate in enumerate_search_paths(env):
            log_search_candidate(candidate)
            resolution = None
            with skip_on_error(self._policy, issues, stage="scan_mimeapps_list"):
                resolution = scan_mimeapps_list(
                    candidate.path, mime_type, env, policy=self._policy, issues=issues
                )
            if resolution is not None:
                return DefaultAppResult(
                    mime_type=mime_type,
                    binary=resolution.binary,
                    desktop_id=resolution.desktop_id,
                    desktop_file=resolution.desktop_file,
                    mimeapps_list=candidate.path,
                    issues=issues,
                )

        details: Dict[str, Any] = {"query": mime_type}
        if issues:
            details["skipped"] = issues
        raise MimeQueryError(
            ErrorCode.NOT_FOUND,
            f"No results for mime query: {mime_type}",
            details=details,
        )


def query_default_app(
    mime_type: str,
    env: Optional[Mapping[str, str]] = None,
    policy: ErrorPolicy = ErrorPolicy.BEST_EFFORT,
) -> Path:
    """Return the path of the binary handling ``mime_type`` by default.

    Raises:
        MimeQueryError: NOT_FOUND when nothing resolves; IO_FAILURE or
            INVALID_ENCODING under ``ErrorPolicy.FAIL_FAST``.
    """
    return QueryDefaultAppUseCase(env=env, policy=policy).execute(mime_type).binary
